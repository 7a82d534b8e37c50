#!/usr/bin/env python3
"""
OratoriaFlow on-device model downloader.

Pre-fetches the faster-whisper model used by the on-device provider so that
offline analysis works on first use. Defaults come from the application
settings (``WHISPER_MODEL``, ``WHISPER_DEVICE``, ``WHISPER_COMPUTE_TYPE``).

Usage:
    python scripts/download_models.py            # model from settings
    python scripts/download_models.py --model small --device cuda --compute-type float16
    python scripts/download_models.py --list
"""

import argparse
import sys
from pathlib import Path

from faster_whisper import WhisperModel

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.core.config import get_settings  # noqa: E402

# Approximate download sizes; Portuguese needs a multilingual model
MODELS = {
    "tiny": {"size": "39 MB", "description": "Fastest, rough Portuguese transcripts"},
    "base": {"size": "142 MB", "description": "Good balance for laptops"},
    "small": {"size": "466 MB", "description": "Noticeably better filler detection"},
    "medium": {"size": "1.5 GB", "description": "High accuracy, slower on CPU"},
    "large-v3": {"size": "3.1 GB", "description": "Best accuracy, needs a GPU"},
}

DEFAULT_CACHE_DIR = Path.home() / ".cache" / "huggingface" / "hub"


def print_models(default: str) -> None:
    print("\nAvailable Whisper models:")
    print("-" * 60)
    for model_name, info in MODELS.items():
        marker = "*" if model_name == default else " "
        print(f" {marker}{model_name:12} - {info['size']:8} - {info['description']}")
    print("-" * 60)
    print(f"\n* configured on-device model: {default}\n")


def download_model(
    model_name: str,
    cache_dir: Path | None = None,
    device: str = "cpu",
    compute_type: str = "int8",
) -> bool:
    """
    Download (or verify) one Whisper model by loading it once.

    Args:
        model_name: Model size name.
        cache_dir: Download root; the Hugging Face cache when None.
        device: "cpu" or "cuda".
        compute_type: CTranslate2 compute type.

    Returns:
        True if the model loaded.
    """
    if model_name not in MODELS:
        print(f"Error: Unknown model '{model_name}'")
        print_models(get_settings().whisper_model)
        return False

    cache_dir = cache_dir or DEFAULT_CACHE_DIR
    print(f"\nDownloading Whisper model '{model_name}' ({MODELS[model_name]['size']})")
    print(f"  cache: {cache_dir}  device: {device}  compute: {compute_type}\n")

    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        WhisperModel(
            model_name,
            device=device,
            compute_type=compute_type,
            download_root=str(cache_dir),
        )
    except Exception as e:
        print(f"\nError downloading model: {e}")
        return False

    print(f"Model '{model_name}' is ready for on-device analysis.\n")
    return True


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Download the on-device Whisper model for OratoriaFlow")
    parser.add_argument(
        "--model",
        default=settings.whisper_model,
        help=f"Model to download (default: {settings.whisper_model})",
    )
    parser.add_argument("--cache-dir", type=Path, default=None, help=f"Cache directory (default: {DEFAULT_CACHE_DIR})")
    parser.add_argument("--all", action="store_true", help="Download every listed model")
    parser.add_argument("--list", action="store_true", help="List available models and exit")
    parser.add_argument("--device", default=settings.whisper_device, choices=["cpu", "cuda"])
    parser.add_argument(
        "--compute-type",
        default=settings.whisper_compute_type,
        choices=["int8", "float16", "float32"],
    )
    args = parser.parse_args()

    if args.list:
        print_models(settings.whisper_model)
        return

    names = list(MODELS) if args.all else [args.model]
    ok = [download_model(name, args.cache_dir, args.device, args.compute_type) for name in names]
    print(f"Downloaded {sum(ok)}/{len(ok)} model(s)")
    sys.exit(0 if all(ok) else 1)


if __name__ == "__main__":
    main()

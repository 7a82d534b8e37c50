"""On-device provider using faster-whisper.

Transcribes the clip locally (no network) and scores the transcript with the
heuristic scorer. The WhisperModel is loaded lazily and cached at module level
to avoid repeated initialization overhead.
"""

import asyncio
import io
import logging
import math

from faster_whisper import WhisperModel

from src.core.config import get_settings
from src.core.exceptions import ProviderError, ProviderNotConfiguredError
from src.core.models import AnalysisResult, AudioClip, ProviderKind, TranscriptionResult
from src.services import scoring
from src.services.providers.base import BaseProvider

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


class OnDeviceProvider(BaseProvider):
    """Speech recognition on the host itself via faster-whisper (CTranslate2).

    Args:
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        enabled: Overrides ``on_device_enabled`` from settings.
    """

    name = "on_device"
    display_name = "Reconhecimento no dispositivo (Whisper)"
    kind = ProviderKind.on_device

    def __init__(
        self,
        model_size: str | None = None,
        device: str | None = None,
        compute_type: str | None = None,
        language: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        settings = get_settings()
        self._model_size = model_size or settings.whisper_model
        self._device = device or settings.whisper_device
        self._compute_type = compute_type or settings.whisper_compute_type
        self._language = (language or settings.analysis_language).split("-")[0]
        self._enabled = settings.on_device_enabled if enabled is None else enabled

    def is_configured(self) -> bool:
        return self._enabled

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def _run_transcription(self, data: bytes) -> tuple:
        """Run synchronous transcription (CPU-bound).

        Must be called via asyncio.to_thread(). The segment iterator is
        materialized inside this function to avoid CTranslate2 thread-safety
        issues.
        """
        model = self._get_model()
        segments_iter, info = model.transcribe(
            io.BytesIO(data),
            language=self._language,
            beam_size=5,
            vad_filter=True,
        )
        return list(segments_iter), info

    @staticmethod
    def _logprob_to_confidence(avg_logprob: float) -> float:
        """Convert average log probability to a 0-1 confidence score."""
        return max(0.0, min(1.0, math.exp(avg_logprob)))

    async def transcribe(self, clip: AudioClip) -> TranscriptionResult:
        """Transcribe the clip bytes locally."""
        try:
            segments, info = await asyncio.to_thread(self._run_transcription, clip.data)
        except Exception as exc:
            raise ProviderError(self.name, f"Whisper transcription failed: {exc}") from exc

        texts = [seg.text.strip() for seg in segments if seg.text.strip()]
        confidence = 0.0
        if segments:
            avg_logprob = sum(seg.avg_logprob for seg in segments) / len(segments)
            confidence = self._logprob_to_confidence(avg_logprob)

        return TranscriptionResult(
            text=" ".join(texts),
            confidence=confidence,
            duration_seconds=float(info.duration or 0.0),
        )

    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        """Transcribe on the device and score the transcript."""
        if not self._enabled:
            raise ProviderNotConfiguredError(self.name)

        transcription = await self.transcribe(clip)
        duration = clip.duration_seconds or int(transcription.duration_seconds)
        basic = scoring.score(transcription.text, duration)
        return scoring.merge_remote(
            basic,
            {"confidence_score": transcription.confidence},
            provider=self.name,
        )

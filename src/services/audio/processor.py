"""Audio clip utilities.

Duration helpers: decoding uploads that arrive without a duration, and the
byte-size estimate used by the local fallback.
"""

import io
import logging

from pydub import AudioSegment

from src.core.models import AudioClip
from src.services.providers.formats import base_mime

logger = logging.getLogger(__name__)

# Rough bytes-per-second of compressed browser speech audio
BYTES_PER_SECOND_ESTIMATE = 16000

_FORMAT_HINTS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/webm": "webm",
    "audio/mp4": "mp4",
    "audio/ogg": "ogg",
}


def format_hint(encoding: str) -> str | None:
    """Container name for pydub from a MIME type (codec parameters ignored)."""
    return _FORMAT_HINTS.get(base_mime(encoding))


def decoded_duration_seconds(data: bytes, encoding: str = "") -> int | None:
    """Return the decoded duration in whole seconds using pydub, or None.

    WAV is read natively; other containers go through ffmpeg, and any decode
    failure returns None.
    """
    if not data:
        return None
    try:
        audio = AudioSegment.from_file(io.BytesIO(data), format=format_hint(encoding))
    except Exception:
        logger.debug("Could not decode clip (%d bytes) for duration", len(data))
        return None
    return int(len(audio) / 1000)


def estimate_duration_seconds(clip: AudioClip) -> int:
    """Reported duration, or the coarse byte-size estimate (``size // 16000``)."""
    if clip.duration_seconds > 0:
        return clip.duration_seconds
    return clip.size_bytes // BYTES_PER_SECOND_ESTIMATE

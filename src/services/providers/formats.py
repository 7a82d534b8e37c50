"""Audio encoding helpers shared by the provider clients."""

from src.core.models import AudioClip

_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mp4": "m4a",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/flac": "flac",
}

# Google Speech v1 RecognitionConfig.AudioEncoding values
_GOOGLE_ENCODINGS = {
    "audio/webm": "WEBM_OPUS",
    "audio/ogg": "OGG_OPUS",
    "audio/wav": "LINEAR16",
    "audio/x-wav": "LINEAR16",
    "audio/wave": "LINEAR16",
    "audio/flac": "FLAC",
    "audio/mpeg": "MP3",
}


def base_mime(encoding: str) -> str:
    """``"audio/webm;codecs=opus"`` -> ``"audio/webm"``."""
    return encoding.split(";", 1)[0].strip().lower()


def file_name_for(clip: AudioClip, stem: str = "audio") -> str:
    """Upload file name whose extension matches the clip encoding."""
    return f"{stem}.{_EXTENSIONS.get(base_mime(clip.encoding), 'webm')}"


def google_encoding_for(clip: AudioClip) -> str:
    return _GOOGLE_ENCODINGS.get(base_mime(clip.encoding), "WEBM_OPUS")

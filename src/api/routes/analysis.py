"""
One-off analysis endpoint.

Accepts an uploaded clip and returns the analysis without storing anything.
Provider failures never surface here: the orchestrator falls back to the
local scorer.
"""

import asyncio
import logging

from fastapi import APIRouter, File, Form, UploadFile

from src.core.models import AnalysisResult, AudioClip, RuntimeEnvironment
from src.services import orchestrator
from src.services.audio.processor import decoded_duration_seconds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])

DEFAULT_UPLOAD_ENCODING = "audio/webm;codecs=opus"


async def read_clip(file: UploadFile, duration_seconds: int = 0) -> AudioClip:
    """Build an AudioClip from a multipart upload.

    Uploads without a duration are decoded once, in a worker thread, to
    measure it; undecodable payloads keep 0.
    """
    data = await file.read()
    encoding = file.content_type or DEFAULT_UPLOAD_ENCODING
    if duration_seconds <= 0:
        # pydub may shell out to ffmpeg
        duration_seconds = await asyncio.to_thread(decoded_duration_seconds, data, encoding) or 0
    return AudioClip(data=data, encoding=encoding, duration_seconds=duration_seconds)


@router.post("", response_model=AnalysisResult)
async def analyze_clip(
    file: UploadFile = File(...),
    duration_seconds: int = Form(0),
    preferred: str = Form(orchestrator.AUTO),
    online: bool = Form(True),
):
    """Analyze an uploaded recording with the provider fallback chain."""
    clip = await read_clip(file, duration_seconds)
    logger.info(
        "Analysis requested: %d bytes, %ss, preferred=%s, online=%s",
        clip.size_bytes,
        clip.duration_seconds,
        preferred,
        online,
    )
    env = RuntimeEnvironment(online=online)
    return await orchestrator.get_orchestrator().analyze(clip, preferred=preferred, env=env)

"""
Azure Speech Services provider implementation.

Posts the raw clip to the short-audio REST recognition endpoint with the
``detailed`` output format and scores the returned transcript locally.
Pronunciation/fluency come from Azure's pronunciation assessment when present.
"""

import logging

import httpx

from src.core.config import get_settings
from src.core.exceptions import ProviderError, ProviderNotConfiguredError, ProviderResponseError
from src.core.models import AnalysisResult, AudioClip, ProviderKind
from src.services import scoring
from src.services.providers.base import BaseProvider

logger = logging.getLogger(__name__)

RECOGNITION_PATH = "/speech/recognition/conversation/cognitiveservices/v1"
REGIONAL_ENDPOINT = "https://{region}.stt.speech.microsoft.com"
TICKS_PER_SECOND = 10_000_000  # Azure durations are in 100 ns ticks

DEFAULT_CONFIDENCE = 0.8
DEFAULT_FLUENCY = 75
DEFAULT_PRONUNCIATION = 80


class AzureSpeechProvider(BaseProvider):
    """Azure Speech-to-Text REST client."""

    name = "azure"
    display_name = "Azure Speech Services"
    kind = ProviderKind.remote

    def __init__(
        self,
        endpoint: str | None = None,
        key: str | None = None,
        region: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._key = key if key is not None else settings.azure_speech_key
        self._region = region if region is not None else settings.azure_speech_region
        endpoint = endpoint if endpoint is not None else settings.azure_speech_endpoint
        if not endpoint and self._region:
            endpoint = REGIONAL_ENDPOINT.format(region=self._region)
        self._endpoint = endpoint.rstrip("/")
        self._language = language or settings.analysis_language
        self._timeout = timeout or settings.provider_timeout_seconds
        self._client = client

    def is_configured(self) -> bool:
        return bool(self._endpoint and self._key)

    async def _post(self, clip: AudioClip) -> dict:
        url = f"{self._endpoint}{RECOGNITION_PATH}"
        params = {"language": self._language, "format": "detailed"}
        headers = {
            "Ocp-Apim-Subscription-Key": self._key,
            "Content-Type": clip.encoding,
            "Accept": "application/json",
        }
        if self._client is not None:
            response = await self._client.post(url, params=params, headers=headers, content=clip.data)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, params=params, headers=headers, content=clip.data)
        response.raise_for_status()
        return response.json()

    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        """Recognize with Azure, then score the transcript locally."""
        if not self.is_configured():
            raise ProviderNotConfiguredError(self.name)

        try:
            data = await self._post(clip)
        except httpx.HTTPStatusError as exc:
            logger.warning("Azure Speech HTTP %s", exc.response.status_code)
            raise ProviderError(self.name, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Azure Speech request failed: %s", exc)
            raise ProviderError(self.name, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderResponseError(self.name, "response is not JSON") from exc

        if not isinstance(data, dict):
            raise ProviderResponseError(self.name)
        status = data.get("RecognitionStatus", "Success")
        if status != "Success":
            raise ProviderResponseError(self.name, f"recognition status {status}")

        best = (data.get("NBest") or [{}])[0]
        transcript = data.get("DisplayText") or best.get("Display") or ""
        confidence = best.get("Confidence") or data.get("Confidence") or DEFAULT_CONFIDENCE
        duration = int((data.get("Duration") or 0) // TICKS_PER_SECOND) or clip.duration_seconds
        assessment = best.get("PronunciationAssessment") or data.get("PronunciationAssessment") or {}

        basic = scoring.score(transcript, duration)
        return scoring.merge_remote(
            basic,
            {
                "confidence_score": confidence,
                "pronunciation_score": assessment.get("AccuracyScore"),
                "fluency_score": assessment.get("FluencyScore"),
            },
            provider=self.name,
            fluency_score=DEFAULT_FLUENCY,
            pronunciation_score=DEFAULT_PRONUNCIATION,
        )

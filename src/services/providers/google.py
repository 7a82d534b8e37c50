"""
Google Cloud Speech-to-Text provider implementation.

Sends the clip base64-encoded to the v1 ``speech:recognize`` REST endpoint
(API key in the query string) with word time offsets enabled; the speech
duration is taken from the last recognized word.
"""

import base64
import logging
import math

import httpx

from src.core.config import get_settings
from src.core.exceptions import ProviderError, ProviderNotConfiguredError, ProviderResponseError
from src.core.models import AnalysisResult, AudioClip, ProviderKind
from src.services import scoring
from src.services.providers.base import BaseProvider
from src.services.providers.formats import google_encoding_for

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.8
SAMPLE_RATE_HERTZ = 48000  # Opus capture rate used by browser recorders


def _offset_seconds(value) -> float:
    """Parse a protobuf Duration rendered as JSON (``"1.500s"``)."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return float(str(value).rstrip("s") or 0)


class GoogleSpeechProvider(BaseProvider):
    """Google Speech v1 REST client."""

    name = "google"
    display_name = "Google Cloud Speech"
    kind = ProviderKind.remote

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.google_speech_key
        self._endpoint = endpoint or settings.google_speech_endpoint
        self._language = language or settings.analysis_language
        self._timeout = timeout or settings.provider_timeout_seconds
        self._client = client

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _request_body(self, clip: AudioClip) -> dict:
        return {
            "config": {
                "encoding": google_encoding_for(clip),
                "sampleRateHertz": SAMPLE_RATE_HERTZ,
                "languageCode": self._language,
                "enableWordTimeOffsets": True,
                "enableAutomaticPunctuation": True,
                "model": "latest_long",
            },
            "audio": {"content": base64.b64encode(clip.data).decode("ascii")},
        }

    async def _post(self, clip: AudioClip) -> dict:
        params = {"key": self._api_key}
        body = self._request_body(clip)
        if self._client is not None:
            response = await self._client.post(self._endpoint, params=params, json=body)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._endpoint, params=params, json=body)
        response.raise_for_status()
        return response.json()

    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        """Recognize with Google, then score the transcript locally."""
        if not self.is_configured():
            raise ProviderNotConfiguredError(self.name)

        try:
            data = await self._post(clip)
        except httpx.HTTPStatusError as exc:
            logger.warning("Google Speech HTTP %s", exc.response.status_code)
            raise ProviderError(self.name, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Google Speech request failed: %s", exc)
            raise ProviderError(self.name, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderResponseError(self.name, "response is not JSON") from exc

        if not isinstance(data, dict):
            raise ProviderResponseError(self.name)

        results = data.get("results") or [{}]
        alternative = (results[0].get("alternatives") or [{}])[0]
        transcript = alternative.get("transcript", "")
        confidence = alternative.get("confidence") or DEFAULT_CONFIDENCE
        words = alternative.get("words") or []

        try:
            duration = math.ceil(_offset_seconds(words[-1].get("endTime"))) if words else 0
        except ValueError as exc:
            raise ProviderResponseError(self.name, f"bad word offset: {exc}") from exc
        duration = duration or clip.duration_seconds

        basic = scoring.score(transcript, duration)
        return scoring.merge_remote(basic, {"confidence_score": confidence}, provider=self.name)

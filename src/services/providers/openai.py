"""
OpenAI provider implementation.

Uses the OpenAI Python SDK (``openai.AsyncOpenAI``) in two steps: Whisper
transcription of the clip, then a chat-completion review of the transcript.
The model's judgement is merged over the local heuristic measurements.
"""

import logging

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
)

from src.core.config import get_settings
from src.core.exceptions import ProviderError, ProviderNotConfiguredError, ProviderResponseError
from src.core.models import AnalysisResult, AudioClip, ProviderKind
from src.core.utils import parse_json_reply
from src.services import scoring
from src.services.providers.base import BaseProvider
from src.services.providers.formats import file_name_for

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Você é um especialista em análise de fala e oratória. "
    "Responda sempre com JSON válido, sem blocos de código."
)

ANALYSIS_PROMPT = """Analise o seguinte texto transcrito de uma apresentação oral em português.

Texto: "{transcript}"
Duração: {duration} segundos

Responda apenas com um objeto JSON com as chaves:
- overall_score: score geral (0-100)
- strengths: pontos fortes (array de strings)
- improvement_areas: áreas de melhoria (array de strings)
- fluency_score: score de fluência (0-100)
- pronunciation_score: score de pronúncia estimado (0-100)
- emotion_analysis: objeto com dominant_emotion, confidence (0-1) e emotions (mapa emoção -> 0-1)
"""

DEFAULT_CONFIDENCE = 0.9
DEFAULT_FLUENCY = 75
DEFAULT_PRONUNCIATION = 80


class OpenAIProvider(BaseProvider):
    """Whisper transcription + GPT review."""

    name = "openai"
    display_name = "OpenAI Whisper"
    kind = ProviderKind.remote

    def __init__(
        self,
        api_key: str | None = None,
        transcription_model: str | None = None,
        analysis_model: str | None = None,
        language: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._transcription_model = transcription_model or settings.openai_transcription_model
        self._analysis_model = analysis_model or settings.openai_analysis_model
        # Whisper takes ISO 639-1 ("pt"), not a locale ("pt-BR")
        self._language = (language or settings.analysis_language).split("-")[0]
        self._client: AsyncOpenAI | None = None
        if self._api_key:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=settings.openai_base_url or None,
                timeout=timeout or settings.provider_timeout_seconds,
                max_retries=0,
            )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _transcribe(self, clip: AudioClip):
        return await self._client.audio.transcriptions.create(
            file=(file_name_for(clip), clip.data, clip.encoding),
            model=self._transcription_model,
            language=self._language,
            response_format="verbose_json",
        )

    async def _review(self, transcript: str, duration: int) -> dict:
        response = await self._client.chat.completions.create(
            model=self._analysis_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": ANALYSIS_PROMPT.format(transcript=transcript, duration=duration),
                },
            ],
            temperature=0.3,
        )
        content = response.choices[0].message.content or ""
        try:
            return parse_json_reply(content)
        except ValueError as exc:
            raise ProviderResponseError(self.name, f"analysis reply is not JSON: {exc}") from exc

    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        """Transcribe with Whisper, review with GPT, merge over the heuristic."""
        if self._client is None:
            raise ProviderNotConfiguredError(self.name)

        try:
            transcription = await self._transcribe(clip)
            transcript = (transcription.text or "").strip()
            duration = int(getattr(transcription, "duration", 0) or 0) or clip.duration_seconds
            review = await self._review(transcript, duration)
        except ProviderError:
            raise
        except AuthenticationError as exc:
            logger.warning("OpenAI rejected the API key: %s", exc)
            raise ProviderError(self.name, f"authentication failed: {exc}") from exc
        except APITimeoutError as exc:
            logger.warning("OpenAI API timeout: %s", exc)
            raise ProviderError(self.name, f"request timed out: {exc}") from exc
        except APIConnectionError as exc:
            logger.warning("OpenAI API connection error: %s", exc)
            raise ProviderError(self.name, f"connection failed: {exc}") from exc
        except APIStatusError as exc:
            logger.warning("OpenAI API status %s: %s", exc.status_code, exc)
            raise ProviderError(self.name, f"HTTP {exc.status_code}") from exc
        except OpenAIError as exc:
            logger.error("Unexpected OpenAI error: %s", exc)
            raise ProviderError(self.name, str(exc)) from exc

        basic = scoring.score(transcript, duration)
        try:
            return scoring.merge_remote(
                basic,
                review,
                provider=self.name,
                confidence_score=getattr(transcription, "confidence", None) or DEFAULT_CONFIDENCE,
                fluency_score=DEFAULT_FLUENCY,
                pronunciation_score=DEFAULT_PRONUNCIATION,
            )
        except (TypeError, ValueError) as exc:
            raise ProviderResponseError(self.name, f"unusable analysis fields: {exc}") from exc

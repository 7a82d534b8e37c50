"""Shared pytest fixtures for the OratoriaFlow test suite.

Provides common test fixtures used across unit and integration tests,
including fake providers, sample clips and in-memory database setup.
"""

import io
import math
import struct
import wave

import pytest

from src.core.config import get_settings
from src.core.exceptions import ProviderError
from src.core.models import AnalysisResult, AudioClip, ProviderKind
from src.services.providers.base import BaseProvider

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep real credentials out of tests and reset cached settings."""
    for var in (
        "OPENAI_API_KEY",
        "AZURE_SPEECH_KEY",
        "AZURE_SPEECH_ENDPOINT",
        "AZURE_SPEECH_REGION",
        "GOOGLE_SPEECH_KEY",
    ):
        monkeypatch.setenv(var, "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Provider Fixtures
# ---------------------------------------------------------------------------


class FakeProvider(BaseProvider):
    """In-memory provider returning a canned result or raising.

    Args:
        name: Provider name.
        result: Returned by ``analyze`` when ``error`` is None.
        error: Raised by ``analyze`` when set.
        kind: Remote or on-device.
        configured: Reported by ``is_configured``.
    """

    def __init__(
        self,
        name: str,
        result: AnalysisResult | None = None,
        error: Exception | None = None,
        kind: ProviderKind = ProviderKind.remote,
        configured: bool = True,
    ) -> None:
        self.name = name
        self.display_name = name.title()
        self.kind = kind
        self._result = result
        self._error = error
        self._configured = configured
        self.calls = 0

    def is_configured(self) -> bool:
        return self._configured

    async def analyze(self, clip: AudioClip) -> AnalysisResult:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._result


def make_result(provider: str = "openai", score: int = 88) -> AnalysisResult:
    return AnalysisResult(
        overall_score=score,
        speaking_rate_wpm=140,
        filler_words_count=1,
        filler_words_list=["tipo"],
        strengths=["Boa dicção"],
        improvement_areas=["Pausas estratégicas"],
        duration_seconds=45,
        confidence_score=0.92,
        provider=provider,
    )


@pytest.fixture
def analysis_result():
    return make_result()


@pytest.fixture
def result_factory():
    """Build AnalysisResult objects: ``result_factory(provider, score)``."""
    return make_result


@pytest.fixture
def fake_provider():
    """The FakeProvider class, for tests that need several providers."""
    return FakeProvider


@pytest.fixture
def working_provider():
    return FakeProvider("openai", result=make_result("openai"))


@pytest.fixture
def failing_provider():
    return FakeProvider("azure", error=ProviderError("azure", "HTTP 500"))


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_wav_bytes():
    """Two seconds of a 440 Hz tone as a WAV file (16 kHz, 16-bit, mono)."""
    sample_rate = 16000
    frames = b"".join(
        struct.pack("<h", int(8000 * math.sin(2 * math.pi * 440 * i / sample_rate)))
        for i in range(sample_rate * 2)
    )
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(frames)
    return buffer.getvalue()


@pytest.fixture
def sample_clip():
    """An opaque 45-second clip as produced by the recorder."""
    return AudioClip(data=b"\x1a\x45\xdf\xa3" + b"\x00" * 4000, duration_seconds=45)


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from src.services.storage import models_db  # noqa: F401
    from src.services.storage.database import Base

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a transactional AsyncSession bound to the in-memory engine."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def repository(db_session):
    from src.services.storage.repository import SpeechRepository

    return SpeechRepository(db_session)

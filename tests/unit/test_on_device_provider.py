"""Tests for the on-device provider (mocked WhisperModel, no model download).

Validates transcription through faster-whisper, the logprob-to-confidence
conversion, scoring of the local transcript, and lazy model caching.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import src.services.providers.on_device as on_device_module
from src.core.exceptions import ProviderError, ProviderNotConfiguredError
from src.core.models import AudioClip
from src.services.providers.on_device import OnDeviceProvider


def _make_segment(text, avg_logprob=-0.1):
    return SimpleNamespace(text=text, start=0.0, end=1.0, avg_logprob=avg_logprob)


@pytest.fixture(autouse=True)
def _clear_model_cache():
    """Ensure the module-level model cache is cleared before each test."""
    original = on_device_module._model_cache
    on_device_module._model_cache = None
    yield
    on_device_module._model_cache = original


@pytest.fixture
def mock_whisper_model():
    model = MagicMock()
    segments = [
        _make_segment(" Bom dia pessoal,"),
        _make_segment(" tipo, hoje eu vou apresentar "),
        _make_segment("   "),
    ]
    model.transcribe.return_value = (iter(segments), SimpleNamespace(duration=20.7))
    return model


@pytest.fixture
def provider(mock_whisper_model):
    instance = OnDeviceProvider(model_size="tiny", device="cpu", compute_type="int8", enabled=True)
    instance._get_model = MagicMock(return_value=mock_whisper_model)
    return instance


class TestTranscribe:
    async def test_joins_non_empty_segments(self, provider):
        result = await provider.transcribe(AudioClip(data=b"audio"))
        assert result.text == "Bom dia pessoal, tipo, hoje eu vou apresentar"
        assert result.duration_seconds == pytest.approx(20.7)

    async def test_passes_language_without_region(self, provider, mock_whisper_model):
        await provider.transcribe(AudioClip(data=b"audio"))
        assert mock_whisper_model.transcribe.call_args.kwargs["language"] == "pt"

    async def test_model_failure_becomes_provider_error(self, provider, mock_whisper_model):
        mock_whisper_model.transcribe.side_effect = RuntimeError("CUDA out of memory")
        with pytest.raises(ProviderError, match="CUDA out of memory"):
            await provider.transcribe(AudioClip(data=b"audio"))


class TestAnalyze:
    async def test_scores_local_transcript(self, provider):
        result = await provider.analyze(AudioClip(data=b"audio", duration_seconds=20))

        assert result.provider == "on_device"
        assert result.duration_seconds == 20
        assert result.filler_words_list == ["tipo"]
        assert 0.0 < result.confidence_score <= 1.0

    async def test_duration_from_model_when_clip_has_none(self, provider):
        result = await provider.analyze(AudioClip(data=b"audio"))
        assert result.duration_seconds == 20

    async def test_disabled_provider_raises(self):
        provider = OnDeviceProvider(enabled=False)
        assert provider.is_configured() is False
        with pytest.raises(ProviderNotConfiguredError):
            await provider.analyze(AudioClip(data=b"audio"))


class TestConfidence:
    @pytest.mark.parametrize("logprob,expected", [(0.0, 1.0), (-100.0, 0.0), (2.0, 1.0)])
    def test_logprob_is_clamped(self, logprob, expected):
        assert OnDeviceProvider._logprob_to_confidence(logprob) == pytest.approx(expected, abs=1e-6)


class TestModelCache:
    def test_model_loaded_once(self):
        with patch.object(on_device_module, "WhisperModel") as model_cls:
            provider = OnDeviceProvider(model_size="tiny", device="cpu", compute_type="int8")
            first = provider._get_model()
            second = OnDeviceProvider()._get_model()

        assert first is second
        model_cls.assert_called_once_with("tiny", device="cpu", compute_type="int8")

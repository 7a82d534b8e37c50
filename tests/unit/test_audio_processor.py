"""Tests for clip duration estimation.

Covers decoding a real WAV payload with pydub, the reported duration, and
the byte-size estimate used by the local fallback.
"""

from unittest.mock import patch

import pytest

from src.core.models import AudioClip
from src.services.audio import processor
from src.services.audio.processor import (
    BYTES_PER_SECOND_ESTIMATE,
    decoded_duration_seconds,
    estimate_duration_seconds,
    format_hint,
)


class TestFormatHint:
    @pytest.mark.parametrize(
        "encoding,expected",
        [
            ("audio/wav", "wav"),
            ("audio/webm;codecs=opus", "webm"),
            ("Audio/MP4", "mp4"),
            ("application/octet-stream", None),
        ],
    )
    def test_maps_mime_type_to_container(self, encoding, expected):
        assert format_hint(encoding) == expected


class TestDecodedDuration:
    def test_wav_payload_is_decoded(self, sample_wav_bytes):
        """The 2-second fixture decodes to 2 whole seconds."""
        assert decoded_duration_seconds(sample_wav_bytes, "audio/wav") == 2

    def test_empty_payload_returns_none(self):
        assert decoded_duration_seconds(b"", "audio/wav") is None

    def test_garbage_returns_none(self):
        assert decoded_duration_seconds(b"not really audio", "audio/wav") is None


class TestEstimateDuration:
    def test_reported_duration_wins(self, sample_wav_bytes):
        clip = AudioClip(data=sample_wav_bytes, encoding="audio/wav", duration_seconds=17)
        assert estimate_duration_seconds(clip) == 17

    def test_size_estimate_without_duration(self):
        clip = AudioClip(data=b"\x00" * (BYTES_PER_SECOND_ESTIMATE * 5 + 100))
        assert estimate_duration_seconds(clip) == 5

    def test_size_estimate_does_not_decode(self, sample_wav_bytes):
        clip = AudioClip(data=sample_wav_bytes, encoding="audio/wav")
        with patch.object(processor, "decoded_duration_seconds") as decode:
            assert estimate_duration_seconds(clip) == len(sample_wav_bytes) // 16000
        decode.assert_not_called()

    def test_tiny_clip_estimates_zero(self):
        assert estimate_duration_seconds(AudioClip(data=b"\x01\x02")) == 0

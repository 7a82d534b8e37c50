"""Integration tests for the REST API.

Covers user registration and lookup, the practice pipeline (analysis,
storage, streak, free-plan limit), stored history, feedback, provider
status, and the JSON error envelope. The orchestrator is wired to fake
providers; persistence uses a real in-memory SQLite database.
"""

import threading
from unittest.mock import patch

import pytest

from src.core.exceptions import ProviderError

WAV = ("take.wav", b"RIFF....WAVEfmt fake", "audio/wav")


async def _practice(client, user_id: int, **form):
    data = {"duration_seconds": 45, **form}
    return await client.post(f"/api/v1/users/{user_id}/sessions", files={"file": WAV}, data=data)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUsers:
    async def test_create_user(self, async_client):
        resp = await async_client.post("/api/v1/users", json={"email": "bia@example.com", "name": "Bia"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["subscription_tier"] == "free"
        assert body["streak_count"] == 0
        assert body["level"] == 1

    async def test_duplicate_email_conflict(self, async_client, user):
        resp = await async_client.post("/api/v1/users", json={"email": user["email"], "name": "Outra"})

        assert resp.status_code == 409
        assert resp.json()["code"] == "USER_ALREADY_EXISTS"

    async def test_invalid_email_is_validation_error(self, async_client):
        resp = await async_client.post("/api/v1/users", json={"email": "not-an-email", "name": "X"})

        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_find_by_email(self, async_client, user):
        resp = await async_client.get("/api/v1/users", params={"email": user["email"]})
        assert resp.json()["id"] == user["id"]

    async def test_missing_user_envelope(self, async_client):
        resp = await async_client.get("/api/v1/users/999")

        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == "USER_NOT_FOUND"
        assert {"detail", "code", "timestamp"} <= body.keys()

    async def test_upgrade(self, async_client, user):
        resp = await async_client.post(f"/api/v1/users/{user['id']}/upgrade")
        assert resp.json()["subscription_tier"] == "premium"


# ---------------------------------------------------------------------------
# Practice pipeline
# ---------------------------------------------------------------------------


class TestPractice:
    async def test_practice_stores_session_and_analysis(self, async_client, user):
        resp = await _practice(async_client, user["id"])

        assert resp.status_code == 201
        body = resp.json()
        assert body["analysis"]["provider"] == "openai"
        assert body["analysis"]["overall_score"] == 88
        assert body["session"]["audio_encoding"] == "audio/wav"
        assert body["streak_count"] == 1
        assert body["level"] == 1

        session_id = body["session"]["id"]
        stored = await async_client.get(f"/api/v1/sessions/{session_id}/analysis")
        assert stored.status_code == 200
        assert stored.json()["overall_score"] == 88

    async def test_same_day_practice_keeps_streak(self, async_client, user):
        await _practice(async_client, user["id"])
        resp = await _practice(async_client, user["id"])
        assert resp.json()["streak_count"] == 1

    async def test_offline_practice_uses_on_device(self, async_client, user):
        resp = await _practice(async_client, user["id"], online="false")
        assert resp.json()["analysis"]["provider"] == "on_device"

    async def test_free_plan_limit(self, async_client, user):
        for _ in range(3):
            assert (await _practice(async_client, user["id"])).status_code == 201

        resp = await _practice(async_client, user["id"])

        assert resp.status_code == 429
        assert resp.json()["code"] == "FREE_TIER_LIMIT"
        limits = (await async_client.get(f"/api/v1/users/{user['id']}/limits")).json()
        assert limits == {"weekly_analyses": 3, "can_analyze": False}

    async def test_premium_is_not_limited(self, async_client, user):
        await async_client.post(f"/api/v1/users/{user['id']}/upgrade")
        for _ in range(4):
            assert (await _practice(async_client, user["id"])).status_code == 201

    async def test_practice_for_missing_user(self, async_client):
        resp = await _practice(async_client, 404)
        assert resp.status_code == 404

    async def test_history_and_stats(self, async_client, user):
        await _practice(async_client, user["id"])
        await _practice(async_client, user["id"])

        sessions = (await async_client.get(f"/api/v1/users/{user['id']}/sessions")).json()
        history = (await async_client.get(f"/api/v1/users/{user['id']}/history")).json()
        stats = (await async_client.get(f"/api/v1/users/{user['id']}/stats")).json()

        assert len(sessions) == 2
        assert [h["overall_score"] for h in history] == [88, 88]
        assert stats["total_sessions"] == 2
        assert stats["average_score"] == 88
        assert stats["weekly_usage"] == 2

    async def test_missing_session(self, async_client):
        resp = await async_client.get("/api/v1/sessions/999")
        assert resp.json()["code"] == "SESSION_NOT_FOUND"


# ---------------------------------------------------------------------------
# One-off analysis
# ---------------------------------------------------------------------------


class TestAnalysis:
    async def test_analysis_does_not_store(self, async_client, user):
        resp = await async_client.post("/api/v1/analysis", files={"file": WAV}, data={"duration_seconds": 45})

        assert resp.status_code == 200
        assert resp.json()["provider"] == "openai"
        sessions = (await async_client.get(f"/api/v1/users/{user['id']}/sessions")).json()
        assert sessions == []

    async def test_all_providers_failing_still_answers(self, async_client, providers):
        for provider in providers:
            provider._error = ProviderError(provider.name, "down")

        resp = await async_client.post("/api/v1/analysis", files={"file": WAV}, data={"duration_seconds": 45})

        assert resp.status_code == 200
        body = resp.json()
        assert body["provider"] == "local"
        assert body["duration_seconds"] == 45

    async def test_upload_without_duration_is_measured(self, async_client, providers, sample_wav_bytes):
        for provider in providers:
            provider._error = ProviderError(provider.name, "down")

        resp = await async_client.post(
            "/api/v1/analysis", files={"file": ("take.wav", sample_wav_bytes, "audio/wav")}
        )

        assert resp.json()["duration_seconds"] == 2

    async def test_upload_is_decoded_off_the_event_loop(self, async_client, providers):
        for provider in providers:
            provider._error = ProviderError(provider.name, "down")
        decode_threads = []

        def fake_decode(data, encoding):
            decode_threads.append(threading.get_ident())
            return 7

        with patch("src.api.routes.analysis.decoded_duration_seconds", side_effect=fake_decode):
            resp = await async_client.post(
                "/api/v1/analysis", files={"file": ("take.webm", b"webm", "audio/webm")}
            )

        assert resp.json()["duration_seconds"] == 7
        assert decode_threads and decode_threads[0] != threading.get_ident()

    async def test_preferred_provider_only(self, async_client, providers):
        resp = await async_client.post(
            "/api/v1/analysis",
            files={"file": WAV},
            data={"duration_seconds": 45, "preferred": "on_device"},
        )

        assert resp.json()["provider"] == "on_device"
        assert providers[0].calls == 0


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


class TestFeedback:
    @pytest.fixture
    async def session_id(self, async_client, user):
        return (await _practice(async_client, user["id"])).json()["session"]["id"]

    async def test_no_feedback_is_null(self, async_client, session_id):
        resp = await async_client.get(f"/api/v1/sessions/{session_id}/feedback")
        assert resp.status_code == 200
        assert resp.json() is None

    async def test_submit_and_read(self, async_client, session_id):
        resp = await async_client.post(
            f"/api/v1/sessions/{session_id}/feedback",
            json={"rating": 5, "comments_text": "Muito útil"},
        )
        assert resp.status_code == 201

        feedback = (await async_client.get(f"/api/v1/sessions/{session_id}/feedback")).json()
        assert feedback["rating"] == 5
        assert feedback["comments_text"] == "Muito útil"

    async def test_rating_out_of_range(self, async_client, session_id):
        resp = await async_client.post(f"/api/v1/sessions/{session_id}/feedback", json={"rating": 9})
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class TestProviders:
    async def test_online_prefers_remote(self, async_client):
        body = (await async_client.get("/api/v1/providers")).json()

        assert body["preferred"] == "openai"
        assert [p["name"] for p in body["providers"]] == ["openai", "on_device"]
        assert all(p["available"] for p in body["providers"])

    async def test_offline_prefers_on_device(self, async_client):
        body = (await async_client.get("/api/v1/providers", params={"online": "false"})).json()

        assert body["preferred"] == "on_device"
        assert body["providers"][0]["available"] is False

"""
Practice session REST endpoints.

``POST /users/{user_id}/sessions`` is the full practice pipeline: free-plan
check, analysis through the provider fallback chain, then one transaction
storing the session, its analysis and the updated streak.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, File, Form, Query, UploadFile

from src.api.routes.analysis import read_clip
from src.core.config import get_settings
from src.core.exceptions import FreeTierLimitError
from src.core.models import (
    AnalysisRecordResponse,
    FeedbackCreate,
    FeedbackResponse,
    PracticeResponse,
    RuntimeEnvironment,
    SessionResponse,
)
from src.services import gamification, orchestrator
from src.services.storage.database import get_session
from src.services.storage.repository import SpeechRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


def _session_response(practice) -> SessionResponse:
    return SessionResponse(
        id=practice.id,
        user_id=practice.user_id,
        transcript_text=practice.transcript_text,
        audio_encoding=practice.audio_encoding,
        duration_seconds=practice.duration_seconds,
        provider=practice.provider,
        created_at=practice.created_at,
    )


def _analysis_response(record) -> AnalysisRecordResponse:
    return AnalysisRecordResponse(
        id=record.id,
        session_id=record.session_id,
        overall_score=record.overall_score,
        speaking_rate_wpm=record.speaking_rate_wpm,
        filler_words_count=record.filler_words_count,
        filler_words_list=record.filler_words_list or [],
        strengths=record.strengths or [],
        improvement_areas=record.improvement_areas or [],
        confidence_score=record.confidence_score,
        provider=record.provider,
        created_at=record.created_at,
    )


def _feedback_response(feedback) -> FeedbackResponse:
    return FeedbackResponse(
        id=feedback.id,
        session_id=feedback.session_id,
        rating=feedback.rating,
        comments_text=feedback.comments_text,
        created_at=feedback.created_at,
    )


@router.post("/users/{user_id}/sessions", response_model=PracticeResponse, status_code=201)
async def create_practice_session(
    user_id: int,
    file: UploadFile = File(...),
    duration_seconds: int = Form(0),
    preferred: str = Form(orchestrator.AUTO),
    online: bool = Form(True),
):
    """Analyze a recording and store it as a practice session."""
    async with get_session() as session:
        limits = await SpeechRepository(session).check_free_user_limits(user_id)
    if not limits.can_analyze:
        raise FreeTierLimitError(get_settings().free_weekly_limit)

    clip = await read_clip(file, duration_seconds)
    result = await orchestrator.get_orchestrator().analyze(
        clip, preferred=preferred, env=RuntimeEnvironment(online=online)
    )

    async with get_session() as session:
        repo = SpeechRepository(session)
        practice = await repo.create_practice_session(
            user_id=user_id,
            audio_encoding=clip.encoding,
            duration_seconds=result.duration_seconds,
            provider=result.provider,
        )
        await repo.save_analysis_result(practice.id, result)
        user = await repo.record_practice(user_id, datetime.now(UTC).date())
        logger.info(
            "Practice session %s stored for user %s (score=%s, provider=%s)",
            practice.id,
            user_id,
            result.overall_score,
            result.provider,
        )
        return PracticeResponse(
            session=_session_response(practice),
            analysis=result,
            streak_count=user.streak_count,
            level=gamification.level(user.streak_count),
        )


@router.get("/users/{user_id}/sessions", response_model=list[SessionResponse])
async def list_practice_sessions(user_id: int, limit: int = Query(10, ge=1, le=100)):
    """Most recent practice sessions of a user."""
    async with get_session() as session:
        repo = SpeechRepository(session)
        await repo.get_user(user_id)
        sessions = await repo.get_user_practice_sessions(user_id, limit=limit)
        return [_session_response(s) for s in sessions]


@router.get("/users/{user_id}/history", response_model=list[AnalysisRecordResponse])
async def get_analysis_history(user_id: int, limit: int = Query(20, ge=1, le=100)):
    """Most recent stored analyses of a user."""
    async with get_session() as session:
        repo = SpeechRepository(session)
        await repo.get_user(user_id)
        records = await repo.get_user_analysis_history(user_id, limit=limit)
        return [_analysis_response(r) for r in records]


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_practice_session(session_id: int):
    async with get_session() as session:
        practice = await SpeechRepository(session).get_practice_session(session_id)
        return _session_response(practice)


@router.get("/sessions/{session_id}/analysis", response_model=AnalysisRecordResponse)
async def get_session_analysis(session_id: int):
    async with get_session() as session:
        record = await SpeechRepository(session).get_analysis_result(session_id)
        return _analysis_response(record)


@router.post("/sessions/{session_id}/feedback", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(session_id: int, body: FeedbackCreate):
    """Rate the analysis of a session (1-5)."""
    async with get_session() as session:
        feedback = await SpeechRepository(session).save_feedback(
            session_id, body.rating, body.comments_text
        )
        return _feedback_response(feedback)


@router.get("/sessions/{session_id}/feedback", response_model=FeedbackResponse | None)
async def get_session_feedback(session_id: int):
    """Latest feedback for a session, or null when none was given."""
    async with get_session() as session:
        repo = SpeechRepository(session)
        await repo.get_practice_session(session_id)
        feedback = await repo.get_feedback_by_session(session_id)
        return _feedback_response(feedback) if feedback else None

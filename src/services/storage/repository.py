"""
CRUD repository for the OratoriaFlow tables.

``SpeechRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import functools
import logging
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import get_settings
from src.core.exceptions import (
    AnalysisNotFoundError,
    InvalidFeedbackError,
    PersistenceError,
    SessionNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from src.core.models import AnalysisResult, FreeTierStatus, SubscriptionTier, UserStats
from src.services import gamification, scoring
from src.services.storage.models_db import (
    AnalysisResultRecord,
    PracticeSession,
    User,
    UserFeedback,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = 5


def _db_errors(method):
    """Translate SQLAlchemy failures into :class:`PersistenceError`."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            logger.exception("Database error in %s", method.__name__)
            raise PersistenceError(f"{method.__name__} failed: {exc.__class__.__name__}") from exc

    return wrapper


def _week_ago(now: datetime | None) -> datetime:
    return (now or datetime.now(UTC)) - timedelta(days=7)


class SpeechRepository:
    """Data-access layer for users, practice sessions, analyses and feedback.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @_db_errors
    async def create_user(
        self,
        email: str,
        name: str,
        subscription_tier: str = SubscriptionTier.free,
    ) -> User:
        """Create a user; raises :class:`UserAlreadyExistsError` for a taken email."""
        if await self.get_user_by_email(email) is not None:
            raise UserAlreadyExistsError(email)
        user = User(email=email, name=name, subscription_tier=str(subscription_tier))
        self._session.add(user)
        await self._session.flush()
        return user

    @_db_errors
    async def get_user(self, user_id: int) -> User:
        """Return a user by ID or raise :class:`UserNotFoundError`."""
        user = await self._session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    @_db_errors
    async def get_user_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @_db_errors
    async def update_user_streak(self, user_id: int, streak_count: int) -> User:
        user = await self.get_user(user_id)
        user.streak_count = max(streak_count, 0)
        await self._session.flush()
        return user

    @_db_errors
    async def upgrade_user_subscription(self, user_id: int) -> User:
        """Move a user to the premium tier."""
        user = await self.get_user(user_id)
        user.subscription_tier = SubscriptionTier.premium.value
        await self._session.flush()
        return user

    @_db_errors
    async def record_practice(self, user_id: int, today: date | None = None) -> User:
        """Advance the user's streak for a practice on ``today``."""
        user = await self.get_user(user_id)
        today = today or datetime.now(UTC).date()
        user.streak_count = gamification.next_streak(
            user.streak_count, user.last_practice_date, today
        )
        user.last_practice_date = today
        await self._session.flush()
        return user

    # ------------------------------------------------------------------
    # Practice sessions
    # ------------------------------------------------------------------

    @_db_errors
    async def create_practice_session(
        self,
        user_id: int,
        transcript_text: str | None = None,
        audio_encoding: str = "",
        duration_seconds: int = 0,
        provider: str = "",
    ) -> PracticeSession:
        await self.get_user(user_id)
        practice = PracticeSession(
            user_id=user_id,
            transcript_text=transcript_text,
            audio_encoding=audio_encoding,
            duration_seconds=duration_seconds,
            provider=provider,
        )
        self._session.add(practice)
        await self._session.flush()
        return practice

    @_db_errors
    async def get_user_practice_sessions(self, user_id: int, limit: int = 10) -> list[PracticeSession]:
        """Most recent sessions first."""
        stmt = (
            select(PracticeSession)
            .where(PracticeSession.user_id == user_id)
            .order_by(PracticeSession.created_at.desc(), PracticeSession.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @_db_errors
    async def get_practice_session(self, session_id: int) -> PracticeSession:
        """Return a session by ID or raise :class:`SessionNotFoundError`."""
        practice = await self._session.get(PracticeSession, session_id)
        if practice is None:
            raise SessionNotFoundError(session_id)
        return practice

    # ------------------------------------------------------------------
    # Analysis results
    # ------------------------------------------------------------------

    @_db_errors
    async def save_analysis_result(self, session_id: int, result: AnalysisResult) -> AnalysisResultRecord:
        await self.get_practice_session(session_id)
        record = AnalysisResultRecord(
            session_id=session_id,
            overall_score=result.overall_score,
            speaking_rate_wpm=result.speaking_rate_wpm,
            filler_words_count=result.filler_words_count,
            filler_words_list=list(result.filler_words_list),
            strengths=list(result.strengths),
            improvement_areas=list(result.improvement_areas),
            confidence_score=result.confidence_score,
            provider=result.provider,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    @_db_errors
    async def get_analysis_result(self, session_id: int) -> AnalysisResultRecord:
        """Return the analysis for a session or raise :class:`AnalysisNotFoundError`."""
        stmt = select(AnalysisResultRecord).where(AnalysisResultRecord.session_id == session_id)
        record = (await self._session.execute(stmt)).scalar_one_or_none()
        if record is None:
            raise AnalysisNotFoundError(session_id)
        return record

    @_db_errors
    async def get_user_analysis_history(self, user_id: int, limit: int = 20) -> list[AnalysisResultRecord]:
        """Most recent analyses of a user's sessions first."""
        stmt = (
            select(AnalysisResultRecord)
            .join(PracticeSession, AnalysisResultRecord.session_id == PracticeSession.id)
            .where(PracticeSession.user_id == user_id)
            .order_by(AnalysisResultRecord.created_at.desc(), AnalysisResultRecord.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    @_db_errors
    async def save_feedback(
        self,
        session_id: int,
        rating: int,
        comments_text: str | None = None,
    ) -> UserFeedback:
        """Store a 1-5 rating for a session."""
        if not 1 <= rating <= 5:
            raise InvalidFeedbackError(rating)
        await self.get_practice_session(session_id)
        feedback = UserFeedback(session_id=session_id, rating=rating, comments_text=comments_text)
        self._session.add(feedback)
        await self._session.flush()
        return feedback

    @_db_errors
    async def get_feedback_by_session(self, session_id: int) -> UserFeedback | None:
        stmt = (
            select(UserFeedback)
            .where(UserFeedback.session_id == session_id)
            .order_by(UserFeedback.id.desc())
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    async def _weekly_session_count(self, user_id: int, now: datetime | None) -> int:
        stmt = select(func.count(PracticeSession.id)).where(
            PracticeSession.user_id == user_id,
            PracticeSession.created_at >= _week_ago(now),
        )
        return (await self._session.execute(stmt)).scalar_one()

    @_db_errors
    async def get_user_stats(self, user_id: int, now: datetime | None = None) -> UserStats:
        """Totals, average score, last-7-days usage, and the recent score trend.

        The trend is the average of the five most recent scores minus the
        average of the five before them (each 0 when empty), rounded.
        """
        await self.get_user(user_id)

        total_stmt = select(func.count(PracticeSession.id)).where(PracticeSession.user_id == user_id)
        total = (await self._session.execute(total_stmt)).scalar_one()

        scores_stmt = (
            select(AnalysisResultRecord.overall_score)
            .join(PracticeSession, AnalysisResultRecord.session_id == PracticeSession.id)
            .where(PracticeSession.user_id == user_id)
            .order_by(AnalysisResultRecord.created_at.desc(), AnalysisResultRecord.id.desc())
        )
        scores = list((await self._session.execute(scores_stmt)).scalars().all())

        def _avg(values: list[int]) -> float:
            return sum(values) / len(values) if values else 0.0

        recent = scores[:TREND_WINDOW]
        previous = scores[TREND_WINDOW : TREND_WINDOW * 2]

        return UserStats(
            total_sessions=total,
            average_score=scoring.round_half_up(_avg(scores)),
            weekly_usage=await self._weekly_session_count(user_id, now),
            improvement_trend=scoring.round_half_up(_avg(recent) - _avg(previous)),
        )

    @_db_errors
    async def check_free_user_limits(self, user_id: int, now: datetime | None = None) -> FreeTierStatus:
        """Weekly usage against the free plan limit; premium users are never limited."""
        user = await self.get_user(user_id)
        weekly = await self._weekly_session_count(user_id, now)
        if user.subscription_tier == SubscriptionTier.premium:
            return FreeTierStatus(weekly_analyses=weekly, can_analyze=True)
        return FreeTierStatus(
            weekly_analyses=weekly,
            can_analyze=weekly < get_settings().free_weekly_limit,
        )

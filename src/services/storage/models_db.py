"""
SQLAlchemy ORM models for the OratoriaFlow schema.

Tables: ``users``, ``practice_sessions``, ``analysis_results``,
``user_feedback``.
"""

from datetime import UTC, date, datetime

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from src.services.storage.database import Base


def _now() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """A registered speaker."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    subscription_tier: Mapped[str] = mapped_column(String(20), default="free")
    streak_count: Mapped[int] = mapped_column(default=0)
    last_practice_date: Mapped[date | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now)
    updated_at: Mapped[datetime] = mapped_column(default=_now, onupdate=_now)

    sessions: Mapped[list["PracticeSession"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} tier={self.subscription_tier!r}>"


class PracticeSession(Base):
    """One recorded practice attempt."""

    __tablename__ = "practice_sessions"
    __table_args__ = (Index("ix_practice_sessions_user_created", "user_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    transcript_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_encoding: Mapped[str] = mapped_column(String(100), default="")
    duration_seconds: Mapped[int] = mapped_column(default=0)
    provider: Mapped[str] = mapped_column(String(50), default="")
    created_at: Mapped[datetime] = mapped_column(default=_now)

    user: Mapped["User"] = relationship(back_populates="sessions")
    analysis: Mapped["AnalysisResultRecord | None"] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        uselist=False,
    )
    feedback: Mapped["UserFeedback | None"] = relationship(
        back_populates="session",
        cascade="all, delete-orphan",
        uselist=False,
    )

    def __repr__(self) -> str:
        return f"<PracticeSession id={self.id} user={self.user_id}>"


class AnalysisResultRecord(Base):
    """Stored analysis of a practice session (one per session)."""

    __tablename__ = "analysis_results"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("practice_sessions.id"), unique=True)
    overall_score: Mapped[int] = mapped_column(default=0)
    speaking_rate_wpm: Mapped[int] = mapped_column(default=0)
    filler_words_count: Mapped[int] = mapped_column(default=0)
    filler_words_list: Mapped[list] = mapped_column(JSON, default=list)
    strengths: Mapped[list] = mapped_column(JSON, default=list)
    improvement_areas: Mapped[list] = mapped_column(JSON, default=list)
    confidence_score: Mapped[float] = mapped_column(default=0.0)
    provider: Mapped[str] = mapped_column(String(50), default="local")
    created_at: Mapped[datetime] = mapped_column(default=_now)

    session: Mapped["PracticeSession"] = relationship(back_populates="analysis")

    def __repr__(self) -> str:
        return f"<AnalysisResultRecord id={self.id} session={self.session_id} score={self.overall_score}>"


class UserFeedback(Base):
    """A user's rating of the analysis they received."""

    __tablename__ = "user_feedback"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("practice_sessions.id"), index=True)
    rating: Mapped[int] = mapped_column()
    comments_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_now)

    session: Mapped["PracticeSession"] = relationship(back_populates="feedback")

    def __repr__(self) -> str:
        return f"<UserFeedback id={self.id} session={self.session_id} rating={self.rating}>"

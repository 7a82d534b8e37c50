"""
Pydantic v2 domain and request / response models used across the API layer.

Audio & analysis: AudioClip, AnalysisResult, TranscriptionResult, RuntimeEnvironment
Persistence: User, PracticeSession, AnalysisRecord, Feedback, stats
Transport: Health, Provider info, WebSocket recorder messages, Error
"""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------


class AudioClip(BaseModel):
    """A finalized recording: encoded payload plus elapsed duration.

    Immutable once produced by the recorder (or an upload).
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    encoding: str = "audio/webm;codecs=opus"
    duration_seconds: int = Field(default=0, ge=0)

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


class EmotionAnalysis(BaseModel):
    """Optional coarse emotion estimate returned by full-featured providers."""

    model_config = ConfigDict(frozen=True)

    dominant_emotion: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    emotions: dict[str, float] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Speech analysis for one practice session."""

    model_config = ConfigDict(frozen=True)

    overall_score: int = Field(ge=0, le=100)
    speaking_rate_wpm: int = Field(ge=0)
    filler_words_count: int = Field(ge=0)
    filler_words_list: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    duration_seconds: int = Field(ge=0)
    confidence_score: float = Field(ge=0.0, le=1.0)
    fluency_score: int | None = Field(default=None, ge=0, le=100)
    pronunciation_score: int | None = Field(default=None, ge=0, le=100)
    emotion_analysis: EmotionAnalysis | None = None
    provider: str = "local"


class TranscriptionResult(BaseModel):
    """Transcript returned by a provider before scoring."""

    text: str
    confidence: float = 0.0
    duration_seconds: float = 0.0


class ProviderKind(StrEnum):
    """Where a provider runs."""

    remote = "remote"
    on_device = "on_device"


class RuntimeEnvironment(BaseModel):
    """Host conditions passed explicitly into the orchestrator."""

    model_config = ConfigDict(frozen=True)

    online: bool = True
    on_device_available: bool = True


class ProviderInfo(BaseModel):
    """GET /providers entry."""

    name: str
    display_name: str
    kind: ProviderKind
    configured: bool
    available: bool


class ProvidersResponse(BaseModel):
    """GET /providers response."""

    providers: list[ProviderInfo] = Field(default_factory=list)
    preferred: str = "auto"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class SubscriptionTier(StrEnum):
    """Subscription plans."""

    free = "free"
    premium = "premium"


class UserCreate(BaseModel):
    """POST /users request body."""

    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$", max_length=255)
    name: str = Field(min_length=1, max_length=255)
    subscription_tier: SubscriptionTier = SubscriptionTier.free


class UserResponse(BaseModel):
    """Standard user representation returned by the API."""

    id: int
    email: str
    name: str
    subscription_tier: SubscriptionTier
    streak_count: int = 0
    level: int = 1
    level_progress: float = 0.0
    last_practice_date: date | None = None
    created_at: datetime
    updated_at: datetime


class UserStats(BaseModel):
    """Dashboard statistics for one user."""

    total_sessions: int = 0
    average_score: int = 0
    weekly_usage: int = 0
    improvement_trend: int = 0


class FreeTierStatus(BaseModel):
    """Free-plan weekly usage check."""

    weekly_analyses: int = 0
    can_analyze: bool = True


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """A practice session."""

    id: int
    user_id: int
    transcript_text: str | None = None
    audio_encoding: str = ""
    duration_seconds: int = 0
    provider: str = ""
    created_at: datetime


class AnalysisRecordResponse(BaseModel):
    """A stored analysis result."""

    id: int
    session_id: int
    overall_score: int
    speaking_rate_wpm: int
    filler_words_count: int
    filler_words_list: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)
    confidence_score: float = 0.0
    provider: str = ""
    created_at: datetime


class PracticeResponse(BaseModel):
    """POST /users/{id}/sessions response: the session, its analysis, and the new streak."""

    session: SessionResponse
    analysis: AnalysisResult
    streak_count: int
    level: int


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


class FeedbackCreate(BaseModel):
    """POST /sessions/{id}/feedback request body."""

    rating: int
    comments_text: str | None = Field(default=None, max_length=2000)


class FeedbackResponse(BaseModel):
    """Stored user feedback."""

    id: int
    session_id: int
    rating: int
    comments_text: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


class RecorderMessageType(StrEnum):
    """Discriminator for messages sent over the recording WebSocket."""

    connected = "connected"
    status = "status"
    result = "result"
    error = "error"


class RecorderMessage(BaseModel):
    """JSON message sent from server to client over WebSocket."""

    type: RecorderMessageType
    data: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str

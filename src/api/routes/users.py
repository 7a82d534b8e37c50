"""
User REST endpoints.

Registration, lookup, plan upgrade, dashboard statistics and free-plan
limits. All endpoints delegate to ``SpeechRepository``.
"""

from fastapi import APIRouter, Query

from src.core.exceptions import UserNotFoundError
from src.core.models import FreeTierStatus, SubscriptionTier, UserCreate, UserResponse, UserStats
from src.services import gamification
from src.services.storage.database import get_session
from src.services.storage.repository import SpeechRepository

router = APIRouter(prefix="/users", tags=["users"])


def to_user_response(user) -> UserResponse:
    """Convert an ORM User into its API model, adding level information."""
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        subscription_tier=SubscriptionTier(user.subscription_tier),
        streak_count=user.streak_count,
        level=gamification.level(user.streak_count),
        level_progress=gamification.level_progress(user.streak_count),
        last_practice_date=user.last_practice_date,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(body: UserCreate):
    """Register a new user."""
    async with get_session() as session:
        repo = SpeechRepository(session)
        user = await repo.create_user(
            email=body.email,
            name=body.name,
            subscription_tier=body.subscription_tier,
        )
        return to_user_response(user)


@router.get("", response_model=UserResponse)
async def find_user(email: str = Query(..., min_length=3)):
    """Look a user up by email."""
    async with get_session() as session:
        user = await SpeechRepository(session).get_user_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        return to_user_response(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int):
    async with get_session() as session:
        user = await SpeechRepository(session).get_user(user_id)
        return to_user_response(user)


@router.post("/{user_id}/upgrade", response_model=UserResponse)
async def upgrade_user(user_id: int):
    """Move the user to the premium plan."""
    async with get_session() as session:
        user = await SpeechRepository(session).upgrade_user_subscription(user_id)
        return to_user_response(user)


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(user_id: int):
    async with get_session() as session:
        return await SpeechRepository(session).get_user_stats(user_id)


@router.get("/{user_id}/limits", response_model=FreeTierStatus)
async def get_user_limits(user_id: int):
    """Weekly practice usage against the free plan limit."""
    async with get_session() as session:
        return await SpeechRepository(session).check_free_user_limits(user_id)

"""
Storage module - Database and persistence gateway.
"""

from src.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from src.services.storage.models_db import AnalysisResultRecord, PracticeSession, User, UserFeedback
from src.services.storage.repository import SpeechRepository

__all__ = [
    "AnalysisResultRecord",
    "Base",
    "PracticeSession",
    "SpeechRepository",
    "User",
    "UserFeedback",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]

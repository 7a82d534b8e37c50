"""Screen flow controller.

A small finite state machine deciding which screen the front end shows::

    onboarding -> auth -> dashboard -> recording -> processing -> results
                              ^  \\-> recordings      |  \\-> feedback
                              |                       v
                              +----- new practice / feedback done / back

Each screen is a frozen dataclass carrying only the data it needs, so a
``Results`` screen can never exist without an analysis result. Every screen
has one handler; an event the current screen does not accept raises
``InvalidTransitionError``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from src.core.exceptions import InvalidTransitionError
from src.core.models import AnalysisResult

logger = logging.getLogger(__name__)

# Cosmetic progress never reaches 100 until the analysis actually finishes
MAX_PENDING_PROGRESS = 95.0
COMPLETE_PROGRESS = 100.0


@dataclass(frozen=True)
class Onboarding:
    name = "onboarding"


@dataclass(frozen=True)
class Auth:
    name = "auth"


@dataclass(frozen=True)
class Dashboard:
    user: Any
    name = "dashboard"


@dataclass(frozen=True)
class Recording:
    user: Any
    name = "recording"


@dataclass(frozen=True)
class Processing:
    user: Any
    progress: float = 0.0
    name = "processing"


@dataclass(frozen=True)
class Results:
    user: Any
    result: AnalysisResult
    name = "results"


@dataclass(frozen=True)
class FeedbackScreen:
    user: Any
    result: AnalysisResult
    name = "feedback"


@dataclass(frozen=True)
class Recordings:
    user: Any
    name = "recordings"


Screen = Onboarding | Auth | Dashboard | Recording | Processing | Results | FeedbackScreen | Recordings


class ScreenFlowController:
    """Holds the current screen and applies events to it.

    Args:
        initial: Starting screen; defaults to ``Onboarding``.
    """

    def __init__(self, initial: Screen | None = None) -> None:
        self._state: Screen = initial or Onboarding()
        self._handlers: dict[type, Callable[..., Screen]] = {
            Onboarding: self._on_onboarding,
            Auth: self._on_auth,
            Dashboard: self._on_dashboard,
            Recording: self._on_recording,
            Processing: self._on_processing,
            Results: self._on_results,
            FeedbackScreen: self._on_feedback,
            Recordings: self._on_recordings,
        }

    @classmethod
    def restore(cls, has_seen_onboarding: bool, user: Any = None) -> "ScreenFlowController":
        """Resume a returning user on the dashboard, everyone else on onboarding."""
        if has_seen_onboarding and user is not None:
            return cls(Dashboard(user))
        return cls(Onboarding())

    @property
    def state(self) -> Screen:
        return self._state

    @property
    def progress(self) -> float:
        """Processing progress shown on screen (0-100)."""
        if isinstance(self._state, Processing):
            return self._state.progress
        if isinstance(self._state, Results | FeedbackScreen):
            return COMPLETE_PROGRESS
        return 0.0

    def dispatch(self, event: str, **payload: Any) -> Screen:
        """Apply ``event`` to the current screen and return the new screen."""
        handler = self._handlers[type(self._state)]
        new_state = handler(self._state, event, **payload)
        if new_state.name != self._state.name:
            logger.debug("Screen %s -> %s (%s)", self._state.name, new_state.name, event)
        self._state = new_state
        return new_state

    # ------------------------------------------------------------------
    # Per-screen handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _reject(state: Screen, event: str) -> Screen:
        raise InvalidTransitionError(state.name, event)

    def _on_onboarding(self, state: Onboarding, event: str, **payload: Any) -> Screen:
        if event == "complete_onboarding":
            return Auth()
        return self._reject(state, event)

    def _on_auth(self, state: Auth, event: str, **payload: Any) -> Screen:
        if event == "authenticate" and payload.get("user") is not None:
            return Dashboard(payload["user"])
        return self._reject(state, event)

    def _on_dashboard(self, state: Dashboard, event: str, **payload: Any) -> Screen:
        if event == "start_recording":
            return Recording(state.user)
        if event == "show_recordings":
            return Recordings(state.user)
        return self._reject(state, event)

    def _on_recording(self, state: Recording, event: str, **payload: Any) -> Screen:
        if event == "recording_complete":
            return Processing(state.user)
        if event == "cancel_recording":
            return Dashboard(state.user)
        return self._reject(state, event)

    def _on_processing(self, state: Processing, event: str, **payload: Any) -> Screen:
        if event == "tick_progress":
            increment = max(float(payload.get("increment", 0.0)), 0.0)
            return replace(state, progress=min(state.progress + increment, MAX_PENDING_PROGRESS))
        if event == "analysis_complete" and payload.get("result") is not None:
            return Results(state.user, payload["result"])
        return self._reject(state, event)

    def _on_results(self, state: Results, event: str, **payload: Any) -> Screen:
        if event == "new_practice":
            return Dashboard(state.user)
        if event == "show_feedback":
            return FeedbackScreen(state.user, state.result)
        return self._reject(state, event)

    def _on_feedback(self, state: FeedbackScreen, event: str, **payload: Any) -> Screen:
        if event in ("feedback_complete", "back"):
            return Dashboard(state.user)
        return self._reject(state, event)

    def _on_recordings(self, state: Recordings, event: str, **payload: Any) -> Screen:
        if event == "back":
            return Dashboard(state.user)
        return self._reject(state, event)

    # ------------------------------------------------------------------
    # Event shortcuts
    # ------------------------------------------------------------------

    def complete_onboarding(self) -> Screen:
        return self.dispatch("complete_onboarding")

    def authenticate(self, user: Any) -> Screen:
        return self.dispatch("authenticate", user=user)

    def start_recording(self) -> Screen:
        return self.dispatch("start_recording")

    def recording_complete(self) -> Screen:
        return self.dispatch("recording_complete")

    def cancel_recording(self) -> Screen:
        return self.dispatch("cancel_recording")

    def tick_progress(self, increment: float) -> Screen:
        return self.dispatch("tick_progress", increment=increment)

    def analysis_complete(self, result: AnalysisResult) -> Screen:
        return self.dispatch("analysis_complete", result=result)

    def show_feedback(self) -> Screen:
        return self.dispatch("show_feedback")

    def feedback_complete(self) -> Screen:
        return self.dispatch("feedback_complete")

    def new_practice(self) -> Screen:
        return self.dispatch("new_practice")

    def show_recordings(self) -> Screen:
        return self.dispatch("show_recordings")

    def back(self) -> Screen:
        return self.dispatch("back")

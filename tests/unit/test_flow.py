"""Tests for the screen flow controller."""

import pytest

from src.core.exceptions import InvalidTransitionError
from src.services.flow import (
    MAX_PENDING_PROGRESS,
    Auth,
    Dashboard,
    FeedbackScreen,
    Onboarding,
    Processing,
    Recording,
    Recordings,
    Results,
    ScreenFlowController,
)

USER = {"id": 1, "name": "Ana"}


@pytest.fixture
def flow():
    return ScreenFlowController()


@pytest.fixture
def processing(flow):
    flow.complete_onboarding()
    flow.authenticate(USER)
    flow.start_recording()
    flow.recording_complete()
    return flow


class TestHappyPath:
    def test_full_practice_loop(self, flow, analysis_result):
        assert isinstance(flow.state, Onboarding)
        assert isinstance(flow.complete_onboarding(), Auth)
        assert flow.authenticate(USER) == Dashboard(USER)
        assert flow.start_recording() == Recording(USER)
        assert flow.recording_complete() == Processing(USER, 0.0)

        results = flow.analysis_complete(analysis_result)
        assert results == Results(USER, analysis_result)
        assert flow.progress == 100.0

        assert flow.show_feedback() == FeedbackScreen(USER, analysis_result)
        assert flow.feedback_complete() == Dashboard(USER)

    def test_new_practice_returns_to_dashboard(self, processing, analysis_result):
        processing.analysis_complete(analysis_result)
        assert processing.new_practice() == Dashboard(USER)

    def test_cancel_recording(self, flow):
        flow.complete_onboarding()
        flow.authenticate(USER)
        flow.start_recording()
        assert flow.cancel_recording() == Dashboard(USER)

    def test_recordings_and_back(self, flow):
        flow.complete_onboarding()
        flow.authenticate(USER)
        assert flow.show_recordings() == Recordings(USER)
        assert flow.back() == Dashboard(USER)

    def test_feedback_back_returns_to_dashboard(self, processing, analysis_result):
        processing.analysis_complete(analysis_result)
        processing.show_feedback()
        assert processing.back() == Dashboard(USER)


class TestProgress:
    def test_ticks_accumulate_and_cap(self, processing):
        processing.tick_progress(40)
        assert processing.progress == 40
        processing.tick_progress(40)
        processing.tick_progress(40)
        assert processing.progress == MAX_PENDING_PROGRESS
        assert isinstance(processing.state, Processing)

    def test_negative_increment_is_ignored(self, processing):
        processing.tick_progress(10)
        processing.tick_progress(-50)
        assert processing.progress == 10

    def test_progress_is_zero_outside_processing(self, flow):
        assert flow.progress == 0.0


class TestInvalidTransitions:
    def test_cannot_record_before_auth(self, flow):
        with pytest.raises(InvalidTransitionError, match="onboarding"):
            flow.start_recording()

    def test_authenticate_requires_user(self, flow):
        flow.complete_onboarding()
        with pytest.raises(InvalidTransitionError):
            flow.authenticate(None)

    def test_analysis_complete_requires_result(self, processing):
        with pytest.raises(InvalidTransitionError):
            processing.dispatch("analysis_complete")

    def test_results_cannot_tick(self, processing, analysis_result):
        processing.analysis_complete(analysis_result)
        with pytest.raises(InvalidTransitionError):
            processing.tick_progress(5)

    def test_unknown_event(self, flow):
        with pytest.raises(InvalidTransitionError):
            flow.dispatch("teleport")

    def test_rejected_event_keeps_state(self, processing):
        with pytest.raises(InvalidTransitionError):
            processing.new_practice()
        assert isinstance(processing.state, Processing)


class TestRestore:
    def test_returning_user_lands_on_dashboard(self):
        flow = ScreenFlowController.restore(has_seen_onboarding=True, user=USER)
        assert flow.state == Dashboard(USER)

    @pytest.mark.parametrize("seen,user", [(False, USER), (True, None), (False, None)])
    def test_everyone_else_sees_onboarding(self, seen, user):
        assert isinstance(ScreenFlowController.restore(seen, user).state, Onboarding)

"""
Recorder component: capture a take with ``st.audio_input`` and analyze it.

Screens: recording -> processing -> results
"""

import logging

import streamlit as st

from src.core.models import AnalysisResult
from src.services import gamification
from src.services.flow import ScreenFlowController
from src.ui.api_client import APIError, get_api_client

logger = logging.getLogger(__name__)

# Cosmetic progress steps shown while the backend works through the providers
_PROGRESS_STEPS = (15.0, 30.0, 30.0)


def render_recording(flow: ScreenFlowController) -> None:
    """Recording screen: daily challenge, microphone capture, cancel."""
    st.header("Gravação")
    st.info(f"Desafio do dia: **{st.session_state.challenge}**")
    st.caption(
        "Fale por pelo menos 30 segundos. Clique no microfone para começar e "
        "novamente para parar."
    )

    audio = st.audio_input("Sua apresentação", key=f"take_{st.session_state.take}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Analisar", type="primary", disabled=audio is None, use_container_width=True):
            st.session_state.pending_audio = (audio.getvalue(), audio.type or "audio/wav")
            st.session_state.pop("upload_error", None)
            flow.recording_complete()
            st.rerun()
    with col2:
        if st.button("Cancelar", use_container_width=True):
            st.session_state.take += 1
            flow.cancel_recording()
            st.rerun()


def submit_pending_take(state, client, user: dict) -> dict:
    """Upload the pending take at most once per attempt.

    A failed upload is kept in ``state["upload_error"]`` and re-raised on
    every later call, so Streamlit reruns (button clicks on the error screen)
    never send the take again. Starting a new take clears it.
    """
    if state.get("upload_error") is not None:
        raise state["upload_error"]

    audio, encoding = state.get("pending_audio", (b"", "audio/wav"))
    try:
        response = client.create_practice_session(
            user_id=user["id"],
            audio=audio,
            encoding=encoding,
            preferred=state.get("preferred_provider", "auto"),
            online=state.get("online", True),
        )
    except APIError as exc:
        logger.warning("Practice upload failed (%s): %s", exc.category, exc.message)
        state["upload_error"] = exc
        raise
    state.pop("pending_audio", None)
    return response


def render_processing(flow: ScreenFlowController) -> None:
    """Processing screen: send the pending take and wait for the analysis."""
    st.header("Analisando sua fala...")
    bar = st.progress(0, text="Enviando gravação")
    for step in _PROGRESS_STEPS:
        flow.tick_progress(step)
        bar.progress(int(flow.progress), text="Analisando")

    user = flow.state.user
    client = get_api_client(st.session_state.api_base_url)

    try:
        response = submit_pending_take(st.session_state, client, user)
    except APIError as exc:
        if exc.status_code == 429:
            st.warning(exc.message)
            st.button("Conhecer o plano Premium", on_click=_upgrade, args=(user["id"],))
        else:
            st.error(f"Não foi possível analisar: {exc.message}")
        if st.button("Voltar ao início"):
            st.session_state.pop("upload_error", None)
            st.session_state.pop("pending_audio", None)
            st.session_state.flow = ScreenFlowController.restore(True, user)
            st.rerun()
        return

    st.session_state.session_id = response["session"]["id"]
    user.update(
        streak_count=response["streak_count"],
        level=response["level"],
        level_progress=gamification.level_progress(response["streak_count"]),
    )
    flow.analysis_complete(AnalysisResult.model_validate(response["analysis"]))
    bar.progress(int(flow.progress), text="Concluído")
    st.session_state.take += 1
    st.rerun()


def _upgrade(user_id: int) -> None:
    try:
        get_api_client(st.session_state.api_base_url).upgrade_user(user_id)
        st.toast("Plano Premium ativado!")
    except APIError as exc:
        st.error(exc.message)

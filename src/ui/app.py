"""
OratoriaFlow Streamlit UI: main entry point.

Run with: ``streamlit run src/ui/app.py``

One render function per screen of the ``ScreenFlowController`` kept in
``st.session_state.flow``.
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from datetime import date  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from src.services import gamification  # noqa: E402
from src.services.flow import (  # noqa: E402
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
from src.ui.api_client import APIError, get_api_client  # noqa: E402
from src.ui.components.analysis_card import render_analysis, render_history_row  # noqa: E402
from src.ui.components.recorder import render_processing, render_recording  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="OratoriaFlow",
    page_icon="\U0001f3a4",
    layout="centered",
)

ONBOARDING_STEPS = [
    (
        "Grave Sua Voz",
        "Fale naturalmente sobre qualquer tema. Nossa IA analisa sua comunicação.",
    ),
    (
        "Análise Inteligente",
        "Receba feedback detalhado sobre ritmo, clareza, palavras de enchimento e muito mais.",
    ),
    (
        "Evolua Diariamente",
        "Acompanhe seu progresso, mantenha sequências e desbloqueie novos níveis de comunicação.",
    ),
]

# ---------------------------------------------------------------------------
# Session state defaults
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_base_url": "http://localhost:8000",
    "has_seen_onboarding": False,
    "user": None,
    "onboarding_step": 0,
    "online": True,
    "preferred_provider": "auto",
    "session_id": None,
    "take": 0,
    "challenge": gamification.daily_challenge(date.today()),
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value

if "flow" not in st.session_state:
    st.session_state.flow = ScreenFlowController.restore(
        st.session_state.has_seen_onboarding, st.session_state.user
    )

flow: ScreenFlowController = st.session_state.flow
client = get_api_client(st.session_state.api_base_url)

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f3a4 OratoriaFlow")
    st.caption("Pratique sua oratória todos os dias")
    st.divider()
    st.session_state.api_base_url = st.text_input(
        "Backend API URL",
        value=st.session_state.api_base_url,
    )
    _conn_ok, _conn_msg = client.check_connection()
    if _conn_ok:
        st.success(f"Backend: {_conn_msg}")
    else:
        st.error(f"Backend: {_conn_msg}")

    st.session_state.online = st.toggle("Usar serviços online", value=st.session_state.online)
    if _conn_ok:
        try:
            _providers = client.list_providers(online=st.session_state.online)
        except APIError:
            _providers = {"providers": [], "preferred": "auto"}
        _options = ["auto"] + [p["name"] for p in _providers["providers"] if p["available"]]
        st.session_state.preferred_provider = st.selectbox(
            "Serviço de análise",
            _options,
            help=f"Sugerido: {_providers['preferred']}",
        )


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------
def render_onboarding() -> None:
    step = st.session_state.onboarding_step
    title, description = ONBOARDING_STEPS[step]
    st.header(title)
    st.write(description)
    st.progress((step + 1) / len(ONBOARDING_STEPS))
    if step + 1 < len(ONBOARDING_STEPS):
        if st.button("Próximo", type="primary"):
            st.session_state.onboarding_step += 1
            st.rerun()
    elif st.button("Começar", type="primary"):
        st.session_state.has_seen_onboarding = True
        flow.complete_onboarding()
        st.rerun()


def render_auth() -> None:
    st.header("Entrar")
    with st.form("auth"):
        name = st.text_input("Nome")
        email = st.text_input("E-mail")
        submitted = st.form_submit_button("Continuar", type="primary")
    if not submitted:
        return
    if not email or not name:
        st.warning("Informe nome e e-mail.")
        return
    try:
        user = client.find_user(email) or client.create_user(email=email, name=name)
    except APIError as exc:
        st.error(exc.message)
        return
    st.session_state.user = user
    flow.authenticate(user)
    st.rerun()


def render_dashboard(user: dict) -> None:
    st.header(f"Olá, {user['name']}!")
    col1, col2, col3 = st.columns(3)
    col1.metric("Sequência", f"{user.get('streak_count', 0)} dias")
    col2.metric("Nível", gamification.level(user.get("streak_count", 0)))
    try:
        stats = client.get_user_stats(user["id"])
        limits = client.get_user_limits(user["id"])
    except APIError as exc:
        st.error(exc.message)
        stats, limits = {}, {"can_analyze": True, "weekly_analyses": 0}
    col3.metric("Média", stats.get("average_score", 0), delta=stats.get("improvement_trend") or None)
    st.progress(
        gamification.level_progress(user.get("streak_count", 0)) / 100,
        text="Progresso para o próximo nível",
    )

    st.info(f"Desafio do dia: **{st.session_state.challenge}**")
    if user.get("subscription_tier") == "free":
        st.caption(f"Análises nesta semana: {limits.get('weekly_analyses', 0)}")

    col_a, col_b = st.columns(2)
    with col_a:
        if st.button(
            "Iniciar prática",
            type="primary",
            use_container_width=True,
            disabled=not limits.get("can_analyze", True),
        ):
            flow.start_recording()
            st.rerun()
    with col_b:
        if st.button("Minhas gravações", use_container_width=True):
            flow.show_recordings()
            st.rerun()


def render_results(state: Results) -> None:
    st.header("Resultado")
    render_analysis(state.result)
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Nova prática", type="primary", use_container_width=True):
            flow.new_practice()
            st.rerun()
    with col2:
        if st.button("Avaliar análise", use_container_width=True):
            flow.show_feedback()
            st.rerun()


def render_feedback() -> None:
    st.header("Como foi sua experiência?")
    with st.form("feedback"):
        rating = st.feedback("stars")
        comments = st.text_area("Comentários (opcional)")
        submitted = st.form_submit_button("Enviar", type="primary")
    if submitted:
        if rating is None:
            st.warning("Escolha uma nota de 1 a 5.")
            return
        try:
            client.submit_feedback(st.session_state.session_id, rating + 1, comments or None)
        except APIError as exc:
            st.error(exc.message)
            return
        st.toast("Obrigado pelo feedback!")
        flow.feedback_complete()
        st.rerun()
    if st.button("Pular"):
        flow.back()
        st.rerun()


def render_recordings(user: dict) -> None:
    st.header("Minhas gravações")
    try:
        history = client.get_analysis_history(user["id"])
    except APIError as exc:
        st.error(exc.message)
        history = []
    if not history:
        st.caption("Nenhuma prática registrada ainda.")
    for record in history:
        render_history_row(record)
    if st.button("Voltar"):
        flow.back()
        st.rerun()


state = flow.state
if isinstance(state, Onboarding):
    render_onboarding()
elif isinstance(state, Auth):
    render_auth()
elif isinstance(state, Dashboard):
    render_dashboard(state.user)
elif isinstance(state, Recording):
    render_recording(flow)
elif isinstance(state, Processing):
    render_processing(flow)
elif isinstance(state, Results):
    render_results(state)
elif isinstance(state, FeedbackScreen):
    render_feedback()
elif isinstance(state, Recordings):
    render_recordings(state.user)

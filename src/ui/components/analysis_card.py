"""
Analysis result display components.
"""

import streamlit as st

from src.core.models import AnalysisResult

PROVIDER_LABELS = {
    "openai": "OpenAI Whisper",
    "azure": "Azure Speech",
    "google": "Google Speech",
    "on_device": "No dispositivo",
    "local": "Análise básica",
}


def _score_label(score: int) -> str:
    if score >= 85:
        return "Excelente!"
    if score >= 70:
        return "Muito bom!"
    if score >= 50:
        return "Bom começo"
    return "Continue praticando"


def render_analysis(result: AnalysisResult) -> None:
    """Render the score, metrics, strengths and improvement areas of one analysis."""
    with st.container(border=True):
        col1, col2 = st.columns([1, 2])
        with col1:
            st.metric("Pontuação geral", f"{result.overall_score}/100")
        with col2:
            st.markdown(f"### {_score_label(result.overall_score)}")
            st.caption(f"Analisado por: {PROVIDER_LABELS.get(result.provider, result.provider)}")

        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Ritmo", f"{result.speaking_rate_wpm} ppm")
        m2.metric("Palavras de enchimento", result.filler_words_count)
        m3.metric("Duração", f"{result.duration_seconds}s")
        m4.metric("Confiança", f"{result.confidence_score:.0%}")

        if result.fluency_score is not None or result.pronunciation_score is not None:
            f1, f2 = st.columns(2)
            if result.fluency_score is not None:
                f1.metric("Fluência", result.fluency_score)
            if result.pronunciation_score is not None:
                f2.metric("Pronúncia", result.pronunciation_score)

        if result.filler_words_list:
            st.markdown(" ".join(f"`{word}`" for word in result.filler_words_list))

    left, right = st.columns(2)
    with left:
        st.subheader("Pontos fortes")
        for item in result.strengths:
            st.success(item)
    with right:
        st.subheader("Para melhorar")
        for item in result.improvement_areas:
            st.info(item)


def render_history_row(record: dict) -> None:
    """Render one stored analysis in the recordings list."""
    with st.container(border=True):
        col1, col2, col3 = st.columns([2, 1, 1])
        with col1:
            st.markdown(f"**Sessão #{record.get('session_id', '?')}**")
            st.caption(str(record.get("created_at", ""))[:16].replace("T", " "))
        with col2:
            st.metric("Pontuação", record.get("overall_score", 0))
        with col3:
            st.metric("Ritmo", f"{record.get('speaking_rate_wpm', 0)} ppm")

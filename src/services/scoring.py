"""Local heuristic speech scorer.

``score()`` is a pure function of (transcript, duration) and is used both as
the last-resort fallback when every provider fails and as the measurement
base that remote providers overlay their own judgements on
(see :func:`merge_remote`).

Scoring, from a base of 100:
    * -15 when the speaking rate falls outside 120-180 wpm
    * -min(30, ratio * 100) when fillers exceed 10% of the words
    * -20 when the speech lasts less than 30 seconds
The result is clamped to [0, 100].
"""

import math

from src.core.models import AnalysisResult, EmotionAnalysis

# Portuguese disfluency tokens (single words; tokens never span whitespace)
FILLER_WORDS = frozenset(
    {
        "ahn",
        "eh",
        "uhm",
        "né",
        "tipo",
        "então",
        "assim",
        "sabe",
        "entende",
        "entendeu",
        "tá",
        "ok",
        "certo",
        "bem",
        "meio",
        "basicamente",
        "literalmente",
    }
)

IDEAL_RATE_MIN = 120
IDEAL_RATE_MAX = 180
FILLER_RATIO_HIGH = 0.10
FILLER_RATIO_LOW = 0.05
SHORT_DURATION = 30
LONG_DURATION = 60
RICH_WORD_COUNT = 50
LOCAL_CONFIDENCE = 0.85

_PUNCTUATION = str.maketrans("", "", ".,!?;:")

STRENGTH_RATE = "Ritmo de fala adequado para apresentações"
STRENGTH_FILLERS = "Excelente controle de palavras de enchimento"
STRENGTH_DURATION = "Boa duração para desenvolvimento das ideias"
STRENGTH_VOCABULARY = "Vocabulário diversificado na apresentação"
STRENGTH_DEFAULT = "Você completou sua apresentação com sucesso!"

IMPROVE_RATE_SLOW = "Tente falar um pouco mais rápido para manter o engajamento"
IMPROVE_RATE_FAST = "Diminua o ritmo para melhor compreensão"
IMPROVE_FILLERS = 'Reduza o uso de palavras de enchimento como "né", "tipo", "então"'
IMPROVE_DURATION = "Tente desenvolver mais suas ideias para apresentações mais completas"
IMPROVE_DEFAULT = "Continue praticando para aperfeiçoar ainda mais sua oratória"


def tokenize(transcript: str) -> list[str]:
    """Lowercase and split on whitespace, dropping empty tokens."""
    return transcript.lower().split()


def speaking_rate(word_count: int, duration_seconds: int) -> int:
    """Words per minute, or 0 when the duration is unknown."""
    if duration_seconds <= 0:
        return 0
    return round_half_up(word_count / duration_seconds * 60)


def detect_fillers(tokens: list[str]) -> tuple[int, list[str]]:
    """Return (occurrence count, unique fillers in first-seen order)."""
    found: list[str] = []
    count = 0
    for token in tokens:
        word = token.translate(_PUNCTUATION)
        if word in FILLER_WORDS:
            count += 1
            if word not in found:
                found.append(word)
    return count, found


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (22.5 -> 23, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    return round_half_up(max(0.0, min(100.0, value)))


def _feedback(
    rate: int, filler_ratio: float, duration: int, word_count: int
) -> tuple[list[str], list[str]]:
    strengths: list[str] = []
    improvements: list[str] = []

    if IDEAL_RATE_MIN <= rate <= IDEAL_RATE_MAX:
        strengths.append(STRENGTH_RATE)
    elif rate < IDEAL_RATE_MIN:
        improvements.append(IMPROVE_RATE_SLOW)
    else:
        improvements.append(IMPROVE_RATE_FAST)

    if filler_ratio < FILLER_RATIO_LOW:
        strengths.append(STRENGTH_FILLERS)
    elif filler_ratio > FILLER_RATIO_HIGH:
        improvements.append(IMPROVE_FILLERS)

    if duration >= LONG_DURATION:
        strengths.append(STRENGTH_DURATION)
    elif duration < SHORT_DURATION:
        improvements.append(IMPROVE_DURATION)

    if word_count > RICH_WORD_COUNT:
        strengths.append(STRENGTH_VOCABULARY)

    if not strengths:
        strengths.append(STRENGTH_DEFAULT)
    if not improvements:
        improvements.append(IMPROVE_DEFAULT)
    return strengths, improvements


def score(transcript: str, duration_seconds: int) -> AnalysisResult:
    """Score a transcript with fixed weights.

    Args:
        transcript: Recognized speech (any case, any punctuation).
        duration_seconds: Elapsed speaking time; 0 disables the rate.

    Returns:
        A deterministic AnalysisResult with ``provider="local"``.
    """
    duration = max(int(duration_seconds), 0)
    tokens = tokenize(transcript)
    word_count = len(tokens)
    rate = speaking_rate(word_count, duration)
    filler_count, filler_list = detect_fillers(tokens)
    filler_ratio = filler_count / word_count if word_count else 0.0

    value = 100.0
    if rate < IDEAL_RATE_MIN or rate > IDEAL_RATE_MAX:
        value -= 15
    if filler_ratio > FILLER_RATIO_HIGH:
        value -= min(30.0, filler_ratio * 100)
    if duration < SHORT_DURATION:
        value -= 20

    strengths, improvements = _feedback(rate, filler_ratio, duration, word_count)

    return AnalysisResult(
        overall_score=clamp_score(value),
        speaking_rate_wpm=rate,
        filler_words_count=filler_count,
        filler_words_list=filler_list,
        strengths=strengths,
        improvement_areas=improvements,
        duration_seconds=duration,
        confidence_score=LOCAL_CONFIDENCE,
    )


def merge_remote(basic: AnalysisResult, remote: dict, provider: str, **extra) -> AnalysisResult:
    """Overlay a remote provider's judgement on the heuristic measurements.

    Rate, filler and duration measurements always come from ``basic``. Any
    falsy remote value keeps the heuristic value (scores default via
    ``extra``). Scores are clamped.

    Args:
        basic: Heuristic result for the provider's transcript.
        remote: Provider fields (``overall_score``, ``strengths``,
            ``improvement_areas``, ``fluency_score``, ``pronunciation_score``,
            ``emotion_analysis``, ``confidence_score``).
        provider: Name recorded on the merged result.
        **extra: Defaults for fields the remote did not provide.
    """
    fields = dict(extra)
    fields.update({k: v for k, v in remote.items() if v})

    overall = fields.get("overall_score") or basic.overall_score
    confidence = fields.get("confidence_score") or basic.confidence_score

    emotion = fields.get("emotion_analysis")
    if isinstance(emotion, dict):
        emotion = EmotionAnalysis(
            dominant_emotion=str(emotion.get("dominant_emotion", "")),
            confidence=max(0.0, min(1.0, float(emotion.get("confidence", 0.0)))),
            emotions={str(k): float(v) for k, v in (emotion.get("emotions") or {}).items()},
        )
    elif not isinstance(emotion, EmotionAnalysis):
        emotion = None

    return basic.model_copy(
        update={
            "overall_score": clamp_score(float(overall)),
            "strengths": list(fields.get("strengths") or basic.strengths),
            "improvement_areas": list(fields.get("improvement_areas") or basic.improvement_areas),
            "fluency_score": _optional_score(fields.get("fluency_score")),
            "pronunciation_score": _optional_score(fields.get("pronunciation_score")),
            "emotion_analysis": emotion,
            "confidence_score": max(0.0, min(1.0, float(confidence))),
            "provider": provider,
        }
    )


def _optional_score(value) -> int | None:
    if value is None:
        return None
    return clamp_score(float(value))

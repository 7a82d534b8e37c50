"""Unit tests for the local heuristic scorer and the remote-result merge."""

import pytest

from src.core.models import EmotionAnalysis
from src.services import scoring

EXAMPLE = "ahn então eu queria falar ahn sobre isso tipo"


# ---------------------------------------------------------------------------
# Tokens, rate, fillers
# ---------------------------------------------------------------------------


def test_tokenize_lowercases_and_drops_empty_tokens():
    assert scoring.tokenize("  Olá   MUNDO \n tipo ") == ["olá", "mundo", "tipo"]


def test_speaking_rate_is_zero_without_duration():
    assert scoring.speaking_rate(50, 0) == 0


def test_speaking_rate_rounds_words_per_minute():
    assert scoring.speaking_rate(9, 30) == 18
    assert scoring.speaking_rate(100, 45) == 133


def test_speaking_rate_rounds_halves_up():
    # 3 words in 8 s is 22.5 wpm
    assert scoring.speaking_rate(3, 8) == 23
    assert scoring.speaking_rate(1, 24) == 3


@pytest.mark.parametrize("value,expected", [(72.5, 73), (22.5, 23), (0.5, 1), (-2.5, -2), (71.4, 71)])
def test_round_half_up(value, expected):
    assert scoring.round_half_up(value) == expected


def test_clamp_score_rounds_halves_up():
    assert scoring.clamp_score(72.5) == 73
    assert scoring.clamp_score(100.5) == 100
    assert scoring.clamp_score(-3) == 0


def test_detect_fillers_strips_punctuation_and_dedupes_in_order():
    tokens = scoring.tokenize("Tipo, eu acho... né? então, tipo: ok!")
    count, found = scoring.detect_fillers(tokens)
    assert count == 5
    assert found == ["tipo", "né", "então", "ok"]


def test_multi_word_fillers_are_not_matched():
    count, found = scoring.detect_fillers(scoring.tokenize("quer dizer que sim"))
    assert count == 0
    assert found == []


# ---------------------------------------------------------------------------
# score()
# ---------------------------------------------------------------------------


def test_example_transcript_scores_rate_and_fillers():
    result = scoring.score(EXAMPLE, 30)

    assert {"ahn", "então", "tipo"} <= set(result.filler_words_list)
    assert result.filler_words_count == 4
    assert result.speaking_rate_wpm == 18
    # -15 slow rate, -30 fillers (ratio 0.44 capped); 30s is not below the 30s threshold
    assert result.overall_score == 55
    assert scoring.IMPROVE_RATE_SLOW in result.improvement_areas
    assert scoring.IMPROVE_FILLERS in result.improvement_areas
    assert result.provider == "local"
    assert result.confidence_score == scoring.LOCAL_CONFIDENCE


def test_short_duration_penalty_applies_below_thirty_seconds():
    at_threshold = scoring.score(EXAMPLE, 30)
    below = scoring.score(EXAMPLE, 29)

    assert below.overall_score == at_threshold.overall_score - 20
    assert scoring.IMPROVE_DURATION in below.improvement_areas
    assert scoring.IMPROVE_DURATION not in at_threshold.improvement_areas


def test_clean_ideal_speech_keeps_full_score():
    transcript = " ".join(["palavra"] * 150)
    result = scoring.score(transcript, 60)

    assert result.speaking_rate_wpm == 150
    assert result.filler_words_count == 0
    assert result.overall_score == 100
    assert result.strengths == [
        scoring.STRENGTH_RATE,
        scoring.STRENGTH_FILLERS,
        scoring.STRENGTH_DURATION,
        scoring.STRENGTH_VOCABULARY,
    ]
    assert result.improvement_areas == [scoring.IMPROVE_DEFAULT]


def test_fast_speech_gets_slow_down_tip():
    result = scoring.score(" ".join(["rápido"] * 100), 30)
    assert result.speaking_rate_wpm == 200
    assert scoring.IMPROVE_RATE_FAST in result.improvement_areas


def test_empty_transcript_still_well_formed():
    result = scoring.score("", 0)

    assert result.speaking_rate_wpm == 0
    assert result.filler_words_count == 0
    assert 0 <= result.overall_score <= 100
    # no words means no fillers
    assert result.strengths == [scoring.STRENGTH_FILLERS]
    assert result.improvement_areas


@pytest.mark.parametrize(
    "transcript,duration",
    [
        ("tipo tipo tipo tipo", 1),
        ("né " * 500, 5),
        ("uma frase normal sem vícios de linguagem", 600),
        ("", 3600),
    ],
)
def test_overall_score_is_always_in_range(transcript, duration):
    result = scoring.score(transcript, duration)
    assert 0 <= result.overall_score <= 100


def test_filler_count_matches_listed_occurrences():
    transcript = "Então, assim, eu acho que tipo, sabe, então é isso né"
    result = scoring.score(transcript, 40)
    occurrences = sum(
        1
        for token in scoring.tokenize(transcript)
        if token.translate(scoring._PUNCTUATION) in result.filler_words_list
    )
    assert result.filler_words_count == occurrences


# ---------------------------------------------------------------------------
# merge_remote()
# ---------------------------------------------------------------------------


def test_merge_remote_keeps_measurements_and_takes_judgement():
    basic = scoring.score(EXAMPLE, 30)
    merged = scoring.merge_remote(
        basic,
        {
            "overall_score": 81,
            "strengths": ["Boa entonação"],
            "improvement_areas": [],
            "fluency_score": 120,
            "emotion_analysis": {"dominant_emotion": "calmo", "confidence": 0.7, "emotions": {"calmo": 0.7}},
            "speaking_rate_wpm": 999,
        },
        provider="openai",
        pronunciation_score=80,
    )

    assert merged.provider == "openai"
    assert merged.overall_score == 81
    assert merged.strengths == ["Boa entonação"]
    assert merged.improvement_areas == basic.improvement_areas
    assert merged.fluency_score == 100
    assert merged.pronunciation_score == 80
    assert merged.emotion_analysis == EmotionAnalysis(
        dominant_emotion="calmo", confidence=0.7, emotions={"calmo": 0.7}
    )
    assert merged.speaking_rate_wpm == basic.speaking_rate_wpm
    assert merged.filler_words_list == basic.filler_words_list


def test_merge_remote_clamps_out_of_range_score():
    merged = scoring.merge_remote(scoring.score("olá", 10), {"overall_score": 250}, provider="x")
    assert merged.overall_score == 100


def test_half_point_score_rounds_up():
    # 8 wpm (-15) and a 12.5% filler ratio (-12.5) leave 72.5
    result = scoring.score("tipo a b c d e f g", 60)
    assert result.overall_score == 73

"""Streaks, levels and the daily challenge shown on the dashboard."""

from datetime import date, timedelta

DAYS_PER_LEVEL = 7

DAILY_CHALLENGES = (
    "Apresente-se em 60 segundos",
    "Explique um conceito complexo de forma simples",
    "Conte uma história pessoal inspiradora",
    "Defenda uma opinião polêmica",
    "Descreva seu projeto dos sonhos",
)


def level(streak: int) -> int:
    """One level per full week of streak, starting at level 1."""
    return max(streak, 0) // DAYS_PER_LEVEL + 1


def level_progress(streak: int) -> float:
    """Percent progress (0-100) toward the next level."""
    return (max(streak, 0) % DAYS_PER_LEVEL) * 100 / DAYS_PER_LEVEL


def daily_challenge(day: date | int) -> str:
    """Challenge for a calendar day, indexed by day of month."""
    day_of_month = day.day if isinstance(day, date) else int(day)
    return DAILY_CHALLENGES[day_of_month % len(DAILY_CHALLENGES)]


def next_streak(current: int, last_practice: date | None, today: date) -> int:
    """Streak after practicing on ``today``.

    Practicing twice on the same day keeps the streak, practicing on the day
    after the last practice extends it, and any gap restarts it at 1.
    """
    if last_practice == today:
        return current
    if last_practice is not None and last_practice == today - timedelta(days=1):
        return current + 1
    return 1

"""Progress dashboard figures."""
from datetime import date, timedelta
from typing import Optional

from vocab_drill.progression import exp_progress, level_title, load_stats
from vocab_drill.question_bank import weak_word_count
from vocab_drill.store import DocumentStore
from vocab_drill.users import load_profile


def get_streak_color(streak: int) -> str:
    if streak >= 7:
        return "green"
    elif streak >= 3:
        return "yellow"
    elif streak >= 1:
        return "dark_orange"
    return "red"


def get_week_calendar(calendar: list[date], today: date) -> list[tuple[date, bool]]:
    """Last seven days, oldest first, flagged when studied."""
    studied = set(calendar)
    days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
    return [(day, day in studied) for day in days]


def get_dashboard(store: DocumentStore, user_id: str, today: Optional[date] = None) -> dict:
    today = today or date.today()
    stats = load_stats(store, user_id)
    profile = load_profile(store, user_id)
    into_level, to_next = exp_progress(stats.exp)
    mission = stats.daily_mission if stats.last_mission_date == today else None
    return {
        "level": stats.level,
        "title": level_title(stats.level),
        "exp": stats.exp,
        "exp_into_level": into_level,
        "exp_to_next": to_next,
        "streak": stats.streak_count,
        "studied_today": stats.last_study_date == today,
        "week": get_week_calendar(stats.study_calendar, today),
        "days_studied": len(stats.study_calendar),
        "mission": mission,
        "weak_words": weak_word_count(store, user_id),
        "total_study_time": profile.total_study_time if profile else 0,
        "total_correct": profile.total_correct if profile else 0,
    }

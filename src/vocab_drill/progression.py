"""Experience, levels, streaks and daily missions."""
import copy
import logging
import random
from dataclasses import dataclass
from datetime import date
from typing import Optional

from vocab_drill.models import DailyMission, UserStats
from vocab_drill.store import USERS, DocumentStore

logger = logging.getLogger(__name__)

EXP_PER_CORRECT = 10
PERFECT_BONUS = 20
EXP_PER_LEVEL = 100

MISSIONS = [
    {"id": "play_10", "description": "Study 10 questions", "target": 10, "reward": 50},
    {"id": "play_20", "description": "Study 20 questions", "target": 20, "reward": 100},
    {"id": "score_5", "description": "Answer 5 questions correctly", "target": 5, "reward": 30},
]

LEVEL_TITLES = [
    (50, "Legend"),
    (40, "Master"),
    (30, "Expert"),
    (20, "Veteran"),
    (10, "Explorer"),
    (5, "Adventurer"),
]


@dataclass
class ProgressResult:
    stats: UserStats
    leveled_up: bool
    mission_completed: bool
    exp_earned: int


def level_title(level: int) -> str:
    for threshold, title in LEVEL_TITLES:
        if level >= threshold:
            return title
    return "Apprentice"


def exp_progress(exp: int) -> tuple[int, int]:
    """Exp earned within the current level and exp still needed for the next one."""
    into_level = exp % EXP_PER_LEVEL
    return into_level, EXP_PER_LEVEL - into_level


def generate_daily_mission(rng: Optional[random.Random] = None) -> DailyMission:
    template = (rng or random.Random()).choice(MISSIONS)
    return DailyMission(progress=0, **template)


def load_stats(store: DocumentStore, user_id: str) -> UserStats:
    data = store.read(USERS, user_id)
    return UserStats.from_dict(data) if data else UserStats()


def save_stats(store: DocumentStore, user_id: str, stats: UserStats) -> None:
    """Write every progression field in one document write."""
    store.upsert_merge(USERS, user_id, stats.to_dict())


def _days_since(last: Optional[date], today: date) -> Optional[int]:
    if last is None:
        return None
    return (today - last).days


def _refresh_mission(stats: UserStats, today: date, rng: Optional[random.Random]) -> bool:
    if stats.last_mission_date == today:
        return False
    stats.daily_mission = generate_daily_mission(rng)
    stats.last_mission_date = today
    logger.debug("Issued daily mission %s", stats.daily_mission.id)
    return True


def check_daily_resets(
    store: DocumentStore,
    user_id: str,
    stats: UserStats,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> UserStats:
    """Regenerate a stale mission and zero a broken streak.

    Call on app start; writes only when something changed, so calling again
    the same day is a no-op.
    """
    today = today or date.today()
    updated = copy.deepcopy(stats)
    changed = _refresh_mission(updated, today, rng)

    gap = _days_since(updated.last_study_date, today)
    if gap is not None and gap > 1 and updated.streak_count > 0:
        logger.info("Streak of %d broken for %s", updated.streak_count, user_id)
        updated.streak_count = 0
        changed = True

    if changed:
        save_stats(store, user_id, updated)
    return updated


def apply_session_result(
    store: DocumentStore,
    user_id: str,
    stats: UserStats,
    score: int,
    total_questions: int,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> ProgressResult:
    """Turn a finished session into exp, level, streak and mission progress."""
    if not 0 <= score <= total_questions:
        raise ValueError(f"Score {score} out of range for {total_questions} questions")
    today = today or date.today()
    updated = copy.deepcopy(stats)
    old_level = updated.level

    # Streak and calendar; a last study date after today (clock skew) counts as today
    gap = _days_since(updated.last_study_date, today)
    if gap is None or gap > 0:
        if gap == 1:
            updated.streak_count += 1
        else:
            updated.streak_count = 1
        updated.last_study_date = today
        if today not in updated.study_calendar:
            updated.study_calendar = sorted(updated.study_calendar + [today])

    _refresh_mission(updated, today, rng)

    earned = score * EXP_PER_CORRECT
    if total_questions > 0 and score == total_questions:
        earned += PERFECT_BONUS

    mission_completed = False
    mission = updated.daily_mission
    if mission is not None and not mission.completed:
        if mission.metric == "questions":
            mission.progress += total_questions
        elif mission.metric == "correct":
            mission.progress += score
        if mission.progress >= mission.target:
            mission.progress = mission.target
            earned += mission.reward
            mission_completed = True

    updated.exp += earned
    leveled_up = updated.level > old_level

    save_stats(store, user_id, updated)
    logger.info(
        "%s earned %d exp (level %d%s)",
        user_id, earned, updated.level, ", level up" if leveled_up else "",
    )
    return ProgressResult(
        stats=updated,
        leveled_up=leveled_up,
        mission_completed=mission_completed,
        exp_earned=earned,
    )

import random
from datetime import date, timedelta

import pytest

from vocab_drill.models import DailyMission, UserStats
from vocab_drill.progression import (
    MISSIONS, apply_session_result, check_daily_resets, exp_progress, generate_daily_mission,
    level_title, load_stats,
)

TODAY = date(2026, 5, 10)


def _mission(mission_id, progress=0):
    template = next(m for m in MISSIONS if m["id"] == mission_id)
    return DailyMission(progress=progress, **template)


def _stats(**kwargs):
    kwargs.setdefault("daily_mission", _mission("play_20"))
    kwargs.setdefault("last_mission_date", TODAY)
    return UserStats(**kwargs)


def test_level_from_exp():
    assert UserStats(exp=0).level == 1
    assert UserStats(exp=99).level == 1
    assert UserStats(exp=100).level == 2
    assert UserStats(exp=1250).level == 13


def test_exp_progress():
    assert exp_progress(0) == (0, 100)
    assert exp_progress(250) == (50, 50)


def test_titles():
    assert level_title(1) == "Apprentice"
    assert level_title(5) == "Adventurer"
    assert level_title(19) == "Explorer"
    assert level_title(50) == "Legend"


def test_first_session_starts_streak(store):
    result = apply_session_result(store, "u1", _stats(), 5, 10, today=TODAY)
    assert result.stats.streak_count == 1
    assert result.stats.last_study_date == TODAY
    assert result.stats.study_calendar == [TODAY]


def test_consecutive_day_extends_streak(store):
    stats = _stats(streak_count=3, last_study_date=TODAY - timedelta(days=1))
    result = apply_session_result(store, "u1", stats, 5, 10, today=TODAY)
    assert result.stats.streak_count == 4


def test_gap_resets_streak(store):
    stats = _stats(streak_count=7, last_study_date=TODAY - timedelta(days=5))
    result = apply_session_result(store, "u1", stats, 5, 10, today=TODAY)
    assert result.stats.streak_count == 1


def test_same_day_keeps_streak_and_calendar(store):
    stats = _stats(streak_count=2, last_study_date=TODAY, study_calendar=[TODAY])
    result = apply_session_result(store, "u1", stats, 5, 10, today=TODAY)
    assert result.stats.streak_count == 2
    assert result.stats.study_calendar == [TODAY]


def test_last_study_date_in_the_future_counts_as_today(store):
    tomorrow = TODAY + timedelta(days=1)
    stats = _stats(streak_count=5, last_study_date=tomorrow, study_calendar=[tomorrow])
    result = apply_session_result(store, "u1", stats, 5, 10, today=TODAY)
    assert result.stats.streak_count == 5
    assert result.stats.last_study_date == tomorrow
    assert result.stats.study_calendar == [tomorrow]
    assert result.exp_earned >= 50


def test_calendar_has_no_duplicates(store):
    stats = _stats()
    for offset in (2, 1, 0, 0):
        stats = apply_session_result(
            store, "u1", stats, 1, 10, today=TODAY - timedelta(days=offset)
        ).stats
    assert stats.study_calendar == [TODAY - timedelta(days=2), TODAY - timedelta(days=1), TODAY]
    assert stats.streak_count == 3


def test_exp_per_correct_answer(store):
    result = apply_session_result(store, "u1", _stats(), 7, 10, today=TODAY)
    assert result.exp_earned == 70
    assert result.stats.exp == 70


def test_perfect_bonus(store):
    result = apply_session_result(store, "u1", _stats(), 10, 10, today=TODAY)
    assert result.exp_earned == 120


def test_zero_score_earns_nothing(store):
    result = apply_session_result(store, "u1", _stats(), 0, 10, today=TODAY)
    assert result.exp_earned == 0
    assert result.stats.streak_count == 1


def test_score_out_of_range(store):
    with pytest.raises(ValueError):
        apply_session_result(store, "u1", _stats(), 11, 10, today=TODAY)
    with pytest.raises(ValueError):
        apply_session_result(store, "u1", _stats(), -1, 10, today=TODAY)


def test_level_up_with_mission_reward(store):
    stats = _stats(exp=90, daily_mission=_mission("score_5", progress=3))
    result = apply_session_result(store, "u1", stats, 3, 10, today=TODAY)
    assert result.mission_completed
    assert result.exp_earned == 30 + 30
    assert result.stats.exp == 150
    assert result.stats.level == 2
    assert result.leveled_up


def test_input_stats_are_not_mutated(store):
    stats = _stats(exp=10, daily_mission=_mission("play_10", progress=2))
    apply_session_result(store, "u1", stats, 5, 10, today=TODAY)
    assert stats.exp == 10
    assert stats.daily_mission.progress == 2
    assert stats.study_calendar == []


def test_play_mission_completes_and_pays_once(store):
    stats = _stats(daily_mission=_mission("play_10", progress=4))
    first = apply_session_result(store, "u1", stats, 3, 6, today=TODAY)
    assert first.mission_completed
    assert first.stats.daily_mission.progress == 10
    assert first.stats.daily_mission.completed
    assert first.exp_earned == 30 + 50

    second = apply_session_result(store, "u1", first.stats, 3, 6, today=TODAY)
    assert not second.mission_completed
    assert second.exp_earned == 30
    assert second.stats.daily_mission.progress == 10


def test_score_mission_counts_correct_answers(store):
    stats = _stats(daily_mission=_mission("score_5"))
    result = apply_session_result(store, "u1", stats, 2, 10, today=TODAY)
    assert result.stats.daily_mission.progress == 2
    assert not result.mission_completed


def test_progress_is_clamped_to_target(store):
    stats = _stats(daily_mission=_mission("play_10", progress=8))
    result = apply_session_result(store, "u1", stats, 10, 10, today=TODAY)
    assert result.stats.daily_mission.progress == 10


def test_stale_mission_replaced_before_progress(store):
    stats = _stats(
        daily_mission=_mission("play_10", progress=10),
        last_mission_date=TODAY - timedelta(days=1),
    )
    result = apply_session_result(store, "u1", stats, 2, 4, today=TODAY, rng=random.Random(0))
    assert result.stats.last_mission_date == TODAY
    mission = result.stats.daily_mission
    expected = 4 if mission.metric == "questions" else 2
    assert mission.progress == expected


def test_generate_daily_mission():
    mission = generate_daily_mission(random.Random(3))
    assert mission.id in {m["id"] for m in MISSIONS}
    assert mission.progress == 0
    assert not mission.completed


def test_result_is_saved(store):
    result = apply_session_result(store, "u1", _stats(), 4, 10, today=TODAY)
    assert load_stats(store, "u1") == result.stats
    assert store.read("users", "u1")["level"] == 1


def test_missing_user_loads_defaults(store):
    assert load_stats(store, "nobody") == UserStats()


def test_stale_mission_is_regenerated(store):
    stats = UserStats(
        daily_mission=_mission("play_10", progress=10),
        last_mission_date=TODAY - timedelta(days=1),
    )
    updated = check_daily_resets(store, "u1", stats, today=TODAY, rng=random.Random(1))
    assert updated.last_mission_date == TODAY
    assert updated.daily_mission.progress == 0
    assert load_stats(store, "u1") == updated


def test_broken_streak_is_zeroed(store):
    stats = _stats(streak_count=4, last_study_date=TODAY - timedelta(days=2))
    updated = check_daily_resets(store, "u1", stats, today=TODAY)
    assert updated.streak_count == 0


def test_streak_kept_when_studied_yesterday(store):
    stats = _stats(streak_count=4, last_study_date=TODAY - timedelta(days=1))
    updated = check_daily_resets(store, "u1", stats, today=TODAY)
    assert updated.streak_count == 4


def test_same_day_is_noop(store, monkeypatch):
    stats = check_daily_resets(store, "u1", UserStats(), today=TODAY, rng=random.Random(2))
    writes = []
    monkeypatch.setattr(store, "upsert_merge", lambda *args: writes.append(args))
    again = check_daily_resets(store, "u1", stats, today=TODAY)
    assert again == stats
    assert writes == []

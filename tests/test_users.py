from datetime import datetime

from vocab_drill.progression import load_stats
from vocab_drill.store import USERS
from vocab_drill.users import add_session_totals, ensure_user, load_profile

FIRST = datetime(2026, 3, 1, 8, 0)
SECOND = datetime(2026, 3, 2, 19, 30)


def test_ensure_user_creates_profile(store):
    profile = ensure_user(store, "u1", "Ann", now=FIRST)
    assert profile.uid == "u1"
    assert profile.display_name == "Ann"
    assert profile.created_at == FIRST.isoformat()
    assert profile.last_login_at == FIRST.isoformat()
    assert profile.total_study_time == 0


def test_ensure_user_refreshes_login_only(store):
    ensure_user(store, "u1", "Ann", now=FIRST)
    add_session_totals(store, "u1", duration=60, correct=5)
    profile = ensure_user(store, "u1", "Someone else", now=SECOND)
    assert profile.display_name == "Ann"
    assert profile.created_at == FIRST.isoformat()
    assert profile.last_login_at == SECOND.isoformat()
    assert profile.total_correct == 5


def test_ensure_user_keeps_existing_progress(store):
    store.upsert_merge(USERS, "u1", {"exp": 240, "streak_count": 2})
    ensure_user(store, "u1", now=FIRST)
    assert load_stats(store, "u1").exp == 240
    assert load_profile(store, "u1").created_at == FIRST.isoformat()


def test_add_session_totals_accumulates(store):
    ensure_user(store, "u1", now=FIRST)
    add_session_totals(store, "u1", duration=30, correct=3)
    profile = add_session_totals(store, "u1", duration=45, correct=7)
    assert profile.total_study_time == 75
    assert profile.total_correct == 10


def test_load_profile_missing(store):
    assert load_profile(store, "nobody") is None

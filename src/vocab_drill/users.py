"""User profile document: creation, login refresh and lifetime totals."""
from datetime import datetime
from typing import Optional

from vocab_drill.models import UserProfile
from vocab_drill.store import USERS, DocumentStore


def ensure_user(
    store: DocumentStore, user_id: str, display_name: str = "User", now: Optional[datetime] = None
) -> UserProfile:
    """Create the profile on first use, otherwise refresh the login timestamp."""
    timestamp = (now or datetime.now()).isoformat()

    def apply(current: Optional[dict]) -> dict:
        if current is None or "created_at" not in current:
            return {
                **(current or {}),
                "uid": user_id,
                "display_name": display_name,
                "created_at": timestamp,
                "last_login_at": timestamp,
                "total_study_time": 0,
                "total_correct": 0,
            }
        return {**current, "last_login_at": timestamp}

    return UserProfile.from_dict(store.modify(USERS, user_id, apply))


def load_profile(store: DocumentStore, user_id: str) -> Optional[UserProfile]:
    data = store.read(USERS, user_id)
    return UserProfile.from_dict(data) if data else None


def add_session_totals(store: DocumentStore, user_id: str, duration: int, correct: int) -> UserProfile:
    def apply(current: Optional[dict]) -> dict:
        current = current or {"uid": user_id}
        return {
            **current,
            "total_study_time": int(current.get("total_study_time", 0)) + duration,
            "total_correct": int(current.get("total_correct", 0)) + correct,
        }

    return UserProfile.from_dict(store.modify(USERS, user_id, apply))

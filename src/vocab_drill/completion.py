"""Side effects of a finished session.

The session log, profile totals, weak word ledger and progression are written
independently. A store failure in one is logged and reported, and the others
still run; nothing is retried or rolled back.
"""
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from vocab_drill.errors import StoreUnavailable, VocabDrillError
from vocab_drill.models import QuizMode, SessionRecord
from vocab_drill.progression import ProgressResult, apply_session_result, load_stats
from vocab_drill.session import SessionFinished
from vocab_drill.store import DocumentStore, learning_logs_collection
from vocab_drill.users import add_session_totals
from vocab_drill.weak_words import record_outcome

logger = logging.getLogger(__name__)


@dataclass
class CompletionReport:
    progress: Optional[ProgressResult] = None
    weak_summary: Optional[dict] = None
    failures: list[str] = field(default_factory=list)


def append_session_record(store: DocumentStore, user_id: str, record: SessionRecord) -> None:
    store.append(learning_logs_collection(user_id), record.id, record.to_dict())


def complete_session(
    store: DocumentStore,
    user_id: str,
    finished: SessionFinished,
    *,
    criterion: int,
    mode: QuizMode,
    duration: int,
    started_on: Optional[date] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> CompletionReport:
    """Persist a finished session; ``started_on`` fixes the day used for streak and mission."""
    now = now or datetime.now()
    started_on = started_on or now.date()
    report = CompletionReport()

    record = SessionRecord(
        id=str(uuid.uuid4()),
        timestamp=now,
        criterion=str(criterion),
        mode=mode.value,
        score=finished.score,
        total_words=finished.total,
        duration=duration,
    )
    try:
        append_session_record(store, user_id, record)
    except StoreUnavailable:
        logger.exception("Failed to save session record for %s", user_id)
        report.failures.append("session_record")

    try:
        add_session_totals(store, user_id, duration, finished.score)
    except StoreUnavailable:
        logger.exception("Failed to update totals for %s", user_id)
        report.failures.append("totals")

    try:
        report.weak_summary = record_outcome(
            store,
            user_id,
            mode.modality,
            [q.item for q in finished.missed],
            [q.item for q in finished.attempted],
            now=now,
        )
    except (VocabDrillError, ValueError, KeyError):
        logger.exception("Failed to update weak words for %s", user_id)
        report.failures.append("weak_words")
    else:
        if report.weak_summary["failed"]:
            report.failures.append("weak_words")

    try:
        stats = load_stats(store, user_id)
        report.progress = apply_session_result(
            store, user_id, stats, finished.score, finished.total, today=started_on, rng=rng
        )
    except StoreUnavailable:
        logger.exception("Failed to update progression for %s", user_id)
        report.failures.append("progression")

    return report

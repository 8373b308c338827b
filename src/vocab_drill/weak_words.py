"""Weak word ledger: per-user record of missed words and how they were missed."""
import logging
from datetime import datetime
from typing import Iterable, Optional

from vocab_drill.errors import InvariantViolation, StoreUnavailable
from vocab_drill.models import Modality, VocabularyItem, WeakWordEntry, parse_weak_types
from vocab_drill.store import DocumentStore, weak_words_collection

logger = logging.getLogger(__name__)


def get_weak_entries(
    store: DocumentStore, user_id: str, modality: Optional[Modality] = None
) -> list[WeakWordEntry]:
    """Ledger entries, optionally only those missed under ``modality``.

    Entries stored with an empty tag set should not exist; they are deleted here.
    """
    collection = weak_words_collection(user_id)
    entries = []
    for data in store.read_all(collection):
        try:
            entry = WeakWordEntry.from_dict(data)
        except InvariantViolation:
            logger.warning("Removing weak word %s with no weak types", data["id"])
            store.delete(collection, data["id"])
            continue
        if modality is None or modality in entry.weak_types:
            entries.append(entry)
    return entries


def _mark_missed(item: VocabularyItem, modality: Modality, now: datetime):
    def apply(current: Optional[dict]) -> dict:
        weak_types = {modality}
        if current is not None:
            weak_types |= parse_weak_types(current.get("weak_types"))
        return WeakWordEntry(item=item, last_missed=now, weak_types=weak_types).to_dict()
    return apply


def _clear_modality(modality: Modality, cleared: list):
    def apply(current: Optional[dict]) -> Optional[dict]:
        if current is None:
            return None
        cleared.append(current["id"])
        remaining = parse_weak_types(current.get("weak_types")) - {modality}
        if not remaining:
            return None
        current["weak_types"] = sorted(m.value for m in remaining)
        return current
    return apply


def record_outcome(
    store: DocumentStore,
    user_id: str,
    modality: Modality,
    missed_items: Iterable[VocabularyItem],
    attempted_items: Iterable[VocabularyItem],
    now: Optional[datetime] = None,
) -> dict:
    """Fold one session's results into the ledger.

    Missed items gain ``modality``; attempted items answered correctly lose it,
    and an entry left with no modality is deleted. Every item is updated in its
    own transaction, and a failed item is logged and skipped.
    """
    now = now or datetime.now()
    collection = weak_words_collection(user_id)
    missed = {item.id: item for item in missed_items}
    summary = {"added": 0, "cleared": 0, "failed": 0}
    cleared = []

    for item in missed.values():
        try:
            store.modify(collection, item.id, _mark_missed(item, modality, now))
            summary["added"] += 1
        except StoreUnavailable:
            logger.exception("Failed to record weak word %s for %s", item.id, user_id)
            summary["failed"] += 1

    for item in {item.id: item for item in attempted_items}.values():
        if item.id in missed:
            continue
        try:
            store.modify(collection, item.id, _clear_modality(modality, cleared))
        except StoreUnavailable:
            logger.exception("Failed to clear weak word %s for %s", item.id, user_id)
            summary["failed"] += 1
    summary["cleared"] = len(cleared)

    logger.info(
        "Weak words for %s (%s): %d added, %d cleared, %d failed",
        user_id, modality.value, summary["added"], summary["cleared"], summary["failed"],
    )
    return summary

"""Seed the store with the bundled vocabulary corpus."""
import json
import logging
from pathlib import Path
from typing import Optional

from vocab_drill.models import VocabularyItem
from vocab_drill.store import VOCABULARY, DocumentStore

logger = logging.getLogger(__name__)

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(store: DocumentStore) -> bool:
    """Check whether the store already holds vocabulary."""
    return store.count(VOCABULARY) > 0


def load_corpus(path: Optional[Path] = None) -> list[VocabularyItem]:
    data = json.loads((path or CONTENT_DIR / "vocabulary.json").read_text(encoding="utf-8"))
    return [VocabularyItem.from_dict(word) for word in data["words"]]


def seed_vocabulary(store: DocumentStore, path: Optional[Path] = None) -> int:
    """Insert every corpus word, keyed by its id; returns the number written."""
    items = load_corpus(path)
    for item in items:
        store.upsert_merge(VOCABULARY, item.id, item.to_dict())
    logger.info("Seeded %d vocabulary items", len(items))
    return len(items)


def seed_all(store: DocumentStore) -> None:
    """Seed once; later calls leave the store untouched."""
    if is_seeded(store):
        return
    seed_vocabulary(store)

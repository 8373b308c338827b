import random

import pytest

from vocab_drill.models import VocabularyItem
from vocab_drill.store import VOCABULARY, DocumentStore


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_vocab.db")
    return db_path


@pytest.fixture
def store(tmp_db):
    return DocumentStore(tmp_db).init()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def add_words(store):
    """Insert generated vocabulary: add_words(count, tier=1, start=0)."""
    def _add(count, tier=1, start=0):
        items = [
            VocabularyItem(
                id=f"w{n:03d}", word=f"Word{n}", meaning=f"meaning {n}", category="noun", tier=tier,
            )
            for n in range(start, start + count)
        ]
        for item in items:
            store.upsert_merge(VOCABULARY, item.id, item.to_dict())
        return items
    return _add

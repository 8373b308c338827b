"""Exception types shared across the drill engine."""


class VocabDrillError(Exception):
    """Base class for all vocab_drill errors."""


class EmptyCorpus(VocabDrillError):
    """No vocabulary items satisfy the requested tier filter."""

    def __init__(self, max_tier: int):
        super().__init__(f"No vocabulary found up to tier {max_tier}")
        self.max_tier = max_tier


class StoreUnavailable(VocabDrillError):
    """A read or write against the document store failed."""


class RecordNotFound(VocabDrillError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


class InvariantViolation(VocabDrillError):
    """A stored record is in a state that should never be persisted."""

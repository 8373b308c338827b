"""Question selection and multiple-choice generation."""
import logging
import random
from typing import Iterable, Optional

from vocab_drill.errors import EmptyCorpus
from vocab_drill.models import Modality, Question, VocabularyItem
from vocab_drill.store import VOCABULARY, DocumentStore, weak_words_collection
from vocab_drill.weak_words import get_weak_entries

logger = logging.getLogger(__name__)

WEAK_WORDS = -1
CHOICE_COUNT = 4
DISTRACTOR_POOL_LIMIT = 200
PLACEHOLDER_MEANING = "Wrong answer"


def _placeholder(pool_meanings: set[str]) -> str:
    placeholder = PLACEHOLDER_MEANING
    while placeholder in pool_meanings:
        placeholder += "*"
    return placeholder


def build_question(
    item: VocabularyItem,
    pool: Iterable[VocabularyItem],
    rng: Optional[random.Random] = None,
    known_meanings: Iterable[str] = (),
) -> Question:
    """Attach one correct and three distractor meanings, shuffled.

    When the pool is too small the placeholder used for padding also avoids
    ``known_meanings``.
    """
    rng = rng or random.Random()
    pool = list(pool)
    candidates = list(dict.fromkeys(
        other.meaning for other in pool
        if other.id != item.id and other.meaning != item.meaning
    ))
    distractors = rng.sample(candidates, min(CHOICE_COUNT - 1, len(candidates)))
    if len(distractors) < CHOICE_COUNT - 1:
        filler = _placeholder({other.meaning for other in pool} | {item.meaning} | set(known_meanings))
        distractors += [filler] * (CHOICE_COUNT - 1 - len(distractors))
    choices = [item.meaning] + distractors
    rng.shuffle(choices)
    return Question(item=item, choices=choices)


def reshuffle(questions: list[Question], rng: Optional[random.Random] = None) -> list[Question]:
    """New question order with each question's choices shuffled again."""
    rng = rng or random.Random()
    shuffled = [Question(item=q.item, choices=list(q.choices)) for q in questions]
    rng.shuffle(shuffled)
    for q in shuffled:
        rng.shuffle(q.choices)
    return shuffled


def _unique(items: Iterable[VocabularyItem]) -> list[VocabularyItem]:
    return list({item.id: item for item in items}.values())


def _check_count(count: int) -> None:
    if count < 1:
        raise ValueError(f"Question count must be at least 1, got {count}")


def _known_meanings(store: DocumentStore, pool: list[VocabularyItem]) -> set[str]:
    """Every meaning in the corpus, read only when the pool is too small to fill the choices."""
    if len({item.meaning for item in pool}) >= CHOICE_COUNT:
        return set()
    return {d["meaning"] for d in store.read_all(VOCABULARY) if "meaning" in d}


def get_questions_for_tier(
    store: DocumentStore, max_tier: int, count: int = 10, rng: Optional[random.Random] = None
) -> list[Question]:
    _check_count(count)
    rng = rng or random.Random()
    pool = _unique(VocabularyItem.from_dict(d) for d in store.query_by_tier(max_tier))
    if not pool:
        raise EmptyCorpus(max_tier)
    selected = list(pool)
    rng.shuffle(selected)
    known = _known_meanings(store, pool)
    return [build_question(item, pool, rng, known) for item in selected[:count]]


def get_weak_questions(
    store: DocumentStore,
    user_id: str,
    modality: Modality,
    count: int = 10,
    rng: Optional[random.Random] = None,
) -> list[Question]:
    """Questions drawn from the user's weak words for one modality.

    An empty ledger gives an empty list; callers show "nothing to review".
    """
    _check_count(count)
    rng = rng or random.Random()
    weak_items = [entry.item for entry in get_weak_entries(store, user_id, modality)]
    if not weak_items:
        logger.info("No %s weak words for %s", modality.value, user_id)
        return []
    rng.shuffle(weak_items)
    selected = weak_items[:count]
    pool = [VocabularyItem.from_dict(d) for d in store.read_all(VOCABULARY, limit=DISTRACTOR_POOL_LIMIT)]
    known = _known_meanings(store, pool)
    return [build_question(item, pool, rng, known) for item in selected]


def select_questions(
    store: DocumentStore,
    criterion: int,
    count: int = 10,
    user_id: Optional[str] = None,
    modality: Modality = Modality.MEANING,
    rng: Optional[random.Random] = None,
) -> list[Question]:
    """Pick a session's questions by maximum tier, or WEAK_WORDS for review."""
    if criterion == WEAK_WORDS:
        if user_id is None:
            raise ValueError("Weak word review needs a user")
        return get_weak_questions(store, user_id, modality, count, rng)
    return get_questions_for_tier(store, criterion, count, rng)


def weak_word_count(store: DocumentStore, user_id: str) -> int:
    """Badge count of the user's weak words, any modality."""
    return store.count(weak_words_collection(user_id))

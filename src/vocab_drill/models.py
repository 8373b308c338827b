"""Data classes for the vocabulary drill domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from vocab_drill.errors import InvariantViolation

UNCLASSIFIED_TIER = 99


class Modality(str, Enum):
    MEANING = "meaning"
    SPELLING = "spelling"


class QuizMode(str, Enum):
    CHOICE = "choice"
    SPELLING_EASY = "spelling_easy"
    SPELLING_HARD = "spelling_hard"

    @property
    def modality(self) -> Modality:
        """Choice quizzes test meaning recall, both spelling modes test spelling."""
        if self is QuizMode.CHOICE:
            return Modality.MEANING
        return Modality.SPELLING


def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_weak_types(values) -> set[Modality]:
    """Stored weak type tags as modalities; unknown tags are dropped."""
    known = {m.value for m in Modality}
    return {Modality(v) for v in values or [] if v in known}


@dataclass(frozen=True)
class VocabularyItem:
    id: str
    word: str
    meaning: str
    category: str = ""
    tier: int = UNCLASSIFIED_TIER

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "word": self.word,
            "meaning": self.meaning,
            "category": self.category,
            "tier": self.tier,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VocabularyItem":
        tier = data.get("tier")
        return cls(
            id=str(data["id"]),
            word=data["word"],
            meaning=data["meaning"],
            category=data.get("category") or "",
            tier=int(tier) if tier is not None else UNCLASSIFIED_TIER,
        )


@dataclass
class Question:
    item: VocabularyItem
    choices: list[str]

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def word(self) -> str:
        return self.item.word

    @property
    def meaning(self) -> str:
        return self.item.meaning


@dataclass
class WeakWordEntry:
    item: VocabularyItem
    last_missed: datetime
    weak_types: set[Modality] = field(default_factory=set)

    def to_dict(self) -> dict:
        if not self.weak_types:
            raise InvariantViolation(f"Weak word {self.item.id} has no weak types")
        data = self.item.to_dict()
        data["last_missed"] = self.last_missed.isoformat()
        data["weak_types"] = sorted(m.value for m in self.weak_types)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WeakWordEntry":
        weak_types = parse_weak_types(data.get("weak_types"))
        if not weak_types:
            raise InvariantViolation(f"Weak word {data.get('id')} has no weak types")
        last_missed = data.get("last_missed")
        return cls(
            item=VocabularyItem.from_dict(data),
            last_missed=datetime.fromisoformat(last_missed) if last_missed else datetime.min,
            weak_types=weak_types,
        )


@dataclass
class DailyMission:
    id: str
    description: str
    target: int
    reward: int
    progress: int = 0

    @property
    def completed(self) -> bool:
        return self.progress >= self.target

    @property
    def metric(self) -> str:
        """'questions' for play missions, 'correct' for score missions."""
        if self.id.startswith("play"):
            return "questions"
        if self.id.startswith("score"):
            return "correct"
        return ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "target": self.target,
            "progress": self.progress,
            "completed": self.completed,
            "reward": self.reward,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DailyMission":
        return cls(
            id=data["id"],
            description=data.get("description", ""),
            target=int(data["target"]),
            reward=int(data.get("reward", 0)),
            progress=int(data.get("progress", 0)),
        )


@dataclass
class UserStats:
    exp: int = 0
    streak_count: int = 0
    last_study_date: Optional[date] = None
    study_calendar: list[date] = field(default_factory=list)
    daily_mission: Optional[DailyMission] = None
    last_mission_date: Optional[date] = None

    @property
    def level(self) -> int:
        return self.exp // 100 + 1

    def to_dict(self) -> dict:
        return {
            "exp": self.exp,
            "level": self.level,
            "streak_count": self.streak_count,
            "last_study_date": _format_date(self.last_study_date),
            "study_calendar": [d.isoformat() for d in self.study_calendar],
            "daily_mission": self.daily_mission.to_dict() if self.daily_mission else None,
            "last_mission_date": _format_date(self.last_mission_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserStats":
        mission = data.get("daily_mission")
        return cls(
            exp=int(data.get("exp", 0)),
            streak_count=int(data.get("streak_count", 0)),
            last_study_date=_parse_date(data.get("last_study_date")),
            study_calendar=sorted(_parse_date(d) for d in data.get("study_calendar") or []),
            daily_mission=DailyMission.from_dict(mission) if mission else None,
            last_mission_date=_parse_date(data.get("last_mission_date")),
        )


@dataclass
class UserProfile:
    uid: str
    display_name: str = "User"
    created_at: Optional[str] = None
    last_login_at: Optional[str] = None
    total_study_time: int = 0
    total_correct: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        return cls(
            uid=data.get("uid") or data["id"],
            display_name=data.get("display_name", "User"),
            created_at=data.get("created_at"),
            last_login_at=data.get("last_login_at"),
            total_study_time=int(data.get("total_study_time", 0)),
            total_correct=int(data.get("total_correct", 0)),
        )


@dataclass
class SessionRecord:
    id: str
    timestamp: datetime
    criterion: str
    mode: str
    score: int
    total_words: int
    duration: int

    def to_dict(self) -> dict:
        return {
            "session_id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "range": self.criterion,
            "mode": self.mode,
            "score": self.score,
            "total_words": self.total_words,
            "duration": self.duration,
        }

"""Domain types for head-to-head records and power rankings.

Raw start.gg GraphQL nodes are converted here once, so the services below
never touch nested dicts directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

LOADING = "loading"
READY = "ready"
ERROR = "error"


def normalize_id(value: Any) -> Optional[str]:
    """start.gg IDs arrive as ints or strings depending on the query; compare as strings."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Player:
    id: str
    gamer_tag: str
    prefix: Optional[str] = None
    user_slug: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "id", normalize_id(self.id) or "")

    @property
    def display_name(self) -> str:
        if self.prefix:
            return f"{self.prefix} | {self.gamer_tag}"
        return self.gamer_tag

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "gamerTag": self.gamer_tag,
            "prefix": self.prefix,
            "userSlug": self.user_slug,
        }

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Player":
        return cls(
            id=row["id"],
            gamer_tag=row.get("gamerTag") or "Unknown",
            prefix=row.get("prefix") or None,
            user_slug=row.get("userSlug") or None,
        )


@dataclass(frozen=True)
class Participant:
    id: Optional[str]
    gamer_tag: Optional[str]
    user_slug: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "Participant":
        user = node.get("user") or {}
        return cls(
            id=normalize_id(node.get("id")),
            gamer_tag=node.get("gamerTag"),
            user_slug=user.get("slug"),
        )


@dataclass(frozen=True)
class Entrant:
    id: Optional[str]
    name: Optional[str] = None
    participants: Tuple[Participant, ...] = ()

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "Entrant":
        return cls(
            id=normalize_id(node.get("id")),
            name=node.get("name"),
            participants=tuple(Participant.from_node(p) for p in (node.get("participants") or []) if p),
        )


@dataclass(frozen=True)
class Slot:
    entrant: Optional[Entrant] = None

    @property
    def participants(self) -> Tuple[Participant, ...]:
        return self.entrant.participants if self.entrant else ()


@dataclass(frozen=True)
class Match:
    """One completed set between two slots."""
    id: str
    completed_at: Optional[int] = None
    winner_id: Optional[str] = None
    slots: Tuple[Slot, ...] = ()
    tournament_id: Optional[str] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> "Match":
        slots = []
        for slot in node.get("slots") or []:
            entrant = (slot or {}).get("entrant")
            slots.append(Slot(entrant=Entrant.from_node(entrant) if entrant else None))
        completed_at = node.get("completedAt")
        tournament = ((node.get("event") or {}).get("tournament")) or {}
        return cls(
            id=normalize_id(node.get("id")) or "",
            completed_at=int(completed_at) if completed_at is not None else None,
            winner_id=normalize_id(node.get("winnerId")),
            slots=tuple(slots),
            tournament_id=normalize_id(tournament.get("id")),
        )

    @property
    def completed_datetime(self) -> Optional[datetime]:
        if self.completed_at is None:
            return None
        return datetime.fromtimestamp(self.completed_at, tz=timezone.utc)


@dataclass(frozen=True)
class PairRecord:
    """Win/loss tally of `subject_id` against `opponent_id`."""
    subject_id: str
    opponent_id: str
    wins: int = 0
    losses: int = 0
    status: str = LOADING
    error: Optional[str] = None

    @classmethod
    def loading(cls, subject_id: str, opponent_id: str) -> "PairRecord":
        return cls(subject_id, opponent_id, status=LOADING)

    @classmethod
    def ready(cls, subject_id: str, opponent_id: str, wins: int, losses: int) -> "PairRecord":
        return cls(subject_id, opponent_id, wins=wins, losses=losses, status=READY)

    @classmethod
    def failed(cls, subject_id: str, opponent_id: str, reason: str) -> "PairRecord":
        return cls(subject_id, opponent_id, status=ERROR, error=reason)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.subject_id, self.opponent_id)

    @property
    def total(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return compute_win_rate(self.wins, self.losses)

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING

    @property
    def is_error(self) -> bool:
        return self.status == ERROR

    def mirror(self) -> "PairRecord":
        return PairRecord(
            subject_id=self.opponent_id,
            opponent_id=self.subject_id,
            wins=self.losses,
            losses=self.wins,
            status=self.status,
            error=self.error,
        )

    def display(self) -> str:
        if self.is_loading:
            return "Loading..."
        if self.is_error:
            return "Error"
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class RankingEntry:
    player: Player
    wins: int
    losses: int
    rank: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return compute_win_rate(self.wins, self.losses)


@dataclass(frozen=True)
class PerformanceStats:
    wins: int = 0
    losses: int = 0
    oldest_match: Optional[datetime] = None
    newest_match: Optional[datetime] = None
    tournaments: int = 0

    @property
    def total(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        return compute_win_rate(self.wins, self.losses)


class RecencyWindow(Enum):
    """How many of the most recent shared sets a head-to-head tally uses."""
    SIX_MONTHS = ("6months", "Last 6 Months", 10)
    ONE_YEAR = ("1year", "Last Year", 20)
    TWO_YEARS = ("2years", "Last 2 Years", 30)
    ALL = ("all", "All Time", None)

    def __init__(self, key: str, label: str, limit: Optional[int]):
        self.key = key
        self.label = label
        self.limit = limit

    @classmethod
    def parse(cls, key: str) -> "RecencyWindow":
        for window in cls:
            if window.key == key:
                return window
        raise ValueError(f"Unknown recency window {key!r}; expected one of {[w.key for w in cls]}")


DEFAULT_WINDOW = RecencyWindow.ONE_YEAR


def compute_win_rate(wins: int, losses: int) -> float:
    total = wins + losses
    if total == 0:
        return 0.0
    return wins / total * 100


RecordMap = Dict[Tuple[str, str], PairRecord]

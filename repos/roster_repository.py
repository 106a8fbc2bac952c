import json
import logging
import os
from typing import Any, Dict, List, Protocol

from models import Player
from service.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

STORAGE_KEY = "powerRankingsPlayers"
ROSTER_TABLE = "roster_store"


class RosterRepository(Protocol):
    def load(self, key: str) -> List[Player]: ...

    def save(self, key: str, players: List[Player]) -> None: ...

    def delete(self, key: str) -> None: ...


def _players_from_rows(raw: Any) -> List[Player]:
    if isinstance(raw, str):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of players, got {type(raw).__name__}")
    return [Player.from_dict(row) for row in raw]


class JsonFileRosterRepository:
    """Stores rosters in a local JSON object keyed by storage key."""

    def __init__(self, path: str):
        self._path = path

    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as err:
            logger.error("Failed to load saved players from %s: %s", self._path, err)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def load(self, key: str) -> List[Player]:
        raw = self._read_all().get(key)
        if raw is None:
            return []
        try:
            return _players_from_rows(raw)
        except (KeyError, TypeError, ValueError) as err:
            logger.error("Failed to load saved players under %s: %s", key, err)
            return []

    def save(self, key: str, players: List[Player]) -> None:
        data = self._read_all()
        data[key] = [p.to_dict() for p in players]
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


class SupabaseRosterRepository:
    """Stores rosters as JSON in the `roster_store` table (columns: key, players)."""

    def __init__(self, supabase: SupabaseService):
        self._db = supabase

    def load(self, key: str) -> List[Player]:
        rows = self._db.select_eq(ROSTER_TABLE, "key", key)
        if not rows:
            return []
        try:
            return _players_from_rows(rows[0].get("players") or [])
        except (KeyError, TypeError, ValueError) as err:
            logger.error("Failed to load saved players under %s: %s", key, err)
            return []

    def save(self, key: str, players: List[Player]) -> None:
        self._db.upsert(ROSTER_TABLE, [{"key": key, "players": [p.to_dict() for p in players]}])

    def delete(self, key: str) -> None:
        self._db.delete_eq(ROSTER_TABLE, "key", key)

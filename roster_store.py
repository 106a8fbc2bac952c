import logging
from typing import List, Optional

from models import Player
from repos.roster_repository import STORAGE_KEY, RosterRepository

logger = logging.getLogger(__name__)


class RosterStore:
    """Owns the curated roster; every change is written through to the repository.

    An empty roster is removed from storage rather than saved as an empty list.
    """

    def __init__(self, repository: RosterRepository, key: str = STORAGE_KEY):
        self._repository = repository
        self._key = key
        self._players: List[Player] = list(repository.load(key))
        logger.debug("Loaded %s saved players under %s", len(self._players), key)

    @property
    def players(self) -> List[Player]:
        return list(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return any(p.id == str(player_id) for p in self._players)

    def get(self, player_id: str) -> Optional[Player]:
        for player in self._players:
            if player.id == str(player_id):
                return player
        return None

    def add(self, player: Player) -> bool:
        if player.id in self:
            return False
        self._players.append(player)
        self._persist()
        return True

    def remove(self, player_id: str) -> bool:
        remaining = [p for p in self._players if p.id != str(player_id)]
        if len(remaining) == len(self._players):
            return False
        self._players = remaining
        self._persist()
        return True

    def clear(self) -> None:
        self._players = []
        self._persist()

    def _persist(self) -> None:
        if self._players:
            self._repository.save(self._key, self._players)
        else:
            self._repository.delete(self._key)

"""
Pytest configuration and fixtures.

Provides roster players, a set builder shaped like start.gg's
head-to-head query nodes, and an in-memory match fetcher so no test
touches the network.
"""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from models import Match, Player

Side = Tuple[Optional[str], Sequence[Tuple[Optional[str], Optional[str]]]]


def set_node(set_id, side_a: Side, side_b: Side, winner_id=None, completed_at=None) -> Dict:
    slots = []
    for entrant_id, people in (side_a, side_b):
        slots.append({
            "entrant": {
                "id": entrant_id,
                "participants": [{"id": pid, "gamerTag": tag} for pid, tag in people],
            }
        })
    return {"id": set_id, "winnerId": winner_id, "completedAt": completed_at, "slots": slots}


class FakeFetcher:
    """Serves canned set lists per player ID and records each call."""

    def __init__(self, sets_by_player: Dict[str, Union[List[Match], Exception]]):
        self.sets_by_player = sets_by_player
        self.calls: List[Tuple[str, int]] = []

    async def fetch_recent_matches(self, player_id: str, page_size: int) -> List[Match]:
        self.calls.append((player_id, page_size))
        result = self.sets_by_player.get(player_id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)[:page_size]


@pytest.fixture
def zain():
    return Player(id="1000", gamer_tag="Zain")


@pytest.fixture
def cody():
    return Player(id="2000", gamer_tag="Cody Schwab", prefix="TSM")


@pytest.fixture
def hbox():
    return Player(id="3000", gamer_tag="Hungrybox")


@pytest.fixture
def make_set():
    """Build a Match via Match.from_node, the same path real API data takes."""
    def _make(set_id, side_a: Side, side_b: Side, winner_id=None, completed_at=None) -> Match:
        return Match.from_node(set_node(set_id, side_a, side_b, winner_id, completed_at))
    return _make


@pytest.fixture
def make_h2h(make_set):
    """Singles set between two players; `winner` is a Player, or None for no recorded winner."""
    def _make(set_id, first: Player, second: Player, winner: Optional[Player], completed_at=None) -> Match:
        first_entrant = f"{set_id}-{first.id}"
        second_entrant = f"{set_id}-{second.id}"
        winner_id = None
        if winner is not None:
            winner_id = first_entrant if winner.id == first.id else second_entrant
        return make_set(
            set_id,
            (first_entrant, [(first.id, first.gamer_tag)]),
            (second_entrant, [(second.id, second.gamer_tag)]),
            winner_id=winner_id,
            completed_at=completed_at,
        )
    return _make


@pytest.fixture
def fake_fetcher():
    return FakeFetcher

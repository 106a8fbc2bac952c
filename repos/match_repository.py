from typing import List

import query as q
from models import Match
from service.startgg_client import StartGGClient


class MatchRepository:
    """Reads a player's recent sets from start.gg, most recent first."""

    def __init__(self, client: StartGGClient):
        self._client = client

    async def fetch_recent_matches(self, player_id: str, page_size: int) -> List[Match]:
        result = await self._client.execute(q.head_to_head_query, {"playerId": player_id, "perPage": page_size})
        player = q.unwrap(result, "player")
        if player is None:
            raise q.StartGGError(f"Player {player_id} not found")
        nodes = ((player.get("sets") or {}).get("nodes")) or []
        return [Match.from_node(node) for node in nodes if node and node.get("id") is not None]

import logging
from typing import Dict, List, Optional

import query as q
from config import StartGGCredentials
from models import Match, Player

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 10


class PlayerRepository:
    """Resolves start.gg players from user slugs or tag searches."""
    def __init__(self, credentials: Optional[StartGGCredentials] = None):
        self._creds = credentials

    def _run(self, document: str, variables: Dict, root: str):
        return q.unwrap(q.run_query(document, variables, credentials=self._creds), root)

    def get_by_user_slug(self, slug: str) -> Optional[Player]:
        slug = slug.strip()
        if not slug.startswith("user/"):
            slug = f"user/{slug}"
        user = self._run(q.user_by_slug_query, {"slug": slug}, "user")
        if not user:
            return None
        player = user.get("player") or {}
        return Player(
            id=player.get("id") or user["id"],
            gamer_tag=player.get("gamerTag") or user.get("name") or "Unknown",
            prefix=player.get("prefix"),
            user_slug=user.get("slug"),
        )

    def search_recent_tournaments(self, tag: str, tournaments: int = 3, per_page: int = 20) -> List[Player]:
        """Look for `tag` among participants of the most recent tournaments."""
        recent = self._run(q.recent_tournaments_query, {"perPage": 10}, "tournaments") or {}
        nodes = recent.get("nodes") or []
        results: List[Player] = []
        for tournament in nodes[:tournaments]:
            try:
                found = self._run(
                    q.tournament_participants_query,
                    {"slug": tournament["slug"], "perPage": per_page, "filter": tag.strip()},
                    "tournament",
                )
            except q.StartGGError as err:
                logger.warning("Failed to search tournament %s: %s", tournament.get("slug"), err)
                continue
            participants = ((found or {}).get("participants") or {}).get("nodes") or []
            for participant in participants:
                user = participant.get("user") or {}
                results.append(Player(
                    id=participant["id"],
                    gamer_tag=participant.get("gamerTag") or "Unknown",
                    prefix=participant.get("prefix"),
                    user_slug=user.get("slug"),
                ))

        unique: List[Player] = []
        seen_tags = set()
        for player in results:
            if player.gamer_tag in seen_tags:
                continue
            seen_tags.add(player.gamer_tag)
            unique.append(player)
        return unique[:MAX_SEARCH_RESULTS]

    def get_recent_sets(self, player_id: str, per_page: int = 40) -> List[Match]:
        # start.gg caps query complexity at 1000 objects; 40 sets with slots stays under it.
        player = self._run(q.player_details_query, {"playerId": player_id, "perPage": per_page}, "player")
        if player is None:
            raise q.StartGGError(f"Player {player_id} not found")
        nodes = ((player.get("sets") or {}).get("nodes")) or []
        return [Match.from_node(node) for node in nodes if node and node.get("id") is not None]

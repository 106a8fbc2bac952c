import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Tuple

from models import DEFAULT_WINDOW, Match, PairRecord, Player, RecencyWindow
from service import identity_service

logger = logging.getLogger(__name__)

DEFAULT_FETCH_CAP = 100
RECENT_SETS_SHOWN = 5


class MatchFetcher(Protocol):
    async def fetch_recent_matches(self, player_id: str, page_size: int) -> List[Match]: ...


def merge_matches(*match_lists: List[Match]) -> List[Match]:
    """Union of the lists keyed by match ID, keeping first-seen order."""
    merged: Dict[str, Match] = {}
    for matches in match_lists:
        for match in matches:
            if match.id not in merged:
                merged[match.id] = match
    return list(merged.values())


def shared_matches(matches: List[Match], player_a: Player, player_b: Player) -> List[Match]:
    """Sets where the two players sit in different slots; doubles sets as teammates are left out."""
    shared = []
    for match in matches:
        if not (identity_service.involves(match, player_a) and identity_service.involves(match, player_b)):
            continue
        if identity_service.find_player_slot(match, player_a) is identity_service.find_player_slot(match, player_b):
            logger.debug("Skipping set %s: %s and %s are teammates", match.id, player_a.gamer_tag, player_b.gamer_tag)
            continue
        shared.append(match)
    return shared


def most_recent(matches: List[Match], limit: Optional[int]) -> List[Match]:
    """Newest first; sets without completedAt keep their relative order after timed ones."""
    ordered = sorted(
        matches,
        key=lambda m: (m.completed_at is None, -(m.completed_at or 0)),
    )
    if limit is None:
        return ordered
    return ordered[:limit]


def outcome(match: Match, player: Player) -> Optional[bool]:
    """True for a win, False for a loss, None when the winner or the player's entrant is unknown."""
    slot = identity_service.find_player_slot(match, player)
    entrant_id = slot.entrant.id if slot and slot.entrant else None
    if entrant_id is None or match.winner_id is None:
        return None
    return entrant_id == match.winner_id


def tally(matches: List[Match], player: Player) -> Tuple[int, int]:
    """Count wins and losses for `player`; sets with no known winner or entrant are skipped."""
    wins = 0
    losses = 0
    for match in matches:
        result = outcome(match, player)
        if result is None:
            logger.debug("Skipping set %s: no winner or entrant for %s", match.id, player.gamer_tag)
        elif result:
            wins += 1
        else:
            losses += 1
    return wins, losses


def pair_records(player_a: Player, player_b: Player, history: List[Match]) -> Tuple[PairRecord, PairRecord]:
    wins, losses = tally(history, player_a)
    record = PairRecord.ready(player_a.id, player_b.id, wins, losses)
    return record, record.mirror()


def describe_recent(history: List[Match], player: Player, limit: int = RECENT_SETS_SHOWN) -> List[str]:
    """One line per set, newest first: W, L or ? from `player`'s side and the completion date."""
    lines = []
    for match in history[:limit]:
        result = outcome(match, player)
        mark = "?" if result is None else ("W" if result else "L")
        when = match.completed_datetime
        lines.append(f"{mark}  {when.strftime('%Y-%m-%d') if when else 'undated'}  set {match.id}")
    return lines


class HeadToHeadService:
    """Builds the symmetric pair of records between two players."""

    def __init__(self, fetcher: MatchFetcher, fetch_cap: int = DEFAULT_FETCH_CAP):
        self._fetcher = fetcher
        self._fetch_cap = fetch_cap

    async def shared_history(
        self,
        player_a: Player,
        player_b: Player,
        window: RecencyWindow = DEFAULT_WINDOW,
    ) -> List[Match]:
        """The windowed shared sets, newest first. Fetch errors propagate."""
        sets_a, sets_b = await asyncio.gather(
            self._fetcher.fetch_recent_matches(player_a.id, self._fetch_cap),
            self._fetcher.fetch_recent_matches(player_b.id, self._fetch_cap),
        )
        combined = merge_matches(sets_a, sets_b)
        head_to_head = shared_matches(combined, player_a, player_b)
        recent = most_recent(head_to_head, window.limit)
        logger.debug(
            "%s vs %s: %s of %s shared sets kept (%s unique fetched, window=%s)",
            player_a.gamer_tag,
            player_b.gamer_tag,
            len(recent),
            len(head_to_head),
            len(combined),
            window.key,
        )
        return recent

    async def reconcile(
        self,
        player_a: Player,
        player_b: Player,
        window: RecencyWindow = DEFAULT_WINDOW,
    ) -> Tuple[PairRecord, PairRecord]:
        try:
            history = await self.shared_history(player_a, player_b, window)
        except Exception as err:
            reason = str(err) or type(err).__name__
            logger.warning("Head-to-head fetch failed for %s vs %s: %s", player_a.gamer_tag, player_b.gamer_tag, reason)
            return (
                PairRecord.failed(player_a.id, player_b.id, reason),
                PairRecord.failed(player_b.id, player_a.id, reason),
            )

        record, mirrored = pair_records(player_a, player_b, history)
        logger.info(
            "%s vs %s: %s-%s over %s sets (window=%s)",
            player_a.gamer_tag,
            player_b.gamer_tag,
            record.wins,
            record.losses,
            len(history),
            window.key,
        )
        return record, mirrored

import logging
import time
from typing import Callable, Iterable, List, Sequence, Tuple

import pandas as pd

import query as q
from models import Match, PerformanceStats, Player
from service.identity_service import find_player_slot

logger = logging.getLogger(__name__)

FORM_BAND = 5.0  # win-rate points treated as level in the roster form table
FORM_SETS_PER_PLAYER = 20
FORM_REQUEST_DELAY = 0.3

FormRow = Tuple[Player, PerformanceStats]


def summarize_performance(player: Player, matches: Iterable[Match]) -> PerformanceStats:
    """Overall record across a player's recent sets plus the date range they span."""
    wins = 0
    losses = 0
    oldest = None
    newest = None
    tournaments = set()
    for match in matches:
        when = match.completed_datetime
        if when is not None:
            oldest = when if oldest is None or when < oldest else oldest
            newest = when if newest is None or when > newest else newest
        if match.tournament_id is not None:
            tournaments.add(match.tournament_id)

        slot = find_player_slot(match, player)
        entrant_id = slot.entrant.id if slot and slot.entrant else None
        if entrant_id is None or match.winner_id is None:
            continue
        if entrant_id == match.winner_id:
            wins += 1
        else:
            losses += 1

    return PerformanceStats(
        wins=wins,
        losses=losses,
        oldest_match=oldest,
        newest_match=newest,
        tournaments=len(tournaments),
    )


def format_date_range(stats: PerformanceStats) -> str:
    if stats.oldest_match is None or stats.newest_match is None:
        return ""
    oldest = stats.oldest_match.strftime("%b %Y")
    newest = stats.newest_match.strftime("%b %Y")
    if oldest == newest:
        return oldest
    return f"{oldest} - {newest}"


def collect_form(
    players: Sequence[Player],
    fetch_sets: Callable[[str, int], List[Match]],
    per_page: int = FORM_SETS_PER_PLAYER,
    delay: float = FORM_REQUEST_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[FormRow]:
    """Summarize each player's recent sets one player at a time.

    Players whose sets cannot be fetched are logged and left out.
    """
    rows: List[FormRow] = []
    for index, player in enumerate(players):
        try:
            matches = fetch_sets(player.id, per_page)
        except q.StartGGError as err:
            logger.warning("Skipping %s: %s", player.gamer_tag, err)
        else:
            rows.append((player, summarize_performance(player, matches)))
        if index < len(players) - 1:
            sleep(delay)
    return rows


def sort_by_form(rows: Sequence[FormRow], band: float = FORM_BAND) -> List[FormRow]:
    """Highest win rate first; rates within `band` of the band's top are ordered by sets played."""
    seat = {player.id: position for position, (player, _) in enumerate(rows)}
    by_rate = sorted(rows, key=lambda row: (-row[1].win_rate, seat[row[0].id]))

    ordered: List[FormRow] = []
    group: List[FormRow] = []
    for row in by_rate:
        gap = group[0][1].win_rate - row[1].win_rate if group else 0.0
        if gap > 0 and gap >= band:
            ordered.extend(sorted(group, key=lambda r: (-r[1].total, seat[r[0].id])))
            group = []
        group.append(row)
    ordered.extend(sorted(group, key=lambda r: (-r[1].total, seat[r[0].id])))
    return ordered


def form_frame(rows: Sequence[FormRow]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "rank": position,
                "player": player.display_name,
                "wins": stats.wins,
                "losses": stats.losses,
                "sets": stats.total,
                "win_rate": round(stats.win_rate, 1),
                "tournaments": stats.tournaments,
            }
            for position, (player, stats) in enumerate(rows, start=1)
        ],
        columns=["rank", "player", "wins", "losses", "sets", "win_rate", "tournaments"],
    )

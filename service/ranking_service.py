from typing import List, Sequence

import pandas as pd

from models import PairRecord, Player, RankingEntry, RecordMap

DEFAULT_EPSILON = 0.1  # win-rate percentage points treated as a tie


def _totals(player: Player, roster: Sequence[Player], records: RecordMap):
    wins = 0
    losses = 0
    for opponent in roster:
        if opponent.id == player.id:
            continue
        record = records.get((player.id, opponent.id))
        if record is None or record.is_loading or record.is_error:
            continue
        wins += record.wins
        losses += record.losses
    return wins, losses


def _bands(entries: Sequence[RankingEntry], epsilon: float) -> List[List[RankingEntry]]:
    """Split rate-ordered entries into bands whose rates sit within `epsilon` of the band's top."""
    bands: List[List[RankingEntry]] = []
    for entry in entries:
        if bands:
            gap = bands[-1][0].win_rate - entry.win_rate
            if gap == 0 or gap < epsilon:
                bands[-1].append(entry)
                continue
        bands.append([entry])
    return bands


def rank(roster: Sequence[Player], records: RecordMap, epsilon: float = DEFAULT_EPSILON) -> List[RankingEntry]:
    """Order the roster by summed head-to-head win rate.

    Win rates within `epsilon` of each other are a tie and fall back to total
    wins, so a 1-0 record cannot jump a 40-5 one on rate alone. Players still
    tied keep roster order. A tie is measured against the highest rate in its
    band, so which band a player lands in does not depend on roster order.
    """
    entries = [RankingEntry(player, *_totals(player, roster, records)) for player in roster]
    seat = {entry.player.id: position for position, entry in enumerate(entries)}

    by_rate = sorted(entries, key=lambda e: (-e.win_rate, seat[e.player.id]))
    ordered: List[RankingEntry] = []
    for band in _bands(by_rate, epsilon):
        ordered.extend(sorted(band, key=lambda e: (-e.wins, seat[e.player.id])))
    return [
        RankingEntry(e.player, e.wins, e.losses, rank=position)
        for position, e in enumerate(ordered, start=1)
    ]


def rankings_frame(entries: Sequence[RankingEntry]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "rank": e.rank,
                "player_id": e.player.id,
                "player": e.player.display_name,
                "wins": e.wins,
                "losses": e.losses,
                "sets": e.total,
                "win_rate": round(e.win_rate, 1),
            }
            for e in entries
        ],
        columns=["rank", "player_id", "player", "wins", "losses", "sets", "win_rate"],
    )


def records_frame(roster: Sequence[Player], records: RecordMap) -> pd.DataFrame:
    """Row player vs column player matrix of record strings."""
    tags = [p.display_name for p in roster]
    cells = []
    for row_player in roster:
        row = []
        for col_player in roster:
            if row_player.id == col_player.id:
                row.append("—")
                continue
            record: PairRecord | None = records.get((row_player.id, col_player.id))
            row.append(record.display() if record else "No data")
        cells.append(row)
    return pd.DataFrame(cells, index=tags, columns=tags)

"""CLI entry-point for start.gg head-to-head power rankings.

Workflow:
- Curate a roster of players (saved under a fixed storage key)
- Reconcile every pair's head-to-head record, a few pairs at a time
- Rank the roster by summed head-to-head win rate

Example:
  py power_rankings.py add 2a371960 da8b9c25 076502c1
  py power_rankings.py rank --window 2years --csv rankings.csv
  py power_rankings.py h2h 1000 2000 --window all
  py power_rankings.py form --per-page 20
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

import query as q
from config import EnvironmentConfig
from models import DEFAULT_WINDOW, PairRecord, Player, RecencyWindow
from repos.match_repository import MatchRepository
from repos.player_repository import PlayerRepository
from repos.roster_repository import JsonFileRosterRepository, SupabaseRosterRepository
from roster_store import RosterStore
from service.batch_scheduler import BatchScheduler
from service.head_to_head_service import HeadToHeadService, describe_recent, pair_records
from service.performance_service import (
    FORM_SETS_PER_PLAYER,
    collect_form,
    form_frame,
    format_date_range,
    sort_by_form,
    summarize_performance,
)
from service.ranking_service import rank, rankings_frame, records_frame
from service.startgg_client import StartGGClient
from service.supabase_service import SupabaseService

logger = logging.getLogger(__name__)

DEFAULT_ROSTER_FILE = "data/roster.json"
MIN_PLAYERS_FOR_RANKINGS = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Head-to-head matrix and power rankings for a roster of start.gg players.")
    p.add_argument(
        "--store",
        default="file",
        choices=["file", "supabase"],
        help="Where the roster is persisted.",
    )
    p.add_argument("--roster-file", default=DEFAULT_ROSTER_FILE, help="JSON file used by --store file.")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging verbosity.",
    )

    window_choices = [w.key for w in RecencyWindow]
    sub = p.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Add players by start.gg user slug (the part after user/).")
    add.add_argument("slugs", nargs="+")

    search = sub.add_parser("search", help="Find players by gamerTag in recent tournaments.")
    search.add_argument("tag")

    remove = sub.add_parser("remove", help="Remove a player from the roster by player ID.")
    remove.add_argument("player_id")

    sub.add_parser("list", help="Show the saved roster.")
    sub.add_parser("clear", help="Empty the saved roster.")

    h2h = sub.add_parser("h2h", help="Head-to-head record between two roster players.")
    h2h.add_argument("player_a")
    h2h.add_argument("player_b")
    h2h.add_argument("--window", default=DEFAULT_WINDOW.key, choices=window_choices)

    ranking = sub.add_parser("rank", help="Build the head-to-head matrix and power rankings.")
    ranking.add_argument("--window", default=DEFAULT_WINDOW.key, choices=window_choices)
    ranking.add_argument("--csv", default=None, help="Also write the ranking table to this CSV file.")
    ranking.add_argument("--matrix", action=argparse.BooleanOptionalAction, default=True, help="Print the matrix.")

    player = sub.add_parser("player", help="Recent performance summary for a user slug.")
    player.add_argument("slug")
    player.add_argument("--per-page", type=int, default=40, help="How many recent sets to summarize.")

    form = sub.add_parser("form", help="Recent win rate and tournaments attended for every roster player.")
    form.add_argument("--per-page", type=int, default=FORM_SETS_PER_PLAYER, help="Recent sets fetched per player.")
    return p


def build_store(args) -> RosterStore:
    if args.store == "supabase":
        supabase = SupabaseService(EnvironmentConfig.load_database())
        return RosterStore(SupabaseRosterRepository(supabase))
    return RosterStore(JsonFileRosterRepository(args.roster_file))


def _print_roster(players: List[Player]) -> None:
    if not players:
        print("Roster is empty.")
        return
    for player in players:
        print(f"{player.id}\t{player.display_name}")


async def _shared_history(player_a: Player, player_b: Player, window: RecencyWindow):
    settings = EnvironmentConfig.load_scheduler()
    async with StartGGClient(EnvironmentConfig.load_startgg()) as client:
        service = HeadToHeadService(MatchRepository(client), fetch_cap=settings.fetch_cap)
        return await service.shared_history(player_a, player_b, window)


async def _schedule_roster(players: List[Player], window: RecencyWindow):
    settings = EnvironmentConfig.load_scheduler()
    async with StartGGClient(EnvironmentConfig.load_startgg()) as client:
        service = HeadToHeadService(MatchRepository(client), fetch_cap=settings.fetch_cap)
        scheduler = BatchScheduler(service, batch_size=settings.batch_size, batch_delay=settings.batch_delay)

        def report(records) -> None:
            record: PairRecord = records[0]
            if not record.is_loading:
                logger.info("%s vs %s -> %s", record.subject_id, record.opponent_id, record.display())

        records = await scheduler.schedule_all(players, window, on_update=report)
        return records, settings.ranking_epsilon


def main() -> int:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Keep output focused: httpx request logs are very noisy at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    store = build_store(args)

    if args.command == "list":
        _print_roster(store.players)
        return 0

    if args.command == "clear":
        store.clear()
        print("Roster cleared.")
        return 0

    if args.command == "remove":
        if not store.remove(args.player_id):
            raise SystemExit(f"Player {args.player_id} is not in the roster.")
        print(f"Removed {args.player_id}.")
        return 0

    if args.command == "add":
        lookup = PlayerRepository(EnvironmentConfig.load_startgg())
        missing = []
        for slug in args.slugs:
            player = lookup.get_by_user_slug(slug)
            if player is None:
                logger.warning("No start.gg user found for slug=%s", slug)
                missing.append(slug)
                continue
            if store.add(player):
                print(f"Added {player.display_name} ({player.id})")
            else:
                print(f"{player.display_name} ({player.id}) is already in the roster")
        if missing:
            raise SystemExit(f"Player not found: {', '.join(missing)}. Try `search` instead.")
        return 0

    if args.command == "search":
        lookup = PlayerRepository(EnvironmentConfig.load_startgg())
        found = lookup.search_recent_tournaments(args.tag)
        if not found:
            raise SystemExit("No players found in recent tournaments. Try a different search term.")
        _print_roster(found)
        return 0

    if args.command == "player":
        lookup = PlayerRepository(EnvironmentConfig.load_startgg())
        player = lookup.get_by_user_slug(args.slug)
        if player is None:
            raise SystemExit(f"Player not found: {args.slug}")
        stats = summarize_performance(player, lookup.get_recent_sets(player.id, per_page=args.per_page))
        print(f"{player.display_name}: {stats.wins}-{stats.losses} ({stats.win_rate:.1f}%) over {stats.total} sets")
        date_range = format_date_range(stats)
        if date_range:
            print(f"Sets played {date_range}")
        return 0

    if args.command == "form":
        players = store.players
        if not players:
            raise SystemExit("Roster is empty.")
        lookup = PlayerRepository(EnvironmentConfig.load_startgg())
        rows = sort_by_form(collect_form(players, lookup.get_recent_sets, per_page=args.per_page))
        if not rows:
            raise SystemExit("No recent sets could be fetched for the roster.")
        print(f"Recent Form (last {args.per_page} sets per player)")
        print(form_frame(rows).to_string(index=False))
        return 0

    window = RecencyWindow.parse(args.window)

    if args.command == "h2h":
        player_a = store.get(args.player_a)
        player_b = store.get(args.player_b)
        if player_a is None or player_b is None:
            raise SystemExit("Both players must be in the roster (see `list`).")
        if player_a.id == player_b.id:
            raise SystemExit("Pick two different players.")
        try:
            history = asyncio.run(_shared_history(player_a, player_b, window))
        except q.StartGGError as err:
            raise SystemExit(f"Head-to-head failed: {err}")
        record_a, record_b = pair_records(player_a, player_b, history)
        print(f"{window.label}: {player_a.display_name} {record_a.display()} {player_b.display_name} "
              f"({record_a.win_rate:.1f}% / {record_b.win_rate:.1f}%)")
        if history:
            print(f"Recent sets for {player_a.display_name}:")
            for line in describe_recent(history, player_a):
                print(f"  {line}")
        return 0

    # rank
    players = store.players
    if len(players) < MIN_PLAYERS_FOR_RANKINGS:
        raise SystemExit(f"Add at least {MIN_PLAYERS_FOR_RANKINGS} players to generate rankings.")
    records, epsilon = asyncio.run(_schedule_roster(players, window))
    failed = [r for r in records.values() if r.is_error]

    if args.matrix:
        print(f"Matchup Matrix ({window.label})")
        print(records_frame(players, records).to_string())
        print()

    table = rankings_frame(rank(players, records, epsilon=epsilon))
    print(f"Power Rankings ({window.label})")
    print(table.to_string(index=False))
    if args.csv:
        table.to_csv(args.csv, index=False)
        print(f"Wrote {args.csv}")

    if failed:
        logger.warning("Completed with %s failed pair directions. Re-run to retry.", len(failed))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Unit tests for the individual performance summary.
"""

from datetime import datetime, timezone

from models import Entrant, Match, Participant, PerformanceStats, Player, Slot
from query import StartGGError
from service.performance_service import (
    collect_form,
    form_frame,
    format_date_range,
    sort_by_form,
    summarize_performance,
)


def _ts(year, month):
    return int(datetime(year, month, 15, tzinfo=timezone.utc).timestamp())


class TestSummarizePerformance:
    """Tests for summarize_performance."""

    def test_counts_and_range(self, zain, cody, hbox, make_h2h):
        """Wins, losses and the date span across all opponents."""
        sets = [
            make_h2h("s1", zain, cody, zain, completed_at=_ts(2024, 3)),
            make_h2h("s2", hbox, zain, hbox, completed_at=_ts(2023, 11)),
            make_h2h("s3", zain, hbox, zain, completed_at=_ts(2024, 1)),
        ]

        stats = summarize_performance(zain, sets)

        assert (stats.wins, stats.losses, stats.total) == (2, 1, 3)
        assert round(stats.win_rate, 1) == 66.7
        assert stats.oldest_match.month == 11
        assert stats.newest_match.year == 2024
        assert format_date_range(stats) == "Nov 2023 - Mar 2024"

    def test_excludes_unknown_winner_and_absent_player(self, zain, cody, hbox, make_h2h):
        """Undecided sets and sets without the player are not counted."""
        sets = [
            make_h2h("s1", zain, cody, None),
            make_h2h("s2", cody, hbox, cody),
        ]
        assert summarize_performance(zain, sets).total == 0

    def test_user_slug_fallback(self):
        """A renamed player is still found by user slug."""
        player = Player(id="1", gamer_tag="OldTag", user_slug="user/abc")
        match = Match(
            id="s1",
            winner_id="e1",
            slots=(
                Slot(Entrant("e1", participants=(Participant("77", "NewTag", user_slug="user/abc"),))),
                Slot(Entrant("e2", participants=(Participant("88", "Other"),))),
            ),
        )

        assert summarize_performance(player, [match]).wins == 1


class TestFormatDateRange:
    """Tests for format_date_range."""

    def test_empty(self):
        """No dated sets gives an empty string."""
        assert format_date_range(PerformanceStats()) == ""

    def test_same_month(self):
        """A single month is shown once."""
        when = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert format_date_range(PerformanceStats(oldest_match=when, newest_match=when)) == "May 2024"


def _record(wins, losses, tournaments=0):
    return PerformanceStats(wins=wins, losses=losses, tournaments=tournaments)


class TestTournamentCount:
    """Tests for counting distinct tournaments attended."""

    def test_distinct_tournaments(self, zain, cody):
        """Sets from the same tournament count once; sets without one are ignored."""
        def node(set_id, tournament_id):
            return {
                "id": set_id,
                "winnerId": "e1",
                "event": {"tournament": {"id": tournament_id}} if tournament_id else None,
                "slots": [
                    {"entrant": {"id": "e1", "participants": [{"id": zain.id, "gamerTag": "Zain"}]}},
                    {"entrant": {"id": "e2", "participants": [{"id": cody.id, "gamerTag": "Cody Schwab"}]}},
                ],
            }

        sets = [Match.from_node(node("s1", 501)), Match.from_node(node("s2", "501")),
                Match.from_node(node("s3", 502)), Match.from_node(node("s4", None))]

        stats = summarize_performance(zain, sets)

        assert stats.tournaments == 2
        assert stats.wins == 4


class TestCollectForm:
    """Tests for the sequential roster form fetch."""

    def test_sequential_with_delay_and_skips_failures(self, zain, cody, hbox, make_h2h):
        """One fetch per player, a delay between players, failures left out."""
        calls = []
        delays = []

        def fetch(player_id, per_page):
            calls.append((player_id, per_page))
            if player_id == cody.id:
                raise StartGGError("Player 2000 not found")
            return [make_h2h("s1", zain, hbox, zain)]

        rows = collect_form([zain, cody, hbox], fetch, per_page=20, delay=0.3, sleep=delays.append)

        assert calls == [(zain.id, 20), (cody.id, 20), (hbox.id, 20)]
        assert delays == [0.3, 0.3]
        assert [(p.id, s.wins, s.losses) for p, s in rows] == [(zain.id, 1, 0), (hbox.id, 0, 1)]


class TestSortByForm:
    """Tests for the roster form ordering."""

    def test_band_falls_back_to_sets_played(self):
        """Rates within five points are ordered by sets played."""
        a, b, c = Player("1", "A"), Player("2", "B"), Player("3", "C")
        rows = [(a, _record(3, 1)), (b, _record(15, 6)), (c, _record(1, 3))]

        ordered = sort_by_form(rows)

        # A 75% on 4 sets and B 71.4% on 21 sets are level; C at 25% is not.
        assert [p.id for p, _ in ordered] == ["2", "1", "3"]

    def test_clear_gap_ranks_on_rate(self):
        """Outside the band the higher rate wins regardless of volume."""
        a, b = Player("1", "A"), Player("2", "B")
        rows = [(a, _record(12, 8)), (b, _record(2, 0))]

        assert [p.id for p, _ in sort_by_form(rows)] == ["2", "1"]

    def test_frame(self):
        """Table rows carry rank, rounded rate and tournaments."""
        a = Player("1", "A", prefix="TSM")
        frame = form_frame([(a, _record(2, 1, tournaments=2))])

        assert list(frame.columns) == ["rank", "player", "wins", "losses", "sets", "win_rate", "tournaments"]
        assert frame.loc[0, "player"] == "TSM | A"
        assert frame.loc[0, "win_rate"] == 66.7
        assert frame.loc[0, "tournaments"] == 2

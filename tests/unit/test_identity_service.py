"""
Unit tests for participant identity matching.

The ID-or-tag fallback is what lets the same set be recognised from
both players' independently fetched histories.
"""

from models import Entrant, Match, Participant, Player, Slot
from service.identity_service import find_player_slot, involves, matches


def _slot(entrant_id, *participants):
    return Slot(entrant=Entrant(id=entrant_id, participants=tuple(participants)))


class TestMatches:
    """Tests for the participant/player comparison."""

    def test_matches_by_id(self, zain):
        """Equal IDs match even when tags differ."""
        assert matches(Participant(id="1000", gamer_tag="Renamed"), zain)

    def test_id_compared_as_string(self):
        """Numeric and string IDs for the same player compare equal."""
        player = Player(id=1000, gamer_tag="Zain")
        assert matches(Participant(id="1000", gamer_tag=None), player)

    def test_falls_back_to_tag(self, zain):
        """A differing ID still matches on gamerTag."""
        assert matches(Participant(id="999", gamer_tag="Zain"), zain)

    def test_tag_is_case_insensitive(self, zain):
        """Tag comparison ignores case."""
        assert matches(Participant(id=None, gamer_tag="zAIN"), zain)

    def test_no_match(self, zain):
        """Different ID and tag do not match."""
        assert not matches(Participant(id="2000", gamer_tag="Cody Schwab"), zain)

    def test_missing_fields_never_match(self):
        """Absent ID and absent tag do not count as equal."""
        player = Player(id="", gamer_tag="")
        assert not matches(Participant(id=None, gamer_tag=None), player)
        assert not matches(Participant(id=None, gamer_tag=""), player)


class TestFindPlayerSlot:
    """Tests for the slot lookup precedence chain."""

    def test_id_wins_over_tag(self, zain):
        """A slot holding the player's ID is chosen over an earlier slot with the same tag."""
        impostor = _slot("e1", Participant(id="999", gamer_tag="Zain"))
        real = _slot("e2", Participant(id="1000", gamer_tag="Other"))
        match = Match(id="s1", slots=(impostor, real))
        assert find_player_slot(match, zain) is real

    def test_tag_fallback(self, zain):
        """Without an ID hit the tag is used."""
        slot = _slot("e2", Participant(id=None, gamer_tag="ZAIN"))
        match = Match(id="s1", slots=(_slot("e1", Participant(id="5", gamer_tag="x")), slot))
        assert find_player_slot(match, zain) is slot

    def test_user_slug_fallback(self):
        """User slug is the last resort."""
        player = Player(id="1", gamer_tag="Old Tag", user_slug="user/abc123")
        slot = _slot("e2", Participant(id="77", gamer_tag="New Tag", user_slug="user/abc123"))
        match = Match(id="s1", slots=(_slot("e1", Participant(id="5", gamer_tag="x")), slot))
        assert find_player_slot(match, player) is slot

    def test_not_found(self, zain):
        """Returns None when nobody matches."""
        match = Match(id="s1", slots=(_slot("e1", Participant(id="5", gamer_tag="x")), Slot(entrant=None)))
        assert find_player_slot(match, zain) is None


class TestInvolves:
    """Tests for set membership."""

    def test_doubles_participant(self, zain, cody):
        """Any participant of a team entrant counts."""
        team = _slot("e1", Participant(id="4", gamer_tag="Partner"), Participant(id="1000", gamer_tag="Zain"))
        other = _slot("e2", Participant(id="2000", gamer_tag="Cody Schwab"))
        match = Match(id="s1", slots=(team, other))
        assert involves(match, zain)
        assert involves(match, cody)

    def test_empty_slots(self, zain):
        """Sets with empty slots involve nobody."""
        assert not involves(Match(id="s1", slots=(Slot(), Slot())), zain)

from typing import Optional

from models import Match, Participant, Player, Slot, normalize_id


def _same_tag(left: Optional[str], right: Optional[str]) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


def matches(participant: Participant, player: Player) -> bool:
    """True when `participant` is `player`: equal IDs, else a case-insensitive gamerTag match.

    The two per-player set lists are fetched independently and start.gg does not
    always populate participant IDs the same way in both, so the tag fallback is
    what lets the same set be recognised from either side.
    """
    participant_id = normalize_id(participant.id)
    if participant_id is not None and participant_id == normalize_id(player.id):
        return True
    return _same_tag(participant.gamer_tag, player.gamer_tag)


def slot_has(slot: Slot, player: Player) -> bool:
    return any(matches(p, player) for p in slot.participants)


def involves(match: Match, player: Player) -> bool:
    return any(slot_has(slot, player) for slot in match.slots)


def find_player_slot(match: Match, player: Player) -> Optional[Slot]:
    """Locate the player's slot, trying participant ID, then gamerTag, then user slug."""
    player_id = normalize_id(player.id)
    for slot in match.slots:
        if player_id and any(normalize_id(p.id) == player_id for p in slot.participants):
            return slot
    for slot in match.slots:
        if any(_same_tag(p.gamer_tag, player.gamer_tag) for p in slot.participants):
            return slot
    if player.user_slug:
        for slot in match.slots:
            if any(p.user_slug == player.user_slug for p in slot.participants):
                return slot
    return None

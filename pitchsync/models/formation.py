"""Formation tables and position mapping for the PitchSync live game engine."""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple

from .player import Player, PitchCoordinate, PitchPosition
from ..utils import DEFAULT_TEAM_SIZE, SUPPORTED_TEAM_SIZES


class Formation(NamedTuple):
    """A named set of pitch coordinates, goalkeeper first where there is one."""
    name: str
    positions: List[Tuple[float, float]]


FORMATIONS: Dict[str, List[Formation]] = {
    "4": [
        Formation("1-2-1", [(50, 85), (25, 55), (75, 55), (50, 25)]),
        Formation("2-1-1", [(35, 85), (65, 85), (50, 55), (50, 25)]),
        Formation("1-1-2", [(50, 85), (50, 55), (35, 25), (65, 25)]),
    ],
    "7": [
        Formation("2-3-1", [(50, 90), (30, 70), (70, 70), (20, 45), (50, 45), (80, 45), (50, 20)]),
        Formation("3-2-1", [(50, 90), (25, 70), (50, 70), (75, 70), (35, 40), (65, 40), (50, 15)]),
        Formation("2-2-2", [(50, 90), (30, 70), (70, 70), (30, 40), (70, 40), (35, 15), (65, 15)]),
    ],
    "9": [
        Formation("3-3-2", [(50, 90), (25, 72), (50, 72), (75, 72), (25, 48), (50, 48), (75, 48),
                            (35, 20), (65, 20)]),
        Formation("3-2-3", [(50, 90), (25, 72), (50, 72), (75, 72), (35, 48), (65, 48), (25, 20),
                            (50, 20), (75, 20)]),
        Formation("2-4-2", [(50, 90), (30, 72), (70, 72), (20, 48), (40, 48), (60, 48), (80, 48),
                            (35, 20), (65, 20)]),
    ],
    "11": [
        Formation("4-4-2", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (20, 50), (40, 50),
                            (60, 50), (80, 50), (35, 22), (65, 22)]),
        Formation("4-3-3", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (30, 50), (50, 50),
                            (70, 50), (25, 22), (50, 22), (75, 22)]),
        Formation("3-5-2", [(50, 92), (25, 75), (50, 75), (75, 75), (15, 50), (35, 50), (50, 50),
                            (65, 50), (85, 50), (35, 22), (65, 22)]),
        Formation("4-2-3-1", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (35, 55), (65, 55),
                              (25, 35), (50, 35), (75, 35), (50, 15)]),
    ],
}


def normalize_team_size(team_size: object) -> str:
    """Return a supported size code, defaulting to the standard 11-a-side."""
    code = str(team_size).strip() if team_size is not None else ""
    return code if code in SUPPORTED_TEAM_SIZES else str(DEFAULT_TEAM_SIZE)


def team_size_number(team_size: object) -> int:
    """
    Convert a team size code to the number of players on the pitch.

    Unparseable or non-positive codes fall back to 11.
    """
    try:
        value = int(str(team_size).strip())
    except (TypeError, ValueError):
        return DEFAULT_TEAM_SIZE
    return value if value > 0 else DEFAULT_TEAM_SIZE


def position_from_coords(y: float, team_size: str) -> PitchPosition:
    """
    Map a formation slot to a position category by its depth on the pitch.

    4-a-side has no goalkeeper, so every slot is an outfield category.
    """
    if team_size == "4":
        if y > 70:
            return PitchPosition.DEFENDER
        if y > 40:
            return PitchPosition.MIDFIELDER
        return PitchPosition.FORWARD
    if y > 80:
        return PitchPosition.GOALKEEPER
    if y > 60:
        return PitchPosition.DEFENDER
    if y > 30:
        return PitchPosition.MIDFIELDER
    return PitchPosition.FORWARD


def get_formation(team_size: str, index: int = 0) -> Optional[Formation]:
    formations = FORMATIONS.get(normalize_team_size(team_size), [])
    if not formations:
        return None
    return formations[index] if 0 <= index < len(formations) else formations[0]


def apply_formation(players: List[Player], team_size: str, formation_index: int = 0) -> List[Player]:
    """
    Place the first players of the list into a formation's slots.

    Remaining players are moved to the bench. The list is modified in place
    and returned for convenience.
    """
    formation = get_formation(team_size, formation_index)
    slots = formation.positions if formation else []
    code = normalize_team_size(team_size)
    for idx, player in enumerate(players):
        if idx < len(slots):
            x, y = slots[idx]
            player.place_on_pitch(PitchCoordinate(x, y), position_from_coords(y, code))
        else:
            player.move_to_bench()
    return players

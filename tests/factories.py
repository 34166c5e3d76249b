"""Builders for players, timers and sessions shared by the test modules."""
from typing import Iterable, List, Optional

from pitchsync.models import (
    PitchBoardState, PitchCoordinate, PitchPosition, Player, PositionSwap,
    SubstitutionEvent, TimerState
)

GK = PitchPosition.GOALKEEPER
DEF = PitchPosition.DEFENDER
MID = PitchPosition.MIDFIELDER
FWD = PitchPosition.FORWARD


def make_player(pid: str, positions: Iterable[PitchPosition] = (), *,
                at: Optional[PitchPosition] = None, coord=(50, 50),
                minutes: int = 0, name: Optional[str] = None,
                injured: bool = False) -> Player:
    """Bench player unless ``at`` gives the category occupied on the pitch."""
    player = Player(
        id=pid,
        name=pid if name is None else name,
        assigned_positions=list(positions),
        minutes_played=minutes,
        is_injured=injured,
    )
    if at is not None:
        player.place_on_pitch(PitchCoordinate(*coord), at)
    return player


def make_timer(*, minutes_per_half: int = 25, half: int = 1, elapsed: int = 0,
               running: bool = False, last_update: float = 0.0,
               team_id: Optional[str] = "team-1", team_name: Optional[str] = None,
               sound: bool = True) -> TimerState:
    return TimerState(
        minutes_per_half=minutes_per_half,
        current_half=half,
        elapsed_seconds=elapsed,
        is_running=running,
        sound_enabled=sound,
        last_update_time=last_update,
        team_id=team_id,
        team_name=team_name,
    )


def make_event(time: int, half: int, out: Player, inn: Player,
               swap: Optional[PositionSwap] = None) -> SubstitutionEvent:
    return SubstitutionEvent(time=time, half=half, player_out=out, player_in=inn,
                             position_swap=swap)


def make_state(players: List[Player], plan: Optional[List[SubstitutionEvent]] = None, *,
               team_id: str = "team-1", team_size: str = "7", active: bool = True,
               paused: bool = False) -> PitchBoardState:
    return PitchBoardState(
        team_id=team_id,
        players=players,
        team_size=team_size,
        auto_sub_plan=list(plan or []),
        auto_sub_active=active,
        auto_sub_paused=paused,
    )


def seven_a_side(bench: int = 3, bench_gk: bool = False) -> List[Player]:
    """Goalkeeper plus six flexible outfield players, with a flexible bench."""
    players = [make_player("gk", [GK], at=GK, coord=(50, 90))]
    categories = [DEF, DEF, MID, MID, FWD, FWD]
    for idx, category in enumerate(categories):
        players.append(make_player(f"p{idx}", at=category, coord=(10 * idx, 50)))
    for idx in range(bench):
        players.append(make_player(f"b{idx}"))
    if bench_gk:
        players.append(make_player("gk2", [GK]))
    return players

"""
PitchBoardState model for the PitchSync live game engine.

This module contains the full session snapshot: roster, substitution plan,
auto-substitution flags, goals and executed-substitution history. It is the
unit of local persistence and the unit mirrored to the remote record.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .formation import team_size_number
from .player import Player, PitchCoordinate
from .substitution import Goal, SubstitutionEvent
from ..utils import DEFAULT_TEAM_SIZE, ms_to_ts, ts_to_ms


@dataclass
class PitchBoardState:
    """
    Represents one live game session.

    Attributes:
        team_id: Team the session belongs to
        players: Full roster, on pitch and on the bench
        team_size: Size code ("4", "7", "9" or "11")
        selected_formation: Index into the formation table for the size
        ball_position: Ball marker on the board
        auto_sub_plan: Substitution plan, ordered by (half, time)
        auto_sub_active: Whether the plan is being followed
        auto_sub_paused: Whether following the plan is paused
        mock_mode: Demo session flag
        last_update_time: Epoch seconds of the last write
        last_timer_seconds: Game seconds at the last write (minutes catch-up)
        linked_event_id: Fixture this session records stats for
        executed_subs: Substitutions applied to the roster
        goals: Goals scored so far
    """
    team_id: str
    players: List[Player] = field(default_factory=list)
    team_size: str = str(DEFAULT_TEAM_SIZE)
    selected_formation: int = 0
    ball_position: PitchCoordinate = field(default_factory=lambda: PitchCoordinate(50, 50))
    auto_sub_plan: List[SubstitutionEvent] = field(default_factory=list)
    auto_sub_active: bool = False
    auto_sub_paused: bool = False
    mock_mode: bool = False
    last_update_time: float = 0.0
    last_timer_seconds: Optional[int] = None
    linked_event_id: Optional[str] = None
    executed_subs: List[SubstitutionEvent] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)

    @property
    def team_size_number(self) -> int:
        return team_size_number(self.team_size)

    def find_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def on_pitch_players(self) -> List[Player]:
        return [p for p in self.players if p.on_pitch]

    def bench_players(self) -> List[Player]:
        return [p for p in self.players if not p.on_pitch]

    def pending_subs(self) -> List[SubstitutionEvent]:
        return [sub for sub in self.auto_sub_plan if not sub.executed]

    def has_pending_subs(self) -> bool:
        return any(not sub.executed for sub in self.auto_sub_plan)

    def is_plan_running(self) -> bool:
        """Active, unpaused plan with at least one entry."""
        return self.auto_sub_active and not self.auto_sub_paused and bool(self.auto_sub_plan)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the stored pitch record layout.

        Returns:
            Dictionary using the camelCase keys of the pitch record
        """
        data: Dict[str, Any] = {
            "teamId": self.team_id,
            "players": [p.to_dict() for p in self.players],
            "teamSize": self.team_size,
            "selectedFormation": self.selected_formation,
            "ballPosition": self.ball_position.to_dict(),
            "autoSubPlan": [sub.to_dict() for sub in self.auto_sub_plan],
            "autoSubActive": self.auto_sub_active,
            "autoSubPaused": self.auto_sub_paused,
            "mockMode": self.mock_mode,
            "lastUpdateTime": ts_to_ms(self.last_update_time),
            "linkedEventId": self.linked_event_id,
            "executedSubs": [sub.to_dict() for sub in self.executed_subs],
            "goals": [g.to_dict() for g in self.goals],
        }
        if self.last_timer_seconds is not None:
            data["lastTimerSeconds"] = self.last_timer_seconds
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PitchBoardState":
        """
        Create PitchBoardState from a stored record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        last_timer_seconds = data.get("lastTimerSeconds")
        ball = PitchCoordinate.from_dict(data.get("ballPosition")) or PitchCoordinate(50, 50)
        return cls(
            team_id=str(data["teamId"]),
            players=[Player.from_dict(p) for p in data.get("players") or []],
            team_size=str(data.get("teamSize") or DEFAULT_TEAM_SIZE),
            selected_formation=int(data.get("selectedFormation") or 0),
            ball_position=ball,
            auto_sub_plan=[SubstitutionEvent.from_dict(s) for s in data.get("autoSubPlan") or []],
            auto_sub_active=bool(data.get("autoSubActive", False)),
            auto_sub_paused=bool(data.get("autoSubPaused", False)),
            mock_mode=bool(data.get("mockMode", False)),
            last_update_time=ms_to_ts(data.get("lastUpdateTime")),
            last_timer_seconds=int(last_timer_seconds) if last_timer_seconds is not None else None,
            linked_event_id=data.get("linkedEventId"),
            executed_subs=[SubstitutionEvent.from_dict(s) for s in data.get("executedSubs") or []],
            goals=[Goal.from_dict(g) for g in data.get("goals") or []],
        )

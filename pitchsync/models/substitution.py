"""Substitution and goal models for the PitchSync live game engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .player import Player, PitchPosition, require_mapping


@dataclass
class PositionSwap:
    """An on-pitch player who shifts category to make room for the incoming player."""
    player: Player
    from_position: PitchPosition
    to_position: PitchPosition

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player": self.player.to_dict(),
            "fromPosition": self.from_position.value,
            "toPosition": self.to_position.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PositionSwap"]:
        if not data:
            return None
        data = require_mapping(data, "Position swap")
        from_position = PitchPosition.parse(data.get("fromPosition"))
        to_position = PitchPosition.parse(data.get("toPosition"))
        if from_position is None or to_position is None:
            raise ValueError("Position swap needs both positions")
        return cls(
            player=Player.from_dict(data["player"]),
            from_position=from_position,
            to_position=to_position,
        )


@dataclass
class SubstitutionEvent:
    """
    A scheduled substitution.

    Attributes:
        time: Seconds into the half when the substitution is due
        half: 1 or 2
        player_out: Player leaving the pitch (snapshot at planning time)
        player_in: Player coming on (snapshot at planning time)
        position_swap: Optional third player changing category
        executed: Whether the event has been resolved
    """
    time: int
    half: int
    player_out: Player
    player_in: Player
    position_swap: Optional[PositionSwap] = None
    executed: bool = False

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.half, self.time)

    @property
    def identity(self) -> Tuple[int, int, str]:
        """Key used to find this event again in a freshly loaded plan."""
        return (self.half, self.time, self.player_out.id)

    def matches(self, other: "SubstitutionEvent") -> bool:
        return self.identity == other.identity

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "time": self.time,
            "half": self.half,
            "playerOut": self.player_out.to_dict(),
            "playerIn": self.player_in.to_dict(),
            "executed": self.executed,
        }
        if self.position_swap is not None:
            data["positionSwap"] = self.position_swap.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubstitutionEvent":
        data = require_mapping(data, "Substitution")
        half = int(data["half"])
        if half not in (1, 2):
            raise ValueError(f"Invalid half: {half}")
        return cls(
            time=int(data["time"]),
            half=half,
            player_out=Player.from_dict(data["playerOut"]),
            player_in=Player.from_dict(data["playerIn"]),
            position_swap=PositionSwap.from_dict(data.get("positionSwap")),
            executed=bool(data.get("executed", False)),
        )


@dataclass
class Goal:
    """A goal scored during the game (scorer unset for opponent goals)."""
    id: str
    time: int
    half: int
    is_opponent_goal: bool = False
    scorer_id: Optional[str] = None
    scorer_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scorerId": self.scorer_id,
            "scorerName": self.scorer_name,
            "time": self.time,
            "half": self.half,
            "isOpponentGoal": self.is_opponent_goal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        data = require_mapping(data, "Goal")
        return cls(
            id=str(data["id"]),
            time=int(data.get("time") or 0),
            half=int(data.get("half") or 1),
            is_opponent_goal=bool(data.get("isOpponentGoal", False)),
            scorer_id=data.get("scorerId"),
            scorer_name=data.get("scorerName"),
        )

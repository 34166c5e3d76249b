"""Dataclasses handed to external surfaces (prompts, summaries, forecasts)."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .player import Player
from .substitution import Goal, SubstitutionEvent


@dataclass
class DuePrompt:
    """A batch of substitutions due at the same moment, awaiting confirmation."""

    key: str
    primary: SubstitutionEvent
    additional: List[SubstitutionEvent] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)

    @property
    def batch(self) -> List[SubstitutionEvent]:
        return [self.primary, *self.additional]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "primary": self.primary.to_dict(),
            "additional": [sub.to_dict() for sub in self.additional],
            "players": [p.to_dict() for p in self.players],
        }


@dataclass
class FinishedGameSummary:
    """Everything the completion dialog needs once full time is reached."""

    players: List[Player]
    total_game_time: int
    half_duration: int
    team_size: int
    team_id: Optional[str] = None
    team_name: Optional[str] = None
    linked_event_id: Optional[str] = None
    executed_subs: List[SubstitutionEvent] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": [p.to_dict() for p in self.players],
            "totalGameTime": self.total_game_time,
            "halfDuration": self.half_duration,
            "teamSize": self.team_size,
            "teamId": self.team_id,
            "teamName": self.team_name,
            "linkedEventId": self.linked_event_id,
            "executedSubs": [sub.to_dict() for sub in self.executed_subs],
            "goals": [g.to_dict() for g in self.goals],
        }


@dataclass
class PlayerTimeForecast:
    """Predicted playing time for one player if a plan runs unchanged."""

    player: Player
    predicted_minutes: int
    percentage_of_game: int
    starts_on_pitch: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player.id,
            "name": self.player.name,
            "predictedMinutes": self.predicted_minutes,
            "percentageOfGame": self.percentage_of_game,
            "startsOnPitch": self.starts_on_pitch,
        }

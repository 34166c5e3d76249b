"""
Player model for the PitchSync live game engine.

This module contains the Player dataclass which represents a single squad member
during a live game: where they stand on the pitch (if anywhere), which position
categories they may fill, and how long they have played so far.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


def require_mapping(data: Any, what: str) -> Dict[str, Any]:
    """Return ``data`` if it is a record object, otherwise raise TypeError."""
    if not isinstance(data, dict):
        raise TypeError(f"{what} record must be an object, got {type(data).__name__}")
    return data


class PitchPosition(Enum):
    """Position categories a player can occupy on the pitch."""
    GOALKEEPER = "GK"
    DEFENDER = "DEF"
    MIDFIELDER = "MID"
    FORWARD = "FWD"

    @classmethod
    def parse(cls, value: Any) -> Optional["PitchPosition"]:
        """
        Parse a stored category code.

        Accepts the enum itself, the short code or the full category name.
        Unknown values return None.
        """
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        aliases = {
            "GOALKEEPER": cls.GOALKEEPER,
            "DEFENDER": cls.DEFENDER,
            "MIDFIELDER": cls.MIDFIELDER,
            "FORWARD": cls.FORWARD,
            "FOR": cls.FORWARD,
        }
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            return None

    @classmethod
    def parse_many(cls, values: Optional[Iterable[Any]]) -> List["PitchPosition"]:
        """Parse a list of codes, dropping unknown entries and duplicates."""
        parsed: List[PitchPosition] = []
        for value in values or []:
            position = cls.parse(value)
            if position is not None and position not in parsed:
                parsed.append(position)
        return parsed


@dataclass
class PitchCoordinate:
    """A 2-D pitch coordinate (0-100 on both axes, y grows towards own goal)."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PitchCoordinate"]:
        if data is None:
            return None
        data = require_mapping(data, "Coordinate")
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass
class Player:
    """
    Represents a squad member during a live game.

    A player is on the pitch iff ``position`` is set; ``current_pitch_position``
    is only meaningful (and only kept) while on the pitch.

    Attributes:
        id: Stable player identifier
        name: Display name
        number: Jersey number (optional)
        position: Pitch coordinate, None means on the bench
        assigned_positions: Position categories the player is eligible for;
            an empty list means "can play anywhere"
        current_pitch_position: Category currently occupied on the pitch
        minutes_played: Accumulated playing time in seconds
        is_injured: Injured players are never scheduled in from the bench
        is_fill_in: Temporary fill-in (not part of the regular roster)
    """
    id: str
    name: str = ""
    number: Optional[int] = None
    position: Optional[PitchCoordinate] = None
    assigned_positions: List[PitchPosition] = field(default_factory=list)
    current_pitch_position: Optional[PitchPosition] = None
    minutes_played: int = 0
    is_injured: bool = False
    is_fill_in: bool = False

    @property
    def on_pitch(self) -> bool:
        return self.position is not None

    def is_goalkeeper_only(self) -> bool:
        """True when the only eligible category is goalkeeper."""
        return self.assigned_positions == [PitchPosition.GOALKEEPER]

    def can_play(self, position: Optional[PitchPosition]) -> bool:
        """
        Check whether the player is eligible for a position category.

        Players without assigned positions may fill any slot.
        """
        if not self.assigned_positions:
            return True
        return position in self.assigned_positions

    def label(self) -> str:
        """Name for prompts, falling back to the jersey number."""
        if self.name:
            return self.name
        if self.number is not None:
            return f"#{self.number}"
        return self.id

    def move_to_bench(self) -> None:
        self.position = None
        self.current_pitch_position = None

    def place_on_pitch(self, coordinate: PitchCoordinate,
                       category: Optional[PitchPosition]) -> None:
        self.position = PitchCoordinate(coordinate.x, coordinate.y)
        self.current_pitch_position = category

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert player to the stored record layout.

        Returns:
            Dictionary using the camelCase keys of the pitch record
        """
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "position": self.position.to_dict() if self.position else None,
            "assignedPositions": [p.value for p in self.assigned_positions],
            "minutesPlayed": self.minutes_played,
            "isInjured": self.is_injured,
            "isFillIn": self.is_fill_in,
        }
        if self.on_pitch and self.current_pitch_position is not None:
            data["currentPitchPosition"] = self.current_pitch_position.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """
        Create player from a stored record.

        Raises:
            KeyError: If the id is missing
            TypeError, ValueError: If fields have the wrong shape
        """
        data = require_mapping(data, "Player")
        number = data.get("number")
        position = PitchCoordinate.from_dict(data.get("position"))
        player = cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            number=int(number) if number not in (None, "") else None,
            position=position,
            assigned_positions=PitchPosition.parse_many(data.get("assignedPositions")),
            current_pitch_position=PitchPosition.parse(data.get("currentPitchPosition")),
            minutes_played=int(data.get("minutesPlayed") or 0),
            is_injured=bool(data.get("isInjured", False)),
            is_fill_in=bool(data.get("isFillIn", False)),
        )
        if not player.on_pitch:
            player.current_pitch_position = None
        return player

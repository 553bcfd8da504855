"""Game state types for the party elimination game."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from game.rules import Phase

if TYPE_CHECKING:
    from game.minigames.base import Minigame


@dataclass
class Position:
    """2-D position on the display arena. Presentation only."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class Participant:
    """A connected player."""

    id: str
    name: str
    color: str
    position: Position = field(default_factory=Position)
    alive: bool = True
    score: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "alive": self.alive,
            "position": self.position.to_dict(),
            "score": self.score,
            "color": self.color,
        }


@dataclass
class GameSession:
    """Mutable session state owned by the engine."""

    phase: Phase = Phase.LOBBY
    round_number: int = 0
    minigame_index: int = -1  # index into MINIGAME_ORDER, -1 before the first round
    minigame: Optional["Minigame"] = None
    countdown_timer: int = 0
    elimination_timer: int = 0
    winner_id: Optional[str] = None

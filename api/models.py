"""Pydantic request/response models for the API."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from game.engine import GameEngine
from game.snapshot import full_state

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 50


class JoinMessage(BaseModel):
    """Participant socket: ask to join the lobby under a display name."""

    type: Literal["join"]
    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)


class InputMessage(BaseModel):
    """Participant socket: one action for the active minigame."""

    type: Literal["input"]
    action: dict[str, Any] = Field(
        ...,
        description="e.g. {type: tap}, {type: choose_side, choice: left}, "
        "{type: choose_parity, choice: even}, {type: choose_group, group: 2}",
    )


PlayerMessage = TypeAdapter(Annotated[Union[JoinMessage, InputMessage], Field(discriminator="type")])


class PositionPublic(BaseModel):
    x: float
    y: float


class ParticipantPublic(BaseModel):
    """Participant as shown on the display."""

    id: str
    name: str
    alive: bool
    position: PositionPublic
    score: int
    color: str


class GameStateResponse(BaseModel):
    """Full snapshot for GET /state and the display socket."""

    phase: str
    round_number: int
    current_game: str | None = None
    player_count: int
    alive_count: int
    players: list[ParticipantPublic]
    game_data: dict[str, Any] | None = Field(default=None, description="Public state of the active minigame")
    winner: ParticipantPublic | None = Field(default=None, description="Sole survivor once the game is won")


class AdminStartResponse(BaseModel):
    """Result of POST /admin/start. A failed guard is not an HTTP error."""

    started: bool
    phase: str
    reason: str | None = None


def game_state_to_public(engine: GameEngine) -> GameStateResponse:
    """Build the public response from the engine's full snapshot."""
    return GameStateResponse.model_validate(full_state(engine))

"""Game core for the party elimination game."""

from game.engine import GameEngine
from game.events import Audience, EventKind, Notification, Outbox
from game.roster import JoinRejected, RejectReason, Roster
from game.rules import Phase, MinigameKind, TICK_RATE
from game.snapshot import full_state, participant_state
from game.state import GameSession, Participant, Position

__all__ = [
    "GameEngine",
    "Audience",
    "EventKind",
    "Notification",
    "Outbox",
    "JoinRejected",
    "RejectReason",
    "Roster",
    "Phase",
    "MinigameKind",
    "TICK_RATE",
    "full_state",
    "participant_state",
    "GameSession",
    "Participant",
    "Position",
]

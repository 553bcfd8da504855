"""Outbound notifications: what the core tells its collaborators."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EventKind(str, Enum):
    """Type of outbound notification."""

    ROSTER_UPDATED = "roster_updated"
    PARTICIPANT_ADDED = "participant_added"
    PARTICIPANT_REMOVED = "participant_removed"
    PARTICIPANT_ELIMINATED = "participant_eliminated"
    YOU_WERE_ELIMINATED = "you_were_eliminated"
    YOU_FINISHED = "you_finished"
    ROUND_COUNTDOWN = "round_countdown"
    ROUND_ENDED = "round_ended"
    GAME_WON = "game_won"
    GAME_RESET = "game_reset"
    # reaction gate
    LIGHT_CHANGED = "light_changed"
    # rhythm tap
    BEAT = "beat"
    RHYTHM_FEEDBACK = "rhythm_feedback"
    # tug of war
    TEAM_ASSIGNED = "team_assigned"
    # parity pairs
    PARITY_PROMPT = "parity_prompt"
    PARITY_MATCH = "parity_match"
    PARITY_CHOSEN = "parity_chosen"
    PARITY_RESULT = "parity_result"
    # glass bridge
    BRIDGE_PROMPT = "bridge_prompt"
    BRIDGE_TURN = "bridge_turn"
    BRIDGE_STEP = "bridge_step"
    BRIDGE_RESULT = "bridge_result"
    # partition
    GROUP_TARGET = "group_target"
    GROUP_JOINED = "group_joined"
    GROUPS_UPDATED = "groups_updated"
    GROUP_RESULT = "group_result"
    # final duel
    DUEL_STARTED = "duel_started"
    DUEL_INFO = "duel_info"
    DUEL_SCORE = "duel_score"
    DUEL_RESULT = "duel_result"


class Audience(str, Enum):
    """Who receives a notification."""

    ALL = "all"
    DISPLAY = "display"
    PARTICIPANT = "participant"


@dataclass
class Notification:
    """A single outbound event, delivered by the transport after the call that raised it."""

    kind: EventKind
    audience: Audience
    payload: dict[str, Any] = field(default_factory=dict)
    identity: Optional[str] = None  # set only for Audience.PARTICIPANT

    def to_message(self) -> dict[str, Any]:
        return {"type": self.kind.value, "payload": self.payload}


class Outbox:
    """Collects notifications raised by the core until the transport drains them."""

    def __init__(self) -> None:
        self._pending: list[Notification] = []

    def broadcast(self, kind: EventKind, payload: Optional[dict[str, Any]] = None) -> None:
        """Notify every connected participant and the display."""
        self._pending.append(Notification(kind, Audience.ALL, payload or {}))

    def to_display(self, kind: EventKind, payload: Optional[dict[str, Any]] = None) -> None:
        """Notify the spectator display only."""
        self._pending.append(Notification(kind, Audience.DISPLAY, payload or {}))

    def send_to(self, identity: str, kind: EventKind, payload: Optional[dict[str, Any]] = None) -> None:
        """Notify one participant."""
        self._pending.append(Notification(kind, Audience.PARTICIPANT, payload or {}, identity=identity))

    def drain(self) -> list[Notification]:
        """Return pending notifications in the order raised and clear the queue."""
        pending, self._pending = self._pending, []
        return pending

    def __len__(self) -> int:
        return len(self._pending)

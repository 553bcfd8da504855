"""WebSocket connection hub: delivers core notifications to connected clients."""

import logging
from typing import Any, Iterable

from fastapi import WebSocket, WebSocketDisconnect

from game.engine import GameEngine
from game.events import Audience, Notification
from game.snapshot import full_state, participant_state

logger = logging.getLogger(__name__)


class ConnectionHub:
    """Participant sockets keyed by identity, plus the spectator display sockets."""

    def __init__(self) -> None:
        self.players: dict[str, WebSocket] = {}
        self.displays: list[WebSocket] = []

    def add_player(self, identity: str, ws: WebSocket) -> None:
        self.players[identity] = ws

    def remove_player(self, identity: str) -> None:
        self.players.pop(identity, None)

    def add_display(self, ws: WebSocket) -> None:
        self.displays.append(ws)

    def remove_display(self, ws: WebSocket) -> None:
        if ws in self.displays:
            self.displays.remove(ws)

    async def send(self, ws: WebSocket, message: dict[str, Any]) -> bool:
        """Send one message. A dead socket is dropped from the hub; its own handler calls leave."""
        try:
            await ws.send_json(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.warning("Send failed, dropping connection: %s", e)
            self._drop(ws)
            return False
        return True

    def _drop(self, ws: WebSocket) -> None:
        for identity, player_ws in list(self.players.items()):
            if player_ws is ws:
                del self.players[identity]
        self.remove_display(ws)

    async def deliver(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            message = notification.to_message()
            if notification.audience == Audience.ALL:
                for ws in list(self.players.values()) + list(self.displays):
                    await self.send(ws, message)
            elif notification.audience == Audience.DISPLAY:
                for ws in list(self.displays):
                    await self.send(ws, message)
            else:
                ws = self.players.get(notification.identity)
                if ws is not None:
                    await self.send(ws, message)

    async def send_frame(self, engine: GameEngine) -> None:
        """Per-tick refresh: full state to displays, own view to each participant."""
        if self.displays:
            frame = {"type": "game_state", "payload": full_state(engine)}
            for ws in list(self.displays):
                await self.send(ws, frame)
        for identity, ws in list(self.players.items()):
            view = participant_state(engine, identity)
            if view is not None:
                await self.send(ws, {"type": "player_state", "payload": view})

"""Final Duel: one-on-one tap races until a single participant is left."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

DUEL_SECONDS = 10
PAUSE_SECONDS = 3
WIN_BONUS = 50
SCORE_BROADCAST_TICKS = 5


@dataclass
class Duel:
    player_a: str
    player_b: str
    taps_a: int = 0
    taps_b: int = 0

    def loser(self) -> str:
        """A tie goes to player A: B loses whenever A's count is not smaller."""
        return self.player_b if self.taps_a >= self.taps_b else self.player_a

    def winner(self) -> str:
        return self.player_a if self.loser() == self.player_b else self.player_b


class FinalDuel(Minigame):
    kind = MinigameKind.FINAL_DUEL

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.duels: list[Duel] = []
        self.duel_index = -1
        self.duel_timer = 0
        self.pause_timer = 0
        self.in_duel = False
        self.in_pause = False

    def current_duel(self) -> Optional[Duel]:
        if 0 <= self.duel_index < len(self.duels):
            return self.duels[self.duel_index]
        return None

    def _begin(self) -> bool:
        if self.alive_count() <= 1:
            return self._finish()
        self._form_bracket()
        return self._next_duel()

    def _form_bracket(self) -> None:
        self.duels = [Duel(a, b) for a, b in self.random_pairs()]
        self.duel_index = -1

    def _next_duel(self) -> bool:
        while True:
            self.duel_index += 1
            if self.duel_index >= len(self.duels):
                if self.alive_count() <= 1:
                    return self._finish()
                self._form_bracket()
                continue
            duel = self.duels[self.duel_index]
            if self.roster.is_alive(duel.player_a) and self.roster.is_alive(duel.player_b):
                break

        player_a = self.roster.get(duel.player_a)
        player_b = self.roster.get(duel.player_b)
        player_a.position.x, player_a.position.y = 300, 400
        player_b.position.x, player_b.position.y = 700, 400

        duel.taps_a = 0
        duel.taps_b = 0
        self.duel_timer = seconds_to_ticks(DUEL_SECONDS)
        self.in_duel = True
        self.in_pause = False

        self.outbox.send_to(duel.player_a, EventKind.DUEL_STARTED, {"opponent": player_b.name, "duration": DUEL_SECONDS})
        self.outbox.send_to(duel.player_b, EventKind.DUEL_STARTED, {"opponent": player_a.name, "duration": DUEL_SECONDS})
        self.outbox.broadcast(
            EventKind.DUEL_INFO,
            {
                "player_a": {"id": player_a.id, "name": player_a.name},
                "player_b": {"id": player_b.id, "name": player_b.name},
                "duel_number": self.duel_index + 1,
                "total_duels": len(self.duels),
                "duration": DUEL_SECONDS,
            },
        )
        logger.info("Duel: %s vs %s", player_a.name, player_b.name)
        return False

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if not self.in_duel or action.get("type") != "tap":
            return False
        duel = self.current_duel()
        if duel is None:
            return False
        if identity == duel.player_a:
            duel.taps_a += 1
        elif identity == duel.player_b:
            duel.taps_b += 1
        return False

    def _step(self) -> bool:
        if self.in_pause:
            self.pause_timer -= 1
            if self.pause_timer <= 0:
                self.in_pause = False
                return self._next_duel()
            return False

        if self.in_duel:
            self.duel_timer -= 1
            duel = self.current_duel()
            if self.duel_timer % SCORE_BROADCAST_TICKS == 0:
                self.outbox.broadcast(
                    EventKind.DUEL_SCORE,
                    {
                        "taps_a": duel.taps_a,
                        "taps_b": duel.taps_b,
                        "time_remaining": ticks_to_seconds_ceil(self.duel_timer),
                    },
                )
            if self.duel_timer <= 0:
                return self._resolve(duel)
        return False

    def _resolve(self, duel: Duel) -> bool:
        self.in_duel = False
        loser, winner = duel.loser(), duel.winner()

        winner_participant = self.roster.get(winner)
        if winner_participant is not None:
            winner_participant.score += WIN_BONUS
        self.roster.eliminate(loser)

        logger.info(
            "%s (%d) beats %s (%d)",
            self.name_of(winner), max(duel.taps_a, duel.taps_b),
            self.name_of(loser), min(duel.taps_a, duel.taps_b),
        )
        self.outbox.broadcast(
            EventKind.DUEL_RESULT,
            {
                "winner": winner,
                "winner_name": self.name_of(winner) or "?",
                "loser": loser,
                "loser_name": self.name_of(loser) or "?",
                "taps_a": duel.taps_a,
                "taps_b": duel.taps_b,
            },
        )

        if self.alive_count() <= 1:
            return self._finish()
        self.in_pause = True
        self.pause_timer = seconds_to_ticks(PAUSE_SECONDS)
        return False

    def get_state(self) -> dict[str, Any]:
        duel = self.current_duel()
        return {
            "type": self.kind.value,
            "in_duel": self.in_duel,
            "current_duel": {
                "player_a": duel.player_a,
                "player_b": duel.player_b,
                "taps_a": duel.taps_a,
                "taps_b": duel.taps_b,
                "name_a": self.name_of(duel.player_a),
                "name_b": self.name_of(duel.player_b),
            } if duel else None,
            "duel_number": self.duel_index + 1,
            "total_duels": len(self.duels),
            "time_remaining": ticks_to_seconds_ceil(self.duel_timer) if self.in_duel else 0,
        }

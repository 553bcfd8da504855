"""Glass Bridge: one at a time, pick left or right at each step; the wrong pane breaks."""

import logging
from typing import Any, Optional

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

STEPS = 5
CHOICE_SECONDS = 8
PAUSE_SECONDS = 2
SAFE_BONUS = 20

LEFT = "left"
RIGHT = "right"
SIDES = (LEFT, RIGHT)


class GlassBridge(Minigame):
    kind = MinigameKind.GLASS_BRIDGE

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.bridge: list[str] = []  # safe side for each step
        self.order: list[str] = []
        self.turn_index = 0
        self.step = 0
        self.choice_timer = 0
        self.pause_timer = 0
        self.waiting_for_choice = False
        self.in_pause = False

    def current_player(self) -> Optional[str]:
        if self.turn_index < len(self.order):
            return self.order[self.turn_index]
        return None

    def _begin(self) -> bool:
        self.bridge = [self.rng.choice(SIDES) for _ in range(STEPS)]
        self.order = [p.id for p in self.alive_participants()]
        self.rng.shuffle(self.order)
        self.turn_index = 0
        self.step = 0

        for i, identity in enumerate(self.order):
            participant = self.roster.get(identity)
            participant.position.x, participant.position.y = 100 + i * 30, 400

        logger.info("Glass Bridge: %d players, %d steps", len(self.order), STEPS)
        return self._start_next_turn()

    def _start_next_turn(self) -> bool:
        if self.alive_count() <= 1:
            return self._finish()

        while True:
            while self.turn_index < len(self.order) and not self.roster.is_alive(self.order[self.turn_index]):
                self.turn_index += 1
            if self.turn_index < len(self.order):
                break
            # Everyone still standing has crossed this step
            self.step += 1
            self.turn_index = 0
            if self.step >= STEPS:
                return self._finish()

        current = self.order[self.turn_index]
        self.choice_timer = seconds_to_ticks(CHOICE_SECONDS)
        self.waiting_for_choice = True
        self.in_pause = False

        self.outbox.send_to(
            current,
            EventKind.BRIDGE_PROMPT,
            {"step": self.step + 1, "total_steps": STEPS, "time_limit": CHOICE_SECONDS},
        )
        self.outbox.broadcast(
            EventKind.BRIDGE_TURN,
            {
                "player_id": current,
                "player_name": self.name_of(current),
                "step": self.step + 1,
                "total_steps": STEPS,
            },
        )
        return False

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if not self.waiting_for_choice or identity != self.current_player():
            return False
        if action.get("type") != "choose_side" or action.get("choice") not in SIDES:
            return False
        self._process_choice(identity, action["choice"])
        return False

    def _process_choice(self, identity: str, choice: str) -> None:
        self.waiting_for_choice = False
        participant = self.roster.get(identity)

        if choice == self.bridge[self.step]:
            if participant is not None:
                participant.position.x = 300 + self.step * 120
                participant.score += SAFE_BONUS
            logger.info("%s stepped on safe glass", self.name_of(identity))
            self.outbox.send_to(identity, EventKind.BRIDGE_RESULT, {"result": "safe", "step": self.step})
            self.outbox.broadcast(EventKind.BRIDGE_STEP, {"player_id": identity, "result": "safe", "step": self.step})
        else:
            self.outbox.broadcast(EventKind.BRIDGE_STEP, {"player_id": identity, "result": "fall", "step": self.step})
            self.roster.eliminate(identity)

        self.in_pause = True
        self.pause_timer = seconds_to_ticks(PAUSE_SECONDS)
        self.turn_index += 1

    def _step(self) -> bool:
        if self.in_pause:
            self.pause_timer -= 1
            if self.pause_timer <= 0:
                self.in_pause = False
                return self._start_next_turn()
            return False

        if self.waiting_for_choice:
            self.choice_timer -= 1
            if self.choice_timer <= 0:
                self._process_choice(self.current_player(), self.rng.choice(SIDES))
        return False

    def get_state(self) -> dict[str, Any]:
        current = self.current_player()
        return {
            "type": self.kind.value,
            "current_step": self.step,
            "total_steps": STEPS,
            "current_player": current,
            "current_player_name": self.name_of(current),
            "waiting_for_choice": self.waiting_for_choice,
            "time_remaining": ticks_to_seconds_ceil(self.choice_timer) if self.waiting_for_choice else 0,
        }

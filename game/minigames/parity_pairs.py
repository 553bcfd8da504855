"""Marbles: pairs guess even or odd on a hidden draw; one of each pair goes home."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

CHOICE_SECONDS = 8
REVEAL_SECONDS = 3
PAUSE_SECONDS = 2
DRAW_RANGE = (1, 10)

EVEN = "even"
ODD = "odd"
CHOICES = (EVEN, ODD)

IDLE = "idle"
CHOOSING = "choosing"
REVEAL = "reveal"
PAUSE = "pause"


@dataclass
class Pairing:
    player_a: str
    player_b: str
    choice_a: Optional[str] = None
    choice_b: Optional[str] = None


class ParityPairs(Minigame):
    kind = MinigameKind.PARITY_PAIRS

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.pairs: list[Pairing] = []
        self.pair_index = -1
        self.phase = IDLE
        self.choice_timer = 0
        self.reveal_timer = 0
        self.pause_timer = 0
        self.drawn_number: Optional[int] = None

    def current_pair(self) -> Optional[Pairing]:
        if 0 <= self.pair_index < len(self.pairs):
            return self.pairs[self.pair_index]
        return None

    def _begin(self) -> bool:
        if self.alive_count() <= 1:
            return self._finish()
        self._form_pairs()
        return self._next_pair()

    def _form_pairs(self) -> None:
        self.pairs = [Pairing(a, b) for a, b in self.random_pairs()]
        self.pair_index = -1

    def _next_pair(self) -> bool:
        while True:
            self.pair_index += 1
            if self.pair_index >= len(self.pairs):
                if self.alive_count() <= 1:
                    return self._finish()
                self._form_pairs()
                continue
            pair = self.pairs[self.pair_index]
            # Skip pairs broken by a disconnect
            if self.roster.is_alive(pair.player_a) and self.roster.is_alive(pair.player_b):
                break

        player_a = self.roster.get(pair.player_a)
        player_b = self.roster.get(pair.player_b)
        player_a.position.x, player_a.position.y = 350, 400
        player_b.position.x, player_b.position.y = 650, 400

        pair.choice_a = None
        pair.choice_b = None
        self.drawn_number = None
        self.choice_timer = seconds_to_ticks(CHOICE_SECONDS)
        self.phase = CHOOSING

        self.outbox.send_to(
            pair.player_a, EventKind.PARITY_PROMPT, {"opponent": player_b.name, "time_limit": CHOICE_SECONDS}
        )
        self.outbox.send_to(
            pair.player_b, EventKind.PARITY_PROMPT, {"opponent": player_a.name, "time_limit": CHOICE_SECONDS}
        )
        self.outbox.broadcast(
            EventKind.PARITY_MATCH,
            {
                "player_a": {"id": player_a.id, "name": player_a.name},
                "player_b": {"id": player_b.id, "name": player_b.name},
                "match_number": self.pair_index + 1,
                "total_matches": len(self.pairs),
            },
        )
        logger.info("Marbles: %s vs %s", player_a.name, player_b.name)
        return False

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if self.phase != CHOOSING:
            return False
        if action.get("type") != "choose_parity" or action.get("choice") not in CHOICES:
            return False
        pair = self.current_pair()
        if pair is None:
            return False

        choice = action["choice"]
        if identity == pair.player_a:
            pair.choice_a = choice
        elif identity == pair.player_b:
            pair.choice_b = choice
        else:
            return False
        self.outbox.send_to(identity, EventKind.PARITY_CHOSEN, {"choice": choice})

        if pair.choice_a and pair.choice_b:
            self._resolve(pair)
        return False

    def _step(self) -> bool:
        if self.phase == CHOOSING:
            self.choice_timer -= 1
            if self.choice_timer <= 0:
                pair = self.current_pair()
                if pair.choice_a is None:
                    pair.choice_a = self.rng.choice(CHOICES)
                if pair.choice_b is None:
                    pair.choice_b = self.rng.choice(CHOICES)
                self._resolve(pair)
        elif self.phase == REVEAL:
            self.reveal_timer -= 1
            if self.reveal_timer <= 0:
                if self.alive_count() <= 1:
                    return self._finish()
                self.phase = PAUSE
                self.pause_timer = seconds_to_ticks(PAUSE_SECONDS)
        elif self.phase == PAUSE:
            self.pause_timer -= 1
            if self.pause_timer <= 0:
                return self._next_pair()
        return False

    def _resolve(self, pair: Pairing) -> None:
        self.drawn_number = self.rng.randint(*DRAW_RANGE)
        correct = EVEN if self.drawn_number % 2 == 0 else ODD
        a_correct = pair.choice_a == correct
        b_correct = pair.choice_b == correct

        if a_correct and not b_correct:
            loser = pair.player_b
        elif b_correct and not a_correct:
            loser = pair.player_a
        else:
            loser = pair.player_a if self.coin_flip() else pair.player_b

        self.outbox.broadcast(
            EventKind.PARITY_RESULT,
            {
                "drawn_number": self.drawn_number,
                "correct": correct,
                "choice_a": pair.choice_a,
                "choice_b": pair.choice_b,
                "loser": loser,
                "loser_name": self.name_of(loser),
            },
        )
        self.roster.eliminate(loser)
        self.phase = REVEAL
        self.reveal_timer = seconds_to_ticks(REVEAL_SECONDS)

    def get_state(self) -> dict[str, Any]:
        pair = self.current_pair()
        return {
            "type": self.kind.value,
            "phase": self.phase,
            "current_match": {
                "player_a": pair.player_a,
                "player_b": pair.player_b,
                "name_a": self.name_of(pair.player_a),
                "name_b": self.name_of(pair.player_b),
            } if pair else None,
            "match_number": self.pair_index + 1,
            "total_matches": len(self.pairs),
            "drawn_number": self.drawn_number if self.phase == REVEAL else None,
            "time_remaining": ticks_to_seconds_ceil(self.choice_timer) if self.phase == CHOOSING else 0,
        }

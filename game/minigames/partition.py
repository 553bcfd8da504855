"""Merry-Go-Round: form groups of exactly the announced size or be eliminated."""

import logging
import math
from typing import Any, Optional

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

ROUNDS = 3
CHOICE_SECONDS = 10
MAX_GROUPS = 6
PAUSE_SECONDS = 3
MIN_TARGET = 2
MAX_TARGET = 5


def eliminating_sizes(count: int) -> list[int]:
    """Group sizes that cannot evenly split count, so at least one participant is left out."""
    sizes = [s for s in range(MIN_TARGET, min(count - 1, MAX_TARGET) + 1) if count % s != 0]
    return sizes or [MIN_TARGET]


class Partition(Minigame):
    kind = MinigameKind.PARTITION

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.round = 0
        self.target_size = 0
        self.num_groups = 0
        self.groups: dict[int, list[str]] = {}
        self.player_groups: dict[str, int] = {}
        self.choice_timer = 0
        self.pause_timer = 0
        self.waiting_for_choice = False
        self.in_pause = False

    def _begin(self) -> bool:
        self.round = 0
        return self._start_new_round()

    def _start_new_round(self) -> bool:
        self.round += 1
        if self.round > ROUNDS or self.alive_count() <= 1:
            return self._finish()

        count = self.alive_count()
        self.target_size = self.rng.choice(eliminating_sizes(count))
        self.num_groups = min(MAX_GROUPS, math.ceil(count / self.target_size) + 1)
        self.groups = {group: [] for group in range(1, self.num_groups + 1)}
        self.player_groups = {}
        self.choice_timer = seconds_to_ticks(CHOICE_SECONDS)
        self.waiting_for_choice = True
        self.in_pause = False

        self.outbox.broadcast(
            EventKind.GROUP_TARGET,
            {
                "target_size": self.target_size,
                "num_groups": self.num_groups,
                "round": self.round,
                "total_rounds": ROUNDS,
                "time_limit": CHOICE_SECONDS,
            },
        )
        logger.info("Merry-Go-Round round %d: groups of %d (%d groups)", self.round, self.target_size, self.num_groups)
        return False

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if not self.waiting_for_choice or action.get("type") != "choose_group":
            return False
        group = _as_group(action.get("group"))
        if group is None or group not in self.groups:
            return False

        previous = self.player_groups.get(identity)
        if previous is not None:
            self.groups[previous].remove(identity)
        self.groups[group].append(identity)
        self.player_groups[identity] = group

        slot_width = 800 / self.num_groups
        participant.position.x = 100 + (group - 1) * slot_width + self.rng.random() * 80
        participant.position.y = 300 + self.rng.random() * 200

        self.outbox.send_to(identity, EventKind.GROUP_JOINED, {"group": group})
        self.outbox.broadcast(EventKind.GROUPS_UPDATED, self.groups_summary())
        return False

    def _step(self) -> bool:
        if self.in_pause:
            self.pause_timer -= 1
            if self.pause_timer <= 0:
                return self._start_new_round()
            return False

        if self.waiting_for_choice:
            self.choice_timer -= 1
            if self.choice_timer <= 0:
                return self.resolve_round()
        return False

    def resolve_round(self) -> bool:
        """Eliminate everyone without a group and everyone in a group of the wrong size."""
        self.waiting_for_choice = False

        for participant in self.alive_participants():
            if participant.id not in self.player_groups:
                self.roster.eliminate(participant.id)

        for members in self.groups.values():
            if len(members) != self.target_size:
                for identity in members:
                    self.roster.eliminate(identity)

        alive_count = self.alive_count()
        logger.info("Merry-Go-Round round %d resolved: %d survivors", self.round, alive_count)
        self.outbox.broadcast(
            EventKind.GROUP_RESULT,
            {"target_size": self.target_size, "groups": self.groups_summary(), "alive_count": alive_count},
        )

        if alive_count <= 1:
            return self._finish()
        self.in_pause = True
        self.pause_timer = seconds_to_ticks(PAUSE_SECONDS)
        return False

    def groups_summary(self) -> dict[str, Any]:
        summary = {}
        for group, members in self.groups.items():
            summary[str(group)] = {
                "count": len(members),
                "members": [self.name_of(identity) or "?" for identity in members],
            }
        return {"groups": summary, "target_size": self.target_size}

    def get_state(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "target_size": self.target_size,
            "num_groups": self.num_groups,
            "round": self.round,
            "total_rounds": ROUNDS,
            "groups": self.groups_summary(),
            "waiting_for_choice": self.waiting_for_choice,
            "time_remaining": ticks_to_seconds_ceil(self.choice_timer) if self.waiting_for_choice else 0,
        }


def _as_group(value: Any) -> Optional[int]:
    # bool is an int subclass; True is not group 1
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None

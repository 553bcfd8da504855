"""Dalgona: tap on the beat to carve the shape; three cracks and you are out."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from game.events import EventKind
from game.minigames.base import Minigame
from game.rules import MinigameKind, seconds_to_ticks, ticks_to_seconds_ceil
from game.state import Participant

logger = logging.getLogger(__name__)

GAME_SECONDS = 25
BEAT_SECONDS = 1.2
TOLERANCE_SECONDS = 0.35
TARGET_SCORE = 12
MAX_CRACKS = 3


@dataclass
class TapProgress:
    """Round-local progress for one participant."""

    score: int = 0
    cracks: int = 0
    last_credited_beat: int = -1


class RhythmTap(Minigame):
    kind = MinigameKind.RHYTHM_TAP

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.game_timer = 0
        self.max_game_ticks = seconds_to_ticks(GAME_SECONDS)
        self.beat_interval = seconds_to_ticks(BEAT_SECONDS)
        self.tolerance = seconds_to_ticks(TOLERANCE_SECONDS)
        self.beat_timer = 0
        self.current_beat = 0
        self.progress: dict[str, TapProgress] = {}

    def _begin(self) -> bool:
        self.progress = {}
        for participant in self.alive_participants():
            self.progress[participant.id] = TapProgress()
            participant.position.x = 100 + self.rng.random() * 800
            participant.position.y = 200 + self.rng.random() * 300
        self.game_timer = 0
        self.beat_timer = self.beat_interval
        self.current_beat = 0
        logger.info("Target: %d taps on the beat", TARGET_SCORE)
        return False

    def nearest_beat(self) -> Optional[int]:
        """Index of the beat within tolerance of now, or None when between beats."""
        ticks_since = self.beat_interval - self.beat_timer
        ticks_until = self.beat_timer
        if ticks_since <= self.tolerance:
            return self.current_beat
        if ticks_until <= self.tolerance:
            return self.current_beat + 1
        return None

    def _on_input(self, identity: str, participant: Participant, action: dict[str, Any]) -> bool:
        if action.get("type") != "tap":
            return False
        progress = self.progress.get(identity)
        if progress is None or progress.score >= TARGET_SCORE:
            return False

        beat = self.nearest_beat()
        if beat is not None and beat != progress.last_credited_beat:
            progress.score += 1
            progress.last_credited_beat = beat
            participant.score += 1
            participant.position.x = 100 + (progress.score / TARGET_SCORE) * 800
            self.outbox.send_to(
                identity,
                EventKind.RHYTHM_FEEDBACK,
                {"result": "good", "score": progress.score, "target": TARGET_SCORE},
            )
            if progress.score >= TARGET_SCORE:
                self.outbox.send_to(identity, EventKind.YOU_FINISHED, {"message": "Shape carved!"})
            return False

        progress.cracks += 1
        self.outbox.send_to(
            identity,
            EventKind.RHYTHM_FEEDBACK,
            {"result": "crack", "cracks": progress.cracks, "max_cracks": MAX_CRACKS},
        )
        if progress.cracks >= MAX_CRACKS:
            self.roster.eliminate(identity)
        return False

    def _step(self) -> bool:
        self.game_timer += 1

        self.beat_timer -= 1
        if self.beat_timer <= 0:
            self.current_beat += 1
            self.beat_timer = self.beat_interval
            self.outbox.broadcast(EventKind.BEAT, {"beat": self.current_beat})

        if self.game_timer >= self.max_game_ticks:
            for identity, progress in self.progress.items():
                if progress.score < TARGET_SCORE:
                    self.roster.eliminate(identity)
            return self._finish()

        if self.alive_count() <= 1:
            return self._finish()
        return False

    def get_state(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "time_remaining": ticks_to_seconds_ceil(self.max_game_ticks - self.game_timer),
            "target_score": TARGET_SCORE,
            "beat_interval": BEAT_SECONDS,
            "beat": self.current_beat,
        }

"""Game engine: the round scheduler, phase controller and input router."""

import logging
import random
from typing import Any, Optional, Sequence

from game.events import EventKind, Outbox
from game.minigames import MINIGAME_ORDER, Minigame
from game.roster import Roster
from game.rules import (
    COUNTDOWN_SECONDS,
    ELIMINATION_PAUSE_SECONDS,
    MIN_PLAYERS,
    Phase,
    seconds_to_ticks,
)
from game.state import GameSession, Participant

logger = logging.getLogger(__name__)


class GameEngine:
    """
    Owns the session, the roster and the active minigame.

    Every public method runs to completion and leaves its notifications in
    ``outbox`` for the transport to deliver.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        minigames: Sequence[type[Minigame]] = MINIGAME_ORDER,
    ):
        self.rng = rng or random.Random(seed)
        self.outbox = Outbox()
        self.roster = Roster(self.outbox, self.rng)
        self.session = GameSession()
        self.minigames = tuple(minigames)

    # -- read-only views -------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.session.phase

    @property
    def round_number(self) -> int:
        return self.session.round_number

    @property
    def minigame(self) -> Optional[Minigame]:
        return self.session.minigame

    def current_minigame_name(self) -> Optional[str]:
        return self.session.minigame.name if self.session.minigame else None

    def winner(self) -> Optional[Participant]:
        if self.session.winner_id is None:
            return None
        return self.roster.get(self.session.winner_id)

    # -- collaborator commands -------------------------------------------

    def join(self, identity: str, name: str) -> Participant:
        """Add a participant. Raises JoinRejected when a guard fails."""
        return self.roster.join(identity, name, self.session.phase)

    def leave(self, identity: str) -> Optional[Participant]:
        return self.roster.leave(identity)

    def start_game(self) -> bool:
        """LOBBY -> COUNTDOWN. Returns False and changes nothing when the guard fails."""
        if self.session.phase != Phase.LOBBY:
            logger.info("Start ignored: phase is %s", self.session.phase.value)
            return False
        if self.roster.count() < MIN_PLAYERS:
            logger.info("Start ignored: at least %d participants are needed", MIN_PLAYERS)
            return False

        logger.info("Game started with %d participants", self.roster.count())
        self.session.round_number = 0
        self.session.minigame_index = -1
        self.session.winner_id = None
        self._next_round()
        return True

    def reset_game(self) -> None:
        """Drop any round in progress and return everyone to the lobby."""
        self.session = GameSession()
        self.roster.reset_all()
        self.outbox.broadcast(EventKind.GAME_RESET)
        logger.info("Game reset (%d participants)", self.roster.count())

    def route_input(self, identity: str, action: Any) -> None:
        """Forward an action to the active minigame when the sender may act."""
        if self.session.phase != Phase.PLAYING or self.session.minigame is None:
            return
        participant = self.roster.get(identity)
        if participant is None or not participant.alive:
            return
        if not isinstance(action, dict):
            return
        if self.session.minigame.handle_input(identity, participant, action):
            self._end_round()

    def tick(self) -> None:
        """Advance the session by exactly one tick."""
        session = self.session
        if session.phase == Phase.COUNTDOWN:
            session.countdown_timer -= 1
            if session.countdown_timer <= 0:
                self._start_minigame()
        elif session.phase == Phase.PLAYING:
            if session.minigame is not None and session.minigame.update():
                self._end_round()
        elif session.phase == Phase.ELIMINATION_PAUSE:
            session.elimination_timer -= 1
            if session.elimination_timer <= 0:
                self._next_round()

    # -- transitions -----------------------------------------------------

    def _next_round(self) -> None:
        session = self.session
        session.minigame_index += 1
        session.round_number += 1

        if self.roster.alive_count() <= 1 or session.minigame_index >= len(self.minigames):
            self._declare_victory()
            return

        minigame = self.minigames[session.minigame_index](self.roster, self.outbox, self.rng)
        session.minigame = minigame
        session.phase = Phase.COUNTDOWN
        session.countdown_timer = seconds_to_ticks(COUNTDOWN_SECONDS)

        logger.info("Next game: %s (round %d)", minigame.name, session.round_number)
        self.outbox.broadcast(
            EventKind.ROUND_COUNTDOWN,
            {"game_name": minigame.name, "round_number": session.round_number, "duration": COUNTDOWN_SECONDS},
        )

    def _start_minigame(self) -> None:
        self.session.phase = Phase.PLAYING
        logger.info("Round %d started", self.session.round_number)
        if self.session.minigame.start():
            self._end_round()

    def _end_round(self) -> None:
        session = self.session
        session.phase = Phase.ELIMINATION_PAUSE
        session.elimination_timer = seconds_to_ticks(ELIMINATION_PAUSE_SECONDS)

        alive_count = self.roster.alive_count()
        logger.info("Round %d over: %d survivors", session.round_number, alive_count)
        self.outbox.to_display(
            EventKind.ROUND_ENDED,
            {"alive_count": alive_count, "round_number": session.round_number},
        )

    def _declare_victory(self) -> None:
        session = self.session
        session.phase = Phase.VICTORY
        session.minigame = None
        alive = self.roster.alive()
        winner = alive[0] if len(alive) == 1 else None
        session.winner_id = winner.id if winner else None

        logger.info("%s won the game", winner.name if winner else "Nobody")
        self.outbox.broadcast(EventKind.GAME_WON, {"winner": winner.to_dict() if winner else None})

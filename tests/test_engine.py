"""Unit tests for the game engine and the state snapshots."""

import pytest

from game.engine import GameEngine
from game.events import Audience, EventKind
from game.minigames import (
    FinalDuel,
    GlassBridge,
    Minigame,
    ParityPairs,
    Partition,
    ReactionGate,
    RhythmTap,
    TugOfWar,
)
from game.minigames import parity_pairs, reaction_gate, rhythm_tap
from game.roster import JoinRejected, RejectReason
from game.rules import COUNTDOWN_SECONDS, ELIMINATION_PAUSE_SECONDS, MinigameKind, Phase, seconds_to_ticks
from game.snapshot import full_state, participant_state

COUNTDOWN_TICKS = seconds_to_ticks(COUNTDOWN_SECONDS)
PAUSE_TICKS = seconds_to_ticks(ELIMINATION_PAUSE_SECONDS)


class _Scripted(Minigame):
    """Finishes after three ticks, or at once on a "finish" action."""

    kind = MinigameKind.TUG_OF_WAR
    length = 3

    def __init__(self, roster, outbox, rng=None):
        super().__init__(roster, outbox, rng)
        self.ticks = 0
        self.inputs = []

    def _begin(self):
        self.ticks = 0
        self.inputs = []
        return False

    def _step(self):
        self.ticks += 1
        if self.ticks >= self.length:
            return self._finish()
        return False

    def _on_input(self, identity, participant, action):
        self.inputs.append((identity, action))
        if action.get("type") == "finish":
            return self._finish()
        return False

    def get_state(self):
        return {"type": "scripted", "ticks": self.ticks}


class _LastOneStanding(Minigame):
    """Eliminates everyone but the first participant and finishes on start."""

    kind = MinigameKind.FINAL_DUEL

    def _begin(self):
        for participant in self.alive_participants()[1:]:
            self.roster.eliminate(participant.id)
        return self._finish()

    def _step(self):
        return False

    def _on_input(self, identity, participant, action):
        return False

    def get_state(self):
        return {"type": "last_one_standing"}


def _make_engine(n: int, minigames=(_Scripted, _Scripted), seed: int = 11) -> GameEngine:
    engine = GameEngine(seed=seed, minigames=minigames)
    for i in range(n):
        engine.join(f"p{i}", f"Player{i}")
    engine.outbox.drain()
    return engine


def _tick(engine: GameEngine, n: int) -> None:
    for _ in range(n):
        engine.tick()


def _to_playing(engine: GameEngine) -> None:
    assert engine.start_game()
    _tick(engine, COUNTDOWN_TICKS)
    assert engine.phase == Phase.PLAYING


# -- scheduler ------------------------------------------------------------


def test_start_needs_two_participants():
    engine = _make_engine(1)
    assert engine.start_game() is False
    assert engine.phase == Phase.LOBBY
    assert engine.round_number == 0
    assert len(engine.outbox) == 0

    engine.join("p1", "Player1")
    engine.outbox.drain()
    assert engine.start_game() is True
    assert engine.phase == Phase.COUNTDOWN
    assert engine.round_number == 1
    sent = engine.outbox.drain()
    countdown = next(n for n in sent if n.kind == EventKind.ROUND_COUNTDOWN)
    assert countdown.audience == Audience.ALL
    assert countdown.payload == {
        "game_name": engine.current_minigame_name(),
        "round_number": 1,
        "duration": COUNTDOWN_SECONDS,
    }


def test_start_ignored_outside_lobby():
    engine = _make_engine(3)
    assert engine.start_game()
    assert engine.start_game() is False
    assert engine.round_number == 1
    assert engine.phase == Phase.COUNTDOWN


def test_join_rejected_once_started():
    engine = _make_engine(2)
    engine.start_game()
    with pytest.raises(JoinRejected) as exc:
        engine.join("late", "Latecomer")
    assert exc.value.reason == RejectReason.GAME_IN_PROGRESS
    assert engine.roster.count() == 2


def test_countdown_lasts_exactly_five_seconds():
    engine = _make_engine(2)
    engine.start_game()
    _tick(engine, COUNTDOWN_TICKS - 1)
    assert engine.phase == Phase.COUNTDOWN
    assert engine.minigame.finished is False
    engine.tick()
    assert engine.phase == Phase.PLAYING
    assert engine.minigame.participant_ids == ["p0", "p1"]


def test_round_completion_pauses_then_advances():
    engine = _make_engine(3)
    _to_playing(engine)
    first = engine.minigame
    _tick(engine, _Scripted.length)
    assert engine.phase == Phase.ELIMINATION_PAUSE
    ended = [n for n in engine.outbox.drain() if n.kind == EventKind.ROUND_ENDED]
    assert len(ended) == 1
    assert ended[0].audience == Audience.DISPLAY
    assert ended[0].payload == {"alive_count": 3, "round_number": 1}

    _tick(engine, PAUSE_TICKS - 1)
    assert engine.phase == Phase.ELIMINATION_PAUSE
    engine.tick()
    assert engine.phase == Phase.COUNTDOWN
    assert engine.round_number == 2
    assert engine.minigame is not first


def test_minigame_finishing_on_start_goes_straight_to_pause():
    engine = _make_engine(3, minigames=(_LastOneStanding,))
    engine.start_game()
    _tick(engine, COUNTDOWN_TICKS)
    assert engine.phase == Phase.ELIMINATION_PAUSE
    assert engine.roster.alive_count() == 1


def test_sole_survivor_wins():
    engine = _make_engine(4, minigames=(_LastOneStanding, _Scripted))
    engine.start_game()
    _tick(engine, COUNTDOWN_TICKS + PAUSE_TICKS)
    assert engine.phase == Phase.VICTORY
    survivor = engine.roster.alive()[0]
    assert engine.winner() is survivor
    won = [n for n in engine.outbox.drain() if n.kind == EventKind.GAME_WON]
    assert won[0].payload["winner"]["id"] == survivor.id


def test_order_exhausted_without_single_survivor():
    engine = _make_engine(3, minigames=(_Scripted,))
    _to_playing(engine)
    _tick(engine, _Scripted.length + PAUSE_TICKS)
    assert engine.phase == Phase.VICTORY
    assert engine.winner() is None
    won = [n for n in engine.outbox.drain() if n.kind == EventKind.GAME_WON]
    assert won[0].payload == {"winner": None}
    assert engine.minigame is None
    assert full_state(engine)["current_game"] is None
    assert full_state(engine)["game_data"] is None

    # Victory is terminal until reset
    _tick(engine, 100)
    assert engine.phase == Phase.VICTORY


def test_default_order():
    engine = GameEngine(seed=1)
    assert engine.minigames == (ReactionGate, RhythmTap, TugOfWar, ParityPairs, GlassBridge, Partition, FinalDuel)


# -- input router ---------------------------------------------------------


def test_inputs_ignored_outside_playing():
    engine = _make_engine(2)
    engine.route_input("p0", {"type": "tap"})
    engine.start_game()
    engine.route_input("p0", {"type": "finish"})
    assert engine.phase == Phase.COUNTDOWN
    _tick(engine, COUNTDOWN_TICKS)
    assert engine.minigame.inputs == []


def test_inputs_forwarded_while_playing():
    engine = _make_engine(3)
    _to_playing(engine)
    engine.route_input("p1", {"type": "tap"})
    assert engine.minigame.inputs == [("p1", {"type": "tap"})]


def test_inputs_dropped_for_eliminated_unknown_or_malformed():
    engine = _make_engine(3)
    _to_playing(engine)
    engine.roster.eliminate("p2")
    engine.route_input("p2", {"type": "tap"})
    engine.route_input("ghost", {"type": "tap"})
    engine.route_input("p0", "tap")
    engine.route_input("p0", None)
    assert engine.minigame.inputs == []


def test_input_that_completes_round_ends_it():
    engine = _make_engine(3)
    _to_playing(engine)
    engine.route_input("p0", {"type": "finish"})
    assert engine.phase == Phase.ELIMINATION_PAUSE
    # A second completing input is a no-op
    engine.outbox.drain()
    engine.route_input("p1", {"type": "finish"})
    assert len(engine.outbox) == 0


def test_leave_mid_round_keeps_game_running():
    engine = _make_engine(3)
    _to_playing(engine)
    engine.leave("p1")
    assert engine.roster.count() == 2
    _tick(engine, _Scripted.length)
    assert engine.phase == Phase.ELIMINATION_PAUSE


# -- reset ----------------------------------------------------------------


def test_reset_returns_everyone_to_lobby():
    engine = _make_engine(4, minigames=(_LastOneStanding,))
    engine.start_game()
    _tick(engine, COUNTDOWN_TICKS + PAUSE_TICKS)
    assert engine.phase == Phase.VICTORY
    engine.outbox.drain()

    engine.reset_game()
    assert engine.phase == Phase.LOBBY
    assert engine.round_number == 0
    assert engine.minigame is None
    assert engine.winner() is None
    assert engine.roster.count() == 4
    assert all(p.alive and p.score == 0 for p in engine.roster.all())
    assert EventKind.GAME_RESET in [n.kind for n in engine.outbox.drain()]

    # A new game can start straight away
    assert engine.start_game()


def test_reset_mid_round():
    engine = _make_engine(3)
    _to_playing(engine)
    engine.reset_game()
    assert engine.phase == Phase.LOBBY
    _tick(engine, 10)
    assert engine.phase == Phase.LOBBY


# -- snapshots ------------------------------------------------------------


def test_full_state_in_lobby():
    engine = _make_engine(2)
    state = full_state(engine)
    assert state["phase"] == "LOBBY"
    assert state["round_number"] == 0
    assert state["current_game"] is None
    assert state["player_count"] == 2
    assert state["alive_count"] == 2
    assert state["game_data"] is None
    assert state["winner"] is None
    assert {p["name"] for p in state["players"]} == {"Player0", "Player1"}
    assert set(state["players"][0]) == {"id", "name", "alive", "position", "score", "color"}


def test_snapshots_do_not_change_state():
    engine = _make_engine(3, minigames=(ReactionGate,))
    _to_playing(engine)
    engine.outbox.drain()
    first = full_state(engine)
    second = full_state(engine)
    assert first == second
    assert participant_state(engine, "p0") == participant_state(engine, "p0")
    assert len(engine.outbox) == 0
    assert engine.phase == Phase.PLAYING
    assert first["current_game"] == "Red Light, Green Light"
    assert first["game_data"]["type"] == "reaction_gate"


def test_participant_state():
    engine = _make_engine(2, minigames=(ReactionGate,))
    assert participant_state(engine, "ghost") is None
    view = participant_state(engine, "p0")
    assert view["alive"] is True
    assert view["game_phase"] == "LOBBY"
    assert view["current_game"] is None
    assert view["light"] is None

    _to_playing(engine)
    view = participant_state(engine, "p0")
    assert view["light"] == reaction_gate.GREEN
    assert view["position"]["x"] == reaction_gate.START_LINE


# -- full game ------------------------------------------------------------


def _play(engine: GameEngine) -> None:
    """Scripted participants that play every minigame sensibly."""
    if engine.phase != Phase.PLAYING:
        return
    game = engine.minigame
    alive = engine.roster.alive()

    if isinstance(game, ReactionGate):
        if game.light == reaction_gate.GREEN and game.grace_timer == 0:
            for p in alive:
                engine.route_input(p.id, {"type": "tap"})
    elif isinstance(game, RhythmTap):
        beat = game.nearest_beat()
        for p in alive:
            progress = game.progress.get(p.id)
            if (
                progress is not None
                and beat is not None
                and beat != progress.last_credited_beat
                and progress.score < rhythm_tap.TARGET_SCORE
            ):
                engine.route_input(p.id, {"type": "tap"})
    elif isinstance(game, (TugOfWar, FinalDuel)):
        for p in alive:
            engine.route_input(p.id, {"type": "tap"})
    elif isinstance(game, ParityPairs):
        pair = game.current_pair()
        if game.phase == parity_pairs.CHOOSING and pair is not None:
            engine.route_input(pair.player_a, {"type": "choose_parity", "choice": "even"})
            engine.route_input(pair.player_b, {"type": "choose_parity", "choice": "even"})
    elif isinstance(game, GlassBridge):
        if game.waiting_for_choice:
            engine.route_input(game.current_player(), {"type": "choose_side", "choice": "left"})
    elif isinstance(game, Partition):
        if game.waiting_for_choice:
            for p in alive:
                if p.id not in game.player_groups:
                    engine.route_input(p.id, {"type": "choose_group", "group": 1})


def test_full_game_with_eight_participants():
    engine = GameEngine(seed=2024)
    for i in range(8):
        engine.join(f"p{i}", f"Player{i}")
    assert engine.start_game()

    alive_counts = [engine.roster.alive_count()]
    kinds = []
    for _ in range(50000):
        _play(engine)
        engine.tick()
        alive_counts.append(engine.roster.alive_count())
        kinds.extend(n.kind for n in engine.outbox.drain())
        if engine.phase == Phase.VICTORY:
            break

    assert engine.phase == Phase.VICTORY
    assert alive_counts == sorted(alive_counts, reverse=True)
    assert engine.roster.alive_count() == 1
    assert engine.winner().id == engine.roster.alive()[0].id
    assert kinds.count(EventKind.GAME_WON) == 1
    assert kinds.count(EventKind.ROUND_ENDED) == engine.round_number - 1

    engine.reset_game()
    assert engine.phase == Phase.LOBBY
    assert engine.roster.alive_count() == 8
    assert all(p.score == 0 for p in engine.roster.all())

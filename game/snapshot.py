"""Read-only projections of the engine for the display and for each participant."""

from typing import Any, Optional

from game.engine import GameEngine


def full_state(engine: GameEngine) -> dict[str, Any]:
    """Everything the spectator display needs to draw one frame."""
    minigame = engine.minigame
    winner = engine.winner()
    return {
        "phase": engine.phase.value,
        "round_number": engine.round_number,
        "current_game": engine.current_minigame_name(),
        "player_count": engine.roster.count(),
        "alive_count": engine.roster.alive_count(),
        "players": [p.to_dict() for p in engine.roster.all()],
        "game_data": minigame.get_state() if minigame else None,
        "winner": winner.to_dict() if winner else None,
    }


def participant_state(engine: GameEngine, identity: str) -> Optional[dict[str, Any]]:
    """Lightweight per-participant view, or None for an unknown identity."""
    participant = engine.roster.get(identity)
    if participant is None:
        return None
    minigame = engine.minigame
    game_data = minigame.get_state() if minigame else {}
    return {
        "alive": participant.alive,
        "position": participant.position.to_dict(),
        "score": participant.score,
        "game_phase": engine.phase.value,
        "current_game": engine.current_minigame_name(),
        "light": game_data.get("light"),
    }

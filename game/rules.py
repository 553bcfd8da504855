"""Game rules and constants for the party elimination game."""

from enum import Enum


class Phase(str, Enum):
    """Top-level phase of the game session."""

    LOBBY = "LOBBY"
    COUNTDOWN = "COUNTDOWN"
    PLAYING = "PLAYING"
    ELIMINATION_PAUSE = "ELIMINATION_PAUSE"
    VICTORY = "VICTORY"


class MinigameKind(str, Enum):
    """Round types, one per minigame module."""

    REACTION_GATE = "reaction_gate"
    RHYTHM_TAP = "rhythm_tap"
    TUG_OF_WAR = "tug_of_war"
    PARITY_PAIRS = "parity_pairs"
    GLASS_BRIDGE = "glass_bridge"
    PARTITION = "partition"
    FINAL_DUEL = "final_duel"


# Fixed external cadence of the tick driver
TICK_RATE = 20

# Minimum participants to start
MIN_PLAYERS = 2

COUNTDOWN_SECONDS = 5
ELIMINATION_PAUSE_SECONDS = 3

# Display names, in the fixed order rounds are played
MINIGAME_NAMES = {
    MinigameKind.REACTION_GATE: "Red Light, Green Light",
    MinigameKind.RHYTHM_TAP: "Dalgona",
    MinigameKind.TUG_OF_WAR: "Tug of War",
    MinigameKind.PARITY_PAIRS: "Marbles",
    MinigameKind.GLASS_BRIDGE: "Glass Bridge",
    MinigameKind.PARTITION: "Merry-Go-Round",
    MinigameKind.FINAL_DUEL: "Final Duel",
}

def seconds_to_ticks(seconds: float) -> int:
    """Convert a duration in seconds to a whole number of ticks."""
    return int(seconds * TICK_RATE)


def ticks_to_seconds_ceil(ticks: int) -> int:
    """Remaining whole seconds for a tick countdown, never negative."""
    if ticks <= 0:
        return 0
    return -(-ticks // TICK_RATE)

"""Minigame modules, one per round type, in the fixed order they are played."""

from game.minigames.base import Minigame
from game.minigames.final_duel import FinalDuel
from game.minigames.glass_bridge import GlassBridge
from game.minigames.parity_pairs import ParityPairs
from game.minigames.partition import Partition
from game.minigames.reaction_gate import ReactionGate
from game.minigames.rhythm_tap import RhythmTap
from game.minigames.tug_of_war import TugOfWar

# Round number n plays MINIGAME_ORDER[n - 1]
MINIGAME_ORDER: tuple[type[Minigame], ...] = (
    ReactionGate,
    RhythmTap,
    TugOfWar,
    ParityPairs,
    GlassBridge,
    Partition,
    FinalDuel,
)

__all__ = [
    "Minigame",
    "MINIGAME_ORDER",
    "ReactionGate",
    "RhythmTap",
    "TugOfWar",
    "ParityPairs",
    "GlassBridge",
    "Partition",
    "FinalDuel",
]

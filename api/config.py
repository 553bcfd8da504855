"""Server configuration read from the environment."""

import os
from typing import Optional

# Env var names
ENV_HOST = "HOST"
ENV_PORT = "PORT"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_GAME_SEED = "GAME_SEED"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_LOG_LEVEL = "INFO"


def get_host() -> str:
    return os.environ.get(ENV_HOST, DEFAULT_HOST)


def get_port() -> int:
    return int(os.environ.get(ENV_PORT, DEFAULT_PORT))


def get_log_level() -> str:
    return os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()


def get_game_seed() -> Optional[int]:
    """Seed for the game's random source; unset means a fresh unseeded game."""
    value = os.environ.get(ENV_GAME_SEED)
    if value is None or value.strip() == "":
        return None
    return int(value)

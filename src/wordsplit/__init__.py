"""Word Split package exposing the round engine, game modes, and the web application."""

from .game import RoundEngine
from .modes import SinglePlayerRun
from .ui import app
from .versus import VersusMatch
from .words import WordPool, load_word_pool

__all__ = [
    "RoundEngine",
    "SinglePlayerRun",
    "VersusMatch",
    "WordPool",
    "app",
    "load_word_pool",
]

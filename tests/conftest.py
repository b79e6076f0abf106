"""Shared fixtures: a hand-driven scheduler and a tiny word pool."""

from __future__ import annotations

import random
from typing import Callable, List

import pytest

from wordsplit.config import RoundConfig
from wordsplit.game import DifficultyController, RoundEngine
from wordsplit.words import WordPool


class ManualTimer:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose ticks only happen when a test calls ``advance``."""

    def __init__(self) -> None:
        self.timers: List[ManualTimer] = []

    def every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            for timer in list(self.timers):
                if not timer.cancelled:
                    timer.callback()

    def fire_all(self, ticks: int = 1) -> None:
        """Invoke every callback ever scheduled, cancelled or not."""
        for _ in range(ticks):
            for timer in list(self.timers):
                timer.callback()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def two_word_pool() -> WordPool:
    return WordPool(words=("ABCDEFGH", "IJKLMNOP"))


@pytest.fixture()
def make_engine(scheduler, two_word_pool):
    def factory(pool: WordPool = two_word_pool, words_per_round: int = 2, round_time: int = 30, **kwargs):
        outcomes = []
        engine = RoundEngine(
            pool,
            config=RoundConfig(words_per_round=words_per_round, round_time=round_time),
            difficulty=kwargs.pop("difficulty", DifficultyController()),
            scheduler=scheduler,
            rng=random.Random(kwargs.pop("seed", 7)),
            on_round_end=outcomes.append,
        )
        engine.outcomes = outcomes
        return engine

    return factory


@pytest.fixture()
def find_tile():
    """Index of the first unmatched tile showing ``text``."""

    def lookup(engine: RoundEngine, text: str) -> int:
        for tile in engine.layout.tiles:
            if tile.text == text and not engine.is_matched(tile.index):
                return tile.index
        raise LookupError(text)

    return lookup

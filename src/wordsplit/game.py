"""Round engine for Word Split: lifecycle, matching, difficulty and gating."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .config import RoundConfig
from .rounds import RoundLayout, build_round, is_match
from .timer import LoopScheduler, Scheduler, TimerHandle
from .words import WordPool

logger = logging.getLogger(__name__)

REASON_COMPLETE = "complete"
REASON_TIME = "time"
REASON_WRONG = "wrong"
REASON_ABORT = "abort"
REASON_RESTART = "restart"

TICK_SECONDS = 1.0


class RoundStateError(ValueError):
    """An engine operation was called in a state that does not allow it."""


class RoundStatus(str, Enum):
    IDLE = "idle"
    SETUP = "setup"
    RUNNING = "running"
    WON = "won"
    LOST_WRONG = "lost_wrong"
    LOST_TIMEOUT = "lost_timeout"
    ABORTED = "aborted"

    @property
    def live(self) -> bool:
        return self in (RoundStatus.SETUP, RoundStatus.RUNNING)

    @property
    def terminal(self) -> bool:
        return self in (
            RoundStatus.WON,
            RoundStatus.LOST_WRONG,
            RoundStatus.LOST_TIMEOUT,
            RoundStatus.ABORTED,
        )


class SelectResult(str, Enum):
    IGNORED = "ignored"
    SELECTED = "selected"
    DESELECTED = "deselected"
    MATCHED = "matched"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class RoundOutcome:
    """Payload of the single terminal event a round emits."""

    won: bool
    reason: str
    round_number: int
    matched: int
    words: List[str]
    attempted_text: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "won": self.won,
            "reason": self.reason,
            "roundNumber": self.round_number,
            "matched": self.matched,
            "words": list(self.words),
        }
        if self.attempted_text is not None:
            data["details"] = {"attemptedText": self.attempted_text}
        return data


RoundEndHandler = Callable[[RoundOutcome], None]


def ignore_outcome(outcome: RoundOutcome) -> None:
    """Default round-end handler: does nothing."""


class InteractionGate:
    """Boolean lock. Locking twice and unlocking once leaves it unlocked."""

    def __init__(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False


@dataclass
class DifficultyController:
    baseline: int = 500
    increment: int = 500
    maximum: int = 10000
    current: int = field(init=False)

    def __post_init__(self) -> None:
        if not 0 < self.baseline <= self.maximum:
            raise ValueError("baseline must be between 1 and maximum")
        if self.increment < 0:
            raise ValueError("increment must be >= 0")
        self.current = self.baseline

    def on_round_won(self) -> int:
        self.current = min(self.current + self.increment, self.maximum)
        return self.current

    def override(self, pool_size: int) -> int:
        self.current = max(1, min(pool_size, self.maximum))
        return self.current

    def reset(self) -> int:
        self.current = self.baseline
        return self.current


class RoundEngine:
    """Drives one round at a time over a shared, read-only ``WordPool``.

    All operations are synchronous and meant to run on a single event loop
    thread. Every round ends with exactly one ``RoundOutcome`` delivered to
    the subscribed handlers; the countdown is cancelled before they run.
    """

    def __init__(
        self,
        pool: WordPool,
        *,
        config: Optional[RoundConfig] = None,
        difficulty: Optional[DifficultyController] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        on_round_end: RoundEndHandler = ignore_outcome,
    ) -> None:
        if not isinstance(pool, WordPool):
            raise TypeError("RoundEngine needs a WordPool")

        self.pool = pool
        self.config = config or RoundConfig()
        self.difficulty = difficulty or DifficultyController()
        self.gate = InteractionGate()
        self._scheduler = scheduler or LoopScheduler()
        self._rng = rng or random.Random()
        self._handlers: List[RoundEndHandler] = [on_round_end]

        self.status = RoundStatus.IDLE
        self.layout: Optional[RoundLayout] = None
        self.remaining_time = self.config.round_time
        self.matched_count = 0
        self.score = 0
        self.round_number = 0
        self.last_outcome: Optional[RoundOutcome] = None
        self._selected: Optional[int] = None
        self._matched: Set[int] = set()
        self._countdown: Optional[TimerHandle] = None

    # ---- observers ----

    def subscribe(self, handler: RoundEndHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    # ---- read-only views ----

    @property
    def selected_tile(self) -> Optional[int]:
        return self._selected

    @property
    def word_count(self) -> int:
        return len(self.layout.words) if self.layout else 0

    @property
    def timer_active(self) -> bool:
        return self._countdown is not None

    def is_matched(self, index: int) -> bool:
        return index in self._matched

    # ---- host operations ----

    def start_round(
        self, pool_size: Optional[int] = None, start_timer_now: bool = True
    ) -> RoundLayout:
        if self.status.live:
            self._finish(RoundStatus.ABORTED, REASON_RESTART)
        self._cancel_countdown()

        if pool_size is not None:
            self.difficulty.override(pool_size)

        words = self.pool.sample(
            self.config.words_per_round, self.difficulty.current, self._rng
        )
        self.layout = build_round(words, self._rng)
        self.round_number += 1
        self.matched_count = 0
        self._matched = set()
        self._selected = None
        self.remaining_time = self.config.round_time
        self.status = RoundStatus.SETUP
        logger.debug(
            "Round %s: pool size %s, words %s",
            self.round_number,
            self.difficulty.current,
            sorted(self.layout.words),
        )

        if start_timer_now:
            self.start_timer()
        return self.layout

    def start_timer(self, seconds: Optional[int] = None) -> None:
        if self.status is not RoundStatus.SETUP:
            raise RoundStateError(f"Cannot start the timer while {self.status.value}")
        if seconds is not None:
            if seconds < 1:
                raise ValueError("Timer needs at least one second")
            self.remaining_time = seconds
        self._cancel_countdown()
        self.status = RoundStatus.RUNNING
        self._countdown = self._scheduler.every(TICK_SECONDS, self._tick)

    def add_time(self, seconds: int) -> bool:
        if seconds < 0:
            raise ValueError("Cannot add negative time")
        if not self.status.live:
            return False
        self.remaining_time += seconds
        return True

    def abort_round(self, reason: str = REASON_ABORT) -> bool:
        if not self.status.live:
            return False
        self._finish(RoundStatus.ABORTED, reason)
        return True

    def lock_interaction(self) -> None:
        self.gate.lock()

    def unlock_interaction(self) -> None:
        self.gate.unlock()

    def new_game(self) -> None:
        """Reset difficulty and score; the host starts the next round."""
        self.difficulty.reset()
        self.score = 0

    def close(self) -> None:
        self._cancel_countdown()

    def select_tile(self, index: int) -> SelectResult:
        if self.layout is None or not 0 <= index < len(self.layout.tiles):
            raise ValueError(f"Unknown tile {index}")
        if (
            self.gate.locked
            or self.status is not RoundStatus.RUNNING
            or index in self._matched
        ):
            return SelectResult.IGNORED

        if self._selected is None:
            self._selected = index
            return SelectResult.SELECTED
        if self._selected == index:
            self._selected = None
            return SelectResult.DESELECTED

        first = self.layout.tiles[self._selected]
        second = self.layout.tiles[index]
        if not is_match(first.text, second.text, self.layout.words):
            self._finish(
                RoundStatus.LOST_WRONG,
                REASON_WRONG,
                attempted_text=first.text + second.text,
            )
            return SelectResult.MISMATCH

        self._matched.update((first.index, second.index))
        self._selected = None
        self.matched_count += 1
        self.score += 1
        if self.matched_count >= self.word_count:
            self._finish(RoundStatus.WON, REASON_COMPLETE)
        return SelectResult.MATCHED

    def snapshot(self) -> Dict[str, object]:
        tiles = []
        if self.layout is not None:
            tiles = [
                {
                    "index": tile.index,
                    "text": tile.text,
                    "matched": tile.index in self._matched,
                    "selected": tile.index == self._selected,
                }
                for tile in self.layout.tiles
            ]
        return {
            "status": self.status.value,
            "roundNumber": self.round_number,
            "tiles": tiles,
            "matched": self.matched_count,
            "wordCount": self.word_count,
            "remainingTime": self.remaining_time,
            "score": self.score,
            "poolSize": self.difficulty.current,
            "locked": self.gate.locked,
            "outcome": self.last_outcome.to_dict() if self.last_outcome else None,
        }

    # ---- internals ----

    def _tick(self) -> None:
        if self.status is not RoundStatus.RUNNING:
            self._cancel_countdown()
            return
        self.remaining_time = max(0, self.remaining_time - 1)
        if self.remaining_time == 0:
            self._finish(RoundStatus.LOST_TIMEOUT, REASON_TIME)

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _finish(
        self,
        status: RoundStatus,
        reason: str,
        attempted_text: Optional[str] = None,
    ) -> None:
        if not self.status.live:
            return
        self._cancel_countdown()
        self.status = status
        self._selected = None
        if status is RoundStatus.WON:
            self.difficulty.on_round_won()

        outcome = RoundOutcome(
            won=status is RoundStatus.WON,
            reason=reason,
            round_number=self.round_number,
            matched=self.matched_count,
            words=sorted(self.layout.words) if self.layout else [],
            attempted_text=attempted_text,
        )
        self.last_outcome = outcome
        logger.info(
            "Round %s ended: %s (%s/%s matched)",
            outcome.round_number,
            reason,
            outcome.matched,
            self.word_count,
        )
        for handler in list(self._handlers):
            handler(outcome)

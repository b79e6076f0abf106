"""Two players, one grid: first to accept solves it, first to N rounds wins."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .game import REASON_RESTART, RoundEngine, RoundOutcome, RoundStateError
from .timer import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

REASON_TURN_TIME = "turn_time"
PLAYERS = (0, 1)


class VersusPhase(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    BETWEEN = "between"
    FINISHED = "finished"


@dataclass(frozen=True)
class VersusSettings:
    turn_seconds: int = 15
    target_score: int = 3
    base_pool: int = 500
    pool_step: int = 500


class VersusMatch:
    """Turn-taking meta-game layered on a single engine.

    Each grid opens with the gate locked. The player who accepts first gets
    the grid and a per-turn countdown that runs alongside the engine's own
    clock; solving it scores for them, anything else scores for the other
    player.
    """

    def __init__(
        self,
        engine: RoundEngine,
        scheduler: Scheduler,
        settings: Optional[VersusSettings] = None,
    ) -> None:
        self.engine = engine
        self.settings = settings or VersusSettings()
        self.scores: List[int] = [0, 0]
        self.phase = VersusPhase.WAITING
        self.active: Optional[int] = None
        self.winner: Optional[int] = None
        self.turn_remaining = 0
        self.last_outcome: Optional[RoundOutcome] = None
        self._scheduler = scheduler
        self._turn_timer: Optional[TimerHandle] = None
        self._unsubscribe = engine.subscribe(self._on_round_end)

    def pool_size(self) -> int:
        # The trailing player's score sets the pace.
        return self.settings.base_pool + min(self.scores) * self.settings.pool_step

    def start_match(self) -> None:
        self.scores = [0, 0]
        self.winner = None
        self.last_outcome = None
        self._deal()

    def next_grid(self) -> None:
        if self.phase is VersusPhase.PLAYING:
            raise RoundStateError("A player is still solving the current grid")
        if self.phase is VersusPhase.FINISHED:
            raise RoundStateError("The match is over; start a new one")
        self._deal()

    def _deal(self) -> None:
        self._cancel_turn_timer()
        self.active = None
        self.turn_remaining = 0
        self.phase = VersusPhase.WAITING
        self.engine.lock_interaction()
        self.engine.start_round(pool_size=self.pool_size(), start_timer_now=False)

    def accept(self, player: int) -> bool:
        if player not in PLAYERS:
            raise ValueError(f"Unknown player {player}")
        if self.phase is not VersusPhase.WAITING or self.active is not None:
            return False
        self.active = player
        self.phase = VersusPhase.PLAYING
        self.engine.unlock_interaction()
        self.engine.start_timer()
        self._start_turn_timer()
        logger.debug("Player %s accepted round %s", player + 1, self.engine.round_number)
        return True

    def detach(self) -> None:
        self._cancel_turn_timer()
        self._unsubscribe()
        self.engine.close()

    def _start_turn_timer(self) -> None:
        self._cancel_turn_timer()
        self.turn_remaining = self.settings.turn_seconds
        self._turn_timer = self._scheduler.every(1.0, self._turn_tick)

    def _turn_tick(self) -> None:
        if self.phase is not VersusPhase.PLAYING:
            self._cancel_turn_timer()
            return
        self.turn_remaining = max(0, self.turn_remaining - 1)
        if self.turn_remaining == 0:
            self._cancel_turn_timer()
            self.engine.abort_round(REASON_TURN_TIME)

    def _cancel_turn_timer(self) -> None:
        if self._turn_timer is not None:
            self._turn_timer.cancel()
            self._turn_timer = None

    def _on_round_end(self, outcome: RoundOutcome) -> None:
        self._cancel_turn_timer()
        if outcome.reason == REASON_RESTART or self.active is None:
            return
        self.last_outcome = outcome
        self.engine.lock_interaction()

        point_to = self.active if outcome.won else 1 - self.active
        self.scores[point_to] += 1
        logger.info(
            "Versus round %s to player %s (%s), score %s-%s",
            outcome.round_number,
            point_to + 1,
            outcome.reason,
            *self.scores,
        )
        if self.scores[point_to] >= self.settings.target_score:
            self.winner = point_to
            self.phase = VersusPhase.FINISHED
        else:
            self.phase = VersusPhase.BETWEEN

    def snapshot(self) -> Dict[str, object]:
        state = self.engine.snapshot()
        state.update(
            {
                "phase": self.phase.value,
                "scores": list(self.scores),
                "activePlayer": self.active,
                "winner": self.winner,
                "turnRemaining": self.turn_remaining,
                "targetScore": self.settings.target_score,
            }
        )
        return state

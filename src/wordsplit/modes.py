"""Single-player runs: consecutive rounds until a round is lost.

Two modes share the engine and differ only in how each terminal reason is
handled, which is what :data:`POLICIES` spells out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .game import (
    REASON_COMPLETE,
    REASON_RESTART,
    RoundEngine,
    RoundOutcome,
    RoundStateError,
)

logger = logging.getLogger(__name__)

REASON_SKIP = "skip"


@dataclass(frozen=True)
class OutcomeRule:
    continues: bool = False
    # Only consulted for non-win outcomes; the engine advances on a win.
    advance_difficulty: bool = False
    # None starts the next round on a fresh clock, otherwise the leftover
    # time plus this many seconds is carried over.
    carry_bonus: Optional[int] = None


GAME_OVER = OutcomeRule()


@dataclass(frozen=True)
class ModePolicy:
    name: str
    rules: Dict[str, OutcomeRule] = field(default_factory=dict)
    allow_skip: bool = False

    def rule_for(self, reason: str) -> OutcomeRule:
        return self.rules.get(reason, GAME_OVER)


CLASSIC = ModePolicy(
    name="classic",
    rules={REASON_COMPLETE: OutcomeRule(continues=True)},
)

CONTINUOUS = ModePolicy(
    name="continuous",
    rules={
        REASON_COMPLETE: OutcomeRule(continues=True, carry_bonus=10),
        REASON_SKIP: OutcomeRule(continues=True, carry_bonus=-5),
    },
    allow_skip=True,
)

POLICIES: Dict[str, ModePolicy] = {policy.name: policy for policy in (CLASSIC, CONTINUOUS)}


class SinglePlayerRun:
    """Single-player flow around a :class:`RoundEngine`."""

    def __init__(self, engine: RoundEngine, policy: ModePolicy = CLASSIC) -> None:
        self.engine = engine
        self.policy = policy
        self.game_over = False
        self.awaiting_next = False
        self.rounds_won = 0
        self.last_outcome: Optional[RoundOutcome] = None
        self._carried_time: Optional[int] = None
        self._unsubscribe = engine.subscribe(self._on_round_end)

    def begin(self) -> None:
        self.engine.new_game()
        self.game_over = False
        self.awaiting_next = False
        self.rounds_won = 0
        self.last_outcome = None
        self._carried_time = None
        self._start()

    def restart(self) -> None:
        if not self.game_over:
            raise RoundStateError("The current run is still going")
        self.begin()

    def next_round(self) -> None:
        if not self.awaiting_next:
            raise RoundStateError("No round is waiting to start")
        self.awaiting_next = False
        self._start()

    def skip(self) -> None:
        if not self.policy.allow_skip:
            raise RoundStateError(f"Skipping is not available in {self.policy.name} mode")
        if not self.engine.abort_round(REASON_SKIP):
            raise RoundStateError("There is no round to skip")

    def detach(self) -> None:
        self._unsubscribe()
        self.engine.close()

    def _start(self) -> None:
        self.engine.start_round(start_timer_now=False)
        self.engine.start_timer(self._carried_time)
        self._carried_time = None

    def _on_round_end(self, outcome: RoundOutcome) -> None:
        if outcome.reason == REASON_RESTART:
            return
        self.last_outcome = outcome
        rule = self.policy.rule_for(outcome.reason)
        if outcome.won:
            self.rounds_won += 1
        elif rule.advance_difficulty:
            self.engine.difficulty.on_round_won()

        if not rule.continues:
            self.game_over = True
            logger.info(
                "%s run over after %s rounds (%s), score %s",
                self.policy.name,
                self.rounds_won,
                outcome.reason,
                self.engine.score,
            )
            return

        if rule.carry_bonus is not None:
            carried = self.engine.remaining_time + rule.carry_bonus
            if carried < 1:
                self.game_over = True
                return
            self._carried_time = carried
        self.awaiting_next = True

    def snapshot(self) -> Dict[str, object]:
        state = self.engine.snapshot()
        state.update(
            {
                "mode": self.policy.name,
                "gameOver": self.game_over,
                "awaitingNext": self.awaiting_next,
                "roundsWon": self.rounds_won,
                "canSkip": self.policy.allow_skip and self.engine.status.live,
            }
        )
        return state

"""Tests for the single-player classic and continuous runs."""

import pytest

from wordsplit.game import RoundStateError, RoundStatus
from wordsplit.modes import CLASSIC, CONTINUOUS, POLICIES, SinglePlayerRun


def solve(engine, find_tile):
    for first, second in (("ABCD", "EFGH"), ("IJKL", "MNOP")):
        engine.select_tile(find_tile(engine, first))
        engine.select_tile(find_tile(engine, second))


def test_policies_are_registered_by_name():
    assert POLICIES == {"classic": CLASSIC, "continuous": CONTINUOUS}


def test_classic_win_waits_for_next_round(make_engine, find_tile):
    engine = make_engine()
    run = SinglePlayerRun(engine, CLASSIC)
    run.begin()
    solve(engine, find_tile)

    assert run.awaiting_next is True
    assert run.rounds_won == 1
    assert run.game_over is False

    run.next_round()
    assert engine.status is RoundStatus.RUNNING
    assert engine.remaining_time == 30
    assert engine.round_number == 2


def test_classic_loss_ends_run_and_restart_resets(make_engine, find_tile):
    engine = make_engine()
    run = SinglePlayerRun(engine, CLASSIC)
    run.begin()
    solve(engine, find_tile)
    run.next_round()
    engine.select_tile(find_tile(engine, "ABCD"))
    engine.select_tile(find_tile(engine, "MNOP"))

    assert run.game_over is True
    assert run.last_outcome.reason == "wrong"
    with pytest.raises(RoundStateError):
        run.next_round()
    assert engine.difficulty.current == 1000

    run.restart()
    assert run.game_over is False
    assert engine.score == 0
    assert engine.difficulty.current == 500


def test_restart_refused_while_running(make_engine):
    run = SinglePlayerRun(make_engine(), CLASSIC)
    run.begin()
    with pytest.raises(RoundStateError):
        run.restart()


def test_classic_has_no_skip(make_engine):
    run = SinglePlayerRun(make_engine(), CLASSIC)
    run.begin()
    with pytest.raises(RoundStateError):
        run.skip()


def test_continuous_win_carries_time_with_bonus(make_engine, scheduler, find_tile):
    engine = make_engine()
    run = SinglePlayerRun(engine, CONTINUOUS)
    run.begin()
    scheduler.advance(12)
    solve(engine, find_tile)

    run.next_round()
    assert engine.remaining_time == 30 - 12 + 10


def test_continuous_skip_costs_time_without_difficulty(make_engine, scheduler):
    engine = make_engine()
    run = SinglePlayerRun(engine, CONTINUOUS)
    run.begin()
    scheduler.advance(5)
    run.skip()

    assert run.awaiting_next is True
    assert run.rounds_won == 0
    assert engine.difficulty.current == 500

    run.next_round()
    assert engine.remaining_time == 30 - 5 - 5


def test_continuous_skip_with_too_little_time_ends_run(make_engine, scheduler):
    engine = make_engine(round_time=6)
    run = SinglePlayerRun(engine, CONTINUOUS)
    run.begin()
    scheduler.advance(2)
    run.skip()

    assert run.game_over is True


def test_continuous_timeout_ends_run(make_engine, scheduler):
    engine = make_engine(round_time=2)
    run = SinglePlayerRun(engine, CONTINUOUS)
    run.begin()
    scheduler.advance(2)

    assert run.game_over is True
    assert run.last_outcome.reason == "time"


def test_snapshot_reports_mode_flags(make_engine):
    run = SinglePlayerRun(make_engine(), CONTINUOUS)
    run.begin()
    state = run.snapshot()

    assert state["mode"] == "continuous"
    assert state["canSkip"] is True
    assert state["gameOver"] is False
    assert len(state["tiles"]) == 4


def test_detach_stops_timer(make_engine, scheduler):
    run = SinglePlayerRun(make_engine(), CLASSIC)
    run.begin()
    run.detach()
    assert scheduler.active == []

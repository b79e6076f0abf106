"""Tests for the two-player versus match."""

import pytest

from wordsplit.game import RoundStateError, RoundStatus, SelectResult
from wordsplit.versus import VersusMatch, VersusPhase, VersusSettings


def solve(engine, find_tile):
    for first, second in (("ABCD", "EFGH"), ("IJKL", "MNOP")):
        engine.select_tile(find_tile(engine, first))
        engine.select_tile(find_tile(engine, second))


@pytest.fixture()
def match(make_engine, scheduler):
    versus = VersusMatch(make_engine(), scheduler, VersusSettings(turn_seconds=3, target_score=2))
    versus.start_match()
    return versus


def test_grid_waits_locked_until_accept(match, scheduler, find_tile):
    engine = match.engine
    assert match.phase is VersusPhase.WAITING
    assert engine.status is RoundStatus.SETUP
    assert engine.gate.locked
    assert scheduler.active == []

    assert match.accept(1) is True
    assert match.phase is VersusPhase.PLAYING
    assert match.active == 1
    assert not engine.gate.locked
    assert engine.select_tile(find_tile(engine, "ABCD")) is SelectResult.SELECTED


def test_only_first_accept_counts(match):
    assert match.accept(0) is True
    assert match.accept(1) is False
    assert match.active == 0


def test_unknown_player_rejected(match):
    with pytest.raises(ValueError):
        match.accept(2)


def test_solving_scores_for_active_player(match, find_tile):
    match.accept(0)
    solve(match.engine, find_tile)

    assert match.scores == [1, 0]
    assert match.phase is VersusPhase.BETWEEN
    assert match.engine.gate.locked


def test_wrong_pair_scores_for_opponent(match, find_tile):
    engine = match.engine
    match.accept(0)
    engine.select_tile(find_tile(engine, "ABCD"))
    engine.select_tile(find_tile(engine, "MNOP"))

    assert match.scores == [0, 1]


def test_turn_timer_aborts_round(match, scheduler):
    match.accept(1)
    scheduler.advance(3)

    assert match.engine.status is RoundStatus.ABORTED
    assert match.last_outcome.reason == "turn_time"
    assert match.scores == [1, 0]
    assert scheduler.active == []


def test_next_grid_refused_mid_turn(match):
    match.accept(0)
    with pytest.raises(RoundStateError):
        match.next_grid()


def test_difficulty_follows_trailing_score(match, find_tile):
    match.accept(0)
    solve(match.engine, find_tile)
    match.next_grid()
    assert match.engine.difficulty.current == 500

    match.accept(1)
    solve(match.engine, find_tile)
    match.next_grid()
    assert match.engine.difficulty.current == 1000


def test_first_to_target_wins_match(match, find_tile):
    for _ in range(2):
        match.accept(0)
        solve(match.engine, find_tile)
        if match.phase is VersusPhase.BETWEEN:
            match.next_grid()

    assert match.phase is VersusPhase.FINISHED
    assert match.winner == 0
    with pytest.raises(RoundStateError):
        match.next_grid()

    match.start_match()
    assert match.scores == [0, 0]
    assert match.winner is None
    assert match.phase is VersusPhase.WAITING


def test_new_match_mid_turn_does_not_score(match, scheduler):
    match.accept(0)
    match.start_match()

    assert match.scores == [0, 0]
    assert match.phase is VersusPhase.WAITING
    assert scheduler.active == []

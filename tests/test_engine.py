"""End-to-end tests for the logic and search solvers."""

import inspect
import sys
import time

import pytest

from sudokit import engine
from sudokit.board import Board
from sudokit.config import Settings
from sudokit.engine import guess_solve, logic_solve, solve, validate_board
from sudokit.errors import SolveTimeout
from sudokit.models import CONTRADICTION, NO_SOLUTION, SOLVED, STALLED, TIMEOUT, Cell
from sudokit.storage import parse_puzzle


def snapshot(board):
    return [board.domain(c) for c in board.cells()]


def test_full_4x4_board_is_solved_by_logic(full_4_rows):
    board = Board.from_rows(full_4_rows)
    result = solve(board, guess=False)
    assert result.status == SOLVED
    assert result.board.is_solved()
    assert result.board.to_rows() == full_4_rows
    assert result.guesses == 0


def test_4x4_gaps_are_filled_by_logic(full_4_rows):
    board = Board.from_rows(["1*34", "34*2", "2*43", "4*21"])
    assert logic_solve(board) == SOLVED
    assert board.to_rows() == full_4_rows


def test_easy_9x9_needs_no_guessing(easy_board, easy_solution):
    result = solve(easy_board, guess=False)
    assert result.status == SOLVED
    assert result.board.to_rows() == easy_solution


def test_hard_9x9_stalls_without_guessing(hard_board, hard_solution):
    result = solve(hard_board, guess=False)
    assert result.status == STALLED
    reduced = result.board
    assert not reduced.is_solved()
    assert any(1 < reduced.domain(c).bit_count() < 9 for c in reduced.cells())
    for cell in reduced.cells():
        assert hard_solution[cell.row][cell.col] in reduced.symbols(cell)


def test_hard_9x9_is_solved_by_guessing(hard_board, hard_solution):
    result = solve(hard_board)
    assert result.status == SOLVED
    assert result.board.is_solved()
    assert result.board.to_rows() == hard_solution
    assert result.guesses > 0
    assert result.max_depth > 0


def test_peer_clash_is_infeasible():
    board = Board.from_rows(["11**", "****", "****", "****"])
    assert solve(board, guess=False).status == NO_SOLUTION
    result = solve(board)
    assert result.status == NO_SOLUTION
    assert not result.board.is_solved()


def test_solve_leaves_the_input_alone(easy_board):
    before = snapshot(easy_board)
    solve(easy_board)
    assert snapshot(easy_board) == before


def test_logic_solve_reports_contradiction():
    board = Board.from_rows(["12**", "****", "****", "***1"])
    board.set_domain(Cell(0, 3), board.mask_of("1"))
    assert logic_solve(board) == CONTRADICTION


def test_logic_solve_stalls_on_blank_board():
    board = Board(9)
    assert logic_solve(board) == STALLED
    assert all(board.domain(c) == board.full_mask for c in board.cells())


def test_guess_solve_returns_a_solved_board(hard_board):
    solved = guess_solve(hard_board)
    assert solved is not None
    assert solved.is_solved()


def test_blank_board_terminates_with_a_solution():
    result = solve(Board(9), settings=Settings(timeout_s=60))
    assert result.status == SOLVED
    assert result.board.is_solved()


def test_unsolvable_board_is_exhausted(easy_text):
    # (0,0) is 4 in the only solution; 5 breaks nothing locally
    rows = [line for line in easy_text.split() if line]
    rows[0] = "5" + rows[0][1:]
    result = solve(parse_puzzle("\n".join(rows)), settings=Settings(timeout_s=60))
    assert result.status == NO_SOLUTION


def test_16x16_pattern_is_completed(solved_pattern):
    full = solved_pattern(16)
    rows = [
        "".join("*" if (r + 2 * c) % 3 == 0 else ch for c, ch in enumerate(row))
        for r, row in enumerate(full)
    ]
    board = Board.from_rows(rows)
    result = solve(board, settings=Settings(timeout_s=120))
    assert result.status == SOLVED
    assert result.board.is_solved()
    for r, row in enumerate(rows):
        for c, ch in enumerate(row):
            if ch != "*":
                assert result.board.value(Cell(r, c)) == ch


def test_single_cell_board():
    result = solve(parse_puzzle("*"))
    assert result.status == SOLVED
    assert result.board.to_rows() == ["1"]


def test_max_subset_setting_is_honoured(hard_board):
    result = solve(hard_board, settings=Settings(max_subset_size=1, locked_candidates=False))
    assert result.status == SOLVED


def test_expired_deadline_raises(hard_board):
    with pytest.raises(SolveTimeout):
        guess_solve(hard_board, deadline=time.monotonic() - 1)


def test_solve_reports_timeout(monkeypatch, hard_board):
    def expire(*args, **kwargs):
        raise SolveTimeout("late")

    monkeypatch.setattr(engine, "guess_solve", expire)
    result = engine.solve(hard_board, settings=Settings(timeout_s=5))
    assert result.status == TIMEOUT
    assert not result.solved


def test_validate_board(full_4_rows):
    assert validate_board(Board.from_rows(full_4_rows)) == (True, "OK")
    ok, msg = validate_board(Board.from_rows(["11**", "****", "****", "****"]))
    assert not ok
    assert "Conflict" in msg
    blank = Board(4)
    blank.set_domain(Cell(1, 1), 0)
    assert validate_board(blank)[0] is False


def plain_check(board, *args, **kwargs):
    # no propagation: every open cell has to be guessed
    if board.conflicts():
        return CONTRADICTION
    return SOLVED if board.is_solved() else STALLED


def test_deep_search_does_not_recurse(monkeypatch):
    monkeypatch.setattr(engine, "logic_solve", plain_check)
    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(len(inspect.stack(0)) + 60)
    try:
        result = solve(Board(9))
    finally:
        sys.setrecursionlimit(old_limit)
    assert result.status == SOLVED
    assert result.board.is_solved()
    assert result.max_depth == 81
    # every guess off the winning path was undone
    assert result.backtracks == result.guesses - 81


def test_36x36_board_finishes_or_times_out():
    result = solve(Board(36), settings=Settings(timeout_s=5))
    assert result.status in (SOLVED, TIMEOUT)


def test_max_subset_size_is_capped_at_blocksize(monkeypatch):
    seen = []

    def record(board, max_subset_size, *args):
        seen.append(max_subset_size)
        return False

    monkeypatch.setattr(engine, "find_naked_subsets", record)
    monkeypatch.setattr(engine, "find_hidden_subsets", record)
    assert logic_solve(Board(4), max_subset_size=10) == STALLED
    assert seen and set(seen) == {2}

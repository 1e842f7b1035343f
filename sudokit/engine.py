from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .board import Board, bits
from .config import Settings
from .eliminators import find_hidden_subsets, find_naked_subsets, find_swordfish
from .errors import SolveTimeout
from .models import (
    CONTRADICTION,
    NO_SOLUTION,
    SOLVED,
    STALLED,
    TIMEOUT,
    Cell,
    SolveResult,
)
from .propagation import ac3, check_deadline

log = logging.getLogger(__name__)


def validate_board(board: Board) -> Tuple[bool, str]:
    """
    Checks:
      - no cell has run out of candidates
      - no symbol is fixed twice in any row/col/block
    """
    for cell in board.cells():
        if board.domain(cell) == 0:
            return False, f"Cell {cell} has no possible symbol left."
    clashes = board.conflicts()
    if clashes:
        a, b = clashes[0]
        return False, f"Conflict: symbol {board.value(a)} appears twice in a row/column/block ({a}, {b})."
    return True, "OK"


# -----------------------------
# Logic
# -----------------------------

def logic_solve(
    board: Board,
    max_subset_size: Optional[int] = None,
    locked_candidates: bool = True,
    deadline: Optional[float] = None,
) -> str:
    """
    Reduce the board in place until no strategy makes progress.

    propagating -> eliminating -> (propagating again on any change) and
    finally SOLVED, STALLED or CONTRADICTION. ``max_subset_size`` defaults to
    the block size and is never allowed above it.
    """
    if max_subset_size is None:
        max_subset_size = board.blocksize
    max_subset_size = min(max_subset_size, board.blocksize)

    if not ac3(board, deadline):
        return CONTRADICTION

    strategies = (
        ("hidden", lambda: find_hidden_subsets(board, max_subset_size, locked_candidates)),
        ("naked", lambda: find_naked_subsets(board, max_subset_size)),
        ("swordfish", lambda: find_swordfish(board)),
    )
    changed = True
    while changed:
        changed = False
        for name, strategy in strategies:
            if not strategy():
                continue
            changed = True
            if not ac3(board, deadline):
                log.debug("Contradiction after %s elimination", name)
                return CONTRADICTION

    return SOLVED if board.is_solved() else STALLED


# -----------------------------
# Search
# -----------------------------

@dataclass
class SearchStats:
    guesses: int = 0
    backtracks: int = 0
    max_depth: int = 0


@dataclass
class _BranchPoint:
    board: Board
    cell: Cell
    candidates: Iterator[int]
    depth: int
    # (cell, symbol) that led here; None for the starting board
    guess: Optional[Tuple[Cell, str]] = None


def _branch_point(board: Board, depth: int, guess: Optional[Tuple[Cell, str]] = None) -> _BranchPoint:
    cell = board.ordered_cells()[0]
    return _BranchPoint(board, cell, bits(board.domain(cell)), depth, guess)


def guess_solve(
    board: Board,
    max_subset_size: Optional[int] = None,
    locked_candidates: bool = True,
    deadline: Optional[float] = None,
    stats: Optional[SearchStats] = None,
) -> Optional[Board]:
    """
    Logic first; if that stalls, branch on the cell with the fewest candidates
    (first in row-major order on ties) and try each candidate on a clone.

    Depth-first over an explicit stack of branch points, so the search depth
    is limited by the number of open cells, not by the interpreter's
    recursion limit. Returns the solved board or None if every branch fails.
    """
    if stats is None:
        stats = SearchStats()

    def reduce(node: Board, depth: int) -> str:
        check_deadline(deadline)
        stats.max_depth = max(stats.max_depth, depth)
        return logic_solve(node, max_subset_size, locked_candidates, deadline)

    state = reduce(board, 0)
    if state == CONTRADICTION:
        return None
    if state == SOLVED:
        return board

    stack = [_branch_point(board, 0)]
    while stack:
        top = stack[-1]
        symbol = next(top.candidates, None)
        if symbol is None:
            stack.pop()
            if top.guess is not None:
                stats.backtracks += 1
                log.debug("%sBacktrack: %s != %s", "  " * (top.depth - 1), *top.guess)
            continue

        guess = (top.cell, top.board.alphabet[symbol])
        branch = top.board.clone()
        branch.set_domain(top.cell, 1 << symbol)
        stats.guesses += 1
        log.debug("%sGuess: %s = %s", "  " * top.depth, *guess)

        state = reduce(branch, top.depth + 1)
        if state == SOLVED:
            return branch
        if state == CONTRADICTION:
            stats.backtracks += 1
            log.debug("%sBacktrack: %s != %s", "  " * top.depth, *guess)
            continue
        stack.append(_branch_point(branch, top.depth + 1, guess))
    return None


def solve(board: Board, guess: bool = True, settings: Optional[Settings] = None) -> SolveResult:
    """
    Solve a copy of ``board`` (the caller's board is never touched).
    With ``guess=False`` only logic is used and the result may be STALLED.
    """
    settings = settings or Settings()
    start = time.monotonic()
    deadline = start + settings.timeout_s if settings.timeout_s else None
    work = board.clone()
    stats = SearchStats()

    log.info("[solver] solve start: %dx%d, %s", board.length, board.length, "guessing" if guess else "logic only")
    final = work
    try:
        if guess:
            solved = guess_solve(work, settings.max_subset_size, settings.locked_candidates, deadline, stats)
            status = SOLVED if solved is not None else NO_SOLUTION
            final = solved if solved is not None else work
        else:
            state = logic_solve(work, settings.max_subset_size, settings.locked_candidates, deadline)
            status = NO_SOLUTION if state == CONTRADICTION else state
    except SolveTimeout:
        status = TIMEOUT

    duration_ms = int((time.monotonic() - start) * 1000)
    log.info(
        "[solver] solve end in %d ms: %s (guesses %d, backtracks %d)",
        duration_ms, status, stats.guesses, stats.backtracks,
    )

    messages = {
        SOLVED: "Solved successfully.",
        STALLED: "Logic alone could not finish the puzzle.",
        NO_SOLUTION: "No solution: the puzzle is contradictory.",
        TIMEOUT: f"Gave up after {settings.timeout_s} s.",
    }
    return SolveResult(
        status=status,
        board=final,
        duration_ms=duration_ms,
        guesses=stats.guesses,
        backtracks=stats.backtracks,
        max_depth=stats.max_depth,
        message=messages[status],
    )

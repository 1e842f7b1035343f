from __future__ import annotations

import logging
import time
from collections import deque
from typing import Deque, Optional, Set, Tuple

from .board import Board, is_single
from .errors import SolveTimeout
from .models import Cell

log = logging.getLogger(__name__)


def check_deadline(deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise SolveTimeout("Solve deadline expired.")


def arc_reduce(board: Board, cell: Cell) -> Tuple[bool, bool]:
    """
    Remove from ``cell`` every symbol a peer is already fixed to.
    Returns (changed, ok); ok is False when the domain ends up empty.
    """
    fixed = 0
    for peer in board.peers(cell):
        dom = board.domain(peer)
        if is_single(dom):
            fixed |= dom
    changed = board.remove(cell, fixed)
    return changed, board.domain(cell) != 0


def ac3(board: Board, deadline: Optional[float] = None) -> bool:
    """
    Naked-single propagation to a fixed point.

    Every cell starts on the worklist. When a cell shrinks its peers are
    queued again (the cell itself is already reduced against them).
    Returns False as soon as any domain is empty.
    """
    if board.has_empty_domain():
        return False

    todo: Deque[Cell] = deque(board.cells())
    queued: Set[Cell] = set(todo)
    while todo:
        check_deadline(deadline)
        cell = todo.popleft()
        queued.discard(cell)
        changed, ok = arc_reduce(board, cell)
        if not ok:
            log.debug("AC-3 emptied %s", cell)
            return False
        if changed:
            for peer in board.peers(cell):
                if peer not in queued:
                    queued.add(peer)
                    todo.append(peer)
    return True

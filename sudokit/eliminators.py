from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Set

from .board import Board, bits, is_single
from .models import Cell, Group, GroupKind

log = logging.getLogger(__name__)

# group -> symbol index -> cells of the group whose domain still holds it
ReverseIndex = Dict[Group, Dict[int, List[Cell]]]


def remove_from_other_cells(
    board: Board,
    cells: FrozenSet[Cell],
    mask: int,
    skip: Optional[GroupKind] = None,
) -> bool:
    """
    Remove the symbols in ``mask`` from every cell outside ``cells`` in each
    group that contains all of ``cells``. Groups of kind ``skip`` are left
    alone (the caller has already dealt with them).
    """
    changed = False
    for group in board.shared_groups(cells):
        if group.kind is skip:
            continue
        for other in board.members(group):
            if other not in cells:
                changed |= board.remove(other, mask)
    return changed


# -----------------------------
# Naked subsets
# -----------------------------

def _search_group_for_naked(board: Board, done: Set[Cell], group: Group, cell: Cell, dom: int) -> bool:
    if cell in done:
        return False
    found = [cell]
    for other in board.members(group):
        if other == cell or other in done:
            continue
        other_dom = board.domain(other)
        if is_single(other_dom):
            continue
        if other_dom & ~dom == 0:
            found.append(other)
    if len(found) != dom.bit_count():
        return False
    done.update(found)
    log.debug("Naked subset {%s} in %s: %s", board.symbols(cell), group, ", ".join(map(str, found)))
    return remove_from_other_cells(board, frozenset(found), dom)


def find_naked_subsets(board: Board, max_subset_size: int) -> bool:
    """
    For each unsolved cell with k <= max_subset_size candidates, look in its
    row, column and block for cells whose candidates are a subset of its own.
    Exactly k such cells (itself included) lock those k symbols in, so they are
    removed from the rest of every group the k cells share.

    Cells are tried most-constrained first. A cell used in a subset is done for
    that group kind for the rest of this call.

    Catches (2,4),(2,4) and (2,3,4),(2,3),(3,4); misses (2,3),(3,4),(2,4).
    """
    changed = False
    done: Dict[GroupKind, Set[Cell]] = {kind: set() for kind in GroupKind}
    for cell in board.ordered_cells():
        dom = board.domain(cell)
        k = dom.bit_count()
        if k <= 1 or k > max_subset_size:
            continue
        for kind in GroupKind:
            changed |= _search_group_for_naked(board, done[kind], board.group_of(cell, kind), cell, dom)
    return changed


# -----------------------------
# Hidden subsets
# -----------------------------

def make_reverse_index(board: Board) -> Dict[GroupKind, ReverseIndex]:
    """Which unfixed cells of each group can still hold each symbol."""
    index: Dict[GroupKind, ReverseIndex] = {kind: {} for kind in GroupKind}
    for cell in board.cells():
        dom = board.domain(cell)
        if is_single(dom):
            continue
        for kind in GroupKind:
            by_symbol = index[kind].setdefault(board.group_of(cell, kind), {})
            for symbol in bits(dom):
                by_symbol.setdefault(symbol, []).append(cell)
    return index


def _union_of_domains(board: Board, cells) -> int:
    mask = 0
    for cell in cells:
        mask |= board.domain(cell)
    return mask


def _search_groups_for_hidden(
    board: Board,
    kind: GroupKind,
    index: ReverseIndex,
    max_subset_size: int,
    locked_threshold: int,
) -> bool:
    changed = False
    for group, by_symbol in index.items():
        placed = 0
        for cell in board.members(group):
            dom = board.domain(cell)
            if is_single(dom):
                placed |= dom
        for symbol, holders in by_symbol.items():
            k = len(holders)
            cells = frozenset(holders)
            if k <= locked_threshold and not placed >> symbol & 1:
                # All of this group's places for the symbol sit inside another
                # group, so that other group can't have it anywhere else.
                changed |= remove_from_other_cells(board, cells, 1 << symbol, skip=kind)
            if k > max_subset_size:
                continue
            others = _union_of_domains(board, (c for c in board.members(group) if c not in cells))
            these = _union_of_domains(board, cells) & ~others
            if these.bit_count() == k:
                step = False
                for cell in cells:
                    step |= board.restrict(cell, these)
                if step:
                    log.debug(
                        "Hidden subset {%s} in %s",
                        "".join(board.alphabet[i] for i in bits(these)),
                        group,
                    )
                changed |= step
    return changed


def find_hidden_subsets(board: Board, max_subset_size: int, locked_candidates: bool = True) -> bool:
    """
    For each group and symbol, take the k cells that can still hold it. If the
    symbols found only in those cells (within the group) number exactly k, the
    cells hold exactly those symbols and everything else is deleted from them.

    Symbols held by at most ``blocksize`` cells (or a single cell, with
    ``locked_candidates`` off) are also removed from the rest of any other
    group those cells share: hidden singles, pointing and claiming.

    The index is built once up front and read while the board shrinks; the
    listed cells only ever over-approximate the true holders.
    """
    locked_threshold = board.blocksize if locked_candidates else 1
    index = make_reverse_index(board)
    changed = False
    for kind in GroupKind:
        changed |= _search_groups_for_hidden(board, kind, index[kind], max_subset_size, locked_threshold)
    return changed


# -----------------------------
# Fish
# -----------------------------

def find_swordfish(board: Board) -> bool:
    # Fish patterns are left to the search.
    return False

from __future__ import annotations

import copy
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import StructuralError
from .models import SYMBOLS, UNKNOWN, BoardSpec, Cell, Group, GroupKind, board_spec


def bits(mask: int) -> Iterator[int]:
    """Yield the indices of the set bits of ``mask``, lowest first."""
    while mask:
        lsb = mask & -mask
        yield lsb.bit_length() - 1
        mask ^= lsb


def is_single(mask: int) -> bool:
    return mask != 0 and mask & (mask - 1) == 0


# -----------------------------
# Geometry (shared by every board of a given size)
# -----------------------------

@dataclass(frozen=True)
class Topology:
    spec: BoardSpec
    cells: Tuple[Cell, ...]                   # row-major
    peers: Dict[Cell, Tuple[Cell, ...]]       # conflict map
    groups: Dict[GroupKind, Tuple[Group, ...]]
    members: Dict[Group, Tuple[Cell, ...]]


def corner_of(cell: Cell, blocksize: int) -> Cell:
    return Cell(cell.row - cell.row % blocksize, cell.col - cell.col % blocksize)


def group_key(cell: Cell, kind: GroupKind, blocksize: int) -> Group:
    if kind is GroupKind.ROW:
        return Group(kind, cell.row)
    if kind is GroupKind.COLUMN:
        return Group(kind, cell.col)
    return Group(kind, corner_of(cell, blocksize))


@lru_cache(maxsize=None)
def topology(length: int) -> Topology:
    """
    Build the groups and the conflict map for a board side length.
    Cached: the result depends only on geometry, never on domains.
    """
    spec = board_spec(length)
    n, b = spec.length, spec.blocksize

    cells = tuple(Cell(r, c) for r in range(n) for c in range(n))

    members: Dict[Group, Tuple[Cell, ...]] = {}
    for i in range(n):
        members[Group(GroupKind.ROW, i)] = tuple(Cell(i, j) for j in range(n))
    for j in range(n):
        members[Group(GroupKind.COLUMN, j)] = tuple(Cell(i, j) for i in range(n))
    for bi in range(0, n, b):
        for bj in range(0, n, b):
            members[Group(GroupKind.BLOCK, Cell(bi, bj))] = tuple(
                Cell(bi + di, bj + dj) for di in range(b) for dj in range(b)
            )

    groups = {kind: tuple(g for g in members if g.kind is kind) for kind in GroupKind}

    peers: Dict[Cell, Tuple[Cell, ...]] = {}
    for cell in cells:
        # dict keeps first-seen order while dropping the row/block overlap
        seen: Dict[Cell, None] = {}
        for kind in GroupKind:
            seen.update(dict.fromkeys(members[group_key(cell, kind, b)]))
        del seen[cell]
        peers[cell] = tuple(seen)

    return Topology(spec=spec, cells=cells, peers=peers, groups=groups, members=members)


def _symbol_order(ch: str) -> Tuple[int, int]:
    pos = SYMBOLS.find(ch)
    return (0, pos) if pos >= 0 else (1, ord(ch))


def build_alphabet(rows: Sequence[str], length: int) -> str:
    """
    The puzzle's literal symbols, topped up from SYMBOLS until there are
    ``length`` of them.
    """
    literals = {ch for row in rows for ch in row if ch != UNKNOWN}
    if len(literals) > length:
        raise StructuralError(
            f"Puzzle uses {len(literals)} distinct symbols but a {length}x{length} board allows only {length}."
        )
    alphabet = set(literals)
    for ch in SYMBOLS:
        if len(alphabet) == length:
            break
        alphabet.add(ch)
    return "".join(sorted(alphabet, key=_symbol_order))


# -----------------------------
# Board
# -----------------------------

class Board:
    """
    ``length x length`` grid of domains. A domain is an int bitmask over the
    board's alphabet: bit i set means ``alphabet[i]`` is still possible.

    A fresh board has every domain full (all cells unknown).
    """

    def __init__(self, length: int, alphabet: Optional[str] = None) -> None:
        self._topo = topology(length)
        self.alphabet = SYMBOLS[:length] if alphabet is None else alphabet
        if len(self.alphabet) != length or len(set(self.alphabet)) != length:
            raise StructuralError(f"Alphabet {self.alphabet!r} must hold exactly {length} distinct symbols.")
        if UNKNOWN in self.alphabet:
            raise StructuralError(f"'{UNKNOWN}' is reserved for unknown cells.")
        full = self._topo.spec.full_mask
        self._grid: List[List[int]] = [[full] * length for _ in range(length)]

    @classmethod
    def from_rows(cls, rows: Sequence[str]) -> "Board":
        """Fixed symbols get singleton domains, '*' cells the full alphabet."""
        length = len(rows)
        board_spec(length)
        for i, row in enumerate(rows):
            if len(row) != length:
                raise StructuralError(f"Row {i + 1} has {len(row)} symbols, expected {length}.")

        board = cls(length, build_alphabet(rows, length))
        index = {sym: i for i, sym in enumerate(board.alphabet)}
        for i, row in enumerate(rows):
            for j, ch in enumerate(row):
                if ch != UNKNOWN:
                    board._grid[i][j] = 1 << index[ch]
        return board

    # ---- geometry ----

    @property
    def length(self) -> int:
        return self._topo.spec.length

    @property
    def blocksize(self) -> int:
        return self._topo.spec.blocksize

    @property
    def full_mask(self) -> int:
        return self._topo.spec.full_mask

    def cells(self) -> Tuple[Cell, ...]:
        return self._topo.cells

    def peers(self, cell: Cell) -> Tuple[Cell, ...]:
        """Every other cell sharing a row, column or block with ``cell``."""
        return self._topo.peers[cell]

    def corner(self, cell: Cell) -> Cell:
        return corner_of(cell, self.blocksize)

    def group_of(self, cell: Cell, kind: GroupKind) -> Group:
        return group_key(cell, kind, self.blocksize)

    def groups(self, kind: GroupKind) -> Tuple[Group, ...]:
        return self._topo.groups[kind]

    def members(self, group: Group) -> Tuple[Cell, ...]:
        return self._topo.members[group]

    def shared_groups(self, cells: Iterable[Cell]) -> List[Group]:
        """Groups (row, column, block) that contain every one of ``cells``."""
        cells = list(cells)
        if not cells:
            return []
        first = cells[0]
        shared = []
        for kind in GroupKind:
            group = self.group_of(first, kind)
            if all(self.group_of(c, kind) == group for c in cells[1:]):
                shared.append(group)
        return shared

    # ---- domains ----

    def domain(self, cell: Cell) -> int:
        return self._grid[cell[0]][cell[1]]

    def set_domain(self, cell: Cell, mask: int) -> None:
        self._grid[cell[0]][cell[1]] = mask & self.full_mask

    def remove(self, cell: Cell, mask: int) -> bool:
        """Drop the symbols in ``mask`` from the cell. True if anything went."""
        r, c = cell
        dom = self._grid[r][c]
        if dom & mask:
            self._grid[r][c] = dom & ~mask
            return True
        return False

    def restrict(self, cell: Cell, mask: int) -> bool:
        """Keep only the symbols in ``mask``. True if anything went."""
        r, c = cell
        dom = self._grid[r][c]
        if dom & ~mask:
            self._grid[r][c] = dom & mask
            return True
        return False

    def mask_of(self, symbols: Iterable[str]) -> int:
        mask = 0
        for sym in symbols:
            idx = self.alphabet.find(sym)
            if idx < 0:
                raise ValueError(f"'{sym}' is not in the alphabet {self.alphabet!r}.")
            mask |= 1 << idx
        return mask

    def assign(self, cell: Cell, symbol: str) -> None:
        self.set_domain(cell, self.mask_of(symbol))

    def is_fixed(self, cell: Cell) -> bool:
        return is_single(self.domain(cell))

    def value(self, cell: Cell) -> Optional[str]:
        dom = self.domain(cell)
        return self.alphabet[dom.bit_length() - 1] if is_single(dom) else None

    def symbols(self, cell: Cell) -> str:
        return "".join(self.alphabet[i] for i in bits(self.domain(cell)))

    def ordered_cells(self) -> List[Cell]:
        """Unsolved cells by increasing domain size; ties keep row-major order."""
        unsolved = [c for c in self._topo.cells if self.domain(c).bit_count() > 1]
        return sorted(unsolved, key=lambda c: self.domain(c).bit_count())

    def has_empty_domain(self) -> bool:
        return any(dom == 0 for row in self._grid for dom in row)

    def conflicts(self) -> List[Tuple[Cell, Cell]]:
        """Peer pairs fixed to the same symbol, each pair reported once."""
        found = []
        for cell in self._topo.cells:
            dom = self.domain(cell)
            if not is_single(dom):
                continue
            for other in self.peers(cell):
                if other > cell and self.domain(other) == dom:
                    found.append((cell, other))
        return found

    def is_solved(self) -> bool:
        if not all(is_single(dom) for row in self._grid for dom in row):
            return False
        return not self.conflicts()

    def clone(self) -> "Board":
        """Deep copy of the domains; the topology is shared."""
        twin = copy.copy(self)
        twin._grid = [row[:] for row in self._grid]
        return twin

    # ---- rendering ----

    def _char(self, cell: Cell) -> str:
        return self.value(cell) or UNKNOWN

    def to_rows(self) -> List[str]:
        n = self.length
        return ["".join(self._char(Cell(i, j)) for j in range(n)) for i in range(n)]

    def to_string(self) -> str:
        b = self.blocksize
        dashes = "-" * (2 * b)
        delim = " " + dashes + "+" + (dashes + "-+") * (b - 2) + dashes + "\n"
        out = ["\n"]
        for i in range(self.length):
            if i % b == 0 and i > 0:
                out.append(delim)
            for j in range(self.length):
                if j % b == 0 and j > 0:
                    out.append(" |")
                out.append(" " + self._char(Cell(i, j)))
            out.append("\n")
        return "".join(out)

    def __str__(self) -> str:
        return self.to_string()

    def possibilities(self) -> str:
        lines = []
        for cell in self._topo.cells:
            lines.append(f"({cell.row},{cell.col}): {{{','.join(self.symbols(cell))}}}")
        return "\n".join(lines)

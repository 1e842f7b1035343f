from __future__ import annotations

import os
from typing import List, Tuple

import pandas as pd
import streamlit as st

from sudokit.board import Board
from sudokit.config import load_settings
from sudokit.engine import solve, validate_board
from sudokit.errors import ConfigError, StructuralError
from sudokit.models import STALLED, SYMBOLS, UNKNOWN, Cell, board_spec
from sudokit.storage import board_to_csv, format_puzzle, list_puzzles, load_puzzle, resolve_puzzle_dir

SUPPORTED_SIZES = [4, 9, 16]
DEFAULT_SIZE = 9
BLANKS = {"", UNKNOWN, "."}


def cell_key(n: int, r: int, c: int) -> str:
    # include N so changing size doesn't collide with old widget state
    return f"cell_{n}_{r}_{c}"


def reset_board(n: int) -> None:
    for r in range(n):
        for c in range(n):
            st.session_state[cell_key(n, r, c)] = ""


def fill_board(rows: List[str]) -> None:
    n = len(rows)
    for r, row in enumerate(rows):
        for c, ch in enumerate(row):
            st.session_state[cell_key(n, r, c)] = "" if ch == UNKNOWN else ch


def read_rows(n: int) -> Tuple[List[str], List[str]]:
    """
    Read cell widget values from session_state and build puzzle rows.
    Returns (rows, errors). Blank, '*' or '.' => unknown.
    """
    errors: List[str] = []
    rows: List[str] = []
    for r in range(n):
        row = []
        for c in range(n):
            raw = str(st.session_state.get(cell_key(n, r, c), "")).strip()
            if raw in BLANKS:
                row.append(UNKNOWN)
            elif len(raw) != 1:
                errors.append(f"Cell ({r+1},{c+1}) must hold a single symbol: '{raw}'")
                row.append(UNKNOWN)
            else:
                row.append(raw)
        rows.append("".join(row))
    return rows, errors


@st.cache_data(show_spinner=False)
def _load_sample_cached(path: str, mtime: float) -> List[str]:
    # mtime is part of the cache key so edited files are re-read
    return load_puzzle(path).to_rows()


def render_board_html(board: Board, title: str) -> None:
    """
    Render a clean Sudoku grid with thick block borders using HTML/CSS.
    """
    n, base = board.length, board.blocksize

    html = [f"<div class='sudoku-wrap'><div class='sudoku-title'>{title}</div>"]
    html.append("<table class='sudoku'>")
    for r in range(n):
        html.append("<tr>")
        for c in range(n):
            cls = []
            if r % base == 0:
                cls.append("top")
            if c % base == 0:
                cls.append("left")
            if (r + 1) % base == 0:
                cls.append("bottom")
            if (c + 1) % base == 0:
                cls.append("right")
            cls_attr = f" class='{' '.join(cls)}'" if cls else ""
            cell = Cell(r, c)
            if board.is_fixed(cell):
                disp = board.value(cell)
            else:
                disp = f"<span class='cands'>{board.symbols(cell)}</span>"
            html.append(f"<td{cls_attr}>{disp}</td>")
        html.append("</tr>")
    html.append("</table></div>")

    st.markdown("".join(html), unsafe_allow_html=True)


def candidates_df(board: Board) -> pd.DataFrame:
    rows = []
    for cell in board.ordered_cells():
        rows.append(
            {
                "cell": str(cell),
                "candidates": board.symbols(cell),
                "count": board.domain(cell).bit_count(),
            }
        )
    if not rows:
        return pd.DataFrame(columns=["cell", "candidates", "count"])
    return pd.DataFrame(rows)


st.set_page_config(page_title="Sudoku Solver", layout="wide")

st.markdown(
    """
<style>
/* Make inputs larger and centered */
div[data-testid="stTextInput"] input {
    text-align: center;
    font-size: 22px !important;
    height: 2.8rem;
    padding: 0.25rem 0.25rem;
}
div[data-testid="stTextInput"] { margin-bottom: 0rem; }

/* Sudoku HTML output */
.sudoku-wrap { margin-top: 0.5rem; }
.sudoku-title { font-size: 1.05rem; font-weight: 600; margin: 0.5rem 0 0.35rem 0; }
table.sudoku { border-collapse: collapse; }
table.sudoku td {
    width: 2.8rem;
    height: 2.8rem;
    text-align: center;
    vertical-align: middle;
    font-size: 22px;
    border: 1px solid rgba(49, 51, 63, 0.25);
}
table.sudoku td .cands { font-size: 10px; color: rgba(49, 51, 63, 0.6); word-break: break-all; }
table.sudoku td.top { border-top: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.left { border-left: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.bottom { border-bottom: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.right { border-right: 3px solid rgba(49, 51, 63, 0.65); }

/* Spacer columns (visual separation) */
.sudoku-spacer { height: 0.25rem; }
</style>
""",
    unsafe_allow_html=True,
)

st.title("Sudoku Solver")
st.caption(
    "Leave cells blank (or enter * / .) for unknowns. Symbols are taken from "
    f"`{SYMBOLS[:16]}`... Click **Solve** to get the solution."
)

try:
    settings = load_settings()
except ConfigError as e:
    st.error(str(e))
    st.stop()

# ---- Sidebar controls ----
with st.sidebar:
    st.header("Settings")
    if "size" not in st.session_state:
        st.session_state.size = DEFAULT_SIZE

    size = st.selectbox("Grid size", SUPPORTED_SIZES, index=SUPPORTED_SIZES.index(st.session_state.size))

    if size != st.session_state.size:
        st.session_state.size = size
        reset_board(size)

    logic_only = st.checkbox("Logic only (no guessing)", value=False)

    st.divider()
    if st.button("Reset board", use_container_width=True):
        reset_board(st.session_state.size)

    puzzle_dir = resolve_puzzle_dir()
    samples = list_puzzles(puzzle_dir)
    if samples:
        st.divider()
        sample = st.selectbox("Sample puzzle", samples)
        if st.button("Load sample", use_container_width=True):
            path = os.path.join(puzzle_dir, sample)
            try:
                rows = _load_sample_cached(path, os.path.getmtime(path))
            except (OSError, StructuralError) as e:
                st.error(f"Cannot load {sample}: {e}")
            else:
                if len(rows) not in SUPPORTED_SIZES:
                    st.error(f"{sample} is {len(rows)}x{len(rows)}; this page supports {SUPPORTED_SIZES}.")
                else:
                    st.session_state.size = len(rows)
                    fill_board(rows)
                    st.rerun()
    st.caption(f"Puzzles: `{puzzle_dir}`")

n = int(st.session_state.size)
base = board_spec(n).blocksize

# ---- Input grid in a form (prevents rerun on every keystroke) ----
st.subheader("Input")

with st.form("sudoku_form", clear_on_submit=False):
    # Build column widths with spacer columns between blocks
    spacer_w = 0.18
    widths = []
    for g in range(base):
        widths.extend([1.0] * base)
        if g != base - 1:
            widths.append(spacer_w)

    for r in range(n):
        cols = st.columns(widths, gap="small")
        col_idx = 0
        for c in range(n):
            # insert a spacer column after each block
            if c > 0 and c % base == 0:
                col_idx += 1  # skip spacer column
            with cols[col_idx]:
                key = cell_key(n, r, c)
                if key not in st.session_state:
                    st.session_state[key] = ""
                st.text_input(
                    label="",
                    key=key,
                    label_visibility="collapsed",
                    placeholder="",
                )
            col_idx += 1

        # horizontal spacer between blocks of rows
        if (r + 1) % base == 0 and (r + 1) != n:
            st.markdown("<div class='sudoku-spacer'></div>", unsafe_allow_html=True)

    colA, colB, colC = st.columns([1, 1, 2])
    validate_clicked = colA.form_submit_button("Validate", use_container_width=True)
    solve_clicked = colB.form_submit_button("Solve", use_container_width=True)

# ---- Actions ----
if validate_clicked or solve_clicked:
    rows, input_errors = read_rows(n)
    board = None
    if input_errors:
        st.error("Please fix these input issues:")
        st.write("\n".join([f"- {e}" for e in input_errors]))
    else:
        try:
            board = Board.from_rows(rows)
        except StructuralError as e:
            st.error(str(e))

    if board is not None:
        ok, msg = validate_board(board)
        if not ok:
            st.error(msg)
        else:
            st.success(f"Board looks valid (alphabet `{board.alphabet}`).")
            render_board_html(board, "Current board (preview)")

            if solve_clicked:
                result = solve(board, guess=not logic_only, settings=settings)
                stats = f"{result.duration_ms} ms, {result.guesses} guesses, {result.backtracks} backtracks"
                if result.solved:
                    st.success(f"Solution found ✅ ({stats})")
                    render_board_html(result.board, "Solution")
                    st.download_button(
                        "Download solution as CSV",
                        data=board_to_csv(result.board),
                        file_name=f"sudoku_solution_{n}x{n}.csv",
                        mime="text/csv",
                        use_container_width=False,
                    )
                elif result.status == STALLED:
                    st.warning(f"{result.message} ({stats})")
                    render_board_html(result.board, "Reduced board")
                    st.dataframe(candidates_df(result.board), hide_index=True)
                    st.download_button(
                        "Download reduced puzzle",
                        data=format_puzzle(result.board).encode("utf-8"),
                        file_name=f"sudoku_reduced_{n}x{n}.txt",
                        mime="text/plain",
                        help="Open cells are saved as *; candidate lists and unused symbols are not kept.",
                    )
                else:
                    st.error(f"{result.message} ({stats})")
else:
    # Always show a preview (readable) even before submitting
    rows, _ = read_rows(n)
    try:
        render_board_html(Board.from_rows(rows), "Current board (preview)")
    except StructuralError as e:
        st.info(str(e))

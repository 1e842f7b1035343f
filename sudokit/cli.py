from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from .config import load_settings
from .engine import solve
from .errors import ConfigError, StructuralError
from .storage import load_puzzle

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sudokit-solve",
        description=(
            "Solves the Sudoku puzzle, guessing if necessary. If --logic is given "
            "only logic is used, though it may be unable to completely solve it."
        ),
    )
    parser.add_argument("puzzle", help="Puzzle file: one row per line, '*' for unknown cells.")
    parser.add_argument("--logic", action="store_true", help="Never guess; stop when logic stalls.")
    parser.add_argument("--max-subset", type=int, default=None, metavar="N",
                        help="Largest naked/hidden subset to look for (default: block size).")
    parser.add_argument("--timeout", type=float, default=None, metavar="SECONDS",
                        help="Give up after this many seconds.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every guess and elimination.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        parser.error(str(e))
    if args.max_subset is not None:
        if args.max_subset < 1:
            parser.error("--max-subset must be at least 1")
        settings = dataclasses.replace(settings, max_subset_size=args.max_subset)
    if args.timeout is not None:
        if args.timeout <= 0:
            parser.error("--timeout must be a positive number of seconds")
        settings = dataclasses.replace(settings, timeout_s=args.timeout)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    print(args.puzzle)
    try:
        board = load_puzzle(args.puzzle)
    except (OSError, StructuralError) as e:
        print(f"error: cannot read puzzle {args.puzzle}: {e}", file=sys.stderr)
        return 1
    print(board.to_string())

    result = solve(board, guess=not args.logic, settings=settings)
    log.info("%s (%d ms)", result.message, result.duration_ms)

    print(result.board.to_string())
    print("Solved!" if result.board.is_solved() else "Unsolved")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3

"""
Command line driver: read a payoff matrix, print an optimal mixed
strategy for each player and the value of the game.

The matrix is given as rows of whitespace-separated numbers, either in
a file or on standard input. The row player is the maximizer.
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np
from numpy.typing import NDArray

from strategyst.evaluation import verify_solution
from strategyst.matrix_io import format_schema, format_solution, read_matrix
from strategyst.plotting import plot_guaranteed_payoff
from strategyst.schema import InvalidInputError, InvariantViolationError, Schema

logger = logging.getLogger('strategyst')

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, DEBUG and up when verbose, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='strategyst',
        description='Solve a two-player zero-sum game by the schema method of The Compleat Strategyst',
    )
    parser.add_argument('matrix', nargs='?', default='-',
                        help='payoff matrix file, "-" for standard input (default)')
    parser.add_argument('--schema', action='store_true',
                        help='also print the fully reduced schema')
    parser.add_argument('--verify', action='store_true',
                        help='cross-check the solution with linear programming')
    parser.add_argument('--tolerance', type=float, default=1e-6,
                        help='largest accepted gap when verifying (default: 1e-6)')
    parser.add_argument('--plot', metavar='PATH', default=None,
                        help='save a guaranteed payoff plot (2xN games only)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log every reduction step')
    return parser


def load_matrix(path: str) -> NDArray[np.float64]:
    """Read a payoff matrix from the file at `path`, or from stdin for `-`."""
    if path == '-':
        return read_matrix(sys.stdin)
    with open(path) as stream:
        return read_matrix(stream)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        matrix = load_matrix(args.matrix)
    except (OSError, InvalidInputError) as e:
        print(f"could not read payoff matrix: {e}", file=sys.stderr)
        return 1
    logger.debug("read a %dx%d payoff matrix", *matrix.shape)

    schema = Schema.from_matrix(matrix)
    try:
        solution = schema.solve()
    except InvariantViolationError as e:
        print(f"could not solve game: {e}", file=sys.stderr)
        return 1

    print(format_solution(solution), end='')
    if args.schema:
        print(format_schema(schema), end='')

    status = 0
    if args.verify:
        report = verify_solution(matrix, solution, tolerance=args.tolerance)
        print(f"lp value {report.lp_value:.3f}")
        print(f"exploitability {report.exploitability:.3e}")
        if not report.ok:
            status = 2

    if args.plot is not None:
        try:
            plot_guaranteed_payoff(matrix, args.plot, solution)
        except InvalidInputError as e:
            print(f"could not plot: {e}", file=sys.stderr)
            # A failed plot outranks a verification mismatch
            status = 1

    return status


if __name__ == '__main__':
    sys.exit(main())

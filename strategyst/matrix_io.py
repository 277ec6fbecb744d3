#!/usr/bin/env python3

"""
Reading payoff matrices from text and rendering schemas and solutions.
"""

from typing import List, Sequence, TextIO

import numpy as np
from numpy.typing import NDArray
from tabulate import tabulate

from strategyst.schema import Edge, InvalidInputError, Schema, Solution


def parse_matrix(text: str) -> NDArray[np.float64]:
    """Parse a payoff matrix given as rows of whitespace-separated numbers.

    Blank lines are skipped.

    Parameters
    ----------
    text : str
        The matrix in textual form

    Returns
    -------
    np.ndarray
        The payoff matrix

    Raises
    ------
    InvalidInputError
        If a token is not a finite number, or the matrix is empty or ragged
    """
    rows: List[List[float]] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        tokens = line.split()
        if not tokens:
            continue
        try:
            row = [float(token) for token in tokens]
        except ValueError as e:
            raise InvalidInputError(f"line {line_number}: {e}") from e
        if not np.all(np.isfinite(row)):
            raise InvalidInputError(f"line {line_number}: payoffs must be finite numbers")
        rows.append(row)

    if not rows:
        raise InvalidInputError("empty matrix")
    num_cols = len(rows[0])
    for row in rows[1:]:
        if len(row) != num_cols:
            raise InvalidInputError(
                f"ragged matrix: found a row of {len(row)} entries, expected {num_cols}"
            )

    return np.array(rows, dtype=np.float64)


def read_matrix(stream: TextIO) -> NDArray[np.float64]:
    """Read a payoff matrix in textual form from an open text stream."""
    return parse_matrix(stream.read())


def format_matrix(matrix: Sequence[Sequence[float]]) -> str:
    """Render a payoff matrix as text that `parse_matrix` reads back exactly."""
    lines = []
    for row in matrix:
        lines.append(' '.join(repr(float(v)) for v in row))
    return '\n'.join(lines) + '\n'


def format_schema(schema: Schema) -> str:
    """Render a schema as a table with its names along the edges."""
    names = schema.names
    rows = [[''] + [str(n) for n in names[Edge.TOP]] + ['', '']]
    for r, payoff_row in enumerate(schema.payoffs):
        left = str(names[Edge.LEFT][r]) if r < len(names[Edge.LEFT]) else ''
        right = str(names[Edge.RIGHT][r]) if r < len(names[Edge.RIGHT]) else ''
        rows.append([left] + [f'{v:.2f}' for v in payoff_row] + [right])
    rows.append([''] + [str(n) for n in names[Edge.BOTTOM]] + ['', ''])

    table = tabulate(rows, tablefmt="plain", disable_numparse=True, stralign="left")
    lines = [line.rstrip() for line in table.splitlines()]
    return f"O = {schema.offset:.2f}, D = {schema.d:.2f}\n" + "\n".join(lines) + "\n"


def format_solution(solution: Solution) -> str:
    """Render a solution as its value followed by both mixed strategies."""
    lines = [f'value {solution.value:.3f}']
    for label, strategy in (('max', solution.row_strategy), ('min', solution.col_strategy)):
        entries = ''.join(f' {i}:{p:.3f}' for i, p in enumerate(strategy))
        lines.append(f'{label}{entries}')
    return '\n'.join(lines) + '\n'

#!/usr/bin/env python3

"""
Optimal mixed strategies for two-player zero-sum games.

Follows the schema method of chapter 6 of J.D. Williams'
*The Compleat Strategyst* (McGraw-Hill 1954). The player choosing
rows (strategies on the left, "Blue" in the text) is the maximizer
and the player choosing columns (strategies on top, "Red") is the
minimizer.

The easiest way in is `Schema.from_matrix()` followed by
`Schema.solve()`:

    >>> schema = Schema.from_matrix([[0, 2, -1], [-1, 0, 1], [1, -1, 0]])
    >>> round(schema.solve().value, 4)
    0.0833
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

Pivot = Tuple[int, int]
MatrixLike = Union[Sequence[Sequence[float]], NDArray[np.float64]]


class InvalidInputError(ValueError):
    """The payoff matrix is empty, ragged or not numeric."""


class InvariantViolationError(RuntimeError):
    """The schema reached a state the method cannot handle (degenerate input)."""


@dataclass(frozen=True)
class Name:
    """The name of a row or column: an original strategy index, or nothing."""

    index: Optional[int] = None

    @property
    def is_strategy(self) -> bool:
        return self.index is not None

    def __str__(self) -> str:
        return '' if self.index is None else str(self.index)


UNNAMED = Name()


class Edge(IntEnum):
    LEFT = 0
    TOP = 1
    RIGHT = 2
    BOTTOM = 3


class Labels:
    """Strategy names along the four edges of a schema."""

    def __init__(
        self,
        left: List[Name],
        top: List[Name],
        right: List[Name],
        bottom: List[Name],
    ) -> None:
        self.edges: List[List[Name]] = [left, top, right, bottom]

    @classmethod
    def initial(cls, num_rows: int, num_cols: int) -> 'Labels':
        return cls(
            [Name(i) for i in range(num_rows)],
            [Name(j) for j in range(num_cols)],
            [UNNAMED] * num_rows,
            [UNNAMED] * num_cols,
        )

    def __getitem__(self, edge: Edge) -> List[Name]:
        return self.edges[edge]

    def __iter__(self) -> Iterator[List[Name]]:
        return iter(self.edges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Labels):
            return NotImplemented
        return self.edges == other.edges

    def __repr__(self) -> str:
        return 'Labels({})'.format(', '.join(
            '{}={}'.format(edge.name.lower(), [str(n) for n in self.edges[edge]])
            for edge in Edge
        ))

    def exchange(self, pivot: Pivot) -> None:
        """Swap Left/Bottom and Right/Top names through the pivot."""
        pr, pc = pivot
        left, top, right, bottom = self.edges
        left[pr], bottom[pc] = bottom[pc], left[pr]
        right[pr], top[pc] = top[pc], right[pr]

    def strategies(self, edge: Edge) -> List[Tuple[int, int]]:
        """Return `(position, strategy index)` pairs of the named entries on `edge`."""
        return [(pos, n.index) for pos, n in enumerate(self.edges[edge]) if n.is_strategy]


@dataclass(frozen=True, eq=False)
class Solution:
    """A game solution: the value and an optimal mixed strategy for each player.

    `left_strategy` holds the odds read off the right margin and
    `top_strategy` the odds read off the bottom margin. Names only reach
    the right edge by being exchanged with the top edge, so
    `left_strategy` is indexed by column strategies and is the
    minimizer's mix; `top_strategy` is indexed by row strategies and is
    the maximizer's mix. `row_strategy` and `col_strategy` name them by
    player.
    """

    value: float
    left_strategy: NDArray[np.float64]
    top_strategy: NDArray[np.float64]

    def __post_init__(self) -> None:
        for name in ('left_strategy', 'top_strategy'):
            strategy = np.array(getattr(self, name), dtype=np.float64)
            strategy.flags.writeable = False
            object.__setattr__(self, name, strategy)

    @property
    def row_strategy(self) -> NDArray[np.float64]:
        """Optimal mix of the row player (maximizer, "Blue")."""
        return self.top_strategy

    @property
    def col_strategy(self) -> NDArray[np.float64]:
        """Optimal mix of the column player (minimizer, "Red")."""
        return self.left_strategy

    def __str__(self) -> str:
        from strategyst.matrix_io import format_solution
        return format_solution(self)


def _float_key(value: float) -> Tuple[int, float]:
    """Total order over floats: NaN sorts above every number and equals itself."""
    if np.isnan(value):
        return (1, 0.0)
    return (0, float(value))


def as_payoff_matrix(matrix: MatrixLike) -> NDArray[np.float64]:
    """Check that `matrix` is a non-empty rectangular numeric matrix and copy it."""
    if isinstance(matrix, np.ndarray):
        if matrix.ndim != 2:
            raise InvalidInputError(f"payoff matrix must be 2-dimensional, got {matrix.ndim} dimensions")
        rows = matrix.tolist()
    else:
        try:
            rows = [list(row) for row in matrix]
        except TypeError as e:
            raise InvalidInputError(f"payoff matrix must be a sequence of rows: {e}") from e

    if len(rows) == 0 or len(rows[0]) == 0:
        raise InvalidInputError("empty matrix")
    num_cols = len(rows[0])
    for i, row in enumerate(rows[1:], start=1):
        if len(row) != num_cols:
            raise InvalidInputError(
                f"ragged matrix: row {i} has {len(row)} entries, expected {num_cols}"
            )
    for i, row in enumerate(rows):
        for j, value in enumerate(row):
            if isinstance(value, (str, bytes)):
                raise InvalidInputError(f"payoff matrix is not numeric: entry ({i}, {j}) is {value!r}")

    try:
        game = np.array(rows, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"payoff matrix is not numeric: {e}") from e
    if game.ndim != 2:
        raise InvalidInputError("payoff matrix entries must be numbers")
    if not np.all(np.isfinite(game)):
        i, j = np.argwhere(~np.isfinite(game))[0]
        raise InvalidInputError(f"payoff matrix entry ({i}, {j}) is not a finite number")
    return game


class Schema:
    """Schema describing a two-player zero-sum game during reduction.

    Attributes
    ----------
    offset : float
        Score offset subtracted from the payoffs so that they are all
        non-negative during the computation. It does not affect the
        strategies and is added back to the game value.
    d : float
        Current "divisor" for pivot values.
    names : Labels
        Strategy names along the edges of the payoff matrix.
    payoffs : np.ndarray
        Payoff matrix, including the margin row and column.
    """

    def __init__(self, offset: float, d: float, names: Labels, payoffs: NDArray[np.float64]) -> None:
        self.offset = offset
        self.d = d
        self.names = names
        self.payoffs = payoffs

    @classmethod
    def from_matrix(cls, matrix: MatrixLike) -> 'Schema':
        """Build a schema from a payoff matrix.

        Parameters
        ----------
        matrix : MatrixLike
            The row player's payoff matrix, as nested sequences or a 2-D array

        Returns
        -------
        Schema
            The initial, unreduced schema

        Raises
        ------
        InvalidInputError
            If the matrix is empty, ragged or not numeric
        """
        game = as_payoff_matrix(matrix)
        num_rows, num_cols = game.shape

        # Margin column of ones, margin row of minus ones, zero corner
        payoffs = np.empty((num_rows + 1, num_cols + 1), dtype=np.float64)
        payoffs[:num_rows, :num_cols] = game
        payoffs[:num_rows, num_cols] = 1.0
        payoffs[num_rows, :] = -1.0
        payoffs[num_rows, num_cols] = 0.0

        offset = float(game.min())
        payoffs[:num_rows, :num_cols] -= offset

        return cls(offset, 1.0, Labels.initial(num_rows, num_cols), payoffs)

    @property
    def shape(self) -> Tuple[int, int]:
        """Shape of the original payoff matrix (without margins)."""
        num_rows, num_cols = self.payoffs.shape
        return num_rows - 1, num_cols - 1

    def find_pivot(self) -> Optional[Pivot]:
        """Find the next pivot, or `None` iff the schema is fully reduced.

        Within each improvable column the candidate with the smallest
        score wins; across columns the largest representative score
        wins. Ties go to the first one seen at both levels.
        """
        # Compleat Strategyst p. 221, step 3
        bottom, right = self.shape
        best: Optional[Tuple[Pivot, float]] = None

        for c in range(right):
            cp = self.payoffs[bottom, c]
            if not cp < 0.0:
                continue

            column_best: Optional[Tuple[Pivot, float]] = None
            for r in range(bottom):
                p = self.payoffs[r, c]
                if not p > 0.0:
                    continue
                rp = self.payoffs[r, right]
                score = -rp * cp / p
                if column_best is None or _float_key(score) < _float_key(column_best[1]):
                    column_best = ((r, c), score)

            if column_best is None:
                continue
            if best is None or _float_key(column_best[1]) > _float_key(best[1]):
                best = column_best

        return None if best is None else best[0]

    def reduce(self, pivot: Pivot) -> None:
        """Reduce the schema in place using the given pivot.

        Parameters
        ----------
        pivot : Pivot
            A `(row, column)` pair as returned by `find_pivot()`

        Raises
        ------
        InvariantViolationError
            If the current divisor is zero
        """
        # Compleat Strategyst p. 222, step 4
        pr, pc = pivot
        p = self.payoffs[pr, pc]
        d = self.d
        if d == 0.0:
            raise InvariantViolationError(f"zero divisor while reducing at pivot {pivot}")

        pivot_row = self.payoffs[pr, :].copy()
        pivot_col = self.payoffs[:, pc].copy()

        reduced = (self.payoffs * p - np.outer(pivot_col, pivot_row)) / d
        reduced[pr, :] = pivot_row
        reduced[:, pc] = -pivot_col
        reduced[pr, pc] = d

        self.payoffs = reduced
        self.d = float(p)

        # Step 5
        self.names.exchange(pivot)
        logger.debug("reduced at pivot %s, divisor %g -> %g", pivot, d, self.d)

    def solution(self) -> Solution:
        """Derive the solution from a fully reduced schema.

        Raises
        ------
        InvariantViolationError
            If a margin value has the wrong sign, which happens when the
            schema is not fully reduced or the game is degenerate
        """
        # Compleat Strategyst p. 226, step 6
        num_rows, num_cols = self.shape

        # Right names come from the top edge, bottom names from the left
        left_strategy = np.zeros(num_cols, dtype=np.float64)
        for r, sr in self.names.strategies(Edge.RIGHT):
            p = self.payoffs[r, num_cols]
            if not p >= 0.0:
                raise InvariantViolationError(f"negative margin value {p} at row {r}")
            left_strategy[sr] = p

        top_strategy = np.zeros(num_rows, dtype=np.float64)
        for c, sc in self.names.strategies(Edge.BOTTOM):
            p = self.payoffs[num_rows, c]
            if not p > 0.0:
                raise InvariantViolationError(f"non-positive margin value {p} at column {c}")
            top_strategy[sc] = p

        v = self.payoffs[num_rows, num_cols]
        if not v > 0.0:
            raise InvariantViolationError(f"non-positive corner value {v}")

        for label, strategy in (('left', left_strategy), ('top', top_strategy)):
            total = strategy.sum()
            if not total > 0.0:
                raise InvariantViolationError(f"{label} strategy weights sum to {total}")
            strategy /= total

        return Solution(
            value=float(self.d / v + self.offset),
            left_strategy=left_strategy,
            top_strategy=top_strategy,
        )

    def solve(self) -> Solution:
        """Reduce until no pivot is left, then return the solution."""
        # Compleat Strategyst p. 226, step 6
        num_pivots = 0
        while True:
            pivot = self.find_pivot()
            if pivot is None:
                break
            self.reduce(pivot)
            num_pivots += 1
        logger.debug("schema fully reduced after %d pivots", num_pivots)
        return self.solution()

    def __str__(self) -> str:
        from strategyst.matrix_io import format_schema
        return format_schema(self)

    def __repr__(self) -> str:
        return f"Schema(offset={self.offset!r}, d={self.d!r}, shape={self.shape})"


def build_tableau(matrix: MatrixLike) -> Schema:
    """Build the initial schema for a payoff matrix (see `Schema.from_matrix`)."""
    return Schema.from_matrix(matrix)


def find_pivot(schema: Schema) -> Optional[Pivot]:
    return schema.find_pivot()


def reduce(schema: Schema, pivot: Pivot) -> None:
    schema.reduce(pivot)


def extract_solution(schema: Schema) -> Solution:
    return schema.solution()


def solve(schema: Schema) -> Solution:
    """Solve a schema in place and return its solution."""
    return schema.solve()


def solve_matrix(matrix: MatrixLike) -> Solution:
    """Build a schema for `matrix` and solve it."""
    return Schema.from_matrix(matrix).solve()

#!/usr/bin/env python3

"""
Checks on solved zero-sum games: expected utilities, best responses,
exploitability, and an independent linear-programming solution used to
cross-check the schema method.
"""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import linprog

from strategyst.schema import InvalidInputError, MatrixLike, Solution, as_payoff_matrix

logger = logging.getLogger(__name__)


def evaluate_zero_sum(
    row_matrix: np.ndarray, row_strategy: np.ndarray, col_strategy: np.ndarray
) -> np.ndarray:
    """Compute the expected utility of each player in a zero-sum game.

    Parameters
    ----------
    row_matrix : np.ndarray
        The row player's payoff matrix
    row_strategy : np.ndarray
        The row player's strategy
    col_strategy : np.ndarray
        The column player's strategy

    Returns
    -------
    np.ndarray
        A vector of expected utilities of the players
    """
    row_utility = np.dot(row_strategy, np.dot(row_matrix, col_strategy))
    return np.array([row_utility, -row_utility], dtype=np.float64)


def calculate_best_response_against_row(
    row_matrix: np.ndarray, row_strategy: np.ndarray
) -> np.ndarray:
    """Compute a pure best response for the column player against the row player.

    The column player minimizes the row player's payoff.

    Parameters
    ----------
    row_matrix : np.ndarray
        The row player's payoff matrix
    row_strategy : np.ndarray
        The row player's strategy

    Returns
    -------
    np.ndarray
        The column player's best response
    """
    expected_payoffs = np.dot(row_strategy, row_matrix)
    best_response = np.zeros(row_matrix.shape[1], dtype=np.float64)
    best_response[np.argmin(expected_payoffs)] = 1.0
    return best_response


def calculate_best_response_against_col(
    row_matrix: np.ndarray, col_strategy: np.ndarray
) -> np.ndarray:
    """Compute a pure best response for the row player against the column player.

    Parameters
    ----------
    row_matrix : np.ndarray
        The row player's payoff matrix
    col_strategy : np.ndarray
        The column player's strategy

    Returns
    -------
    np.ndarray
        The row player's best response
    """
    expected_payoffs = np.dot(row_matrix, col_strategy)
    best_response = np.zeros(row_matrix.shape[0], dtype=np.float64)
    best_response[np.argmax(expected_payoffs)] = 1.0
    return best_response


def compute_deltas(
    row_matrix: np.ndarray, row_strategy: np.ndarray, col_strategy: np.ndarray
) -> np.ndarray:
    """Compute both players' incentives to deviate from their strategies."""
    row_utility, col_utility = evaluate_zero_sum(row_matrix, row_strategy, col_strategy)

    row_best_response = calculate_best_response_against_col(row_matrix, col_strategy)
    col_best_response = calculate_best_response_against_row(row_matrix, row_strategy)

    best_row_utility = evaluate_zero_sum(row_matrix, row_best_response, col_strategy)[0]
    best_col_utility = evaluate_zero_sum(row_matrix, row_strategy, col_best_response)[1]

    return np.array([best_row_utility - row_utility, best_col_utility - col_utility], dtype=np.float64)


def compute_exploitability(
    row_matrix: np.ndarray, row_strategy: np.ndarray, col_strategy: np.ndarray
) -> np.float64:
    """Compute the exploitability of a strategy profile.

    Exploitability is the average of both players' incentives to deviate;
    it is zero exactly at an equilibrium.
    """
    return np.float64(np.mean(compute_deltas(row_matrix, row_strategy, col_strategy)))


def find_nash_equilibrium(row_matrix: np.ndarray) -> tuple[float, np.ndarray, np.ndarray]:
    """Solve a zero-sum game by linear programming.

    The reference implementation uses `scipy.optimize.linprog` with the
    'highs' solver, once for each player.

    Parameters
    ----------
    row_matrix : np.ndarray
        The row player's payoff matrix

    Returns
    -------
    tuple[float, np.ndarray, np.ndarray]
        The game value and a strategy profile that forms a Nash equilibrium

    Raises
    ------
    ValueError
        If the solver does not find a solution
    """
    num_rows, num_cols = row_matrix.shape

    # Row player's LP over [p_1, ..., p_m, v]:
    #   maximize v  s.t.  sum_i p_i * A[i, j] >= v for every column j,
    #   sum_i p_i = 1, p_i >= 0
    c = np.zeros(num_rows + 1, dtype=np.float64)
    c[-1] = -1.0
    A_ub = np.hstack([-row_matrix.T, np.ones((num_cols, 1))])
    b_ub = np.zeros(num_cols, dtype=np.float64)
    A_eq = np.zeros((1, num_rows + 1), dtype=np.float64)
    A_eq[0, :num_rows] = 1.0
    b_eq = np.array([1.0], dtype=np.float64)
    bounds = [(0.0, 1.0) for _ in range(num_rows)] + [(None, None)]

    result = linprog(c, A_ub=A_ub, b_ub=b_ub, A_eq=A_eq, b_eq=b_eq, bounds=bounds, method='highs')
    if not result.success:
        raise ValueError(f"Linear programming failed to find a solution: {result.message}")
    row_strategy = result.x[:num_rows]
    value = float(result.x[-1])

    # Column player's LP over [q_1, ..., q_n, u]:
    #   minimize u  s.t.  sum_j q_j * A[i, j] <= u for every row i,
    #   sum_j q_j = 1, q_j >= 0
    c_col = np.zeros(num_cols + 1, dtype=np.float64)
    c_col[-1] = 1.0
    A_ub_col = np.hstack([row_matrix, -np.ones((num_rows, 1))])
    b_ub_col = np.zeros(num_rows, dtype=np.float64)
    A_eq_col = np.zeros((1, num_cols + 1), dtype=np.float64)
    A_eq_col[0, :num_cols] = 1.0
    bounds_col = [(0.0, 1.0) for _ in range(num_cols)] + [(None, None)]

    result_col = linprog(c_col, A_ub=A_ub_col, b_ub=b_ub_col, A_eq=A_eq_col, b_eq=b_eq,
                         bounds=bounds_col, method='highs')
    if not result_col.success:
        raise ValueError(f"Linear programming failed to find a solution for column player: {result_col.message}")
    col_strategy = result_col.x[:num_cols]

    return value, row_strategy.astype(np.float64), col_strategy.astype(np.float64)


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of checking a schema solution against linear programming."""

    schema_value: float
    lp_value: float
    expected_value: float
    exploitability: float
    tolerance: float

    @property
    def value_gap(self) -> float:
        return abs(self.schema_value - self.lp_value)

    @property
    def ok(self) -> bool:
        return (
            self.value_gap <= self.tolerance
            and abs(self.expected_value - self.schema_value) <= self.tolerance
            and self.exploitability <= self.tolerance
        )


def verify_solution(matrix: MatrixLike, solution: Solution, tolerance: float = 1e-6) -> VerificationReport:
    """Cross-check a solution with an LP solve and an exploitability test.

    Parameters
    ----------
    matrix : MatrixLike
        The original (unshifted) payoff matrix
    solution : Solution
        The solution found by the schema method
    tolerance : float
        Largest accepted value gap and exploitability

    Returns
    -------
    VerificationReport
        The measured gaps; `ok` tells whether they are within `tolerance`
    """
    row_matrix = as_payoff_matrix(matrix)
    if solution.row_strategy.shape != (row_matrix.shape[0],) or \
       solution.col_strategy.shape != (row_matrix.shape[1],):
        raise InvalidInputError("solution does not match the shape of the payoff matrix")

    lp_value, _, _ = find_nash_equilibrium(row_matrix)
    expected_value = evaluate_zero_sum(row_matrix, solution.row_strategy, solution.col_strategy)[0]
    exploitability = compute_exploitability(row_matrix, solution.row_strategy, solution.col_strategy)

    report = VerificationReport(
        schema_value=solution.value,
        lp_value=lp_value,
        expected_value=float(expected_value),
        exploitability=float(exploitability),
        tolerance=tolerance,
    )
    if report.ok:
        logger.info("solution verified: value %.6f, exploitability %.2e", report.lp_value, report.exploitability)
    else:
        logger.warning(
            "solution disagrees with linear programming: schema value %.6f, LP value %.6f, exploitability %.2e",
            report.schema_value, report.lp_value, report.exploitability,
        )
    return report

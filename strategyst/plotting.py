#!/usr/bin/env python3

import logging
from pathlib import Path
from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np

from strategyst.schema import InvalidInputError, MatrixLike, Solution, as_payoff_matrix

logger = logging.getLogger(__name__)


def guaranteed_payoff(row_matrix: np.ndarray, step_size: float) -> tuple[np.ndarray, np.ndarray]:
    """Tabulate the row player's guaranteed payoff in a 2xN zero-sum game.

    Parameters
    ----------
    row_matrix : np.ndarray
        The row player's 2xN payoff matrix
    step_size : float
        The step size for the probability of the row player's first action

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        The probabilities of the first action and the payoff the column
        player's best response leaves the row player at each of them
    """
    if row_matrix.ndim != 2 or row_matrix.shape[0] != 2:
        raise InvalidInputError("guaranteed payoff is only defined here for 2xN games")
    if not 0.0 < step_size <= 1.0:
        raise InvalidInputError(f"step size must be in (0, 1], got {step_size}")

    p1_values = np.linspace(0.0, 1.0, int(round(1.0 / step_size)) + 1)
    row_strategies = np.stack([p1_values, 1.0 - p1_values], axis=1)

    # The column player answers each row strategy with the column that
    # minimizes the row player's expected payoff
    values = np.min(row_strategies @ row_matrix, axis=1)
    return p1_values, values


def plot_guaranteed_payoff(
    matrix: MatrixLike,
    path: Union[str, Path],
    solution: Optional[Solution] = None,
    step_size: float = 0.01,
) -> None:
    """Plot the row player's guaranteed payoff for a 2xN zero-sum game.

    One line is drawn per column action, together with their lower
    envelope. When a solution is given, its strategy and value are marked.

    Parameters
    ----------
    matrix : MatrixLike
        The row player's 2xN payoff matrix
    path : str | Path
        Where to save the figure
    solution : Solution, optional
        A solution of the game to mark on the plot
    step_size : float
        The step size for the probability of the row player's first action
    """
    row_matrix = as_payoff_matrix(matrix)
    p1_values, values = guaranteed_payoff(row_matrix, step_size)

    fig = plt.figure(figsize=(10, 6))
    for j in range(row_matrix.shape[1]):
        column_payoffs = p1_values * row_matrix[0, j] + (1.0 - p1_values) * row_matrix[1, j]
        plt.plot(p1_values, column_payoffs, '--', linewidth=1, alpha=0.6, label=f'Column {j}')
    plt.plot(p1_values, values, 'b-', linewidth=2, label='Guaranteed payoff')

    if solution is not None:
        plt.plot([solution.row_strategy[0]], [solution.value], 'ro', label=f'Value {solution.value:.3f}')

    plt.xlabel('Probability of Row Player\'s First Action')
    plt.ylabel('Guaranteed Payoff')
    plt.title('Guaranteed Payoff for Row Player (2xN Zero-Sum Game)')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.xlim(0, 1)
    plt.savefig(path)
    plt.close(fig)
    logger.info("saved guaranteed payoff plot to %s", path)

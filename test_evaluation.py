#!/usr/bin/env python3

import logging

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from strategyst.evaluation import (
    calculate_best_response_against_col,
    calculate_best_response_against_row,
    compute_exploitability,
    evaluate_zero_sum,
    find_nash_equilibrium,
    verify_solution,
)
from strategyst.schema import InvalidInputError, solve_matrix

WILLIAMS = np.array([[6.0, 0.0, 3.0], [8.0, -2.0, 3.0], [4.0, 6.0, 5.0]])
DUNGEON_QUEST = np.array([[0.0, 2.0, -1.0], [-1.0, 0.0, 1.0], [1.0, -1.0, 0.0]])
MATCHING_PENNIES = np.array([[1.0, -1.0], [-1.0, 1.0]])
# Column 0 is all equal to the smallest payoff, a case the schema method mishandles
ZERO_COLUMN = np.array([[1.0, 2.0], [1.0, 3.0]])


def test_evaluate_zero_sum():
    utilities = evaluate_zero_sum(MATCHING_PENNIES, np.array([1.0, 0.0]), np.array([0.0, 1.0]))
    assert_array_equal(utilities, [-1.0, 1.0])


def test_best_responses():
    # Against row 0 of matching pennies the column player picks column 1
    assert_array_equal(calculate_best_response_against_row(MATCHING_PENNIES, np.array([1.0, 0.0])), [0.0, 1.0])
    # Against column 1 the row player picks row 1
    assert_array_equal(calculate_best_response_against_col(MATCHING_PENNIES, np.array([0.0, 1.0])), [0.0, 1.0])


def test_exploitability():
    uniform = np.array([0.5, 0.5])
    assert_allclose(compute_exploitability(MATCHING_PENNIES, uniform, uniform), 0.0, atol=1e-12)

    pure = np.array([1.0, 0.0])
    # At (row 0, column 0) only the column player gains, by 2
    assert_allclose(compute_exploitability(MATCHING_PENNIES, pure, pure), 1.0)


@pytest.mark.parametrize('matrix, value', [
    (WILLIAMS, 14.0 / 3.0),
    (DUNGEON_QUEST, 1.0 / 12.0),
    (MATCHING_PENNIES, 0.0),
])
def test_find_nash_equilibrium(matrix, value):
    lp_value, row_strategy, col_strategy = find_nash_equilibrium(matrix)

    assert_allclose(lp_value, value, atol=1e-6)
    assert_allclose(np.sum(row_strategy), 1.0, atol=1e-6)
    assert_allclose(np.sum(col_strategy), 1.0, atol=1e-6)
    assert compute_exploitability(matrix, row_strategy, col_strategy) < 1e-6


@pytest.mark.parametrize('matrix', [WILLIAMS, DUNGEON_QUEST, MATCHING_PENNIES])
def test_verify_schema_solutions(matrix):
    report = verify_solution(matrix, solve_matrix(matrix))

    assert report.ok
    assert report.value_gap < 1e-6
    assert report.exploitability < 1e-6


def test_verify_flags_zero_column(caplog):
    solution = solve_matrix(ZERO_COLUMN)
    assert solution.value == 3.0

    with caplog.at_level(logging.WARNING, logger='strategyst'):
        report = verify_solution(ZERO_COLUMN, solution)

    assert not report.ok
    assert_allclose(report.lp_value, 1.0, atol=1e-6)
    assert_allclose(report.value_gap, 2.0, atol=1e-6)
    assert_allclose(report.exploitability, 1.0)
    assert 'disagrees with linear programming' in caplog.text


def test_verify_shape_mismatch():
    with pytest.raises(InvalidInputError):
        verify_solution(MATCHING_PENNIES, solve_matrix(WILLIAMS))

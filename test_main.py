#!/usr/bin/env python3

import io
import sys

import pytest

from strategyst.main import main

WILLIAMS_TEXT = "6 0 3\n8 -2 3\n4 6 5\n"
DUNGEON_QUEST_TEXT = " 0  2 -1\n-1  0  1\n\n 1 -1  0\n"


@pytest.fixture
def matrix_file(tmp_path):
    def write(text, name='matrix.txt'):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return write


def test_solve_file(matrix_file, capsys):
    assert main([matrix_file(DUNGEON_QUEST_TEXT)]) == 0

    out = capsys.readouterr().out
    assert out == (
        "value 0.083\n"
        "max 0:0.250 1:0.333 2:0.417\n"
        "min 0:0.333 1:0.250 2:0.417\n"
    )


def test_solve_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, 'stdin', io.StringIO(WILLIAMS_TEXT))
    assert main([]) == 0

    out = capsys.readouterr().out
    assert out.splitlines()[0] == "value 4.667"


def test_print_schema(matrix_file, capsys):
    assert main([matrix_file(WILLIAMS_TEXT), '--schema']) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[3] == "O = -2.00, D = 40.00"


def test_verbose_logs_reductions(matrix_file, capsys):
    assert main([matrix_file(WILLIAMS_TEXT), '--verbose']) == 0

    err = capsys.readouterr().err
    assert 'reduced at pivot (2, 2)' in err
    assert 'fully reduced after 2 pivots' in err


def test_ragged_input(matrix_file, capsys):
    assert main([matrix_file("1 2\n3\n")]) == 1

    err = capsys.readouterr().err
    assert err.startswith("could not read payoff matrix: ragged matrix")


def test_non_numeric_input(matrix_file, capsys):
    assert main([matrix_file("1 2\nthree 4\n")]) == 1
    assert "could not read payoff matrix: line 2" in capsys.readouterr().err


def test_degenerate_game(matrix_file, capsys):
    assert main([matrix_file("3 3\n3 3\n")]) == 1
    assert "could not solve game" in capsys.readouterr().err


def test_verify(matrix_file, capsys):
    assert main([matrix_file(WILLIAMS_TEXT), '--verify']) == 0

    out = capsys.readouterr().out
    assert "lp value 4.667" in out


def test_verify_disagreement(matrix_file, capsys):
    assert main([matrix_file("1 2\n1 3\n"), '--verify']) == 2

    captured = capsys.readouterr()
    assert "value 3.000" in captured.out
    assert "lp value 1.000" in captured.out
    assert "disagrees with linear programming" in captured.err


def test_plot(matrix_file, tmp_path):
    plot_path = tmp_path / 'pennies.png'
    assert main([matrix_file("1 -1\n-1 1\n"), '--plot', str(plot_path)]) == 0
    assert plot_path.exists()


def test_plot_needs_two_rows(matrix_file, tmp_path, capsys):
    assert main([matrix_file(WILLIAMS_TEXT), '--plot', str(tmp_path / 'no.png')]) == 1
    assert "could not plot" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / 'missing.txt')]) == 1
    assert capsys.readouterr().err.startswith("could not read payoff matrix:")


def test_dash_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, 'stdin', io.StringIO(DUNGEON_QUEST_TEXT))
    assert main(['-']) == 0
    assert capsys.readouterr().out.startswith("value 0.083\n")


def test_nan_input(matrix_file, capsys):
    assert main([matrix_file("1 nan\n2 3\n")]) == 1
    assert capsys.readouterr().err.startswith("could not read payoff matrix: line 1")


def test_verify_runs_when_plot_fails(matrix_file, tmp_path, capsys):
    args = [matrix_file(WILLIAMS_TEXT), '--verify', '--plot', str(tmp_path / 'no.png')]
    assert main(args) == 1

    captured = capsys.readouterr()
    assert "lp value 4.667" in captured.out
    assert "could not plot" in captured.err

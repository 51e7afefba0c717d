from __future__ import annotations

import math
from typing import Sequence

from ..engine.constants import FX, LO, UP
from ..engine.problem import Problem


def add_affine_row(
    problem: Problem, columns: Sequence[int], coefficients: Sequence[float], sense: str, rhs: float
) -> int:
    """Append the row ``sum(coefficients * columns) <sense> rhs`` to ``problem``.

    ``sense`` is ``"E"`` (==), ``"G"`` (>=) or ``"L"`` (<=). Returns the new row.
    """
    if len(columns) != len(coefficients):
        raise ValueError("columns and coefficients have different lengths")
    row = problem.add_rows(1)
    problem.set_mat_row(row, columns, coefficients)
    set_row_sense(problem, row, sense, rhs)
    return row


def set_row_sense(problem: Problem, row: int, sense: str, rhs: float) -> None:
    if sense == "E":
        problem.set_row_bnds(row, FX, rhs, rhs)
    elif sense == "G":
        problem.set_row_bnds(row, LO, rhs, math.inf)
    elif sense == "L":
        problem.set_row_bnds(row, UP, -math.inf, rhs)
    else:
        raise ValueError(f"unknown row sense {sense!r}")


__all__ = ["add_affine_row", "set_row_sense"]

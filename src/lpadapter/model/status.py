"""Translation of engine return codes and solution statuses.

Each algorithm entry point has its own table of non-zero return codes. A zero
code only says the algorithm ran to completion; the outcome then comes from
the solution status of the algorithm family that ran.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..engine import constants as E
from ..engine.problem import Problem
from .types import Method, ResultStatus, TerminationStatus

T = TerminationStatus

_BAD_BASIS = "Unable to start the search: the initial basis is invalid."
_BAD_BOUNDS = "Unable to start the search: some double-bounded variables have incorrect bounds."
_TIME_LIMIT = "The search was prematurely terminated because the time limit was exceeded."
_ITERATION_LIMIT = "The search was prematurely terminated because the iteration limit was exceeded."
_NO_ROWS_COLS = "The problem instance has no rows/columns."

RAW_SIMPLEX_STRINGS: dict[int, tuple[TerminationStatus, str]] = {
    E.EBADB: (T.INVALID_MODEL, _BAD_BASIS),
    E.ESING: (T.NUMERICAL_ERROR, "Unable to start the search: the initial basis matrix is singular."),
    E.ECOND: (T.NUMERICAL_ERROR, "Unable to start the search: the initial basis matrix is ill-conditioned."),
    E.EBOUND: (T.INVALID_MODEL, _BAD_BOUNDS),
    E.EFAIL: (T.NUMERICAL_ERROR, "The search was prematurely terminated due to a solver failure."),
    E.EOBJLL: (T.OBJECTIVE_LIMIT, "The objective being maximised reached its lower limit and keeps decreasing (dual simplex only)."),
    E.EOBJUL: (T.OBJECTIVE_LIMIT, "The objective being minimised reached its upper limit and keeps increasing (dual simplex only)."),
    E.EITLIM: (T.ITERATION_LIMIT, _ITERATION_LIMIT),
    E.ETMLIM: (T.TIME_LIMIT, _TIME_LIMIT),
    E.ENOPFS: (T.INFEASIBLE, "The LP has no primal feasible solution (reported by the presolver)."),
    E.ENODFS: (T.DUAL_INFEASIBLE, "The LP has no dual feasible solution (reported by the presolver)."),
}

RAW_EXACT_STRINGS: dict[int, tuple[TerminationStatus, str]] = {
    E.EBADB: (T.INVALID_MODEL, _BAD_BASIS),
    E.ESING: (T.NUMERICAL_ERROR, "Unable to start the search: the initial basis matrix is exactly singular."),
    E.EBOUND: (T.INVALID_MODEL, _BAD_BOUNDS),
    E.EFAIL: (T.INVALID_MODEL, _NO_ROWS_COLS),
    E.EITLIM: (T.ITERATION_LIMIT, _ITERATION_LIMIT),
    E.ETMLIM: (T.TIME_LIMIT, _TIME_LIMIT),
}

RAW_INTERIOR_STRINGS: dict[int, tuple[TerminationStatus, str]] = {
    E.EFAIL: (T.INVALID_MODEL, _NO_ROWS_COLS),
    E.ENOCVG: (T.SLOW_PROGRESS, "Very slow convergence or divergence."),
    E.EITLIM: (T.ITERATION_LIMIT, "Iteration limit exceeded."),
    E.EINSTAB: (T.NUMERICAL_ERROR, "Numerical instability on solving the Newtonian system."),
}

RAW_INTOPT_STRINGS: dict[int, tuple[TerminationStatus, str]] = {
    E.EBOUND: (T.INVALID_MODEL, _BAD_BOUNDS),
    E.EROOT: (T.INVALID_MODEL, "Unable to start the search: no optimal basis of the LP relaxation was provided."),
    E.ENOPFS: (T.INFEASIBLE, "Unable to start the search: the LP relaxation has no primal feasible solution."),
    E.ENODFS: (
        T.DUAL_INFEASIBLE,
        "Unable to start the search: the LP relaxation has no dual feasible solution, "
        "so an integer feasible solution, if any, is unbounded.",
    ),
    E.EFAIL: (T.INVALID_MODEL, "The search was prematurely terminated due to a solver failure."),
    E.EMIPGAP: (T.OPTIMAL, "The search was prematurely terminated because the relative mip gap tolerance was reached."),
    E.ETMLIM: (T.TIME_LIMIT, _TIME_LIMIT),
    E.ESTOP: (T.INTERRUPTED, "The search was prematurely terminated by the application."),
}

RAW_SOLUTION_STATUS: dict[int, tuple[TerminationStatus, str]] = {
    E.OPT: (T.OPTIMAL, "Solution is optimal"),
    E.FEAS: (T.LOCALLY_SOLVED, "Solution is feasible"),
    E.INFEAS: (T.LOCALLY_INFEASIBLE, "Solution is infeasible"),
    E.NOFEAS: (T.INFEASIBLE, "No feasible primal-dual solution exists."),
    E.UNBND: (T.DUAL_INFEASIBLE, "Problem has unbounded solution"),
    E.UNDEF: (T.OTHER_ERROR, "Solution is undefined"),
}


@dataclass(slots=True)
class SolveState:
    """Bookkeeping of the last call to ``optimize``."""

    optimize_not_called: bool = True
    solver_status: int = 0
    last_solved_by_mip: bool = False
    objective_bound: float = math.nan
    relative_gap: float = math.nan
    solve_time: float = math.nan
    unbounded_ray: Optional[list[float]] = None
    infeasibility_cert: Optional[list[float]] = None

    def reset(self) -> None:
        self.optimize_not_called = True
        self.solver_status = 0
        self.last_solved_by_mip = False
        self.objective_bound = math.nan
        self.relative_gap = math.nan
        self.solve_time = math.nan
        self.unbounded_ray = None
        self.infeasibility_cert = None


def raw_table(state: SolveState, method: Method) -> dict[int, tuple[TerminationStatus, str]]:
    if state.last_solved_by_mip:
        return RAW_INTOPT_STRINGS
    if method == Method.SIMPLEX:
        return RAW_SIMPLEX_STRINGS
    if method == Method.EXACT:
        return RAW_EXACT_STRINGS
    return RAW_INTERIOR_STRINGS


def _raw_entry(state: SolveState, method: Method) -> tuple[TerminationStatus, str]:
    table = raw_table(state, method)
    try:
        return table[state.solver_status]
    except KeyError:
        return T.OTHER_ERROR, f"Unexpected return code {state.solver_status}."


def solution_status(prob: Problem, state: SolveState, method: Method) -> tuple[TerminationStatus, str]:
    if state.last_solved_by_mip:
        code = prob.mip_status()
    elif method in (Method.SIMPLEX, Method.EXACT):
        code = prob.get_status()
    else:
        code = prob.ipt_status()
    return RAW_SOLUTION_STATUS[code]


def certificates_potentially_available(state: SolveState, method: Method) -> bool:
    """Rays can only be extracted after a simplex or exact solve of an LP."""
    return not state.last_solved_by_mip and method in (Method.SIMPLEX, Method.EXACT)


def termination_status(prob: Problem, state: SolveState, method: Method) -> TerminationStatus:
    if state.optimize_not_called:
        return T.OPTIMIZE_NOT_CALLED
    if state.solver_status != 0:
        return _raw_entry(state, method)[0]
    return solution_status(prob, state, method)[0]


def raw_status_string(prob: Problem, state: SolveState, method: Method) -> str:
    if state.optimize_not_called:
        return "Optimize not called"
    if state.solver_status != 0:
        return _raw_entry(state, method)[1]
    return solution_status(prob, state, method)[1]


def primal_status(prob: Problem, state: SolveState, method: Method) -> ResultStatus:
    status, _ = solution_status(prob, state, method)
    if status in (T.OPTIMAL, T.LOCALLY_SOLVED):
        return ResultStatus.FEASIBLE_POINT
    if status == T.LOCALLY_INFEASIBLE:
        return ResultStatus.INFEASIBLE_POINT
    if status == T.DUAL_INFEASIBLE and certificates_potentially_available(state, method):
        return ResultStatus.INFEASIBILITY_CERTIFICATE
    return ResultStatus.NO_SOLUTION


def dual_status(prob: Problem, state: SolveState, method: Method) -> ResultStatus:
    if state.last_solved_by_mip:
        return ResultStatus.NO_SOLUTION
    status, _ = solution_status(prob, state, method)
    if status == T.OPTIMAL:
        return ResultStatus.FEASIBLE_POINT
    if status in (T.INFEASIBLE, T.LOCALLY_INFEASIBLE) and certificates_potentially_available(state, method):
        return ResultStatus.INFEASIBILITY_CERTIFICATE
    return ResultStatus.NO_SOLUTION


__all__ = [
    "RAW_SIMPLEX_STRINGS",
    "RAW_EXACT_STRINGS",
    "RAW_INTERIOR_STRINGS",
    "RAW_INTOPT_STRINGS",
    "RAW_SOLUTION_STATUS",
    "SolveState",
    "raw_table",
    "solution_status",
    "certificates_potentially_available",
    "termination_status",
    "raw_status_string",
    "primal_status",
    "dual_status",
]

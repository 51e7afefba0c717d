"""Continuous algorithms of the built-in engine.

Every entry point takes a :class:`~lpadapter.engine.problem.Problem` and a
parameter store, stores the resulting solution on the problem and returns a
raw code (``0`` when the algorithm ran to completion, one of the ``E*``
constants otherwise). The numerical work is done by SciPy's HiGHS interface.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from scipy.optimize import linprog

from .constants import (
    BS,
    DB,
    DUAL,
    DUALP,
    EBOUND,
    EFAIL,
    EINSTAB,
    EITLIM,
    ENOCVG,
    ENODFS,
    ENOPFS,
    EOBJLL,
    EOBJUL,
    ETMLIM,
    FEAS,
    FR,
    FX,
    INFEAS,
    INT_MAX,
    LO,
    MAX,
    MIN,
    MSG_ERR,
    MSG_ON,
    NF,
    NL,
    NOFEAS,
    NS,
    NU,
    OFF,
    OPT,
    PT_STD,
    UNBND,
    UNDEF,
    UP,
)
from .problem import Problem, Solution

log = logging.getLogger(__name__)

# Absolute tolerance used to decide whether a value sits at one of its bounds
_ACTIVE_TOL = 1e-7


@dataclass
class LPArrays:
    """Dense ``linprog`` form of a problem (always a minimisation)."""

    c: np.ndarray
    matrix: np.ndarray
    a_ub: np.ndarray | None
    b_ub: np.ndarray | None
    a_eq: np.ndarray | None
    b_eq: np.ndarray | None
    bounds: list[tuple[float | None, float | None]]
    # (row offset, sign) for every inequality row; sign -1 marks a negated lower bound
    ub_rows: list[tuple[int, float]]
    eq_rows: list[int]
    sense: float


def _finite(value: float) -> float | None:
    return None if math.isinf(value) else float(value)


def _stack(parts: list[np.ndarray], n: int) -> np.ndarray | None:
    if not parts:
        return None
    return np.vstack(parts).reshape(len(parts), n)


def constraint_matrix(prob: Problem) -> np.ndarray:
    a = np.zeros((prob.get_num_rows(), prob.get_num_cols()))
    for i, row in enumerate(prob.rows):
        for j, v in row.coefs.items():
            a[i, j - 1] = v
    return a


def lp_arrays(prob: Problem) -> LPArrays:
    n = prob.get_num_cols()
    sense = -1.0 if prob.obj_dir == MAX else 1.0
    matrix = constraint_matrix(prob)
    ub_parts: list[np.ndarray] = []
    b_ub: list[float] = []
    ub_rows: list[tuple[int, float]] = []
    eq_parts: list[np.ndarray] = []
    b_eq: list[float] = []
    eq_rows: list[int] = []
    for i, row in enumerate(prob.rows):
        if row.type == FX:
            eq_parts.append(matrix[i])
            b_eq.append(row.lb)
            eq_rows.append(i)
            continue
        if row.type in (UP, DB):
            ub_parts.append(matrix[i])
            b_ub.append(row.ub)
            ub_rows.append((i, 1.0))
        if row.type in (LO, DB):
            ub_parts.append(-matrix[i])
            b_ub.append(-row.lb)
            ub_rows.append((i, -1.0))
    return LPArrays(
        c=sense * np.array([col.coef for col in prob.cols], dtype=float),
        matrix=matrix,
        a_ub=_stack(ub_parts, n),
        b_ub=np.array(b_ub) if b_ub else None,
        a_eq=_stack(eq_parts, n),
        b_eq=np.array(b_eq) if b_eq else None,
        bounds=[(_finite(col.lb), _finite(col.ub)) for col in prob.cols],
        ub_rows=ub_rows,
        eq_rows=eq_rows,
        sense=sense,
    )


def run_linprog(arrays: LPArrays, method: str, options: dict[str, Any]):
    return linprog(
        arrays.c,
        A_ub=arrays.a_ub,
        b_ub=arrays.b_ub,
        A_eq=arrays.a_eq,
        b_eq=arrays.b_eq,
        bounds=arrays.bounds,
        method=method,
        options=options,
    )


def row_marginals(arrays: LPArrays, res, num_rows: int) -> np.ndarray:
    """Sensitivity of the (minimised) objective to each row's right-hand side."""
    duals = np.zeros(num_rows)
    if arrays.ub_rows:
        for (i, sign), m in zip(arrays.ub_rows, res.ineqlin.marginals):
            duals[i] += sign * m
    if arrays.eq_rows:
        for i, m in zip(arrays.eq_rows, res.eqlin.marginals):
            duals[i] += m
    return duals


def bad_bounds(prob: Problem) -> str | None:
    """Describe the first double-bounded column or row with ``lb >= ub``."""
    for j, col in enumerate(prob.cols, start=1):
        if col.type == DB and not col.lb < col.ub:
            return f"column {j} has incorrect bounds ({col.lb} >= {col.ub})"
    for i, row in enumerate(prob.rows, start=1):
        if row.type == DB and not row.lb < row.ub:
            return f"row {i} has incorrect bounds ({row.lb} >= {row.ub})"
    return None


def _say(params, fmt: str, *args: Any) -> None:
    if params.msg_lev >= MSG_ON:
        log.info(fmt, *args)


def _complain(params, fmt: str, *args: Any) -> None:
    if params.msg_lev >= MSG_ERR:
        log.error(fmt, *args)


def _col_stat(type_: int, x: float, lb: float, ub: float, dj: float) -> int:
    if type_ == FX:
        return NS
    if type_ == FR:
        return NF if abs(x) <= _ACTIVE_TOL and abs(dj) > _ACTIVE_TOL else BS
    if abs(dj) <= _ACTIVE_TOL:
        return BS
    if not math.isinf(lb) and abs(x - lb) <= _ACTIVE_TOL:
        return NL
    if not math.isinf(ub) and abs(x - ub) <= _ACTIVE_TOL:
        return NU
    return BS


def _row_stat(type_: int, activity: float, lb: float, ub: float, dual: float) -> int:
    if type_ == FR or abs(dual) <= _ACTIVE_TOL:
        return BS
    if type_ == FX:
        return NS
    if not math.isinf(lb) and abs(activity - lb) <= _ACTIVE_TOL:
        return NL
    if not math.isinf(ub) and abs(activity - ub) <= _ACTIVE_TOL:
        return NU
    return BS


def _empty_solution(prob: Problem) -> Solution:
    """Solution of a problem without columns: every row activity is zero."""
    sol = Solution(obj_val=prob.obj_const)
    feasible = all(r.lb <= 0.0 <= r.ub for r in prob.rows)
    sol.status = OPT if feasible else NOFEAS
    sol.dual_status = FEAS if feasible else UNDEF
    sol.row_prim = [0.0] * prob.get_num_rows()
    sol.row_dual = [0.0] * prob.get_num_rows()
    sol.row_stat = [BS] * prob.get_num_rows()
    return sol


def _infeasible_or_unbounded(arrays: LPArrays, method: str, options: dict[str, Any]) -> int:
    """Tell an infeasible problem from an unbounded one by dropping the objective."""
    probe = replace(arrays, c=np.zeros_like(arrays.c))
    res = run_linprog(probe, method, options)
    return UNBND if res.status == 0 else NOFEAS


def _solve_basic(prob: Problem, params, method: str, options: dict[str, Any], name: str) -> int:
    """Shared driver of ``simplex`` and ``exact``."""
    start = time.perf_counter()
    n, m = prob.get_num_cols(), prob.get_num_rows()
    _say(params, "%s: %d rows, %d columns, %d non-zeros", name, m, n, sum(len(r.coefs) for r in prob.rows))

    if n == 0:
        prob.sol = _empty_solution(prob)
        return 0

    arrays = lp_arrays(prob)
    if params.it_lim < INT_MAX:
        options["maxiter"] = int(params.it_lim)
    if params.tm_lim < INT_MAX:
        options["time_limit"] = params.tm_lim / 1000.0
    res = run_linprog(arrays, method, options)

    if res.status == 1:
        prob.sol = Solution()
        if "time" in res.message.lower():
            _say(params, "%s: time limit exceeded", name)
            return ETMLIM
        _say(params, "%s: iteration limit exceeded", name)
        return EITLIM
    if res.status == 4:
        prob.sol = Solution()
        _complain(params, "%s: solver failure: %s", name, res.message)
        return EFAIL

    if res.status in (2, 3):
        status = UNBND if res.status == 3 else _infeasible_or_unbounded(arrays, method, options)
        if params.presolve != OFF:
            prob.sol = Solution()
            _say(params, "%s: PROBLEM HAS NO %s FEASIBLE SOLUTION", name, "DUAL" if status == UNBND else "PRIMAL")
            return ENODFS if status == UNBND else ENOPFS
        # Without the presolver the outcome is reported through the solution status
        if status == NOFEAS and params.meth in (DUAL, DUALP) and prob.obj_dir != MAX and params.obj_ul < math.inf:
            prob.sol = Solution(status=INFEAS, dual_status=FEAS)
            return EOBJUL
        prob.sol = Solution(status=status, dual_status=NOFEAS if status == UNBND else UNDEF)
        _say(params, "%s: %s", name, "PROBLEM HAS UNBOUNDED SOLUTION" if status == UNBND else "PROBLEM HAS NO PRIMAL FEASIBLE SOLUTION")
        return 0

    x = np.asarray(res.x, dtype=float)
    activity = arrays.matrix @ x if m else np.zeros(0)
    row_dual = arrays.sense * row_marginals(arrays, res, m)
    col_dual = arrays.sense * (np.asarray(res.lower.marginals) + np.asarray(res.upper.marginals))
    obj = float(arrays.sense * res.fun + prob.obj_const)

    sol = Solution(status=OPT, dual_status=FEAS, obj_val=obj)
    sol.col_prim = x.tolist()
    sol.col_dual = col_dual.tolist()
    sol.row_prim = activity.tolist()
    sol.row_dual = row_dual.tolist()
    sol.col_stat = [
        _col_stat(c.type, x[k], c.lb, c.ub, col_dual[k]) for k, c in enumerate(prob.cols)
    ]
    sol.row_stat = [
        _row_stat(r.type, activity[k], r.lb, r.ub, row_dual[k]) for k, r in enumerate(prob.rows)
    ]
    prob.sol = sol
    _say(params, "%s: OPTIMAL SOLUTION FOUND, obj = %.9g (%.3fs)", name, obj, time.perf_counter() - start)

    if params.meth in (DUAL, DUALP):
        if prob.obj_dir == MAX and obj < params.obj_ll:
            return EOBJLL
        if prob.obj_dir != MAX and obj > params.obj_ul:
            return EOBJUL
    return 0


def _simplex_options(params, feasibility_tol: float, optimality_tol: float) -> dict[str, Any]:
    return {
        "presolve": params.presolve != OFF,
        "disp": False,
        "primal_feasibility_tolerance": feasibility_tol,
        "dual_feasibility_tolerance": optimality_tol,
        "simplex_dual_edge_weight_strategy": "dantzig" if params.pricing == PT_STD else "steepest-devex",
    }


def simplex(prob: Problem, params) -> int:
    """Solve the LP relaxation of ``prob`` with the simplex method."""
    reason = bad_bounds(prob)
    if reason is not None:
        prob.sol = Solution()
        _complain(params, "simplex: %s", reason)
        return EBOUND
    options = _simplex_options(params, params.tol_bnd, params.tol_dj)
    return _solve_basic(prob, params, "highs-ds", options, "simplex")


def exact(prob: Problem, params) -> int:
    """Simplex run with the tightest tolerances HiGHS accepts.

    The presolver setting is ignored, as for an exact-arithmetic solver.
    """
    if prob.get_num_rows() == 0 or prob.get_num_cols() == 0:
        _complain(params, "exact: problem has no rows/columns")
        prob.sol = Solution()
        return EFAIL
    reason = bad_bounds(prob)
    if reason is not None:
        prob.sol = Solution()
        _complain(params, "exact: %s", reason)
        return EBOUND
    options = _simplex_options(params, 1e-10, 1e-10)
    options["presolve"] = False
    saved = params.presolve
    params.presolve = OFF
    try:
        return _solve_basic(prob, params, "highs-ds", options, "exact")
    finally:
        params.presolve = saved


def interior(prob: Problem, params) -> int:
    """Solve with the interior-point method, storing an interior solution."""
    if prob.get_num_rows() == 0 or prob.get_num_cols() == 0:
        _complain(params, "interior: problem has no rows/columns")
        prob.ipt = Solution()
        return EFAIL
    n, m = prob.get_num_cols(), prob.get_num_rows()
    _say(params, "interior: %d rows, %d columns", m, n)
    arrays = lp_arrays(prob)
    res = run_linprog(arrays, "highs-ipm", {"presolve": False, "disp": False})
    if res.status == 1:
        prob.ipt = Solution()
        return EITLIM
    if res.status == 4:
        prob.ipt = Solution()
        _complain(params, "interior: %s", res.message)
        return EINSTAB if "numer" in res.message.lower() else ENOCVG
    if res.status in (2, 3):
        prob.ipt = Solution(status=NOFEAS)
        _say(params, "interior: PROBLEM HAS NO FEASIBLE PRIMAL/DUAL SOLUTION")
        return 0
    x = np.asarray(res.x, dtype=float)
    sol = Solution(status=OPT, dual_status=FEAS, obj_val=float(arrays.sense * res.fun + prob.obj_const))
    sol.col_prim = x.tolist()
    sol.col_dual = (arrays.sense * (np.asarray(res.lower.marginals) + np.asarray(res.upper.marginals))).tolist()
    sol.row_prim = (arrays.matrix @ x).tolist()
    sol.row_dual = (arrays.sense * row_marginals(arrays, res, m)).tolist()
    prob.ipt = sol
    _say(params, "interior: OPTIMAL SOLUTION FOUND, obj = %.9g", sol.obj_val)
    return 0


def unbounded_ray(prob: Problem) -> list[float]:
    """Primal ray along which the objective improves without bound.

    Found by optimising the objective over the recession cone of the feasible
    region, boxed to ``[-1, 1]``. Returns NaNs when no improving ray exists.
    """
    n = prob.get_num_cols()
    arrays = lp_arrays(prob)
    cone_bounds: list[tuple[float | None, float | None]] = []
    for col in prob.cols:
        if col.type in (FX, DB):
            cone_bounds.append((0.0, 0.0))
        elif col.type == LO:
            cone_bounds.append((0.0, 1.0))
        elif col.type == UP:
            cone_bounds.append((-1.0, 0.0))
        else:
            cone_bounds.append((-1.0, 1.0))
    cone = LPArrays(
        c=arrays.c,
        matrix=arrays.matrix,
        a_ub=arrays.a_ub,
        b_ub=None if arrays.b_ub is None else np.zeros_like(arrays.b_ub),
        a_eq=arrays.a_eq,
        b_eq=None if arrays.b_eq is None else np.zeros_like(arrays.b_eq),
        bounds=cone_bounds,
        ub_rows=arrays.ub_rows,
        eq_rows=arrays.eq_rows,
        sense=arrays.sense,
    )
    res = run_linprog(cone, "highs-ds", {"presolve": False, "disp": False})
    if res.status != 0 or res.fun > -_ACTIVE_TOL:
        log.warning("unbounded_ray: no improving ray found")
        return [math.nan] * n
    return np.asarray(res.x, dtype=float).tolist()


def infeasibility_ray(prob: Problem) -> list[float]:
    """Farkas dual ray proving that the rows of ``prob`` admit no solution.

    The ray is read from the duals of a phase-one problem minimising the total
    row violation; ``>=`` rows get non-negative and ``<=`` rows non-positive
    multipliers. Returns NaNs when the rows are satisfiable.
    """
    m = prob.get_num_rows()
    relaxed = prob.copy()
    relaxed.obj_dir = MIN
    for col in relaxed.cols:
        col.coef = 0.0
    slack_rows = [i for i, row in enumerate(relaxed.rows, start=1) if row.type != FR]
    if not slack_rows:
        return [math.nan] * m
    first = relaxed.add_cols(2 * len(slack_rows))
    for k, i in enumerate(slack_rows):
        plus, minus = first + 2 * k, first + 2 * k + 1
        for j in (plus, minus):
            relaxed.cols[j - 1].type = LO
            relaxed.cols[j - 1].lb = 0.0
            relaxed.cols[j - 1].coef = 1.0
        relaxed.rows[i - 1].coefs[plus] = 1.0
        relaxed.rows[i - 1].coefs[minus] = -1.0
    arrays = lp_arrays(relaxed)
    res = run_linprog(arrays, "highs-ds", {"presolve": False, "disp": False})
    if res.status != 0 or res.fun <= _ACTIVE_TOL:
        log.warning("infeasibility_ray: rows are satisfiable, no certificate")
        return [math.nan] * m
    return row_marginals(arrays, res, m).tolist()


__all__ = [
    "LPArrays",
    "lp_arrays",
    "constraint_matrix",
    "run_linprog",
    "row_marginals",
    "bad_bounds",
    "simplex",
    "exact",
    "interior",
    "unbounded_ray",
    "infeasibility_ray",
]

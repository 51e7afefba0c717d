import pytest

from lpadapter.engine import constants as E
from lpadapter.engine.problem import Problem, Solution
from lpadapter.model.status import (
    RAW_INTERIOR_STRINGS,
    RAW_INTOPT_STRINGS,
    RAW_SIMPLEX_STRINGS,
    SolveState,
    dual_status,
    primal_status,
    raw_status_string,
    termination_status,
)
from lpadapter.model.types import Method, ResultStatus, TerminationStatus as T


def _solved(status: int, method: Method = Method.SIMPLEX, mip: bool = False):
    prob = Problem()
    state = SolveState(optimize_not_called=False, last_solved_by_mip=mip)
    if mip:
        prob.mip = Solution(status=status)
    elif method == Method.INTERIOR:
        prob.ipt = Solution(status=status)
    else:
        prob.sol = Solution(status=status)
    return prob, state


def test_optimize_not_called():
    prob, state = Problem(), SolveState()
    assert termination_status(prob, state, Method.SIMPLEX) == T.OPTIMIZE_NOT_CALLED
    assert raw_status_string(prob, state, Method.SIMPLEX) == "Optimize not called"


@pytest.mark.parametrize(
    "status, expected",
    [
        (E.OPT, T.OPTIMAL),
        (E.FEAS, T.LOCALLY_SOLVED),
        (E.INFEAS, T.LOCALLY_INFEASIBLE),
        (E.NOFEAS, T.INFEASIBLE),
        (E.UNBND, T.DUAL_INFEASIBLE),
        (E.UNDEF, T.OTHER_ERROR),
    ],
)
def test_zero_code_reads_the_solution_status(status, expected):
    prob, state = _solved(status)
    assert termination_status(prob, state, Method.SIMPLEX) == expected


def test_nonzero_code_uses_the_algorithm_table():
    prob, state = _solved(E.UNDEF)
    state.solver_status = E.EBOUND
    assert termination_status(prob, state, Method.SIMPLEX) == T.INVALID_MODEL
    state.solver_status = E.ETMLIM
    assert termination_status(prob, state, Method.SIMPLEX) == T.TIME_LIMIT
    assert raw_status_string(prob, state, Method.SIMPLEX) == RAW_SIMPLEX_STRINGS[E.ETMLIM][1]
    # EFAIL means "no rows/columns" for the exact and interior runs
    state.solver_status = E.EFAIL
    assert termination_status(prob, state, Method.SIMPLEX) == T.NUMERICAL_ERROR
    assert termination_status(prob, state, Method.EXACT) == T.INVALID_MODEL
    assert raw_status_string(prob, state, Method.INTERIOR) == RAW_INTERIOR_STRINGS[E.EFAIL][1]


def test_intopt_table():
    prob, state = _solved(E.UNDEF, mip=True)
    for code, expected in [
        (E.ENOPFS, T.INFEASIBLE),
        (E.ENODFS, T.DUAL_INFEASIBLE),
        (E.EMIPGAP, T.OPTIMAL),
        (E.ESTOP, T.INTERRUPTED),
        (E.EROOT, T.INVALID_MODEL),
    ]:
        state.solver_status = code
        assert termination_status(prob, state, Method.SIMPLEX) == expected
        assert raw_status_string(prob, state, Method.SIMPLEX) == RAW_INTOPT_STRINGS[code][1]


def test_unknown_code_is_other_error():
    prob, state = _solved(E.UNDEF)
    state.solver_status = 0x7F
    assert termination_status(prob, state, Method.INTERIOR) == T.OTHER_ERROR


def test_primal_and_dual_status_of_an_optimal_lp():
    prob, state = _solved(E.OPT)
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.FEASIBLE_POINT
    assert dual_status(prob, state, Method.SIMPLEX) == ResultStatus.FEASIBLE_POINT


def test_certificates_only_after_simplex_or_exact():
    prob, state = _solved(E.UNBND)
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.INFEASIBILITY_CERTIFICATE
    assert primal_status(prob, state, Method.EXACT) == ResultStatus.INFEASIBILITY_CERTIFICATE
    prob, state = _solved(E.NOFEAS)
    assert dual_status(prob, state, Method.SIMPLEX) == ResultStatus.INFEASIBILITY_CERTIFICATE
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.NO_SOLUTION
    prob, state = _solved(E.NOFEAS, method=Method.INTERIOR)
    assert dual_status(prob, state, Method.INTERIOR) == ResultStatus.NO_SOLUTION


def test_mip_never_has_a_dual_solution():
    prob, state = _solved(E.OPT, mip=True)
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.FEASIBLE_POINT
    assert dual_status(prob, state, Method.SIMPLEX) == ResultStatus.NO_SOLUTION
    prob, state = _solved(E.FEAS, mip=True)
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.FEASIBLE_POINT


def test_infeasible_point():
    prob, state = _solved(E.INFEAS)
    assert primal_status(prob, state, Method.SIMPLEX) == ResultStatus.INFEASIBLE_POINT
    assert dual_status(prob, state, Method.SIMPLEX) == ResultStatus.INFEASIBILITY_CERTIFICATE

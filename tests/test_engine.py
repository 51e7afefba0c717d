import math

import pytest

from lpadapter.engine import EngineError, Problem, SearchTree, exact, interior, intopt, simplex
from lpadapter.engine.constants import (
    DB,
    EBOUND,
    EFAIL,
    ENODFS,
    ENOPFS,
    EROOT,
    ESTOP,
    FR,
    FX,
    IBINGO,
    IROWGEN,
    IV,
    LO,
    MAX,
    NOFEAS,
    ON,
    OPT,
    UNBND,
    UP,
)
from lpadapter.params import InteriorParams, IntoptParams, SimplexParams


def _lp(obj_dir=MAX):
    """max x + y s.t. x + 2y <= 4, 3x + y <= 6, x, y >= 0; optimum (1.6, 1.2)."""
    prob = Problem()
    prob.add_cols(2)
    for j in (1, 2):
        prob.set_col_bnds(j, LO, 0.0, 0.0)
        prob.set_obj_coef(j, 1.0)
    prob.add_rows(2)
    prob.set_mat_row(1, [1, 2], [1.0, 2.0])
    prob.set_row_bnds(1, UP, 0.0, 4.0)
    prob.set_mat_row(2, [1, 2], [3.0, 1.0])
    prob.set_row_bnds(2, UP, 0.0, 6.0)
    prob.set_obj_dir(obj_dir)
    return prob


def test_positional_structure_edits():
    prob = Problem()
    assert prob.add_cols(3) == 1
    assert prob.add_rows(1) == 1
    prob.set_mat_row(1, [1, 3], [2.0, 5.0])
    prob.del_cols([2])
    assert prob.get_num_cols() == 2
    assert prob.get_mat_row(1) == ([1, 2], [2.0, 5.0])
    assert prob.get_mat_col(2) == ([1], [5.0])
    with pytest.raises(EngineError):
        prob.set_mat_row(1, [1, 1], [1.0, 1.0])
    with pytest.raises(EngineError):
        prob.get_col_lb(3)
    with pytest.raises(EngineError):
        prob.add_cols(0)


def test_bound_types_store_infinite_sentinels():
    prob = Problem()
    prob.add_cols(1)
    prob.set_col_bnds(1, UP, 7.0, 3.0)
    assert (prob.get_col_lb(1), prob.get_col_ub(1)) == (-math.inf, 3.0)
    prob.set_col_bnds(1, FR, 1.0, 2.0)
    assert (prob.get_col_lb(1), prob.get_col_ub(1)) == (-math.inf, math.inf)
    prob.set_col_bnds(1, FX, 2.0, 9.0)
    assert (prob.get_col_lb(1), prob.get_col_ub(1)) == (2.0, 2.0)


def test_preemptive_check_rejects_crossed_double_bounds():
    prob = Problem()
    prob.add_cols(1)
    with pytest.raises(EngineError):
        prob.set_col_bnds(1, DB, 1.0, -1.0)
    with prob.preemptive_check_suspended():
        prob.set_col_bnds(1, DB, 1.0, -1.0)
    assert prob.preemptive_check
    assert simplex(prob, SimplexParams()) == EBOUND


def test_simplex_optimum_and_duals():
    prob = _lp()
    assert simplex(prob, SimplexParams()) == 0
    assert prob.get_status() == OPT
    assert prob.get_obj_val() == pytest.approx(2.8)
    assert prob.get_col_prim(1) == pytest.approx(1.6)
    assert prob.get_col_prim(2) == pytest.approx(1.2)
    assert prob.get_row_prim(1) == pytest.approx(4.0)
    # d(obj)/d(rhs) of the maximised objective
    assert prob.get_row_dual(1) == pytest.approx(0.4)
    assert prob.get_row_dual(2) == pytest.approx(0.2)


def test_exact_and_interior_agree_with_simplex():
    prob = _lp()
    assert exact(prob, SimplexParams()) == 0
    assert prob.get_obj_val() == pytest.approx(2.8)
    assert interior(prob, InteriorParams()) == 0
    assert prob.ipt_status() == OPT
    assert prob.ipt_obj_val() == pytest.approx(2.8, abs=1e-6)
    assert prob.ipt_col_prim(1) == pytest.approx(1.6, abs=1e-6)


def test_exact_and_interior_need_rows():
    prob = Problem()
    prob.add_cols(1)
    assert exact(prob, SimplexParams()) == EFAIL
    assert interior(prob, InteriorParams()) == EFAIL


def test_unbounded_lp_reports_status_or_presolve_code():
    prob = Problem()
    prob.add_cols(1)
    prob.set_col_bnds(1, LO, 0.0, 0.0)
    prob.set_obj_coef(1, 1.0)
    prob.set_obj_dir(MAX)
    assert simplex(prob, SimplexParams()) == 0
    assert prob.get_status() == UNBND
    params = SimplexParams()
    params.presolve = ON
    assert simplex(prob, params) == ENODFS


def test_infeasible_lp_reports_status_or_presolve_code():
    prob = Problem()
    prob.add_cols(1)
    prob.set_col_bnds(1, LO, 0.0, 0.0)
    prob.add_rows(1)
    prob.set_mat_row(1, [1], [1.0])
    prob.set_row_bnds(1, UP, 0.0, -1.0)
    assert simplex(prob, SimplexParams()) == 0
    assert prob.get_status() == NOFEAS
    params = SimplexParams()
    params.presolve = ON
    assert simplex(prob, params) == ENOPFS


def test_intopt_requires_a_solved_relaxation():
    prob = _lp()
    prob.set_col_kind(1, IV)
    assert intopt(prob, IntoptParams()) == EROOT


def test_intopt_rejects_fractional_integer_bounds():
    prob = _lp()
    prob.set_col_kind(1, IV)
    prob.set_col_bnds(1, DB, 0.5, 3.0)
    params = IntoptParams()
    params.presolve = ON
    assert intopt(prob, params) == EBOUND


def test_intopt_branch_and_bound():
    prob = _lp()
    prob.set_col_kind(1, IV)
    prob.set_col_kind(2, IV)
    assert simplex(prob, SimplexParams()) == 0
    assert intopt(prob, IntoptParams()) == 0
    assert prob.mip_status() == OPT
    # integer optimum of x + y on the polytope is 2, e.g. (1, 1) or (2, 0)
    assert prob.mip_obj_val() == pytest.approx(2.0)
    x, y = prob.mip_col_val(1), prob.mip_col_val(2)
    assert x == round(x) and y == round(y)
    assert x + 2 * y <= 4 + 1e-9 and 3 * x + y <= 6 + 1e-9
    # the caller's problem keeps its own bounds
    assert prob.get_col_lb(1) == 0.0 and prob.get_col_ub(1) == math.inf


def test_intopt_rejects_unknown_backtracking_technique():
    prob = _lp()
    prob.set_col_kind(1, IV)
    prob.set_col_kind(2, IV)
    assert simplex(prob, SimplexParams()) == 0
    params = IntoptParams()
    params.bt_tech = 99
    # the root relaxation is fractional, so two children compete for selection
    with pytest.raises(ValueError, match="bt_tech"):
        intopt(prob, params)


def test_intopt_presolve_reports_infeasible_relaxation():
    prob = Problem()
    prob.add_cols(1)
    prob.set_col_kind(1, IV)
    prob.set_col_bnds(1, DB, 0.0, 1.0)
    prob.add_rows(1)
    prob.set_mat_row(1, [1], [1.0])
    prob.set_row_bnds(1, LO, 2.0, 0.0)
    params = IntoptParams()
    params.presolve = ON
    assert intopt(prob, params) == ENOPFS
    assert prob.mip_status() == NOFEAS


def test_search_tree_callback_can_add_rows_and_stop():
    prob = _lp()
    prob.set_col_kind(1, IV)
    prob.set_col_kind(2, IV)
    simplex(prob, SimplexParams())
    seen = []

    def callback(tree: SearchTree):
        seen.append(tree.reason)
        if tree.reason == IROWGEN and tree.get_prob().get_num_rows() == 2:
            sub = tree.get_prob()
            row = sub.add_rows(1)
            sub.set_mat_row(row, [1], [1.0])
            sub.set_row_bnds(row, UP, 0.0, 0.0)
        if tree.reason == IBINGO:
            tree.terminate()

    code = intopt(prob, IntoptParams(), callback)
    assert code == ESTOP
    assert IBINGO in seen
    # the lazy row x <= 0 forces y to carry the objective
    assert prob.mip_col_val(1) == pytest.approx(0.0)
    assert prob.get_num_rows() == 2

import math

import pytest

from lpadapter.model import (
    BasisStatus,
    GreaterThan,
    Integer,
    Interval,
    LessThan,
    Method,
    ObjectiveSense,
    Optimizer,
    ResultStatus,
    ScalarAffineFunction,
    SingleVariable,
    TerminationStatus,
    UnsupportedAttribute,
    ZeroOne,
)


def _affine(*pairs, constant=0.0):
    return ScalarAffineFunction.from_pairs(pairs, constant)


def _nonnegative(model, n):
    xs = model.add_variables(n)
    for x in xs:
        model.add_constraint(SingleVariable(x), GreaterThan(0.0))
    return xs


def test_optimize_not_called():
    model = Optimizer()
    assert model.termination_status() == TerminationStatus.OPTIMIZE_NOT_CALLED
    assert model.result_count() == 0


def test_minimisation_with_a_greater_than_row():
    model = Optimizer()
    x, y = _nonnegative(model, 2)
    c = model.add_constraint(_affine((1.0, x), (1.0, y)), GreaterThan(1.0))
    model.set_objective(_affine((1.0, x), (1.0, y)))
    model.set_objective_sense(ObjectiveSense.MIN)
    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.primal_status() == ResultStatus.FEASIBLE_POINT
    assert model.dual_status() == ResultStatus.FEASIBLE_POINT
    assert model.result_count() == 1
    assert model.objective_value() == pytest.approx(1.0)
    assert model.constraint_primal(c) == pytest.approx(1.0)
    assert model.constraint_dual(c) == pytest.approx(1.0)
    assert model.objective_bound() == -math.inf
    assert model.solve_time() >= 0.0


def test_maximisation_dual_of_a_less_than_row_is_non_positive():
    model = Optimizer()
    (x,) = _nonnegative(model, 1)
    c = model.add_constraint(_affine((1.0, x)), LessThan(2.0))
    model.set_objective(SingleVariable(x))
    model.set_objective_sense(ObjectiveSense.MAX)
    model.optimize()
    assert model.variable_primal(x) == pytest.approx(2.0)
    assert model.constraint_dual(c) == pytest.approx(-1.0)
    assert model.constraint_basis_status(c) == BasisStatus.NONBASIC
    assert model.objective_bound() == math.inf
    with pytest.raises(UnsupportedAttribute):
        model.relative_gap()


def test_variable_bound_duals_follow_complementarity():
    model = Optimizer()
    x = model.add_variable()
    lower = model.add_constraint(SingleVariable(x), GreaterThan(1.0))
    upper = model.add_constraint(SingleVariable(x), LessThan(5.0))
    model.set_objective(SingleVariable(x))
    model.set_objective_sense(ObjectiveSense.MIN)
    model.optimize()
    assert model.variable_primal(x) == pytest.approx(1.0)
    assert model.constraint_dual(lower) == pytest.approx(1.0)
    assert model.constraint_dual(upper) == 0.0
    assert model.constraint_primal(lower) == pytest.approx(1.0)


@pytest.mark.parametrize("method", [Method.SIMPLEX, Method.EXACT, Method.INTERIOR])
def test_every_continuous_method_finds_the_vertex(method):
    model = Optimizer(method=method)
    x, y = _nonnegative(model, 2)
    model.add_constraint(_affine((1.0, x), (2.0, y)), LessThan(4.0))
    model.add_constraint(_affine((3.0, x), (1.0, y)), LessThan(6.0))
    model.set_objective(_affine((1.0, x), (1.0, y)))
    model.set_objective_sense(ObjectiveSense.MAX)
    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.objective_value() == pytest.approx(2.8, abs=1e-6)
    assert model.variable_primals([x, y]) == pytest.approx([1.6, 1.2], abs=1e-6)


def test_infeasible_lp_carries_a_farkas_certificate():
    model = Optimizer()
    (x,) = _nonnegative(model, 1)
    c = model.add_constraint(_affine((1.0, x)), LessThan(-1.0))
    model.set_objective(SingleVariable(x))
    model.optimize()
    assert model.termination_status() == TerminationStatus.INFEASIBLE
    assert model.primal_status() == ResultStatus.NO_SOLUTION
    assert model.dual_status() == ResultStatus.INFEASIBILITY_CERTIFICATE
    assert model.result_count() == 1
    assert model.constraint_dual(c) == pytest.approx(-1.0)


def test_unbounded_lp_carries_a_primal_ray():
    model = Optimizer()
    (x,) = _nonnegative(model, 1)
    model.set_objective(_affine((-1.0, x)))
    model.set_objective_sense(ObjectiveSense.MIN)
    model.optimize()
    assert model.termination_status() == TerminationStatus.DUAL_INFEASIBLE
    assert model.primal_status() == ResultStatus.INFEASIBILITY_CERTIFICATE
    assert model.variable_primal(x) == pytest.approx(1.0)


def test_presolved_infeasible_lp_is_reported_through_the_code():
    model = Optimizer(presolve=True)
    (x,) = _nonnegative(model, 1)
    model.add_constraint(_affine((1.0, x)), LessThan(-1.0))
    model.optimize()
    assert model.termination_status() == TerminationStatus.INFEASIBLE
    assert model.dual_status() == ResultStatus.NO_SOLUTION


def test_crossed_bounds_are_an_invalid_model():
    model = Optimizer()
    x = model.add_variable()
    model.add_constraint(SingleVariable(x), Interval(1.0, -1.0))
    model.optimize()
    assert model.termination_status() == TerminationStatus.INVALID_MODEL
    assert model.result_count() == 0


def test_binary_with_no_integer_point_in_its_bounds():
    model = Optimizer()
    x = model.add_variable()
    model.add_constraint(SingleVariable(x), Interval(0.2, 0.5))
    model.add_constraint(SingleVariable(x), ZeroOne())
    model.set_objective(SingleVariable(x))
    model.optimize()
    assert model.termination_status() == TerminationStatus.INVALID_MODEL


def test_integer_program():
    model = Optimizer()
    x, y = _nonnegative(model, 2)
    for v in (x, y):
        model.add_constraint(SingleVariable(v), Integer())
    model.add_constraint(_affine((1.0, x), (2.0, y)), LessThan(4.0))
    model.add_constraint(_affine((3.0, x), (1.0, y)), LessThan(6.0))
    model.set_objective(_affine((2.0, x), (1.0, y)))
    model.set_objective_sense(ObjectiveSense.MAX)
    model.optimize()
    assert model.last_solved_by_mip
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.primal_status() == ResultStatus.FEASIBLE_POINT
    assert model.dual_status() == ResultStatus.NO_SOLUTION
    # 2x + y over the integer points: (2, 0) -> 4, (1, 1) -> 3
    assert model.objective_value() == pytest.approx(4.0)
    assert model.objective_bound() == pytest.approx(4.0)
    assert model.variable_primals([x, y]) == pytest.approx([2.0, 0.0])
    with pytest.raises(UnsupportedAttribute):
        model.constraint_dual(model.list_of_constraint_indices(ScalarAffineFunction, LessThan)[0])


def test_objective_constant_on_a_mip():
    model = Optimizer()
    x = model.add_variable()
    model.add_constraint(SingleVariable(x), ZeroOne())
    model.set_objective(_affine((1.0, x), constant=3.0))
    model.set_objective_sense(ObjectiveSense.MIN)
    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.objective_value() == pytest.approx(3.0)
    assert model.objective_bound() == pytest.approx(3.0)
    assert model.relative_gap() == pytest.approx(0.0)


def test_unbounded_mip():
    model = Optimizer()
    x, y = model.add_variables(2)
    model.add_constraint(SingleVariable(x), Integer())
    model.add_constraint(SingleVariable(x), LessThan(1.0))
    model.set_objective(_affine((-5.0, x), (1.0, y)))
    model.set_objective_sense(ObjectiveSense.MIN)
    model.optimize()
    assert model.termination_status() == TerminationStatus.DUAL_INFEASIBLE


def test_infeasible_mip():
    model = Optimizer()
    x = model.add_variable()
    model.add_constraint(SingleVariable(x), Integer())
    model.add_constraint(SingleVariable(x), LessThan(1.0))
    model.add_constraint(_affine((1.0, x)), GreaterThan(2.0))
    model.optimize()
    assert model.termination_status() == TerminationStatus.INFEASIBLE
    assert model.primal_status() == ResultStatus.NO_SOLUTION


def test_feasibility_sense_solves_without_objective():
    model = Optimizer()
    (x,) = _nonnegative(model, 1)
    model.add_constraint(_affine((1.0, x)), GreaterThan(3.0))
    model.set_objective_sense(ObjectiveSense.FEASIBILITY)
    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.variable_primal(x) >= 3.0 - 1e-9

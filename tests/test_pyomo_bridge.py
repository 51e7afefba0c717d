import pyomo.environ as pyo
import pytest

from lpadapter.model import (
    EqualTo,
    GreaterThan,
    Integer,
    LessThan,
    ObjectiveSense,
    ScalarAffineFunction,
    SingleVariable,
    TerminationStatus,
    ZeroOne,
)
from lpadapter.pyomo_bridge import from_pyomo, load_solution


def _diet():
    m = pyo.ConcreteModel(name="diet")
    m.bread = pyo.Var(within=pyo.NonNegativeReals)
    m.milk = pyo.Var(bounds=(0, 5))
    m.calories = pyo.Constraint(expr=2 * m.bread + m.milk >= 8)
    m.protein = pyo.Constraint(expr=m.bread + 3 * m.milk + 1 >= 10)
    m.cost = pyo.Objective(expr=3 * m.bread + 2 * m.milk + 1, sense=pyo.minimize)
    m.dual = pyo.Suffix(direction=pyo.Suffix.IMPORT)
    return m


def test_linear_model_round_trip():
    m = _diet()
    model, mapping = from_pyomo(m)
    assert model.name == "diet"
    assert model.number_of_variables() == 2
    assert model.get_variable_name(mapping.variables[m.bread]) == "bread"
    (protein,) = mapping.constraints[m.protein]
    # the body constant moves to the right-hand side
    assert model.get_constraint_set(protein) == GreaterThan(9.0)
    assert model.get_objective_sense() == ObjectiveSense.MIN

    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.objective_value() == pytest.approx(14.0)
    assert load_solution(m, model, mapping)
    assert pyo.value(m.bread) == pytest.approx(3.0)
    assert pyo.value(m.milk) == pytest.approx(2.0)
    assert m.dual[m.calories] == pytest.approx(1.4)
    assert m.dual[m.protein] == pytest.approx(0.2)


def test_variable_domains_and_fixed_values():
    m = pyo.ConcreteModel()
    m.b = pyo.Var(within=pyo.Binary)
    m.n = pyo.Var(within=pyo.Integers, bounds=(-3, 7))
    m.z = pyo.Var(initialize=2.5)
    m.z.fix()
    m.c = pyo.Constraint(expr=m.b + m.n + m.z <= 6)
    m.o = pyo.Objective(expr=2 * m.b + m.n, sense=pyo.maximize)
    model, mapping = from_pyomo(m)
    b, n, z = (mapping.variables[v] for v in (m.b, m.n, m.z))
    assert model.number_of_constraints(SingleVariable, ZeroOne) == 1
    assert model.number_of_constraints(SingleVariable, Integer) == 1
    assert model.number_of_constraints(SingleVariable, EqualTo) == 1
    assert model.number_of_constraints(SingleVariable, LessThan) == 2

    model.optimize()
    assert model.termination_status() == TerminationStatus.OPTIMAL
    assert model.variable_primals([b, n, z]) == pytest.approx([1.0, 2.0, 2.5])
    assert load_solution(m, model, mapping)
    assert pyo.value(m.n) == pytest.approx(2.0)
    assert pyo.value(m.z) == 2.5


def test_ranged_constraint_becomes_two_rows():
    m = pyo.ConcreteModel()
    m.x = pyo.Var()
    m.r = pyo.Constraint(expr=pyo.inequality(1, m.x, 4))
    m.e = pyo.Constraint(expr=m.x == 2)
    model, mapping = from_pyomo(m)
    lower, upper = mapping.constraints[m.r]
    assert model.get_constraint_name(lower) == "r_lb"
    assert model.get_constraint_name(upper) == "r_ub"
    (equal,) = mapping.constraints[m.e]
    assert model.get_constraint_set(equal) == EqualTo(2.0)
    assert model.number_of_constraints(ScalarAffineFunction, GreaterThan) == 1
    # no objective: a feasibility problem
    assert model.get_objective_sense() == ObjectiveSense.FEASIBILITY


def test_nonlinear_and_multi_objective_models_are_rejected():
    m = pyo.ConcreteModel()
    m.x = pyo.Var()
    m.q = pyo.Constraint(expr=m.x * m.x <= 1)
    with pytest.raises(ValueError, match="not linear"):
        from_pyomo(m)

    m = pyo.ConcreteModel()
    m.x = pyo.Var()
    m.o1 = pyo.Objective(expr=m.x)
    m.o2 = pyo.Objective(expr=-m.x)
    with pytest.raises(ValueError, match="2 active objectives"):
        from_pyomo(m)


def test_infeasible_model_leaves_values_untouched():
    m = pyo.ConcreteModel()
    m.x = pyo.Var(bounds=(0, 1), initialize=0.5)
    m.c = pyo.Constraint(expr=m.x >= 2)
    model, mapping = from_pyomo(m)
    model.optimize()
    assert model.termination_status() == TerminationStatus.INFEASIBLE
    assert not load_solution(m, model, mapping)
    assert pyo.value(m.x) == 0.5

"""Load linear Pyomo models into an :class:`Optimizer` and read solutions back."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import pyomo.environ as pyo
from pyomo.common.collections import ComponentMap
from pyomo.repn import generate_standard_repn

from .model import (
    ConstraintIndex,
    EqualTo,
    GreaterThan,
    Integer,
    LessThan,
    ObjectiveSense,
    Optimizer,
    ResultStatus,
    ScalarAffineFunction,
    SingleVariable,
    ZeroOne,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class PyomoMapping:
    # Pyomo VarData -> VariableIndex
    variables: ComponentMap = field(default_factory=ComponentMap)
    # Pyomo ConstraintData -> list of ConstraintIndex (two for ranged constraints)
    constraints: ComponentMap = field(default_factory=ComponentMap)


def _linear(expr, where: str):
    repn = generate_standard_repn(expr, quadratic=False)
    if not repn.is_linear():
        raise ValueError(f"{where} is not linear")
    return repn


def from_pyomo(m: pyo.ConcreteModel, model: Optional[Optimizer] = None) -> tuple[Optimizer, PyomoMapping]:
    """Copy the active variables, constraints and objective of ``m`` into ``model``."""
    model = model if model is not None else Optimizer()
    model.empty()
    model.name = m.name
    mapping = PyomoMapping()

    for var in m.component_data_objects(pyo.Var, descend_into=True):
        x = model.add_variable()
        model.set_variable_name(x, var.name)
        mapping.variables[var] = x
        f = SingleVariable(x)
        if var.fixed:
            model.add_constraint(f, EqualTo(float(pyo.value(var))))
        else:
            if var.lb is not None:
                model.add_constraint(f, GreaterThan(float(var.lb)))
            if var.ub is not None:
                model.add_constraint(f, LessThan(float(var.ub)))
        if var.is_binary():
            model.add_constraint(f, ZeroOne())
        elif var.is_integer():
            model.add_constraint(f, Integer())

    def affine(repn) -> ScalarAffineFunction:
        return ScalarAffineFunction.from_pairs(
            (float(coef), mapping.variables[v]) for coef, v in zip(repn.linear_coefs, repn.linear_vars)
        )

    for con in m.component_data_objects(pyo.Constraint, active=True, descend_into=True):
        repn = _linear(con.body, f"constraint {con.name}")
        f = affine(repn)
        constant = float(pyo.value(repn.constant))
        indices: list[ConstraintIndex] = []
        if con.equality:
            indices.append(model.add_constraint(f, EqualTo(float(con.ub) - constant)))
        else:
            if con.lb is not None:
                indices.append(model.add_constraint(f, GreaterThan(float(con.lb) - constant)))
            if con.ub is not None:
                indices.append(model.add_constraint(f, LessThan(float(con.ub) - constant)))
        if len(indices) == 1:
            model.set_constraint_name(indices[0], con.name)
        else:
            for c, suffix in zip(indices, ("lb", "ub")):
                model.set_constraint_name(c, f"{con.name}_{suffix}")
        mapping.constraints[con] = indices

    objectives = list(m.component_data_objects(pyo.Objective, active=True, descend_into=True))
    if len(objectives) > 1:
        raise ValueError(f"model {m.name} has {len(objectives)} active objectives")
    if objectives:
        obj = objectives[0]
        repn = _linear(obj.expr, f"objective {obj.name}")
        f = affine(repn)
        model.set_objective(ScalarAffineFunction(f.terms, float(pyo.value(repn.constant))))
        model.set_objective_sense(ObjectiveSense.MAX if obj.sense == pyo.maximize else ObjectiveSense.MIN)
    else:
        model.set_objective_sense(ObjectiveSense.FEASIBILITY)
    log.debug(
        "from_pyomo: %d variables, %d constraints from %s",
        len(mapping.variables),
        len(mapping.constraints),
        m.name,
    )
    return model, mapping


def load_solution(m: pyo.ConcreteModel, model: Optimizer, mapping: PyomoMapping) -> bool:
    """Write primal values (and duals into ``m.dual`` if it is an import Suffix) back to ``m``.

    Returns False, leaving ``m`` untouched, when the solve found no feasible point.
    """
    if model.primal_status() != ResultStatus.FEASIBLE_POINT:
        return False
    for var, x in mapping.variables.items():
        if not var.fixed:
            var.set_value(model.variable_primal(x), skip_validation=True)
    suffix = getattr(m, "dual", None)
    if isinstance(suffix, pyo.Suffix) and suffix.import_enabled():
        if model.dual_status() == ResultStatus.FEASIBLE_POINT:
            for con, indices in mapping.constraints.items():
                suffix[con] = sum(model.constraint_dual(c) for c in indices)
    return True


__all__ = ["PyomoMapping", "from_pyomo", "load_solution"]

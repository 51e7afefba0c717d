"""Solve models described in YAML.

A model file looks like::

    name: knapsack
    sense: max                # min | max | feasibility
    variables:
      - {name: x, lower: 0, upper: 4, type: integer}
      - {name: y, lower: 0}
      - {name: z, fixed: 1}
    constraints:
      - {name: cap, terms: {x: 2, y: 1}, sense: "<=", rhs: 7}
    objective:
      terms: {x: 3, y: 1}
      constant: 0

``type`` is ``continuous`` (default), ``integer`` or ``binary``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .config import LPAdapterConfig, OptimizerConfig, load_config
from .logging_config import setup_logging
from .model import (
    EqualTo,
    GreaterThan,
    Integer,
    LessThan,
    ObjectiveSense,
    Optimizer,
    ResultStatus,
    ScalarAffineFunction,
    SingleVariable,
    VariableIndex,
    ZeroOne,
)
from .model.callbacks import CallbackData

log = logging.getLogger(__name__)

_SENSES = {"<=": LessThan, ">=": GreaterThan, "==": EqualTo, "=": EqualTo}
_TYPES = {"integer": Integer, "binary": ZeroOne}


class ModelFormatError(ValueError):
    pass


@dataclass(slots=True)
class RunResult:
    name: str
    termination_status: str
    raw_status: str
    primal_status: str
    dual_status: str
    objective_value: Optional[float] = None
    objective_bound: Optional[float] = None
    relative_gap: Optional[float] = None
    solve_time: float = math.nan
    values: dict[str, float] = field(default_factory=dict)
    duals: dict[str, float] = field(default_factory=dict)


def load_model(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ModelFormatError(f"Unsupported model format '{p.suffix}'. Please provide a YAML file.")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ModelFormatError("Top-level YAML document must be a mapping")
    return data


def make_optimizer(cfg: OptimizerConfig) -> Optimizer:
    model = Optimizer(presolve=cfg.presolve, method=cfg.method, **cfg.params)
    model.set_silent(cfg.silent)
    if cfg.time_limit_sec is not None:
        model.time_limit_sec = cfg.time_limit_sec
    return model


def _affine(terms: Mapping[str, Any], variables: Mapping[str, VariableIndex], where: str) -> list:
    pairs = []
    for name, coef in (terms or {}).items():
        if name not in variables:
            raise ModelFormatError(f"{where}: unknown variable {name!r}")
        pairs.append((float(coef), variables[name]))
    return pairs


def build_model(data: Mapping[str, Any], model: Optimizer) -> dict[str, VariableIndex]:
    """Load a parsed model description into ``model``; returns variables by name."""
    model.empty()
    model.name = str(data.get("name", ""))
    variables: dict[str, VariableIndex] = {}
    for i, item in enumerate(data.get("variables") or []):
        if not isinstance(item, dict) or "name" not in item:
            raise ModelFormatError(f"variable #{i}: expected a mapping with a 'name'")
        name = str(item["name"])
        if name in variables:
            raise ModelFormatError(f"variable {name!r} is declared twice")
        x = model.add_variable()
        model.set_variable_name(x, name)
        variables[name] = x
        f = SingleVariable(x)
        if "fixed" in item:
            model.add_constraint(f, EqualTo(float(item["fixed"])))
        else:
            if item.get("lower") is not None:
                model.add_constraint(f, GreaterThan(float(item["lower"])))
            if item.get("upper") is not None:
                model.add_constraint(f, LessThan(float(item["upper"])))
        kind = str(item.get("type", "continuous")).lower()
        if kind in _TYPES:
            model.add_constraint(f, _TYPES[kind]())
        elif kind != "continuous":
            raise ModelFormatError(f"variable {name!r}: unknown type {kind!r}")

    for i, item in enumerate(data.get("constraints") or []):
        if not isinstance(item, dict):
            raise ModelFormatError(f"constraint #{i}: expected a mapping")
        where = f"constraint {item.get('name', '#' + str(i))}"
        sense = str(item.get("sense", "<="))
        if sense not in _SENSES:
            raise ModelFormatError(f"{where}: unknown sense {sense!r}")
        f = ScalarAffineFunction.from_pairs(_affine(item.get("terms"), variables, where))
        c = model.add_constraint(f, _SENSES[sense](float(item.get("rhs", 0.0))))
        if item.get("name"):
            model.set_constraint_name(c, str(item["name"]))

    sense = str(data.get("sense", "min")).upper()
    if sense not in ObjectiveSense.__members__:
        raise ModelFormatError(f"unknown objective sense {sense.lower()!r}")
    objective = data.get("objective") or {}
    model.set_objective(
        ScalarAffineFunction.from_pairs(
            _affine(objective.get("terms"), variables, "objective"), float(objective.get("constant", 0.0))
        )
    )
    model.set_objective_sense(ObjectiveSense[sense])
    return variables


def _progress_logger(every: int):
    calls = 0

    def callback(cb_data: CallbackData) -> None:
        nonlocal calls
        calls += 1
        if calls % every:
            return
        tree = cb_data.tree
        node = tree.best_node()
        bound = tree.node_bound(node) if node else math.nan
        log.info(
            "%s: node %d, %d solved, incumbent=%s, bound=%.6g, gap=%.3g",
            cb_data.reason_name,
            tree.curr_node,
            tree.nodes_solved,
            "-" if tree.best_obj is None else f"{tree.best_obj:.6g}",
            bound,
            tree.mip_gap(),
        )

    return callback


def collect_result(model: Optimizer, variables: Mapping[str, VariableIndex]) -> RunResult:
    primal = model.primal_status()
    dual = model.dual_status()
    res = RunResult(
        name=model.name,
        termination_status=model.termination_status().value,
        raw_status=model.raw_status_string(),
        primal_status=primal.value,
        dual_status=dual.value,
        solve_time=model.solve_time(),
    )
    if primal == ResultStatus.FEASIBLE_POINT:
        res.objective_value = model.objective_value()
    if primal != ResultStatus.NO_SOLUTION:
        res.values = {name: model.variable_primal(x) for name, x in variables.items()}
    if model.last_solved_by_mip:
        res.objective_bound = model.objective_bound()
        res.relative_gap = model.relative_gap()
    if dual in (ResultStatus.FEASIBLE_POINT, ResultStatus.INFEASIBILITY_CERTIFICATE):
        for function_type, set_type in model.list_of_constraints():
            if function_type is not ScalarAffineFunction:
                continue
            for c in model.list_of_constraint_indices(function_type, set_type):
                name = model.get_constraint_name(c)
                if name:
                    res.duals[name] = model.constraint_dual(c)
    return res


def solve_model(data: Mapping[str, Any], cfg: LPAdapterConfig | None = None) -> RunResult:
    cfg = cfg or LPAdapterConfig()
    model = make_optimizer(cfg.optimizer)
    variables = build_model(data, model)
    if cfg.run.print_every > 0:
        model.set_callback(_progress_logger(cfg.run.print_every))
    log.info(
        "Solving %s: %d variables, %d constraint types, method=%s",
        model.name or "<unnamed>",
        model.number_of_variables(),
        len(model.list_of_constraints()),
        model.method.value,
    )
    model.optimize()
    res = collect_result(model, variables)
    log.info("Result: %s (%s) objective=%s", res.termination_status, res.raw_status, res.objective_value)
    return res


def run(model_path: str | Path, config_path: str | Path | None = None) -> RunResult:
    """Solve the YAML model at ``model_path`` with options from ``config_path``."""
    cfg = load_config(config_path)
    setup_logging(cfg.run.log_level)
    return solve_model(load_model(model_path), cfg)


__all__ = [
    "ModelFormatError",
    "RunResult",
    "load_model",
    "make_optimizer",
    "build_model",
    "collect_result",
    "solve_model",
    "run",
]

"""Model-level optimizer over the positional engine.

Variables are engine columns and affine constraints are engine rows; both
keep a stable identity while columns and rows are renumbered underneath.
Bound and type constraints on a single variable are not stored separately:
their identity is the variable's own, and whether one exists is derived from
the variable's bound and type state.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Iterable, Iterator, Optional, Sequence

from ..engine.constants import (
    BS,
    CV,
    FR,
    IV,
    MAX,
    MIN,
    MSG_ERR,
    MSG_OFF,
    NF,
    NL,
    NS,
    NU,
    OFF,
    ON,
    OPT,
    FX,
    LO,
    DB,
    INT_MAX,
)
from ..engine.lp import exact, infeasibility_ray, interior, simplex, unbounded_ray
from ..engine.mip import intopt
from ..engine.problem import Problem
from ..params import (
    InteriorParams,
    IntoptParams,
    InvalidOptionError,
    SimplexParams,
    field_names,
    set_parameter as _set_store_parameter,
)
from . import status as _status
from .callbacks import CallbackBridge, CallbackFunction
from .errors import (
    InvalidIndex,
    InvalidOption,
    ScalarFunctionConstantNotZero,
    SettingSingleVariableFunctionNotAllowed,
    TypeConstraintAlreadySet,
    UnsupportedAttribute,
    UnsupportedConstraint,
)
from .names import NameIndex
from .records import (
    LESSTHAN_SLOT,
    LOWER_SLOT,
    TYPE_SLOT,
    ConstraintInfo,
    VariableInfo,
    add_bound,
    bound_type,
    bounds_of,
    is_valid_for,
    name_slot,
    remove_bound,
    set_type_for_name_slot,
)
from .registry import EntityRegistry
from .rows import add_affine_row, set_row_sense
from .status import SolveState
from .types import (
    AFFINE_SETS,
    BOUND_SETS,
    TYPE_SETS,
    BasisStatus,
    ConstraintIndex,
    EqualTo,
    GreaterThan,
    Integer,
    Interval,
    LessThan,
    Method,
    ObjectiveKind,
    ObjectiveSense,
    ResultStatus,
    ScalarAffineFunction,
    ScalarAffineTerm,
    SingleVariable,
    TerminationStatus,
    TypeState,
    VariableIndex,
    ZeroOne,
    sense_and_rhs,
)

log = logging.getLogger(__name__)

SOLVER_NAME = "lpadapter"


class Optimizer:
    """Optimization model backed by a positional :class:`Problem`.

    Keyword arguments other than ``presolve`` and ``method`` are raw engine
    parameters (e.g. ``tm_lim``, ``msg_lev``, ``mip_gap``).
    """

    def __init__(self, *, presolve: bool = False, method: Method | str = Method.SIMPLEX, **params: Any):
        self.presolve = bool(presolve)
        self.method = Method(method)
        self.simplex_param = SimplexParams()
        self.interior_param = InteriorParams()
        self.intopt_param = IntoptParams()
        self.params: dict[str, Any] = {}
        for key, value in params.items():
            self.params[key] = value
            self.set_parameter(key, value)
        self._apply_parameter("msg_lev", self.params.get("msg_lev", MSG_ERR))
        if self.presolve:
            self._apply_parameter("presolve", ON)
        self.silent = False
        self.callback_function: Optional[CallbackFunction] = None
        self._bridge = CallbackBridge(self)

        self.inner = Problem()
        self._state = SolveState()
        self._variables: EntityRegistry[VariableIndex, VariableInfo] = EntityRegistry(
            VariableIndex, lambda key: key.value
        )
        self._affine: EntityRegistry[int, ConstraintInfo] = EntityRegistry(int, int)
        self._variable_names: NameIndex[VariableIndex] = NameIndex("variable", self._scan_variable_names)
        self._constraint_names: NameIndex[ConstraintIndex] = NameIndex(
            "constraint", self._scan_constraint_names
        )
        self.num_binaries = 0
        self.num_integers = 0
        self.objective_type = ObjectiveKind.SCALAR_AFFINE
        self.is_feasibility = True
        self.empty()

    def __repr__(self) -> str:
        return (
            f"Optimizer({len(self._variables)} variables, {len(self._affine)} affine constraints, "
            f"method={self.method.value})"
        )

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    def empty(self) -> None:
        self.inner = Problem()
        self._state.reset()
        self.num_binaries = 0
        self.num_integers = 0
        self.objective_type = ObjectiveKind.SCALAR_AFFINE
        self.is_feasibility = True
        self._variables.empty()
        self._affine.empty()
        self._variable_names.invalidate()
        self._constraint_names.invalidate()

    def is_empty(self) -> bool:
        return (
            self.objective_type == ObjectiveKind.SCALAR_AFFINE
            and self.is_feasibility
            and len(self._variables) == 0
            and len(self._affine) == 0
            and not self._variable_names.built
            and not self._constraint_names.built
            and self._state.unbounded_ray is None
            and self._state.infeasibility_cert is None
        )

    @property
    def solver_name(self) -> str:
        return SOLVER_NAME

    @property
    def name(self) -> str:
        return self.inner.get_prob_name()

    @name.setter
    def name(self, value: str) -> None:
        self.inner.set_prob_name(value)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def _apply_parameter(self, key: str, value: Any) -> None:
        try:
            found = [
                _set_store_parameter(store, key, value)
                for store in (self.interior_param, self.intopt_param, self.simplex_param)
            ]
        except InvalidOptionError as exc:
            raise InvalidOption(str(exc)) from exc
        if not any(found):
            raise InvalidOption(f"Invalid option: {key} => {value}")

    def set_parameter(self, key: str, value: Any) -> None:
        """Set a raw engine parameter on every parameter store that has it."""
        if not isinstance(key, str):
            raise InvalidOption(f"Raw parameter names must be strings, got {key!r}")
        self._apply_parameter(key, value)
        self.params[key] = value

    def get_parameter(self, key: str) -> Any:
        if not isinstance(key, str):
            raise InvalidOption(f"Raw parameter names must be strings, got {key!r}")
        for store in (self.simplex_param, self.intopt_param, self.interior_param):
            if key in field_names(store):
                return getattr(store, key)
        raise InvalidOption(f"Unable to get parameter: {key}")

    @property
    def time_limit_sec(self) -> Optional[float]:
        tm_lim = self.simplex_param.tm_lim
        return None if tm_lim >= INT_MAX else tm_lim / 1000.0

    @time_limit_sec.setter
    def time_limit_sec(self, limit: Optional[float]) -> None:
        value = INT_MAX if limit is None else int(round(1000 * float(limit)))
        self.set_parameter("tm_lim", value)

    def set_silent(self, flag: bool) -> None:
        self.silent = bool(flag)
        level = MSG_OFF if flag else self.params.get("msg_lev", MSG_ERR)
        self._apply_parameter("msg_lev", level)

    def set_callback(self, fn: Optional[CallbackFunction]) -> None:
        self.callback_function = fn

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _info(self, key: VariableIndex | ConstraintIndex) -> VariableInfo:
        if isinstance(key, VariableIndex):
            info = self._variables.get(key)
            if info is None:
                raise InvalidIndex(key)
            return info
        if isinstance(key, ConstraintIndex) and key.function_type is SingleVariable:
            info = self._variables.get(VariableIndex(key.value))
            if info is None:
                raise InvalidIndex(key)
            return info
        raise InvalidIndex(key)

    def _affine_info(self, c: ConstraintIndex) -> ConstraintInfo:
        info = self._affine.get(c.value) if c.function_type is ScalarAffineFunction else None
        if info is None or type(info.set) is not c.set_type:
            raise InvalidIndex(c)
        return info

    def is_valid(self, index: VariableIndex | ConstraintIndex) -> bool:
        if isinstance(index, VariableIndex):
            return index in self._variables
        if not isinstance(index, ConstraintIndex):
            return False
        if index.function_type is SingleVariable:
            info = self._variables.get(VariableIndex(index.value))
            return info is not None and is_valid_for(info, index.set_type)
        if index.function_type is ScalarAffineFunction:
            info = self._affine.get(index.value)
            return info is not None and type(info.set) is index.set_type
        return False

    def _throw_if_not_valid(self, index: VariableIndex | ConstraintIndex) -> None:
        if not self.is_valid(index):
            raise InvalidIndex(index)

    def _indices_and_coefficients(self, f: ScalarAffineFunction) -> tuple[list[int], list[float]]:
        canonical = f.canonical()
        columns = [self._info(t.variable).column for t in canonical.terms]
        coefficients = [t.coefficient for t in canonical.terms]
        return columns, coefficients

    def _variable_at_columns(self) -> list[VariableIndex]:
        # Registry order is insertion order, which is also column order.
        return self._variables.keys()

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def add_variable(self) -> VariableIndex:
        index = self._variables.add_item(VariableInfo(VariableIndex(0), 0))
        info = self._variables[index]
        info.index = index
        info.column = len(self._variables)
        self.inner.add_cols(1)
        self.inner.set_col_bnds(info.column, FR, 0.0, 0.0)
        return index

    def add_variables(self, n: int) -> list[VariableIndex]:
        if n <= 0:
            return []
        first = len(self._variables) + 1
        self.inner.add_cols(n)
        indices = []
        for i in range(n):
            index = self._variables.add_item(VariableInfo(VariableIndex(0), 0))
            info = self._variables[index]
            info.index = index
            info.column = first + i
            self.inner.set_col_bnds(info.column, FR, 0.0, 0.0)
            indices.append(index)
        return indices

    def _delete_variable(self, v: VariableIndex) -> None:
        info = self._info(v)
        self.inner.std_basis()
        self.inner.del_cols([info.column])
        if info.lessthan_name or info.greaterthan_interval_or_equalto_name or info.type_constraint_name:
            self._constraint_names.invalidate()
        self._variable_names.update(info.name, "", v)
        if info.type == TypeState.BINARY:
            self.num_binaries -= 1
        elif info.type == TypeState.INTEGER:
            self.num_integers -= 1
        self._variables.delete(v)
        for other in self._variables.values():
            if other.column > info.column:
                other.column -= 1

    def list_of_variable_indices(self) -> list[VariableIndex]:
        return sorted(self._variables.keys(), key=lambda v: v.value)

    def number_of_variables(self) -> int:
        return len(self._variables)

    def set_variable_name(self, v: VariableIndex, name: str) -> None:
        info = self._info(v)
        old_name = info.name
        info.name = name
        if name:
            self.inner.set_col_name(info.column, name)
        self._variable_names.update(old_name, name, v)

    def get_variable_name(self, v: VariableIndex) -> str:
        return self._info(v).name

    def get_variable_by_name(self, name: str) -> Optional[VariableIndex]:
        return self._variable_names.lookup(name)

    def _scan_variable_names(self) -> Iterator[tuple[str, VariableIndex]]:
        for index, info in self._variables.items():
            yield info.name, index

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def add_constraint(self, f, s) -> ConstraintIndex:
        if isinstance(f, VariableIndex):
            f = SingleVariable(f)
        if isinstance(f, SingleVariable):
            if isinstance(s, BOUND_SETS):
                return self._add_bound_constraint(f, s)
            if isinstance(s, ZeroOne):
                return self._add_type_constraint(f, TypeState.BINARY, ZeroOne)
            if isinstance(s, Integer):
                return self._add_type_constraint(f, TypeState.INTEGER, Integer)
        elif isinstance(f, ScalarAffineFunction) and isinstance(s, AFFINE_SETS):
            return self._add_affine_constraint(f, s)
        raise UnsupportedConstraint(type(f), type(s))

    def add_constraints(self, functions: Sequence[Any], sets: Sequence[Any]) -> list[ConstraintIndex]:
        if len(functions) != len(sets):
            raise ValueError("functions and sets have different lengths")
        return [self.add_constraint(f, s) for f, s in zip(functions, sets)]

    def _add_bound_constraint(self, f: SingleVariable, s) -> ConstraintIndex:
        info = self._info(f.variable)
        add_bound(info, type(s))
        index = ConstraintIndex(SingleVariable, type(s), f.variable.value)
        self.set_constraint_set(index, s)
        return index

    def _add_type_constraint(self, f: SingleVariable, state: TypeState, set_type: type) -> ConstraintIndex:
        info = self._info(f.variable)
        if info.type != TypeState.CONTINUOUS:
            raise TypeConstraintAlreadySet(f.variable, info.type.value)
        # Binaries are plain integer columns; their [0, 1] box is applied just before a solve
        self.inner.set_col_kind(info.column, IV)
        info.type = state
        if state == TypeState.BINARY:
            self.num_binaries += 1
        else:
            self.num_integers += 1
        return ConstraintIndex(SingleVariable, set_type, f.variable.value)

    def _add_affine_constraint(self, f: ScalarAffineFunction, s) -> ConstraintIndex:
        if f.constant != 0.0:
            raise ScalarFunctionConstantNotZero(f.constant)
        columns, coefficients = self._indices_and_coefficients(f)
        key = self._affine.add_item(ConstraintInfo(0, s))
        info = self._affine[key]
        info.row = len(self._affine)
        sense, rhs = sense_and_rhs(s)
        add_affine_row(self.inner, columns, coefficients, sense, rhs)
        return ConstraintIndex(ScalarAffineFunction, type(s), key)

    def _set_variable_bound(self, column: int, lower: Optional[float], upper: Optional[float]) -> None:
        if lower is None:
            lower = self.inner.get_col_lb(column)
        if upper is None:
            upper = self.inner.get_col_ub(column)
        kind = bound_type(lower, upper)
        if upper < lower:
            # Let the engine accept the crossed box; the solve reports INVALID_MODEL
            with self.inner.preemptive_check_suspended():
                self.inner.set_col_bnds(column, kind, lower, upper)
        else:
            self.inner.set_col_bnds(column, kind, lower, upper)

    def delete(self, index: VariableIndex | ConstraintIndex) -> None:
        if isinstance(index, VariableIndex):
            self._delete_variable(index)
        elif isinstance(index, ConstraintIndex) and index.function_type is SingleVariable:
            self._delete_single_variable_constraint(index)
        elif isinstance(index, ConstraintIndex) and index.function_type is ScalarAffineFunction:
            self._delete_affine_constraint(index)
        else:
            raise InvalidIndex(index)

    def _delete_single_variable_constraint(self, c: ConstraintIndex) -> None:
        self._throw_if_not_valid(c)
        info = self._info(c)
        if c.set_type in BOUND_SETS:
            lower, upper = remove_bound(info, c.set_type)
            self._set_variable_bound(info.column, lower, upper)
        else:
            self.inner.set_col_kind(info.column, CV)
            if info.type == TypeState.BINARY:
                self.num_binaries -= 1
            else:
                self.num_integers -= 1
            info.type = TypeState.CONTINUOUS
        slot = name_slot(c.set_type)
        self._constraint_names.update(getattr(info, slot), "", c)
        setattr(info, slot, "")

    def _delete_affine_constraint(self, c: ConstraintIndex) -> None:
        info = self._affine_info(c)
        row = info.row
        self.inner.std_basis()
        self.inner.del_rows([row])
        for other in self._affine.values():
            if other.row > row:
                other.row -= 1
        if info.name:
            self._constraint_names.invalidate()
        self._affine.delete(c.value)

    def set_constraint_set(self, c: ConstraintIndex, s) -> None:
        if type(s) is not c.set_type:
            raise TypeError(f"cannot set {type(s).__name__} on a {c.set_type.__name__} constraint")
        if c.function_type is SingleVariable:
            self._throw_if_not_valid(c)
            if isinstance(s, BOUND_SETS):
                lower, upper = bounds_of(s)
                self._set_variable_bound(self._info(c).column, lower, upper)
            return
        info = self._affine_info(c)
        sense, rhs = sense_and_rhs(s)
        set_row_sense(self.inner, info.row, sense, rhs)
        info.set = s

    def get_constraint_set(self, c: ConstraintIndex):
        if c.function_type is SingleVariable:
            self._throw_if_not_valid(c)
            column = self._info(c).column
            lower = self.inner.get_col_lb(column)
            upper = self.inner.get_col_ub(column)
            if c.set_type is LessThan:
                return LessThan(upper)
            if c.set_type is GreaterThan:
                return GreaterThan(lower)
            if c.set_type is EqualTo:
                return EqualTo(lower)
            if c.set_type is Interval:
                return Interval(lower, upper)
            return c.set_type()
        row = self._affine_info(c).row
        if self.inner.get_row_type(row) in (LO, FX, DB):
            return c.set_type(self.inner.get_row_lb(row))
        return c.set_type(self.inner.get_row_ub(row))

    def get_constraint_function(self, c: ConstraintIndex):
        if c.function_type is SingleVariable:
            self._throw_if_not_valid(c)
            return SingleVariable(VariableIndex(c.value))
        row = self._affine_info(c).row
        columns, values = self.inner.get_mat_row(row)
        variables = self._variable_at_columns()
        terms = tuple(
            ScalarAffineTerm(value, variables[column - 1])
            for column, value in zip(columns, values)
            if value != 0.0
        )
        return ScalarAffineFunction(terms, 0.0)

    def set_constraint_function(self, c: ConstraintIndex, f) -> None:
        if c.function_type is SingleVariable:
            raise SettingSingleVariableFunctionNotAllowed()
        if f.constant != 0.0:
            raise ScalarFunctionConstantNotZero(f.constant)
        row = self._affine_info(c).row
        columns, coefficients = self._indices_and_coefficients(f)
        self.inner.set_mat_row(row, columns, coefficients)

    def modify_constraint_coefficient(self, c: ConstraintIndex, variable: VariableIndex, coefficient: float) -> None:
        row = self._affine_info(c).row
        column = self._info(variable).column
        columns, coefficients = self.inner.get_mat_row(row)
        if column in columns:
            coefficients[columns.index(column)] = float(coefficient)
        else:
            columns.append(column)
            coefficients.append(float(coefficient))
        self.inner.set_mat_row(row, columns, coefficients)

    def set_constraint_name(self, c: ConstraintIndex, name: str) -> None:
        if c.function_type is SingleVariable:
            self._throw_if_not_valid(c)
            info = self._info(c)
            slot = name_slot(c.set_type)
            old_name = getattr(info, slot)
            setattr(info, slot, name)
        else:
            affine = self._affine_info(c)
            old_name = affine.name
            affine.name = name
            if name:
                self.inner.set_row_name(affine.row, name)
        self._constraint_names.update(old_name, name, c)

    def get_constraint_name(self, c: ConstraintIndex) -> str:
        if c.function_type is SingleVariable:
            self._throw_if_not_valid(c)
            return getattr(self._info(c), name_slot(c.set_type))
        return self._affine_info(c).name

    def get_constraint_by_name(
        self, name: str, constraint_type: Optional[tuple[type, type]] = None
    ) -> Optional[ConstraintIndex]:
        index = self._constraint_names.lookup(name)
        if index is None or constraint_type is None:
            return index
        if (index.function_type, index.set_type) == tuple(constraint_type):
            return index
        return None

    def _scan_constraint_names(self) -> Iterator[tuple[str, ConstraintIndex]]:
        for key, info in self._affine.items():
            if info.name:
                yield info.name, ConstraintIndex(ScalarAffineFunction, type(info.set), key)
        for index, info in self._variables.items():
            for slot in (LESSTHAN_SLOT, LOWER_SLOT, TYPE_SLOT):
                name = getattr(info, slot)
                if not name:
                    continue
                set_type = set_type_for_name_slot(info, slot)
                if set_type is None:
                    raise RuntimeError(f"stale constraint name {name!r} on {index!r}")
                yield name, ConstraintIndex(SingleVariable, set_type, index.value)

    def list_of_constraint_indices(self, function_type: type, set_type: type) -> list[ConstraintIndex]:
        indices = []
        if function_type is SingleVariable:
            for index, info in self._variables.items():
                if is_valid_for(info, set_type):
                    indices.append(ConstraintIndex(SingleVariable, set_type, index.value))
        elif function_type is ScalarAffineFunction:
            for key, info in self._affine.items():
                if type(info.set) is set_type:
                    indices.append(ConstraintIndex(ScalarAffineFunction, set_type, key))
        return sorted(indices, key=lambda c: c.value)

    def number_of_constraints(self, function_type: type, set_type: type) -> int:
        return len(self.list_of_constraint_indices(function_type, set_type))

    def list_of_constraints(self) -> list[tuple[type, type]]:
        found: set[tuple[type, type]] = set()
        for info in self._variables.values():
            for set_type in (*BOUND_SETS, *TYPE_SETS):
                if is_valid_for(info, set_type):
                    found.add((SingleVariable, set_type))
        for info in self._affine.values():
            found.add((ScalarAffineFunction, type(info.set)))
        return sorted(found, key=lambda fs: (fs[0].__name__, fs[1].__name__))

    # ------------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------------

    def set_objective_sense(self, sense: ObjectiveSense | str) -> None:
        sense = ObjectiveSense(sense)
        self.inner.set_obj_dir(MAX if sense == ObjectiveSense.MAX else MIN)
        self.is_feasibility = sense == ObjectiveSense.FEASIBILITY

    def get_objective_sense(self) -> ObjectiveSense:
        if self.is_feasibility:
            return ObjectiveSense.FEASIBILITY
        return ObjectiveSense.MAX if self.inner.get_obj_dir() == MAX else ObjectiveSense.MIN

    def set_objective(self, f: SingleVariable | ScalarAffineFunction) -> None:
        if isinstance(f, VariableIndex):
            f = SingleVariable(f)
        if isinstance(f, SingleVariable):
            kind = ObjectiveKind.SINGLE_VARIABLE
            f = ScalarAffineFunction((ScalarAffineTerm(1.0, f.variable),), 0.0)
        elif isinstance(f, ScalarAffineFunction):
            kind = ObjectiveKind.SCALAR_AFFINE
        else:
            raise UnsupportedAttribute("ObjectiveFunction", f"{type(f).__name__} objectives")
        obj = [0.0] * self.inner.get_num_cols()
        for term in f.terms:
            obj[self._info(term.variable).column - 1] += term.coefficient
        for column, value in enumerate(obj, start=1):
            self.inner.set_obj_coef(column, value)
        self.inner.set_obj_coef(0, f.constant)
        self.objective_type = kind

    def get_objective(self) -> SingleVariable | ScalarAffineFunction:
        variables = self._variable_at_columns()
        terms = []
        for column in range(1, self.inner.get_num_cols() + 1):
            coef = self.inner.get_obj_coef(column)
            if coef != 0.0:
                terms.append(ScalarAffineTerm(coef, variables[column - 1]))
        f = ScalarAffineFunction(tuple(terms), self.inner.get_obj_coef(0))
        if (
            self.objective_type == ObjectiveKind.SINGLE_VARIABLE
            and len(terms) == 1
            and terms[0].coefficient == 1.0
            and f.constant == 0.0
        ):
            return SingleVariable(terms[0].variable)
        return f

    def objective_function_type(self) -> type:
        if self.objective_type == ObjectiveKind.SINGLE_VARIABLE:
            return SingleVariable
        return ScalarAffineFunction

    def modify_objective_coefficient(self, variable: VariableIndex, coefficient: float) -> None:
        self.inner.set_obj_coef(self._info(variable).column, float(coefficient))

    def modify_objective_constant(self, constant: float) -> None:
        self.inner.set_obj_coef(0, float(constant))

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy_from(self, source: "Optimizer") -> dict[Any, Any]:
        """Replace this model by a copy of ``source``.

        Returns the map from ``source`` variable and constraint indices to the
        new ones.
        """
        self.empty()
        index_map: dict[Any, Any] = {}
        for v in source.list_of_variable_indices():
            new = self.add_variable()
            index_map[v] = new
            name = source.get_variable_name(v)
            if name:
                self.set_variable_name(new, name)
        for function_type, set_type in source.list_of_constraints():
            for c in source.list_of_constraint_indices(function_type, set_type):
                f = source.get_constraint_function(c)
                if isinstance(f, SingleVariable):
                    f = SingleVariable(index_map[f.variable])
                else:
                    f = ScalarAffineFunction(
                        tuple(ScalarAffineTerm(t.coefficient, index_map[t.variable]) for t in f.terms),
                        f.constant,
                    )
                new = self.add_constraint(f, source.get_constraint_set(c))
                index_map[c] = new
                name = source.get_constraint_name(c)
                if name:
                    self.set_constraint_name(new, name)
        sense = source.get_objective_sense()
        self.set_objective_sense(sense)
        objective = source.get_objective()
        if isinstance(objective, SingleVariable):
            self.set_objective(SingleVariable(index_map[objective.variable]))
        else:
            self.set_objective(
                ScalarAffineFunction(
                    tuple(ScalarAffineTerm(t.coefficient, index_map[t.variable]) for t in objective.terms),
                    objective.constant,
                )
            )
            self.objective_type = source.objective_type
        self.name = source.name
        return index_map

    # ------------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------------

    def _solve_linear_problem(self) -> None:
        self._state.last_solved_by_mip = False
        if self.method == Method.SIMPLEX:
            self._state.solver_status = simplex(self.inner, self.simplex_param)
        elif self.method == Method.EXACT:
            self._state.solver_status = exact(self.inner, self.simplex_param)
        else:
            self._state.solver_status = interior(self.inner, self.interior_param)

    def _round_bounds_to_integer(self) -> list[tuple[int, float, float]]:
        """Round the bounds of integer columns inward; binaries are also boxed to [0, 1].

        Returns ``(column, lower, upper)`` for every column whose bounds changed.
        """
        bounds_to_reset = []
        for info in self._variables.values():
            if info.type not in (TypeState.BINARY, TypeState.INTEGER):
                continue
            lb = self.inner.get_col_lb(info.column)
            ub = self.inner.get_col_ub(info.column)
            new_lb = math.ceil(lb) if math.isfinite(lb) else lb
            new_ub = math.floor(ub) if math.isfinite(ub) else ub
            if info.type == TypeState.BINARY:
                new_lb = max(0.0, new_lb)
                new_ub = min(1.0, new_ub)
            if new_lb != lb or new_ub != ub:
                bounds_to_reset.append((info.column, lb, ub))
                self._set_variable_bound(info.column, float(new_lb), float(new_ub))
        return bounds_to_reset

    def _solve_mip_problem(self) -> None:
        bounds_to_reset = self._round_bounds_to_integer()
        presolve_cache = self.intopt_param.presolve
        try:
            if self.intopt_param.presolve == OFF:
                # intopt needs an optimal basis of the relaxation unless it presolves
                simplex(self.inner, self.simplex_param)
                if self.inner.get_status() != OPT:
                    self.intopt_param.presolve = ON
            self._state.solver_status = intopt(self.inner, self.intopt_param, self._bridge)
            self._state.last_solved_by_mip = True
        finally:
            for column, lower, upper in bounds_to_reset:
                self._set_variable_bound(column, lower, upper)
            self.intopt_param.presolve = presolve_cache

    def optimize(self) -> None:
        start = time.perf_counter()
        state = self._state
        state.optimize_not_called = False
        state.infeasibility_cert = None
        state.unbounded_ray = None
        if self.num_binaries > 0 or self.num_integers > 0:
            log.debug("optimize: mixed-integer path (%d binaries, %d integers)", self.num_binaries, self.num_integers)
            self._solve_mip_problem()
        else:
            log.debug("optimize: continuous path (%s)", self.method.value)
            self._solve_linear_problem()
        if self.primal_status() == ResultStatus.INFEASIBILITY_CERTIFICATE:
            state.unbounded_ray = unbounded_ray(self.inner)
        if self.dual_status() == ResultStatus.INFEASIBILITY_CERTIFICATE:
            state.infeasibility_cert = infeasibility_ray(self.inner)
        state.solve_time = time.perf_counter() - start
        log.debug(
            "optimize: %s (raw code %d) in %.3fs",
            self.termination_status().value,
            state.solver_status,
            state.solve_time,
        )

    # ------------------------------------------------------------------
    # Status and results
    # ------------------------------------------------------------------

    def termination_status(self) -> TerminationStatus:
        return _status.termination_status(self.inner, self._state, self.method)

    def raw_status_string(self) -> str:
        return _status.raw_status_string(self.inner, self._state, self.method)

    def primal_status(self) -> ResultStatus:
        return _status.primal_status(self.inner, self._state, self.method)

    def dual_status(self) -> ResultStatus:
        return _status.dual_status(self.inner, self._state, self.method)

    def result_count(self) -> int:
        valid = (ResultStatus.FEASIBLE_POINT, ResultStatus.INFEASIBILITY_CERTIFICATE)
        if self.primal_status() in valid or self.dual_status() in valid:
            return 1
        return 0

    @property
    def last_solved_by_mip(self) -> bool:
        return self._state.last_solved_by_mip

    def _dual_multiplier(self) -> float:
        return 1.0 if self.inner.get_obj_dir() == MIN else -1.0

    def _get_col_primal(self, column: int) -> float:
        if self._state.last_solved_by_mip:
            return self.inner.mip_col_val(column)
        if self.method in (Method.SIMPLEX, Method.EXACT):
            return self.inner.get_col_prim(column)
        return self.inner.ipt_col_prim(column)

    def _get_row_primal(self, row: int) -> float:
        if self._state.last_solved_by_mip:
            return self.inner.mip_row_val(row)
        if self.method in (Method.SIMPLEX, Method.EXACT):
            return self.inner.get_row_prim(row)
        return self.inner.ipt_row_prim(row)

    def _require_dual_solution(self) -> None:
        if self._state.last_solved_by_mip:
            raise UnsupportedAttribute("ConstraintDual", "no dual solution after a mixed-integer solve")

    def _get_col_dual(self, column: int) -> float:
        self._require_dual_solution()
        if self.method in (Method.SIMPLEX, Method.EXACT):
            return self._dual_multiplier() * self.inner.get_col_dual(column)
        return self._dual_multiplier() * self.inner.ipt_col_dual(column)

    def variable_primal(self, x: VariableIndex) -> float:
        column = self._info(x).column
        if self._state.unbounded_ray is not None:
            return self._state.unbounded_ray[column - 1]
        return self._get_col_primal(column)

    def variable_primals(self, xs: Iterable[VariableIndex]) -> list[float]:
        return [self.variable_primal(x) for x in xs]

    def constraint_primal(self, c: ConstraintIndex) -> float:
        if c.function_type is SingleVariable:
            return self.variable_primal(VariableIndex(c.value))
        return self._get_row_primal(self._affine_info(c).row)

    def constraint_dual(self, c: ConstraintIndex) -> float:
        if c.function_type is ScalarAffineFunction:
            row = self._affine_info(c).row
            if self._state.infeasibility_cert is not None:
                return self._state.infeasibility_cert[row - 1]
            self._require_dual_solution()
            if self.method in (Method.SIMPLEX, Method.EXACT):
                return self._dual_multiplier() * self.inner.get_row_dual(row)
            return self._dual_multiplier() * self.inner.ipt_row_dual(row)
        self._throw_if_not_valid(c)
        column = self._info(c).column
        if c.set_type is LessThan:
            at_bound = _isclose(self._get_col_primal(column), self.inner.get_col_ub(column))
            return self._get_col_dual(column) if at_bound else 0.0
        if c.set_type is GreaterThan:
            at_bound = _isclose(self._get_col_primal(column), self.inner.get_col_lb(column))
            return self._get_col_dual(column) if at_bound else 0.0
        if c.set_type in (EqualTo, Interval):
            return self._get_col_dual(column)
        raise UnsupportedAttribute("ConstraintDual", f"{c.set_type.__name__} constraints have no dual")

    def constraint_basis_status(self, c: ConstraintIndex) -> BasisStatus:
        if c.function_type is ScalarAffineFunction:
            cbasis = self.inner.get_row_stat(self._affine_info(c).row)
            if cbasis == BS:
                return BasisStatus.BASIC
            if cbasis in (NL, NU, NF, NS):
                return BasisStatus.NONBASIC
            raise ValueError(f"row basis status {cbasis} isn't defined")
        self._throw_if_not_valid(c)
        if c.set_type not in BOUND_SETS:
            raise UnsupportedAttribute("ConstraintBasisStatus", f"{c.set_type.__name__} constraints")
        vbasis = self.inner.get_col_stat(self._info(c).column)
        if vbasis == BS:
            return BasisStatus.BASIC
        if vbasis == NL:
            if c.set_type is LessThan:
                return BasisStatus.BASIC
            if c.set_type is Interval:
                return BasisStatus.NONBASIC_AT_LOWER
            return BasisStatus.NONBASIC
        if vbasis == NU:
            if c.set_type is GreaterThan:
                return BasisStatus.BASIC
            if c.set_type is Interval:
                return BasisStatus.NONBASIC_AT_UPPER
            return BasisStatus.NONBASIC
        if vbasis in (NF, NS):
            return BasisStatus.NONBASIC
        raise ValueError(f"column basis status {vbasis} isn't defined")

    def objective_value(self) -> float:
        if self._state.last_solved_by_mip:
            return self.inner.mip_obj_val()
        if self.method in (Method.SIMPLEX, Method.EXACT):
            return self.inner.get_obj_val()
        return self.inner.ipt_obj_val()

    def objective_bound(self) -> float:
        if not self._state.last_solved_by_mip:
            return -math.inf if self.get_objective_sense() == ObjectiveSense.MIN else math.inf
        if self.inner.mip_status() == OPT:
            return self.inner.mip_obj_val()
        return self._state.objective_bound

    def relative_gap(self) -> float:
        if not self._state.last_solved_by_mip:
            raise UnsupportedAttribute("RelativeGap", "only available after a mixed-integer solve")
        return self._state.relative_gap

    def solve_time(self) -> float:
        return self._state.solve_time


def _isclose(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1.5e-8, abs_tol=1e-9)


__all__ = ["Optimizer", "SOLVER_NAME"]

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union


class TerminationStatus(str, Enum):
    OPTIMIZE_NOT_CALLED = "OPTIMIZE_NOT_CALLED"
    OPTIMAL = "OPTIMAL"
    INFEASIBLE = "INFEASIBLE"
    DUAL_INFEASIBLE = "DUAL_INFEASIBLE"
    LOCALLY_SOLVED = "LOCALLY_SOLVED"
    LOCALLY_INFEASIBLE = "LOCALLY_INFEASIBLE"
    ITERATION_LIMIT = "ITERATION_LIMIT"
    TIME_LIMIT = "TIME_LIMIT"
    OBJECTIVE_LIMIT = "OBJECTIVE_LIMIT"
    SLOW_PROGRESS = "SLOW_PROGRESS"
    NUMERICAL_ERROR = "NUMERICAL_ERROR"
    INVALID_MODEL = "INVALID_MODEL"
    INTERRUPTED = "INTERRUPTED"
    OTHER_ERROR = "OTHER_ERROR"


class ResultStatus(str, Enum):
    NO_SOLUTION = "NO_SOLUTION"
    FEASIBLE_POINT = "FEASIBLE_POINT"
    INFEASIBLE_POINT = "INFEASIBLE_POINT"
    INFEASIBILITY_CERTIFICATE = "INFEASIBILITY_CERTIFICATE"


class BasisStatus(str, Enum):
    BASIC = "BASIC"
    NONBASIC = "NONBASIC"
    NONBASIC_AT_LOWER = "NONBASIC_AT_LOWER"
    NONBASIC_AT_UPPER = "NONBASIC_AT_UPPER"


class ObjectiveSense(str, Enum):
    MIN = "MIN"
    MAX = "MAX"
    FEASIBILITY = "FEASIBILITY"


class Method(str, Enum):
    SIMPLEX = "SIMPLEX"
    INTERIOR = "INTERIOR"
    EXACT = "EXACT"


class BoundState(str, Enum):
    NONE = "NONE"
    LESS_THAN = "LESS_THAN"
    GREATER_THAN = "GREATER_THAN"
    LESS_AND_GREATER_THAN = "LESS_AND_GREATER_THAN"
    INTERVAL = "INTERVAL"
    EQUAL_TO = "EQUAL_TO"


class TypeState(str, Enum):
    CONTINUOUS = "CONTINUOUS"
    BINARY = "BINARY"
    INTEGER = "INTEGER"


class ObjectiveKind(str, Enum):
    SINGLE_VARIABLE = "SINGLE_VARIABLE"
    SCALAR_AFFINE = "SCALAR_AFFINE"


@dataclass(frozen=True, slots=True)
class VariableIndex:
    value: int


# -- sets ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LessThan:
    upper: float


@dataclass(frozen=True, slots=True)
class GreaterThan:
    lower: float


@dataclass(frozen=True, slots=True)
class EqualTo:
    value: float


@dataclass(frozen=True, slots=True)
class Interval:
    lower: float
    upper: float


@dataclass(frozen=True, slots=True)
class ZeroOne:
    pass


@dataclass(frozen=True, slots=True)
class Integer:
    pass


BoundSet = Union[LessThan, GreaterThan, EqualTo, Interval]
TypeSet = Union[ZeroOne, Integer]
ScalarSet = Union[LessThan, GreaterThan, EqualTo, Interval, ZeroOne, Integer]

BOUND_SETS = (LessThan, GreaterThan, EqualTo, Interval)
TYPE_SETS = (ZeroOne, Integer)
AFFINE_SETS = (LessThan, GreaterThan, EqualTo)


# -- functions -------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SingleVariable:
    variable: VariableIndex


@dataclass(frozen=True, slots=True)
class ScalarAffineTerm:
    coefficient: float
    variable: VariableIndex


@dataclass(frozen=True, slots=True)
class ScalarAffineFunction:
    """sum(term.coefficient * term.variable) + constant"""

    terms: tuple[ScalarAffineTerm, ...] = field(default_factory=tuple)
    constant: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.terms, tuple):
            object.__setattr__(self, "terms", tuple(self.terms))

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[float, VariableIndex]], constant: float = 0.0
    ) -> "ScalarAffineFunction":
        return cls(tuple(ScalarAffineTerm(float(c), v) for c, v in pairs), float(constant))

    def canonical(self) -> "ScalarAffineFunction":
        """Merge duplicate variables, drop zero coefficients, order by variable."""
        merged: dict[VariableIndex, float] = {}
        for term in self.terms:
            merged[term.variable] = merged.get(term.variable, 0.0) + term.coefficient
        terms = tuple(
            ScalarAffineTerm(c, v)
            for v, c in sorted(merged.items(), key=lambda item: item[0].value)
            if c != 0.0
        )
        return ScalarAffineFunction(terms, self.constant)


Function = Union[SingleVariable, ScalarAffineFunction]


@dataclass(frozen=True, slots=True)
class ConstraintIndex:
    """Identity of a constraint, tagged with its function and set types.

    For single-variable constraints ``value`` is the identity of the
    constrained variable.
    """

    function_type: type
    set_type: type
    value: int


def sense_and_rhs(s: BoundSet) -> tuple[str, float]:
    if isinstance(s, LessThan):
        return "L", s.upper
    if isinstance(s, GreaterThan):
        return "G", s.lower
    if isinstance(s, EqualTo):
        return "E", s.value
    raise TypeError(f"set {s!r} has no single sense")


__all__ = [
    "TerminationStatus",
    "ResultStatus",
    "BasisStatus",
    "ObjectiveSense",
    "Method",
    "BoundState",
    "TypeState",
    "ObjectiveKind",
    "VariableIndex",
    "ConstraintIndex",
    "LessThan",
    "GreaterThan",
    "EqualTo",
    "Interval",
    "ZeroOne",
    "Integer",
    "BoundSet",
    "TypeSet",
    "ScalarSet",
    "BOUND_SETS",
    "TYPE_SETS",
    "AFFINE_SETS",
    "SingleVariable",
    "ScalarAffineTerm",
    "ScalarAffineFunction",
    "Function",
    "sense_and_rhs",
]

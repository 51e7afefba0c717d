"""Per-variable and per-constraint records, and the bound state machine.

A variable carries at most one lower-bound set and one upper-bound set.
``add_bound`` / ``remove_bound`` move its :class:`BoundState` through the
allowed transitions; the column bounds themselves are written by the
optimizer from :func:`bounds_of` and :func:`bound_type`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..engine.constants import DB, DBL_MAX, FR, FX, LO, UP
from .errors import LowerBoundAlreadySet, UpperBoundAlreadySet
from .types import (
    BoundSet,
    BoundState,
    EqualTo,
    GreaterThan,
    Integer,
    Interval,
    LessThan,
    TypeState,
    VariableIndex,
    ZeroOne,
)


@dataclass(slots=True)
class VariableInfo:
    index: VariableIndex
    column: int
    bound: BoundState = BoundState.NONE
    type: TypeState = TypeState.CONTINUOUS
    name: str = ""
    # Bound and type constraints are not engine rows, so their names live here.
    # A variable has at most one upper, one lower/interval/fixed and one type set.
    lessthan_name: str = ""
    greaterthan_interval_or_equalto_name: str = ""
    type_constraint_name: str = ""


@dataclass(slots=True)
class ConstraintInfo:
    row: int
    set: BoundSet
    name: str = ""


LESSTHAN_SLOT = "lessthan_name"
LOWER_SLOT = "greaterthan_interval_or_equalto_name"
TYPE_SLOT = "type_constraint_name"

_SLOTS = {
    LessThan: LESSTHAN_SLOT,
    GreaterThan: LOWER_SLOT,
    Interval: LOWER_SLOT,
    EqualTo: LOWER_SLOT,
    ZeroOne: TYPE_SLOT,
    Integer: TYPE_SLOT,
}

# Bound states under which a single-variable constraint of each set type exists
_VALID_BOUNDS = {
    LessThan: (BoundState.LESS_THAN, BoundState.LESS_AND_GREATER_THAN),
    GreaterThan: (BoundState.GREATER_THAN, BoundState.LESS_AND_GREATER_THAN),
    Interval: (BoundState.INTERVAL,),
    EqualTo: (BoundState.EQUAL_TO,),
}
_VALID_TYPES = {ZeroOne: TypeState.BINARY, Integer: TypeState.INTEGER}


def name_slot(set_type: type) -> str:
    return _SLOTS[set_type]


def _existing_lower(bound: BoundState) -> Optional[type]:
    if bound in (BoundState.GREATER_THAN, BoundState.LESS_AND_GREATER_THAN):
        return GreaterThan
    if bound == BoundState.INTERVAL:
        return Interval
    if bound == BoundState.EQUAL_TO:
        return EqualTo
    return None


def _existing_upper(bound: BoundState) -> Optional[type]:
    if bound in (BoundState.LESS_THAN, BoundState.LESS_AND_GREATER_THAN):
        return LessThan
    if bound == BoundState.INTERVAL:
        return Interval
    if bound == BoundState.EQUAL_TO:
        return EqualTo
    return None


def _check_lower(info: VariableInfo, new: type) -> None:
    existing = _existing_lower(info.bound)
    if existing is not None:
        raise LowerBoundAlreadySet(info.index, existing, new)


def _check_upper(info: VariableInfo, new: type) -> None:
    existing = _existing_upper(info.bound)
    if existing is not None:
        raise UpperBoundAlreadySet(info.index, existing, new)


def add_bound(info: VariableInfo, set_type: type) -> BoundState:
    """Record a new bound set on ``info``, or raise if it collides with one."""
    if set_type is LessThan:
        _check_upper(info, set_type)
        info.bound = (
            BoundState.LESS_AND_GREATER_THAN
            if info.bound == BoundState.GREATER_THAN
            else BoundState.LESS_THAN
        )
    elif set_type is GreaterThan:
        _check_lower(info, set_type)
        info.bound = (
            BoundState.LESS_AND_GREATER_THAN
            if info.bound == BoundState.LESS_THAN
            else BoundState.GREATER_THAN
        )
    elif set_type is EqualTo:
        _check_lower(info, set_type)
        _check_upper(info, set_type)
        info.bound = BoundState.EQUAL_TO
    elif set_type is Interval:
        _check_lower(info, set_type)
        _check_upper(info, set_type)
        info.bound = BoundState.INTERVAL
    else:
        raise TypeError(f"{set_type.__name__} is not a bound set")
    return info.bound


def remove_bound(info: VariableInfo, set_type: type) -> tuple[Optional[float], Optional[float]]:
    """Drop a bound set from ``info``.

    Returns the (lower, upper) column bounds to write, ``None`` meaning the
    current value is kept.
    """
    if set_type is LessThan:
        info.bound = (
            BoundState.GREATER_THAN
            if info.bound == BoundState.LESS_AND_GREATER_THAN
            else BoundState.NONE
        )
        return None, math.inf
    if set_type is GreaterThan:
        info.bound = (
            BoundState.LESS_THAN
            if info.bound == BoundState.LESS_AND_GREATER_THAN
            else BoundState.NONE
        )
        return -math.inf, None
    if set_type in (Interval, EqualTo):
        info.bound = BoundState.NONE
        return -math.inf, math.inf
    raise TypeError(f"{set_type.__name__} is not a bound set")


def bounds_of(s: BoundSet) -> tuple[Optional[float], Optional[float]]:
    if isinstance(s, GreaterThan):
        return float(s.lower), None
    if isinstance(s, LessThan):
        return None, float(s.upper)
    if isinstance(s, EqualTo):
        return float(s.value), float(s.value)
    if isinstance(s, Interval):
        return float(s.lower), float(s.upper)
    raise TypeError(f"{type(s).__name__} is not a bound set")


def bound_type(lower: float, upper: float) -> int:
    if lower == upper:
        return FX
    if lower <= -DBL_MAX:
        return FR if upper >= DBL_MAX else UP
    return LO if upper >= DBL_MAX else DB


def is_valid_for(info: VariableInfo, set_type: type) -> bool:
    if set_type in _VALID_BOUNDS:
        return info.bound in _VALID_BOUNDS[set_type]
    if set_type in _VALID_TYPES:
        return info.type == _VALID_TYPES[set_type]
    return False


def set_type_for_name_slot(info: VariableInfo, slot: str) -> Optional[type]:
    """Set type of the live constraint whose name is stored in ``slot``."""
    if slot == LESSTHAN_SLOT:
        return LessThan if is_valid_for(info, LessThan) else None
    if slot == LOWER_SLOT:
        if info.bound in (BoundState.GREATER_THAN, BoundState.LESS_AND_GREATER_THAN):
            return GreaterThan
        if info.bound == BoundState.EQUAL_TO:
            return EqualTo
        if info.bound == BoundState.INTERVAL:
            return Interval
        return None
    if slot == TYPE_SLOT:
        if info.type == TypeState.BINARY:
            return ZeroOne
        if info.type == TypeState.INTEGER:
            return Integer
        return None
    raise ValueError(f"unknown name slot {slot!r}")


__all__ = [
    "VariableInfo",
    "ConstraintInfo",
    "LESSTHAN_SLOT",
    "LOWER_SLOT",
    "TYPE_SLOT",
    "name_slot",
    "add_bound",
    "remove_bound",
    "bounds_of",
    "bound_type",
    "is_valid_for",
    "set_type_for_name_slot",
]

import math

import pytest

from lpadapter.engine.constants import DB, FR, FX, LO, UP
from lpadapter.model.errors import LowerBoundAlreadySet, UpperBoundAlreadySet
from lpadapter.model.records import (
    LOWER_SLOT,
    VariableInfo,
    add_bound,
    bound_type,
    bounds_of,
    is_valid_for,
    remove_bound,
    set_type_for_name_slot,
)
from lpadapter.model.types import (
    BoundState,
    EqualTo,
    GreaterThan,
    Interval,
    LessThan,
    VariableIndex,
    ZeroOne,
)


def _info():
    return VariableInfo(VariableIndex(1), 1)


def test_lower_then_upper_combines():
    info = _info()
    assert add_bound(info, GreaterThan) == BoundState.GREATER_THAN
    assert add_bound(info, LessThan) == BoundState.LESS_AND_GREATER_THAN
    assert is_valid_for(info, LessThan) and is_valid_for(info, GreaterThan)
    assert not is_valid_for(info, Interval)


def test_second_lower_bound_is_rejected():
    info = _info()
    add_bound(info, Interval)
    with pytest.raises(LowerBoundAlreadySet) as exc:
        add_bound(info, GreaterThan)
    assert exc.value.existing is Interval
    assert exc.value.new is GreaterThan
    assert info.bound == BoundState.INTERVAL


def test_upper_bound_collides_with_equal_to():
    info = _info()
    add_bound(info, EqualTo)
    with pytest.raises(UpperBoundAlreadySet):
        add_bound(info, LessThan)


def test_removal_keeps_the_other_side():
    info = _info()
    add_bound(info, GreaterThan)
    add_bound(info, LessThan)
    assert remove_bound(info, LessThan) == (None, math.inf)
    assert info.bound == BoundState.GREATER_THAN
    assert remove_bound(info, GreaterThan) == (-math.inf, None)
    assert info.bound == BoundState.NONE


def test_removing_interval_frees_both_sides():
    info = _info()
    add_bound(info, Interval)
    assert remove_bound(info, Interval) == (-math.inf, math.inf)
    assert info.bound == BoundState.NONE


def test_bounds_and_bound_types():
    assert bounds_of(Interval(1, 2)) == (1.0, 2.0)
    assert bounds_of(LessThan(3)) == (None, 3.0)
    assert bounds_of(EqualTo(4)) == (4.0, 4.0)
    assert bound_type(-math.inf, math.inf) == FR
    assert bound_type(0.0, math.inf) == LO
    assert bound_type(-math.inf, 0.0) == UP
    assert bound_type(0.0, 1.0) == DB
    assert bound_type(2.0, 2.0) == FX
    # crossed bounds stay double-bounded so the solve can reject them
    assert bound_type(1.0, -1.0) == DB


def test_name_slot_resolves_live_set_type():
    info = _info()
    assert set_type_for_name_slot(info, LOWER_SLOT) is None
    add_bound(info, EqualTo)
    assert set_type_for_name_slot(info, LOWER_SLOT) is EqualTo
    assert not is_valid_for(info, ZeroOne)

import pytest

from lpadapter.engine.constants import INT_MAX, MSG_ALL, OFF
from lpadapter.params import (
    InteriorParams,
    IntoptParams,
    InvalidOptionError,
    SimplexParams,
    field_names,
    set_parameter,
)


def test_defaults():
    sp = SimplexParams()
    assert sp.msg_lev == MSG_ALL
    assert sp.tm_lim == INT_MAX
    assert sp.presolve == OFF
    assert IntoptParams().mip_gap == 0.0
    assert "ord_alg" in field_names(InteriorParams())


def test_set_parameter_converts_to_the_field_type():
    ip = IntoptParams()
    assert set_parameter(ip, "tm_lim", 5000.0)
    assert ip.tm_lim == 5000 and isinstance(ip.tm_lim, int)
    assert set_parameter(ip, "mip_gap", 1)
    assert ip.mip_gap == 1.0 and isinstance(ip.mip_gap, float)


def test_set_parameter_reports_missing_fields():
    assert not set_parameter(InteriorParams(), "tm_lim", 10)


def test_fractional_value_for_an_integer_field():
    with pytest.raises(InvalidOptionError, match="integer expected"):
        set_parameter(SimplexParams(), "it_lim", 2.5)


@pytest.mark.parametrize("key", ["cb_func", "cb_info"])
def test_callback_fields_are_reserved(key):
    with pytest.raises(InvalidOptionError, match="set_callback"):
        set_parameter(IntoptParams(), key, None)

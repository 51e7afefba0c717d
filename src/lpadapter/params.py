from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from .engine.constants import (
    BR_DTH,
    BT_BLB,
    DBL_MAX,
    INT_MAX,
    MSG_ALL,
    OFF,
    ON,
    ORD_AMD,
    PRIMAL,
    PT_PSE,
    RT_HAR,
)


@dataclass
class SimplexParams:
    # Global
    msg_lev: int = MSG_ALL
    tm_lim: int = INT_MAX
    presolve: int = OFF

    # Simplex
    meth: int = PRIMAL
    pricing: int = PT_PSE
    r_test: int = RT_HAR
    tol_bnd: float = 1e-7
    tol_dj: float = 1e-7
    tol_piv: float = 1e-10
    obj_ll: float = -DBL_MAX
    obj_ul: float = DBL_MAX
    it_lim: int = INT_MAX
    out_frq: int = 500
    out_dly: int = 0


@dataclass
class InteriorParams:
    msg_lev: int = MSG_ALL
    ord_alg: int = ORD_AMD


@dataclass
class IntoptParams:
    # Global
    msg_lev: int = MSG_ALL
    tm_lim: int = INT_MAX
    presolve: int = OFF

    # Branch-and-bound
    br_tech: int = BR_DTH
    bt_tech: int = BT_BLB
    tol_int: float = 1e-5
    tol_obj: float = 1e-7
    out_frq: int = 5000
    out_dly: int = 10000
    mip_gap: float = 0.0

    # Accepted for compatibility; the built-in engine does not run these
    pp_tech: int = 2
    binarize: int = OFF
    fp_heur: int = OFF
    ps_heur: int = OFF
    ps_tm_lim: int = 60000
    sr_heur: int = ON
    use_sol: int = OFF
    gmi_cuts: int = OFF
    mir_cuts: int = OFF
    cov_cuts: int = OFF
    clq_cuts: int = OFF
    alien: int = OFF


_CALLBACK_FIELDS = ("cb_func", "cb_info")


class InvalidOptionError(ValueError):
    """Raised when a raw parameter is unknown or reserved."""


def field_names(store: Any) -> tuple[str, ...]:
    return tuple(f.name for f in fields(store))


def set_parameter(store: Any, key: str, value: Any) -> bool:
    """Set field ``key`` of a parameter store to ``value``.

    The value is converted to the type of the field's current value. Returns
    whether the store has such a field.
    """
    if key in _CALLBACK_FIELDS:
        raise InvalidOptionError(
            f"Invalid option: {key}. Use `Optimizer.set_callback` instead."
        )
    if key not in field_names(store):
        return False
    field_type = type(getattr(store, key))
    if field_type is int and isinstance(value, float):
        if value != int(value):
            raise InvalidOptionError(f"Invalid option: {key} => {value} (integer expected)")
    setattr(store, key, field_type(value))
    return True


__all__ = [
    "SimplexParams",
    "InteriorParams",
    "IntoptParams",
    "InvalidOptionError",
    "field_names",
    "set_parameter",
]

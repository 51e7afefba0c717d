from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from .constants import (
    BS,
    CV,
    DB,
    FR,
    FX,
    IV,
    LO,
    MAX,
    MIN,
    NF,
    NL,
    NS,
    NU,
    UNDEF,
    UP,
)


class EngineError(ValueError):
    """Raised by the engine when a positional call is given invalid arguments."""


@dataclass(slots=True)
class Column:
    name: str = ""
    type: int = FR
    lb: float = -math.inf
    ub: float = math.inf
    kind: int = CV
    coef: float = 0.0


@dataclass(slots=True)
class Row:
    name: str = ""
    type: int = FR
    lb: float = -math.inf
    ub: float = math.inf
    # column number -> coefficient
    coefs: dict[int, float] = field(default_factory=dict)


@dataclass(slots=True)
class Solution:
    """Values recorded by one algorithm family (basic, interior or MIP)."""

    status: int = UNDEF
    dual_status: int = UNDEF
    obj_val: float = 0.0
    col_prim: list[float] = field(default_factory=list)
    col_dual: list[float] = field(default_factory=list)
    row_prim: list[float] = field(default_factory=list)
    row_dual: list[float] = field(default_factory=list)
    col_stat: list[int] = field(default_factory=list)
    row_stat: list[int] = field(default_factory=list)

    def pad(self, num_cols: int, num_rows: int) -> None:
        for values, n in (
            (self.col_prim, num_cols),
            (self.col_dual, num_cols),
            (self.row_prim, num_rows),
            (self.row_dual, num_rows),
        ):
            if values and len(values) < n:
                values.extend([0.0] * (n - len(values)))


def _bounds_for(type_: int, lb: float, ub: float) -> tuple[float, float]:
    if type_ == FR:
        return -math.inf, math.inf
    if type_ == LO:
        return float(lb), math.inf
    if type_ == UP:
        return -math.inf, float(ub)
    if type_ == DB:
        return float(lb), float(ub)
    if type_ == FX:
        return float(lb), float(lb)
    raise EngineError(f"invalid bound type {type_}")


def _value_at(values: Sequence[float], index: int) -> float:
    if 1 <= index <= len(values):
        return values[index - 1]
    return 0.0


class Problem:
    """Positional LP/MIP problem object.

    Columns and rows are numbered densely from 1. Deleting a column or row
    shifts every later one down by one; the constraint matrix is kept in
    step. Missing bounds are stored as ``-inf``/``+inf``.
    """

    def __init__(self) -> None:
        self.name = ""
        self.obj_name = ""
        self.obj_dir = MIN
        self.obj_const = 0.0
        self.cols: list[Column] = []
        self.rows: list[Row] = []
        # Reject double bounds with lb >= ub as soon as they are set
        self.preemptive_check = True
        self.sol = Solution()
        self.ipt = Solution()
        self.mip = Solution()

    # -- sizes -------------------------------------------------------------

    def get_num_cols(self) -> int:
        return len(self.cols)

    def get_num_rows(self) -> int:
        return len(self.rows)

    def get_num_int(self) -> int:
        return sum(1 for c in self.cols if c.kind == IV)

    # -- structure ---------------------------------------------------------

    def add_cols(self, n: int) -> int:
        if n < 1:
            raise EngineError(f"add_cols: n = {n}; invalid number of columns")
        first = len(self.cols) + 1
        self.cols.extend(Column() for _ in range(n))
        for sol in (self.sol, self.ipt, self.mip):
            sol.pad(len(self.cols), len(self.rows))
        return first

    def add_rows(self, n: int) -> int:
        if n < 1:
            raise EngineError(f"add_rows: n = {n}; invalid number of rows")
        first = len(self.rows) + 1
        self.rows.extend(Row() for _ in range(n))
        for sol in (self.sol, self.ipt, self.mip):
            sol.pad(len(self.cols), len(self.rows))
        return first

    def del_cols(self, cols: Sequence[int]) -> None:
        doomed = set()
        for j in cols:
            self._col(j)
            if j in doomed:
                raise EngineError(f"del_cols: column {j} listed more than once")
            doomed.add(j)
        remap: dict[int, int] = {}
        kept: list[Column] = []
        for j, col in enumerate(self.cols, start=1):
            if j in doomed:
                continue
            kept.append(col)
            remap[j] = len(kept)
        self.cols = kept
        for row in self.rows:
            row.coefs = {remap[j]: v for j, v in row.coefs.items() if j in remap}
        self._invalidate()

    def del_rows(self, rows: Sequence[int]) -> None:
        doomed = set()
        for i in rows:
            self._row(i)
            if i in doomed:
                raise EngineError(f"del_rows: row {i} listed more than once")
            doomed.add(i)
        self.rows = [r for i, r in enumerate(self.rows, start=1) if i not in doomed]
        self._invalidate()

    def std_basis(self) -> None:
        """Forget any basis information kept from the previous solve."""
        self.sol.col_stat = []
        self.sol.row_stat = []

    def copy(self) -> "Problem":
        other = Problem()
        other.name = self.name
        other.obj_name = self.obj_name
        other.obj_dir = self.obj_dir
        other.obj_const = self.obj_const
        other.preemptive_check = self.preemptive_check
        other.cols = [
            Column(c.name, c.type, c.lb, c.ub, c.kind, c.coef) for c in self.cols
        ]
        other.rows = [Row(r.name, r.type, r.lb, r.ub, dict(r.coefs)) for r in self.rows]
        return other

    def _invalidate(self) -> None:
        self.sol = Solution()
        self.ipt = Solution()
        self.mip = Solution()

    def _col(self, j: int) -> Column:
        if not 1 <= j <= len(self.cols):
            raise EngineError(f"column number {j} out of range")
        return self.cols[j - 1]

    def _row(self, i: int) -> Row:
        if not 1 <= i <= len(self.rows):
            raise EngineError(f"row number {i} out of range")
        return self.rows[i - 1]

    # -- bounds ------------------------------------------------------------

    def _checked_bounds(self, what: str, index: int, type_: int, lb: float, ub: float):
        lower, upper = _bounds_for(type_, lb, ub)
        if self.preemptive_check and type_ == DB and not lower < upper:
            raise EngineError(
                f"set_{what}_bnds: {what} {index}; lb = {lower}; ub = {upper}; invalid bounds"
            )
        return lower, upper

    @contextmanager
    def preemptive_check_suspended(self) -> Iterator["Problem"]:
        previous = self.preemptive_check
        self.preemptive_check = False
        try:
            yield self
        finally:
            self.preemptive_check = previous

    def set_col_bnds(self, j: int, type_: int, lb: float, ub: float) -> None:
        col = self._col(j)
        col.lb, col.ub = self._checked_bounds("col", j, type_, lb, ub)
        col.type = type_

    def get_col_type(self, j: int) -> int:
        return self._col(j).type

    def get_col_lb(self, j: int) -> float:
        return self._col(j).lb

    def get_col_ub(self, j: int) -> float:
        return self._col(j).ub

    def set_row_bnds(self, i: int, type_: int, lb: float, ub: float) -> None:
        row = self._row(i)
        row.lb, row.ub = self._checked_bounds("row", i, type_, lb, ub)
        row.type = type_

    def get_row_type(self, i: int) -> int:
        return self._row(i).type

    def get_row_lb(self, i: int) -> float:
        return self._row(i).lb

    def get_row_ub(self, i: int) -> float:
        return self._row(i).ub

    # -- kinds -------------------------------------------------------------

    def set_col_kind(self, j: int, kind: int) -> None:
        if kind not in (CV, IV):
            raise EngineError(f"set_col_kind: column {j}; kind = {kind}; invalid column kind")
        self._col(j).kind = kind

    def get_col_kind(self, j: int) -> int:
        return self._col(j).kind

    # -- matrix ------------------------------------------------------------

    def set_mat_row(self, i: int, cols: Sequence[int], vals: Sequence[float]) -> None:
        row = self._row(i)
        if len(cols) != len(vals):
            raise EngineError("set_mat_row: columns and coefficients have different lengths")
        coefs: dict[int, float] = {}
        for j, v in zip(cols, vals):
            self._col(j)
            if j in coefs:
                raise EngineError(f"set_mat_row: row {i}; column {j} duplicated")
            coefs[j] = float(v)
        row.coefs = {j: v for j, v in coefs.items() if v != 0.0}

    def get_mat_row(self, i: int) -> tuple[list[int], list[float]]:
        row = self._row(i)
        cols = sorted(row.coefs)
        return cols, [row.coefs[j] for j in cols]

    def get_mat_col(self, j: int) -> tuple[list[int], list[float]]:
        self._col(j)
        rows: list[int] = []
        vals: list[float] = []
        for i, row in enumerate(self.rows, start=1):
            if j in row.coefs:
                rows.append(i)
                vals.append(row.coefs[j])
        return rows, vals

    # -- objective ---------------------------------------------------------

    def set_obj_dir(self, direction: int) -> None:
        if direction not in (MIN, MAX):
            raise EngineError(f"set_obj_dir: dir = {direction}; invalid direction flag")
        self.obj_dir = direction

    def get_obj_dir(self) -> int:
        return self.obj_dir

    def set_obj_coef(self, j: int, coef: float) -> None:
        if j == 0:
            self.obj_const = float(coef)
        else:
            self._col(j).coef = float(coef)

    def get_obj_coef(self, j: int) -> float:
        if j == 0:
            return self.obj_const
        return self._col(j).coef

    # -- names -------------------------------------------------------------

    def set_prob_name(self, name: str) -> None:
        self.name = name

    def get_prob_name(self) -> str:
        return self.name

    def set_col_name(self, j: int, name: str) -> None:
        self._col(j).name = name

    def get_col_name(self, j: int) -> str:
        return self._col(j).name

    def set_row_name(self, i: int, name: str) -> None:
        self._row(i).name = name

    def get_row_name(self, i: int) -> str:
        return self._row(i).name

    # -- basic solution ----------------------------------------------------

    def get_status(self) -> int:
        return self.sol.status

    def get_dual_stat(self) -> int:
        return self.sol.dual_status

    def get_obj_val(self) -> float:
        return self.sol.obj_val

    def get_col_prim(self, j: int) -> float:
        self._col(j)
        return _value_at(self.sol.col_prim, j)

    def get_col_dual(self, j: int) -> float:
        self._col(j)
        return _value_at(self.sol.col_dual, j)

    def get_row_prim(self, i: int) -> float:
        self._row(i)
        return _value_at(self.sol.row_prim, i)

    def get_row_dual(self, i: int) -> float:
        self._row(i)
        return _value_at(self.sol.row_dual, i)

    def get_col_stat(self, j: int) -> int:
        self._col(j)
        if 1 <= j <= len(self.sol.col_stat):
            return self.sol.col_stat[j - 1]
        return _nonbasic_stat(self._col(j).type)

    def get_row_stat(self, i: int) -> int:
        self._row(i)
        if 1 <= i <= len(self.sol.row_stat):
            return self.sol.row_stat[i - 1]
        return BS

    # -- interior-point solution -------------------------------------------

    def ipt_status(self) -> int:
        return self.ipt.status

    def ipt_obj_val(self) -> float:
        return self.ipt.obj_val

    def ipt_col_prim(self, j: int) -> float:
        self._col(j)
        return _value_at(self.ipt.col_prim, j)

    def ipt_col_dual(self, j: int) -> float:
        self._col(j)
        return _value_at(self.ipt.col_dual, j)

    def ipt_row_prim(self, i: int) -> float:
        self._row(i)
        return _value_at(self.ipt.row_prim, i)

    def ipt_row_dual(self, i: int) -> float:
        self._row(i)
        return _value_at(self.ipt.row_dual, i)

    # -- mixed-integer solution --------------------------------------------

    def mip_status(self) -> int:
        return self.mip.status

    def mip_obj_val(self) -> float:
        return self.mip.obj_val

    def mip_col_val(self, j: int) -> float:
        self._col(j)
        return _value_at(self.mip.col_prim, j)

    def mip_row_val(self, i: int) -> float:
        self._row(i)
        return _value_at(self.mip.row_prim, i)

    def __repr__(self) -> str:
        return f"Problem(name={self.name!r}, cols={len(self.cols)}, rows={len(self.rows)})"


def _nonbasic_stat(type_: int) -> int:
    if type_ == FR:
        return NF
    if type_ == FX:
        return NS
    if type_ == UP:
        return NU
    return NL


__all__ = ["EngineError", "Column", "Row", "Solution", "Problem"]

"""LP-based branch-and-bound with search-tree callbacks.

``intopt`` works on a private copy of the problem (the *working subproblem*).
Rows added to it from a callback stay in force for the rest of the search;
column bounds are set per node from the branching decisions that lead to it.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .constants import (
    BR_DTH,
    BR_FFV,
    BR_LFV,
    BR_MFV,
    BT_BFS,
    BT_BLB,
    BT_BPH,
    BT_DFS,
    DB,
    DBL_EPSILON,
    DBL_MAX,
    EBOUND,
    EFAIL,
    EMIPGAP,
    ENODFS,
    ENOPFS,
    EROOT,
    ESTOP,
    ETMLIM,
    FEAS,
    FR,
    FX,
    IBINGO,
    IBRANCH,
    ICUTGEN,
    IHEUR,
    INT_MAX,
    IPREPRO,
    IROWGEN,
    ISELECT,
    IV,
    LO,
    MAX,
    MSG_ALL,
    MSG_ERR,
    MSG_OFF,
    MSG_ON,
    NOFEAS,
    OFF,
    ON,
    OPT,
    PRIMAL,
    PT_PSE,
    UNDEF,
    UP,
)
from .lp import bad_bounds, simplex
from .problem import Problem, Solution

log = logging.getLogger(__name__)


@dataclass
class _RelaxParams:
    """Simplex settings used for node relaxations."""

    msg_lev: int = MSG_OFF
    tm_lim: int = INT_MAX
    presolve: int = OFF
    meth: int = PRIMAL
    pricing: int = PT_PSE
    tol_bnd: float = 1e-7
    tol_dj: float = 1e-7
    it_lim: int = INT_MAX
    obj_ll: float = -DBL_MAX
    obj_ul: float = DBL_MAX


@dataclass(eq=False)
class Node:
    number: int
    level: int
    parent: int
    # local bound of the objective (inherited from the parent until solved)
    bound: float
    # column -> (lb, ub) fixed by the branching decisions leading here
    bounds: dict[int, tuple[float, float]] = field(default_factory=dict)
    # sum of integer infeasibilities of the parent relaxation
    infeas: float = 0.0
    # (column, went up, distance to the rounded value) of the last branching
    branched: Optional[tuple[int, bool, float]] = None


def _type_for(lb: float, ub: float) -> int:
    if lb == ub:
        return FX
    if math.isinf(lb) and math.isinf(ub):
        return FR
    if math.isinf(lb):
        return UP
    if math.isinf(ub):
        return LO
    return DB


def _integer_bound_problem(prob: Problem) -> str | None:
    for j, col in enumerate(prob.cols, start=1):
        if col.kind != IV:
            continue
        if col.type in (LO, DB, FX) and col.lb != math.floor(col.lb):
            return f"integer column {j} has non-integer lower bound {col.lb}"
        if col.type in (UP, DB) and col.ub != math.floor(col.ub):
            return f"integer column {j} has non-integer upper bound {col.ub}"
    return None


class SearchTree:
    """State of a running branch-and-bound search.

    Passed to the callback at every search event. ``reason`` tells which
    event it is; ``get_prob()`` returns the working subproblem, whose current
    basic solution is the relaxation of the active node.
    """

    def __init__(self, prob: Problem, params, callback: Callable[["SearchTree"], None] | None):
        self.params = params
        self.callback = callback
        self.reason = 0
        self._orig = prob
        self._prob = prob.copy()
        self._sense = -1.0 if prob.obj_dir == MAX else 1.0
        self._root_bounds = [(c.lb, c.ub) for c in self._prob.cols]
        self._touched: set[int] = set()
        self._active: list[Node] = []
        self._curr: Node | None = None
        self._next_number = 1
        self._stopped = False
        self._start = time.perf_counter()
        self._root_bound = -self._sense * math.inf
        self._root_infeas = 0.0
        self._pseudo: dict[int, list[float]] = {}
        self.best_obj: float | None = None
        self.best_x: list[float] | None = None
        self.nodes_solved = 0

    # -- public query surface ----------------------------------------------

    def get_prob(self) -> Problem:
        return self._prob

    def best_node(self) -> int:
        """Number of the active node with the best local bound (0 if none)."""
        if not self._active:
            return 0
        return min(self._active, key=lambda n: (self._sense * n.bound, -n.number)).number

    def node_bound(self, number: int) -> float:
        for node in self._active:
            if node.number == number:
                return node.bound
        raise ValueError(f"node_bound: node {number} is not active")

    def mip_gap(self) -> float:
        if self.best_obj is None:
            return DBL_MAX
        best = self.best_node()
        if best == 0:
            return 0.0
        bound = self.node_bound(best)
        return abs(self.best_obj - bound) / (abs(self.best_obj) + DBL_EPSILON)

    def terminate(self) -> None:
        """Ask the search to stop at the next opportunity."""
        self._stopped = True

    @property
    def curr_node(self) -> int:
        return 0 if self._curr is None else self._curr.number

    # -- internals ---------------------------------------------------------

    def _invoke(self, reason: int) -> None:
        if self.callback is None:
            return
        self.reason = reason
        try:
            self.callback(self)
        finally:
            self.reason = 0

    def _elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000.0

    def _time_up(self) -> bool:
        return self.params.tm_lim < INT_MAX and self._elapsed_ms() >= self.params.tm_lim

    def _relax_params(self) -> _RelaxParams:
        relax = _RelaxParams(msg_lev=MSG_ERR if self.params.msg_lev >= MSG_ERR else MSG_OFF)
        if self.params.tm_lim < INT_MAX:
            relax.tm_lim = max(1, int(self.params.tm_lim - self._elapsed_ms()))
        return relax

    def _say(self, fmt: str, *args) -> None:
        if self.params.msg_lev >= MSG_ON:
            log.info(fmt, *args)

    def _new_node(self, parent: Node | None, bound: float) -> Node:
        node = Node(
            number=self._next_number,
            level=0 if parent is None else parent.level + 1,
            parent=0 if parent is None else parent.number,
            bound=bound,
            bounds={} if parent is None else dict(parent.bounds),
        )
        self._next_number += 1
        self._active.append(node)
        return node

    def _hopeful(self, bound: float) -> bool:
        if self.best_obj is None:
            return True
        eps = self.params.tol_obj * (1.0 + abs(self.best_obj))
        return self._sense * bound < self._sense * self.best_obj - eps

    def _select(self) -> Node:
        bt = self.params.bt_tech
        if len(self._active) == 1 or bt == BT_DFS:
            return self._active[-1]
        if bt == BT_BFS:
            return self._active[0]
        if bt == BT_BPH and self.best_obj is not None and self._root_infeas > 0.0:
            slope = (self.best_obj - self._root_bound) / self._root_infeas
            return min(self._active, key=lambda n: (self._sense * (n.bound + slope * n.infeas), -n.number))
        if bt == BT_BPH:
            return self._active[-1]
        if bt != BT_BLB:
            raise ValueError(f"invalid backtracking technique bt_tech = {bt}")
        return min(self._active, key=lambda n: (self._sense * n.bound, -n.number))

    def _activate(self, node: Node) -> None:
        for j in self._touched:
            lb, ub = self._root_bounds[j - 1]
            self._set_bounds(j, lb, ub)
        self._touched = set(node.bounds)
        for j, (lb, ub) in node.bounds.items():
            self._set_bounds(j, lb, ub)
        self._curr = node

    def _set_bounds(self, j: int, lb: float, ub: float) -> None:
        with self._prob.preemptive_check_suspended():
            self._prob.set_col_bnds(j, _type_for(lb, ub), lb, ub)

    def _fathom(self, node: Node) -> None:
        self._active.remove(node)
        if self._curr is node:
            self._curr = None

    def _prune(self) -> None:
        for node in [n for n in self._active if n is not self._curr and not self._hopeful(n.bound)]:
            self._active.remove(node)

    def _fractional(self) -> list[tuple[int, float]]:
        frac = []
        for j, col in enumerate(self._prob.cols, start=1):
            if col.kind != IV:
                continue
            x = self._prob.get_col_prim(j)
            if abs(x - round(x)) > self.params.tol_int:
                frac.append((j, x))
        return frac

    def _record(self) -> bool:
        """Take the current relaxation as an incumbent if it improves on the best one."""
        x = []
        for j, col in enumerate(self._prob.cols, start=1):
            v = self._prob.get_col_prim(j)
            x.append(float(round(v)) if col.kind == IV else v)
        obj = self._prob.obj_const + sum(c.coef * v for c, v in zip(self._prob.cols, x))
        if self.best_obj is not None and self._sense * obj >= self._sense * self.best_obj:
            return False
        self.best_obj = obj
        self.best_x = x
        self._say("+%6d: mip = %17.9e; %d active node(s)", self.nodes_solved, obj, len(self._active))
        return True

    def _update_pseudocost(self, node: Node, obj: float) -> None:
        if node.branched is None or node.parent == 0:
            return
        j, up, dist = node.branched
        parent_bound = node.bound
        degradation = max(0.0, self._sense * (obj - parent_bound)) / max(dist, 1e-9)
        sums = self._pseudo.setdefault(j, [0.0, 0.0, 0.0, 0.0])
        k = 2 if up else 0
        sums[k] += degradation
        sums[k + 1] += 1

    def _choose_branch(self, frac: list[tuple[int, float]]) -> tuple[int, float]:
        br = self.params.br_tech
        if br == BR_FFV:
            return frac[0]
        if br == BR_LFV:
            return frac[-1]

        def fractionality(item: tuple[int, float]) -> float:
            f = item[1] - math.floor(item[1])
            return min(f, 1.0 - f)

        if br == BR_MFV:
            return max(frac, key=fractionality)
        if br == BR_DTH:
            scored = [(abs(self._prob.get_obj_coef(j)) * fractionality((j, x)), (j, x)) for j, x in frac]
            best = max(scored, key=lambda s: s[0])
            return best[1] if best[0] > 0.0 else max(frac, key=fractionality)

        # hybrid pseudo-cost: product of estimated degradations, falling back to
        # objective-weighted fractionality for columns without history
        def pseudo_score(item: tuple[int, float]) -> float:
            j, x = item
            f = x - math.floor(x)
            sums = self._pseudo.get(j)
            if sums is None:
                weight = abs(self._prob.get_obj_coef(j)) or 1.0
                down = up = weight
            else:
                down = sums[0] / sums[1] if sums[1] else 1.0
                up = sums[2] / sums[3] if sums[3] else 1.0
            return max(down * f, 1e-6) * max(up * (1.0 - f), 1e-6)

        return max(frac, key=pseudo_score)

    def _branch(self, node: Node, frac: list[tuple[int, float]]) -> None:
        j, x = self._choose_branch(frac)
        lb, ub = node.bounds.get(j, self._root_bounds[j - 1])
        infeas = sum(min(v - math.floor(v), math.ceil(v) - v) for _, v in frac)
        down = (j, math.floor(x), lb, False, x - math.floor(x))
        up = (j, math.ceil(x), ub, True, math.ceil(x) - x)
        # the child nearer to the relaxation value is explored first under depth-first
        order = (down, up) if x - math.floor(x) >= 0.5 else (up, down)
        self._fathom(node)
        for col, value, other, goes_up, dist in order:
            child = self._new_node(node, node.bound)
            child.bounds[col] = (value, other) if goes_up else (other, value)
            child.infeas = infeas
            child.branched = (col, goes_up, dist)
        self._say(" %6d: branch on column %d = %.6g (level %d)", node.number, j, x, node.level)

    def _solve_relaxation(self) -> int:
        """Solve the active node; returns the engine code of the LP run."""
        self.nodes_solved += 1
        return simplex(self._prob, self._relax_params())

    # -- driver ------------------------------------------------------------

    def search(self) -> int:
        self._new_node(None, self._root_bound)
        while self._active:
            if self._time_up():
                return ETMLIM
            if self.params.mip_gap > 0.0 and self.best_obj is not None and self.mip_gap() <= self.params.mip_gap:
                self._say("relative mip gap tolerance reached")
                return EMIPGAP
            self._curr = None
            self._invoke(ISELECT)
            if self._stopped:
                return ESTOP
            node = self._select()
            self._activate(node)
            self._invoke(IPREPRO)
            if self._stopped:
                return ESTOP
            code = self._process(node)
            if code != 0:
                return code
        self._curr = None
        return 0

    def _process(self, node: Node) -> int:
        while True:
            code = self._solve_relaxation()
            if code == ETMLIM:
                return ETMLIM
            if code != 0:
                return EFAIL
            status = self._prob.get_status()
            if status == NOFEAS:
                self._fathom(node)
                return 0
            if status != OPT:
                return EFAIL
            obj = self._prob.get_obj_val()
            self._update_pseudocost(node, obj)
            node.bound = obj
            if node.number == 1:
                self._root_bound = obj
            if not self._hopeful(node.bound):
                self._fathom(node)
                return 0

            rows = self._prob.get_num_rows()
            self._invoke(IROWGEN)
            if self._stopped:
                return ESTOP
            if self._prob.get_num_rows() > rows:
                continue

            frac = self._fractional()
            if not frac:
                if self._record():
                    self._invoke(IBINGO)
                    if self._stopped:
                        return ESTOP
                self._fathom(node)
                self._prune()
                return 0
            if node.number == 1:
                self._root_infeas = sum(min(v - math.floor(v), math.ceil(v) - v) for _, v in frac)

            self._invoke(IHEUR)
            if self._stopped:
                return ESTOP
            rows = self._prob.get_num_rows()
            self._invoke(ICUTGEN)
            if self._stopped:
                return ESTOP
            if self._prob.get_num_rows() > rows:
                continue

            self._invoke(IBRANCH)
            if self._stopped:
                return ESTOP
            self._branch(node, frac)
            return 0

    def solution(self, status: int) -> Solution:
        """Mixed-integer solution for the rows and columns of the original problem."""
        sol = Solution(status=status)
        if self.best_x is None:
            return sol
        sol.obj_val = self.best_obj
        sol.col_prim = list(self.best_x)
        sol.row_prim = [
            sum(v * self.best_x[j - 1] for j, v in row.coefs.items()) for row in self._orig.rows
        ]
        return sol


def intopt(prob: Problem, params, callback: Callable[[SearchTree], None] | None = None) -> int:
    """Solve ``prob`` as a mixed-integer problem.

    Without the presolver the problem must carry an optimal basic solution of
    its relaxation (``EROOT`` otherwise). ``callback(tree)`` is invoked at each
    search event; it may add rows to ``tree.get_prob()`` or call
    ``tree.terminate()``.
    """
    reason = _integer_bound_problem(prob) or bad_bounds(prob)
    if reason is not None:
        if params.msg_lev >= MSG_ERR:
            log.error("intopt: %s", reason)
        prob.mip = Solution()
        return EBOUND
    if params.presolve == OFF and prob.get_status() != OPT:
        if params.msg_lev >= MSG_ERR:
            log.error("intopt: optimal basis to initial LP relaxation not provided")
        prob.mip = Solution()
        return EROOT

    tree = SearchTree(prob, params, callback)
    if params.msg_lev >= MSG_ALL:
        log.info(
            "intopt: %d rows, %d columns (%d integer)",
            prob.get_num_rows(),
            prob.get_num_cols(),
            prob.get_num_int(),
        )

    if params.presolve != OFF:
        relax = tree._relax_params()
        relax.presolve = ON
        code = simplex(tree.get_prob(), relax)
        if code == ENOPFS:
            prob.mip = Solution(status=NOFEAS)
            tree._say("PROBLEM HAS NO PRIMAL FEASIBLE SOLUTION")
            return ENOPFS
        if code == ENODFS:
            prob.mip = Solution()
            tree._say("LP RELAXATION HAS NO DUAL FEASIBLE SOLUTION")
            return ENODFS
        if code == ETMLIM:
            prob.mip = Solution()
            return ETMLIM
        if code != 0 or tree.get_prob().get_status() != OPT:
            prob.mip = Solution()
            return EFAIL

    code = tree.search()
    if code == 0:
        status = OPT if tree.best_x is not None else NOFEAS
    else:
        status = FEAS if tree.best_x is not None else UNDEF
    prob.mip = tree.solution(status)
    if status == OPT:
        tree._say("INTEGER OPTIMAL SOLUTION FOUND, obj = %.9g (%d nodes)", tree.best_obj, tree.nodes_solved)
    elif status == NOFEAS:
        tree._say("PROBLEM HAS NO INTEGER FEASIBLE SOLUTION")
    return code


__all__ = ["Node", "SearchTree", "intopt"]

"""Bridge between search-tree events and a user callback.

The user function receives a :class:`CallbackData` that is only valid while
it runs; afterwards every use raises :class:`CallbackDataExpired`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from ..engine.constants import IROWGEN, REASON_NAMES
from ..engine.mip import SearchTree
from .errors import CallbackDataExpired, CallbackError, ScalarFunctionConstantNotZero
from .rows import add_affine_row
from .types import AFFINE_SETS, ScalarAffineFunction, VariableIndex, sense_and_rhs

if TYPE_CHECKING:
    from .optimizer import Optimizer

log = logging.getLogger(__name__)

CallbackFunction = Callable[["CallbackData"], None]


class CallbackData:
    def __init__(self, model: "Optimizer", tree: SearchTree):
        self._model = model
        self._tree: Optional[SearchTree] = tree

    @property
    def model(self) -> "Optimizer":
        self._check()
        return self._model

    @property
    def tree(self) -> SearchTree:
        self._check()
        return self._tree

    @property
    def reason(self) -> int:
        return self.tree.reason

    @property
    def reason_name(self) -> str:
        return REASON_NAMES.get(self.reason, str(self.reason))

    @property
    def valid(self) -> bool:
        return self._tree is not None

    def variable_primal(self, x: VariableIndex) -> float:
        return callback_variable_primal(self, x)

    def add_lazy_constraint(self, f: ScalarAffineFunction, s) -> None:
        cblazy(self, f, s)

    def terminate(self) -> None:
        """Stop the search; the solve then ends as INTERRUPTED."""
        self.tree.terminate()

    def _check(self) -> None:
        if self._tree is None:
            raise CallbackDataExpired()

    def _expire(self) -> None:
        self._tree = None

    def __repr__(self) -> str:
        if self._tree is None:
            return "CallbackData(expired)"
        return f"CallbackData(reason={self.reason_name})"


def callback_variable_primal(cb_data: CallbackData, x: VariableIndex) -> float:
    """Value of ``x`` in the relaxation of the active node (row generation only)."""
    tree = cb_data.tree
    if tree.reason != IROWGEN:
        raise CallbackError("callback_variable_primal can only be called when the reason is IROWGEN.")
    column = cb_data.model._info(x).column
    return tree.get_prob().get_col_prim(column)


def cblazy(cb_data: CallbackData, f: ScalarAffineFunction, s) -> None:
    """Add ``f in s`` as a row of the active subproblem."""
    if not isinstance(s, AFFINE_SETS):
        raise CallbackError(f"lazy constraints must be LessThan, GreaterThan or EqualTo, got {type(s).__name__}")
    if f.constant != 0.0:
        raise ScalarFunctionConstantNotZero(f.constant)
    model = cb_data.model
    columns, coefficients = model._indices_and_coefficients(f)
    sense, rhs = sense_and_rhs(s)
    row = add_affine_row(cb_data.tree.get_prob(), columns, coefficients, sense, rhs)
    log.debug("lazy row %d added at %s: %s %s", row, cb_data.reason_name, sense, rhs)


class CallbackBridge:
    """Search-tree callback installed for every mixed-integer solve.

    Refreshes the cached objective bound and relative gap, then hands a
    fresh :class:`CallbackData` to the user function, if any.
    """

    def __init__(self, model: "Optimizer"):
        self.model = model
        self.calls = 0

    def __call__(self, tree: SearchTree) -> None:
        self.calls += 1
        node = tree.best_node()
        if node != 0:
            self.model._state.objective_bound = tree.node_bound(node)
            self.model._state.relative_gap = tree.mip_gap()
        fn = self.model.callback_function
        if fn is None:
            return
        data = CallbackData(self.model, tree)
        try:
            fn(data)
        finally:
            data._expire()


__all__ = [
    "CallbackFunction",
    "CallbackData",
    "CallbackBridge",
    "callback_variable_primal",
    "cblazy",
]

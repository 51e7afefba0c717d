"""Index-stable optimization model over the positional engine."""

from .callbacks import CallbackData, callback_variable_primal, cblazy
from .errors import *  # noqa: F401,F403
from .optimizer import SOLVER_NAME, Optimizer
from .types import *  # noqa: F401,F403

__all__ = [
    "Optimizer",
    "SOLVER_NAME",
    "CallbackData",
    "callback_variable_primal",
    "cblazy",
]

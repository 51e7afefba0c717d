"""Positional LP/MIP engine driven by the model layer."""

from .constants import *  # noqa: F401,F403
from .lp import exact, infeasibility_ray, interior, simplex, unbounded_ray
from .mip import SearchTree, intopt
from .problem import EngineError, Problem

__all__ = [
    "Problem",
    "EngineError",
    "SearchTree",
    "simplex",
    "exact",
    "interior",
    "intopt",
    "unbounded_ray",
    "infeasibility_ray",
]

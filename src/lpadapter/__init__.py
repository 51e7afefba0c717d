"""lpadapter

An index-stable optimization-modeling layer over a positional LP/MIP engine.
It provides:

- An `Optimizer` with stable variable and constraint identities over dense,
  renumbered engine columns and rows
- Solve-outcome translation, infeasibility certificates and a branch-and-bound
  callback for lazily added rows
- A small CLI, YAML model files and configuration, and a Pyomo bridge
"""

from .model import Optimizer
from .runner import run

__all__ = [
    "__version__",
    "Optimizer",
    "run",
]

__version__ = "0.1.0"

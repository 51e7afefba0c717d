"""Modelling errors raised at the call site.

Solve outcomes (infeasible, unbounded, limits) are never raised; they are
read back through the status queries of the optimizer.
"""

from __future__ import annotations

from typing import Any


class LPAdapterError(Exception):
    """Base class of every error raised by the model layer."""


class InvalidIndex(LPAdapterError, KeyError):
    def __init__(self, index: Any):
        super().__init__(index)
        self.index = index

    def __str__(self) -> str:
        return f"Invalid index {self.index!r}: it does not exist or has been deleted."


class _BoundAlreadySet(LPAdapterError):
    side = ""

    def __init__(self, variable: Any, existing: type, new: type):
        self.variable = variable
        self.existing = existing
        self.new = new
        super().__init__(
            f"Cannot add `{new.__name__}` on {variable!r}: a {self.side} bound "
            f"`{existing.__name__}` is already set."
        )


class LowerBoundAlreadySet(_BoundAlreadySet):
    side = "lower"


class UpperBoundAlreadySet(_BoundAlreadySet):
    side = "upper"


class ScalarFunctionConstantNotZero(LPAdapterError):
    def __init__(self, constant: float):
        self.constant = constant
        super().__init__(
            f"Constant in scalar function must be zero, got {constant}; move it to the set instead."
        )


class SettingSingleVariableFunctionNotAllowed(LPAdapterError):
    def __init__(self) -> None:
        super().__init__("Cannot set the function of a single-variable constraint.")


class DuplicateNameError(LPAdapterError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Duplicate {kind} name detected: {name!r}")


class TypeConstraintAlreadySet(LPAdapterError):
    def __init__(self, variable: Any, existing: str):
        self.variable = variable
        self.existing = existing
        super().__init__(f"{variable!r} already carries a {existing.lower()} type constraint.")


class UnsupportedConstraint(LPAdapterError, TypeError):
    def __init__(self, function_type: type, set_type: type):
        self.function_type = function_type
        self.set_type = set_type
        super().__init__(
            f"Constraints of type {function_type.__name__}-in-{set_type.__name__} are not supported."
        )


class UnsupportedAttribute(LPAdapterError):
    def __init__(self, attribute: str, detail: str = ""):
        self.attribute = attribute
        msg = f"Attribute {attribute} is not supported"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class InvalidOption(LPAdapterError, ValueError):
    pass


class CallbackError(LPAdapterError):
    pass


class CallbackDataExpired(CallbackError):
    def __init__(self) -> None:
        super().__init__("Callback data used outside the callback it was passed to.")


__all__ = [
    "LPAdapterError",
    "InvalidIndex",
    "LowerBoundAlreadySet",
    "UpperBoundAlreadySet",
    "ScalarFunctionConstantNotZero",
    "SettingSingleVariableFunctionNotAllowed",
    "DuplicateNameError",
    "TypeConstraintAlreadySet",
    "UnsupportedConstraint",
    "UnsupportedAttribute",
    "InvalidOption",
    "CallbackError",
    "CallbackDataExpired",
]

from __future__ import annotations

import ast
import operator as _op
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


@dataclass(slots=True)
class RunConfig:
    log_level: str = "INFO"
    # Log search progress every N tree callbacks (0 = never)
    print_every: int = 0


@dataclass(slots=True)
class OptimizerConfig:
    method: str = "SIMPLEX"
    presolve: bool = False
    silent: bool = False
    time_limit_sec: Optional[float] = None
    # Raw engine parameters, e.g. {"msg_lev": 1, "mip_gap": 1e-4}
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class LPAdapterConfig:
    run: RunConfig = field(default_factory=RunConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)


def _as_dict(m: Mapping[str, Any] | None) -> dict[str, Any]:
    return dict(m) if m else {}


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def _eval_expr(expr: str, names: Mapping[str, Any]) -> float | int:
    """Safely evaluate a simple arithmetic expression with provided names.

    Allowed:
      - literals: ints and floats
      - names: other numeric parameters in ``names``
      - operators: +, -, *, /, //, %, **
      - parentheses and unary +/-

    Disallowed: function calls, attribute access, subscripting, comprehensions, etc.
    """
    node = ast.parse(expr, mode="eval")

    bin_ops = {
        ast.Add: _op.add,
        ast.Sub: _op.sub,
        ast.Mult: _op.mul,
        ast.Div: _op.truediv,
        ast.FloorDiv: _op.floordiv,
        ast.Mod: _op.mod,
        ast.Pow: _op.pow,
    }
    unary_ops = {ast.UAdd: _op.pos, ast.USub: _op.neg}

    def _eval(n: ast.AST) -> float | int:
        if isinstance(n, ast.Expression):
            return _eval(n.body)
        if isinstance(n, ast.Constant):
            if _is_number(n.value):
                return n.value
            raise ValueError("non-numeric constant in expression")
        if isinstance(n, ast.Name):
            if n.id not in names:
                raise NameError(f"unknown name '{n.id}' in expression")
            v = names[n.id]
            if _is_number(v):
                return v
            raise ValueError(f"name '{n.id}' is not numeric: {v}")
        if isinstance(n, ast.BinOp):
            if type(n.op) not in bin_ops:
                raise ValueError("operator not allowed in expression")
            return bin_ops[type(n.op)](_eval(n.left), _eval(n.right))
        if isinstance(n, ast.UnaryOp):
            if type(n.op) not in unary_ops:
                raise ValueError("unary operator not allowed in expression")
            return unary_ops[type(n.op)](_eval(n.operand))
        raise ValueError("unsupported syntax in expression")

    return _eval(node)


def _resolve_param_expressions(params: dict[str, Any]) -> dict[str, Any]:
    """Resolve arithmetic string expressions within a parameter dict.

    Only string values containing one of '+-*/()' are evaluated; they may
    reference other numeric keys of the same dict (e.g. ``tm_lim: "60 * 1000"``).
    """
    if not params:
        return params
    names = dict(params)
    out: dict[str, Any] = dict(params)
    for k, v in params.items():
        if isinstance(v, str):
            s = v.strip()
            if any(ch in s for ch in "+-*/()"):
                try:
                    out[k] = _eval_expr(s, names)
                except (ValueError, NameError, SyntaxError, ZeroDivisionError) as exc:
                    raise ValueError(f"cannot evaluate parameter {k}={v!r}: {exc}") from exc
    return out


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level YAML document must be a mapping")
    return data


def config_from_mapping(raw: Mapping[str, Any]) -> LPAdapterConfig:
    """Build a config from an already parsed mapping; unknown keys are ignored."""
    run = _as_dict(raw.get("run"))
    opt = _as_dict(raw.get("optimizer"))

    run_cfg = RunConfig(
        log_level=str(run.get("log_level", "INFO")),
        print_every=int(run.get("print_every", 0) or 0),
    )
    time_limit = opt.get("time_limit_sec")
    opt_cfg = OptimizerConfig(
        method=str(opt.get("method", "SIMPLEX")).upper(),
        presolve=bool(opt.get("presolve", False)),
        silent=bool(opt.get("silent", False)),
        time_limit_sec=None if time_limit is None else float(time_limit),
        params=_resolve_param_expressions(_as_dict(opt.get("params"))),
    )
    return LPAdapterConfig(run=run_cfg, optimizer=opt_cfg)


def load_config(path: str | Path | None) -> LPAdapterConfig:
    """Load configuration from a YAML file or return defaults.

    The schema is minimal and forgiving; unknown keys are ignored. Only YAML is supported.
    """
    if path is None:
        return LPAdapterConfig()
    p = Path(path)
    if not p.exists():
        # Return defaults but allow the CLI to keep going
        return LPAdapterConfig()
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(f"Unsupported config format '{p.suffix}'. Please provide a YAML file.")
    return config_from_mapping(_load_yaml(p))


__all__ = ["RunConfig", "OptimizerConfig", "LPAdapterConfig", "config_from_mapping", "load_config"]

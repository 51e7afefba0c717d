import argparse
import sys
from dataclasses import asdict
from pathlib import Path

import yaml

from .config import load_config
from .logging_config import setup_logging
from .model import LPAdapterError
from .runner import ModelFormatError, build_model, load_model, make_optimizer, solve_model


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lpadapter",
        description="Solve LP/MIP models described in YAML",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=Path("configs/default.yaml"),
        help="Path to YAML config. Default: configs/default.yaml",
    )
    sub = p.add_subparsers(dest="cmd")
    sub.required = False

    solve_p = sub.add_parser("solve", help="Solve a YAML model")
    solve_p.add_argument("model", type=Path, help="Path to the YAML model")
    solve_p.add_argument(
        "--method",
        choices=["simplex", "exact", "interior"],
        default=None,
        help="Algorithm for continuous models; default from config",
    )
    solve_p.add_argument("--presolve", action="store_true", help="Enable the presolver")
    solve_p.add_argument(
        "--time-limit",
        dest="time_limit",
        type=float,
        default=None,
        help="Time limit in seconds; default from config",
    )
    solve_p.add_argument(
        "--print-every",
        dest="print_every",
        type=int,
        default=None,
        help="Log branch-and-bound progress every N tree callbacks",
    )

    validate_p = sub.add_parser("validate", help="Load a YAML model without solving it")
    validate_p.add_argument("model", type=Path, help="Path to the YAML model")
    sub.add_parser("info", help="Show current configuration")
    return p


def cmd_solve(args) -> int:
    cfg = load_config(args.config)
    if args.method is not None:
        cfg.optimizer.method = args.method.upper()
    if args.presolve:
        cfg.optimizer.presolve = True
    if args.time_limit is not None:
        cfg.optimizer.time_limit_sec = args.time_limit
    if args.print_every is not None:
        cfg.run.print_every = args.print_every
    setup_logging(cfg.run.log_level)

    result = solve_model(load_model(args.model), cfg)
    print(f"Result: status={result.termination_status} primal={result.primal_status} dual={result.dual_status}")
    print(f"  {result.raw_status}")
    if result.objective_value is not None:
        print(f"  objective={result.objective_value:.9g}")
    if result.objective_bound is not None:
        print(f"  bound={result.objective_bound:.9g} gap={result.relative_gap:.3g}")
    for name, value in result.values.items():
        print(f"  {name} = {value:.9g}")
    for name, value in result.duals.items():
        print(f"  dual[{name}] = {value:.9g}")
    print(f"  solve_time={result.solve_time:.3f}s")
    return 0


def cmd_validate(args) -> int:
    cfg = load_config(args.config)
    setup_logging(cfg.run.log_level)
    try:
        model = make_optimizer(cfg.optimizer)
        variables = build_model(load_model(args.model), model)
    except (ModelFormatError, LPAdapterError) as e:
        print(f"Model invalid: {e}")
        return 1
    print(f"Model OK: {len(variables)} variables")
    for function_type, set_type in model.list_of_constraints():
        n = model.number_of_constraints(function_type, set_type)
        print(f"  {function_type.__name__}-in-{set_type.__name__}: {n}")
    return 0


def cmd_info(args) -> int:
    cfg = load_config(args.config)
    print(yaml.safe_dump(asdict(cfg), sort_keys=False), end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.cmd == "solve":
        return cmd_solve(args)
    if args.cmd == "validate":
        return cmd_validate(args)
    if args.cmd == "info":
        return cmd_info(args)
    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
idbe: Bucket Elimination for Influence Diagrams

Exact maximum expected utility (MEU) and optimal decision policies for
standard influence diagrams.

Usage:
    # Solve from JSON file
    python main.py solve --input model.json --output result.json

    # Choose the ordering heuristic and trace every bucket
    python main.py solve --input model.json --order wtminfill --debug

    # Run demos
    python main.py demo --example oil

    # Run tests
    python main.py test
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Tuple

import numpy as np

from idbe import (
    BEConfig,
    BEError,
    BucketElimination,
    InfluenceDiagram,
    OrderMethod,
    SolverResult,
    __version__,
)

logger = logging.getLogger("idbe.cli")


def load_problem_from_json(filepath: str) -> Tuple[InfluenceDiagram, Dict[str, Any]]:
    """
    Load an influence diagram from a JSON file.

    Expected format:
    {
        "variables": {"X": {"type": "chance", "card": 2}, "D": {"type": "decision", "card": 2}},
        "factors": {
            "pX": {"scope": ["X"], "kind": "probability", "values": [0.6, 0.4]},
            "u":  {"scope": ["X", "D"], "kind": "utility", "values": [[10, 0], [0, 5]]}
        },
        "temporal_order": [["X"], ["D"]],
        "limid": false,
        "config": {"order": "minfill", "debug": false}
    }

    Values may be nested lists or flat lists in row-major order (last scope
    variable changes fastest).

    Returns:
        The diagram and the optional "config" mapping
    """
    with open(filepath, "r") as f:
        data = json.load(f)

    variables = {}
    for name, vdata in data["variables"].items():
        if isinstance(vdata, dict):
            variables[name] = (vdata.get("type", "chance"), int(vdata["card"]))
        else:
            vtype, card = vdata
            variables[name] = (vtype, int(card))

    factors = {}
    for name, fdata in data["factors"].items():
        factors[name] = (tuple(fdata["scope"]), fdata["kind"], fdata["values"])

    diagram = InfluenceDiagram.from_named(
        variables,
        factors,
        temporal_order=data.get("temporal_order"),
        limid=bool(data.get("limid", False)),
    )
    return diagram, data.get("config", {})


def result_to_dict(diagram: InfluenceDiagram, result: SolverResult) -> Dict[str, Any]:
    """JSON-ready view of a solver result."""
    policy = {}
    for d, pol in result.policy.items():
        policy[diagram.var_label(d)] = {
            "scope": [diagram.var_label(v) for v in pol.factor.scope],
            "values": pol.factor.data.tolist(),
            "parents": [diagram.var_label(v) for v in pol.parents],
            "decision_rule": np.asarray(pol.decision_rule()).tolist(),
        }
    return {
        "meu": float(result.meu),
        "order": [diagram.var_label(v) for v in result.order],
        "induced_width": result.induced_width,
        "policy": policy,
        "memory_mb": result.memory_mb,
        "elapsed": result.elapsed,
    }


def save_result_to_json(filepath: str, diagram: InfluenceDiagram, result: SolverResult) -> None:
    """Save solver result to JSON file."""
    with open(filepath, "w") as f:
        json.dump(result_to_dict(diagram, result), f, indent=2)


def print_result(diagram: InfluenceDiagram, result: SolverResult) -> None:
    print("\nResults:")
    print(f"  Elimination order: {' '.join(diagram.var_label(v) for v in result.order)}")
    print(f"  Induced width:     {result.induced_width}")
    print(f"  MEU = {result.meu:.10f}")
    print(f"  Memory: {result.memory_mb:.6f} MB (policy {result.policy_memory_mb:.6f} MB)")
    print("\nPolicy:")
    for d, pol in result.policy.items():
        parents = ", ".join(diagram.var_label(v) for v in pol.parents) or "-"
        rule = np.asarray(pol.decision_rule()).tolist()
        print(f"  {diagram.var_label(d)} | {parents}: {rule}")


def cmd_solve(args):
    """Execute the solve command."""
    print(f"Loading problem from: {args.input}")
    try:
        diagram, file_config = load_problem_from_json(args.input)
        config_values = dict(file_config)
        if args.order:
            config_values["order"] = args.order
        if args.debug:
            config_values["debug"] = True
        config = BEConfig.from_mapping(config_values)
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading problem: {e}")
        return 1

    print("\nProblem specification:")
    print(f"  Variables: {diagram.nvar} ({len(diagram.decisions())} decisions)")
    print(f"  Factors: {len(diagram.factors)}")
    print(f"  Ordering: {config.order.name}")

    print("\nRunning bucket elimination...")
    try:
        result = BucketElimination(diagram, config).solve()
    except BEError as e:
        print(f"Error during solving: {e}")
        return 1

    print_result(diagram, result)

    if args.output:
        try:
            save_result_to_json(args.output, diagram, result)
        except OSError as e:
            print(f"Error saving result: {e}")
            return 1
        print(f"\nResults saved to: {args.output}")
    return 0


def demo_observe_then_decide():
    """Demo: X observed before decision D."""
    print("=" * 60)
    print("Demo: Observe X, then decide D")
    print("=" * 60)

    diagram = InfluenceDiagram.from_named(
        {"X": ("chance", 2), "D": ("decision", 2)},
        {
            "pX": (("X",), "probability", [0.6, 0.4]),
            "u": (("X", "D"), "utility", [[10.0, 0.0], [0.0, 5.0]]),
        },
        temporal_order=[["X"], ["D"]],
    )
    result = BucketElimination(diagram).solve()
    print_result(diagram, result)

    expected = 0.6 * 10.0 + 0.4 * 5.0
    print(f"\nVerification (brute force): MEU = {expected:.6f}")
    match = np.isclose(result.meu, expected)
    print(f"Match: {match}")
    return match


def demo_oil_wildcatter():
    """Demo: Oil wildcatter (test, observe result, drill)."""
    print("=" * 60)
    print("Demo: Oil Wildcatter")
    print("=" * 60)

    # O: oil (dry, wet, soaking), T: test (no, yes), R: result (closed, open, diffuse, none), D: drill (no, yes)
    p_oil = np.array([0.5, 0.3, 0.2])
    p_seismic = np.array([
        [0.1, 0.3, 0.6],
        [0.3, 0.4, 0.3],
        [0.5, 0.4, 0.1],
    ])
    # R | O, T: no test gives "none" for sure
    p_result = np.zeros((3, 2, 4))
    p_result[:, 0, 3] = 1.0
    p_result[:, 1, :3] = p_seismic
    u_test = np.array([0.0, -10.0])
    u_drill = np.array([[0.0, -70.0], [0.0, 50.0], [0.0, 200.0]])

    diagram = InfluenceDiagram.from_named(
        {"T": ("decision", 2), "R": ("chance", 4), "D": ("decision", 2), "O": ("chance", 3)},
        {
            "pO": (("O",), "probability", p_oil),
            "pR": (("O", "T", "R"), "probability", p_result),
            "uT": (("T",), "utility", u_test),
            "uD": (("O", "D"), "utility", u_drill),
        },
        temporal_order=[["T"], ["R"], ["D"], ["O"]],
    )
    result = BucketElimination(diagram).solve()
    print_result(diagram, result)

    # Brute force: max_T sum_R max_D sum_O P(O) P(R|O,T) (uT + uD)
    best = -np.inf
    for t in range(2):
        total = 0.0
        for r in range(4):
            total += max(
                sum(p_oil[o] * p_result[o, t, r] * (u_test[t] + u_drill[o, d]) for o in range(3))
                for d in range(2)
            )
        best = max(best, total)
    print(f"\nVerification (brute force): MEU = {best:.6f}")
    match = np.isclose(result.meu, best)
    print(f"Match: {match}")
    return match


def cmd_demo(args):
    """Execute the demo command."""
    demos = {
        "observe": demo_observe_then_decide,
        "oil": demo_oil_wildcatter,
    }

    if args.example == "all":
        results = []
        for name, func in demos.items():
            try:
                passed = func()
            except BEError as e:
                print(f"Error in {name}: {e}")
                passed = False
            results.append((name, passed))
            print()

        print("=" * 60)
        print("Summary")
        print("=" * 60)
        all_passed = True
        for name, passed in results:
            status = "PASS" if passed else "FAIL"
            print(f"  {name}: {status}")
            if not passed:
                all_passed = False
        return 0 if all_passed else 1

    try:
        return 0 if demos[args.example]() else 1
    except BEError as e:
        print(f"Error: {e}")
        return 1


def cmd_test(args):
    """Execute the test command."""
    import subprocess

    test_dir = Path(__file__).parent / "tests"
    if not test_dir.exists():
        print(f"Test directory not found: {test_dir}")
        return 1

    cmd = [sys.executable, "-m", "pytest", str(test_dir)]
    if args.verbose:
        cmd.append("-v")
    if args.coverage:
        cmd.extend(["--cov=idbe", "--cov-report=term-missing"])

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=Path(__file__).parent)
    return result.returncode


def cmd_info(args):
    """Display system information."""
    print(f"idbe v{__version__}")
    print("Bucket Elimination for Influence Diagrams")
    print()
    print("Models supported: ID (LIMIDs are rejected)")
    print()
    print("Ordering methods:")
    for m in OrderMethod:
        print(f"  {m.value:<12} {m.name}")
    print()
    print("Python:", sys.version.split()[0])
    print("NumPy:", np.__version__)

    import networkx
    print("NetworkX:", networkx.__version__)
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="idbe",
        description="idbe: Bucket Elimination for Influence Diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Solve from JSON file
  idbe solve --input model.json --output result.json

  # Trace every bucket
  idbe solve --input model.json --debug

  # Run demos
  idbe demo --example oil
  idbe demo --example all

  # Run tests
  idbe test -v
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"idbe {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Solve command
    solve_parser = subparsers.add_parser("solve", help="Solve an influence diagram")
    solve_parser.add_argument("--input", "-i", type=str, required=True, help="Input JSON file")
    solve_parser.add_argument("--output", "-o", type=str, help="Output JSON file")
    solve_parser.add_argument(
        "--order",
        choices=[m.value for m in OrderMethod],
        default=None,
        help="Ordering heuristic (default: minfill)"
    )
    solve_parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Trace every bucket"
    )

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demonstration examples")
    demo_parser.add_argument(
        "--example", "-e",
        choices=["observe", "oil", "all"],
        default="all",
        help="Which example to run (default: all)"
    )

    # Test command
    test_parser = subparsers.add_parser("test", help="Run test suite")
    test_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    test_parser.add_argument("--coverage", "-c", action="store_true", help="With coverage")

    # Info command
    subparsers.add_parser("info", help="Show system information")

    args = parser.parse_args()

    level = logging.DEBUG if getattr(args, "debug", False) else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "solve":
        return cmd_solve(args)
    elif args.command == "demo":
        return cmd_demo(args)
    elif args.command == "test":
        return cmd_test(args)
    elif args.command == "info":
        return cmd_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())

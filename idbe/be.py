"""
idbe/be.py

Entry points for solving influence diagrams given as named tables.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from idbe.core.config import BEConfig
from idbe.runtime.trace import EventSink
from idbe.solver import BucketElimination, SolverResult
from idbe.topology.ordering import OrderMethod
from idbe.topology.structure import InfluenceDiagram


def _solve_named(variables, factors, temporal_order, order, debug, sink):
    diagram = InfluenceDiagram.from_named(variables, factors, temporal_order)
    solver = BucketElimination(diagram, BEConfig(order=order, debug=debug), sink=sink)
    return diagram, solver.solve()


def be_solve(
    variables: Mapping[str, Tuple[str, int]],
    factors: Mapping[str, Tuple[Sequence[str], str, object]],
    temporal_order: Sequence[Sequence[str]],
    *,
    order: OrderMethod | str = OrderMethod.MIN_FILL,
    debug: bool = False,
    sink: Optional[EventSink] = None,
) -> SolverResult:
    """
    Solve an influence diagram with bucket elimination.

    Args:
        variables: Map from variable name to (type, domain size)
        factors: Map from factor name to (scope, kind, table)
        temporal_order: Blocks of variable names, earliest first
        order: Ordering heuristic
        debug: Detailed tracing and model checks
        sink: Optional trace event sink

    Returns:
        SolverResult with MEU and policy

    Example:
        >>> result = be_solve(
        ...     {"X": ("chance", 2), "D": ("decision", 2)},
        ...     {"pX": (("X",), "probability", [0.6, 0.4]),
        ...      "u": (("X", "D"), "utility", [[10, 0], [0, 5]])},
        ...     temporal_order=[["X"], ["D"]],
        ... )
        >>> print(f"MEU = {result.meu}")
    """
    return _solve_named(variables, factors, temporal_order, order, debug, sink)[1]


def compute_meu(variables, factors, temporal_order, **kwargs) -> float:
    """Maximum expected utility of a named influence diagram."""
    return be_solve(variables, factors, temporal_order, **kwargs).meu


def compute_policy(
    variables,
    factors,
    temporal_order,
    *,
    order: OrderMethod | str = OrderMethod.MIN_FILL,
    debug: bool = False,
    sink: Optional[EventSink] = None,
) -> Dict[str, Dict[str, object]]:
    """
    Decision rules of a named influence diagram.

    Returns:
        Map from decision name to {"parents": parent names, "scope": policy
        factor scope, "rule": optimal decision values indexed by parent
        values, "table": policy factor values}
    """
    diagram, result = _solve_named(variables, factors, temporal_order, order, debug, sink)

    out: Dict[str, Dict[str, object]] = {}
    for d, pol in result.policy.items():
        out[diagram.var_label(d)] = {
            "parents": [diagram.var_label(v) for v in pol.parents],
            "scope": [diagram.var_label(v) for v in pol.factor.scope],
            "rule": np.asarray(pol.decision_rule()),
            "table": np.asarray(pol.factor.data),
        }
    return out

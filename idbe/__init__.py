"""
idbe: Bucket Elimination for Influence Diagrams

Exact maximum expected utility and optimal decision policies for standard
influence diagrams, by bucket elimination along a constrained order.

Key components:
- algebra: Dense typed factors (probability / utility tables)
- topology: Influence diagram structure and elimination orders
- core: Configuration, errors and the ID registry
- elimination: Factor arena, buckets, forward pass, MEU and policy
- runtime: Structured trace events
- api: Query capability probing
"""

__version__ = "1.0.0"
__author__ = "idbe Team"

from idbe.algebra.factor import Factor, FactorKind
from idbe.topology.structure import InfluenceDiagram, Variable, VarType
from idbe.topology.ordering import OrderMethod, OrderingOracle
from idbe.core.config import BEConfig
from idbe.core.errors import (
    BEError,
    UnsupportedModelError,
    UnknownOperatorError,
    UnsupportedQueryError,
    PreconditionViolation,
)
from idbe.elimination.policy import DecisionPolicy
from idbe.runtime.trace import EventKind, TraceEvent, RecordingSink, LoggingSink
from idbe.solver import BucketElimination, SolverResult
from idbe.be import be_solve, compute_meu, compute_policy

__all__ = [
    # Factors
    "Factor",
    "FactorKind",
    # Model
    "InfluenceDiagram",
    "Variable",
    "VarType",
    "OrderMethod",
    "OrderingOracle",
    # Config and errors
    "BEConfig",
    "BEError",
    "UnsupportedModelError",
    "UnknownOperatorError",
    "UnsupportedQueryError",
    "PreconditionViolation",
    # Tracing
    "EventKind",
    "TraceEvent",
    "RecordingSink",
    "LoggingSink",
    # Solver
    "BucketElimination",
    "SolverResult",
    "DecisionPolicy",
    "be_solve",
    "compute_meu",
    "compute_policy",
]

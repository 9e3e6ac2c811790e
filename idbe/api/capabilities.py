"""
idbe/api/capabilities.py

Query families a solver may or may not implement.

Each family is a runtime-checkable Protocol. Callers probe a solver with
supports() or require() instead of calling methods that might be stubs;
require() raises UnsupportedQueryError for a missing family, so a higher layer
can pick another algorithm.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, Type, TypeVar, runtime_checkable

from idbe.core.errors import UnsupportedQueryError


@runtime_checkable
class MEUQuery(Protocol):
    """Maximum expected utility and decision policy."""

    def solve(self) -> Any: ...


@runtime_checkable
class BeliefQuery(Protocol):
    """Marginal beliefs over variables."""

    def belief(self, var: int) -> Any: ...


@runtime_checkable
class BoundsQuery(Protocol):
    """Upper and lower bounds on the objective."""

    def upper_bound(self) -> float: ...

    def lower_bound(self) -> float: ...


@runtime_checkable
class BestConfigQuery(Protocol):
    """Best joint assignment of all variables."""

    def best_config(self) -> Sequence[int]: ...


@runtime_checkable
class PartitionQuery(Protocol):
    """Log partition function."""

    def log_z(self) -> float: ...


Q = TypeVar("Q")


def supports(solver: Any, capability: Type[Any]) -> bool:
    """True if solver implements the query family."""
    return isinstance(solver, capability)


def require(solver: Any, capability: Type[Q]) -> Q:
    """
    Return solver typed as the capability.

    Raises:
        UnsupportedQueryError: solver does not implement the family
    """
    if not supports(solver, capability):
        raise UnsupportedQueryError(
            f"{type(solver).__name__} does not support {capability.__name__}"
        )
    return solver


def capabilities(solver: Any) -> Tuple[str, ...]:
    """Names of the query families a solver implements."""
    families = (MEUQuery, BeliefQuery, BoundsQuery, BestConfigQuery, PartitionQuery)
    return tuple(c.__name__ for c in families if supports(solver, c))


def query_belief(solver: Any, var: int) -> Any:
    return require(solver, BeliefQuery).belief(var)


def query_bounds(solver: Any) -> Tuple[float, float]:
    s = require(solver, BoundsQuery)
    return s.lower_bound(), s.upper_bound()


def query_best_config(solver: Any) -> Sequence[int]:
    return require(solver, BestConfigQuery).best_config()


def query_log_z(solver: Any) -> float:
    return require(solver, PartitionQuery).log_z()

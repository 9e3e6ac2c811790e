"""
idbe/solver.py

Bucket elimination solver for standard influence diagrams.

The elimination order is constrained by the temporal order of the decisions.
Input factors are partitioned into buckets, buckets are processed in order
(forward pass), the root factors give the MEU, and a backward pass over the
decision buckets gives the policy.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from idbe.core.config import BEConfig
from idbe.core.errors import PreconditionViolation, UnsupportedModelError
from idbe.elimination.aggregate import maximum_expected_utility
from idbe.elimination.arena import FactorArena
from idbe.elimination.buckets import BucketStore
from idbe.elimination.forward import ForwardEliminator
from idbe.elimination.policy import DecisionPolicy, PolicyBuilder, policy_memory_mb
from idbe.runtime.trace import EventKind, EventSink, LoggingSink, TraceEvent
from idbe.topology.ordering import OrderingOracle
from idbe.topology.structure import InfluenceDiagram

logger = logging.getLogger(__name__)


@dataclass
class SolverResult:
    """
    Result of a bucket elimination run.

    Attributes:
        meu: Maximum expected utility
        policy: Decision variable -> policy
        order: Elimination order used
        induced_width: Induced width of the order
        memory_mb: Size of all factors of the forward pass
        policy_memory_mb: Size of the policy factors
        elapsed: Wall-clock seconds for the whole run
        arena: Every factor of the run, originals first
        buckets: Final bucket store
    """
    meu: float
    policy: Dict[int, DecisionPolicy]
    order: Tuple[int, ...]
    induced_width: int
    memory_mb: float
    policy_memory_mb: float
    elapsed: float
    arena: FactorArena
    buckets: BucketStore


class BucketElimination:
    """
    Bucket elimination (BE) for standard influence diagrams.

    Only the MEU/policy query family is implemented; see
    idbe.api.capabilities for probing other families.
    """

    def __init__(
        self,
        diagram: InfluenceDiagram,
        config: Optional[BEConfig] = None,
        sink: Optional[EventSink] = None,
    ):
        self.diagram = diagram
        self.config = config if config is not None else BEConfig()
        if sink is None and self.config.debug:
            sink = LoggingSink(logger)
        self.sink = sink
        self.order: Tuple[int, ...] = ()
        self.induced_width: Optional[int] = None
        self._result: Optional[SolverResult] = None

    def clone(self) -> "BucketElimination":
        """A fresh solver over the same model, config and sink."""
        return BucketElimination(self.diagram, self.config, self.sink)

    def _emit(self, kind: EventKind, var: Optional[int] = None, **payload) -> None:
        if self.sink is not None:
            self.sink(TraceEvent(kind, var, payload))

    def init(self) -> None:
        """
        Check the model and compute the elimination order.

        Raises:
            UnsupportedModelError: the model is a LIMID, or has decisions but no temporal order
        """
        t0 = time.perf_counter()
        if self.diagram.is_limid:
            raise UnsupportedModelError("BE is only supported for standard IDs.")
        if self.diagram.decisions() and not self.diagram.temporal_order:
            raise UnsupportedModelError(
                "BE needs a temporal order over the decisions; none was given."
            )

        oracle = OrderingOracle(self.diagram)
        self.order = tuple(oracle.order(self.config.order))
        self.induced_width = oracle.induced_width(self.order)

        decisions = tuple(
            v for block in self.diagram.temporal_order for v in block
            if self.diagram.var(v).is_decision
        )
        logger.info("Initialize solver: algorithm=BE, models supported=ID")
        logger.info(" + elimination   : %s", " ".join(map(str, self.order)))
        logger.info(" + induced width : %d", self.induced_width)
        if self.diagram.temporal_order:
            logger.info(
                " + partial order : %s",
                " | ".join(" ".join(map(str, b)) for b in self.diagram.temporal_order),
            )
        if decisions:
            logger.info(" + decisions (ord): %s", " ".join(map(str, decisions)))
        self._emit(
            EventKind.INIT,
            order=self.order,
            induced_width=self.induced_width,
            partial_order=tuple(self.diagram.temporal_order),
            decisions=decisions,
            elapsed=time.perf_counter() - t0,
        )

    def solve(self) -> SolverResult:
        """Run BE and return the MEU and the policy."""
        self._result = None
        t0 = time.perf_counter()
        self.init()

        arena = FactorArena(self.diagram.get_factors())
        store = BucketStore(self.order)
        store.partition(arena, list(arena.handles()))
        self._emit(
            EventKind.PARTITION,
            buckets={x: store.residents(x) for x in self.order},
            roots=tuple(store.roots),
        )

        logger.info("Begin variable elimination ...")
        ForwardEliminator(
            self.diagram, arena, store, sink=self.sink, debug=self.config.debug
        ).run()

        meu = maximum_expected_utility(arena, store)
        memory_mb = arena.memory_mb()
        self._emit(EventKind.ROOTS, roots=tuple(store.roots), meu=meu, memory_mb=memory_mb)
        logger.info("End variable elimination. MEU value is %g", meu)

        policy = PolicyBuilder(self.diagram, arena, store, sink=self.sink).build()
        elapsed = time.perf_counter() - t0

        result = SolverResult(
            meu=meu,
            policy=policy,
            order=self.order,
            induced_width=self.induced_width,
            memory_mb=memory_mb,
            policy_memory_mb=policy_memory_mb(policy),
            elapsed=elapsed,
            arena=arena,
            buckets=store,
        )
        self._emit(
            EventKind.DONE,
            meu=meu,
            decisions=tuple(policy),
            memory_mb=memory_mb,
            policy_memory_mb=result.policy_memory_mb,
            elapsed=elapsed,
        )
        logger.info("Done in %.3f seconds, memory %.4f MB", elapsed, memory_mb)
        self._result = result
        return result

    run = solve

    @property
    def result(self) -> SolverResult:
        if self._result is None:
            raise PreconditionViolation("solve() has not completed")
        return self._result

    @property
    def meu(self) -> float:
        return self.result.meu

    @property
    def policy(self) -> Dict[int, DecisionPolicy]:
        return self.result.policy

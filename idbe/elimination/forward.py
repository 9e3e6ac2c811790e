"""
idbe/elimination/forward.py

Forward pass of bucket elimination for influence diagrams.

Buckets are processed in elimination order. Each bucket splits its resident
factors into probability components (phi) and utility components (psi):

  chance x:    comb = prod(phi)
               f    = sum_x comb                       (probability message)
               g_u  = sum_x (comb * u) / f  for u in psi (utility messages)

  decision x:  p|x=0 for p in phi                      (probability messages)
               g    = max_x sum(psi)                   (utility message)

Every new factor goes to the bucket of the next variable of the order in its
scope, or to the root set when its scope is empty.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from idbe.algebra.factor import Factor, FactorKind, product, total
from idbe.core.errors import UnknownOperatorError
from idbe.elimination.arena import FactorArena, Handle
from idbe.elimination.buckets import BucketStore
from idbe.runtime.trace import EventKind, EventSink, TraceEvent
from idbe.topology.structure import InfluenceDiagram, VarType

logger = logging.getLogger(__name__)


class Operator(Enum):
    """Elimination operators."""
    SUM = "sum"
    MAX = "max"
    MIN = "min"


def eliminate(f: Factor, v: int, op: Operator | str) -> Factor:
    """
    Eliminate variable v from f by summation, maximization or minimization.

    Raises:
        UnknownOperatorError: op is not one of sum, max, min
    """
    if not isinstance(op, Operator):
        try:
            op = Operator(str(op).lower())
        except ValueError:
            raise UnknownOperatorError(f"Unknown elimination operator: {op!r}") from None
    if op is Operator.SUM:
        return f.sum_out(v)
    elif op is Operator.MAX:
        return f.max_out(v)
    elif op is Operator.MIN:
        return f.min_out(v)
    raise UnknownOperatorError(f"Unknown elimination operator: {op!r}")


class ForwardEliminator:
    """
    Runs the forward pass over a partitioned bucket store.

    The arena and the store are mutated in place: new factors are appended to
    the arena and their handles inserted into later buckets or the roots.
    """

    def __init__(
        self,
        diagram: InfluenceDiagram,
        arena: FactorArena,
        store: BucketStore,
        sink: Optional[EventSink] = None,
        debug: bool = False,
    ):
        self.diagram = diagram
        self.arena = arena
        self.store = store
        self.sink = sink
        self.debug = debug

    def _emit(self, kind: EventKind, var: Optional[int] = None, **payload) -> None:
        if self.sink is not None:
            self.sink(TraceEvent(kind, var, payload))

    def run(self) -> None:
        """Process every bucket in elimination order."""
        for x in self.store.order:
            self.process(x)

    def split(self, handles: Sequence[Handle]) -> Tuple[List[Handle], List[Handle]]:
        """Partition handles into probability (phi) and utility (psi) factors."""
        phi, psi = [], []
        for h in handles:
            if self.arena[h].kind is FactorKind.PROBABILITY:
                phi.append(h)
            else:
                psi.append(h)
        return phi, psi

    def process(self, x: int) -> List[Handle]:
        """
        Process the bucket of variable x.

        Returns:
            Handles of the factors created by this bucket
        """
        if self.store.is_processed(x):
            raise RuntimeError(f"Bucket {x} already processed")

        ids = self.store.residents(x)
        if not ids:
            self.store.mark_processed(x)
            logger.debug("bucket %d is empty, skipped", x)
            return []

        t0 = time.perf_counter()
        phi, psi = self.split(ids)
        vtype = self.diagram.vtype(x)
        self._emit(
            EventKind.BUCKET_START, x,
            type=vtype.name, phi=tuple(phi), psi=tuple(psi),
            scopes={h: self.arena[h].scope for h in ids},
        )

        if vtype is VarType.CHANCE:
            logger.debug("eliminating (C) variable %d", x)
            created = self._chance_bucket(x, phi, psi)
        else:
            logger.debug("eliminating (D) variable %d", x)
            created = self._decision_bucket(x, phi, psi)

        self.store.mark_processed(x)
        self._emit(
            EventKind.BUCKET_END, x,
            created=tuple(created),
            scopes={h: self.arena[h].scope for h in created},
            kinds={h: self.arena[h].kind.name for h in created},
            memory_mb=self.arena.memory_mb(),
            elapsed=time.perf_counter() - t0,
        )
        return created

    def _store(self, f: Factor, x: int) -> Handle:
        h = self.arena.alloc(f)
        target = self.store.insert(h, f, x)
        if self.debug:
            where = "root" if target is None else f"bucket {target}"
            logger.debug("  %s %d %s -> %s", f.kind.name.lower(), h, f.scope, where)
        return h

    def _chance_bucket(self, x: int, phi: List[Handle], psi: List[Handle]) -> List[Handle]:
        comb = product((self.arena[h] for h in phi), FactorKind.PROBABILITY)

        f = eliminate(comb, x, Operator.SUM).with_kind(FactorKind.PROBABILITY)
        created = [self._store(f, x)]

        for h in psi:
            g = eliminate(comb.multiply(self.arena[h]), x, Operator.SUM)
            g = g.divide(f).with_kind(FactorKind.UTILITY)
            created.append(self._store(g, x))
        return created

    def _decision_bucket(self, x: int, phi: List[Handle], psi: List[Handle]) -> List[Handle]:
        created = []
        for h in phi:
            p = self.arena[h]
            if self.debug and not p.is_constant_along(x):
                logger.warning(
                    "probability factor %d over %s depends on decision %d; "
                    "slicing at 0 assumes it does not", h, p.scope, x,
                )
            f = p.slice(x, 0).with_kind(FactorKind.PROBABILITY)
            created.append(self._store(f, x))

        comb = total((self.arena[h] for h in psi), FactorKind.UTILITY)
        g = eliminate(comb, x, Operator.MAX).with_kind(FactorKind.UTILITY)
        created.append(self._store(g, x))
        return created

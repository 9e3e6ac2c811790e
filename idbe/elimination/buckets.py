"""
idbe/elimination/buckets.py

Bucket store: which factors sit in which variable's bucket.

A bucket holds the handles of factors whose earliest not yet eliminated
variable is the bucket variable. Original factors are placed by partition();
factors produced while processing a bucket are placed by insert() into the
bucket of the next variable of the order that appears in their scope, or into
the root set when their scope is empty.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from idbe.algebra.factor import Factor
from idbe.core.errors import PreconditionViolation
from idbe.elimination.arena import FactorArena, Handle


class BucketStore:
    """
    Per-variable handle sets over a factor arena.

    Attributes:
        order: Elimination order (permutation of variable ids)
        buckets: Variable -> insertion-ordered handle set
        roots: Handles of zero-scope factors, in creation order
        processed: Variables whose bucket has been processed
    """

    def __init__(self, order: Sequence[int]):
        self.order: Tuple[int, ...] = tuple(order)
        self.position: Dict[int, int] = {v: i for i, v in enumerate(self.order)}
        if len(self.position) != len(self.order):
            raise ValueError(f"Elimination order has duplicates: {self.order}")
        # dict keys as ordered sets of handles
        self.buckets: Dict[int, Dict[Handle, None]] = {v: {} for v in self.order}
        self.roots: List[Handle] = []
        self.processed: Dict[int, None] = {}

    def partition(self, arena: FactorArena, handles: Sequence[Handle]) -> None:
        """
        Place each factor into the bucket of its earliest eliminated variable.

        Zero-scope inputs are roots from the start.
        """
        assigned = set()
        for x in self.order:
            for h in handles:
                if h not in assigned and arena[h].contains(x):
                    self.buckets[x][h] = None
                    assigned.add(h)
        for h in handles:
            if h not in assigned and arena[h].is_constant:
                self.roots.append(h)
                assigned.add(h)

        missing = [h for h in handles if h not in assigned]
        if missing:
            raise ValueError(f"Factors {missing} mention variables outside the elimination order")

    def insert(self, h: Handle, factor: Factor, after: int) -> Optional[int]:
        """
        Place a factor created while processing bucket `after`.

        Returns:
            The receiving bucket variable, or None when the factor became a root

        Raises:
            PreconditionViolation: a non-constant factor mentions no later variable
        """
        if factor.is_constant:
            self.roots.append(h)
            return None
        for y in self.order[self.position[after] + 1:]:
            if factor.contains(y):
                self.buckets[y][h] = None
                return y
        raise PreconditionViolation(
            f"Factor {h} over {factor.scope} has no bucket after {after}"
        )

    def residents(self, x: int) -> Tuple[Handle, ...]:
        return tuple(self.buckets[x])

    def mark_processed(self, x: int) -> None:
        self.processed[x] = None

    def is_processed(self, x: int) -> bool:
        return x in self.processed

    def all_processed(self) -> bool:
        return len(self.processed) == len(self.order)

    def unprocessed(self) -> List[int]:
        return [x for x in self.order if x not in self.processed]

    def unconsumed(self) -> List[Handle]:
        """Handles still waiting in unprocessed buckets, plus the roots."""
        out = [h for x in self.unprocessed() for h in self.buckets[x]]
        return out + list(self.roots)

    def __repr__(self) -> str:
        sizes = {x: len(b) for x, b in self.buckets.items()}
        return f"BucketStore(sizes={sizes}, roots={len(self.roots)})"

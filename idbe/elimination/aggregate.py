"""
idbe/elimination/aggregate.py

MEU from the root factors left by the forward pass.
"""

from __future__ import annotations

from typing import Tuple

from idbe.algebra.factor import Factor, FactorKind, product, total
from idbe.core.errors import PreconditionViolation
from idbe.elimination.arena import FactorArena
from idbe.elimination.buckets import BucketStore


def combine_roots(arena: FactorArena, store: BucketStore) -> Tuple[Factor, Factor]:
    """
    Product of the probability roots and sum of the utility roots.

    Raises:
        PreconditionViolation: some bucket has not been processed yet
    """
    if not store.all_processed():
        raise PreconditionViolation(
            f"Cannot aggregate roots: buckets {store.unprocessed()} not processed"
        )
    roots = [arena[h] for h in store.roots]
    P = product((f for f in roots if f.kind is FactorKind.PROBABILITY), FactorKind.PROBABILITY)
    U = total((f for f in roots if f.kind is FactorKind.UTILITY), FactorKind.UTILITY)
    return P, U


def maximum_expected_utility(arena: FactorArena, store: BucketStore) -> float:
    """MEU = max(P * U) over the root factors."""
    P, U = combine_roots(arena, store)
    return P.multiply(U).max()

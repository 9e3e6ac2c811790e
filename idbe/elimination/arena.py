"""
idbe/elimination/arena.py

Append-only factor storage addressed by stable integer handles.
"""

from __future__ import annotations

from typing import Iterator, List, Sequence

from idbe.algebra.factor import Factor

Handle = int


class FactorArena:
    """
    Factor storage for a bucket elimination run.

    Handles are allocated in increasing order and never reused; a stored
    factor is never replaced.
    """

    def __init__(self, factors: Sequence[Factor] = ()):
        self._factors: List[Factor] = list(factors)

    def alloc(self, factor: Factor) -> Handle:
        """
        Store a new factor.

        Returns:
            The handle of the stored factor
        """
        self._factors.append(factor)
        return len(self._factors) - 1

    def get(self, h: Handle) -> Factor:
        return self._factors[h]

    __getitem__ = get

    def handles(self) -> range:
        return range(len(self._factors))

    def memory_mb(self) -> float:
        """Sum of table sizes in MB."""
        return sum(f.nbytes for f in self._factors) / (1024 * 1024)

    def __contains__(self, h: Handle) -> bool:
        return 0 <= h < len(self._factors)

    def __len__(self) -> int:
        return len(self._factors)

    def __iter__(self) -> Iterator[Factor]:
        return iter(self._factors)

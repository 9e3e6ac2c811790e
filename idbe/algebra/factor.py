"""
idbe/algebra/factor.py

Dense typed factors over integer variable ids.

A Factor is a table over an ordered scope, tagged either as a probability
or a utility component. Factors are immutable: every operation returns a new
factor and never writes into its operands.

Key operations:
  - multiply / add / divide: pointwise on the union scope (aligned views)
  - sum_out / max_out / min_out: eliminate one variable
  - slice: fix one variable to a value
  - max: scalar maximum over the whole table

Determinism:
  - Binary operations produce scopes in canonical (sorted) order.
  - Division returns 0 wherever the denominator is 0 (0/0 -> 0, x/0 -> 0).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

import numpy as np

VarID = int


class FactorKind(Enum):
    """Type tag of a factor."""
    PROBABILITY = 1
    UTILITY = 2

    @classmethod
    def parse(cls, value: "FactorKind | str") -> "FactorKind":
        if isinstance(value, FactorKind):
            return value
        key = str(value).strip().upper()
        aliases = {"P": "PROBABILITY", "PROB": "PROBABILITY", "U": "UTILITY", "UTIL": "UTILITY"}
        key = aliases.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown factor kind: {value!r}") from None


@dataclass(frozen=True, eq=False)
class Factor:
    """
    A typed dense table over an ordered scope.

    Attributes:
        scope: Ordered variable ids (axis labels).
        data: ndarray shaped by the variable cardinalities in scope order.
        kind: PROBABILITY or UTILITY.
    """
    scope: Tuple[VarID, ...]
    data: np.ndarray
    kind: FactorKind = FactorKind.PROBABILITY

    def __post_init__(self):
        object.__setattr__(self, "scope", tuple(int(v) for v in self.scope))
        data = np.array(self.data, dtype=np.float64)
        if len(self.scope) != data.ndim:
            raise ValueError(
                f"Factor scope rank mismatch: |scope|={len(self.scope)} "
                f"but data.ndim={data.ndim}"
            )
        if len(set(self.scope)) != len(self.scope):
            raise ValueError(f"Factor scope has duplicates: {self.scope}")
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    @staticmethod
    def constant(value: float, kind: FactorKind = FactorKind.PROBABILITY) -> "Factor":
        """Zero-scope factor holding a single value."""
        return Factor((), np.array(float(value)), kind)

    @staticmethod
    def from_table(scope: Iterable[VarID], table, kind: FactorKind = FactorKind.PROBABILITY,
                   cards: Optional[Iterable[int]] = None) -> "Factor":
        """
        Build a factor from a nested list or flat table.

        A flat table is reshaped to cards in C order, i.e. the last variable of
        the scope changes fastest.
        """
        scope = tuple(scope)
        arr = np.asarray(table, dtype=np.float64)
        if cards is not None:
            arr = arr.reshape(tuple(cards))
        return Factor(scope, arr, kind)

    # ------------------------------------------------------------------
    # Introspection

    @property
    def nvar(self) -> int:
        return len(self.scope)

    @property
    def numel(self) -> int:
        return int(self.data.size)

    @property
    def nbytes(self) -> int:
        return self.numel * self.data.itemsize

    @property
    def is_constant(self) -> bool:
        return not self.scope

    def card(self, v: VarID) -> int:
        """Cardinality of variable v, read from the table shape."""
        return self.data.shape[self.scope.index(v)]

    def contains(self, v: VarID) -> bool:
        return v in self.scope

    def with_kind(self, kind: FactorKind) -> "Factor":
        """Same table, new type tag."""
        if kind is self.kind:
            return self
        return Factor(self.scope, self.data, kind)

    def item(self) -> float:
        """Value of a zero-scope factor."""
        if self.scope:
            raise ValueError(f"item() needs an empty scope, got {self.scope}")
        return float(self.data)

    # ------------------------------------------------------------------
    # Alignment

    def _aligned_view(self, target_scope: Tuple[VarID, ...], target_shape: Tuple[int, ...]) -> np.ndarray:
        """
        Returns self.data permuted into target order, with singleton axes for
        missing variables, broadcast to target_shape.
        """
        src_pos = {v: i for i, v in enumerate(self.scope)}
        perm = [src_pos[v] for v in target_scope if v in src_pos]

        data = self.data
        if perm and perm != list(range(len(perm))):
            data = np.transpose(data, axes=perm)

        shape = []
        j = 0
        for v in target_scope:
            if v in src_pos:
                shape.append(data.shape[j])
                j += 1
            else:
                shape.append(1)

        data = data.reshape(shape)
        return np.broadcast_to(data, target_shape)

    def _union(self, other: "Factor") -> Tuple[Tuple[VarID, ...], Tuple[int, ...]]:
        union = tuple(sorted(set(self.scope) | set(other.scope)))
        shape = []
        for v in union:
            if v in self.scope and v in other.scope and self.card(v) != other.card(v):
                raise ValueError(
                    f"Cardinality mismatch for variable {v}: {self.card(v)} vs {other.card(v)}"
                )
            shape.append(self.card(v) if v in self.scope else other.card(v))
        return union, tuple(shape)

    def _binary(self, other: "Factor", op) -> "Factor":
        union, shape = self._union(other)
        a = self._aligned_view(union, shape)
        b = other._aligned_view(union, shape)
        return Factor(union, op(a, b), self.kind)

    # ------------------------------------------------------------------
    # Pointwise combination (result keeps self.kind)

    def multiply(self, other: "Factor") -> "Factor":
        return self._binary(other, np.multiply)

    def add(self, other: "Factor") -> "Factor":
        return self._binary(other, np.add)

    def divide(self, other: "Factor") -> "Factor":
        """Pointwise quotient; positions with a zero denominator yield 0."""
        def _safe_div(a: np.ndarray, b: np.ndarray) -> np.ndarray:
            out = np.zeros(np.broadcast(a, b).shape, dtype=np.float64)
            np.divide(a, b, out=out, where=(b != 0))
            return out
        return self._binary(other, _safe_div)

    __mul__ = multiply
    __add__ = add
    __truediv__ = divide

    # ------------------------------------------------------------------
    # Elimination

    def _reduce(self, v: VarID, reducer) -> "Factor":
        if v not in self.scope:
            return self
        axis = self.scope.index(v)
        keep = tuple(u for u in self.scope if u != v)
        return Factor(keep, reducer(self.data, axis=axis), self.kind)

    def sum_out(self, v: VarID) -> "Factor":
        return self._reduce(v, np.sum)

    def max_out(self, v: VarID) -> "Factor":
        return self._reduce(v, np.max)

    def min_out(self, v: VarID) -> "Factor":
        return self._reduce(v, np.min)

    def argmax_out(self, v: VarID) -> np.ndarray:
        """Index of the maximum along v for every assignment of the rest (lowest index on ties)."""
        return np.asarray(np.argmax(self.data, axis=self.scope.index(v)))

    def slice(self, v: VarID, value: int) -> "Factor":
        """Condition on v == value; v leaves the scope."""
        if v not in self.scope:
            return self
        axis = self.scope.index(v)
        if not 0 <= value < self.data.shape[axis]:
            raise ValueError(f"slice value {value} outside domain of variable {v}")
        keep = tuple(u for u in self.scope if u != v)
        return Factor(keep, np.take(self.data, value, axis=axis), self.kind)

    def max(self) -> float:
        return float(np.max(self.data))

    def is_constant_along(self, v: VarID, atol: float = 1e-12) -> bool:
        """True when the table does not depend on the value of v."""
        if v not in self.scope:
            return True
        axis = self.scope.index(v)
        first = np.take(self.data, [0], axis=axis)
        return bool(np.allclose(self.data, first, atol=atol))

    def __repr__(self) -> str:
        return f"Factor(scope={self.scope}, shape={self.data.shape}, kind={self.kind.name})"


def product(factors: Iterable[Factor], kind: FactorKind = FactorKind.PROBABILITY) -> Factor:
    """Product of factors; the constant 1 when empty."""
    acc = Factor.constant(1.0, kind)
    for f in factors:
        acc = acc.multiply(f)
    return acc


def total(factors: Iterable[Factor], kind: FactorKind = FactorKind.UTILITY) -> Factor:
    """Sum of factors; the constant 0 when empty."""
    acc = Factor.constant(0.0, kind)
    for f in factors:
        acc = acc.add(f)
    return acc

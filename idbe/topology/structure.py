"""
idbe/topology/structure.py

Influence diagram structure: the model the solver reads.

An influence diagram consists of:
- Variables with a type (chance or decision) and a domain size
- Typed factors (probability or utility tables) over those variables
- A temporal order: blocks of variables, earliest first, where each decision
  sits after the chance variables it observes
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from idbe.algebra.factor import Factor, FactorKind
from idbe.core.registry import IDRegistry


class VarType(Enum):
    """Type of a variable in the diagram."""
    CHANCE = "c"
    DECISION = "d"

    @classmethod
    def parse(cls, value: "VarType | str") -> "VarType":
        if isinstance(value, VarType):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown variable type: {value!r}")


@dataclass(frozen=True)
class Variable:
    """A variable with id, type and domain size."""
    id: int
    type: VarType
    card: int

    def __post_init__(self):
        if self.card < 1:
            raise ValueError(f"Variable {self.id}: domain size must be >= 1, got {self.card}")

    @property
    def is_decision(self) -> bool:
        return self.type is VarType.DECISION


class InfluenceDiagram:
    """
    Structure and tables of an influence diagram.

    Maintains:
    - Variables (ids are dense, 0..nvar-1, in declaration order)
    - The initial factor list, in declaration order
    - The temporal order as blocks of variable ids
    - Whether the model is a LIMID (unconstrained order, fixed decision parents)
    """

    def __init__(self, limid: bool = False):
        self.variables: List[Variable] = []
        self.factors: List[Factor] = []
        self.temporal_order: List[Tuple[int, ...]] = []
        self.limid = limid
        self.registry: Optional[IDRegistry] = None

    def add_variable(self, card: int, vtype: VarType | str = VarType.CHANCE) -> int:
        """Add a variable and return its id."""
        vid = len(self.variables)
        self.variables.append(Variable(vid, VarType.parse(vtype), int(card)))
        return vid

    def add_factor(self, factor: Factor) -> int:
        """Add a factor and return its index in the initial list."""
        for v in factor.scope:
            if not 0 <= v < len(self.variables):
                raise ValueError(f"Factor scope {factor.scope} mentions unknown variable {v}")
            if factor.card(v) != self.variables[v].card:
                raise ValueError(
                    f"Factor scope {factor.scope}: axis for variable {v} has size "
                    f"{factor.card(v)}, domain size is {self.variables[v].card}"
                )
        self.factors.append(factor)
        return len(self.factors) - 1

    def set_temporal_order(self, blocks: Sequence[Sequence[int]]) -> None:
        """
        Set the temporal order, earliest block first.

        Every variable must appear in exactly one block.
        """
        seen: List[int] = []
        for block in blocks:
            seen.extend(int(v) for v in block)
        if sorted(seen) != list(range(len(self.variables))):
            raise ValueError(
                f"Temporal order must mention every variable exactly once, got {seen}"
            )
        self.temporal_order = [tuple(int(v) for v in block) for block in blocks if len(block)]

    # ------------------------------------------------------------------
    # Queries

    @property
    def nvar(self) -> int:
        return len(self.variables)

    @property
    def is_limid(self) -> bool:
        return self.limid

    def var(self, vid: int) -> Variable:
        return self.variables[vid]

    def vtype(self, vid: int) -> VarType:
        return self.variables[vid].type

    def card(self, vid: int) -> int:
        return self.variables[vid].card

    def decisions(self) -> List[int]:
        """Decision variable ids in declaration order."""
        return [v.id for v in self.variables if v.is_decision]

    def partial_elim_order(self) -> List[Tuple[int, ...]]:
        """
        Blocks of the constrained elimination order (temporal order reversed).

        An empty temporal order yields a single block holding every variable.
        """
        if not self.temporal_order:
            return [tuple(range(self.nvar))] if self.nvar else []
        return list(reversed(self.temporal_order))

    def scopes(self) -> List[Tuple[int, ...]]:
        return [f.scope for f in self.factors]

    def get_factors(self) -> List[Factor]:
        """Copy of the initial factor list."""
        return list(self.factors)

    # ------------------------------------------------------------------
    # Construction from named input

    @staticmethod
    def from_named(
        variables: Mapping[str, Tuple[str, int]],
        factors: Mapping[str, Tuple[Sequence[str], str, object]],
        temporal_order: Optional[Sequence[Sequence[str]]] = None,
        limid: bool = False,
    ) -> "InfluenceDiagram":
        """
        Build a diagram from named variables and factors.

        Args:
            variables: Map from variable name to (type, domain size)
            factors: Map from factor name to (scope names, kind, table)
            temporal_order: Blocks of variable names, earliest first
            limid: Whether the model is a LIMID

        Example:
            >>> id_ = InfluenceDiagram.from_named(
            ...     {"X": ("chance", 2), "D": ("decision", 2)},
            ...     {"pX": (("X",), "probability", [0.6, 0.4]),
            ...      "u": (("X", "D"), "utility", [[10, 0], [0, 5]])},
            ...     temporal_order=[["X"], ["D"]],
            ... )
        """
        registry = IDRegistry.build(variables.keys(), factors.keys())
        diagram = InfluenceDiagram(limid=limid)
        for name in registry.id_to_var_name:
            vtype, card = variables[name]
            diagram.add_variable(card, vtype)

        for name in registry.id_to_fac_name:
            scope_names, kind, table = factors[name]
            scope = tuple(registry.var_id(n) for n in scope_names)
            cards = tuple(diagram.card(v) for v in scope)
            arr = np.asarray(table, dtype=np.float64).reshape(cards)
            diagram.add_factor(Factor(scope, arr, FactorKind.parse(kind)))

        if temporal_order is not None:
            diagram.set_temporal_order(
                [[registry.var_id(n) for n in block] for block in temporal_order]
            )
        diagram.registry = registry
        return diagram

    def var_label(self, vid: int) -> str:
        """Name of a variable when built from named input, else its id."""
        if self.registry is not None:
            return self.registry.var_name(vid)
        return str(vid)

    def __repr__(self) -> str:
        return (
            f"InfluenceDiagram(vars={self.nvar}, decisions={len(self.decisions())}, "
            f"factors={len(self.factors)}, limid={self.limid})"
        )

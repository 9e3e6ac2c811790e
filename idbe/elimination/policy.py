"""
idbe/elimination/policy.py

Backward pass: a policy factor for every decision variable.

For a decision x the policy factor is

    F_x = prod(probability residents of bucket x) * sum(utility residents of bucket x)

over x and its informational parents. The residents are the factors that sat
in bucket x when it was processed; the forward pass only inserts into later
buckets afterwards, so the set is final.

F_x is stored as-is. DecisionPolicy.decision_rule() gives the arg-max over x
for consumers that want the optimal action per parent configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from idbe.algebra.factor import Factor, FactorKind, product, total
from idbe.core.errors import PreconditionViolation
from idbe.elimination.arena import FactorArena
from idbe.elimination.buckets import BucketStore
from idbe.runtime.trace import EventKind, EventSink, TraceEvent
from idbe.topology.structure import InfluenceDiagram


@dataclass(frozen=True)
class DecisionPolicy:
    """
    Policy of one decision variable.

    Attributes:
        decision: Decision variable id
        factor: Combined expected-utility factor over decision and parents

    The factor lacks the decision axis when the decision bucket was empty.
    """
    decision: int
    factor: Factor

    @property
    def parents(self) -> Tuple[int, ...]:
        """Informational parents: the factor scope without the decision."""
        return tuple(v for v in self.factor.scope if v != self.decision)

    def decision_rule(self) -> np.ndarray:
        """
        Optimal decision value for every parent configuration.

        Axes follow self.parents; a decision with no parents gives a 0-d array.
        Ties resolve to the lowest decision value. A decision that no factor
        mentions has a zero-scope policy factor; its rule is the 0-d array 0,
        since every choice is equally good.
        """
        if not self.factor.contains(self.decision):
            return np.zeros(tuple(self.factor.card(v) for v in self.parents), dtype=np.int64)
        return self.factor.argmax_out(self.decision)

    def value(self) -> Factor:
        """Best value of the factor for every parent configuration."""
        return self.factor.max_out(self.decision)

    def action(self, assignment: Optional[Dict[int, int]] = None) -> int:
        """Optimal decision value for one assignment of the parents."""
        assignment = assignment or {}
        missing = [v for v in self.parents if v not in assignment]
        if missing:
            raise ValueError(f"Missing values for parents {missing} of decision {self.decision}")
        rule = self.decision_rule()
        return int(rule[tuple(assignment[v] for v in self.parents)])


class PolicyBuilder:
    """Builds decision policies from a fully processed bucket store."""

    def __init__(
        self,
        diagram: InfluenceDiagram,
        arena: FactorArena,
        store: BucketStore,
        sink: Optional[EventSink] = None,
    ):
        self.diagram = diagram
        self.arena = arena
        self.store = store
        self.sink = sink

    def build(self) -> Dict[int, DecisionPolicy]:
        """
        Visit decisions in reverse elimination order.

        Raises:
            PreconditionViolation: the forward pass has not completed
        """
        if not self.store.all_processed():
            raise PreconditionViolation(
                f"Cannot build policy: buckets {self.store.unprocessed()} not processed"
            )
        policy: Dict[int, DecisionPolicy] = {}
        for x in reversed(self.store.order):
            if not self.diagram.var(x).is_decision:
                continue
            residents = [self.arena[h] for h in self.store.residents(x)]
            P = product((f for f in residents if f.kind is FactorKind.PROBABILITY),
                        FactorKind.PROBABILITY)
            U = total((f for f in residents if f.kind is FactorKind.UTILITY),
                      FactorKind.UTILITY)
            F = P.multiply(U).with_kind(FactorKind.UTILITY)
            policy[x] = DecisionPolicy(x, F)
            if self.sink is not None:
                self.sink(TraceEvent(EventKind.POLICY, x, {
                    "scope": F.scope,
                    "values": F.data.tolist(),
                    "memory_mb": F.nbytes / (1024 * 1024),
                }))
        return policy


def policy_memory_mb(policy: Dict[int, DecisionPolicy]) -> float:
    return sum(p.factor.nbytes for p in policy.values()) / (1024 * 1024)

"""
idbe/core/config.py

Solver configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from idbe.topology.ordering import OrderMethod


@dataclass(frozen=True)
class BEConfig:
    """
    Configuration of a bucket elimination run.

    Attributes:
        order: Ordering heuristic (an OrderMethod or its name)
        debug: Emit detailed bucket traces and run extra model checks
    """
    order: OrderMethod = OrderMethod.MIN_FILL
    debug: bool = False

    def __post_init__(self):
        object.__setattr__(self, "order", OrderMethod.parse(self.order))
        if not isinstance(self.debug, bool):
            if self.debug in (0, 1):
                object.__setattr__(self, "debug", bool(self.debug))
            else:
                raise ValueError(f"debug must be a boolean, got {self.debug!r}")

    @staticmethod
    def from_mapping(values: Mapping[str, Any]) -> "BEConfig":
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(BEConfig)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        return BEConfig(**dict(values))

"""
API module: Query capability probing.
"""

from idbe.api.capabilities import (
    MEUQuery,
    BeliefQuery,
    BoundsQuery,
    BestConfigQuery,
    PartitionQuery,
    supports,
    require,
    capabilities,
)

__all__ = [
    "MEUQuery",
    "BeliefQuery",
    "BoundsQuery",
    "BestConfigQuery",
    "PartitionQuery",
    "supports",
    "require",
    "capabilities",
]

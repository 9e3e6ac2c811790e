"""
Algebra module: Dense typed factors.
"""

from idbe.algebra.factor import Factor, FactorKind, product, total

__all__ = [
    "Factor",
    "FactorKind",
    "product",
    "total",
]

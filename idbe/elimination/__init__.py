"""
Elimination module: Factor arena, buckets, forward pass, MEU and policy.
"""

from idbe.elimination.arena import FactorArena
from idbe.elimination.buckets import BucketStore
from idbe.elimination.forward import ForwardEliminator, Operator, eliminate
from idbe.elimination.aggregate import combine_roots, maximum_expected_utility
from idbe.elimination.policy import DecisionPolicy, PolicyBuilder

__all__ = [
    "FactorArena",
    "BucketStore",
    "ForwardEliminator",
    "Operator",
    "eliminate",
    "combine_roots",
    "maximum_expected_utility",
    "DecisionPolicy",
    "PolicyBuilder",
]

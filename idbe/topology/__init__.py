"""
Topology module: Influence diagram structure and elimination orders.
"""

from idbe.topology.structure import InfluenceDiagram, Variable, VarType
from idbe.topology.ordering import OrderMethod, OrderingOracle, primal_graph

__all__ = [
    "InfluenceDiagram",
    "Variable",
    "VarType",
    "OrderMethod",
    "OrderingOracle",
    "primal_graph",
]

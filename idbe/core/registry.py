"""
idbe/core/registry.py

ID registry for variables and factors.

Variables and factors live in separate integer spaces; names are kept in
declaration order so ids are stable across runs on the same input.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass
class IDRegistry:
    """
    Registry for mapping names to IDs.

    Attributes:
        var_name_to_id: Variable name -> ID
        fac_name_to_id: Factor name -> ID
        id_to_var_name: ID -> variable name
        id_to_fac_name: ID -> factor name
    """
    var_name_to_id: Dict[str, int]
    fac_name_to_id: Dict[str, int]
    id_to_var_name: List[str]
    id_to_fac_name: List[str]

    @staticmethod
    def build(var_names: Iterable[str], fac_names: Iterable[str] = ()) -> "IDRegistry":
        """
        Build a registry from variable and factor names.

        Args:
            var_names: Variable names in declaration order
            fac_names: Factor names in declaration order

        Returns:
            IDRegistry with assigned IDs
        """
        var_names = list(var_names)
        fac_names = list(fac_names)
        for kind, names in (("variable", var_names), ("factor", fac_names)):
            if len(set(names)) != len(names):
                raise ValueError(f"Duplicate {kind} names: {names}")

        return IDRegistry(
            var_name_to_id={n: i for i, n in enumerate(var_names)},
            fac_name_to_id={n: i for i, n in enumerate(fac_names)},
            id_to_var_name=var_names,
            id_to_fac_name=fac_names,
        )

    def var_id(self, name: str) -> int:
        """Get variable ID by name."""
        try:
            return self.var_name_to_id[name]
        except KeyError:
            raise ValueError(f"Unknown variable: {name!r}") from None

    def fac_id(self, name: str) -> int:
        """Get factor ID by name."""
        return self.fac_name_to_id[name]

    def var_name(self, vid: int) -> str:
        """Get variable name by ID."""
        return self.id_to_var_name[vid]

    def fac_name(self, fid: int) -> str:
        """Get factor name by ID."""
        return self.id_to_fac_name[fid]

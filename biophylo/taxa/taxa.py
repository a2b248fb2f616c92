from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType
from biophylo.core.listable import Listable
from biophylo.core.mediator import get_mediator
from biophylo.exceptions import TypeMismatchError
from biophylo.taxa.taxon import Taxon

logger = logging.getLogger(__name__)


class Taxa(Listable):
    """A taxa block: the taxa shared by the forests, trees and matrices linked to it."""

    _type = ObjectType.TAXA
    ELEMENT = Taxon

    ACCESSORS = ("get_ntax", "get_taxon_names", "get_forests", "get_trees", "get_matrices")

    def _link(self, obj: Any, kind: ObjectType) -> Self:
        if getattr(obj, "_type", None) != kind:
            raise TypeMismatchError(f"{obj!r} is not a {kind.name.lower()}")
        obj.set_taxa(self)
        return self

    def set_forest(self, forest: Any) -> Self:
        return self._link(forest, ObjectType.FOREST)

    def set_tree(self, tree: Any) -> Self:
        return self._link(tree, ObjectType.TREE)

    def set_matrix(self, matrix: Any) -> Self:
        return self._link(matrix, ObjectType.MATRIX)

    def unset_forest(self, forest: Any) -> Self:
        get_mediator().remove_link(one=self, many=forest)
        return self

    def unset_tree(self, tree: Any) -> Self:
        get_mediator().remove_link(one=self, many=tree)
        return self

    def unset_matrix(self, matrix: Any) -> Self:
        get_mediator().remove_link(one=self, many=matrix)
        return self

    def get_forests(self) -> List[Any]:
        return get_mediator().get_link(self, type=ObjectType.FOREST)

    def get_trees(self) -> List[Any]:
        return get_mediator().get_link(self, type=ObjectType.TREE)

    def get_matrices(self) -> List[Any]:
        return get_mediator().get_link(self, type=ObjectType.MATRIX)

    def get_ntax(self) -> int:
        return len(self)

    def get_taxon_names(self) -> List[Optional[str]]:
        return [taxon.get_name() for taxon in self]

    def merge_by_name(self, *others: "Taxa") -> "Taxa":
        """New taxa block with one taxon per distinct name across this block and ``others``."""
        merged = Taxa(name=self.get_name())
        seen: Dict[Optional[str], Taxon] = {}
        for block in (self, *others):
            if getattr(block, "_type", None) != ObjectType.TAXA:
                raise TypeMismatchError(f"{block!r} is not a taxa block")
            for taxon in block:
                if taxon.get_name() in seen:
                    continue
                copy = Taxon(name=taxon.get_name(), desc=taxon.get_desc())
                copy.set_generic(taxon.get_generic())
                seen[taxon.get_name()] = copy
                merged.insert(copy)
        logger.debug(f"Merged {1 + len(others)} taxa blocks into {len(merged)} taxa")
        return merged

    def to_nexus(self) -> str:
        lines = [
            "BEGIN TAXA;",
            f"\tDIMENSIONS NTAX={self.get_ntax()};",
            "\tTAXLABELS",
        ]
        lines.extend(f"\t\t{taxon.get_name()}" for taxon in self)
        lines.extend(["\t;", "END;"])
        return "\n".join(lines) + "\n"

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType
from biophylo.core.listable import Listable
from biophylo.exceptions import TypeMismatchError
from biophylo.forest.tree import Tree
from biophylo.taxa.linker import TaxaLinker
from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon

logger = logging.getLogger(__name__)


class Forest(TaxaLinker, Listable):
    """An ordered set of trees, optionally linked to one taxa block."""

    _type = ObjectType.FOREST
    ELEMENT = Tree

    ACCESSORS = ("get_ntrees",)

    def get_ntrees(self) -> int:
        return len(self)

    def insert(self, *trees: Any) -> Self:
        super().insert(*trees)
        taxa = self.get_taxa()
        if taxa is not None:
            for tree in trees:
                tree.set_taxa(taxa)
        return self

    def cross_reference(self, taxa: Any) -> Self:
        """Link every tree, and every node of every tree, to ``taxa`` by name."""
        if getattr(taxa, "_type", None) != ObjectType.TAXA:
            raise TypeMismatchError(f"{taxa!r} is not a taxa block")
        self.set_taxa(taxa)
        for tree in self:
            tree.cross_reference(taxa)
        return self

    def check_taxa(self) -> Self:
        taxa = self.get_taxa()
        for tree in self:
            if taxa is not None and tree.get_taxa() is not taxa:
                tree.set_taxa(taxa)
        self._reconcile_taxon_links(node for tree in self for node in tree)
        return self

    def make_taxa(self) -> Taxa:
        """Build a taxa block from the tip names of all trees and link everything to it."""
        taxa = Taxa(name="Untitled_taxa_block")
        seen: Dict[Optional[str], Taxon] = {}
        for tree in self:
            for tip in tree.get_terminals():
                name = tip.get_name()
                if name is None or name in seen:
                    continue
                seen[name] = Taxon(name=name)
                taxa.insert(seen[name])
        self.cross_reference(taxa)
        logger.debug(f"Made taxa block with {len(taxa)} taxa for {self!r}")
        return taxa

    def to_newick(self, **options: Any) -> str:
        return "\n".join(tree.to_newick(**options) for tree in self) + "\n"

    def to_nexus(self, **options: Any) -> str:
        lines: List[str] = ["BEGIN TREES;"]
        for index, tree in enumerate(self, 1):
            name = tree.get_name() or f"tree_{index}"
            lines.append(f"\tTREE {name} = [&R] {tree.to_newick(**options)}")
        lines.append("END;")
        return "\n".join(lines) + "\n"

"""
Nexus writer.

A taxa block is written with every matrix and forest linked to it. A matrix or forest is
written after its taxa block; a forest without one gets a block made from its tip names.
"""

from typing import Any, List

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError


def _blocks_for(phylo: Any, **options: Any) -> List[str]:
    kind = getattr(phylo, "_type", None)
    if kind == ObjectType.TAXA:
        blocks = [phylo.to_nexus()]
        blocks.extend(matrix.to_nexus() for matrix in phylo.get_matrices())
        blocks.extend(forest.to_nexus(**options) for forest in phylo.get_forests())
        return blocks
    if kind == ObjectType.MATRIX:
        taxa = phylo.get_taxa()
        return ([taxa.to_nexus()] if taxa is not None else []) + [phylo.to_nexus()]
    if kind == ObjectType.FOREST:
        taxa = phylo.get_taxa() or phylo.make_taxa()
        return [taxa.to_nexus(), phylo.to_nexus(**options)]
    if kind == ObjectType.TREE:
        name = phylo.get_name() or "tree_1"
        return [f"BEGIN TREES;\n\tTREE {name} = [&R] {phylo.to_newick(**options)}\nEND;\n"]
    raise TypeMismatchError(f"Can't write {phylo!r} as Nexus")


def unparse_nexus(phylo: Any, **options: Any) -> str:
    return "#NEXUS\n" + "".join(_blocks_for(phylo, **options))

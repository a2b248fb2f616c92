from typing import Any

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError

NEWICK_TYPES = (ObjectType.FOREST, ObjectType.TREE, ObjectType.NODE)


def unparse_newick(phylo: Any, **options: Any) -> str:
    """Newick text of a node, a tree or (one tree per line) a forest."""
    if getattr(phylo, "_type", None) not in NEWICK_TYPES:
        raise TypeMismatchError(f"Can't write {phylo!r} as Newick")
    return phylo.to_newick(**options)

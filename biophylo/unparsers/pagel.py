"""
Pagel (Discrete/Continuous) format: one line per non-root node of a fully resolved tree.

The header holds the number of tips and the number of character rows per tip; each line is
``name,parent,length`` followed by the character strings of the node's taxon.
"""

from typing import Any, List

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError


def unparse_pagel(tree: Any, seed: Any = None, **options: Any) -> str:
    if getattr(tree, "_type", None) != ObjectType.TREE:
        raise TypeMismatchError(f"Pagel format needs a tree, got {tree!r}")
    resolved = tree.clone().resolve(seed=seed)
    for node in resolved:
        if node.get_name() is None:
            node.set_name(f"n{node.get_id()}")

    lines: List[str] = []
    nchars = 0
    for node in resolved:
        parent = node.get_parent()
        if parent is None:
            continue
        fields = [node.get_name(), parent.get_name(), "%f" % (node.get_branch_length() or 0)]
        taxon = node.get_taxon()
        if taxon is not None:
            for datum in taxon.get_data():
                fields.append(datum.get_char_string())
                nchars += 1
        lines.append(",".join(fields))

    ntips = resolved.calc_number_of_terminals()
    per_tip = nchars / ntips if ntips else 0
    header = f"{ntips} {per_tip:g}"
    resolved.dispose()
    return "\n".join([header] + lines) + "\n"

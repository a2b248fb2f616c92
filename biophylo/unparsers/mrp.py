"""
Matrix representation with parsimony (MRP) coding of a forest.

Every internal node of every tree becomes one binary character: ``1`` for taxa in the
clade, ``0`` for taxa in the tree but outside it and ``?`` for taxa missing from the
tree. An all-zero ``mrp_outgroup`` row roots the matrix.
"""

import logging
from typing import Any, Dict, List

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError

logger = logging.getLogger(__name__)

OUTGROUP = "mrp_outgroup"


def unparse_mrp(forest: Any, **options: Any) -> str:
    if getattr(forest, "_type", None) != ObjectType.FOREST:
        raise TypeMismatchError(f"MRP needs a forest, got {forest!r}")
    taxa = forest.get_taxa() or forest.make_taxa()
    nchar = sum(len(tree.get_internals()) for tree in forest)
    width = max([len(OUTGROUP)] + [len(name or "") for name in taxa.get_taxon_names()]) + 4

    columns: Dict[int, List[str]] = {taxon.get_id(): [] for taxon in taxa}
    for tree in forest:
        internals = tree.get_internals()
        in_tree = {id(tip.get_taxon()) for tip in tree.get_terminals()}
        clades = [
            {id(tip.get_taxon()) for tip in node.get_terminals()} for node in internals
        ]
        for taxon in taxa:
            if id(taxon) not in in_tree:
                columns[taxon.get_id()].append("?" * len(internals))
                continue
            columns[taxon.get_id()].extend(
                "1" if id(taxon) in clade else "0" for clade in clades
            )

    lines = [
        "BEGIN DATA;",
        f"    DIMENSIONS NTAX={len(taxa) + 1} NCHAR={nchar};",
        "    FORMAT DATATYPE=STANDARD MISSING=?;",
        "    MATRIX",
        f"        {OUTGROUP.ljust(width)}{'0' * nchar}",
    ]
    for taxon in taxa:
        name = taxon.get_name() or ""
        lines.append(f"        {name.ljust(width)}{''.join(columns[taxon.get_id()])}")
    lines.extend(["    ;", "END;"])
    logger.debug(f"MRP coded {forest.get_ntrees()} trees into {nchar} characters")
    return "\n".join(lines) + "\n"

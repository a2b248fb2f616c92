from biophylo.unparsers.json_unparser import EntityEncoder, dump_json, unparse_json
from biophylo.unparsers.mrp import unparse_mrp
from biophylo.unparsers.newick import unparse_newick
from biophylo.unparsers.nexml import unparse_nexml
from biophylo.unparsers.nexus import unparse_nexus
from biophylo.unparsers.pagel import unparse_pagel
from biophylo.unparsers.table import unparse_table

__all__ = [
    "EntityEncoder",
    "dump_json",
    "unparse_json",
    "unparse_mrp",
    "unparse_newick",
    "unparse_nexml",
    "unparse_nexus",
    "unparse_pagel",
    "unparse_table",
]

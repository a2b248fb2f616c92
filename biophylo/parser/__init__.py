from biophylo.parser.newick_parser import parse_metadata, parse_newick
from biophylo.parser.table_parser import parse_table
from biophylo.parser.taxlist_parser import parse_taxlist

__all__ = ["parse_newick", "parse_metadata", "parse_table", "parse_taxlist"]

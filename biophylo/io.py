"""
Format-dispatching entry points for reading and writing phylogenetic data.

    forest = parse("newick", string="((A,B),C);")
    text = unparse("nexus", forest)
"""

import logging
from typing import IO, Any, Callable, Dict, Optional, Union

from biophylo.exceptions import BadArgumentsError, BadFormatError
from biophylo.forest.forest import Forest
from biophylo.parser.newick_parser import parse_newick
from biophylo.parser.table_parser import parse_table
from biophylo.parser.taxlist_parser import parse_taxlist
from biophylo.unparsers import (
    dump_json,
    unparse_json,
    unparse_mrp,
    unparse_newick,
    unparse_nexml,
    unparse_nexus,
    unparse_pagel,
    unparse_table,
)

logger = logging.getLogger(__name__)


def _parse_newick_forest(text: str, **options: Any) -> Forest:
    forest = Forest(**options)
    forest.insert(*parse_newick(text))
    return forest


READERS: Dict[str, Callable[..., Any]] = {
    "newick": _parse_newick_forest,
    "table": parse_table,
    "taxlist": parse_taxlist,
}

WRITERS: Dict[str, Callable[..., str]] = {
    "newick": unparse_newick,
    "nexus": unparse_nexus,
    "mrp": unparse_mrp,
    "nexml": unparse_nexml,
    "pagel": unparse_pagel,
    "table": unparse_table,
    "json": unparse_json,
}


def _lookup(table: Dict[str, Callable[..., Any]], format: str, direction: str) -> Callable[..., Any]:
    try:
        return table[format.lower()]
    except KeyError:
        raise BadFormatError(
            f"Can't {direction} format {format!r}; known formats: {', '.join(sorted(table))}"
        ) from None


def parse(
    format: str,
    string: Optional[str] = None,
    file: Optional[Union[str, IO[str]]] = None,
    **options: Any,
) -> Any:
    """
    Read ``string`` (or the content of ``file``, a path or an open text handle) as ``format``.

    Returns a Forest for ``newick``, a Matrix for ``table`` and Taxa for ``taxlist``.
    """
    reader = _lookup(READERS, format, "parse")
    if string is None:
        if file is None:
            raise BadArgumentsError("parse() needs a string or a file")
        if isinstance(file, str):
            with open(file) as f:
                string = f.read()
        else:
            string = file.read()
    logger.debug(f"Parsing {len(string)} characters of {format}")
    return reader(string, **options)


def unparse(format: str, phylo: Any, **options: Any) -> str:
    return _lookup(WRITERS, format, "unparse")(phylo, **options)


def read_newick(path: str) -> Forest:
    return parse("newick", file=path)


def write_newick(phylo: Any, path: str, **options: Any) -> None:
    with open(path, mode="w") as f:
        f.write(unparse_newick(phylo, **options))


def write_json(phylo: Any, path: str, **options: Any) -> None:
    with open(path, mode="w") as f:
        dump_json(phylo, f, **options)


__all__ = [
    "parse",
    "unparse",
    "read_newick",
    "write_newick",
    "write_json",
    "dump_json",
]

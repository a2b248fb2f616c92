"""Reader for delimited character tables: one row per taxon, name in the first field."""

import logging
from typing import Any, Optional

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError
from biophylo.matrices.datum import Datum
from biophylo.matrices.matrix import Matrix
from biophylo.taxa.taxon import Taxon

logger = logging.getLogger(__name__)


def parse_table(
    text: str,
    fieldsep: str = "\t",
    linesep: str = "\n",
    type: Any = "standard",
    taxa: Optional[Any] = None,
) -> Matrix:
    """
    Build a matrix from delimited text.

    Each line is ``name<fieldsep>char<fieldsep>char...``; a line with a single character
    field is split into symbols by the datatype. When a ``taxa`` block is given, row names
    missing from it are added and the matrix is cross-referenced to it. The block is
    owned by the caller.
    """
    if taxa is not None and getattr(taxa, "_type", None) != ObjectType.TAXA:
        raise TypeMismatchError(f"{taxa!r} is not a taxa block")
    matrix = Matrix(type=type)
    type_object = matrix.get_type_object()
    for line in text.split(linesep):
        if not line.strip():
            continue
        fields = line.rstrip("\r").split(fieldsep)
        name, chars = fields[0].strip(), [field.strip() for field in fields[1:]]
        if len(chars) == 1:
            chars = type_object.split(chars[0])
        matrix.insert(Datum(name=name, type_object=type_object, char=chars))
        if taxa is not None and taxa.get_by_name(name) is None:
            taxa.insert(Taxon(name=name))
    if taxa is not None:
        matrix.cross_reference(taxa)
    logger.debug(f"Parsed table with {matrix.get_ntax()} rows")
    return matrix

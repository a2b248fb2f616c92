from typing import Any

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError
from biophylo.logger.table_logger import format_table


def unparse_table(matrix: Any, tablefmt: str = "plain", header: bool = False, **options: Any) -> str:
    """Matrix as a text table: row label followed by one column per character."""
    if getattr(matrix, "_type", None) != ObjectType.MATRIX:
        raise TypeMismatchError(f"Table output needs a matrix, got {matrix!r}")
    rows = [[datum.get_label()] + datum.get_char() for datum in matrix]
    headers = None
    if header:
        labels = matrix.get_charlabels() or [str(i) for i in range(1, matrix.get_nchar() + 1)]
        headers = [""] + labels
    return format_table(rows, headers=headers, tablefmt=tablefmt) + "\n"

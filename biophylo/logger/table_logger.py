"""Tabular output for logs and text export."""

from typing import Any, List, Optional, Sequence

from tabulate import tabulate

from biophylo.logger.base_logger import PhyloLogger


def format_table(
    data: Sequence[Sequence[Any]],
    headers: Optional[Sequence[str]] = None,
    tablefmt: str = "plain",
    colalign: Optional[Sequence[Optional[str]]] = None,
) -> str:
    return tabulate(
        data,
        headers=list(headers) if headers else [],
        tablefmt=tablefmt,
        colalign=colalign,
        showindex=False,
    )


class TableLogger(PhyloLogger):
    """PhyloLogger with table support."""

    def table(
        self,
        data: List[List[Any]],
        headers: Optional[List[str]] = None,
        title: Optional[str] = None,
        tablefmt: str = "grid",
        colalign: Optional[Sequence[Optional[str]]] = None,
    ) -> None:
        """Display data as a formatted table."""
        if self.disabled:
            return
        if title:
            self.logger.info(f"\n{title}:")
        self.info(format_table(data, headers=headers, tablefmt=tablefmt, colalign=colalign))

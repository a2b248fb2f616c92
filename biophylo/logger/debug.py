"""Shared debug logger for structural errors; disabled unless switched on."""

from biophylo.logger.table_logger import TableLogger

phylo_logger = TableLogger("biophylo.debug")
phylo_logger.disabled = True

from biophylo.logger.base_logger import PhyloLogger
from biophylo.logger.debug import phylo_logger
from biophylo.logger.table_logger import TableLogger, format_table
from biophylo.logger.verbosity import (
    DEBUG,
    ERROR,
    FATAL,
    INFO,
    WARN,
    get_verbosity,
    set_verbosity,
    setup_console_logging,
)

__all__ = [
    "PhyloLogger",
    "TableLogger",
    "format_table",
    "phylo_logger",
    "set_verbosity",
    "get_verbosity",
    "setup_console_logging",
    "FATAL",
    "ERROR",
    "WARN",
    "INFO",
    "DEBUG",
]

"""Base logging functionality for tracing model operations."""

import logging
from typing import Any


class PhyloLogger:
    """Named logger wrapper that can be switched off as a whole."""

    def __init__(self, name: str):
        self.name = name
        self.disabled = False

        # Create logger with single handler to avoid duplication
        self.logger = logging.getLogger(name)

        # Only add a default StreamHandler if no handlers exist, so that loggers sharing
        # a name do not print every message twice.
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)
            self.logger.propagate = False
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

    def section(self, title: str):
        """Start a new section in the log."""
        if self.disabled:
            return
        self.logger.info(f"\n{'=' * 20} {title} {'=' * 20}\n")

    def subsection(self, title: str):
        if self.disabled:
            return
        self.logger.info(f"\n{'-' * 15} {title} {'-' * 15}\n")

    def info(self, message: str):
        if self.disabled:
            return
        self.logger.info(message)

    def warning(self, message: str):
        if self.disabled:
            return
        self.logger.warning(message)

    def error(self, message: str):
        if self.disabled:
            return
        self.logger.error(message)

    def debug(self, message: str):
        if self.disabled:
            return
        self.logger.debug(message)

    def result(self, label: str, value: Any):
        """Log a result with a label."""
        if self.disabled:
            return
        self.logger.info(f"{label}: {value}")

import logging

import pytest

from biophylo.core.mediator import reset_mediator
from biophylo.core.registry import reset_registry


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@pytest.fixture(autouse=True)
def fresh_services():
    """Every test starts with an empty registry and mediator."""
    reset_registry()
    reset_mediator()
    yield

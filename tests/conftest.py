"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from tests.fixtures.fake_client import FakeTemplateClient
from transloadify.cli.output import BufferedOutput


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers the CLI attaches so they never outlive a CliRunner stream."""
    yield
    app_logger = logging.getLogger("transloadify")
    for handler in list(app_logger.handlers):
        handler.close()
    app_logger.handlers.clear()
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture
def client():
    """In-memory template service."""
    return FakeTemplateClient()


@pytest.fixture
def output():
    """Buffered output sink for inspecting what a command emitted."""
    return BufferedOutput()

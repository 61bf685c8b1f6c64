"""Unit test fixtures.

Unit tests never touch the network: the model runtime is the scripted one
from the top-level conftest, and Prometheus counters are plain in-process
objects.
"""

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_structlog_context():
    """Keep contextvars bound by one test out of the next."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()

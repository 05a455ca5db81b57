"""Shared test setup: SQLite database, settings, gateway doubles."""

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="sales-agent-tests-")

# Settings are read at import time, so the environment must be in place first.
os.environ.update({
    "INIT_MODE": "test",
    "FRONTEND_URL": "http://localhost:3000",
    "DB_DRIVER_NAME": "sqlite",
    "DB_DATABASE_NAME": os.path.join(_DB_DIR, "sales_agent.db"),
    "API_KEY": "test-key",
    "SECRET_KEY": "test-secret",
    "GOOGLE_CLIENT_ID": "client-id.apps.googleusercontent.com",
    "GOOGLE_CLIENT_SECRET": "client-secret",
    "GOOGLE_CALLBACK_URL": "http://localhost:5000/auth/google/callback",
    "LABEL_MATCHING": "strict",
})

from unittest.mock import AsyncMock, Mock

import pytest

from sales_agent.api.models import ChatMessage
from sales_agent.database.config.connection_engine import connection_engine, metadata
from sales_agent.database.core.funcs import create_schema

create_schema()


@pytest.fixture(autouse=True)
def clean_tables():
    """Every test starts from empty tables."""
    with connection_engine.begin() as conn:
        for table in reversed(metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def make_gateway():
    """Gateway double whose `complete` answers from the given outputs in order.

    Exceptions in the outputs are raised at their turn.
    """
    def _make(*outputs):
        gateway = Mock()
        gateway.complete = AsyncMock(side_effect=list(outputs))
        return gateway
    return _make


@pytest.fixture
def transcript():
    """Builds a transcript from alternating user/assistant texts, user first."""
    def _build(*texts):
        roles = ("user", "assistant")
        return [ChatMessage(role=roles[i % 2], content=text) for i, text in enumerate(texts)]
    return _build

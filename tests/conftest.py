"""
Shared pytest fixtures and configuration for all tests.
"""
import logging
import os

import pytest
from hypothesis import settings, Verbosity, Phase

from fakes import FakeDynamoClient, FakeTable, InMemorySessionStore
from session.dynamodb_store import DynamoDBSessionStore

# Hypothesis profiles; select with HYPOTHESIS_PROFILE
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo root logger changes made by TelemetryService during a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_table() -> FakeTable:
    """In-memory DynamoDB table using the default hash key."""
    return FakeTable()


@pytest.fixture
def fake_client() -> FakeDynamoClient:
    """Low-level DynamoDB client whose session table already exists."""
    return FakeDynamoClient(table_exists=True)


@pytest.fixture
def store(fake_table, fake_client) -> DynamoDBSessionStore:
    """A DynamoDBSessionStore wired to the in-memory fakes."""
    store = DynamoDBSessionStore()
    store.table = fake_table
    store.client = fake_client
    return store


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    """Dict-backed SessionStore for middleware and application tests."""
    return InMemorySessionStore()

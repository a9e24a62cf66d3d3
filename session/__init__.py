"""
Session persistence for the session store service.

This module provides the session store contract and a DynamoDB-backed
implementation that keeps HTTP session state in an external table.
"""

from session.store import SessionStore
from session.table import SessionTableConfig
from session.dynamodb_store import DynamoDBSessionStore
from session.constants import DEFAULT_SESSION_TTL

__all__ = [
    "SessionStore",
    "SessionTableConfig",
    "DynamoDBSessionStore",
    "DEFAULT_SESSION_TTL",
]

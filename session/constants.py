"""
Default values for the DynamoDB session table.

These match the defaults of the table layout expected by existing
deployments, so a store created without options reads and writes the
same records.
"""

from datetime import timedelta


DEFAULT_TABLE_NAME = "sessions"
DEFAULT_HASH_KEY = "sessionId"
DEFAULT_HASH_PREFIX = "sess:"

# Provisioned throughput used when the table has to be created
DEFAULT_RCU = 5
DEFAULT_WCU = 5

# Default TTL of 1 day when the session carries no max age of its own
DEFAULT_SESSION_TTL = timedelta(days=1)

EXPIRES_ATTRIBUTE = "expires"
SESSION_ATTRIBUTE = "sess"

API_VERSION = "2012-08-10"

"""
Static configuration of the DynamoDB session table.
"""

from dataclasses import dataclass
from typing import Any

from session.constants import (
    DEFAULT_HASH_KEY,
    DEFAULT_HASH_PREFIX,
    DEFAULT_RCU,
    DEFAULT_TABLE_NAME,
    DEFAULT_WCU,
    EXPIRES_ATTRIBUTE,
)


@dataclass(frozen=True)
class SessionTableConfig:
    """
    Layout and provisioning options of the session table.

    Attributes:
        name: DynamoDB table name
        hash_key: Partition key attribute holding the prefixed session id
        hash_prefix: Prefix prepended to every session id
        read_capacity_units: Provisioned RCU used when creating the table
        write_capacity_units: Provisioned WCU used when creating the table
        expires_attribute: Attribute holding the expiration (epoch seconds)
        enable_ttl: Enable native DynamoDB TTL on ``expires_attribute``
            when the table is created
    """
    name: str = DEFAULT_TABLE_NAME
    hash_key: str = DEFAULT_HASH_KEY
    hash_prefix: str = DEFAULT_HASH_PREFIX
    read_capacity_units: int = DEFAULT_RCU
    write_capacity_units: int = DEFAULT_WCU
    expires_attribute: str = EXPIRES_ATTRIBUTE
    enable_ttl: bool = False

    def session_key(self, session_id: str) -> str:
        """Derive the partition key value for a session id."""
        return f"{self.hash_prefix}{session_id}"

    def create_table_params(self) -> dict[str, Any]:
        """Build the CreateTable request for this layout."""
        return {
            "TableName": self.name,
            "KeySchema": [{"AttributeName": self.hash_key, "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": self.hash_key, "AttributeType": "S"}
            ],
            "ProvisionedThroughput": {
                "ReadCapacityUnits": int(self.read_capacity_units),
                "WriteCapacityUnits": int(self.write_capacity_units),
            },
        }

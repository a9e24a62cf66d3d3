"""
DynamoDB-based session store implementation.

This module provides a DynamoDB-backed implementation of the SessionStore
interface. Each session is one item keyed by a prefixed session id:

    { <hash_key>: "sess:<id>", "expires": <epoch seconds>, "sess": "<json>" }

Payloads stored as a DynamoDB map rather than a JSON string are read back
as they are.

Expiration is enforced on read, so records past their ``expires`` value
are never served even before DynamoDB's TTL sweeper removes them.

The table is provisioned on connect() when it does not exist yet.
"""

import inspect
import json
import logging
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Union

import aioboto3
from botocore.exceptions import ClientError

from session.constants import API_VERSION, DEFAULT_SESSION_TTL, SESSION_ATTRIBUTE
from session.expiration import get_expiration, is_expired
from session.store import SessionStore
from session.table import SessionTableConfig

logger = logging.getLogger(__name__)

ReadyCallback = Callable[[Optional[BaseException]], Union[None, Awaitable[None]]]


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class DynamoDBSessionStore(SessionStore):
    """
    DynamoDB-backed session store.

    Attributes:
        table_config: Table layout and provisioning options
        default_ttl: TTL applied when neither the call nor the session
            specifies a max age (default: 1 day)
        dynamo_params: Keyword arguments for the aioboto3 DynamoDB resource
            (region_name, endpoint_url, credentials)
        on_ready: Callback invoked once provisioning finishes, with None on
            success or the raised exception on failure
        client: Low-level DynamoDB client (set by connect())
        table: DynamoDB Table resource (set by connect())
    """

    def __init__(
        self,
        table: Optional[SessionTableConfig] = None,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        dynamo_params: Optional[dict[str, Any]] = None,
        on_ready: Optional[ReadyCallback] = None,
    ):
        self.table_config = table or SessionTableConfig()
        self.default_ttl = ttl
        self.dynamo_params = dict(dynamo_params or {})
        self.on_ready = on_ready
        self.client = None
        self.table = None
        self._exit_stack: Optional[AsyncExitStack] = None

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        on_ready: Optional[ReadyCallback] = None,
    ) -> "DynamoDBSessionStore":
        """
        Build a store from application settings.

        Args:
            settings: A config.settings.Settings instance
            on_ready: Optional readiness callback

        Returns:
            An unconnected DynamoDBSessionStore
        """
        table = SessionTableConfig(
            name=settings.session_table_name,
            hash_key=settings.session_hash_key,
            hash_prefix=settings.session_hash_prefix,
            read_capacity_units=settings.session_read_capacity_units,
            write_capacity_units=settings.session_write_capacity_units,
            expires_attribute=settings.session_expires_attribute,
            enable_ttl=settings.session_enable_ttl,
        )

        dynamo_params: dict[str, Any] = {}
        if settings.aws_region:
            dynamo_params["region_name"] = settings.aws_region
        if settings.dynamodb_endpoint_url:
            dynamo_params["endpoint_url"] = settings.dynamodb_endpoint_url

        return cls(
            table=table,
            ttl=timedelta(seconds=settings.session_ttl_seconds),
            dynamo_params=dynamo_params,
            on_ready=on_ready,
        )

    async def connect(self) -> None:
        """
        Open the DynamoDB resource and provision the table.

        Must be called before any other operation.

        Raises:
            ClientError: If the table cannot be described or created. The
                resource is closed again before the error propagates.
        """
        self._exit_stack = AsyncExitStack()
        resource = await self._exit_stack.enter_async_context(
            aioboto3.Session().resource(
                "dynamodb", api_version=API_VERSION, **self.dynamo_params
            )
        )
        try:
            self.client = resource.meta.client
            self.table = await resource.Table(self.table_config.name)
            await self.initialize()
        except BaseException:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Close the DynamoDB resource."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
        self.client = None
        self.table = None

    async def initialize(self) -> None:
        """
        Provision the table and report readiness.

        The readiness callback receives the provisioning error, which is
        then re-raised so startup does not continue without a table.
        """
        try:
            await self.ensure_table()
        except Exception as e:
            await self._signal_ready(e)
            raise
        await self._signal_ready(None)

    async def ensure_table(self) -> bool:
        """
        Create the session table if it does not exist.

        Returns:
            True if the table was created, False if it already existed.

        Raises:
            ClientError: For any DescribeTable failure other than a
                missing table, or if creation fails.
        """
        self._require_connection()
        table_name = self.table_config.name

        try:
            await self.client.describe_table(TableName=table_name)
            logger.debug("Session table exists", extra={
                "extra_data": {"table": table_name}
            })
            return False
        except ClientError as e:
            if _error_code(e) != "ResourceNotFoundException":
                raise

        logger.info("Creating session table", extra={
            "extra_data": {
                "table": table_name,
                "read_capacity_units": self.table_config.read_capacity_units,
                "write_capacity_units": self.table_config.write_capacity_units,
            }
        })

        try:
            await self.client.create_table(**self.table_config.create_table_params())
        except ClientError as e:
            # Another process got there first
            if _error_code(e) != "ResourceInUseException":
                raise
            logger.info("Session table is already being created", extra={
                "extra_data": {"table": table_name}
            })

        waiter = self.client.get_waiter("table_exists")
        await waiter.wait(TableName=table_name)

        if self.table_config.enable_ttl:
            await self.client.update_time_to_live(
                TableName=table_name,
                TimeToLiveSpecification={
                    "Enabled": True,
                    "AttributeName": self.table_config.expires_attribute,
                },
            )

        logger.info("Session table ready", extra={
            "extra_data": {"table": table_name}
        })
        return True

    def _require_connection(self) -> None:
        if self.client is None or self.table is None:
            raise RuntimeError("DynamoDB not connected. Call connect() first.")

    async def _signal_ready(self, error: Optional[BaseException]) -> None:
        if self.on_ready is None:
            return
        result = self.on_ready(error)
        if inspect.isawaitable(result):
            await result

    def _get_key(self, session_id: str) -> dict[str, str]:
        return {self.table_config.hash_key: self.table_config.session_key(session_id)}

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """
        Retrieve session data by session ID.

        Returns:
            The session payload if the record exists and has not expired,
            None otherwise.

        Raises:
            ClientError: Passed through unchanged from DynamoDB.
        """
        self._require_connection()

        response = await self.table.get_item(Key=self._get_key(session_id))
        item = response.get("Item")
        if not item:
            return None

        if is_expired(item.get(self.table_config.expires_attribute)):
            logger.debug("Session expired", extra={
                "extra_data": {"session_key": self.table_config.session_key(session_id)}
            })
            return None

        payload = item.get(SESSION_ATTRIBUTE)
        if payload is None:
            return None
        # Records written by other clients may hold the payload as a map
        if isinstance(payload, str):
            return json.loads(payload)
        return payload

    async def set(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: Optional[timedelta] = None
    ) -> None:
        """
        Write the full session record, overwriting any existing one.

        Raises:
            ClientError: Passed through unchanged from DynamoDB.
        """
        self._require_connection()

        expires = get_expiration(data, self.default_ttl, ttl)
        item = {
            **self._get_key(session_id),
            self.table_config.expires_attribute: expires,
            SESSION_ATTRIBUTE: json.dumps(data),
        }
        await self.table.put_item(Item=item)

    async def destroy(self, session_id: str) -> None:
        """
        Delete the session record. Deleting a missing record succeeds.

        Raises:
            ClientError: Passed through unchanged from DynamoDB.
        """
        self._require_connection()
        await self.table.delete_item(Key=self._get_key(session_id))

    async def touch(
        self,
        session_id: str,
        data: dict[str, Any],
        ttl: Optional[timedelta] = None
    ) -> bool:
        """
        Push the expiration forward, leaving the payload untouched.

        Returns:
            True if the record was refreshed, False if it does not exist.

        Raises:
            ClientError: Passed through unchanged from DynamoDB, except the
                conditional check failure for a missing record.
        """
        self._require_connection()

        expires = get_expiration(data, self.default_ttl, ttl)
        try:
            await self.table.update_item(
                Key=self._get_key(session_id),
                UpdateExpression="SET #expires = :expires",
                ConditionExpression="attribute_exists(#key)",
                ExpressionAttributeNames={
                    "#expires": self.table_config.expires_attribute,
                    "#key": self.table_config.hash_key,
                },
                ExpressionAttributeValues={":expires": expires},
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    async def health_check(self) -> bool:
        """
        Check that the session table is reachable and ACTIVE.

        Note:
            This method does not raise exceptions - connectivity issues
            are caught and result in a False return value.
        """
        if self.client is None:
            return False

        try:
            response = await self.client.describe_table(
                TableName=self.table_config.name
            )
            return response.get("Table", {}).get("TableStatus") == "ACTIVE"
        except Exception:
            return False

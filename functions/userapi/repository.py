"""
User repositories: an in-memory implementation for tests/local runs and a
DynamoDB-backed implementation for deployed environments.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from userapi.errors import BackendError, NotFoundError
from userapi.models import User

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "user not found"


class UserRepository(Protocol):
    """Operations the handlers need from user storage."""

    def create(self, user: User) -> User:
        ...

    def get_by_id(self, user_id: str) -> User:
        ...

    def list(self) -> list[User]:
        ...

    def update(self, user: User) -> User:
        ...

    def delete(self, user_id: str) -> None:
        ...


@dataclass
class InMemoryUserRepository:
    """Process-local store. One instance is shared by every request."""

    users: dict[str, User] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()

    def create(self, user: User) -> User:
        with self._lock:
            self.users[user.id] = user
        return user

    def get_by_id(self, user_id: str) -> User:
        with self._lock:
            user = self.users.get(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        return user

    def list(self) -> list[User]:
        with self._lock:
            return list(self.users.values())

    def update(self, user: User) -> User:
        with self._lock:
            if user.id not in self.users:
                raise NotFoundError(USER_NOT_FOUND)
            self.users[user.id] = user
        return user

    def delete(self, user_id: str) -> None:
        with self._lock:
            if user_id not in self.users:
                raise NotFoundError(USER_NOT_FOUND)
            del self.users[user_id]

    def reset(self) -> None:
        """Clear all stored users (useful in tests)."""
        with self._lock:
            self.users.clear()


_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def marshal_user(user: User) -> dict[str, Any]:
    return {key: _serializer.serialize(value) for key, value in user.as_dict().items()}


def unmarshal_user(item: dict[str, Any]) -> User:
    data = {key: _deserializer.deserialize(value) for key, value in item.items()}
    return User.from_dict(data)


def _is_conditional_check_failure(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code")
    return code == "ConditionalCheckFailedException"


class DynamoDbUserRepository:
    """
    DynamoDB table with one item per user keyed by ``id``.
    """

    def __init__(self, client: Any, table_name: str):
        if not table_name:
            raise ValueError("DYNAMODB_TABLE_NAME is required for DynamoDbUserRepository")
        self.client = client
        self.table_name = table_name

    @classmethod
    def from_settings(
        cls,
        table_name: str,
        region: str,
        endpoint_url: Optional[str] = None,
    ) -> "DynamoDbUserRepository":
        client = boto3.client(
            "dynamodb",
            region_name=region,
            endpoint_url=endpoint_url or None,
        )
        return cls(client, table_name)

    def _key(self, user_id: str) -> dict[str, Any]:
        return {"id": _serializer.serialize(user_id)}

    def create(self, user: User) -> User:
        try:
            self.client.put_item(TableName=self.table_name, Item=marshal_user(user))
        except (BotoCoreError, ClientError) as exc:
            raise BackendError(f"failed to put item to DynamoDB: {exc}") from exc
        return user

    def get_by_id(self, user_id: str) -> User:
        try:
            result = self.client.get_item(
                TableName=self.table_name, Key=self._key(user_id)
            )
        except (BotoCoreError, ClientError) as exc:
            raise BackendError(f"failed to get item from DynamoDB: {exc}") from exc

        item = result.get("Item")
        if not item:
            raise NotFoundError(USER_NOT_FOUND)
        try:
            return unmarshal_user(item)
        except (KeyError, TypeError, ValueError) as exc:
            raise BackendError(f"failed to unmarshal item: {exc}") from exc

    def list(self) -> list[User]:
        # Scan failures degrade to an empty list; callers cannot tell this
        # apart from an empty table, so the failure is always logged.
        users: list[User] = []
        try:
            paginator = self.client.get_paginator("scan")
            for page in paginator.paginate(TableName=self.table_name):
                for item in page.get("Items", []):
                    users.append(unmarshal_user(item))
        except (BotoCoreError, ClientError):
            logger.exception("Failed to scan items from DynamoDB table %s", self.table_name)
            return []
        except (KeyError, TypeError, ValueError):
            logger.exception("Failed to unmarshal scan items from %s", self.table_name)
            return []
        return users

    def update(self, user: User) -> User:
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item=marshal_user(user),
                ConditionExpression="attribute_exists(id)",
            )
        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                raise NotFoundError(USER_NOT_FOUND) from exc
            raise BackendError(f"failed to update item in DynamoDB: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendError(f"failed to update item in DynamoDB: {exc}") from exc
        return user

    def delete(self, user_id: str) -> None:
        try:
            self.client.delete_item(
                TableName=self.table_name,
                Key=self._key(user_id),
                ConditionExpression="attribute_exists(id)",
            )
        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                raise NotFoundError(USER_NOT_FOUND) from exc
            raise BackendError(f"failed to delete item from DynamoDB: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendError(f"failed to delete item from DynamoDB: {exc}") from exc

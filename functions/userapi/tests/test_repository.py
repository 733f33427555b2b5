import unittest
from datetime import datetime, timezone

import boto3
from botocore.stub import Stubber

from userapi.errors import BackendError, NotFoundError
from userapi.models import User
from userapi.repository import (
    DynamoDbUserRepository,
    InMemoryUserRepository,
    marshal_user,
    unmarshal_user,
)

TABLE = "users-test"


def _user(user_id="u-1", name="Alice", email="alice@example.com"):
    return User(
        id=user_id,
        name=name,
        email=email,
        created_at=datetime(2024, 5, 1, 12, 30, 0, 123456, tzinfo=timezone.utc),
    )


class InMemoryUserRepositoryTests(unittest.TestCase):
    def setUp(self):
        self.repo = InMemoryUserRepository()

    def test_create_and_get(self):
        user = _user()
        self.assertEqual(self.repo.create(user), user)
        self.assertEqual(self.repo.get_by_id(user.id), user)

    def test_get_missing_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.repo.get_by_id("missing")
        self.assertEqual(ctx.exception.message, "user not found")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_update_replaces_existing_only(self):
        with self.assertRaises(NotFoundError):
            self.repo.update(_user())

        self.repo.create(_user())
        self.repo.update(_user(name="Alicia"))
        self.assertEqual(self.repo.get_by_id("u-1").name, "Alicia")

    def test_delete(self):
        self.repo.create(_user())
        self.repo.delete("u-1")
        self.assertEqual(self.repo.list(), [])
        with self.assertRaises(NotFoundError):
            self.repo.delete("u-1")

    def test_instances_do_not_share_state(self):
        other = InMemoryUserRepository()
        self.repo.create(_user())
        self.assertEqual(other.list(), [])

    def test_reset(self):
        self.repo.create(_user("a"))
        self.repo.create(_user("b"))
        self.assertEqual(len(self.repo.list()), 2)
        self.repo.reset()
        self.assertEqual(self.repo.list(), [])


class MarshalTests(unittest.TestCase):
    def test_attribute_map_layout(self):
        item = marshal_user(_user())
        self.assertEqual(
            item,
            {
                "id": {"S": "u-1"},
                "name": {"S": "Alice"},
                "email": {"S": "alice@example.com"},
                "created_at": {"S": "2024-05-01T12:30:00.123456Z"},
            },
        )
        self.assertEqual(unmarshal_user(item), _user())


class DynamoDbUserRepositoryTests(unittest.TestCase):
    def setUp(self):
        self.client = boto3.client(
            "dynamodb",
            region_name="us-east-1",
            aws_access_key_id="testing",
            aws_secret_access_key="testing",
        )
        self.stubber = Stubber(self.client)
        self.stubber.activate()
        self.repo = DynamoDbUserRepository(self.client, TABLE)

    def tearDown(self):
        self.stubber.deactivate()

    def test_requires_table_name(self):
        with self.assertRaises(ValueError):
            DynamoDbUserRepository(self.client, "")

    def test_create_puts_item(self):
        user = _user()
        self.stubber.add_response(
            "put_item", {}, {"TableName": TABLE, "Item": marshal_user(user)}
        )
        self.assertEqual(self.repo.create(user), user)
        self.stubber.assert_no_pending_responses()

    def test_create_wraps_backend_errors(self):
        self.stubber.add_client_error(
            "put_item", service_error_code="ProvisionedThroughputExceededException"
        )
        with self.assertRaises(BackendError) as ctx:
            self.repo.create(_user())
        self.assertTrue(ctx.exception.message.startswith("failed to put item to DynamoDB"))

    def test_get_by_id(self):
        user = _user()
        self.stubber.add_response(
            "get_item",
            {"Item": marshal_user(user)},
            {"TableName": TABLE, "Key": {"id": {"S": "u-1"}}},
        )
        self.assertEqual(self.repo.get_by_id("u-1"), user)

    def test_get_by_id_missing_item(self):
        self.stubber.add_response(
            "get_item", {}, {"TableName": TABLE, "Key": {"id": {"S": "nope"}}}
        )
        with self.assertRaises(NotFoundError):
            self.repo.get_by_id("nope")

    def test_get_by_id_backend_error(self):
        self.stubber.add_client_error("get_item", service_error_code="ResourceNotFoundException")
        with self.assertRaises(BackendError):
            self.repo.get_by_id("u-1")

    def test_list_scans_all_pages(self):
        first, second = _user("a"), _user("b")
        self.stubber.add_response(
            "scan",
            {"Items": [marshal_user(first)], "LastEvaluatedKey": {"id": {"S": "a"}}},
            {"TableName": TABLE},
        )
        self.stubber.add_response(
            "scan",
            {"Items": [marshal_user(second)]},
            {"TableName": TABLE, "ExclusiveStartKey": {"id": {"S": "a"}}},
        )
        self.assertEqual(self.repo.list(), [first, second])

    def test_list_degrades_to_empty_on_scan_failure(self):
        self.stubber.add_client_error("scan", service_error_code="InternalServerError")
        with self.assertLogs("userapi.repository", level="ERROR"):
            self.assertEqual(self.repo.list(), [])

    def test_list_degrades_to_empty_on_bad_item(self):
        self.stubber.add_response(
            "scan", {"Items": [{"id": {"S": "broken"}}]}, {"TableName": TABLE}
        )
        with self.assertLogs("userapi.repository", level="ERROR"):
            self.assertEqual(self.repo.list(), [])

    def test_update_requires_existing_item(self):
        user = _user()
        self.stubber.add_response(
            "put_item",
            {},
            {
                "TableName": TABLE,
                "Item": marshal_user(user),
                "ConditionExpression": "attribute_exists(id)",
            },
        )
        self.assertEqual(self.repo.update(user), user)

        self.stubber.add_client_error(
            "put_item", service_error_code="ConditionalCheckFailedException"
        )
        with self.assertRaises(NotFoundError):
            self.repo.update(user)

    def test_delete(self):
        self.stubber.add_response(
            "delete_item",
            {},
            {
                "TableName": TABLE,
                "Key": {"id": {"S": "u-1"}},
                "ConditionExpression": "attribute_exists(id)",
            },
        )
        self.repo.delete("u-1")

        self.stubber.add_client_error(
            "delete_item", service_error_code="ConditionalCheckFailedException"
        )
        with self.assertRaises(NotFoundError):
            self.repo.delete("u-1")

        self.stubber.add_client_error("delete_item", service_error_code="InternalServerError")
        with self.assertRaises(BackendError):
            self.repo.delete("u-1")


if __name__ == "__main__":
    unittest.main()

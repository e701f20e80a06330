from __future__ import annotations

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from leaselock.core.errors import ConditionFailed
from leaselock.core.models import LockRecord
from leaselock.core.store import ConditionKind, WriteCondition
from leaselock.core.store_dynamodb import DynamoDBLockStore


NOW = 1_700_000_000_000
ACQUIRE_EXPRESSION = (
    "attribute_not_exists(lock_path)"
    " OR (lock_owner <> :owner AND lock_expiration <= :now)"
    " OR lock_owner = :owner"
)
RENEW_EXPRESSION = "attribute_exists(lock_path) AND lock_owner = :owner AND lock_expiration > :now"


@pytest.fixture
def client():
    return boto3.client(
        "dynamodb",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def put_params(kind_expression: str, record: LockRecord) -> dict:
    return {
        "TableName": "DYNAMODB_LOCKS",
        "Item": {
            "lock_path": {"S": record.key},
            "lock_owner": {"S": record.owner_id},
            "lock_expiration": {"N": str(record.expires_at_ms)},
            "lock_ttl": {"N": str(record.ttl_hint)},
        },
        "ConditionExpression": kind_expression,
        "ExpressionAttributeValues": {":owner": {"S": "me"}, ":now": {"N": str(NOW)}},
    }


def test_acquire_issues_conditional_put(client):
    store = DynamoDBLockStore(client)
    record = LockRecord.for_lease("job", "me", NOW + 60_000)

    with Stubber(client) as stubber:
        stubber.add_response("put_item", {}, put_params(ACQUIRE_EXPRESSION, record))
        store.conditional_put("DYNAMODB_LOCKS", record, WriteCondition(ConditionKind.ACQUIRABLE, "me", NOW))
        stubber.assert_no_pending_responses()


def test_failed_check_raises_condition_failed(client):
    store = DynamoDBLockStore(client)
    record = LockRecord.for_lease("job", "me", NOW + 60_000)

    with Stubber(client) as stubber:
        stubber.add_client_error(
            "put_item",
            service_error_code="ConditionalCheckFailedException",
            http_status_code=400,
            expected_params=put_params(RENEW_EXPRESSION, record),
        )
        with pytest.raises(ConditionFailed):
            store.conditional_put("DYNAMODB_LOCKS", record, WriteCondition(ConditionKind.HELD, "me", NOW))


def test_other_client_errors_propagate(client):
    store = DynamoDBLockStore(client)
    record = LockRecord.for_lease("job", "me", NOW + 60_000)

    with Stubber(client) as stubber:
        stubber.add_client_error(
            "put_item",
            service_error_code="ProvisionedThroughputExceededException",
            http_status_code=400,
        )
        with pytest.raises(ClientError) as excinfo:
            store.conditional_put("DYNAMODB_LOCKS", record, WriteCondition(ConditionKind.ACQUIRABLE, "me", NOW))
    assert not isinstance(excinfo.value, ConditionFailed)


def test_release_issues_owner_gated_delete(client):
    store = DynamoDBLockStore(client)
    expected = {
        "TableName": "DYNAMODB_LOCKS",
        "Key": {"lock_path": {"S": "job"}},
        "ConditionExpression": "lock_owner = :owner",
        "ExpressionAttributeValues": {":owner": {"S": "me"}},
    }

    with Stubber(client) as stubber:
        stubber.add_response("delete_item", {}, expected)
        stubber.add_client_error(
            "delete_item",
            service_error_code="ConditionalCheckFailedException",
            http_status_code=400,
            expected_params=expected,
        )
        store.conditional_delete("DYNAMODB_LOCKS", "job", WriteCondition(ConditionKind.OWNED, "me"))
        with pytest.raises(ConditionFailed):
            store.conditional_delete("DYNAMODB_LOCKS", "job", WriteCondition(ConditionKind.OWNED, "me"))


def test_unsupported_conditions_are_rejected(client):
    store = DynamoDBLockStore(client)
    with pytest.raises(ValueError):
        store.conditional_put("T", LockRecord.for_lease("job", "me", NOW), WriteCondition(ConditionKind.OWNED, "me"))
    with pytest.raises(ValueError):
        store.conditional_delete("T", "job", WriteCondition(ConditionKind.ACQUIRABLE, "me", NOW))

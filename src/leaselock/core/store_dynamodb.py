"""DynamoDB-backed lock store using conditional PutItem/DeleteItem."""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from .errors import ConditionFailed
from .models import EXPIRATION_ATTR, KEY_ATTR, OWNER_ATTR, LockRecord
from .store import ConditionKind, WriteCondition


_CONDITION_EXPRESSIONS = {
    ConditionKind.ACQUIRABLE: (
        f"attribute_not_exists({KEY_ATTR})"
        f" OR ({OWNER_ATTR} <> :owner AND {EXPIRATION_ATTR} <= :now)"
        f" OR {OWNER_ATTR} = :owner"
    ),
    ConditionKind.HELD: (
        f"attribute_exists({KEY_ATTR}) AND {OWNER_ATTR} = :owner AND {EXPIRATION_ATTR} > :now"
    ),
    ConditionKind.OWNED: f"{OWNER_ATTR} = :owner",
}


def _typed_item(record: LockRecord) -> Dict[str, Dict[str, str]]:
    """Tag each attribute with its DynamoDB type: strings as S, integers as N."""
    return {
        name: {"N": str(value)} if isinstance(value, int) else {"S": value}
        for name, value in record.to_item().items()
    }


def _is_condition_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code", "") == "ConditionalCheckFailedException"


class DynamoDBLockStore:
    """Lock table keyed by ``lock_path`` with ``lock_ttl`` as its TTL attribute.

    The table must already exist; enabling TTL on ``lock_ttl`` is optional and
    only affects cleanup of abandoned records.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        request_timeout_s: float = 10.0,
    ) -> None:
        if client is None:
            session = boto3.Session(region_name=region_name)
            client = session.client(
                "dynamodb",
                region_name=region_name,
                endpoint_url=endpoint_url,
                config=BotoConfig(
                    connect_timeout=request_timeout_s,
                    read_timeout=request_timeout_s,
                ),
            )
        self._client = client

    @staticmethod
    def _values(condition: WriteCondition) -> Dict[str, Dict[str, str]]:
        values = {":owner": {"S": condition.owner_id}}
        if condition.kind is not ConditionKind.OWNED:
            values[":now"] = {"N": str(condition.now_ms)}
        return values

    def conditional_put(self, table: str, record: LockRecord, condition: WriteCondition) -> None:
        if condition.kind is ConditionKind.OWNED:
            raise ValueError(f"Unsupported put condition: {condition.kind.value}")
        try:
            self._client.put_item(
                TableName=table,
                Item=_typed_item(record),
                ConditionExpression=_CONDITION_EXPRESSIONS[condition.kind],
                ExpressionAttributeValues=self._values(condition),
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ConditionFailed(f"{condition.kind.value} check failed for {record.key!r}") from exc
            raise

    def conditional_delete(self, table: str, key: str, condition: WriteCondition) -> None:
        if condition.kind is not ConditionKind.OWNED:
            raise ValueError(f"Unsupported delete condition: {condition.kind.value}")
        try:
            self._client.delete_item(
                TableName=table,
                Key={KEY_ATTR: {"S": key}},
                ConditionExpression=_CONDITION_EXPRESSIONS[condition.kind],
                ExpressionAttributeValues=self._values(condition),
            )
        except ClientError as exc:
            if _is_condition_failure(exc):
                raise ConditionFailed(f"owned check failed for {key!r}") from exc
            raise

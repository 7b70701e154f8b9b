import logging

import boto3

from call_stats.records.record import CallRecord
from call_stats.storage.errors import StorageUnavailable, storage_errors

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "call-stats"


class DynamoRecordStore:
    """Record store backed by a DynamoDB table keyed on ``record_id``."""

    def __init__(self, table=None, *, table_name: str = DEFAULT_TABLE_NAME, region: str | None = None) -> None:
        self._table = table
        self.table_name = table_name
        self.region = region

    @property
    def table(self):
        if self._table is None:
            dynamodb = boto3.resource("dynamodb", region_name=self.region)
            self._table = dynamodb.Table(self.table_name)
        return self._table

    def append(self, record: CallRecord) -> None:
        """Write a single record. Existing items are never overwritten."""
        with storage_errors("append"):
            self.table.put_item(
                Item=record.to_dict(),
                ConditionExpression="attribute_not_exists(record_id)",
            )

    def scan(self) -> list[CallRecord]:
        """Read every record in the table, following scan pagination."""
        items: list[dict] = []
        kwargs: dict = {}

        with storage_errors("scan"):
            while True:
                response = self.table.scan(**kwargs)
                items.extend(response["Items"])
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key

        try:
            return [CallRecord.from_dict(item) for item in items]
        except (KeyError, ValueError) as exc:
            logger.error("call-stats: store scan returned a malformed item: %s", exc)
            raise StorageUnavailable("record store scan returned a malformed item") from exc


def make_store(table_name: str = DEFAULT_TABLE_NAME, region: str | None = None) -> DynamoRecordStore:
    """Return a store whose boto3 table handle is created on first use."""
    return DynamoRecordStore(table_name=table_name, region=region)


def create_table(table_name: str = DEFAULT_TABLE_NAME, region: str | None = None):
    """Create the records table and wait until it is active."""
    with storage_errors("create-table"):
        dynamodb = boto3.resource("dynamodb", region_name=region)
        table = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "record_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "record_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
    logger.info("call-stats: created table %s", table_name)
    return table

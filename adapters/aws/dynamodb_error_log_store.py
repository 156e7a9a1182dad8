"""
AWS Error Log Store — DynamoDB.

Schema (single-table design):
  Records:
    pk: ERROR#{id}            sk: META
  By code (GSI "error-code"):
    gsi1pk: CODE#{code}       gsi1sk: {created_at}
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from uem.interfaces.error_log_store import ErrorLogStore, ErrorLogNotFound
from uem.models.log_record import ErrorLogRecord


class DynamoDBErrorLogStore(ErrorLogStore):
    """DynamoDB-backed error log store."""

    def __init__(self, table_name: str, region: str = "us-east-1"):
        self.table = boto3.resource("dynamodb", region_name=region).Table(table_name)

    def add(self, record: ErrorLogRecord) -> ErrorLogRecord:
        if not record.id:
            record.id = uuid.uuid4().hex
        if not record.created_at:
            record.created_at = datetime.now(timezone.utc).isoformat()
        self.table.put_item(
            Item=self._record_to_item(record),
            ConditionExpression="attribute_not_exists(pk)",
        )
        return record

    def get(self, record_id: str) -> ErrorLogRecord:
        response = self.table.get_item(Key={"pk": f"ERROR#{record_id}", "sk": "META"})
        item = response.get("Item")
        if not item:
            raise ErrorLogNotFound(f"Error log '{record_id}' not found")
        return self._item_to_record(item)

    def update(self, record: ErrorLogRecord) -> None:
        try:
            self.table.put_item(
                Item=self._record_to_item(record),
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ErrorLogNotFound(f"Error log '{record.id}' not found")
            raise

    def delete(self, record_id: str) -> None:
        try:
            self.table.delete_item(
                Key={"pk": f"ERROR#{record_id}", "sk": "META"},
                ConditionExpression="attribute_exists(pk)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ErrorLogNotFound(f"Error log '{record_id}' not found")
            raise

    def list_errors(
        self,
        code: Optional[str] = None,
        severity: Optional[str] = None,
        resolved: Optional[bool] = None,
        since: Optional[str] = None,
        limit: int = 50,
    ) -> list[ErrorLogRecord]:
        filters, values, names = [], {}, {}
        if severity:
            filters.append("#severity = :severity")
            values[":severity"] = severity
            names["#severity"] = "severity"
        if resolved is not None:
            filters.append("#resolved = :resolved")
            values[":resolved"] = resolved
            names["#resolved"] = "resolved"

        if code:
            key_expr = "gsi1pk = :code"
            values[":code"] = f"CODE#{code}"
            if since:
                key_expr += " AND gsi1sk >= :since"
                values[":since"] = since
            kwargs = {
                "IndexName": "error-code",
                "KeyConditionExpression": key_expr,
                "ScanIndexForward": False,
            }
            read = self.table.query
        else:
            if since:
                filters.append("created_at >= :since")
                values[":since"] = since
            filters.append("sk = :meta")
            values[":meta"] = "META"
            kwargs = {}
            read = self.table.scan

        if filters:
            kwargs["FilterExpression"] = " AND ".join(filters)
        kwargs["ExpressionAttributeValues"] = values
        if names:
            kwargs["ExpressionAttributeNames"] = names

        items: list[dict] = []
        while True:
            response = read(**kwargs)
            items.extend(response.get("Items", []))
            last = response.get("LastEvaluatedKey")
            if not last or (code and len(items) >= limit):
                break
            kwargs["ExclusiveStartKey"] = last

        records = [self._item_to_record(i) for i in items]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    def purge_resolved(self, older_than: str) -> int:
        stale = [
            r for r in self.list_errors(resolved=True, limit=100_000)
            if r.created_at < older_than
        ]
        with self.table.batch_writer() as batch:
            for record in stale:
                batch.delete_item(Key={"pk": f"ERROR#{record.id}", "sk": "META"})
        return len(stale)

    # --- Serialization ---

    def _record_to_item(self, record: ErrorLogRecord) -> dict:
        item = record.to_dict()
        item["context"] = json.dumps(record.context, default=str)
        item["pk"] = f"ERROR#{record.id}"
        item["sk"] = "META"
        item["gsi1pk"] = f"CODE#{record.code}"
        item["gsi1sk"] = record.created_at
        return item

    def _item_to_record(self, item: dict) -> ErrorLogRecord:
        data = dict(item)
        data["context"] = json.loads(data.get("context") or "{}")
        for field_name in ("http_status_code", "exception_line"):
            # boto3 returns numbers as Decimal
            if data.get(field_name) is not None:
                data[field_name] = int(data[field_name])
        return ErrorLogRecord.from_dict(data)

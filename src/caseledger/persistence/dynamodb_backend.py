"""DynamoDB backends: payout store, processing rate table, daily activity source."""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from caseledger.core.exceptions import StorageError
from caseledger.core.types import ProcessingRates
from caseledger.models.activity import Client, DayActivity, LocationCases
from caseledger.models.payout import PayoutStatus, ResourcePayout

logger = logging.getLogger(__name__)

PAYOUT_TABLE = "caseledger-resource-payouts"
RATE_TABLE = "caseledger-processing-rates"
ACTIVITY_TABLE = "caseledger-daily-activity"


def _period(month: int, year: int) -> str:
    return f"{year:04d}-{month:02d}"


class _DynamoDBTable:
    """Shared boto3 wiring for the caseledger tables."""

    def __init__(self, table_base: str, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)
        self._table = self._ddb.Table(f"{table_base}{table_suffix}")

    def _scan(self, **kwargs: Any) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        try:
            while True:
                resp = self._table.scan(**kwargs)
                items.extend(resp.get("Items", []))
                if "LastEvaluatedKey" not in resp:
                    return items
                kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]
        except ClientError as exc:
            raise StorageError(f"DynamoDB scan of {self._table.name} failed: {exc}") from exc


class DynamoDBPayoutStore(_DynamoDBTable):
    """IPayoutStore: PK=RESOURCE#<id>, SK=PERIOD#<yyyy-mm>, record as a JSON payload."""

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        super().__init__(PAYOUT_TABLE, table_suffix, region, endpoint_url)

    def get(self, resource_id: str, month: int, year: int) -> Optional[ResourcePayout]:
        try:
            resp = self._table.get_item(
                Key={"PK": f"RESOURCE#{resource_id}", "SK": f"PERIOD#{_period(month, year)}"}
            )
        except ClientError as exc:
            raise StorageError(f"DynamoDB get failed for resource {resource_id}: {exc}") from exc
        item = resp.get("Item")
        return ResourcePayout.model_validate_json(item["payload"]) if item else None

    def put(self, payout: ResourcePayout) -> None:
        item = {
            "PK": f"RESOURCE#{payout.resource_id}",
            "SK": f"PERIOD#{payout.period_key}",
            "period": payout.period_key,
            "status": str(payout.status),
            "grand_total_payout": payout.grand_total_payout,
            "payload": payout.model_dump_json(),
        }
        try:
            self._table.put_item(Item=item)
        except ClientError as exc:
            raise StorageError(f"DynamoDB put failed for resource {payout.resource_id}: {exc}") from exc

    def list_period(
        self, month: int, year: int, status: Optional[PayoutStatus] = None
    ) -> list[ResourcePayout]:
        condition = Attr("period").eq(_period(month, year))
        if status is not None:
            condition = condition & Attr("status").eq(str(status))
        items = self._scan(FilterExpression=condition)
        return [ResourcePayout.model_validate_json(item["payload"]) for item in items]


class DynamoDBRateTable(_DynamoDBTable):
    """IRateTable: PK=CLIENT#<client>, SK=LOCATION#<id>, cached as one JSON blob."""

    CACHE_KEY = "processing_rates"

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, cache: Any = None, cache_ttl: int = 300) -> None:
        super().__init__(RATE_TABLE, table_suffix, region, endpoint_url)
        self._cache = cache
        self._cache_ttl = cache_ttl

    def get_processing_rates(self) -> ProcessingRates:
        if self._cache is not None:
            cached = self._cache.get(self.CACHE_KEY)
            if cached is not None:
                return {
                    (Client(client), location_id): Decimal(rate)
                    for client, location_id, rate in json.loads(cached)
                }

        rates: ProcessingRates = {}
        for item in self._scan():
            client = Client(item["PK"].removeprefix("CLIENT#"))
            location_id = item["SK"].removeprefix("LOCATION#")
            rates[(client, location_id)] = Decimal(str(item["rate"]))
        logger.debug("Loaded %d processing rates from %s", len(rates), self._table.name)

        if self._cache is not None:
            blob = json.dumps([[str(c), loc, str(rate)] for (c, loc), rate in sorted(rates.items())])
            self._cache.setex(self.CACHE_KEY, self._cache_ttl, blob)
        return rates

    def set_rate(self, client: Client, location_id: str, rate: Decimal, location_name: str = "") -> None:
        try:
            self._table.put_item(Item={
                "PK": f"CLIENT#{Client(client)}",
                "SK": f"LOCATION#{location_id}",
                "rate": Decimal(str(rate)),
                "location_name": location_name,
            })
        except ClientError as exc:
            raise StorageError(f"DynamoDB rate write failed for {client}/{location_id}: {exc}") from exc
        if self._cache is not None:
            self._cache.delete(self.CACHE_KEY)


class DynamoDBActivitySource(_DynamoDBTable):
    """IActivitySource: PK=RESOURCE#<id>, SK=DATE#<yyyy-mm-dd>, one item per worked day.

    A month with no items is reported as an empty list (no work logged).
    """

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, default_hours: Decimal = Decimal("8")) -> None:
        super().__init__(ACTIVITY_TABLE, table_suffix, region, endpoint_url)
        self._default_hours = default_hours

    def get_daily_activity(
        self, resource_id: str, month: int, year: int
    ) -> Optional[list[DayActivity]]:
        try:
            resp = self._table.query(
                KeyConditionExpression=(
                    Key("PK").eq(f"RESOURCE#{resource_id}")
                    & Key("SK").begins_with(f"DATE#{_period(month, year)}-")
                ),
            )
        except ClientError as exc:
            raise StorageError(f"DynamoDB activity query failed for {resource_id}: {exc}") from exc
        items = sorted(resp.get("Items", []), key=lambda i: i["SK"])
        return [self._to_day(item) for item in items]

    def _to_day(self, item: dict[str, Any]) -> DayActivity:
        hours = item.get("hours_worked")
        return DayActivity(
            day=date.fromisoformat(item["SK"].removeprefix("DATE#")),
            hours_worked=Decimal(str(hours)) if hours is not None else self._default_hours,
            verisma_logging_cases=int(item.get("verisma_logging_cases", 0)),
            mro_logging_cases=int(item.get("mro_logging_cases", 0)),
            datavant_logging_cases=int(item.get("datavant_logging_cases", 0)),
            complete_logging_cases=int(item.get("complete_logging_cases", 0)),
            processing=[
                LocationCases(
                    client=Client(p["client"]),
                    location_id=p["location_id"],
                    location_name=p.get("location_name", ""),
                    cases=int(p.get("cases", 0)),
                )
                for p in item.get("processing", [])
            ],
        )

    def put_day(self, resource_id: str, day: DayActivity) -> None:
        item = {
            "PK": f"RESOURCE#{resource_id}",
            "SK": f"DATE#{day.day.isoformat()}",
            "hours_worked": day.hours_worked,
            "verisma_logging_cases": day.verisma_logging_cases,
            "mro_logging_cases": day.mro_logging_cases,
            "datavant_logging_cases": day.datavant_logging_cases,
            "complete_logging_cases": day.complete_logging_cases,
            "processing": [
                {"client": str(p.client), "location_id": p.location_id,
                 "location_name": p.location_name, "cases": p.cases}
                for p in day.processing
            ],
        }
        try:
            self._table.put_item(Item=item)
        except ClientError as exc:
            raise StorageError(f"DynamoDB activity write failed for {resource_id}: {exc}") from exc

"""Create caseledger DynamoDB tables and seed sample processing rates.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
import logging
from decimal import Decimal
from typing import Any

import boto3

from caseledger.core.log import configure_logging
from caseledger.persistence.dynamodb_backend import ACTIVITY_TABLE, PAYOUT_TABLE, RATE_TABLE

logger = logging.getLogger("caseledger.seed")

TABLE_NAMES: list[str] = [PAYOUT_TABLE, RATE_TABLE, ACTIVITY_TABLE]

SAMPLE_RATES: list[dict[str, Any]] = [
    {"client": "mro", "location_id": "mro-processing-nyu", "location_name": "NYU Langone", "rate": Decimal("1.25")},
    {"client": "mro", "location_id": "mro-processing-mayo", "location_name": "Mayo Clinic", "rate": Decimal("1.10")},
    {"client": "mro", "location_id": "mro-payer", "location_name": "MRO Payer Project", "rate": Decimal("0.90")},
    {"client": "verisma", "location_id": "verisma-processing-ucsf", "location_name": "UCSF Health", "rate": Decimal("1.00")},
    {"client": "datavant", "location_id": "datavant-processing-east", "location_name": "Datavant East", "rate": Decimal("0.95")},
]


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the caseledger tables. Skips tables that already exist."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for name in TABLE_NAMES:
        table_name = f"{name}{suffix}"
        if table_name in existing:
            logger.info("Table %s already exists, skipping", table_name)
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info("Created table %s", table_name)


def seed_rates(ddb: Any, suffix: str = "") -> int:
    """Write SAMPLE_RATES into the processing rate table; returns the count."""
    tbl = ddb.Table(f"{RATE_TABLE}{suffix}")
    with tbl.batch_writer() as batch:
        for rate in SAMPLE_RATES:
            batch.put_item(Item={
                "PK": f"CLIENT#{rate['client']}",
                "SK": f"LOCATION#{rate['location_id']}",
                "location_name": rate["location_name"],
                "rate": rate["rate"],
            })
    logger.info("Seeded %d processing rates", len(SAMPLE_RATES))
    return len(SAMPLE_RATES)


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for caseledger")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--skip-rates", action="store_true", help="Only create tables")
    args = parser.parse_args()

    configure_logging("INFO")

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)
    create_tables(ddb, suffix=args.table_suffix)
    if not args.skip_rates:
        seed_rates(ddb, suffix=args.table_suffix)
    logger.info("Done")


if __name__ == "__main__":
    main()

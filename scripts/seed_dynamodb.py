"""Create greenbook DynamoDB tables and seed a sample annual contract.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Any

import boto3

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": "greenbook-annual-contracts"},
    {"name": "greenbook-revenue-allocations"},
    {"name": "greenbook-contract-projects"},
    {"name": "greenbook-work-activity"},
]

SAMPLE_CONTRACT_ID = "sample-park-2026"


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create all greenbook tables. Skips if table already exists."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
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
        print(f"  Created table {table_name}")


def seed_sample_data(ddb: Any, suffix: str = "") -> None:
    """Seed one hours-based annual contract with two linked projects and some work records."""
    tbl = ddb.Table(f"greenbook-annual-contracts{suffix}")
    tbl.put_item(Item={
        "PK": f"CONTRACT#{SAMPLE_CONTRACT_ID}", "SK": "CONTRACT",
        "id": SAMPLE_CONTRACT_ID,
        "field_id": "field-kinjo-park",
        "contract_name": "FY2026 Kinjo Park grounds maintenance",
        "fiscal_year": 2026,
        "contract_start_date": "2026-04-01",
        "contract_end_date": "2027-03-31",
        "contract_amount": 1200000,
        "budget_hours": Decimal("1000"),
        "revenue_recognition_method": "hours_based",
        "is_settled": False,
    })
    print("  Seeded 1 annual contract")

    project_ids = ["proj-mowing-2026", "proj-pruning-2026"]
    tbl = ddb.Table(f"greenbook-contract-projects{suffix}")
    with tbl.batch_writer() as batch:
        for project_id in project_ids:
            batch.put_item(Item={
                "PK": f"CONTRACT#{SAMPLE_CONTRACT_ID}", "SK": f"PROJECT#{project_id}",
                "project_id": project_id,
            })
    print(f"  Seeded {len(project_ids)} project links")

    records = [
        ("proj-mowing-2026", "emp-001", "2026-04-06", Decimal("8"), None),
        ("proj-mowing-2026", "emp-002", "2026-04-06", None, Decimal("7.5")),
        ("proj-pruning-2026", "emp-001", "2026-04-20", Decimal("6"), Decimal("5")),
        ("proj-mowing-2026", "emp-003", "2026-05-11", Decimal("8"), None),
    ]
    tbl = ddb.Table(f"greenbook-work-activity{suffix}")
    with tbl.batch_writer() as batch:
        for project_id, employee_id, work_date, total_hours, site_hours in records:
            item = {
                "PK": f"PROJECT#{project_id}",
                "SK": f"DATE#{work_date}#EMP#{employee_id}",
                "project_id": project_id,
                "employee_id": employee_id,
                "work_date": work_date,
            }
            if total_hours is not None:
                item["total_hours"] = total_hours
            if site_hours is not None:
                item["site_hours"] = site_hours
            batch.put_item(Item=item)
    print(f"  Seeded {len(records)} work records")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for greenbook")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="ap-northeast-1", help="AWS region")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_sample_data(ddb, suffix=args.table_suffix)

    print("Done!")


if __name__ == "__main__":
    main()

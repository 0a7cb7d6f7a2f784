"""DynamoDB backends implementing the contract, project, activity and allocation stores.

Every table uses a PK/SK key schema. Blocking boto3 calls run in a worker
thread so the stores satisfy the async protocols.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ValidationError

from greenbook.core.exceptions import (
    ConflictError,
    ContractNotFoundError,
    DataAccessError,
    OperationNotAllowedError,
)
from greenbook.core.logging import get_logger
from greenbook.models.activity import WorkActivity
from greenbook.models.allocation import AllocationStatus, MonthlyRevenueAllocation
from greenbook.models.contract import AnnualContract

logger = get_logger("persistence.dynamodb")

M = TypeVar("M", bound=BaseModel)

CONTRACTS_TABLE = "greenbook-annual-contracts"
ALLOCATIONS_TABLE = "greenbook-revenue-allocations"
PROJECTS_TABLE = "greenbook-contract-projects"
ACTIVITY_TABLE = "greenbook-work-activity"

_KEYS = ("PK", "SK")


def _to_item(model: BaseModel) -> dict[str, Any]:
    """Dump a record into DynamoDB-storable attribute values (None dropped)."""
    item: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if value is None:
            continue
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        elif isinstance(value, float):
            value = Decimal(str(value))
        item[key] = value
    return item


def _from_item(model: type[M], item: dict[str, Any]) -> M:
    """Validate a raw item into a typed record; schema drift fails fast."""
    data = {k: v for k, v in item.items() if k not in _KEYS}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DataAccessError(
            f"Malformed {model.__name__} item {item.get('PK')!r}/{item.get('SK')!r}: {exc}"
        ) from exc


def _month_sk(month: date) -> str:
    return f"MONTH#{month.isoformat()}"


def _is_conditional_failure(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class _DynamoStore:
    """Shared table access and error wrapping."""

    table_base = ""

    def __init__(self, table_suffix: str = "", region: str = "ap-northeast-1",
                 endpoint_url: str | None = None, resource: Any = None) -> None:
        self._table_suffix = table_suffix
        self._region = region
        self._endpoint_url = endpoint_url
        if resource is None:
            kwargs: dict = {"region_name": region}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            resource = boto3.resource("dynamodb", **kwargs)
        self._ddb = resource

    @property
    def table_name(self) -> str:
        return f"{self.table_base}{self._table_suffix}"

    def _table(self):
        return self._ddb.Table(self.table_name)

    async def _call(self, description: str, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except ClientError as exc:
            if _is_conditional_failure(exc):
                raise
            logger.error("%s on %s failed: %s", description, self.table_name, exc)
            raise DataAccessError(f"DynamoDB {description} on {self.table_name} failed: {exc}") from exc
        except BotoCoreError as exc:
            logger.error("%s on %s failed: %s", description, self.table_name, exc)
            raise DataAccessError(f"DynamoDB {description} on {self.table_name} failed: {exc}") from exc

    def _query_all(self, **kwargs: Any) -> list[dict[str, Any]]:
        """Query following LastEvaluatedKey pages."""
        tbl = self._table()
        items: list[dict[str, Any]] = []
        while True:
            resp = tbl.query(**kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return items
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]

    def _scan_all(self, **kwargs: Any) -> list[dict[str, Any]]:
        tbl = self._table()
        items: list[dict[str, Any]] = []
        while True:
            resp = tbl.scan(**kwargs)
            items.extend(resp.get("Items", []))
            if "LastEvaluatedKey" not in resp:
                return items
            kwargs["ExclusiveStartKey"] = resp["LastEvaluatedKey"]


class DynamoDBContractStore(_DynamoStore):
    """Production IContractStore."""

    table_base = CONTRACTS_TABLE

    @staticmethod
    def _key(contract_id: str) -> dict[str, str]:
        return {"PK": f"CONTRACT#{contract_id}", "SK": "CONTRACT"}

    async def put_contract(self, contract: AnnualContract) -> None:
        item = {**self._key(contract.id), **_to_item(contract)}
        await self._call("put_item", self._table().put_item, Item=item)

    async def get_contract(self, contract_id: str) -> AnnualContract | None:
        resp = await self._call("get_item", self._table().get_item, Key=self._key(contract_id))
        item = resp.get("Item")
        return _from_item(AnnualContract, item) if item else None

    async def mark_settled(
        self, contract_id: str, settled_at: datetime, adjustment: int
    ) -> AnnualContract:
        try:
            resp = await self._call(
                "update_item",
                self._table().update_item,
                Key=self._key(contract_id),
                UpdateExpression="SET is_settled = :yes, settled_at = :at, settlement_adjustment = :adj",
                ConditionExpression=(
                    "attribute_exists(PK) AND "
                    "(attribute_not_exists(is_settled) OR is_settled = :no)"
                ),
                ExpressionAttributeValues={
                    ":yes": True, ":no": False,
                    ":at": settled_at.isoformat(), ":adj": adjustment,
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as exc:
            if await self.get_contract(contract_id) is None:
                raise ContractNotFoundError(contract_id) from exc
            raise OperationNotAllowedError(f"Contract {contract_id!r} is already settled") from exc
        return _from_item(AnnualContract, resp["Attributes"])


class DynamoDBProjectStore(_DynamoStore):
    """Production IProjectStore: PK=CONTRACT#<id>, SK=PROJECT#<project id>."""

    table_base = PROJECTS_TABLE

    async def link(self, contract_id: str, project_id: str) -> None:
        item = {"PK": f"CONTRACT#{contract_id}", "SK": f"PROJECT#{project_id}",
                "project_id": project_id}
        await self._call("put_item", self._table().put_item, Item=item)

    async def list_project_ids(self, contract_id: str) -> list[str]:
        items = await self._call(
            "query", self._query_all,
            KeyConditionExpression="PK = :pk AND begins_with(SK, :prefix)",
            ExpressionAttributeValues={":pk": f"CONTRACT#{contract_id}", ":prefix": "PROJECT#"},
        )
        return [item["SK"].removeprefix("PROJECT#") for item in items]


class DynamoDBActivityStore(_DynamoStore):
    """Production IActivityStore: PK=PROJECT#<id>, SK=DATE#<work date>#EMP#<employee id>."""

    table_base = ACTIVITY_TABLE

    async def add(self, record: WorkActivity) -> None:
        item = {
            "PK": f"PROJECT#{record.project_id}",
            "SK": f"DATE#{record.work_date.isoformat()}#EMP#{record.employee_id}",
            **_to_item(record),
        }
        await self._call("put_item", self._table().put_item, Item=item)

    async def list_activity(
        self, project_ids: list[str], start: date, end: date
    ) -> list[WorkActivity]:
        records: list[WorkActivity] = []
        for project_id in project_ids:
            # Sort keys of ``end`` itself carry a suffix, so BETWEEN excludes that day.
            items = await self._call(
                "query", self._query_all,
                KeyConditionExpression="PK = :pk AND SK BETWEEN :lo AND :hi",
                ExpressionAttributeValues={
                    ":pk": f"PROJECT#{project_id}",
                    ":lo": f"DATE#{start.isoformat()}",
                    ":hi": f"DATE#{end.isoformat()}",
                },
            )
            records.extend(_from_item(WorkActivity, item) for item in items)
        return records


class DynamoDBAllocationStore(_DynamoStore):
    """Production IAllocationStore: PK=CONTRACT#<id>, SK=MONTH#<YYYY-MM-01>.

    Upserts are conditional writes that refuse to replace an adjusted row.
    """

    table_base = ALLOCATIONS_TABLE

    async def get_allocation(
        self, contract_id: str, month: date
    ) -> MonthlyRevenueAllocation | None:
        resp = await self._call(
            "get_item", self._table().get_item,
            Key={"PK": f"CONTRACT#{contract_id}", "SK": _month_sk(month)},
        )
        item = resp.get("Item")
        return _from_item(MonthlyRevenueAllocation, item) if item else None

    async def list_allocations(self, contract_id: str) -> list[MonthlyRevenueAllocation]:
        items = await self._call(
            "query", self._query_all,
            KeyConditionExpression="PK = :pk AND begins_with(SK, :prefix)",
            ExpressionAttributeValues={":pk": f"CONTRACT#{contract_id}", ":prefix": "MONTH#"},
            ScanIndexForward=True,
        )
        return [_from_item(MonthlyRevenueAllocation, item) for item in items]

    async def list_allocations_between(
        self, start: date, end: date
    ) -> list[MonthlyRevenueAllocation]:
        items = await self._call(
            "scan", self._scan_all,
            FilterExpression="allocation_month BETWEEN :start AND :end",
            ExpressionAttributeValues={":start": start.isoformat(), ":end": end.isoformat()},
        )
        return [_from_item(MonthlyRevenueAllocation, item) for item in items]

    async def put_allocation(
        self, allocation: MonthlyRevenueAllocation, *, allow_adjusted: bool = False
    ) -> MonthlyRevenueAllocation:
        item = {
            "PK": f"CONTRACT#{allocation.annual_contract_id}",
            "SK": _month_sk(allocation.allocation_month),
            **_to_item(allocation),
        }
        kwargs: dict[str, Any] = {"Item": item}
        if not allow_adjusted:
            kwargs.update(
                ConditionExpression="attribute_not_exists(PK) OR #status <> :adjusted",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={":adjusted": AllocationStatus.ADJUSTED.value},
            )
        try:
            await self._call("put_item", self._table().put_item, **kwargs)
        except ClientError as exc:
            raise ConflictError(
                f"Allocation {allocation.allocation_month.isoformat()} of contract "
                f"{allocation.annual_contract_id!r} is adjusted"
            ) from exc
        return allocation

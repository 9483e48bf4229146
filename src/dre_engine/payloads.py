"""Validation of the finance API's JSON payloads."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dre_engine.metrics import with_recomputed_margins
from dre_engine.models import ZERO, AccountNode, AccountType, PeriodSnapshot, ReportSummary

logger = structlog.get_logger(__name__)

# Report endpoint summary keys -> ReportSummary fields.
SUMMARY_KEYS: dict[str, str] = {
    "receita_bruta": "gross_revenue",
    "deducoes": "deductions",
    "receita_liquida": "net_revenue",
    "cmv_csv": "cost_of_goods",
    "lucro_bruto": "gross_profit",
    "despesas_operacionais": "operating_expenses",
    "lucro_operacional": "operating_profit",
    "outras_receitas_despesas": "other_income_expenses",
    "lucro_liquido": "net_profit",
}


class PayloadError(ValueError):
    """A response body does not have the expected shape."""

    def __init__(self, message: str, errors: list[Any] | None = None):
        super().__init__(message)
        self.errors = errors or []


def _float_to_decimal(value: Any) -> Any:
    # Go through str so 0.1 stays 0.1 instead of its binary expansion.
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class AccountRecord(BaseModel):
    """Flat account as returned by the account-plan listing."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    description: str | None = None
    parent_id: int | None = None
    type: AccountType | None = None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump()


class DRENode(BaseModel):
    """Account node inside a report payload, totalled for one period."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    description: str | None = None
    parent_id: int | None = None
    type: AccountType | None = None
    total: Decimal = ZERO
    children: list[DRENode] = Field(default_factory=list)

    @field_validator("total", mode="before")
    @classmethod
    def _decimal_total(cls, value: Any) -> Any:
        return _float_to_decimal(value)


DRENode.model_rebuild()


class DREPayload(BaseModel):
    """Body of the report endpoint for one date range."""

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    dre: dict[str, DRENode] | list[DRENode] = Field(default_factory=list)
    summary: dict[str, Decimal] = Field(default_factory=dict)

    @field_validator("summary", mode="before")
    @classmethod
    def _decimal_summary(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {key: _float_to_decimal(item) for key, item in value.items()}
        return value

    def roots(self) -> list[DRENode]:
        """Root nodes in display order.

        A keyed ``dre`` object is ordered by its numeric keys, the way the
        backend numbers the income statement sections.
        """
        if isinstance(self.dre, list):
            return list(self.dre)
        numeric = sorted((key for key in self.dre if key.isdigit()), key=int)
        other = [key for key in self.dre if not key.isdigit()]
        return [self.dre[key] for key in numeric + other]

    def to_summary(self) -> ReportSummary:
        """Absolute figures from the payload with margins recomputed."""
        values = {
            field_name: self.summary.get(wire_key, ZERO)
            for wire_key, field_name in SUMMARY_KEYS.items()
        }
        return with_recomputed_margins(ReportSummary(**values))


def _to_account_nodes(roots: list[DRENode]) -> list[AccountNode]:
    result: list[AccountNode] = []
    stack: list[tuple[DRENode, list[AccountNode]]] = [(root, result) for root in reversed(roots)]
    while stack:
        source, siblings = stack.pop()
        node = AccountNode(
            id=source.id,
            name=source.name,
            description=source.description,
            parent_id=source.parent_id,
            type=source.type,
            total=source.total,
        )
        siblings.append(node)
        for child in reversed(source.children):
            stack.append((child, node.children))
    return result


def parse_account_records(payload: Any) -> list[AccountRecord]:
    """Validate the account-plan listing, keeping input order.

    Accepts either a bare list or a ``{"data": [...]}`` envelope.
    """
    items = payload.get("data") if isinstance(payload, Mapping) else payload
    if not isinstance(items, list):
        raise PayloadError("Account list payload must be a list")
    try:
        return [AccountRecord.model_validate(item) for item in items]
    except ValidationError as e:
        logger.warning("account_payload_invalid", error_count=e.error_count())
        raise PayloadError("Invalid account record", errors=e.errors()) from e


def parse_dre_payload(payload: Any, period_key: str, period_label: str) -> PeriodSnapshot:
    """Turn one report response into a :class:`PeriodSnapshot`."""
    try:
        parsed = DREPayload.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "dre_payload_invalid", period_key=period_key, error_count=e.error_count()
        )
        raise PayloadError(
            f"Invalid report payload for {period_key}", errors=e.errors()
        ) from e

    if not parsed.success:
        raise PayloadError(f"Report request for {period_key} was not successful")

    return PeriodSnapshot(
        period_key=period_key,
        period_label=period_label,
        tree=_to_account_nodes(parsed.roots()),
        summary=parsed.to_summary(),
    )

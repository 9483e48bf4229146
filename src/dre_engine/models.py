"""Value types shared by the account-plan tree and the income statement (DRE)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from enum import IntEnum
from typing import Any

ZERO = Decimal("0")


class AccountType(IntEnum):
    """Nature of an account in the chart of accounts."""

    REVENUE = 1
    EXPENSE = 2

    @classmethod
    def parse(cls, value: Any) -> AccountType | None:
        """Convert a raw wire value (int, numeric string or None)."""
        if value is None or value == "":
            return None
        if isinstance(value, AccountType):
            return value
        return cls(int(value))


@dataclass
class AccountNode:
    """One account with its ordered children.

    Nodes are rebuilt from scratch whenever the source data changes, so
    callers treat them as values and never hold identities across builds.
    """

    id: int
    name: str
    description: str | None = None
    parent_id: int | None = None
    type: AccountType | None = None
    total: Decimal = ZERO
    children: list[AccountNode] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    _KNOWN_KEYS = ("id", "name", "description", "parent_id", "type", "total")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> AccountNode:
        """Shallow-clone a flat record into a node with no children."""
        parent_id = record.get("parent_id")
        total = record.get("total")
        return cls(
            id=int(record["id"]),
            name=str(record.get("name") or ""),
            description=record.get("description"),
            parent_id=int(parent_id) if parent_id is not None else None,
            type=AccountType.parse(record.get("type")),
            total=Decimal(str(total)) if total is not None else ZERO,
            extra={
                key: value
                for key, value in record.items()
                if key not in cls._KNOWN_KEYS and key != "children"
            },
        )

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def is_expense(self) -> bool:
        return self.type is AccountType.EXPENSE

    def shallow_copy(self) -> AccountNode:
        """Copy every field except ``children``, which starts empty."""
        return replace(self, children=[], extra=dict(self.extra))


# Absolute monetary fields, in income-statement order.
ABSOLUTE_FIELDS: tuple[str, ...] = (
    "gross_revenue",
    "deductions",
    "net_revenue",
    "cost_of_goods",
    "gross_profit",
    "operating_expenses",
    "operating_profit",
    "other_income_expenses",
    "net_profit",
)

# Ratio fields; always derived from the absolute fields, never summed.
MARGIN_FIELDS: tuple[str, ...] = (
    "gross_margin",
    "operating_margin",
    "net_margin",
)


@dataclass(frozen=True)
class ReportSummary:
    """Income statement scalars for one period or for an aggregate."""

    gross_revenue: Decimal = ZERO
    deductions: Decimal = ZERO
    net_revenue: Decimal = ZERO
    cost_of_goods: Decimal = ZERO
    gross_profit: Decimal = ZERO
    operating_expenses: Decimal = ZERO
    operating_profit: Decimal = ZERO
    other_income_expenses: Decimal = ZERO
    net_profit: Decimal = ZERO
    gross_margin: Decimal = ZERO
    operating_margin: Decimal = ZERO
    net_margin: Decimal = ZERO

    def absolutes(self) -> dict[str, Decimal]:
        return {name: getattr(self, name) for name in ABSOLUTE_FIELDS}

    def as_dict(self) -> dict[str, Decimal]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class PeriodSnapshot:
    """One reporting period as delivered by the report endpoint."""

    period_key: str
    period_label: str
    tree: list[AccountNode]
    summary: ReportSummary = field(default_factory=ReportSummary)


@dataclass(frozen=True)
class PeriodColumn:
    """Column header for one period in the aggregated table."""

    key: str
    label: str


@dataclass
class AggregatedReport:
    """Multi-period income statement, ready for rendering.

    ``summary`` is None when no period was supplied, which is distinct
    from a report whose figures are all zero.

    Reports handed out by ``PeriodAggregator`` may be shared between
    callers and are read-only. Build a new one instead of editing it.
    """

    unified_tree: list[AccountNode] = field(default_factory=list)
    periods: list[PeriodColumn] = field(default_factory=list)
    totals_by_period: dict[str, dict[int, Decimal]] = field(default_factory=dict)
    totals_by_node: dict[int, Decimal] = field(default_factory=dict)
    summary: ReportSummary | None = None

    @property
    def is_empty(self) -> bool:
        return self.summary is None

    def cell(self, period_key: str, node_id: int) -> Decimal:
        """Total of ``node_id`` in ``period_key``, 0 when absent."""
        return self.totals_by_period.get(period_key, {}).get(node_id, ZERO)

    def node_total(self, node_id: int) -> Decimal:
        return self.totals_by_node.get(node_id, ZERO)

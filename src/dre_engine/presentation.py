"""Render-ready rows and summary cards for the DRE screen."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from dre_engine.config import get_settings
from dre_engine.expansion import RowExpansionState, iter_visible_rows
from dre_engine.models import ABSOLUTE_FIELDS, MARGIN_FIELDS, AggregatedReport, ReportSummary

CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")

SUMMARY_LABELS: dict[str, str] = {
    "gross_revenue": "Receita Bruta",
    "deductions": "(-) Deduções",
    "net_revenue": "Receita Líquida",
    "cost_of_goods": "(-) CMV/CSV",
    "gross_profit": "Lucro Bruto",
    "operating_expenses": "(-) Despesas Operacionais",
    "operating_profit": "Lucro Operacional",
    "other_income_expenses": "Outras Receitas e Despesas",
    "net_profit": "Lucro Líquido do Exercício",
    "gross_margin": "Margem Bruta",
    "operating_margin": "Margem Operacional",
    "net_margin": "Margem Líquida",
}


class ValueTone(str, Enum):
    """Colour hint for a figure."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def of(cls, value: Decimal) -> ValueTone:
        if value < 0:
            return cls.NEGATIVE
        if value > 0:
            return cls.POSITIVE
        return cls.NEUTRAL


def _pt_br_number(value: Decimal, places: int) -> str:
    # 1,234.56 -> 1.234,56
    text = f"{abs(value):,.{places}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value: Decimal, symbol: str | None = None) -> str:
    """Format as Brazilian currency, e.g. ``R$ 1.234,56`` or ``-R$ 10,00``."""
    symbol = symbol if symbol is not None else get_settings().currency_symbol
    amount = value.quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {_pt_br_number(amount, 2)}"


def format_percentage(value: Decimal) -> str:
    """Format with one decimal place and a ``%`` suffix, e.g. ``47,1%``."""
    amount = value.quantize(TENTHS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{_pt_br_number(amount, 1)}%"


@dataclass(frozen=True)
class SummaryItem:
    """One card of the summary panel."""

    key: str
    label: str
    value: Decimal
    is_percentage: bool
    formatted: str
    tone: ValueTone


def build_summary_panel(
    summary: ReportSummary | None, currency_symbol: str | None = None
) -> list[SummaryItem]:
    """Nine absolute figures followed by the three margins.

    Returns an empty list when there is no data.
    """
    if summary is None:
        return []

    items: list[SummaryItem] = []
    for key in ABSOLUTE_FIELDS + MARGIN_FIELDS:
        value: Decimal = getattr(summary, key)
        is_percentage = key in MARGIN_FIELDS
        formatted = (
            format_percentage(value)
            if is_percentage
            else format_currency(value, currency_symbol)
        )
        items.append(
            SummaryItem(
                key=key,
                label=SUMMARY_LABELS[key],
                value=value,
                is_percentage=is_percentage,
                formatted=formatted,
                tone=ValueTone.of(value),
            )
        )
    return items


@dataclass(frozen=True)
class ReportRow:
    """One table row: an account with a cell per period plus the total."""

    node_id: int
    name: str
    depth: int
    has_children: bool
    expanded: bool
    sign: str
    cells: tuple[Decimal, ...]
    total: Decimal
    tone: ValueTone


def build_report_table(
    report: AggregatedReport, state: RowExpansionState | None = None
) -> list[ReportRow]:
    """Flatten the unified tree into table rows.

    Cells follow ``report.periods`` order. Without a ``state`` every
    branch is shown expanded.
    """
    if state is None:
        state = RowExpansionState()
        state.expand_all(report.unified_tree)

    rows: list[ReportRow] = []
    for visible in iter_visible_rows(report.unified_tree, state):
        node = visible.node
        total = report.node_total(node.id)
        rows.append(
            ReportRow(
                node_id=node.id,
                name=node.name,
                depth=visible.depth,
                has_children=visible.has_children,
                expanded=visible.expanded,
                sign="(-)" if node.is_expense else "(+)",
                cells=tuple(report.cell(column.key, node.id) for column in report.periods),
                total=total,
                tone=ValueTone.NEGATIVE if node.is_expense else ValueTone.of(total),
            )
        )
    return rows

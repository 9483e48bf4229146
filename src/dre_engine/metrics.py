"""Margin ratios derived from income statement totals."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal

from dre_engine.models import ZERO, ReportSummary

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Margins:
    """Profitability ratios as percentages of net revenue."""

    gross_margin: Decimal = ZERO
    operating_margin: Decimal = ZERO
    net_margin: Decimal = ZERO


def _ratio(numerator: Decimal, net_revenue: Decimal) -> Decimal:
    if net_revenue == 0:
        return ZERO
    return numerator / net_revenue * HUNDRED


def calculate_margins(absolutes: ReportSummary | Mapping[str, Decimal]) -> Margins:
    """Compute gross, operating and net margin from absolute totals.

    A zero net revenue yields 0 for every margin rather than a division
    error. Decimal arithmetic never produces NaN or Infinity from finite
    operands, so the result is always finite.
    """
    if isinstance(absolutes, ReportSummary):
        values = absolutes.absolutes()
    else:
        values = dict(absolutes)
    net_revenue = values.get("net_revenue", ZERO)
    return Margins(
        gross_margin=_ratio(values.get("gross_profit", ZERO), net_revenue),
        operating_margin=_ratio(values.get("operating_profit", ZERO), net_revenue),
        net_margin=_ratio(values.get("net_profit", ZERO), net_revenue),
    )


def with_recomputed_margins(summary: ReportSummary) -> ReportSummary:
    """Return ``summary`` with its margins replaced by recomputed ones."""
    margins = calculate_margins(summary)
    return replace(
        summary,
        gross_margin=margins.gross_margin,
        operating_margin=margins.operating_margin,
        net_margin=margins.net_margin,
    )

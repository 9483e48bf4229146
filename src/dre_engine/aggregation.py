"""Merge per-period income statements into one multi-column report.

Each period snapshot arrives already totalled by the backend, one per
calendar month. The first snapshot's tree is the display skeleton; every
snapshot contributes its own node totals to a period x node table, and
the absolute summary figures are summed across periods. Margins are then
recomputed from those sums, never summed themselves.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from decimal import Decimal
from functools import reduce

import structlog

from dre_engine.metrics import with_recomputed_margins
from dre_engine.models import (
    ABSOLUTE_FIELDS,
    ZERO,
    AggregatedReport,
    PeriodColumn,
    PeriodSnapshot,
    ReportSummary,
)
from dre_engine.tree import copy_tree, iter_preorder

logger = structlog.get_logger(__name__)

# (period_key, node_id, total)
Cell = tuple[str, int, Decimal]


def _collect_cells(snapshots: Sequence[PeriodSnapshot]) -> list[Cell]:
    return [
        (snapshot.period_key, node.id, node.total)
        for snapshot in snapshots
        for node, _ in iter_preorder(snapshot.tree)
    ]


def _period_columns(snapshots: Sequence[PeriodSnapshot]) -> list[PeriodColumn]:
    columns: dict[str, PeriodColumn] = {}
    for snapshot in snapshots:
        columns.setdefault(
            snapshot.period_key,
            PeriodColumn(key=snapshot.period_key, label=snapshot.period_label),
        )
    return list(columns.values())


def _sum_absolutes(acc: dict[str, Decimal], snapshot: PeriodSnapshot) -> dict[str, Decimal]:
    return {name: acc[name] + getattr(snapshot.summary, name) for name in ABSOLUTE_FIELDS}


def aggregate_periods(snapshots: Sequence[PeriodSnapshot]) -> AggregatedReport:
    """Build the unified multi-period report.

    Nodes of the skeleton that a period does not contain read as 0 for
    that period. Snapshots sharing a ``period_key`` are added into the
    same column. The function is pure: equal inputs give equal outputs
    and every call allocates fresh structures.
    """
    if not snapshots:
        return AggregatedReport()

    skeleton = snapshots[0].tree
    skeleton_ids = [node.id for node, _ in iter_preorder(skeleton)]
    columns = _period_columns(snapshots)

    totals_by_period: dict[str, dict[int, Decimal]] = {
        column.key: dict.fromkeys(skeleton_ids, ZERO) for column in columns
    }
    totals_by_node: dict[int, Decimal] = dict.fromkeys(skeleton_ids, ZERO)
    seen: set[tuple[str, int]] = set()

    for period_key, node_id, total in _collect_cells(snapshots):
        column = totals_by_period[period_key]
        column[node_id] = column.get(node_id, ZERO) + total
        totals_by_node[node_id] = totals_by_node.get(node_id, ZERO) + total
        seen.add((period_key, node_id))

    for column in columns:
        for node_id in skeleton_ids:
            if (column.key, node_id) not in seen:
                logger.debug(
                    "period_node_missing",
                    period_key=column.key,
                    account_id=node_id,
                )

    absolutes = reduce(_sum_absolutes, snapshots, dict.fromkeys(ABSOLUTE_FIELDS, ZERO))
    summary = with_recomputed_margins(ReportSummary(**absolutes))

    logger.debug(
        "periods_aggregated",
        periods=len(columns),
        snapshots=len(snapshots),
        nodes=len(totals_by_node),
    )
    return AggregatedReport(
        unified_tree=copy_tree(skeleton),
        periods=columns,
        totals_by_period=totals_by_period,
        totals_by_node=totals_by_node,
        summary=summary,
    )


def snapshot_fingerprint(snapshot: PeriodSnapshot) -> Hashable:
    """Value key for a snapshot, equal for snapshots with equal content."""
    nodes = tuple(
        (
            depth,
            node.id,
            node.parent_id,
            node.name,
            node.description,
            node.type,
            node.total,
            len(node.children),
        )
        for node, depth in iter_preorder(snapshot.tree)
    )
    return (
        snapshot.period_key,
        snapshot.period_label,
        tuple(snapshot.summary.as_dict().items()),
        nodes,
    )


class PeriodAggregator:
    """Memoizing front for :func:`aggregate_periods`.

    Keeps the last input (by value) and its report, so re-rendering with
    the same snapshots does not recompute anything. A cache hit returns
    the very same :class:`AggregatedReport` instance, so callers treat it
    as read-only; call :meth:`clear` to force a fresh build.
    """

    def __init__(self) -> None:
        self._last_key: Hashable | None = None
        self._last_report: AggregatedReport | None = None
        self.computations = 0

    def aggregate(self, snapshots: Sequence[PeriodSnapshot]) -> AggregatedReport:
        key = tuple(snapshot_fingerprint(snapshot) for snapshot in snapshots)
        if self._last_report is not None and key == self._last_key:
            logger.debug("aggregation_cache_hit", snapshots=len(snapshots))
            return self._last_report

        report = aggregate_periods(snapshots)
        self.computations += 1
        self._last_key = key
        self._last_report = report
        return report

    def clear(self) -> None:
        self._last_key = None
        self._last_report = None

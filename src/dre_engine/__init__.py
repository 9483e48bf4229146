"""DRE engine - chart-of-accounts trees and multi-period income statements."""

__version__ = "0.1.0"

from dre_engine.aggregation import PeriodAggregator, aggregate_periods
from dre_engine.client import FinanceAPIClient, FinanceAPIError
from dre_engine.config import configure_logging, get_settings
from dre_engine.expansion import RowExpansionState, VisibleRow, iter_visible_rows
from dre_engine.metrics import Margins, calculate_margins
from dre_engine.models import (
    AccountNode,
    AccountType,
    AggregatedReport,
    PeriodColumn,
    PeriodSnapshot,
    ReportSummary,
)
from dre_engine.payloads import PayloadError, parse_account_records, parse_dre_payload
from dre_engine.presentation import build_report_table, build_summary_panel
from dre_engine.service import DREReportService
from dre_engine.tree import DuplicateIdError, build_account_tree, flatten_tree, iter_preorder

__all__ = [
    # Version
    "__version__",
    # Models
    "AccountNode",
    "AccountType",
    "AggregatedReport",
    "PeriodColumn",
    "PeriodSnapshot",
    "ReportSummary",
    # Tree
    "build_account_tree",
    "flatten_tree",
    "iter_preorder",
    "DuplicateIdError",
    # Aggregation & metrics
    "aggregate_periods",
    "PeriodAggregator",
    "calculate_margins",
    "Margins",
    # Rendering
    "RowExpansionState",
    "VisibleRow",
    "iter_visible_rows",
    "build_report_table",
    "build_summary_panel",
    # Data loading
    "FinanceAPIClient",
    "FinanceAPIError",
    "PayloadError",
    "parse_account_records",
    "parse_dre_payload",
    "DREReportService",
    # Config
    "get_settings",
    "configure_logging",
]

"""Data-loading paths of the account-plan and DRE screens."""

from datetime import date

from dre_engine.aggregation import PeriodAggregator
from dre_engine.client import FinanceAPIClient
from dre_engine.config import get_logger, report_context
from dre_engine.models import AccountNode, AggregatedReport
from dre_engine.tree import build_account_tree

logger = get_logger(__name__)


class DREReportService:
    """Fetch raw data through the client and hand it to the pure core."""

    def __init__(
        self,
        client: FinanceAPIClient,
        aggregator: PeriodAggregator | None = None,
    ):
        self._client = client
        self._aggregator = aggregator or PeriodAggregator()

    async def account_plan(self) -> list[AccountNode]:
        """The chart of accounts as a forest, rebuilt on every call."""
        records = await self._client.list_accounts()
        tree = build_account_tree(record.to_record() for record in records)
        logger.info("account_plan_loaded", accounts=len(records), roots=len(tree))
        return tree

    async def income_statement(
        self, start: date, end: date, company_id: int
    ) -> AggregatedReport:
        """Monthly DRE for ``[start, end]`` merged into one report."""
        with report_context(
            company_id=company_id,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
        ):
            snapshots = await self._client.fetch_period_snapshots(start, end, company_id)
            return self._aggregator.aggregate(snapshots)

"""Tests for the report service data-loading paths."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog

from dre_engine.aggregation import PeriodAggregator
from dre_engine.payloads import parse_account_records
from dre_engine.service import DREReportService
from dre_engine.tree import DuplicateIdError


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.list_accounts = AsyncMock()
    client.fetch_period_snapshots = AsyncMock()
    return client


class TestAccountPlan:
    """Tests for DREReportService.account_plan()."""

    @pytest.mark.asyncio
    async def test_builds_tree_from_listing(self, mock_client, account_records):
        mock_client.list_accounts.return_value = parse_account_records(account_records)
        service = DREReportService(mock_client)

        tree = await service.account_plan()

        assert [node.id for node in tree] == [1, 6, 9]
        assert [child.id for child in tree[0].children] == [2, 3]

    @pytest.mark.asyncio
    async def test_duplicate_ids_surface(self, mock_client):
        mock_client.list_accounts.return_value = parse_account_records(
            [{"id": 1, "name": "A"}, {"id": 1, "name": "B"}]
        )
        service = DREReportService(mock_client)

        with pytest.raises(DuplicateIdError):
            await service.account_plan()


class TestIncomeStatement:
    """Tests for DREReportService.income_statement()."""

    @pytest.mark.asyncio
    async def test_aggregates_fetched_months(
        self, mock_client, january_snapshot, february_snapshot
    ):
        mock_client.fetch_period_snapshots.return_value = [january_snapshot, february_snapshot]
        service = DREReportService(mock_client)

        report = await service.income_statement(date(2025, 1, 1), date(2025, 2, 28), 4)

        mock_client.fetch_period_snapshots.assert_awaited_once_with(
            date(2025, 1, 1), date(2025, 2, 28), 4
        )
        assert report.totals_by_node == {1: Decimal("2200"), 2: Decimal("-700")}

    @pytest.mark.asyncio
    async def test_reuses_report_for_identical_data(self, mock_client, january_snapshot):
        mock_client.fetch_period_snapshots.return_value = [january_snapshot]
        aggregator = PeriodAggregator()
        service = DREReportService(mock_client, aggregator=aggregator)

        first = await service.income_statement(date(2025, 1, 1), date(2025, 1, 31), 4)
        second = await service.income_statement(date(2025, 1, 1), date(2025, 1, 31), 4)

        assert first is second
        assert aggregator.computations == 1

    @pytest.mark.asyncio
    async def test_no_months_gives_no_data(self, mock_client):
        mock_client.fetch_period_snapshots.return_value = []
        service = DREReportService(mock_client)

        report = await service.income_statement(date(2025, 1, 1), date(2025, 1, 31), 4)

        assert report.summary is None

    @pytest.mark.asyncio
    async def test_keeps_caller_log_context(self, mock_client, january_snapshot):
        mock_client.fetch_period_snapshots.return_value = [january_snapshot]
        service = DREReportService(mock_client)
        structlog.contextvars.bind_contextvars(request_id="abc")
        try:
            await service.income_statement(date(2025, 1, 1), date(2025, 1, 31), 4)

            context = structlog.contextvars.get_contextvars()
            assert context["request_id"] == "abc"
            assert "company_id" not in context
        finally:
            structlog.contextvars.clear_contextvars()

    @pytest.mark.asyncio
    async def test_binds_report_context_during_fetch(self, mock_client, january_snapshot):
        seen = {}

        async def fetch(start, end, company_id):
            seen.update(structlog.contextvars.get_contextvars())
            return [january_snapshot]

        mock_client.fetch_period_snapshots.side_effect = fetch
        service = DREReportService(mock_client)

        await service.income_statement(date(2025, 1, 1), date(2025, 1, 31), 4)

        assert seen["company_id"] == 4
        assert seen["start_date"] == "2025-01-01"
        assert seen["end_date"] == "2025-01-31"

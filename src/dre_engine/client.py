"""Async client for the finance API endpoints the reports read from."""

from datetime import date
from typing import Any

import httpx
import structlog

from dre_engine.config import get_settings
from dre_engine.models import PeriodSnapshot
from dre_engine.payloads import AccountRecord, parse_account_records, parse_dre_payload
from dre_engine.periods import month_periods

logger = structlog.get_logger(__name__)

ACCOUNT_PLAN_PATH = "/api/account-plan"
DRE_PATH = "/api/dre"


class FinanceAPIError(Exception):
    """Base exception for finance API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class FinanceAPIClient:
    """Read-only async client for account listings and DRE reports.

    Requests are not retried; callers that want a retry policy wrap the
    calls themselves. Cancelling the awaiting task cancels the request.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.finance_api_url).rstrip("/")
        if token is None and settings.finance_api_token is not None:
            token = settings.finance_api_token.get_secret_value()
        self._token = token
        self._timeout = timeout if timeout is not None else settings.finance_api_timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FinanceAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        client = await self._get_client()
        logger.debug("finance_api_request", method="GET", path=path, params=params)

        try:
            response = await client.get(path, params=params, headers=self._get_headers())
        except httpx.RequestError as e:
            logger.warning("finance_api_error", path=path, error=str(e))
            raise FinanceAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            logger.warning(
                "finance_api_error",
                path=path,
                status_code=response.status_code,
            )
            message = (
                error_detail.get("message") if isinstance(error_detail, dict) else None
            )
            raise FinanceAPIError(
                message or f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        try:
            return response.json() if response.content else {}
        except ValueError as e:
            raise FinanceAPIError(
                "Response body is not JSON",
                status_code=response.status_code,
                details={"raw": response.text[:500]},
            ) from e

    # === Account plan ===

    async def list_accounts(self) -> list[AccountRecord]:
        """List the chart of accounts as flat records."""
        result = await self.get(ACCOUNT_PLAN_PATH)
        return parse_account_records(result)

    # === DRE ===

    async def get_dre(self, start: date, end: date, company_id: int) -> Any:
        """Raw report body for one date range."""
        return await self.get(
            DRE_PATH,
            params={
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "company_id": company_id,
            },
        )

    async def fetch_period_snapshots(
        self, start: date, end: date, company_id: int
    ) -> list[PeriodSnapshot]:
        """One snapshot per calendar month in ``[start, end]``, in month order."""
        snapshots: list[PeriodSnapshot] = []
        for period in month_periods(start, end):
            payload = await self.get_dre(period.start, period.end, company_id)
            snapshots.append(parse_dre_payload(payload, period.key, period.label))
        logger.info(
            "period_snapshots_fetched",
            company_id=company_id,
            periods=len(snapshots),
        )
        return snapshots

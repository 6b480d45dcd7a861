import logging
from typing import Any, Optional, Sequence

import httpx

from .config import (
    ACCOUNTS_PATH,
    DATE_FILTER_ALL_TIME,
    DEFAULT_LIMIT,
    MINT_HEADERS,
    TRENDS_PATH,
    ApiConfig,
)
from .models import Account, ReportType

logger = logging.getLogger(__name__)


def make_account_id_filter(account_id: str) -> dict:
    return {"type": "AccountIdFilter", "accountId": account_id}


def make_custom_date_filter(start_date: str, end_date: str) -> dict:
    return {"type": "CUSTOM", "startDate": start_date, "endDate": end_date}


class MintClient:
    """Authenticated JSON client for the Mint personal finance API.

    Usage:
        async with MintClient(api_key) as client:
            accounts = await client.fetch_accounts()
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[ApiConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ApiConfig()
        self._http = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={
                **MINT_HEADERS,
                "Authorization": (
                    f"Intuit_APIKey intuit_apikey={api_key}, intuit_apikey_version=1.0"
                ),
            },
            transport=transport,
        )

    async def __aenter__(self) -> "MintClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self, path: str, method: str = "GET", json: Optional[dict] = None, **kwargs
    ) -> Any:
        """Send a request relative to the base URL and return decoded JSON."""
        logger.debug("%s %s", method, path)
        resp = await self._http.request(method, path, json=json, **kwargs)
        resp.raise_for_status()
        return resp.json()

    async def fetch_accounts(
        self, offset: int = 0, limit: int = DEFAULT_LIMIT
    ) -> list[Account]:
        data = await self.request(
            ACCOUNTS_PATH, params={"offset": offset, "limit": limit}
        )
        accounts = []
        for account in data.get("Account") or []:
            try:
                accounts.append(Account.from_api(account))
            except ValueError:
                logger.warning(
                    "Skipping account %s with unknown type %r",
                    account.get("id"),
                    account.get("type"),
                )
        return accounts

    async def fetch_trends(
        self,
        report_type: ReportType,
        filters: Sequence[dict] = (),
        date_filter: Optional[dict] = None,
        offset: int = 0,
        limit: int = DEFAULT_LIMIT,
    ) -> Optional[list[dict]]:
        """Fetch raw trend entries.

        Returns:
            The ``Trend`` list, or None when the API omits it. That happens when
            the report type does not apply to the filtered accounts and when
            the request timed out upstream.
        """
        data = await self.request(
            TRENDS_PATH,
            method="POST",
            json={
                "reportView": {"type": ReportType(report_type).value},
                "dateFilter": date_filter or DATE_FILTER_ALL_TIME,
                "searchFilters": [{"matchAll": True, "filters": list(filters)}],
                "offset": offset,
                "limit": limit,
            },
        )
        return data.get("Trend")

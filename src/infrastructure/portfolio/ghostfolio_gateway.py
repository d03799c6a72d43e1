"""
infrastructure.portfolio.ghostfolio_gateway - HTTP client for a Ghostfolio server.

Implements PortfolioServicePort, AccountServicePort and MarketDataPort
against the Ghostfolio REST API. Uses requests via run_in_executor for
async compat.

Auth: the configured security token is exchanged for a JWT at
/api/v1/auth/anonymous. The JWT is cached for 30 minutes; a 401/403
clears it and the request is retried once with a fresh token.

The gateway is single-account: every principal maps onto the one
security token it was configured with.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Optional, Sequence
from urllib.parse import quote

import requests

from domain.exceptions import AuthenticationError, PortfolioDataError
from domain.models import (
    Account,
    PerformanceReport,
    PortfolioDetails,
    PortfolioFilter,
    PricePoint,
    Quote,
    RuleEvaluation,
    SymbolMatch,
)
from infrastructure.portfolio import mapping

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 30 * 60

# PortfolioFilter.type → Ghostfolio query parameter
_FILTER_PARAMS = {
    "ACCOUNT": "accounts",
    "ASSET_CLASS": "assetClasses",
    "DATA_SOURCE": "dataSource",
    "SYMBOL": "symbol",
    "TAG": "tags",
}


class GhostfolioGateway:
    """Portfolio, account and market data from one Ghostfolio account."""

    def __init__(
        self,
        api_url: str = "http://localhost:3333",
        security_token: str = "",
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = api_url.rstrip("/")
        self._security_token = security_token
        self._timeout = timeout
        self._http = session or requests.Session()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

    # ── PortfolioServicePort ────────────────────────────────────

    async def get_details(
        self,
        user_id: str,
        *,
        with_summary: bool = False,
        filters: Sequence[PortfolioFilter] = (),
    ) -> PortfolioDetails:
        params: dict[str, str] = {"range": "max"}
        for key, ids in _group_filters(filters).items():
            params[key] = ",".join(ids)
        data = await self._get("/api/v1/portfolio/details", params)
        details = mapping.parse_details(data)
        if not with_summary:
            details = PortfolioDetails(holdings=details.holdings)
        logger.info("Loaded %d holding(s) for user %s", len(details.holdings), user_id)
        return details

    async def get_performance(self, user_id: str, *, date_range: str = "ytd") -> PerformanceReport:
        data = await self._get("/api/v2/portfolio/performance", {"range": date_range})
        return mapping.parse_performance(data)

    async def get_report(self, user_id: str) -> list[RuleEvaluation]:
        data = await self._get("/api/v1/portfolio/report")
        return mapping.parse_report(data)

    # ── AccountServicePort ──────────────────────────────────────

    async def get_accounts(self, user_id: str) -> list[Account]:
        data = await self._get("/api/v1/account")
        return mapping.parse_accounts(data)

    # ── MarketDataPort ──────────────────────────────────────────

    async def search(self, query: str) -> list[SymbolMatch]:
        data = await self._get("/api/v1/symbol/lookup", {"query": query})
        return mapping.parse_symbol_matches(data)

    async def get_quote(self, symbol: str, data_source: str) -> Optional[Quote]:
        data = await self._get(_symbol_path(symbol, data_source))
        return mapping.parse_quote(symbol, data_source, data)

    async def get_historical(
        self, symbol: str, data_source: str, days: int = 30,
    ) -> list[PricePoint]:
        data = await self._get(
            _symbol_path(symbol, data_source), {"includeHistoricalData": str(days)},
        )
        return mapping.parse_historical(data)[-days:]

    # ── HTTP ────────────────────────────────────────────────────

    async def _get(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, self._get_sync, path, params or {})
        except (PortfolioDataError, AuthenticationError):
            raise
        except Exception as e:
            raise PortfolioDataError(f"Ghostfolio request {path} failed: {e}") from e

    def _get_sync(self, path: str, params: dict[str, str]) -> Any:
        """Synchronous GET with one re-auth retry (runs in thread pool)."""
        url = self._base_url + path
        response = self._request(url, params, self._get_token())
        if response.status_code in (401, 403):
            logger.info("Ghostfolio returned %d, refreshing token", response.status_code)
            self._clear_token()
            response = self._request(url, params, self._get_token())

        if not response.ok:
            raise PortfolioDataError(
                f"Ghostfolio returned HTTP {response.status_code} for {path}: "
                f"{response.text[:200]}"
            )
        return response.json()

    def _request(self, url: str, params: dict[str, str], token: str) -> requests.Response:
        try:
            return self._http.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except requests.exceptions.ConnectionError as e:
            raise PortfolioDataError(f"Ghostfolio unreachable at {self._base_url}: {e}") from e
        except requests.exceptions.Timeout:
            raise PortfolioDataError(f"Ghostfolio timed out after {self._timeout}s")

    def _get_token(self) -> str:
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            if not self._security_token:
                raise AuthenticationError(
                    "GHOSTFOLIO_SECURITY_TOKEN not set. "
                    "Get this from your Ghostfolio user settings."
                )

            try:
                response = self._http.post(
                    self._base_url + "/api/v1/auth/anonymous",
                    json={"accessToken": self._security_token},
                    timeout=self._timeout,
                )
            except requests.exceptions.RequestException as e:
                raise PortfolioDataError(f"Ghostfolio auth request failed: {e}") from e

            if not response.ok:
                raise AuthenticationError(
                    f"Ghostfolio auth failed ({response.status_code}): {response.text[:200]}"
                )

            self._token = response.json()["authToken"]
            self._token_expires_at = time.monotonic() + TOKEN_TTL_SECONDS
            logger.debug("Obtained Ghostfolio token (valid %ds)", TOKEN_TTL_SECONDS)
            return self._token

    def _clear_token(self) -> None:
        with self._token_lock:
            self._token = None
            self._token_expires_at = 0.0


def _symbol_path(symbol: str, data_source: str) -> str:
    return f"/api/v1/symbol/{quote(data_source, safe='')}/{quote(symbol, safe='')}"


def _group_filters(filters: Sequence[PortfolioFilter]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for f in filters:
        key = _FILTER_PARAMS.get(f.type.upper())
        if key is None:
            raise PortfolioDataError(f"Unsupported filter type: {f.type}")
        grouped.setdefault(key, []).append(f.id)
    return grouped

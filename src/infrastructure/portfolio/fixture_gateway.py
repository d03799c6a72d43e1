"""
infrastructure.portfolio.fixture_gateway - Offline portfolio back-end.

Serves saved Ghostfolio-shaped responses from one JSON file, for demos,
the CLI without a server, and tests. File layout:

    {
      "portfolios": {
        "<user id>" | "default": {
          "details":     {...},              # /portfolio/details response
          "performance": {"ytd": {...}, ...},# /portfolio/performance per range
          "report":      {...},              # /portfolio/report response
          "accounts":    [...]
        }
      },
      "symbols": [ {symbol, name, dataSource, marketPrice, historicalData, ...} ]
    }

A user without an entry gets the "default" portfolio when one exists.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from domain.exceptions import PortfolioDataError
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


class FixturePortfolioGateway:
    """Portfolio, account and market data from an in-memory JSON document."""

    def __init__(self, data: dict[str, Any]):
        if not isinstance(data, dict):
            raise PortfolioDataError("Fixture root must be a JSON object")
        self._portfolios: dict[str, Any] = data.get("portfolios") or {}
        self._symbols: list[dict] = data.get("symbols") or []

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> FixturePortfolioGateway:
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PortfolioDataError(f"Cannot load portfolio fixture {path}: {e}") from e
        logger.info("Loaded portfolio fixture from %s", path)
        return cls(data)

    def _portfolio(self, user_id: str) -> dict[str, Any]:
        portfolio = self._portfolios.get(user_id) or self._portfolios.get("default")
        if portfolio is None:
            raise PortfolioDataError(f"No portfolio data for user {user_id}")
        return portfolio

    def _section(self, user_id: str, name: str) -> Any:
        section = self._portfolio(user_id).get(name)
        if section is None:
            raise PortfolioDataError(f"Fixture has no '{name}' data for user {user_id}")
        return section

    # ── PortfolioServicePort ────────────────────────────────────

    async def get_details(
        self,
        user_id: str,
        *,
        with_summary: bool = False,
        filters: Sequence[PortfolioFilter] = (),
    ) -> PortfolioDetails:
        details = mapping.parse_details(self._section(user_id, "details"))
        holdings = details.holdings
        for f in filters:
            holdings = tuple(h for h in holdings if _matches(h, f))
        return PortfolioDetails(
            holdings=holdings,
            summary=details.summary if with_summary else None,
        )

    async def get_performance(self, user_id: str, *, date_range: str = "ytd") -> PerformanceReport:
        by_range = self._section(user_id, "performance")
        if date_range not in by_range:
            raise PortfolioDataError(f"No performance data for range '{date_range}'")
        return mapping.parse_performance(by_range[date_range])

    async def get_report(self, user_id: str) -> list[RuleEvaluation]:
        return mapping.parse_report(self._section(user_id, "report"))

    # ── AccountServicePort ──────────────────────────────────────

    async def get_accounts(self, user_id: str) -> list[Account]:
        return mapping.parse_accounts(self._portfolio(user_id).get("accounts") or [])

    # ── MarketDataPort ──────────────────────────────────────────

    async def search(self, query: str) -> list[SymbolMatch]:
        term = query.lower()
        hits = [
            s for s in self._symbols
            if term in s.get("symbol", "").lower() or term in (s.get("name") or "").lower()
        ]
        return mapping.parse_symbol_matches(hits)

    async def get_quote(self, symbol: str, data_source: str) -> Optional[Quote]:
        entry = self._symbol(symbol, data_source)
        return mapping.parse_quote(symbol, data_source, entry) if entry else None

    async def get_historical(
        self, symbol: str, data_source: str, days: int = 30,
    ) -> list[PricePoint]:
        entry = self._symbol(symbol, data_source)
        if entry is None:
            raise PortfolioDataError(f"No history for {data_source}:{symbol}")
        return mapping.parse_historical(entry)[-days:]

    def _symbol(self, symbol: str, data_source: str) -> Optional[dict]:
        for s in self._symbols:
            if s.get("symbol", "").upper() == symbol.upper() and \
                    (s.get("dataSource") or data_source) == data_source:
                return s
        return None


def _matches(holding, f: PortfolioFilter) -> bool:
    kind = f.type.upper()
    if kind == "ASSET_CLASS":
        return (holding.asset_class or "") == f.id
    if kind == "SYMBOL":
        return holding.symbol == f.id
    if kind == "DATA_SOURCE":
        return holding.data_source == f.id
    raise PortfolioDataError(f"Unsupported filter type for fixture back-end: {f.type}")

"""
agent.tools.query_holdings - Filter and sort individual positions.

All filters are optional and combine with AND. Symbol and asset class
match case-insensitively and exactly; search_term is a substring match
on name or symbol.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from agent.tools.details_cache import PortfolioDetailsCache
from application.context import SessionContext
from domain.models import Holding

SortKey = Literal["allocation", "value", "performance", "name"]


class QueryHoldingsInput(BaseModel):
    """Input schema for the query_holdings tool."""

    symbol: Optional[str] = Field(
        default=None, description='Filter by exact symbol (e.g. "AAPL", "BTC"). Case insensitive.',
    )
    asset_class: Optional[str] = Field(
        default=None,
        description='Filter by asset class (e.g. "EQUITY", "FIXED_INCOME", "COMMODITY", '
                    '"REAL_ESTATE", "LIQUIDITY")',
    )
    search_term: Optional[str] = Field(
        default=None, description='Search holdings by name or symbol substring (e.g. "Apple")',
    )
    min_value_in_base_currency: Optional[float] = Field(
        default=None, description="Minimum holding value in base currency",
    )
    max_value_in_base_currency: Optional[float] = Field(
        default=None, description="Maximum holding value in base currency",
    )
    sort_by: SortKey = Field(default="allocation", description="Sort results by this field")


def filter_holdings(
    holdings: list[Holding],
    *,
    symbol: Optional[str] = None,
    asset_class: Optional[str] = None,
    search_term: Optional[str] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> list[Holding]:
    results = list(holdings)
    if symbol:
        sym = symbol.upper()
        results = [h for h in results if h.symbol.upper() == sym]
    if asset_class:
        cls = asset_class.upper()
        results = [h for h in results if (h.asset_class or "").upper() == cls]
    if search_term:
        term = search_term.lower()
        results = [
            h for h in results
            if term in (h.name or "").lower() or term in h.symbol.lower()
        ]
    if min_value is not None:
        results = [h for h in results if h.value_in_base_currency >= min_value]
    if max_value is not None:
        results = [h for h in results if h.value_in_base_currency <= max_value]
    return results


def sort_holdings(holdings: list[Holding], sort_by: str = "allocation") -> list[Holding]:
    if sort_by == "value":
        return sorted(holdings, key=lambda h: h.value_in_base_currency, reverse=True)
    if sort_by == "performance":
        return sorted(
            holdings,
            key=lambda h: h.net_performance_percent_with_currency_effect or 0.0,
            reverse=True,
        )
    if sort_by == "name":
        return sorted(holdings, key=lambda h: (h.name or "").casefold())
    return analytics.by_allocation(holdings)


class QueryHoldingsTool(BaseTool):
    name = "query_holdings"
    description = (
        "Filters and queries individual holdings/positions in the portfolio. Can filter "
        "by symbol, asset class, name or value range. Use this when the user asks about "
        "specific stocks, a particular asset class, their crypto holdings, or wants to "
        "find holdings matching criteria."
    )

    def __init__(self, details: PortfolioDetailsCache):
        self._details = details

    def get_schema(self) -> type[BaseModel]:
        return QueryHoldingsInput

    async def execute(
        self,
        ctx: SessionContext,
        symbol: Optional[str] = None,
        asset_class: Optional[str] = None,
        search_term: Optional[str] = None,
        min_value_in_base_currency: Optional[float] = None,
        max_value_in_base_currency: Optional[float] = None,
        sort_by: str = "allocation",
        **kwargs,
    ) -> ToolPayload:
        details = await self._details.get_details(with_summary=True)
        matches = sort_holdings(
            filter_holdings(
                list(details.holdings),
                symbol=symbol,
                asset_class=asset_class,
                search_term=search_term,
                min_value=min_value_in_base_currency,
                max_value=max_value_in_base_currency,
            ),
            sort_by,
        )

        return {
            "matchCount": len(matches),
            "totalHoldings": len(details.holdings),
            "holdings": [_holding_row(h) for h in matches],
            "dataAsOf": analytics.data_as_of(),
        }


def _holding_row(h: Holding) -> dict:
    return {
        "name": h.name,
        "symbol": h.symbol,
        "currency": h.currency,
        "assetClass": h.asset_class or analytics.UNKNOWN,
        "assetSubClass": h.asset_sub_class or analytics.UNKNOWN,
        "quantity": h.quantity,
        "marketPrice": h.market_price,
        "valueInBaseCurrency": h.value_in_base_currency,
        "allocationPercent": analytics.percent(h.allocation_in_percentage),
        "netPerformance": h.net_performance,
        "netPerformancePercent": analytics.percent(h.net_performance_percent_with_currency_effect),
        "dividend": h.dividend,
        "sectors": [s.name for s in h.sectors],
        "countries": [{"code": c.code, "weight": c.weight} for c in h.countries],
        "dateOfFirstActivity": h.date_of_first_activity,
    }

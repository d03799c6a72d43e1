"""
agent.tools.market_data - Quotes, recent price history and symbol search.

Two modes: search_query without symbol returns matching instruments;
otherwise the symbol is quoted. Missing history is reported inside the
payload rather than failing the whole call.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from application.context import SessionContext
from domain.exceptions import PortfolioDataError
from domain.ports import MarketDataPort

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 10
HISTORY_DAYS = 30
HISTORY_POINTS = 15

DataSource = Literal[
    "COINGECKO",
    "EOD_HISTORICAL_DATA",
    "FINANCIAL_MODELING_PREP",
    "GOOGLE_SHEETS",
    "MANUAL",
    "RAPID_API",
    "YAHOO",
]


class MarketDataInput(BaseModel):
    """Input schema for the get_market_data tool."""

    symbol: Optional[str] = Field(
        default=None,
        description='Ticker symbol (e.g. "AAPL", "BTC-USD"). Required unless using search_query.',
    )
    data_source: DataSource = Field(
        default="YAHOO",
        description="Data source for the symbol. Most stocks/ETFs use YAHOO, crypto uses COINGECKO.",
    )
    search_query: Optional[str] = Field(
        default=None,
        description='Search symbols by name or partial symbol (e.g. "Apple", "Bitcoin").',
    )
    include_historical: bool = Field(
        default=False, description="Whether to include daily prices for the last 30 days",
    )


class MarketDataTool(BaseTool):
    name = "get_market_data"
    description = (
        "Gets the current market price and optional recent history for a symbol. Also "
        "supports symbol search. Use this when the user asks about current stock/crypto "
        "prices, price changes, or wants to look up a symbol."
    )

    def __init__(self, market_data: MarketDataPort):
        self._market = market_data

    def get_schema(self) -> type[BaseModel]:
        return MarketDataInput

    async def execute(
        self,
        ctx: SessionContext,
        symbol: Optional[str] = None,
        data_source: str = "YAHOO",
        search_query: Optional[str] = None,
        include_historical: bool = False,
        **kwargs,
    ) -> ToolPayload:
        if search_query and not symbol:
            matches = await self._market.search(search_query)
            return {
                "type": "search_results",
                "results": [
                    {
                        "name": m.name,
                        "symbol": m.symbol,
                        "currency": m.currency,
                        "dataSource": m.data_source,
                        "assetClass": m.asset_class,
                        "assetSubClass": m.asset_sub_class,
                    }
                    for m in matches[:MAX_SEARCH_RESULTS]
                ],
                "dataAsOf": analytics.data_as_of(),
            }

        if not symbol:
            raise ValueError("Either symbol or searchQuery is required")

        quote = await self._market.get_quote(symbol, data_source)
        payload: ToolPayload = {
            "type": "quote",
            "symbol": symbol,
            "dataSource": data_source,
            "marketPrice": quote.market_price if quote else None,
            "currency": quote.currency if quote else None,
            "marketState": quote.market_state if quote else None,
            "dataAsOf": analytics.data_as_of(),
        }

        if include_historical:
            try:
                history = await self._market.get_historical(symbol, data_source, days=HISTORY_DAYS)
            except PortfolioDataError as exc:
                logger.warning("History for %s unavailable: %s", symbol, exc)
                payload["historicalError"] = "Historical data unavailable for this symbol"
            else:
                points = sorted(history, key=lambda p: p.date)[-HISTORY_POINTS:]
                payload["historical"] = [
                    {"date": p.date, "marketPrice": p.market_price} for p in points
                ]
        return payload

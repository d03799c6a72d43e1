"""
agent.tools.portfolio_overview - Compound overview tool.

Combines summary, performance and a quick risk read in a single call so
the most common question ("how is my portfolio doing?") needs one tool
round trip instead of three.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from agent.tools.details_cache import PortfolioDetailsCache
from application.context import SessionContext
from domain.ports import AccountServicePort, PortfolioServicePort

logger = logging.getLogger(__name__)


class PortfolioOverviewInput(BaseModel):
    """Input schema for the get_portfolio_overview tool."""

    date_range: Literal["1d", "ytd", "1y", "5y", "max"] = Field(
        default="ytd", description="Timeframe for performance metrics",
    )
    top_n: int = Field(
        default=5, ge=1, le=50, description="Number of top holdings to include",
    )


class PortfolioOverviewTool(BaseTool):
    """Value, top holdings, allocation, performance and risk in one payload."""

    name = "get_portfolio_overview"
    description = (
        "Returns a COMPLETE portfolio overview in one call: value, holdings, allocation, "
        "performance, risk score. USE THIS as the DEFAULT tool for general portfolio "
        "questions like 'how is my portfolio', 'give me an overview', 'summarize my "
        "investments', 'what do I own', 'portfolio review'. Only use the narrower tools "
        "when the user asks a SPECIFIC question."
    )

    def __init__(
        self,
        details: PortfolioDetailsCache,
        portfolio_service: PortfolioServicePort,
        account_service: AccountServicePort,
    ):
        self._details = details
        self._portfolio = portfolio_service
        self._accounts = account_service

    def get_schema(self) -> type[BaseModel]:
        return PortfolioOverviewInput

    async def execute(
        self,
        ctx: SessionContext,
        date_range: str = "ytd",
        top_n: int = 5,
        **kwargs,
    ) -> ToolPayload:
        details, report, accounts = await asyncio.gather(
            self._details.get_details(with_summary=True),
            self._portfolio.get_performance(ctx.user_id, date_range=date_range),
            self._accounts.get_accounts(ctx.user_id),
        )

        holdings = analytics.by_allocation(details.holdings)
        asset_classes = analytics.asset_class_weights(holdings)
        sectors = analytics.sector_weights(holdings)
        top_holding = holdings[0].allocation_in_percentage if holdings else 0.0
        top5 = analytics.concentration(holdings, 5)

        score = analytics.overview_score(
            top_holding, top5, len(asset_classes), len(sectors), len(holdings),
        )
        logger.debug(
            "Overview for user %s: %d holdings, score=%d", ctx.user_id, len(holdings), score,
        )

        perf = report.performance
        summary = details.summary
        return {
            "totalValue": summary.current_value_in_base_currency if summary else None,
            "netWorth": summary.net_worth if summary else None,
            "totalInvestment": summary.total_investment if summary else None,
            "cash": summary.cash if summary else None,
            "totalHoldings": len(holdings),
            "accountCount": len(accounts),
            "performance": {
                "dateRange": date_range,
                "netPerformance": perf.net_performance,
                "netPerformancePercent": analytics.percent(perf.net_performance_percent),
                "grossPerformance": perf.gross_performance,
                "fees": perf.fees if perf.fees is not None else (summary.fees if summary else None),
                "dividends": (
                    perf.dividends if perf.dividends is not None
                    else (summary.dividend_in_base_currency if summary else None)
                ),
            },
            "topHoldings": [analytics.holding_brief(h) for h in holdings[:top_n]],
            "allocationByAssetClass": analytics.as_percentages(asset_classes),
            "risk": {
                "diversificationScore": score,
                "topHoldingWeight": analytics.percent(top_holding),
                "top5ConcentrationPercent": analytics.percent(top5),
                "assetClassCount": len(asset_classes),
                "sectorCount": len(sectors),
                "holdingCount": len(holdings),
            },
            "dataAsOf": analytics.data_as_of(),
        }

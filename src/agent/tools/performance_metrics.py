"""
agent.tools.performance_metrics - Returns over a chosen timeframe.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from application.context import SessionContext
from domain.ports import PortfolioServicePort

CHART_SAMPLE_POINTS = 30


class PerformanceMetricsInput(BaseModel):
    """Input schema for the get_performance_metrics tool."""

    date_range: Literal["1d", "1w", "1m", "3m", "6m", "ytd", "1y", "5y", "max"] = Field(
        default="ytd",
        description="Time period for performance calculation: 1d, 1w, 1m, 3m, 6m, ytd, 1y, 5y, max",
    )
    include_chart: bool = Field(
        default=False,
        description=(
            "Whether to include chart data points (can be large). Only include if the "
            "user specifically asks for chart/graph data."
        ),
    )


class PerformanceMetricsTool(BaseTool):
    name = "get_performance_metrics"
    description = (
        "Returns portfolio performance metrics including net/gross performance, total "
        "investment, current value, annualized return, fees, and dividends for a given "
        "timeframe. Use this when the user asks about returns, gains/losses, or ROI."
    )

    def __init__(self, portfolio_service: PortfolioServicePort):
        self._portfolio = portfolio_service

    def get_schema(self) -> type[BaseModel]:
        return PerformanceMetricsInput

    async def execute(
        self,
        ctx: SessionContext,
        date_range: str = "ytd",
        include_chart: bool = False,
        **kwargs,
    ) -> ToolPayload:
        report = await self._portfolio.get_performance(ctx.user_id, date_range=date_range)
        perf = report.performance

        payload: ToolPayload = {
            "dateRange": date_range,
            "netPerformance": perf.net_performance,
            "netPerformancePercent": analytics.percent(perf.net_performance_percent),
            "netPerformanceWithCurrencyEffect": perf.net_performance_with_currency_effect,
            "netPerformancePercentWithCurrencyEffect": analytics.percent(
                perf.net_performance_percent_with_currency_effect
            ),
            "grossPerformance": perf.gross_performance,
            "grossPerformancePercent": analytics.percent(perf.gross_performance_percent),
            "totalInvestment": perf.total_investment,
            "currentValue": perf.current_value,
            "annualizedPerformancePercent": analytics.percent(perf.annualized_performance_percent),
            "fees": perf.fees,
            "dividends": perf.dividends,
            "firstOrderDate": report.first_order_date,
            "hasErrors": report.has_errors,
            "dataAsOf": analytics.data_as_of(),
        }

        if include_chart and report.chart:
            payload["chartSample"] = [
                {
                    "date": p.date,
                    "netPerformancePercent": analytics.percent(p.net_performance_in_percentage),
                    "netWorth": p.net_worth,
                    "value": p.value,
                }
                for p in report.chart[-CHART_SAMPLE_POINTS:]
            ]
        return payload

"""
agent.tools.portfolio_summary - Portfolio totals, holdings and allocation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from agent.tools.details_cache import PortfolioDetailsCache
from application.context import SessionContext
from domain.ports import AccountServicePort


class PortfolioSummaryInput(BaseModel):
    """Input schema for the get_portfolio_summary tool."""

    include_accounts: bool = Field(
        default=True, description="Whether to include account-level breakdown",
    )
    top_n: int = Field(
        default=10, ge=1, le=100,
        description="Number of top holdings to return, sorted by allocation",
    )


class PortfolioSummaryTool(BaseTool):
    """Totals plus allocation by asset class and sector."""

    name = "get_portfolio_summary"
    description = (
        "Returns a summary of the user's investment portfolio including total value, "
        "account count, holdings count, top holdings by allocation, and allocation "
        "breakdown by asset class and sector. Use this when the user asks about total "
        "value, accounts, or how their money is allocated."
    )

    def __init__(self, details: PortfolioDetailsCache, account_service: AccountServicePort):
        self._details = details
        self._accounts = account_service

    def get_schema(self) -> type[BaseModel]:
        return PortfolioSummaryInput

    async def execute(
        self,
        ctx: SessionContext,
        include_accounts: bool = True,
        top_n: int = 10,
        **kwargs,
    ) -> ToolPayload:
        details = await self._details.get_details(with_summary=True)
        holdings = analytics.by_allocation(details.holdings)

        accounts = None
        if include_accounts:
            accounts = [
                {
                    "name": a.name,
                    "currency": a.currency,
                    "balance": a.balance,
                    "isExcluded": a.is_excluded,
                }
                for a in await self._accounts.get_accounts(ctx.user_id)
            ]

        summary = details.summary
        return {
            "totalValueInBaseCurrency": summary.current_value_in_base_currency if summary else None,
            "netWorth": summary.net_worth if summary else None,
            "totalInvestment": summary.total_investment if summary else None,
            "cash": summary.cash if summary else None,
            "totalHoldings": len(holdings),
            "accountCount": len(accounts) if accounts is not None else None,
            "topHoldings": [
                {
                    "name": h.name,
                    "symbol": h.symbol,
                    "assetClass": h.asset_class or analytics.UNKNOWN,
                    "assetSubClass": h.asset_sub_class or analytics.UNKNOWN,
                    "currency": h.currency,
                    "allocationPercent": analytics.percent(h.allocation_in_percentage),
                    "valueInBaseCurrency": h.value_in_base_currency,
                    "quantity": h.quantity,
                    "marketPrice": h.market_price,
                }
                for h in holdings[:top_n]
            ],
            "allocationByAssetClass": analytics.as_percentages(
                analytics.asset_class_weights(holdings)
            ),
            "allocationBySector": analytics.as_percentages(analytics.sector_weights(holdings)),
            "accounts": accounts,
            "dividendTotal": summary.dividend_in_base_currency if summary else None,
            "feesTotal": summary.fees if summary else None,
            "dateOfFirstActivity": summary.date_of_first_activity if summary else None,
            "dataAsOf": analytics.data_as_of(),
        }

"""
agent.tools.analyze_risk - Concentration, diversification and X-ray rules.

The diversification score is penalty based (starts at 100). The X-ray
report is optional and best-effort: if the back-end cannot produce it,
the rest of the analysis is still returned.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel, Field

from agent.tools import analytics
from agent.tools.base import BaseTool, ToolPayload
from agent.tools.details_cache import PortfolioDetailsCache
from application.context import SessionContext
from domain.exceptions import PortfolioDataError
from domain.ports import PortfolioServicePort

logger = logging.getLogger(__name__)


class AnalyzeRiskInput(BaseModel):
    """Input schema for the analyze_risk tool."""

    include_rules: bool = Field(
        default=True,
        description="Whether to include X-ray rule evaluations (emergency fund, fees, etc.)",
    )


class AnalyzeRiskTool(BaseTool):
    name = "analyze_risk"
    description = (
        "Analyzes portfolio risk including concentration risk, diversification score, "
        "top holding weight, sector/geographic diversification, and rule-based "
        "suggestions. Use this when the user asks about risk, diversification, "
        "concentration, whether their portfolio is balanced, or for improvement ideas."
    )

    def __init__(self, details: PortfolioDetailsCache, portfolio_service: PortfolioServicePort):
        self._details = details
        self._portfolio = portfolio_service

    def get_schema(self) -> type[BaseModel]:
        return AnalyzeRiskInput

    async def execute(
        self,
        ctx: SessionContext,
        include_rules: bool = True,
        **kwargs,
    ) -> ToolPayload:
        if include_rules:
            details, xray = await asyncio.gather(
                self._details.get_details(with_summary=True),
                self._xray(ctx.user_id),
            )
        else:
            details, xray = await self._details.get_details(with_summary=True), None

        holdings = analytics.by_allocation(details.holdings)
        top = holdings[0] if holdings else None
        top_weight = top.allocation_in_percentage if top else 0.0
        top5 = analytics.concentration(holdings, 5)
        top10 = analytics.concentration(holdings, 10)

        asset_classes = analytics.asset_class_weights(holdings)
        known_classes = len([k for k in asset_classes if k != analytics.UNKNOWN])
        sectors = analytics.sector_weights(holdings)
        countries = analytics.country_weights(holdings)

        score = analytics.risk_score(top_weight, top5, known_classes, len(holdings))

        return {
            "totalHoldings": len(holdings),
            "concentrationRisk": {
                "topHolding": (
                    {
                        "name": top.name,
                        "symbol": top.symbol,
                        "allocationPercent": analytics.percent(top_weight),
                    }
                    if top else None
                ),
                "top5AllocationPercent": analytics.percent(top5),
                "top10AllocationPercent": analytics.percent(top10),
            },
            "diversificationScore": score,
            "assetClassBreakdown": analytics.as_percentages(asset_classes),
            "sectorCount": len(sectors),
            "topSectors": [
                {"name": name, "allocationPercent": analytics.percent(w)}
                for name, w in analytics.top_weights(sectors)
            ],
            "geographicDiversification": {
                "countryCount": len(countries),
                "topCountries": [
                    {"code": code, "allocationPercent": analytics.percent(w)}
                    for code, w in analytics.top_weights(countries)
                ],
            },
            "suggestions": analytics.suggestions(
                score, top_weight, known_classes, len(holdings), top5,
            ),
            "xrayReport": xray,
            "dataAsOf": analytics.data_as_of(),
        }

    async def _xray(self, user_id: str) -> dict:
        try:
            rules = await self._portfolio.get_report(user_id)
        except PortfolioDataError as exc:
            logger.warning("X-ray report failed for user %s: %s", user_id, exc)
            return {"error": "X-ray report unavailable"}
        return {
            "rules": [
                {
                    "name": r.name,
                    "key": r.key,
                    "passed": r.passed,
                    "evaluation": r.evaluation,
                    "isActive": r.is_active,
                }
                for r in rules
            ]
        }

"""
agent.tools.analytics - Allocation and diversification maths shared by tools.

Pure functions over domain Holdings. Inputs are fractions as the portfolio
back-end reports them; anything called *_percent in a return value is
already scaled to 0-100 and rounded for display.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from domain.models import Holding

UNKNOWN = "Unknown"


def percent(fraction: Optional[float]) -> Optional[float]:
    """0.1234 -> 12.34. None passes through."""
    if fraction is None:
        return None
    return round(fraction * 100, 2)


def data_as_of() -> str:
    return datetime.now(timezone.utc).isoformat()


def by_allocation(holdings: Iterable[Holding]) -> list[Holding]:
    return sorted(holdings, key=lambda h: h.allocation_in_percentage, reverse=True)


def asset_class_weights(holdings: Iterable[Holding]) -> dict[str, float]:
    """Fraction of the portfolio per asset class."""
    weights: dict[str, float] = {}
    for h in holdings:
        cls = h.asset_class or UNKNOWN
        weights[cls] = weights.get(cls, 0.0) + h.allocation_in_percentage
    return weights


def sector_weights(holdings: Iterable[Holding]) -> dict[str, float]:
    """Fraction of the portfolio per sector, weighting each holding's sector split."""
    weights: dict[str, float] = {}
    for h in holdings:
        for s in h.sectors:
            weights[s.name] = weights.get(s.name, 0.0) + s.weight * h.allocation_in_percentage
    return weights


def country_weights(holdings: Iterable[Holding]) -> dict[str, float]:
    weights: dict[str, float] = {}
    for h in holdings:
        for c in h.countries:
            weights[c.code] = weights.get(c.code, 0.0) + c.weight * h.allocation_in_percentage
    return weights


def as_percentages(weights: dict[str, float]) -> dict[str, float]:
    return {key: percent(value) for key, value in weights.items()}


def top_weights(weights: dict[str, float], n: int = 5) -> list[tuple[str, float]]:
    return sorted(weights.items(), key=lambda kv: kv[1], reverse=True)[:n]


def concentration(sorted_holdings: Sequence[Holding], n: int) -> float:
    """Combined fraction held by the first n holdings of an allocation-sorted list."""
    return sum(h.allocation_in_percentage for h in sorted_holdings[:n])


def holding_brief(h: Holding) -> dict:
    return {
        "name": h.name,
        "symbol": h.symbol,
        "assetClass": h.asset_class or UNKNOWN,
        "allocationPercent": percent(h.allocation_in_percentage),
        "valueInBaseCurrency": h.value_in_base_currency,
    }


# ---------------------------------------------------------------------------
# Diversification scores
# ---------------------------------------------------------------------------

def overview_score(
    top_holding: float,
    top5: float,
    asset_class_count: int,
    sector_count: int,
    holding_count: int,
) -> int:
    """Quick 0-100 score for the overview: starts at 50, bonuses for breadth.

    top_holding and top5 are fractions.
    """
    score = 50
    if top_holding > 0.40:
        score -= 20
    elif top_holding > 0.25:
        score -= 10
    if top5 > 0.80:
        score -= 15
    if asset_class_count >= 3:
        score += 15
    elif asset_class_count >= 2:
        score += 5
    if sector_count >= 5:
        score += 15
    elif sector_count >= 3:
        score += 5
    if holding_count >= 10:
        score += 10
    elif holding_count >= 5:
        score += 5
    return max(0, min(100, score))


def risk_score(
    top_holding: float,
    top5: float,
    asset_class_count: int,
    holding_count: int,
) -> int:
    """Penalty-based 0-100 score for the risk analysis: starts at 100.

    asset_class_count should exclude holdings with no known asset class.
    """
    score = 100
    if top_holding > 0.30:
        score -= 25
    elif top_holding > 0.20:
        score -= 15
    elif top_holding > 0.10:
        score -= 5

    if top5 > 0.80:
        score -= 20
    elif top5 > 0.60:
        score -= 10

    if asset_class_count <= 1:
        score -= 20
    elif asset_class_count == 2:
        score -= 10

    if holding_count < 5:
        score -= 15
    elif holding_count < 10:
        score -= 5
    return max(0, min(100, score))


def suggestions(
    score: int,
    top_holding: float,
    asset_class_count: int,
    holding_count: int,
    top5: float,
) -> list[str]:
    out: list[str] = []
    if top_holding > 0.25:
        out.append(
            f"Your top holding represents {top_holding * 100:.1f}% of your portfolio. "
            "Consider whether this concentration aligns with your risk tolerance."
        )
    if top5 > 0.70:
        out.append(
            f"Your top 5 holdings make up {top5 * 100:.1f}% of the portfolio. "
            "Broader diversification could reduce single-stock risk."
        )
    if asset_class_count <= 1:
        out.append(
            "Portfolio is concentrated in a single asset class. "
            "Consider adding other asset classes (bonds, real estate, commodities) "
            "for diversification."
        )
    if holding_count < 5:
        out.append(
            f"With only {holding_count} holding(s), the portfolio has limited "
            "diversification. Adding more positions could reduce idiosyncratic risk."
        )
    if score >= 80:
        out.append("Portfolio shows good diversification overall. Continue monitoring for drift.")
    return out

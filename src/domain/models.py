"""
domain.models - Value objects for portfolio, account and market data.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no HTTP, no JSON files).
Gateways in infrastructure/portfolio/ build them; agent tools read them.

Percentages are stored the way the portfolio back-end reports them:
as fractions (0.25 == 25 %). Tools convert for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DATE_RANGES: tuple[str, ...] = ("1d", "1w", "1m", "3m", "6m", "ytd", "1y", "5y", "max")


# ---------------------------------------------------------------------------
# Holdings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Sector:
    name: str
    weight: float


@dataclass(frozen=True)
class Country:
    code: str
    weight: float


@dataclass(frozen=True)
class Holding:
    """A single position in the portfolio, valued in the base currency."""
    symbol: str
    name: str = ""
    currency: str = ""
    data_source: str = ""
    asset_class: Optional[str] = None
    asset_sub_class: Optional[str] = None
    allocation_in_percentage: float = 0.0
    value_in_base_currency: float = 0.0
    quantity: float = 0.0
    market_price: float = 0.0
    net_performance: Optional[float] = None
    net_performance_percent_with_currency_effect: Optional[float] = None
    dividend: Optional[float] = None
    sectors: tuple[Sector, ...] = ()
    countries: tuple[Country, ...] = ()
    date_of_first_activity: Optional[str] = None


@dataclass(frozen=True)
class PortfolioFilter:
    """Back-end filter, e.g. PortfolioFilter(type="ASSET_CLASS", id="EQUITY")."""
    type: str
    id: str


# ---------------------------------------------------------------------------
# Portfolio details (the expensive "full recompute")
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortfolioSummary:
    current_value_in_base_currency: Optional[float] = None
    net_worth: Optional[float] = None
    total_investment: Optional[float] = None
    cash: Optional[float] = None
    dividend_in_base_currency: Optional[float] = None
    fees: Optional[float] = None
    date_of_first_activity: Optional[str] = None


@dataclass(frozen=True)
class PortfolioDetails:
    holdings: tuple[Holding, ...] = ()
    summary: Optional[PortfolioSummary] = None


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PerformanceSnapshot:
    net_performance: Optional[float] = None
    net_performance_percent: Optional[float] = None
    net_performance_with_currency_effect: Optional[float] = None
    net_performance_percent_with_currency_effect: Optional[float] = None
    gross_performance: Optional[float] = None
    gross_performance_percent: Optional[float] = None
    total_investment: Optional[float] = None
    current_value: Optional[float] = None
    annualized_performance_percent: Optional[float] = None
    fees: Optional[float] = None
    dividends: Optional[float] = None


@dataclass(frozen=True)
class ChartPoint:
    date: str
    net_performance_in_percentage: Optional[float] = None
    net_worth: Optional[float] = None
    value: Optional[float] = None


@dataclass(frozen=True)
class PerformanceReport:
    performance: PerformanceSnapshot = field(default_factory=PerformanceSnapshot)
    chart: tuple[ChartPoint, ...] = ()
    first_order_date: Optional[str] = None
    has_errors: bool = False


@dataclass(frozen=True)
class RuleEvaluation:
    """One X-ray rule (emergency fund, fees, concentration, ...)."""
    key: str
    name: str
    passed: Optional[bool] = None
    evaluation: str = ""
    is_active: bool = True


# ---------------------------------------------------------------------------
# Accounts and market data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Account:
    name: str
    currency: str = ""
    balance: float = 0.0
    is_excluded: bool = False


@dataclass(frozen=True)
class SymbolMatch:
    symbol: str
    name: str = ""
    currency: str = ""
    data_source: str = ""
    asset_class: Optional[str] = None
    asset_sub_class: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    symbol: str
    data_source: str
    market_price: Optional[float] = None
    currency: Optional[str] = None
    market_state: Optional[str] = None


@dataclass(frozen=True)
class PricePoint:
    date: str
    market_price: Optional[float] = None

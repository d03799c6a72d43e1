"""
infrastructure.portfolio.mapping - Ghostfolio JSON → domain models.

Both back-ends speak the same JSON shapes (the fixture file is a saved
set of API responses), so parsing lives here once. Missing fields fall
back to model defaults; only structurally wrong payloads raise.
"""

from __future__ import annotations

from typing import Any, Optional

from domain.exceptions import PortfolioDataError
from domain.models import (
    Account,
    ChartPoint,
    Country,
    Holding,
    PerformanceReport,
    PerformanceSnapshot,
    PortfolioDetails,
    PortfolioSummary,
    PricePoint,
    Quote,
    RuleEvaluation,
    Sector,
    SymbolMatch,
)


def _num(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _expect_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise PortfolioDataError(f"Unexpected {what} payload: {type(data).__name__}")
    return data


# ---------------------------------------------------------------------------
# Details
# ---------------------------------------------------------------------------

def parse_holding(symbol: str, raw: dict) -> Holding:
    return Holding(
        symbol=raw.get("symbol") or symbol,
        name=raw.get("name") or "",
        currency=raw.get("currency") or "",
        data_source=raw.get("dataSource") or "",
        asset_class=raw.get("assetClass"),
        asset_sub_class=raw.get("assetSubClass"),
        allocation_in_percentage=_num(raw.get("allocationInPercentage")) or 0.0,
        value_in_base_currency=_num(raw.get("valueInBaseCurrency")) or 0.0,
        quantity=_num(raw.get("quantity")) or 0.0,
        market_price=_num(raw.get("marketPrice")) or 0.0,
        net_performance=_num(raw.get("netPerformance")),
        net_performance_percent_with_currency_effect=_num(
            _first(raw, "netPerformancePercentWithCurrencyEffect", "netPerformancePercent")
        ),
        dividend=_num(raw.get("dividend")),
        sectors=tuple(
            Sector(name=s.get("name", ""), weight=_num(s.get("weight")) or 0.0)
            for s in raw.get("sectors") or ()
        ),
        countries=tuple(
            Country(code=c.get("code", ""), weight=_num(c.get("weight")) or 0.0)
            for c in raw.get("countries") or ()
        ),
        date_of_first_activity=raw.get("dateOfFirstActivity"),
    )


def parse_details(data: Any) -> PortfolioDetails:
    data = _expect_dict(data, "portfolio details")
    raw_holdings = data.get("holdings") or {}
    if isinstance(raw_holdings, dict):
        holdings = tuple(parse_holding(sym, h) for sym, h in raw_holdings.items())
    elif isinstance(raw_holdings, list):
        holdings = tuple(parse_holding(h.get("symbol", ""), h) for h in raw_holdings)
    else:
        raise PortfolioDataError("Unexpected holdings payload")

    raw_summary = data.get("summary")
    summary = None
    if isinstance(raw_summary, dict):
        summary = PortfolioSummary(
            current_value_in_base_currency=_num(raw_summary.get("currentValueInBaseCurrency")),
            net_worth=_num(raw_summary.get("netWorth")),
            total_investment=_num(raw_summary.get("totalInvestment")),
            cash=_num(raw_summary.get("cash")),
            dividend_in_base_currency=_num(raw_summary.get("dividendInBaseCurrency")),
            fees=_num(raw_summary.get("fees")),
            date_of_first_activity=raw_summary.get("dateOfFirstActivity"),
        )
    return PortfolioDetails(holdings=holdings, summary=summary)


# ---------------------------------------------------------------------------
# Performance and report
# ---------------------------------------------------------------------------

def parse_performance(data: Any) -> PerformanceReport:
    data = _expect_dict(data, "performance")
    perf = data.get("performance") if isinstance(data.get("performance"), dict) else data

    snapshot = PerformanceSnapshot(
        net_performance=_num(_first(perf, "netPerformance", "currentNetPerformance")),
        net_performance_percent=_num(_first(
            perf, "netPerformancePercentage", "netPerformancePercent",
            "currentNetPerformancePercent",
        )),
        net_performance_with_currency_effect=_num(perf.get("netPerformanceWithCurrencyEffect")),
        net_performance_percent_with_currency_effect=_num(
            perf.get("netPerformancePercentageWithCurrencyEffect")
        ),
        gross_performance=_num(_first(perf, "grossPerformance", "currentGrossPerformance")),
        gross_performance_percent=_num(_first(
            perf, "grossPerformancePercentage", "grossPerformancePercent",
        )),
        total_investment=_num(perf.get("totalInvestment")),
        current_value=_num(_first(perf, "currentValueInBaseCurrency", "currentNetWorth")),
        annualized_performance_percent=_num(perf.get("annualizedPerformancePercent")),
        fees=_num(perf.get("fees")),
        dividends=_num(_first(perf, "dividendInBaseCurrency", "dividend")),
    )
    chart = tuple(
        ChartPoint(
            date=p.get("date", ""),
            net_performance_in_percentage=_num(
                _first(p, "netPerformanceInPercentage", "netPerformancePercent")
            ),
            net_worth=_num(p.get("netWorth")),
            value=_num(p.get("value")),
        )
        for p in data.get("chart") or ()
    )
    return PerformanceReport(
        performance=snapshot,
        chart=chart,
        first_order_date=data.get("firstOrderDate"),
        has_errors=bool(data.get("hasErrors", False)),
    )


def _parse_rule(raw: dict) -> RuleEvaluation:
    return RuleEvaluation(
        key=raw.get("key", ""),
        name=raw.get("name", ""),
        passed=raw.get("value"),
        evaluation=raw.get("evaluation") or "",
        is_active=bool(raw.get("isActive", True)),
    )


def parse_report(data: Any) -> list[RuleEvaluation]:
    """Flatten an X-ray report.

    Accepts {"xRay": {"categories": [{"rules": [...]}]}},
    {"rules": {category: [...]}} and {"rules": [...]}.
    """
    data = _expect_dict(data, "report")
    raw_rules: list[dict] = []
    if isinstance(data.get("xRay"), dict):
        for category in data["xRay"].get("categories") or ():
            raw_rules.extend(category.get("rules") or ())
    else:
        rules = data.get("rules") or []
        if isinstance(rules, dict):
            for group in rules.values():
                raw_rules.extend(group or ())
        else:
            raw_rules.extend(rules)
    return [_parse_rule(r) for r in raw_rules if isinstance(r, dict)]


# ---------------------------------------------------------------------------
# Accounts and market data
# ---------------------------------------------------------------------------

def parse_accounts(data: Any) -> list[Account]:
    items = data.get("accounts") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise PortfolioDataError("Unexpected accounts payload")
    return [
        Account(
            name=a.get("name", ""),
            currency=a.get("currency") or "",
            balance=_num(a.get("balance")) or 0.0,
            is_excluded=bool(a.get("isExcluded", False)),
        )
        for a in items
    ]


def parse_symbol_matches(data: Any) -> list[SymbolMatch]:
    items = data.get("items") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise PortfolioDataError("Unexpected symbol lookup payload")
    return [
        SymbolMatch(
            symbol=i.get("symbol", ""),
            name=i.get("name") or "",
            currency=i.get("currency") or "",
            data_source=i.get("dataSource") or "",
            asset_class=i.get("assetClass"),
            asset_sub_class=i.get("assetSubClass"),
        )
        for i in items
    ]


def parse_quote(symbol: str, data_source: str, data: Any) -> Optional[Quote]:
    if not isinstance(data, dict):
        return None
    return Quote(
        symbol=data.get("symbol") or symbol,
        data_source=data.get("dataSource") or data_source,
        market_price=_num(data.get("marketPrice")),
        currency=data.get("currency"),
        market_state=data.get("marketState"),
    )


def parse_historical(data: Any) -> list[PricePoint]:
    items = data.get("historicalData") if isinstance(data, dict) else data
    return [
        PricePoint(
            date=p.get("date", ""),
            market_price=_num(_first(p, "marketPrice", "value")),
        )
        for p in items or ()
    ]

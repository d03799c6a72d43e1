import asyncio

import pytest
import requests

from domain.exceptions import AuthenticationError, PortfolioDataError
from domain.models import PortfolioFilter
from infrastructure.portfolio import mapping
from infrastructure.portfolio.fixture_gateway import FixturePortfolioGateway
from infrastructure.portfolio.ghostfolio_gateway import GhostfolioGateway


# ---------------------------------------------------------------------------
# Fixture back-end
# ---------------------------------------------------------------------------

def test_fixture_details_with_and_without_summary(gateway):
    full = asyncio.run(gateway.get_details("alice", with_summary=True))
    bare = asyncio.run(gateway.get_details("alice"))

    assert len(full.holdings) == 5
    assert full.summary.current_value_in_base_currency == 100000
    assert bare.summary is None


def test_fixture_filters(gateway):
    equity = asyncio.run(gateway.get_details(
        "alice", filters=[PortfolioFilter("ASSET_CLASS", "EQUITY")],
    ))
    crypto = asyncio.run(gateway.get_details(
        "alice", filters=[PortfolioFilter("DATA_SOURCE", "COINGECKO")],
    ))
    assert sorted(h.symbol for h in equity.holdings) == ["AAPL", "MSFT", "VWRL.AS"]
    assert [h.symbol for h in crypto.holdings] == ["bitcoin"]


def test_fixture_rejects_unsupported_filter(gateway):
    with pytest.raises(PortfolioDataError):
        asyncio.run(gateway.get_details("alice", filters=[PortfolioFilter("TAG", "x")]))


def test_fixture_missing_range(gateway):
    with pytest.raises(PortfolioDataError, match="6m"):
        asyncio.run(gateway.get_performance("alice", date_range="6m"))


def test_fixture_without_default_portfolio():
    empty = FixturePortfolioGateway({"portfolios": {"bob": {"accounts": []}}})
    assert asyncio.run(empty.get_accounts("bob")) == []
    with pytest.raises(PortfolioDataError):
        asyncio.run(empty.get_accounts("alice"))


def test_fixture_file_errors(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(PortfolioDataError):
        FixturePortfolioGateway.from_file(broken)
    with pytest.raises(PortfolioDataError):
        FixturePortfolioGateway.from_file(tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------

def test_parse_details_accepts_holding_list():
    details = mapping.parse_details({"holdings": [
        {"symbol": "AAPL", "allocationInPercentage": 0.6, "valueInBaseCurrency": 600},
        {"symbol": "BND", "allocationInPercentage": "0.4", "valueInBaseCurrency": 400},
    ]})
    assert [h.symbol for h in details.holdings] == ["AAPL", "BND"]
    assert details.holdings[1].allocation_in_percentage == 0.4


def test_parse_details_rejects_non_object():
    with pytest.raises(PortfolioDataError):
        mapping.parse_details(["not", "a", "dict"])


def test_parse_report_rule_groups():
    rules = mapping.parse_report({"rules": {
        "fees": [{"key": "feeRatio", "name": "Fee Ratio", "value": True}],
        "liquidity": None,
    }})
    assert [(r.key, r.passed) for r in rules] == [("feeRatio", True)]


# ---------------------------------------------------------------------------
# Ghostfolio back-end
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued GET responses."""

    def __init__(self, *responses, auth_status=200):
        self._responses = list(responses)
        self._auth_status = auth_status
        self.posts = []
        self.gets = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json))
        token = f"jwt-{len(self.posts)}"
        return FakeResponse(self._auth_status, {"authToken": token}, text="denied")

    def get(self, url, params=None, headers=None, timeout=None):
        self.gets.append((url, dict(params or {}), headers["Authorization"]))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _gateway(session, token="secret"):
    return GhostfolioGateway(api_url="http://ghost:3333/", security_token=token, session=session)


def test_token_is_exchanged_once_and_reused():
    session = FakeSession(
        FakeResponse(payload={"accounts": [{"name": "Main", "currency": "USD", "balance": 10}]}),
        FakeResponse(payload={"items": [{"symbol": "AAPL", "name": "Apple Inc."}]}),
    )
    gw = _gateway(session)

    accounts = asyncio.run(gw.get_accounts("alice"))
    matches = asyncio.run(gw.search("apple"))

    assert accounts[0].name == "Main"
    assert matches[0].symbol == "AAPL"
    assert session.posts == [("http://ghost:3333/api/v1/auth/anonymous", {"accessToken": "secret"})]
    assert [g[2] for g in session.gets] == ["Bearer jwt-1", "Bearer jwt-1"]
    assert session.gets[1][:2] == ("http://ghost:3333/api/v1/symbol/lookup", {"query": "apple"})


def test_unauthorized_response_refreshes_token_once():
    session = FakeSession(
        FakeResponse(401),
        FakeResponse(payload={"firstOrderDate": "2020-11-02", "performance": {"netPerformance": 5}}),
    )
    report = asyncio.run(_gateway(session).get_performance("alice", date_range="1y"))

    assert report.performance.net_performance == 5
    assert len(session.posts) == 2
    assert [g[2] for g in session.gets] == ["Bearer jwt-1", "Bearer jwt-2"]
    assert session.gets[0][1] == {"range": "1y"}


def test_details_filters_become_query_params():
    session = FakeSession(FakeResponse(payload={"holdings": {}}))
    filters = [
        PortfolioFilter("ASSET_CLASS", "EQUITY"),
        PortfolioFilter("ASSET_CLASS", "FIXED_INCOME"),
        PortfolioFilter("ACCOUNT", "acc-1"),
    ]
    asyncio.run(_gateway(session).get_details("alice", filters=filters))

    url, params, _ = session.gets[0]
    assert url == "http://ghost:3333/api/v1/portfolio/details"
    assert params == {"range": "max", "assetClasses": "EQUITY,FIXED_INCOME", "accounts": "acc-1"}


def test_symbol_path_is_quoted():
    session = FakeSession(FakeResponse(payload={"marketPrice": 1.1, "currency": "EUR"}))
    quote = asyncio.run(_gateway(session).get_quote("VWRL.AS", "YAHOO"))
    assert quote.market_price == 1.1
    assert session.gets[0][0] == "http://ghost:3333/api/v1/symbol/YAHOO/VWRL.AS"


def test_http_error_becomes_portfolio_data_error():
    session = FakeSession(FakeResponse(500, text="boom"))
    with pytest.raises(PortfolioDataError, match="HTTP 500"):
        asyncio.run(_gateway(session).get_report("alice"))


def test_connection_error_becomes_portfolio_data_error():
    session = FakeSession(requests.exceptions.ConnectionError("refused"))
    with pytest.raises(PortfolioDataError, match="unreachable"):
        asyncio.run(_gateway(session).get_accounts("alice"))


def test_missing_security_token():
    session = FakeSession()
    with pytest.raises(AuthenticationError):
        asyncio.run(_gateway(session, token="").get_accounts("alice"))
    assert session.posts == []


def test_rejected_security_token():
    session = FakeSession(auth_status=403)
    with pytest.raises(AuthenticationError, match="403"):
        asyncio.run(_gateway(session).get_accounts("alice"))

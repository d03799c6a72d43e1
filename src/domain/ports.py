"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Agent tools and the executor
depend only on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, runtime_checkable

from domain.models import (
    Account,
    PerformanceReport,
    PortfolioDetails,
    PortfolioFilter,
    PricePoint,
    Quote,
    RuleEvaluation,
    SymbolMatch,
)

if TYPE_CHECKING:
    from agent.tools.base import CapabilityDescriptor
    from agent.transcript import Decision, Transcript


# ---------------------------------------------------------------------------
# Model collaborator
# ---------------------------------------------------------------------------

@runtime_checkable
class DecisionModelPort(Protocol):
    """Given the transcript so far, answer or request capability calls."""

    async def decide(
        self,
        transcript: Transcript,
        capabilities: Sequence[CapabilityDescriptor],
    ) -> Decision: ...


# ---------------------------------------------------------------------------
# Portfolio collaborators
# ---------------------------------------------------------------------------

@runtime_checkable
class PortfolioServicePort(Protocol):
    """Holdings, performance and X-ray rules for one user."""

    async def get_details(
        self,
        user_id: str,
        *,
        with_summary: bool = False,
        filters: Sequence[PortfolioFilter] = (),
    ) -> PortfolioDetails: ...

    async def get_performance(
        self, user_id: str, *, date_range: str = "ytd",
    ) -> PerformanceReport: ...

    async def get_report(self, user_id: str) -> list[RuleEvaluation]: ...


@runtime_checkable
class AccountServicePort(Protocol):
    """Brokerage / cash accounts for one user."""

    async def get_accounts(self, user_id: str) -> list[Account]: ...


@runtime_checkable
class MarketDataPort(Protocol):
    """Quotes, price history and symbol lookup (not user specific)."""

    async def search(self, query: str) -> list[SymbolMatch]: ...

    async def get_quote(self, symbol: str, data_source: str) -> Optional[Quote]: ...

    async def get_historical(
        self, symbol: str, data_source: str, days: int = 30,
    ) -> list[PricePoint]: ...

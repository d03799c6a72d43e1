"""
agent.tools.details_cache - Per-request cache for portfolio details.

The overview, summary, holdings and risk tools all need the same
get_details() result. This cache ensures the expensive back-end
computation happens once per chat request, even when the tools run in
parallel. Create a new instance for each request and pass it to tools.
"""

from __future__ import annotations

from typing import Sequence

from agent.cache import RequestCache
from domain.models import PortfolioDetails, PortfolioFilter
from domain.ports import PortfolioServicePort


class PortfolioDetailsCache:
    """Deduplicates get_details() calls with equivalent effective parameters."""

    def __init__(
        self,
        portfolio_service: PortfolioServicePort,
        user_id: str,
        request_id: str,
    ):
        self._service = portfolio_service
        self._user_id = user_id
        self._cache = RequestCache(scope=request_id)

    @property
    def size(self) -> int:
        return len(self._cache)

    async def get_details(
        self,
        *,
        with_summary: bool = False,
        filters: Sequence[PortfolioFilter] = (),
    ) -> PortfolioDetails:
        # Filter order carries no meaning; duplicates are dropped.
        normalized = tuple(sorted({(f.type, f.id) for f in filters}))
        params = {
            "user_id": self._user_id,
            "with_summary": bool(with_summary),
            "filters": [list(pair) for pair in normalized],
        }

        def compute():
            return self._service.get_details(
                self._user_id,
                with_summary=bool(with_summary),
                filters=tuple(PortfolioFilter(type=t, id=i) for t, i in normalized),
            )

        return await self._cache.get_or_compute(params, compute)

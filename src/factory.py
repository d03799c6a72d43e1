"""
factory - Composition root for the portfolio chat agent.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get a fully
configured agent.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    factory = ServiceFactory(Settings.from_env())
    agent = factory.create_agent()
    ctx = SessionContext.for_request(user_id, session_id)
    result = await agent.run(ctx, user_input)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from infrastructure.config import Settings
from infrastructure.llm.decider import LangChainDecider
from infrastructure.llm.llm_builder import build_llm
from infrastructure.portfolio.fixture_gateway import FixturePortfolioGateway
from infrastructure.portfolio.ghostfolio_gateway import GhostfolioGateway
from application.context import SessionContext
from application.services.authentication import AuthenticationService
from domain.ports import DecisionModelPort
from agent.dispatcher import ConcurrentDispatcher
from agent.executor import AgentExecutor
from agent.memory import SessionMemoryStore
from agent.prompt import build_system_prompt
from agent.tools.analyze_risk import AnalyzeRiskTool
from agent.tools.details_cache import PortfolioDetailsCache
from agent.tools.market_data import MarketDataTool
from agent.tools.performance_metrics import PerformanceMetricsTool
from agent.tools.portfolio_overview import PortfolioOverviewTool
from agent.tools.portfolio_summary import PortfolioSummaryTool
from agent.tools.query_holdings import QueryHoldingsTool
from agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root; wires all dependencies together.

    Owns the process-wide SessionMemoryStore and the portfolio gateway.
    Everything request-scoped (registry, details cache) is built per
    request by build_registry().

    model and gateway may be injected (tests, alternative back-ends);
    otherwise they are built from config on first use.
    """

    def __init__(
        self,
        config: Settings,
        *,
        model: Optional[DecisionModelPort] = None,
        gateway: Optional[Any] = None,
    ):
        self._config = config
        self._model = model
        self._gateway = gateway
        self._memory = SessionMemoryStore(max_turns=config.session_window_messages)
        self._agent: Optional[AgentExecutor] = None

    @property
    def memory(self) -> SessionMemoryStore:
        return self._memory

    def create_authentication_service(self) -> AuthenticationService:
        """Create an AuthenticationService from the JWT settings."""
        return AuthenticationService(
            jwt_secret=self._config.jwt_secret,
            jwt_expiry_hours=self._config.jwt_expiry_hours,
            jwt_algorithm=self._config.jwt_algorithm,
        )

    # ------------------------------------------------------------------
    # Per-request wiring
    # ------------------------------------------------------------------

    def build_registry(self, ctx: SessionContext) -> ToolRegistry:
        """Register the portfolio tools for one request.

        All tools that need portfolio details share one cache, so the
        back-end computes them once per request.
        """
        gateway = self._portfolio_gateway()
        details = PortfolioDetailsCache(gateway, ctx.user_id, ctx.request_id)

        registry = ToolRegistry()
        registry.register(PortfolioOverviewTool(details, gateway, gateway))
        registry.register(PortfolioSummaryTool(details, gateway))
        registry.register(PerformanceMetricsTool(gateway))
        registry.register(QueryHoldingsTool(details))
        registry.register(MarketDataTool(gateway))
        registry.register(AnalyzeRiskTool(details, gateway))
        return registry

    # ------------------------------------------------------------------
    # Agent creation
    # ------------------------------------------------------------------

    def create_agent(self) -> AgentExecutor:
        """Return the process-wide AgentExecutor, building it on first call."""
        if self._agent is None:
            self._agent = AgentExecutor(
                model=self._decision_model(),
                registry_builder=self.build_registry,
                memory=self._memory,
                prompt_builder=build_system_prompt,
                dispatcher=ConcurrentDispatcher(self._config.capability_timeout_seconds),
                max_iterations=self._config.agent_max_iterations,
            )
            logger.info(
                "Agent ready (provider=%s, model=%s, backend=%s, max_iterations=%d)",
                self._config.llm_provider,
                self._config.active_llm_model,
                self._config.portfolio_backend,
                self._config.agent_max_iterations,
            )
        return self._agent

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _decision_model(self) -> DecisionModelPort:
        if self._model is None:
            llm = build_llm(
                provider=self._config.llm_provider,
                model=self._config.active_llm_model,
                temperature=0,
                ollama_base_url=self._config.ollama_base_url,
                openai_api_key=self._config.openai_api_key,
                groq_api_key=self._config.groq_api_key,
                max_tokens=self._config.llm_max_tokens,
            )
            self._model = LangChainDecider(llm)
        return self._model

    def _portfolio_gateway(self):
        if self._gateway is None:
            backend = self._config.portfolio_backend
            if backend == "fixture":
                self._gateway = FixturePortfolioGateway.from_file(self._config.fixture_path)
            elif backend == "ghostfolio":
                self._gateway = GhostfolioGateway(
                    api_url=self._config.ghostfolio_api_url,
                    security_token=self._config.ghostfolio_security_token,
                )
            else:
                raise ValueError(
                    f"Unsupported PORTFOLIO_BACKEND: '{backend}'. "
                    "Must be 'ghostfolio' or 'fixture'."
                )
            logger.info("Portfolio back-end: %s", backend)
        return self._gateway

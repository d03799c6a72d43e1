"""
agent.prompt - System prompt for the portfolio agent.

A function rather than a constant so routing rules only mention tools
that are actually registered.
"""

from __future__ import annotations

from agent.tools.registry import ToolRegistry

_BASE_PROMPT = (
    "You are a concise financial portfolio assistant. "
    "Use tools to query real data — NEVER guess numbers.\n\n"
    "RULES: All numbers from tools only. No investment advice. Be brief and direct. "
    "Format: $12,345.67, 15.2%. On errors, say what failed. "
    'Add "Not financial advice." to analytical responses.'
)


def build_system_prompt(registry: ToolRegistry) -> str:
    """Build the system prompt with routing rules for the registered tools.

    Args:
        registry: The tool registry for this request.

    Returns:
        The system prompt string.
    """
    tool_names = registry.names()
    rules: list[str] = []

    if "get_portfolio_overview" in tool_names:
        rules.append(
            "General questions ('how is my portfolio', 'give me an overview', "
            "'what do I own') → call 'get_portfolio_overview' ONCE. "
            "It already includes value, holdings, performance and risk."
        )
    if "get_performance_metrics" in tool_names:
        rules.append(
            "Returns, gains/losses or ROI for a specific period → "
            "call 'get_performance_metrics' with the matching date_range."
        )
    if "query_holdings" in tool_names:
        rules.append(
            "Questions about specific positions, asset classes or value ranges → "
            "call 'query_holdings' with filters."
        )
    if "get_market_data" in tool_names:
        rules.append(
            "Current prices or symbol lookup → call 'get_market_data'. "
            "Use search_query when you do not know the exact symbol."
        )
    if "analyze_risk" in tool_names:
        rules.append(
            "Risk, concentration, diversification or improvement ideas → "
            "call 'analyze_risk'."
        )

    if not rules:
        return _BASE_PROMPT

    numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, start=1))
    return (
        f"{_BASE_PROMPT}\n\n"
        f"TOOL ROUTING:\n{numbered}\n\n"
        "If a tool returns an error, tell the user which data is unavailable. "
        "NEVER replace missing data with estimates."
    )

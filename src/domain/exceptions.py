"""
domain.exceptions - Custom exception hierarchy for the portfolio chat agent.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class DuplicateCapabilityError(DomainError):
    """Raised when two capabilities are registered under the same name."""


class CapabilityNotFoundError(DomainError, KeyError):
    """Raised when a capability name is not present in a registry."""


class ModelDecisionError(DomainError):
    """Raised when the language model collaborator fails to return a decision."""


class PortfolioDataError(DomainError):
    """Raised when a portfolio, account or market-data lookup fails."""


class AuthenticationError(DomainError):
    """Raised when authentication fails (bad credentials, expired token)."""


class InvalidQueryError(DomainError, ValueError):
    """Raised when a chat query is blank."""

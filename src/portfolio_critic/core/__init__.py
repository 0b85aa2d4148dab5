"""Core module for Portfolio Critic.

Exports the exception hierarchy. Configuration lives in
`portfolio_critic.core.config`.
"""

from portfolio_critic.core.exceptions import (
    PortfolioCriticError,
    ConfigurationError,
    InvalidStateTransition,
    FailureReason,
    RequestError,
    RateLimitExhausted,
    NonSuccessStatus,
    NetworkError,
)

__all__ = [
    "PortfolioCriticError",
    "ConfigurationError",
    "InvalidStateTransition",
    "FailureReason",
    "RequestError",
    "RateLimitExhausted",
    "NonSuccessStatus",
    "NetworkError",
]

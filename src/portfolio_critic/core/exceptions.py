"""Portfolio Critic Exception Hierarchy.

All custom exceptions inherit from PortfolioCriticError, enabling consistent
error handling across the codebase.

Exception Categories:
- Configuration and state machine violations → Exceptions (always raised)
- Outbound request failures → carried inside a Failure outcome, never raised
  by the request client itself

Usage:
    from portfolio_critic.core.exceptions import NonSuccessStatus

    error = NonSuccessStatus(status_code=500, reason_phrase="Internal Server Error")
    log.error("request_failed", **error.context)
"""

from enum import StrEnum
from typing import Any, Optional


class PortfolioCriticError(Exception):
    """Base exception for all Portfolio Critic errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize PortfolioCriticError.

        Args:
            message: Optional custom message. Defaults to a generic message.
        """
        self.message = message or "A Portfolio Critic error occurred."
        super().__init__(self.message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context dictionary for structured logging.

        Returns:
            dict: Key-value pairs of exception context.
        """
        return {}

    def __repr__(self) -> str:
        """Return debug representation."""
        return f"{self.__class__.__name__}({self.message!r})"


class ConfigurationError(PortfolioCriticError):
    """Configuration file or value is invalid.

    Raised when YAML configuration cannot be parsed or
    contains invalid values.

    Attributes:
        config_path: Path to the configuration file.
        key: The configuration key that caused the error.
    """

    def __init__(
        self,
        config_path: str,
        key: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            config_path: Path to the config file.
            key: Optional key that caused the error.
            message: Optional custom message.
        """
        self.config_path = config_path
        self.key = key

        if message is None:
            key_info = f" key '{key}'" if key else ""
            message = f"Configuration error in '{config_path}'{key_info}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for configuration error."""
        return {
            "config_path": self.config_path,
            "key": self.key,
        }


class InvalidStateTransition(PortfolioCriticError):
    """Invalid critique session state transition attempted.

    Attributes:
        session_id: The session identifier.
        from_state: Current state.
        to_state: Attempted target state.
    """

    def __init__(
        self,
        session_id: str,
        from_state: str,
        to_state: str,
        message: str | None = None,
    ) -> None:
        self.session_id = session_id
        self.from_state = from_state
        self.to_state = to_state

        if message is None:
            message = (
                f"Invalid state transition for session '{session_id}': "
                f"{from_state} → {to_state}."
            )

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for invalid transition."""
        return {
            "session_id": self.session_id,
            "from_state": self.from_state,
            "to_state": self.to_state,
        }


# =============================================================================
# Outbound request errors
# =============================================================================


class FailureReason(StrEnum):
    """Terminal failure kinds reported by the resilient request client."""

    RATE_LIMITED_EXHAUSTED = "rate-limited-exhausted"
    NETWORK_ERROR = "network-error"
    NON_2XX_STATUS = "non-2xx-status"


class RequestError(PortfolioCriticError):
    """Base exception for outbound request failures.

    Instances are carried inside a Failure outcome so callers can decide
    how to present them. Use `reason` to branch on the failure kind.

    Attributes:
        reason: The FailureReason for this error.
        url: Optional URL of the failed request (credentials stripped).
        attempts: Number of attempts made before giving up.
    """

    reason: FailureReason = FailureReason.NETWORK_ERROR

    def __init__(
        self,
        message: str | None = None,
        url: str | None = None,
        attempts: int = 1,
    ) -> None:
        self.url = url
        self.attempts = attempts

        if message is None:
            message = f"Request failed ({self.reason})."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for request error."""
        return {
            "reason": str(self.reason),
            "url": self.url,
            "attempts": self.attempts,
        }


class RateLimitExhausted(RequestError):
    """Endpoint kept answering 429 until all attempts were used."""

    reason = FailureReason.RATE_LIMITED_EXHAUSTED

    def __init__(
        self,
        url: str | None = None,
        attempts: int = 1,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"Rate limited after {attempts} attempt(s)."
        super().__init__(message, url=url, attempts=attempts)


class NonSuccessStatus(RequestError):
    """Endpoint answered with a non-2xx, non-429 status.

    Attributes:
        status_code: HTTP status code.
        reason_phrase: HTTP status text.
    """

    reason = FailureReason.NON_2XX_STATUS

    def __init__(
        self,
        status_code: int,
        reason_phrase: str = "",
        url: str | None = None,
        attempts: int = 1,
        message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason_phrase = reason_phrase

        if message is None:
            message = f"API error: {status_code} {reason_phrase}".rstrip()

        super().__init__(message, url=url, attempts=attempts)

    @property
    def context(self) -> dict[str, Any]:
        """Return context including status."""
        ctx = super().context
        ctx["status_code"] = self.status_code
        ctx["reason_phrase"] = self.reason_phrase
        return ctx


class NetworkError(RequestError):
    """Transport failed (DNS, connection reset, timeout) on every attempt.

    Attributes:
        cause: The last transport exception observed.
    """

    reason = FailureReason.NETWORK_ERROR

    def __init__(
        self,
        cause: BaseException | None = None,
        url: str | None = None,
        attempts: int = 1,
        message: str | None = None,
    ) -> None:
        self.cause = cause

        if message is None:
            detail = f"{type(cause).__name__}: {cause}" if cause else "unknown cause"
            message = f"Network error after {attempts} attempt(s): {detail}"

        super().__init__(message, url=url, attempts=attempts)

    @property
    def context(self) -> dict[str, Any]:
        """Return context including the cause."""
        ctx = super().context
        ctx["cause"] = repr(self.cause) if self.cause else None
        return ctx

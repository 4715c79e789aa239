"""Error taxonomy for agent executions.

Every error raised by the agent core carries an ``ErrorKind`` so callers
(HTTP handlers in particular) can map failures to distinct response codes
without parsing messages. Upstream provider errors are *not* wrapped here:
they are classified by message in ``empire_ai.agent_core.retry``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    not_found = "not_found"
    invalid_state = "invalid_state"
    invalid_request = "invalid_request"
    transient_upstream = "transient_upstream"
    permanent_upstream = "permanent_upstream"
    execution_failed = "execution_failed"
    construction = "construction"
    timeout = "timeout"
    cancelled = "cancelled"
    permission_denied = "permission_denied"
    authentication = "authentication"
    rate_limited = "rate_limited"


class EmpireAIError(Exception):
    """Base class for errors raised by the agent core."""

    kind: ErrorKind = ErrorKind.execution_failed

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "details": self.details}


class AgentNotFoundError(EmpireAIError):
    """No configuration is registered for the requested agent id."""

    kind = ErrorKind.not_found

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent not found: {agent_id}", details={"agent_id": agent_id})
        self.agent_id = agent_id


class ExecutionNotFoundError(EmpireAIError):
    """The referenced execution, thread or checkpoint is unknown to the tracker."""

    kind = ErrorKind.not_found


class InvalidExecutionStateError(EmpireAIError):
    """The execution is not in a state that allows the requested transition."""

    kind = ErrorKind.invalid_state


class InvalidRequestError(EmpireAIError):
    kind = ErrorKind.invalid_request


class AgentConstructionError(EmpireAIError):
    """An agent could not be built from its configuration.

    Typical causes are a missing provider API key or an unsupported provider.
    Construction is never retried.
    """

    kind = ErrorKind.construction


class ExecutionTimeoutError(EmpireAIError):
    """The invocation did not finish within its time budget."""

    kind = ErrorKind.timeout

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Execution timeout after {timeout:g}s", details={"timeout_seconds": timeout})
        self.timeout = timeout


class ExecutionCancelledError(EmpireAIError):
    kind = ErrorKind.cancelled


class PermissionDeniedError(EmpireAIError):
    kind = ErrorKind.permission_denied


class AuthenticationError(EmpireAIError):
    kind = ErrorKind.authentication


class RateLimitExceededError(EmpireAIError):
    """A client sent more requests than its window allows.

    ``headers`` holds the ``X-RateLimit-*`` and ``Retry-After`` values to send back.
    """

    kind = ErrorKind.rate_limited

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        retry_after: int,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(
            "Rate limit exceeded",
            details={"limit": limit, "window_seconds": window_seconds, "retry_after": retry_after},
        )
        self.retry_after = retry_after
        self.headers: Dict[str, str] = dict(headers or {})

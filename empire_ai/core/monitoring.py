"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for tracing of agent
executions, including:
- Execution lifecycle (start, completion, failure, cancellation)
- Retry attempts against LLM providers
- Pydantic AI model calls and FastAPI endpoints (auto instrumentation)
- Error tracking

Everything here is best effort: a monitoring failure is logged at DEBUG and
never affects the operation being observed.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "empire-ai-a2a")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

# Feature flags
LOGFIRE_TRACE_PYDANTIC_AI = os.getenv("LOGFIRE_TRACE_PYDANTIC_AI", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire for monitoring and tracing.

    The initialization is conditional on the LOGFIRE_ENABLED environment
    variable and a LOGFIRE_TOKEN being present.

    Args:
        app: FastAPI application instance to instrument (optional).

    Returns:
        True when Logfire was configured, False otherwise.
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring will not work.")
        return False

    try:
        import logfire

        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
        )

        if LOGFIRE_TRACE_PYDANTIC_AI:
            try:
                logfire.instrument_pydantic_ai()
                logger.info("Logfire: Pydantic AI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument Pydantic AI: {e}")

        if LOGFIRE_TRACE_FASTAPI and app is not None:
            try:
                logfire.instrument_fastapi(app=app)
                logger.info("Logfire: FastAPI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument FastAPI: {e}")

        logger.info(
            f"Logfire monitoring initialized: environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}"
        )
        return True
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False


def log_execution_started(execution_id: str, agent_id: str, thread_id: str) -> None:
    """
    Log the start of an agent execution.

    Args:
        execution_id: The tracker's execution identifier
        agent_id: The agent being invoked
        thread_id: The conversation thread
    """
    try:
        import logfire

        logfire.info(
            "Agent execution started",
            execution_id=execution_id,
            agent_id=agent_id,
            thread_id=thread_id,
        )
    except Exception:
        logger.debug(f"Could not log execution start to Logfire: execution_id={execution_id}")


def log_execution_finished(execution_id: str, status: str, duration_ms: float) -> None:
    """
    Log the end of an agent execution.

    Args:
        execution_id: The tracker's execution identifier
        status: Terminal status (completed, failed, cancelled)
        duration_ms: Wall-clock duration in milliseconds
    """
    try:
        import logfire

        logfire.info(
            "Agent execution finished",
            execution_id=execution_id,
            status=status,
            duration_ms=duration_ms,
        )
    except Exception:
        logger.debug(f"Could not log execution end to Logfire: execution_id={execution_id}")


def log_retry_attempt(attempt: int, error: BaseException, delay: float, context: Optional[dict] = None) -> None:
    """
    Log a retry of a transient failure.

    Args:
        attempt: 1-based retry number
        error: The error that triggered the retry
        delay: Seconds until the next attempt
        context: Extra attributes (agent id, execution id, ...)
    """
    try:
        import logfire

        logfire.warn(
            "Retrying after transient error",
            attempt=attempt,
            error=str(error),
            delay_seconds=delay,
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log retry attempt to Logfire: attempt={attempt}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    try:
        import logfire

        logfire.error(
            f"{error_type}: {error_message}",
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")

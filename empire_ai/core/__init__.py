"""
Core utilities and configuration for Empire-AI.

This package provides logging configuration and Logfire monitoring helpers.
"""

from empire_ai.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]

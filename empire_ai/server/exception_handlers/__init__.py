"""
Exception handlers for the Empire-AI server.

This package contains custom exception handlers for different error types
and a setup function to register them with the FastAPI application.
"""

from .global_handler import HTTP_STATUS_BY_KIND, setup_exception_handlers

__all__ = ["HTTP_STATUS_BY_KIND", "setup_exception_handlers"]

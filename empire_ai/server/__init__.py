"""
Empire-AI Server Package.

This package contains the web server exposing registered agents over the A2A
protocol.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    exception_handlers: Mapping of errors to HTTP responses.
    services: Dependencies shared by the endpoints.
"""

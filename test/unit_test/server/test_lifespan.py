"""
Unit tests for FastAPI application lifespan management.

Tests verify that startup starts the execution retention sweep and
initializes monitoring, and that shutdown stops the sweep.
"""

from unittest.mock import patch

import pytest

from empire_ai.server.main import create_app

pytestmark = pytest.mark.asyncio


async def test_lifespan_starts_and_stops_cleanup(settings, platform):
    app = create_app(settings=settings, platform=platform)

    with patch("empire_ai.server.main.initialize_logfire") as mock_logfire:
        async with app.router.lifespan_context(app):
            assert platform.tracker.cleanup_running
            mock_logfire.assert_called_once_with(app)

    assert not platform.tracker.cleanup_running


async def test_create_app_exposes_platform_and_settings(settings, platform):
    app = create_app(settings=settings, platform=platform)

    assert app.state.platform is platform
    assert app.state.settings is settings
    paths = {route.path for route in app.routes}
    assert "/health" in paths
    assert "/api/a2a/status" in paths
    assert "/api/agents/{agent_id}/invoke" in paths
    assert "/api/agents/{agent_id}/stream" in paths
    assert "/api/agents/{agent_id}/cancel" in paths

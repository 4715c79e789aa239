import asyncio
from typing import Any, AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from empire_ai.agent_core.factory import A2APlatform, build_platform
from empire_ai.agent_core.registry import AgentConfig
from empire_ai.server.core.config import Settings
from empire_ai.server.main import create_app


class EchoGraph:
    """Compiled-graph stand-in that answers every task with ``echo: <task>``."""

    checkpointer = None

    def __init__(self) -> None:
        self.errors: List[Exception] = []
        self.block = False

    async def ainvoke(self, graph_input: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        if self.block:
            await asyncio.Event().wait()
        if self.errors:
            raise self.errors.pop(0)
        return {"messages": graph_input["messages"] + [self._reply(graph_input)], "context": graph_input["context"]}

    async def astream(self, graph_input: Dict[str, Any], config: Dict[str, Any], stream_mode: str = "updates"):
        yield {"agent": {"messages": [self._reply(graph_input)]}}

    @staticmethod
    def _reply(graph_input: Dict[str, Any]) -> Dict[str, Any]:
        return {"role": "assistant", "content": f"echo: {graph_input['messages'][-1]['content']}", "name": "echo"}


class StaticBuilder:
    def __init__(self, graph: EchoGraph) -> None:
        self.graph = graph

    async def build(self, config: AgentConfig) -> Any:
        return self.graph


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        agent_retry_base_delay_seconds=0,
        agent_retry_max_delay_seconds=0,
        agent_invoke_timeout_seconds=5,
    )


@pytest.fixture
def graph() -> EchoGraph:
    return EchoGraph()


@pytest.fixture
def platform(settings: Settings, graph: EchoGraph) -> A2APlatform:
    return build_platform(settings, StaticBuilder(graph))


@pytest.fixture
def app(settings: Settings, platform: A2APlatform) -> FastAPI:
    return create_app(settings=settings, platform=platform)


@pytest_asyncio.fixture(name="client")
async def client_fixture(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the app; the lifespan is not run."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def wait_for_running(platform: A2APlatform):
    """Wait until an execution on ``thread_id`` is running and return its id."""

    async def _wait(thread_id: str) -> str:
        for _ in range(200):
            execution = platform.tracker.get_execution_by_thread(thread_id)
            if execution is not None and execution.status.value == "running":
                return execution.id
            await asyncio.sleep(0.01)
        raise AssertionError(f"no running execution for {thread_id}")

    return _wait

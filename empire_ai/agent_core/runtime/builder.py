"""Build runnable agents from ``AgentConfig``.

An agent is a compiled LangGraph ``StateGraph`` with a single ``agent`` node.
The node hands the latest user message (and the earlier conversation as
message history) to a pydantic-ai ``Agent`` and appends the reply to the
``messages`` channel of the graph state.

With ``checkpointer=True`` the graph is compiled with an ``InMemorySaver``,
so every invocation on the same ``thread_id`` continues the conversation and
produces a checkpoint id that can be resumed from later.

Subagents are exposed to the parent as delegation tools: calling
``delegate_to_<name>(task)`` runs the subagent's own pydantic-ai ``Agent``
on that task and returns its answer.
"""

from __future__ import annotations

import logging
import operator
import re
from functools import partial
from typing import Annotated, Any, Callable, Dict, List, NotRequired, Optional, Required, Tuple, TypedDict

from langgraph.checkpoint.memory import InMemorySaver
from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph
from pydantic_ai import Agent as PydanticAIAgent
from pydantic_ai import Tool
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, TextPart, UserPromptPart
from pydantic_ai.models import Model

from ..errors import AgentConstructionError
from ..providers import create_model
from ..registry.models import AgentConfig, AgentModelConfig, SubAgentConfig

logger = logging.getLogger(__name__)

AGENT_NODE = "agent"

ModelFactory = Callable[[AgentModelConfig], Model]


class AgentState(TypedDict):
    """LangGraph state of a conversational agent.

    - ``messages``: conversation so far as ``{"role", "content", "name"}`` dicts;
      node updates are appended.
    - ``context``: caller supplied context, passed through unchanged.
    """

    messages: Required[Annotated[List[Dict[str, Any]], operator.add]]
    context: NotRequired[Dict[str, Any]]


def build_instructions(config: AgentConfig) -> str:
    """System prompt followed by the agent's skills and memory, if any."""
    sections = [config.system_prompt]
    if config.skills:
        sections.append("Skills:\n" + "\n".join(f"- {skill}" for skill in config.skills))
    if config.memory:
        sections.append("Memory:\n" + "\n".join(f"- {item}" for item in config.memory))
    return "\n\n".join(sections)


def _to_model_history(messages: List[Dict[str, Any]]) -> List[ModelMessage]:
    history: List[ModelMessage] = []
    for message in messages:
        content = str(message.get("content", ""))
        if message.get("role") == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif message.get("role") == "assistant":
            history.append(ModelResponse(parts=[TextPart(content=content)]))
    return history


def _split_latest_user_message(messages: List[Dict[str, Any]]) -> Tuple[str, List[Dict[str, Any]]]:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].get("role") == "user":
            return str(messages[index].get("content", "")), messages[:index]
    return "", list(messages)


def _delegation_tool_name(subagent: SubAgentConfig) -> str:
    return "delegate_to_" + re.sub(r"\W+", "_", subagent.name).strip("_").lower()


class GraphAgentBuilder:
    """Default ``AgentBuilder``: LangGraph graph around a pydantic-ai agent.

    Args:
        model_factory: Turns an ``AgentModelConfig`` into a pydantic-ai model.
            Defaults to ``create_model`` bound to ``settings``; tests pass a
            factory returning ``TestModel``.
        settings: Application settings used by the default model factory.
    """

    def __init__(self, model_factory: Optional[ModelFactory] = None, settings: Any = None) -> None:
        self._model_factory: ModelFactory = model_factory or partial(create_model, settings=settings)

    async def build(self, config: AgentConfig) -> CompiledStateGraph:
        """Compile the agent graph for ``config``.

        Raises:
            AgentConstructionError: The model could not be created (e.g. missing API key)
                or the graph failed to compile.
        """
        try:
            model = self._model_factory(config.model)
            agent = PydanticAIAgent(
                model,
                instructions=build_instructions(config),
                tools=[*config.tools, *self._delegation_tools(config)],
                name=config.id,
            )
            graph = self._build_graph(config, agent)
        except AgentConstructionError:
            raise
        except Exception as e:
            raise AgentConstructionError(
                f"Failed to build agent {config.id}: {e}",
                details={"agent_id": config.id},
            ) from e

        logger.debug(
            f"Built agent '{config.id}' (tools={len(config.tools)}, subagents={len(config.subagents)}, "
            f"checkpointer={config.checkpointer})"
        )
        return graph

    def _delegation_tools(self, config: AgentConfig) -> List[Tool]:
        tools: List[Tool] = []
        for subagent in config.subagents:
            sub = PydanticAIAgent(
                self._model_factory(config.model),
                instructions=subagent.system_prompt,
                tools=list(subagent.tools),
                name=subagent.name,
            )
            tools.append(
                Tool(
                    self._make_delegate(sub),
                    takes_ctx=False,
                    name=_delegation_tool_name(subagent),
                    description=f"Delegate a task to the {subagent.name} subagent. {subagent.description}",
                )
            )
        return tools

    @staticmethod
    def _make_delegate(sub: PydanticAIAgent) -> Callable[[str], Any]:
        async def delegate(task: str) -> str:
            """Run the subagent on ``task`` and return its answer."""
            result = await sub.run(task)
            return str(result.output)

        return delegate

    def _build_graph(self, config: AgentConfig, agent: PydanticAIAgent) -> CompiledStateGraph:
        async def _node_agent(state: AgentState) -> Dict[str, Any]:
            prompt, earlier = _split_latest_user_message(state.get("messages", []))
            result = await agent.run(prompt, message_history=_to_model_history(earlier) or None)
            return {"messages": [{"role": "assistant", "content": str(result.output), "name": config.id}]}

        g: StateGraph = StateGraph(AgentState)
        g.add_node(AGENT_NODE, _node_agent)
        g.set_entry_point(AGENT_NODE)
        g.add_edge(AGENT_NODE, END)

        if config.checkpointer:
            return g.compile(checkpointer=InMemorySaver())
        return g.compile()

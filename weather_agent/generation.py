"""
weather_agent/generation.py
---------------------------
One generation call against a chat model, with tools the model may call.

Tool selection, argument construction and feeding tool output back to the
model are all done by the agent framework's function-invocation loop; this
module only wires the tools in and returns the final text.
A tool that fails ends the generation call and its error propagates; the
model is not asked to answer around it.

Providers  (set MODEL_PROVIDER in .env)
───────────────────────────────────────
  github        OpenAI-compatible GitHub Models endpoint, GITHUB_TOKEN auth
  openai        OpenAI, OPENAI_API_KEY auth
  azure_openai  Azure OpenAI, api key or DefaultAzureCredential
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol, Sequence

from weather_agent.config import Settings
from weather_agent.errors import ToolCallAborted
from weather_agent.tools import Tool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResponse:
    text: str
    tool_calls: int = 0


class Generator(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        tools: Sequence[Tool] = (),
        instructions: str | None = None,
    ) -> GenerateResponse: ...


class AgentGenerator:
    """Generator backed by an agent_framework chat client."""

    def __init__(self, chat_client: Any, name: str = "WeatherAgent") -> None:
        self._client = chat_client
        self._name = name

    async def generate(
        self,
        prompt: str,
        *,
        tools: Sequence[Tool] = (),
        instructions: str | None = None,
    ) -> GenerateResponse:
        agent = self._client.create_agent(
            name=self._name,
            instructions=instructions or "",
            tools=[t.as_ai_function() for t in tools] or None,
        )
        try:
            response = await agent.run(prompt)
        except ToolCallAborted as aborted:
            raise aborted.error
        _raise_tool_error(response)
        calls = _count_function_calls(response)
        logger.debug("Generation finished (%d tool call(s))", calls)
        return GenerateResponse(text=response.text, tool_calls=calls)


def _raise_tool_error(response: Any) -> None:
    """Re-raise a tool exception the framework recorded as a function result."""
    for message in getattr(response, "messages", None) or []:
        for content in getattr(message, "contents", None) or []:
            if getattr(content, "type", None) == "function_result":
                exc = getattr(content, "exception", None)
                if isinstance(exc, ToolCallAborted):
                    raise exc.error
                if isinstance(exc, Exception):
                    raise exc


def _count_function_calls(response: Any) -> int:
    count = 0
    for message in getattr(response, "messages", None) or []:
        for content in getattr(message, "contents", None) or []:
            if getattr(content, "type", None) == "function_call":
                count += 1
    return count


# ---------------------------------------------------------------------------
# Chat client factory: async context manager
# ---------------------------------------------------------------------------

@asynccontextmanager
async def build_chat_client(settings: Settings) -> AsyncIterator[Any]:
    """Build the chat client for ``settings.model_provider``."""
    settings.validate_provider()
    provider = settings.model_provider

    if provider == "github":
        from agent_framework.openai import OpenAIChatClient
        logger.info("Using GitHub Models (%s) at %s", settings.github_model, settings.github_endpoint)
        yield OpenAIChatClient(
            model_id=settings.github_model,
            api_key=settings.github_token,
            base_url=settings.github_endpoint,
        )

    elif provider == "openai":
        from agent_framework.openai import OpenAIChatClient
        logger.info("Using OpenAI (%s)", settings.openai_model)
        yield OpenAIChatClient(
            model_id=settings.openai_model,
            api_key=settings.openai_api_key,
        )

    elif provider == "azure_openai":
        from agent_framework.azure import AzureOpenAIChatClient
        logger.info("Using Azure OpenAI deployment %s", settings.azure_openai_deployment)
        if settings.azure_openai_use_key_auth:
            yield AzureOpenAIChatClient(
                endpoint=settings.azure_openai_endpoint,
                deployment_name=settings.azure_openai_deployment,
                api_key=settings.azure_openai_api_key,
            )
        else:
            from azure.identity import DefaultAzureCredential
            credential = DefaultAzureCredential()
            try:
                yield AzureOpenAIChatClient(
                    endpoint=settings.azure_openai_endpoint,
                    deployment_name=settings.azure_openai_deployment,
                    credential=credential,
                )
            finally:
                credential.close()

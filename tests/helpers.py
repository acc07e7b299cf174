"""
tests/helpers.py
----------------
Test doubles shared by the unit tests.

``ScriptedGenerator`` stands in for the model's tool-calling loop with a
deterministic decision: either answer directly, or call one tool once and then
answer.  ``respond`` receives the full context the "model" saw (the prompt,
then any tool output) so tests can inspect it.

``ScriptedChatClient`` goes one level lower: it is a real agent_framework chat
client whose model turns are scripted, so the framework's own
function-invocation loop runs the tools.
"""

import os
import sys
from typing import Any, Callable, Mapping, Optional
from unittest.mock import MagicMock

import httpx

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agent_framework import BaseChatClient, ChatMessage, ChatResponse, FunctionCallContent, Role, use_function_invocation

from weather_agent.generation import GenerateResponse


class ScriptedGenerator:
    def __init__(
        self,
        answer: str = "",
        *,
        tool_name: Optional[str] = None,
        tool_args: Optional[Mapping[str, Any]] = None,
        respond: Optional[Callable[[list], str]] = None,
    ) -> None:
        self.tool_name = tool_name
        self.tool_args = dict(tool_args or {})
        self.respond = respond or MagicMock(return_value=answer)
        self.calls: list[dict] = []

    async def generate(self, prompt, *, tools=(), instructions=None):
        record = {
            "prompt": prompt,
            "tools": [t.name for t in tools],
            "instructions": instructions,
            "context": [prompt],
        }
        self.calls.append(record)

        tool_calls = 0
        if self.tool_name is not None:
            tool = {t.name: t for t in tools}[self.tool_name]
            record["context"].append(await tool.invoke(self.tool_args))
            tool_calls = 1

        return GenerateResponse(text=self.respond(list(record["context"])), tool_calls=tool_calls)


class FailingGenerator:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    async def generate(self, prompt, *, tools=(), instructions=None):
        self.calls += 1
        raise self.exc


def weather_transport(temp: Any = 18, name: str = "Paris", status: int = 200, requests: Optional[list] = None):
    """httpx.MockTransport answering every request like OpenWeatherMap /weather."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if status != 200:
            return httpx.Response(status, json={"cod": str(status), "message": "city not found"})
        return httpx.Response(200, json={"name": name, "main": {"temp": temp, "humidity": 60}})

    return httpx.MockTransport(handler)


@use_function_invocation
class ScriptedChatClient(BaseChatClient):
    """Chat client that replays one scripted assistant turn per model call."""

    def __init__(self, *turns: ChatMessage) -> None:
        super().__init__()
        self.turns = list(turns)
        self.seen: list[list[ChatMessage]] = []

    async def _inner_get_response(self, *, messages, chat_options, **kwargs):
        self.seen.append(list(messages))
        return ChatResponse(messages=[self.turns.pop(0)])

    async def _inner_get_streaming_response(self, *, messages, chat_options, **kwargs):
        raise NotImplementedError("streaming is not scripted")
        yield


def weather_call_turn(location: str, call_id: str = "call-1") -> ChatMessage:
    return ChatMessage(
        role=Role.ASSISTANT,
        contents=[FunctionCallContent(call_id=call_id, name="getWeather", arguments={"location": location})],
    )


def answer_turn(text: str) -> ChatMessage:
    return ChatMessage(role=Role.ASSISTANT, text=text)

"""
weather_agent/tools.py
----------------------
Explicit tool capability interface.

A ``Tool`` is a name, a description, a pydantic input model and an async
handler.  Input is validated against the model before the handler runs, both
when the tool is invoked directly and when the agent framework calls it during
generation via ``as_ai_function()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from agent_framework import AIFunction
from pydantic import BaseModel, ValidationError

from weather_agent.errors import ToolCallAborted, ToolInputError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    """A named, schema-validated function the model may choose to call."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def parse_input(self, data: BaseModel | Mapping[str, Any]) -> BaseModel:
        if isinstance(data, self.input_model):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return self.input_model.model_validate(data)
        except ValidationError as exc:
            raise ToolInputError(f"Invalid input for tool '{self.name}': {exc}") from exc

    async def invoke(self, data: BaseModel | Mapping[str, Any]) -> str:
        """Validate ``data`` and run the handler.  Handler errors propagate."""
        args = self.parse_input(data)
        return await self.handler(args)

    def as_ai_function(self) -> AIFunction:
        """
        Expose this tool to an agent_framework chat agent.

        Any failure is raised as ToolCallAborted so that it ends the
        generation call instead of being handed back to the model.
        """

        async def _call(**kwargs: Any) -> str:
            # The framework may forward runtime kwargs; the input model drops them.
            try:
                return await self.invoke(kwargs)
            except Exception as exc:
                logger.info("[Tool] %s failed: %s", self.name, exc)
                raise ToolCallAborted(exc) from exc

        return AIFunction(
            name=self.name,
            description=self.description,
            func=_call,
            input_model=self.input_model,
        )


class ToolRegistry(dict[str, Tool]):
    """Name → Tool mapping used when wiring flows from flows.yaml."""

    def register(self, tool: Tool) -> Tool:
        if tool.name in self:
            raise ValueError(f"Tool '{tool.name}' is already registered.")
        self[tool.name] = tool
        logger.debug("Registered tool '%s'", tool.name)
        return tool

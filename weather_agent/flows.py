"""
weather_agent/flows.py
----------------------
Named, schema-validated flows, each backed by a single generation call.

Flows are declared in flows.yaml:

    flows:
      helloFlow:
        description: "Answers a weather question for a location"
        input: WeatherQuery
        prompt: "What's the weather in {location}?"
        tools: [getWeather]

``load_flow_definitions`` turns that file into ``FlowDefinition`` objects and
``build_flows`` wires them to a generator and the tool registry.  Without a
flows.yaml the built-in ``helloFlow`` definition is used.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Mapping, Sequence

import yaml
from pydantic import BaseModel, ValidationError

from weather_agent.config import Settings
from weather_agent.errors import ConfigurationError, FlowInputError
from weather_agent.generation import AgentGenerator, Generator, build_chat_client
from weather_agent.tools import Tool, ToolRegistry
from weather_agent.weather import WeatherQuery, make_weather_tool

logger = logging.getLogger(__name__)

INPUT_MODELS: dict[str, type[BaseModel]] = {
    "WeatherQuery": WeatherQuery,
}


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class FlowDefinition:
    """Declarative description of a flow, as found in flows.yaml."""

    name: str
    prompt: str
    description: str = ""
    instructions: str = ""
    input: str = "WeatherQuery"
    tools: list[str] = field(default_factory=list)


HELLO_FLOW = FlowDefinition(
    name="helloFlow",
    description="Answers a weather question for a location",
    prompt="What's the weather in {location}?",
    tools=["getWeather"],
)


class Flow:
    """A flow bound to its generator and tools."""

    def __init__(
        self,
        name: str,
        prompt: str,
        generator: Generator,
        *,
        input_model: type[BaseModel] = WeatherQuery,
        tools: Sequence[Tool] = (),
        instructions: str = "",
        description: str = "",
    ) -> None:
        self.name = name
        self.prompt = prompt
        self.description = description
        self.instructions = instructions
        self.input_model = input_model
        self.tools = list(tools)
        self._generator = generator

    def parse_input(self, data: BaseModel | Mapping[str, Any]) -> BaseModel:
        if isinstance(data, self.input_model):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return self.input_model.model_validate(data)
        except ValidationError as exc:
            raise FlowInputError(f"Invalid input for flow '{self.name}': {exc}") from exc

    def render_prompt(self, args: BaseModel) -> str:
        return self.prompt.format(**args.model_dump())

    async def run(self, data: BaseModel | Mapping[str, Any]) -> str:
        """Validate ``data``, run one generation call and return its text."""
        args = self.parse_input(data)
        prompt = self.render_prompt(args)
        logger.info("[Flow %s] %s", self.name, prompt)
        response = await self._generator.generate(
            prompt,
            tools=self.tools,
            instructions=self.instructions or None,
        )
        logger.info(
            "[Flow %s] done (%d tool call(s), %d chars)",
            self.name, response.tool_calls, len(response.text or ""),
        )
        return response.text

    def __repr__(self) -> str:
        return f"Flow(name={self.name!r}, tools={[t.name for t in self.tools]!r})"


class FlowRegistry(dict[str, Flow]):
    """Name → Flow mapping served by the API and the CLI."""

    def add(self, flow: Flow) -> Flow:
        if flow.name in self:
            raise ConfigurationError(f"Flow '{flow.name}' is defined more than once.")
        self[flow.name] = flow
        return flow


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_flow_definitions(path: str | Path | None) -> list[FlowDefinition]:
    """
    Parse flows.yaml into a list of FlowDefinition.

    Returns ``[HELLO_FLOW]`` when ``path`` is None or the file does not exist.
    """
    if path is None or not Path(path).is_file():
        logger.debug("No flow config at %s; using built-in helloFlow", path)
        return [HELLO_FLOW]

    with open(path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

    flows = config.get("flows") if isinstance(config, dict) else None
    if not isinstance(flows, dict) or not flows:
        raise ConfigurationError(f"{path} must define at least one flow under 'flows'.")

    result: list[FlowDefinition] = []
    for name, defn in flows.items():
        defn = defn or {}
        if "prompt" not in defn:
            raise ConfigurationError(f"Flow '{name}' in {path} has no prompt.")
        result.append(
            FlowDefinition(
                name=name,
                prompt=defn["prompt"],
                description=defn.get("description", ""),
                instructions=defn.get("instructions", ""),
                input=defn.get("input", "WeatherQuery"),
                tools=list(defn.get("tools", [])),
            )
        )
    return result


def build_tool_registry(settings: Settings) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(make_weather_tool(settings))
    return registry


def create_flow(definition: FlowDefinition, generator: Generator, tools: Mapping[str, Tool]) -> Flow:
    missing = [t for t in definition.tools if t not in tools]
    if missing:
        raise ConfigurationError(
            f"Flow '{definition.name}' references unknown tool(s): {', '.join(missing)}"
        )
    input_model = INPUT_MODELS.get(definition.input)
    if input_model is None:
        raise ConfigurationError(
            f"Flow '{definition.name}' references unknown input schema '{definition.input}'"
        )
    return Flow(
        definition.name,
        definition.prompt,
        generator,
        input_model=input_model,
        tools=[tools[t] for t in definition.tools],
        instructions=definition.instructions,
        description=definition.description,
    )


# ---------------------------------------------------------------------------
# Flow factory: async context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def build_flows(
    settings: Settings,
    generator: Generator | None = None,
    tools: Mapping[str, Tool] | None = None,
) -> AsyncIterator[FlowRegistry]:
    """
    Build every declared flow and yield them as a FlowRegistry.

    The chat client is only built when no ``generator`` is injected.
    """
    definitions = load_flow_definitions(settings.flows_config)
    tools = build_tool_registry(settings) if tools is None else tools

    def _registry(gen: Generator) -> FlowRegistry:
        flows = FlowRegistry()
        for definition in definitions:
            flows.add(create_flow(definition, gen, tools))
        logger.info("Registered flows: %s", ", ".join(flows))
        return flows

    if generator is not None:
        yield _registry(generator)
        return

    async with build_chat_client(settings) as client:
        yield _registry(AgentGenerator(client))

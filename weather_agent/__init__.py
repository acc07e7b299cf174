"""
weather_agent
-------------
A weather question answered by a language model that may call a
current-conditions tool backed by OpenWeatherMap.
"""

from weather_agent.config import Settings
from weather_agent.flows import Flow, FlowRegistry, build_flows

__all__ = ["Flow", "FlowRegistry", "Settings", "build_flows"]

"""
weather_agent/errors.py
-----------------------
Exception types raised by the weather agent.

Upstream failures are never swallowed: they propagate to the caller (the HTTP
route or the CLI), which decides how to report them.
"""


class WeatherAgentError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(WeatherAgentError):
    """Raised at startup when settings or flows.yaml are unusable."""


class WeatherAPIError(WeatherAgentError):
    """The weather provider rejected the request or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ToolInputError(WeatherAgentError, ValueError):
    """Tool arguments failed schema validation; the handler was not called."""


class FlowInputError(WeatherAgentError, ValueError):
    """Flow input failed schema validation; the generator was not called."""


class ToolCallAborted(BaseException):
    """
    Carries a tool failure out of the agent framework's function-invocation
    loop, which converts any ``Exception`` into an error result for the model.

    Raised only from inside ``Tool.as_ai_function``; ``AgentGenerator``
    unwraps it and re-raises ``error``.
    """

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error

"""
main.py
-------
Command-line runner for the weather flows, without the HTTP server.

  python main.py Paris                 Run helloFlow once for "Paris"
  python main.py --flow helloFlow      Prompt for locations in a loop
  python main.py --debug               Enable DEBUG logging

In the prompt loop, type a location; /quit (or /exit, Ctrl-C) exits.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

# Load .env before importing any project modules so env vars are available.
load_dotenv(override=True)

from weather_agent.config import Settings, configure_logging
from weather_agent.flows import Flow, build_flows

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI helpers (graceful fallback without colour support)
# ---------------------------------------------------------------------------

_USE_COLOUR = sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    return f"\033[{code}m{text}\033[0m" if _USE_COLOUR else text


def _dim(t: str)   -> str: return _c("2", t)
def _cyan(t: str)  -> str: return _c("36", t)
def _green(t: str) -> str: return _c("32", t)
def _yellow(t: str)-> str: return _c("33", t)
def _red(t: str)   -> str: return _c("31", t)
def _bold(t: str)  -> str: return _c("1", t)


def _print_answer(text: str) -> None:
    print()
    print(_bold(_green("Assistant")) + " › " + text)
    print()


def _print_error(text: str) -> None:
    print(_red(f"  ✖ {text}"))
    print()


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------

async def run_once(flow: Flow, location: str) -> bool:
    """Run ``flow`` for one location.  Returns False if the flow failed."""
    try:
        answer = await flow.run({"location": location})
    except Exception as exc:  # noqa: BLE001
        logger.exception("Flow '%s' failed", flow.name)
        _print_error(f"{type(exc).__name__}: {exc}")
        return False
    _print_answer(answer)
    return True


def _prompt() -> str:
    try:
        return input(_bold(_cyan("Location")) + " › ").strip()
    except EOFError:
        return "/quit"


async def repl(flow: Flow) -> None:
    print(_bold(f"\n  {flow.name}"))
    print(_dim("  Type a location, Ctrl-C or /quit to exit.\n"))
    while True:
        try:
            raw = _prompt()
            if not raw:
                continue
            if raw.lower() in ("/quit", "/exit"):
                print(_yellow("Goodbye!"))
                return
            await run_once(flow, raw)
        except KeyboardInterrupt:
            print(_yellow("\n  Goodbye!"))
            return


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask the weather agent about a location.")
    parser.add_argument("location", nargs="?", help="location to ask about; omit for a prompt loop")
    parser.add_argument("--flow", default="helloFlow", help="flow name from flows.yaml (default: helloFlow)")
    parser.add_argument("-d", "--debug", action="store_true", help="enable DEBUG logging")
    return parser.parse_args(argv)


async def _async_main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = Settings.from_env()
    configure_logging("DEBUG" if args.debug else settings.log_level)

    async with build_flows(settings) as flows:
        flow = flows.get(args.flow)
        if flow is None:
            _print_error(f"Unknown flow '{args.flow}'. Available: {', '.join(flows)}")
            return 2
        if args.location is not None:
            return 0 if await run_once(flow, args.location) else 1
        await repl(flow)
    return 0


def main(argv: list[str] | None = None) -> int:
    try:
        return asyncio.run(_async_main(argv))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Walkthrough MCP Server — step through a TLS 1.3 handshake and ask about it."""

import json
import logging
import sys

from mcp.server.fastmcp import FastMCP

from walkthrough.catalog import STAGE_SEQUENCE, metadata_for
from walkthrough.config import Config, load_config
from walkthrough.session import WalkthroughSession

mcp = FastMCP("walkthrough")
logger = logging.getLogger(__name__)

# Redirect all logging to stderr so stdout stays clean for MCP stdio transport
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_session: WalkthroughSession | None = None
_config: Config | None = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_session() -> WalkthroughSession:
    """Create the shared session on first use (needs the server's event loop)."""
    global _session
    if _session is None:
        _session = WalkthroughSession(_get_config())
    return _session


def _state_json() -> str:
    view = _get_session().view()
    return json.dumps(view.model_dump(mode="json"))


@mcp.tool()
async def get_state() -> str:
    """Current stage, display flags, packet log and analyst text."""
    return _state_json()


@mcp.tool()
async def advance() -> str:
    """Move to the next handshake stage. At the last stage this only pauses playback."""
    _get_session().advance()
    return _state_json()


@mcp.tool()
async def retreat() -> str:
    """Move back one handshake stage. Does nothing at the first stage."""
    _get_session().retreat()
    return _state_json()


@mcp.tool()
async def reset() -> str:
    """Return to the first stage and stop playback."""
    _get_session().reset()
    return _state_json()


@mcp.tool()
async def toggle_play() -> str:
    """Start or pause auto-advance. At the last stage, replays from the start."""
    _get_session().toggle_play()
    return _state_json()


@mcp.tool()
async def ask_question(question: str) -> str:
    """Ask the analyst about the current stage. Returns the new answer turn."""
    session = _get_session()
    if not question.strip():
        return json.dumps({"error": "Question is empty"})
    if not await session.ask(question):
        return json.dumps({"error": "Previous question is still being answered"})
    return json.dumps(session.transcript[-1].model_dump(mode="json"))


@mcp.tool()
async def get_transcript() -> str:
    """All question/answer turns so far, oldest first."""
    turns = _get_session().transcript
    return json.dumps([t.model_dump(mode="json") for t in turns])


@mcp.tool()
async def list_stages() -> str:
    """List every handshake stage with its static description."""
    result = []
    for stage in STAGE_SEQUENCE:
        info = metadata_for(stage)
        result.append({"stage": stage.value, **info.model_dump(mode="json")})
    return json.dumps(result)


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()

"""MCP server for codelens.

Exposes the debugging assistant to AI coding agents via the Model Context
Protocol: image extraction, full analysis, practice generation and simulated
test runs.

Usage:
    uv run python -m codelens.mcp_server

Configure in Claude Code (~/.claude.json):
    {
      "mcpServers": {
        "codelens": {
          "command": "uv",
          "args": ["run", "--directory", "/path/to/codelens", "codelens", "serve"]
        }
      }
    }
"""

from __future__ import annotations

import json
import mimetypes
import time
from functools import lru_cache
from pathlib import Path

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server

from codelens.activity import log_tool_call
from codelens.assistant.errors import AssistantError
from codelens.assistant.models import AUTO_DETECT, DEFAULT_CONCEPT_LABEL, TestCase
from codelens.assistant.orchestrator import DebugAssistant
from codelens.config import Config

server = Server("codelens")

_MODE_SCHEMA = {
    "type": "string",
    "enum": ["beginner", "advanced"],
    "description": "Explanation depth",
}


@lru_cache(maxsize=1)
def _get_assistant() -> DebugAssistant:
    """One long-lived assistant per process; the client is stateless between calls."""
    return DebugAssistant.from_config(Config.load())


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return [
        types.Tool(
            name="extract_code",
            description=(
                "Read source code or a math problem out of an image file "
                "(screenshot, photo of a whiteboard). Returns the detected language, "
                "the text, and a confidence score; below 0.6 the extraction is unreliable."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "image_path": {"type": "string", "description": "Path to a PNG/JPEG/WebP image"},
                    "mime_type": {"type": "string", "description": "Override the detected MIME type"},
                },
                "required": ["image_path"],
            },
        ),
        types.Tool(
            name="analyze_code",
            description=(
                "Debug a code snippet (R, Python, C++, JavaScript, Java) or a math expression. "
                "Returns the identified errors with line numbers, corrected code with test "
                "cases, an explanation, reasoning steps, a follow-up suggestion and, for "
                "code with loops or branches, an ASCII flow diagram."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "code": {"type": "string", "description": "Source code to debug"},
                    "language": {
                        "type": "string",
                        "description": f"Language name, or '{AUTO_DETECT}'",
                    },
                    "mode": _MODE_SCHEMA,
                },
                "required": ["code"],
            },
        ),
        types.Tool(
            name="generate_practice",
            description=(
                "Generate one practice problem targeting a bug concept, e.g. "
                "'undefined variable or function' or 'index out of bounds / off-by-one'. "
                "Pass previous_prompt to get a different problem."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "context": {"type": "string", "description": "Errors, summary and original input"},
                    "concept_label": {"type": "string", "description": "Concept to practice"},
                    "language": {"type": "string"},
                    "mode": _MODE_SCHEMA,
                    "previous_prompt": {"type": "string", "description": "Problem not to repeat"},
                },
                "required": ["context"],
            },
        ),
        types.Tool(
            name="simulate_tests",
            description=(
                "Simulate running code against test cases. Nothing is executed: the model "
                "role-plays an interpreter, so treat results as an estimate."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "code": {"type": "string"},
                    "tests": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "input": {"type": "string"},
                                "expected": {"type": "string"},
                            },
                        },
                    },
                },
                "required": ["code"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    start = time.time()
    result: list[types.TextContent] = []
    error: str | None = None
    is_mock = False
    try:
        payload = _dispatch_tool(name, arguments)
        is_mock = bool(payload.get("isMock"))
        result = [types.TextContent(type="text", text=json.dumps(payload, indent=2, ensure_ascii=False))]
        return result
    except AssistantError as e:
        error = e.message
        result = [types.TextContent(type="text", text=e.message)]
        return result
    except (FileNotFoundError, KeyError, ValueError) as e:
        error = str(e)
        result = [types.TextContent(type="text", text=f"Error: {e}")]
        return result
    finally:
        duration_ms = int((time.time() - start) * 1000)
        result_text = result[0].text if result else ""
        log_tool_call(name, arguments, result_text, error, duration_ms, is_mock=is_mock)


def _dispatch_tool(name: str, arguments: dict) -> dict:
    """Route a tool call to the appropriate handler."""
    if name == "extract_code":
        return _handle_extract(arguments["image_path"], arguments.get("mime_type"))
    elif name == "analyze_code":
        return _get_assistant().analyze(
            arguments["code"],
            arguments.get("language", AUTO_DETECT),
            arguments.get("mode", "beginner"),
        ).to_dict()
    elif name == "generate_practice":
        return _get_assistant().generate_practice(
            arguments["context"],
            arguments.get("language", AUTO_DETECT),
            arguments.get("mode", "beginner"),
            arguments.get("concept_label") or DEFAULT_CONCEPT_LABEL,
            previous_prompt=arguments.get("previous_prompt"),
        ).to_dict()
    elif name == "simulate_tests":
        tests = [
            TestCase(
                id=str(t.get("id") or f"t{i}"),
                input=str(t.get("input", "")),
                expected=str(t.get("expected", "")),
            )
            for i, t in enumerate(arguments.get("tests") or [], 1)
        ]
        return _get_assistant().run_tests(arguments["code"], tests).to_dict()
    else:
        raise ValueError(f"Unknown tool: {name}")


def _handle_extract(image_path: str, mime_type: str | None) -> dict:
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found at {path}")
    mime_type = mime_type or mimetypes.guess_type(path.name)[0]
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"Cannot determine an image MIME type for {path.name}")
    return _get_assistant().extract_code(path.read_bytes(), mime_type).to_dict()


async def main() -> None:
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())

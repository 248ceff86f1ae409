"""Line-delimited JSON-RPC 2.0 server exposing the tools over stdio.

stdout carries protocol frames only; loguru logs go to stderr.
"""

from __future__ import annotations

import json
import sys
from typing import IO, Any

from loguru import logger

from iniadmoocs import __version__
from iniadmoocs import app as main_app
from iniadmoocs.cli import AuthStateOption, BaseUrlOption, HeadlessOption, cli_settings
from iniadmoocs.config import Settings
from iniadmoocs.errors import ValidationError
from iniadmoocs.session import BrowserSession
from iniadmoocs.tools import CONSOLE_RESOURCE, TOOLS, ToolContext, read_console

SUPPORTED_PROTOCOL_VERSIONS = ["2025-06-18", "2025-03-26", "2024-11-05"]
DEFAULT_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class McpServer:
    """Dispatch JSON-RPC requests to the tool registry against one browser session."""

    def __init__(
        self,
        settings: Settings,
        session: BrowserSession | None = None,
        stdin: IO[bytes] | None = None,
        stdout: IO[bytes] | None = None,
    ) -> None:
        self.settings = settings
        self.session = session if session is not None else BrowserSession(settings)
        self.context = ToolContext(self.session, settings)
        self.stdin = stdin if stdin is not None else sys.stdin.buffer
        self.stdout = stdout if stdout is not None else sys.stdout.buffer

    def write_message(self, payload: dict[str, Any]) -> None:
        line = (json.dumps(payload, ensure_ascii=False) + "\n").encode()
        self.stdout.write(line)
        self.stdout.flush()

    def read_message(self) -> dict[str, Any] | None:
        """Read the next frame. Returns None at end of input, {} for a blank line."""
        line = self.stdin.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            return {}
        try:
            message = json.loads(line.decode())
        except ValueError as e:
            self.error(None, PARSE_ERROR, f"Parse error: {e}")
            return {}
        if not isinstance(message, dict):
            self.error(None, INVALID_REQUEST, "Request must be a JSON object")
            return {}
        return message

    def result(self, request_id: Any, result: dict[str, Any]) -> None:
        self.write_message({"jsonrpc": "2.0", "id": request_id, "result": result})

    def error(self, request_id: Any, code: int, message: str) -> None:
        self.write_message({"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}})

    def _select_protocol(self, params: dict[str, Any]) -> str:
        requested = params.get("protocolVersion") if isinstance(params, dict) else None
        if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
            return requested
        return DEFAULT_PROTOCOL_VERSION

    def handle_initialize(self, request_id: Any, params: dict[str, Any]) -> None:
        self.result(
            request_id,
            {
                "protocolVersion": self._select_protocol(params),
                "serverInfo": {"name": "iniadmoocs", "version": __version__},
                "capabilities": {
                    "resources": {"subscribe": False, "listChanged": False},
                    "tools": {"listChanged": False},
                },
            },
        )

    def handle_list_tools(self, request_id: Any) -> None:
        self.result(request_id, {"tools": [tool.definition() for tool in TOOLS.values()]})

    def handle_call_tool(self, request_id: Any, params: dict[str, Any]) -> None:
        name = params.get("name")
        arguments = params.get("arguments") or {}
        tool = TOOLS.get(name) if isinstance(name, str) else None
        if tool is None:
            self.error(request_id, INVALID_PARAMS, f"Unknown tool {name}")
            return
        if not isinstance(arguments, dict):
            self.error(request_id, INVALID_PARAMS, f"Arguments for {name} must be an object")
            return

        logger.info(f"tool={name} args={sorted(arguments)}")
        try:
            result = tool.call(self.context, arguments)
        except ValidationError as e:
            self.error(request_id, INVALID_PARAMS, f"Invalid parameters for {name}: {e}")
            return
        except Exception as e:
            logger.exception(f"Tool {name} raised")
            self.error(request_id, INTERNAL_ERROR, str(e))
            return
        self.result(request_id, result)

    def handle_list_resources(self, request_id: Any) -> None:
        self.result(request_id, {"resources": [CONSOLE_RESOURCE]})

    def handle_read_resource(self, request_id: Any, params: dict[str, Any]) -> None:
        uri = params.get("uri")
        if uri != CONSOLE_RESOURCE["uri"]:
            self.error(request_id, INVALID_PARAMS, f"Resource {uri} not found")
            return
        contents = {"uri": uri, "mimeType": CONSOLE_RESOURCE["mimeType"], "text": read_console(self.context)}
        self.result(request_id, {"contents": [contents]})

    def dispatch(self, message: dict[str, Any]) -> None:
        if not message:
            return
        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params")
        if params is None:
            params = {}

        if isinstance(method, str) and method.startswith("notifications/"):
            return
        if not isinstance(params, dict):
            self.error(request_id, INVALID_PARAMS, f"Params for {method} must be an object")
            return

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "tools/list":
            self.handle_list_tools(request_id)
        elif method == "tools/call":
            self.handle_call_tool(request_id, params)
        elif method == "resources/list":
            self.handle_list_resources(request_id)
        elif method == "resources/read":
            self.handle_read_resource(request_id, params)
        elif method == "ping":
            self.result(request_id, {})
        else:
            self.error(request_id, METHOD_NOT_FOUND, f"Method {method} not found")

    def serve_forever(self) -> None:
        """Handle frames until end of input, then close the browser."""
        logger.info("INIAD MOOCs tool server ready on stdio")
        try:
            while True:
                message = self.read_message()
                if message is None:
                    break
                try:
                    self.dispatch(message)
                except Exception as e:
                    logger.exception(f"Request {message.get('method')} failed")
                    self.error(message.get("id"), INTERNAL_ERROR, f"Internal error: {e}")
        finally:
            self.session.close()
            logger.info("INIAD MOOCs tool server stopped")


@main_app.command()
def serve(
    base_url: BaseUrlOption = None,
    auth_state_path: AuthStateOption = None,
    headless: HeadlessOption = False,
) -> None:
    """Serve the INIAD MOOCs tools over JSON-RPC on stdin/stdout."""
    settings = cli_settings(base_url, auth_state_path, headless)
    McpServer(settings).serve_forever()

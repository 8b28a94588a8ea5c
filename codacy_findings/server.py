"""
Core server bootstrap for the Codacy findings MCP server.

Wires up the fastmcp instance and registers the Codacy tools.
"""

import logging
from typing import Any

from fastmcp import FastMCP  # type: ignore[import-not-found]

from codacy_findings.provider import CodacyInfoProvider
from codacy_findings.settings import Settings
from codacy_findings.tools import CodacyToolDependencies, register_codacy_tools


class ServerApp:
    """Server container holding the MCP app and its dependencies."""

    def __init__(self, settings: Settings) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings = settings
        self._state: dict[str, Any] = {"settings": settings}
        self._provider: CodacyInfoProvider | None = None
        self._tool_dependencies = CodacyToolDependencies()
        self._mcp_app = FastMCP(
            name="Codacy Findings MCP Server",
            instructions=(
                "Summarize Codacy code-quality grades and security findings for a component."
            ),
        )
        register_codacy_tools(self._mcp_app, self._tool_dependencies)
        self._state["mcp_app"] = self._mcp_app

    def startup(self) -> None:
        """Validate Codacy configuration and attach the findings provider."""
        self._logger.info("Starting server bootstrap")
        self._provider = CodacyInfoProvider.from_settings(self._settings)
        self._tool_dependencies.attach_provider(self._provider)
        self._state["initialized"] = True

    def shutdown(self) -> None:
        """Release acquired resources."""
        self._logger.info("Shutting down server bootstrap")
        self._provider = None
        self._tool_dependencies.detach_provider()
        self._state.clear()

    def serve_forever(self) -> None:
        """Run the FastMCP SSE server until interrupted."""
        host = "0.0.0.0"
        port = self._settings.mcp_sse_port
        self._logger.info("Starting SSE transport", extra={"host": host, "port": port})
        self._mcp_app.run(transport="sse", host=host, port=port)

    async def serve_sse_async(self, host: str = "0.0.0.0") -> None:
        """Async helper for running the SSE transport (used by smoke tests)."""
        await self._mcp_app.run_http_async(
            transport="sse",
            host=host,
            port=self._settings.mcp_sse_port,
        )

    @property
    def mcp(self) -> FastMCP:
        """Expose the configured FastMCP instance."""
        return self._mcp_app

    @property
    def provider(self) -> CodacyInfoProvider | None:
        return self._provider


def build_server(settings: Settings) -> ServerApp:
    """Factory used by main.py to create the configured server instance."""
    return ServerApp(settings)

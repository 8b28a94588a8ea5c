"""MCP tool registrations for the Codacy findings server."""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable

from fastmcp import FastMCP
from pydantic import Field

from codacy_findings.provider import CodacyInfoProvider
from codacy_findings.registry import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class CodacyToolDependencies:
    """Runtime dependencies required by the MCP tools."""

    provider: CodacyInfoProvider | None = None

    def attach_provider(self, provider: CodacyInfoProvider) -> None:
        self.provider = provider

    def detach_provider(self) -> None:
        self.provider = None

    def require_provider(self) -> CodacyInfoProvider:
        if self.provider is None:
            raise RuntimeError("Codacy info provider is not initialized.")
        return self.provider


def _log_tool_event(tool_name: str, event: str, **fields: object) -> None:
    logger.info(
        "codacy_tool_event",
        extra={"tool": tool_name, "event": event, **fields},
    )


def _describe_instance(instance_key: str | None) -> str:
    return f"codacy instance name {instance_key}" if instance_key else "default codacy instance"


async def _with_error_handling(tool_name: str, action: Callable[[], Awaitable[dict[str, Any]]]) -> dict[str, Any]:
    try:
        return await action()
    except ConfigurationError as exc:
        logger.warning("%s failed due to codacy configuration", tool_name, exc_info=True)
        _log_tool_event(tool_name, "configuration_error", error=str(exc))
        return {"error": str(exc)}
    except ValueError as exc:
        logger.warning("%s rejected the request", tool_name, exc_info=True)
        _log_tool_event(tool_name, "invalid_request", error=str(exc))
        return {"error": str(exc)}
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s failed unexpectedly", tool_name)
        _log_tool_event(tool_name, "unexpected_error", error=str(exc))
        return {"error": f"Unexpected error: {exc}"}


def register_codacy_tools(
    mcp: FastMCP,
    dependencies: CodacyToolDependencies,
) -> None:
    """Register MCP tools that expose Codacy findings."""

    @mcp.tool(
        name="health",
        description="Liveness check for the Codacy findings server.",
    )
    async def health() -> dict[str, str]:
        logger.info("PONG!")
        return {"status": "ok"}

    @mcp.tool(
        name="get_codacy_findings",
        description="Aggregates Codacy repository analysis for a component into averaged metrics, a letter grade, and security issue counters. Returns status 'no_data' when the Codacy instance has nothing to report.",
    )
    async def get_codacy_findings(
        component_key: Annotated[str, Field(description="The Codacy organization/component key to summarize (e.g., 'my-org').")],
        instance_key: Annotated[str | None, Field(description="Optional name of the configured Codacy instance. Omit to use the default instance.")] = None,
    ) -> dict[str, Any]:
        """Return the findings summary for a component."""

        async def _call() -> dict[str, Any]:
            provider = dependencies.require_provider()
            logger.info(
                "Retrieving findings for component %s in %s",
                component_key,
                _describe_instance(instance_key),
            )
            summary = await provider.get_findings(component_key, instance_key)
            if summary is None:
                _log_tool_event("get_codacy_findings", "no_data", component_key=component_key)
                return {
                    "status": "no_data",
                    "message": f"No Codacy findings available for {component_key}.",
                }
            _log_tool_event(
                "get_codacy_findings",
                "success",
                component_key=component_key,
                grade_letter=summary.grade_letter,
            )
            return summary.to_dict()

        return await _with_error_handling("get_codacy_findings", _call)

    @mcp.tool(
        name="get_codacy_base_url",
        description="Returns the base URL (and external URL, when configured) of a Codacy instance.",
    )
    async def get_codacy_base_url(
        instance_key: Annotated[str | None, Field(description="Optional name of the configured Codacy instance. Omit to use the default instance.")] = None,
    ) -> dict[str, Any]:
        """Return the URLs of the selected instance."""

        async def _call() -> dict[str, Any]:
            return dependencies.require_provider().get_base_url(instance_key)

        return await _with_error_handling("get_codacy_base_url", _call)

    logger.info("Codacy MCP tools registered.")

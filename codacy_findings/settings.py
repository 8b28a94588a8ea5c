"""Environment-driven configuration utilities for the MCP server."""

import json
import os
from dataclasses import dataclass, field
from typing import Any

from dotenv import load_dotenv


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration."""

    codacy_base_url: str | None = None
    codacy_external_base_url: str | None = None
    codacy_api_key: str | None = field(default=None, repr=False)
    codacy_instances: tuple[dict[str, Any], ...] = ()
    git_provider: str = "gh"
    api_timeout: float = 30.0
    mcp_sse_port: int = 8000

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can rely on a local .env file without
        exporting variables globally. Named instances are given as a JSON array
        in CODACY_INSTANCES.
        """
        load_dotenv()

        instances_raw = os.getenv("CODACY_INSTANCES", "").strip()
        codacy_instances: tuple[dict[str, Any], ...] = ()
        if instances_raw:
            try:
                parsed = json.loads(instances_raw)
            except json.JSONDecodeError as exc:
                raise ValueError("CODACY_INSTANCES must be a JSON array.") from exc
            if not isinstance(parsed, list) or not all(isinstance(item, dict) for item in parsed):
                raise ValueError("CODACY_INSTANCES must be a JSON array of objects.")
            codacy_instances = tuple(parsed)

        api_timeout_raw = os.getenv("API_TIMEOUT", "").strip() or "30"
        try:
            api_timeout = float(api_timeout_raw)
        except ValueError as exc:
            raise ValueError("API_TIMEOUT must be a numeric value.") from exc
        if api_timeout <= 0:
            raise ValueError("API_TIMEOUT must be greater than zero.")

        mcp_sse_port_raw = os.getenv("MCP_SSE_PORT", "").strip() or "8000"
        try:
            mcp_sse_port = int(mcp_sse_port_raw)
        except ValueError as exc:
            raise ValueError("MCP_SSE_PORT must be an integer.") from exc
        if mcp_sse_port <= 0:
            raise ValueError("MCP_SSE_PORT must be greater than zero.")

        return cls(
            codacy_base_url=_optional_env("CODACY_BASE_URL"),
            codacy_external_base_url=_optional_env("CODACY_EXTERNAL_BASE_URL"),
            codacy_api_key=_optional_env("CODACY_API_KEY"),
            codacy_instances=codacy_instances,
            git_provider=_optional_env("CODACY_GIT_PROVIDER") or "gh",
            api_timeout=api_timeout,
            mcp_sse_port=mcp_sse_port,
        )

    def codacy_config(self) -> dict[str, Any]:
        """Return the codacy configuration tree understood by InstanceRegistry."""
        config: dict[str, Any] = {"instances": [dict(item) for item in self.codacy_instances]}
        if self.codacy_base_url:
            config["baseUrl"] = self.codacy_base_url
        if self.codacy_external_base_url:
            config["externalBaseUrl"] = self.codacy_external_base_url
        if self.codacy_api_key:
            config["apiKey"] = self.codacy_api_key
        return config

"""
Codacy API client wrapper.

Encapsulates the two dashboard/analysis calls used for findings, with
consistent error reporting and logging.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from codacy_findings.http_client import create_codacy_client
from codacy_findings.registry import InstanceRecord

logger = logging.getLogger(__name__)

DEFAULT_GIT_PROVIDER = "gh"


class CodacyApiError(RuntimeError):
    """Represents failures when communicating with a Codacy instance."""


def require_non_empty(value: str, field_name: str) -> str:
    """Normalize and validate non-empty request arguments."""
    cleaned = value.strip() if isinstance(value, str) else ""
    if not cleaned:
        raise ValueError(f"{field_name} must be a non-empty string.")
    return cleaned


@dataclass(slots=True)
class CodacyApiClient:
    """Typed wrapper around an AsyncClient bound to one Codacy instance."""

    _client: httpx.AsyncClient
    git_provider: str = DEFAULT_GIT_PROVIDER

    @classmethod
    def from_instance(
        cls,
        instance: InstanceRecord,
        *,
        timeout: float = 30.0,
        git_provider: str = DEFAULT_GIT_PROVIDER,
    ) -> "CodacyApiClient":
        """Factory that builds the client for a resolved instance."""
        return cls(create_codacy_client(instance, timeout), git_provider=git_provider)

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def get_security_dashboard(self, component_key: str) -> dict[str, Any]:
        """Fetch the security dashboard counters for an organization."""
        key = require_non_empty(component_key, "component_key")
        logger.debug("Fetching security dashboard", extra={"component_key": key})
        return await self._request(
            "POST",
            f"organizations/{self.git_provider}/{key}/security/dashboard",
            json={},
        )

    async def search_repository_analysis(self, component_key: str) -> dict[str, Any]:
        """Fetch per-repository analysis records for an organization."""
        key = require_non_empty(component_key, "component_key")
        logger.debug("Searching repository analysis", extra={"component_key": key})
        return await self._request(
            "POST",
            f"search/analysis/organizations/{self.git_provider}/{key}/repositories",
            json={},
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Normalized request handler for all outgoing API calls."""

        def _transport_error(message: str, *, exc: Exception | None = None) -> CodacyApiError:
            logger.error(
                message,
                extra={"method": method, "path": path},
                exc_info=exc,
            )
            return CodacyApiError(message)

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise _transport_error(
                f"Codacy API request timed out ({method} {path}).",
                exc=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise _transport_error(
                f"Codacy API request failed ({method} {path}): {exc!s}",
                exc=exc,
            ) from exc

        if response.status_code != httpx.codes.OK:
            snippet = response.text.strip()
            if len(snippet) > 512:
                snippet = f"{snippet[:512]}..."
            logger.warning(
                "Codacy API responded with non-OK status",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "content": snippet,
                },
            )
            raise CodacyApiError(
                f"Codacy API error ({response.status_code}) during {method} {path}: {snippet or 'no body provided.'}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.error(
                "Codacy API returned invalid JSON",
                extra={"method": method, "path": path},
            )
            raise CodacyApiError(f"Codacy API returned invalid JSON during {method} {path}.") from exc

        if not isinstance(data, dict):
            raise CodacyApiError(f"Codacy API returned a non-object payload during {method} {path}.")
        return data

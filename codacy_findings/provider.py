"""
Findings provider composing instance resolution and Codacy aggregation.

Configuration errors propagate to the caller; downstream failures never do and
surface as ``None`` so the boundary can render an empty state.
"""

import logging
from collections.abc import Callable
from typing import Any

from codacy_findings.client import DEFAULT_GIT_PROVIDER, CodacyApiClient, CodacyApiError, require_non_empty
from codacy_findings.findings import ComponentMetricsSummary, summarize
from codacy_findings.registry import InstanceRecord, InstanceRegistry
from codacy_findings.settings import Settings

logger = logging.getLogger(__name__)

ClientFactory = Callable[[InstanceRecord], CodacyApiClient]


class CodacyInfoProvider:
    """Provides base URLs and findings for configured Codacy instances."""

    def __init__(
        self,
        registry: InstanceRegistry,
        client_factory: ClientFactory | None = None,
        *,
        timeout: float = 30.0,
        git_provider: str = DEFAULT_GIT_PROVIDER,
    ) -> None:
        self._registry = registry
        self._client_factory = client_factory or (
            lambda instance: CodacyApiClient.from_instance(
                instance,
                timeout=timeout,
                git_provider=git_provider,
            )
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CodacyInfoProvider":
        """Build the provider, failing fast on invalid instance configuration."""
        registry = InstanceRegistry.from_config(settings.codacy_config())
        return cls(
            registry,
            timeout=settings.api_timeout,
            git_provider=settings.git_provider,
        )

    @property
    def registry(self) -> InstanceRegistry:
        return self._registry

    def resolve_instance(self, instance_name: str | None = None) -> InstanceRecord:
        return self._registry.resolve(instance_name)

    def get_base_url(self, instance_name: str | None = None) -> dict[str, Any]:
        """Return the backend URL and, when configured, the frontend URL of an instance."""
        instance = self._registry.resolve(instance_name)
        result: dict[str, Any] = {"baseUrl": instance.base_url}
        if instance.external_base_url:
            result["externalBaseUrl"] = instance.external_base_url
        return result

    async def get_findings(
        self,
        component_key: str,
        instance_name: str | None = None,
    ) -> ComponentMetricsSummary | None:
        """
        Aggregate findings for ``component_key`` from the selected instance.

        The analysis search is only issued once the security dashboard call
        succeeds. Returns ``None`` when either call fails or returns an
        unexpected payload.
        """
        key = require_non_empty(component_key, "component_key")
        instance = self._registry.resolve(instance_name)
        log_extra = {"component_key": key, "instance": instance.name}

        client = self._client_factory(instance)
        try:
            try:
                security = await client.get_security_dashboard(key)
            except CodacyApiError:
                logger.warning("Security dashboard unavailable", extra=log_extra)
                return None

            try:
                analysis = await client.search_repository_analysis(key)
            except CodacyApiError:
                logger.warning("Repository analysis unavailable", extra=log_extra)
                return None
        finally:
            await client.aclose()

        summary = summarize(security, analysis)
        if summary is None:
            logger.warning("Codacy returned no usable findings", extra=log_extra)
        return summary

"""HTTP client factory for talking to a Codacy instance."""

import httpx

from codacy_findings.registry import InstanceRecord


def create_codacy_client(
    instance: InstanceRecord,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient bound to one Codacy instance.

    The instance API key travels in the ``api-token`` header on every request.
    """
    return httpx.AsyncClient(
        base_url=instance.base_url,
        timeout=timeout,
        transport=transport,
        headers={
            "Content-Type": "application/json",
            "Accept": "application/json",
            "api-token": instance.api_key,
        },
    )

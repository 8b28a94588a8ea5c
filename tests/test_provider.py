import httpx
import pytest

from codacy_findings.client import CodacyApiClient
from codacy_findings.http_client import create_codacy_client
from codacy_findings.provider import CodacyInfoProvider
from codacy_findings.registry import (
    DefaultInstanceNotFoundError,
    InstanceNotFoundError,
    InstanceRecord,
    InstanceRegistry,
)
from codacy_findings.settings import Settings

SECURITY_PATH = "/api/v3/organizations/gh/acme/security/dashboard"
ANALYSIS_PATH = "/api/v3/search/analysis/organizations/gh/acme/repositories"
SECURITY_PAYLOAD = {"data": {"totalOpen": 4, "totalClosed": 10, "onTrack": 3, "closedOnTime": 8}}
ANALYSIS_PAYLOAD = {
    "data": [
        {
            "grade": 100,
            "coveragePercentageWithDecimals": 100,
            "issuesPercentage": 0,
            "complexFilesPercentage": 0,
            "duplicationPercentage": 0,
        },
        {},
    ]
}

REGISTRY = InstanceRegistry.from_config(
    {
        "baseUrl": "http://codacy.mock/api/v3",
        "apiKey": "default-token",
        "instances": [
            {
                "name": "other",
                "baseUrl": "http://codacy-other.mock/api/v3",
                "externalBaseUrl": "https://codacy-other.example.com",
                "apiKey": "other-token",
            }
        ],
    }
)


def _build_provider(handler, seen: list[httpx.Request]) -> CodacyInfoProvider:
    async def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def factory(instance: InstanceRecord) -> CodacyApiClient:
        return CodacyApiClient(
            create_codacy_client(instance, 5.0, transport=httpx.MockTransport(recording_handler))
        )

    return CodacyInfoProvider(REGISTRY, factory)


def _routes(security: httpx.Response, analysis: httpx.Response):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == SECURITY_PATH:
            return security
        if request.url.path == ANALYSIS_PATH:
            return analysis
        return httpx.Response(404)

    return handler


@pytest.mark.anyio
async def test_get_findings_aggregates_both_calls() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(
        _routes(httpx.Response(200, json=SECURITY_PAYLOAD), httpx.Response(200, json=ANALYSIS_PAYLOAD)),
        seen,
    )

    summary = await provider.get_findings("acme")

    assert summary is not None
    assert summary.grade == 100
    assert summary.grade_letter == "A"
    assert summary.issues_percentage == 50
    assert summary.total_open == 4
    assert [request.url.path for request in seen] == [SECURITY_PATH, ANALYSIS_PATH]
    assert all(request.headers["api-token"] == "default-token" for request in seen)


@pytest.mark.anyio
async def test_get_findings_uses_named_instance() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(
        _routes(httpx.Response(200, json=SECURITY_PAYLOAD), httpx.Response(200, json=ANALYSIS_PAYLOAD)),
        seen,
    )

    assert await provider.get_findings("acme", "other") is not None
    assert {request.url.host for request in seen} == {"codacy-other.mock"}
    assert all(request.headers["api-token"] == "other-token" for request in seen)


@pytest.mark.anyio
async def test_security_failure_is_absent_and_skips_analysis() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(
        _routes(httpx.Response(500, text="boom"), httpx.Response(200, json=ANALYSIS_PAYLOAD)),
        seen,
    )

    assert await provider.get_findings("acme") is None
    assert [request.url.path for request in seen] == [SECURITY_PATH]


@pytest.mark.anyio
async def test_analysis_failure_is_absent() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(
        _routes(httpx.Response(200, json=SECURITY_PAYLOAD), httpx.Response(403, text="forbidden")),
        seen,
    )

    assert await provider.get_findings("acme") is None
    assert len(seen) == 2


@pytest.mark.anyio
async def test_analysis_without_data_array_is_absent() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(
        _routes(httpx.Response(200, json=SECURITY_PAYLOAD), httpx.Response(200, json={"pagination": {}})),
        seen,
    )

    assert await provider.get_findings("acme") is None


@pytest.mark.anyio
async def test_transport_failure_is_absent() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _build_provider(handler, [])

    assert await provider.get_findings("acme") is None


@pytest.mark.anyio
async def test_configuration_errors_propagate() -> None:
    provider = _build_provider(_routes(httpx.Response(200), httpx.Response(200)), [])

    with pytest.raises(InstanceNotFoundError):
        await provider.get_findings("acme", "missing")

    empty = CodacyInfoProvider(InstanceRegistry([]))
    with pytest.raises(DefaultInstanceNotFoundError):
        await empty.get_findings("acme")


@pytest.mark.anyio
async def test_empty_component_key_is_rejected() -> None:
    seen: list[httpx.Request] = []
    provider = _build_provider(_routes(httpx.Response(200), httpx.Response(200)), seen)

    with pytest.raises(ValueError):
        await provider.get_findings("   ")
    assert seen == []


def test_get_base_url_for_default_and_named_instances() -> None:
    provider = CodacyInfoProvider(REGISTRY)

    assert provider.get_base_url() == {"baseUrl": "http://codacy.mock/api/v3"}
    assert provider.get_base_url("") == {"baseUrl": "http://codacy.mock/api/v3"}
    assert provider.get_base_url("other") == {
        "baseUrl": "http://codacy-other.mock/api/v3",
        "externalBaseUrl": "https://codacy-other.example.com",
    }


def test_from_settings_builds_registry() -> None:
    settings = Settings(
        codacy_base_url="https://codacy.example.com",
        codacy_api_key="token",
        codacy_instances=({"name": "other", "baseUrl": "https://o.example.com", "apiKey": "t"},),
    )

    provider = CodacyInfoProvider.from_settings(settings)

    assert provider.registry.names() == ["other", "default"]
    assert provider.resolve_instance().base_url == "https://codacy.example.com"


@pytest.mark.anyio
async def test_undecodable_body_is_absent() -> None:
    provider = _build_provider(
        _routes(httpx.Response(200, content=b'{"data": "\x80\x81"}'), httpx.Response(200, json=ANALYSIS_PAYLOAD)),
        [],
    )

    assert await provider.get_findings("acme") is None

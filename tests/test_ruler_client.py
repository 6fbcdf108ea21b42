"""
Tests for the Mimir/Cortex ruler client.
"""

import asyncio

import httpx
import pytest
import respx
import yaml
from alertsync.config import Settings
from alertsync.core.errors import (
    DecodeFailedError,
    FetchFailedError,
    PushFailedError,
    ReconciliationMismatchError,
    UnexpectedRuleCountError,
)
from alertsync.rules.codec import encode_group
from alertsync.rules.models import Rule, RuleGroup
from alertsync.ruler.client import RulerClient

RULER_URL = "http://ruler.test"
GROUP_NAME = "01e74407-0327-4e36-93cb-85801c098ba5"
NAMESPACE_URL = f"{RULER_URL}/prometheus/config/v1/rules/alerting"
GROUP_URL = f"{NAMESPACE_URL}/{GROUP_NAME}"


def make_group(**rule_fields) -> RuleGroup:
    fields = {
        "alert": "ClusterRAMUsageExceedsThreshold",
        "expr": "x > 100",
        "for_": "30s",
        "labels": {"threshold": "100"},
    }
    fields.update(rule_fields)
    return RuleGroup(name=GROUP_NAME, interval="15s", rules=[Rule(**fields)])


@pytest.fixture
def client() -> RulerClient:
    return RulerClient(RULER_URL, "alerting")


class TestRulerClientInit:
    """Test client construction and request headers."""

    def test_strips_trailing_slash(self):
        ruler = RulerClient("http://ruler.test/", "alerting")
        assert ruler.namespace_url() == NAMESPACE_URL

    def test_group_url(self, client):
        assert client.group_url(GROUP_NAME) == GROUP_URL

    def test_default_tenant_remapped(self, client):
        assert client.scope_org_id("edgenode") == "edgenode-system"

    def test_other_tenants_pass_through(self, client):
        assert client.scope_org_id("acme") == "acme"
        assert client.scope_org_id("edgenode-system") == "edgenode-system"

    def test_headers(self, client):
        headers = client._build_headers("acme")
        assert headers["X-Scope-OrgID"] == "acme"
        assert headers["User-Agent"].startswith("alertsync/")
        assert "Authorization" not in headers

    def test_headers_with_api_key(self):
        ruler = RulerClient(RULER_URL, "alerting", api_key="secret-key")
        assert ruler._build_headers("acme")["Authorization"] == "Bearer secret-key"

    def test_from_settings(self):
        settings = Settings(
            ruler_url="http://mimir:8080",
            ruler_namespace="tenant-rules",
            default_tenant_id="internal",
            system_tenant_id="internal-system",
        )
        ruler = RulerClient.from_settings(settings)

        assert ruler.namespace == "tenant-rules"
        assert ruler.namespace_url() == "http://mimir:8080/prometheus/config/v1/rules/tenant-rules"
        assert ruler.scope_org_id("internal") == "internal-system"


class TestPush:
    """Test pushing rule groups."""

    @respx.mock
    async def test_push_posts_yaml(self, client):
        route = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))
        group = make_group()

        await client.push(group, "acme")

        assert route.called
        request = route.calls.last.request
        assert request.headers["X-Scope-OrgID"] == "acme"
        assert request.headers["Content-Type"] == "application/yaml"
        body = yaml.safe_load(request.content)
        assert body["name"] == GROUP_NAME
        assert body["interval"] == "15s"
        assert body["rules"][0]["expr"] == "x > 100"

    @respx.mock
    async def test_push_remaps_default_tenant(self, client):
        route = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(200))

        await client.push(make_group(), "edgenode")

        assert route.calls.last.request.headers["X-Scope-OrgID"] == "edgenode-system"

    @respx.mock
    async def test_push_basic_auth(self):
        ruler = RulerClient(RULER_URL, "alerting", username="user", password="pass")
        route = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))

        await ruler.push(make_group(), "acme")

        assert route.calls.last.request.headers["Authorization"].startswith("Basic ")

    @respx.mock
    async def test_push_rejected(self, client):
        route = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(400, text="bad rule"))

        with pytest.raises(PushFailedError) as exc_info:
            await client.push(make_group(), "acme")

        assert exc_info.value.status_code == 400
        assert "bad rule" in exc_info.value.message
        assert route.call_count == 1

    @respx.mock
    async def test_push_transport_error(self, client):
        respx.post(NAMESPACE_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(PushFailedError) as exc_info:
            await client.push(make_group(), "acme")

        assert exc_info.value.status_code is None

    async def test_push_with_injected_client(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(202)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            ruler = RulerClient(RULER_URL, "alerting", client=http_client)
            await ruler.push(make_group(), "acme")

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == NAMESPACE_URL

    async def test_push_with_transport(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        ruler = RulerClient(RULER_URL, "alerting", transport=transport)

        with pytest.raises(PushFailedError) as exc_info:
            await ruler.push(make_group(), "acme")

        assert exc_info.value.status_code == 503


class TestFetchGroup:
    """Test reading rule groups back."""

    @respx.mock
    async def test_fetch(self, client):
        group = make_group()
        route = respx.get(GROUP_URL).mock(
            return_value=httpx.Response(200, text=encode_group(group))
        )

        fetched = await client.fetch_group(GROUP_NAME, "edgenode")

        assert fetched == group
        assert route.calls.last.request.headers["X-Scope-OrgID"] == "edgenode-system"

    @respx.mock
    async def test_fetch_not_found(self, client):
        respx.get(GROUP_URL).mock(return_value=httpx.Response(404, text="group does not exist"))

        with pytest.raises(FetchFailedError) as exc_info:
            await client.fetch_group(GROUP_NAME, "acme")

        assert exc_info.value.status_code == 404

    @respx.mock
    async def test_fetch_transport_error(self, client):
        respx.get(GROUP_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(FetchFailedError):
            await client.fetch_group(GROUP_NAME, "acme")

    @respx.mock
    async def test_fetch_malformed_yaml(self, client):
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text="name: [oops"))

        with pytest.raises(DecodeFailedError):
            await client.fetch_group(GROUP_NAME, "acme")

    @respx.mock
    async def test_fetch_unexpected_shape(self, client):
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text="- a\n- b\n"))

        with pytest.raises(DecodeFailedError):
            await client.fetch_group(GROUP_NAME, "acme")


class TestVerify:
    """Test confirming the ruler converged."""

    @respx.mock
    async def test_verify_identical(self, client):
        group = make_group()
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(group)))

        await client.verify(group, "acme")

    @respx.mock
    async def test_verify_equivalent_durations(self, client):
        echoed = RuleGroup(
            name=GROUP_NAME,
            interval="15s",
            rules=[
                Rule(
                    alert="ClusterRAMUsageExceedsThreshold",
                    expr="x > 100",
                    for_="1m",
                    labels={"threshold": "100"},
                )
            ],
        )
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(echoed)))

        await client.verify(make_group(for_="1m0s"), "acme")

    @respx.mock
    async def test_verify_empty_for_matches_zero(self, client):
        echoed = make_group(for_="")
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(echoed)))

        await client.verify(make_group(for_="0s"), "acme")

    @respx.mock
    async def test_verify_label_order_irrelevant(self, client):
        body = (
            f"name: {GROUP_NAME}\n"
            "interval: 15s\n"
            "rules:\n"
            "  - labels:\n"
            "      threshold: '100'\n"
            "      severity: critical\n"
            "    for: 30s\n"
            "    expr: x > 100\n"
            "    alert: ClusterRAMUsageExceedsThreshold\n"
        )
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=body))

        await client.verify(
            make_group(labels={"severity": "critical", "threshold": "100"}), "acme"
        )

    @respx.mock
    async def test_verify_empty_body(self, client):
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=""))

        with pytest.raises(UnexpectedRuleCountError) as exc_info:
            await client.verify(make_group(), "acme")

        assert exc_info.value.count == 0

    @respx.mock
    async def test_verify_multiple_rules(self, client):
        group = make_group()
        echoed = group.model_copy(update={"rules": group.rules * 2})
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(echoed)))

        with pytest.raises(UnexpectedRuleCountError) as exc_info:
            await client.verify(group, "acme")

        assert str(exc_info.value) == "one rule per rule group expected, 2 found"

    @respx.mock
    async def test_verify_mismatch(self, client):
        echoed = make_group(alert="SomethingElse")
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(echoed)))

        with pytest.raises(ReconciliationMismatchError) as exc_info:
            await client.verify(make_group(), "acme")

        error = exc_info.value
        assert error.differences == [
            "rules[0].alert: 'ClusterRAMUsageExceedsThreshold' != 'SomethingElse'"
        ]
        assert error.expected.rules[0].alert == "ClusterRAMUsageExceedsThreshold"
        assert error.actual.rules[0].alert == "SomethingElse"
        assert "Expected:" in str(error)
        assert "Received:" in str(error)

    @respx.mock
    async def test_verify_fetch_failure(self, client):
        respx.get(GROUP_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(FetchFailedError) as exc_info:
            await client.verify(make_group(), "acme")

        assert exc_info.value.status_code == 500


class HangingTransport(httpx.AsyncBaseTransport):
    """Transport whose requests never complete."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


class TestCancellation:
    """Test that caller deadlines cancel ruler calls instead of being wrapped."""

    async def test_push_deadline(self):
        transport = HangingTransport()
        ruler = RulerClient(RULER_URL, "alerting", transport=transport)

        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.05):
                await ruler.push(make_group(), "acme")

        assert len(transport.requests) == 1

    async def test_verify_deadline(self):
        transport = HangingTransport()
        ruler = RulerClient(RULER_URL, "alerting", transport=transport)

        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.05):
                await ruler.verify(make_group(), "acme")

        assert [r.method for r in transport.requests] == ["GET"]

    async def test_cancel_propagates(self):
        ruler = RulerClient(RULER_URL, "alerting", transport=HangingTransport())
        task = asyncio.create_task(ruler.push(make_group(), "acme"))
        await asyncio.sleep(0.01)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

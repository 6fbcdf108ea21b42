"""Tests for pushing definition configuration to the ruler."""

import asyncio

import httpx
import pytest
import respx
import yaml
from alertsync.core.errors import (
    FetchFailedError,
    InvalidExpressionError,
    PushFailedError,
    ReconciliationMismatchError,
    TemplateDecodeError,
)
from alertsync.domain.models import AlertDefinitionRow, ParameterOverrides
from alertsync.rules.codec import encode_group
from alertsync.rules.models import Rule, RuleGroup
from alertsync.ruler.client import RulerClient
from alertsync.ruler.updater import RulerUpdater

RULER_URL = "http://ruler.test"
NAMESPACE_URL = f"{RULER_URL}/prometheus/config/v1/rules/alerting"
GROUP_NAME = "01e74407-0327-4e36-93cb-85801c098ba5"
GROUP_URL = f"{NAMESPACE_URL}/{GROUP_NAME}"


class FakeRuler:
    """In-memory ruler that echoes back whatever was last pushed."""

    def __init__(self, rewrite=None):
        self.stored: dict[tuple[str, str], str] = {}
        self.requests: list[httpx.Request] = []
        self._rewrite = rewrite

    def handle_post(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = request.content.decode()
        name = yaml.safe_load(body)["name"]
        if self._rewrite:
            body = self._rewrite(body)
        self.stored[(request.headers["X-Scope-OrgID"], name)] = body
        return httpx.Response(202)

    def handle_get(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = request.url.path.rsplit("/", 1)[-1]
        body = self.stored.get((request.headers["X-Scope-OrgID"], name))
        if body is None:
            return httpx.Response(404, text="group does not exist")
        return httpx.Response(200, text=body)


@pytest.fixture
def definition(definition_id, ram_template) -> AlertDefinitionRow:
    return AlertDefinitionRow(
        id=definition_id,
        name="ClusterRAMUsageExceedsThreshold",
        template=ram_template,
        interval=15,
        tenant_id="edgenode",
        values=ParameterOverrides(threshold=100),
    )


@pytest.fixture
def updater() -> RulerUpdater:
    return RulerUpdater(RulerClient(RULER_URL, "alerting"))


def mock_ruler(fake: FakeRuler) -> None:
    respx.post(NAMESPACE_URL).mock(side_effect=fake.handle_post)
    respx.get(url__startswith=f"{NAMESPACE_URL}/").mock(side_effect=fake.handle_get)


class TestUpdateDefinitionConfig:
    """Test the build, push and verify pipeline."""

    @respx.mock
    async def test_push_and_verify(self, updater, definition):
        fake = FakeRuler()
        mock_ruler(fake)

        group = await updater.update_definition_config(definition)

        assert group.name == GROUP_NAME
        assert group.interval == "15s"
        assert group.rules[0].expr == "x > 100"
        assert group.rules[0].for_ == "30s"
        assert [r.method for r in fake.requests] == ["POST", "GET"]
        assert all(r.headers["X-Scope-OrgID"] == "edgenode-system" for r in fake.requests)

    @respx.mock
    async def test_disabled_definition(self, updater, definition):
        fake = FakeRuler()
        mock_ruler(fake)
        disabled = definition.model_copy(
            update={"values": ParameterOverrides(threshold=100, enabled=False)}
        )

        group = await updater.update_definition_config(disabled)

        assert group.rules[0].expr == "x > 100 and false"

    @respx.mock
    async def test_ruler_drops_zero_for(self, updater, definition_id):
        fake = FakeRuler(
            rewrite=lambda body: "".join(
                line for line in body.splitlines(keepends=True) if "for: 0s" not in line
            )
        )
        mock_ruler(fake)
        definition = AlertDefinitionRow(
            id=definition_id,
            template="alert: HostDown\nexpr: up == [[ .Threshold ]]\nfor: 0s\n",
            interval=60,
            tenant_id="acme",
            values=ParameterOverrides(threshold=0),
        )

        group = await updater.update_definition_config(definition)

        stored = fake.stored[("acme", GROUP_NAME)]
        assert "for:" not in stored
        assert group.rules[0].for_ == "0s"
        assert group.interval == "1m0s"

    @respx.mock
    async def test_ruler_reformats_durations(self, updater, definition):
        fake = FakeRuler(rewrite=lambda body: body.replace("for: 30s", "for: 30000ms"))
        mock_ruler(fake)

        await updater.update_definition_config(definition)

    @respx.mock
    async def test_mismatch_after_successful_push(self, updater, definition):
        fake = FakeRuler(
            rewrite=lambda body: body.replace(
                "ClusterRAMUsageExceedsThreshold", "ClusterRAMUsage"
            )
        )
        mock_ruler(fake)

        with pytest.raises(ReconciliationMismatchError):
            await updater.update_definition_config(definition)

        assert [r.method for r in fake.requests] == ["POST", "GET"]

    @respx.mock
    async def test_push_failure_skips_verify(self, updater, definition):
        post = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(500))
        get = respx.get(GROUP_URL).mock(return_value=httpx.Response(200))

        with pytest.raises(PushFailedError) as exc_info:
            await updater.update_definition_config(definition)

        assert exc_info.value.status_code == 500
        assert post.call_count == 1
        assert not get.called

    @respx.mock
    async def test_fetch_failure(self, updater, definition):
        respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))
        respx.get(GROUP_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(FetchFailedError) as exc_info:
            await updater.update_definition_config(definition)

        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_invalid_expression_never_pushed(self, updater, definition):
        post = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))
        broken = definition.model_copy(
            update={"template": "alert: Broken\nexpr: x ==>= [[ .Threshold ]]\n"}
        )

        with pytest.raises(InvalidExpressionError):
            await updater.update_definition_config(broken)

        assert not post.called

    @respx.mock
    async def test_malformed_template_never_pushed(self, updater, definition):
        post = respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))
        broken = definition.model_copy(update={"template": "alert: ["})

        with pytest.raises(TemplateDecodeError):
            await updater.update_definition_config(broken)

        assert not post.called

    @respx.mock
    async def test_identical_echo(self, updater, definition):
        expected = RuleGroup(
            name=GROUP_NAME,
            interval="15s",
            rules=[
                Rule(
                    alert="ClusterRAMUsageExceedsThreshold",
                    expr="x > 100",
                    for_="30s",
                    labels={"threshold": "100"},
                )
            ],
        )
        respx.post(NAMESPACE_URL).mock(return_value=httpx.Response(202))
        respx.get(GROUP_URL).mock(return_value=httpx.Response(200, text=encode_group(expected)))

        group = await updater.update_definition_config(definition)

        assert group == expected


class HangingPushTransport(httpx.AsyncBaseTransport):
    """Transport that never answers a push and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            await asyncio.Event().wait()
        return httpx.Response(200)


class TestDeadlines:
    """Test that a caller deadline stops the pipeline."""

    async def test_push_deadline_skips_verify(self, definition):
        transport = HangingPushTransport()
        updater = RulerUpdater(RulerClient(RULER_URL, "alerting", transport=transport))

        with pytest.raises(TimeoutError):
            async with asyncio.timeout(0.05):
                await updater.update_definition_config(definition)

        assert [r.method for r in transport.requests] == ["POST"]

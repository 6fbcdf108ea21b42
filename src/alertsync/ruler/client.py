"""
Mimir/Cortex Ruler API client.

Pushes a definition's rule group to the ruler and reads it back to
confirm the ruler holds what was pushed.

API endpoints:
    POST /prometheus/config/v1/rules/{namespace} - Create/update a rule group
    GET /prometheus/config/v1/rules/{namespace}/{groupName} - Read a rule group
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from alertsync import __version__
from alertsync.core.errors import (
    DecodeFailedError,
    FetchFailedError,
    PushFailedError,
    ReconciliationMismatchError,
    UnexpectedRuleCountError,
)
from alertsync.rules.codec import DocumentError, decode_group, encode_group
from alertsync.rules.models import RuleGroup
from alertsync.ruler.compare import diff_groups, normalize_group

if TYPE_CHECKING:
    from alertsync.config import Settings

logger = structlog.get_logger()

DEFAULT_USER_AGENT = f"alertsync/{__version__}"
DEFAULT_TENANT_ID = "edgenode"
SYSTEM_TENANT_ID = "edgenode-system"
RULES_API_PATH = "/prometheus/config/v1/rules"


class RulerClient:
    """
    Push and verify rule groups in a Mimir/Cortex ruler.

    Every request carries the tenant in the ``X-Scope-OrgID`` header. The
    internal default tenant is sent as the system tenant, which is how
    the ruler knew it before multi-tenancy.

    Pass ``client`` to share a caller-owned ``httpx.AsyncClient`` (and its
    transport); otherwise a short-lived client is built per request from
    ``timeout``, ``verify`` and ``transport``.
    """

    def __init__(
        self,
        ruler_url: str,
        namespace: str,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        verify: bool = True,
        api_key: str | None = None,
        username: str | None = None,
        password: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        default_tenant_id: str = DEFAULT_TENANT_ID,
        system_tenant_id: str = SYSTEM_TENANT_ID,
    ) -> None:
        """
        Initialize the ruler client.

        Args:
            ruler_url: Base URL of the ruler
            namespace: Rule namespace the groups live in
            client: Shared HTTP client; not closed by this class
            transport: Transport for per-request clients
            timeout: Request timeout in seconds for per-request clients
            verify: Verify TLS certificates for per-request clients
            api_key: Bearer token for authentication
            username: Basic auth username
            password: Basic auth password
            user_agent: User agent string
            default_tenant_id: Internal tenant remapped on the wire
            system_tenant_id: Wire identifier for the default tenant
        """
        self._base_url = ruler_url.rstrip("/")
        self._namespace = namespace
        self._client = client
        self._transport = transport
        self._timeout = timeout
        self._verify = verify
        self._api_key = api_key
        self._user_agent = user_agent
        self._auth = (username, password) if username and password else None
        self._default_tenant_id = default_tenant_id
        self._system_tenant_id = system_tenant_id

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> RulerClient:
        """Build a client from application settings."""
        return cls(
            settings.ruler_url,
            settings.ruler_namespace,
            client=client,
            timeout=settings.http_timeout,
            verify=settings.http_verify_tls,
            api_key=settings.ruler_api_key,
            username=settings.ruler_username,
            password=settings.ruler_password,
            default_tenant_id=settings.default_tenant_id,
            system_tenant_id=settings.system_tenant_id,
        )

    @property
    def namespace(self) -> str:
        return self._namespace

    def scope_org_id(self, tenant: str) -> str:
        """Return the tenant identifier the ruler knows ``tenant`` by."""
        if tenant == self._default_tenant_id:
            return self._system_tenant_id
        return tenant

    def namespace_url(self) -> str:
        return f"{self._base_url}{RULES_API_PATH}/{self._namespace}"

    def group_url(self, group_name: str) -> str:
        return f"{self.namespace_url()}/{group_name}"

    def _build_headers(self, tenant: str) -> dict[str, str]:
        """Build request headers."""
        headers = {
            "User-Agent": self._user_agent,
            "X-Scope-OrgID": self.scope_org_id(tenant),
        }

        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        return headers

    async def _send(
        self,
        method: str,
        url: str,
        tenant: str,
        *,
        content: str | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers = self._build_headers(tenant)
        if extra_headers:
            headers.update(extra_headers)

        if self._client is not None:
            return await self._client.request(
                method, url, content=content, headers=headers, auth=self._auth
            )

        async with httpx.AsyncClient(
            timeout=self._timeout, verify=self._verify, transport=self._transport
        ) as client:
            return await client.request(
                method, url, content=content, headers=headers, auth=self._auth
            )

    async def push(self, group: RuleGroup, tenant: str) -> None:
        """
        Create or replace a rule group in the ruler.

        Args:
            group: Rule group to push
            tenant: Tenant owning the group

        Raises:
            PushFailedError: on a non-2xx response or a transport failure
        """
        url = self.namespace_url()
        body = encode_group(group)

        try:
            response = await self._send(
                "POST",
                url,
                tenant,
                content=body,
                extra_headers={"Content-Type": "application/yaml"},
            )
        except httpx.HTTPError as e:
            logger.warning("ruler_push_transport_error", url=url, group=group.name, error=str(e))
            raise PushFailedError(f"failed to push rule group {group.name!r} to {url}: {e}") from e

        if not response.is_success:
            error_text = response.text[:200] if response.text else "Unknown error"
            logger.warning(
                "ruler_push_rejected",
                url=url,
                group=group.name,
                status=response.status_code,
            )
            raise PushFailedError(
                f"ruler rejected rule group {group.name!r}: {error_text}",
                status_code=response.status_code,
            )

        logger.debug("ruler_push_succeeded", group=group.name, status=response.status_code)

    async def fetch_group(self, group_name: str, tenant: str) -> RuleGroup:
        """
        Read a rule group back from the ruler.

        Raises:
            FetchFailedError: on a non-2xx response or a transport failure
            DecodeFailedError: if the body is not a rule group
        """
        url = self.group_url(group_name)

        try:
            response = await self._send("GET", url, tenant)
        except httpx.HTTPError as e:
            logger.warning("ruler_fetch_transport_error", url=url, error=str(e))
            raise FetchFailedError(
                f"error while trying to receive rule group from {url}: {e}"
            ) from e

        if not response.is_success:
            raise FetchFailedError(
                f"error while trying to receive rule group {group_name!r}: "
                f"unexpected status code {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return decode_group(response.content)
        except DocumentError as e:
            raise DecodeFailedError(f"failed to decode rule group {group_name!r}: {e}") from e

    async def verify(self, group: RuleGroup, tenant: str) -> RuleGroup:
        """
        Confirm the ruler holds ``group``.

        Returns:
            The group as fetched from the ruler

        Raises:
            FetchFailedError: if the group cannot be read
            DecodeFailedError: if the ruler's payload is not a rule group
            UnexpectedRuleCountError: if the fetched group holds other than one rule
            ReconciliationMismatchError: if the fetched group differs after normalization
        """
        received = await self.fetch_group(group.name, tenant)

        if len(received.rules) != 1:
            raise UnexpectedRuleCountError(len(received.rules))

        expected = normalize_group(group)
        actual = normalize_group(received)
        differences = diff_groups(expected, actual)
        if differences:
            logger.warning("ruler_group_mismatch", group=group.name, differences=differences)
            raise ReconciliationMismatchError(expected, actual, differences)

        return received

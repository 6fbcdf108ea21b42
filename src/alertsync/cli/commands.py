"""CLI commands for rendering, pushing and syncing alert definitions."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import UUID

import httpx

from alertsync.cli.ux import console, error, header, info, print_yaml, success
from alertsync.config import Settings
from alertsync.core.errors import AlertSyncError, ConfigurationError, format_error_message
from alertsync.db.session import dispose_engine, init_engine, session_scope
from alertsync.domain.models import AlertDefinitionRow, ParameterOverrides
from alertsync.logging import bind_context, clear_context
from alertsync.rules.codec import build_rule, encode_group
from alertsync.rules.groups import build_group
from alertsync.ruler.client import RulerClient
from alertsync.ruler.updater import RulerUpdater
from alertsync.workflows.definition_sync import DefinitionSyncWorkflow, SyncOutcome


def read_template(path: str) -> str:
    """Read a rule template from ``path``; ``-`` reads stdin."""
    if path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read template {path!r}: {exc.strerror}") from exc


def make_definition(
    template: str,
    definition_id: UUID,
    interval: int,
    tenant_id: str,
    threshold: int | None = None,
    duration: int | None = None,
    disabled: bool = False,
) -> AlertDefinitionRow:
    return AlertDefinitionRow(
        id=definition_id,
        template=template,
        interval=interval,
        tenant_id=tenant_id,
        values=ParameterOverrides(
            threshold=threshold,
            duration=duration,
            enabled=False if disabled else None,
        ),
    )


def render_command(
    template_file: str,
    definition_id: UUID,
    interval: int,
    threshold: int | None = None,
    duration: int | None = None,
    disabled: bool = False,
) -> int:
    """Print the rule group an alert definition would be pushed as.

    Returns:
        Exit code (0 for success)
    """
    template = read_template(template_file)
    try:
        rule = build_rule(
            template,
            ParameterOverrides(
                threshold=threshold,
                duration=duration,
                enabled=False if disabled else None,
            ),
        )
    except AlertSyncError as exc:
        error(format_error_message(exc))
        raise

    print_yaml(encode_group(build_group(definition_id, interval, rule)))
    return 0


def push_command(
    template_file: str,
    definition_id: UUID,
    interval: int,
    tenant_id: str,
    settings: Settings,
    threshold: int | None = None,
    duration: int | None = None,
    disabled: bool = False,
) -> int:
    """Build an alert definition's rule group, push it and verify it.

    Returns:
        Exit code (0 for success)
    """
    definition = make_definition(
        read_template(template_file),
        definition_id,
        interval,
        tenant_id,
        threshold=threshold,
        duration=duration,
        disabled=disabled,
    )

    header("Push Alert Definition")
    info(f"Ruler: {settings.ruler_url} (namespace {settings.ruler_namespace})")
    info(f"Tenant: {tenant_id}")

    updater = RulerUpdater(RulerClient.from_settings(settings))
    try:
        group = asyncio.run(updater.update_definition_config(definition))
    except AlertSyncError as exc:
        error(format_error_message(exc))
        raise

    success(f"Rule group {group.name} pushed and verified")
    return 0


async def _sync(
    settings: Settings,
    tenant_id: str,
    definition_id: UUID,
    version: int | None,
) -> SyncOutcome:
    init_engine(settings)
    try:
        async with httpx.AsyncClient(
            timeout=settings.http_timeout, verify=settings.http_verify_tls
        ) as http_client:
            updater = RulerUpdater(RulerClient.from_settings(settings, client=http_client))
            async with session_scope() as session:
                workflow = DefinitionSyncWorkflow(session=session, updater=updater)
                return await workflow.run(tenant_id, definition_id, version)
    finally:
        await dispose_engine()


def sync_command(
    tenant_id: str,
    definition_id: UUID,
    settings: Settings,
    version: int | None = None,
) -> int:
    """Sync a stored alert definition to the ruler and record its state.

    Returns:
        Exit code (0 for success, 1 if the definition does not exist)
    """
    log = bind_context(tenant=tenant_id, definition_id=str(definition_id), version=version)
    log.info("sync_requested")

    try:
        outcome = asyncio.run(_sync(settings, tenant_id, definition_id, version))
    except AlertSyncError as exc:
        error(format_error_message(exc))
        raise
    finally:
        clear_context()

    if outcome is SyncOutcome.not_found:
        error(f"Alert definition {definition_id} not found for tenant {tenant_id}")
        return 1

    success(f"Alert definition {definition_id} applied")
    console.print(f"[muted]Tenant:[/muted] {tenant_id}")
    return 0

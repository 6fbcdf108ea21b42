"""Push an alert definition's current configuration to the ruler."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from alertsync.domain.models import AlertDefinitionRow
from alertsync.rules.codec import build_rule
from alertsync.rules.groups import build_group
from alertsync.rules.models import RuleGroup
from alertsync.ruler.client import RulerClient

logger = structlog.get_logger()


@dataclass(slots=True)
class RulerUpdater:
    ruler: RulerClient

    async def update_definition_config(self, definition: AlertDefinitionRow) -> RuleGroup:
        """
        Bring the ruler in line with ``definition`` and confirm it converged.

        The rule is built from the stored template and overrides, wrapped in
        a group named after the definition, pushed, then read back and
        compared. The first failure propagates unchanged; nothing is retried.

        Returns:
            The group that was pushed
        """
        log = logger.bind(
            tenant=definition.tenant_id,
            definition_id=str(definition.id),
            version=definition.version,
        )

        rule = build_rule(definition.template, definition.values)
        group = build_group(definition.id, definition.interval, rule)

        await self.ruler.push(group, definition.tenant_id)
        log.info("rule_group_pushed", group=group.name, interval=group.interval)

        await self.ruler.verify(group, definition.tenant_id)
        log.info("rule_group_verified", group=group.name)

        return group

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from alertsync.core.errors import AlertSyncError
from alertsync.db.repositories import DefinitionRepository
from alertsync.domain.models import DefinitionState
from alertsync.ruler.updater import RulerUpdater

logger = structlog.get_logger()


class SyncOutcome(StrEnum):
    applied = "applied"
    not_found = "not_found"


@dataclass(slots=True)
class DefinitionSyncWorkflow:
    """Apply one stored alert definition to the ruler and record the result."""

    session: AsyncSession
    updater: RulerUpdater

    async def run(
        self,
        tenant_id: str,
        definition_id: UUID,
        version: int | None = None,
    ) -> SyncOutcome:
        """
        Sync a definition version (latest usable when ``version`` is None).

        The definition moves to ``Pending`` before the ruler is contacted and
        to ``Applied`` or ``Error`` afterwards; each transition is committed.
        Errors from the ruler pipeline are re-raised after being recorded.
        """
        repository = DefinitionRepository(self.session)
        definition = await repository.get_definition(tenant_id, definition_id, version)
        if definition is None:
            logger.warning(
                "definition_not_found",
                tenant=tenant_id,
                definition_id=str(definition_id),
                version=version,
            )
            return SyncOutcome.not_found

        log = logger.bind(
            tenant=tenant_id,
            definition_id=str(definition_id),
            version=definition.version,
        )

        await self._transition(repository, definition.version, definition_id, tenant_id, DefinitionState.pending)

        try:
            await self.updater.update_definition_config(definition)
        except AlertSyncError as exc:
            log.error("definition_sync_failed", error=exc.message, error_type=type(exc).__name__)
            await self._transition(
                repository, definition.version, definition_id, tenant_id, DefinitionState.error
            )
            raise

        await self._transition(repository, definition.version, definition_id, tenant_id, DefinitionState.applied)
        log.info("definition_synced")
        return SyncOutcome.applied

    async def _transition(
        self,
        repository: DefinitionRepository,
        version: int,
        definition_id: UUID,
        tenant_id: str,
        state: DefinitionState,
    ) -> None:
        await repository.set_state(tenant_id, definition_id, version, state)
        await self.session.commit()

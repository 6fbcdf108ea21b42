from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from alertsync.db import models as db_models
from alertsync.domain.models import (
    AlertDefinitionRow,
    DefinitionState,
    ParameterOverrides,
)


@dataclass(slots=True)
class DefinitionRepository:
    """Read alert definitions and record their sync state."""

    session: AsyncSession

    async def get_definition(
        self,
        tenant_id: str,
        definition_id: UUID,
        version: int | None = None,
    ) -> AlertDefinitionRow | None:
        """
        Load a definition version together with its current values.

        With ``version`` omitted the latest version not in the ``Error``
        state is returned.
        """
        definition = db_models.AlertDefinition
        stmt = select(definition).where(
            definition.tenant_id == tenant_id,
            definition.uuid == definition_id,
        )
        if version is None:
            stmt = (
                stmt.where(definition.state != DefinitionState.error)
                .order_by(definition.version.desc())
                .limit(1)
            )
        else:
            stmt = stmt.where(definition.version == version)

        result = await self.session.execute(stmt)
        db_def = result.scalar_one_or_none()
        if not db_def:
            return None

        threshold = await self.session.scalar(
            select(db_models.AlertThreshold.threshold).where(
                db_models.AlertThreshold.alert_definition_id == db_def.id
            )
        )
        duration = await self.session.scalar(
            select(db_models.AlertDuration.duration).where(
                db_models.AlertDuration.alert_definition_id == db_def.id
            )
        )

        return AlertDefinitionRow(
            id=db_def.uuid,
            name=db_def.name,
            state=DefinitionState(db_def.state),
            template=db_def.template,
            interval=db_def.alert_interval,
            version=db_def.version,
            category=db_def.category,
            tenant_id=db_def.tenant_id,
            values=ParameterOverrides(
                threshold=threshold,
                duration=duration,
                enabled=db_def.enabled,
            ),
        )

    async def set_state(
        self,
        tenant_id: str,
        definition_id: UUID,
        version: int,
        state: DefinitionState,
    ) -> bool:
        """Set the state of one definition version; False if it does not exist."""
        definition = db_models.AlertDefinition
        stmt = (
            update(definition)
            .where(
                definition.tenant_id == tenant_id,
                definition.uuid == definition_id,
                definition.version == version,
            )
            .values(state=state)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

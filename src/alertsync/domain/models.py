from __future__ import annotations

from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DefinitionState(StrEnum):
    """Lifecycle of an alert definition version."""

    new = "New"
    modified = "Modified"
    pending = "Pending"
    applied = "Applied"
    error = "Error"


class DefinitionCategory(StrEnum):
    performance = "performance"
    health = "health"
    maintenance = "maintenance"


class ParameterOverrides(BaseModel):
    """A tenant's current tunable values for one alert definition."""

    model_config = ConfigDict(frozen=True)

    threshold: int | None = None
    duration: int | None = None  # seconds
    enabled: bool | None = None


class AlertDefinitionRow(BaseModel):
    """Read-only snapshot of one alert definition version."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str = ""
    state: DefinitionState = DefinitionState.new
    template: str
    interval: int  # seconds
    version: int = 1
    category: DefinitionCategory | None = None
    tenant_id: str
    values: ParameterOverrides = Field(default_factory=ParameterOverrides)

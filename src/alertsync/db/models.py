from __future__ import annotations

import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from alertsync.domain.models import DefinitionCategory, DefinitionState


class Base(DeclarativeBase):
    pass


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AlertDefinition(Base):
    """One version of a tenant's alert definition."""

    __tablename__ = "alert_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    state: Mapped[DefinitionState] = mapped_column(
        Enum(
            DefinitionState,
            name="alert_definition_state",
            native_enum=False,
            values_callable=_enum_values,
        ),
        nullable=False,
        default=DefinitionState.new,
    )
    template: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[DefinitionCategory | None] = mapped_column(
        Enum(
            DefinitionCategory,
            name="alert_definition_category",
            native_enum=False,
            values_callable=_enum_values,
        )
    )
    context: Mapped[str | None] = mapped_column(Text)
    severity: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    alert_interval: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False, default="edgenode")

    __table_args__ = (
        UniqueConstraint("uuid", "version", "tenant_id", name="uq_def_uuid_version_tenant"),
        UniqueConstraint(
            "name", "severity", "version", "tenant_id", name="uq_def_name_severity_version_tenant"
        ),
        Index("idx_def_tenant_uuid", "tenant_id", "uuid"),
    )


class AlertThreshold(Base):
    __tablename__ = "alert_thresholds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    threshold: Mapped[int] = mapped_column(BigInteger, nullable=False)
    threshold_min: Mapped[int] = mapped_column(BigInteger, nullable=False)
    threshold_max: Mapped[int] = mapped_column(BigInteger, nullable=False)
    threshold_type: Mapped[str | None] = mapped_column(String(50))
    threshold_unit: Mapped[str | None] = mapped_column(String(50))
    alert_definition_id: Mapped[int] = mapped_column(
        ForeignKey("alert_definitions.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("alert_definition_id", "name", name="uq_threshold_alert_id_name"),
    )


class AlertDuration(Base):
    __tablename__ = "alert_durations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration: Mapped[int] = mapped_column(BigInteger, nullable=False)  # seconds
    duration_min: Mapped[int] = mapped_column(BigInteger, nullable=False)
    duration_max: Mapped[int] = mapped_column(BigInteger, nullable=False)
    alert_definition_id: Mapped[int] = mapped_column(
        ForeignKey("alert_definitions.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("alert_definition_id", "name", name="uq_duration_alert_id_name"),
    )

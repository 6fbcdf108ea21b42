"""Root test configuration."""

import logging
from uuid import UUID

import pytest
import structlog
from alertsync.db import models as db_models
from alertsync.db.models import Base
from alertsync.domain.models import DefinitionCategory, DefinitionState
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

DEFINITION_ID = UUID("01e74407-0327-4e36-93cb-85801c098ba5")

RAM_TEMPLATE = """\
alert: ClusterRAMUsageExceedsThreshold
expr: x > [[.Threshold]]
for: 30s
"""

NET_BYTES_TEMPLATE = """\
alert: HighNetworkUsage
annotations:
  description: Host {{$labels.hostGuid}} network usage is over the threshold.
  summary: High network usage on host {{$labels.hostGuid}}.
expr: (rate(net_bytes_sent{}[5m]) + rate(net_bytes_recv{}[5m])) / 1000000 >= [[ .Threshold ]]
for: 5m
labels:
  alert_category: performance
  duration: 5m0s
  host_uuid: '{{$labels.hostGuid}}'
  threshold: '100'
"""


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def definition_id() -> UUID:
    return DEFINITION_ID


@pytest.fixture
def ram_template() -> str:
    return RAM_TEMPLATE


@pytest.fixture
def net_bytes_template() -> str:
    return NET_BYTES_TEMPLATE


@pytest.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def add_definition(session):
    """Insert an alert definition version with its threshold and duration rows."""

    async def _add(
        *,
        uuid=DEFINITION_ID,
        version=1,
        tenant_id="edgenode",
        state=DefinitionState.new,
        enabled=True,
        threshold=100,
        duration=30,
        template=RAM_TEMPLATE,
        interval=15,
    ):
        definition = db_models.AlertDefinition(
            uuid=uuid,
            version=version,
            name="ClusterRAMUsageExceedsThreshold",
            enabled=enabled,
            state=state,
            template=template,
            category=DefinitionCategory.performance,
            severity="warning",
            alert_interval=interval,
            tenant_id=tenant_id,
        )
        session.add(definition)
        await session.flush()

        if threshold is not None:
            session.add(
                db_models.AlertThreshold(
                    name="threshold",
                    threshold=threshold,
                    threshold_min=0,
                    threshold_max=1000,
                    threshold_type="integer",
                    alert_definition_id=definition.id,
                )
            )
        if duration is not None:
            session.add(
                db_models.AlertDuration(
                    name="duration",
                    duration=duration,
                    duration_min=0,
                    duration_max=3600,
                    alert_definition_id=definition.id,
                )
            )
        await session.commit()
        return definition

    return _add

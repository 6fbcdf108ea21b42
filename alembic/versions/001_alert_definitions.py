"""Alert definition tables

Revision ID: 001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'alert_definitions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', sa.Uuid(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('state', sa.String(length=8), nullable=False, server_default='New'),
        sa.Column('template', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=11), nullable=True),
        sa.Column('context', sa.Text(), nullable=True),
        sa.Column('severity', sa.String(length=50), nullable=False),
        sa.Column('alert_interval', sa.BigInteger(), nullable=False),
        sa.Column('tenant_id', sa.String(length=255), nullable=False, server_default='edgenode'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid', 'version', 'tenant_id', name='uq_def_uuid_version_tenant'),
        sa.UniqueConstraint(
            'name', 'severity', 'version', 'tenant_id', name='uq_def_name_severity_version_tenant'
        ),
        sa.CheckConstraint(
            "state IN ('New', 'Modified', 'Pending', 'Applied', 'Error')",
            name='alert_definition_state',
        ),
        sa.CheckConstraint(
            "category IN ('performance', 'health', 'maintenance')",
            name='alert_definition_category',
        ),
    )
    op.create_index('idx_def_tenant_uuid', 'alert_definitions', ['tenant_id', 'uuid'])

    op.create_table(
        'alert_thresholds',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('threshold', sa.BigInteger(), nullable=False),
        sa.Column('threshold_min', sa.BigInteger(), nullable=False),
        sa.Column('threshold_max', sa.BigInteger(), nullable=False),
        sa.Column('threshold_type', sa.String(length=50), nullable=True),
        sa.Column('threshold_unit', sa.String(length=50), nullable=True),
        sa.Column('alert_definition_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['alert_definition_id'], ['alert_definitions.id'], ondelete='CASCADE'
        ),
        sa.UniqueConstraint('alert_definition_id', 'name', name='uq_threshold_alert_id_name'),
    )

    op.create_table(
        'alert_durations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('duration', sa.BigInteger(), nullable=False),
        sa.Column('duration_min', sa.BigInteger(), nullable=False),
        sa.Column('duration_max', sa.BigInteger(), nullable=False),
        sa.Column('alert_definition_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['alert_definition_id'], ['alert_definitions.id'], ondelete='CASCADE'
        ),
        sa.UniqueConstraint('alert_definition_id', 'name', name='uq_duration_alert_id_name'),
    )


def downgrade() -> None:
    op.drop_table('alert_durations')
    op.drop_table('alert_thresholds')
    op.drop_index('idx_def_tenant_uuid', table_name='alert_definitions')
    op.drop_table('alert_definitions')

"""Create directory, snapshot and remediation run tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create judges, courts, cases, assignments, data_snapshots, remediation_runs."""
    op.create_table(
        'judges',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('jurisdiction', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('external_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('total_cases', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_judges_external_id'), 'judges', ['external_id'], unique=False)

    op.create_table(
        'courts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('jurisdiction', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('court_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('external_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_courts_external_id'), 'courts', ['external_id'], unique=False)

    op.create_table(
        'cases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('case_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('docket_number', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('judge_id', sa.Integer(), nullable=True),
        sa.Column('court_id', sa.Integer(), nullable=True),
        sa.Column('outcome', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('decision_date', sa.Date(), nullable=True),
        sa.Column('external_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_cases_judge_id'), 'cases', ['judge_id'], unique=False)
    op.create_index(op.f('ix_cases_court_id'), 'cases', ['court_id'], unique=False)
    op.create_index(op.f('ix_cases_external_id'), 'cases', ['external_id'], unique=False)

    op.create_table(
        'judge_court_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('judge_id', sa.Integer(), nullable=False),
        sa.Column('court_id', sa.Integer(), nullable=False),
        sa.Column('assignment_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='primary'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_judge_court_assignments_judge_id'), 'judge_court_assignments', ['judge_id'], unique=False,
    )
    op.create_index(
        op.f('ix_judge_court_assignments_court_id'), 'judge_court_assignments', ['court_id'], unique=False,
    )

    op.create_table(
        'data_snapshots',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('health_score', sa.Float(), nullable=False, server_default='0.0'),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'remediation_runs',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('plan_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('operator', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=''),
        sa.Column('dry_run', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_issues', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('attempted', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('successful', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('skipped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('results', sa.JSON(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    """Drop all data audit tables."""
    op.drop_table('remediation_runs')
    op.drop_table('data_snapshots')
    op.drop_index(op.f('ix_judge_court_assignments_court_id'), table_name='judge_court_assignments')
    op.drop_index(op.f('ix_judge_court_assignments_judge_id'), table_name='judge_court_assignments')
    op.drop_table('judge_court_assignments')
    op.drop_index(op.f('ix_cases_external_id'), table_name='cases')
    op.drop_index(op.f('ix_cases_court_id'), table_name='cases')
    op.drop_index(op.f('ix_cases_judge_id'), table_name='cases')
    op.drop_table('cases')
    op.drop_index(op.f('ix_courts_external_id'), table_name='courts')
    op.drop_table('courts')
    op.drop_index(op.f('ix_judges_external_id'), table_name='judges')
    op.drop_table('judges')

"""initial practice sync schema

Revision ID: c41e7a9d2b06
Revises:
Create Date: 2026-10-16 10:12:47.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c41e7a9d2b06'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Mirrored tables in creation order; referenced tables come first.
SYNCED_TABLES = (
    'patients', 'providers', 'operatories', 'appointment_types', 'insurance_plans',
    'fee_schedules', 'appointments', 'working_hours', 'recalls', 'insurance_coverages',
    'procedures', 'charges', 'payments', 'adjustments', 'guarantor_balances',
    'insurance_balances', 'treatment_plans', 'claims', 'patient_alerts',
    'patient_documents',
)


def _tenant_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['tenant_id'], ['tenant_sync_configs.id'])


def _create_synced_table(name: str, *columns) -> None:
    """Create a mirrored table with the columns every synced record carries."""
    op.create_table(name,
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('external_id', sa.String(), nullable=True),
    sa.Column('last_synced_at', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    *columns,
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tenant_id', 'external_id', name=f'uix_{name}_tenant_external_id')
    )
    op.create_index(op.f(f'ix_{name}_external_id'), name, ['external_id'], unique=False)
    op.create_index(op.f(f'ix_{name}_tenant_id'), name, ['tenant_id'], unique=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('tenant_sync_configs',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('practice_id', sa.String(), nullable=False),
    sa.Column('api_key', sa.String(), nullable=False),
    sa.Column('subdomain', sa.String(), nullable=False),
    sa.Column('location_id', sa.String(), nullable=False),
    sa.Column('environment', sa.String(), nullable=False),
    sa.Column('webhook_secret', sa.String(), nullable=True),
    sa.Column('connection_status', sa.String(), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('last_sync_at', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tenant_sync_configs_practice_id'), 'tenant_sync_configs', ['practice_id'], unique=True)
    op.create_index(op.f('ix_tenant_sync_configs_subdomain'), 'tenant_sync_configs', ['subdomain'], unique=True)

    op.create_table('sync_jobs',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    sa.Column('job_type', sa.String(), nullable=False),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('records_processed', sa.Integer(), nullable=False),
    sa.Column('records_failed', sa.Integer(), nullable=False),
    sa.Column('errors', sa.JSON(), nullable=False),
    sa.Column('started_at', sa.DateTime(), nullable=False),
    sa.Column('completed_at', sa.DateTime(), nullable=True),
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sync_jobs_tenant_id'), 'sync_jobs', ['tenant_id'], unique=False)

    op.create_table('webhook_events',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    sa.Column('event_id', sa.String(), nullable=False),
    sa.Column('event_type', sa.String(), nullable=False),
    sa.Column('resource_id', sa.String(), nullable=True),
    sa.Column('payload', sa.Text(), nullable=True),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('error', sa.Text(), nullable=True),
    sa.Column('received_at', sa.DateTime(), nullable=False),
    sa.Column('processed_at', sa.DateTime(), nullable=True),
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_webhook_events_event_id'), 'webhook_events', ['event_id'], unique=False)
    op.create_index(op.f('ix_webhook_events_tenant_id'), 'webhook_events', ['tenant_id'], unique=False)

    op.create_table('health_checks',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    sa.Column('service', sa.String(), nullable=False),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('response_time_ms', sa.Integer(), nullable=False),
    sa.Column('details', sa.Text(), nullable=True),
    sa.Column('checked_at', sa.DateTime(), nullable=False),
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_health_checks_tenant_id'), 'health_checks', ['tenant_id'], unique=False)

    op.create_table('health_alerts',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    sa.Column('service', sa.String(), nullable=False),
    sa.Column('severity', sa.String(), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('is_acknowledged', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_health_alerts_tenant_id'), 'health_alerts', ['tenant_id'], unique=False)

    _create_synced_table('patients',
    sa.Column('first_name', sa.String(), nullable=False),
    sa.Column('last_name', sa.String(), nullable=False),
    sa.Column('date_of_birth', sa.String(), nullable=False),
    sa.Column('gender', sa.String(), nullable=True),
    sa.Column('email', sa.String(), nullable=True),
    sa.Column('phone', sa.String(), nullable=True),
    sa.Column('address', sa.JSON(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('match_status', sa.String(), nullable=True),
    )
    _create_synced_table('providers',
    sa.Column('first_name', sa.String(), nullable=False),
    sa.Column('last_name', sa.String(), nullable=False),
    sa.Column('npi', sa.String(), nullable=True),
    sa.Column('provider_type', sa.String(), nullable=False),
    sa.Column('specialty', sa.String(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    _create_synced_table('operatories',
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('short_name', sa.String(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    _create_synced_table('appointment_types',
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('duration', sa.Integer(), nullable=False),
    sa.Column('color', sa.String(), nullable=True),
    sa.Column('code', sa.String(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    _create_synced_table('insurance_plans',
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('payer_name', sa.String(), nullable=True),
    sa.Column('payer_id', sa.String(), nullable=True),
    sa.Column('group_number', sa.String(), nullable=True),
    sa.Column('employer_name', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('fee_schedules',
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('is_default', sa.Boolean(), nullable=False),
    )

    op.create_table('patient_match_candidates',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('tenant_id', sa.String(length=36), nullable=False),
    sa.Column('patient_id', sa.String(length=36), nullable=False),
    sa.Column('external_id', sa.String(), nullable=False),
    sa.Column('candidate_count', sa.Integer(), nullable=False),
    sa.Column('match_fields', sa.JSON(), nullable=False),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
    _tenant_fk(),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_patient_match_candidates_tenant_id'), 'patient_match_candidates', ['tenant_id'], unique=False)

    _create_synced_table('appointments',
    sa.Column('patient_id', sa.String(length=36), nullable=True),
    sa.Column('provider_id', sa.String(length=36), nullable=True),
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('operatory_external_id', sa.String(), nullable=True),
    sa.Column('date', sa.String(), nullable=False),
    sa.Column('start_time', sa.String(), nullable=False),
    sa.Column('end_time', sa.String(), nullable=True),
    sa.Column('duration', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('notes', sa.Text(), nullable=True),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
    sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
    )
    op.create_index(op.f('ix_appointments_patient_id'), 'appointments', ['patient_id'], unique=False)
    op.create_index(op.f('ix_appointments_provider_id'), 'appointments', ['provider_id'], unique=False)

    _create_synced_table('working_hours',
    sa.Column('provider_id', sa.String(length=36), nullable=True),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('day_of_week', sa.Integer(), nullable=False),
    sa.Column('start_time', sa.String(), nullable=False),
    sa.Column('end_time', sa.String(), nullable=False),
    sa.Column('location_id', sa.String(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], ),
    )
    _create_synced_table('recalls',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('recall_type_id', sa.String(), nullable=True),
    sa.Column('due_date', sa.String(), nullable=True),
    sa.Column('status', sa.String(), nullable=True),
    sa.Column('completed_date', sa.String(), nullable=True),
    )
    _create_synced_table('insurance_coverages',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('insurance_plan_external_id', sa.String(), nullable=True),
    sa.Column('insurance_plan_id', sa.String(length=36), nullable=True),
    sa.Column('member_id', sa.String(), nullable=True),
    sa.Column('group_number', sa.String(), nullable=True),
    sa.Column('subscriber_name', sa.String(), nullable=True),
    sa.Column('subscriber_dob', sa.String(), nullable=True),
    sa.Column('relationship', sa.String(), nullable=True),
    sa.Column('rank', sa.String(), nullable=True),
    sa.Column('effective_date', sa.String(), nullable=True),
    sa.Column('termination_date', sa.String(), nullable=True),
    sa.ForeignKeyConstraint(['insurance_plan_id'], ['insurance_plans.id'], ),
    )
    _create_synced_table('procedures',
    sa.Column('code', sa.String(), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('fee', sa.Float(), nullable=False),
    sa.Column('tooth', sa.String(), nullable=True),
    sa.Column('surface', sa.String(), nullable=True),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('appointment_external_id', sa.String(), nullable=True),
    sa.Column('status', sa.String(), nullable=True),
    sa.Column('completed_at', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('charges',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('procedure_code', sa.String(), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('date', sa.String(), nullable=True),
    sa.Column('status', sa.String(), nullable=False),
    sa.Column('claim_external_id', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('payments',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('payment_type_id', sa.String(), nullable=True),
    sa.Column('payment_method', sa.String(), nullable=True),
    sa.Column('date', sa.String(), nullable=True),
    sa.Column('note', sa.Text(), nullable=True),
    sa.Column('claim_external_id', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('adjustments',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('adjustment_type_id', sa.String(), nullable=True),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('date', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('guarantor_balances',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('balance', sa.Float(), nullable=False),
    sa.Column('last_payment_date', sa.String(), nullable=True),
    sa.Column('last_payment_amount', sa.Float(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('insurance_balances',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('balance', sa.Float(), nullable=False),
    sa.Column('insurance_plan_id', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('treatment_plans',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('provider_external_id', sa.String(), nullable=True),
    sa.Column('name', sa.String(), nullable=True),
    sa.Column('status', sa.String(), nullable=True),
    sa.Column('total_fee', sa.Float(), nullable=False),
    sa.Column('procedures', sa.JSON(), nullable=False),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    _create_synced_table('claims',
    sa.Column('patient_external_id', sa.String(), nullable=True),
    sa.Column('total_amount', sa.Float(), nullable=False),
    sa.Column('paid_amount', sa.Float(), nullable=False),
    sa.Column('insurance_plan_id', sa.String(), nullable=True),
    sa.Column('status', sa.String(), nullable=True),
    sa.Column('submitted_date', sa.String(), nullable=True),
    sa.Column('pms_foreign_id', sa.String(), nullable=True),
    )
    for name in ('recalls', 'insurance_coverages', 'procedures', 'charges', 'payments',
                 'adjustments', 'guarantor_balances', 'insurance_balances',
                 'treatment_plans', 'claims'):
        op.create_index(op.f(f'ix_{name}_patient_external_id'), name, ['patient_external_id'], unique=False)

    _create_synced_table('patient_alerts',
    sa.Column('patient_id', sa.String(length=36), nullable=False),
    sa.Column('note', sa.Text(), nullable=False),
    sa.Column('alert_type', sa.String(), nullable=True),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
    )
    op.create_index(op.f('ix_patient_alerts_patient_id'), 'patient_alerts', ['patient_id'], unique=False)

    _create_synced_table('patient_documents',
    sa.Column('patient_id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('document_type', sa.String(), nullable=True),
    sa.Column('url', sa.String(), nullable=True),
    sa.ForeignKeyConstraint(['patient_id'], ['patients.id'], ),
    )
    op.create_index(op.f('ix_patient_documents_patient_id'), 'patient_documents', ['patient_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    # Dropping a table drops its indexes with it.
    op.drop_table('patient_match_candidates')
    for name in reversed(SYNCED_TABLES):
        op.drop_table(name)
    op.drop_table('health_alerts')
    op.drop_table('health_checks')
    op.drop_table('webhook_events')
    op.drop_table('sync_jobs')
    op.drop_table('tenant_sync_configs')

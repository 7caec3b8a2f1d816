"""Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

from evexia.models.db_types import JSONB, UUID, StringArray

# revision identifiers
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the directory, patient, sharing, audit and summary tables."""

    # Directory
    op.create_table('organizations',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_organizations_slug', 'organizations', ['slug'], unique=True)

    op.create_table('employees',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('organization_id', UUID(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('employee_id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_emergency_staff', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('organization_id', 'employee_id', name='uq_employees_org_employee_id'),
    )
    op.create_index('idx_employees_lookup', 'employees', ['employee_id', 'organization_id'])

    # Patients
    op.create_table('patients',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('auth_subject', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('allow_emergency_access', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_patients_auth_subject', 'patients', ['auth_subject'], unique=True)
    op.create_index('ix_patients_email', 'patients', ['email'], unique=True)

    op.create_table('medical_records',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('patient_id', UUID(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('hospital', sa.String(255), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('data', JSONB, nullable=False),
        sa.Column('record_date', sa.Date(), nullable=True),
        sa.Column('source', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "category IN ('vitals', 'labs', 'meds', 'encounters')",
            name='ck_medical_records_category',
        ),
    )
    op.create_index('idx_medical_records_patient_category', 'medical_records', ['patient_id', 'category'])

    # Sharing
    op.create_table('share_tokens',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('patient_id', UUID(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('scope', StringArray(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_share_tokens_token', 'share_tokens', ['token'], unique=True)
    op.create_index('idx_share_tokens_patient', 'share_tokens', ['patient_id'])

    op.create_table('patient_providers',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('patient_id', UUID(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('employee_id', UUID(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('provider_name', sa.String(255), nullable=False),
        sa.Column('provider_org', sa.String(255), nullable=True),
        sa.Column('provider_email', sa.String(255), nullable=True),
        sa.Column('scope', StringArray(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('patient_id', 'employee_id', name='uq_patient_providers_patient_employee'),
    )
    op.create_index('idx_patient_providers_patient', 'patient_providers', ['patient_id'])

    # Audit trail, append-only
    op.create_table('access_logs',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('token_id', UUID(), sa.ForeignKey('share_tokens.id', ondelete='SET NULL'), nullable=True),
        sa.Column('patient_id', UUID(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('provider_name', sa.String(255), nullable=True),
        sa.Column('provider_org', sa.String(255), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('access_method', sa.String(20), nullable=False),
        sa.Column('scope', StringArray(), nullable=False),
        sa.Column('is_emergency_access', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('accessed_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "access_method IN ('employee_id', 'otp', 'token', 'emergency')",
            name='ck_access_logs_method',
        ),
    )
    op.create_index('ix_access_logs_accessed_at', 'access_logs', ['accessed_at'])
    op.create_index('idx_access_logs_patient_accessed', 'access_logs', ['patient_id', 'accessed_at'])

    # Summaries
    op.create_table('summaries',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('patient_id', UUID(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clinician_summary', sa.Text(), nullable=False),
        sa.Column('patient_summary', sa.Text(), nullable=False),
        sa.Column('anomalies', JSONB, nullable=False),
        sa.Column('equity_concerns', JSONB, nullable=False),
        sa.Column('predictions', JSONB, nullable=False),
        sa.Column('model_used', sa.String(255), nullable=True),
        sa.Column('used_fallback', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_summaries_patient_created', 'summaries', ['patient_id', 'created_at'])

    # One-time passcodes
    op.create_table('verification_codes',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('purpose', sa.String(50), nullable=False, comment='Purpose: patient_login, provider_access'),
        sa.Column('code_hash', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_verification_codes_email_purpose', 'verification_codes', ['email', 'purpose'])
    op.create_index('idx_verification_codes_expires', 'verification_codes', ['expires_at'])


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_table('verification_codes')
    op.drop_table('summaries')
    op.drop_table('access_logs')
    op.drop_table('patient_providers')
    op.drop_table('share_tokens')
    op.drop_table('medical_records')
    op.drop_table('patients')
    op.drop_table('employees')
    op.drop_table('organizations')

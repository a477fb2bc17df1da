"""Create tenant tables

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

ACTIVITY_ACTIONS = (
    'platform.bootstrap_claim', 'platform.super_admin_grant', 'platform.super_admin_revoke',
    'organization.create', 'organization.rename', 'organization.delete',
    'membership.add', 'membership.remove', 'membership.role_change',
    'audit_plan.create', 'audit_plan.update', 'audit_plan.delete',
    'finding.create', 'finding.update', 'finding.delete',
)


def _enum(*values: str, name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


def upgrade() -> None:
    """Create principals, organizations, memberships, audit and activity tables."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # Create enum types
    op.execute("CREATE TYPE org_role AS ENUM ('admin', 'member')")
    op.execute("""
        CREATE TYPE audit_status AS ENUM (
            'draft', 'planned', 'in_progress', 'completed', 'cancelled'
        )
    """)
    op.execute("""
        CREATE TYPE finding_severity AS ENUM ('observation', 'minor', 'major', 'critical')
    """)
    op.execute(
        "CREATE TYPE activity_action AS ENUM ("
        + ", ".join(f"'{value}'" for value in ACTIVITY_ACTIONS)
        + ")"
    )

    # Create principals table
    op.create_table(
        'principals',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.String(1024), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('is_super_admin', sa.Boolean, nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_principals_email', 'principals', ['email'], unique=True)
    op.create_index('ix_principals_is_super_admin', 'principals', ['is_super_admin'])

    # Create organizations table
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('logo_url', sa.String(1024), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.CheckConstraint('LENGTH(name) > 0', name='organization_name_not_empty')
    )
    op.create_index('ix_organizations_name', 'organizations', ['name'])

    # Create memberships table
    op.create_table(
        'memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('principal_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('principals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', _enum('admin', 'member', name='org_role'), nullable=False, server_default='member'),
        sa.Column('invited_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('principals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.UniqueConstraint('org_id', 'principal_id', name='uq_memberships_org_principal'),
    )
    op.create_index('ix_memberships_org_id', 'memberships', ['org_id'])
    op.create_index('ix_memberships_principal_id', 'memberships', ['principal_id'])

    # Create audit_plans table
    op.create_table(
        'audit_plans',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('iso_standard', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column(
            'status',
            _enum('draft', 'planned', 'in_progress', 'completed', 'cancelled', name='audit_status'),
            nullable=False,
            server_default='draft',
        ),
        sa.Column('planned_start_date', sa.Date, nullable=True),
        sa.Column('planned_end_date', sa.Date, nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('principals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_audit_plans_org_id', 'audit_plans', ['org_id'])

    # Create audit_findings table
    op.create_table(
        'audit_findings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('audit_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clause', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column(
            'severity',
            _enum('observation', 'minor', 'major', 'critical', name='finding_severity'),
            nullable=False,
            server_default='observation',
        ),
        sa.Column('evidence', sa.Text, nullable=True),
        sa.Column('corrective_action', sa.Text, nullable=True),
        sa.Column('due_date', sa.Date, nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_audit_findings_org_id', 'audit_findings', ['org_id'])
    op.create_index('ix_audit_findings_plan_id', 'audit_findings', ['plan_id'])

    # Create activity_events table
    op.create_table(
        'activity_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('principals.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', _enum(*ACTIVITY_ACTIONS, name='activity_action'), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('diff_json', postgresql.JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('ix_activity_events_org_id', 'activity_events', ['org_id'])
    op.create_index('ix_activity_events_actor_id', 'activity_events', ['actor_id'])
    op.create_index('ix_activity_events_created_at', 'activity_events', ['created_at'])


def downgrade() -> None:
    """Drop tenant tables and enum types."""
    op.drop_table('activity_events')
    op.drop_table('audit_findings')
    op.drop_table('audit_plans')
    op.drop_table('memberships')
    op.drop_table('organizations')
    op.drop_table('principals')

    op.execute('DROP TYPE IF EXISTS activity_action')
    op.execute('DROP TYPE IF EXISTS finding_severity')
    op.execute('DROP TYPE IF EXISTS audit_status')
    op.execute('DROP TYPE IF EXISTS org_role')

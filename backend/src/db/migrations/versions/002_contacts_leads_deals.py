"""Create contacts, leads and deals tables

Revision ID: 002_contacts_leads_deals
Revises: 001_initial_schema
Create Date: 2026-10-19

Creates:
- contacts: people behind leads and deals
- leads: scored prospects in the sales pipeline
- deals: opportunities with optional product lines
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '002_contacts_leads_deals'
down_revision = '001_initial_schema'
branch_labels = None
depends_on = None


ENUMS = {
    'contact_status': ('ACTIVE', 'INACTIVE', 'LEAD', 'CUSTOMER', 'PROSPECT'),
    'lead_status': (
        'NEW', 'CONTACTED', 'QUALIFIED', 'PROPOSAL', 'NEGOTIATION',
        'CLOSED_WON', 'CLOSED_LOST',
    ),
    'lead_priority': ('LOW', 'MEDIUM', 'HIGH', 'URGENT'),
    'deal_stage': (
        'PROSPECTING', 'QUALIFICATION', 'PROPOSAL', 'NEGOTIATION',
        'CLOSED_WON', 'CLOSED_LOST',
    ),
    'deal_type': ('NEW_BUSINESS', 'RENEWAL', 'UPSELL', 'CROSS_SELL'),
}


def _enum(name):
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _uuid():
    return postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite')


def _json():
    return postgresql.JSONB().with_variant(sa.JSON(), 'sqlite')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    """
    Create the pipeline tables in foreign key order:
    contacts → leads → deals
    """
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in ENUMS:
            postgresql.ENUM(*ENUMS[name], name=name).create(bind, checkfirst=True)

    # contacts
    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('mobile', sa.String(length=50), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('department', sa.String(length=255), nullable=True),
        sa.Column('address', _json(), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('status', _enum('contact_status'), nullable=False, server_default='PROSPECT'),
        sa.Column('lead_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('custom_fields', _json(), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), nullable=True),
        sa.Column('last_contact_date', sa.DateTime(), nullable=True),
        sa.Column('next_follow_up', sa.DateTime(), nullable=True),
        sa.Column('communication_preferences', _json(), nullable=False),
        sa.Column('social_profiles', _json(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_contacts_owner_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['assigned_to_id'], ['users.id'],
            name='fk_contacts_assigned_to_id', ondelete='SET NULL'
        ),
        sa.CheckConstraint(
            'lead_score >= 0 AND lead_score <= 100',
            name='ck_contacts_lead_score_range'
        ),
    )
    op.create_index('ix_contacts_uuid', 'contacts', ['uuid'], unique=True)
    op.create_index('ix_contacts_email', 'contacts', ['email'])
    op.create_index('ix_contacts_company', 'contacts', ['company'])
    op.create_index('ix_contacts_status', 'contacts', ['status'])
    op.create_index('ix_contacts_owner_id', 'contacts', ['owner_id'])
    op.create_index('ix_contacts_assigned_to_id', 'contacts', ['assigned_to_id'])

    # leads
    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=False),
        sa.Column('status', _enum('lead_status'), nullable=False, server_default='NEW'),
        sa.Column('priority', _enum('lead_priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('estimated_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('expected_close_date', sa.DateTime(), nullable=True),
        sa.Column('actual_close_date', sa.DateTime(), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), nullable=True),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('lead_source', _json(), nullable=True),
        sa.Column('qualification_criteria', _json(), nullable=True),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('last_activity_date', sa.DateTime(), nullable=True),
        sa.Column('next_follow_up', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_leads_owner_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['assigned_to_id'], ['users.id'],
            name='fk_leads_assigned_to_id', ondelete='SET NULL'
        ),
        sa.ForeignKeyConstraint(
            ['contact_id'], ['contacts.id'],
            name='fk_leads_contact_id', ondelete='SET NULL'
        ),
        sa.CheckConstraint(
            'estimated_value IS NULL OR estimated_value >= 0',
            name='ck_leads_estimated_value_non_negative'
        ),
    )
    op.create_index('ix_leads_uuid', 'leads', ['uuid'], unique=True)
    op.create_index('ix_leads_email', 'leads', ['email'])
    op.create_index('ix_leads_company', 'leads', ['company'])
    op.create_index('ix_leads_status', 'leads', ['status'])
    op.create_index('ix_leads_expected_close_date', 'leads', ['expected_close_date'])
    op.create_index('ix_leads_owner_id', 'leads', ['owner_id'])
    op.create_index('ix_leads_assigned_to_id', 'leads', ['assigned_to_id'])
    op.create_index('ix_leads_contact_id', 'leads', ['contact_id'])
    op.create_index('ix_leads_created_at', 'leads', ['created_at'])
    op.create_index('idx_leads_owner_status', 'leads', ['owner_id', 'status'])

    # deals
    op.create_table(
        'deals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('value', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('stage', _enum('deal_stage'), nullable=False, server_default='PROSPECTING'),
        sa.Column('probability', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('deal_type', _enum('deal_type'), nullable=False, server_default='NEW_BUSINESS'),
        sa.Column('expected_close_date', sa.DateTime(), nullable=False),
        sa.Column('actual_close_date', sa.DateTime(), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('contact_id', sa.Integer(), nullable=True),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('source', sa.String(length=100), nullable=False),
        sa.Column('campaign', sa.String(length=255), nullable=True),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('competitors', _json(), nullable=False),
        sa.Column('decision_makers', _json(), nullable=False),
        sa.Column('products', _json(), nullable=False),
        sa.Column('last_activity_date', sa.DateTime(), nullable=True),
        sa.Column('next_follow_up', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_deals_owner_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['contact_id'], ['contacts.id'],
            name='fk_deals_contact_id', ondelete='SET NULL'
        ),
        sa.ForeignKeyConstraint(
            ['lead_id'], ['leads.id'],
            name='fk_deals_lead_id', ondelete='SET NULL'
        ),
        sa.CheckConstraint('value >= 0', name='ck_deals_value_non_negative'),
        sa.CheckConstraint(
            'probability >= 0 AND probability <= 100',
            name='ck_deals_probability_range'
        ),
    )
    op.create_index('ix_deals_uuid', 'deals', ['uuid'], unique=True)
    op.create_index('ix_deals_name', 'deals', ['name'])
    op.create_index('ix_deals_stage', 'deals', ['stage'])
    op.create_index('ix_deals_expected_close_date', 'deals', ['expected_close_date'])
    op.create_index('ix_deals_owner_id', 'deals', ['owner_id'])
    op.create_index('ix_deals_contact_id', 'deals', ['contact_id'])
    op.create_index('ix_deals_lead_id', 'deals', ['lead_id'])
    op.create_index('idx_deals_owner_stage', 'deals', ['owner_id', 'stage'])


def downgrade() -> None:
    """Drop the pipeline tables and their enum types."""
    op.drop_table('deals')
    op.drop_table('leads')
    op.drop_table('contacts')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in reversed(list(ENUMS)):
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)

"""Initial CRM schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

Creates the event planner CRM tables:
- users: planners, clients and administrators
- vendors: suppliers with JSON descriptive data
- events: planned occasions owned by a client, run by a planner
- payments: money owed or received against an event
- activities: CRM timeline entries
- tasks: follow-ups, optionally assigned and attached to an event

Enum types are created up-front on PostgreSQL; SQLite stores them as
VARCHAR.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'user_role': ('PLANNER', 'CLIENT', 'ADMIN'),
    'event_type': (
        'WEDDING', 'CORPORATE', 'BIRTHDAY', 'ANNIVERSARY',
        'CONFERENCE', 'PARTY', 'OTHER',
    ),
    'event_status': ('PLANNING', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED'),
    'payment_status': (
        'PENDING', 'PROCESSING', 'COMPLETED', 'FAILED', 'REFUNDED', 'CANCELLED',
    ),
    'payment_method': ('CREDIT_CARD', 'BANK_TRANSFER', 'CASH', 'CHECK', 'OTHER'),
    'payment_type': ('DEPOSIT', 'FINAL_PAYMENT', 'INSTALLMENT', 'FULL_PAYMENT', 'REFUND'),
    'related_entity_type': ('CONTACT', 'LEAD', 'DEAL', 'TASK'),
    'activity_type': (
        'CALL', 'EMAIL', 'MEETING', 'NOTE', 'TASK',
        'DEAL_UPDATE', 'LEAD_UPDATE', 'CONTACT_UPDATE',
    ),
    'activity_outcome': ('POSITIVE', 'NEUTRAL', 'NEGATIVE', 'FOLLOW_UP_REQUIRED'),
    'meeting_type': ('IN_PERSON', 'PHONE', 'VIDEO', 'EMAIL'),
    'activity_direction': ('INBOUND', 'OUTBOUND'),
    'task_type': ('CALL', 'EMAIL', 'MEETING', 'FOLLOW_UP', 'PROPOSAL', 'DEMO', 'OTHER'),
    'task_status': ('PENDING', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED'),
    'task_priority': ('LOW', 'MEDIUM', 'HIGH', 'URGENT'),
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
    Create all CRM tables.

    Tables are created in foreign key order:
    users → vendors → events → payments → activities → tasks
    """
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in ENUMS:
            postgresql.ENUM(*ENUMS[name], name=name).create(bind, checkfirst=True)

    # users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('role', _enum('user_role'), nullable=False, server_default='CLIENT'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('preferences', _json(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['manager_id'], ['users.id'],
            name='fk_users_manager_id', ondelete='SET NULL'
        ),
    )
    op.create_index('ix_users_uuid', 'users', ['uuid'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])
    op.create_index('ix_users_company', 'users', ['company'])

    # vendors
    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('categories', _json(), nullable=False),
        sa.Column('services', _json(), nullable=False),
        sa.Column('location', _json(), nullable=True),
        sa.Column('contact_person', _json(), nullable=True),
        sa.Column('rating', _json(), nullable=False),
        sa.Column('pricing', _json(), nullable=True),
        sa.Column('availability', _json(), nullable=False),
        sa.Column('documents', _json(), nullable=False),
        sa.Column('social_media', _json(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vendors_uuid', 'vendors', ['uuid'], unique=True)
    op.create_index('ix_vendors_name', 'vendors', ['name'])
    op.create_index('ix_vendors_is_active', 'vendors', ['is_active'])

    # events
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_type', _enum('event_type'), nullable=False, server_default='OTHER'),
        sa.Column('status', _enum('event_status'), nullable=False, server_default='PLANNING'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('location', _json(), nullable=True),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('planner_id', sa.Integer(), nullable=True),
        sa.Column('budget', _json(), nullable=True),
        sa.Column('guest_count', sa.Integer(), nullable=True),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_private', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['client_id'], ['users.id'],
            name='fk_events_client_id', ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['planner_id'], ['users.id'],
            name='fk_events_planner_id', ondelete='SET NULL'
        ),
        sa.CheckConstraint(
            'guest_count IS NULL OR guest_count >= 0',
            name='ck_events_guest_count_non_negative'
        ),
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)
    op.create_index('ix_events_status', 'events', ['status'])
    op.create_index('ix_events_start_date', 'events', ['start_date'])
    op.create_index('ix_events_client_id', 'events', ['client_id'])
    op.create_index('ix_events_planner_id', 'events', ['planner_id'])
    op.create_index('idx_events_planner_status', 'events', ['planner_id', 'status'])

    # payments
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('client_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('status', _enum('payment_status'), nullable=False, server_default='PENDING'),
        sa.Column('payment_method', _enum('payment_method'), nullable=False, server_default='OTHER'),
        sa.Column('payment_type', _enum('payment_type'), nullable=False, server_default='FULL_PAYMENT'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column('invoice_number', sa.String(length=100), nullable=True),
        sa.Column('transaction_id', sa.String(length=255), nullable=True),
        sa.Column('reference_number', sa.String(length=255), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring_details', _json(), nullable=True),
        sa.Column('metadata', _json(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_payments_event_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['vendor_id'], ['vendors.id'],
            name='fk_payments_vendor_id', ondelete='SET NULL'
        ),
        sa.ForeignKeyConstraint(
            ['client_id'], ['users.id'],
            name='fk_payments_client_id', ondelete='RESTRICT'
        ),
        sa.UniqueConstraint('invoice_number', name='uq_payments_invoice_number'),
        sa.CheckConstraint('amount > 0', name='ck_payments_amount_positive'),
    )
    op.create_index('ix_payments_uuid', 'payments', ['uuid'], unique=True)
    op.create_index('ix_payments_event_id', 'payments', ['event_id'])
    op.create_index('ix_payments_vendor_id', 'payments', ['vendor_id'])
    op.create_index('ix_payments_client_id', 'payments', ['client_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_due_date', 'payments', ['due_date'])
    op.create_index('idx_payments_status_due', 'payments', ['status', 'due_date'])

    # activities
    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('type', _enum('activity_type'), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('related_type', _enum('related_entity_type'), nullable=True),
        sa.Column('related_id', sa.String(length=100), nullable=True),
        sa.Column('participants', _json(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('outcome', _enum('activity_outcome'), nullable=True),
        sa.Column('next_action', sa.String(length=500), nullable=True),
        sa.Column('next_action_date', sa.DateTime(), nullable=True),
        sa.Column('attachments', _json(), nullable=False),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('is_important', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('meeting_type', _enum('meeting_type'), nullable=True),
        sa.Column('direction', _enum('activity_direction'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_activities_owner_id', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_activities_uuid', 'activities', ['uuid'], unique=True)
    op.create_index('ix_activities_type', 'activities', ['type'])
    op.create_index('ix_activities_owner_id', 'activities', ['owner_id'])
    op.create_index('ix_activities_created_at', 'activities', ['created_at'])
    op.create_index('idx_activities_related', 'activities', ['related_type', 'related_id'])

    # tasks
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('uuid', _uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', _enum('task_type'), nullable=False, server_default='OTHER'),
        sa.Column('status', _enum('task_status'), nullable=False, server_default='PENDING'),
        sa.Column('priority', _enum('task_priority'), nullable=False, server_default='MEDIUM'),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('completed_date', sa.DateTime(), nullable=True),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), nullable=True),
        sa.Column('event_id', sa.Integer(), nullable=True),
        sa.Column('related_type', _enum('related_entity_type'), nullable=True),
        sa.Column('related_id', sa.String(length=100), nullable=True),
        sa.Column('tags', _json(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring_pattern', _json(), nullable=True),
        sa.Column('estimated_duration', sa.Integer(), nullable=True),
        sa.Column('actual_duration', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['users.id'],
            name='fk_tasks_owner_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['assigned_to_id'], ['users.id'],
            name='fk_tasks_assigned_to_id', ondelete='SET NULL'
        ),
        sa.ForeignKeyConstraint(
            ['event_id'], ['events.id'],
            name='fk_tasks_event_id', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_tasks_uuid', 'tasks', ['uuid'], unique=True)
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_due_date', 'tasks', ['due_date'])
    op.create_index('ix_tasks_owner_id', 'tasks', ['owner_id'])
    op.create_index('ix_tasks_assigned_to_id', 'tasks', ['assigned_to_id'])
    op.create_index('ix_tasks_event_id', 'tasks', ['event_id'])
    op.create_index('idx_tasks_assignee_status', 'tasks', ['assigned_to_id', 'status'])


def downgrade() -> None:
    """Drop all CRM tables and enum types."""
    op.drop_table('tasks')
    op.drop_table('activities')
    op.drop_table('payments')
    op.drop_table('events')
    op.drop_table('vendors')
    op.drop_table('users')

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name in reversed(list(ENUMS)):
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)

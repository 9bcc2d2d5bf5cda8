"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates the homeowner maintenance tables and the contractor CRM tables.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Houses table
    op.create_table('houses',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text()),
        sa.Column('climate_zone', sa.String(100)),
        sa.Column('home_systems', sa.JSON()),
        sa.Column('is_default', sa.Boolean(), default=False),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_houses_homeowner', 'houses', ['homeowner_id'])

    # Appliances table
    op.create_table('home_appliances',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('house_id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('appliance_type', sa.String(100), nullable=False),
        sa.Column('brand', sa.String(255)),
        sa.Column('model', sa.String(255)),
        sa.Column('year_installed', sa.Integer()),
        sa.Column('serial_number', sa.String(255)),
        sa.Column('location', sa.String(255)),
        sa.Column('warranty_expiration', sa.Date()),
        sa.Column('last_service_date', sa.Date()),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_home_appliances_house', 'home_appliances', ['house_id'])

    # Maintenance logs table
    op.create_table('maintenance_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('house_id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('service_type', sa.String(255), nullable=False),
        sa.Column('home_area', sa.String(100)),
        sa.Column('description', sa.Text()),
        sa.Column('cost', sa.Float()),
        sa.Column('contractor_name', sa.String(255)),
        sa.Column('contractor_company', sa.String(255)),
        sa.Column('completion_method', sa.String(20)),
        sa.Column('notes', sa.Text()),
        sa.Column('warranty_period', sa.String(100)),
        sa.Column('next_service_due', sa.Date()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_maintenance_logs_house', 'maintenance_logs', ['house_id'])
    op.create_index('ix_maintenance_logs_service_date', 'maintenance_logs', ['service_date'])

    # Custom maintenance tasks table
    op.create_table('custom_maintenance_tasks',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('house_id', sa.String(36)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String(100)),
        sa.Column('priority', sa.String(20), default='medium'),
        sa.Column('difficulty', sa.String(20), default='easy'),
        sa.Column('estimated_time', sa.String(100)),
        sa.Column('frequency_type', sa.String(20), nullable=False),
        sa.Column('frequency_value', sa.String(100)),
        sa.Column('specific_months', sa.JSON()),
        sa.Column('tools', sa.JSON()),
        sa.Column('cost', sa.String(100)),
        sa.Column('pro_cost_low', sa.Float()),
        sa.Column('pro_cost_high', sa.Float()),
        sa.Column('materials_cost_low', sa.Float()),
        sa.Column('materials_cost_high', sa.Float()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_custom_tasks_homeowner', 'custom_maintenance_tasks', ['homeowner_id'])
    op.create_index('ix_custom_tasks_house', 'custom_maintenance_tasks', ['house_id'])

    # Task overrides table
    op.create_table('task_overrides',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('house_id', sa.String(36), nullable=False),
        sa.Column('task_id', sa.String(255), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False, default=True),
        sa.Column('frequency_type', sa.String(20)),
        sa.Column('frequency_value', sa.String(100)),
        sa.Column('specific_months', sa.JSON()),
        sa.Column('custom_description', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('house_id', 'task_id', name='uq_task_overrides_house_task')
    )
    op.create_index('ix_task_overrides_house', 'task_overrides', ['house_id'])

    # Task completions table
    op.create_table('task_completions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('homeowner_id', sa.String(255), nullable=False),
        sa.Column('house_id', sa.String(36), nullable=False),
        sa.Column('task_key', sa.String(255), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['house_id'], ['houses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('house_id', 'task_key', 'month', 'year', name='uq_task_completions_key')
    )
    op.create_index('ix_task_completions_house_period', 'task_completions', ['house_id', 'year', 'month'])

    # CRM clients table (leads reference it)
    op.create_table('crm_clients',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('company', sa.String(255)),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('city', sa.String(100)),
        sa.Column('state', sa.String(100)),
        sa.Column('postal_code', sa.String(20)),
        sa.Column('notes', sa.Text()),
        sa.Column('tags', sa.JSON()),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_crm_clients_contractor', 'crm_clients', ['contractor_id'])
    op.create_index('ix_crm_clients_name', 'crm_clients', ['name'])

    # CRM leads table
    op.create_table('crm_leads',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('last_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('city', sa.String(100)),
        sa.Column('state', sa.String(100)),
        sa.Column('postal_code', sa.String(20)),
        sa.Column('source', sa.String(50), default='other'),
        sa.Column('status', sa.String(50), default='new'),
        sa.Column('priority', sa.String(20), default='medium'),
        sa.Column('project_type', sa.String(100)),
        sa.Column('estimated_value', sa.Float()),
        sa.Column('follow_up_date', sa.Date()),
        sa.Column('tags', sa.JSON()),
        sa.Column('lost_reason', sa.Text()),
        sa.Column('client_id', sa.String(36)),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['crm_clients.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_crm_leads_contractor', 'crm_leads', ['contractor_id'])
    op.create_index('ix_crm_leads_status', 'crm_leads', ['status'])

    # CRM notes table
    op.create_table('crm_notes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('lead_id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('note_type', sa.String(50), default='note'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['lead_id'], ['crm_leads.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # CRM jobs table
    op.create_table('crm_jobs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('client_id', sa.String(36)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(50), default='scheduled'),
        sa.Column('priority', sa.String(20), default='medium'),
        sa.Column('service_type', sa.String(100)),
        sa.Column('address', sa.Text()),
        sa.Column('scheduled_date', sa.DateTime()),
        sa.Column('completed_date', sa.DateTime()),
        sa.Column('estimated_hours', sa.Float()),
        sa.Column('actual_hours', sa.Float()),
        sa.Column('labor_cost', sa.Float(), default=0),
        sa.Column('materials_cost', sa.Float(), default=0),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['crm_clients.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_crm_jobs_contractor', 'crm_jobs', ['contractor_id'])
    op.create_index('ix_crm_jobs_client', 'crm_jobs', ['client_id'])
    op.create_index('ix_crm_jobs_status', 'crm_jobs', ['status'])

    # CRM quotes table
    op.create_table('crm_quotes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('client_id', sa.String(36)),
        sa.Column('job_id', sa.String(36)),
        sa.Column('quote_number', sa.String(50)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(50), default='draft'),
        sa.Column('subtotal', sa.Float(), default=0),
        sa.Column('tax_rate', sa.Float(), default=0),
        sa.Column('tax_amount', sa.Float(), default=0),
        sa.Column('total_amount', sa.Float(), default=0),
        sa.Column('valid_until', sa.Date()),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['crm_clients.id']),
        sa.ForeignKeyConstraint(['job_id'], ['crm_jobs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('contractor_id', 'quote_number', name='uq_crm_quotes_number')
    )
    op.create_index('ix_crm_quotes_contractor', 'crm_quotes', ['contractor_id'])
    op.create_index('ix_crm_quotes_status', 'crm_quotes', ['status'])

    # CRM invoices table
    op.create_table('crm_invoices',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('contractor_id', sa.String(255), nullable=False),
        sa.Column('client_id', sa.String(36)),
        sa.Column('quote_id', sa.String(36)),
        sa.Column('job_id', sa.String(36)),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), default='draft'),
        sa.Column('subtotal', sa.Float(), default=0),
        sa.Column('tax_rate', sa.Float(), default=0),
        sa.Column('tax_amount', sa.Float(), default=0),
        sa.Column('total_amount', sa.Float(), default=0),
        sa.Column('issue_date', sa.Date()),
        sa.Column('due_date', sa.Date()),
        sa.Column('paid_date', sa.Date()),
        sa.Column('payment_method', sa.String(50)),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['crm_clients.id']),
        sa.ForeignKeyConstraint(['quote_id'], ['crm_quotes.id']),
        sa.ForeignKeyConstraint(['job_id'], ['crm_jobs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('contractor_id', 'invoice_number', name='uq_crm_invoices_number')
    )
    op.create_index('ix_crm_invoices_contractor', 'crm_invoices', ['contractor_id'])
    op.create_index('ix_crm_invoices_status', 'crm_invoices', ['status'])
    op.create_index('ix_crm_invoices_due_date', 'crm_invoices', ['due_date'])

    # Line items shared by quotes and invoices
    op.create_table('crm_line_items',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('quote_id', sa.String(36)),
        sa.Column('invoice_id', sa.String(36)),
        sa.Column('description', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Float(), default=1),
        sa.Column('unit_price', sa.Float(), default=0),
        sa.Column('total_price', sa.Float(), default=0),
        sa.Column('position', sa.Integer(), default=0),
        sa.ForeignKeyConstraint(['quote_id'], ['crm_quotes.id']),
        sa.ForeignKeyConstraint(['invoice_id'], ['crm_invoices.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Event log table (audit trail)
    op.create_table('event_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('owner_id', sa.String(255)),
        sa.Column('timestamp', sa.DateTime(), nullable=False, default=sa.func.now()),
        sa.Column('actor_type', sa.String(50)),
        sa.Column('actor_id', sa.String(255)),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('extra_data', sa.JSON()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_owner', 'event_log', ['owner_id'])
    op.create_index('ix_event_log_entity', 'event_log', ['entity_type', 'entity_id'])
    op.create_index('ix_event_log_timestamp', 'event_log', ['timestamp'])

    # Notifications table
    op.create_table('notifications',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text()),
        sa.Column('notification_type', sa.String(50), default='info'),
        sa.Column('priority', sa.String(20), default='normal'),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', sa.String(36)),
        sa.Column('dedupe_key', sa.String(255)),
        sa.Column('is_read', sa.Boolean(), default=False),
        sa.Column('read_at', sa.DateTime()),
        sa.Column('extra_data', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notifications_user', 'notifications', ['user_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_dedupe', 'notifications', ['user_id', 'dedupe_key'])


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('notifications')
    op.drop_table('event_log')
    op.drop_table('crm_line_items')
    op.drop_table('crm_invoices')
    op.drop_table('crm_quotes')
    op.drop_table('crm_jobs')
    op.drop_table('crm_notes')
    op.drop_table('crm_leads')
    op.drop_table('crm_clients')
    op.drop_table('task_completions')
    op.drop_table('task_overrides')
    op.drop_table('custom_maintenance_tasks')
    op.drop_table('maintenance_logs')
    op.drop_table('home_appliances')
    op.drop_table('houses')

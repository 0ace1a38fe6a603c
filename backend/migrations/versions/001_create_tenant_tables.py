"""Create tenant-scoped domain tables, memberships and audit_log

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

# JSONB on PostgreSQL, JSON elsewhere (SQLite in tests)
JSONType = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    # Projects are the root of the tenant hierarchy
    op.create_table(
        'projects',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('code', sa.String(64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='planning', nullable=False),
        sa.Column('progress', sa.Integer(), server_default='0', nullable=False),
        sa.Column('budget', sa.Float(), nullable=True),
        sa.Column('spent', sa.Float(), nullable=True),
        sa.Column('start_date', sa.String(32), nullable=True),
        sa.Column('end_date', sa.String(32), nullable=True),
        sa.Column('manager', sa.Text(), nullable=True),
        sa.Column('zones', JSONType, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_projects_company_id', 'projects', ['company_id'])
    op.create_index('ix_projects_company_id_created_at', 'projects', ['company_id', 'created_at'])

    op.create_table(
        'tasks',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='todo', nullable=False),
        sa.Column('priority', sa.String(32), server_default='medium', nullable=False),
        sa.Column('assignee_id', sa.String(64), nullable=True),
        sa.Column('assignee_name', sa.Text(), nullable=True),
        sa.Column('due_date', sa.String(32), nullable=True),
        sa.Column('dependencies', JSONType, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_tasks_company_id', 'tasks', ['company_id'])
    op.create_index('ix_tasks_company_id_project_id', 'tasks', ['company_id', 'project_id'])

    op.create_table(
        'rfis',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=False),
        sa.Column('number', sa.String(32), nullable=True),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('question', sa.Text(), nullable=True),
        sa.Column('answer', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='open', nullable=False),
        sa.Column('assigned_to', sa.String(64), nullable=True),
        sa.Column('due_date', sa.String(32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_rfis_company_id', 'rfis', ['company_id'])

    op.create_table(
        'daily_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=False),
        sa.Column('log_date', sa.String(32), nullable=False),
        sa.Column('weather', sa.Text(), nullable=True),
        sa.Column('workers_on_site', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('author_id', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_daily_logs_company_id', 'daily_logs', ['company_id'])

    op.create_table(
        'safety_incidents',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(16), server_default='low', nullable=False),
        sa.Column('status', sa.String(32), server_default='open', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reported_by', sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_safety_incidents_company_id', 'safety_incidents', ['company_id'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('project_id', sa.String(36), nullable=True),
        sa.Column('number', sa.String(64), nullable=False),
        sa.Column('client_name', sa.Text(), nullable=True),
        sa.Column('amount', sa.Float(), server_default='0', nullable=False),
        sa.Column('status', sa.String(32), server_default='draft', nullable=False),
        sa.Column('due_date', sa.String(32), nullable=True),
        sa.Column('line_items', JSONType, nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_invoices_company_id', 'invoices', ['company_id'])

    # Legacy table: tenant column is tenant_id
    op.create_table(
        'comments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('tenant_id', sa.String(64), nullable=False),
        sa.Column('task_id', sa.String(36), nullable=True),
        sa.Column('author_id', sa.String(64), nullable=True),
        sa.Column('author_name', sa.Text(), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_comments_tenant_id', 'comments', ['tenant_id'])

    op.create_table(
        'memberships',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('permissions', JSONType, nullable=True),
        sa.Column('status', sa.String(16), server_default='invited', nullable=False),
        sa.Column('invited_by', sa.String(64), nullable=True),
        sa.Column('joined_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'company_id', name='uq_memberships_user_company'),
        sa.CheckConstraint("status IN ('active', 'suspended', 'invited')", name='ck_memberships_status'),
    )
    op.create_index('ix_memberships_company_id', 'memberships', ['company_id'])

    # Append-only; rows are only removed by retention
    op.create_table(
        'audit_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('company_id', sa.String(64), nullable=False),
        sa.Column('actor_id', sa.String(64), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('resource_type', sa.Text(), nullable=True),
        sa.Column('resource_id', sa.Text(), nullable=True),
        sa.Column('metadata_json', JSONType, nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_log_company_id', 'audit_log', ['company_id'])
    op.create_index('ix_audit_log_company_id_created_at', 'audit_log', ['company_id', 'created_at'])
    op.create_index('ix_audit_log_actor_id', 'audit_log', ['actor_id'])
    op.create_index('ix_audit_log_resource', 'audit_log', ['resource_type', 'resource_id'])


def downgrade():
    op.drop_index('ix_audit_log_resource', table_name='audit_log')
    op.drop_index('ix_audit_log_actor_id', table_name='audit_log')
    op.drop_index('ix_audit_log_company_id_created_at', table_name='audit_log')
    op.drop_index('ix_audit_log_company_id', table_name='audit_log')
    op.drop_table('audit_log')

    op.drop_index('ix_memberships_company_id', table_name='memberships')
    op.drop_table('memberships')

    op.drop_index('ix_comments_tenant_id', table_name='comments')
    op.drop_table('comments')

    for table in ('invoices', 'safety_incidents', 'daily_logs', 'rfis'):
        op.drop_index(f'ix_{table}_company_id', table_name=table)
        op.drop_table(table)

    op.drop_index('ix_tasks_company_id_project_id', table_name='tasks')
    op.drop_index('ix_tasks_company_id', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('ix_projects_company_id_created_at', table_name='projects')
    op.drop_index('ix_projects_company_id', table_name='projects')
    op.drop_table('projects')

"""initial schema: users, employee_profiles, password_reset_requests

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    json_type = sa.JSON() if is_sqlite else postgresql.JSONB(astext_type=sa.Text())
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')

    # Accounts; status/role are plain strings validated by the application
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False, server_default='active'),
        sa.Column('email_verification_code', sa.String(length=6), nullable=True),
        sa.Column('email_verification_expires_at', sa.DateTime(), nullable=True),
        sa.Column('password_changed_at', sa.DateTime(), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('company_website', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.CheckConstraint("role IN ('employee', 'employer', 'admin')", name='ck_users_role'),
        sa.CheckConstraint(
            "status IN ('pending_email_verification', 'pending_admin_approval', 'active', 'suspended')",
            name='ck_users_status',
        ),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_status', 'users', ['status'])

    op.create_table(
        'employee_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('bio', sa.Text(), nullable=False, server_default=''),
        sa.Column('skills', json_type, nullable=False, server_default='[]'),
        sa.Column('years_of_experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['account_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id'),
    )
    op.create_index('ix_employee_profiles_id', 'employee_profiles', ['id'])

    op.create_table(
        'password_reset_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['account_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_password_reset_requests_id', 'password_reset_requests', ['id'])
    op.create_index('ix_password_reset_requests_code', 'password_reset_requests', ['code'], unique=True)
    op.create_index('ix_password_reset_requests_account_id', 'password_reset_requests', ['account_id'])


def downgrade() -> None:
    op.drop_index('ix_password_reset_requests_account_id', table_name='password_reset_requests')
    op.drop_index('ix_password_reset_requests_code', table_name='password_reset_requests')
    op.drop_index('ix_password_reset_requests_id', table_name='password_reset_requests')
    op.drop_table('password_reset_requests')
    op.drop_index('ix_employee_profiles_id', table_name='employee_profiles')
    op.drop_table('employee_profiles')
    op.drop_index('ix_users_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')

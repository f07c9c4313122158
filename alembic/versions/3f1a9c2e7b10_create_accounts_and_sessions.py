"""create_accounts_and_sessions

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-09-14 10:12:31.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create companies, users, contractor join requests, application assignments
    and the durable session table.
    """
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('short_name', sa.String(length=16), nullable=False),
        sa.Column('business_number', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('street_address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('province', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('how_heard_about', sa.String(), nullable=True),
        sa.Column('how_heard_about_other', sa.String(), nullable=True),
        sa.Column('is_contractor', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('service_regions', sa.JSON(), nullable=True),
        sa.Column('supported_activities', sa.JSON(), nullable=True),
        sa.Column('capital_retrofit_technologies', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_companies_id', 'companies', ['id'])
    op.create_index('ix_companies_name', 'companies', ['name'])
    op.create_index('ix_companies_short_name', 'companies', ['short_name'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('business_mobile', sa.String(), nullable=True),
        sa.Column('hear_about_us', sa.String(), nullable=True),
        sa.Column('hear_about_us_other', sa.String(), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('permission_level', sa.String(length=16), nullable=True),
        sa.Column('company_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('is_email_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_verification_token', sa.String(), nullable=True),
        sa.Column('verification_token_expiry', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reset_token', sa.String(), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('two_factor_secret', sa.String(), nullable=True),
        sa.Column('two_factor_enabled', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'])
    op.create_index('ix_users_email_verification_token', 'users', ['email_verification_token'])
    op.create_index('ix_users_reset_token', 'users', ['reset_token'], unique=True)

    op.create_table(
        'contractor_join_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('requested_company_id', sa.Integer(), nullable=False),
        sa.Column('requested_permission_level', sa.String(length=16), nullable=False),
        sa.Column('message', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['requested_company_id'], ['companies.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_contractor_join_requests_id', 'contractor_join_requests', ['id'])
    op.create_index('ix_contractor_join_requests_user_id', 'contractor_join_requests', ['user_id'])
    op.create_index('ix_contractor_join_requests_requested_company_id', 'contractor_join_requests', ['requested_company_id'])

    op.create_table(
        'application_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('assigned_by', sa.String(length=32), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('application_id', 'user_id', name='uq_application_assignments_app_user'),
    )
    op.create_index('ix_application_assignments_id', 'application_assignments', ['id'])
    op.create_index('ix_application_assignments_application_id', 'application_assignments', ['application_id'])
    op.create_index('ix_application_assignments_user_id', 'application_assignments', ['user_id'])

    op.create_table(
        'user_sessions',
        sa.Column('sid', sa.String(), nullable=False),
        sa.Column('sess', sa.JSON(), nullable=False),
        sa.Column('expire', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('sid'),
    )
    op.create_index('IDX_session_expire', 'user_sessions', ['expire'])


def downgrade() -> None:
    """Drop everything created in upgrade()."""
    op.drop_index('IDX_session_expire', table_name='user_sessions')
    op.drop_table('user_sessions')
    op.drop_table('application_assignments')
    op.drop_table('contractor_join_requests')
    op.drop_index('ix_users_reset_token', table_name='users')
    op.drop_index('ix_users_email_verification_token', table_name='users')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_companies_short_name', table_name='companies')
    op.drop_index('ix_companies_name', table_name='companies')
    op.drop_index('ix_companies_id', table_name='companies')
    op.drop_table('companies')

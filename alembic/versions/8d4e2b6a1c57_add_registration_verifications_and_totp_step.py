"""add_registration_verifications_and_totp_step

Revision ID: 8d4e2b6a1c57
Revises: 3f1a9c2e7b10
Create Date: 2026-09-30 16:44:02.918305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4e2b6a1c57'
down_revision: Union[str, Sequence[str], None] = '3f1a9c2e7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Move pre-account email verification out of the session payload into its
    own table, and track the last accepted TOTP step per user.
    """
    op.create_table(
        'registration_verifications',
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('attempts', sa.Integer(), server_default='0', nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('email'),
    )
    op.create_index('ix_registration_verifications_created_at', 'registration_verifications', ['created_at'])

    op.add_column('users', sa.Column('two_factor_last_step', sa.Integer(), nullable=True))


def downgrade() -> None:
    op.drop_column('users', 'two_factor_last_step')
    op.drop_index('ix_registration_verifications_created_at', table_name='registration_verifications')
    op.drop_table('registration_verifications')

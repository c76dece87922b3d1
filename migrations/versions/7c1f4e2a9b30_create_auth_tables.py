"""create_auth_tables

Revision ID: 7c1f4e2a9b30
Revises:
Create Date: 2026-10-17 09:12:04.118532

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1f4e2a9b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, groups, memberships and magic_link_tokens tables."""
    op.create_table('users',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table('groups',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('owner_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_groups_owner_id', 'groups', ['owner_id'], unique=False)

    op.create_table('memberships',
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'member')", name='ck_memberships_role'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id', 'group_id'),
    )
    op.create_index('ix_memberships_group_id', 'memberships', ['group_id'], unique=False)

    op.create_table('magic_link_tokens',
        sa.Column('token', sa.String(length=64), nullable=False),
        sa.Column('group_id', sa.UUID(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('kind', sa.String(length=10), nullable=False),
        sa.Column('invite_role', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("kind IN ('invite', 'login')", name='ck_magic_link_tokens_kind'),
        sa.CheckConstraint(
            "invite_role IS NULL OR invite_role IN ('admin', 'member')",
            name='ck_magic_link_tokens_invite_role',
        ),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('token'),
    )
    op.create_index('ix_magic_link_tokens_email', 'magic_link_tokens', ['email'], unique=False)


def downgrade() -> None:
    """Drop the auth tables."""
    op.drop_index('ix_magic_link_tokens_email', table_name='magic_link_tokens')
    op.drop_table('magic_link_tokens')
    op.drop_index('ix_memberships_group_id', table_name='memberships')
    op.drop_table('memberships')
    op.drop_index('ix_groups_owner_id', table_name='groups')
    op.drop_table('groups')
    op.drop_table('users')

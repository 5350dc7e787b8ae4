"""Initial memo schema

Revision ID: 3c1f0a9d2e47
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2e47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


visibility = sa.Enum('PUBLIC', 'PROTECT', 'PRIVATE', name='visibility')
memo_status = sa.Enum('NORMAL', 'ARCHIVED', name='memostatus')
relation_type = sa.Enum('LIKE', 'FAVORITE', name='relationtype')
user_role = sa.Enum('ADMIN', 'USER', name='userrole')


def upgrade() -> None:
    """Create users, memos, comments, relations, tags and sys_configs."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('display_name', sa.String(length=64), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('last_clicked_mentioned', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("username != ''", name='ck_user_non_empty_username'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('display_name'),
    )
    op.create_index('ix_users_display_name', 'users', ['display_name'])
    op.create_index('ix_users_created', 'users', ['created'])

    op.create_table(
        'memos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('tags', sa.Text(), nullable=False),
        sa.Column('visibility', visibility, nullable=False),
        sa.Column('status', memo_status, nullable=False),
        sa.Column('priority', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=64), nullable=True),
        sa.Column('enable_comment', sa.Boolean(), nullable=False),
        sa.Column('comment_count', sa.Integer(), nullable=False),
        sa.Column('like_count', sa.Integer(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('comment_count >= 0', name='ck_memo_comment_count_non_negative'),
        sa.CheckConstraint('like_count >= 0', name='ck_memo_like_count_non_negative'),
        sa.CheckConstraint('view_count >= 0', name='ck_memo_view_count_non_negative'),
    )
    op.create_index('ix_memos_user_id', 'memos', ['user_id'])
    op.create_index('ix_memos_created', 'memos', ['created'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'memo_id',
            sa.Integer(),
            sa.ForeignKey('memos.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('link', sa.String(length=255), nullable=True),
        sa.Column('mentioned', sa.Text(), nullable=True),
        sa.Column('mentioned_user_ids', sa.Text(), nullable=True),
        sa.Column('approved', sa.Boolean(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_comments_memo_id', 'comments', ['memo_id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_created', 'comments', ['created'])

    op.create_table(
        'user_memo_relations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'memo_id',
            sa.Integer(),
            sa.ForeignKey('memos.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('fav_type', relation_type, nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'memo_id', 'fav_type', name='uq_user_memo_relation'),
    )
    op.create_index('ix_user_memo_relations_memo_id', 'user_memo_relations', ['memo_id'])
    op.create_index('ix_user_memo_relations_user_id', 'user_memo_relations', ['user_id'])

    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'user_id',
            sa.Integer(),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('memo_count', sa.Integer(), nullable=False),
        sa.Column('created', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('user_id', 'name', name='uq_tag_owner_name'),
        sa.CheckConstraint("name != ''", name='ck_tag_non_empty_name'),
        sa.CheckConstraint('memo_count >= 0', name='ck_tag_memo_count_non_negative'),
    )
    op.create_index('ix_tags_user_id', 'tags', ['user_id'])
    op.create_index('ix_tags_name', 'tags', ['name'])
    op.create_index('ix_tags_created', 'tags', ['created'])

    op.create_table(
        'sys_configs',
        sa.Column('key', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('default_value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
    )


def downgrade() -> None:
    """Drop every memo table."""
    op.drop_table('sys_configs')
    op.drop_index('ix_tags_created', table_name='tags')
    op.drop_index('ix_tags_name', table_name='tags')
    op.drop_index('ix_tags_user_id', table_name='tags')
    op.drop_table('tags')
    op.drop_index('ix_user_memo_relations_user_id', table_name='user_memo_relations')
    op.drop_index('ix_user_memo_relations_memo_id', table_name='user_memo_relations')
    op.drop_table('user_memo_relations')
    op.drop_index('ix_comments_created', table_name='comments')
    op.drop_index('ix_comments_user_id', table_name='comments')
    op.drop_index('ix_comments_memo_id', table_name='comments')
    op.drop_table('comments')
    op.drop_index('ix_memos_created', table_name='memos')
    op.drop_index('ix_memos_user_id', table_name='memos')
    op.drop_table('memos')
    op.drop_index('ix_users_created', table_name='users')
    op.drop_index('ix_users_display_name', table_name='users')
    op.drop_table('users')

"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-11-03 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

match_source = sa.Enum('COMMENT', 'POST', name='match_source')
comment_source = sa.Enum('TASK', 'WATCHLIST', name='comment_source')


def upgrade() -> None:
    # Create keywords table
    op.create_table(
        'keywords',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('word', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('is_phrase', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('word')
    )
    op.create_index('idx_keyword_category', 'keywords', ['category'], unique=False)

    # Create posts table
    op.create_table(
        'posts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.BigInteger(), nullable=False),
        sa.Column('vk_post_id', sa.BigInteger(), nullable=False),
        sa.Column('from_id', sa.BigInteger(), nullable=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('comments_count', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'vk_post_id', name='uq_post_owner_vk_post')
    )

    # Create comments table
    op.create_table(
        'comments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.BigInteger(), nullable=False),
        sa.Column('post_id', sa.BigInteger(), nullable=False),
        sa.Column('vk_comment_id', sa.BigInteger(), nullable=False),
        sa.Column('from_id', sa.BigInteger(), nullable=False),
        sa.Column('author_vk_id', sa.BigInteger(), nullable=True),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('published_at', sa.DateTime(), nullable=False),
        sa.Column('likes_count', sa.Integer(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=True),
        sa.Column('parents_stack', sa.JSON(), nullable=True),
        sa.Column('thread_count', sa.Integer(), nullable=True),
        sa.Column('thread_items', sa.JSON(), nullable=True),
        sa.Column('reply_to_user', sa.BigInteger(), nullable=True),
        sa.Column('reply_to_comment', sa.BigInteger(), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('source', comment_source, nullable=False),
        sa.Column('watchlist_author_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'vk_comment_id', name='uq_comment_owner_vk_comment')
    )
    op.create_index('idx_comment_owner_post', 'comments', ['owner_id', 'post_id'], unique=False)
    op.create_index('idx_comment_published', 'comments', ['published_at'], unique=False)

    # Create comment_keyword_matches table
    op.create_table(
        'comment_keyword_matches',
        sa.Column('comment_id', sa.Integer(), nullable=False),
        sa.Column('keyword_id', sa.Integer(), nullable=False),
        sa.Column('source', match_source, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['comment_id'], ['comments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['keyword_id'], ['keywords.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('comment_id', 'keyword_id', 'source')
    )
    op.create_index('idx_match_keyword', 'comment_keyword_matches', ['keyword_id'], unique=False)
    op.create_index('idx_match_comment_source', 'comment_keyword_matches', ['comment_id', 'source'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_match_comment_source', table_name='comment_keyword_matches')
    op.drop_index('idx_match_keyword', table_name='comment_keyword_matches')
    op.drop_table('comment_keyword_matches')
    op.drop_index('idx_comment_published', table_name='comments')
    op.drop_index('idx_comment_owner_post', table_name='comments')
    op.drop_table('comments')
    op.drop_table('posts')
    op.drop_index('idx_keyword_category', table_name='keywords')
    op.drop_table('keywords')
    match_source.drop(op.get_bind(), checkfirst=True)
    comment_source.drop(op.get_bind(), checkfirst=True)

"""
Database models using SQLAlchemy.
Keywords, VK posts and comments, and the keyword matches linking them.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger, Boolean, Column, DateTime, Enum, Integer,
    String, Text, JSON, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from core.state import CommentSource, MatchSource

Base = declarative_base()


class Keyword(Base):
    """User-managed keyword or phrase."""

    __tablename__ = "keywords"

    id = Column(Integer, primary_key=True, autoincrement=True)
    word = Column(String(255), nullable=False, unique=True)  # stored trimmed and lower-cased
    category = Column(String(100), nullable=True)  # label only, not used by matching
    is_phrase = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    matches = relationship("CommentKeywordMatch", back_populates="keyword", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_keyword_category', 'category'),
    )


class Post(Base):
    """VK wall post."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, nullable=False)  # negative for communities
    vk_post_id = Column(BigInteger, nullable=False)
    from_id = Column(BigInteger, nullable=True)
    text = Column(Text, nullable=True)
    published_at = Column(DateTime, nullable=True)
    comments_count = Column(Integer, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('owner_id', 'vk_post_id', name='uq_post_owner_vk_post'),
    )


class Comment(Base):
    """VK comment (thread replies are stored as comments too)."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(BigInteger, nullable=False)
    post_id = Column(BigInteger, nullable=False)  # VK post id, paired with owner_id
    vk_comment_id = Column(BigInteger, nullable=False)

    # Author
    from_id = Column(BigInteger, nullable=False)
    author_vk_id = Column(BigInteger, nullable=True)  # from_id when it is a user (> 0)

    # Content
    text = Column(Text, nullable=True)
    published_at = Column(DateTime, nullable=False)
    likes_count = Column(Integer, nullable=True)
    attachments = Column(JSON, nullable=True)

    # Thread
    parents_stack = Column(JSON, nullable=True)
    thread_count = Column(Integer, nullable=True)
    thread_items = Column(JSON, nullable=True)
    reply_to_user = Column(BigInteger, nullable=True)
    reply_to_comment = Column(BigInteger, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)
    source = Column(Enum(CommentSource, name="comment_source"), nullable=False, default=CommentSource.TASK)
    watchlist_author_id = Column(Integer, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    matches = relationship("CommentKeywordMatch", back_populates="comment", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('owner_id', 'vk_comment_id', name='uq_comment_owner_vk_comment'),
        Index('idx_comment_owner_post', 'owner_id', 'post_id'),
        Index('idx_comment_published', 'published_at'),
    )


class CommentKeywordMatch(Base):
    """
    A keyword matched for a comment.

    source=COMMENT: the comment text matched.
    source=POST: the parent post text matched (fanned out to every comment).
    """

    __tablename__ = "comment_keyword_matches"

    comment_id = Column(Integer, ForeignKey('comments.id', ondelete="CASCADE"), primary_key=True)
    keyword_id = Column(Integer, ForeignKey('keywords.id', ondelete="CASCADE"), primary_key=True)
    source = Column(Enum(MatchSource, name="match_source"), primary_key=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    comment = relationship("Comment", back_populates="matches")
    keyword = relationship("Keyword", back_populates="matches")

    __table_args__ = (
        Index('idx_match_keyword', 'keyword_id'),
        Index('idx_match_comment_source', 'comment_id', 'source'),
    )

"""
State models shared by the matching engine, storage and API layers.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


class MatchSource(str, enum.Enum):
    """Where a keyword match came from."""

    COMMENT = "COMMENT"  # the comment's own text matched
    POST = "POST"  # the parent post's text matched


class CommentSource(str, enum.Enum):
    """How a comment got into the database."""

    TASK = "TASK"
    WATCHLIST = "WATCHLIST"


@dataclass
class KeywordState:
    """A user-managed keyword or phrase."""

    id: int
    word: str
    is_phrase: bool = False
    category: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CommentRecord:
    """Comment projection used by match recalculation."""

    id: int
    text: Optional[str]


@dataclass(frozen=True)
class PostRecord:
    """Post projection used by match recalculation."""

    id: int
    owner_id: int
    vk_post_id: int
    text: Optional[str]


@dataclass(frozen=True)
class MatchRow:
    """A persisted (comment, keyword, source) match."""

    comment_id: int
    keyword_id: int
    source: MatchSource


@dataclass
class CommentState:
    """An incoming comment from the ingestion pipeline (VK API shape)."""

    owner_id: int
    post_id: int
    vk_comment_id: int
    from_id: int
    text: Optional[str]
    published_at: datetime

    likes_count: Optional[int] = None
    parents_stack: Optional[List[int]] = None
    thread_count: Optional[int] = None
    thread_items: List["CommentState"] = field(default_factory=list)
    attachments: Optional[List[Dict[str, Any]]] = None
    reply_to_user: Optional[int] = None
    reply_to_comment: Optional[int] = None
    is_deleted: bool = False


@dataclass
class PostState:
    """An incoming post from the ingestion pipeline."""

    owner_id: int
    vk_post_id: int
    text: Optional[str]

    from_id: Optional[int] = None
    published_at: Optional[datetime] = None
    comments_count: Optional[int] = None


@dataclass
class ReconcileStats:
    """Counters returned by a full match recalculation."""

    processed: int = 0
    updated: int = 0
    created: int = 0
    deleted: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return {
            "processed": self.processed,
            "updated": self.updated,
            "created": self.created,
            "deleted": self.deleted,
        }

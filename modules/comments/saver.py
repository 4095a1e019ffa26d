"""
Saving of ingested comments and posts with keyword match synchronization.

Every saved comment gets its own COMMENT matches recomputed, and the
POST matches of its parent post re-synced for all comments of that post.
"""

from typing import Any, Dict, List, Optional

from core.logger import get_logger
from core.state import CommentSource, CommentState, MatchRow, MatchSource, PostState
from modules.database.storage import MatchStorage
from modules.matching.candidates import MatchCandidate, compile_candidates
from modules.matching.matcher import find_matched_keyword_ids_in_text
from modules.matching.normalizer import normalize_for_keyword_match
from modules.matching.reconciler import diff_keyword_ids, diff_post_matches

logger = get_logger(__name__)


def serialize_comment(comment: CommentState) -> Dict[str, Any]:
    """JSON form of a comment, used for the thread_items column."""
    return {
        "vk_comment_id": comment.vk_comment_id,
        "owner_id": comment.owner_id,
        "post_id": comment.post_id,
        "from_id": comment.from_id,
        "text": comment.text,
        "published_at": comment.published_at.isoformat(),
        "likes_count": comment.likes_count,
        "parents_stack": comment.parents_stack,
        "thread_count": comment.thread_count,
        "thread_items": [serialize_comment(item) for item in comment.thread_items] or None,
        "attachments": comment.attachments,
        "reply_to_user": comment.reply_to_user,
        "reply_to_comment": comment.reply_to_comment,
        "is_deleted": comment.is_deleted,
    }


class CommentsSaver:
    """Upserts comments and posts and keeps their keyword matches current."""

    def __init__(self, storage: Optional[MatchStorage] = None):
        """
        Initialize saver.

        Args:
            storage: MatchStorage instance (creates new if not provided)
        """
        self.storage = storage or MatchStorage()

    def load_keyword_candidates(self) -> List[MatchCandidate]:
        """Compile the current keyword list."""
        return compile_candidates(self.storage.list_keyword_candidates_source())

    def save_comments(
        self,
        comments: List[CommentState],
        source: CommentSource = CommentSource.TASK,
        watchlist_author_id: Optional[int] = None,
        keyword_candidates: Optional[List[MatchCandidate]] = None
    ) -> int:
        """
        Save comments (thread items included, recursively).

        Args:
            comments: Comments to save
            source: How the comments were collected
            watchlist_author_id: Watchlist author the comments belong to
            keyword_candidates: Pre-compiled candidates (loaded once if not provided)

        Returns:
            Number of saved comments
        """
        if not comments:
            return 0

        if keyword_candidates is None:
            keyword_candidates = self.load_keyword_candidates()

        logger.debug(
            "Saving comments",
            count=len(comments),
            source=source.value,
            keyword_candidates=len(keyword_candidates)
        )

        saved = 0
        for comment in comments:
            saved += self._save_comment(comment, source, watchlist_author_id, keyword_candidates)

        logger.debug("Saved comments", saved=saved)
        return saved

    def save_posts(
        self,
        posts: List[PostState],
        keyword_candidates: Optional[List[MatchCandidate]] = None
    ) -> int:
        """
        Save posts and re-sync POST matches of the comments already attached.

        Returns:
            Number of saved posts
        """
        if not posts:
            return 0

        if keyword_candidates is None:
            keyword_candidates = self.load_keyword_candidates()

        for post in posts:
            self.storage.upsert_post(post)
            self.sync_post_keyword_matches(post.owner_id, post.vk_post_id, keyword_candidates)

        logger.debug("Saved posts", saved=len(posts))
        return len(posts)

    def _save_comment(
        self,
        comment: CommentState,
        source: CommentSource,
        watchlist_author_id: Optional[int],
        keyword_candidates: List[MatchCandidate]
    ) -> int:
        thread_items = [serialize_comment(item) for item in comment.thread_items] or None
        comment_id = self.storage.upsert_comment(
            comment,
            source=source,
            thread_items=thread_items,
            watchlist_author_id=watchlist_author_id
        )

        self.sync_comment_keyword_matches(comment_id, comment.text, keyword_candidates)
        self.sync_post_keyword_matches(comment.owner_id, comment.post_id, keyword_candidates)

        saved = 1
        if comment.thread_items:
            saved += self.save_comments(
                comment.thread_items,
                source=source,
                watchlist_author_id=watchlist_author_id,
                keyword_candidates=keyword_candidates
            )

        return saved

    def sync_comment_keyword_matches(
        self,
        comment_id: int,
        text: Optional[str],
        keyword_candidates: List[MatchCandidate]
    ) -> None:
        """Bring COMMENT matches of one comment in line with its text."""
        normalized_text = normalize_for_keyword_match(text)

        if not normalized_text or not keyword_candidates:
            self.storage.delete_matches(comment_id, MatchSource.COMMENT)
            return

        matched = find_matched_keyword_ids_in_text(normalized_text, keyword_candidates)
        existing = set(self.storage.existing_matches(comment_id, MatchSource.COMMENT))
        to_create, to_delete = diff_keyword_ids(matched, existing)

        if not to_create and not to_delete:
            return

        self.storage.apply_match_changes(
            to_delete=[MatchRow(comment_id, keyword_id, MatchSource.COMMENT) for keyword_id in to_delete],
            to_create=[MatchRow(comment_id, keyword_id, MatchSource.COMMENT) for keyword_id in to_create]
        )

    def sync_post_keyword_matches(
        self,
        owner_id: int,
        post_id: int,
        keyword_candidates: List[MatchCandidate]
    ) -> None:
        """Bring POST matches of every comment under a post in line with the post text."""
        post = self.storage.find_post(owner_id, post_id)
        if not post or not post.text:
            return

        normalized_text = normalize_for_keyword_match(post.text)
        matched = find_matched_keyword_ids_in_text(normalized_text, keyword_candidates)

        comment_ids = self.storage.comments_for_post(owner_id, post_id)
        if not comment_ids:
            return

        if not matched:
            self.storage.delete_matches_for_comments(comment_ids, MatchSource.POST)
            return

        existing_pairs = self.storage.existing_post_matches(comment_ids)
        to_create, to_delete = diff_post_matches(comment_ids, matched, existing_pairs)

        self.storage.apply_match_changes(
            to_delete=[MatchRow(c, k, MatchSource.POST) for c, k in to_delete],
            to_create=[MatchRow(c, k, MatchSource.POST) for c, k in to_create]
        )

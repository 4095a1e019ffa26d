"""
Full-corpus recalculation of keyword matches.

Walks comments, then posts, in fixed-size windows and brings the stored
match rows in line with the current keywords and the current text. Every
item is reconciled on its own, so an interrupted run can simply be
started again.
"""

import time
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Set, Tuple

from core.config import get_config
from core.logger import get_logger
from core.state import CommentRecord, MatchRow, MatchSource, PostRecord, ReconcileStats
from modules.matching.matcher import KeywordMatcher
from modules.matching.normalizer import normalize_for_keyword_match
from modules.matching.ports import MatchStore

logger = get_logger(__name__)


def diff_keyword_ids(matched: Set[int], existing: Set[int]) -> Tuple[List[int], List[int]]:
    """
    Minimal change set between fresh and stored keyword ids.

    Returns:
        Tuple of (to_create, to_delete), both sorted
    """
    return sorted(matched - existing), sorted(existing - matched)


def diff_post_matches(
    comment_ids: List[int],
    matched: Set[int],
    existing_pairs: List[Tuple[int, int]]
) -> Tuple[List[Tuple[int, int]], List[Tuple[int, int]]]:
    """
    Minimal change set for post-sourced matches fanned out over comments.

    Args:
        comment_ids: Comments currently attached to the post
        matched: Keyword ids matched by the post text
        existing_pairs: Stored (comment_id, keyword_id) POST pairs

    Returns:
        Tuple of (to_create, to_delete) pair lists
    """
    existing = set(existing_pairs)
    to_create = [
        (comment_id, keyword_id)
        for comment_id in comment_ids
        for keyword_id in sorted(matched)
        if (comment_id, keyword_id) not in existing
    ]
    to_delete = [
        (comment_id, keyword_id)
        for comment_id, keyword_id in existing_pairs
        if keyword_id not in matched
    ]
    return to_create, to_delete


class KeywordMatchReconciler:
    """Recalculates keyword matches for every comment and post."""

    def __init__(self, store: MatchStore, batch_size: Optional[int] = None):
        """
        Initialize reconciler.

        Args:
            store: Persistence backend
            batch_size: Window size (uses MATCH_BATCH_SIZE from config if not provided)
        """
        self.store = store
        self.batch_size = batch_size if batch_size is not None else get_config().match_batch_size
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")

    def recalculate(self) -> ReconcileStats:
        """
        Recompute matches for the whole corpus.

        Returns:
            Aggregated counters for both phases
        """
        start_time = time.time()
        matcher = KeywordMatcher.from_keywords(self.store.list_keyword_candidates_source())
        stats = ReconcileStats()

        logger.info(
            "Starting keyword match recalculation",
            candidates=len(matcher),
            batch_size=self.batch_size
        )

        for comment in self._iter_comments():
            self._reconcile_comment(comment, matcher, stats)

        for post in self._iter_posts():
            self._reconcile_post(post, matcher, stats)

        logger.info(
            "Keyword match recalculation completed",
            duration_seconds=round(time.time() - start_time, 2),
            **stats.to_dict()
        )
        return stats

    def _iter_comments(self) -> Iterator[CommentRecord]:
        total = self.store.count_comments()
        for offset in range(0, total, self.batch_size):
            window = self.store.comments_window(offset, self.batch_size)
            logger.debug("Processing comments window", offset=offset, size=len(window), total=total)
            yield from window

    def _iter_posts(self) -> Iterator[PostRecord]:
        total = self.store.count_posts()
        for offset in range(0, total, self.batch_size):
            window = self.store.posts_window(offset, self.batch_size)
            logger.debug("Processing posts window", offset=offset, size=len(window), total=total)
            yield from window

    def _reconcile_comment(
        self,
        comment: CommentRecord,
        matcher: KeywordMatcher,
        stats: ReconcileStats
    ) -> None:
        stats.processed += 1
        normalized_text = normalize_for_keyword_match(comment.text)
        existing = set(self.store.existing_matches(comment.id, MatchSource.COMMENT))

        if not normalized_text:
            # Cleared text keeps no matches of its own
            if existing:
                self.store.delete_matches(comment.id, MatchSource.COMMENT)
                stats.deleted += len(existing)
                stats.updated += 1
            return

        to_create, to_delete = diff_keyword_ids(matcher.match_normalized(normalized_text), existing)
        if not to_create and not to_delete:
            return

        if to_delete:
            self.store.delete_matches(comment.id, MatchSource.COMMENT, to_delete)
            stats.deleted += len(to_delete)

        if to_create:
            self.store.create_matches([
                MatchRow(comment_id=comment.id, keyword_id=keyword_id, source=MatchSource.COMMENT)
                for keyword_id in to_create
            ])
            stats.created += len(to_create)

        stats.updated += 1

    def _reconcile_post(
        self,
        post: PostRecord,
        matcher: KeywordMatcher,
        stats: ReconcileStats
    ) -> None:
        normalized_text = normalize_for_keyword_match(post.text)
        if not normalized_text:
            return

        matched = matcher.match_normalized(normalized_text)

        comment_ids = self.store.comments_for_post(post.owner_id, post.vk_post_id)
        if not comment_ids:
            return

        existing_pairs = self.store.existing_post_matches(comment_ids)
        to_create, to_delete = diff_post_matches(comment_ids, matched, existing_pairs)
        if not to_create and not to_delete:
            return

        if to_delete:
            stale_by_comment: Dict[int, List[int]] = defaultdict(list)
            for comment_id, keyword_id in to_delete:
                stale_by_comment[comment_id].append(keyword_id)
            for comment_id, keyword_ids in stale_by_comment.items():
                self.store.delete_matches(comment_id, MatchSource.POST, keyword_ids)
            stats.deleted += len(to_delete)

        if to_create:
            self.store.create_matches([
                MatchRow(comment_id=comment_id, keyword_id=keyword_id, source=MatchSource.POST)
                for comment_id, keyword_id in to_create
            ])
            stats.created += len(to_create)

        stats.updated += 1
        logger.debug(
            "Reconciled post matches",
            post_id=post.id,
            comments=len(comment_ids),
            created=len(to_create),
            deleted=len(to_delete)
        )

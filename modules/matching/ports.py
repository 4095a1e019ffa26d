"""
Storage contract required by match recalculation.

Any backend providing these operations can be reconciled; the SQL
implementation lives in modules.database.storage.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from core.state import CommentRecord, KeywordState, MatchRow, MatchSource, PostRecord


class MatchStore(Protocol):
    """Persistence operations used by the keyword match engine."""

    def list_keyword_candidates_source(self) -> List[KeywordState]:
        ...

    def count_comments(self) -> int:
        ...

    def count_posts(self) -> int:
        ...

    def comments_window(self, offset: int, limit: int) -> List[CommentRecord]:
        ...

    def posts_window(self, offset: int, limit: int) -> List[PostRecord]:
        ...

    def comments_for_post(self, owner_id: int, post_id: int) -> List[int]:
        ...

    def existing_matches(self, comment_id: int, source: MatchSource) -> List[int]:
        ...

    def existing_post_matches(self, comment_ids: Sequence[int]) -> List[Tuple[int, int]]:
        ...

    def delete_matches(
        self,
        comment_id: int,
        source: MatchSource,
        keyword_ids: Optional[Sequence[int]] = None
    ) -> None:
        ...

    def create_matches(self, rows: Sequence[MatchRow]) -> None:
        ...

"""
Database storage operations for keywords, content and keyword matches.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine, func, or_, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from core.config import get_config
from core.logger import get_logger
from core.state import (
    CommentRecord, CommentSource, CommentState, KeywordState,
    MatchRow, MatchSource, PostRecord, PostState
)
from modules.database.models import Base, Comment, CommentKeywordMatch, Keyword, Post

logger = get_logger(__name__)


class MatchStorage:
    """Handles database operations for keywords, posts, comments and their matches."""

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize storage.

        Args:
            database_url: Database URL (uses config if not provided)
        """
        self.database_url = database_url or get_config().resolved_database_url

        if self.database_url.startswith("sqlite") and (
            self.database_url in ("sqlite://", "sqlite:///:memory:")
        ):
            # One shared connection, otherwise every session sees an empty database
            self.engine = create_engine(
                self.database_url,
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        else:
            self.engine = create_engine(self.database_url, echo=False)

        # Note: tables are created via Alembic migrations (create_tables is for local use and tests)
        self.SessionLocal = sessionmaker(bind=self.engine)

        logger.info("Initialized MatchStorage", database_url=self.database_url)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def create_tables(self) -> None:
        """Create all tables directly from the models."""
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        session = self.get_session()
        try:
            session.execute(text("SELECT 1"))
        finally:
            session.close()

    # Keyword Operations

    def get_keyword_by_word(self, word: str) -> Optional[KeywordState]:
        """Get a keyword by its stored word."""
        session = self.get_session()
        try:
            keyword = session.query(Keyword).filter_by(word=word).first()
            return self._keyword_to_state(keyword) if keyword else None
        finally:
            session.close()

    def find_keywords_by_words(self, words: Sequence[str]) -> List[KeywordState]:
        """Get all keywords whose word is in the given list."""
        if not words:
            return []

        session = self.get_session()
        try:
            keywords = session.query(Keyword).filter(Keyword.word.in_(list(words))).all()
            return [self._keyword_to_state(k) for k in keywords]
        finally:
            session.close()

    def create_keyword(self, word: str, category: Optional[str], is_phrase: bool) -> KeywordState:
        """Create a keyword."""
        session = self.get_session()
        try:
            keyword = Keyword(word=word, category=category, is_phrase=is_phrase)
            session.add(keyword)
            session.commit()
            session.refresh(keyword)

            logger.info("Created keyword", keyword_id=keyword.id, word=word)
            return self._keyword_to_state(keyword)
        except Exception as e:
            session.rollback()
            logger.error("Failed to create keyword", word=word, error=str(e))
            raise
        finally:
            session.close()

    def update_keyword(
        self,
        keyword_id: int,
        category: Optional[str],
        is_phrase: bool
    ) -> Optional[KeywordState]:
        """Update category and phrase flag of a keyword."""
        session = self.get_session()
        try:
            keyword = session.query(Keyword).filter_by(id=keyword_id).first()
            if not keyword:
                return None

            keyword.category = category
            keyword.is_phrase = is_phrase
            session.commit()
            session.refresh(keyword)

            logger.info("Updated keyword", keyword_id=keyword_id)
            return self._keyword_to_state(keyword)
        except Exception as e:
            session.rollback()
            logger.error("Failed to update keyword", keyword_id=keyword_id, error=str(e))
            raise
        finally:
            session.close()

    def delete_keyword(self, keyword_id: int) -> bool:
        """Delete a keyword together with its matches."""
        session = self.get_session()
        try:
            keyword = session.query(Keyword).filter_by(id=keyword_id).first()
            if not keyword:
                return False

            session.delete(keyword)
            session.commit()
            logger.info("Deleted keyword", keyword_id=keyword_id)
            return True
        except Exception as e:
            session.rollback()
            logger.error("Failed to delete keyword", keyword_id=keyword_id, error=str(e))
            raise
        finally:
            session.close()

    def delete_all_keywords(self) -> int:
        """Delete every keyword and every match."""
        session = self.get_session()
        try:
            session.query(CommentKeywordMatch).delete(synchronize_session=False)
            count = session.query(Keyword).delete(synchronize_session=False)
            session.commit()
            logger.info("Deleted all keywords", count=count)
            return count
        except Exception as e:
            session.rollback()
            logger.error("Failed to delete keywords", error=str(e))
            raise
        finally:
            session.close()

    def list_keywords(self, search: Optional[str] = None) -> List[KeywordState]:
        """
        List keywords ordered by word.

        Args:
            search: Optional case-insensitive substring of word or category
        """
        session = self.get_session()
        try:
            query = session.query(Keyword)

            if search:
                pattern = f"%{search.lower()}%"
                query = query.filter(or_(
                    func.lower(Keyword.word).like(pattern),
                    func.lower(Keyword.category).like(pattern)
                ))

            return [self._keyword_to_state(k) for k in query.order_by(Keyword.word).all()]
        finally:
            session.close()

    # Match Store Operations (used by recalculation)

    def list_keyword_candidates_source(self) -> List[KeywordState]:
        """All keywords, as input for candidate compilation."""
        session = self.get_session()
        try:
            rows = session.query(Keyword.id, Keyword.word, Keyword.is_phrase).all()
            return [KeywordState(id=row.id, word=row.word, is_phrase=row.is_phrase) for row in rows]
        finally:
            session.close()

    def count_comments(self) -> int:
        """Count all comments."""
        session = self.get_session()
        try:
            return session.query(Comment).count()
        finally:
            session.close()

    def count_posts(self) -> int:
        """Count all posts."""
        session = self.get_session()
        try:
            return session.query(Post).count()
        finally:
            session.close()

    def comments_window(self, offset: int, limit: int) -> List[CommentRecord]:
        """Page of comments in id order."""
        session = self.get_session()
        try:
            rows = (
                session.query(Comment.id, Comment.text)
                .order_by(Comment.id)
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [CommentRecord(id=row.id, text=row.text) for row in rows]
        finally:
            session.close()

    def posts_window(self, offset: int, limit: int) -> List[PostRecord]:
        """Page of posts in id order."""
        session = self.get_session()
        try:
            rows = (
                session.query(Post.id, Post.owner_id, Post.vk_post_id, Post.text)
                .order_by(Post.id)
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [
                PostRecord(id=row.id, owner_id=row.owner_id, vk_post_id=row.vk_post_id, text=row.text)
                for row in rows
            ]
        finally:
            session.close()

    def comments_for_post(self, owner_id: int, post_id: int) -> List[int]:
        """Ids of comments currently attached to a post."""
        session = self.get_session()
        try:
            rows = (
                session.query(Comment.id)
                .filter(Comment.owner_id == owner_id, Comment.post_id == post_id)
                .order_by(Comment.id)
                .all()
            )
            return [row.id for row in rows]
        finally:
            session.close()

    def existing_matches(self, comment_id: int, source: MatchSource) -> List[int]:
        """Keyword ids stored for a comment and source."""
        session = self.get_session()
        try:
            rows = session.query(CommentKeywordMatch.keyword_id).filter(
                CommentKeywordMatch.comment_id == comment_id,
                CommentKeywordMatch.source == source
            ).all()
            return [row.keyword_id for row in rows]
        finally:
            session.close()

    def existing_post_matches(self, comment_ids: Sequence[int]) -> List[Tuple[int, int]]:
        """(comment_id, keyword_id) pairs stored with POST source for the given comments."""
        if not comment_ids:
            return []

        session = self.get_session()
        try:
            rows = session.query(
                CommentKeywordMatch.comment_id,
                CommentKeywordMatch.keyword_id
            ).filter(
                CommentKeywordMatch.comment_id.in_(list(comment_ids)),
                CommentKeywordMatch.source == MatchSource.POST
            ).all()
            return [(row.comment_id, row.keyword_id) for row in rows]
        finally:
            session.close()

    def delete_matches(
        self,
        comment_id: int,
        source: MatchSource,
        keyword_ids: Optional[Sequence[int]] = None
    ) -> None:
        """
        Delete matches of a comment for one source.

        Args:
            comment_id: Comment id
            source: Match source
            keyword_ids: Only these keywords (all keywords if not provided)
        """
        session = self.get_session()
        try:
            self._delete_matches(session, comment_id, source, keyword_ids)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("Failed to delete matches", comment_id=comment_id, source=source.value, error=str(e))
            raise
        finally:
            session.close()

    def delete_matches_for_comments(self, comment_ids: Sequence[int], source: MatchSource) -> None:
        """Delete every match of the given source for a set of comments."""
        if not comment_ids:
            return

        session = self.get_session()
        try:
            session.query(CommentKeywordMatch).filter(
                CommentKeywordMatch.comment_id.in_(list(comment_ids)),
                CommentKeywordMatch.source == source
            ).delete(synchronize_session=False)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("Failed to delete matches", comments=len(comment_ids), source=source.value, error=str(e))
            raise
        finally:
            session.close()

    def create_matches(self, rows: Sequence[MatchRow]) -> None:
        """Insert match rows, skipping ones that already exist."""
        if not rows:
            return

        session = self.get_session()
        try:
            self._create_matches(session, rows)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("Failed to create matches", rows=len(rows), error=str(e))
            raise
        finally:
            session.close()

    def apply_match_changes(self, to_delete: Sequence[MatchRow], to_create: Sequence[MatchRow]) -> None:
        """Delete stale rows and insert new ones in a single transaction."""
        if not to_delete and not to_create:
            return

        session = self.get_session()
        try:
            for row in to_delete:
                self._delete_matches(session, row.comment_id, row.source, [row.keyword_id])
            self._create_matches(session, to_create)
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(
                "Failed to apply match changes",
                to_delete=len(to_delete),
                to_create=len(to_create),
                error=str(e)
            )
            raise
        finally:
            session.close()

    def list_matches(self, comment_id: Optional[int] = None) -> List[MatchRow]:
        """All stored matches, optionally for one comment."""
        session = self.get_session()
        try:
            query = session.query(CommentKeywordMatch)
            if comment_id is not None:
                query = query.filter_by(comment_id=comment_id)
            query = query.order_by(
                CommentKeywordMatch.comment_id,
                CommentKeywordMatch.keyword_id,
                CommentKeywordMatch.source
            )
            return [
                MatchRow(comment_id=m.comment_id, keyword_id=m.keyword_id, source=m.source)
                for m in query.all()
            ]
        finally:
            session.close()

    # Content Operations (used at ingestion time)

    def upsert_comment(
        self,
        comment: CommentState,
        source: CommentSource,
        thread_items: Optional[List[Dict[str, Any]]] = None,
        watchlist_author_id: Optional[int] = None
    ) -> int:
        """
        Insert or update a comment by (owner_id, vk_comment_id).

        Returns:
            Database id of the comment
        """
        session = self.get_session()
        try:
            existing = session.query(Comment).filter_by(
                owner_id=comment.owner_id,
                vk_comment_id=comment.vk_comment_id
            ).first()

            author_vk_id = comment.from_id if comment.from_id > 0 else None
            fields = {
                "post_id": comment.post_id,
                "from_id": comment.from_id,
                "author_vk_id": author_vk_id,
                "text": comment.text,
                "published_at": comment.published_at,
                "likes_count": comment.likes_count,
                "parents_stack": comment.parents_stack,
                "thread_count": comment.thread_count,
                "thread_items": thread_items,
                "reply_to_user": comment.reply_to_user,
                "reply_to_comment": comment.reply_to_comment,
                "is_deleted": comment.is_deleted,
            }
            if comment.attachments is not None:
                fields["attachments"] = comment.attachments

            if existing:
                for key, value in fields.items():
                    setattr(existing, key, value)
                if watchlist_author_id is not None:
                    existing.watchlist_author_id = watchlist_author_id
                if source == CommentSource.WATCHLIST:
                    existing.source = CommentSource.WATCHLIST
            else:
                existing = Comment(
                    owner_id=comment.owner_id,
                    vk_comment_id=comment.vk_comment_id,
                    source=source,
                    watchlist_author_id=watchlist_author_id,
                    **fields
                )
                session.add(existing)

            session.commit()
            return existing.id
        except Exception as e:
            session.rollback()
            logger.error(
                "Failed to save comment",
                owner_id=comment.owner_id,
                vk_comment_id=comment.vk_comment_id,
                error=str(e)
            )
            raise
        finally:
            session.close()

    def upsert_post(self, post: PostState) -> int:
        """Insert or update a post by (owner_id, vk_post_id)."""
        session = self.get_session()
        try:
            existing = session.query(Post).filter_by(
                owner_id=post.owner_id,
                vk_post_id=post.vk_post_id
            ).first()

            if existing:
                existing.text = post.text
                existing.from_id = post.from_id
                existing.published_at = post.published_at
                existing.comments_count = post.comments_count
            else:
                existing = Post(
                    owner_id=post.owner_id,
                    vk_post_id=post.vk_post_id,
                    from_id=post.from_id,
                    text=post.text,
                    published_at=post.published_at,
                    comments_count=post.comments_count
                )
                session.add(existing)

            session.commit()
            return existing.id
        except Exception as e:
            session.rollback()
            logger.error("Failed to save post", owner_id=post.owner_id, vk_post_id=post.vk_post_id, error=str(e))
            raise
        finally:
            session.close()

    def find_post(self, owner_id: int, vk_post_id: int) -> Optional[PostRecord]:
        """Get a post by its VK identifiers."""
        session = self.get_session()
        try:
            post = session.query(Post).filter_by(owner_id=owner_id, vk_post_id=vk_post_id).first()
            if not post:
                return None
            return PostRecord(id=post.id, owner_id=post.owner_id, vk_post_id=post.vk_post_id, text=post.text)
        finally:
            session.close()

    # Helpers

    def _delete_matches(
        self,
        session: Session,
        comment_id: int,
        source: MatchSource,
        keyword_ids: Optional[Sequence[int]] = None
    ) -> None:
        query = session.query(CommentKeywordMatch).filter(
            CommentKeywordMatch.comment_id == comment_id,
            CommentKeywordMatch.source == source
        )
        if keyword_ids is not None:
            query = query.filter(CommentKeywordMatch.keyword_id.in_(list(keyword_ids)))
        query.delete(synchronize_session=False)

    def _create_matches(self, session: Session, rows: Sequence[MatchRow]) -> None:
        if not rows:
            return

        comment_ids = sorted({row.comment_id for row in rows})
        existing = {
            (m.comment_id, m.keyword_id, m.source)
            for m in session.query(
                CommentKeywordMatch.comment_id,
                CommentKeywordMatch.keyword_id,
                CommentKeywordMatch.source
            ).filter(CommentKeywordMatch.comment_id.in_(comment_ids)).all()
        }

        seen = set()
        for row in rows:
            key = (row.comment_id, row.keyword_id, row.source)
            if key in existing or key in seen:
                continue
            seen.add(key)
            session.add(CommentKeywordMatch(
                comment_id=row.comment_id,
                keyword_id=row.keyword_id,
                source=row.source
            ))

    def _keyword_to_state(self, model: Keyword) -> KeywordState:
        """Convert database model to KeywordState."""
        return KeywordState(
            id=model.id,
            word=model.word,
            is_phrase=bool(model.is_phrase),
            category=model.category,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

"""
Keyword manager for user-defined keywords and phrases.
Works with database storage; recalculation is delegated to the reconciler.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from core.logger import get_logger
from core.state import KeywordState, ReconcileStats
from modules.database.storage import MatchStorage
from modules.matching.reconciler import KeywordMatchReconciler

logger = get_logger(__name__)


class KeywordValidationError(ValueError):
    """Raised when a keyword cannot be stored."""


def normalize_keyword_word(word: Optional[str]) -> str:
    """Storage form of a keyword: trimmed and lower-cased."""
    return (word or "").strip().lower()


def parse_keywords_file(content: str) -> List[Dict[str, Optional[str]]]:
    """
    Parse an import file.

    One keyword per line, optionally followed by ";category". Blank lines
    and lines with an empty word are ignored.
    """
    entries = []
    for line in content.split("\n"):
        parts = [part.strip() for part in line.split(";")]
        if not parts or not parts[0]:
            continue

        if len(parts) == 1:
            entries.append({"word": parts[0], "category": None})
        else:
            entries.append({"word": parts[0], "category": parts[1] or None})

    return entries


class KeywordManager:
    """Manages keywords (uses database storage)."""

    def __init__(self, storage: Optional[MatchStorage] = None):
        """
        Initialize keyword manager.

        Args:
            storage: MatchStorage instance (creates new if not provided)
        """
        self.storage = storage or MatchStorage()

    def add_keyword(
        self,
        word: str,
        category: Optional[str] = None,
        is_phrase: Optional[bool] = None
    ) -> KeywordState:
        """
        Create a keyword, or update category and phrase flag of an existing one.

        Args:
            word: Keyword text
            category: Optional label
            is_phrase: Phrase flag (keeps the stored value when None on update)

        Returns:
            Stored keyword

        Raises:
            KeywordValidationError: if the word is empty
        """
        normalized_word = normalize_keyword_word(word)
        normalized_category = category.strip() if category is not None else None

        if not normalized_word:
            raise KeywordValidationError("Keyword cannot be empty")

        existing = self.storage.get_keyword_by_word(normalized_word)
        if existing:
            return self.storage.update_keyword(
                existing.id,
                category=normalized_category,
                is_phrase=is_phrase if is_phrase is not None else existing.is_phrase
            )

        return self.storage.create_keyword(
            word=normalized_word,
            category=normalized_category,
            is_phrase=bool(is_phrase)
        )

    def bulk_add_keywords(self, words: List[str]) -> Dict[str, Any]:
        """Add plain words without categories."""
        return self._bulk_add_entries([{"word": word, "category": None} for word in words])

    def add_keywords_from_file(self, content: str) -> Dict[str, Any]:
        """Add keywords from "word;category" lines."""
        return self._bulk_add_entries(parse_keywords_file(content))

    def _bulk_add_entries(self, entries: List[Dict[str, Optional[str]]]) -> Dict[str, Any]:
        success: List[KeywordState] = []
        failed: List[Dict[str, str]] = []

        normalized_words = sorted({
            normalize_keyword_word(entry["word"])
            for entry in entries
            if normalize_keyword_word(entry["word"])
        })
        existed_before_import = {
            keyword.word for keyword in self.storage.find_keywords_by_words(normalized_words)
        }
        processed_in_batch = set()

        created_count = 0
        updated_count = 0

        for entry in entries:
            word = entry["word"] or ""
            normalized_word = normalize_keyword_word(word)

            try:
                keyword = self.add_keyword(word, entry.get("category"))
            except KeywordValidationError as e:
                failed.append({"word": word, "error": str(e)})
                continue
            except SQLAlchemyError as e:
                logger.warning("Failed to import keyword", word=word, error=str(e))
                failed.append({"word": word, "error": str(e)})
                continue

            success.append(keyword)
            if normalized_word in existed_before_import or normalized_word in processed_in_batch:
                updated_count += 1
            else:
                created_count += 1
            processed_in_batch.add(normalized_word)

        logger.info(
            "Imported keywords",
            total=len(entries),
            created=created_count,
            updated=updated_count,
            failed=len(failed)
        )

        return {
            "success": success,
            "failed": failed,
            "stats": {
                "total": len(entries),
                "success": len(success),
                "failed": len(failed),
                "created": created_count,
                "updated": updated_count,
            },
        }

    def delete_keyword(self, keyword_id: int) -> bool:
        """Delete a keyword."""
        return self.storage.delete_keyword(keyword_id)

    def delete_all_keywords(self) -> int:
        """Delete all keywords, returning how many were removed."""
        return self.storage.delete_all_keywords()

    def get_keywords(self, search: Optional[str] = None) -> List[KeywordState]:
        """List keywords ordered by word, optionally filtered by word or category."""
        return self.storage.list_keywords(search=search)

    def recalculate_keyword_matches(self, batch_size: Optional[int] = None) -> ReconcileStats:
        """Recompute stored matches for the whole corpus."""
        reconciler = KeywordMatchReconciler(self.storage, batch_size=batch_size)
        return reconciler.recalculate()

from __future__ import annotations

import pytest
from sqlalchemy.exc import DataError

from core.state import CommentSource, MatchSource
from modules.database.storage import MatchStorage
from modules.keywords.manager import (
    KeywordManager,
    KeywordValidationError,
    normalize_keyword_word,
    parse_keywords_file,
)


def test_normalize_keyword_word() -> None:
    assert normalize_keyword_word("  Черный Кот ") == "черный кот"
    assert normalize_keyword_word(None) == ""


def test_parse_keywords_file() -> None:
    content = "кот;животные\n\n  черный кот ; фразы \nпес\n;без слова\nсыр;\n"
    assert parse_keywords_file(content) == [
        {"word": "кот", "category": "животные"},
        {"word": "черный кот", "category": "фразы"},
        {"word": "пес", "category": None},
        {"word": "сыр", "category": None},
    ]


def test_add_keyword_creates_then_updates(storage: MatchStorage) -> None:
    manager = KeywordManager(storage)

    created = manager.add_keyword("  Кот ", category=" животные ", is_phrase=True)
    assert created.word == "кот"
    assert created.category == "животные"
    assert created.is_phrase is True

    updated = manager.add_keyword("КОТ", category="питомцы")
    assert updated.id == created.id
    assert updated.category == "питомцы"
    assert updated.is_phrase is True

    assert len(manager.get_keywords()) == 1


def test_add_empty_keyword_fails(storage: MatchStorage) -> None:
    manager = KeywordManager(storage)
    with pytest.raises(KeywordValidationError):
        manager.add_keyword("   ")


def test_bulk_add_counts(storage: MatchStorage) -> None:
    manager = KeywordManager(storage)
    manager.add_keyword("сыр")

    result = manager.bulk_add_keywords(["Кот", "кот ", "", "пес", "сыр"])

    assert result["stats"] == {"total": 5, "success": 4, "failed": 1, "created": 2, "updated": 2}
    assert result["failed"] == [{"word": "", "error": "Keyword cannot be empty"}]
    assert [k.word for k in manager.get_keywords()] == ["кот", "пес", "сыр"]


def test_import_from_file(storage: MatchStorage) -> None:
    manager = KeywordManager(storage)

    result = manager.add_keywords_from_file("кот;животные\nчерный кот;фразы\n")

    assert result["stats"]["created"] == 2
    assert [k.category for k in manager.get_keywords(search="фраз")] == ["фразы"]


def test_delete_keywords(storage: MatchStorage) -> None:
    manager = KeywordManager(storage)
    cat = manager.add_keyword("кот")
    manager.add_keyword("пес")

    assert manager.delete_keyword(cat.id) is True
    assert manager.delete_keyword(cat.id) is False
    assert manager.delete_all_keywords() == 1
    assert manager.get_keywords() == []


def test_recalculate_keyword_matches(storage: MatchStorage, make_comment) -> None:
    manager = KeywordManager(storage)
    comment_id = storage.upsert_comment(make_comment("Котейка спит"), source=CommentSource.TASK)
    cat = manager.add_keyword("кот")

    stats = manager.recalculate_keyword_matches(batch_size=5)

    assert stats.created == 1
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [cat.id]


class FailingStorage(MatchStorage):
    def __init__(self, failing_word: str) -> None:
        super().__init__("sqlite://")
        self.create_tables()
        self.failing_word = failing_word

    def create_keyword(self, word, category, is_phrase):
        if word == self.failing_word:
            raise DataError("INSERT INTO keywords", {"word": word}, Exception("value too long"))
        return super().create_keyword(word, category, is_phrase)


def test_storage_error_fails_only_that_entry() -> None:
    manager = KeywordManager(FailingStorage("пес"))

    result = manager.bulk_add_keywords(["кот", "пес", "сыр"])

    assert result["stats"] == {"total": 3, "success": 2, "failed": 1, "created": 2, "updated": 0}
    assert [f["word"] for f in result["failed"]] == ["пес"]
    assert "value too long" in result["failed"][0]["error"]
    assert [k.word for k in manager.get_keywords()] == ["кот", "сыр"]

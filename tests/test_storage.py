from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from core.state import CommentSource, MatchRow, MatchSource
from modules.database.storage import MatchStorage
from modules.matching.reconciler import KeywordMatchReconciler


def test_keyword_crud(storage: MatchStorage) -> None:
    cat = storage.create_keyword("кот", category="животные", is_phrase=False)
    phrase = storage.create_keyword("черный кот", category=None, is_phrase=True)

    assert storage.get_keyword_by_word("кот").id == cat.id
    assert storage.get_keyword_by_word("пес") is None
    assert {k.word for k in storage.find_keywords_by_words(["кот", "пес"])} == {"кот"}
    assert storage.find_keywords_by_words([]) == []

    updated = storage.update_keyword(phrase.id, category="фразы", is_phrase=False)
    assert updated.category == "фразы"
    assert updated.is_phrase is False
    assert storage.update_keyword(999, category=None, is_phrase=False) is None

    assert [k.word for k in storage.list_keywords()] == ["кот", "черный кот"]
    assert [k.word for k in storage.list_keywords(search="ФРАЗ")] == ["черный кот"]
    assert [k.word for k in storage.list_keywords(search="живот")] == ["кот"]

    assert storage.delete_keyword(cat.id) is True
    assert storage.delete_keyword(cat.id) is False


def test_comment_and_post_upserts(storage: MatchStorage, make_comment, make_post) -> None:
    first_id = storage.upsert_comment(make_comment("первый", vk_comment_id=1), source=CommentSource.TASK)
    second_id = storage.upsert_comment(make_comment("второй", vk_comment_id=2), source=CommentSource.TASK)
    other_id = storage.upsert_comment(make_comment("чужой", vk_comment_id=3, post_id=2), source=CommentSource.TASK)

    same_id = storage.upsert_comment(make_comment("первый, исправлен", vk_comment_id=1), source=CommentSource.TASK)
    assert same_id == first_id

    assert storage.count_comments() == 3
    assert storage.comments_for_post(-100, 1) == [first_id, second_id]
    assert storage.comments_for_post(-100, 2) == [other_id]
    assert [c.text for c in storage.comments_window(0, 2)] == ["первый, исправлен", "второй"]
    assert [c.id for c in storage.comments_window(2, 2)] == [other_id]

    post_id = storage.upsert_post(make_post("пост"))
    assert storage.upsert_post(make_post("пост, исправлен")) == post_id
    assert storage.count_posts() == 1
    assert storage.find_post(-100, 1).text == "пост, исправлен"
    assert storage.find_post(-100, 5) is None
    assert [p.vk_post_id for p in storage.posts_window(0, 10)] == [1]


def test_match_rows(storage: MatchStorage, make_comment) -> None:
    keyword = storage.create_keyword("кот", category=None, is_phrase=False)
    other = storage.create_keyword("пес", category=None, is_phrase=False)
    comment_id = storage.upsert_comment(make_comment("кот"), source=CommentSource.TASK)

    storage.create_matches([
        MatchRow(comment_id, keyword.id, MatchSource.COMMENT),
        MatchRow(comment_id, keyword.id, MatchSource.COMMENT),
        MatchRow(comment_id, keyword.id, MatchSource.POST),
        MatchRow(comment_id, other.id, MatchSource.POST),
    ])
    storage.create_matches([MatchRow(comment_id, keyword.id, MatchSource.COMMENT)])

    assert len(storage.list_matches()) == 3
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [keyword.id]
    assert sorted(storage.existing_post_matches([comment_id])) == [
        (comment_id, keyword.id),
        (comment_id, other.id),
    ]
    assert storage.existing_post_matches([]) == []

    storage.delete_matches(comment_id, MatchSource.POST, [other.id])
    assert storage.existing_post_matches([comment_id]) == [(comment_id, keyword.id)]

    storage.apply_match_changes(
        to_delete=[MatchRow(comment_id, keyword.id, MatchSource.COMMENT)],
        to_create=[MatchRow(comment_id, other.id, MatchSource.COMMENT)],
    )
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [other.id]

    storage.delete_matches_for_comments([comment_id], MatchSource.POST)
    assert storage.list_matches(comment_id) == [MatchRow(comment_id, other.id, MatchSource.COMMENT)]


def test_deleting_keywords_removes_their_matches(storage: MatchStorage, make_comment) -> None:
    cat = storage.create_keyword("кот", category=None, is_phrase=False)
    dog = storage.create_keyword("пес", category=None, is_phrase=False)
    comment_id = storage.upsert_comment(make_comment("кот и пес"), source=CommentSource.TASK)
    storage.create_matches([
        MatchRow(comment_id, cat.id, MatchSource.COMMENT),
        MatchRow(comment_id, dog.id, MatchSource.COMMENT),
    ])

    storage.delete_keyword(cat.id)
    assert storage.list_matches() == [MatchRow(comment_id, dog.id, MatchSource.COMMENT)]

    assert storage.delete_all_keywords() == 1
    assert storage.list_matches() == []
    assert storage.list_keywords() == []


def test_recalculation_against_database(storage: MatchStorage, make_comment, make_post) -> None:
    cat = storage.create_keyword("кот", category=None, is_phrase=False)
    sale = storage.create_keyword("продам", category=None, is_phrase=True)
    for text in ["Котики!", "закот", None]:
        storage.upsert_comment(make_comment(text), source=CommentSource.TASK)
    storage.upsert_post(make_post("Продам диван"))

    stats = KeywordMatchReconciler(storage, batch_size=2).recalculate()

    comment_ids = storage.comments_for_post(-100, 1)
    assert stats.to_dict() == {"processed": 3, "updated": 2, "created": 4, "deleted": 0}
    assert storage.existing_matches(comment_ids[0], MatchSource.COMMENT) == [cat.id]
    assert sorted(storage.existing_post_matches(comment_ids)) == [(i, sale.id) for i in comment_ids]

    again = KeywordMatchReconciler(storage, batch_size=2).recalculate()
    assert again.to_dict() == {"processed": 3, "updated": 0, "created": 0, "deleted": 0}


def test_ping(storage: MatchStorage) -> None:
    storage.ping()


def test_failed_keyword_delete_rolls_back(storage: MatchStorage, monkeypatch) -> None:
    keyword = storage.create_keyword("кот", category=None, is_phrase=False)
    session = storage.get_session()
    rollbacks = []
    original_rollback = session.rollback

    def failing_commit() -> None:
        raise OperationalError("DELETE FROM keywords", {}, Exception("connection lost"))

    def tracking_rollback() -> None:
        rollbacks.append(True)
        original_rollback()

    with monkeypatch.context() as patch:
        patch.setattr(session, "commit", failing_commit)
        patch.setattr(session, "rollback", tracking_rollback)
        patch.setattr(storage, "get_session", lambda: session)
        with pytest.raises(OperationalError):
            storage.delete_keyword(keyword.id)

    assert rollbacks == [True]
    assert storage.get_keyword_by_word("кот") is not None

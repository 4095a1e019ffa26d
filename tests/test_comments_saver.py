from __future__ import annotations

from core.state import CommentSource, MatchRow, MatchSource
from modules.comments.saver import CommentsSaver, serialize_comment
from modules.database.storage import MatchStorage
from modules.matching.candidates import compile_candidates


def test_saving_comment_records_its_matches(storage: MatchStorage, make_comment) -> None:
    cat = storage.create_keyword("кот", category=None, is_phrase=False)
    storage.create_keyword("пес", category=None, is_phrase=False)
    saver = CommentsSaver(storage)

    assert saver.save_comments([make_comment("Мой кот спит", vk_comment_id=1)]) == 1

    comment_id = storage.comments_for_post(-100, 1)[0]
    assert storage.list_matches(comment_id) == [MatchRow(comment_id, cat.id, MatchSource.COMMENT)]


def test_edited_comment_replaces_matches(storage: MatchStorage, make_comment) -> None:
    storage.create_keyword("кот", category=None, is_phrase=False)
    dog = storage.create_keyword("пес", category=None, is_phrase=False)
    saver = CommentsSaver(storage)

    saver.save_comments([make_comment("кот", vk_comment_id=1)])
    saver.save_comments([make_comment("пес", vk_comment_id=1)])

    comment_id = storage.comments_for_post(-100, 1)[0]
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [dog.id]

    saver.save_comments([make_comment("", vk_comment_id=1)])
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == []


def test_thread_items_are_saved(storage: MatchStorage, make_comment) -> None:
    cat = storage.create_keyword("кот", category=None, is_phrase=False)
    saver = CommentsSaver(storage)

    reply = make_comment("ответ про кота", vk_comment_id=2, reply_to_comment=1)
    root = make_comment("вопрос", vk_comment_id=1, thread_count=1, thread_items=[reply])

    assert saver.save_comments([root], source=CommentSource.WATCHLIST, watchlist_author_id=3) == 2

    root_id, reply_id = storage.comments_for_post(-100, 1)
    assert storage.existing_matches(root_id, MatchSource.COMMENT) == []
    assert storage.existing_matches(reply_id, MatchSource.COMMENT) == [cat.id]


def test_post_matches_follow_post_text(storage: MatchStorage, make_comment, make_post) -> None:
    sale = storage.create_keyword("продам", category=None, is_phrase=False)
    saver = CommentsSaver(storage)

    saver.save_comments([make_comment("первый"), make_comment("второй")])
    saver.save_posts([make_post("Продаю велосипед")])
    comment_ids = storage.comments_for_post(-100, 1)
    assert storage.existing_post_matches(comment_ids) == []

    saver.save_posts([make_post("Продам велосипед")])
    assert sorted(storage.existing_post_matches(comment_ids)) == [(i, sale.id) for i in comment_ids]

    saver.save_comments([make_comment("третий")])
    comment_ids = storage.comments_for_post(-100, 1)
    assert len(storage.existing_post_matches(comment_ids)) == 3

    saver.save_posts([make_post("Отдам велосипед")])
    assert storage.existing_post_matches(comment_ids) == []


def test_caller_supplied_candidates(storage: MatchStorage, make_comment) -> None:
    cat = storage.create_keyword("кот", category=None, is_phrase=False)
    dog = storage.create_keyword("пес", category=None, is_phrase=False)
    saver = CommentsSaver(storage)
    only_dogs = compile_candidates([k for k in storage.list_keyword_candidates_source() if k.id == dog.id])

    saver.save_comments([make_comment("кот и пес")], keyword_candidates=only_dogs)

    comment_id = storage.comments_for_post(-100, 1)[0]
    assert storage.existing_matches(comment_id, MatchSource.COMMENT) == [dog.id]
    assert cat.id not in storage.existing_matches(comment_id, MatchSource.COMMENT)


def test_no_keywords_clears_comment_matches(storage: MatchStorage, make_comment) -> None:
    storage.create_keyword("кот", category=None, is_phrase=False)
    saver = CommentsSaver(storage)
    saver.save_comments([make_comment("кот", vk_comment_id=1)])

    saver.save_comments([make_comment("кот", vk_comment_id=1)], keyword_candidates=[])

    assert storage.list_matches() == []


def test_serialize_comment(make_comment) -> None:
    reply = make_comment("ответ", vk_comment_id=2)
    data = serialize_comment(make_comment("вопрос", vk_comment_id=1, thread_items=[reply]))

    assert data["vk_comment_id"] == 1
    assert data["published_at"] == "2025-01-01T12:00:00"
    assert data["thread_items"][0]["text"] == "ответ"
    assert data["thread_items"][0]["thread_items"] is None


def test_post_edited_to_blank_text_drops_post_matches(storage: MatchStorage, make_comment, make_post) -> None:
    storage.create_keyword("кот", category=None, is_phrase=False)
    saver = CommentsSaver(storage)

    saver.save_posts([make_post("кот")])
    saver.save_comments([make_comment("x")])
    assert len(storage.list_matches()) == 1

    saver.save_posts([make_post("   \u00ad ")])

    assert storage.list_matches() == []

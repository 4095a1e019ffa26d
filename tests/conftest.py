from __future__ import annotations

from datetime import datetime

import pytest

from core.state import CommentState, PostState
from modules.database.storage import MatchStorage


@pytest.fixture
def storage() -> MatchStorage:
    storage = MatchStorage("sqlite://")
    storage.create_tables()
    return storage


@pytest.fixture
def make_comment():
    counter = {"next": 1}

    def _make(text, *, owner_id: int = -100, post_id: int = 1, vk_comment_id=None, **kwargs) -> CommentState:
        if vk_comment_id is None:
            vk_comment_id = counter["next"]
            counter["next"] += 1
        return CommentState(
            owner_id=owner_id,
            post_id=post_id,
            vk_comment_id=vk_comment_id,
            from_id=kwargs.pop("from_id", 42),
            text=text,
            published_at=datetime(2025, 1, 1, 12, 0, 0),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_post():
    def _make(text, *, owner_id: int = -100, vk_post_id: int = 1) -> PostState:
        return PostState(owner_id=owner_id, vk_post_id=vk_post_id, text=text)

    return _make

"""
Shared fixtures for the test suite
"""
from datetime import datetime, timezone

import pytest

from application import create_app
from models import Comment


@pytest.fixture
def make_comment():
    """Factory for Comment objects with sensible defaults"""
    counter = {'n': 0}

    def _make(content, replies=None, author='Viewer', like_count=0, comment_id=None):
        counter['n'] += 1
        replies = replies or []
        return Comment(
            id=comment_id or f"c{counter['n']}",
            published_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
            author=author,
            content=content,
            like_count=like_count,
            reply_count=len(replies),
            replies=replies,
        )

    return _make


@pytest.fixture
def app():
    app = create_app('testing')
    return app


@pytest.fixture
def client(app):
    return app.test_client()

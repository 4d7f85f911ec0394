"""Shared fixtures: a fake atproto AsyncClient."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from .factories import PARENT_CID, SELF_DID


@pytest.fixture
def atproto_client():
    """Fake atproto.AsyncClient; every SDK call is an AsyncMock."""
    client = MagicMock()
    client.login = AsyncMock(return_value=SimpleNamespace(did=SELF_DID, handle="me.bsky.social"))
    client.get_timeline = AsyncMock(return_value=SimpleNamespace(feed=[], cursor=None))
    client.get_author_feed = AsyncMock(return_value=SimpleNamespace(feed=[], cursor=None))
    client.get_profile = AsyncMock()
    client.get_follows = AsyncMock(return_value=SimpleNamespace(follows=[], cursor=None))
    client.get_followers = AsyncMock(return_value=SimpleNamespace(followers=[], cursor=None))
    client.get_post_thread = AsyncMock()
    client.send_post = AsyncMock(
        return_value=SimpleNamespace(uri="at://did:plc:me/app.bsky.feed.post/new", cid=PARENT_CID)
    )
    client.upload_blob = AsyncMock()
    client.like = AsyncMock(
        return_value=SimpleNamespace(uri="at://did:plc:me/app.bsky.feed.like/l1", cid=PARENT_CID)
    )
    client.app.bsky.actor.search_actors = AsyncMock(return_value=SimpleNamespace(actors=[], cursor=None))
    return client

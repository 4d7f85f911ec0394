"""Bluesky (AT Protocol) integration module."""

from .client import BlueskyClient
from .models import EmbedKind
from .parser import parse_feed_item

__all__ = [
    "BlueskyClient",
    "EmbedKind",
    "parse_feed_item",
]

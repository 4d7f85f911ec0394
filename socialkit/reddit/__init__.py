"""Reddit OAuth API integration module."""

from .client import RedditClient
from .models import HOME_SORTS, SUBREDDIT_SORTS, RedditUserProfile
from .parser import parse_feed_item

__all__ = [
    "RedditClient",
    "RedditUserProfile",
    "HOME_SORTS",
    "SUBREDDIT_SORTS",
    "parse_feed_item",
]

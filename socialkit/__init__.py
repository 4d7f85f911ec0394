"""socialkit: async Bluesky and Reddit clients with normalized feeds."""

from .bluesky import BlueskyClient
from .core import (
    FollowEntry,
    ImageAttachment,
    Post,
    PostMetrics,
    PostType,
    ProfileCounts,
    ProfileSummary,
    ReplyContext,
    SocialClient,
    WriteResult,
)
from .errors import AuthError, NetworkError, NotFoundError, SocialKitError, ValidationError
from .reddit import RedditClient, RedditUserProfile

__version__ = "1.1.0"

__all__ = [
    "BlueskyClient",
    "RedditClient",
    "SocialClient",
    "Post",
    "PostType",
    "PostMetrics",
    "ImageAttachment",
    "ReplyContext",
    "ProfileSummary",
    "ProfileCounts",
    "FollowEntry",
    "WriteResult",
    "RedditUserProfile",
    "SocialKitError",
    "AuthError",
    "ValidationError",
    "NotFoundError",
    "NetworkError",
]

"""Provider-independent models, pagination and client protocol."""

from .models import (
    FollowEntry,
    ImageAttachment,
    Page,
    Post,
    PostMetrics,
    PostType,
    ProfileCounts,
    ProfileSummary,
    ReplyContext,
    WriteResult,
    parse_post_type,
)
from .pagination import collect, gather_settled
from .protocol import SocialClient

__all__ = [
    "FollowEntry",
    "ImageAttachment",
    "Page",
    "Post",
    "PostMetrics",
    "PostType",
    "ProfileCounts",
    "ProfileSummary",
    "ReplyContext",
    "WriteResult",
    "parse_post_type",
    "SocialClient",
    "collect",
    "gather_settled",
]

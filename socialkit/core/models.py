"""Canonical data models shared by every provider client.

Provider parsers convert their native JSON into these records so callers
can treat a Bluesky post and a Reddit submission the same way.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ValidationError

T = TypeVar("T")


class PostType(str, Enum):
    """How a feed item relates to other posts."""

    POST = "post"
    REPLY = "reply"
    REPOST = "repost"
    QUOTE = "quote"


class ImageAttachment(BaseModel):
    """Image attached to a post."""

    model_config = ConfigDict(frozen=True)

    url: str
    thumb: Optional[str] = None
    alt: str = ""


class ReplyContext(BaseModel):
    """The parent post shown alongside a reply in a feed."""

    model_config = ConfigDict(frozen=True)

    handle: str = ""
    display_name: str = ""
    text: str = ""
    created_at: Optional[datetime] = None
    uri: str = ""


class PostMetrics(BaseModel):
    """Engagement counters; each provider fills the ones it reports."""

    model_config = ConfigDict(frozen=True)

    likes: Optional[int] = None
    reposts: Optional[int] = None
    replies: Optional[int] = None
    quotes: Optional[int] = None
    score: Optional[int] = None
    upvotes: Optional[int] = None
    downvotes: Optional[int] = None
    comments: Optional[int] = None


class Post(BaseModel):
    """Normalized post record."""

    model_config = ConfigDict(frozen=True)

    provider: str
    id: str  # at:// uri on Bluesky, fullname (t3_xxx) on Reddit
    cid: Optional[str] = None
    url: str = ""
    type: PostType = PostType.POST

    handle: str = ""
    display_name: str = ""
    author_id: Optional[str] = None
    avatar: Optional[str] = None

    text: str = ""
    title: Optional[str] = None
    community: Optional[str] = None  # subreddit name
    created_at: Optional[datetime] = None

    reply_to: Optional[ReplyContext] = None
    reposted_by: Optional[str] = None
    images: list[ImageAttachment] = Field(default_factory=list)
    externals: list[str] = Field(default_factory=list)
    metrics: PostMetrics = Field(default_factory=PostMetrics)

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)


class ProfileCounts(BaseModel):
    """Follower / follow / post counters of a profile."""

    model_config = ConfigDict(frozen=True)

    followers: Optional[int] = None
    follows: Optional[int] = None
    posts: Optional[int] = None


class ProfileSummary(BaseModel):
    """Normalized profile record."""

    model_config = ConfigDict(frozen=True)

    id: str
    handle: str
    display_name: str = ""
    description: str = ""
    avatar: Optional[str] = None
    counts: ProfileCounts = Field(default_factory=ProfileCounts)

    # Viewer relationship, None when the provider does not report it
    followed_by: Optional[bool] = None
    following: Optional[bool] = None

    @property
    def is_mutual(self) -> bool:
        return bool(self.followed_by and self.following)


class FollowEntry(ProfileSummary):
    """A profile found while walking a follow/follower list."""

    followed_by: bool = False
    following: bool = False


class WriteResult(BaseModel):
    """Identifiers of a record created by a write operation."""

    model_config = ConfigDict(frozen=True)

    id: str
    cid: Optional[str] = None
    url: Optional[str] = None


class Page(BaseModel, Generic[T]):
    """One page of a cursor-paginated listing."""

    items: list[T] = Field(default_factory=list)
    cursor: Optional[str] = None


def parse_post_type(value: Optional["PostType | str"]) -> Optional[PostType]:
    """Coerce a user-supplied type filter; None means no filter."""
    if value is None or isinstance(value, PostType):
        return value
    try:
        return PostType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in PostType)
        raise ValidationError(f"Invalid post type {value!r}, available values: {allowed}") from None

"""Client protocol definitions.

This module defines the operations both provider clients implement, so callers
can hold either client behind one type.
"""

from typing import Optional, Protocol, Sequence, runtime_checkable

from .models import Post, PostType, ProfileSummary, WriteResult


@runtime_checkable
class SocialClient(Protocol):
    """Protocol for provider clients.

    See BlueskyClient for a reference implementation.
    """

    provider: str
    debug: bool

    # Lifecycle
    async def login(self) -> None:
        """Authenticate and open the session. Raises AuthError on bad credentials."""
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    # Reads
    async def get_timeline(
        self,
        type: Optional[PostType | str] = None,
        limit: int = 10,
        include_self: bool = True,
    ) -> list[Post]:
        """Get the authenticated account's home timeline.

        Args:
            type: Only return posts of this type.
            limit: Maximum number of posts.
            include_self: If False, posts by the authenticated account are skipped.
        """
        ...

    async def get_profile_posts(
        self,
        handle: Optional[str] = None,
        type: PostType | str = PostType.POST,
        limit: int = 10,
    ) -> list[Post]:
        """Get posts authored by a profile (default: the authenticated account)."""
        ...

    async def get_profile(self, handle: Optional[str] = None) -> ProfileSummary:
        """Get a profile summary (default: the authenticated account)."""
        ...

    async def search_users(self, query: str, limit: int = 10) -> list[ProfileSummary]:
        """Search accounts by name or handle."""
        ...

    # Writes
    async def reply_to_post(self, text: str, parent: str) -> WriteResult:
        """Reply to a post. Raises NotFoundError if the parent does not exist."""
        ...

    async def new_post(self, text: str, attachment_urls: Sequence[str] = ()) -> WriteResult:
        """Publish a new post."""
        ...

    async def like_post(self, post: str) -> WriteResult:
        """Like / upvote a post."""
        ...

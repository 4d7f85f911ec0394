"""Bluesky client built on the AT Protocol SDK.

All network work (auth, XRPC calls, cursors) is delegated to
`atproto.AsyncClient`; this module reshapes responses into socialkit models
and drives pagination.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Optional, Sequence

import httpx
import structlog
from atproto import AsyncClient, models
from atproto_client import exceptions as at_exceptions

from ..core.models import (
    FollowEntry,
    Page,
    Post,
    PostType,
    ProfileCounts,
    ProfileSummary,
    WriteResult,
    parse_post_type,
)
from ..core.pagination import collect, gather_settled
from ..errors import AuthError, NetworkError, NotFoundError, ValidationError
from ..utils.config import Settings, get_settings
from ..utils.parsing import as_dict
from .models import MAX_IMAGES, SERVICE_URL
from .parser import parse_feed_item, post_web_url

logger = structlog.get_logger()

# app.bsky.* list endpoints accept at most 100 items per page
MAX_PAGE_SIZE = 100


def _profile_summary(raw: Any) -> ProfileSummary:
    data = as_dict(raw)
    viewer = data.get("viewer") or {}
    return ProfileSummary(
        id=data.get("did") or "",
        handle=data.get("handle") or "",
        display_name=data.get("displayName") or "",
        description=data.get("description") or "",
        avatar=data.get("avatar"),
        counts=ProfileCounts(
            followers=data.get("followersCount"),
            follows=data.get("followsCount"),
            posts=data.get("postsCount"),
        ),
        followed_by=bool(viewer.get("followedBy")) if viewer else None,
        following=bool(viewer.get("following")) if viewer else None,
    )


def _error_code(exc: Exception) -> Optional[str]:
    """XRPC error name (e.g. 'NotFound') carried by an SDK request exception."""
    content = getattr(getattr(exc, "response", None), "content", None)
    error = getattr(content, "error", None)
    if error is None and isinstance(content, dict):
        error = content.get("error")
    if error is None and "NotFound" in str(exc):
        error = "NotFound"
    return error


def _follow_entry(profile: ProfileSummary) -> FollowEntry:
    return FollowEntry(
        **profile.model_dump(exclude={"followed_by", "following"}),
        followed_by=bool(profile.followed_by),
        following=bool(profile.following),
    )


class BlueskyClient:
    """Async client for Bluesky.

    Usage:
        client = BlueskyClient("alice.bsky.social", app_password)
        await client.login()
        posts = await client.get_timeline(type="post", limit=20)
        await client.reply_to_post("Hello!", posts[0].id)
    """

    provider = "bluesky"

    def __init__(
        self,
        handle: str,
        password: str,
        debug: bool = False,
        service_url: str = SERVICE_URL,
        page_size: int = 50,
        timeout: float = 30.0,
        client: Optional[AsyncClient] = None,
    ):
        self.handle = handle
        self.password = password
        self.debug = debug
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        self.timeout = timeout
        self._client = client or AsyncClient(base_url=service_url)
        self._did: Optional[str] = None
        self._log = logger.bind(provider=self.provider)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "BlueskyClient":
        """Create a client from environment configuration."""
        settings = settings or get_settings()
        return cls(
            handle=settings.bluesky_handle,
            password=settings.bluesky_password,
            debug=settings.debug,
            service_url=settings.bluesky_service_url,
            page_size=settings.page_size,
            timeout=settings.request_timeout,
            **kwargs,
        )

    # =========================================================================
    # Session
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        return self._did is not None

    @property
    def did(self) -> Optional[str]:
        """DID of the logged-in account."""
        return self._did

    async def login(self) -> None:
        """Log in with handle + app password.

        Raises:
            AuthError: The credentials were rejected.
            NetworkError: The service could not be reached.
        """
        try:
            profile = await self._client.login(self.handle, self.password)
        except (at_exceptions.UnauthorizedError, at_exceptions.BadRequestError) as e:
            raise AuthError(f"Bluesky login failed for {self.handle}", status_code=401) from e
        except at_exceptions.AtProtocolError as e:
            raise NetworkError(f"Bluesky login failed: {e}") from e

        self._did = profile.did
        self._log.info("bluesky_login", handle=self.handle, did=self._did)

    def _require_session(self, operation: str) -> str:
        if self._did is None:
            raise AuthError(f"You must be logged in to use {operation}()")
        return self._did

    def _trace(self, event: str, **kw: Any) -> None:
        if self.debug:
            self._log.info(event, **kw)

    async def _call(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        """Await an SDK call, translating SDK exceptions."""
        try:
            return await awaitable
        except at_exceptions.UnauthorizedError as e:
            raise AuthError(f"{operation}: session rejected", status_code=401) from e
        except at_exceptions.BadRequestError as e:
            if _error_code(e) == "NotFound":
                raise NotFoundError(f"{operation}: not found", status_code=400) from e
            raise NetworkError(f"{operation} failed: {e}", status_code=400) from e
        except at_exceptions.AtProtocolError as e:
            raise NetworkError(f"{operation} failed: {e}") from e

    # =========================================================================
    # Feeds
    # =========================================================================

    async def get_timeline(
        self,
        type: Optional[PostType | str] = None,
        limit: int = 10,
        include_self: bool = True,
    ) -> list[Post]:
        """Fetch the authenticated account's home timeline.

        Args:
            type: If specified, only posts of this type are returned.
            limit: Maximum number of posts to return.
            include_self: If False, posts by the authenticated account are excluded.
        """
        post_type = parse_post_type(type)
        self_did = self._require_session("get_timeline")

        async def fetch(cursor: Optional[str]) -> Page:
            resp = await self._call("get_timeline", self._client.get_timeline(cursor=cursor, limit=self.page_size))
            return Page(items=list(resp.feed or []), cursor=resp.cursor)

        def accept(post: Post) -> bool:
            if post_type and post.type is not post_type:
                return False
            return include_self or post.author_id != self_did

        return await collect(
            fetch, limit, normalize=parse_feed_item, accept=accept, label="timeline", debug=self.debug
        )

    async def get_profile_posts(
        self,
        handle: Optional[str] = None,
        type: PostType | str = PostType.POST,
        limit: int = 10,
    ) -> list[Post]:
        """Get posts from a profile, or from the logged-in user.

        Args:
            handle: Handle or DID of the profile (default: the logged-in user).
            type: Type of posts to return; None returns every type.
            limit: Maximum number of posts to return.
        """
        post_type = parse_post_type(type)
        self_did = self._require_session("get_profile_posts")
        actor = handle or self_did

        async def fetch(cursor: Optional[str]) -> Page:
            resp = await self._call(
                "get_author_feed",
                self._client.get_author_feed(actor=actor, cursor=cursor, limit=self.page_size),
            )
            return Page(items=list(resp.feed or []), cursor=resp.cursor)

        return await collect(
            fetch,
            limit,
            normalize=parse_feed_item,
            accept=lambda post: post_type is None or post.type is post_type,
            label=f"author_feed:{actor}",
            debug=self.debug,
        )

    # =========================================================================
    # Profiles
    # =========================================================================

    async def get_profile(self, handle: Optional[str] = None) -> ProfileSummary:
        """Get a profile summary (default: the logged-in user)."""
        self_did = self._require_session("get_profile")
        actor = handle or self_did

        profile = await self._call("get_profile", self._client.get_profile(actor))
        return _profile_summary(profile)

    async def search_users(self, query: str, limit: int = 10) -> list[ProfileSummary]:
        """Search accounts matching `query`."""
        if not query:
            raise ValidationError("search_users() needs a non-empty query")
        self._require_session("search_users")

        async def fetch(cursor: Optional[str]) -> Page:
            params: dict[str, Any] = {"q": query, "limit": min(limit, MAX_PAGE_SIZE)}
            if cursor:
                params["cursor"] = cursor
            resp = await self._call("search_actors", self._client.app.bsky.actor.search_actors(params=params))
            return Page(items=list(resp.actors or []), cursor=resp.cursor)

        return await collect(fetch, limit, normalize=_profile_summary, label="search_actors", debug=self.debug)

    async def _lookup_follow_entries(self, profiles: list[Any]) -> list[FollowEntry]:
        """Fetch full profiles for one page concurrently; failed lookups are dropped."""
        actors = []
        for raw in profiles:
            data = as_dict(raw)
            actor = data.get("did") or data.get("handle")
            if actor:
                actors.append(actor)

        results, failures = await gather_settled(self.get_profile(actor) for actor in actors)
        for failure in failures:
            self._log.warning("profile_lookup_failed", error=str(failure))

        self._trace("profiles_resolved", requested=len(actors), resolved=len(results))
        return [_follow_entry(profile) for profile in results]

    async def _collect_graph(
        self,
        operation: str,
        actor: str,
        limit: int,
        mutual: Optional[bool] = None,
    ) -> list[FollowEntry]:
        async def fetch(cursor: Optional[str]) -> Page:
            if operation == "get_followers":
                resp = await self._call(operation, self._client.get_followers(actor, cursor=cursor, limit=self.page_size))
                raw = resp.followers
            else:
                resp = await self._call(operation, self._client.get_follows(actor, cursor=cursor, limit=self.page_size))
                raw = resp.follows

            return Page(items=list(raw or []), cursor=resp.cursor)

        def accept(entry: FollowEntry) -> bool:
            return mutual is None or entry.followed_by is mutual

        return await collect(
            fetch,
            limit,
            resolve_page=self._lookup_follow_entries,
            accept=accept,
            label=f"{operation}:{actor}",
            debug=self.debug,
        )

    async def get_follows(self, handle: Optional[str] = None, limit: int = 100) -> list[FollowEntry]:
        """Accounts followed by `handle` (default: the logged-in user)."""
        self_did = self._require_session("get_follows")
        actor = handle or self_did
        return await self._collect_graph("get_follows", actor, limit)

    async def get_followers(self, handle: Optional[str] = None, limit: int = 100) -> list[FollowEntry]:
        """Accounts following `handle` (default: the logged-in user)."""
        self_did = self._require_session("get_followers")
        actor = handle or self_did
        return await self._collect_graph("get_followers", actor, limit)

    async def get_non_mutual_follows(self, limit: int = 100) -> list[FollowEntry]:
        """Accounts the logged-in user follows that do not follow back."""
        actor = self._require_session("get_non_mutual_follows")
        return await self._collect_graph("get_follows", actor, limit, mutual=False)

    # =========================================================================
    # Publishing
    # =========================================================================

    async def _resolve_post(self, operation: str, uri: str) -> Any:
        """Look up a post view (uri + cid) by its at:// uri."""
        resp = await self._call(operation, self._client.get_post_thread(uri=uri, depth=0))
        post = getattr(getattr(resp, "thread", None), "post", None)
        if post is None:
            raise NotFoundError(f"Post not found: {uri}")
        return post

    def _write_result(self, resp: Any) -> WriteResult:
        return WriteResult(id=resp.uri, cid=resp.cid, url=post_web_url(self.handle, resp.uri))

    async def reply_to_post(self, text: str, parent_uri: str) -> WriteResult:
        """Reply to a specific post.

        The parent is also used as the thread root, so replies to a post that
        is itself a reply are attached as if the parent started the thread.

        Args:
            text: The reply text to send.
            parent_uri: The at:// URI of the post being replied to.

        Raises:
            NotFoundError: The parent post does not exist.
        """
        self._require_session("reply_to_post")

        try:
            parent = await self._resolve_post("reply_to_post", parent_uri)
        except NotFoundError:
            raise NotFoundError("Parent post not found", status_code=404) from None

        # TODO: resolve the real root from parent.record.reply.root for deep threads
        ref = models.ComAtprotoRepoStrongRef.Main(uri=parent.uri, cid=parent.cid)
        reply_to = models.AppBskyFeedPost.ReplyRef(parent=ref, root=ref)

        resp = await self._call("send_post", self._client.send_post(text=text, reply_to=reply_to))
        self._log.info("reply_created", uri=resp.uri, parent=parent_uri)
        return self._write_result(resp)

    async def _load_image(self, http: httpx.AsyncClient, location: str) -> Any:
        """Fetch an image (URL or local path) and upload it as a blob."""
        if location.startswith(("http://", "https://")):
            resp = await http.get(location)
            resp.raise_for_status()
            data = resp.content
        else:
            data = await asyncio.to_thread(Path(location).read_bytes)

        uploaded = await self._call("upload_blob", self._client.upload_blob(data))
        return uploaded.blob

    async def new_post(self, text: str, attachment_urls: Sequence[str] = ()) -> WriteResult:
        """Publish a new post, optionally with up to four images.

        Images are fetched and uploaded concurrently; an image that fails is
        skipped and the post is published with the rest.
        """
        if len(attachment_urls) > MAX_IMAGES:
            raise ValidationError(f"Bluesky accepts at most {MAX_IMAGES} images per post")
        self._require_session("new_post")

        embed = None
        if attachment_urls:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as http:
                blobs, failures = await gather_settled(self._load_image(http, url) for url in attachment_urls)

            for failure in failures:
                self._log.warning("image_upload_failed", error=str(failure))

            if blobs:
                embed = models.AppBskyEmbedImages.Main(
                    images=[models.AppBskyEmbedImages.Image(alt="", image=blob) for blob in blobs]
                )

        resp = await self._call("send_post", self._client.send_post(text=text, embed=embed))
        self._log.info("post_created", uri=resp.uri, images=len(embed.images) if embed else 0)
        return self._write_result(resp)

    async def like_post(self, post_uri: str) -> WriteResult:
        """Like a post by its at:// URI."""
        self._require_session("like_post")

        post = await self._resolve_post("like_post", post_uri)
        resp = await self._call("like", self._client.like(uri=post.uri, cid=post.cid))
        self._trace("post_liked", uri=post_uri)
        return WriteResult(id=resp.uri, cid=resp.cid)

    # =========================================================================
    # Utils
    # =========================================================================

    @staticmethod
    def parse_feed_item(item: Any) -> Optional[Post]:
        """Clean and normalize a feed item; None if it carries no post."""
        return parse_feed_item(item)


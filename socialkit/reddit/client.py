"""Reddit OAuth API client.

Uses the "script" app password grant:
https://github.com/reddit-archive/reddit/wiki/OAuth2

Listings are paginated with the `after` fullname returned in each page.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import httpx
import structlog

from ..core.models import Page, Post, PostType, ProfileSummary, WriteResult, parse_post_type
from ..core.pagination import collect
from ..errors import AuthError, NetworkError, NotFoundError, SocialKitError, ValidationError
from ..utils.config import Settings, get_settings
from ..utils.parsing import dig
from .models import (
    HOME_SORTS,
    MAX_PAGE_SIZE,
    OAUTH_URL,
    SUBREDDIT_SORTS,
    TOKEN_URL,
    USER_AGENT,
    WEB_URL,
    RedditUserProfile,
)
from .parser import parse_account, parse_feed_item, parse_me

logger = structlog.get_logger()


def _validate_sort(sort: str, allowed: Sequence[str]) -> str:
    if sort not in allowed:
        raise ValidationError(f"Invalid sort, available values: {', '.join(allowed)}")
    return sort


class RedditClient:
    """Async client for the Reddit API.

    Usage:
        async with RedditClient(client_id, client_secret, username, password) as client:
            posts = await client.get_subreddit_feed("python", limit=25, sort="new")
            await client.reply_to_post("Nice!", posts[0].id)
    """

    provider = "reddit"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        username: str,
        password: str,
        debug: bool = False,
        user_agent: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.debug = debug
        self.user_agent = user_agent or f"{USER_AGENT} by {username}"
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        self.timeout = timeout
        self._transport = transport
        self._token: Optional[str] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._log = logger.bind(provider=self.provider)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "RedditClient":
        """Create a client from environment configuration."""
        settings = settings or get_settings()
        return cls(
            client_id=settings.reddit_client_id,
            client_secret=settings.reddit_client_secret,
            username=settings.reddit_username,
            password=settings.reddit_password,
            debug=settings.debug,
            user_agent=settings.reddit_user_agent or None,
            page_size=min(settings.page_size, MAX_PAGE_SIZE),
            timeout=settings.request_timeout,
            **kwargs,
        )

    # =========================================================================
    # Session
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    async def login(self) -> None:
        """Log in to the Reddit account associated with this client.

        Raises:
            AuthError: The credentials were rejected (bad username/password/app keys).
            NetworkError: Reddit could not be reached.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http:
                response = await http.post(
                    TOKEN_URL,
                    auth=(self.client_id, self.client_secret),
                    data={
                        "grant_type": "password",
                        "username": self.username,
                        "password": self.password,
                    },
                    headers={"User-Agent": self.user_agent},
                )
        except httpx.HTTPError as e:
            raise NetworkError(f"Reddit login failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(f"Reddit login failed for {self.username}", status_code=response.status_code)
        if response.status_code >= 400:
            raise NetworkError("Reddit login failed", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError("Reddit login returned a non-JSON body", status_code=response.status_code) from e

        token = payload.get("access_token")
        if not token:
            # Reddit answers bad passwords with 200 {"error": "invalid_grant"}
            raise AuthError(
                f"Reddit login failed for {self.username}",
                status_code=response.status_code,
                error_code=payload.get("error"),
            )

        await self.close()
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=OAUTH_URL,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": self.user_agent,
            },
        )
        self._log.info("reddit_login", username=self.username)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RedditClient":
        await self.login()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _require_session(self, operation: str) -> httpx.AsyncClient:
        if self._client is None:
            raise AuthError(f"You must be logged in to use {operation}()")
        return self._client

    def _trace(self, event: str, **kw: Any) -> None:
        if self.debug:
            self._log.info(event, **kw)

    async def _request(
        self,
        operation: str,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> Any:
        """Make an API request with error handling."""
        client = self._require_session(operation)
        params = {"raw_json": 1, **(params or {})}

        logger.debug("reddit_api_request", method=method, endpoint=endpoint)

        try:
            response = await client.request(method, endpoint, params=params, data=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise AuthError(f"{operation}: access denied", status_code=status) from e
            if status == 404:
                raise NotFoundError(f"{operation}: not found", status_code=status) from e
            raise NetworkError(f"{operation} failed: {e}", status_code=status) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{operation} failed: {e}") from e

        try:
            body = response.json() if response.content else {}
        except ValueError as e:
            raise NetworkError(f"{operation}: response is not JSON", status_code=response.status_code) from e

        errors = dig(body, "json", "errors", default=[])
        if errors:
            code, message = (errors[0] + [None, None])[:2]
            raise SocialKitError(message or code, status_code=response.status_code, error_code=code)
        return body

    async def _collect_listing(
        self,
        operation: str,
        endpoint: str,
        limit: int,
        post_type: Optional[PostType] = None,
        include_self: bool = True,
        params: Optional[dict] = None,
    ) -> list[Post]:
        async def fetch(cursor: Optional[str]) -> Page:
            query = {**(params or {}), "limit": min(self.page_size, max(limit, 1))}
            if cursor:
                query["after"] = cursor
            body = await self._request(operation, "GET", endpoint, params=query)
            return Page(items=dig(body, "data", "children", default=[]), cursor=dig(body, "data", "after"))

        def accept(post: Post) -> bool:
            if post_type and post.type is not post_type:
                return False
            return include_self or post.handle.lower() != self.username.lower()

        return await collect(fetch, limit, normalize=parse_feed_item, accept=accept, label=endpoint, debug=self.debug)

    # =========================================================================
    # Feeds
    # =========================================================================

    async def get_home_feed(self, limit: int = 10, sort: str = "best") -> list[Post]:
        """Fetch the home feed of the logged-in user.

        Args:
            limit: The maximum number of posts to return.
            sort: One of 'best', 'hot' or 'new'.
        """
        _validate_sort(sort, HOME_SORTS)
        self._require_session("get_home_feed")
        return await self._collect_listing("get_home_feed", f"/{sort}", limit)

    async def get_subreddit_feed(self, subreddit: str, limit: int = 10, sort: str = "hot") -> list[Post]:
        """Fetch the feed of a subreddit.

        Args:
            subreddit: Subreddit name, with or without the `r/` prefix.
            limit: The maximum number of posts to return.
            sort: One of 'top', 'hot', 'new' or 'controversial'.
        """
        _validate_sort(sort, SUBREDDIT_SORTS)
        self._require_session("get_subreddit_feed")
        name = subreddit.removeprefix("/").removeprefix("r/")
        return await self._collect_listing("get_subreddit_feed", f"/r/{name}/{sort}", limit)

    async def get_timeline(
        self,
        type: Optional[PostType | str] = None,
        limit: int = 10,
        include_self: bool = True,
    ) -> list[Post]:
        """Home feed ('best') filtered like BlueskyClient.get_timeline."""
        post_type = parse_post_type(type)
        self._require_session("get_timeline")
        return await self._collect_listing("get_timeline", "/best", limit, post_type, include_self)

    async def get_profile_posts(
        self,
        username: Optional[str] = None,
        type: PostType | str = PostType.POST,
        limit: int = 10,
    ) -> list[Post]:
        """Submissions and comments of a user (comments classify as replies)."""
        post_type = parse_post_type(type)
        self._require_session("get_profile_posts")
        name = username or self.username
        return await self._collect_listing("get_profile_posts", f"/user/{name}/overview", limit, post_type)

    # =========================================================================
    # Profiles
    # =========================================================================

    async def get_user_profile(self) -> RedditUserProfile:
        """Fetch the profile of the logged-in Reddit user (karma, age, icon...)."""
        data = await self._request("get_user_profile", "GET", "/api/v1/me")
        return parse_me(data)

    async def get_profile(self, username: Optional[str] = None) -> ProfileSummary:
        """Public profile summary of a user (default: the logged-in user)."""
        self._require_session("get_profile")
        name = username or self.username
        data = await self._request("get_profile", "GET", f"/user/{name}/about")
        profile = parse_account(data)
        if profile is None:
            raise NotFoundError(f"User not found: {name}", status_code=404)
        return profile

    async def search_users(self, query: str, limit: int = 10) -> list[ProfileSummary]:
        """Search Reddit accounts."""
        if not query:
            raise ValidationError("search_users() needs a non-empty query")
        self._require_session("search_users")

        async def fetch(cursor: Optional[str]) -> Page:
            params: dict[str, Any] = {"q": query, "limit": min(self.page_size, limit)}
            if cursor:
                params["after"] = cursor
            body = await self._request("search_users", "GET", "/users/search", params=params)
            return Page(items=dig(body, "data", "children", default=[]), cursor=dig(body, "data", "after"))

        return await collect(fetch, limit, normalize=parse_account, label="users_search", debug=self.debug)

    # =========================================================================
    # Publishing
    # =========================================================================

    async def _resolve_thing(self, operation: str, fullname: str) -> dict[str, Any]:
        body = await self._request(operation, "GET", "/api/info", params={"id": fullname})
        children = dig(body, "data", "children", default=[])
        if not children:
            raise NotFoundError(f"Post not found: {fullname}", status_code=404)
        return children[0].get("data") or {}

    async def reply_to_post(self, text: str, parent_id: str) -> WriteResult:
        """Comment on a post or reply to a comment.

        Args:
            text: Markdown body of the comment.
            parent_id: Fullname of the parent (t3_xxx post or t1_xxx comment).

        Raises:
            NotFoundError: The parent does not exist.
        """
        self._require_session("reply_to_post")
        try:
            parent = await self._resolve_thing("reply_to_post", parent_id)
        except NotFoundError:
            raise NotFoundError("Parent post not found", status_code=404) from None

        body = await self._request(
            "reply_to_post",
            "POST",
            "/api/comment",
            data={"api_type": "json", "thing_id": parent.get("name") or parent_id, "text": text},
        )
        comment = (dig(body, "json", "data", "things", default=[]) or [{}])[0].get("data") or {}
        self._log.info("reply_created", id=comment.get("name"), parent=parent_id)
        return WriteResult(
            id=comment.get("name") or "",
            url=f"{WEB_URL}{comment['permalink']}" if comment.get("permalink") else None,
        )

    async def new_post(
        self,
        text: str,
        attachment_urls: Sequence[str] = (),
        subreddit: Optional[str] = None,
        title: Optional[str] = None,
    ) -> WriteResult:
        """Submit a self post.

        Args:
            text: Markdown body.
            attachment_urls: Links appended to the body, one per line.
            subreddit: Target subreddit (default: the user's profile, u_<name>).
            title: Post title (default: first line of `text`).
        """
        self._require_session("new_post")

        lines = text.strip().splitlines()
        title = title or (lines[0][:300] if lines else "")
        if not title:
            raise ValidationError("new_post() needs a title or non-empty text")

        body_text = "\n\n".join([text, *attachment_urls]) if attachment_urls else text
        body = await self._request(
            "new_post",
            "POST",
            "/api/submit",
            data={
                "api_type": "json",
                "kind": "self",
                "sr": subreddit or f"u_{self.username}",
                "title": title,
                "text": body_text,
            },
        )
        data = dig(body, "json", "data", default={})
        self._log.info("post_created", id=data.get("name"), subreddit=subreddit)
        return WriteResult(id=data.get("name") or data.get("id") or "", url=data.get("url"))

    async def like_post(self, post_id: str) -> WriteResult:
        """Upvote a post or comment by fullname."""
        self._require_session("like_post")
        await self._request("like_post", "POST", "/api/vote", data={"id": post_id, "dir": 1})
        self._trace("post_upvoted", id=post_id)
        return WriteResult(id=post_id)

    # =========================================================================
    # Utils
    # =========================================================================

    @staticmethod
    def parse_feed_item(item: Any) -> Optional[Post]:
        """Parse a Reddit listing child; None if it carries no data."""
        return parse_feed_item(item)

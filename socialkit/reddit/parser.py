"""Normalize Reddit listing children (t3 links, t1 comments) into Posts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from ..core.models import ImageAttachment, Post, PostMetrics, PostType, ProfileCounts, ProfileSummary
from ..utils.parsing import dig, parse_epoch
from .models import KIND_COMMENT, KIND_LINK, WEB_URL, RedditUserProfile

logger = structlog.get_logger()


def classify(kind: Optional[str], data: dict[str, Any]) -> PostType:
    """Crossposts count as reposts, comments as replies."""
    if data.get("crosspost_parent"):
        return PostType.REPOST
    if kind == KIND_COMMENT:
        return PostType.REPLY
    return PostType.POST


def extract_attachments(data: dict[str, Any]) -> tuple[list[ImageAttachment], list[str]]:
    """Images from image posts and galleries; link posts yield their URL."""
    images: list[ImageAttachment] = []
    externals: list[str] = []

    if data.get("is_gallery"):
        metadata = data.get("media_metadata") or {}
        for entry in (dig(data, "gallery_data", "items", default=[]) or []):
            media = metadata.get(entry.get("media_id")) or {}
            url = dig(media, "s", "u") or dig(media, "s", "gif")
            if url:
                images.append(ImageAttachment(url=url, alt=entry.get("caption") or ""))
        return images, externals

    url = data.get("url_overridden_by_dest") or data.get("url")
    if data.get("post_hint") == "image" and url:
        thumb = data.get("thumbnail")
        images.append(ImageAttachment(url=url, thumb=thumb if thumb and thumb.startswith("http") else None))
    elif url and not data.get("is_self") and data.get("name", "").startswith(f"{KIND_LINK}_"):
        externals.append(url)

    return images, externals


def parse_feed_item(item: Any) -> Optional[Post]:
    """Parse a Reddit listing child.

    Args:
        item: `{"kind": "t3", "data": {...}}` from a listing.

    Returns:
        The normalized Post, or None when the child carries no data.
    """
    try:
        return _parse(item)
    except Exception as exc:  # noqa: BLE001
        logger.debug("reddit_feed_item_invalid", error=str(exc))
        return None


def _parse(item: Any) -> Optional[Post]:
    if not isinstance(item, dict):
        return None
    data = item.get("data")
    if not isinstance(data, dict) or not data.get("name"):
        return None

    kind = item.get("kind")
    images, externals = extract_attachments(data)
    permalink = data.get("permalink") or ""

    return Post(
        provider="reddit",
        id=data["name"],
        url=f"{WEB_URL}{permalink}" if permalink else data.get("url") or "",
        type=classify(kind, data),
        handle=data.get("author") or "",
        display_name=data.get("author") or "",
        author_id=data.get("author_fullname"),
        text=data.get("selftext") or data.get("body") or "",
        title=data.get("title") or data.get("link_title"),
        community=data.get("subreddit"),
        created_at=parse_epoch(data.get("created_utc")),
        images=images,
        externals=externals,
        metrics=PostMetrics(
            score=data.get("score"),
            upvotes=data.get("ups"),
            downvotes=data.get("downs"),
            comments=data.get("num_comments"),
        ),
        raw=item,
    )


def parse_account(item: Any) -> Optional[ProfileSummary]:
    """Parse a t2 account (from /user/{name}/about or /users/search)."""
    data = item.get("data") if isinstance(item, dict) and "data" in item else item
    if not isinstance(data, dict) or not data.get("name"):
        return None

    subreddit = data.get("subreddit") or {}
    return ProfileSummary(
        id=data.get("id") or "",
        handle=data["name"],
        display_name=subreddit.get("title") or data["name"],
        description=subreddit.get("public_description") or "",
        avatar=data.get("icon_img"),
        counts=ProfileCounts(followers=subreddit.get("subscribers")),
        following=data.get("is_friend"),
    )


def parse_me(data: dict[str, Any], now: Optional[datetime] = None) -> RedditUserProfile:
    """Build the authenticated user's profile from /api/v1/me."""
    subreddit = data.get("subreddit") or {}
    created_at = parse_epoch(data.get("created_utc"))
    now = now or datetime.now(timezone.utc)

    return RedditUserProfile(
        id=data.get("id") or "",
        name=data.get("name") or "",
        title=subreddit.get("title") or "",
        description=subreddit.get("public_description") or "",
        comment_karma=data.get("comment_karma") or 0,
        post_karma=data.get("link_karma") or 0,
        karma=data.get("total_karma") or 0,
        created_at=created_at,
        day_age=(now - created_at).days if created_at else None,
        is_gold=bool(data.get("is_gold")),
        verified=bool(data.get("verified")),
        icon=data.get("icon_img"),
        banner=subreddit.get("banner_img"),
        url=f"{WEB_URL}{subreddit['url']}" if subreddit.get("url") else None,
    )

"""Normalize Bluesky feed items (app.bsky.feed.defs#feedViewPost) into Posts."""

from __future__ import annotations

from typing import Any, Optional

import structlog

from ..core.models import ImageAttachment, Post, PostMetrics, PostType, ReplyContext
from ..utils.parsing import as_dict, dig, parse_timestamp
from .models import REASON_REPOST, WEB_URL, EmbedKind

logger = structlog.get_logger()


def classify(item: dict[str, Any]) -> PostType:
    """Classify a feed item. Reposts win over the reply/quote shape of the post."""
    post = item.get("post") or {}

    if dig(item, "reason", "$type") == REASON_REPOST:
        return PostType.REPOST
    if dig(post, "record", "reply", "parent"):
        return PostType.REPLY
    if EmbedKind.of(post.get("embed")).is_quote:
        return PostType.QUOTE
    return PostType.POST


def extract_attachments(embed: Any) -> tuple[list[ImageAttachment], list[str]]:
    """Pull images and external link URLs out of an embed view.

    recordWithMedia is unwrapped one level to reach its media; every other
    kind (record, video, unknown) carries no attachments.
    """
    kind = EmbedKind.of(embed)
    if kind is EmbedKind.RECORD_WITH_MEDIA:
        embed = embed.get("media")
        kind = EmbedKind.of(embed)
        if kind is EmbedKind.RECORD_WITH_MEDIA:
            return [], []

    images: list[ImageAttachment] = []
    externals: list[str] = []

    if kind is EmbedKind.IMAGES:
        for image in embed.get("images") or []:
            if not isinstance(image, dict):
                continue
            url = image.get("fullsize") or image.get("thumb")
            if url:
                images.append(
                    ImageAttachment(url=url, thumb=image.get("thumb"), alt=image.get("alt") or "")
                )
    elif kind is EmbedKind.EXTERNAL:
        uri = dig(embed, "external", "uri")
        if uri:
            externals.append(uri)

    return images, externals


def post_web_url(handle: str, uri: str) -> str:
    """https://bsky.app/profile/<handle>/post/<rkey> for an at:// post uri."""
    rkey = uri.rstrip("/").split("/")[-1] if uri else ""
    return f"{WEB_URL}/profile/{handle}/post/{rkey}"


def _reply_context(parent: Any) -> Optional[ReplyContext]:
    if not isinstance(parent, dict):
        return None
    return ReplyContext(
        handle=dig(parent, "author", "handle", default=""),
        display_name=dig(parent, "author", "displayName", default=""),
        text=dig(parent, "record", "text", default=""),
        created_at=parse_timestamp(dig(parent, "record", "createdAt")),
        uri=parent.get("uri") or "",
    )


def parse_feed_item(raw: Any) -> Optional[Post]:
    """Clean and normalize a feed item.

    Args:
        raw: One element of a timeline / author feed, as a dict or SDK model.

    Returns:
        The normalized Post, or None when the item carries no post.
    """
    try:
        return _parse(as_dict(raw))
    except Exception as exc:  # noqa: BLE001
        logger.debug("bluesky_feed_item_invalid", error=str(exc))
        return None


def _parse(item: dict[str, Any]) -> Optional[Post]:
    post = item.get("post")
    if not isinstance(post, dict):
        return None

    author = post.get("author") if isinstance(post.get("author"), dict) else {}
    record = post.get("record") if isinstance(post.get("record"), dict) else {}

    uri = post.get("uri") or ""
    handle = author.get("handle") or ""
    images, externals = extract_attachments(post.get("embed"))

    return Post(
        provider="bluesky",
        id=uri,
        cid=post.get("cid"),
        url=post_web_url(handle, uri),
        type=classify(item),
        handle=handle,
        display_name=author.get("displayName") or "",
        author_id=author.get("did"),
        avatar=author.get("avatar"),
        text=record.get("text") or "",
        created_at=parse_timestamp(record.get("createdAt")),
        reply_to=_reply_context(dig(item, "reply", "parent")),
        reposted_by=dig(item, "reason", "by", "handle") if dig(item, "reason", "$type") == REASON_REPOST else None,
        images=images,
        externals=externals,
        metrics=PostMetrics(
            likes=post.get("likeCount"),
            reposts=post.get("repostCount"),
            replies=post.get("replyCount"),
            quotes=post.get("quoteCount"),
        ),
        raw=item,
    )

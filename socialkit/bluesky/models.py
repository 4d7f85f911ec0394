"""AT Protocol lexicon identifiers used by the Bluesky parser."""

from enum import Enum

SERVICE_URL = "https://bsky.social"
WEB_URL = "https://bsky.app"

REASON_REPOST = "app.bsky.feed.defs#reasonRepost"

# Bluesky rejects posts with more than four images
MAX_IMAGES = 4


class EmbedKind(str, Enum):
    """Hydrated embed views attached to a post."""

    IMAGES = "app.bsky.embed.images#view"
    EXTERNAL = "app.bsky.embed.external#view"
    RECORD = "app.bsky.embed.record#view"
    RECORD_WITH_MEDIA = "app.bsky.embed.recordWithMedia#view"
    VIDEO = "app.bsky.embed.video#view"
    UNKNOWN = "unknown"

    @classmethod
    def of(cls, embed: object) -> "EmbedKind":
        if not isinstance(embed, dict):
            return cls.UNKNOWN
        try:
            return cls(embed.get("$type"))
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_quote(self) -> bool:
        return self in (EmbedKind.RECORD, EmbedKind.RECORD_WITH_MEDIA)

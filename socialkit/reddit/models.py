"""Data models and constants for the Reddit API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
OAUTH_URL = "https://oauth.reddit.com"
WEB_URL = "https://reddit.com"

USER_AGENT = "socialkit/1.1.0"

HOME_SORTS = ("best", "hot", "new")
SUBREDDIT_SORTS = ("top", "hot", "new", "controversial")

# Listing endpoints cap `limit` at 100
MAX_PAGE_SIZE = 100

# Fullname prefixes
KIND_COMMENT = "t1"
KIND_LINK = "t3"


class RedditUserProfile(BaseModel):
    """Profile of the authenticated Reddit account (/api/v1/me)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    title: str = ""
    description: str = ""
    comment_karma: int = 0
    post_karma: int = 0
    karma: int = 0
    created_at: Optional[datetime] = None
    day_age: Optional[int] = None
    is_gold: bool = False
    verified: bool = False
    icon: Optional[str] = None
    banner: Optional[str] = None
    url: Optional[str] = None

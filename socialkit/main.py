"""Command-line entry point for socialkit."""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from .bluesky import BlueskyClient
from .errors import SocialKitError
from .reddit import HOME_SORTS, SUBREDDIT_SORTS, RedditClient
from .utils import configure_logging, get_settings

logger = structlog.get_logger()


def _dump(result: Any) -> str:
    if isinstance(result, BaseModel):
        return result.model_dump_json(indent=2, exclude={"raw"})
    if isinstance(result, list):
        items = [r.model_dump(mode="json", exclude={"raw"}) for r in result]
        return json.dumps(items, indent=2, ensure_ascii=False)
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


async def run_bluesky(args: argparse.Namespace) -> Any:
    kwargs = {"debug": True} if args.debug else {}
    client = BlueskyClient.from_settings(**kwargs)
    await client.login()

    if args.command == "timeline":
        return await client.get_timeline(type=args.type, limit=args.limit, include_self=not args.exclude_self)
    if args.command == "posts":
        return await client.get_profile_posts(handle=args.handle, type=args.type or "post", limit=args.limit)
    if args.command == "profile":
        return await client.get_profile(handle=args.handle)
    if args.command == "search":
        return await client.search_users(args.query, limit=args.limit)
    if args.command == "follows":
        return await client.get_follows(handle=args.handle, limit=args.limit)
    if args.command == "followers":
        return await client.get_followers(handle=args.handle, limit=args.limit)
    if args.command == "non-mutual":
        return await client.get_non_mutual_follows(limit=args.limit)
    raise SocialKitError(f"Unsupported bluesky command: {args.command}")


async def run_reddit(args: argparse.Namespace) -> Any:
    kwargs = {"debug": True} if args.debug else {}
    async with RedditClient.from_settings(**kwargs) as client:
        if args.command == "home":
            return await client.get_home_feed(limit=args.limit, sort=args.sort or "best")
        if args.command == "subreddit":
            return await client.get_subreddit_feed(args.subreddit, limit=args.limit, sort=args.sort or "hot")
        if args.command == "me":
            return await client.get_user_profile()
        if args.command == "posts":
            return await client.get_profile_posts(username=args.handle, type=args.type or "post", limit=args.limit)
        if args.command == "profile":
            return await client.get_profile(username=args.handle)
        if args.command == "search":
            return await client.search_users(args.query, limit=args.limit)
    raise SocialKitError(f"Unsupported reddit command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="socialkit",
        description="Read Bluesky and Reddit feeds as normalized JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  socialkit bluesky timeline --type post --limit 20
  socialkit bluesky non-mutual --limit 50
  socialkit reddit subreddit python --sort new
  socialkit reddit me
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Trace page fetches (overrides DEBUG env var)")

    providers = parser.add_subparsers(dest="provider", required=True)

    bluesky = providers.add_parser("bluesky", help="Bluesky (AT Protocol)")
    bluesky.add_argument(
        "command",
        choices=["timeline", "posts", "profile", "search", "follows", "followers", "non-mutual"],
    )
    bluesky.add_argument("query", nargs="?", help="Search query (search command)")
    bluesky.add_argument("--handle", type=str, help="Target handle (default: logged-in account)")
    bluesky.add_argument("--type", choices=["post", "reply", "repost", "quote"], help="Only posts of this type")
    bluesky.add_argument("--limit", type=int, default=10, help="Maximum number of results (default: 10)")
    bluesky.add_argument("--exclude-self", action="store_true", help="Skip own posts (timeline)")

    reddit = providers.add_parser("reddit", help="Reddit OAuth API")
    reddit.add_argument("command", choices=["home", "subreddit", "me", "posts", "profile", "search"])
    reddit.add_argument("subreddit", nargs="?", help="Subreddit name (subreddit command)")
    reddit.add_argument("--query", type=str, help="Search query (search command)")
    reddit.add_argument("--handle", type=str, help="Target username (default: logged-in account)")
    reddit.add_argument("--type", choices=["post", "reply", "repost"], help="Only posts of this type")
    reddit.add_argument(
        "--sort",
        choices=sorted(set(HOME_SORTS) | set(SUBREDDIT_SORTS)),
        help="Listing sort (home: best/hot/new, subreddit: top/hot/new/controversial)",
    )
    reddit.add_argument("--limit", type=int, default=10, help="Maximum number of results (default: 10)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging("DEBUG" if args.debug else settings.log_level)

    if args.provider == "bluesky" and args.command == "search" and not args.query:
        parser.error("bluesky search needs a query")
    if args.provider == "reddit" and args.command == "subreddit" and not args.subreddit:
        parser.error("reddit subreddit needs a subreddit name")
    if args.provider == "reddit" and args.command == "search" and not args.query:
        parser.error("reddit search needs --query")

    runner = run_bluesky if args.provider == "bluesky" else run_reddit
    try:
        result = asyncio.run(runner(args))
    except SocialKitError as e:
        logger.error("command_failed", provider=args.provider, command=args.command, error=e.message)
        return 1

    print(_dump(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())

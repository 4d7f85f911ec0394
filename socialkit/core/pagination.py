"""Cursor-driven page collection and settle-all fan-out."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

import structlog

from ..errors import NetworkError
from .models import Page

logger = structlog.get_logger()

T = TypeVar("T")

PageFetcher = Callable[[Optional[str]], Awaitable[Page]]


async def collect(
    fetch_page: PageFetcher,
    limit: int,
    normalize: Optional[Callable[[Any], Optional[T]]] = None,
    resolve_page: Optional[Callable[[list[Any]], Awaitable[list[Any]]]] = None,
    accept: Optional[Callable[[T], bool]] = None,
    label: str = "page",
    debug: bool = False,
) -> list[T]:
    """Fetch pages until `limit` accepted items are gathered or pages run out.

    Args:
        fetch_page: Coroutine function taking the current cursor (None for
            the first page) and returning a Page of raw items.
        limit: Number of accepted items wanted. Results never exceed it.
        normalize: Maps a raw item to a record; returning None drops it.
        resolve_page: Coroutine function run once per non-empty page, before
            normalization, for lookups that depend on the whole page.
        accept: Predicate over normalized records.
        label: Name used in progress traces.
        debug: Emit a trace per fetched page.

    Returns:
        Accepted records in feed order. Fewer than `limit` when the provider
        runs out of pages or a page fetch fails with NetworkError.
    """
    results: list[T] = []
    if limit <= 0:
        return results

    cursor: Optional[str] = None
    pages = 0

    while len(results) < limit:
        if debug:
            logger.info("fetching_page", label=label, cursor=cursor or "-", collected=len(results))

        try:
            page = await fetch_page(cursor)
        except NetworkError as e:
            logger.warning("page_fetch_failed", label=label, pages=pages, collected=len(results), error=str(e))
            break

        pages += 1
        cursor = page.cursor
        items = page.items
        if resolve_page and items:
            items = await resolve_page(items)

        for raw in items:
            item = normalize(raw) if normalize else raw
            if item is None:
                continue
            if accept and not accept(item):
                continue
            results.append(item)
            if len(results) >= limit:
                break

        if not cursor or not page.items:
            break

    if debug:
        logger.info("pagination_done", label=label, pages=pages, collected=len(results))

    return results[:limit]


async def gather_settled(coros: Iterable[Awaitable[T]]) -> tuple[list[T], list[BaseException]]:
    """Run coroutines concurrently; failures never cancel their siblings.

    Returns:
        Tuple of (successful results in input order, exceptions raised).
    """
    outcomes = await asyncio.gather(*coros, return_exceptions=True)

    results: list[T] = []
    failures: list[BaseException] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            failures.append(outcome)
        else:
            results.append(outcome)
    return results, failures

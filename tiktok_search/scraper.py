"""
TikTok keyword search
=====================
1. mint an anonymous session in headless chromium (`ttwid` cookie)
2. GET page 1 of /api/search/general/full/ → items + search id
3. GET the remaining pages one after another, same cookie, same search id

Run
---
```bash
python -m tiktok_search.scraper "funny cats" --pages 3 --output cats.jsonl
```
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, List, Optional

import httpx
from pydantic import BaseModel

from .config import FULL_COOKIE_JAR, LOG_LEVEL, PAGE_STRIDE, SEARCH_TIMEOUT, USER_AGENT
from .fetcher import extract_search_id, fetch_first_page, fetch_next_page
from .proxy import ProxyPool, proxy_url, shared_pool
from .session import CookieNotFound, acquire_session

logger = logging.getLogger(__name__)


class SearchResult(BaseModel):
    cookies: Optional[str] = None
    items: List[Any] = []  # envelopes passed through as-is


# ──── paging helpers
def clamp_pages(pages: Optional[int]) -> int:
    """At least one page is always fetched."""
    if pages is None or pages < 1:
        return 1
    return int(pages)


def page_offsets(pages: int) -> list[int]:
    """Offsets for pages 2..pages: 24, 36, 48, …

    The endpoint's own paging starts the second request at 2 * stride, so
    offset 12 is never requested.
    """
    return [(i + 1) * PAGE_STRIDE for i in range(1, clamp_pages(pages))]


@asynccontextmanager
async def http_client(client: Optional[httpx.AsyncClient] = None,
                      proxy: Optional[str] = None):
    """Yield `client` untouched, or a fresh one that is closed afterwards."""
    if client is not None:
        yield client
        return
    kwargs: dict = {"follow_redirects": True}
    if proxy:
        kwargs["proxy"] = proxy_url(proxy)
    if SEARCH_TIMEOUT is not None:
        kwargs["timeout"] = SEARCH_TIMEOUT
    if USER_AGENT:
        kwargs["headers"] = {"User-Agent": USER_AGENT}
    async with httpx.AsyncClient(**kwargs) as fresh:
        yield fresh


# ──── core
async def collect_items(client: httpx.AsyncClient, keyword: str, pages: int,
                        cookie: str) -> list[dict]:
    first = await fetch_first_page(client, keyword, cookie)
    if not first:
        logger.info("no results for %r", keyword)
        return []

    items = list(first)
    search_id = extract_search_id(first)
    offsets = page_offsets(pages)
    if offsets and search_id is None:
        logger.warning("first page for %r has no doc_id_str; not paginating", keyword)
        return items

    for offset in offsets:
        more = await fetch_next_page(client, keyword, cookie, offset, search_id)
        if more:
            items.extend(more)
    return items


async def search(keyword: str, pages: int = 1, *,
                 full_cookie_jar: bool = True,
                 acquire=acquire_session,
                 client: Optional[httpx.AsyncClient] = None,
                 proxy_pool: Optional[ProxyPool] = None) -> SearchResult:
    """Run one search. Never raises; failures come back as an empty result.

    `acquire` is awaited as ``acquire(proxy=...)`` and must return a
    :class:`~tiktok_search.session.Session`. Without `proxy_pool` the
    process-wide pool is used, so bans carry over to later searches.
    """
    if not isinstance(keyword, str) or not keyword.strip():
        logger.error("refusing to search for %r: keyword must be a non-empty string", keyword)
        return SearchResult()
    pages = clamp_pages(pages)

    pool = proxy_pool if proxy_pool is not None else shared_pool()
    proxy = pool.pick()

    try:
        session = await acquire(proxy=proxy)
    except CookieNotFound as e:
        logger.error("session for %r failed: %s", keyword, e)
        pool.ban(proxy)
        return SearchResult()
    except Exception:
        logger.exception("session for %r failed", keyword)
        return SearchResult()

    cookie = session.cookie_header(full_cookie_jar)
    try:
        async with http_client(client, proxy) as cx:
            items = await collect_items(cx, keyword, pages, cookie)
    except Exception:
        logger.exception("search for %r failed", keyword)
        return SearchResult()

    logger.info("%r: %d items over %d page(s)", keyword, len(items), pages)
    return SearchResult(cookies=cookie, items=items)


# ──── public surface
async def fetch_tiktok_search(keyword: str, pages: int = 1, *,
                              full_cookie_jar: Optional[bool] = None,
                              legacy: bool = False, **kwargs):
    """Search TikTok for `keyword`.

    Returns ``{"cookies": str | None, "items": [...]}``, or just the item
    list when `legacy` is set. `full_cookie_jar` forwards every cookie
    instead of `ttwid` alone; defaults to the FULL_COOKIE_JAR setting.
    Extra keyword arguments go to :func:`search`.
    """
    if full_cookie_jar is None:
        full_cookie_jar = FULL_COOKIE_JAR
    result = await search(keyword, pages, full_cookie_jar=full_cookie_jar, **kwargs)
    if legacy:
        return result.items
    return result.model_dump()


def fetch_tiktok_search_sync(keyword: str, pages: int = 1, **kwargs):
    return asyncio.run(fetch_tiktok_search(keyword, pages, **kwargs))


########### main ###########
def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="TikTok keyword search")
    ap.add_argument("keyword")
    ap.add_argument("--pages", type=int, default=1)
    ap.add_argument("--output", type=Path, default=None,
                    help="write items as JSONL here (default: stdout)")
    ap.add_argument("--minimal-cookie", action="store_true",
                    help="send ttwid only instead of the whole cookie jar")
    ap.add_argument("--print-cookies", action="store_true")
    return ap.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    full_jar = FULL_COOKIE_JAR and not args.minimal_cookie
    result = await search(args.keyword, args.pages, full_cookie_jar=full_jar)

    if result.cookies is None:
        logger.error("could not open a TikTok session")
        return 1
    if args.print_cookies:
        print(f"Cookies: {result.cookies}", file=sys.stderr)

    lines = [json.dumps(item, ensure_ascii=False) for item in result.items]
    if args.output:
        args.output.write_text("".join(ln + "\n" for ln in lines), encoding="utf-8")
        logger.info("wrote %d items → %s", len(lines), args.output)
    else:
        for ln in lines:
            print(ln)
    return 0


def run() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

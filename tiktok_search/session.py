"""
Mint an anonymous TikTok session.

A headless chromium loads the home page, TikTok's own scripts set the
`ttwid` cookie shortly after load, and we read it back out of the context.
The cookie shows up asynchronously after `networkidle`, so the jar is polled
for a bounded time rather than slept on.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Tuple

from playwright.async_api import async_playwright
from pydantic import BaseModel

from .config import (TIKTOK_URL, TTWID_COOKIE, COOKIE_SETTLE_TIMEOUT,
                     COOKIE_POLL_INTERVAL, USER_AGENT)
from .proxy import proxy_url

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class CookieNotFound(RuntimeError):
    """The site never handed out a `ttwid` cookie."""


class Session(BaseModel):
    ttwid: str
    cookies: List[Tuple[str, str]] = []

    def cookie_header(self, full_jar: bool = True) -> str:
        """Value for the `Cookie:` header.

        full_jar=False sends `ttwid` alone, otherwise the whole jar in
        browser order.
        """
        if not full_jar or not self.cookies:
            return f"{TTWID_COOKIE}={self.ttwid}"
        return "; ".join(f"{name}={value}" for name, value in self.cookies)


def session_from_cookies(cookies: list[dict]) -> Session:
    ttwid = next((c for c in cookies if c.get("name") == TTWID_COOKIE), None)
    if ttwid is None:
        raise CookieNotFound(f"{TTWID_COOKIE} cookie not found")
    return Session(
        ttwid=ttwid["value"],
        cookies=[(c["name"], c["value"]) for c in cookies],
    )


async def wait_for_cookie(context, name: str = TTWID_COOKIE, *,
                          timeout: float = COOKIE_SETTLE_TIMEOUT,
                          poll_interval: float = COOKIE_POLL_INTERVAL) -> Optional[dict]:
    """Poll `context.cookies()` until `name` shows up or `timeout` runs out."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        for c in await context.cookies():
            if c.get("name") == name:
                return c
        if loop.time() >= deadline:
            return None
        await asyncio.sleep(poll_interval)


@asynccontextmanager
async def browser_session(playwright, proxy: Optional[str] = None):
    """Yield (context, page) on a fresh headless chromium; always closes it."""
    launch_kwargs = {"headless": True, "args": LAUNCH_ARGS}
    if proxy:
        launch_kwargs["proxy"] = {"server": proxy_url(proxy)}
    browser = await playwright.chromium.launch(**launch_kwargs)
    try:
        ctx_kwargs = {"user_agent": USER_AGENT} if USER_AGENT else {}
        context = await browser.new_context(**ctx_kwargs)
        page = await context.new_page()
        yield context, page
    finally:
        await browser.close()


async def acquire_session(*, proxy: Optional[str] = None,
                          settle_timeout: float = COOKIE_SETTLE_TIMEOUT,
                          poll_interval: float = COOKIE_POLL_INTERVAL) -> Session:
    async with async_playwright() as pw:
        async with browser_session(pw, proxy) as (context, page):
            await page.goto(TIKTOK_URL, wait_until="networkidle")
            found = await wait_for_cookie(context, TTWID_COOKIE,
                                          timeout=settle_timeout,
                                          poll_interval=poll_interval)
            if found is None:
                logger.warning("no %s after %.1fs (proxy=%s)",
                               TTWID_COOKIE, settle_timeout, proxy)
            cookies = await context.cookies()

    session = session_from_cookies(cookies)
    logger.info("session acquired: %d cookies", len(session.cookies))
    return session

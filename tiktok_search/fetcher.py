import logging
from typing import Optional

import httpx

from .config import SEARCH_URL

logger = logging.getLogger(__name__)


class PageFetchError(RuntimeError):
    """One search page could not be fetched or parsed."""


async def _get_items(client: httpx.AsyncClient, params: dict, cookie: str) -> list[dict]:
    try:
        resp = await client.get(SEARCH_URL, params=params, headers={"Cookie": cookie})
        resp.raise_for_status()
        body = resp.json()
    except httpx.HTTPError as e:
        raise PageFetchError(f"request failed: {e}") from e
    except ValueError as e:
        raise PageFetchError(f"bad JSON: {e}") from e

    if not isinstance(body, dict):
        raise PageFetchError(f"unexpected body type {type(body).__name__}")
    items = body.get("data")
    if items is None:
        # blocked / empty result sets come back without `data`
        logger.warning("no data in response (status_code=%s, keys=%s)",
                       body.get("status_code"), sorted(body)[:5])
        return []
    if not isinstance(items, list):
        raise PageFetchError(f"`data` is {type(items).__name__}, not a list")
    return items


async def fetch_first_page(client: httpx.AsyncClient, keyword: str,
                           cookie: str) -> Optional[list[dict]]:
    params = {"from_page": "search", "keyword": keyword}
    try:
        return await _get_items(client, params, cookie)
    except PageFetchError as e:
        logger.warning("first page for %r failed: %s", keyword, e)
        return None


async def fetch_next_page(client: httpx.AsyncClient, keyword: str, cookie: str,
                          offset: int, search_id: str) -> Optional[list[dict]]:
    params = {
        "from_page": "search",
        "keyword": keyword,
        "offset": offset,
        "search_id": search_id,
    }
    try:
        return await _get_items(client, params, cookie)
    except PageFetchError as e:
        logger.warning("page at offset %s for %r failed: %s", offset, keyword, e)
        return None


def extract_search_id(items: list[dict]) -> Optional[str]:
    """`common.doc_id_str` of the first envelope on page 1."""
    if not items or not isinstance(items[0], dict):
        return None
    common = items[0].get("common") or {}
    return common.get("doc_id_str")

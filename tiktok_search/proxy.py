from typing import List, Optional

from .config import PROXY_POOL


class ProxyPool:
    """Rotates exit proxies across searches and forgets the ones TikTok blocks.

    Entries are `host:port`, `user:pass@host:port` or full proxy URLs. An
    empty pool (or one whose proxies were all banned) means direct
    connections, reported as `None`.

    `pick` and `ban` never await, so coroutines sharing a pool cannot
    interleave inside them.
    """

    def __init__(self, proxies: List[Optional[str]]):
        self._proxies: List[str] = []
        for p in proxies:
            if p and p not in self._proxies:
                self._proxies.append(p)
        self._cursor = 0

    @property
    def proxies(self) -> List[Optional[str]]:
        return list(self._proxies) or [None]

    def pick(self) -> Optional[str]:
        if not self._proxies:
            return None
        self._cursor %= len(self._proxies)
        proxy = self._proxies[self._cursor]
        self._cursor += 1
        return proxy

    def ban(self, proxy: Optional[str]) -> None:
        if proxy not in self._proxies:
            return
        self._cursor %= len(self._proxies)
        idx = self._proxies.index(proxy)
        self._proxies.remove(proxy)
        # keep pointing at whatever followed the banned entry
        if idx < self._cursor:
            self._cursor -= 1


def proxy_url(proxy: Optional[str]) -> Optional[str]:
    """`host:port` -> `http://host:port`; full URLs pass through."""
    if not proxy:
        return None
    return proxy if "://" in proxy else f"http://{proxy}"


def pool_from_env(raw: Optional[List[str]] = None) -> ProxyPool:
    return ProxyPool(raw if raw is not None else PROXY_POOL)


# Process-wide rotation state. Bans last until the process exits; cookies
# are never carried over between searches.
_shared: Optional[ProxyPool] = None


def shared_pool() -> ProxyPool:
    global _shared
    if _shared is None:
        _shared = pool_from_env()
    return _shared

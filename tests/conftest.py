import httpx
import pytest

from tiktok_search import proxy
from tiktok_search.proxy import ProxyPool
from tiktok_search.session import Session


def item(n, doc_id=None):
    env = {"type": 1, "item": {"id": str(n)}}
    if doc_id is not None:
        env["common"] = {"doc_id_str": doc_id}
    return env


class FakeAcquire:
    """Stands in for acquire_session; records every call."""

    def __init__(self, session=None, error=None):
        self.session = session
        self.error = error
        self.calls = []

    async def __call__(self, *, proxy=None):
        self.calls.append(proxy)
        if self.error is not None:
            raise self.error
        return self.session


class SearchEndpoint:
    """httpx MockTransport handler keyed on the `offset` query param."""

    def __init__(self, first, pages=None, fail_offsets=()):
        self.first = first
        self.pages = pages or {}
        self.fail_offsets = set(fail_offsets)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        offset = request.url.params.get("offset")
        if offset is None:
            return httpx.Response(200, json={"data": self.first})
        offset = int(offset)
        if offset in self.fail_offsets:
            return httpx.Response(500, text="upstream error")
        return httpx.Response(200, json={"data": self.pages.get(offset, [])})

    @property
    def offsets(self):
        return [int(r.url.params["offset"]) for r in self.requests
                if "offset" in r.url.params]


@pytest.fixture(autouse=True)
def fresh_shared_pool(monkeypatch):
    monkeypatch.setattr(proxy, "_shared", None)


@pytest.fixture
def session():
    return Session(ttwid="abc123", cookies=[("tt_csrf_token", "x1"), ("ttwid", "abc123")])


@pytest.fixture
def direct_pool():
    return ProxyPool([])


@pytest.fixture
def make_client():
    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make

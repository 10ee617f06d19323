import httpx

from tiktok_search.config import SEARCH_URL
from tiktok_search.fetcher import extract_search_id, fetch_first_page, fetch_next_page

from conftest import item


def responder(response, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        if isinstance(response, Exception):
            raise response
        return response
    return handler


async def test_first_page_request_shape(make_client):
    seen = []
    client = make_client(responder(httpx.Response(200, json={"data": [item(1, "sid")]}), seen))
    items = await fetch_first_page(client, "funny cats & dogs", "ttwid=abc")

    assert items == [item(1, "sid")]
    req = seen[0]
    assert req.method == "GET"
    assert str(req.url).startswith(SEARCH_URL)
    assert dict(req.url.params) == {"from_page": "search", "keyword": "funny cats & dogs"}
    assert "&dogs" not in req.url.query.decode()
    assert req.headers["Cookie"] == "ttwid=abc"


async def test_next_page_request_shape(make_client):
    seen = []
    client = make_client(responder(httpx.Response(200, json={"data": [item(2)]}), seen))
    items = await fetch_next_page(client, "cats", "a=1; ttwid=abc", 24, "sid")

    assert items == [item(2)]
    assert dict(seen[0].url.params) == {
        "from_page": "search", "keyword": "cats", "offset": "24", "search_id": "sid",
    }
    assert seen[0].headers["Cookie"] == "a=1; ttwid=abc"


async def test_http_error_status_returns_none(make_client, caplog):
    client = make_client(responder(httpx.Response(403, text="denied")))
    assert await fetch_next_page(client, "cats", "ttwid=a", 36, "sid") is None
    assert "offset 36" in caplog.text


async def test_transport_error_returns_none(make_client):
    client = make_client(responder(httpx.ConnectError("boom")))
    assert await fetch_first_page(client, "cats", "ttwid=a") is None


async def test_non_json_returns_none(make_client):
    client = make_client(responder(httpx.Response(200, text="<html>captcha</html>")))
    assert await fetch_first_page(client, "cats", "ttwid=a") is None


async def test_missing_data_is_empty_but_warned(make_client, caplog):
    client = make_client(responder(httpx.Response(200, json={"status_code": 10201})))
    assert await fetch_first_page(client, "cats", "ttwid=a") == []
    warned = [r for r in caplog.records if r.levelname == "WARNING"]
    assert warned and "status_code=10201" in warned[0].getMessage()


async def test_malformed_data_returns_none(make_client):
    client = make_client(responder(httpx.Response(200, json={"data": {"oops": 1}})))
    assert await fetch_first_page(client, "cats", "ttwid=a") is None


def test_extract_search_id():
    assert extract_search_id([item(1, "7311"), item(2, "9999")]) == "7311"
    assert extract_search_id([item(1)]) is None
    assert extract_search_id([]) is None

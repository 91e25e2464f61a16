import json

import httpx
import pytest

from ...exceptions import HttpError, TransportError
from ...messages import JsonResponse, Request, Response, WarmUpItem
from ...models import NO_CACHE, CachePolicy, CacheScope
from ..cache import MemoryCacheBackend
from ..http import HttpxAdapter

PUBLIC = CachePolicy(enabled=True, scope=CacheScope.PUBLIC, ttl=60)
PRIVATE = CachePolicy(enabled=True, scope=CacheScope.PRIVATE, ttl=60)


class Server:
    def __init__(self):
        self.requests = []
        self.documents = {
            "/api/things/1": {"@id": "/api/things/1", "@type": "Thing", "name": "a"},
            "/api/things": {
                "@type": "hydra:Collection",
                "hydra:member": [{"@id": "/api/things/1", "@type": "Thing", "name": "a"}],
            },
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode("ascii")
        if path == "/broken":
            raise httpx.ConnectError("connection refused", request=request)
        if path == "/html":
            return httpx.Response(200, headers={"Content-Type": "text/html"}, content=b"<html/>")
        if request.method == "DELETE":
            return httpx.Response(204)
        if request.method in ("PUT", "POST"):
            return httpx.Response(
                200,
                headers={"Content-Type": "application/ld+json"},
                content=request.content,
            )
        document = self.documents.get(path)
        if document is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(
            200,
            headers={"Content-Type": "application/ld+json; charset=utf-8"},
            content=json.dumps(document).encode("utf-8"),
        )


@pytest.fixture
def server():
    return Server()


@pytest.fixture
def cache():
    return MemoryCacheBackend()


def make_adapter(server, cache=None, **kwargs):
    return HttpxAdapter(
        client=httpx.Client(base_url="http://testserver", transport=httpx.MockTransport(server)),
        cache=cache,
        **kwargs,
    )


def test_json_response(server):
    adapter = make_adapter(server)
    response = adapter.call(Request("GET", "/api/things/1"))
    assert isinstance(response, JsonResponse)
    assert response.status_code == 200
    assert response.content["name"] == "a"
    assert response.content_type.startswith("application/ld+json")


def test_non_json_response(server):
    adapter = make_adapter(server)
    response = adapter.call(Request("GET", "/html"))
    assert not isinstance(response, JsonResponse)
    assert response.body == b"<html/>"


def test_http_error(server):
    adapter = make_adapter(server)
    with pytest.raises(HttpError) as exc_info:
        adapter.call(Request("GET", "/api/things/2"))
    assert exc_info.value.status_code == 404
    assert exc_info.value.body == b"not found"


def test_transport_error(server):
    adapter = make_adapter(server)
    with pytest.raises(TransportError):
        adapter.call(Request("GET", "/broken"))


def test_execution_cache(server):
    adapter = make_adapter(server)
    first = adapter.call(Request("GET", "/api/things/1"))
    assert adapter.call(Request("GET", "/api/things/1")) is first
    assert len(server.requests) == 1
    adapter.call(Request("GET", "/api/things/1"), execution_cache_enabled=False)
    assert len(server.requests) == 2


def test_execution_cache_disabled(server):
    adapter = make_adapter(server, execution_cache_enabled=False)
    adapter.call(Request("GET", "/api/things/1"))
    adapter.call(Request("GET", "/api/things/1"))
    assert len(server.requests) == 2


def test_writes_clear_execution_cache(server):
    adapter = make_adapter(server)
    adapter.call(Request("GET", "/api/things/1"))
    response = adapter.call(
        Request(
            "PUT",
            "/api/things/1",
            body=b'{"name": "b"}',
            headers={"Content-Type": "application/ld+json"},
        )
    )
    assert response.content == {"name": "b"}
    assert server.requests[-1].headers["Content-Type"] == "application/ld+json"
    adapter.call(Request("GET", "/api/things/1"))
    assert [r.method for r in server.requests] == ["GET", "PUT", "GET"]


def test_persistent_cache(server, cache):
    make_adapter(server, cache).call(Request("GET", "/api/things/1", cache=PUBLIC))
    response = make_adapter(server, cache).call(Request("GET", "/api/things/1", cache=PUBLIC))
    assert len(server.requests) == 1
    assert response.content["name"] == "a"


def test_persistent_cache_scope(server, cache):
    make_adapter(server, cache, cache_namespace="alice").call(
        Request("GET", "/api/things/1", cache=PRIVATE)
    )
    make_adapter(server, cache, cache_namespace="bob").call(
        Request("GET", "/api/things/1", cache=PRIVATE)
    )
    make_adapter(server, cache, cache_namespace="alice").call(
        Request("GET", "/api/things/1", cache=PRIVATE)
    )
    assert len(server.requests) == 2


def test_no_persistent_cache(server, cache):
    make_adapter(server, cache).call(Request("GET", "/api/things/1", cache=NO_CACHE))
    make_adapter(server, cache).call(Request("GET", "/api/things/1", cache=NO_CACHE))
    assert len(server.requests) == 2


class Thing:
    pass


def test_warm_up(server, cache):
    adapter = make_adapter(server, cache)
    fetched = []

    def fetch():
        fetched.append(adapter.call(Request("GET", "/api/things"), execution_cache_enabled=False))

    results = list(adapter.warm_up([WarmUpItem(Thing, 60, fetch)]))
    assert results == []
    assert len(fetched) == 1

    other = make_adapter(server, cache)
    results = list(other.warm_up([WarmUpItem(Thing, 60, fetch)]))
    assert len(fetched) == 1
    assert len(server.requests) == 1
    (result,) = results
    assert result.class_ is Thing
    assert isinstance(result.response, JsonResponse)
    assert result.response.content["@type"] == "hydra:Collection"


def test_warm_up_only_records_json(server, cache):
    adapter = make_adapter(server, cache)

    def fetch():
        adapter.call(Request("GET", "/html"))

    adapter.warm_up([WarmUpItem(Thing, 60, fetch)])
    assert list(make_adapter(server, cache).warm_up([WarmUpItem(Thing, 60, fetch)])) == []
    assert len(server.requests) == 1


def test_default_client():
    adapter = HttpxAdapter("http://example.com", headers={"Accept": "application/ld+json"}, timeout=3)
    assert isinstance(adapter._client, httpx.Client)
    assert adapter._client.headers["Accept"] == "application/ld+json"
    adapter.close()


def test_plain_response_type(server):
    adapter = make_adapter(server)
    assert isinstance(adapter.call(Request("DELETE", "/api/things/1")), Response)

import logging
import typing

import httpx

from ..exceptions import HttpError, TransportError
from ..interfaces import Adapter
from ..messages import JsonResponse, Request, Response, WarmUpItem, WarmUpResult
from ..models import CachePolicy, CacheScope
from .cache import CacheBackend, MemoryCacheBackend

logger = logging.getLogger(__name__)


class HttpxAdapter(Adapter):
    """
    An :py:class:`~hydra_client.interfaces.Adapter` built on a synchronous :py:class:`httpx.Client`.

    ``GET`` responses are kept in two places: an execution cache living as long
    as the adapter, dropped on every write, and a persistent
    :py:class:`~hydra_client.adapter.cache.CacheBackend` honoring the cache hints of requests.

    :param str base_url: the root URL of the API.
    :param httpx.Client client: a preconfigured client.  One is built from ``base_url``, ``headers`` and ``timeout`` if omitted.
    :param headers: headers sent with every request.
    :param float timeout: the request timeout, in seconds.
    :param CacheBackend cache: the persistent cache.  Defaults to an in-memory one.
    :param str cache_namespace: separates the private entries of different users sharing ``cache``.
    :param bool execution_cache_enabled: set to :py:const:`False` to disable the execution cache altogether.
    """

    _client: httpx.Client
    _cache: CacheBackend
    _cache_namespace: str
    _execution_cache: typing.Dict[str, Response]
    _execution_cache_enabled: bool
    _recording: typing.Optional[typing.List[Response]] = None

    def _persistent_key(self, policy: CachePolicy, target: str) -> str:
        if policy.scope is CacheScope.PUBLIC:
            return f"public:{target}"
        return f"private:{self._cache_namespace}:{target}"

    def _record(self, response: Response) -> None:
        if self._recording is not None and isinstance(response, JsonResponse):
            self._recording.append(response)

    def _send(self, request: Request) -> Response:
        method = request.method.upper()
        try:
            r = self._client.request(
                method, request.target, content=request.body, headers=request.headers
            )
        except httpx.HTTPError as e:
            raise TransportError(method, request.target, str(e)) from e
        if r.status_code >= 400:
            raise HttpError(method, request.target, r.status_code, r.content)
        headers = dict(r.headers)
        if "json" in r.headers.get("content-type", "") and r.content:
            try:
                content = r.json()
            except ValueError as e:
                raise TransportError(method, request.target, f"malformed JSON: {e}") from e
            return JsonResponse(r.status_code, headers=headers, body=r.content, content=content)
        return Response(r.status_code, headers=headers, body=r.content)

    def call(self, request: Request, execution_cache_enabled: bool = True) -> Response:
        method = request.method.upper()
        if method != "GET":
            self._execution_cache.clear()
            logger.debug("%s %s", method, request.target)
            return self._send(request)

        if execution_cache_enabled and self._execution_cache_enabled:
            response = self._execution_cache.get(request.target)
            if response is not None:
                logger.debug("execution cache hit for %s", request.target)
                self._record(response)
                return response
        if request.cache.enabled:
            response = self._cache.get(self._persistent_key(request.cache, request.target))
            if response is not None:
                logger.debug("persistent cache hit for %s", request.target)
                self._execution_cache[request.target] = response
                self._record(response)
                return response

        logger.debug("GET %s", request.target)
        response = self._send(request)
        self._execution_cache[request.target] = response
        if request.cache.enabled:
            self._cache.set(
                self._persistent_key(request.cache, request.target), response, request.cache.ttl
            )
        self._record(response)
        return response

    def warm_up(self, batch: typing.Sequence[WarmUpItem]) -> typing.Iterable[WarmUpResult]:
        results: typing.List[WarmUpResult] = []
        for item in batch:
            key = f"warmup:{item.class_.__module__}.{item.class_.__qualname__}"
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("replaying %d response(s) for %s", len(cached), item.class_.__name__)
                results.extend(WarmUpResult(item.class_, response) for response in cached)
                continue
            self._recording = []
            try:
                item.fetch()
                recorded = self._recording
            finally:
                self._recording = None
            logger.debug("recorded %d response(s) for %s", len(recorded), item.class_.__name__)
            self._cache.set(key, recorded, item.ttl)
        return results

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxAdapter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __init__(
        self,
        base_url: str = "",
        client: typing.Optional[httpx.Client] = None,
        headers: typing.Optional[typing.Mapping[str, str]] = None,
        timeout: float = 10.0,
        cache: typing.Optional[CacheBackend] = None,
        cache_namespace: str = "",
        execution_cache_enabled: bool = True,
    ):
        if client is None:
            client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout)
        self._client = client
        self._cache = cache if cache is not None else MemoryCacheBackend()
        self._cache_namespace = cache_namespace
        self._execution_cache = {}
        self._execution_cache_enabled = execution_cache_enabled

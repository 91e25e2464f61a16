import copy
import datetime
import json
import typing

from ..client import HydraClient, HydraContext
from ..declarative import Attr, Cache
from ..deferred import Deferred
from ..exceptions import HttpError
from ..interfaces import Adapter
from ..iri import IriConverter
from ..messages import JsonResponse, Request, Response, WarmUpItem, WarmUpResult
from ..metadata import DeclarativeMetadataSource
from ..proxy import ResourceProxy
from ..serializer import JsonSerializer
from ..types import JSONObject


class Universe(ResourceProxy):
    id = Attr(int)
    name = Attr(str)

    class Meta:
        cache = Cache(public=True, ttl=3600, warmup=True)


class Sport(ResourceProxy):
    id = Attr(int)
    name = Attr(str)
    translated_names = Attr(str, name="translatedNames", array=True)
    universe = Attr(Deferred(lambda: Universe))
    related = Attr("Sport", array=True)
    active = Attr(bool, default=True)
    created_at = Attr(datetime.datetime, name="createdAt", read_only=True)


class Thing(ResourceProxy):
    id = Attr(int)
    name = Attr(str)
    count = Attr(int)
    tags = Attr(str, array=True)


ENTITIES = (Thing, Sport, Universe)


def json_response(document: JSONObject, status_code: int = 200) -> JsonResponse:
    return JsonResponse(
        status_code,
        headers={"Content-Type": "application/ld+json"},
        body=json.dumps(document).encode("utf-8"),
        content=copy.deepcopy(document),
    )


class FakeAdapter(Adapter):
    """
    Answers ``GET`` requests from a dictionary of documents and any other
    request from the responses registered with :py:meth:`respond`.  A registered
    exception is raised instead of answering.
    Every request is recorded.
    """

    documents: typing.Dict[str, JSONObject]
    responses: typing.Dict[typing.Tuple[str, str], typing.Union[Response, Exception]]
    replays: typing.Dict[type, typing.List[Response]]
    requests: typing.List[Request]
    execution_cache_flags: typing.List[bool]
    warm_up_batches: typing.List[typing.List[WarmUpItem]]

    def add(self, target: str, document: JSONObject) -> None:
        self.documents[target] = document

    def respond(
        self, method: str, target: str, response: typing.Union[Response, Exception, JSONObject]
    ) -> None:
        if not isinstance(response, (Response, Exception)):
            response = json_response(response)
        self.responses[(method, target)] = response

    def requests_of(self, method: str) -> typing.List[Request]:
        return [r for r in self.requests if r.method == method]

    def call(self, request: Request, execution_cache_enabled: bool = True) -> Response:
        self.requests.append(request)
        self.execution_cache_flags.append(execution_cache_enabled)
        response = self.responses.get((request.method, request.target))
        if isinstance(response, Exception):
            raise response
        elif response is not None:
            return response
        if request.method == "GET" and request.target in self.documents:
            return json_response(self.documents[request.target])
        if request.method == "DELETE":
            return Response(204)
        raise HttpError(request.method, request.target, 404)

    def warm_up(self, batch: typing.Sequence[WarmUpItem]) -> typing.Iterable[WarmUpResult]:
        self.warm_up_batches.append(list(batch))
        results: typing.List[WarmUpResult] = []
        for item in batch:
            replay = self.replays.get(item.class_)
            if replay is not None:
                results.extend(WarmUpResult(item.class_, response) for response in replay)
            else:
                item.fetch()
        return results

    def __init__(self, documents: typing.Optional[typing.Mapping[str, JSONObject]] = None):
        self.documents = dict(documents or {})
        self.responses = {}
        self.replays = {}
        self.requests = []
        self.execution_cache_flags = []
        self.warm_up_batches = []


def make_context(
    adapter: Adapter, entities: typing.Iterable[type] = ENTITIES, prefix: str = ""
) -> HydraContext:
    metadata = DeclarativeMetadataSource(entities)
    resolver = IriConverter(metadata, prefix=prefix)
    return HydraContext(
        adapter=adapter,
        resolver=resolver,
        serializer=JsonSerializer(metadata, resolver),
        metadata=metadata,
    )


def make_client(adapter: Adapter, **kwargs) -> HydraClient:
    kwargs.setdefault("auto_warm_up", False)
    return HydraClient(make_context(adapter), **kwargs)


def document(type_: str, path: str, id: typing.Any, **fields: typing.Any) -> JSONObject:
    return {
        "@context": f"/contexts/{type_}",
        "@id": f"/{path}/{id}",
        "@type": type_,
        "id": id,
        **fields,
    }


def page(
    members: typing.Sequence[typing.Any],
    next: typing.Optional[str] = None,
    total: typing.Optional[int] = None,
) -> JSONObject:
    retval: typing.Dict[str, typing.Any] = {
        "@type": "hydra:Collection",
        "hydra:member": list(members),
    }
    if total is not None:
        retval["hydra:totalItems"] = total
    if next is not None:
        retval["hydra:view"] = {"@type": "hydra:PartialCollectionView", "hydra:next": next}
    return retval

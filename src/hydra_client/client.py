import collections.abc
import dataclasses
import logging
import threading
import typing

from .collection import ResourceCollection
from .deferred import Deferred
from .exceptions import (
    InvalidDeleteArgumentsError,
    InvalidFieldValueError,
    NonJsonResponseError,
    UnexpectedDocumentError,
    UnregisteredObjectError,
)
from .hydra import (
    ID_KEY,
    TYPE_KEY,
    Operation,
    collection_stub,
    is_collection,
    norm_context,
)
from .interfaces import Adapter, IdentifierResolver, MetadataSource, Serializer
from .messages import JsonResponse, Request, Response, WarmUpItem
from .models import NO_CACHE, CachePolicy, FieldDescriptor
from .proxy import ResourceProxy
from .types import JSONObject

if typing.TYPE_CHECKING:
    from .config import Configurator  # noqa

logger = logging.getLogger(__name__)

T = typing.TypeVar("T", bound=ResourceProxy)

WRITE_HEADERS = {"Content-Type": "application/ld+json"}


@dataclasses.dataclass
class HydraContext:
    """
    The collaborators a :py:class:`HydraClient` orchestrates.  Every object and
    collection handed out by the client reaches them through it.
    """

    adapter: Adapter
    resolver: IdentifierResolver
    serializer: Serializer
    metadata: MetadataSource


class HydraClient:
    """
    The entry point for reading and writing resources.

    The client keeps an identity map, so that a remote resource is represented
    by at most one object per client.  Objects are created unhydrated: their
    fields are fetched on first access.

    :param HydraContext context: the collaborators.
    :param bool auto_warm_up: whether lookups run :py:meth:`cache_warm_up` first.
    :param int max_pages: the default page limit of collections.  Unlimited if omitted.
    """

    context: HydraContext
    auto_warm_up: bool
    max_pages: typing.Optional[int]
    _objects: typing.Dict[str, ResourceProxy]
    _lock: threading.RLock
    _warmed_up: bool

    def _cache_policy_of(self, class_: typing.Optional[type]) -> CachePolicy:
        if class_ is None:
            return NO_CACHE
        return self.context.metadata.cache_policy_of(class_)

    def _json_content(self, request: Request, response: Response) -> JSONObject:
        if not isinstance(response, JsonResponse):
            raise NonJsonResponseError(request.target, response.content_type)
        return response.content

    def _fetch_data(self, obj: ResourceProxy) -> JSONObject:
        request = Request(
            "GET",
            self.context.resolver.reference_of_object(obj),
            cache=self._cache_policy_of(type(obj)),
        )
        return self._json_content(request, self.context.adapter.call(request))

    def _fetch_page(
        self, class_: typing.Optional[type], reference: str, cache_enabled: bool = True
    ) -> JSONObject:
        request = Request("GET", reference, cache=self._cache_policy_of(class_))
        logger.debug("fetching page %s", reference)
        return self._json_content(
            request, self.context.adapter.call(request, execution_cache_enabled=cache_enabled)
        )

    def _resolve_reference(self, field: FieldDescriptor, value: typing.Any) -> ResourceProxy:
        if isinstance(value, collections.abc.Mapping):
            reference = value.get(ID_KEY)
            if reference is None:
                owner = field.parent.class_ if field.parent is not None else ResourceProxy
                raise InvalidFieldValueError(owner, field.attribute, value, "embedded object without @id")
            obj = self.get_by_reference(reference)
            obj._refresh(value, override_hydrated=False)
            return obj
        elif isinstance(value, str) and self.context.resolver.is_reference(value):
            return self.get_by_reference(value)
        return self.get_by_class_and_id(self.context.metadata.target_of(field), value)

    def contains(self, obj: ResourceProxy) -> bool:
        """
        Tells whether ``obj`` is the very object the identity map holds for its reference.
        """
        if obj.id is None:
            return False
        reference = self.context.resolver.reference_of_object(obj)
        with self._lock:
            return self._objects.get(reference) is obj

    def get_by_reference(self, reference: str, auto_hydrate: bool = False) -> ResourceProxy:
        """
        Returns the object designated by ``reference``, creating it unhydrated
        if the identity map does not hold it yet.

        :param str reference: the reference (IRI) of the resource.
        :param bool auto_hydrate: set to :py:const:`True` to hydrate the object before returning it.
        """
        obj, _ = self._get_or_create(reference)
        if auto_hydrate:
            obj._hydrate()
        return obj

    def _get_or_create(self, reference: str) -> typing.Tuple[ResourceProxy, bool]:
        if self.auto_warm_up:
            self.cache_warm_up()
        with self._lock:
            obj = self._objects.get(reference)
            if obj is not None:
                return obj, False
            class_, id_ = self.context.resolver.class_and_id_of(reference)
            key = self.context.resolver.reference_of(class_, id_)
            obj = self._objects.get(key)
            if obj is not None:
                return obj, False
            obj = class_._from_identity(self, id_)
            self._objects[key] = obj
            return obj, True

    def get_by_class_and_id(self, class_: typing.Type[T], id: typing.Any, auto_hydrate: bool = False) -> T:
        """
        Same as :py:meth:`get_by_reference` but takes a class and an identifier.
        ``id`` may also be a reference.
        """
        if isinstance(id, str) and self.context.resolver.is_reference(id):
            reference = id
        else:
            reference = self.context.resolver.reference_of(class_, id)
        return typing.cast(T, self.get_by_reference(reference, auto_hydrate))

    def get_collection(
        self,
        class_: type,
        filters: typing.Optional[typing.Mapping[str, typing.Any]] = None,
        cache_enabled: bool = True,
        load_all: bool = False,
        auto_hydrate_enabled: bool = True,
        max_pages: typing.Optional[int] = None,
    ) -> ResourceCollection:
        """
        Returns the listing of a resource class.  No request is issued until the
        collection is iterated, unless ``load_all`` is set.

        :param type class_: the resource class.
        :param filters: query filters.
        :param bool cache_enabled: whether pages may be answered from the execution cache.
        :param bool load_all: set to :py:const:`True` to fetch every page right away.
        :param bool auto_hydrate_enabled: the auto-hydrate setting of the objects the collection brings into the identity map.  Objects already held keep their own setting.
        :param int max_pages: the page limit. Defaults to the limit of the client.
        """
        if self.auto_warm_up:
            self.cache_warm_up()
        reference = self.context.resolver.collection_reference_of(class_, filters)
        collection = ResourceCollection(
            self,
            class_,
            collection_stub(reference),
            cache_enabled=cache_enabled,
            auto_hydrate_enabled=auto_hydrate_enabled,
            max_pages=max_pages if max_pages is not None else self.max_pages,
        )
        if load_all:
            collection.load_all()
        return collection

    def create(self, class_: typing.Type[T], **values: typing.Any) -> T:
        """
        Returns a new object attached to the client.  It is sent to the API by :py:meth:`post`.
        """
        self.context.metadata.describe(class_)
        obj = class_()
        obj._bind(self)
        obj._assign_all(values)
        return obj

    def put(self, obj: T) -> T:
        """
        Sends the fields edited since the object was last refreshed.
        Nothing is sent when no field was edited.
        """
        if not self.contains(obj):
            raise UnregisteredObjectError(obj)
        descr = self.context.metadata.describe(type(obj))
        serializer = self.context.serializer
        edited = obj._get_edited_fields(serializer.normalize(obj, norm_context(descr, Operation.UPDATE)))
        if not edited:
            logger.debug("%r has no edited field, skipping PUT", obj)
            return obj
        request = Request(
            "PUT",
            self.context.resolver.reference_of_object(obj),
            body=serializer.serialize(obj, norm_context(descr, Operation.UPDATE, edited)),
            headers=dict(WRITE_HEADERS),
        )
        logger.debug("updating %s of %r", ", ".join(edited), obj)
        obj._refresh(self._json_content(request, self.context.adapter.call(request)))
        return obj

    def post(self, obj: T) -> T:
        """
        Creates the resource on the API and registers the object in the identity map.
        """
        descr = self.context.metadata.describe(type(obj))
        request = Request(
            "POST",
            self.context.resolver.collection_reference_of(type(obj)),
            body=self.context.serializer.serialize(obj, norm_context(descr, Operation.CREATE)),
            headers=dict(WRITE_HEADERS),
        )
        content = self._json_content(request, self.context.adapter.call(request))
        id_ = content.get("id")
        if id_ is None and content.get(ID_KEY) is not None:
            _, id_ = self.context.resolver.class_and_id_of(content[ID_KEY])
        if id_ is None:
            raise UnexpectedDocumentError(content)
        obj._bind(self)
        obj._assign(obj._field("id"), id_)
        obj._refresh(content)
        with self._lock:
            self._objects[self.context.resolver.reference_of_object(obj)] = obj
        logger.debug("created %r", obj)
        return obj

    def delete(self, *args: typing.Any) -> None:
        """
        Deletes a resource, given either the object or its class and identifier,
        and evicts it from the identity map.
        """
        if len(args) == 1 and isinstance(args[0], ResourceProxy):
            reference = self.context.resolver.reference_of_object(args[0])
        elif len(args) == 2 and isinstance(args[0], type):
            class_, id_ = args
            if isinstance(id_, str) and self.context.resolver.is_reference(id_):
                class_, id_ = self.context.resolver.class_and_id_of(id_)
            reference = self.context.resolver.reference_of(class_, id_)
        else:
            raise InvalidDeleteArgumentsError(args)
        self.context.adapter.call(Request("DELETE", reference))
        with self._lock:
            self._objects.pop(reference, None)
        logger.debug("deleted %s", reference)

    def _warm_up_fetch(self, class_: type) -> ResourceCollection:
        return self.get_collection(class_, cache_enabled=False, load_all=True)

    def cache_warm_up(self) -> None:
        """
        Fills the identity map with the resource classes whose cache policy
        asks for warm-up.  Runs once per client; later calls do nothing.
        """
        with self._lock:
            if self._warmed_up:
                return
            self._warmed_up = True
        batch = [
            WarmUpItem(descr.class_, descr.cache.ttl, Deferred(self._warm_up_fetch, descr.class_))
            for descr in self.context.metadata.descriptors()
            if descr.cache.enabled and descr.cache.warmup
        ]
        if not batch:
            return
        logger.info("warming up %s", ", ".join(item.class_.__name__ for item in batch))
        for result in self.context.adapter.warm_up(batch):
            parsed = self.parse_response(result.response)
            if isinstance(parsed, ResourceCollection):
                parsed._materialize_current_page()

    def parse_response(
        self, response: Response
    ) -> typing.Union[None, ResourceProxy, ResourceCollection]:
        """
        Turns a response into the object or the collection it carries.

        :return: :py:const:`None` for a non-JSON response or a document without ``@type``.
        :raises UnexpectedDocumentError: if the document is neither an object nor a collection.
        """
        if not isinstance(response, JsonResponse):
            return None
        document = response.content
        if not isinstance(document, collections.abc.Mapping) or TYPE_KEY not in document:
            return None
        if is_collection(document):
            return ResourceCollection(self, None, document, max_pages=self.max_pages)
        reference = document.get(ID_KEY)
        if not reference:
            raise UnexpectedDocumentError(document)
        obj = self.get_by_reference(reference)
        obj._refresh(document)
        return obj

    @classmethod
    def from_config(
        cls,
        entities: typing.Iterable[type],
        config: typing.Optional["Configurator"] = None,
        adapter: typing.Optional[Adapter] = None,
        **overrides: typing.Any,
    ) -> "HydraClient":
        """
        Builds a client wired with the default collaborators.

        :param entities: the resource classes to register.
        :param Configurator config: the configuration.  Loaded from the environment if omitted.
        :param Adapter adapter: replaces the :py:class:`~hydra_client.adapter.HttpxAdapter` built from ``config``.
        :param overrides: configuration keys to override, as in ``BASE_URL="https://example.com"``.
        """
        from .adapter import HttpxAdapter
        from .config import Configurator
        from .iri import IriConverter
        from .metadata import DeclarativeMetadataSource
        from .serializer import JsonSerializer

        if config is None:
            config = Configurator()
        if overrides:
            config.override(**overrides)
        metadata = DeclarativeMetadataSource(entities)
        resolver = IriConverter(metadata, prefix=config.API_PREFIX)
        if adapter is None:
            headers = dict(config.DEFAULT_HEADERS or {})
            headers.setdefault("User-Agent", config.USER_AGENT)
            adapter = HttpxAdapter(
                base_url=config.BASE_URL,
                headers=headers,
                timeout=config.TIMEOUT,
                execution_cache_enabled=config.EXECUTION_CACHE,
            )
        return cls(
            HydraContext(
                adapter=adapter,
                resolver=resolver,
                serializer=JsonSerializer(metadata, resolver),
                metadata=metadata,
            ),
            auto_warm_up=config.AUTO_WARM_UP,
            max_pages=config.max_pages,
        )

    def __init__(
        self,
        context: HydraContext,
        auto_warm_up: bool = True,
        max_pages: typing.Optional[int] = None,
    ):
        self.context = context
        self.auto_warm_up = auto_warm_up
        self.max_pages = max_pages
        self._objects = {}
        self._lock = threading.RLock()
        self._warmed_up = False

"""
This module contains the interface definitions of the collaborators the client
orchestrates.  Default implementations are found in
:py:mod:`hydra_client.adapter`, :py:mod:`hydra_client.serializer`,
:py:mod:`hydra_client.iri` and :py:mod:`hydra_client.metadata`.

"""
import abc
import typing

from .hydra import SerializationContext
from .messages import Request, Response, WarmUpItem, WarmUpResult
from .models import CachePolicy, FieldDescriptor, ResourceDescriptor
from .types import JSONObject

T = typing.TypeVar("T")


class Adapter(metaclass=abc.ABCMeta):
    """
    An :py:class:`Adapter` carries requests over to the API.  Retries, timeouts and
    caching of responses are its own business.
    """

    @abc.abstractmethod
    def call(self, request: Request, execution_cache_enabled: bool = True) -> Response:
        """
        Executes a request.

        :param Request request: the request to execute.
        :param bool execution_cache_enabled: whether a ``GET`` may be answered with a response
                                             already received during the adapter's lifetime.
        :return: a :py:class:`JsonResponse` when the response carries a JSON document,
                 a plain :py:class:`Response` otherwise.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def warm_up(self, batch: typing.Sequence[WarmUpItem]) -> typing.Iterable[WarmUpResult]:
        """
        Fills the persistent cache for a batch of resource classes.

        For each item, the adapter either replays the responses it has kept for the class,
        yielding them back so that the client can parse them, or runs ``item.fetch``.

        :param Sequence[WarmUpItem] batch: the classes to warm up.
        :return: the responses to feed to the client.
        """
        ...  # pragma: nocover


class Serializer(metaclass=abc.ABCMeta):
    """
    A :py:class:`Serializer` converts resource objects from and to JSON-compatible mappings.
    """

    @abc.abstractmethod
    def normalize(self, target: typing.Any, ctx: SerializationContext) -> JSONObject:
        """
        Returns the JSON-compatible mapping of the fields ``ctx`` selects.
        The values are read as they are stored; no hydration is triggered.

        :param Any target: a resource object.
        :param SerializationContext ctx: the serialization context.
        :return: a mapping keyed by the JSON field names.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def serialize(self, target: typing.Any, ctx: SerializationContext) -> bytes:
        """
        Same as :py:meth:`normalize` but returns the encoded JSON document.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def denormalize(
        self,
        data: JSONObject,
        target_type: typing.Type[T],
        ctx: SerializationContext,
        populate_into: typing.Optional[T] = None,
    ) -> T:
        """
        Applies the fields of ``data`` that ``ctx`` selects to a resource object.

        :param JSONObject data: the JSON-compatible mapping.
        :param type target_type: the resource class.
        :param SerializationContext ctx: the serialization context.
        :param populate_into: an existing object to populate. A new one is built if omitted.
        :return: the populated object.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def deserialize(
        self,
        data: bytes,
        target_type: typing.Type[T],
        ctx: SerializationContext,
        populate_into: typing.Optional[T] = None,
    ) -> T:
        """
        Same as :py:meth:`denormalize` but takes an encoded JSON document.
        """
        ...  # pragma: nocover


class IdentifierResolver(metaclass=abc.ABCMeta):
    """
    An :py:class:`IdentifierResolver` maps references (IRIs) from and to classes and identifiers.
    """

    @abc.abstractmethod
    def reference_of_object(self, target: typing.Any) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def reference_of(self, class_: type, id: typing.Any) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def class_and_id_of(self, reference: str) -> typing.Tuple[type, typing.Any]:
        """
        Returns the resource class and the identifier a reference designates.

        :param str reference: the reference.
        :return: a tuple of the class and the identifier.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def collection_reference_of(
        self, class_: type, filters: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> str:
        """
        Returns the reference of the listing of a resource class.

        :param type class_: the resource class.
        :param filters: query filters for the listing.
        :return: the reference.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def is_reference(self, value: typing.Any) -> bool:
        ...  # pragma: nocover


class MetadataSource(metaclass=abc.ABCMeta):
    """
    A :py:class:`MetadataSource` knows the fields and the cache policy of resource classes.
    """

    @abc.abstractmethod
    def describe(self, class_: type) -> ResourceDescriptor:
        """
        Returns the descriptor of a resource class.

        :raises ResourceNotRegisteredError: if the class is unknown.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def descriptors(self) -> typing.Iterable[ResourceDescriptor]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def class_by_name(self, name: str) -> type:
        ...  # pragma: nocover

    @abc.abstractmethod
    def class_by_path(self, path: str) -> type:
        ...  # pragma: nocover

    def fields_of(self, class_: type) -> typing.Mapping[str, FieldDescriptor]:
        return self.describe(class_).fields

    def cache_policy_of(self, class_: type) -> CachePolicy:
        return self.describe(class_).cache

    def target_of(self, field: FieldDescriptor) -> typing.Optional[type]:
        """
        Returns the resource class a reference field points to.  A target
        declared by name is looked up among the classes of this source.
        """
        return field.resolve_target(self.class_by_name)

import collections.abc
import datetime
import decimal
import json
import typing
from collections import OrderedDict

from .exceptions import SerializerError
from .hydra import Operation, SerializationContext, is_meta_key
from .interfaces import IdentifierResolver, MetadataSource, Serializer
from .models import FieldDescriptor, FieldKind
from .types import JSONObject, JSONValue, MutableJSONObject

T = typing.TypeVar("T")


class JsonSerializer(Serializer):
    """
    The default :py:class:`~hydra_client.interfaces.Serializer`.

    Nested resource objects are rendered as their references.  Temporal values
    are rendered in ISO 8601, keeping whatever offset they carry.

    :param MetadataSource metadata: the source of resource descriptors.
    :param IdentifierResolver iri_resolver: renders references to nested objects.
    """

    _metadata: MetadataSource
    _iri_resolver: IdentifierResolver

    def _normalize_reference(self, field: FieldDescriptor, value: typing.Any) -> JSONValue:
        if isinstance(value, str):
            return value
        if getattr(value, "id", None) is None:
            raise SerializerError(
                f"{field.attribute}: cannot refer to a {type(value).__name__} object that has not been created yet"
            )
        return self._iri_resolver.reference_of_object(value)

    def _normalize_datetime(self, field: FieldDescriptor, value: typing.Any) -> JSONValue:
        if isinstance(value, (datetime.datetime, datetime.date)):
            return value.isoformat()
        return typing.cast(JSONValue, value)

    def _normalize_passthrough(self, field: FieldDescriptor, value: typing.Any) -> JSONValue:
        if isinstance(value, decimal.Decimal):
            return str(value)
        elif isinstance(value, (datetime.datetime, datetime.date)):
            return value.isoformat()
        return typing.cast(JSONValue, value)

    _normalizers: typing.ClassVar[typing.Dict[FieldKind, typing.Callable]] = {
        FieldKind.REFERENCE: _normalize_reference,
        FieldKind.DATETIME: _normalize_datetime,
    }

    def normalize_value(self, field: FieldDescriptor, value: typing.Any) -> JSONValue:
        """
        Returns the JSON-compatible form of a value held by ``field``.
        """
        if value is None:
            return None
        normalizer = self._normalizers.get(field.kind, JsonSerializer._normalize_passthrough)
        if field.is_array:
            if isinstance(value, collections.abc.Mapping):
                return OrderedDict(
                    (k, None if v is None else normalizer(self, field, v))
                    for k, v in value.items()
                )
            return [None if v is None else normalizer(self, field, v) for v in value]
        return normalizer(self, field, value)

    def normalize(self, target: typing.Any, ctx: SerializationContext) -> JSONObject:
        descr = self._metadata.describe(type(target))
        retval: MutableJSONObject = OrderedDict()
        for field in descr.fields.values():
            if not ctx.selects(field):
                continue
            value = target._peek(field.attribute)
            if field.attribute == "id" and (ctx.operation is Operation.UPDATE or value is None):
                continue
            retval[field.name] = self.normalize_value(field, value)
        return retval

    def serialize(self, target: typing.Any, ctx: SerializationContext) -> bytes:
        try:
            return json.dumps(self.normalize(target, ctx)).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializerError(f"failed to encode {type(target).__name__}: {e}") from e

    def denormalize(
        self,
        data: JSONObject,
        target_type: typing.Type[T],
        ctx: SerializationContext,
        populate_into: typing.Optional[T] = None,
    ) -> T:
        descr = self._metadata.describe(target_type)
        target = target_type() if populate_into is None else populate_into
        for key, value in data.items():
            if is_meta_key(key):
                continue
            field = descr.get_field_by_name(key)
            if field is None or not ctx.selects(field):
                continue
            setattr(target, field.attribute, value)
        return target

    def deserialize(
        self,
        data: bytes,
        target_type: typing.Type[T],
        ctx: SerializationContext,
        populate_into: typing.Optional[T] = None,
    ) -> T:
        try:
            document = json.loads(data)
        except ValueError as e:
            raise SerializerError(f"malformed JSON document: {e}") from e
        if not isinstance(document, collections.abc.Mapping):
            raise SerializerError(
                f"expected a JSON object, got {type(document).__name__}"
            )
        return self.denormalize(document, target_type, ctx, populate_into)

    def __init__(self, metadata: MetadataSource, iri_resolver: IdentifierResolver):
        self._metadata = metadata
        self._iri_resolver = iri_resolver

import collections.abc
import datetime
import logging
import typing

from .declarative import Attr, build_descriptor
from .exceptions import (
    InvalidFieldValueError,
    UnboundObjectError,
    UndeclaredFieldError,
)
from .hydra import ID_KEY, Operation, denorm_context, is_meta_key, norm_context
from .models import FieldDescriptor, FieldKind, ResourceDescriptor
from .types import JSONObject
from .utils import canonicalize

if typing.TYPE_CHECKING:
    from .client import HydraClient  # noqa

logger = logging.getLogger(__name__)


class ResourceProxy:
    """
    The base class of resource classes.  An instance stands for one remote
    resource and loads its fields from the API on first access.

    .. code-block:: python

       class Thing(ResourceProxy):
           id = Attr(int)
           name = Attr(str)
           tags = Attr(str, array=True)

    Instances handed out by a :py:class:`~hydra_client.client.HydraClient`
    are bound to it; an instance built directly stays unbound until it gets
    posted.
    """

    __resource_descriptor__: typing.ClassVar[ResourceDescriptor]

    id = Attr()

    _client: typing.Optional["HydraClient"]
    _values: typing.Dict[str, typing.Any]
    _hydrated: typing.Set[str]
    _remote_values: typing.Dict[str, typing.Any]
    _meta: typing.Dict[str, typing.Any]
    _is_hydrating: bool
    _auto_hydrate_enabled: bool

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.__resource_descriptor__ = build_descriptor(cls)

    @classmethod
    def _from_identity(cls, client: "HydraClient", id: typing.Any) -> "ResourceProxy":
        obj = cls()
        obj._bind(client)
        obj._assign(obj._field("id"), id)
        return obj

    def _bind(self, client: "HydraClient") -> None:
        self._client = client

    def _require_client(self, operation: str) -> "HydraClient":
        if self._client is None:
            raise UnboundObjectError(self, operation)
        return self._client

    def _descriptor(self) -> ResourceDescriptor:
        if self._client is not None:
            return self._client.context.metadata.describe(type(self))
        return type(self).__resource_descriptor__

    def _field(self, attribute: str) -> FieldDescriptor:
        field = self._descriptor().get_field(attribute)
        if field is None:
            raise UndeclaredFieldError(type(self), attribute)
        return field

    def _coerce_item(self, field: FieldDescriptor, value: typing.Any) -> typing.Any:
        kind = field.kind
        if kind is FieldKind.ANY:
            return value
        elif kind is FieldKind.REFERENCE:
            if isinstance(value, ResourceProxy):
                return value
            client = self._require_client(f"resolving {field.attribute}")
            return client._resolve_reference(field, value)
        elif kind is FieldKind.DATETIME:
            if isinstance(value, datetime.datetime):
                return value
            elif not isinstance(value, str):
                raise InvalidFieldValueError(
                    type(self), field.attribute, value, "expected an ISO 8601 string"
                )
        try:
            if kind is FieldKind.INTEGER:
                return int(value)
            elif kind is FieldKind.FLOAT:
                return float(value)
            elif kind is FieldKind.BOOLEAN:
                return bool(value)
            elif kind is FieldKind.STRING:
                return str(value)
            else:
                return datetime.datetime.fromisoformat(value)
        except (TypeError, ValueError) as e:
            raise InvalidFieldValueError(type(self), field.attribute, value, str(e)) from e

    def _coerce(self, field: FieldDescriptor, value: typing.Any) -> typing.Any:
        if value is None:
            return None
        if not field.is_array:
            return self._coerce_item(field, value)
        if isinstance(value, collections.abc.Mapping):
            return {
                k: None if v is None else self._coerce_item(field, v) for k, v in value.items()
            }
        elif isinstance(value, (list, tuple)):
            return [None if v is None else self._coerce_item(field, v) for v in value]
        raise InvalidFieldValueError(type(self), field.attribute, value, "expected an array")

    def _assign(self, field: FieldDescriptor, value: typing.Any) -> None:
        self._values[field.attribute] = self._coerce(field, value)
        self._hydrated.add(field.attribute)

    def _assign_all(self, values: typing.Mapping[str, typing.Any]) -> None:
        for attribute, value in values.items():
            self._assign(self._field(attribute), value)

    def _peek(self, attribute: str) -> typing.Any:
        """
        Returns the value held for a field without triggering hydration.
        """
        return self._values.get(attribute, self._field(attribute).default)

    def _get(self, attribute: str) -> typing.Any:
        field = self._field(attribute)
        if attribute == "id":
            return self._values.get("id")
        if (
            self._auto_hydrate_enabled
            and not self._is_hydrating
            and attribute not in self._hydrated
        ):
            self._hydrate()
        return self._values.get(attribute, field.default)

    def _set(self, attribute: str, value: typing.Any) -> None:
        field = self._field(attribute)
        if not self._is_hydrating and attribute not in self._hydrated:
            self._hydrate()
        self._assign(field, value)

    def _refresh(self, data: JSONObject, override_hydrated: bool = True) -> None:
        """
        Merges a document received from the API into the object.

        :param JSONObject data: the document.
        :param bool override_hydrated: when false, the fields already hydrated keep their value.
        """
        client = self._require_client("refresh")
        descr = self._descriptor()
        ctx = denorm_context(descr, data)
        accepted: typing.Dict[str, typing.Any] = {}
        for key, value in data.items():
            if is_meta_key(key):
                self._meta[key] = value
                continue
            field = descr.get_field_by_name(key)
            if field is None or not ctx.selects(field):
                continue
            if not override_hydrated and field.attribute in self._hydrated:
                continue
            accepted[key] = value
        if not accepted:
            return

        serializer = client.context.serializer
        self._is_hydrating = True
        try:
            serializer.denormalize(accepted, type(self), ctx, populate_into=self)
        finally:
            self._is_hydrating = False

        self._take_snapshot([descr.get_field_by_name(key).attribute for key in accepted])

    def _take_snapshot(self, attributes: typing.Sequence[str]) -> None:
        descr = self._descriptor()
        normalized = self._require_client("refresh").context.serializer.normalize(
            self, norm_context(descr, Operation.READ, attributes)
        )
        for attribute in attributes:
            self._remote_values[attribute] = normalized.get(descr.fields[attribute].name)

    def _hydrate(self, data: typing.Optional[JSONObject] = None) -> None:
        """
        Loads the fields not hydrated yet, from ``data`` or from the API.
        Does nothing when every field is hydrated or when the object has no identifier.
        """
        if self.is_hydrated or self._values.get("id") is None:
            return
        client = self._require_client("hydrate")
        fetched = data is None
        if data is None:
            logger.debug("hydrating %r", self)
            data = client._fetch_data(self)
        self._refresh(data, override_hydrated=False)
        if fetched:
            missing = [a for a in self._descriptor().fields if a not in self._hydrated]
            self._hydrated.update(missing)
            self._take_snapshot(missing)

    def _get_edited_fields(self, normalized: JSONObject) -> typing.List[str]:
        """
        Returns the attribute names of the writable fields whose value differs
        from the last value received from the API.

        Arrays are compared regardless of the order of their items.

        :param JSONObject normalized: the normalized form of the object.
        """
        edited: typing.List[str] = []
        for attribute, field in self._descriptor().fields.items():
            if attribute == "id" or field.read_only or attribute not in self._hydrated:
                continue
            remote = canonicalize(self._remote_values.get(attribute))
            current = canonicalize(normalized.get(field.name))
            if remote != current:
                edited.append(attribute)
        return edited

    def __getattr__(self, name: str) -> typing.Any:
        if name.startswith("_"):
            raise AttributeError(name)
        raise UndeclaredFieldError(type(self), name)

    def __setattr__(self, name: str, value: typing.Any) -> None:
        if not name.startswith("_"):
            self._field(name)
        super().__setattr__(name, value)

    def get(self, name: str) -> typing.Any:
        return self._get(name)

    def set(self, name: str, value: typing.Any) -> None:
        self._set(name, value)

    def set_auto_hydrate(self, enabled: bool) -> None:
        self._auto_hydrate_enabled = enabled

    @property
    def is_hydrated(self) -> bool:
        return all(attribute in self._hydrated for attribute in self._descriptor().fields)

    @property
    def reference(self) -> typing.Optional[str]:
        """
        The ``@id`` last received for this object.
        """
        return self._meta.get(ID_KEY)

    @property
    def meta(self) -> typing.Mapping[str, typing.Any]:
        return self._meta

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._values.get('id')!r}>"

    def __init__(self, id: typing.Any = None, **values: typing.Any):
        self._client = None
        self._values = {}
        self._hydrated = set()
        self._remote_values = {}
        self._meta = {}
        self._is_hydrating = False
        self._auto_hydrate_enabled = True
        if id is not None:
            self._assign(self._field("id"), id)
        self._assign_all(values)

"""
:py:mod:`hydra_client.hydra` gathers the parts of the Hydra / JSON-LD vocabulary
the client understands, along with the serialization contexts derived from it.

Both the prefixed (``hydra:member``) and the compacted (``member``) spellings
are accepted on input.
"""

import collections.abc
import dataclasses
import enum
import typing

from .models import FieldDescriptor, ResourceDescriptor
from .types import JSONObject

TYPE_KEY = "@type"
ID_KEY = "@id"
CONTEXT_KEY = "@context"

COLLECTION_TYPES = frozenset(["hydra:Collection", "Collection"])
MEMBER_KEYS = ("hydra:member", "member")
VIEW_KEYS = ("hydra:view", "view")
NEXT_KEYS = ("hydra:next", "next")
TOTAL_ITEMS_KEYS = ("hydra:totalItems", "totalItems")


def is_meta_key(key: str) -> bool:
    return key.startswith("@")


def _first(document: JSONObject, keys: typing.Iterable[str]) -> typing.Any:
    for key in keys:
        if key in document:
            return document[key]
    return None


def is_collection(document: JSONObject) -> bool:
    return document.get(TYPE_KEY) in COLLECTION_TYPES


def members_of(document: JSONObject) -> typing.Sequence[typing.Any]:
    return _first(document, MEMBER_KEYS) or ()


def next_page_of(document: JSONObject) -> typing.Optional[str]:
    view = _first(document, VIEW_KEYS)
    if not isinstance(view, collections.abc.Mapping):
        return None
    return _first(view, NEXT_KEYS) or None


def total_items_of(document: JSONObject) -> typing.Optional[int]:
    total = _first(document, TOTAL_ITEMS_KEYS)
    return int(total) if total is not None else None


def reference_in(value: typing.Any) -> typing.Optional[str]:
    """
    Extracts a reference from either a bare IRI or an embedded object.
    """
    if isinstance(value, str):
        return value
    elif isinstance(value, collections.abc.Mapping):
        return value.get(ID_KEY)
    return None


def collection_stub(reference: str) -> typing.Dict[str, typing.Any]:
    """
    Returns a page that holds no member and only points to ``reference``,
    which makes a collection start fetching from there on first demand.
    """
    return {VIEW_KEYS[0]: {NEXT_KEYS[0]: reference}}


class Operation(enum.Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"


@dataclasses.dataclass(frozen=True)
class SerializationContext:
    """
    A :py:class:`SerializationContext` scopes the fields a serializer touches.
    """

    group: str
    """
    The serialization group, as in ``sport_norm``.
    """
    operation: Operation = Operation.READ
    fields: typing.Optional[typing.FrozenSet[str]] = None
    """
    When set, restricts the serialization to these attribute names.
    """

    def selects(self, field: FieldDescriptor) -> bool:
        if self.fields is not None and field.attribute not in self.fields:
            return False
        if self.operation is not Operation.READ and field.read_only:
            return False
        return field.in_group(self.group)


def _lcfirst(name: str) -> str:
    return name[:1].lower() + name[1:]


def norm_context(
    descr: ResourceDescriptor,
    operation: Operation,
    fields: typing.Optional[typing.Iterable[str]] = None,
) -> SerializationContext:
    return SerializationContext(
        group=f"{_lcfirst(descr.name)}_norm",
        operation=operation,
        fields=frozenset(fields) if fields is not None else None,
    )


def denorm_context(descr: ResourceDescriptor, document: JSONObject) -> SerializationContext:
    type_ = document.get(TYPE_KEY)
    name = type_ if isinstance(type_, str) else descr.name
    return SerializationContext(group=f"{_lcfirst(name)}_denorm", operation=Operation.READ)

"""
Declarative definition of resource classes.

.. code-block:: python

   class Sport(ResourceProxy):
       id = Attr(int)
       translated_names = Attr(str, name="translatedNames", array=True)
       universe = Attr(Deferred(lambda: Universe))
       active = Attr(bool, default=True)
       created_at = Attr(datetime.datetime, name="createdAt", read_only=True)

       class Meta:
           path = "sports"
           cache = Cache(public=True, ttl=3600, warmup=True)
"""

import dataclasses
import re
import typing
from collections import OrderedDict

from .deferred import Deferred
from .exceptions import InvalidDeclarationError
from .models import (
    NO_CACHE,
    SCALAR_KINDS,
    CachePolicy,
    CacheScope,
    FieldDescriptor,
    FieldKind,
    ResourceDescriptor,
)
from .utils import UNSPECIFIED, UnspecifiedType, maybe_unspecified

FieldType = typing.Union[UnspecifiedType, type, str, Deferred[type]]


class Attr:
    """
    Declares a field of a resource class.  Instances are data descriptors:
    reading and writing the attribute on a resource object goes through
    the object's hydration machinery.

    :param type: a scalar type (``int``, ``float``, ``bool``, ``str``, ``datetime.datetime``),
                 a resource class, the name of a resource class, or a :py:class:`Deferred`
                 yielding a resource class.  Left unspecified, values are kept as is.
    :param str name: the name of the field in JSON documents. Defaults to the attribute name.
    :param bool array: whether the field holds a list (or a keyed mapping) of such values.
    :param bool read_only: whether the field is left out of create and update payloads.
    :param groups: the serialization groups the field belongs to. Defaults to every group.
    :param default: the value read before the field gets any value.
    """

    type: FieldType
    name: typing.Union[UnspecifiedType, str]
    array: bool
    read_only: bool
    groups: typing.Optional[typing.Sequence[str]]
    default: typing.Any
    attribute: typing.Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.attribute = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance._get(self.attribute)

    def __set__(self, instance, value) -> None:
        instance._set(self.attribute, value)

    def __repr__(self) -> str:
        return f"Attr({self.type!r}, name={self.name!r}, array={self.array!r})"

    def __init__(
        self,
        type: FieldType = UNSPECIFIED,
        name: typing.Union[UnspecifiedType, str] = UNSPECIFIED,
        array: bool = False,
        read_only: bool = False,
        groups: typing.Optional[typing.Sequence[str]] = None,
        default: typing.Any = None,
    ):
        self.type = type
        self.name = name
        self.array = array
        self.read_only = read_only
        self.groups = groups
        self.default = default


@dataclasses.dataclass
class Cache:
    public: bool = False
    ttl: int = 0
    warmup: bool = False

    def to_policy(self) -> CachePolicy:
        return CachePolicy(
            enabled=True,
            scope=CacheScope.PUBLIC if self.public else CacheScope.PRIVATE,
            ttl=self.ttl,
            warmup=self.warmup,
        )


@dataclasses.dataclass
class Meta:
    name: typing.Optional[str] = None
    path: typing.Optional[str] = None
    cache: typing.Optional[Cache] = None


META_KEYS = frozenset(f.name for f in dataclasses.fields(Meta))


def handle_meta(meta: typing.Optional[type]) -> Meta:
    if meta is None:
        return Meta()
    attrs = {k: v for k, v in vars(meta).items() if not k.startswith("__")}
    unknown = set(attrs) - META_KEYS
    if unknown:
        raise InvalidDeclarationError(f"unknown Meta option(s): {', '.join(sorted(unknown))}")
    cache = attrs.get("cache")
    if cache is not None and not isinstance(cache, Cache):
        raise InvalidDeclarationError("Meta.cache must be a Cache instance")
    return Meta(
        name=attrs.get("name"),
        path=attrs.get("path"),
        cache=cache,
    )


def resolve_kind(
    attribute: str, attr: Attr
) -> typing.Tuple[FieldKind, typing.Union[None, type, str, Deferred[type]]]:
    typ = attr.type
    if typ is UNSPECIFIED:
        return FieldKind.ANY, None
    elif isinstance(typ, (str, Deferred)):
        return FieldKind.REFERENCE, typ
    elif isinstance(typ, type):
        from .proxy import ResourceProxy

        if issubclass(typ, ResourceProxy):
            return FieldKind.REFERENCE, typ
        kind = SCALAR_KINDS.get(typ)
        if kind is not None:
            return kind, None
    raise InvalidDeclarationError(f"unsupported type for field {attribute}: {typ!r}")


def default_path(name: str) -> str:
    snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
    if re.search(r"[^aeiou]y$", snake):
        return snake[:-1] + "ies"
    elif snake.endswith(("s", "x", "ch", "sh")):
        return snake + "es"
    return snake + "s"


def collect_attrs(class_: type) -> typing.Mapping[str, Attr]:
    attrs: typing.Dict[str, Attr] = OrderedDict()
    for klass in reversed(class_.__mro__):
        for k, v in vars(klass).items():
            if isinstance(v, Attr):
                attrs[k] = v
    return attrs


def build_descriptor(class_: type) -> ResourceDescriptor:
    meta = handle_meta(class_.__dict__.get("Meta"))
    fields: typing.List[FieldDescriptor] = []
    for attribute, attr in collect_attrs(class_).items():
        kind, target = resolve_kind(attribute, attr)
        fields.append(
            FieldDescriptor(
                attribute=attribute,
                kind=kind,
                name=maybe_unspecified(attr.name, attribute),
                is_array=attr.array,
                target=target,
                read_only=attr.read_only,
                groups=attr.groups,
                default=attr.default,
            )
        )
    name = meta.name or class_.__name__
    return ResourceDescriptor(
        class_=class_,
        name=name,
        path=meta.path or default_path(name),
        fields=fields,
        cache=meta.cache.to_policy() if meta.cache is not None else NO_CACHE,
    )

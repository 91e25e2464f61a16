import dataclasses
import datetime
import enum
import typing
from collections import OrderedDict

from .deferred import Deferred
from .utils import assert_not_none


class FieldKind(enum.Enum):
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    DATETIME = "datetime"
    REFERENCE = "reference"
    ANY = "any"


SCALAR_KINDS: typing.Mapping[type, FieldKind] = {
    bool: FieldKind.BOOLEAN,
    int: FieldKind.INTEGER,
    float: FieldKind.FLOAT,
    str: FieldKind.STRING,
    datetime.datetime: FieldKind.DATETIME,
}


class CacheScope(enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


@dataclasses.dataclass(frozen=True)
class CachePolicy:
    """
    A :py:class:`CachePolicy` tells the adapter how responses for a resource class
    may be kept in its persistent cache.
    """

    enabled: bool = False
    """
    Set to :py:const:`True` if responses may be stored in the persistent cache.
    """
    scope: CacheScope = CacheScope.PRIVATE
    """
    :py:const:`CacheScope.PUBLIC` entries are shared among every user of the adapter.
    """
    ttl: int = 0
    """
    Lifetime of a cache entry, in seconds.
    """
    warmup: bool = False
    """
    Set to :py:const:`True` if the whole collection is to be fetched by :py:meth:`HydraClient.cache_warm_up`.
    """


NO_CACHE = CachePolicy()


class FieldDescriptor:
    """
    A :py:class:`FieldDescriptor` holds information about a field of a resource class.

    :param str attribute: the Python attribute name.
    :param FieldKind kind: the kind of the value.
    :param str name: the name of the field in JSON documents.
    :param bool is_array: whether the field holds a list or a keyed mapping of values.
    :param target: the resource class a reference field points to.
    """

    parent: typing.Optional["ResourceDescriptor"] = None
    attribute: str
    name: str
    kind: FieldKind
    is_array: bool
    read_only: bool
    groups: typing.Optional[typing.FrozenSet[str]]
    default: typing.Any
    _target: typing.Union[None, type, str, Deferred[type]]

    @property
    def is_reference(self) -> bool:
        return self.kind is FieldKind.REFERENCE

    @property
    def target(self) -> typing.Optional[type]:
        """
        The resource class a reference field points to, resolved on first access.
        A target declared by name needs a registry, see :py:meth:`resolve_target`.
        """
        return self.resolve_target()

    def resolve_target(
        self, resolve_name: typing.Optional[typing.Callable[[str], type]] = None
    ) -> typing.Optional[type]:
        if isinstance(self._target, Deferred):
            return self._target()
        elif isinstance(self._target, str):
            if resolve_name is None:
                from .exceptions import InvalidDeclarationError

                raise InvalidDeclarationError(
                    f"reference {self._target!r} of field {self.attribute} cannot be resolved without a metadata source"
                )
            return resolve_name(self._target)
        else:
            return self._target

    def in_group(self, group: typing.Optional[str]) -> bool:
        return group is None or self.groups is None or group in self.groups

    def bind(self, parent: "ResourceDescriptor") -> "FieldDescriptor":
        self.parent = parent
        return self

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.attribute!r}, {self.kind.value}{'[]' if self.is_array else ''})"

    def __init__(
        self,
        attribute: str,
        kind: FieldKind,
        name: typing.Optional[str] = None,
        is_array: bool = False,
        target: typing.Union[None, type, str, Deferred[type]] = None,
        read_only: bool = False,
        groups: typing.Optional[typing.Iterable[str]] = None,
        default: typing.Any = None,
    ):
        self.attribute = attribute
        self.name = attribute if name is None else name
        self.kind = kind
        self.is_array = is_array
        self._target = target
        self.read_only = read_only
        self.groups = frozenset(groups) if groups is not None else None
        self.default = default


class ResourceDescriptor:
    """
    A :py:class:`ResourceDescriptor` holds information about a resource class.

    :param type class_: the resource class.
    :param str name: the short name of the resource, as found in ``@type``.
    :param str path: the path segment of the collection the resources belong to.
    :param Iterable[FieldDescriptor] fields: the descriptors for the declared fields.
    :param CachePolicy cache: the cache policy for the resource.
    """

    class_: type
    name: str
    path: str
    cache: CachePolicy
    _fields: typing.MutableMapping[str, FieldDescriptor]
    _fields_by_name: typing.MutableMapping[str, FieldDescriptor]

    @property
    def fields(self) -> typing.Mapping[str, FieldDescriptor]:
        """
        The mapping of attribute names to :py:class:`FieldDescriptor`s.
        """
        return self._fields

    def get_field(self, attribute: str) -> typing.Optional[FieldDescriptor]:
        return self._fields.get(attribute)

    def get_field_by_name(self, name: str) -> typing.Optional[FieldDescriptor]:
        """
        Returns the descriptor of the field whose JSON name is ``name``.
        """
        return self._fields_by_name.get(name)

    def add_field(self, field: FieldDescriptor) -> None:
        self._fields[field.attribute] = field.bind(self)
        self._fields_by_name[field.name] = field

    def __repr__(self) -> str:
        return f"ResourceDescriptor({self.class_.__name__}, path={self.path!r})"

    def __init__(
        self,
        class_: type,
        name: str,
        path: str,
        fields: typing.Iterable[FieldDescriptor] = (),
        cache: CachePolicy = NO_CACHE,
    ) -> None:
        self.class_ = class_
        self.name = name
        self.path = path
        self.cache = cache
        self._fields = OrderedDict()
        self._fields_by_name = OrderedDict()
        for field in fields:
            self.add_field(field)
        assert_not_none(self._fields.get("id"))

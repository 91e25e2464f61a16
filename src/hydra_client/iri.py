import collections.abc
import datetime
import typing
from urllib.parse import quote, unquote, urlencode, urlsplit

from .exceptions import MissingIdentifierError, UnknownReferenceError
from .interfaces import IdentifierResolver, MetadataSource
from .models import FieldKind


class IriConverter(IdentifierResolver):
    """
    Resolves references shaped as ``{prefix}/{path}/{id}``, where ``path`` is
    the collection path a resource class declares.

    Filters are encoded the way API Platform reads them: sequences as
    ``key[]=a&key[]=b`` and mappings as ``key[sub]=value``.

    :param MetadataSource metadata: the source of resource descriptors.
    :param str prefix: the path every reference starts with.
    """

    metadata: MetadataSource
    prefix: str

    def reference_of(self, class_: type, id: typing.Any) -> str:
        descr = self.metadata.describe(class_)
        return f"{self.prefix}/{descr.path}/{quote(str(id), safe='')}"

    def reference_of_object(self, target: typing.Any) -> str:
        id_ = target.id
        if id_ is None:
            raise MissingIdentifierError(target)
        return self.reference_of(type(target), id_)

    def class_and_id_of(self, reference: str) -> typing.Tuple[type, typing.Any]:
        path = urlsplit(reference).path
        if not path.startswith(self.prefix + "/"):
            raise UnknownReferenceError(reference)
        segment, _, raw_id = path[len(self.prefix) + 1 :].strip("/").rpartition("/")
        if not segment or not raw_id:
            raise UnknownReferenceError(reference)
        try:
            class_ = self.metadata.class_by_path(segment)
        except UnknownReferenceError:
            raise UnknownReferenceError(reference)
        id_: typing.Any = unquote(raw_id)
        if self.metadata.fields_of(class_)["id"].kind is FieldKind.INTEGER:
            try:
                id_ = int(id_)
            except ValueError:
                raise UnknownReferenceError(reference)
        return class_, id_

    def _render_filter_value(self, value: typing.Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        elif isinstance(value, (datetime.datetime, datetime.date)):
            return value.isoformat()
        elif hasattr(type(value), "__resource_descriptor__"):
            return self.reference_of_object(value)
        return str(value)

    def _flatten_filters(
        self, filters: typing.Mapping[str, typing.Any], parent: typing.Optional[str] = None
    ) -> typing.Iterator[typing.Tuple[str, str]]:
        for k, v in filters.items():
            key = k if parent is None else f"{parent}[{k}]"
            if v is None:
                continue
            elif isinstance(v, collections.abc.Mapping):
                yield from self._flatten_filters(v, key)
            elif isinstance(v, (list, tuple, set, frozenset)):
                for item in v:
                    yield f"{key}[]", self._render_filter_value(item)
            else:
                yield key, self._render_filter_value(v)

    def collection_reference_of(
        self, class_: type, filters: typing.Optional[typing.Mapping[str, typing.Any]] = None
    ) -> str:
        base = f"{self.prefix}/{self.metadata.describe(class_).path}"
        if not filters:
            return base
        query = urlencode(list(self._flatten_filters(filters)))
        return f"{base}?{query}" if query else base

    def is_reference(self, value: typing.Any) -> bool:
        return isinstance(value, str) and urlsplit(value).path.startswith(self.prefix + "/")

    def __init__(self, metadata: MetadataSource, prefix: str = "/api"):
        self.metadata = metadata
        self.prefix = prefix.rstrip("/")

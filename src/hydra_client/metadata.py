import logging
import typing
from collections import OrderedDict

from .exceptions import (
    InvalidDeclarationError,
    ResourceNotRegisteredError,
    UnknownReferenceError,
)
from .interfaces import MetadataSource
from .models import ResourceDescriptor

logger = logging.getLogger(__name__)


class DeclarativeMetadataSource(MetadataSource):
    """
    A :py:class:`MetadataSource` serving the descriptors that resource classes
    build out of their :py:class:`~hydra_client.declarative.Attr` declarations.

    :param Iterable[type] classes: the resource classes to register.
    """

    _by_class: typing.Dict[type, ResourceDescriptor]
    _by_name: typing.Dict[str, ResourceDescriptor]
    _by_path: typing.Dict[str, ResourceDescriptor]

    def register(self, class_: type) -> ResourceDescriptor:
        descr: typing.Optional[ResourceDescriptor] = getattr(
            class_, "__resource_descriptor__", None
        )
        if descr is None or descr.class_ is not class_:
            raise InvalidDeclarationError(f"{class_.__name__} is not a resource class")
        for index, key in ((self._by_name, descr.name), (self._by_path, descr.path)):
            existing = index.get(key)
            if existing is not None and existing.class_ is not class_:
                raise InvalidDeclarationError(
                    f"{class_.__name__} and {existing.class_.__name__} both claim {key!r}"
                )
        self._by_class[class_] = descr
        self._by_name[descr.name] = descr
        self._by_path[descr.path] = descr
        logger.debug("registered %s at /%s", descr.name, descr.path)
        return descr

    def describe(self, class_: type) -> ResourceDescriptor:
        try:
            return self._by_class[class_]
        except KeyError:
            raise ResourceNotRegisteredError(class_)

    def descriptors(self) -> typing.Iterable[ResourceDescriptor]:
        return list(self._by_class.values())

    def class_by_name(self, name: str) -> type:
        try:
            return self._by_name[name].class_
        except KeyError:
            raise UnknownReferenceError(name)

    def class_by_path(self, path: str) -> type:
        try:
            return self._by_path[path].class_
        except KeyError:
            raise UnknownReferenceError(path)

    def __contains__(self, class_: type) -> bool:
        return class_ in self._by_class

    def __init__(self, classes: typing.Iterable[type] = ()):
        self._by_class = OrderedDict()
        self._by_name = {}
        self._by_path = {}
        for class_ in classes:
            self.register(class_)

"""
Classes in :py:mod:`hydra_client.messages` describe what travels between the
client and an :py:class:`~hydra_client.interfaces.Adapter`.
"""

import dataclasses
import typing

from .models import NO_CACHE, CachePolicy
from .types import JSONObject


@dataclasses.dataclass
class Request:
    method: str
    target: str
    body: typing.Optional[bytes] = None
    headers: typing.Dict[str, str] = dataclasses.field(default_factory=dict)
    cache: CachePolicy = NO_CACHE
    """
    Persistent cache hints.  Only honored for ``GET`` requests.
    """


@dataclasses.dataclass
class Response:
    status_code: int
    headers: typing.Mapping[str, str] = dataclasses.field(default_factory=dict)
    body: bytes = b""

    @property
    def content_type(self) -> typing.Optional[str]:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return v
        return None


@dataclasses.dataclass
class JsonResponse(Response):
    content: JSONObject = dataclasses.field(default_factory=dict)
    """
    The decoded JSON document.
    """


@dataclasses.dataclass
class WarmUpItem:
    class_: type
    ttl: int
    fetch: typing.Callable[[], typing.Any]
    """
    A zero-argument callable that materializes the whole collection of ``class_``
    through the client.
    """


@dataclasses.dataclass
class WarmUpResult:
    class_: type
    response: Response

import abc
import threading
import time
import typing


class CacheBackend(metaclass=abc.ABCMeta):
    """
    A :py:class:`CacheBackend` keeps values across the lifetime of an adapter.
    """

    @abc.abstractmethod
    def get(self, key: str) -> typing.Any:
        """
        Returns the value stored under ``key``, or :py:const:`None` when missing or expired.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def set(self, key: str, value: typing.Any, ttl: int = 0) -> None:
        """
        Stores a value.

        :param str key: the key.
        :param Any value: the value.
        :param int ttl: lifetime in seconds.  Values stored with a ``ttl`` of 0 never expire.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        ...  # pragma: nocover

    @abc.abstractmethod
    def clear(self) -> None:
        ...  # pragma: nocover


class MemoryCacheBackend(CacheBackend):
    _entries: typing.Dict[str, typing.Tuple[typing.Optional[float], typing.Any]]
    _lock: threading.Lock
    _clock: typing.Callable[[], float]

    def get(self, key: str) -> typing.Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: typing.Any, ttl: int = 0) -> None:
        expires_at = self._clock() + ttl if ttl > 0 else None
        with self._lock:
            self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __init__(self, clock: typing.Callable[[], float] = time.monotonic):
        self._entries = {}
        self._lock = threading.Lock()
        self._clock = clock

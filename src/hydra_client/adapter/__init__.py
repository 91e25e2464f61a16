from .cache import CacheBackend, MemoryCacheBackend  # noqa: F401
from .http import HttpxAdapter  # noqa: F401

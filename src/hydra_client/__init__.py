from .client import HydraClient, HydraContext  # noqa: F401
from .collection import ResourceCollection  # noqa: F401
from .declarative import Attr, Cache  # noqa: F401
from .deferred import Deferred  # noqa: F401
from .proxy import ResourceProxy  # noqa: F401

import collections
import collections.abc
import logging
import typing

from .exceptions import UnexpectedDocumentError
from .hydra import members_of, next_page_of, reference_in, total_items_of
from .types import JSONObject

if typing.TYPE_CHECKING:
    from .client import HydraClient  # noqa
    from .proxy import ResourceProxy  # noqa

logger = logging.getLogger(__name__)


class ResourceCollection(typing.Iterator["ResourceProxy"]):
    """
    A lazy, forward-only sequence over a paginated Hydra collection.

    Pages are fetched on demand by following ``hydra:view`` / ``hydra:next``;
    the members are materialized through the identity map of the client and
    yielded in page order.  A collection can be iterated only once.

    :param HydraClient client: the client the members are resolved through.
    :param type class_: the resource class of the members, if known.  It picks the cache policy for page requests.
    :param JSONObject page: the page to start from.
    :param bool cache_enabled: whether pages may be answered from the execution cache of the adapter.
    :param bool auto_hydrate_enabled: the auto-hydrate setting of the members first brought into the identity map by this collection.
    :param int max_pages: the maximum number of pages to fetch.  Unlimited if omitted.
    """

    class_: typing.Optional[type]
    _client: "HydraClient"
    _page: JSONObject
    _page_consumed: bool
    _buffer: typing.Deque["ResourceProxy"]
    _cache_enabled: bool
    _auto_hydrate_enabled: bool
    _max_pages: typing.Optional[int]
    _pages_fetched: int
    _total_items: typing.Optional[int]
    _truncated: bool = False

    @property
    def total_items(self) -> typing.Optional[int]:
        """
        The ``hydra:totalItems`` announced by the last page seen, if any.
        """
        return self._total_items

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    def _materialize_current_page(self) -> None:
        if self._page_consumed:
            return
        self._page_consumed = True
        for member in members_of(self._page):
            reference = reference_in(member)
            if reference is None:
                raise UnexpectedDocumentError(member)
            obj, created = self._client._get_or_create(reference)
            if isinstance(member, collections.abc.Mapping):
                obj._refresh(member, override_hydrated=False)
            if created:
                obj.set_auto_hydrate(self._auto_hydrate_enabled)
            self._buffer.append(obj)

    def _fetch_next_page(self) -> bool:
        self._materialize_current_page()
        reference = next_page_of(self._page)
        if reference is None:
            return False
        if self._max_pages is not None and self._pages_fetched >= self._max_pages:
            if not self._truncated:
                self._truncated = True
                logger.warning(
                    "stopped after %d page(s) of %s; next page was %s",
                    self._pages_fetched,
                    self.class_.__name__ if self.class_ is not None else "collection",
                    reference,
                )
            return False
        self._page = self._client._fetch_page(self.class_, reference, self._cache_enabled)
        self._page_consumed = False
        self._pages_fetched += 1
        total = total_items_of(self._page)
        if total is not None:
            self._total_items = total
        self._materialize_current_page()
        return True

    def load_all(self) -> "ResourceCollection":
        """
        Fetches every remaining page.  The members stay buffered, so that
        iterating the collection afterwards yields them without any network call.
        """
        while self._fetch_next_page():
            pass
        return self

    def __iter__(self) -> "ResourceCollection":
        return self

    def __next__(self) -> "ResourceProxy":
        while not self._buffer:
            if self._page_consumed:
                if not self._fetch_next_page():
                    raise StopIteration
            else:
                self._materialize_current_page()
        return self._buffer.popleft()

    def __repr__(self) -> str:
        name = self.class_.__name__ if self.class_ is not None else None
        return f"<ResourceCollection class_={name} pages_fetched={self._pages_fetched}>"

    def __init__(
        self,
        client: "HydraClient",
        class_: typing.Optional[type],
        page: JSONObject,
        cache_enabled: bool = True,
        auto_hydrate_enabled: bool = True,
        max_pages: typing.Optional[int] = None,
    ):
        self._client = client
        self.class_ = class_
        self._page = page
        self._page_consumed = False
        self._buffer = collections.deque()
        self._cache_enabled = cache_enabled
        self._auto_hydrate_enabled = auto_hydrate_enabled
        self._max_pages = max_pages
        self._pages_fetched = 0
        self._total_items = total_items_of(page)

from .canonical import canonicalize  # noqa
from .types import UNSPECIFIED, UnspecifiedType, assert_not_none, maybe_unspecified  # noqa

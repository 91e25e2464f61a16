import typing

T = typing.TypeVar("T")


class UnspecifiedType:
    _singleton: typing.ClassVar[typing.Optional["UnspecifiedType"]] = None

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSPECIFIED"

    def __new__(cls) -> "UnspecifiedType":
        if cls._singleton is None:
            cls._singleton = object.__new__(cls)
        return cls._singleton


UNSPECIFIED = UnspecifiedType()


def maybe_unspecified(maybe: typing.Union[UnspecifiedType, T], default: T) -> T:
    return typing.cast(T, maybe) if maybe is not UNSPECIFIED else default


def assert_not_none(value: typing.Optional[T]) -> T:
    assert value is not None
    return value

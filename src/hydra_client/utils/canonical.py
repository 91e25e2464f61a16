import collections.abc
import json
import typing


def _sort_key(value: typing.Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def canonicalize(value: typing.Any) -> typing.Any:
    """
    Returns a comparable form of a normalized field value.

    Sequences are sorted by value and mappings by key before being encoded
    as JSON, so two arrays holding the same members in a different order
    compare equal.  Any other value is returned as is.

    :param Any value: a JSON-compatible value.
    :return: the canonical form of the value.
    """
    if isinstance(value, collections.abc.Mapping):
        return json.dumps(
            {k: value[k] for k in sorted(value, key=str)}, sort_keys=True, default=str
        )
    elif isinstance(value, collections.abc.Sequence) and not isinstance(value, (str, bytes)):
        return json.dumps(sorted(value, key=_sort_key), sort_keys=True, default=str)
    return value

import pytest

from ..utils import canonicalize


@pytest.mark.parametrize(
    "a,b",
    [
        (["b", "a"], ["a", "b"]),
        ({"y": 1, "x": 2}, {"x": 2, "y": 1}),
        ([{"k": 2}, {"k": 1}], [{"k": 1}, {"k": 2}]),
        ([3, 1, 2], (1, 2, 3)),
    ],
)
def test_equal(a, b):
    assert canonicalize(a) == canonicalize(b)


@pytest.mark.parametrize(
    "a,b",
    [
        (["a", "b"], ["a", "c"]),
        (["a"], ["a", "a"]),
        ({"x": 1}, {"x": 2}),
        ([], None),
    ],
)
def test_different(a, b):
    assert canonicalize(a) != canonicalize(b)


def test_scalars_unchanged():
    assert canonicalize("abc") == "abc"
    assert canonicalize(1) == 1
    assert canonicalize(None) is None

from __future__ import annotations

import pytest

from carrier import codec


def test_encode_is_compact_and_keeps_non_ascii() -> None:
    assert codec.encode({"a": [1, 2], "b": "café"}) == '{"a":[1,2],"b":"café"}'


def test_decode_preserves_member_order() -> None:
    decoded = codec.decode('{"z": 1, "2": true, "a": null}')

    assert isinstance(decoded, dict)
    assert list(decoded) == ["z", "2", "a"]
    assert decoded == {"z": 1, "2": True, "a": None}


@pytest.mark.parametrize(
    "value",
    [{"nested": {"list": [1, 2.5, "x", None, False]}}, [], "text", 0, True, None],
)
def test_round_trip(value: object) -> None:
    assert codec.decode(codec.encode(value)) == value  # type: ignore[arg-type]


def test_decode_rejects_malformed_json() -> None:
    with pytest.raises(ValueError):
        codec.decode("{not json")


def test_encode_rejects_non_json_values() -> None:
    with pytest.raises(TypeError):
        codec.encode({"when": object()})  # type: ignore[dict-item]


@pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
def test_encode_rejects_non_finite_floats(number: float) -> None:
    with pytest.raises(ValueError):
        codec.encode({"x": number})

"""JSON codec for carrier blobs.

Encoding is compact and keeps non-ASCII text as-is. Decoding goes through a
pydantic `TypeAdapter` so malformed input surfaces as `ValidationError` (a
`ValueError`), and object member order is preserved in both directions.
"""

from __future__ import annotations

import json

from pydantic import JsonValue, TypeAdapter

_JSON_VALUE_ADAPTER: TypeAdapter[JsonValue] = TypeAdapter(JsonValue)


def encode(value: JsonValue) -> str:
    """Encode a JSON value as a compact string.

    Raises:
        TypeError: If `value` contains something JSON cannot represent.
        ValueError: If `value` contains a reference cycle or a NaN/infinite float.
    """

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def decode(text: str | bytes) -> JsonValue:
    """Decode a JSON document.

    Raises:
        ValueError: If `text` is not valid JSON.
    """

    return _JSON_VALUE_ADAPTER.validate_json(text)

"""Response classification for OKX REST calls.

Turns a RawResponse into either a decoded value of the declared shape or
one of the typed errors in `okx_rest.errors`. Shapes are any type pydantic
can validate (``Dict[str, Any]``, a ``BaseModel`` subclass, ...), decoded
through a generic JSON value first.
"""
import json
from functools import lru_cache
from typing import Any, Dict, List

from pydantic import TypeAdapter, ValidationError

from .errors import DeserializationError, ExchangeApiError, NotFoundError, ShapeError
from .transport import RawResponse

SUCCESS_CODE = "0"

JSON_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    type(None): "null",
}

# default per-element shape for list endpoints
Record = Dict[str, Any]


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def json_type_name(value: Any) -> str:
    return JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def raise_for_status(method: str, raw: RawResponse) -> None:
    if not raw.ok:
        raise ExchangeApiError(method, raw.status_code, raw.body_text)


def decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise DeserializationError(f"response body is not valid JSON: {e}") from e


def check_envelope(method: str, raw: RawResponse, value: Any) -> None:
    """Raise on an exchange error envelope delivered with a 2xx status."""
    if isinstance(value, dict) and "code" in value:
        code = str(value["code"])
        if code != SUCCESS_CODE:
            raise ExchangeApiError(method, raw.status_code, raw.body_text, code=code)


def _validate(shape: Any, value: Any, what: str) -> Any:
    try:
        return _adapter(shape).validate_python(value)
    except ValidationError as e:
        raise DeserializationError(f"{what} does not match {shape}: {e}") from e


def parse_mapping(text: str, shape: Any = Record) -> Any:
    """Parse a body that is itself a single mapping."""
    return _validate(shape, decode_json(text), "response")


def parse_data_list(value: Any, shape: Any = Record) -> List[Any]:
    """Extract and validate the `data` array of an envelope.

    Raises:
        NotFoundError: No `data` field
        ShapeError: `data` is not an array
        DeserializationError: An element does not match `shape`
    """
    if not isinstance(value, dict) or "data" not in value:
        raise NotFoundError("data")
    data = value["data"]
    if not isinstance(data, list):
        raise ShapeError("data", "array", json_type_name(data))
    return _validate(List[shape], data, "data elements")


def classify_mapping(method: str, raw: RawResponse, shape: Any = Record) -> Any:
    raise_for_status(method, raw)
    value = decode_json(raw.body_text)
    check_envelope(method, raw, value)
    return _validate(shape, value, "response")


def classify_list(method: str, raw: RawResponse, shape: Any = Record) -> List[Any]:
    raise_for_status(method, raw)
    value = decode_json(raw.body_text)
    check_envelope(method, raw, value)
    return parse_data_list(value, shape)

"""Canonical request construction.

Builds the query string, body string and absolute URL for a call. The very
same strings are fed to the signer and put on the wire, so they are built
once here and never re-encoded downstream.
"""
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from .errors import ConfigurationError
from .logging_setup import logger

DEFAULT_BASE_URL = "https://www.okx.com"

ALLOWED_METHODS = frozenset(["GET", "POST", "PUT", "DELETE", "PATCH"])
BODY_METHODS = frozenset(["POST", "PUT", "PATCH"])


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    path: str
    query_string: str
    body_string: str
    url: str

    @property
    def body(self) -> Optional[str]:
        return self.body_string or None


def build_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """Form-encode params in insertion order, prefixed with "?"; "" when empty."""
    if not params:
        return ""
    return "?" + urlencode(list(params.items()))


def build_body(method: str, params: Optional[Mapping[str, Any]]) -> str:
    """JSON body for body-carrying methods, "" otherwise.

    A body that cannot be serialized degrades to "" and is logged. The
    request still goes out with an empty body, and the exchange rejects it
    if a body was required.
    """
    if method not in BODY_METHODS or params is None:
        return ""
    try:
        return json.dumps(dict(params), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.warning(f"{method} body serialization failed, sending empty body: {e}")
        return ""


def normalize_method(method: str) -> str:
    upper = method.upper()
    if upper not in ALLOWED_METHODS:
        raise ConfigurationError(f"Unsupported HTTP method: {method}")
    return upper


def prepare_request(
    method: str,
    path: str,
    params: Optional[Mapping[str, Any]] = None,
    *,
    query: Optional[Mapping[str, Any]] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> PreparedRequest:
    """Split params into the query or body channel depending on the method.

    GET/DELETE put `params` in the query string. Body methods put `params`
    in the JSON body; their query string is built only from an explicit
    `query` mapping.
    """
    method = normalize_method(method)
    request_path = path if path.startswith("/") else f"/{path}"

    if method in BODY_METHODS:
        query_string = build_query_string(query)
        body_string = build_body(method, params)
    else:
        merged = dict(params or {})
        merged.update(query or {})
        query_string = build_query_string(merged)
        body_string = ""

    url = f"{base_url.rstrip('/')}{request_path}{query_string}"
    return PreparedRequest(
        method=method,
        path=request_path,
        query_string=query_string,
        body_string=body_string,
        url=url,
    )

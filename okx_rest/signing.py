"""OKX request signing.

The prehash string is ``timestamp + method + requestPath + query + body``
with no separators, signed with HMAC-SHA256 keyed by the API secret and
base64-encoded. The same timestamp must be sent in OK-ACCESS-TIMESTAMP.

Note: with no delimiters, "GET" + "/a" and "G" + "ET/a" concatenate to the
same bytes. Methods come from a fixed set and paths always start with "/",
which keeps the fields from bleeding into each other.
"""
import base64
import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from .secrets import OkxCredentials


@dataclass(frozen=True)
class SigningInput:
    timestamp: str
    method: str
    request_path: str
    query_string: str = ""
    body_string: str = ""

    def canonical(self) -> str:
        return self.timestamp + self.method + self.request_path + self.query_string + self.body_string


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """RFC3339 UTC timestamp with millisecond precision, e.g. 2020-12-08T09:08:57.715Z."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sign(secret: str, signing_input: SigningInput) -> str:
    mac = hmac.new(secret.encode("utf-8"), signing_input.canonical().encode("utf-8"), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode()


def generate_signature(
    secret: str,
    method: str,
    request_path: str,
    query_string: str = "",
    body_string: str = "",
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    """Stamp and sign one request.

    Returns:
        (base64 signature, timestamp that was signed)
    """
    timestamp = utc_timestamp(now)
    signing_input = SigningInput(
        timestamp=timestamp,
        method=method,
        request_path=request_path,
        query_string=query_string,
        body_string=body_string,
    )
    return sign(secret, signing_input), timestamp


def build_headers(credentials: OkxCredentials, signature: str, timestamp: str) -> Dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "OK-ACCESS-KEY": credentials.api_key,
        "OK-ACCESS-SIGN": signature,
        "OK-ACCESS-TIMESTAMP": timestamp,
        "OK-ACCESS-PASSPHRASE": credentials.passphrase_value(),
    }
    if credentials.is_demo:
        headers["x-simulated-trading"] = "1"
    return headers

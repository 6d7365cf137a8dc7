"""Exception hierarchy for the OKX REST client.

Every failure raised by the request pipeline derives from `OkxError` so
callers can catch the whole family at once. None of these messages ever
carry the API secret or passphrase.
"""
from typing import Optional


class OkxError(Exception):
    pass


class ConfigurationError(OkxError):
    """Raised when credentials or settings are missing or invalid."""
    pass


class TransportError(OkxError):
    """Raised when the HTTP round trip itself fails (connection, TLS, timeout)."""
    pass


class ExchangeApiError(OkxError):
    """Raised for non-2xx responses and for error envelopes inside a 2xx body.

    The raw body is kept verbatim so operators can read the exchange's own
    diagnostics.
    """

    def __init__(self, method: str, status_code: int, body: str, *, code: Optional[str] = None):
        self.method = method
        self.status_code = status_code
        self.body = body
        self.code = code
        if code is None:
            message = f"{method} request failed with status: {status_code} and body: {body}"
        else:
            message = f"{method} request rejected with code: {code} (status {status_code}) and body: {body}"
        super().__init__(message)


class ResponseError(OkxError):
    """The call succeeded at the HTTP level but the payload was not usable."""
    pass


class DeserializationError(ResponseError):
    pass


class NotFoundError(ResponseError):
    """Raised when an expected field is absent from the response envelope."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"no {field} field in response")


class ShapeError(ResponseError):
    """Raised when a field is present but has the wrong JSON type."""

    def __init__(self, field: str, expected: str, actual: str):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"{field} is not an {expected} (got {actual})")

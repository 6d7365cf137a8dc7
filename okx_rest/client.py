from typing import Any, List, Mapping, Optional

from .canonical import DEFAULT_BASE_URL, PreparedRequest, prepare_request
from .errors import OkxError
from .logging_setup import logger
from .responses import Record, classify_list, classify_mapping
from .secrets import OkxCredentials
from .signing import build_headers, generate_signature
from .transport import AiohttpTransport, RawResponse, Transport

BALANCE_ENDPOINT = "/api/v5/account/balance"


class OkxClient:
    """Async OKX REST client with request signing (OK-ACCESS-* headers).

    Each call is built, signed with a fresh timestamp, sent once through the
    transport, and classified. Nothing is retried and no state is carried
    between calls, so one client can serve any number of concurrent calls.

    Usage:
        async with OkxClient.from_config({"key": ..., "secret": ..., "passphrase": ...}) as client:
            balances = await client.fetch_balances()
    """

    def __init__(
        self,
        credentials: OkxCredentials,
        *,
        transport: Optional[Transport] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else AiohttpTransport(timeout=timeout)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], **kwargs) -> "OkxClient":
        """Create a client from a flat mapping (`key`, `secret`, `passphrase`, `is_demo`).

        Raises:
            ConfigurationError: If a required credential is missing
        """
        return cls(OkxCredentials.from_mapping(config), **kwargs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    def prepare(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        query: Optional[Mapping[str, Any]] = None,
    ) -> PreparedRequest:
        return prepare_request(method, endpoint, params, query=query, base_url=self.base_url)

    async def _send(self, prepared: PreparedRequest) -> RawResponse:
        signature, timestamp = generate_signature(
            self.credentials.secret_value(),
            prepared.method,
            prepared.path,
            prepared.query_string,
            prepared.body_string,
        )
        headers = build_headers(self.credentials, signature, timestamp)
        logger.debug(f"{prepared.method} {prepared.path}{prepared.query_string} (demo={self.credentials.is_demo})")
        raw = await self.transport.send(prepared.method, prepared.url, headers, prepared.body)
        logger.debug(f"{prepared.method} {prepared.path} -> {raw.status_code}")
        return raw

    async def _call(self, prepared: PreparedRequest, classify, shape: Any) -> Any:
        try:
            raw = await self._send(prepared)
            return classify(prepared.method, raw, shape)
        except OkxError as e:
            logger.warning(f"{prepared.method} {prepared.path} failed: {e}")
            raise

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        query: Optional[Mapping[str, Any]] = None,
        shape: Any = Record,
    ) -> Any:
        """Signed call to an endpoint whose body is a single mapping."""
        return await self._call(self.prepare(method, endpoint, params, query), classify_mapping, shape)

    async def request_list(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        query: Optional[Mapping[str, Any]] = None,
        shape: Any = Record,
    ) -> List[Any]:
        """Signed call to an endpoint that returns an array under `data`."""
        return await self._call(self.prepare(method, endpoint, params, query), classify_list, shape)

    async def fetch_balances(self, ccy: Optional[str] = None) -> List[Record]:
        """Fetch account balances.

        Args:
            ccy: Optional comma-separated currency filter, e.g. "BTC,ETH"

        Returns:
            The `data` array of the balance endpoint, one mapping per account
        """
        params = {"ccy": ccy} if ccy else None
        return await self.request_list("GET", BALANCE_ENDPOINT, params)

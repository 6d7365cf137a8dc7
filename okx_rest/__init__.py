"""
OKX signed REST client.

An async client for the OKX v5 REST API featuring:
- HMAC-SHA256 request signing (OK-ACCESS-* headers) with per-call timestamps
- Deterministic canonical request construction (query string + JSON body)
- Pluggable transports (aiohttp by default, requests in a worker thread)
- Typed response classification over a per-endpoint shape (pydantic)
- Demo trading via the x-simulated-trading header
- Structured logging via loguru with secret redaction
- Configuration-driven (YAML) or environment-sourced credentials

Core Modules:
    secrets: Credential context and credential sourcing
    signing: Timestamping, HMAC signatures and signed headers
    canonical: Query/body/URL construction
    transport: HTTP transports
    responses: Response classification
    client: The signed request pipeline and endpoint calls
    config: Configuration loading
    errors: Exception hierarchy

Example:
    >>> from okx_rest.client import OkxClient
    >>> from okx_rest.secrets import load_credentials
    >>>
    >>> creds = load_credentials()
    >>> async with OkxClient(creds) as client:
    ...     balances = await client.fetch_balances()
"""

__version__ = "0.1.0"
__all__ = [
    "secrets",
    "signing",
    "canonical",
    "transport",
    "responses",
    "client",
    "config",
    "errors",
    "logging_setup",
]

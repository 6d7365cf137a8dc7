import asyncio
import json
from unittest.mock import MagicMock, patch

import aiohttp
import pytest
import requests
from aiohttp import web
from aiohttp.test_utils import TestServer

from okx_rest.errors import TransportError
from okx_rest.transport import AiohttpTransport, RawResponse, RequestsTransport

HEADERS = {
    "Content-Type": "application/json",
    "OK-ACCESS-KEY": "k",
    "OK-ACCESS-SIGN": "c2lnbmF0dXJl",
    "OK-ACCESS-TIMESTAMP": "2020-12-08T09:08:57.715Z",
    "OK-ACCESS-PASSPHRASE": "p",
}


def test_raw_response_ok_range():
    assert RawResponse(200, "").ok
    assert RawResponse(204, "").ok
    assert not RawResponse(199, "").ok
    assert not RawResponse(301, "").ok
    assert not RawResponse(401, "").ok


async def _echo(request):
    body = await request.text()
    payload = {
        "method": request.method,
        "query": request.rel_url.raw_query_string,
        "headers": {k: request.headers.get(k) for k in HEADERS},
        "body": body,
    }
    return web.json_response(payload, status=int(request.headers.get("X-Echo-Status", "200")))


async def _slow(request):
    await asyncio.sleep(1)
    return web.Response(text="late")


async def _redirect(request):
    raise web.HTTPFound("/landing")


async def _landing(request):
    request.app["landed"].append(request.headers.get("OK-ACCESS-PASSPHRASE"))
    return web.Response(text="landed")


async def _garbled(request):
    return web.Response(body=b"\xff\xfe bad gateway", status=502, content_type="text/html", charset="utf-8")


def _app():
    app = web.Application()
    app["landed"] = []
    app.router.add_route("*", "/echo", _echo)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/redir", _redirect)
    app.router.add_get("/landing", _landing)
    app.router.add_get("/garbled", _garbled)
    return app


@pytest.mark.asyncio
async def test_aiohttp_transport_sends_headers_query_and_body_unchanged():
    server = TestServer(_app())
    await server.start_server()
    try:
        async with AiohttpTransport(timeout=5) as transport:
            url = str(server.make_url("/echo")) + "?ccy=BTC%2CETH&note=a+b"
            resp = await transport.send("POST", url, HEADERS, '{"sz":"1"}')
        assert resp.status_code == 200
        echoed = json.loads(resp.body_text)
        assert echoed["method"] == "POST"
        assert echoed["query"] == "ccy=BTC%2CETH&note=a+b"
        assert echoed["headers"] == HEADERS
        assert echoed["body"] == '{"sz":"1"}'
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_reports_non_2xx_body():
    server = TestServer(_app())
    await server.start_server()
    try:
        async with AiohttpTransport() as transport:
            resp = await transport.send("GET", str(server.make_url("/echo")), {**HEADERS, "X-Echo-Status": "401"})
        assert resp.status_code == 401
        assert not resp.ok
        assert "OK-ACCESS-KEY" in resp.body_text
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_timeout_is_transport_error():
    server = TestServer(_app())
    await server.start_server()
    try:
        async with AiohttpTransport(timeout=0.05) as transport:
            with pytest.raises(TransportError, match="timed out"):
                await transport.send("GET", str(server.make_url("/slow")), HEADERS)
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_connection_error_is_transport_error():
    server = TestServer(_app())
    await server.start_server()
    url = str(server.make_url("/echo"))
    await server.close()
    async with AiohttpTransport(timeout=2) as transport:
        with pytest.raises(TransportError):
            await transport.send("GET", url, HEADERS)


@pytest.mark.asyncio
async def test_aiohttp_context_manager_initializes_and_closes_session():
    transport = AiohttpTransport()
    assert transport.session is None
    async with transport:
        assert transport.session is not None
    assert transport.session.closed


@pytest.mark.asyncio
async def test_aiohttp_transport_leaves_injected_session_open():
    async with aiohttp.ClientSession() as session:
        transport = AiohttpTransport(session=session)
        await transport.close()
        assert not session.closed


def test_requests_transport_mounts_adapters_without_retries():
    transport = RequestsTransport()
    for prefix in ("https://www.okx.com", "http://localhost"):
        assert transport.session.get_adapter(prefix).max_retries.total == 0


@pytest.mark.asyncio
@patch("okx_rest.transport.requests.Session.request")
async def test_requests_transport_passes_request_through(mock_request):
    resp = MagicMock()
    resp.status_code = 401
    resp.text = '{"msg":"invalid key"}'
    mock_request.return_value = resp

    transport = RequestsTransport(timeout=7)
    raw = await transport.send("POST", "https://www.okx.com/api/v5/trade/order", HEADERS, '{"sz":"1"}')

    assert raw == RawResponse(401, '{"msg":"invalid key"}')
    args, kwargs = mock_request.call_args
    assert args == ("POST", "https://www.okx.com/api/v5/trade/order")
    assert kwargs["headers"] == HEADERS
    assert kwargs["data"] == b'{"sz":"1"}'
    assert kwargs["timeout"] == 7
    assert mock_request.call_count == 1


@pytest.mark.asyncio
@patch("okx_rest.transport.requests.Session.request")
async def test_requests_transport_sends_no_body_for_get(mock_request):
    resp = MagicMock()
    resp.status_code = 200
    resp.text = "{}"
    mock_request.return_value = resp

    await RequestsTransport().send("GET", "https://www.okx.com/api/v5/account/balance", HEADERS)
    assert mock_request.call_args.kwargs["data"] is None


@pytest.mark.asyncio
@patch("okx_rest.transport.requests.Session.request")
async def test_requests_transport_wraps_network_failures(mock_request):
    mock_request.side_effect = requests.exceptions.ConnectionError("connection refused")
    with pytest.raises(TransportError, match="connection refused") as exc:
        await RequestsTransport().send("GET", "https://www.okx.com/api/v5/account/balance", HEADERS)
    assert isinstance(exc.value.__cause__, requests.exceptions.ConnectionError)


@pytest.mark.asyncio
async def test_aiohttp_transport_reports_redirect_without_following():
    app = _app()
    server = TestServer(app)
    await server.start_server()
    try:
        async with AiohttpTransport() as transport:
            resp = await transport.send("GET", str(server.make_url("/redir")), HEADERS)
        assert resp.status_code == 302
        assert not resp.ok
        assert app["landed"] == []
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_requests_transport_reports_redirect_without_following():
    app = _app()
    server = TestServer(app)
    await server.start_server()
    try:
        resp = await RequestsTransport(timeout=5).send("GET", str(server.make_url("/redir")), HEADERS)
        assert resp.status_code == 302
        assert app["landed"] == []
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_aiohttp_transport_replaces_undecodable_bytes():
    server = TestServer(_app())
    await server.start_server()
    try:
        async with AiohttpTransport() as transport:
            resp = await transport.send("GET", str(server.make_url("/garbled")), HEADERS)
        assert resp.status_code == 502
        assert resp.body_text.endswith(" bad gateway")
        assert "�" in resp.body_text
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_requests_transport_replaces_undecodable_bytes():
    server = TestServer(_app())
    await server.start_server()
    try:
        resp = await RequestsTransport(timeout=5).send("GET", str(server.make_url("/garbled")), HEADERS)
        assert resp.status_code == 502
        assert "�" in resp.body_text
    finally:
        await server.close()


def test_requests_transport_leaves_injected_session_adapters_alone():
    session = requests.Session()
    custom = requests.adapters.HTTPAdapter(max_retries=3)
    session.mount("https://", custom)
    transport = RequestsTransport(session=session)
    assert transport.session is session
    assert session.get_adapter("https://www.okx.com") is custom


@pytest.mark.asyncio
async def test_requests_transport_leaves_injected_session_open():
    session = MagicMock(spec=requests.Session)
    await RequestsTransport(session=session).close()
    session.close.assert_not_called()


@pytest.mark.asyncio
@patch("okx_rest.transport.requests.Session.request")
async def test_requests_transport_disables_redirects(mock_request):
    resp = MagicMock()
    resp.status_code = 200
    resp.text = "{}"
    mock_request.return_value = resp

    await RequestsTransport().send("GET", "https://www.okx.com/api/v5/account/balance", HEADERS)
    assert mock_request.call_args.kwargs["allow_redirects"] is False

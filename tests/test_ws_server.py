import json

import pytest
from websockets.asyncio.client import connect

from prompt_gateway.services.mcp_ws_server import MCPWebSocketServer
from tests._helpers import FakeWebSocket, make_settings


@pytest.mark.asyncio
async def test_handle_client_answers_requests_and_skips_notifications(test_settings, fake_enhance):
    server = MCPWebSocketServer(test_settings)
    websocket = FakeWebSocket([
        json.dumps({"jsonrpc": "2.0", "id": 1, "method": "tools/list"}),
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "tools/call",
                    "params": {"name": "enhance_prompt", "arguments": {"prompt": "p"}}}),
        "not json",
    ])

    await server._handle_client(websocket)

    responses = websocket.sent_json
    assert [r["id"] for r in responses] == [1, 2, None]
    assert responses[0]["result"]["tools"][0]["name"] == "enhance_prompt"
    assert responses[1]["result"]["content"][0]["text"] == "Enhanced: p"
    assert responses[2]["error"]["code"] == -32700
    assert server.connected_clients == {}


@pytest.mark.asyncio
async def test_start_and_stop_on_loopback(fake_enhance):
    server = MCPWebSocketServer(make_settings(WS_HOST="127.0.0.1", WS_PORT=0))
    await server.start()
    try:
        assert server.running
        port = next(iter(server.server.sockets)).getsockname()[1]

        async with connect(f"ws://127.0.0.1:{port}") as websocket:
            await websocket.send(json.dumps({"jsonrpc": "2.0", "id": "a", "method": "ping"}))
            reply = json.loads(await websocket.recv())
    finally:
        await server.stop()

    assert reply == {"jsonrpc": "2.0", "id": "a", "result": {}}
    assert not server.running


@pytest.mark.asyncio
async def test_stop_without_start_is_a_no_op(test_settings):
    server = MCPWebSocketServer(test_settings)
    await server.stop()
    assert not server.running

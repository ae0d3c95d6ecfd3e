import cbor2
from aiohttp import WSMsgType

from rdvd.config import RelayRuntimeConfig
from rdvd.service import RelayService


def _relay(**kw) -> RelayService:
    return RelayService(RelayRuntimeConfig(log_console=False, **kw))


async def test_health(aiohttp_client) -> None:
    client = await aiohttp_client(_relay().build_app())
    resp = await client.get("/health")
    assert resp.status == 200
    assert await resp.json() == {"status": "Server is running"}


async def test_cors_for_configured_origin(aiohttp_client) -> None:
    client = await aiohttp_client(_relay().build_app())

    resp = await client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"

    resp = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert resp.status == 204
    assert "GET" in resp.headers["Access-Control-Allow-Methods"]

    resp = await client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


async def test_two_peers_negotiate_over_websocket(aiohttp_client) -> None:
    relay = _relay(ws_path="/")
    client = await aiohttp_client(relay.build_app())

    alice = await client.ws_connect("/")
    bob = await client.ws_connect("/")

    await alice.send_json({"type": "create-room", "roomName": "r1", "userName": "Alice"})
    assert await alice.receive_json() == {
        "type": "room-created",
        "roomName": "r1",
        "userName": "Alice",
    }

    await bob.send_json({"type": "join-room", "roomName": "r1", "userName": "Bob"})
    joined = await bob.receive_json()
    assert joined["type"] == "room-joined"
    assert [u["name"] for u in joined["users"]] == ["Alice", "Bob"]
    alice_id, bob_id = (u["id"] for u in joined["users"])

    notice = await alice.receive_json()
    assert notice == {
        "type": "user-joined",
        "userId": bob_id,
        "userName": "Bob",
        "users": joined["users"],
    }

    await alice.send_json({"type": "offer", "roomName": "r1", "offer": {"sdp": "X"}})
    assert await bob.receive_json() == {"type": "offer", "offer": {"sdp": "X"}, "from": alice_id}

    await alice.send_str("{broken")
    assert await alice.receive_json() == {"type": "error", "message": "Invalid message format"}

    await alice.close()
    left = await bob.receive_json()
    assert left == {
        "type": "user-left",
        "userId": alice_id,
        "userName": "Alice",
        "users": [{"id": bob_id, "name": "Bob"}],
    }
    assert relay.rooms.get_info("r1") == {"exists": True, "memberCount": 1, "maxMembers": 2}

    await bob.close()


async def test_cbor_client_gets_binary_replies(aiohttp_client) -> None:
    client = await aiohttp_client(_relay().build_app())
    ws = await client.ws_connect("/")

    await ws.send_bytes(cbor2.dumps({"type": "get-room-info", "roomName": "r1"}))
    msg = await ws.receive()
    assert msg.type == WSMsgType.BINARY
    assert cbor2.loads(msg.data) == {"type": "room-info", "exists": False}

    await ws.close()

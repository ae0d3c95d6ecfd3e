import asyncio

import cbor2

from conftest import connect, send, sent_to


def test_disconnect_sole_member_removes_room(relay) -> None:
    a, _ = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")

    out = relay.handle_close(a)
    assert out == []
    assert "r1" not in relay.rooms
    assert a not in relay.connections
    assert relay.users.get(a) is None


def test_disconnect_unbound_connection(relay) -> None:
    a, _ = connect(relay)
    assert relay.handle_close(a) == []
    assert a not in relay.connections
    assert relay.stats_manager.get("disconnects") == 1


def test_disconnect_runs_once(relay) -> None:
    a, _ = connect(relay)
    b, _ = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")
    send(relay, b, "join-room", roomName="r1", userName="Bob")

    assert len(sent_to(relay.handle_close(a), b)) == 1
    assert relay.handle_close(a) == []
    assert relay.stats_manager.get("disconnects") == 1


def test_user_left_skips_closed_peer(relay) -> None:
    a, _ = connect(relay)
    b, ch_b = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")
    send(relay, b, "join-room", roomName="r1", userName="Bob")

    ch_b.is_open = False
    assert relay.handle_close(a) == []
    assert relay.rooms.get("r1").member_ids() == [b]


def test_room_reusable_after_both_leave(relay) -> None:
    a, _ = connect(relay)
    b, _ = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")
    send(relay, b, "join-room", roomName="r1", userName="Bob")
    relay.handle_close(b)
    relay.handle_close(a)

    c, _ = connect(relay)
    out = send(relay, c, "create-room", roomName="r1", userName="Carol")
    assert sent_to(out, c)[0]["type"] == "room-created"


def test_flush_writes_in_wire_format_and_skips_closed(relay) -> None:
    a, ch_a = connect(relay)
    b, ch_b = connect(relay)
    relay.handle_frame(
        a, cbor2.dumps({"type": "create-room", "roomName": "r1", "userName": "Alice"})
    )
    out = send(relay, b, "join-room", roomName="r1", userName="Bob")

    asyncio.run(relay.flush(out))
    assert cbor2.loads(ch_a.sent[0])["type"] == "user-joined"
    assert ch_b.sent == [
        '{"type":"room-joined","roomName":"r1","userName":"Bob","users":'
        f'[{{"id":"{a}","name":"Alice"}},{{"id":"{b}","name":"Bob"}}]}}'
    ]

    ch_a.is_open = False
    asyncio.run(relay.flush(out))
    assert len(ch_a.sent) == 1
    assert relay.stats_manager.get("frames_out") == 3


def test_flush_logs_send_failures(relay, caplog) -> None:
    a, ch = connect(relay)

    async def boom(frame):
        raise ConnectionResetError("gone")

    ch.send = boom
    out = send(relay, a, "get-room-info", roomName="r1")
    with caplog.at_level("WARNING", logger="rdvd.relay"):
        asyncio.run(relay.flush(out))
    assert relay.stats_manager.get("send_failures") == 1
    assert "Send failed" in caplog.text


def test_clear_all_returns_transports(relay) -> None:
    a, ch_a = connect(relay)
    b, ch_b = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")

    transports = relay.session_manager.clear_all()
    assert set(map(id, transports)) == {id(ch_a), id(ch_b)}
    assert len(relay.connections) == 0
    assert len(relay.rooms) == 0
    assert len(relay.users) == 0


def test_format_stats(relay) -> None:
    a, _ = connect(relay)
    send(relay, a, "create-room", roomName="r1", userName="Alice")
    text = relay.stats_manager.format_stats()
    assert "connections_total=1 connections_bound=1 connections_unbound=0" in text
    assert "rooms=1 memberships=1 rooms_waiting=1" in text
    assert "rooms_created=1" in text

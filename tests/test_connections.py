from rdvd.connections import ConnectionRegistry
from rdvd.constants import WIRE_CBOR, WIRE_JSON


class _Handle:
    is_open = True


def test_register_and_lookup() -> None:
    reg = ConnectionRegistry()
    h = _Handle()
    conn_id = reg.register(h)
    assert reg.lookup(conn_id) is h
    assert conn_id in reg
    assert reg.get(conn_id).wire == WIRE_JSON


def test_ids_are_unique() -> None:
    reg = ConnectionRegistry()
    ids = {reg.register(_Handle()) for _ in range(1000)}
    assert len(ids) == 1000


def test_ids_are_not_reused_after_remove() -> None:
    reg = ConnectionRegistry()
    first = reg.register(_Handle())
    reg.remove(first)
    assert reg.register(_Handle()) != first


def test_remove_is_idempotent() -> None:
    reg = ConnectionRegistry()
    conn_id = reg.register(_Handle())
    reg.remove(conn_id)
    reg.remove(conn_id)
    assert reg.lookup(conn_id) is None
    assert len(reg) == 0


def test_set_wire() -> None:
    reg = ConnectionRegistry()
    conn_id = reg.register(_Handle())
    reg.set_wire(conn_id, WIRE_CBOR)
    assert reg.get(conn_id).wire == WIRE_CBOR
    reg.set_wire("missing", WIRE_CBOR)


def test_connection_is_open_follows_transport() -> None:
    reg = ConnectionRegistry()
    h = _Handle()
    conn = reg.get(reg.register(h))
    assert conn.is_open
    h.is_open = False
    assert not conn.is_open

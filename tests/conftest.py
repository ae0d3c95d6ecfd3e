import json

import pytest

from rdvd.config import RelayRuntimeConfig
from rdvd.service import RelayService


class FakeChannel:
    def __init__(self) -> None:
        self.is_open = True
        self.sent: list = []

    async def send(self, frame) -> None:
        self.sent.append(frame)

    async def close(self) -> None:
        self.is_open = False


@pytest.fixture
def relay() -> RelayService:
    return RelayService(RelayRuntimeConfig(log_console=False))


def connect(relay: RelayService) -> tuple[str, FakeChannel]:
    ch = FakeChannel()
    return relay.session_manager.on_connection_open(ch), ch


def send(relay: RelayService, conn_id: str, msg_type: str, **fields):
    return relay.handle_frame(conn_id, json.dumps({"type": msg_type, **fields}))


def sent_to(outgoing, conn_id: str) -> list[dict]:
    return [env for conn, env in outgoing if conn.conn_id == conn_id]

from __future__ import annotations

import logging

from aiohttp import WSMsgType, web

from . import __version__
from .codec import encode
from .config import RelayRuntimeConfig
from .connections import ConnectionRegistry
from .constants import HEALTH_STATUS
from .messages import MessageHelper, Outgoing
from .rooms import RoomRegistry
from .router import MessageRouter
from .session import SessionManager
from .stats import StatsManager
from .users import UserDirectory
from .util import normalize_ws_path


class WebSocketChannel:
    """Transport handle for one aiohttp WebSocket connection."""

    def __init__(self, ws: web.WebSocketResponse) -> None:
        self.ws = ws

    @property
    def is_open(self) -> bool:
        return not self.ws.closed

    async def send(self, frame: str | bytes) -> None:
        if isinstance(frame, (bytes, bytearray)):
            await self.ws.send_bytes(bytes(frame))
        else:
            await self.ws.send_str(frame)

    async def close(self) -> None:
        await self.ws.close()


class RelayService:
    def __init__(self, config: RelayRuntimeConfig) -> None:
        self.config = config
        self.log = logging.getLogger("rdvd.relay")

        # All relay state lives here. Routing is synchronous and runs on the
        # event loop thread, so no locking is needed.
        self.users = UserDirectory()
        self.rooms = RoomRegistry(self.users)
        self.connections = ConnectionRegistry()

        self.stats_manager = StatsManager(self)
        self.message_helper = MessageHelper(self)

        # Message router for handling protocol messages
        self.router = MessageRouter(self)

        # Session manager for connection lifecycle
        self.session_manager = SessionManager(self)

    def handle_frame(self, conn_id: str, data: str | bytes) -> Outgoing:
        outgoing: Outgoing = []
        self.router.route_frame(conn_id, data, outgoing)
        return outgoing

    def handle_close(self, conn_id: str) -> Outgoing:
        outgoing: Outgoing = []
        self.session_manager.on_connection_closed(conn_id, outgoing)
        return outgoing

    async def flush(self, outgoing: Outgoing) -> None:
        if self.log.isEnabledFor(logging.DEBUG) and outgoing:
            self.log.debug("Sending %d frame(s)", len(outgoing))

        for conn, env in outgoing:
            if not conn.is_open:
                continue
            try:
                payload = encode(env, conn.wire)
                await conn.transport.send(payload)
            except OSError as e:
                self.stats_manager.inc("send_failures")
                self.log.warning("Send failed conn=%s err=%s", conn.conn_id, e)
                continue
            except Exception:
                self.stats_manager.inc("send_failures")
                self.log.warning("Send failed conn=%s", conn.conn_id, exc_info=True)
                continue
            self.stats_manager.inc("frames_out")
            self.stats_manager.inc("bytes_out", len(payload))

    async def websocket_handler(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse(
            max_msg_size=int(self.config.max_frame_bytes),
            heartbeat=self.config.heartbeat_s or None,
        )
        await ws.prepare(request)

        conn_id = self.session_manager.on_connection_open(WebSocketChannel(ws))
        try:
            async for msg in ws:
                if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                    try:
                        outgoing = self.handle_frame(conn_id, msg.data)
                    except Exception:
                        self.log.exception("Error routing frame conn=%s", conn_id)
                        continue
                    await self.flush(outgoing)
                elif msg.type == WSMsgType.ERROR:
                    self.log.warning("WebSocket error conn=%s err=%s", conn_id, ws.exception())
        finally:
            await self.flush(self.handle_close(conn_id))

        return ws

    async def health_handler(self, request: web.Request) -> web.Response:
        return web.json_response({"status": HEALTH_STATUS})

    def _cors_headers(self, origin: str) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }

    @web.middleware
    async def cors_middleware(self, request: web.Request, handler):
        allowed = self.config.cors_origin
        origin = request.headers.get("Origin")
        if not allowed or origin != allowed:
            return await handler(request)

        if request.method == "OPTIONS":
            headers = self._cors_headers(origin)
            headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            headers["Access-Control-Allow-Headers"] = request.headers.get(
                "Access-Control-Request-Headers", "Content-Type"
            )
            return web.Response(status=204, headers=headers)

        resp = await handler(request)
        if not resp.prepared:
            resp.headers.update(self._cors_headers(origin))
        return resp

    async def _on_startup(self, app: web.Application) -> None:
        self.stats_manager.set_start_time()
        self.log.info(
            "Relay running version=%s ws_path=%s health_path=%s cors_origin=%s",
            __version__,
            normalize_ws_path(self.config.ws_path),
            normalize_ws_path(self.config.health_path),
            self.config.cors_origin or "-",
        )
        self.log.info(
            "Policy require_membership=%s max_frame_bytes=%s heartbeat_s=%s",
            self.config.require_membership,
            self.config.max_frame_bytes,
            self.config.heartbeat_s,
        )

    async def _on_shutdown(self, app: web.Application) -> None:
        transports = self.session_manager.clear_all()
        for transport in transports:
            try:
                await transport.close()
            except Exception:
                self.log.debug("Close failed during shutdown", exc_info=True)
        self.log.info("Shutdown complete\n%s", self.stats_manager.format_stats())

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self.cors_middleware])
        app.router.add_get(normalize_ws_path(self.config.health_path), self.health_handler)
        app.router.add_get(normalize_ws_path(self.config.ws_path), self.websocket_handler)
        app.on_startup.append(self._on_startup)
        app.on_shutdown.append(self._on_shutdown)
        return app

    def run_forever(self) -> None:
        web.run_app(
            self.build_app(),
            host=self.config.host,
            port=int(self.config.port),
            print=None,
        )

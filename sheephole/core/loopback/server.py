"""
Loopback control listener.

A browser extension on the same machine pings ``/hurdy`` to learn whether the
application is running and posts a project machine name to
``/install-module`` to request an install. Requests that do not come from a
loopback address get an empty response and are otherwise ignored.
"""

from __future__ import annotations

import ipaddress
import logging
import threading

from flask import Flask, Response, request
from werkzeug.serving import BaseWSGIServer, make_server

from core.loopback.channel import InstallRequest, InstallRequestChannel

PING_PATH = "hurdy"
PING_REPLY = "gurdy"
INSTALL_PATH = "install-module"
INSTALL_REPLY = "bombarde"
MIN_MACHINE_NAME_LENGTH = 2

LOOPBACK_HOSTNAMES = frozenset({"localhost"})


def is_loopback_peer(remote_addr: str | None) -> bool:
    if not remote_addr:
        return False
    if remote_addr in LOOPBACK_HOSTNAMES:
        return True
    try:
        address = ipaddress.ip_address(remote_addr)
    except ValueError:
        return False
    # ::ffff:127.0.0.1 on a dual-stack socket
    mapped = getattr(address, "ipv4_mapped", None)
    if mapped is not None:
        address = mapped
    return address.is_loopback


def create_app(channel: InstallRequestChannel, logger: logging.Logger | None = None) -> Flask:
    log = logger or logging.getLogger("sheephole.loopback")
    app = Flask(__name__)

    def _reply(text: str = "") -> Response:
        return Response(text, status=200, mimetype="text/plain")

    @app.route("/", defaults={"path": ""}, methods=["GET", "POST"])
    @app.route("/<path:path>", methods=["GET", "POST"])
    def _dispatch(path: str) -> Response:
        if len(path) < 1:
            return _reply()

        if not is_loopback_peer(request.remote_addr):
            log.warning("Ignoring request from non-loopback address %s", request.remote_addr)
            return _reply()

        command = path.replace("/", "")
        if command == PING_PATH:
            return _reply(PING_REPLY)

        if command == INSTALL_PATH:
            machine_name = (request.values.get("machine_name") or "").strip()
            if len(machine_name) < MIN_MACHINE_NAME_LENGTH:
                log.info("Ignoring install request without a usable machine name")
                return _reply()

            log.info("Server got request to install module: %s", machine_name)
            channel.post(InstallRequest(machine_name=machine_name))
            return _reply(INSTALL_REPLY)

        return _reply()

    return app


class LoopbackServer:
    def __init__(
        self,
        channel: InstallRequestChannel,
        host: str = "127.0.0.1",
        port: int = 41295,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("sheephole.loopback")
        self._app = create_app(channel, self._logger)
        self._host = host
        self._port = port
        self._server: BaseWSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        if self._server is not None:
            return int(self._server.server_port)
        return self._port

    def start(self) -> None:
        if self._server is not None:
            return

        self._server = make_server(self._host, self._port, self._app, threaded=True)
        self._thread = threading.Thread(target=self._server.serve_forever, name="sheephole-loopback", daemon=True)
        self._thread.start()
        self._logger.info("Loopback listener on %s:%d", self._host, self.port)

    def stop(self) -> None:
        server = self._server
        self._server = None
        if server is None:
            return

        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        self._logger.info("Loopback listener stopped")

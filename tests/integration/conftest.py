"""
Local HTTP Server Fixtures

Integration tests exercise the real httpx.AsyncHTTPTransport against a small
JSON service started on a loopback port for the duration of each test.

Routes:
    GET  /users/<id>   -> 200 {"id": <id>, "name": "user-<id>"}
    POST /users        -> 201 echo of the JSON body with "id": 100
    GET  /echo         -> 200 {"query": {...}, "cookie": "..."}
    GET  /flaky        -> 503 twice, then 200 {"attempts": 3}
    anything else          -> 404 with an empty body
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qsl, urlsplit

import pytest

logger = logging.getLogger(__name__)


class _ServiceHandler(BaseHTTPRequestHandler):
    server: _Service

    def log_message(self, format: str, *args: object) -> None:
        logger.debug(format % args)

    def _reply(self, status: int, payload: object | None = None) -> None:
        body = json.dumps(payload).encode() if payload is not None else b""
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        if parts.path.startswith("/users/"):
            user_id = int(parts.path.rsplit("/", 1)[1])
            self._reply(200, {"id": user_id, "name": f"user-{user_id}"})
        elif parts.path == "/echo":
            self._reply(
                200,
                {
                    "query": dict(parse_qsl(parts.query)),
                    "cookie": self.headers.get("Cookie"),
                },
            )
        elif parts.path == "/flaky":
            self.server.flaky_attempts += 1
            if self.server.flaky_attempts < 3:
                self._reply(503, {"detail": "warming up"})
            else:
                self._reply(200, {"attempts": self.server.flaky_attempts})
        else:
            self._reply(404)

    def do_POST(self) -> None:
        length = int(self.headers.get("Content-Length", 0))
        payload = json.loads(self.rfile.read(length) or b"{}")
        if urlsplit(self.path).path == "/users":
            self._reply(201, {**payload, "id": 100})
        else:
            self._reply(404)


class _Service(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _ServiceHandler)
        self.flaky_attempts = 0

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


@pytest.fixture
def service() -> Iterator[_Service]:
    server = _Service()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join()

"""Local HTTP server exposing the function handler for development."""

from __future__ import annotations

import threading
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .config import RelayConfig
from .handler import handler
from .logging import get_logger

logger = get_logger("server")

ROUTES = {"/", "/chat"}


class RelayRequestHandler(BaseHTTPRequestHandler):
    """HTTP handler forwarding requests to the function handler."""

    server_version = "ChatRelay/1.0"

    def _dispatch(self, method: str) -> None:
        if self.path not in ROUTES:
            self.send_response(404)
            self.end_headers()
            return

        context = {"awsRequestId": uuid.uuid4().hex[:12]}
        try:
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length).decode("utf-8") if length > 0 else ""
        except (ValueError, UnicodeDecodeError):
            self._write({"statusCode": 400, "headers": {}, "body": "Unreadable request body."})
            return

        event = {
            "httpMethod": method,
            "path": self.path,
            "headers": dict(self.headers.items()),
            "body": body,
            "isBase64Encoded": False,
        }
        try:
            result = handler(event, context, config=self.server.config)  # type: ignore[attr-defined]
        except Exception as exc:  # noqa: BLE001
            logger.exception("Request %s failed", context["awsRequestId"])
            result = {"statusCode": 500, "headers": {}, "body": f"Internal error: {exc}"}
        self._write(result)

    def _write(self, result: dict[str, Any]) -> None:
        payload = (result.get("body") or "").encode("utf-8")
        self.send_response(result["statusCode"])
        headers = result.get("headers") or {}
        for name, value in headers.items():
            self.send_header(name, value)
        if payload and "Content-Type" not in headers:
            self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_OPTIONS(self) -> None:
        self._dispatch("OPTIONS")

    def do_GET(self) -> None:
        self._dispatch("GET")

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003 - inherited signature
        logger.debug("%s - %s", self.address_string(), format % args)


class RelayHTTPServer(ThreadingHTTPServer):
    """HTTP server carrying the shared relay configuration."""

    def __init__(self, server_address, RequestHandlerClass, config: RelayConfig):
        super().__init__(server_address, RequestHandlerClass)
        self.config = config


class RelayServer:
    """Lifecycle manager for the threaded HTTP server."""

    def __init__(self, port: int, config: RelayConfig, host: str = "127.0.0.1") -> None:
        self.config = config
        self._server = RelayHTTPServer((host, port), RelayRequestHandler, config)
        self.port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=2)


def serve(port: int = 0, config: RelayConfig | None = None, host: str = "127.0.0.1") -> RelayServer:
    """Start the development server in a background thread."""
    server = RelayServer(port=port, config=config or RelayConfig(), host=host)
    server.start()
    logger.info("Listening on http://%s:%d/chat", host, server.port)
    return server

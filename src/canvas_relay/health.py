"""
Health endpoint.

A tiny HTTP server reporting the current watermark. ``/status`` returns
JSON; every other path returns a plain-text liveness line.
"""

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional

from canvas_relay.db import StateStore

logger = logging.getLogger(__name__)


def status_payload(store: StateStore) -> Dict[str, Any]:
    """Build the /status document from the store's current state."""
    state = store.state
    return {
        "ok": True,
        "lastTimestamp": state.last_timestamp.isoformat() if state.last_timestamp else None,
        "seenCount": len(state.recent_ids),
    }


class HealthHandler(BaseHTTPRequestHandler):
    server_version = "CanvasRelay/1.0"

    # Set by make_health_server
    store: StateStore

    def do_GET(self) -> None:
        if self.path.split("?", 1)[0] == "/status":
            body = json.dumps(status_payload(self.store)).encode("utf-8")
            content_type = "application/json"
        else:
            body = b"canvas-relay OK\n"
            content_type = "text/plain"

        self.send_response(200)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_health_server(store: StateStore, port: int, host: str = "") -> ThreadingHTTPServer:
    """Create (but don't start) a health server bound to ``port``."""
    handler = type("BoundHealthHandler", (HealthHandler,), {"store": store})
    return ThreadingHTTPServer((host, port), handler)


def start_health_server(store: StateStore, port: int) -> Optional[ThreadingHTTPServer]:
    """
    Serve health checks from a daemon thread.

    Args:
        store: State store to report on
        port: TCP port (0 disables the server)

    Returns:
        The running server, or None if disabled or the port couldn't be bound
    """
    if not port:
        return None

    try:
        server = make_health_server(store, port)
    except OSError as e:
        logger.error(f"Health server could not bind port {port}: {e}")
        return None

    thread = threading.Thread(target=server.serve_forever, name="health", daemon=True)
    thread.start()
    logger.info(f"Health server listening on :{port}")
    return server

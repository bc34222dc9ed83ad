import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class StubHandler(BaseHTTPRequestHandler):
    routes = {
        "/seed": (200, b"seed-bytes"),
        "/denied": (401, b"denied"),
        "/broken": (500, b"broken"),
        "/missing": (404, b"not here"),
    }

    def _reply(self):
        status, payload = self.routes.get(self.path, (404, b""))
        self.send_response(status)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self):
        self._reply()

    def do_POST(self):
        length = int(self.headers.get("Content-Length", 0))
        self.server.received.append(
            {
                "path": self.path,
                "body": self.rfile.read(length),
                "content_type": self.headers.get("Content-Type"),
                "cache_control": self.headers.get("Cache-Control"),
            }
        )
        self._reply()

    def log_message(self, *_args):
        return None


@pytest.fixture
def stub_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), StubHandler)
    server.received = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server, f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)

import http.client
import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from domain.errors import NetworkError
from services.http_transport import post_json


class _Handler(BaseHTTPRequestHandler):
    def do_POST(self):  # noqa: N802
        length = int(self.headers.get("content-length") or "0")
        body = json.loads(self.rfile.read(length) or b"{}")
        status = 200 if self.path == "/ok" else 400
        out = json.dumps({
            "auth": self.headers.get("Authorization"),
            "echo": body,
            "text": "bad request" if status == 400 else "",
        }).encode()
        self.send_response(status)
        self.send_header("content-type", "application/json")
        self.send_header("content-length", str(len(out)))
        self.end_headers()
        self.wfile.write(out)

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    httpd = HTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def test_post_json_success(server):
    status, raw = post_json(server + "/ok", b'{"a":1}', {"Authorization": "Token k"}, 5)
    body = json.loads(raw)
    assert status == 200
    assert body["auth"] == "Token k"
    assert body["echo"] == {"a": 1}


def test_post_json_returns_error_status_and_body(server):
    status, raw = post_json(server + "/bad", b"{}", {}, 5)
    assert status == 400
    assert json.loads(raw)["text"] == "bad request"


def test_post_json_unreachable_raises_network_error():
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    # Nothing listens on the port any more.
    with pytest.raises(NetworkError):
        post_json(f"http://127.0.0.1:{port}/", b"{}", {}, 2)


def test_post_json_non_http_reply_raises_network_error(garbage_server):
    with pytest.raises(NetworkError) as excinfo:
        post_json(garbage_server + "/", b"{}", {}, 2)

    assert isinstance(excinfo.value.__cause__, http.client.BadStatusLine)
    assert "Invalid response" in str(excinfo.value)

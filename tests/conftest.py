import io
import json
import os
import socket
import sys
import threading

import numpy as np
import pytest
from PIL import Image

# Ensure repository root is on sys.path so tests can import "services", "domain", etc.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


GRADED_BODY = {
    "status": {"code": 200, "text": "OK", "request_id": "req-123"},
    "records": [
        {
            "_full_url_card": "https://images.example/card.jpg",
            "grades": {
                "final": 9.5,
                "condition": "NM-MT",
                "corners": 9,
                "edges": 9,
                "surface": 10,
                "centering": 9,
            },
            "card": [{"centering": {"left/right": "55/45", "top/bottom": "52/48"}}],
        }
    ],
    "statistics": {"processing time": 1.2},
}


def make_image_bytes(fmt: str = "JPEG", size=(64, 88)) -> bytes:
    img = Image.new("RGB", size, color=(255, 255, 255))
    # A few dark pixels so the content is deterministic but non-empty.
    for x in range(10, 20):
        for y in range(10, 12):
            img.putpixel((x, y), (0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class FakeCapture:
    """Stand-in for cv2.VideoCapture."""

    def __init__(self, opened=True, frames=None, width=640, height=480):
        self.opened = opened
        self.released = False
        self.reads = 0
        if frames is None:
            frame = np.zeros((height, width, 3), dtype=np.uint8)
            frame[:, :, 2] = 200  # red in BGR
            frames = [frame]
        self.frames = list(frames)

    def isOpened(self):  # noqa: N802
        return self.opened and not self.released

    def read(self):
        if self.released or not self.frames:
            return False, None
        self.reads += 1
        frame = self.frames[0] if len(self.frames) == 1 else self.frames.pop(0)
        return True, frame

    def release(self):
        self.released = True


class FakeTransport:
    """Records calls and answers with a canned (status, body)."""

    def __init__(self, status=200, body=None, error=None):
        self.status = status
        if isinstance(body, bytes):
            self.body = body
        else:
            self.body = json.dumps(GRADED_BODY if body is None else body).encode("utf-8")
        self.error = error
        self.calls = []

    def __call__(self, url, body, headers, timeout_s):
        self.calls.append({"url": url, "body": body, "headers": dict(headers), "timeout_s": timeout_s})
        if self.error is not None:
            raise self.error
        return self.status, self.body


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def jpeg_file(tmp_path, jpeg_bytes):
    path = tmp_path / "card.jpg"
    path.write_bytes(jpeg_bytes)
    return path


@pytest.fixture(autouse=True)
def _no_proxy(monkeypatch):
    for var in ("http_proxy", "HTTP_PROXY", "https_proxy", "HTTPS_PROXY", "all_proxy", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")


@pytest.fixture
def garbage_server():
    """Local TCP server that answers every connection with bytes that are not HTTP."""
    srv = socket.socket()
    srv.bind(("127.0.0.1", 0))
    srv.listen(8)
    srv.settimeout(0.2)
    stop = threading.Event()

    def serve():
        while not stop.is_set():
            try:
                conn, _ = srv.accept()
            except OSError:
                continue
            with conn:
                conn.settimeout(2)
                try:
                    conn.recv(65536)
                    conn.sendall(b"NOT-HTTP garbage\r\n\r\n")
                except OSError:
                    pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{srv.getsockname()[1]}"
    stop.set()
    thread.join(2)
    srv.close()

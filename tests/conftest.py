from __future__ import annotations

import socket
import threading
from pathlib import Path
from typing import List

import pytest

from stubs import PNG_MAGIC, StubServer


@pytest.fixture
def stub_server():
    servers: List[StubServer] = []

    def start(behaviour) -> StubServer:
        srv = StubServer(behaviour)
        threading.Thread(target=srv.serve_forever, daemon=True).start()
        servers.append(srv)
        return srv

    yield start

    for srv in servers:
        srv.shutdown()
        srv.server_close()


@pytest.fixture
def closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    src = tmp_path / "images"
    src.mkdir()
    (src / "a.png").write_bytes(PNG_MAGIC + b"first image")
    (src / "b.JPG").write_bytes(b"\xff\xd8\xff" + b"second image")
    (src / "c.jpeg").write_bytes(b"\xff\xd8\xff" + b"third image")
    (src / "notes.txt").write_text("not an image")
    (src / "nested").mkdir()
    (src / "nested" / "d.png").write_bytes(PNG_MAGIC)
    return src

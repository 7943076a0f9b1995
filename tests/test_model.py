from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from imgxfer.model import ImageFile, ServerEndpoint, output_path, sniff_extension

PNG = b"\x89PNG\r\n\x1a\n"


def test_parse_endpoint():
    ep = ServerEndpoint.parse("127.0.0.1:9000")
    assert ep.host == "127.0.0.1"
    assert ep.port == 9000
    assert ep.address == "127.0.0.1:9000"


def test_parse_bracketed_ipv6():
    ep = ServerEndpoint.parse("[::1]:8080")
    assert ep.host == "::1"
    assert ep.address == "[::1]:8080"


@pytest.mark.parametrize("bad", ["localhost", ":80", "host:", "host:http", "host:0", "host:70000"])
def test_parse_rejects_malformed(bad):
    with pytest.raises(ValueError):
        ServerEndpoint.parse(bad)


def test_extension_allow_list_is_case_insensitive():
    assert ImageFile.from_path(Path("x/A.PNG")).eligible
    assert ImageFile.from_path(Path("x/b.Jpeg")).eligible
    assert ImageFile.from_path(Path("x/c.jpg")).eligible
    assert not ImageFile.from_path(Path("x/d.gif")).eligible
    assert not ImageFile.from_path(Path("x/noext")).eligible


def test_output_name_format():
    image = ImageFile.from_path(Path("images/cat.png"))
    server = ServerEndpoint.parse("10.0.0.5:7878")
    path = output_path(Path("out"), image, server, PNG)
    assert path == Path("out/cat.png_encoded_10.0.0.5_7878.png")


def test_output_extension_follows_content():
    image = ImageFile.from_path(Path("images/cat.png"))
    server = ServerEndpoint.parse("h:1")
    assert output_path(Path("o"), image, server, b"\xff\xd8\xff\xe0").suffix == ".jpg"
    assert output_path(Path("o"), image, server, b"unknown").suffix == ".png"
    assert output_path(Path("o"), image, server, b"").suffix == ".png"


def test_sniff_webp():
    assert sniff_extension(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "webp"
    assert sniff_extension(b"RIFF") is None


def test_output_paths_pairwise_distinct():
    images = [ImageFile.from_path(Path(f"images/{n}")) for n in ("a.png", "a.jpg", "b.png", "a_encoded.png")]
    servers = [ServerEndpoint.parse(s) for s in ("127.0.0.1:9000", "127.0.0.1:9001", "localhost:9000", "[::1]:9000")]
    paths = [output_path(Path("out"), im, srv, PNG) for im, srv in itertools.product(images, servers)]
    assert len(set(paths)) == len(images) * len(servers)

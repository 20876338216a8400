from __future__ import annotations

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from autoquote.pipeline import image_fetch
from autoquote.pipeline.image_fetch import (
    BlockedHostError,
    ImageTooLargeError,
    InvalidUrlError,
    UnsupportedContentTypeError,
    UpstreamError,
    canonical_ipv4,
    fetch_image,
    is_blocked_hostname,
    mime_to_format,
    normalize_image_url,
)


class FakeResponse:
    def __init__(self, status_code=200, headers=None, content=b"") -> None:
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.content = content
        self.closed = False

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, *responses, exc=None) -> None:
        self.responses = list(responses)
        self.exc = exc
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.responses.pop(0)


@pytest.fixture
def no_network(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("network must not be touched")

    monkeypatch.setattr(image_fetch.requests, "get", _fail)


@pytest.mark.parametrize(
    "url",
    [
        "http://localhost/a.png",
        "http://foo.localhost/a.png",
        "http://printer.local/a.png",
        "http://0.0.0.0/a.png",
        "http://10.1.2.3/a.png",
        "http://127.0.0.1:8080/a.png",
        "http://169.254.169.254/latest/meta-data",
        "http://172.16.0.1/a.png",
        "http://172.31.255.255/a.png",
        "http://192.168.1.20/a.png",
        "http://100.64.0.1/a.png",
        "http://224.0.0.1/a.png",
        "http://[::1]/a.png",
        "http://[2606:4700::1111]/a.png",
        "http://127.1/a.png",
        "http://2130706433/a.png",
        "http://0x7f.0.0.1/a.png",
        "http://0177.0.0.1/a.png",
        "http://0xa9fea9fe/a.png",
        "http://0xA9FEA9FE/a.png",
        "http://127.0.0.1./a.png",
        "http://10.0.0.1./a.png",
        "http://999.0.0.1/a.png",
    ],
)
def test_blocked_hosts_never_reach_the_network(no_network, url: str) -> None:
    with pytest.raises(BlockedHostError) as info:
        fetch_image(url)
    assert info.value.status_code == 403


@pytest.mark.parametrize("host", ["172.15.0.1", "172.32.0.1", "100.128.0.1", "8.8.8.8", "cdn.example.com"])
def test_public_hosts_are_allowed(host: str) -> None:
    assert not is_blocked_hostname(host)


@pytest.mark.parametrize(
    "host, expected",
    [
        ("127.1", "127.0.0.1"),
        ("2130706433", "127.0.0.1"),
        ("0x7f.0.0.1", "127.0.0.1"),
        ("0177.0.0.1", "127.0.0.1"),
        ("0xa9fea9fe", "169.254.169.254"),
        ("8.8.8.8", "8.8.8.8"),
        ("cdn.example.com", None),
        ("cafe.be", None),
        ("", None),
    ],
)
def test_canonical_ipv4(host: str, expected) -> None:
    assert canonical_ipv4(host) == expected


@pytest.mark.parametrize("url", ["", "ftp://example.com/a.png", "file:///etc/passwd"])
def test_bad_urls_are_rejected(no_network, url: str) -> None:
    with pytest.raises(InvalidUrlError) as info:
        fetch_image(url)
    assert info.value.status_code == 400


def test_successful_fetch() -> None:
    response = FakeResponse(headers={"Content-Type": "image/png", "Content-Length": "4"}, content=b"\x89PNG")
    session = FakeSession(response)
    fetched = fetch_image("https://cdn.example.com/car.png", session=session)
    assert fetched.data == b"\x89PNG"
    assert fetched.content_type == "image/png"
    assert fetched.cache_control == "public, max-age=86400"
    assert response.closed

    url, kwargs = session.calls[0]
    assert url == "https://cdn.example.com/car.png"
    assert kwargs["allow_redirects"] is False
    assert kwargs["stream"] is True
    assert kwargs["timeout"] == 12


def test_upstream_status_is_reported() -> None:
    session = FakeSession(FakeResponse(status_code=404, headers={"Content-Type": "text/html"}))
    with pytest.raises(UpstreamError) as info:
        fetch_image("https://cdn.example.com/missing.png", session=session)
    assert info.value.status_code == 502
    assert "404" in str(info.value)


def test_connection_errors_become_upstream_errors() -> None:
    session = FakeSession(exc=requests.ConnectionError("boom"))
    with pytest.raises(UpstreamError):
        fetch_image("https://cdn.example.com/car.png", session=session)


def test_non_image_content_type() -> None:
    session = FakeSession(FakeResponse(headers={"Content-Type": "text/html; charset=utf-8"}, content=b"<html>"))
    with pytest.raises(UnsupportedContentTypeError) as info:
        fetch_image("https://cdn.example.com/page", session=session)
    assert info.value.status_code == 415


def test_declared_length_over_limit() -> None:
    response = FakeResponse(headers={"Content-Type": "image/jpeg", "Content-Length": str(6 * 1024 * 1024)})
    with pytest.raises(ImageTooLargeError) as info:
        fetch_image("https://cdn.example.com/big.jpg", session=FakeSession(response))
    assert info.value.status_code == 413
    assert response.closed


def test_actual_length_over_limit_without_header() -> None:
    response = FakeResponse(headers={"Content-Type": "image/jpeg"}, content=b"x" * 11)
    with pytest.raises(ImageTooLargeError):
        fetch_image("https://cdn.example.com/big.jpg", session=FakeSession(response), max_bytes=10)


def test_normalize_image_url() -> None:
    assert normalize_image_url("  https://a.com/x.png ") == "https://a.com/x.png"
    assert normalize_image_url("http://a.com/x.png") == "http://a.com/x.png"
    assert normalize_image_url("a.com/x.png") == "https://a.com/x.png"
    assert normalize_image_url("ftp://a.com/x.png") is None
    assert normalize_image_url("") is None
    assert normalize_image_url("   ") is None


def test_mime_to_format() -> None:
    assert mime_to_format("image/png") == "PNG"
    assert mime_to_format("IMAGE/JPEG; q=1") == "JPEG"
    assert mime_to_format("image/jpg") == "JPEG"
    assert mime_to_format("image/gif") is None
    assert mime_to_format("") is None


def test_redirects_are_followed_through_the_guard() -> None:
    hop = FakeResponse(status_code=301, headers={"Location": "/img/car.png"})
    final = FakeResponse(headers={"Content-Type": "image/png"}, content=b"\x89PNG")
    session = FakeSession(hop, final)

    fetched = fetch_image("https://cdn.example.com/car", session=session)

    assert fetched.data == b"\x89PNG"
    assert [url for url, _ in session.calls] == [
        "https://cdn.example.com/car",
        "https://cdn.example.com/img/car.png",
    ]
    assert hop.closed and final.closed


@pytest.mark.parametrize(
    "location",
    ["http://169.254.169.254/latest/meta-data", "http://0x7f000001/a.png", "http://localhost/a.png"],
)
def test_redirect_to_blocked_host_is_refused(location: str) -> None:
    hop = FakeResponse(status_code=302, headers={"Location": location})
    session = FakeSession(hop)
    with pytest.raises(BlockedHostError):
        fetch_image("https://cdn.example.com/car.png", session=session)
    assert len(session.calls) == 1
    assert hop.closed


def test_redirect_loop_gives_up() -> None:
    hops = [FakeResponse(status_code=307, headers={"Location": f"/r{i}"}) for i in range(3)]
    session = FakeSession(*hops)
    with pytest.raises(UpstreamError):
        fetch_image("https://cdn.example.com/r", session=session, max_redirects=2)
    assert len(session.calls) == 3

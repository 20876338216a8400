from __future__ import annotations

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urljoin, urlsplit

import requests

from .. import config


logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
}

_NUMERIC_HOST = re.compile(r"^(?:0x[0-9a-f]*|[0-9]+)(?:\.(?:0x[0-9a-f]*|[0-9]+))*$", re.IGNORECASE)
_DIGITS_AND_DOTS = re.compile(r"^[0-9.]+$")
REDIRECT_CODES = (301, 302, 303, 307, 308)


class ImageFetchError(Exception):
    status_code = 500


class InvalidUrlError(ImageFetchError):
    status_code = 400


class BlockedHostError(ImageFetchError):
    status_code = 403


class UpstreamError(ImageFetchError):
    status_code = 502


class UnsupportedContentTypeError(ImageFetchError):
    status_code = 415


class ImageTooLargeError(ImageFetchError):
    status_code = 413


@dataclass(frozen=True)
class FetchedImage:
    data: bytes = field(repr=False)
    content_type: str
    cache_control: str = config.IMAGE_CACHE_CONTROL


def mime_to_format(mime: str) -> Optional[str]:
    normalized = (mime or "").split(";")[0].strip().lower()
    return SUPPORTED_FORMATS.get(normalized)


def normalize_image_url(raw: str) -> Optional[str]:
    """Trimmed http(s) URL, or None. Scheme-less input like 'example.com/a.png' is read as https."""
    trimmed = (raw or "").strip()
    if not trimmed:
        return None
    parts = urlsplit(trimmed)
    if parts.scheme in ("http", "https") and parts.netloc:
        return trimmed
    if parts.scheme:
        return None
    candidate = "https://" + trimmed.lstrip("/")
    parts = urlsplit(candidate)
    if not parts.netloc or " " in parts.netloc:
        return None
    return candidate


def canonical_ipv4(hostname: str) -> Optional[str]:
    """
    Dotted-quad form of any IPv4 spelling the system resolver accepts.

    '127.1', '2130706433', '0x7f.0.0.1' and '0177.0.0.1' all come back as
    '127.0.0.1'; anything that is not a numeric address returns None.
    """
    if not hostname or not _NUMERIC_HOST.match(hostname):
        return None
    try:
        packed = socket.inet_aton(hostname)
    except OSError:
        return None
    return str(ipaddress.IPv4Address(packed))


def is_blocked_ipv4(hostname: str) -> bool:
    canonical = canonical_ipv4(hostname)
    if canonical is None:
        return False
    a, b = (int(p) for p in canonical.split(".")[:2])

    if a == 0:
        return True
    if a == 10:
        return True
    if a == 127:
        return True
    if a == 169 and b == 254:
        return True
    if a == 172 and 16 <= b <= 31:
        return True
    if a == 192 and b == 168:
        return True
    if a == 100 and 64 <= b <= 127:
        return True
    # multicast and reserved
    if a >= 224:
        return True
    return False


def is_blocked_hostname(hostname: str) -> bool:
    lower = (hostname or "").strip().lower().strip("[]").rstrip(".")
    if not lower:
        return True
    if lower == "localhost" or lower.endswith(".localhost"):
        return True
    if lower == "0.0.0.0":
        return True
    if lower.endswith(".local"):
        return True
    if is_blocked_ipv4(lower):
        return True
    # digits and dots only but not an address the resolver accepts
    if _DIGITS_AND_DOTS.match(lower) and canonical_ipv4(lower) is None:
        return True
    # every IPv6 literal is refused
    if ":" in lower:
        return True
    return False


def check_url(url: str) -> str:
    """Raise InvalidUrlError/BlockedHostError for anything the fetcher must not touch; returns the hostname."""
    if not url:
        raise InvalidUrlError("Missing url")
    try:
        parts = urlsplit(url)
        hostname = parts.hostname or ""
    except ValueError as exc:
        raise InvalidUrlError("Invalid url") from exc
    if parts.scheme not in ("http", "https"):
        raise InvalidUrlError("Invalid protocol")
    if is_blocked_hostname(hostname):
        logger.info("Blocked image host %s", hostname or parts.netloc)
        raise BlockedHostError("Blocked host")
    return hostname


def _declared_length(response: requests.Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _redirect_target(response: requests.Response, current: str) -> Optional[str]:
    if response.status_code not in REDIRECT_CODES:
        return None
    location = response.headers.get("location")
    if not location:
        return None
    return urljoin(current, location)


def fetch_image(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = config.IMAGE_FETCH_TIMEOUT,
    max_bytes: int = config.MAX_IMAGE_BYTES,
    max_redirects: int = config.IMAGE_MAX_REDIRECTS,
) -> FetchedImage:
    """
    Download an image over http(s) with the host guard applied first.

    Redirects are followed by hand so every hop goes through the same guard.
    Raises an ImageFetchError subclass on every failure; nothing is cached here.
    """
    http = session or requests
    current = url
    for _ in range(max_redirects + 1):
        check_url(current)
        try:
            response = http.get(current, timeout=timeout, allow_redirects=False, stream=True)
        except requests.RequestException as exc:
            raise UpstreamError("Failed to fetch") from exc
        target = _redirect_target(response, current)
        if target is None:
            break
        response.close()
        logger.debug("Image redirect %s -> %s", current, target)
        current = target
    else:
        raise UpstreamError("Too many redirects")

    try:
        if not response.ok:
            raise UpstreamError(f"Upstream error ({response.status_code})")

        content_type = response.headers.get("content-type", "")
        if not content_type.lower().startswith("image/"):
            raise UnsupportedContentTypeError("Unsupported content-type")

        declared = _declared_length(response)
        if declared is not None and declared > max_bytes:
            raise ImageTooLargeError("Image too large")

        try:
            data = response.content
        except requests.RequestException as exc:
            raise UpstreamError("Failed to fetch") from exc
        if len(data) > max_bytes:
            raise ImageTooLargeError("Image too large")
    finally:
        response.close()

    return FetchedImage(data=data, content_type=content_type)

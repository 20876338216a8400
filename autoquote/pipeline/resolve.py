from __future__ import annotations

import io
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from reportlab.lib.utils import ImageReader

from .. import config
from .document import ResolvedImage
from .image_fetch import FetchedImage, ImageFetchError, fetch_image, mime_to_format, normalize_image_url


logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, None]
Fetcher = Callable[[str], FetchedImage]

_DRIVE_PATH = re.compile(r"^[A-Za-z]:[\\/]")


@dataclass(frozen=True)
class ImageResolution:
    image: Optional[ResolvedImage] = None
    warning: Optional[str] = None


def decode_image(data: bytes, mime: str) -> ResolvedImage:
    """Check the mime type and read native dimensions; raises ValueError if unusable."""
    fmt = mime_to_format(mime)
    if fmt is None:
        raise ValueError(f"Unsupported image type: {mime or 'unknown'}")
    try:
        width, height = ImageReader(io.BytesIO(data)).getSize()
    except Exception as exc:
        raise ValueError("Image decode failed") from exc
    if width <= 0 or height <= 0:
        raise ValueError("Image has no size")
    return ResolvedImage(data=data, format=fmt, width=int(width), height=int(height))


def _read_file(path: Path) -> tuple[bytes, str]:
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    mime, _ = mimetypes.guess_type(path.name)
    return path.read_bytes(), mime or ""


def _looks_like_url(source: str) -> bool:
    lowered = source.strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def _looks_like_path(source: str) -> bool:
    # "/tmp/x.png", "./x.png", "~/x.png", "C:\\x.png" are never sent over the network
    text = source.strip()
    return text.startswith(("/", ".", "~", "\\")) or bool(_DRIVE_PATH.match(text))


def resolve_image(source: ImageSource, fetcher: Fetcher = fetch_image) -> ImageResolution:
    """
    Turn a user-supplied file path or URL into a decoded image.

    Never raises: any failure comes back as an advisory warning with no image,
    so the quote can still be produced.
    """
    if source is None or not str(source).strip():
        return ImageResolution()

    text = str(source).strip()
    try:
        if isinstance(source, Path) or _looks_like_path(text) or (not _looks_like_url(text) and Path(text).exists()):
            data, mime = _read_file(Path(text).expanduser())
            if not mime.startswith("image/"):
                logger.warning("Image file %s is not an image (%s)", text, mime or "unknown")
                return ImageResolution(warning=config.NOT_AN_IMAGE_WARNING)
        else:
            url = normalize_image_url(text)
            if url is None:
                raise ValueError(f"Invalid image url: {text}")
            fetched = fetcher(url)
            data, mime = fetched.data, fetched.content_type
        image = decode_image(data, mime)
    except (ImageFetchError, ValueError, OSError) as exc:
        logger.warning("Image skipped for %s: %s", text, exc)
        return ImageResolution(warning=config.IMAGE_WARNING)

    logger.info("Resolved image %s (%sx%s %s)", text, image.width, image.height, image.format)
    return ImageResolution(image=image)


def resolve_logo(path: Optional[Path]) -> Optional[ResolvedImage]:
    if path is None:
        return None
    resolution = resolve_image(path, fetcher=_no_fetch)
    return resolution.image


def _no_fetch(url: str) -> FetchedImage:
    raise ValueError(f"Logo must be a local file: {url}")

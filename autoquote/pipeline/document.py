from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple, Union

from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth

from .. import config


BODY = "body"
DECORATIONS = "decorations"
ALIGNMENTS = ("left", "center", "right")
RECT_MODES = ("fill", "stroke")


@dataclass(frozen=True)
class TextCommand:
    content: str
    x: float
    y: float
    font: str = "Helvetica"
    size: float = 10.0
    color: str = "#000000"
    align: str = "left"


@dataclass(frozen=True)
class LineCommand:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "#000000"
    width: float = 0.3


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    w: float
    h: float
    mode: str = "stroke"
    color: str = "#000000"


@dataclass(frozen=True)
class ImageCommand:
    data: bytes = field(repr=False)
    format: str
    x: float
    y: float
    w: float
    h: float


DrawCommand = Union[TextCommand, LineCommand, RectCommand, ImageCommand]


@dataclass(frozen=True)
class ResolvedImage:
    """Decoded bitmap handed to the layout phase; width/height are native pixels."""

    data: bytes = field(repr=False)
    format: str
    width: int
    height: int


@dataclass
class Page:
    body: List[DrawCommand] = field(default_factory=list)
    decorations: List[DrawCommand] = field(default_factory=list)

    @property
    def commands(self) -> List[DrawCommand]:
        return self.body + self.decorations

    def texts(self) -> List[str]:
        return [c.content for c in self.commands if isinstance(c, TextCommand)]


def text_width(content: str, font: str, size: float) -> float:
    """Rendered width of `content` in millimetres, measured from real glyph metrics."""
    return stringWidth(content, font, size) / mm


class Document:
    """
    Paginated canvas in page-local millimetres with the origin at the top-left.

    Draw calls append to the current page; nothing is clipped or validated,
    so coordinates are kept exactly as passed.
    """

    def __init__(self, page_size: Tuple[float, float] = config.PAGE_SIZE) -> None:
        self._page_size = (float(page_size[0]), float(page_size[1]))
        self.pages: List[Page] = [Page()]
        self._current = 0
        self._layer = BODY

    # -- pages --

    def add_page(self) -> int:
        self.pages.append(Page())
        self._current = len(self.pages) - 1
        return self._current

    def set_page(self, index: int) -> None:
        if not 0 <= index < len(self.pages):
            raise IndexError(f"Page index out of range: {index}")
        self._current = index

    def page_count(self) -> int:
        return len(self.pages)

    def page_size(self) -> Tuple[float, float]:
        return self._page_size

    @property
    def current_index(self) -> int:
        return self._current

    @property
    def current_page(self) -> Page:
        return self.pages[self._current]

    def set_layer(self, layer: str) -> None:
        if layer not in (BODY, DECORATIONS):
            raise ValueError(f"Unknown layer: {layer}")
        self._layer = layer

    def _append(self, command: DrawCommand) -> DrawCommand:
        getattr(self.current_page, self._layer).append(command)
        return command

    # -- primitives --

    def text(
        self,
        content: str,
        x: float,
        y: float,
        *,
        font: str = "Helvetica",
        size: float = 10.0,
        color: str = "#000000",
        align: str = "left",
    ) -> TextCommand:
        if align not in ALIGNMENTS:
            raise ValueError(f"Unknown text alignment: {align}")
        return self._append(TextCommand(str(content), float(x), float(y), font, float(size), color, align))

    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: str = "#000000", width: float = 0.3) -> LineCommand:
        return self._append(LineCommand(float(x1), float(y1), float(x2), float(y2), color, float(width)))

    def rect(self, x: float, y: float, w: float, h: float, mode: str = "stroke", *, color: str = "#000000") -> RectCommand:
        if mode not in RECT_MODES:
            raise ValueError(f"Unknown rect mode: {mode}")
        return self._append(RectCommand(float(x), float(y), float(w), float(h), mode, color))

    def image(self, data: bytes, fmt: str, x: float, y: float, w: float, h: float) -> ImageCommand:
        return self._append(ImageCommand(data, fmt, float(x), float(y), float(w), float(h)))

    # -- inspection --

    def signature(self) -> tuple:
        """Hashable snapshot of every page, used to compare layouts."""
        return tuple((tuple(page.body), tuple(page.decorations)) for page in self.pages)

    def all_texts(self) -> List[str]:
        out: List[str] = []
        for page in self.pages:
            out.extend(page.texts())
        return out

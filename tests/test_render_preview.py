from __future__ import annotations

import tempfile
from pathlib import Path

from autoquote.pipeline.render_preview import render_previews


class DummyRect:
    width = 595.0
    height = 842.0


class DummyPixmap:
    def save(self, path: str) -> None:
        Path(path).write_text("preview", encoding="utf-8")


class DummyPage:
    rect = DummyRect()

    def __init__(self) -> None:
        self.zoom = None

    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        self.zoom = matrix.a
        return DummyPixmap()


class DummyDoc:
    def __init__(self, page_count: int = 3) -> None:
        self.page_count = page_count
        self.closed = False
        self.pages = []

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:  # noqa: ARG002 - test helper
        page = DummyPage()
        self.pages.append(page)
        return page


def test_render_previews_closes_document(monkeypatch) -> None:
    doc = DummyDoc()

    def fake_open(path: str) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    with tempfile.TemporaryDirectory() as temp_dir:
        monkeypatch.setattr("autoquote.pipeline.render_preview.fitz.open", fake_open)
        previews = render_previews(Path("Cotizacion_Demo_1.pdf"), Path(temp_dir), max_pages=5)
        assert doc.closed is True
        assert [p.name for p in previews] == [
            "Cotizacion_Demo_1_p1.png",
            "Cotizacion_Demo_1_p2.png",
            "Cotizacion_Demo_1_p3.png",
        ]
        assert all(path.exists() for path in previews)


def test_preview_zoom_targets_short_side(monkeypatch) -> None:
    doc = DummyDoc()
    monkeypatch.setattr("autoquote.pipeline.render_preview.fitz.open", lambda path: doc)

    with tempfile.TemporaryDirectory() as temp_dir:
        previews = render_previews(Path("q.pdf"), Path(temp_dir))
        assert len(previews) == 1
        assert abs(doc.pages[0].zoom - 1200 / 595.0) < 1e-6

from __future__ import annotations

from pathlib import Path
from typing import List

import fitz  # PyMuPDF


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # zoom so the short side comes out at roughly min_px pixels
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(1.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def render_previews(pdf_path: Path, out_dir: Path, max_pages: int = 1) -> List[Path]:
    """PNG snapshots of the first `max_pages` pages, named <pdf stem>_p<N>.png."""
    previews: List[Path] = []
    with fitz.open(str(pdf_path)) as doc:
        count = min(max(1, max_pages), doc.page_count)
        for index in range(count):
            out_path = out_dir / f"{pdf_path.stem}_p{index + 1}.png"
            _render_page_to_png(doc, index, out_path)
            previews.append(out_path)
    return previews

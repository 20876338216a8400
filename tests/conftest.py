from __future__ import annotations

import io
from decimal import Decimal

import pytest
from PIL import Image

from autoquote.pipeline.document import ResolvedImage
from autoquote.pipeline.quote import QuoteInputs, VehicleType


def make_png(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def resolved_image():
    def _make(width: int = 40, height: int = 20) -> ResolvedImage:
        return ResolvedImage(data=make_png(width, height), format="PNG", width=width, height=height)

    return _make


@pytest.fixture
def electric_inputs() -> QuoteInputs:
    return QuoteInputs(
        unit_cost=Decimal("35000"),
        quantity=1,
        freight=Decimal("1300"),
        portable_charger=True,
        residential_charger=False,
        extra_charger_sets=0,
        additional_accessories_cost=Decimal("0"),
        vehicle_type=VehicleType.ELECTRIC,
    )

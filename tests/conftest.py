from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trait_lab.registry.model import TraitCategory, TraitRegistry, TraitVariant

Color = Sequence[int]


def png_bytes(color: Color, size: tuple[int, int] = (8, 8), box: tuple[int, int, int, int] | None = None) -> bytes:
    """Solid RGBA image; with *box* only that rectangle is painted."""

    if box is None:
        img = Image.new("RGBA", size, tuple(color))
    else:
        img = Image.new("RGBA", size, (0, 0, 0, 0))
        img.paste(tuple(color), box)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def make_png() -> Callable[..., bytes]:
    return png_bytes


@pytest.fixture()
def background_hat_registry() -> TraitRegistry:
    red = TraitVariant(name="Red", image=png_bytes((255, 0, 0, 255)), rarity=50, id="red")
    blue = TraitVariant(name="Blue", image=png_bytes((0, 0, 255, 255)), rarity=50, id="blue")
    crown = TraitVariant(name="Crown", image=png_bytes((255, 215, 0, 255), box=(2, 0, 6, 3)), id="crown")
    registry = TraitRegistry(
        [
            TraitCategory(name="Background", order=0, variants=[red, blue], id="background"),
            TraitCategory(name="Hat", order=1, variants=[crown], id="hat"),
        ]
    )
    registry.add_rule("crown", "doesnt_mix", ["red"])
    return registry

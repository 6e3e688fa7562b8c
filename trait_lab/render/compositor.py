"""Ordered alpha compositing of an item's selected trait layers."""
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol, Sequence, Tuple, Union

import numpy as np
from PIL import Image

from ..io_utils import payload_bytes
from ..registry.model import TraitCategory

LOGGER = logging.getLogger("traitlab.render")

Size = Tuple[int, int]


class ImageDecoder(Protocol):
    async def decode(self, payload: Union[bytes, str, Path], size: Size) -> Image.Image | None:
        """Return an RGBA layer scaled to *size*, or None when decoding fails."""


@dataclass
class PillowDecoder:
    """Decode bytes, ``data:`` URIs or paths with Pillow on a worker thread."""

    resample: Image.Resampling = Image.Resampling.LANCZOS

    async def decode(self, payload: Union[bytes, str, Path], size: Size) -> Image.Image | None:
        return await asyncio.to_thread(self.decode_sync, payload, size)

    def decode_sync(self, payload: Union[bytes, str, Path], size: Size) -> Image.Image | None:
        try:
            blob = payload_bytes(payload)
            with Image.open(io.BytesIO(blob)) as img:
                layer = img.convert("RGBA")
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            LOGGER.debug("layer decode failed: %s", exc)
            return None
        if layer.size != tuple(size):
            layer = layer.resize(tuple(size), self.resample)
        return layer


@dataclass
class Compositor:
    """Draw each category's chosen trait back to front onto a transparent canvas.

    Lower ``order`` values paint first, so higher categories occlude them.
    Layers are decoded and drawn strictly one after another.
    """

    decoder: ImageDecoder = field(default_factory=PillowDecoder)

    async def render(
        self,
        selections: Mapping[str, str],
        categories: Sequence[TraitCategory],
        width: int,
        height: int,
    ) -> bytes:
        size = (int(width), int(height))
        canvas = Image.new("RGBA", size, (0, 0, 0, 0))
        for category in sorted(categories, key=lambda c: c.order):
            variant_id = selections.get(category.id)
            if variant_id is None:
                continue
            variant = category.variant(variant_id)
            if variant is None:
                continue
            layer = await self.decoder.decode(variant.image, size)
            if layer is None:
                LOGGER.debug("trait %s (%s) drawn as empty layer", variant.name, variant.id)
                continue
            if layer.mode != "RGBA":
                layer = layer.convert("RGBA")
            if layer.size != size:
                LOGGER.debug("trait %s layer is %sx%s, scaling to canvas", variant.name, *layer.size)
                layer = layer.resize(size, Image.Resampling.LANCZOS)
            canvas.alpha_composite(layer)
        return encode_png(canvas)


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def decode_pixels(png: bytes) -> np.ndarray:
    """Rendered PNG as a float32 RGBA array in ``[0, 1]``."""

    with Image.open(io.BytesIO(png)) as img:
        array = np.asarray(img.convert("RGBA"), dtype=np.float32)
    return np.clip(array / 255.0, 0.0, 1.0)


__all__ = [
    "Compositor",
    "ImageDecoder",
    "PillowDecoder",
    "Size",
    "decode_pixels",
    "encode_png",
]

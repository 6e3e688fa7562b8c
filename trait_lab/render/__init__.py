"""Layer compositing."""

from .compositor import Compositor, ImageDecoder, PillowDecoder, decode_pixels, encode_png

__all__ = ["Compositor", "ImageDecoder", "PillowDecoder", "decode_pixels", "encode_png"]

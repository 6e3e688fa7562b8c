from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Union

_DATA_URI_PREFIX = "data:"

_MAGIC_MIME = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"BM", "image/bmp"),
)


def guess_mime(data: bytes) -> str:
    for magic, mime in _MAGIC_MIME:
        if data.startswith(magic):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def to_data_uri(data: bytes, mime: str | None = None) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime or guess_mime(data)};base64,{encoded}"


def is_data_uri(value: str) -> bool:
    return value.startswith(_DATA_URI_PREFIX)


def decode_data_uri(value: str) -> bytes:
    """Return the bytes carried by a ``data:`` URI.

    Raises ``ValueError`` for malformed URIs and invalid base64 payloads.
    """

    if not is_data_uri(value):
        raise ValueError("not a data URI")
    header, sep, body = value.partition(",")
    if not sep:
        raise ValueError("data URI has no payload")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(body, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return body.encode("utf-8")


def payload_bytes(payload: Union[bytes, str, Path]) -> bytes:
    """Resolve an image payload (raw bytes, data URI or file path) to bytes."""

    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str) and is_data_uri(payload):
        return decode_data_uri(payload)
    return Path(payload).read_bytes()


__all__ = [
    "decode_data_uri",
    "guess_mime",
    "is_data_uri",
    "payload_bytes",
    "to_data_uri",
]

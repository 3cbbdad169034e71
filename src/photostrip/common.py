"""photostrip.common — shared utilities for strip composition.

Contains: color parsing, path variable resolution, and payload loading
(raw bytes, filesystem paths, data URLs, or already decoded images).
"""

import base64
import binascii
import io
import re
from pathlib import Path

from PIL import Image

from .errors import ImageLoadFailure


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6:
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Payload loading ────────────────────────────────────────────────
# A payload is whatever the capture side handed over for one slot:
# raw encoded bytes, a path on disk, a data URL produced by a browser
# canvas, or a PIL image that is already decoded.

_DATA_URL = re.compile(r"^data:[\w/+.-]+(;[\w=-]+)*;base64,", re.IGNORECASE)


def describe_payload(payload) -> str:
    """Short human-readable description of a payload for error messages."""
    if isinstance(payload, Image.Image):
        return f"<image {payload.width}x{payload.height}>"
    if isinstance(payload, (bytes, bytearray)):
        return f"<{len(payload)} bytes>"
    text = str(payload)
    return text if len(text) <= 70 else text[:67] + "..."


def read_payload(payload) -> bytes | Path:
    """Normalize a bytes/path/data-URL payload to raw bytes or a Path.

    Raises:
        ImageLoadFailure: Malformed data URL, missing file, or an
            unsupported payload type.
    """
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str) and payload.startswith("data:"):
        match = _DATA_URL.match(payload)
        if not match:
            raise ImageLoadFailure(
                f"Unsupported data URL: {describe_payload(payload)}"
            )
        try:
            return base64.b64decode(payload[match.end():], validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageLoadFailure(
                f"Malformed base64 in data URL: {describe_payload(payload)}"
            ) from e
    if isinstance(payload, (str, Path)):
        path = Path(payload)
        if not path.is_file():
            raise ImageLoadFailure(f"Image file not found: {path}")
        return path
    raise ImageLoadFailure(
        f"Unsupported payload type: {type(payload).__name__}"
    )


def open_payload(payload) -> Image.Image:
    """Open a payload with Pillow without forcing a full decode.

    Used for multi-frame sources where the caller walks the frames.
    """
    if isinstance(payload, Image.Image):
        return payload
    source = read_payload(payload)
    try:
        if isinstance(source, bytes):
            return Image.open(io.BytesIO(source))
        return Image.open(source)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadFailure(
            f"Cannot decode {describe_payload(payload)}: {e}"
        ) from e


def load_image(payload) -> Image.Image:
    """Fully decode a still payload into an RGBA image.

    Raises:
        ImageLoadFailure: The payload cannot be read or decoded.
    """
    img = open_payload(payload)
    try:
        img.load()
        return img if img.mode == "RGBA" else img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadFailure(
            f"Cannot decode {describe_payload(payload)}: {e}"
        ) from e

"""Per-photo visual filters.

Filters are described with the same vocabulary as CSS filter functions,
since that is what the capture UI lets the user pick:

    ""  /  "none"                 no filter
    "grayscale"                   bare name = full strength
    "sepia(80%) brightness(1.1)"  functions applied left to right

Supported functions: grayscale, sepia, saturate, brightness, contrast,
invert, opacity, hue-rotate, blur. Colour math follows the CSS Filter
Effects matrices, with channels clamped after each function. Filters act
on the photo only; the overlay is never filtered.
"""

import math
import re
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageFilter


# ── Vocabulary ───────────────────────────────────────────────────

# Default amount for a bare function name or empty parentheses.
FILTER_DEFAULTS = {
    "grayscale": 1.0,
    "sepia": 1.0,
    "saturate": 1.0,
    "brightness": 1.0,
    "contrast": 1.0,
    "invert": 1.0,
    "opacity": 1.0,
    "hue-rotate": 0.0,
    "blur": 0.0,
}

# Amounts above 1 are clamped to 1 for these.
_UNIT_CLAMPED = {"grayscale", "sepia", "invert", "opacity"}

_TOKEN = re.compile(r"([a-z-]+)(?:\(\s*([^)]*?)\s*\))?", re.IGNORECASE)
_AMOUNT = re.compile(r"^(-?\d*\.?\d+)(%|deg|rad|turn|px)?$", re.IGNORECASE)


def _parse_amount(name: str, raw: str) -> float:
    match = _AMOUNT.match(raw)
    if not match:
        raise ValueError(f"Filter {name}(): invalid amount '{raw}'")
    value = float(match.group(1))
    unit = (match.group(2) or "").lower()

    if name == "hue-rotate":
        if unit == "rad":
            return math.degrees(value)
        if unit == "turn":
            return value * 360.0
        if unit not in ("", "deg"):
            raise ValueError(f"Filter hue-rotate(): unsupported unit '{unit}'")
        return value

    if name == "blur":
        if unit not in ("", "px"):
            raise ValueError(f"Filter blur(): unsupported unit '{unit}'")
    elif unit == "%":
        value /= 100.0
    elif unit:
        raise ValueError(f"Filter {name}(): unsupported unit '{unit}'")

    if value < 0:
        raise ValueError(f"Filter {name}(): amount must be >= 0, got {raw}")
    if name in _UNIT_CLAMPED:
        value = min(value, 1.0)
    return value


# ── Colour operations ────────────────────────────────────────────
# Each takes an (h, w, 3) float32 array in 0..255 and returns one.


def _grayscale_matrix(a: float) -> np.ndarray:
    r = 1.0 - a
    return np.array([
        [0.2126 + 0.7874 * r, 0.7152 - 0.7152 * r, 0.0722 - 0.0722 * r],
        [0.2126 - 0.2126 * r, 0.7152 + 0.2848 * r, 0.0722 - 0.0722 * r],
        [0.2126 - 0.2126 * r, 0.7152 - 0.7152 * r, 0.0722 + 0.9278 * r],
    ], dtype=np.float32)


def _sepia_matrix(a: float) -> np.ndarray:
    r = 1.0 - a
    return np.array([
        [0.393 + 0.607 * r, 0.769 - 0.769 * r, 0.189 - 0.189 * r],
        [0.349 - 0.349 * r, 0.686 + 0.314 * r, 0.168 - 0.168 * r],
        [0.272 - 0.272 * r, 0.534 - 0.534 * r, 0.131 + 0.869 * r],
    ], dtype=np.float32)


def _saturate_matrix(s: float) -> np.ndarray:
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)


def _hue_rotate_matrix(degrees: float) -> np.ndarray:
    c = math.cos(math.radians(degrees))
    s = math.sin(math.radians(degrees))
    return np.array([
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ], dtype=np.float32)


_MATRICES = {
    "grayscale": _grayscale_matrix,
    "sepia": _sepia_matrix,
    "saturate": _saturate_matrix,
    "hue-rotate": _hue_rotate_matrix,
}


def _apply_color_op(rgb: np.ndarray, name: str, amount: float) -> np.ndarray:
    if name in _MATRICES:
        return rgb @ _MATRICES[name](amount).T
    if name == "brightness":
        return rgb * amount
    if name == "contrast":
        return (rgb - 127.5) * amount + 127.5
    if name == "invert":
        return rgb * (1.0 - 2.0 * amount) + 255.0 * amount
    raise ValueError(f"Unknown filter function: '{name}'")


# ── PhotoFilter ──────────────────────────────────────────────────


@dataclass(frozen=True)
class PhotoFilter:
    """An ordered chain of (function, amount) filter operations."""

    operations: tuple[tuple[str, float], ...] = ()

    @property
    def is_identity(self) -> bool:
        return not self.operations

    def __str__(self) -> str:
        if not self.operations:
            return "none"
        return " ".join(f"{name}({amount:g})" for name, amount in self.operations)

    def apply(self, image: Image.Image) -> Image.Image:
        """Return a filtered copy of `image` (RGBA in, RGBA out)."""
        if not self.operations:
            return image
        if image.mode != "RGBA":
            image = image.convert("RGBA")

        arr = np.array(image, dtype=np.float32)
        for name, amount in self.operations:
            if name == "blur":
                if amount > 0:
                    blurred = _to_image(arr).filter(ImageFilter.GaussianBlur(amount))
                    arr = np.array(blurred, dtype=np.float32)
                continue
            if name == "opacity":
                arr[..., 3] *= amount
            else:
                arr[..., :3] = _apply_color_op(arr[..., :3], name, amount)
            np.clip(arr, 0.0, 255.0, out=arr)
        return _to_image(arr)


NO_FILTER = PhotoFilter()


def _to_image(arr: np.ndarray) -> Image.Image:
    return Image.fromarray(np.rint(arr).astype(np.uint8), "RGBA")


def parse_filter(value) -> PhotoFilter:
    """Parse a filter descriptor into a PhotoFilter.

    Accepts None, a PhotoFilter (returned as-is), or a CSS-style filter
    string.

    Raises:
        ValueError: Unknown function name or invalid amount.
    """
    if value is None:
        return NO_FILTER
    if isinstance(value, PhotoFilter):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Filter must be a string, got {type(value).__name__}")

    text = value.strip()
    if not text or text.lower() == "none":
        return NO_FILTER

    operations = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        match = _TOKEN.match(text, pos)
        if not match or match.end() == pos:
            raise ValueError(f"Invalid filter syntax near '{text[pos:]}'")
        name = match.group(1).lower()
        if name not in FILTER_DEFAULTS:
            raise ValueError(
                f"Unknown filter function: '{name}'. Valid: {sorted(FILTER_DEFAULTS)}"
            )
        raw_amount = match.group(2)
        if raw_amount:
            amount = _parse_amount(name, raw_amount)
        else:
            amount = FILTER_DEFAULTS[name]
        operations.append((name, amount))
        pos = match.end()

    return PhotoFilter(tuple(operations))


def snapshot_filters(filters, count: int) -> list[PhotoFilter]:
    """Parse the caller's per-slot filter selections once, up front.

    Args:
        filters: Sequence of filter descriptors, or None for no filters.
        count: Number of slots; the sequence must match it exactly.

    Returns:
        A list of `count` PhotoFilter objects, independent of later
        changes to the caller's sequence.
    """
    if filters is None:
        return [NO_FILTER] * count
    filters = list(filters)
    if len(filters) != count:
        raise ValueError(
            f"Expected {count} filter(s), one per captured image, got {len(filters)}"
        )
    return [parse_filter(f) for f in filters]

"""Static composition pipeline — one PNG photo strip.

Slots are loaded and drawn strictly one after another on a single
surface; the overlay is loaded and drawn last, stretched over the whole
canvas and never clipped. Any load failure aborts the composition, so
the caller never receives a partial strip.
"""

import io
from collections.abc import Iterable, Sequence

from PIL import Image

from .common import load_image
from .errors import EncodingFailure
from .filters import PhotoFilter, snapshot_filters
from .layouts import GridLayout, MappedLayout, resolve_layout
from .models import CapturedImage, CompositionResult, FrameMapping
from .settings import ExportSettings
from .slots import draw_overlay
from .surface import DrawingSurface


def still_payload(item):
    """The still payload of a CapturedImage (raw payloads pass through)."""
    return item.photo if isinstance(item, CapturedImage) else item


def load_overlay(overlay) -> Image.Image | None:
    """Decode an overlay payload; None means the design has no overlay."""
    if overlay is None:
        return None
    return load_image(overlay)


def render_still(
    images: Iterable,
    layout: MappedLayout | GridLayout,
    filters: Sequence[PhotoFilter | None],
    overlay=None,
) -> Image.Image:
    """Draw every slot, then the overlay, onto a fresh canvas.

    Args:
        images: Decoded images or still payloads, in slot order. Payloads
            are decoded lazily, right before their slot is drawn.
        layout: Resolved layout strategy.
        filters: One filter per slot.
        overlay: Overlay image or payload, or None for no overlay.

    Returns:
        The composed RGBA canvas, sized by the layout.

    Raises:
        ImageLoadFailure: A slot or the overlay cannot be decoded.
    """
    surface = DrawingSurface(layout.size)
    drawn = 0
    for i, image in enumerate(images):
        if not isinstance(image, Image.Image):
            image = load_image(image)
        layout.draw_slot(surface, i, image, filters[i])
        drawn += 1
    if drawn != layout.slot_count:
        raise ValueError(f"Layout has {layout.slot_count} slots, got {drawn} image(s)")

    overlay_image = load_overlay(overlay)
    if overlay_image is not None:
        draw_overlay(surface, overlay_image)
    return surface.image


def encode_png(image: Image.Image) -> bytes:
    """Encode a canvas as PNG bytes."""
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodingFailure(f"PNG encoding failed: {e}") from e
    return buf.getvalue()


def still_result(image: Image.Image) -> CompositionResult:
    """Encode a composed canvas as a "still" PNG result."""
    return CompositionResult(
        kind="still", format="png", data=encode_png(image), size=image.size,
    )


def compose_still(
    captured: Sequence,
    mapping: FrameMapping | None,
    filters: Sequence | None = None,
    overlay=None,
    settings: ExportSettings | None = None,
) -> CompositionResult:
    """Compose captured stills into one PNG strip.

    Args:
        captured: CapturedImage records (or bare still payloads) in slot order.
        mapping: The design's frame mapping, or None for the fallback grid.
        filters: One filter descriptor per slot (None = no filters).
        overlay: Overlay image or payload, or None.
        settings: Export settings (fallback cell size, slot bound).

    Returns:
        A "still" CompositionResult holding PNG bytes.

    Raises:
        ImageLoadFailure: A slot or the overlay cannot be decoded.
        EncodingFailure: PNG encoding failed.
        ValueError: No images, too many images, or filter count mismatch.
    """
    settings = settings or ExportSettings()
    count = len(captured)
    if count > settings.max_slots:
        raise ValueError(f"Too many captured images: {count} (max {settings.max_slots})")
    photo_filters = snapshot_filters(filters, count)
    layout = resolve_layout(mapping, count, settings)

    image = render_still(
        (still_payload(c) for c in captured), layout, photo_filters, overlay,
    )
    return still_result(image)


def fallback_grid(
    captured: Sequence,
    filters: Sequence | None = None,
    overlay=None,
    settings: ExportSettings | None = None,
) -> CompositionResult:
    """Compose onto the fallback grid (no design mapping)."""
    return compose_still(captured, None, filters, overlay=overlay, settings=settings)

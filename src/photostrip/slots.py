"""Clipped slot rendering — one photo into one window.

Each slot render is an atomic save → clip → filter → draw → restore
transaction on the shared surface, so slot i's clip and filter can
never leak into slot i+1.
"""

from PIL import Image

from .common import load_image
from .filters import PhotoFilter
from .fit import cover_fit
from .models import Window
from .surface import DrawingSurface


def render_slot(
    surface: DrawingSurface,
    image,
    window: Window,
    photo_filter: PhotoFilter | None = None,
) -> None:
    """Draw `image` cover-fitted into `window`, clipped to its shape.

    Args:
        surface: Shared drawing surface for the output canvas.
        image: A decoded PIL image, or any still payload accepted by
            `load_image` (decoded before any state is touched).
        window: Target window; a positive border_radius rounds its corners.
        photo_filter: Filter for this photo only (None = no filter).

    Raises:
        ImageLoadFailure: The payload cannot be decoded.
    """
    if not isinstance(image, Image.Image):
        image = load_image(image)

    crop = cover_fit(image.width, image.height, window.width, window.height)
    with surface.scope():
        surface.clip_rounded_rect(window.box, window.border_radius)
        surface.set_filter(photo_filter)
        surface.draw_image(image, crop, window.box)


def render_stretched(
    surface: DrawingSurface,
    image: Image.Image,
    box: tuple[int, int, int, int],
    photo_filter: PhotoFilter | None = None,
) -> None:
    """Draw the whole image stretched into `box`, unclipped (grid cells)."""
    with surface.scope():
        surface.set_filter(photo_filter)
        surface.draw_image(image, (0, 0, image.width, image.height), box)


def draw_overlay(surface: DrawingSurface, overlay: Image.Image) -> None:
    """Draw the design overlay over the full canvas, on top of everything.

    Must be called at the surface's base state: no clip, no filter.
    """
    if surface.depth or surface.is_clipped or not surface.current_filter.is_identity:
        raise RuntimeError("Overlay must be drawn with no clip or filter active")
    surface.draw_stretched(overlay)

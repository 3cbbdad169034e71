"""Drawing surface with scoped clip and filter state.

A DrawingSurface is one output canvas plus the mutable drawing state
that slot rendering needs: a clip mask and a current photo filter. The
state is global to the canvas, so every change must be bracketed by
save()/restore(). Use `scope()`, which restores on every exit path:

    with surface.scope():
        surface.clip_rounded_rect(box, radius)
        surface.set_filter(photo_filter)
        surface.draw_image(img, src_box, dest_box)
    # clip and filter are back to what they were before the scope
"""

from contextlib import contextmanager

from PIL import Image, ImageChops, ImageDraw

from .filters import NO_FILTER, PhotoFilter


class DrawingSurface:
    """An RGBA canvas with a save/restore stack of clip + filter state."""

    def __init__(
        self,
        size: tuple[int, int],
        background: tuple[int, int, int, int] = (0, 0, 0, 0),
    ):
        width, height = size
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        self.image = Image.new("RGBA", (width, height), background)
        self._clip: Image.Image | None = None  # L mask, None = unclipped
        self._filter: PhotoFilter = NO_FILTER
        self._stack: list[tuple[Image.Image | None, PhotoFilter]] = []

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    @property
    def depth(self) -> int:
        """Number of saved states not yet restored."""
        return len(self._stack)

    @property
    def is_clipped(self) -> bool:
        return self._clip is not None

    @property
    def current_filter(self) -> PhotoFilter:
        return self._filter

    # ── State stack ──────────────────────────────────────────────

    def save(self) -> None:
        self._stack.append((self._clip, self._filter))

    def restore(self) -> None:
        if not self._stack:
            raise RuntimeError("restore() called without a matching save()")
        self._clip, self._filter = self._stack.pop()

    @contextmanager
    def scope(self):
        """Save state on entry, restore it on exit (including on error)."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    # ── Clipping ─────────────────────────────────────────────────

    def _intersect(self, mask: Image.Image) -> None:
        # Masks are immutable once stored; intersecting makes a new one
        # so saved states stay valid.
        if self._clip is None:
            self._clip = mask
        else:
            self._clip = ImageChops.multiply(self._clip, mask)

    def clip_rect(self, box: tuple[int, int, int, int]) -> None:
        """Intersect the clip with a rectangle (left, top, width, height)."""
        left, top, width, height = box
        mask = Image.new("L", self.size, 0)
        ImageDraw.Draw(mask).rectangle(
            [(left, top), (left + width - 1, top + height - 1)], fill=255,
        )
        self._intersect(mask)

    def clip_rounded_rect(self, box: tuple[int, int, int, int], radius: int) -> None:
        """Intersect the clip with a rounded rectangle.

        Corners are quarter circles of `radius` joined by straight edges.
        A radius of 0 is a plain rectangle.
        """
        if radius <= 0:
            self.clip_rect(box)
            return
        left, top, width, height = box
        mask = Image.new("L", self.size, 0)
        ImageDraw.Draw(mask).rounded_rectangle(
            [(left, top), (left + width - 1, top + height - 1)],
            radius=radius,
            fill=255,
        )
        self._intersect(mask)

    # ── Filtering ────────────────────────────────────────────────

    def set_filter(self, photo_filter: PhotoFilter | None) -> None:
        """Set the filter applied to subsequent draw_image calls."""
        self._filter = photo_filter or NO_FILTER

    # ── Drawing ──────────────────────────────────────────────────

    def draw_image(
        self,
        image: Image.Image,
        src_box: tuple[float, float, float, float],
        dest_box: tuple[int, int, int, int],
    ) -> None:
        """Draw a source region scaled to a destination rectangle.

        The current filter is applied to the scaled pixels and the result
        is composited through the current clip mask.

        Args:
            image: Source image (any mode; converted to RGBA).
            src_box: (x, y, w, h) region of `image`, may be fractional.
            dest_box: (left, top, width, height) on this surface.
        """
        sx, sy, sw, sh = src_box
        left, top, width, height = (int(round(v)) for v in dest_box)
        if width <= 0 or height <= 0:
            raise ValueError(f"Destination must be non-empty, got {width}x{height}")
        if image.mode != "RGBA":
            image = image.convert("RGBA")

        patch = image.resize(
            (width, height),
            Image.Resampling.LANCZOS,
            box=(sx, sy, sx + sw, sy + sh),
        )
        patch = self._filter.apply(patch)

        # Keep only the part of the patch that lands on the canvas.
        canvas_w, canvas_h = self.size
        x0, y0 = max(left, 0), max(top, 0)
        x1, y1 = min(left + width, canvas_w), min(top + height, canvas_h)
        if x0 >= x1 or y0 >= y1:
            return
        patch = patch.crop((x0 - left, y0 - top, x1 - left, y1 - top))

        if self._clip is not None:
            region = self._clip.crop((x0, y0, x1, y1))
            patch.putalpha(ImageChops.multiply(patch.getchannel("A"), region))

        self.image.alpha_composite(patch, dest=(x0, y0))

    def draw_stretched(self, image: Image.Image) -> None:
        """Draw a whole image stretched over the full surface."""
        width, height = self.size
        self.draw_image(image, (0, 0, image.width, image.height), (0, 0, width, height))

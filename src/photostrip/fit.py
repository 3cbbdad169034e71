"""Geometry for slot placement — cover-fit cropping and the fallback grid.

Cover-fit fills a target rectangle without distortion: the source is
cropped on its longer axis (relative to the target's aspect ratio) and
the crop is centered on that axis. The crop is then scaled to exactly
the target size, so there is never letterboxing.
"""


def cover_fit(
    image_w: float,
    image_h: float,
    target_w: float,
    target_h: float,
) -> tuple[float, float, float, float]:
    """Compute the source crop that cover-fits an image into a target.

    Args:
        image_w, image_h: Intrinsic source image size.
        target_w, target_h: Size of the rectangle to fill.

    Returns:
        (source_x, source_y, source_w, source_h) in source pixels. The
        crop has the target's aspect ratio and lies inside the image.

    Raises:
        ValueError: Any dimension is not positive.
    """
    if image_w <= 0 or image_h <= 0 or target_w <= 0 or target_h <= 0:
        raise ValueError(
            f"cover_fit needs positive sizes, got image {image_w}x{image_h}, "
            f"target {target_w}x{target_h}"
        )
    # Compare aspect ratios by cross-multiplying so equal ratios stay equal.
    if image_w * target_h > target_w * image_h:
        # Wider than the target: crop left/right.
        source_h = float(image_h)
        source_w = min(float(image_w), image_h * target_w / target_h)
        return (max(0.0, (image_w - source_w) / 2), 0.0, source_w, source_h)

    # Taller (or equal): crop top/bottom.
    source_w = float(image_w)
    source_h = min(float(image_h), image_w * target_h / target_w)
    return (0.0, max(0.0, (image_h - source_h) / 2), source_w, source_h)


# ── Fallback grid ──────────────────────────────────────────────────


def grid_columns(shot_count: int) -> int:
    """Two columns for the 6-shot layout, a single column otherwise."""
    return 2 if shot_count == 6 else 1


def grid_canvas_size(
    shot_count: int,
    cell_w: int,
    cell_h: int,
    gap: int,
    columns: int | None = None,
) -> tuple[int, int]:
    """Canvas (width, height) for a uniform grid of `shot_count` cells."""
    if shot_count <= 0:
        raise ValueError(f"Grid needs at least one cell, got {shot_count}")
    if columns is None:
        columns = grid_columns(shot_count)
    rows = -(-shot_count // columns)  # ceil
    width = columns * cell_w + (columns - 1) * gap
    height = rows * cell_h + (rows - 1) * gap
    return width, height


def grid_cell_origin(
    index: int,
    columns: int,
    cell_w: int,
    cell_h: int,
    gap: int,
) -> tuple[int, int]:
    """Top-left (x, y) of cell `index`, filled row by row."""
    col = index % columns
    row = index // columns
    return col * (cell_w + gap), row * (cell_h + gap)

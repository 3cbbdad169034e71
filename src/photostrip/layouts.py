"""Layout strategies — mapped design windows or the fallback grid.

The strategy is resolved once per export and then drives every slot:

  - MappedLayout: the design's frame mapping. Photos are cover-fitted
    and clipped to each window's (optionally rounded) shape.
  - GridLayout: no usable mapping. A uniform grid of fixed-size cells,
    two columns for 6 shots and one column otherwise. Photos are
    stretched into their cell with no clipping shape.
"""

from dataclasses import dataclass

from PIL import Image

from .filters import PhotoFilter
from .fit import grid_canvas_size, grid_cell_origin, grid_columns
from .models import FrameMapping
from .settings import ExportSettings
from .slots import render_slot, render_stretched
from .surface import DrawingSurface


@dataclass(frozen=True)
class MappedLayout:
    mapping: FrameMapping

    @property
    def size(self) -> tuple[int, int]:
        return self.mapping.size

    @property
    def slot_count(self) -> int:
        return self.mapping.slot_count

    def draw_slot(
        self,
        surface: DrawingSurface,
        index: int,
        image: Image.Image,
        photo_filter: PhotoFilter | None = None,
    ) -> None:
        render_slot(surface, image, self.mapping.windows[index], photo_filter)


@dataclass(frozen=True)
class GridLayout:
    columns: int
    slot_count: int
    cell_width: int
    cell_height: int
    gap: int

    @property
    def size(self) -> tuple[int, int]:
        return grid_canvas_size(
            self.slot_count, self.cell_width, self.cell_height, self.gap,
            columns=self.columns,
        )

    def cell_box(self, index: int) -> tuple[int, int, int, int]:
        x, y = grid_cell_origin(
            index, self.columns, self.cell_width, self.cell_height, self.gap,
        )
        return (x, y, self.cell_width, self.cell_height)

    def draw_slot(
        self,
        surface: DrawingSurface,
        index: int,
        image: Image.Image,
        photo_filter: PhotoFilter | None = None,
    ) -> None:
        render_stretched(surface, image, self.cell_box(index), photo_filter)


def grid_layout(shot_count: int, settings: ExportSettings | None = None) -> GridLayout:
    """The fallback grid for `shot_count` photos."""
    settings = settings or ExportSettings()
    return GridLayout(
        columns=grid_columns(shot_count),
        slot_count=shot_count,
        cell_width=settings.cell_width,
        cell_height=settings.cell_height,
        gap=settings.gap,
    )


def resolve_layout(
    mapping: FrameMapping | None,
    shot_count: int,
    settings: ExportSettings | None = None,
) -> MappedLayout | GridLayout:
    """Pick the layout strategy for one export.

    A mapping is used only when its window count equals the number of
    captured images; otherwise the fallback grid takes over.
    """
    if shot_count <= 0:
        raise ValueError("Nothing to compose: no captured images")
    if mapping is not None and mapping.slot_count == shot_count:
        return MappedLayout(mapping)
    return grid_layout(shot_count, settings)

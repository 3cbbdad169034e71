"""Tests for the drawing surface's scoped clip/filter state."""

import pytest
from PIL import Image

from photostrip.filters import NO_FILTER, parse_filter
from photostrip.surface import DrawingSurface


RED = (255, 0, 0, 255)
CLEAR = (0, 0, 0, 0)


def _red(size=(10, 10)):
    return Image.new("RGBA", size, RED)


class TestStateStack:
    def test_scope_restores_clip_and_filter(self):
        s = DrawingSurface((50, 50))
        with s.scope():
            s.clip_rect((0, 0, 10, 10))
            s.set_filter(parse_filter("grayscale"))
            assert s.is_clipped
            assert s.depth == 1
        assert not s.is_clipped
        assert s.current_filter is NO_FILTER
        assert s.depth == 0

    def test_scope_restores_on_error(self):
        s = DrawingSurface((50, 50))
        with pytest.raises(RuntimeError, match="boom"):
            with s.scope():
                s.clip_rect((0, 0, 10, 10))
                raise RuntimeError("boom")
        assert not s.is_clipped
        assert s.depth == 0

    def test_restore_without_save_raises(self):
        with pytest.raises(RuntimeError, match="without a matching save"):
            DrawingSurface((5, 5)).restore()

    def test_nested_scopes(self):
        s = DrawingSurface((50, 50))
        with s.scope():
            s.clip_rect((0, 0, 30, 30))
            with s.scope():
                s.clip_rect((20, 20, 30, 30))
                assert s.depth == 2
            assert s.depth == 1
            assert s.is_clipped

    def test_non_positive_size_raises(self):
        with pytest.raises(ValueError):
            DrawingSurface((0, 10))


class TestDrawing:
    def test_unclipped_draw_fills_destination(self):
        s = DrawingSurface((40, 40))
        s.draw_image(_red(), (0, 0, 10, 10), (5, 5, 20, 20))
        assert s.image.getpixel((5, 5)) == RED
        assert s.image.getpixel((24, 24)) == RED
        assert s.image.getpixel((25, 25)) == CLEAR
        assert s.image.getpixel((4, 4)) == CLEAR

    def test_rect_clip_limits_drawing(self):
        s = DrawingSurface((40, 40))
        with s.scope():
            s.clip_rect((10, 10, 10, 10))
            s.draw_image(_red(), (0, 0, 10, 10), (0, 0, 40, 40))
        assert s.image.getpixel((15, 15)) == RED
        assert s.image.getpixel((5, 5)) == CLEAR
        assert s.image.getpixel((25, 15)) == CLEAR

    def test_clips_intersect(self):
        s = DrawingSurface((40, 40))
        with s.scope():
            s.clip_rect((0, 0, 20, 20))
            s.clip_rect((10, 10, 20, 20))
            s.draw_image(_red(), (0, 0, 10, 10), (0, 0, 40, 40))
        assert s.image.getpixel((15, 15)) == RED
        assert s.image.getpixel((5, 5)) == CLEAR
        assert s.image.getpixel((25, 25)) == CLEAR

    def test_rounded_clip_leaves_corners_clear(self):
        s = DrawingSurface((100, 100))
        with s.scope():
            s.clip_rounded_rect((10, 10, 80, 80), 16)
            s.draw_image(_red(), (0, 0, 10, 10), (10, 10, 80, 80))
        assert s.image.getpixel((10, 10)) == CLEAR
        assert s.image.getpixel((89, 89)) == CLEAR
        assert s.image.getpixel((50, 50)) == RED
        # Straight edges away from the corners are inside.
        assert s.image.getpixel((50, 10)) == RED

    def test_filter_applies_to_draws(self):
        s = DrawingSurface((10, 10))
        with s.scope():
            s.set_filter(parse_filter("grayscale"))
            s.draw_image(_red(), (0, 0, 10, 10), (0, 0, 10, 10))
        r, g, b, _ = s.image.getpixel((5, 5))
        assert r == g == b

    def test_destination_partly_off_canvas(self):
        s = DrawingSurface((20, 20))
        s.draw_image(_red(), (0, 0, 10, 10), (-5, -5, 10, 10))
        assert s.image.getpixel((0, 0)) == RED
        assert s.image.getpixel((5, 5)) == CLEAR

    def test_draw_stretched_covers_surface(self):
        s = DrawingSurface((30, 20))
        s.draw_stretched(_red((3, 3)))
        assert s.image.getpixel((0, 0)) == RED
        assert s.image.getpixel((29, 19)) == RED

"""Tests for the clipped slot renderer."""

import pytest
from PIL import Image

from photostrip.errors import ImageLoadFailure
from photostrip.filters import parse_filter
from photostrip.models import Window
from photostrip.slots import draw_overlay, render_slot
from photostrip.surface import DrawingSurface


CLEAR = (0, 0, 0, 0)


def _stripes():
    """400x100: red [0,100), green [100,300), blue [300,400)."""
    img = Image.new("RGBA", (400, 100), (0, 255, 0, 255))
    img.paste((255, 0, 0, 255), (0, 0, 100, 100))
    img.paste((0, 0, 255, 255), (300, 0, 400, 100))
    return img


class TestRenderSlot:
    def test_cover_fit_crops_wide_source(self):
        """A square window over a 4:1 source shows only the centre stripe."""
        s = DrawingSurface((200, 200))
        render_slot(s, _stripes(), Window(50, 50, 100, 100))
        assert s.image.getpixel((51, 100)) == (0, 255, 0, 255)
        assert s.image.getpixel((148, 100)) == (0, 255, 0, 255)
        assert s.image.getpixel((49, 100)) == CLEAR

    def test_window_with_image_aspect(self):
        """Source and window share an aspect ratio: the whole image is drawn."""
        s = DrawingSurface((481, 100))
        render_slot(s, Image.new("RGB", (481, 100), (7, 8, 9)), Window(0, 0, 481, 100))
        assert s.image.getpixel((0, 0)) == (7, 8, 9, 255)
        assert s.image.getpixel((480, 99)) == (7, 8, 9, 255)

    def test_rounded_window_corners_clear(self):
        s = DrawingSurface((200, 200))
        render_slot(s, Image.new("RGBA", (10, 10), (9, 9, 9, 255)), Window(20, 20, 100, 60, 8))
        assert s.image.getpixel((20, 20)) == CLEAR
        assert s.image.getpixel((119, 79)) == CLEAR
        assert s.image.getpixel((70, 50)) == (9, 9, 9, 255)

    def test_slot_isolation(self):
        """Slot 0's clip and filter must not affect slot 1."""
        s = DrawingSurface((300, 100))
        red = Image.new("RGBA", (10, 10), (255, 0, 0, 255))
        blue = Image.new("RGBA", (10, 10), (0, 0, 255, 255))

        render_slot(s, red, Window(0, 0, 100, 100, 20), parse_filter("grayscale"))
        assert s.depth == 0
        assert not s.is_clipped
        render_slot(s, blue, Window(150, 0, 100, 100))

        # Slot 1 drawn unfiltered and unclipped by slot 0's rounded window.
        assert s.image.getpixel((200, 50)) == (0, 0, 255, 255)
        assert s.image.getpixel((150, 0)) == (0, 0, 255, 255)
        # Slot 0 was filtered.
        r, g, b, _ = s.image.getpixel((50, 50))
        assert r == g == b
        # Outside both windows untouched.
        assert s.image.getpixel((125, 50)) == CLEAR
        assert s.image.getpixel((275, 50)) == CLEAR

    def test_payload_is_decoded(self, make_png):
        s = DrawingSurface((50, 50))
        render_slot(s, make_png((1, 2, 3)), Window(0, 0, 50, 50))
        assert s.image.getpixel((25, 25)) == (1, 2, 3, 255)

    def test_undecodable_payload_leaves_state_balanced(self):
        s = DrawingSurface((50, 50))
        with pytest.raises(ImageLoadFailure):
            render_slot(s, b"garbage", Window(0, 0, 50, 50, 5))
        assert s.depth == 0
        assert not s.is_clipped


class TestDrawOverlay:
    def test_overlay_over_everything(self):
        s = DrawingSurface((100, 100))
        render_slot(s, Image.new("RGBA", (10, 10), (255, 0, 0, 255)), Window(0, 0, 100, 100))
        overlay = Image.new("RGBA", (50, 50), (0, 0, 0, 0))
        overlay.paste((0, 255, 0, 255), (0, 0, 25, 50))  # left half opaque
        draw_overlay(s, overlay)
        assert s.image.getpixel((10, 50)) == (0, 255, 0, 255)
        assert s.image.getpixel((90, 50)) == (255, 0, 0, 255)

    def test_overlay_refused_inside_a_scope(self):
        s = DrawingSurface((10, 10))
        with s.scope():
            s.clip_rect((0, 0, 5, 5))
            with pytest.raises(RuntimeError, match="no clip or filter"):
                draw_overlay(s, Image.new("RGBA", (10, 10)))

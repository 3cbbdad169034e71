"""Tests for cover-fit cropping and fallback grid geometry."""

import itertools

import pytest

from photostrip.fit import cover_fit, grid_canvas_size, grid_cell_origin, grid_columns


SIZES = [1, 3, 7, 100, 160, 180, 320, 481, 1920]


class TestCoverFit:
    def test_wider_source_crops_left_right(self):
        sx, sy, sw, sh = cover_fit(400, 100, 100, 100)
        assert (sx, sy, sw, sh) == (150.0, 0.0, 100.0, 100.0)

    def test_taller_source_crops_top_bottom(self):
        sx, sy, sw, sh = cover_fit(100, 400, 100, 100)
        assert (sx, sy, sw, sh) == (0.0, 150.0, 100.0, 100.0)

    def test_same_aspect_keeps_everything(self):
        assert cover_fit(640, 480, 320, 240) == (0.0, 0.0, 640.0, 480.0)

    @pytest.mark.parametrize("iw, ih", [(481, 7), (481, 100), (1920, 7), (3, 7)])
    def test_equal_aspect_is_whole_image(self, iw, ih):
        assert cover_fit(iw, ih, iw, ih) == (0.0, 0.0, float(iw), float(ih))
        assert cover_fit(iw, ih, iw * 3, ih * 3) == (0.0, 0.0, float(iw), float(ih))

    def test_aspect_matches_target(self):
        for iw, ih, tw, th in itertools.product(SIZES, repeat=4):
            _, _, sw, sh = cover_fit(iw, ih, tw, th)
            assert sw / sh == pytest.approx(tw / th, rel=1e-9)

    def test_crop_inside_image(self):
        for iw, ih, tw, th in itertools.product(SIZES, repeat=4):
            sx, sy, sw, sh = cover_fit(iw, ih, tw, th)
            assert sx >= 0 and sy >= 0
            assert sx + sw <= iw + 1e-9
            assert sy + sh <= ih + 1e-9

    def test_margins_centered(self):
        for iw, ih, tw, th in itertools.product(SIZES, repeat=4):
            sx, sy, sw, sh = cover_fit(iw, ih, tw, th)
            assert abs(sx - (iw - sx - sw)) <= 1
            assert abs(sy - (ih - sy - sh)) <= 1

    def test_one_axis_is_never_cropped(self):
        for iw, ih, tw, th in itertools.product(SIZES, repeat=4):
            sx, sy, sw, sh = cover_fit(iw, ih, tw, th)
            assert sw == pytest.approx(iw) or sh == pytest.approx(ih)

    @pytest.mark.parametrize("dims", [(0, 10, 10, 10), (10, 10, 0, 10), (10, 10, 10, 0), (-5, 10, 10, 10)])
    def test_degenerate_dimensions_raise(self, dims):
        with pytest.raises(ValueError, match="positive"):
            cover_fit(*dims)


class TestGrid:
    def test_six_shots_use_two_columns(self):
        assert grid_columns(6) == 2

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 7, 8])
    def test_other_counts_use_one_column(self, n):
        assert grid_columns(n) == 1

    def test_canvas_six_shots(self):
        # 2 columns x 3 rows of 180x160 with 16px gaps.
        assert grid_canvas_size(6, 180, 160, 16) == (2 * 180 + 16, 3 * 160 + 2 * 16)

    def test_canvas_single_shot_is_cell(self):
        assert grid_canvas_size(1, 180, 160, 16) == (180, 160)

    def test_canvas_four_shots_single_column(self):
        assert grid_canvas_size(4, 180, 160, 16) == (180, 4 * 160 + 3 * 16)

    def test_explicit_columns_round_rows_up(self):
        assert grid_canvas_size(5, 10, 10, 2, columns=2) == (22, 34)

    def test_zero_cells_raise(self):
        with pytest.raises(ValueError):
            grid_canvas_size(0, 180, 160, 16)

    def test_cell_origins_fill_rows(self):
        assert grid_cell_origin(0, 2, 180, 160, 16) == (0, 0)
        assert grid_cell_origin(1, 2, 180, 160, 16) == (196, 0)
        assert grid_cell_origin(2, 2, 180, 160, 16) == (0, 176)
        assert grid_cell_origin(3, 1, 180, 160, 16) == (0, 528)

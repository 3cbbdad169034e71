"""Shared test fixtures for photostrip tests."""

import io
import subprocess

import imageio_ffmpeg
import pytest
import yaml
from PIL import Image, ImageDraw

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_png():
    """Factory: solid-colour PNG bytes."""
    def _make(color=(255, 0, 0), size=(64, 48)):
        mode = "RGBA" if len(color) == 4 else "RGB"
        return encode_png(Image.new(mode, size, color))
    return _make


@pytest.fixture
def make_gif():
    """Factory: animated GIF bytes, one solid colour per frame.

    Colours must differ frame to frame, otherwise the GIF writer merges
    identical consecutive frames.
    """
    def _make(colors, size=(32, 24), duration=100):
        frames = [Image.new("RGB", size, c) for c in colors]
        buf = io.BytesIO()
        frames[0].save(
            buf, format="GIF", save_all=True, append_images=frames[1:],
            duration=duration, loop=0,
        )
        return buf.getvalue()
    return _make


def distinct_colors(n: int) -> list[tuple[int, int, int]]:
    """n clearly different colours (frame i gets a different red level)."""
    return [(min(255, 20 + 23 * i), 80, 160) for i in range(n)]


@pytest.fixture
def overlay_path(tmp_path):
    """600x600 overlay: transparent except an opaque magenta band at rows 280-320."""
    img = Image.new("RGBA", (600, 600), (0, 0, 0, 0))
    ImageDraw.Draw(img).rectangle([(0, 280), (599, 319)], fill=(255, 0, 255, 255))
    path = tmp_path / "designs" / "band.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path)
    return path


def write_registry(tmp_path, content: dict, name: str = "registry.yaml"):
    """Write a registry dict to YAML in tmp_path, return its path."""
    path = tmp_path / name
    with open(path, "w") as f:
        yaml.dump(content, f)
    return path


def four_rounded_windows(radius=8):
    return [
        {"left": 20, "top": 20 + i * 140, "width": 260, "height": 120, "border_radius": radius}
        for i in range(4)
    ]


@pytest.fixture
def registry_content():
    """A small registry: a 4-slot rounded design with no overlay, a 2-slot
    design with the band overlay, and a 6-slot design."""
    return {
        "paths": {"designs": "designs"},
        "designs": [
            {
                "key": "four-rounded",
                "shots": 4,
                "frame_width": 300,
                "frame_height": 600,
                "windows": four_rounded_windows(),
            },
            {
                "key": "two-band",
                "shots": 2,
                "overlay": "${designs}/band.png",
                "frame_width": 600,
                "frame_height": 600,
                "windows": [
                    {"left": 0, "top": 0, "width": 600, "height": 300},
                    {"left": 0, "top": 300, "width": 600, "height": 300, "border_radius": 20},
                ],
            },
            {
                "key": "six-grid",
                "shots": 6,
                "frame_width": 400,
                "frame_height": 600,
                "windows": [
                    {"left": 200 * (i % 2), "top": 200 * (i // 2), "width": 200, "height": 200}
                    for i in range(6)
                ],
            },
        ],
    }


@pytest.fixture
def registry_file(tmp_path, registry_content, overlay_path):
    return write_registry(tmp_path, registry_content)


@pytest.fixture
def source_clip(tmp_path):
    """A 1-second looping clip as MP4 (64x48, 10fps, solid blue, no audio)."""
    out = tmp_path / "clip.mp4"
    subprocess.run(
        [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", "color=c=blue:s=64x48:d=1:r=10",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            str(out),
        ],
        check=True,
        capture_output=True,
    )
    return out

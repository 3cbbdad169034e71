#!/usr/bin/env python3
"""Generate synthetic overlays, photos, and clips for trying photostrip.

Creates, under examples/:
  designs/      one overlay PNG per design in the packaged registry
                (opaque frame colour with transparent holes over the windows)
  demo-photos/  6 solid-colour "captures" with a centre marker
  demo-clips/   6 short looping MP4 clips of different lengths; each ends
                on a white "END" frame, so the shortest clip visibly
                decides the animation length

Usage:
    python examples/generate_demo_assets.py
    # Then compose:
    photostrip compose --designs-dir examples/designs --design 4shot-design1 \
        --output strip.png examples/demo-photos/photo-0{1,2,3,4}.png
    photostrip compose --designs-dir examples/designs --design 3shot-design1 \
        --animated --clip examples/demo-clips/clip-01.mp4 \
        --clip examples/demo-clips/clip-02.mp4 --clip examples/demo-clips/clip-03.mp4 \
        --output strip.gif examples/demo-photos/photo-0{1,2,3}.png
"""

import numpy as np
from moviepy import ColorClip, CompositeVideoClip, ImageClip
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont

from photostrip.registry import load_registry

ROOT = Path(__file__).resolve().parent
DESIGNS_DIR = ROOT / "designs"
PHOTOS_DIR = ROOT / "demo-photos"
CLIPS_DIR = ROOT / "demo-clips"
PHOTO_SIZE = (480, 360)
CLIP_SIZE = (320, 240)
FPS = 10

# Frame colours cycle through the catalogue so neighbouring designs differ.
FRAME_COLORS = [
    (245, 214, 222),  # blush
    (214, 230, 245),  # sky
    (222, 245, 214),  # mint
    (245, 236, 205),  # cream
    (60, 60, 70),     # charcoal
]

# Slot colours and clip durations (1.0s to 2.5s).
CAPTURES = [
    ("01", (180, 60, 60),   2.0),  # red
    ("02", (60, 60, 180),   1.5),  # blue
    ("03", (60, 160, 60),   2.5),  # green
    ("04", (200, 130, 40),  1.0),  # orange
    ("05", (130, 60, 180),  2.0),  # purple
    ("06", (40, 170, 170),  1.5),  # cyan
]


def _font(size: int):
    try:
        return ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", size
        )
    except OSError:
        return ImageFont.load_default()


def _centered_text(img: Image.Image, text: str, fill, size: int) -> None:
    draw = ImageDraw.Draw(img)
    font = _font(size)
    bbox = draw.textbbox((0, 0), text, font=font)
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(((img.width - tw) / 2, (img.height - th) / 2), text, fill=fill, font=font)


def make_overlay(mapping, color: tuple[int, int, int]) -> Image.Image:
    """Full-canvas frame with a transparent hole cut out for every window."""
    img = Image.new("RGBA", mapping.size, (*color, 255))
    draw = ImageDraw.Draw(img)
    for w in mapping.windows:
        draw.rounded_rectangle(
            [(w.left, w.top), (w.right - 1, w.bottom - 1)],
            radius=w.border_radius,
            fill=(0, 0, 0, 0),
        )
    footer = Image.new("RGBA", (mapping.frame_width, 80), (0, 0, 0, 0))
    ink = (255, 255, 255) if sum(color) < 300 else (90, 90, 100)
    _centered_text(footer, mapping.key, ink, 28)
    img.alpha_composite(footer, dest=(0, mapping.frame_height - 100))
    return img


def _make_end_frame(color: tuple[int, int, int]) -> np.ndarray:
    """An 'END' frame: white text on a dimmed version of the clip colour."""
    dim = tuple(max(c // 3, 20) for c in color)
    img = Image.new("RGB", CLIP_SIZE, dim)
    _centered_text(img, "END", (255, 255, 255), 48)
    return np.array(img)


def main():
    registry = load_registry(paths={"designs": str(DESIGNS_DIR)})

    DESIGNS_DIR.mkdir(parents=True, exist_ok=True)
    for i, key in enumerate(registry.keys()):
        out = registry.design(key).overlay
        if out.exists():
            print(f"  skip {key} (exists)")
            continue
        make_overlay(registry.lookup(key), FRAME_COLORS[i % len(FRAME_COLORS)]).save(out)
        print(f"  wrote overlay {out.name}")

    PHOTOS_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, _ in CAPTURES:
        out = PHOTOS_DIR / f"photo-{name}.png"
        img = Image.new("RGB", PHOTO_SIZE, color)
        _centered_text(img, name, (255, 255, 255), 96)
        img.save(out)
        print(f"  wrote {out.name}")

    CLIPS_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, duration in CAPTURES:
        out = CLIPS_DIR / f"clip-{name}.mp4"
        if out.exists():
            print(f"  skip clip-{name} (exists)")
            continue

        # Colour body, then the END frame for the last 0.5s.
        body_dur = max(duration - 0.5, 0.5)
        body = ColorClip(size=CLIP_SIZE, color=color, duration=body_dur)
        end_clip = ImageClip(_make_end_frame(color), duration=0.5).with_start(body_dur)

        final = CompositeVideoClip([body, end_clip], size=CLIP_SIZE)
        final.write_videofile(str(out), fps=FPS, logger=None)
        print(f"  wrote clip-{name} ({duration}s)")

    print(
        f"\nDone. {len(registry)} overlays in {DESIGNS_DIR}, "
        f"{len(CAPTURES)} photos and clips in {PHOTOS_DIR.parent}"
    )


if __name__ == "__main__":
    main()

"""Animated composition pipeline — looping GIF/MP4 strips.

Each slot carries a short looping clip. Clips are decoded independently
into frame sequences, then for every shared frame index the slots are
composited into a fresh canvas with the same clip/cover-fit rules as the
still strip (no per-photo filters here), the overlay is drawn on top,
and the frame sequence is re-encoded as one looping animation.

The animation is only as long as its shortest clip: all slots advance
in lock-step, so the output has min(len(frames) per slot) frames.

Decoding:
  - GIF / APNG / animated WebP via Pillow's ImageSequence (frames come
    out fully composited, with their per-frame duration).
  - Anything Pillow cannot identify (MP4, WebM...) via moviepy.

Progress is reported through a proglog logger, the same mechanism
moviepy uses: pass "bar" for a tqdm bar, None for silence, or any
proglog.ProgressBarLogger to receive `frame` bar updates.
"""

import io
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import proglog
from moviepy import ImageSequenceClip, VideoFileClip
from PIL import Image, ImageSequence, UnidentifiedImageError

from .common import describe_payload, read_payload
from .errors import (
    EncodingFailure,
    ImageLoadFailure,
    NoAnimatableInput,
    OverlayNotReady,
)
from .models import CapturedImage, CompositionResult, FrameMapping
from .settings import ExportSettings, VALID_ANIMATION_FORMATS
from .slots import draw_overlay, render_slot
from .surface import DrawingSurface


@dataclass(frozen=True)
class DecodedFrame:
    """One decoded clip frame: a pixel patch and where it sits.

    `canvas_size` is the clip's logical screen size. When the patch does
    not cover it (offset or smaller patch) it is placed on a transparent
    canvas of that size before drawing.
    """

    image: Image.Image
    left: int = 0
    top: int = 0
    canvas_size: tuple[int, int] | None = None
    duration_ms: int | None = None

    def materialize(self) -> Image.Image:
        """A drawable RGBA image of the full logical frame."""
        size = self.canvas_size or self.image.size
        if (self.left, self.top) == (0, 0) and self.image.size == size:
            return self.image
        full = Image.new("RGBA", size, (0, 0, 0, 0))
        full.paste(self.image, (self.left, self.top))
        return full


# ── Decoding ──────────────────────────────────────────────────────


def clip_payload(item):
    """The clip payload of a CapturedImage (raw payloads pass through)."""
    return item.clip if isinstance(item, CapturedImage) else item


def decode_clip(payload, max_frames: int = 300) -> list[DecodedFrame]:
    """Decode a looping-clip payload into an ordered frame list.

    Args:
        payload: Clip bytes, path, data URL, or an open multi-frame PIL image.
        max_frames: Decode at most this many frames.

    Returns:
        Up to `max_frames` DecodedFrame objects, in playback order.

    Raises:
        ImageLoadFailure: The payload cannot be read or decoded.
    """
    if isinstance(payload, Image.Image):
        return _decode_with_pillow(payload, max_frames)

    source = read_payload(payload)
    try:
        img = Image.open(io.BytesIO(source) if isinstance(source, bytes) else source)
    except UnidentifiedImageError:
        return _decode_with_moviepy(source, max_frames, payload)
    except (OSError, ValueError) as e:
        raise ImageLoadFailure(f"Cannot decode clip {describe_payload(payload)}: {e}") from e

    try:
        return _decode_with_pillow(img, max_frames)
    except (OSError, ValueError, EOFError) as e:
        raise ImageLoadFailure(f"Cannot decode clip {describe_payload(payload)}: {e}") from e


def _decode_with_pillow(img: Image.Image, max_frames: int) -> list[DecodedFrame]:
    frames = []
    for frame in ImageSequence.Iterator(img):
        if len(frames) >= max_frames:
            break
        frames.append(DecodedFrame(
            image=frame.convert("RGBA"),
            canvas_size=img.size,
            duration_ms=frame.info.get("duration"),
        ))
    return frames


def _decode_with_moviepy(source: bytes | Path, max_frames: int, payload) -> list[DecodedFrame]:
    with tempfile.TemporaryDirectory() as tmp:
        if isinstance(source, bytes):
            path = Path(tmp) / "clip.mp4"
            path.write_bytes(source)
        else:
            path = source

        try:
            clip = VideoFileClip(str(path), audio=False)
        except (OSError, ValueError, KeyError) as e:
            raise ImageLoadFailure(
                f"Cannot decode clip {describe_payload(payload)}: {e}"
            ) from e

        try:
            duration_ms = round(1000 / clip.fps) if clip.fps else None
            frames = []
            for arr in clip.iter_frames():
                if len(frames) >= max_frames:
                    break
                frames.append(DecodedFrame(
                    image=Image.fromarray(arr).convert("RGBA"),
                    duration_ms=duration_ms,
                ))
            return frames
        except (OSError, ValueError) as e:
            raise ImageLoadFailure(
                f"Cannot decode clip {describe_payload(payload)}: {e}"
            ) from e
        finally:
            clip.close()


# ── Frame compositing ─────────────────────────────────────────────


def render_animation_frames(
    decoded: Sequence[Sequence[DecodedFrame]],
    mapping: FrameMapping,
    overlay: Image.Image,
    cancel=None,
    logger=None,
) -> list[Image.Image]:
    """Composite every shared frame index into one canvas per frame.

    Args:
        decoded: Per-slot frame lists, in slot order.
        mapping: Frame mapping; one window per slot.
        overlay: Fully loaded overlay, drawn on every frame.
        cancel: Optional CancelToken, checked before each frame.
        logger: proglog logger, "bar", or None.

    Returns:
        The composed RGBA frames, min(len(frames) per slot) of them.

    Raises:
        NoAnimatableInput: Slot count mismatch or a slot has no frames.
        CompositionCancelled: The cancel token fired.
    """
    if len(decoded) != mapping.slot_count:
        raise NoAnimatableInput(
            f"Design {mapping.key} has {mapping.slot_count} windows, "
            f"got {len(decoded)} clip(s)"
        )
    frame_count = min(len(frames) for frames in decoded)
    if frame_count == 0:
        empty = [i for i, frames in enumerate(decoded) if not frames]
        raise NoAnimatableInput(f"Clip(s) for slot(s) {empty} decoded to zero frames")

    logger = proglog.default_bar_logger(logger)
    logger(message=f"photostrip - compositing {frame_count} frames x {len(decoded)} slots")

    output = []
    for f in logger.iter_bar(frame=range(frame_count)):
        if cancel is not None:
            cancel.raise_if_cancelled()
        surface = DrawingSurface(mapping.size)
        for i, frames in enumerate(decoded):
            render_slot(surface, frames[f].materialize(), mapping.windows[i])
        draw_overlay(surface, overlay)
        output.append(surface.image)
    return output


# ── Encoding ──────────────────────────────────────────────────────


def _flatten(frame: Image.Image, background: tuple[int, int, int]) -> Image.Image:
    """Composite an RGBA frame onto an opaque background colour."""
    base = Image.new("RGBA", frame.size, (*background, 255))
    base.alpha_composite(frame.convert("RGBA"))
    return base.convert("RGB")


def _even(arr: np.ndarray) -> np.ndarray:
    """Pad by one edge pixel where a dimension is odd (yuv420p needs even)."""
    h, w = arr.shape[:2]
    pad_h, pad_w = h % 2, w % 2
    if pad_h or pad_w:
        arr = np.pad(arr, ((0, pad_h), (0, pad_w), (0, 0)), mode="edge")
    return arr


def encode_animation(
    frames: Sequence[Image.Image],
    fmt: str = "gif",
    frame_duration_ms: int = 200,
    background: tuple[int, int, int] = (255, 255, 255),
) -> bytes:
    """Encode a frame sequence as one looping animation.

    Args:
        frames: Composed frames, all the same size.
        fmt: "gif" (loops forever) or "mp4" (H.264, yuv420p).
        frame_duration_ms: Fixed display time of every frame.
        background: Colour transparent areas are flattened onto.

    Returns:
        The encoded file contents.

    Raises:
        EncodingFailure: No frames, unknown format, or encoder error.
    """
    if not frames:
        raise EncodingFailure("No frames to encode")
    if fmt not in VALID_ANIMATION_FORMATS:
        raise EncodingFailure(
            f"Unknown animation format '{fmt}'. Valid: {sorted(VALID_ANIMATION_FORMATS)}"
        )

    flat = [_flatten(f, background) for f in frames]

    if fmt == "gif":
        buf = io.BytesIO()
        try:
            flat[0].save(
                buf,
                format="GIF",
                save_all=True,
                append_images=flat[1:],
                duration=frame_duration_ms,
                loop=0,
                disposal=1,
            )
        except (OSError, ValueError) as e:
            raise EncodingFailure(f"GIF encoding failed: {e}") from e
        return buf.getvalue()

    fps = 1000 / frame_duration_ms
    arrays = [_even(np.array(f)) for f in flat]
    with tempfile.TemporaryDirectory() as tmp:
        out_path = Path(tmp) / "strip.mp4"
        try:
            clip = ImageSequenceClip(arrays, fps=fps)
        except ValueError as e:
            raise EncodingFailure(f"MP4 encoding failed: {e}") from e

        try:
            clip.write_videofile(
                str(out_path),
                fps=fps,
                codec="libx264",
                audio=False,
                preset="medium",
                ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
                logger=None,
            )
        except (OSError, ValueError) as e:
            raise EncodingFailure(f"MP4 encoding failed: {e}") from e
        finally:
            clip.close()
        return out_path.read_bytes()


# ── Pipeline ──────────────────────────────────────────────────────


def check_animatable(captured: Sequence, mapping: FrameMapping | None, overlay) -> None:
    """Raise unless an animated export can start right now.

    Raises:
        OverlayNotReady: The overlay has not finished loading.
        NoAnimatableInput: No mapping, slot count mismatch, or missing clips.
    """
    if overlay is None:
        raise OverlayNotReady("Frame overlay is still loading; retry once it has loaded")
    if mapping is None:
        raise NoAnimatableInput("Animated export needs a design with a frame mapping")
    if len(captured) != mapping.slot_count:
        raise NoAnimatableInput(
            f"Design {mapping.key} has {mapping.slot_count} windows, "
            f"got {len(captured)} captured image(s)"
        )
    missing = [i for i, c in enumerate(captured) if clip_payload(c) is None]
    if missing:
        raise NoAnimatableInput(f"Slot(s) {missing} have no clip to animate")


def compose_animated(
    captured: Sequence,
    mapping: FrameMapping | None,
    overlay_image: Image.Image | None,
    settings: ExportSettings | None = None,
    cancel=None,
    logger=None,
    fmt: str | None = None,
) -> CompositionResult:
    """Compose per-slot looping clips into one looping animation.

    Preconditions are checked before any decoding or drawing.

    Args:
        captured: CapturedImage records (or bare clip payloads) in slot order.
        mapping: The design's frame mapping (required; no animated fallback).
        overlay_image: The already loaded overlay, or None if still loading.
        settings: Export settings (frame duration, format, bounds).
        cancel: Optional CancelToken checked between frames.
        logger: proglog logger, "bar", or None.
        fmt: Output format override ("gif" or "mp4").

    Returns:
        An "animated" CompositionResult.

    Raises:
        OverlayNotReady, NoAnimatableInput, ImageLoadFailure,
        EncodingFailure, CompositionCancelled.
    """
    settings = settings or ExportSettings()
    check_animatable(captured, mapping, overlay_image)

    decoded = [decode_clip(clip_payload(c), settings.max_frames) for c in captured]
    return composite_clips(decoded, mapping, overlay_image, settings, cancel, logger, fmt)


def composite_clips(
    decoded: Sequence[Sequence[DecodedFrame]],
    mapping: FrameMapping,
    overlay_image: Image.Image,
    settings: ExportSettings | None = None,
    cancel=None,
    logger=None,
    fmt: str | None = None,
) -> CompositionResult:
    """Composite already decoded clips and encode the animation."""
    settings = settings or ExportSettings()
    frames = render_animation_frames(
        decoded, mapping, overlay_image, cancel=cancel, logger=logger,
    )
    fmt = fmt or settings.animation_format
    data = encode_animation(
        frames, fmt, settings.frame_duration_ms, settings.background,
    )
    return CompositionResult(
        kind="animated", format=fmt, data=data,
        size=mapping.size, frame_count=len(frames),
    )

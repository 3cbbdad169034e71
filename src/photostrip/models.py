"""Records passed between the capture side and the compositor."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class CapturedImage:
    """One captured slot: a still payload and an optional looping clip.

    Payloads are raw encoded bytes, a file path, a data URL, or a decoded
    PIL image. `clip` is None when clip capture failed for the slot.
    """

    photo: object
    captured_at: datetime = field(default_factory=datetime.now)
    clip: object | None = None


@dataclass(frozen=True)
class Window:
    """Region of the output canvas reserved for one slot."""

    left: int
    top: int
    width: int
    height: int
    border_radius: int = 0

    @property
    def box(self) -> tuple[int, int, int, int]:
        return (self.left, self.top, self.width, self.height)

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height


@dataclass(frozen=True)
class FrameMapping:
    """Output canvas size and the ordered slot windows of one design."""

    key: str
    frame_width: int
    frame_height: int
    windows: tuple[Window, ...]

    @property
    def size(self) -> tuple[int, int]:
        return (self.frame_width, self.frame_height)

    @property
    def slot_count(self) -> int:
        return len(self.windows)


@dataclass(frozen=True)
class DesignOverlay:
    """A decorative template: its key, overlay image, and shot count."""

    key: str
    overlay: Path | None
    shots: int


MEDIA_TYPES = {"png": "image/png", "gif": "image/gif", "mp4": "video/mp4"}


@dataclass(frozen=True)
class CompositionResult:
    """An encoded export: a PNG still or a looping GIF/MP4 animation."""

    kind: str                 # "still" or "animated"
    format: str               # "png", "gif", or "mp4"
    data: bytes
    size: tuple[int, int]
    frame_count: int = 1

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES[self.format]

    def save(self, path: str | Path) -> Path:
        """Write the encoded bytes to `path`, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path

"""Export settings — fixed sizes, timings, and bounds for composition.

Defaults match the photobooth's historical output: 180x160 fallback
cells with a 16px gap, 200ms per animation frame, GIF output. The
registry's optional `export:` block overrides any of them:

  export:
    frame_duration_ms: 150
    animation_format: mp4
    background: "#FFF5F7"
    decode_timeout: 5
"""

from dataclasses import dataclass, fields, replace

from .common import parse_hex_color


VALID_ANIMATION_FORMATS = {"gif", "mp4"}


@dataclass(frozen=True)
class ExportSettings:
    cell_width: int = 180          # fallback grid cell
    cell_height: int = 160
    gap: int = 16                  # between fallback grid cells
    frame_duration_ms: int = 200   # per animation frame, fixed
    animation_format: str = "gif"
    background: tuple[int, int, int] = (255, 255, 255)  # flattening colour for GIF/MP4
    decode_timeout: float = 10.0   # seconds, per slot payload
    decode_workers: int = 4
    max_slots: int = 12
    max_frames: int = 300          # per decoded clip

    def __post_init__(self):
        for name in ("cell_width", "cell_height", "frame_duration_ms",
                     "decode_workers", "max_slots", "max_frames"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ValueError(f"export.{name} must be a positive integer, got {value!r}")
        if not isinstance(self.gap, int) or self.gap < 0:
            raise ValueError(f"export.gap must be an integer >= 0, got {self.gap!r}")
        if not isinstance(self.decode_timeout, (int, float)) or self.decode_timeout <= 0:
            raise ValueError(
                f"export.decode_timeout must be a positive number, got {self.decode_timeout!r}"
            )
        if self.animation_format not in VALID_ANIMATION_FORMATS:
            raise ValueError(
                f"export.animation_format: invalid value '{self.animation_format}'. "
                f"Valid: {sorted(VALID_ANIMATION_FORMATS)}"
            )

    @classmethod
    def from_dict(cls, raw: dict | None) -> "ExportSettings":
        """Build settings from a YAML `export:` block (None = defaults)."""
        if not raw:
            return cls()
        if not isinstance(raw, dict):
            raise ValueError("export: must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(
                f"export: unknown setting(s) {sorted(unknown)}. Valid: {sorted(known)}"
            )
        values = dict(raw)
        background = values.get("background")
        if isinstance(background, str):
            values["background"] = parse_hex_color(background)
        elif isinstance(background, list):
            values["background"] = tuple(background)
        return cls(**values)

    def with_overrides(self, **changes) -> "ExportSettings":
        """Return a copy with some settings replaced (validated again)."""
        return replace(self, **changes)


DEFAULT_SETTINGS = ExportSettings()

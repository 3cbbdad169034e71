"""Frame Mapping Registry — design templates loaded from YAML.

Each design names its overlay image, its shot count, the output canvas
size, and one window per shot. Validation happens once, at load time;
the loaded registry is read-only.

Registry schema:
  paths:
    designs: "designs"          # ${designs} in overlay paths
  export:                       # optional ExportSettings overrides
    frame_duration_ms: 200
  designs:
    - key: 4shot-design1
      shots: 4
      overlay: "${designs}/4shot-design1.png"
      frame_width: 600
      frame_height: 1800
      windows:
        - {left: 40, top: 60, width: 520, height: 380, border_radius: 8}
        - ...

Relative overlay paths resolve against the registry file's directory.
Window lists may be shared between designs with YAML anchors.
"""

from pathlib import Path

import yaml

from .common import resolve_path_vars
from .models import DesignOverlay, FrameMapping, Window
from .settings import ExportSettings


DEFAULT_REGISTRY_PATH = Path(__file__).with_name("designs.yaml")

REQUIRED_DESIGN_FIELDS = ("key", "shots", "frame_width", "frame_height", "windows")
REQUIRED_WINDOW_FIELDS = ("left", "top", "width", "height")


class Registry:
    """Read-only lookup from design key to overlay and frame mapping."""

    def __init__(
        self,
        designs: list[DesignOverlay],
        mappings: list[FrameMapping],
        settings: ExportSettings | None = None,
    ):
        self._designs = {d.key: d for d in designs}
        self._mappings = {m.key: m for m in mappings}
        self._order = [d.key for d in designs]
        self.settings = settings or ExportSettings()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, key) -> bool:
        return key in self._designs

    def keys(self) -> list[str]:
        return list(self._order)

    def lookup(self, design_key: str | None) -> FrameMapping | None:
        """Frame mapping for a design key, or None (caller falls back)."""
        if design_key is None:
            return None
        return self._mappings.get(design_key)

    def design(self, design_key: str | None) -> DesignOverlay | None:
        if design_key is None:
            return None
        return self._designs.get(design_key)

    def designs_for(self, shots: int) -> list[DesignOverlay]:
        """Designs offered for a layout with `shots` photos, in file order."""
        return [self._designs[k] for k in self._order if self._designs[k].shots == shots]


# ── Loading ───────────────────────────────────────────────────────


def load_registry(
    registry_path: str | Path | None = None,
    paths: dict[str, str] | None = None,
) -> Registry:
    """Load, validate, and normalize a design registry.

    Processing pipeline:
      1. Parse YAML.
      2. Build ExportSettings from the optional `export:` block.
      3. Resolve ${path} variables in overlay paths (caller `paths`
         override the file's `paths:` block).
      4. Validate each design and its windows.

    Args:
        registry_path: YAML file to load (default: packaged designs.yaml).
        paths: Extra/overriding path variables, e.g. {"designs": "/srv/overlays"}.

    Returns:
        A read-only Registry.

    Raises:
        ValueError: Missing fields, degenerate or out-of-frame windows,
            window count not matching the shot count, duplicate keys.
        FileNotFoundError: Missing registry file.
    """
    registry_path = Path(registry_path) if registry_path else DEFAULT_REGISTRY_PATH
    with open(registry_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Registry {registry_path}: top level must be a mapping")

    settings = ExportSettings.from_dict(raw.get("export"))

    path_vars = {k: str(v) for k, v in (raw.get("paths") or {}).items()}
    path_vars.update(paths or {})
    base_dir = registry_path.resolve().parent

    designs = []
    mappings = []
    seen = {}
    for i, entry in enumerate(raw.get("designs") or []):
        design, mapping = _parse_design(entry, i, path_vars, base_dir, settings)
        if design.key in seen:
            raise ValueError(
                f"Design {i} ({design.key}): duplicate key "
                f"(also used by design {seen[design.key]})"
            )
        seen[design.key] = i
        designs.append(design)
        mappings.append(mapping)

    return Registry(designs, mappings, settings)


def _parse_design(
    entry: dict,
    index: int,
    path_vars: dict[str, str],
    base_dir: Path,
    settings: ExportSettings,
) -> tuple[DesignOverlay, FrameMapping]:
    if not isinstance(entry, dict):
        raise ValueError(f"Design {index}: must be a mapping")
    prefix = f"Design {index} ({entry.get('key', '?')})"

    for name in REQUIRED_DESIGN_FIELDS:
        if name not in entry:
            raise ValueError(f"{prefix}: missing required field '{name}'")

    key = entry["key"]
    if not isinstance(key, str) or not key.strip():
        raise ValueError(f"Design {index}: 'key' must be a non-empty string")

    shots = entry["shots"]
    if not _is_int(shots) or not (1 <= shots <= settings.max_slots):
        raise ValueError(
            f"{prefix}: shots must be an integer in 1..{settings.max_slots}, got {shots!r}"
        )

    frame_w, frame_h = entry["frame_width"], entry["frame_height"]
    if not (_is_int(frame_w) and _is_int(frame_h)) or frame_w <= 0 or frame_h <= 0:
        raise ValueError(
            f"{prefix}: frame size must be positive integers, got {frame_w!r}x{frame_h!r}"
        )

    raw_windows = entry["windows"]
    if not isinstance(raw_windows, list) or len(raw_windows) != shots:
        n = len(raw_windows) if isinstance(raw_windows, list) else "non-list"
        raise ValueError(f"{prefix}: requires exactly {shots} windows (one per shot), got {n}")

    windows = tuple(
        _parse_window(w, f"{prefix}, window {j}", frame_w, frame_h)
        for j, w in enumerate(raw_windows)
    )

    overlay = entry.get("overlay")
    overlay_path = None
    if overlay is not None:
        if not isinstance(overlay, str) or not overlay.strip():
            raise ValueError(f"{prefix}: 'overlay' must be a non-empty string")
        overlay_path = Path(resolve_path_vars(overlay, path_vars))
        if not overlay_path.is_absolute():
            overlay_path = base_dir / overlay_path

    design = DesignOverlay(key=key, overlay=overlay_path, shots=shots)
    mapping = FrameMapping(key=key, frame_width=frame_w, frame_height=frame_h, windows=windows)
    return design, mapping


def _parse_window(raw: dict, prefix: str, frame_w: int, frame_h: int) -> Window:
    """Validate one window: non-degenerate, inside the frame, sane radius."""
    if not isinstance(raw, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    for name in REQUIRED_WINDOW_FIELDS:
        if name not in raw:
            raise ValueError(f"{prefix}: missing required field '{name}'")
        if not _is_int(raw[name]):
            raise ValueError(f"{prefix}: '{name}' must be an integer, got {raw[name]!r}")

    radius = raw.get("border_radius", 0)
    if not _is_int(radius):
        raise ValueError(f"{prefix}: 'border_radius' must be an integer, got {radius!r}")

    window = Window(
        left=raw["left"], top=raw["top"],
        width=raw["width"], height=raw["height"],
        border_radius=radius,
    )

    if window.width <= 0 or window.height <= 0:
        raise ValueError(
            f"{prefix}: window must be non-degenerate, got {window.width}x{window.height}"
        )
    if window.left < 0 or window.top < 0 or window.right > frame_w or window.bottom > frame_h:
        raise ValueError(
            f"{prefix}: window {window.box} lies outside the {frame_w}x{frame_h} frame"
        )
    if radius < 0 or 2 * radius > min(window.width, window.height):
        raise ValueError(
            f"{prefix}: border_radius must be between 0 and half the shorter side, got {radius}"
        )
    return window


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ── Overlay validation ────────────────────────────────────────────


def validate_overlays(registry: Registry) -> None:
    """Check that every design's overlay image exists on disk.

    Reports all missing overlays at once.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = []
    for key in registry.keys():
        overlay = registry.design(key).overlay
        if overlay is not None and not overlay.exists():
            missing.append(f"{key}: {overlay}")

    if missing:
        msg = f"Missing {len(missing)} overlay file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)

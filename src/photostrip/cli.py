"""CLI for strip composition.

Composes captured photos (or clips) with a design from the registry and
writes the result to disk.

Usage:
    # PNG strip with a design and per-photo filters
    photostrip compose --design 4shot-design1 --designs-dir overlays/ \
        --filter grayscale --filter "sepia(80%)" --filter none --filter none \
        --output strip.png a.jpg b.jpg c.jpg d.jpg

    # No design: fallback grid
    photostrip compose --output strip.png a.jpg b.jpg c.jpg

    # Animated GIF from per-slot clips
    photostrip compose --animated --design 3shot-design1 --designs-dir overlays/ \
        --clip a.gif --clip b.gif --clip c.gif --output strip.gif a.jpg b.jpg c.jpg
"""

import argparse
import time
from datetime import datetime
from pathlib import Path

from .exporter import StripExporter
from .models import CapturedImage
from .registry import load_registry


def _build_captured(photos: list[str], clips: list[str] | None) -> list[CapturedImage]:
    captured = []
    for i, photo in enumerate(photos):
        path = Path(photo)
        if not path.exists():
            raise FileNotFoundError(f"Photo not found: {photo}")
        clip = Path(clips[i]) if clips else None
        if clip is not None and not clip.exists():
            raise FileNotFoundError(f"Clip not found: {clip}")
        captured.append(CapturedImage(
            photo=path,
            captured_at=datetime.fromtimestamp(path.stat().st_mtime),
            clip=clip,
        ))
    return captured


def compose(
    photos: list[str],
    output_path: str,
    design_key: str | None = None,
    filters: list[str] | None = None,
    clips: list[str] | None = None,
    animated: bool = False,
    fmt: str | None = None,
    registry_path: str | None = None,
    designs_dir: str | None = None,
    quiet: bool = False,
) -> None:
    """Load the registry, compose the strip, write it to output_path."""
    paths = {"designs": designs_dir} if designs_dir else None
    registry = load_registry(registry_path, paths=paths)
    exporter = StripExporter(registry)
    captured = _build_captured(photos, clips)

    if design_key is not None and design_key not in registry:
        print(f"Unknown design '{design_key}' — using the fallback grid")
    elif design_key is not None and registry.lookup(design_key).slot_count != len(captured):
        print(
            f"Design '{design_key}' has {registry.lookup(design_key).slot_count} windows "
            f"but {len(captured)} photos were given — using the fallback grid"
        )

    kind = "animated" if animated else "still"
    print(f"Composing {len(captured)} slot(s), {kind}, design: {design_key or 'none'}")
    t0 = time.monotonic()

    if animated:
        loader = exporter.preload_overlay(design_key)
        if loader is not None:
            # The CLI can afford to wait for the overlay; the UI retries instead.
            loader.wait(timeout=exporter.settings.decode_timeout)
        result = exporter.export(
            captured, design_key, kind="animated",
            logger=None if quiet else "bar", fmt=fmt,
        )
    else:
        result = exporter.export(captured, design_key, filters=filters or None)

    out = result.save(output_path)
    elapsed = time.monotonic() - t0
    w, h = result.size
    frames = f", {result.frame_count} frames" if result.kind == "animated" else ""
    print(f"Done: {out} ({w}x{h} {result.format}{frames}, {elapsed:.1f}s)")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Compose captured photos into a decorated photo strip.",
    )
    parser.add_argument(
        "photos", nargs="+",
        help="Captured photos, in slot order",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output file path (.png for stills, .gif/.mp4 for animations)",
    )
    parser.add_argument(
        "--design", default=None,
        help="Design key from the registry (omit for the fallback grid)",
    )
    parser.add_argument(
        "--filter", action="append", dest="filters", default=None,
        help="Per-photo filter, repeat once per photo (e.g. grayscale, 'sepia(80%%)', none)",
    )
    parser.add_argument(
        "--animated", action="store_true",
        help="Compose the per-slot clips into a looping animation",
    )
    parser.add_argument(
        "--clip", action="append", dest="clips", default=None,
        help="Looping clip for a slot, repeat once per photo (with --animated)",
    )
    parser.add_argument(
        "--format", choices=["gif", "mp4"], default=None,
        help="Animation format (default: registry export setting)",
    )
    parser.add_argument(
        "--registry", default=None,
        help="Design registry YAML (default: packaged designs.yaml)",
    )
    parser.add_argument(
        "--designs-dir", default=None,
        help="Directory holding the design overlay images (${designs})",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress the progress bar",
    )
    args = parser.parse_args(args)

    if args.filters is not None and len(args.filters) != len(args.photos):
        parser.error(
            f"--filter given {len(args.filters)} time(s) for {len(args.photos)} photo(s)"
        )
    if args.animated:
        if not args.design:
            parser.error("--animated requires --design (animated strips have no fallback)")
        if not args.clips or len(args.clips) != len(args.photos):
            parser.error("--animated requires one --clip per photo")
        if args.filters:
            parser.error("--filter applies to still strips only")
    elif args.clips:
        parser.error("--clip requires --animated")

    compose(
        args.photos, args.output,
        design_key=args.design,
        filters=args.filters,
        clips=args.clips,
        animated=args.animated,
        fmt=args.format,
        registry_path=args.registry,
        designs_dir=args.designs_dir,
        quiet=args.quiet,
    )


if __name__ == "__main__":
    main()

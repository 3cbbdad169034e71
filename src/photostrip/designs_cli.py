"""CLI for inspecting the design registry.

Usage:
    photostrip designs                       # list every design
    photostrip designs --shots 4             # designs for the 4-shot layout
    photostrip designs --designs-dir overlays/ --check
"""

import argparse

from .registry import load_registry, validate_overlays


def main(args=None):
    parser = argparse.ArgumentParser(
        description="List and validate photo-strip designs.",
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
        "--shots", type=int, default=None,
        help="Only list designs for this shot count",
    )
    parser.add_argument(
        "--check", action="store_true",
        help="Verify that every overlay image exists",
    )
    args = parser.parse_args(args)

    paths = {"designs": args.designs_dir} if args.designs_dir else None
    registry = load_registry(args.registry, paths=paths)

    if args.shots is not None:
        designs = registry.designs_for(args.shots)
    else:
        designs = [registry.design(k) for k in registry.keys()]

    print(f"Registry valid: {len(registry)} designs")
    for design in designs:
        mapping = registry.lookup(design.key)
        rounded = sum(1 for w in mapping.windows if w.border_radius > 0)
        shape = f", {rounded} rounded" if rounded else ""
        print(
            f"  {design.key}: {design.shots} shot(s), "
            f"{mapping.frame_width}x{mapping.frame_height}{shape}"
        )

    if args.check:
        validate_overlays(registry)
        print("All overlays verified.")


if __name__ == "__main__":
    main()

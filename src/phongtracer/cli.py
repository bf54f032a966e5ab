#!/usr/bin/env python3
"""Render a scene description file to a PNG image.

Usage:
    phongtracer SCENE OUTPUT [WIDTH HEIGHT] [options]
    python -m src.phongtracer.cli SCENE OUTPUT [WIDTH HEIGHT] [options]

Arguments:
    SCENE               Scene description file
    OUTPUT              Output PNG path
    WIDTH HEIGHT        Image size in pixels (default: 500 500)

Options:
    --arch ARCH         Taichi backend: cpu, gpu or cuda (default: cpu)
    --seed SEED         Random seed for soft shadow sampling (default: 0)
    --band-rows ROWS    Rows rendered between progress updates (default: 64)
    --quiet             Suppress progress output

Example:
    phongtracer examples/scenes/spheres.txt spheres.png 800 600
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from src.phongtracer.core.errors import RayTracerError
from src.phongtracer.core.runtime import ARCHES, init_taichi

DEFAULT_WIDTH = 500
DEFAULT_HEIGHT = 500


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="phongtracer",
        description="Render a scene description file to a PNG image.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("scene", help="Scene description file")
    parser.add_argument("output", help="Output PNG path")
    parser.add_argument(
        "size",
        nargs="*",
        type=int,
        metavar="WIDTH HEIGHT",
        help=f"Image size in pixels (default: {DEFAULT_WIDTH} {DEFAULT_HEIGHT})",
    )
    parser.add_argument(
        "--arch",
        choices=sorted(ARCHES),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for soft shadow sampling (default: 0)",
    )
    parser.add_argument(
        "--band-rows",
        type=int,
        default=64,
        help="Rows rendered between progress updates (default: 64)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments, exiting with status 2 on bad usage."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.size:
        args.width, args.height = DEFAULT_WIDTH, DEFAULT_HEIGHT
    elif len(args.size) == 2:
        args.width, args.height = args.size
    else:
        parser.error("image size needs both WIDTH and HEIGHT")

    if args.width < 1 or args.height < 1:
        parser.error(f"image size must be positive, got {args.width}x{args.height}")
    if args.band_rows < 1:
        parser.error("--band-rows must be at least 1")
    return args


def render_scene_file(
    scene_path: str,
    output_path: str,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    band_rows: int = 64,
    quiet: bool = False,
) -> Path:
    """Load, render and save a scene.

    Taichi must already be initialized.

    Args:
        scene_path: Scene description file.
        output_path: Output file path (PNG).
        width: Image width in pixels.
        height: Image height in pixels.
        band_rows: Rows rendered between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.phongtracer.core.renderer import Renderer
    from src.phongtracer.preview.export import save_png
    from src.phongtracer.scene.loader import WARNING, load_scene_file

    if not quiet:
        print(f"Started parsing scene file {scene_path}")

    description = load_scene_file(scene_path)

    for diagnostic in description.diagnostics:
        if diagnostic.level == WARNING:
            print(diagnostic, file=sys.stderr)
        elif not quiet:
            print(diagnostic)

    renderer = Renderer(width, height)

    if not quiet:
        print(f"Rendering {width}x{height}...")

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (done / total) * 100 if total > 0 else 0
            print(
                f"\r  Progress: {done}/{total} rows ({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    result = renderer.render(
        description.scene,
        description.camera,
        band_rows=band_rows,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress
        print(f"Finished rendering scene in {result.elapsed * 1000:.0f} milliseconds.")

    if result.invalid_pixels:
        print(
            f"WARNING: {result.invalid_pixels} pixel(s) had non-finite colour "
            "and were written as magenta",
            file=sys.stderr,
        )

    output_file = Path(output_path)
    save_png(result.pixels, output_file)

    if not quiet:
        print(f"Saved file {output_file.absolute()}")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    backend = init_taichi(arch=args.arch, random_seed=args.seed)
    if not args.quiet:
        print(f"Using {backend.upper()} backend")

    try:
        render_scene_file(
            scene_path=args.scene,
            output_path=args.output,
            width=args.width,
            height=args.height,
            band_rows=args.band_rows,
            quiet=args.quiet,
        )
        return 0
    except (RayTracerError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Interactive demo scene renderer with real-time controls.

Opens a Taichi GGUI window that renders the demo scene progressively, one
sample per pixel per frame. Moving the light or bounce slider rebuilds the
scene and restarts accumulation.

Usage:
    python examples/interactive_demo.py [--aspect {4:3,16:9,16:10}]
        [--screen WIDTHxHEIGHT] [--bounces N] [--light EMISSION]

The window size is fitted to the given screen size at the chosen aspect
ratio.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pathtracer.config import RenderSettings, init_taichi

_ASPECTS = {"4:3": 1.333333, "16:9": 1.777777, "16:10": 1.6}


def parse_screen(value: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` screen size."""
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}") from None
    return width, height


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Interactive demo scene renderer.")
    parser.add_argument("--aspect", choices=sorted(_ASPECTS), default="4:3",
                        help="Window aspect ratio (default: 4:3)")
    parser.add_argument("--screen", type=parse_screen, default=(1280, 960),
                        help="Available screen size (default: 1280x960)")
    parser.add_argument("--focal-length", type=float, default=50.0,
                        help="Focal length in pixels (default: 50)")
    parser.add_argument("--bounces", type=int, default=4,
                        help="Initial bounce budget (default: 4)")
    parser.add_argument("--light", type=float, default=5550.0,
                        help="Initial light emission (default: 5550)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    return parser.parse_args()


def main() -> int:
    """Main entry point for the interactive renderer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Initialize Taichi first (before importing modules that declare fields)
    init_taichi(RenderSettings(random_seed=args.seed))

    from pathtracer.preview.interactive import InteractivePreview, fit_window
    from pathtracer.scene.demo import DemoSceneParams

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.", file=sys.stderr)
        return 1

    width, height = fit_window(_ASPECTS[args.aspect], *args.screen)
    settings = RenderSettings(
        width=width,
        height=height,
        focal_length=args.focal_length,
        bounces=args.bounces,
        random_seed=args.seed,
    )
    try:
        settings.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(f"Creating interactive preview window ({width}x{height})...")
    preview = InteractivePreview(
        width, height, focal_length=settings.focal_length, bounces=settings.bounces
    )
    preview.set_params(DemoSceneParams(light_emission=args.light))

    print("Starting interactive rendering...")
    print("  - Adjust sliders to modify the light and bounce budget")
    print("  - Click 'Export PNG' to save current render")
    print("  - Close window to exit")
    print()

    try:
        preview.run_reactive()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Render a demo sphere scene to a PNG file.

Frames are accumulated progressively at full resolution (no subsampling)
until the requested sample count is reached, then the averaged radiance is
gamma-encoded and saved.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --samples SAMPLES   Number of samples per pixel (default: 64)
    --scene INDEX       Demo scene index (default: 1)
    --time SECONDS      Animation time of the scene (default: 0.0)
    --seed SEED         Use deterministic frame seeds starting at SEED
    --output OUTPUT     Output file path (default: spheres.png)
    --verbose           Enable debug logging

Example:
    python -m examples.render_spheres --width 320 --height 240 --samples 16
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a demo sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument("--samples", type=int, default=64, help="Number of samples per pixel (default: 64)")
    parser.add_argument("--scene", type=int, default=1, help="Demo scene index (default: 1)")
    parser.add_argument("--time", type=float, default=0.0, help="Animation time of the scene (default: 0.0)")
    parser.add_argument("--seed", type=int, default=None, help="Deterministic frame seeds starting at SEED")
    parser.add_argument("--output", type=str, default="spheres.png", help="Output file path (default: spheres.png)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def render_spheres(
    width: int = 640,
    height: int = 480,
    num_samples: int = 64,
    scene_index: int = 1,
    elapsed: float = 0.0,
    seed: int | None = None,
    output_path: str = "spheres.png",
) -> Path:
    """Render a demo scene and save it to a PNG file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretracer.camera.camera import Camera
    from spheretracer.config import TracerConfig
    from spheretracer.core.progressive import Tracer
    from spheretracer.preview.export import save_png
    from spheretracer.scene.demo import build_scene

    config = dataclasses.replace(
        TracerConfig(),
        subsampling=1,
        accumulate=True,
        max_samples=num_samples,
        random_seed=seed is None,
    )
    tracer = Tracer(config)
    camera = Camera.from_config((0.0, 1.5, 6.0), (0.0, 0.0, 0.0), config)
    scene = build_scene(elapsed, scene_index)

    logger.info("Rendering %d spheres at %dx%d, %d samples per pixel", len(scene), width, height, num_samples)
    start_time = time.time()
    for i in range(num_samples):
        frame_seed = None if seed is None else seed + i
        tracer.trace_frame(camera, scene, (width, height), frame_seed=frame_seed)
        if (i + 1) % 8 == 0 or i + 1 == num_samples:
            elapsed_s = time.time() - start_time
            logger.info("  %d/%d samples (%.1f spp/s)", i + 1, num_samples, (i + 1) / max(elapsed_s, 1e-9))

    output_file = Path(output_path)
    save_png(tracer.pixels, output_file, gamma=2.2)
    logger.info("Saved to %s in %.2fs", output_file.absolute(), time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except RuntimeError:
        ti.init(arch=ti.cpu)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            scene_index=args.scene,
            elapsed=args.time,
            seed=args.seed,
            output_path=args.output,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Render one of the sphere scenes.

This script renders a preset scene (or a scene loaded from a JSON file) with
the thin-lens camera and saves the result as a PNG. Progress is printed after
every traced row.

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene NAME          Preset scene: three_spheres, hollow_glass or
                          random_spheres (default: random_spheres)
    --scene-file PATH     JSON scene description; overrides --scene
    --width WIDTH         Image width in pixels (default: 600)
    --samples SAMPLES     Samples per pixel per pass (default: 8)
    --passes PASSES       Number of accumulated passes (default: 1)
    --max-depth DEPTH     Maximum bounces per path (default: 10)
    --pixel-block SIZE    Trace one pixel per SIZE x SIZE block (default: 1)
    --seed SEED           Seed for the random streams and the random scene (default: 0)
    --output OUTPUT       Output file path (default: spheres.png)
    --quiet               Suppress progress output
    --verbose             Enable debug logging from the renderer

Example:
    python -m examples.render_spheres --scene three_spheres --width 300 --samples 16
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti

DEFAULT_ASPECT_RATIO = 3.0 / 2.0


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=["three_spheres", "hollow_glass", "random_spheres"],
        default="random_spheres",
        help="Preset scene to render (default: random_spheres)",
    )
    parser.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene with 'materials', 'spheres' and 'camera' keys",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=600,
        help="Image width in pixels (default: 600)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=8,
        help="Samples per pixel per pass (default: 8)",
    )
    parser.add_argument(
        "--passes",
        type=int,
        default=1,
        help="Number of accumulated passes (default: 1)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum bounces per path (default: 10)",
    )
    parser.add_argument(
        "--pixel-block",
        type=int,
        default=1,
        help="Trace one pixel per block of this size (default: 1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random streams and the random scene (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging from the renderer",
    )
    return parser.parse_args()


def load_scene_file(path: Path):
    """Load a scene and camera from a JSON file.

    The file holds a scene dictionary (see SceneManager.from_dict) plus a
    'camera' object with ThinLensCamera fields.

    Returns:
        Tuple of (SceneManager, ThinLensCamera).
    """
    from spheretracer.camera.thin_lens import ThinLensCamera
    from spheretracer.scene.manager import SceneManager

    data = json.loads(path.read_text())
    if "camera" not in data:
        raise ValueError(f"{path} has no 'camera' entry")

    scene = SceneManager()
    scene.from_dict(data)

    camera_data = dict(data["camera"])
    camera_data.setdefault("aspect_ratio", DEFAULT_ASPECT_RATIO)
    for key in ("lookfrom", "lookat", "vup"):
        if key in camera_data:
            camera_data[key] = tuple(camera_data[key])
    return scene, ThinLensCamera(**camera_data)


def render_spheres(
    scene_name: str = "random_spheres",
    scene_file: Path | None = None,
    width: int = 600,
    samples: int = 8,
    passes: int = 1,
    max_depth: int = 10,
    pixel_block: int = 1,
    seed: int = 0,
    output_path: str = "spheres.png",
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretracer.camera.thin_lens import setup_camera
    from spheretracer.core.progressive import ProgressiveRenderer, RenderSettings
    from spheretracer.preview.export import save_png
    from spheretracer.scene.presets import PRESETS, random_spheres_scene

    if scene_file is not None:
        if not quiet:
            print(f"Loading scene from {scene_file}...")
        scene, camera = load_scene_file(scene_file)
    elif scene_name == "random_spheres":
        scene, camera = random_spheres_scene(seed=seed)
    else:
        scene, camera = PRESETS[scene_name]()

    settings = RenderSettings.from_aspect_ratio(
        width,
        camera.aspect_ratio,
        samples_per_pixel=samples,
        max_depth=max_depth,
        pixel_block=pixel_block,
        seed=seed,
    )

    if not quiet:
        print(
            f"Rendering {scene.get_sphere_count()} spheres at "
            f"{settings.width}x{settings.height}, {samples} spp x {passes} passes..."
        )

    setup_camera(camera)
    renderer = ProgressiveRenderer(settings)

    start_time = time.time()

    def progress_callback(row: int, height: int) -> None:
        if not quiet:
            progress_pct = ((row + 1) / height) * 100
            print(f"\r  Progress: row {row + 1}/{height} ({progress_pct:.1f}%)", end="", flush=True)

    for index in range(passes):
        if not quiet and passes > 1:
            print(f"\nPass {index + 1}/{passes}")
        renderer.render(callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(renderer, output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_spheres(
            scene_name=args.scene,
            scene_file=args.scene_file,
            width=args.width,
            samples=args.samples,
            passes=args.passes,
            max_depth=args.max_depth,
            pixel_block=args.pixel_block,
            seed=args.seed,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

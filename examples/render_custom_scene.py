#!/usr/bin/env python3
"""Compose a scene through the editor forms and render it to a file.

This script builds a scene the way the interactive editor does, by filling
in the object, material, and sky forms as text, and then runs a full render
with a progress readout.

Usage:
    python -m examples.render_custom_scene [--output OUTPUT] [--samples N]

Example:
    python -m examples.render_custom_scene --output spheres.ppm --samples 20
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import taichi as ti  # noqa: E402


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Render a scene built from editor forms.")
    parser.add_argument("--output", type=str, default="custom_scene.png", help="Output file path")
    parser.add_argument("--samples", type=str, default="20", help="Samples per pixel")
    return parser.parse_args()


def build_scene():
    """Fill the editor forms to build a glass sphere on a metal floor."""
    from src.rtwtui.scene.builder import (
        MaterialFields,
        ObjectFields,
        SkyFields,
        save_material,
        save_object,
        save_sky,
    )
    from src.rtwtui.scene.manager import MaterialKind, Scene, SkyKind

    scene = Scene()
    floor = save_material(scene, MaterialFields(MaterialKind.METAL, "b0b0c0", "0.2", "Floor"))
    glass = save_material(scene, MaterialFields(MaterialKind.GLASS, "ffffff", "1.5", "Glass"))
    orange = save_material(scene, MaterialFields(MaterialKind.DIFFUSE, "fa7a2e", "0.0", "Orange"))

    save_object(scene, ObjectFields(type_index=1, size="1", position_y="-0.5", material_index=floor))
    save_object(scene, ObjectFields(size="0.5", position_x="1.5", material_index=glass))
    save_object(scene, ObjectFields(size="0.4", position_x="2.5", position_z="0.6", material_index=orange))
    save_sky(scene, SkyFields(SkyKind.GRADIENT, color1="7fb2ff", color2="ffffff"))
    return scene


def main() -> int:
    """Main entry point."""
    args = parse_args()
    ti.init(arch=ti.cpu)

    # Lazy imports to allow Taichi initialization first
    from src.rtwtui.camera.config import RenderFields
    from src.rtwtui.errors import RenderError
    from src.rtwtui.preview.controller import RenderModeController
    from src.rtwtui.scene.evaluator import TaichiSceneEvaluator

    fields = RenderFields(image_width="320", image_height="180", samples=args.samples, bounces="10")
    controller = RenderModeController(build_scene(), TaichiSceneEvaluator())

    def progress_callback(fraction: float) -> None:
        print(f"\r  Progress: {fraction:.0%}", end="", flush=True)

    try:
        path = controller.run_full_render(fields, args.output, progress_callback)
    except RenderError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print()
    print(f"Saved to: {path.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Terminal scene composer with half-block previews and full renders.

This package renders small sphere/plane scenes two ways:
- An interactive preview packed into terminal character cells
- A full-quality export written to an image file with progress reporting

Subpackages:
    core: Rays, sample accumulation, color mapping, and resumable render jobs
    camera: Render-field resolution and thin-lens ray generation
    scene: Scene data model, text-field builders, and the Taichi evaluator
    preview: Half-block rasterizer, image export, and the mode controller
    app: Terminal front end and command-line entry point
"""

__version__ = "0.1.0"

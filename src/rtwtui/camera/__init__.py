"""Camera module: render-field resolution and primary ray generation.

Components:
    config: Text fields to validated CameraConfig, for preview or export
    thin_lens: Look-at camera with optional defocus blur

Pixel coordinates are integers with (0, 0) at the top-left; the camera adds
sub-pixel jitter itself.
"""

from .config import (
    INTERACTIVE_BOUNCES,
    INTERACTIVE_SAMPLES,
    CameraConfig,
    RenderBudget,
    RenderFields,
    preview_budget,
    resolve_all,
    resolve_export_config,
    resolve_preview_config,
)
from .thin_lens import ThinLensCamera

__all__ = [
    "CameraConfig",
    "RenderBudget",
    "RenderFields",
    "INTERACTIVE_SAMPLES",
    "INTERACTIVE_BOUNCES",
    "preview_budget",
    "resolve_preview_config",
    "resolve_export_config",
    "resolve_all",
    "ThinLensCamera",
]

"""Preview module for output and visualization.

Components:
    terminal: Half-block packing of pixels into terminal cells, ANSI output
    export: Image files through Pillow
    controller: Preview and full-render modes over one scene

Example:
    >>> from src.rtwtui.preview import RenderModeController
    >>> controller = RenderModeController(scene, evaluator)
    >>> cells = controller.preview_frame(fields, columns=80, rows=24)
    >>> print(cells_to_ansi(cells))
"""

from .controller import RenderMode, RenderModeController
from .export import output_path_for, save_image
from .terminal import UPPER_HALF_BLOCK, TerminalCell, cells_to_ansi, rasterize

__all__ = [
    "RenderMode",
    "RenderModeController",
    "TerminalCell",
    "UPPER_HALF_BLOCK",
    "rasterize",
    "cells_to_ansi",
    "save_image",
    "output_path_for",
]

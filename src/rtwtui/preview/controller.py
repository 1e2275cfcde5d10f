"""Dual-mode render controller: terminal preview and full-quality export.

The controller owns the scene evaluator and decides, per invocation, which
budget and output target the pipeline gets:

    fields -> CameraConfig -> SampleAccumulator -> map_image -> cells | file

Preview frames always use the fixed interactive budget and the terminal's
size. Full renders use the budget typed in the render fields and end with an
image written to disk. Both are synchronous; the host's event loop decides
how often to call preview_frame() and when to stop.

Example:
    >>> controller = RenderModeController(scene, TaichiSceneEvaluator())
    >>> cells = controller.preview_frame(fields, columns=80, rows=24)
    >>> controller.run_full_render(fields, "image.png", print)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator

import numpy as np

from src.rtwtui.camera.config import (
    CameraConfig,
    RenderFields,
    resolve_export_config,
    resolve_preview_config,
)
from src.rtwtui.camera.thin_lens import ThinLensCamera
from src.rtwtui.core.accumulator import SampleAccumulator, SceneEvaluator
from src.rtwtui.core.color import map_image
from src.rtwtui.core.progressive import ProgressCallback, RenderJob
from src.rtwtui.preview.export import output_path_for, save_image
from src.rtwtui.preview.terminal import TerminalCell, rasterize
from src.rtwtui.scene.manager import Scene

logger = logging.getLogger(__name__)


class RenderMode(Enum):
    """What the controller is currently producing."""

    IDLE = "idle"
    PREVIEW = "preview"
    FULL = "full"


class RenderModeController:
    """Runs preview frames and full renders against one scene.

    Attributes:
        scene: The scene being composed; read-only while a render runs.
        evaluator: Scene-evaluation capability shared by both modes.
        mode: The current mode.
    """

    def __init__(
        self,
        scene: Scene,
        evaluator: SceneEvaluator,
        seed: int | None = None,
    ) -> None:
        self.scene = scene
        self.evaluator = evaluator
        self.mode = RenderMode.IDLE
        self._rng = np.random.default_rng(seed)
        self._prior_mode = RenderMode.IDLE
        self._output_path: Path | None = None

    def _accumulator_for(self, config: CameraConfig) -> SampleAccumulator:
        camera = ThinLensCamera(config, self._rng)
        return SampleAccumulator(camera, self.evaluator, self.scene, config.budget)

    @contextmanager
    def _in_mode(self, mode: RenderMode) -> Iterator[None]:
        """Switch modes, restoring the prior one if the body raises."""
        prior = self.mode
        self.mode = mode
        try:
            yield
        except Exception:
            self.mode = prior
            raise

    # =========================================================================
    # Preview
    # =========================================================================

    def preview_frame(
        self, fields: RenderFields, columns: int, rows: int
    ) -> list[list[TerminalCell]]:
        """Render one low-cost frame sized to the terminal.

        Args:
            fields: Current render fields; only the camera fields are read.
            columns: Terminal columns available for the image.
            rows: Terminal rows available for the image.

        Returns:
            The cell grid, at most ``rows`` x ``columns``.

        Raises:
            ConfigParseError: If a camera field does not parse.
            InvalidBudgetError: If the camera or terminal size is invalid.
            CapabilityError: If the evaluator fails.
        """
        config = resolve_preview_config(fields, columns, rows)
        with self._in_mode(RenderMode.PREVIEW):
            linear = self._accumulator_for(config).accumulate()
            return rasterize(map_image(linear), columns, rows)

    def leave_preview(self) -> None:
        """Return to idle; the host simply stops requesting frames."""
        if self.mode == RenderMode.PREVIEW:
            self.mode = RenderMode.IDLE

    # =========================================================================
    # Full render
    # =========================================================================

    def start_full_render(
        self, fields: RenderFields, output_path: str | Path | None = None
    ) -> RenderJob:
        """Resolve the export budget and create a job that has not started.

        The host drives the job with ``step()`` and writes the result with
        finish_full_render() once it is done.

        Args:
            fields: Render fields; every field is read.
            output_path: Destination file. Defaults to the image name field
                with a ``.png`` extension.

        Raises:
            ConfigParseError: If any field does not parse.
            InvalidBudgetError: If the budget or camera is invalid.
            RuntimeError: If a full render is already in progress.
        """
        if self.mode == RenderMode.FULL:
            raise RuntimeError("A full render is already in progress")
        config = resolve_export_config(fields)
        logger.info(
            "Full render %dx%d, %d spp, %d bounces",
            config.width,
            config.height,
            config.samples,
            config.bounces,
        )
        job = RenderJob(self._accumulator_for(config))
        if output_path is None:
            output_path = output_path_for(fields.image_name)
        self._output_path = Path(output_path)
        self._prior_mode = self.mode
        self.mode = RenderMode.FULL
        return job

    def finish_full_render(self, job: RenderJob) -> Path:
        """Write a completed job's image and return to the prior mode.

        Returns:
            The path written.

        Raises:
            RuntimeError: If no full render was started or the job has rows left.
            ExportError: If the image cannot be written.
        """
        if self.mode != RenderMode.FULL or self._output_path is None:
            raise RuntimeError("No full render in progress")
        if not job.done:
            raise RuntimeError("Render job is not complete")
        try:
            return save_image(job.get_image_uint8(), self._output_path)
        finally:
            self.abandon_full_render()

    def abandon_full_render(self) -> None:
        """Leave full-render mode without writing anything."""
        if self.mode == RenderMode.FULL:
            self.mode = self._prior_mode
        self._output_path = None

    def run_full_render(
        self,
        fields: RenderFields,
        output_path: str | Path | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Render at full quality and write the image, blocking until done.

        Args:
            fields: Render fields; every field is read.
            output_path: Destination file, as for start_full_render().
            on_progress: Called after each scanline with the completed
                fraction; for N rows it receives exactly 1/N, 2/N, ..., N/N.

        Returns:
            The path written.

        Raises:
            ConfigParseError: If any field does not parse; no pixel work is done.
            InvalidBudgetError: If the budget or camera is invalid.
            CapabilityError: If the evaluator fails; the mode is restored.
            ExportError: If the image cannot be written; the mode is restored.
        """
        job = self.start_full_render(fields, output_path)
        try:
            job.run(on_progress)
        except Exception:
            self.abandon_full_render()
            raise
        return self.finish_full_render(job)

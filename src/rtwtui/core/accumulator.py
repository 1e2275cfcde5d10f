"""Monte Carlo sample accumulation over a pixel grid.

For every output pixel the accumulator casts a fixed number of jittered rays,
evaluates each against the scene, and averages the returned linear radiance.
It knows nothing about intersection or shading; it only relies on two
capabilities:

- A ray generator (the camera): ``ray_for(pixel_x, pixel_y) -> Ray``
- A scene evaluator: ``evaluate(ray, max_bounces, scene) -> (r, g, b)``

An evaluator may also provide ``evaluate_batch(rays, max_bounces, scene)``
returning an (n, 3) array. When present, the accumulator hands it one
scanline of rays at a time instead of calling ``evaluate`` per ray. When the
camera also provides ``rays_for_row(pixel_y, samples)`` and the evaluator
``evaluate_arrays(origins, directions, max_bounces, scene)``, the scanline
stays in numpy arrays from generation to evaluation. Samples are
independent, so every path computes the same average.

Pixels are produced in row-major order, top to bottom and left to right.
The row is the unit of work: callers that report progress or interleave
other work drive ``accumulate_row`` / ``iter_rows`` themselves.

Example:
    >>> accumulator = SampleAccumulator(camera, evaluator, scene, config.budget)
    >>> for y, row in accumulator.iter_rows():
    ...     image[y] = row
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Sequence
from typing import Any, Protocol, runtime_checkable

import numpy as np
import numpy.typing as npt

from src.rtwtui.camera.config import RenderBudget
from src.rtwtui.core.ray import Ray
from src.rtwtui.errors import CapabilityError

logger = logging.getLogger(__name__)


class RayGenerator(Protocol):
    """Produces a jittered primary ray for a pixel."""

    def ray_for(self, pixel_x: int, pixel_y: int) -> Ray: ...


class SceneEvaluator(Protocol):
    """Evaluates the linear radiance carried back along a ray."""

    def evaluate(self, ray: Ray, max_bounces: int, scene: Any) -> Sequence[float]: ...


@runtime_checkable
class BatchSceneEvaluator(Protocol):
    """Optional extension evaluating many rays in one call."""

    def evaluate_batch(
        self, rays: Sequence[Ray], max_bounces: int, scene: Any
    ) -> npt.NDArray[np.floating[Any]]: ...


@runtime_checkable
class RowRayGenerator(Protocol):
    """Optional camera extension producing a whole scanline of rays as arrays."""

    def rays_for_row(
        self, pixel_y: int, samples: int
    ) -> tuple[npt.NDArray[np.floating[Any]], npt.NDArray[np.floating[Any]]]: ...


@runtime_checkable
class ArraySceneEvaluator(Protocol):
    """Optional evaluator extension taking (n, 3) origin and direction arrays."""

    def evaluate_arrays(
        self,
        origins: npt.NDArray[np.floating[Any]],
        directions: npt.NDArray[np.floating[Any]],
        max_bounces: int,
        scene: Any,
    ) -> npt.NDArray[np.floating[Any]]: ...


class SampleAccumulator:
    """Averages jittered radiance samples into a linear RGB image.

    The scene is only read. The returned buffers are owned by the caller.

    Attributes:
        budget: The render budget (samples, bounces, resolution).
    """

    def __init__(
        self,
        camera: RayGenerator,
        evaluator: SceneEvaluator,
        scene: Any,
        budget: RenderBudget,
    ) -> None:
        self._camera = camera
        self._evaluator = evaluator
        self._scene = scene
        self.budget = budget
        self._batched = isinstance(evaluator, BatchSceneEvaluator)
        self._vectorized = isinstance(camera, RowRayGenerator) and isinstance(
            evaluator, ArraySceneEvaluator
        )

    @property
    def width(self) -> int:
        return self.budget.width

    @property
    def height(self) -> int:
        return self.budget.height

    def accumulate_pixel(self, pixel_x: int, pixel_y: int) -> npt.NDArray[np.float64]:
        """Average ``budget.samples`` radiance samples for one pixel.

        Args:
            pixel_x: Pixel column (0 = left).
            pixel_y: Pixel row (0 = top).

        Returns:
            The average linear RGB radiance, shape (3,).

        Raises:
            CapabilityError: If the camera or the evaluator fails.
        """
        total = np.zeros(3, dtype=np.float64)
        for _ in range(self.budget.samples):
            try:
                ray = self._camera.ray_for(pixel_x, pixel_y)
                color = self._evaluator.evaluate(ray, self.budget.bounces, self._scene)
            except Exception as exc:
                raise CapabilityError(
                    f"Sample for pixel ({pixel_x}, {pixel_y}) failed: {exc}"
                ) from exc
            total += np.nan_to_num(np.asarray(color, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        return total * (1.0 / self.budget.samples)

    def _accumulate_row_batched(self, pixel_y: int) -> npt.NDArray[np.float64]:
        samples = self.budget.samples
        try:
            if self._vectorized:
                origins, directions = self._camera.rays_for_row(pixel_y, samples)  # type: ignore[attr-defined]
                colors = self._evaluator.evaluate_arrays(  # type: ignore[attr-defined]
                    origins, directions, self.budget.bounces, self._scene
                )
            else:
                colors = self._evaluate_row_rays(pixel_y, samples)
        except Exception as exc:
            raise CapabilityError(f"Samples for row {pixel_y} failed: {exc}") from exc

        colors = np.nan_to_num(np.asarray(colors, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        totals = colors.reshape(self.width, samples, 3).sum(axis=1)
        return totals * (1.0 / samples)

    def _evaluate_row_rays(self, pixel_y: int, samples: int) -> npt.NDArray[np.floating[Any]]:
        rays = [self._camera.ray_for(x, pixel_y) for x in range(self.width) for _ in range(samples)]
        return self._evaluator.evaluate_batch(rays, self.budget.bounces, self._scene)  # type: ignore[attr-defined]

    def accumulate_row(self, pixel_y: int) -> npt.NDArray[np.float64]:
        """Accumulate one scanline, left to right.

        Returns:
            Linear RGB radiance for the row, shape (width, 3).

        Raises:
            CapabilityError: If the camera or the evaluator fails.
        """
        if self._vectorized or self._batched:
            return self._accumulate_row_batched(pixel_y)

        row = np.empty((self.width, 3), dtype=np.float64)
        for x in range(self.width):
            row[x] = self.accumulate_pixel(x, pixel_y)
        return row

    def iter_rows(self) -> Generator[tuple[int, npt.NDArray[np.float64]], None, None]:
        """Accumulate the image row by row, yielding ``(y, row)`` top to bottom."""
        for y in range(self.height):
            yield y, self.accumulate_row(y)

    def accumulate(self) -> npt.NDArray[np.float64]:
        """Accumulate the full image.

        Returns:
            Linear RGB image of shape (height, width, 3).
        """
        logger.debug(
            "Accumulating %dx%d at %d spp, %d bounces",
            self.width,
            self.height,
            self.budget.samples,
            self.budget.bounces,
        )
        image = np.empty((self.height, self.width, 3), dtype=np.float64)
        for y, row in self.iter_rows():
            image[y] = row
        return image

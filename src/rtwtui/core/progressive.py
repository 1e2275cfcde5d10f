"""Resumable scanline render jobs.

This module wraps the sample accumulator in a job object that renders one
scanline per step. The job keeps its own state (next row index and the
linear pixel buffer), so a host event loop can:
- Drive the render one row at a time and redraw between rows
- Report progress as the fraction of completed rows
- Stop calling step() to abandon a render

For hosts that just want to block until the image is ready, run() drives
the job to completion and invokes a progress callback after every row.

Example:
    >>> job = RenderJob(accumulator)
    >>> job.run(lambda fraction: print(f"{fraction:.0%}"))
    >>> pixels = job.get_image_uint8()
"""

from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from src.rtwtui.core.accumulator import SampleAccumulator
from src.rtwtui.core.color import map_image

# Type alias for progress callback
# Callback receives the fraction of rows completed, in [0, 1]
ProgressCallback = Callable[[float], None]


class RenderJob:
    """A render that advances one scanline at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, accumulator: SampleAccumulator) -> None:
        """Create a job that has not rendered any rows yet.

        Args:
            accumulator: The accumulator producing each row.
        """
        self._accumulator = accumulator
        self.width = accumulator.width
        self.height = accumulator.height
        self._next_row = 0
        self._buffer = np.zeros((self.height, self.width, 3), dtype=np.float64)

    @property
    def next_row(self) -> int:
        """Index of the next row to render."""
        return self._next_row

    @property
    def done(self) -> bool:
        """Whether every row has been rendered."""
        return self._next_row >= self.height

    @property
    def progress(self) -> float:
        """Fraction of rows completed so far."""
        return self._next_row / self.height

    def step(self) -> float:
        """Render the next scanline.

        Returns:
            The progress fraction after this row.

        Raises:
            RuntimeError: If the job has already finished.
            CapabilityError: If sampling the row fails.
        """
        if self.done:
            raise RuntimeError("Render job is already complete")

        y = self._next_row
        self._buffer[y] = self._accumulator.accumulate_row(y)
        self._next_row = y + 1
        return self.progress

    def run(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.float64]:
        """Render all remaining rows, calling back after each one.

        The callback runs inline on the render thread and should be cheap.
        The fractions it receives for an N-row image are 1/N, 2/N, ..., N/N.

        Args:
            callback: Optional function receiving the completed-row fraction.

        Returns:
            The linear RGB image of shape (height, width, 3).
        """
        while not self.done:
            fraction = self.step()
            if callback is not None:
                callback(fraction)
        return self._buffer

    def render_progressive(self) -> Generator[float, None, None]:
        """Render remaining rows, yielding the progress fraction after each.

        Generator-based alternative to run() for hosts that want to interleave
        input handling between rows.
        """
        while not self.done:
            yield self.step()

    def get_image(self) -> npt.NDArray[np.float64]:
        """Get the linear buffer; rows not yet rendered are black."""
        return self._buffer

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the buffer mapped to 8-bit display pixels."""
        return map_image(self._buffer)

    def __repr__(self) -> str:
        return f"RenderJob(width={self.width}, height={self.height}, next_row={self._next_row})"

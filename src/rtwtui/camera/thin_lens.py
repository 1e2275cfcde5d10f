"""Thin-lens camera model for jittered primary ray generation.

This module implements the camera the sample accumulator queries for rays.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- A focus distance and defocus angle for depth of field
- Sub-pixel jitter for anti-aliasing

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

Pixel (0, 0) is the top-left corner of the image and y grows downward, so
the accumulator's row-major scan runs top to bottom.

Example:
    >>> from src.rtwtui.camera.config import RenderFields, resolve_export_config
    >>> config = resolve_export_config(RenderFields(image_width="4", image_height="2"))
    >>> camera = ThinLensCamera.from_config(config, seed=0)
    >>> ray = camera.ray_for(0, 0)
"""

from __future__ import annotations

import math

import numpy as np
import numpy.typing as npt

from src.rtwtui.camera.config import CameraConfig
from src.rtwtui.core.ray import Ray

# Fallback up vector when the view direction is parallel to +Y
_ALTERNATE_UP = np.array([0.0, 0.0, -1.0])


def _unit(v: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    return v / np.linalg.norm(v)


class ThinLensCamera:
    """Camera that turns pixel coordinates into jittered world-space rays.

    Attributes:
        config: The configuration the camera was built from.
        center: Camera position in world space.
        u, v, w: Orthonormal camera basis (right, up, backward).
    """

    def __init__(self, config: CameraConfig, rng: np.random.Generator) -> None:
        """Compute the camera basis and viewport from a configuration.

        Args:
            config: A validated camera configuration.
            rng: Random generator used for pixel jitter and lens sampling.
        """
        self.config = config
        self._rng = rng

        lookfrom = np.array(config.lookfrom, dtype=np.float64)
        lookat = np.array(config.lookat, dtype=np.float64)
        vup = np.array(config.vup, dtype=np.float64)

        # Viewport dimensions on the focus plane
        theta = math.radians(config.vfov)
        h = math.tan(theta / 2.0)
        viewport_height = 2.0 * h * config.focus_dist
        viewport_width = viewport_height * config.aspect_ratio

        # w points from lookat toward lookfrom (backward)
        w = _unit(lookfrom - lookat)
        right = np.cross(vup, w)
        if np.linalg.norm(right) < 1e-12:
            right = np.cross(_ALTERNATE_UP, w)
        u = _unit(right)
        v = np.cross(w, u)

        self.center = lookfrom
        self.u = u
        self.v = v
        self.w = w

        # Viewport edges: horizontal runs right, vertical runs down the image
        viewport_u = viewport_width * u
        viewport_v = -viewport_height * v

        self.pixel_delta_u = viewport_u / config.width
        self.pixel_delta_v = viewport_v / config.height

        upper_left = lookfrom - config.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
        self.pixel00 = upper_left + 0.5 * (self.pixel_delta_u + self.pixel_delta_v)

        # Defocus disk radius from the aperture (defocus angle in degrees)
        defocus_radius = config.focus_dist * math.tan(math.radians(config.aperture / 2.0))
        self.defocus_disk_u = u * defocus_radius
        self.defocus_disk_v = v * defocus_radius

    @classmethod
    def from_config(cls, config: CameraConfig, seed: int | None = None) -> ThinLensCamera:
        """Create a camera with its own random generator."""
        return cls(config, np.random.default_rng(seed))

    def _defocus_disk_sample(self) -> npt.NDArray[np.float64]:
        """Return a random point on the camera's defocus disk."""
        while True:
            px, py = self._rng.uniform(-1.0, 1.0, size=2)
            if px * px + py * py < 1.0:
                break
        return self.center + px * self.defocus_disk_u + py * self.defocus_disk_v

    def ray_for(self, pixel_x: int, pixel_y: int) -> Ray:
        """Generate a jittered ray through pixel (pixel_x, pixel_y).

        The sample point is uniformly offset within the pixel square. When
        the aperture is positive the ray origin is also offset across the
        defocus disk, blurring everything off the focus plane.

        Args:
            pixel_x: Pixel column (0 = left).
            pixel_y: Pixel row (0 = top).

        Returns:
            A Ray from the lens toward the jittered pixel sample.
        """
        offset_x, offset_y = self._rng.random(2) - 0.5
        pixel_sample = (
            self.pixel00
            + (pixel_x + offset_x) * self.pixel_delta_u
            + (pixel_y + offset_y) * self.pixel_delta_v
        )

        if self.config.aperture <= 0.0:
            origin = self.center
        else:
            origin = self._defocus_disk_sample()

        return Ray(origin=origin, direction=pixel_sample - origin)

    def _defocus_disk_samples(self, count: int) -> npt.NDArray[np.float64]:
        """Return ``count`` random points on the defocus disk, shape (count, 3)."""
        points = np.empty((count, 2), dtype=np.float64)
        pending = np.arange(count)
        while pending.size:
            candidates = self._rng.uniform(-1.0, 1.0, size=(pending.size, 2))
            inside = np.einsum("ij,ij->i", candidates, candidates) < 1.0
            points[pending[inside]] = candidates[inside]
            pending = pending[~inside]
        return self.center + points[:, :1] * self.defocus_disk_u + points[:, 1:] * self.defocus_disk_v

    def rays_for_row(
        self, pixel_y: int, samples: int
    ) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
        """Generate ``samples`` jittered rays for every pixel of a scanline.

        Same distribution as calling ``ray_for`` per sample, built in one
        vectorized pass. Rays are ordered by pixel, left to right, with the
        samples of a pixel adjacent.

        Args:
            pixel_y: Pixel row (0 = top).
            samples: Rays per pixel.

        Returns:
            Tuple of (origins, directions), each float32 of shape
            (width * samples, 3).
        """
        count = self.config.width * samples
        columns = np.repeat(np.arange(self.config.width, dtype=np.float64), samples)
        offsets = self._rng.random((count, 2)) - 0.5
        pixel_samples = (
            self.pixel00
            + (columns + offsets[:, 0])[:, None] * self.pixel_delta_u
            + (pixel_y + offsets[:, 1])[:, None] * self.pixel_delta_v
        )

        if self.config.aperture <= 0.0:
            origins = np.broadcast_to(self.center, (count, 3))
        else:
            origins = self._defocus_disk_samples(count)

        directions = pixel_samples - origins
        return (
            np.ascontiguousarray(origins, dtype=np.float32),
            np.ascontiguousarray(directions, dtype=np.float32),
        )

    def get_camera_info(self) -> dict[str, tuple[float, float, float]]:
        """Get the camera basis and viewport vectors for debugging."""
        return {
            name: (float(vec[0]), float(vec[1]), float(vec[2]))
            for name, vec in (
                ("origin", self.center),
                ("u", self.u),
                ("v", self.v),
                ("w", self.w),
                ("pixel00", self.pixel00),
                ("pixel_delta_u", self.pixel_delta_u),
                ("pixel_delta_v", self.pixel_delta_v),
            )
        }

"""Ray data structure and vector utilities.

This module provides the Python-side Ray passed between the camera and the
scene evaluator, plus the Taichi vector helpers the evaluator's kernels use
for scattering.

Rays cross the Python/Taichi boundary as plain float arrays: the camera
builds them in Python scope, and the evaluator copies origin and direction
into kernel arguments.

Example:
    >>> import numpy as np
    >>> ray = Ray(np.array([0.0, 0.0, 0.0]), np.array([0.0, 0.0, -1.0]))
    >>> ray.at(5.0)
    array([ 0.,  0., -5.])
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray, shape (3,).
        direction: The direction of the ray, shape (3,). Not required to be
            normalized; the evaluator normalizes before shading.
    """

    origin: npt.NDArray[np.float64]
    direction: npt.NDArray[np.float64]

    def at(self, t: float) -> npt.NDArray[np.float64]:
        """Compute the point along the ray at parameter t."""
        return self.origin + t * self.direction


def stack_rays(rays: Sequence[Ray]) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Pack rays into contiguous (n, 3) float32 origin and direction arrays.

    Used to hand a whole scanline of rays to a Taichi kernel in one call.

    Args:
        rays: The rays to pack.

    Returns:
        Tuple of (origins, directions), each of shape (len(rays), 3).
    """
    origins = np.ascontiguousarray([r.origin for r in rays], dtype=np.float32).reshape(-1, 3)
    directions = np.ascontiguousarray([r.direction for r in rays], dtype=np.float32).reshape(-1, 3)
    return origins, directions


# =============================================================================
# Vector Utility Functions (Taichi scope)
# =============================================================================


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The caller is responsible for checking total internal reflection first.

    Args:
        incident: The incoming direction vector (normalized).
        normal: The surface normal facing against the incident direction.
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(-tm.dot(incident, normal), 1.0)
    r_out_perp = eta * (incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation."""
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere by rejection sampling."""
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
            )
            if tm.dot(p, p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return tm.normalize(random_in_unit_sphere())

"""Taichi scene evaluator: ray-scene intersection and material scattering.

This module implements the scene-evaluation capability the sample
accumulator consumes:

    evaluate(ray, max_bounces, scene) -> linear RGB
    evaluate_batch(rays, max_bounces, scene) -> (n, 3) array

Each ray is traced iteratively for at most ``max_bounces`` intersections.
Rays that escape pick up the sky color; rays still bouncing when the budget
runs out contribute black.

Key features:
    - Sphere and plane primitives (closest hit wins)
    - Diffuse, metal (with fuzz), glass (Schlick reflectance), and
      debug-normal materials
    - Solid and vertical-gradient skies
    - Struct-of-arrays Taichi fields uploaded once per scene revision

Fields are allocated when the evaluator is constructed, so ``ti.init()``
must be called first.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.rtwtui.scene.evaluator import TaichiSceneEvaluator
    >>> from src.rtwtui.scene.manager import create_demo_scene
    >>> evaluator = TaichiSceneEvaluator()
    >>> color = evaluator.evaluate(ray, 5, create_demo_scene())
"""

import logging
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.rtwtui.core.ray import (
    Ray,
    near_zero,
    random_unit_vector,
    reflect,
    refract,
    schlick_fresnel,
    stack_rays,
)
from src.rtwtui.scene.manager import MaterialKind, Plane, Scene, SkyKind, Sphere

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Evaluation Constants
# =============================================================================

# Maximum primitives and materials per scene
MAX_SPHERES = 512
MAX_PLANES = 64
MAX_MATERIALS = 256

# t_min and t_max for ray intersection (t_min also avoids self-intersection)
T_MIN = 1e-3
T_MAX = 1e10

ray_array = ti.types.ndarray(dtype=vec3, ndim=1)


@ti.dataclass
class HitRecord:
    """Record of the closest ray-scene intersection.

    Attributes:
        hit: 1 if the ray intersected a primitive, 0 on a miss.
        t: Ray parameter of the intersection.
        point: Intersection point.
        normal: Unit surface normal facing against the ray.
        front_face: 1 if the ray hit the outside of the surface.
        material: Index into the material table.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material: ti.i32


@ti.data_oriented
class TaichiSceneEvaluator:
    """Evaluates rays against a Scene uploaded into Taichi fields."""

    def __init__(
        self,
        max_spheres: int = MAX_SPHERES,
        max_planes: int = MAX_PLANES,
        max_materials: int = MAX_MATERIALS,
    ) -> None:
        self.max_spheres = max_spheres
        self.max_planes = max_planes
        self.max_materials = max_materials

        # Sphere storage: Structure of Arrays layout
        self.sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=max_spheres)
        self.sphere_radii = ti.field(dtype=ti.f32, shape=max_spheres)
        self.sphere_materials = ti.field(dtype=ti.i32, shape=max_spheres)
        self.num_spheres = ti.field(dtype=ti.i32, shape=())

        # Plane storage
        self.plane_points = ti.Vector.field(3, dtype=ti.f32, shape=max_planes)
        self.plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=max_planes)
        self.plane_materials = ti.field(dtype=ti.i32, shape=max_planes)
        self.num_planes = ti.field(dtype=ti.i32, shape=())

        # Material table (kind, albedo, fuzz or index of refraction)
        self.material_kinds = ti.field(dtype=ti.i32, shape=max_materials)
        self.material_colors = ti.Vector.field(3, dtype=ti.f32, shape=max_materials)
        self.material_params = ti.field(dtype=ti.f32, shape=max_materials)

        # Sky
        self.sky_kind = ti.field(dtype=ti.i32, shape=())
        self.sky_start = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.sky_end = ti.Vector.field(3, dtype=ti.f32, shape=())

        self._uploaded_scene: Scene | None = None
        self._uploaded_revision = -1

    # =========================================================================
    # Scene Upload (Python scope)
    # =========================================================================

    def upload(self, scene: Scene) -> None:
        """Copy a scene into the evaluator's fields.

        Raises:
            RuntimeError: If the scene exceeds the evaluator's capacity.
        """
        spheres = scene.spheres
        planes = scene.planes
        if len(spheres) > self.max_spheres:
            raise RuntimeError(f"Maximum number of spheres ({self.max_spheres}) exceeded")
        if len(planes) > self.max_planes:
            raise RuntimeError(f"Maximum number of planes ({self.max_planes}) exceeded")
        if len(scene.materials) > self.max_materials:
            raise RuntimeError(f"Maximum number of materials ({self.max_materials}) exceeded")

        for i, material in enumerate(scene.materials):
            self.material_kinds[i] = int(material.kind)
            self.material_colors[i] = list(material.color)
            self.material_params[i] = material.param

        for i, sphere in enumerate(spheres):
            self.sphere_centers[i] = list(sphere.center)
            self.sphere_radii[i] = sphere.radius
            self.sphere_materials[i] = sphere.material_index
        self.num_spheres[None] = len(spheres)

        for i, plane in enumerate(planes):
            normal = np.asarray(plane.normal, dtype=np.float64)
            self.plane_points[i] = list(plane.point)
            self.plane_normals[i] = (normal / np.linalg.norm(normal)).tolist()
            self.plane_materials[i] = plane.material_index
        self.num_planes[None] = len(planes)

        self.sky_kind[None] = int(scene.sky.kind)
        self.sky_start[None] = list(scene.sky.start)
        self.sky_end[None] = list(scene.sky.end)

        self._uploaded_scene = scene
        self._uploaded_revision = scene.revision
        logger.debug(
            "Uploaded scene revision %d: %d spheres, %d planes, %d materials",
            scene.revision,
            len(spheres),
            len(planes),
            len(scene.materials),
        )

    def _ensure_uploaded(self, scene: Scene) -> None:
        if self._uploaded_scene is not scene or self._uploaded_revision != scene.revision:
            self.upload(scene)

    # =========================================================================
    # Intersection (Taichi scope)
    # =========================================================================

    @ti.func
    def _hit_sphere(self, i: ti.i32, origin: vec3, direction: vec3, t_max: ti.f32):
        center = self.sphere_centers[i]
        radius = self.sphere_radii[i]
        oc = center - origin
        a = tm.dot(direction, direction)
        h = tm.dot(direction, oc)
        c = tm.dot(oc, oc) - radius * radius
        discriminant = h * h - a * c

        hit = 0
        root = 0.0
        if discriminant >= 0.0:
            sqrt_d = ti.sqrt(discriminant)
            root = (h - sqrt_d) / a
            if root <= T_MIN or root >= t_max:
                root = (h + sqrt_d) / a
            if T_MIN < root < t_max:
                hit = 1
        return hit, root

    @ti.func
    def _hit_plane(self, i: ti.i32, origin: vec3, direction: vec3, t_max: ti.f32):
        normal = self.plane_normals[i]
        denom = tm.dot(normal, direction)
        hit = 0
        t = 0.0
        if ti.abs(denom) > 1e-8:
            t = tm.dot(self.plane_points[i] - origin, normal) / denom
            if T_MIN < t < t_max:
                hit = 1
        return hit, t

    @ti.func
    def _intersect(self, origin: vec3, direction: vec3) -> HitRecord:
        """Find the closest intersection along a ray."""
        closest_t = T_MAX
        rec = HitRecord(
            hit=0,
            t=0.0,
            point=vec3(0.0, 0.0, 0.0),
            normal=vec3(0.0, 0.0, 0.0),
            front_face=0,
            material=-1,
        )

        for i in range(self.num_spheres[None]):
            hit, t = self._hit_sphere(i, origin, direction, closest_t)
            if hit == 1:
                closest_t = t
                point = origin + t * direction
                outward = (point - self.sphere_centers[i]) / self.sphere_radii[i]
                rec.hit = 1
                rec.t = t
                rec.point = point
                rec.normal = outward
                rec.material = self.sphere_materials[i]

        for i in range(self.num_planes[None]):
            hit, t = self._hit_plane(i, origin, direction, closest_t)
            if hit == 1:
                closest_t = t
                rec.hit = 1
                rec.t = t
                rec.point = origin + t * direction
                rec.normal = self.plane_normals[i]
                rec.material = self.plane_materials[i]

        if rec.hit == 1:
            # Orient the normal against the incoming ray
            if tm.dot(direction, rec.normal) < 0.0:
                rec.front_face = 1
            else:
                rec.front_face = 0
                rec.normal = -rec.normal

        return rec

    @ti.func
    def _sky_color(self, direction: vec3) -> vec3:
        color = self.sky_start[None]
        if self.sky_kind[None] == int(SkyKind.GRADIENT):
            a = 0.5 * (tm.normalize(direction).y + 1.0)
            color = (1.0 - a) * self.sky_start[None] + a * self.sky_end[None]
        return color

    # =========================================================================
    # Path Tracing Core
    # =========================================================================

    @ti.func
    def _trace(self, origin: vec3, direction: vec3, max_bounces: ti.i32) -> vec3:
        """Trace one ray for at most ``max_bounces`` intersections."""
        result = vec3(0.0, 0.0, 0.0)
        throughput = vec3(1.0, 1.0, 1.0)
        ray_origin = origin
        ray_dir = direction

        # Active flag for path continuation
        active = 1

        for _ in range(max_bounces):
            if active == 1:
                rec = self._intersect(ray_origin, ray_dir)

                if rec.hit == 0:
                    # Ray escaped
                    result = throughput * self._sky_color(ray_dir)
                    active = 0
                else:
                    kind = self.material_kinds[rec.material]
                    albedo = self.material_colors[rec.material]
                    param = self.material_params[rec.material]
                    unit_dir = tm.normalize(ray_dir)
                    scattered = vec3(0.0, 0.0, 0.0)
                    attenuation = vec3(1.0, 1.0, 1.0)

                    if kind == int(MaterialKind.DIFFUSE):
                        scattered = rec.normal + random_unit_vector()
                        if near_zero(scattered):
                            scattered = rec.normal
                        attenuation = albedo

                    elif kind == int(MaterialKind.METAL):
                        scattered = tm.normalize(reflect(unit_dir, rec.normal))
                        scattered += param * random_unit_vector()
                        attenuation = albedo
                        if tm.dot(scattered, rec.normal) <= 0.0:
                            # Fuzzed below the surface: absorbed
                            active = 0

                    elif kind == int(MaterialKind.GLASS):
                        ri = param
                        if rec.front_face == 1:
                            ri = 1.0 / param
                        cos_theta = tm.min(tm.dot(-unit_dir, rec.normal), 1.0)
                        sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
                        if ri * sin_theta > 1.0 or schlick_fresnel(cos_theta, ri) > ti.random(ti.f32):
                            scattered = reflect(unit_dir, rec.normal)
                        else:
                            scattered = refract(unit_dir, rec.normal, ri)

                    else:
                        # Debug material shows the surface normal and stops
                        result = throughput * 0.5 * (rec.normal + 1.0)
                        active = 0

                    if active == 1:
                        throughput *= attenuation
                        ray_origin = rec.point
                        ray_dir = scattered

        return result

    @ti.kernel
    def _trace_batch(
        self,
        origins: ray_array,
        directions: ray_array,
        out: ray_array,
        max_bounces: ti.i32,
    ):
        for i in range(origins.shape[0]):
            color = self._trace(origins[i], directions[i], max_bounces)

            # Clamp negative values and replace NaN/Inf with zero
            color = tm.max(color, vec3(0.0, 0.0, 0.0))
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0
            out[i] = color

    # =========================================================================
    # Public Evaluation API
    # =========================================================================

    def evaluate(self, ray: Ray, max_bounces: int, scene: Scene) -> tuple[float, float, float]:
        """Evaluate the linear radiance along one ray.

        Args:
            ray: The primary ray.
            max_bounces: Maximum number of intersections to follow.
            scene: The scene to trace against; uploaded if it changed.

        Returns:
            Tuple of (R, G, B) linear color values.
        """
        colors = self.evaluate_batch([ray], max_bounces, scene)
        return (float(colors[0, 0]), float(colors[0, 1]), float(colors[0, 2]))

    def evaluate_batch(
        self, rays: Sequence[Ray], max_bounces: int, scene: Scene
    ) -> npt.NDArray[np.float32]:
        """Evaluate many rays in one kernel launch.

        Returns:
            Array of shape (len(rays), 3) with linear RGB per ray.
        """
        origins, directions = stack_rays(rays)
        return self.evaluate_arrays(origins, directions, max_bounces, scene)

    def evaluate_arrays(
        self,
        origins: npt.NDArray[np.float32],
        directions: npt.NDArray[np.float32],
        max_bounces: int,
        scene: Scene,
    ) -> npt.NDArray[np.float32]:
        """Evaluate rays given as (n, 3) origin and direction arrays.

        This is the path the accumulator uses with a camera that builds a
        whole scanline of rays at once.

        Returns:
            Array of shape (n, 3) with linear RGB per ray.
        """
        self._ensure_uploaded(scene)
        origins = np.ascontiguousarray(origins, dtype=np.float32)
        directions = np.ascontiguousarray(directions, dtype=np.float32)
        out = np.zeros((origins.shape[0], 3), dtype=np.float32)
        if origins.shape[0] == 0:
            return out
        self._trace_batch(origins, directions, out, max_bounces)
        return out


def object_counts(scene: Scene) -> dict[str, int]:
    """Count primitives by type, for status lines and capacity checks."""
    return {
        "spheres": sum(isinstance(o, Sphere) for o in scene.objects),
        "planes": sum(isinstance(o, Plane) for o in scene.objects),
        "materials": len(scene.materials),
    }

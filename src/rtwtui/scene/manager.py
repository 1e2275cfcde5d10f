"""Scene data model: objects, a flat material table, and the sky.

Objects never hold materials directly. The scene owns one flat list of
materials and every object stores an index into it, so many objects can
share a material without shared ownership, and materials always outlive the
objects that use them.

Materials and objects are closed sets of variants (see MaterialKind and the
Sphere / Plane records). Only the scene evaluator dispatches on them; the
render pipeline treats the scene as an opaque, read-only value.

Every mutation bumps ``Scene.revision`` so evaluators can cache whatever they
upload for a given scene state.

Example:
    >>> scene = Scene()
    >>> red = scene.add_material(Material("Red", MaterialKind.DIFFUSE, (0.8, 0.1, 0.1)))
    >>> scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_index=red)
    0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

Vec3Tuple = tuple[float, float, float]


class MaterialKind(IntEnum):
    """Enumeration of supported material types.

    The integer values are what the evaluator stores in its material fields.
    """

    DIFFUSE = 0
    METAL = 1
    GLASS = 2
    NORMAL = 3

    @property
    def label(self) -> str:
        """Name shown in material lists."""
        return _MATERIAL_LABELS[self]

    @property
    def has_property(self) -> bool:
        """Whether the material takes a numeric property (fuzz or IOR)."""
        return self in (MaterialKind.METAL, MaterialKind.GLASS)


_MATERIAL_LABELS = {
    MaterialKind.DIFFUSE: "Diffuse",
    MaterialKind.METAL: "Metal",
    MaterialKind.GLASS: "Glass",
    MaterialKind.NORMAL: "Debug",
}


@dataclass(frozen=True)
class Material:
    """A named material.

    Attributes:
        name: Display name.
        kind: Material variant.
        color: Linear RGB albedo; unused for glass and debug materials.
        param: Metal fuzz in [0, 1], or glass index of refraction.
    """

    name: str
    kind: MaterialKind
    color: Vec3Tuple = (0.8, 0.8, 0.8)
    param: float = 0.0


@dataclass(frozen=True)
class Sphere:
    """A sphere; a negative radius flips its normals inward."""

    center: Vec3Tuple
    radius: float
    material_index: int

    type_name = "Sphere"


@dataclass(frozen=True)
class Plane:
    """An infinite plane through ``point`` facing along ``normal``."""

    point: Vec3Tuple
    normal: Vec3Tuple
    material_index: int

    type_name = "Plane"


SceneObject = Union[Sphere, Plane]


class SkyKind(IntEnum):
    """Background shading for rays that escape the scene."""

    SOLID = 0
    GRADIENT = 1


@dataclass(frozen=True)
class Sky:
    """Background color for escaped rays.

    A gradient sky blends from ``start`` (looking down) to ``end`` (looking
    up) by the ray's vertical direction. A solid sky is ``start`` everywhere.
    """

    kind: SkyKind = SkyKind.GRADIENT
    start: Vec3Tuple = (160 / 255, 160 / 255, 160 / 255)
    end: Vec3Tuple = (1.0, 1.0, 1.0)


@dataclass
class Scene:
    """The shared, read-only-during-render description of what to draw.

    Attributes:
        materials: Flat material table; objects refer to it by index.
        objects: Spheres and planes in insertion order.
        sky: Background for escaped rays.
        revision: Incremented on every mutation.
    """

    materials: list[Material] = field(
        default_factory=lambda: [Material("Diffuse 1", MaterialKind.DIFFUSE, (0.8, 0.8, 0.8))]
    )
    objects: list[SceneObject] = field(default_factory=list)
    sky: Sky = field(default_factory=Sky)
    revision: int = 0

    def _touch(self) -> None:
        self.revision += 1

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def add_material(self, material: Material) -> int:
        """Append a material to the table and return its index."""
        self.materials.append(material)
        self._touch()
        return len(self.materials) - 1

    def get_material(self, index: int) -> Material:
        """Look up a material by index.

        Raises:
            ValueError: If the index is out of range.
        """
        if not 0 <= index < len(self.materials):
            raise ValueError(f"Invalid material index: {index}")
        return self.materials[index]

    # -------------------------------------------------------------------------
    # Objects
    # -------------------------------------------------------------------------

    def _add_object(self, obj: SceneObject) -> int:
        self.get_material(obj.material_index)
        self.objects.append(obj)
        self._touch()
        return len(self.objects) - 1

    def add_sphere(self, center: Vec3Tuple, radius: float, material_index: int) -> int:
        """Add a sphere and return its object index.

        Raises:
            ValueError: If the material index is out of range.
        """
        return self._add_object(Sphere(tuple(center), float(radius), material_index))

    def add_plane(self, point: Vec3Tuple, normal: Vec3Tuple, material_index: int) -> int:
        """Add a plane and return its object index.

        Raises:
            ValueError: If the material index is out of range or the normal is zero.
        """
        if all(c == 0.0 for c in normal):
            raise ValueError("Plane normal must be non-zero")
        return self._add_object(Plane(tuple(point), tuple(normal), material_index))

    def remove_object(self, index: int) -> SceneObject:
        """Remove and return the object at ``index``.

        Raises:
            IndexError: If the index is out of range.
        """
        obj = self.objects.pop(index)
        self._touch()
        return obj

    def set_sky(self, sky: Sky) -> None:
        self.sky = sky
        self._touch()

    @property
    def spheres(self) -> list[Sphere]:
        return [o for o in self.objects if isinstance(o, Sphere)]

    @property
    def planes(self) -> list[Plane]:
        return [o for o in self.objects if isinstance(o, Plane)]

    def as_info_rows(self) -> list[list[str]]:
        """Summarize objects as table rows: type, size, position, material."""
        rows = []
        for obj in self.objects:
            material = self.materials[obj.material_index]
            if isinstance(obj, Sphere):
                size, position = obj.radius, obj.center
            else:
                size, position = obj.normal[1], obj.point
            rows.append(
                [
                    obj.type_name,
                    f"{size:g}",
                    "({:g}, {:g}, {:g})".format(*position),
                    f"{material.name} ({material.kind.label})",
                ]
            )
        return rows


def create_demo_scene() -> Scene:
    """Create a small scene with one object per material type.

    A diffuse ground plane below a row of spheres: diffuse, metal, glass,
    and a debug-normal sphere, in view of the default render camera.
    """
    scene = Scene()
    ground = scene.add_material(Material("Ground", MaterialKind.DIFFUSE, (0.5, 0.6, 0.3)))
    red = scene.add_material(Material("Red", MaterialKind.DIFFUSE, (0.98, 0.31, 0.31)))
    steel = scene.add_material(Material("Steel", MaterialKind.METAL, (0.8, 0.8, 0.8), 0.1))
    glass = scene.add_material(Material("Glass", MaterialKind.GLASS, param=1.5))
    debug = scene.add_material(Material("Normals", MaterialKind.NORMAL))

    scene.add_plane(point=(0.0, -0.5, 0.0), normal=(0.0, 1.0, 0.0), material_index=ground)
    scene.add_sphere(center=(1.0, 0.0, 0.0), radius=0.5, material_index=red)
    scene.add_sphere(center=(1.4, 0.0, 1.1), radius=0.5, material_index=steel)
    scene.add_sphere(center=(0.6, -0.15, -0.5), radius=0.35, material_index=glass)
    scene.add_sphere(center=(2.5, 0.4, -1.2), radius=0.6, material_index=debug)
    return scene

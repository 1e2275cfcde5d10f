"""Builders turning editor form fields into scene objects, materials, and skies.

The editing layer keeps each form as raw text. These helpers validate that
text and apply the result to a Scene, raising SceneError with a message
suitable for the editor's status line when a field is invalid. The forms are
reset to their defaults after a successful save, as the editor expects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.rtwtui.core.color import parse_hex_color, parse_hex_color_strict
from src.rtwtui.errors import SceneError
from src.rtwtui.scene.manager import Material, MaterialKind, Scene, Sky, SkyKind

OBJECT_TYPES = ("Sphere", "Plane")


@dataclass
class ObjectFields:
    """Raw fields of the object editor."""

    type_index: int = 0
    size: str = "0.5"
    position_x: str = "0.0"
    position_y: str = "0.0"
    position_z: str = "0.0"
    material_index: int = 0

    def reset(self) -> None:
        self.material_index = 0
        self.size = "0.5"
        self.position_x = "0.0"
        self.position_y = "0.0"
        self.position_z = "0.0"


@dataclass
class MaterialFields:
    """Raw fields of the material editor."""

    kind: MaterialKind | None = MaterialKind.DIFFUSE
    color: str = "fa4e4e"
    other: str = "0.0"
    name: str = "Material"

    def reset(self) -> None:
        self.color = "fa4e4e"
        self.kind = None
        self.other = "1.0"


@dataclass
class SkyFields:
    """Raw fields of the sky editor."""

    kind: SkyKind = SkyKind.GRADIENT
    color1: str = "a0a0a0"
    color2: str = "ffffff"


def _parse_float(text: str, message: str) -> float:
    try:
        value = float(text.strip())
    except ValueError:
        raise SceneError(message) from None
    if not math.isfinite(value):
        raise SceneError(message)
    return value


def save_object(scene: Scene, fields: ObjectFields) -> int:
    """Add the object described by the editor fields to the scene.

    A plane's size becomes the y component of its normal, so planes built
    here are horizontal and face up for positive sizes.

    Returns:
        The new object's index.

    Raises:
        SceneError: If any field is invalid; the scene is left unchanged.
    """
    if not 0 <= fields.material_index < len(scene.materials):
        raise SceneError("Invalid material input")

    size = _parse_float(fields.size, "Invalid size input")
    position = (
        _parse_float(fields.position_x, "Invalid position input x"),
        _parse_float(fields.position_y, "Invalid position input y"),
        _parse_float(fields.position_z, "Invalid position input z"),
    )
    if size == 0.0:
        raise SceneError("Invalid size input")

    if fields.type_index == 0:
        index = scene.add_sphere(position, size, fields.material_index)
    elif fields.type_index == 1:
        index = scene.add_plane(position, (0.0, size, 0.0), fields.material_index)
    else:
        raise SceneError("Invalid object type")

    fields.reset()
    return index


def save_material(scene: Scene, fields: MaterialFields) -> int:
    """Add the material described by the editor fields to the scene.

    The color never fails: malformed hex shows up as magenta in the render.
    Metal fuzz is clamped to [0, 1].

    Returns:
        The new material's index.

    Raises:
        SceneError: If the property is not numeric or no type is selected.
    """
    other = _parse_float(fields.other, "Invalid other value")
    color = parse_hex_color(fields.color)

    if fields.kind is None:
        raise SceneError("No material type provided")
    if fields.kind == MaterialKind.METAL:
        material = Material(fields.name, fields.kind, color, min(max(other, 0.0), 1.0))
    elif fields.kind == MaterialKind.GLASS:
        if other <= 0.0:
            raise SceneError("Invalid other value")
        material = Material(fields.name, fields.kind, (1.0, 1.0, 1.0), other)
    else:
        material = Material(fields.name, fields.kind, color)

    index = scene.add_material(material)
    fields.reset()
    return index


def save_sky(scene: Scene, fields: SkyFields) -> Sky:
    """Replace the scene's sky with the one described by the editor fields.

    A gradient runs from color 2 at the horizon-down end to color 1 at the
    top; a solid sky uses color 1.

    Raises:
        SceneError: If a color is not a six-digit hex value.
    """
    try:
        color1 = parse_hex_color_strict(fields.color1)
        color2 = parse_hex_color_strict(fields.color2) if fields.kind == SkyKind.GRADIENT else color1
    except ValueError as exc:
        raise SceneError(str(exc)) from exc

    if fields.kind == SkyKind.SOLID:
        sky = Sky(SkyKind.SOLID, start=color1, end=color1)
    else:
        sky = Sky(SkyKind.GRADIENT, start=color2, end=color1)
    scene.set_sky(sky)
    return sky

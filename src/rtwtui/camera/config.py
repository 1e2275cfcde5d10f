"""Resolution of raw render fields into a validated camera configuration.

The editing layer stores every camera and quality setting as the text the
user typed. This module turns that text into a CameraConfig for one of two
render budgets:

- Preview: resolution comes from the terminal area (each character row holds
  two pixel rows) and the sample/bounce counts are fixed interactive values.
- Export: resolution, samples, and bounces are taken from the user's fields.

Each field is parsed on its own so that a failure names exactly which input
is invalid.

Example:
    >>> fields = RenderFields(samples="100")
    >>> config = resolve_export_config(fields)
    >>> config.budget.samples
    100
    >>> preview = resolve_preview_config(fields, columns=80, rows=24)
    >>> (preview.width, preview.height, preview.samples)
    (80, 48, 10)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields as dataclass_fields

from src.rtwtui.errors import ConfigParseError, InvalidBudgetError

Vec3Tuple = tuple[float, float, float]

# =============================================================================
# Budget Constants
# =============================================================================

# Fixed budget for the interactive preview, independent of the user's fields
INTERACTIVE_SAMPLES = 10
INTERACTIVE_BOUNCES = 5

# The camera's up vector is not user-editable
WORLD_UP: Vec3Tuple = (0.0, 1.0, 0.0)


@dataclass
class RenderFields:
    """Raw text of every render setting as held by the editing layer.

    Defaults match the values the render form starts with.
    """

    image_width: str = "338"
    image_height: str = "600"
    image_name: str = "image"
    samples: str = "50"
    bounces: str = "15"
    camera_x: str = "-1.0"
    camera_y: str = "0.0"
    camera_z: str = "0.0"
    look_x: str = "0.0"
    look_y: str = "0.0"
    look_z: str = "0.0"
    fov: str = "45.0"
    focus_dist: str = "1.5"
    aperture: str = "0.0"


@dataclass(frozen=True)
class RenderBudget:
    """The (samples, bounces, resolution) triple controlling render cost.

    Attributes:
        samples: Rays cast per pixel (at least 1).
        bounces: Maximum scattering depth per ray (at least 0).
        width: Output width in pixels (at least 1).
        height: Output height in pixels (at least 1).
    """

    samples: int
    bounces: int
    width: int
    height: int


@dataclass(frozen=True)
class CameraConfig:
    """A validated camera configuration for one render invocation.

    Attributes:
        lookfrom: Camera position in world space.
        lookat: Point the camera looks at.
        vup: Up direction, always (0, 1, 0).
        vfov: Vertical field of view in degrees, strictly inside (0, 180).
        focus_dist: Distance from the camera to the plane of perfect focus.
        aperture: Defocus angle in degrees; 0 disables lens blur.
        width: Output width in pixels.
        height: Output height in pixels.
        samples: Samples per pixel.
        bounces: Maximum bounce depth.
    """

    lookfrom: Vec3Tuple
    lookat: Vec3Tuple
    vup: Vec3Tuple
    vfov: float
    focus_dist: float
    aperture: float
    width: int
    height: int
    samples: int
    bounces: int

    @property
    def budget(self) -> RenderBudget:
        """The render budget this configuration was resolved with."""
        return RenderBudget(self.samples, self.bounces, self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height of the output image."""
        return self.width / self.height


# =============================================================================
# Field Parsing
# =============================================================================


def parse_float_field(name: str, text: str) -> float:
    """Parse one text field as a finite float.

    Raises:
        ConfigParseError: If the text is not a finite number.
    """
    try:
        value = float(text.strip())
    except ValueError:
        raise ConfigParseError(name, text, "expected a number") from None
    if not math.isfinite(value):
        raise ConfigParseError(name, text, "expected a finite number")
    return value


def parse_uint_field(name: str, text: str) -> int:
    """Parse one text field as an unsigned integer.

    Raises:
        ConfigParseError: If the text is not a non-negative whole number.
    """
    stripped = text.strip()
    if not stripped.isdecimal():
        raise ConfigParseError(name, text, "expected a whole number")
    return int(stripped)


def _parse_camera_fields(fields: RenderFields) -> dict[str, float]:
    return {
        name: parse_float_field(name, getattr(fields, name))
        for name in (
            "camera_x",
            "camera_y",
            "camera_z",
            "look_x",
            "look_y",
            "look_z",
            "fov",
            "focus_dist",
            "aperture",
        )
    }


def _build_config(values: dict[str, float], budget: RenderBudget) -> CameraConfig:
    """Range-check parsed values and assemble the CameraConfig."""
    if budget.width < 1:
        raise InvalidBudgetError("image_width", f"Image width must be at least 1, got {budget.width}")
    if budget.height < 1:
        raise InvalidBudgetError(
            "image_height", f"Image height must be at least 1, got {budget.height}"
        )
    if budget.samples < 1:
        raise InvalidBudgetError("samples", f"Samples must be at least 1, got {budget.samples}")

    fov = values["fov"]
    if not 0.0 < fov < 180.0:
        raise InvalidBudgetError("fov", f"Field of view must be between 0 and 180, got {fov}")
    if values["focus_dist"] <= 0.0:
        raise InvalidBudgetError(
            "focus_dist", f"Focus distance must be positive, got {values['focus_dist']}"
        )
    if values["aperture"] < 0.0:
        raise InvalidBudgetError(
            "aperture", f"Blur amount must not be negative, got {values['aperture']}"
        )

    lookfrom = (values["camera_x"], values["camera_y"], values["camera_z"])
    lookat = (values["look_x"], values["look_y"], values["look_z"])
    if lookfrom == lookat:
        raise InvalidBudgetError("look_x", "Camera position and look-at point must differ")

    return CameraConfig(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=WORLD_UP,
        vfov=fov,
        focus_dist=values["focus_dist"],
        aperture=values["aperture"],
        width=budget.width,
        height=budget.height,
        samples=budget.samples,
        bounces=budget.bounces,
    )


# =============================================================================
# Public Resolvers
# =============================================================================


def preview_budget(columns: int, rows: int) -> RenderBudget:
    """Build the fixed interactive budget for a character area.

    Each character row holds two pixel rows, so the pixel height is twice
    the number of rows.
    """
    return RenderBudget(INTERACTIVE_SAMPLES, INTERACTIVE_BOUNCES, columns, rows * 2)


def resolve_preview_config(fields: RenderFields, columns: int, rows: int) -> CameraConfig:
    """Resolve fields for a preview of the given character area.

    The stored quality fields (width, height, samples, bounces) are ignored.

    Args:
        fields: The raw render fields.
        columns: Character columns available for the preview.
        rows: Character rows available for the preview.

    Returns:
        A CameraConfig using the interactive budget.

    Raises:
        ConfigParseError: If a camera field is not numeric.
        InvalidBudgetError: If the area is empty or a value is out of range.
    """
    values = _parse_camera_fields(fields)
    return _build_config(values, preview_budget(columns, rows))


def resolve_export_config(fields: RenderFields) -> CameraConfig:
    """Resolve fields for a full-quality export render.

    Raises:
        ConfigParseError: If any field is not numeric.
        InvalidBudgetError: If a value is out of range.
    """
    values = _parse_camera_fields(fields)
    budget = RenderBudget(
        samples=parse_uint_field("samples", fields.samples),
        bounces=parse_uint_field("bounces", fields.bounces),
        width=parse_uint_field("image_width", fields.image_width),
        height=parse_uint_field("image_height", fields.image_height),
    )
    return _build_config(values, budget)


def resolve_all(fields: RenderFields) -> dict[str, str]:
    """Validate every field of an export configuration at once.

    Unlike resolve_export_config(), this does not stop at the first failure,
    so the editing layer can highlight every invalid input together.

    Returns:
        Mapping of field name to error message; empty if everything is valid.
    """
    errors: dict[str, str] = {}
    for f in dataclass_fields(fields):
        if f.name == "image_name":
            continue
        text = getattr(fields, f.name)
        try:
            if f.name in ("image_width", "image_height", "samples", "bounces"):
                parse_uint_field(f.name, text)
            else:
                parse_float_field(f.name, text)
        except ConfigParseError as exc:
            errors[f.name] = str(exc)

    if not errors:
        try:
            resolve_export_config(fields)
        except InvalidBudgetError as exc:
            errors[exc.field] = str(exc)
    return errors

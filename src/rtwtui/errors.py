"""Exception types raised by the render pipeline.

Every error derives from RenderError so the front end can report any
pipeline failure in one place, while still matching the builtin exception
family it belongs to (ValueError for bad input, RuntimeError for evaluator
failures, OSError for writes).
"""


class RenderError(Exception):
    """Base class for all render pipeline errors."""


class ConfigParseError(RenderError, ValueError):
    """A single text field could not be parsed as a number.

    Attributes:
        field: Name of the field that failed (e.g. "camera_x", "samples").
        value: The raw text that was rejected.
    """

    def __init__(self, field: str, value: str, reason: str = "") -> None:
        self.field = field
        self.value = value
        message = f"Invalid {field}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidBudgetError(RenderError, ValueError):
    """A parsed value is out of range, e.g. a zero-sized output."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class CapabilityError(RenderError, RuntimeError):
    """The camera or scene evaluator failed while producing a sample."""


class ExportError(RenderError, OSError):
    """Writing the rendered image to disk failed."""


class SceneError(RenderError, ValueError):
    """An object, material, or sky could not be built from its fields."""

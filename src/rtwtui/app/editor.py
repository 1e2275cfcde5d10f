"""One-line forms for composing the scene from the terminal.

Each form edits one of the builder's field records in place and saves it
through the matching builder:

    n  New object    type, size, x, y, z, material   -> save_object
    m  New material  type, color, property, name     -> save_material
    k  Sky           type, color 1, color 2          -> save_sky

Text entries take typed characters and backspace. Choice entries cycle with
the up and down arrows. Tab and the left/right arrows move between entries,
Enter saves and Esc closes the form. A failed save raises SceneError and
leaves the form open so the field can be corrected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from src.rtwtui.scene.builder import (
    OBJECT_TYPES,
    MaterialFields,
    ObjectFields,
    SkyFields,
    save_material,
    save_object,
    save_sky,
)
from src.rtwtui.scene.manager import MaterialKind, Scene, SkyKind

BACKSPACE_KEYS = ("\x7f", "\x08")
ENTER_KEYS = ("\n", "\r")


@dataclass
class FormEntry:
    """One editable attribute of a field record.

    Attributes:
        label: Name shown in the form line.
        attr: Attribute of the record being edited.
        choices: For choice entries, returns the allowed (value, label)
            pairs. None for free text.
    """

    label: str
    attr: str
    choices: Callable[[], list[tuple[Any, str]]] | None = None


class FormEditor:
    """Edits a field record one key at a time."""

    def __init__(
        self,
        title: str,
        record: Any,
        entries: list[FormEntry],
        save: Callable[[Any], Any],
    ) -> None:
        self.title = title
        self.record = record
        self.entries = entries
        self._save = save
        self.current = 0
        self.closed = False
        self.saved = False

    def _value_label(self, entry: FormEntry) -> str:
        value = getattr(self.record, entry.attr)
        if entry.choices is None:
            return value
        for choice, label in entry.choices():
            if choice == value:
                return label
        return "-"

    def _cycle(self, entry: FormEntry, step: int) -> None:
        choices = [value for value, _ in entry.choices()]
        if not choices:
            return
        value = getattr(self.record, entry.attr)
        index = choices.index(value) if value in choices else -step
        setattr(self.record, entry.attr, choices[(index + step) % len(choices)])

    def handle_key(self, key: str) -> None:
        """Apply one key press to the form.

        Raises:
            SceneError: If Enter was pressed and the record does not validate.
        """
        entry = self.entries[self.current]
        if key == "ESC":
            self.closed = True
        elif key in ENTER_KEYS:
            self._save(self.record)
            self.saved = True
            self.closed = True
        elif key in ("\t", "RIGHT"):
            self.current = (self.current + 1) % len(self.entries)
        elif key in ("BACKTAB", "LEFT"):
            self.current = (self.current - 1) % len(self.entries)
        elif entry.choices is not None:
            if key in ("UP", "DOWN"):
                self._cycle(entry, 1 if key == "UP" else -1)
        elif key in BACKSPACE_KEYS:
            setattr(self.record, entry.attr, getattr(self.record, entry.attr)[:-1])
        elif len(key) == 1 and key.isprintable():
            setattr(self.record, entry.attr, getattr(self.record, entry.attr) + key)

    def describe(self) -> str:
        """Render the form as one status line, the current entry in brackets."""
        parts = []
        for i, entry in enumerate(self.entries):
            text = f"{entry.label}: {self._value_label(entry)}"
            parts.append(f"[{text}]" if i == self.current else text)
        return f"{self.title}  " + "  ".join(parts)


# =============================================================================
# Forms
# =============================================================================


def object_form(scene: Scene, record: ObjectFields) -> FormEditor:
    """Form adding a sphere or plane to ``scene``."""
    return FormEditor(
        "New object",
        record,
        [
            FormEntry("type", "type_index", lambda: list(enumerate(OBJECT_TYPES))),
            FormEntry("size", "size"),
            FormEntry("x", "position_x"),
            FormEntry("y", "position_y"),
            FormEntry("z", "position_z"),
            FormEntry(
                "material",
                "material_index",
                lambda: [(i, m.name) for i, m in enumerate(scene.materials)],
            ),
        ],
        lambda fields: save_object(scene, fields),
    )


def material_form(scene: Scene, record: MaterialFields) -> FormEditor:
    """Form adding a named material to ``scene``'s material table."""
    # A saved form clears its type; opening it again starts from diffuse
    if record.kind is None:
        record.kind = MaterialKind.DIFFUSE
    return FormEditor(
        "New material",
        record,
        [
            FormEntry("type", "kind", lambda: [(k, k.label) for k in MaterialKind]),
            FormEntry("color", "color"),
            FormEntry("property", "other"),
            FormEntry("name", "name"),
        ],
        lambda fields: save_material(scene, fields),
    )


def sky_form(scene: Scene, record: SkyFields) -> FormEditor:
    """Form replacing ``scene``'s sky."""
    return FormEditor(
        "Sky",
        record,
        [
            FormEntry("type", "kind", lambda: [(k, k.name.title()) for k in SkyKind]),
            FormEntry("color 1", "color1"),
            FormEntry("color 2", "color2"),
        ],
        lambda fields: save_sky(scene, fields),
    )

"""Command-line entry point: interactive terminal preview or headless render.

Usage:
    python -m src.rtwtui [options]

Options:
    --width WIDTH           Export image width in pixels (default: 338)
    --height HEIGHT         Export image height in pixels (default: 600)
    --samples SAMPLES       Export samples per pixel (default: 50)
    --bounces BOUNCES       Export maximum bounces (default: 15)
    --camera X Y Z          Camera position (default: -1 0 0)
    --look-at X Y Z         Point the camera looks at (default: 0 0 0)
    --fov DEGREES           Vertical field of view (default: 45)
    --focus-dist DIST       Distance to the focal plane (default: 1.5)
    --aperture DEGREES      Defocus angle; 0 disables blur (default: 0)
    --output PATH           Export file (default: image.png)
    --render                Render the export image without the terminal UI
    --arch ARCH             Taichi backend: cpu, gpu, cuda, vulkan, metal
    --seed SEED             Seed for camera jitter and Taichi sampling
    --verbose               Log render details to stderr

Interactive keys:
    p        Toggle the live preview; with it off the object list is shown
    Esc      Leave the preview
    n        Add a sphere or plane
    m        Add a material
    k        Change the sky
    arrows   Move the camera left/right and forward/back
    w / s    Move the camera up / down
    + / -    Narrow / widen the field of view
    f        Full render to the output file, with a progress gauge; Esc
             cancels it, other keys are handled once it ends
    q        Quit

Example:
    python -m src.rtwtui --render --width 320 --height 180 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import fields as dataclass_fields
from pathlib import Path

import taichi as ti

from src.rtwtui.app.editor import FormEditor, material_form, object_form, sky_form
from src.rtwtui.camera.config import RenderFields, parse_float_field
from src.rtwtui.errors import RenderError
from src.rtwtui.preview.terminal import cells_to_ansi
from src.rtwtui.scene.builder import MaterialFields, ObjectFields, SkyFields

logger = logging.getLogger(__name__)

_DEFAULTS = RenderFields()

# Camera movement per key press, in world units
MOVE_STEP = 0.1
FOV_STEP = 5.0

# Seconds to wait for a key between preview frames
POLL_INTERVAL = 0.05


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Numeric render settings are kept as text so they are validated, and
    reported by field name, the same way as in the interactive editor.
    """
    parser = argparse.ArgumentParser(
        prog="rtwtui",
        description="Compose a scene in the terminal and render it.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", default=_DEFAULTS.image_width, help="Export width in pixels (default: %(default)s)")
    parser.add_argument("--height", default=_DEFAULTS.image_height, help="Export height in pixels (default: %(default)s)")
    parser.add_argument("--samples", default=_DEFAULTS.samples, help="Export samples per pixel (default: %(default)s)")
    parser.add_argument("--bounces", default=_DEFAULTS.bounces, help="Export maximum bounces (default: %(default)s)")
    parser.add_argument(
        "--camera",
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=[_DEFAULTS.camera_x, _DEFAULTS.camera_y, _DEFAULTS.camera_z],
        help="Camera position",
    )
    parser.add_argument(
        "--look-at",
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=[_DEFAULTS.look_x, _DEFAULTS.look_y, _DEFAULTS.look_z],
        help="Point the camera looks at",
    )
    parser.add_argument("--fov", default=_DEFAULTS.fov, help="Vertical field of view in degrees (default: %(default)s)")
    parser.add_argument("--focus-dist", default=_DEFAULTS.focus_dist, help="Focal plane distance (default: %(default)s)")
    parser.add_argument("--aperture", default=_DEFAULTS.aperture, help="Defocus angle in degrees (default: %(default)s)")
    parser.add_argument("--output", type=str, default=None, help="Export file (default: image.png)")
    parser.add_argument("--render", action="store_true", help="Render the export image without the terminal UI")
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu", "cuda", "vulkan", "metal"),
        default="cpu",
        help="Taichi backend (default: %(default)s)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible renders")
    parser.add_argument("--verbose", action="store_true", help="Log render details to stderr")
    return parser.parse_args(argv)


def fields_from_args(args: argparse.Namespace) -> RenderFields:
    """Build the render fields from parsed arguments."""
    return RenderFields(
        image_width=args.width,
        image_height=args.height,
        samples=args.samples,
        bounces=args.bounces,
        camera_x=args.camera[0],
        camera_y=args.camera[1],
        camera_z=args.camera[2],
        look_x=args.look_at[0],
        look_y=args.look_at[1],
        look_z=args.look_at[2],
        fov=args.fov,
        focus_dist=args.focus_dist,
        aperture=args.aperture,
    )


def nudge_field(fields: RenderFields, name: str, delta: float) -> None:
    """Add ``delta`` to a numeric field, keeping it as text.

    Raises:
        ConfigParseError: If the field does not currently hold a number.
    """
    value = parse_float_field(name, getattr(fields, name)) + delta
    setattr(fields, name, f"{round(value, 6):g}")


def _progress_bar(fraction: float, width: int = 40) -> str:
    filled = int(fraction * width)
    return "[" + "#" * filled + "-" * (width - filled) + f"] {fraction:6.1%}"


# =============================================================================
# Headless render
# =============================================================================


def render_headless(controller, fields: RenderFields, output: Path | None) -> Path:
    """Run a full render, printing a progress bar after every scanline."""
    start_time = time.time()

    def progress_callback(fraction: float) -> None:
        print(f"\r  Rendering {_progress_bar(fraction)}", end="", flush=True)

    path = controller.run_full_render(fields, output, progress_callback)
    print()  # Newline after progress
    print(f"Saved to: {path.absolute()}")
    print(f"Total time: {time.time() - start_time:.2f}s")
    return path


# =============================================================================
# Interactive terminal UI
# =============================================================================


class TerminalApp:
    """Event loop tying key presses to the scene editor and render controller.

    Keys pressed while a full render runs are kept and handled once it ends,
    except Esc, which cancels the render.
    """

    def __init__(self, session, controller, fields: RenderFields, output: Path | None) -> None:
        self.session = session
        self.controller = controller
        self.fields = fields
        self.output = output
        self.previewing = True
        self.dirty = True
        self.running = True
        self.message = ""
        self.editor: FormEditor | None = None
        self.object_fields = ObjectFields()
        self.material_fields = MaterialFields()
        self.sky_fields = SkyFields()
        self._pending_keys: list[str] = []
        self._last_size: tuple[int, int] | None = None

    @property
    def scene(self):
        return self.controller.scene

    def _image_area(self) -> tuple[int, int]:
        columns, lines = self.session.size()
        # Bottom two lines hold the status and the help line
        return columns, max(1, lines - 2)

    def _draw_status(self) -> None:
        _, lines = self.session.size()
        if self.editor is not None:
            self.session.status(self.editor.describe(), lines - 1)
            self.session.status("tab/left/right field  up/down choose  enter save  esc close", lines)
            return
        mode = self.controller.mode.value
        self.session.status(f"[{mode}] {len(self.scene.objects)} objects  {self.message}", lines - 1)
        self.session.status(
            "p preview  n object  m material  k sky  arrows/w/s move  +/- fov  f render  q quit", lines
        )

    def _draw_preview(self) -> None:
        columns, rows = self._image_area()
        cells = self.controller.preview_frame(self.fields, columns, rows)
        self.session.draw(cells_to_ansi(cells))

    def _draw_scene_info(self) -> None:
        _, rows = self._image_area()
        self.session.clear()
        lines = [f"{'Type':<8}{'Size':<8}{'Position':<24}Material"]
        for kind, size, position, material in self.scene.as_info_rows():
            lines.append(f"{kind:<8}{size:<8}{position:<24}{material}")
        for line, text in enumerate(lines[:rows], start=1):
            self.session.status(text, line)

    def _full_render(self) -> None:
        job = self.controller.start_full_render(self.fields, self.output)
        _, lines = self.session.size()
        try:
            for fraction in job.render_progressive():
                self.session.status(f"Rendering {_progress_bar(fraction)}  (esc to cancel)", lines - 1)
                for key in self.session.poll_keys():
                    if key == "ESC":
                        self.controller.abandon_full_render()
                        self.message = "Render cancelled"
                        return
                    self._pending_keys.append(key)
        except Exception:
            self.controller.abandon_full_render()
            raise
        path = self.controller.finish_full_render(job)
        self.message = f"Saved {path}"

    def _open_form(self, key: str) -> None:
        if key == "n":
            self.editor = object_form(self.scene, self.object_fields)
        elif key == "m":
            self.editor = material_form(self.scene, self.material_fields)
        else:
            self.editor = sky_form(self.scene, self.sky_fields)

    def _edit(self, key: str) -> None:
        editor = self.editor
        try:
            editor.handle_key(key)
        finally:
            self.dirty = True
        if editor.closed:
            self.editor = None
            if editor.saved:
                self.message = f"{editor.title} saved"

    def handle_key(self, key: str) -> None:
        """Apply one key press.

        Raises:
            RenderError: If an edit or a render fails; the caller reports it.
        """
        if self.editor is not None:
            self._edit(key)
            return

        moves = {
            "LEFT": ("camera_z", -MOVE_STEP),
            "RIGHT": ("camera_z", MOVE_STEP),
            "UP": ("camera_x", MOVE_STEP),
            "DOWN": ("camera_x", -MOVE_STEP),
            "w": ("camera_y", MOVE_STEP),
            "s": ("camera_y", -MOVE_STEP),
            "+": ("fov", -FOV_STEP),
            "-": ("fov", FOV_STEP),
        }
        if key == "q":
            self.running = False
        elif key == "p":
            self.previewing = not self.previewing
            if not self.previewing:
                self.controller.leave_preview()
        elif key == "ESC":
            self.previewing = False
            self.controller.leave_preview()
        elif key in ("n", "m", "k"):
            self._open_form(key)
        elif key == "f":
            self._full_render()
        elif key in moves:
            name, delta = moves[key]
            nudge_field(self.fields, name, delta)
        else:
            return
        self.dirty = True

    def run(self) -> None:
        self.session.clear()
        while self.running:
            # The preview refreshes every pass; other views only when changed
            if self.dirty or self.previewing:
                if self.previewing:
                    try:
                        self._draw_preview()
                    except RenderError as exc:
                        self.previewing = False
                        self.message = str(exc)
                if not self.previewing:
                    self._draw_scene_info()
                self._draw_status()
                self.dirty = False

            keys, self._pending_keys = self._pending_keys, []
            keys += self.session.poll_keys(0.0 if keys else POLL_INTERVAL)
            for key in keys:
                try:
                    self.handle_key(key)
                except RenderError as exc:
                    self.message = str(exc)
                    self.dirty = True
                if not self.running:
                    break

            if self.session.size() != self._last_size:
                self._last_size = self.session.size()
                self.session.clear()
                self.dirty = True


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize Taichi first (before constructing the evaluator's fields)
    init_kwargs = {"arch": getattr(ti, args.arch)}
    if args.seed is not None:
        init_kwargs["random_seed"] = args.seed
    ti.init(**init_kwargs)

    # Lazy imports so Taichi is initialized first
    from src.rtwtui.app.terminal import TerminalSession
    from src.rtwtui.preview.controller import RenderModeController
    from src.rtwtui.scene.evaluator import TaichiSceneEvaluator
    from src.rtwtui.scene.manager import create_demo_scene

    fields = fields_from_args(args)
    output = Path(args.output) if args.output else None
    controller = RenderModeController(create_demo_scene(), TaichiSceneEvaluator(), seed=args.seed)
    logger.debug("Render fields: %s", {f.name: getattr(fields, f.name) for f in dataclass_fields(fields)})

    if args.render:
        try:
            render_headless(controller, fields, output)
            return 0
        except RenderError as e:
            print(f"\nError: {e}", file=sys.stderr)
            return 1

    if not sys.stdin.isatty():
        print("Error: the interactive preview needs a terminal; use --render", file=sys.stderr)
        return 2

    try:
        with TerminalSession() as session:
            TerminalApp(session, controller, fields, output).run()
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Half-block packing of display pixels into terminal character cells.

A terminal cell is roughly twice as tall as it is wide. Drawing the upper
half block glyph with independent foreground and background colors lets one
cell show two vertically stacked pixels: the foreground paints the top half
and the background paints the bottom half. A W x H pixel grid therefore
fits in W columns and H / 2 rows.

The rasterizer only arranges pixels that ColorMapper already quantized; it
performs no color conversion of its own.

Example:
    >>> import numpy as np
    >>> pixels = np.zeros((4, 3, 3), dtype=np.uint8)
    >>> cells = rasterize(pixels, columns=80, rows=24)
    >>> len(cells), len(cells[0])
    (2, 3)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

# U+2580 UPPER HALF BLOCK
UPPER_HALF_BLOCK = "▀"

Rgb = tuple[int, int, int]

_RESET = "\033[0m"


@dataclass(frozen=True)
class TerminalCell:
    """One character cell showing two stacked pixels.

    Attributes:
        fg: Color of the top pixel (painted by the glyph).
        bg: Color of the bottom pixel (painted by the cell background).
        glyph: Always the upper half block.
    """

    fg: Rgb
    bg: Rgb
    glyph: str = UPPER_HALF_BLOCK


def _rgb(pixel: npt.NDArray[np.uint8]) -> Rgb:
    return (int(pixel[0]), int(pixel[1]), int(pixel[2]))


def rasterize(
    pixels: npt.NDArray[np.uint8],
    columns: int,
    rows: int,
) -> list[list[TerminalCell]]:
    """Pack a pixel grid into rows of half-block cells.

    Cell (x, r) takes pixel (x, 2r) as foreground and pixel (x, 2r + 1) as
    background. When the image has an odd height, the last pixel row is
    paired with itself so it still shows as a full cell.

    The output never exceeds the destination: columns past ``columns`` and
    rows past ``rows`` are neither read nor emitted.

    Args:
        pixels: Display pixels of shape (H, W, 3), dtype uint8.
        columns: Character columns available at the destination.
        rows: Character rows available at the destination.

    Returns:
        Cell rows, top to bottom; each row lists cells left to right.
    """
    height, width = pixels.shape[0], pixels.shape[1]
    out_width = max(0, min(width, columns))
    out_rows = max(0, min((height + 1) // 2, rows))

    cells: list[list[TerminalCell]] = []
    for r in range(out_rows):
        top = 2 * r
        bottom = min(top + 1, height - 1)
        cells.append(
            [
                TerminalCell(fg=_rgb(pixels[top, x]), bg=_rgb(pixels[bottom, x]))
                for x in range(out_width)
            ]
        )
    return cells


def cells_to_ansi(
    cells: list[list[TerminalCell]],
    origin: tuple[int, int] = (0, 0),
) -> str:
    """Serialize a cell grid as 24-bit ANSI escape sequences.

    Each cell row is placed with an absolute cursor move, so the grid can be
    drawn inside a larger screen layout.

    Args:
        cells: The cell grid from rasterize().
        origin: Zero-based (column, row) of the grid's top-left cell.

    Returns:
        A string ready to write to the terminal, ending with a color reset.
    """
    col0, row0 = origin
    parts: list[str] = []
    for r, line in enumerate(cells):
        parts.append(f"\033[{row0 + r + 1};{col0 + 1}H")
        last: tuple[Rgb, Rgb] | None = None
        for cell in line:
            if (cell.fg, cell.bg) != last:
                fr, fg, fb = cell.fg
                br, bg, bb = cell.bg
                parts.append(f"\033[38;2;{fr};{fg};{fb};48;2;{br};{bg};{bb}m")
                last = (cell.fg, cell.bg)
            parts.append(cell.glyph)
        parts.append(_RESET)
    return "".join(parts)

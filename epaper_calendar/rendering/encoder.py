"""Colour-plane encoding of the composed canvas.

A three-colour panel is driven with two 1-bit planes. The black plane marks
every pixel that must not stay paper white (black and red alike, since the red
layer is printed over it); the red plane marks only the red accent pixels.
"""

from __future__ import annotations

import io
import logging
from enum import Enum

from PIL import Image, ImageChops, ImageOps

from ..core.exceptions import RenderError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "image/png"
# Percent contrast adjustment; +200% stretches levels ninefold around mid-grey.
CONTRAST_PERCENT = 200.0
CONTRAST_FACTOR = ((100.0 + CONTRAST_PERCENT) / 100.0) ** 2
# Red-minus-blue levels below this are grey anti-aliasing, not accent colour.
RED_LEVEL_FLOOR = 16


class OutputMode(str, Enum):
    """Image variants served to the panel."""

    FULL = "full"
    BLACK = "black"
    BLACK_INVERT = "black-invert"
    RED = "red"


def _contrast_table(factor: float) -> list[int]:
    table = []
    for value in range(256):
        boosted = round((value - 127.5) * factor + 127.5)
        table.append(max(0, min(255, boosted)))
    return table


_CONTRAST_LUT = _contrast_table(CONTRAST_FACTOR)
_RED_FLOOR_LUT = [0 if value < RED_LEVEL_FLOOR else value for value in range(256)]


def boost_contrast(canvas: Image.Image) -> Image.Image:
    """Stretch every channel around mid-grey by CONTRAST_FACTOR."""
    return canvas.convert("RGB").point(_CONTRAST_LUT * 3)


def black_plane(canvas: Image.Image, invert: bool = False) -> Image.Image:
    """1-bit plane where black and red pixels are ink (0) and white is paper (255).

    The level of a pixel is the brighter of its green and blue channels, which
    is 0 for both pure black and pure red. Floyd-Steinberg dithering turns the
    level image into bits.
    """
    _red, green, blue = canvas.convert("RGB").split()
    bits = ImageChops.lighter(green, blue).convert("1")
    if invert:
        bits = ImageOps.invert(bits.convert("L")).convert("1", dither=Image.Dither.NONE)
    return bits


def red_plane(canvas: Image.Image) -> Image.Image:
    """RGBA image that is opaque red where the canvas is red and transparent elsewhere."""
    red, _green, blue = canvas.convert("RGB").split()
    level = ImageChops.subtract(red, blue).point(_RED_FLOOR_LUT)
    bits = level.convert("1").convert("L")
    zero = Image.new("L", canvas.size, 0)
    return Image.merge("RGBA", (bits, zero, zero, bits))


def to_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def encode(canvas: Image.Image, output: OutputMode) -> bytes:
    """Contrast-boost ``canvas``, select the plane for ``output`` and return PNG bytes.

    Raises:
        RenderError: If the image cannot be transformed or serialized
    """
    mode = OutputMode(output)
    try:
        boosted = boost_contrast(canvas)
        if mode is OutputMode.FULL:
            image = boosted
        elif mode is OutputMode.BLACK:
            image = black_plane(boosted)
        elif mode is OutputMode.BLACK_INVERT:
            image = black_plane(boosted, invert=True)
        else:
            image = red_plane(boosted)
        data = to_png(image)
    except (OSError, ValueError) as e:
        raise RenderError(f"Failed to encode {mode.value} image: {e}") from e

    logger.debug("Encoded %s plane (%d bytes)", mode.value, len(data))
    return data

"""Font loading for the e-paper layout."""

from __future__ import annotations

import logging
from collections import OrderedDict
from pathlib import Path
from typing import Optional, Union

from PIL import ImageFont
from PIL.ImageFont import FreeTypeFont
from PIL.ImageFont import ImageFont as BuiltinFont

from ..core.exceptions import RenderError

logger = logging.getLogger(__name__)

Font = Union[FreeTypeFont, BuiltinFont]

MAX_FONT_CACHE_SIZE = 24

# Role -> file name inside the configured font directory
FONT_FILES: dict[str, str] = {
    "display": "Anta-Regular.ttf",
    "regular": "ChakraPetch-Regular.ttf",
    "semibold": "ChakraPetch-SemiBold.ttf",
    "bold": "ChakraPetch-Bold.ttf",
    "icons": "materialdesignicons-webfont.ttf",
}


class FontSet:
    """Loads fonts by role and size, with LRU caching.

    Without a font directory every text role uses Pillow's bundled default font
    and the icon role is unavailable (``has_icons`` is False).
    """

    def __init__(self, font_dir: Optional[Path] = None) -> None:
        self.font_dir = Path(font_dir) if font_dir is not None else None
        self._cache: OrderedDict[tuple[str, int], Font] = OrderedDict()

    @property
    def has_icons(self) -> bool:
        return self.font_dir is not None

    def validate(self) -> None:
        """Check every configured font file exists.

        Raises:
            RenderError: If the directory or a font file is missing
        """
        if self.font_dir is None:
            return
        missing = [name for name in FONT_FILES.values() if not (self.font_dir / name).is_file()]
        if missing:
            raise RenderError(f"Missing font files in {self.font_dir}: {', '.join(missing)}")

    def get(self, role: str, size: int) -> Font:
        """Return the font for ``role`` at ``size`` pixels.

        Raises:
            RenderError: If the role is unknown or a configured font cannot be read
        """
        if role not in FONT_FILES:
            raise RenderError(f"Unknown font role {role!r}")

        key = (role, size)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        if self.font_dir is None:
            if role == "icons":
                raise RenderError("Icon font requires a configured font directory")
            font: Font = ImageFont.load_default(size=size)
        else:
            path = self.font_dir / FONT_FILES[role]
            try:
                font = ImageFont.truetype(str(path), size)
            except OSError as e:
                raise RenderError(f"Cannot load font {path}: {e}") from e

        if len(self._cache) >= MAX_FONT_CACHE_SIZE:
            self._cache.popitem(last=False)
        self._cache[key] = font
        return font

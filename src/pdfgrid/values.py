"""Cell value types other than plain strings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from reportlab.lib.utils import ImageReader

from .geometry import Size
from .styles import Brush, Font, Pen, StringFormat


DEFAULT_IMAGE_DPI = 96.0


@dataclass
class TextElement:
    """A run of text carrying its own font, colours and format."""
    text: str
    font: Optional[Font] = None
    brush: Optional[Brush] = None
    pen: Optional[Pen] = None
    string_format: Optional[StringFormat] = None


@dataclass
class GridImage:
    """An image value or cell background.

    The engine never decodes image data; ``source`` is handed to the drawing
    surface as is. Pixel dimensions and resolution give the physical size.
    """
    source: Any
    width_px: int
    height_px: int
    dpi: float = DEFAULT_IMAGE_DPI

    @classmethod
    def from_file(cls, path: Union[str, Path], dpi: float = DEFAULT_IMAGE_DPI) -> "GridImage":
        reader = ImageReader(str(path))
        width_px, height_px = reader.getSize()
        return cls(source=reader, width_px=width_px, height_px=height_px, dpi=dpi)

    @property
    def physical_width(self) -> float:
        return self.width_px / (self.dpi / 72.0)

    @property
    def physical_height(self) -> float:
        return self.height_px / (self.dpi / 72.0)

    @property
    def physical_size(self) -> Size:
        """Size in points."""
        return Size(self.physical_width, self.physical_height)

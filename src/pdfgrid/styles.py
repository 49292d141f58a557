"""Style model for grids, rows and cells, plus built-in style presets."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from reportlab.lib.colors import Color, black, gray, lightgrey, white, HexColor


# Default cell padding (points on every edge)
CELL_PADDING = 3.0
DEFAULT_FONT_SIZE = 9.0


class TextAlignment(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


class VerticalAlignment(Enum):
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


class WordWrap(Enum):
    """How text is broken into lines."""
    NONE = "none"              # Only explicit newlines break lines
    WORD = "word"              # Break between words, split words that do not fit
    CHARACTER = "character"    # Break anywhere


class BorderOverlapStyle(Enum):
    OVERLAP = "overlap"  # Borders centered on the cell edges
    INSIDE = "inside"    # Borders drawn inside the cell, shrinking its content area


class ImagePosition(Enum):
    STRETCH = "stretch"
    CENTER = "center"
    FIT = "fit"
    TILE = "tile"


class StretchOption(Enum):
    """Aspect handling for image cell values."""
    NONE = "none"
    FILL = "fill"
    UNIFORM = "uniform"
    UNIFORM_TO_FILL = "uniform_to_fill"


class GridLines(Enum):
    """Grid line rendering styles used by the built-in presets."""
    FULL_GRID = "full_grid"           # All horizontal + vertical lines
    HORIZONTAL_ONLY = "horizontal"     # Only horizontal lines
    MINIMAL = "minimal"                # Just header/footer lines
    ALTERNATING_ROWS = "alternating"   # Zebra striping
    BOX_BORDERS = "box_borders"        # Outer border + header separator


@dataclass(frozen=True)
class Pen:
    color: Color = black
    width: float = 1.0
    dash: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class Brush:
    color: Color = black


@dataclass(frozen=True)
class Font:
    name: str = "Helvetica"
    size: float = DEFAULT_FONT_SIZE

    @property
    def bold(self) -> "Font":
        return Font(get_bold_font(self.name), self.size)


@dataclass(frozen=True)
class Paddings:
    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    @classmethod
    def all(cls, value: float) -> "Paddings":
        return cls(value, value, value, value)

    @property
    def horizontal(self) -> float:
        return self.left + self.right

    @property
    def vertical(self) -> float:
        return self.top + self.bottom


@dataclass(frozen=True)
class Borders:
    """One pen per edge; None means no line on that edge."""
    left: Optional[Pen] = None
    right: Optional[Pen] = None
    top: Optional[Pen] = None
    bottom: Optional[Pen] = None

    @classmethod
    def all(cls, pen: Optional[Pen]) -> "Borders":
        return cls(pen, pen, pen, pen)

    @classmethod
    def none(cls) -> "Borders":
        return cls()

    @property
    def is_all(self) -> bool:
        """True when all four edges share the same pen."""
        return self.left is not None and self.left == self.right == self.top == self.bottom

    def width_of(self, edge: str) -> float:
        pen = getattr(self, edge)
        return pen.width if pen is not None else 0.0


@dataclass(frozen=True)
class StringFormat:
    alignment: TextAlignment = TextAlignment.LEFT
    line_alignment: VerticalAlignment = VerticalAlignment.TOP
    word_wrap: WordWrap = WordWrap.WORD
    line_spacing: float = 0.0


DEFAULT_BORDERS = Borders.all(Pen(black, 1.0))
DEFAULT_STRING_FORMAT = StringFormat()


@dataclass(frozen=True)
class CellStyle:
    """Per-cell overrides; None falls back to the row and then the grid."""
    font: Optional[Font] = None
    text_brush: Optional[Brush] = None
    text_pen: Optional[Pen] = None
    background_brush: Optional[Brush] = None
    background_image: Optional[Any] = None  # GridImage
    borders: Optional[Borders] = None
    cell_padding: Optional[Paddings] = None
    string_format: Optional[StringFormat] = None


@dataclass(frozen=True)
class RowStyle:
    font: Optional[Font] = None
    text_brush: Optional[Brush] = None
    text_pen: Optional[Pen] = None
    background_brush: Optional[Brush] = None


@dataclass(frozen=True)
class GridStyle:
    font: Optional[Font] = None
    text_brush: Optional[Brush] = None
    text_pen: Optional[Pen] = None
    background_brush: Optional[Brush] = None
    borders: Borders = DEFAULT_BORDERS
    cell_padding: Paddings = field(default_factory=lambda: Paddings.all(CELL_PADDING))
    cell_spacing: float = 0.0
    border_overlap_style: BorderOverlapStyle = BorderOverlapStyle.OVERLAP
    allow_horizontal_overflow: bool = False


DEFAULT_FONT = Font()
DEFAULT_TEXT_BRUSH = Brush(black)


def resolve_style_value(name: str, *styles, default=None):
    """Return the first non-None ``name`` attribute along a style chain.

    The chain is ordered most specific first, e.g. ``(cell, row, grid)``.
    """
    for style in styles:
        if style is None:
            continue
        value = getattr(style, name, None)
        if value is not None:
            return value
    return default


@dataclass(frozen=True)
class StylePreset:
    """Named visual profile applied to a whole grid."""
    name: str
    font_family: str  # Base font name (Helvetica, Times-Roman, Courier)
    font_size: float
    header_font_size: float
    grid_lines: GridLines
    grid_line_width: float
    grid_color: Color
    header_bg_color: Color
    header_text_color: Color
    alternating_row_color: Color  # Used when grid_lines is ALTERNATING_ROWS
    cell_padding: float


BUILTIN_STYLES: Dict[str, StylePreset] = {
    "plain": StylePreset(
        name="plain",
        font_family="Helvetica",
        font_size=9,
        header_font_size=10,
        grid_lines=GridLines.FULL_GRID,
        grid_line_width=0.5,
        grid_color=black,
        header_bg_color=white,
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=3.0,
    ),
    "ledger": StylePreset(
        name="ledger",
        font_family="Courier",
        font_size=8,
        header_font_size=9,
        grid_lines=GridLines.FULL_GRID,
        grid_line_width=0.75,
        grid_color=black,
        header_bg_color=HexColor("#D0D0D0"),
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=2.0,
    ),
    "light": StylePreset(
        name="light",
        font_family="Helvetica",
        font_size=9,
        header_font_size=10,
        grid_lines=GridLines.HORIZONTAL_ONLY,
        grid_line_width=0.5,
        grid_color=gray,
        header_bg_color=HexColor("#E8E8E8"),
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=3.0,
    ),
    "boxed": StylePreset(
        name="boxed",
        font_family="Times-Roman",
        font_size=9,
        header_font_size=10,
        grid_lines=GridLines.BOX_BORDERS,
        grid_line_width=1.0,
        grid_color=black,
        header_bg_color=HexColor("#F0F0F0"),
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=3.0,
    ),
    "striped": StylePreset(
        name="striped",
        font_family="Helvetica",
        font_size=9,
        header_font_size=10,
        grid_lines=GridLines.ALTERNATING_ROWS,
        grid_line_width=0.5,
        grid_color=gray,
        header_bg_color=HexColor("#2C5282"),  # Dark blue
        header_text_color=white,
        alternating_row_color=HexColor("#F0F4F8"),
        cell_padding=4.0,
    ),
    "minimal": StylePreset(
        name="minimal",
        font_family="Helvetica",
        font_size=9,
        header_font_size=10,
        grid_lines=GridLines.MINIMAL,
        grid_line_width=0.5,
        grid_color=HexColor("#CCCCCC"),
        header_bg_color=white,
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=3.0,
    ),
    "compact": StylePreset(
        name="compact",
        font_family="Helvetica",
        font_size=8,
        header_font_size=9,
        grid_lines=GridLines.FULL_GRID,
        grid_line_width=0.25,
        grid_color=lightgrey,
        header_bg_color=HexColor("#EEEEEE"),
        header_text_color=black,
        alternating_row_color=white,
        cell_padding=2.0,
    ),
}


def get_builtin_style(name: str) -> StylePreset:
    """Get a built-in style preset, with fallback to the plain preset."""
    return BUILTIN_STYLES.get(name, BUILTIN_STYLES["plain"])


def get_bold_font(font_family: str) -> str:
    """Get the bold variant of a font family."""
    if font_family == "Times-Roman":
        return "Times-Bold"
    elif font_family.endswith("-Bold"):
        return font_family
    else:
        return f"{font_family}-Bold"


def _preset_borders(preset: StylePreset, first_row: bool, last_row: bool,
                    first_col: bool, last_col: bool, is_header: bool) -> Borders:
    pen = Pen(preset.grid_color, preset.grid_line_width)
    lines = preset.grid_lines
    if lines == GridLines.FULL_GRID:
        return Borders.all(pen)
    if lines == GridLines.HORIZONTAL_ONLY:
        return Borders(top=pen, bottom=pen)
    if lines == GridLines.BOX_BORDERS:
        return Borders(
            left=pen if first_col else None,
            right=pen if last_col else None,
            top=pen if first_row else None,
            bottom=pen if (last_row or is_header) else None,
        )
    # MINIMAL and ALTERNATING_ROWS: top, header separator and bottom only
    return Borders(
        top=pen if first_row else None,
        bottom=pen if (last_row or is_header) else None,
    )


def apply_builtin_style(grid, name: str) -> StylePreset:
    """Apply a built-in preset to a grid's style, header rows and body rows."""
    preset = get_builtin_style(name)
    body_font = Font(preset.font_family, preset.font_size)
    header_font = Font(get_bold_font(preset.font_family), preset.header_font_size)

    grid.style = replace(
        grid.style,
        font=body_font,
        borders=Borders.none(),
        cell_padding=Paddings.all(preset.cell_padding),
    )

    n_cols = len(grid.columns)
    header_rows = list(grid.headers)
    body_rows = list(grid.rows)
    all_rows = [(row, True) for row in header_rows] + [(row, False) for row in body_rows]

    for idx, (row, is_header) in enumerate(all_rows):
        if is_header:
            row.style = RowStyle(
                font=header_font,
                text_brush=Brush(preset.header_text_color),
                background_brush=Brush(preset.header_bg_color),
            )
        elif preset.grid_lines == GridLines.ALTERNATING_ROWS and body_rows.index(row) % 2 == 1:
            row.style = RowStyle(background_brush=Brush(preset.alternating_row_color))
        for col_idx, cell in enumerate(row.cells):
            borders = _preset_borders(
                preset,
                first_row=idx == 0,
                last_row=idx == len(all_rows) - 1,
                first_col=col_idx == 0,
                last_col=col_idx == n_cols - 1,
                is_header=is_header and idx == len(header_rows) - 1,
            )
            cell.style = replace(cell.style or CellStyle(), borders=borders)

    return preset

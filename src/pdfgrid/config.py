"""Render configuration dataclass and YAML loading."""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml
from reportlab.lib.pagesizes import A4, LEGAL, LETTER, landscape

from .exceptions import ConfigError
from .styles import (
    BUILTIN_STYLES, BorderOverlapStyle, Font, GridStyle, Paddings, apply_builtin_style,
)
from .surface import PageLayout


PAGE_SIZES = {
    "letter": LETTER,
    "legal": LEGAL,
    "a4": A4,
}

# Expected type of each setting read from YAML
FIELD_TYPES = {
    "page_size": str,
    "orientation": str,
    "style": str,
    "margin": (int, float),
    "font_family": str,
    "font_size": (int, float),
    "cell_padding": (int, float),
    "cell_spacing": (int, float),
    "border_overlap": str,
    "repeat_header": bool,
    "allow_row_breaking": bool,
    "allow_horizontal_overflow": bool,
    "out_dir": (str, Path),
    "seed": int,
    "demo_rows": int,
}

# Preset overrides; None keeps the preset value
OPTIONAL_FIELDS = {"font_family", "font_size", "cell_padding"}


@dataclass
class RenderConfig:
    """Page and grid settings for rendering a table to PDF."""

    page_size: str = "letter"
    orientation: str = "portrait"  # "portrait" or "landscape"
    margin: float = 36.0  # 0.5 inch margins
    style: str = "plain"  # Built-in style preset name

    # Overrides of the preset; None keeps the preset's value
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    cell_padding: Optional[float] = None

    cell_spacing: float = 0.0
    border_overlap: str = "overlap"  # "overlap" or "inside"
    repeat_header: bool = True
    allow_row_breaking: bool = True
    allow_horizontal_overflow: bool = False

    out_dir: Path = field(default_factory=lambda: Path("out"))
    seed: int = 42
    demo_rows: int = 60

    def __post_init__(self):
        self.validate()
        self.out_dir = Path(self.out_dir)

    def validate(self) -> None:
        """Raise ConfigError for values the renderer cannot use."""
        for name, expected in FIELD_TYPES.items():
            value = getattr(self, name)
            if value is None and name in OPTIONAL_FIELDS:
                continue
            if (isinstance(value, bool) and expected is not bool) or not isinstance(value, expected):
                raise ConfigError(f"Invalid value for {name}", f"{value!r} is a {type(value).__name__}")
        if self.page_size not in PAGE_SIZES:
            raise ConfigError("Unknown page size",
                              f"{self.page_size!r}; expected one of {sorted(PAGE_SIZES)}")
        if self.orientation not in ("portrait", "landscape"):
            raise ConfigError("Unknown orientation", repr(self.orientation))
        if self.style not in BUILTIN_STYLES:
            raise ConfigError("Unknown style preset",
                              f"{self.style!r}; expected one of {sorted(BUILTIN_STYLES)}")
        if self.border_overlap not in [s.value for s in BorderOverlapStyle]:
            raise ConfigError("Unknown border overlap style", repr(self.border_overlap))
        if self.margin < 0 or self.cell_spacing < 0:
            raise ConfigError("Margins and cell spacing must not be negative")
        if self.font_size is not None and self.font_size <= 0:
            raise ConfigError("Font size must be positive", repr(self.font_size))
        if self.demo_rows < 0:
            raise ConfigError("Demo row count must not be negative", repr(self.demo_rows))

    @classmethod
    def from_yaml(cls, path: Path) -> "RenderConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError("Invalid YAML", f"{path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping", str(path))
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError("Unknown configuration keys", ", ".join(unknown))

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["out_dir"] = str(self.out_dir)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def page_layout(self) -> PageLayout:
        width, height = PAGE_SIZES[self.page_size]
        if self.orientation == "landscape":
            width, height = landscape((width, height))
        return PageLayout(
            page_width=width,
            page_height=height,
            margin_left=self.margin,
            margin_right=self.margin,
            margin_top=self.margin,
            margin_bottom=self.margin,
            orientation=self.orientation,
        )

    def grid_style(self, base: Optional[GridStyle] = None) -> GridStyle:
        """Grid style with this configuration's overrides applied."""
        style = replace(
            base or GridStyle(),
            cell_spacing=self.cell_spacing,
            border_overlap_style=BorderOverlapStyle(self.border_overlap),
            allow_horizontal_overflow=self.allow_horizontal_overflow,
        )
        if self.font_family or self.font_size:
            font = style.font or Font()
            style = replace(style, font=Font(self.font_family or font.name,
                                             self.font_size or font.size))
        if self.cell_padding is not None:
            style = replace(style, cell_padding=Paddings.all(self.cell_padding))
        return style

    def apply(self, grid) -> None:
        """Apply the style preset, overrides and pagination flags to a grid."""
        apply_builtin_style(grid, self.style)
        grid.style = self.grid_style(grid.style)
        grid.repeat_header = self.repeat_header
        grid.allow_row_breaking_across_pages = self.allow_row_breaking


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load config from path or return default config."""
    if path is None:
        return RenderConfig()
    return RenderConfig.from_yaml(path)

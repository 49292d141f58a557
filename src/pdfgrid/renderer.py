"""Cell drawing: background, background image, borders and content."""

import logging
from typing import List, Optional

from .geometry import Point, Rect, Size
from .styles import BorderOverlapStyle, ImagePosition, StretchOption
from .values import GridImage


logger = logging.getLogger(__name__)


def position_image(image: GridImage, bounds: Rect, position: ImagePosition) -> List[Rect]:
    """Rectangles to draw ``image`` at inside ``bounds``.

    TILE returns every tile, including partial ones on the right and bottom
    edges; the caller clips them to ``bounds``.
    """
    if position == ImagePosition.CENTER:
        return [Rect(bounds.x + bounds.width / 4, bounds.y + bounds.height / 4,
                     bounds.width / 2, bounds.height / 2)]
    if position == ImagePosition.FIT:
        if image.physical_height > image.physical_width:
            return [Rect(bounds.x + bounds.width / 4, bounds.y, bounds.width / 2, bounds.height)]
        return [Rect(bounds.x, bounds.y + bounds.height / 4, bounds.width, bounds.height / 2)]
    if position == ImagePosition.TILE:
        tile_w, tile_h = image.physical_width, image.physical_height
        if tile_w <= 0 or tile_h <= 0:
            return []
        tiles = []
        y = bounds.y
        while y < bounds.bottom:
            x = bounds.x
            while x < bounds.right:
                tiles.append(Rect(x, y, tile_w, tile_h))
                x += tile_w
            y += tile_h
        return tiles
    return [bounds]


def stretch_image(image: GridImage, bounds: Rect, option: StretchOption) -> Size:
    """Size to draw an image value at inside its content area."""
    width, height = image.physical_width, image.physical_height
    if option in (StretchOption.NONE, StretchOption.FILL):
        return Size(bounds.width, bounds.height)

    # UNIFORM and UNIFORM_TO_FILL: shrink to fit keeping the aspect ratio
    if width > bounds.width:
        ratio = width / bounds.width
        width = bounds.width
        height = height / ratio
    if height > bounds.height:
        ratio = height / bounds.height
        height = bounds.height
        width = width / ratio
    if width < bounds.width and height < bounds.height:
        space_x = bounds.width - width
        space_y = bounds.height - height
        if space_x < space_y:
            ratio = width / bounds.width
            width = bounds.width
            height = height / ratio
        else:
            ratio = height / bounds.height
            height = bounds.height
            width = width / ratio

    if option == StretchOption.UNIFORM_TO_FILL:
        if width == bounds.width and height < bounds.height:
            ratio = height / bounds.height
            height = bounds.height
            width = width / ratio
        if height == bounds.height and width < bounds.width:
            ratio = width / bounds.width
            width = bounds.width
            height = height / ratio
    return Size(width, height)


class CellRenderer:
    """Draws one cell's decoration and leaf content on a drawing surface."""

    def __init__(self, surface):
        self.surface = surface

    def draw_background(self, cell, bounds: Rect):
        brush = cell.background_brush
        if brush is not None:
            self.surface.draw_rect(bounds, brush=brush)
        image = cell.background_image
        if image is not None:
            self._draw_positioned_image(image, bounds, cell.image_position)

    def _draw_positioned_image(self, image: GridImage, bounds: Rect, position: ImagePosition):
        rects = position_image(image, bounds, position)
        if position == ImagePosition.TILE:
            self.surface.push_clip(bounds)
            for rect in rects:
                self.surface.draw_image(image, rect)
            self.surface.pop_clip()
        else:
            for rect in rects:
                self.surface.draw_image(image, rect)

    def draw_borders(self, cell, bounds: Rect):
        borders = cell.borders
        grid = cell.grid
        inside = grid is not None and grid.style.border_overlap_style == BorderOverlapStyle.INSIDE
        surface = self.surface

        if inside:
            if borders.is_all:
                pen = borders.left
                half = pen.width / 2
                surface.draw_rect(
                    Rect(bounds.x + half, bounds.y + half,
                         bounds.width - pen.width, bounds.height - pen.width),
                    pen=pen,
                )
                return
            if borders.left is not None:
                x = bounds.x + borders.left.width / 2
                surface.draw_line(borders.left, Point(x, bounds.y), Point(x, bounds.bottom))
            if borders.top is not None:
                y = bounds.y + borders.top.width / 2
                surface.draw_line(borders.top, Point(bounds.x, y), Point(bounds.right, y))
            if borders.right is not None:
                x = bounds.right - borders.right.width / 2
                surface.draw_line(borders.right, Point(x, bounds.y), Point(x, bounds.bottom))
            if borders.bottom is not None:
                y = bounds.bottom - borders.bottom.width / 2
                surface.draw_line(borders.bottom, Point(bounds.x, y), Point(bounds.right, y))
            return

        client = surface.client_size()
        if borders.left is not None:
            surface.draw_line(borders.left, Point(bounds.x, bounds.y), Point(bounds.x, bounds.bottom))
        if borders.top is not None:
            surface.draw_line(borders.top, Point(bounds.x, bounds.y), Point(bounds.right, bounds.y))
        if borders.right is not None:
            x = bounds.right
            if x > client.width - borders.right.width / 2:
                x = client.width - borders.right.width / 2
            surface.draw_line(borders.right, Point(x, bounds.y), Point(x, bounds.bottom))
        if borders.bottom is not None:
            y = bounds.bottom
            if y > client.height - borders.bottom.width / 2:
                y = client.height - borders.bottom.width / 2
            surface.draw_line(borders.bottom, Point(bounds.x, y), Point(bounds.right, y))

    def content_bounds(self, cell, bounds: Rect) -> Rect:
        left, top, right, bottom = cell.content_insets()
        return bounds.inset(left, top, right, bottom)

    def draw_text(self, cell, content: Rect, force: bool) -> Optional[str]:
        """Draw the cell's pending text and update its carry-over state.

        With ``force`` a content area shorter than one line is stretched to a
        line so that something is drawn.

        Returns:
            The fragment of text drawn on this call
        """
        text = cell.remaining_text if cell.remaining_text is not None else cell.text
        if not text:
            cell.remaining_text = None
            cell.finished = True
            return ""
        font = cell.font
        line_height = self.surface.font_height(font)
        if content.height < line_height:
            if not force:
                cell.remaining_text = text
                cell.finished = False
                return ""
            logger.warning("Cell content area %.1fpt shorter than one line; drawing one line anyway",
                           content.height)
            content = content.with_height(line_height)
        remainder = self.surface.draw_text(
            text, font, cell.text_pen, cell.text_brush, content, cell.resolved_string_format
        )
        cell.remaining_text = remainder
        cell.finished = remainder is None
        return text[:len(text) - len(remainder)] if remainder is not None else text

    def draw_image(self, cell, image: GridImage, content: Rect):
        """Draw an image value clipped to the content area; images never carry over."""
        size = stretch_image(image, content, cell.stretch_option)
        self.surface.push_clip(content)
        if cell.stretch_option == StretchOption.UNIFORM_TO_FILL:
            self.surface.draw_image(image, Rect(content.x, content.y, size.width, size.height))
        else:
            self._draw_positioned_image(
                image, Rect(content.x, content.y, size.width, size.height), cell.image_position
            )
        self.surface.pop_clip()
        cell.finished = True

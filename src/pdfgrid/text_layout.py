"""Flowed text layout: line breaking and height-bounded line fitting.

Lines are tracked as offsets into the source string, so the part of the text
that fits and the part carried to the next page always concatenate back to
the original value.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .geometry import Size
from .styles import DEFAULT_STRING_FORMAT, Font, StringFormat, WordWrap


EPSILON = 1e-6

_WORD_TOKENS = re.compile(r"\S+|\s+")
_CHAR_TOKENS = re.compile(r".", re.DOTALL)


@dataclass
class LayoutLine:
    """One laid-out line. ``start``/``end`` are offsets into the source text."""
    text: str
    width: float
    start: int
    end: int
    paragraph_end: bool = False


@dataclass
class TextLayoutResult:
    lines: List[LayoutLine] = field(default_factory=list)
    size: Size = Size(0.0, 0.0)
    remainder: Optional[str] = None
    consumed: int = 0

    @property
    def fits(self) -> bool:
        return self.remainder is None


class TextLayouter:
    """Break text into lines using a string width function.

    Args:
        string_width: Returns the advance width of a string in a font
        line_height: Returns the height of one line in a font
    """

    def __init__(
        self,
        string_width: Callable[[str, Font], float],
        line_height: Callable[[Font], float],
    ):
        self.string_width = string_width
        self.line_height = line_height

    def layout(
        self,
        text: str,
        font: Font,
        fmt: Optional[StringFormat] = None,
        max_width: Optional[float] = None,
        max_height: Optional[float] = None,
        force_first_line: bool = False,
    ) -> TextLayoutResult:
        """Lay out ``text`` inside an optional width and height.

        A ``None`` bound means unconstrained. With ``force_first_line`` the
        first line is kept even when it is taller than ``max_height``.
        """
        fmt = fmt or DEFAULT_STRING_FORMAT
        if not text:
            return TextLayoutResult()

        lines = self._break_lines(text, font, fmt, max_width)

        lh = self.line_height(font)
        fitted: List[LayoutLine] = []
        height = 0.0
        for line in lines:
            needed = lh if not fitted else lh + fmt.line_spacing
            if max_height is not None and height + needed > max_height + EPSILON:
                break
            fitted.append(line)
            height += needed

        if not fitted and force_first_line:
            fitted.append(lines[0])
            height = lh

        if not fitted:
            return TextLayoutResult(remainder=text)

        consumed = fitted[-1].end
        remainder = text[consumed:] if consumed < len(text) else None
        width = max(line.width for line in fitted)
        return TextLayoutResult(
            lines=fitted,
            size=Size(width, height),
            remainder=remainder,
            consumed=consumed,
        )

    def _break_lines(
        self, text: str, font: Font, fmt: StringFormat, max_width: Optional[float]
    ) -> List[LayoutLine]:
        spans: List[Tuple[int, int, bool]] = []
        start = 0
        while True:
            newline = text.find("\n", start)
            para_end = len(text) if newline < 0 else newline
            para_spans = self._wrap_paragraph(text, start, para_end, font, fmt, max_width)
            if newline >= 0:
                # The newline belongs to the last line of its paragraph
                s, _ = para_spans[-1]
                para_spans[-1] = (s, newline + 1)
            for i, (s, e) in enumerate(para_spans):
                spans.append((s, e, i == len(para_spans) - 1))
            if newline < 0:
                break
            start = newline + 1
            if start == len(text):
                break

        lines = []
        for s, e, last in spans:
            display = text[s:e].rstrip()
            lines.append(LayoutLine(
                text=display,
                width=self.string_width(display, font) if display else 0.0,
                start=s,
                end=e,
                paragraph_end=last,
            ))
        return lines

    def _fits(self, text: str, font: Font, max_width: float) -> bool:
        return self.string_width(text, font) <= max_width + EPSILON

    def _wrap_paragraph(
        self,
        text: str,
        start: int,
        end: int,
        font: Font,
        fmt: StringFormat,
        max_width: Optional[float],
    ) -> List[Tuple[int, int]]:
        if max_width is None or fmt.word_wrap == WordWrap.NONE or start == end:
            return [(start, end)]

        pattern = _CHAR_TOKENS if fmt.word_wrap == WordWrap.CHARACTER else _WORD_TOKENS
        spans = []
        line_start = start
        line_has_content = False

        for match in pattern.finditer(text, start, end):
            tok_start, tok_end = match.span()
            if match.group().isspace():
                continue
            if self._fits(text[line_start:tok_end], font, max_width):
                line_has_content = True
                continue
            if line_has_content:
                spans.append((line_start, tok_start))
                line_start = tok_start
                if self._fits(text[line_start:tok_end], font, max_width):
                    continue
            # A single word wider than the line: split it by characters
            while not self._fits(text[line_start:tok_end], font, max_width):
                cut = self._character_cut(text, line_start, tok_end, font, max_width)
                spans.append((line_start, cut))
                line_start = cut
            line_has_content = line_start < tok_end

        spans.append((line_start, end))
        return spans

    def _character_cut(
        self, text: str, start: int, end: int, font: Font, max_width: float
    ) -> int:
        """Largest offset whose prefix fits, always at least one character."""
        lo, hi = start + 1, end
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self._fits(text[start:mid], font, max_width):
                lo = mid
            else:
                hi = mid - 1
        return lo

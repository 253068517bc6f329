"""
Report layout geometry.

All measurements are millimetres on a portrait A4 page. The renderer
only draws; every number it needs (box widths, last-column width, bar
lengths, percentages, where a page breaks) comes from here.

Page breaks are checked only before a labelled section starts, never
per row. A section taller than the space left on the page overflows the
bottom edge; that is a known limitation of this layout.
"""

import math
from typing import Iterable

# ---------------------------------------------------------------------------
# Page geometry
# ---------------------------------------------------------------------------

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN = 14.0
GUTTER = 3.0

BANNER_HEIGHT = 36.0
CONTENT_TOP = 46.0            # first y below the banner

STAT_BOX_HEIGHT = 18.0
STAT_BLOCK_ADVANCE = 26.0     # box height plus spacing to the next block

SECTION_MARKER_WIDTH = 3.0
SECTION_MARKER_HEIGHT = 7.0
SECTION_ADVANCE = 14.0        # marker + title to first table row
SECTION_GAP = 10.0            # space after a table

HEAD_ROW_HEIGHT = 10.0
BODY_ROW_HEIGHT = 10.0

BAR_INSET = 2.0               # horizontal padding inside the bar cell
BAR_TOP_OFFSET = 2.5
BAR_HEIGHT = 5.0

FOOTER_HEIGHT = 10.0
FOOTER_TEXT_OFFSET = 3.5      # baseline distance from the page bottom

PAGE_BREAK_Y = 210.0          # start a new page when a section would begin below this
NEW_PAGE_Y = 20.0


def content_width(page_width: float = PAGE_WIDTH) -> float:
    return page_width - 2 * MARGIN


def stat_box_width(count: int, page_width: float = PAGE_WIDTH) -> float:
    """Equal box width: available width minus the gutters, split count ways."""
    if count <= 0:
        raise ValueError("count must be positive")
    return (content_width(page_width) - GUTTER * (count - 1)) / count


def stat_box_x(index: int, box_width: float) -> float:
    return MARGIN + index * (box_width + GUTTER)


def fill_width(fixed_widths: Iterable[float], page_width: float = PAGE_WIDTH) -> float:
    """Width left for the last (bar) column after the fixed columns."""
    return content_width(page_width) - sum(fixed_widths)


def column_widths(fixed_widths: list[float], page_width: float = PAGE_WIDTH) -> list[float]:
    return list(fixed_widths) + [fill_width(fixed_widths, page_width)]


def needs_page_break(y: float) -> bool:
    return y > PAGE_BREAK_Y


# ---------------------------------------------------------------------------
# Series arithmetic
# ---------------------------------------------------------------------------

def series_max(values: Iterable[float]) -> float:
    """Largest value, floored at 1 so an empty or all-zero series never divides by zero."""
    return max([*values, 1])


def bar_track_width(cell_width: float) -> float:
    return cell_width - 2 * BAR_INSET


def bar_width(value: float, max_value: float, cell_width: float) -> float:
    """Length of the filled part of an inline bar, proportional to value / max_value."""
    if max_value <= 0:
        return 0.0
    return max(value, 0) / max_value * bar_track_width(cell_width)


def percent_share(value: float, total: float) -> float:
    """value as a percentage of total, with a zero total treated as 1."""
    return value / (total or 1) * 100


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def presence_rate(present: int, total: int) -> int:
    """Whole-number attendance rate; no members means 0%."""
    if total <= 0:
        return 0
    return round_half_up(100 * present / total)

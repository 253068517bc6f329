"""
GymPro analytics PDF export (fpdf2).

Five report types share one renderer:

    complete    four stat boxes + revenue, membership, attendance, products
    revenue     monthly revenue breakdown
    membership  members per plan
    attendance  daily check-ins for the week
    products    supplement ranking by units sold

Every report is a dark branded banner, a row of equal-width stat boxes,
then one or more sections: a coloured marker, a title, and a table whose
last column is an inline bar proportional to value / max(values, 1).
A new page is started only before a section whose start would fall below
the page-break line. Footers ("page X of Y") are stamped in a second
pass once every page exists.

Every drawn bar is recorded as a BarSpec, and every body row as its cell
text in renderer.rows, so the layout can be inspected without parsing
the PDF.

Usage:
    from reports.pdf_export import ReportExporter

    exporter = ReportExporter(aggregator, output_dir="data/reports")
    path = await exporter.export("revenue")
    # data/reports/GymPro_Revenue_Report_2026-10-19.pdf
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from fpdf import FPDF

from core.errors import ExportError
from core.models import format_inr
from reports import layout
from reports.aggregator import REPORT_SOURCES, ReportAggregator, ReportData

logger = logging.getLogger("gympro.reports.pdf")


# ---------------------------------------------------------------------------
# Brand palette (print friendly)
# ---------------------------------------------------------------------------

PRIMARY = (99, 102, 241)     # indigo
ACCENT = (16, 185, 129)      # emerald
DARK = (15, 23, 42)          # slate-900
LIGHT = (248, 250, 252)      # slate-50
BORDER = (226, 232, 240)     # slate-200
MUTED = (100, 116, 139)      # slate-500
WHITE = (255, 255, 255)
SUBTLE = (180, 180, 180)

FONT = "Helvetica"

REPORT_LABELS = {
    "complete": "Complete",
    "revenue": "Revenue",
    "membership": "Membership",
    "attendance": "Attendance",
    "products": "Products",
}


@dataclass
class BarSpec:
    """Geometry of one inline bar as drawn."""
    section: str
    label: str
    value: float
    x: float
    y: float
    width: float
    track_width: float
    page: int


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class ReportRenderer:
    """Draws report primitives onto an A4 portrait fpdf2 document.

    Auto page break is off: page breaks happen only through
    start_section(), so a single oversized table can run off the page.

    Args:
        brand:        Name in the banner, footer and file name.
        generated_at: Timestamp printed in the banner (defaults to now).
    """

    def __init__(self, brand: str = "GymPro", generated_at: datetime | None = None):
        self.brand = brand
        self.generated_at = generated_at or datetime.now()
        self.pdf = FPDF(orientation="P", unit="mm", format="A4")
        self.pdf.set_auto_page_break(auto=False)
        self.pdf.set_margins(layout.MARGIN, layout.MARGIN, layout.MARGIN)
        self.pdf.add_page()
        self.y = layout.CONTENT_TOP
        self.bars: list[BarSpec] = []
        self.rows: dict[str, list[list[str]]] = {}
        self.sections: list[str] = []
        self.footers: list[str] = []

    @property
    def width(self) -> float:
        return self.pdf.w

    @property
    def height(self) -> float:
        return self.pdf.h

    @property
    def page_count(self) -> int:
        return self.pdf.page_no()

    # -------------------------------------------------------------------
    # Chrome
    # -------------------------------------------------------------------

    def header(self, title: str, subtitle: str):
        pdf = self.pdf
        w = self.width

        pdf.set_fill_color(*DARK)
        pdf.rect(0, 0, w, layout.BANNER_HEIGHT, style="F")

        pdf.set_font(FONT, "B", 20)
        pdf.set_text_color(*WHITE)
        brand = _pdf_safe(self.brand)
        pdf.text(layout.MARGIN, 16, brand)

        # Accent dot after the brand name
        pdf.set_fill_color(*PRIMARY)
        dot_x = layout.MARGIN + pdf.get_string_width(brand) + 1.5
        pdf.rect(dot_x, 10.5, 3, 3, style="F", round_corners=True, corner_radius=1.5)

        pdf.set_font(FONT, "B", 11)
        pdf.set_text_color(*ACCENT)
        pdf.text(layout.MARGIN, 26, _pdf_safe(title.upper()))

        pdf.set_font(FONT, "", 8)
        pdf.set_text_color(*SUBTLE)
        pdf.text(layout.MARGIN, 32, _pdf_safe(subtitle))
        stamp = f"Generated: {self.generated_at.strftime('%d %b %Y, %I:%M %p')}"
        pdf.text(w - layout.MARGIN - pdf.get_string_width(stamp), 32, stamp)

        self.y = layout.CONTENT_TOP

    def footer_pass(self):
        """Stamp every existing page with the confidentiality label and page X of Y."""
        pdf = self.pdf
        total = pdf.page_no()
        w, h = self.width, self.height
        self.footers = []
        for number in range(1, total + 1):
            pdf.page = number
            pdf.set_fill_color(*BORDER)
            pdf.rect(0, h - layout.FOOTER_HEIGHT, w, layout.FOOTER_HEIGHT, style="F")
            pdf.set_text_color(*MUTED)
            # Bold then regular so both font selections land in this page's stream
            pdf.set_font(FONT, "B", 7)
            pdf.text(layout.MARGIN, h - layout.FOOTER_TEXT_OFFSET, f"{_pdf_safe(self.brand)} - Confidential Report")
            pdf.set_font(FONT, "", 7)
            label = f"Page {number} of {total}"
            pdf.text(w - layout.MARGIN - pdf.get_string_width(label), h - layout.FOOTER_TEXT_OFFSET, label)
            self.footers.append(label)
        pdf.page = total

    # -------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------

    def stat_boxes(self, items: list[tuple[str, str]]):
        """Row of equal-width label/value boxes at the current y."""
        box_w = layout.stat_box_width(len(items), self.width)
        for index, (label, value) in enumerate(items):
            self._stat_box(label, value, layout.stat_box_x(index, box_w), self.y, box_w)
        self.y += layout.STAT_BLOCK_ADVANCE

    def _stat_box(self, label: str, value: str, x: float, y: float, w: float):
        pdf = self.pdf
        h = layout.STAT_BOX_HEIGHT
        pdf.set_fill_color(*LIGHT)
        pdf.set_draw_color(*BORDER)
        pdf.rect(x, y, w, h, style="DF", round_corners=True, corner_radius=2)

        pdf.set_font(FONT, "", 7)
        pdf.set_text_color(*MUTED)
        pdf.text(x + 4, y + 6, self._fit(label.upper(), w - 8))

        pdf.set_font(FONT, "B", 12)
        pdf.set_text_color(*DARK)
        pdf.text(x + 4, y + 14, self._fit(value, w - 8))

    def start_section(self, title: str, check_page_break: bool = False):
        """Section marker + title. Optionally break to a new page first."""
        if check_page_break and layout.needs_page_break(self.y):
            self.pdf.add_page()
            self.y = layout.NEW_PAGE_Y

        pdf = self.pdf
        pdf.set_fill_color(*PRIMARY)
        pdf.rect(layout.MARGIN, self.y, layout.SECTION_MARKER_WIDTH, layout.SECTION_MARKER_HEIGHT, style="F")
        pdf.set_font(FONT, "B", 11)
        pdf.set_text_color(*DARK)
        pdf.text(layout.MARGIN + 6, self.y + 5.5, _pdf_safe(title))
        self.sections.append(title)
        self.y += layout.SECTION_ADVANCE

    def bar_table(
        self,
        section: str,
        head: list[str],
        rows: list[list[str]],
        fixed_widths: list[float],
        bar_values: list[float],
        label_column: int = 0,
    ):
        """Table whose last column is an inline proportional bar.

        Cell text is kept in self.rows[section], one list per row.

        Args:
            section:      Section name recorded on each BarSpec.
            head:         Column headings, bar column included.
            rows:         Cell text per row, bar column excluded.
            fixed_widths: Widths of every column but the last.
            bar_values:   One value per row; scaled against series_max().
            label_column: Which cell names the row in BarSpec.label.
        """
        pdf = self.pdf
        widths = layout.column_widths(fixed_widths, self.width)
        table_w = sum(widths)
        x0 = layout.MARGIN
        y = self.y
        peak = layout.series_max(bar_values)

        # Head row
        pdf.set_fill_color(*DARK)
        pdf.rect(x0, y, table_w, layout.HEAD_ROW_HEIGHT, style="F")
        pdf.set_font(FONT, "B", 9)
        pdf.set_text_color(*WHITE)
        x = x0
        for heading, col_w in zip(head, widths):
            pdf.text(x + 4, y + 6.5, self._fit(_pdf_safe(heading), col_w - 6))
            x += col_w
        y += layout.HEAD_ROW_HEIGHT

        # Body rows
        pdf.set_font(FONT, "", 9)
        drawn = self.rows.setdefault(section, [])
        for index, (cells, value) in enumerate(zip(rows, bar_values)):
            drawn.append([str(cell) for cell in cells])
            if index % 2 == 1:
                pdf.set_fill_color(*LIGHT)
                pdf.rect(x0, y, table_w, layout.BODY_ROW_HEIGHT, style="F")
            pdf.set_text_color(*DARK)
            x = x0
            for cell, col_w in zip(cells, widths[:-1]):
                pdf.text(x + 4, y + 6.5, self._fit(_pdf_safe(str(cell)), col_w - 6))
                x += col_w
            self._bar(section, str(cells[label_column]), value, peak, x, y, widths[-1])
            y += layout.BODY_ROW_HEIGHT

        self.y = y + layout.SECTION_GAP

    def _bar(self, section: str, label: str, value: float, peak: float, x: float, y: float, cell_w: float):
        pdf = self.pdf
        track = layout.bar_track_width(cell_w)
        filled = layout.bar_width(value, peak, cell_w)
        bar_x = x + layout.BAR_INSET
        bar_y = y + layout.BAR_TOP_OFFSET

        pdf.set_fill_color(*BORDER)
        pdf.rect(bar_x, bar_y, track, layout.BAR_HEIGHT, style="F", round_corners=True, corner_radius=1)
        if filled > 0:
            pdf.set_fill_color(*PRIMARY)
            rounded = filled >= 2
            pdf.rect(bar_x, bar_y, filled, layout.BAR_HEIGHT, style="F",
                     round_corners=rounded, corner_radius=1 if rounded else 0)

        self.bars.append(BarSpec(
            section=section, label=label, value=value, x=bar_x, y=bar_y,
            width=filled, track_width=track, page=self.pdf.page_no(),
        ))

    # -------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------

    def output(self) -> bytes:
        return bytes(self.pdf.output())

    def bars_for(self, section: str) -> list[BarSpec]:
        return [b for b in self.bars if b.section == section]

    def _fit(self, text: str, max_width: float) -> str:
        """Trim text with '...' until it fits max_width at the current font."""
        text = _pdf_safe(text)
        if self.pdf.get_string_width(text) <= max_width:
            return text
        while text and self.pdf.get_string_width(text + "...") > max_width:
            text = text[:-1]
        return text + "..."


# ---------------------------------------------------------------------------
# Report bodies
# ---------------------------------------------------------------------------

def _money(value: float) -> str:
    return f"Rs. {format_inr(value)}"


def _revenue_section(r: ReportRenderer, data: ReportData, title: str, with_share: bool):
    peak = layout.series_max(p.revenue for p in data.revenue)
    r.start_section(title)
    if with_share:
        head = ["Month", "Revenue (Rs.)", "vs Max", "Trend"]
        rows = [[p.month, _money(p.revenue), layout.format_percent(p.revenue / peak * 100, 0)]
                for p in data.revenue]
        fixed = [30, 50, 25]
    else:
        head = ["Month", "Revenue (Rs.)", "Trend"]
        rows = [[p.month, _money(p.revenue)] for p in data.revenue]
        fixed = [30, 45]
    r.bar_table("revenue", head, rows, fixed, [p.revenue for p in data.revenue])


def _membership_section(r: ReportRenderer, data: ReportData, title: str, head: list[str], fixed: list[float]):
    total = sum(m.value for m in data.membership)
    rows = [[m.name, str(m.value), layout.format_percent(layout.percent_share(m.value, total))]
            for m in data.membership]
    r.start_section(title)
    r.bar_table("membership", head, rows, fixed, [m.value for m in data.membership])


def _attendance_section(r: ReportRenderer, data: ReportData, title: str, fixed: list[float], check_page_break: bool):
    rows = [[a.day, str(a.attendance)] for a in data.attendance]
    r.start_section(title, check_page_break=check_page_break)
    r.bar_table("attendance", ["Day", "Check-Ins", "Trend"], rows, fixed,
                [a.attendance for a in data.attendance])


def render_complete(r: ReportRenderer, data: ReportData, revenue_months: int = 6):
    stats = data.stats
    month = r.generated_at.strftime("%B %Y")
    r.header("Complete Analytics Report", f"{month} | {r.brand} Business Analytics")
    r.stat_boxes([
        ("Total Members", str(stats.total_members)),
        ("Active Members", str(stats.active_members)),
        ("Monthly Revenue", _money(stats.monthly_revenue)),
        ("Pending Dues", _money(stats.pending_dues)),
    ])
    _revenue_section(r, data, f"Monthly Revenue (Last {revenue_months} Months)", with_share=False)
    _membership_section(r, data, "Membership Distribution",
                        ["Plan", "Members", "% Share", "Proportion"], [60, 30, 25])
    _attendance_section(r, data, "Weekly Attendance", [30, 35], check_page_break=True)

    r.start_section("Top Products by Sales", check_page_break=True)
    rows = [[f"#{i + 1}", p.name, str(p.sales)] for i, p in enumerate(data.products)]
    r.bar_table("products", ["Rank", "Product", "Units Sold", "Trend"], rows, [15, 55, 30],
                [p.sales for p in data.products], label_column=1)


def render_revenue(r: ReportRenderer, data: ReportData, revenue_months: int = 6):
    stats = data.stats
    r.header("Revenue Report", f"Last {revenue_months} months of income analytics")
    r.stat_boxes([
        ("Total Revenue", _money(stats.total_revenue)),
        ("This Month", _money(stats.monthly_revenue)),
        ("Pending Dues", _money(stats.pending_dues)),
    ])
    _revenue_section(r, data, "Monthly Revenue Breakdown", with_share=True)


def render_membership(r: ReportRenderer, data: ReportData, revenue_months: int = 6):
    stats = data.stats
    r.header("Membership Report", "Distribution of members by plan")
    r.stat_boxes([
        ("Total Members", str(stats.total_members)),
        ("Active Members", str(stats.active_members)),
        ("Expired Members", str(stats.expired_members)),
    ])
    _membership_section(r, data, "Members by Plan",
                        ["Plan Name", "Members", "% of Total", "Distribution"], [60, 25, 30])


def render_attendance(r: ReportRenderer, data: ReportData, revenue_months: int = 6):
    r.header("Attendance Report", "Weekly check-in trend")
    week_total = sum(a.attendance for a in data.attendance)
    busiest = None
    for point in data.attendance:
        if busiest is None or point.attendance > busiest.attendance:
            busiest = point
    r.stat_boxes([
        ("Week Total", str(week_total)),
        ("Busiest Day", busiest.day if busiest else "-"),
        ("Peak Check-Ins", str(busiest.attendance if busiest else 0)),
    ])
    _attendance_section(r, data, "Daily Attendance Breakdown", [35, 35], check_page_break=False)


def render_products(r: ReportRenderer, data: ReportData, revenue_months: int = 6):
    r.header("Product Sales Report", "Top selling supplements this month")
    total_sold = sum(p.sales for p in data.products)
    top = data.products[0] if data.products else None
    r.stat_boxes([
        ("Total Units Sold", str(total_sold)),
        ("Top Product", top.name if top else "-"),
        ("Top Units", str(top.sales if top else 0)),
    ])
    r.start_section("Product Ranking by Units Sold")
    # Ranked by input order; the server sends them sorted
    rows = [
        [f"#{i + 1}", p.name, str(p.sales), layout.format_percent(layout.percent_share(p.sales, total_sold))]
        for i, p in enumerate(data.products)
    ]
    r.bar_table("products", ["Rank", "Product", "Units Sold", "% Share", "Trend"], rows,
                [15, 55, 25, 25], [p.sales for p in data.products], label_column=1)


RENDERERS = {
    "complete": render_complete,
    "revenue": render_revenue,
    "membership": render_membership,
    "attendance": render_attendance,
    "products": render_products,
}


def render_report(
    report_type: str,
    data: ReportData,
    brand: str = "GymPro",
    revenue_months: int = 6,
    generated_at: datetime | None = None,
) -> ReportRenderer:
    """Lay out a full report, footers included. Layout errors propagate."""
    if report_type not in RENDERERS:
        raise ValueError(f"Unknown report type '{report_type}'")
    renderer = ReportRenderer(brand=brand, generated_at=generated_at)
    RENDERERS[report_type](renderer, data, revenue_months)
    renderer.footer_pass()
    return renderer


def report_filename(brand: str, report_type: str, today: date | None = None) -> str:
    """<Brand>_<Type>_Report_<YYYY-MM-DD>.pdf"""
    label = REPORT_LABELS[report_type]
    return f"{brand}_{label}_Report_{(today or date.today()).isoformat()}.pdf"


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------

class ReportExporter:
    """Fetch → lay out → save. One call, one file.

    Args:
        aggregator: Supplies the series.
        output_dir: Where PDFs are written (created on demand).
        brand:      Brand name for banner, footer and file name.
    """

    def __init__(self, aggregator: ReportAggregator, output_dir: str | Path = "data/reports",
                 brand: str = "GymPro"):
        self.aggregator = aggregator
        self.output_dir = Path(output_dir)
        self.brand = brand

    async def export(self, report_type: str, today: date | None = None) -> Path:
        """Export one report and return the saved path.

        Raises:
            ValueError:  unknown report type.
            ApiError:    fetching the series failed.
            ExportError: layout or saving failed.
        """
        if report_type not in REPORT_SOURCES:
            raise ValueError(f"Unknown report type '{report_type}'")
        data = await self.aggregator.fetch(report_type)
        return self.save(report_type, data, today=today)

    def save(self, report_type: str, data: ReportData, today: date | None = None) -> Path:
        try:
            renderer = render_report(
                report_type, data, brand=self.brand,
                revenue_months=self.aggregator.revenue_months,
            )
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / report_filename(self.brand, report_type, today)
            path.write_bytes(renderer.output())
        except Exception as e:
            logger.error("Failed to export %s report: %s", report_type, e)
            raise ExportError(f"Could not generate the {report_type} report: {e}") from e
        logger.info("Report exported: %s (%d page(s))", path, renderer.page_count)
        return path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pdf_safe(text: str) -> str:
    """Map characters the core Helvetica font lacks onto Latin-1 equivalents."""
    text = (
        text.replace("₹", "Rs.")   # rupee sign
        .replace("—", "-")         # em dash
        .replace("–", "-")         # en dash
        .replace("‘", "'")
        .replace("’", "'")
        .replace("“", '"')
        .replace("”", '"')
        .replace("…", "...")
        .replace("•", "*")
    )
    return text.encode("latin-1", "replace").decode("latin-1")

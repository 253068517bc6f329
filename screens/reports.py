"""
Reports screen (owner).

Shows the analytics series on screen and exports any report type as a
PDF. A failed export leaves the screen usable; exporting again simply
re-runs the whole fetch → layout → save.
"""

import logging
from datetime import date

from core.errors import ExportError, ValidationError
from core.navigation import ROLE_OWNER, ROUTE_REPORTS
from core.result import Result
from reports.aggregator import REPORT_TYPES, ReportData
from reports.layout import percent_share
from reports.pdf_export import REPORT_LABELS, ReportExporter
from screens.base import REQUEST_ERRORS, Screen

logger = logging.getLogger("gympro.screens.reports")


class ReportsScreen(Screen):
    """Analytics overview plus PDF export.

    Args:
        session, notices: as for every screen.
        exporter:         ReportExporter (its aggregator also feeds load()).
    """

    route = ROUTE_REPORTS
    required_role = ROLE_OWNER
    title = "Reports"
    load_error = "Failed to load analytics"

    def __init__(self, session, notices, exporter: ReportExporter):
        super().__init__(session, notices)
        self.exporter = exporter
        self.data = ReportData()
        self.exporting = False
        self.last_export = None

    async def load(self):
        self.data = await self._track(self.exporter.aggregator.fetch("complete"))

    @property
    def total_revenue(self) -> float:
        return sum(p.revenue for p in self.data.revenue)

    def membership_shares(self) -> list[tuple[str, int, float]]:
        total = sum(m.value for m in self.data.membership)
        return [(m.name, m.value, percent_share(m.value, total)) for m in self.data.membership]

    async def export(self, report_type: str, today: date | None = None) -> Result:
        if report_type not in REPORT_TYPES:
            error = ValidationError(f"Unknown report type '{report_type}'. Choose one of: {', '.join(REPORT_TYPES)}.")
            return self._fail(error, "Export Failed")
        if self.exporting:
            return Result(ok=False)

        self.exporting = True
        try:
            path = await self._track(self.exporter.export(report_type, today=today))
        except ExportError as e:
            return self._fail(e, "Export Failed", "Could not generate the report. Please try again.")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Export Failed", "Could not load report data. Please try again.")
        finally:
            self.exporting = False

        self.last_export = path
        return self._ok("Report Exported", f"{REPORT_LABELS[report_type]} report saved to {path}.", path)

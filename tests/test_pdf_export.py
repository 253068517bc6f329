import asyncio
from datetime import date, datetime

import pytest

from core.errors import ExportError, HttpError
from core.models import (
    AttendancePoint,
    DashboardStats,
    MembershipSlice,
    ProductSales,
    RevenuePoint,
)
from reports import pdf_export
from reports.aggregator import ReportAggregator, ReportData
from reports.pdf_export import ReportExporter, render_report, report_filename
from tests.conftest import FakeResponse

GENERATED = datetime(2024, 3, 15, 10, 30)

SIX_MONTHS = [
    RevenuePoint("Oct", 30000), RevenuePoint("Nov", 25000), RevenuePoint("Dec", 35000),
    RevenuePoint("Jan", 10000), RevenuePoint("Feb", 20000), RevenuePoint("Mar", 40000),
]


def _full_data():
    return ReportData(
        stats=DashboardStats(total_members=120, active_members=95, expired_members=25,
                             total_revenue=480000, pending_dues=12500, monthly_revenue=40000),
        revenue=list(SIX_MONTHS),
        membership=[MembershipSlice("Monthly", 60), MembershipSlice("Quarterly", 40),
                    MembershipSlice("Annual", 20)],
        attendance=[AttendancePoint(d, n) for d, n in
                    [("Mon", 40), ("Tue", 35), ("Wed", 50), ("Thu", 30), ("Fri", 45), ("Sat", 60), ("Sun", 10)]],
        products=[ProductSales("Whey Protein", 50), ProductSales("Creatine", 25), ProductSales("BCAA", 10)],
    )


def test_revenue_bars_are_proportional_to_value():
    r = render_report("revenue", _full_data(), generated_at=GENERATED)
    bars = {b.label: b for b in r.bars_for("revenue")}
    assert bars["Feb"].width == pytest.approx(2 * bars["Jan"].width)
    assert bars["Mar"].width == pytest.approx(bars["Mar"].track_width)


def test_all_zero_series_draws_empty_bars():
    data = ReportData(products=[ProductSales("A", 0), ProductSales("B", 0)])
    r = render_report("products", data, generated_at=GENERATED)
    assert [b.width for b in r.bars_for("products")] == [0, 0]


def test_all_zero_membership_has_no_nan_shares():
    data = ReportData(membership=[MembershipSlice("A", 0), MembershipSlice("B", 0)])
    r = render_report("membership", data, generated_at=GENERATED)
    assert [b.width for b in r.bars_for("membership")] == [0, 0]
    assert [row[2] for row in r.rows["membership"]] == ["0.0%", "0.0%"]


def test_all_zero_revenue_reads_zero_percent_of_max():
    data = ReportData(revenue=[RevenuePoint("Jan", 0), RevenuePoint("Feb", 0), RevenuePoint("Mar", 0)])
    r = render_report("revenue", data, generated_at=GENERATED)
    assert [b.width for b in r.bars_for("revenue")] == [0, 0, 0]
    assert [row[2] for row in r.rows["revenue"]] == ["0%", "0%", "0%"]


def test_all_zero_attendance_draws_empty_bars():
    data = ReportData(attendance=[AttendancePoint(d, 0) for d in ("Mon", "Tue", "Wed")])
    r = render_report("attendance", data, generated_at=GENERATED)
    assert [b.width for b in r.bars_for("attendance")] == [0, 0, 0]
    assert [row[1] for row in r.rows["attendance"]] == ["0", "0", "0"]
    assert r.output().startswith(b"%PDF")


def test_all_zero_products_share_column():
    data = ReportData(products=[ProductSales("A", 0), ProductSales("B", 0)])
    r = render_report("products", data, generated_at=GENERATED)
    assert [row[3] for row in r.rows["products"]] == ["0.0%", "0.0%"]


def test_empty_series_still_renders():
    r = render_report("membership", ReportData(), generated_at=GENERATED)
    assert r.bars_for("membership") == []
    assert r.page_count == 1
    assert r.output().startswith(b"%PDF")


def test_membership_bars_scale_against_largest_plan():
    r = render_report("membership", _full_data(), generated_at=GENERATED)
    bars = r.bars_for("membership")
    assert bars[0].width == pytest.approx(bars[0].track_width)
    assert bars[1].width == pytest.approx(bars[0].width * 40 / 60)


def test_product_bars_are_labelled_by_name():
    r = render_report("complete", _full_data(), generated_at=GENERATED)
    assert [b.label for b in r.bars_for("products")] == ["Whey Protein", "Creatine", "BCAA"]


def test_complete_report_breaks_before_late_sections():
    r = render_report("complete", _full_data(), generated_at=GENERATED)
    assert r.page_count == 2
    assert {b.page for b in r.bars_for("revenue")} == {1}
    assert {b.page for b in r.bars_for("attendance")} == {2}
    assert r.sections == [
        "Monthly Revenue (Last 6 Months)",
        "Membership Distribution",
        "Weekly Attendance",
        "Top Products by Sales",
    ]


def test_every_page_gets_a_numbered_footer():
    r = render_report("complete", _full_data(), generated_at=GENERATED)
    assert r.footers == ["Page 1 of 2", "Page 2 of 2"]


def test_single_page_report_footer():
    r = render_report("attendance", _full_data(), generated_at=GENERATED)
    assert r.footers == ["Page 1 of 1"]


def test_unknown_report_type():
    with pytest.raises(ValueError):
        render_report("weekly", ReportData())


def test_report_filename():
    assert report_filename("GymPro", "revenue", date(2024, 3, 15)) == "GymPro_Revenue_Report_2024-03-15.pdf"
    assert report_filename("GymPro", "complete", date(2024, 1, 2)) == "GymPro_Complete_Report_2024-01-02.pdf"


def test_rupee_sign_is_made_font_safe():
    assert pdf_export._pdf_safe("₹ 1,200 – paid") == "Rs. 1,200 - paid"


# ---------------------------------------------------------------------------
# Aggregator + exporter
# ---------------------------------------------------------------------------

def _route_reports(http, months=8):
    http.route("GET", "/dashboard/stats", {"total_members": 10, "monthly_revenue": 5000})
    http.route("GET", "/reports/revenue", [{"month": f"M{i}", "revenue": i * 100} for i in range(1, months + 1)])
    http.route("GET", "/reports/membership", [{"name": "Monthly", "value": 3}])
    http.route("GET", "/reports/attendance", [{"day": "Mon", "attendance": 4}])
    http.route("GET", "/reports/products", [{"name": f"P{i}", "sales": 10 - i} for i in range(8)])


def test_aggregator_slices_last_months_and_first_products(http, client):
    _route_reports(http)
    data = asyncio.run(ReportAggregator(client, revenue_months=6, top_products=5).fetch("complete"))
    assert [p.month for p in data.revenue] == ["M3", "M4", "M5", "M6", "M7", "M8"]
    assert [p.name for p in data.products] == ["P0", "P1", "P2", "P3", "P4"]
    assert data.stats.total_members == 10


def test_aggregator_fetches_only_what_the_report_needs(http, client):
    _route_reports(http)
    asyncio.run(ReportAggregator(client).fetch("attendance"))
    assert [c.path for c in http.calls] == ["/reports/attendance"]


def test_export_writes_pdf(http, client, tmp_path):
    _route_reports(http)
    exporter = ReportExporter(ReportAggregator(client), output_dir=tmp_path, brand="GymPro")
    path = asyncio.run(exporter.export("revenue", today=date(2024, 3, 15)))
    assert path == tmp_path / "GymPro_Revenue_Report_2024-03-15.pdf"
    assert path.read_bytes().startswith(b"%PDF")


def test_export_fetch_failure_propagates_and_writes_nothing(http, client, tmp_path):
    _route_reports(http)
    http.route("GET", "/reports/revenue", FakeResponse(500, {"detail": "boom"}))
    exporter = ReportExporter(ReportAggregator(client), output_dir=tmp_path)
    with pytest.raises(HttpError):
        asyncio.run(exporter.export("revenue"))
    assert list(tmp_path.iterdir()) == []


def test_layout_failure_becomes_export_error(client, tmp_path, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("font missing")

    monkeypatch.setattr(pdf_export, "render_report", broken)
    exporter = ReportExporter(ReportAggregator(client), output_dir=tmp_path)
    with pytest.raises(ExportError):
        exporter.save("revenue", ReportData())


def test_exported_revenue_bars_follow_series(http, client, tmp_path, monkeypatch):
    http.route("GET", "/dashboard/stats", {})
    http.route("GET", "/reports/revenue", [{"month": "Jan", "revenue": 1000}, {"month": "Feb", "revenue": 2000}])
    rendered = []
    real_render = pdf_export.render_report

    def capture(*args, **kwargs):
        renderer = real_render(*args, **kwargs)
        rendered.append(renderer)
        return renderer

    monkeypatch.setattr(pdf_export, "render_report", capture)
    exporter = ReportExporter(ReportAggregator(client), output_dir=tmp_path)
    asyncio.run(exporter.export("revenue", today=date(2024, 2, 29)))

    jan, feb = rendered[0].bars_for("revenue")
    assert (jan.label, feb.label) == ("Jan", "Feb")
    assert feb.width == pytest.approx(2 * jan.width)

import pytest

from reports import layout


def test_stat_box_widths_fill_content_width():
    w = layout.stat_box_width(4)
    assert w == pytest.approx((210 - 28 - 9) / 4)
    last_right = layout.stat_box_x(3, w) + w
    assert last_right == pytest.approx(210 - layout.MARGIN)


def test_stat_box_width_rejects_zero():
    with pytest.raises(ValueError):
        layout.stat_box_width(0)


def test_last_column_takes_remaining_width():
    widths = layout.column_widths([30, 45])
    assert widths[:2] == [30, 45]
    assert widths[2] == pytest.approx(182 - 75)
    assert sum(widths) == pytest.approx(layout.content_width())


def test_series_max_floors_at_one():
    assert layout.series_max([]) == 1
    assert layout.series_max([0, 0]) == 1
    assert layout.series_max([3, 7, 2]) == 7


def test_bar_width_is_proportional():
    cell = 60
    jan = layout.bar_width(10000, 40000, cell)
    feb = layout.bar_width(20000, 40000, cell)
    assert feb == pytest.approx(2 * jan)
    assert layout.bar_width(40000, 40000, cell) == pytest.approx(layout.bar_track_width(cell))


def test_bar_width_zero_and_negative_values():
    assert layout.bar_width(0, 1, 60) == 0
    assert layout.bar_width(-5, 10, 60) == 0


def test_percent_share_zero_total():
    assert layout.percent_share(0, 0) == 0
    assert layout.format_percent(layout.percent_share(1, 3)) == "33.3%"


def test_presence_rate_rounds_half_up():
    assert layout.presence_rate(1, 8) == 13     # 12.5
    assert layout.presence_rate(2, 3) == 67
    assert layout.presence_rate(0, 0) == 0


def test_page_break_threshold():
    assert not layout.needs_page_break(210)
    assert layout.needs_page_break(210.5)

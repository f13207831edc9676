from __future__ import annotations

import random

import pytest
from reportlab.platypus import Paragraph

from ledger.models import LedgerEntry
from ledger.pagination import (
    CELL_PADDING,
    COLUMNS,
    ROW_HEIGHT,
    PageGeometry,
    parse_duration,
    plan_layout,
    select_columns,
)


def _entry(hours: str, date: str = "2024-01-20") -> LedgerEntry:
    return LedgerEntry(
        date=date,
        student="AbCd",
        subject="Math",
        school="Davis High",
        category="Large Print Generation",
        hours=hours,
        notes="",
        complete=False,
    )


def test_first_page_capacity_for_letter_layout():
    geometry = PageGeometry()
    assert geometry.available_height == pytest.approx(383.98)
    assert geometry.first_page_capacity() == 19


def test_capacity_never_negative():
    geometry = PageGeometry(page_height=200)
    assert geometry.first_page_capacity() == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.5", (1.5, True)),
        (" 2 ", (2.0, True)),
        ("0", (0.0, True)),
        ("N/A", (0.0, False)),
        ("", (0.0, False)),
        (None, (0.0, False)),
        ("-1.0", (0.0, False)),
        ("inf", (0.0, False)),
        ("nan", (0.0, False)),
    ],
)
def test_parse_duration(raw, expected):
    assert tuple(parse_duration(raw)) == expected


def test_unparseable_hours_rendered_but_not_totalled():
    result = plan_layout([_entry("1.5"), _entry("N/A")])
    assert result.total == pytest.approx(1.5)
    assert f"{result.total:,.2f}" == "1.50"
    assert [row[-1] for row in result.grid.data_rows] == ["1.5", "N/A"]


@pytest.mark.parametrize("count", [0, 1, 7, 19])
def test_filler_rows_pad_first_page_to_capacity(count: int):
    result = plan_layout([_entry("0.25") for _ in range(count)])
    grid = result.grid
    assert len(grid.data_rows) == count
    assert len(grid.data_rows) + grid.filler_rows == grid.capacity == 19
    filler = grid.rows()[1 + count :]
    assert all(cell.strip() == "" for row in filler for cell in row)


def test_overflow_rows_are_kept_without_filler():
    records = [_entry("1.00", date=f"2024-01-{day:02d}") for day in range(1, 31)]
    result = plan_layout(records)
    assert len(result.grid.data_rows) == 30
    assert result.grid.filler_rows == 0
    assert result.total == pytest.approx(30.0)
    assert [row[0] for row in result.grid.data_rows] == [record.date for record in records]


def test_zero_records_gives_header_only_body_and_zero_total():
    result = plan_layout([])
    assert result.grid.data_rows == []
    assert result.grid.rows()[0] == ["Date", "Student", "Subject", "School", "Project", "Time"]
    assert f"{result.total:,.2f}" == "0.00"


def test_total_independent_of_row_order():
    hours = ["0.25", "1.75", "N/A", "3", "", "2.5"] * 8
    records = [_entry(value) for value in hours]
    expected = plan_layout(records).total
    shuffled = list(records)
    random.Random(7).shuffle(shuffled)
    assert plan_layout(shuffled).total == pytest.approx(expected)
    assert expected == pytest.approx(7.5 * 8)


def test_column_selection_and_widths():
    columns = select_columns(["hours", "date"])
    assert [column.key for column in columns] == ["date", "hours"]
    assert select_columns(None) == COLUMNS

    grid = plan_layout([], columns=COLUMNS).grid
    widths = grid.column_widths(540)
    assert widths == pytest.approx([98.18181818, 98.18181818, 98.18181818, 98.18181818, 98.18181818, 49.09090909])


def test_grid_table_has_header_data_and_filler_rows():
    grid = plan_layout([_entry("1")] * 3).grid
    table = grid.to_table(540)
    assert len(table._cellvalues) == 1 + 3 + 16
    assert table.repeatRows == 1


def test_long_category_wraps_inside_its_column():
    entry = _entry("2")
    entry.category = "UEB Technical Transcription"
    grid = plan_layout([entry]).grid
    widths = grid.column_widths(540)
    table = grid.to_table(540)

    category_index = [column.key for column in COLUMNS].index("category")
    cell = table._cellvalues[1][category_index]
    assert isinstance(cell, Paragraph)
    text_width = widths[category_index] - 2 * CELL_PADDING
    cell.wrap(text_width, 1000)
    assert len(cell.blPara.lines) == 2
    assert max(cell.getActualLineWidths0()) <= text_width

    short = plan_layout([_entry("2")]).grid.to_table(540)
    _, wrapped_height = table.wrap(540, 10000)
    _, short_height = short.wrap(540, 10000)
    assert wrapped_height > short_height


def test_single_line_rows_keep_row_height():
    table = plan_layout([_entry("1")]).grid.to_table(540)
    table.wrap(540, 10000)
    assert table._rowHeights[1] == pytest.approx(ROW_HEIGHT)
    assert table._rowHeights[-1] == pytest.approx(ROW_HEIGHT)

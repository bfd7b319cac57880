from datetime import date

from openpyxl import load_workbook

from utils.excel_export import EXPORT_HEADERS, export_children, export_filename


def test_filename_carries_stage_and_day():
    assert export_filename("grade3", date(2024, 3, 5)) == "children_grade3_2024-03-05.xlsx"


def test_rows_keep_given_order_with_running_index():
    records = [
        {"name": "مينا", "phone": "0100", "address": "شبرا", "visited": {"2024-03": True}},
        {"name": "أبانوب", "phone1": "0122", "notes": None},
    ]

    output, filename = export_children(records, "angels", date(2024, 3, 5))
    ws = load_workbook(output).active
    rows = list(ws.iter_rows(values_only=True))

    assert filename == "children_angels_2024-03-05.xlsx"
    assert ws.title == "angels"
    assert ws.sheet_view.rightToLeft
    assert list(rows[0]) == EXPORT_HEADERS
    assert rows[1][0] == 1 and rows[1][1] == "مينا" and rows[1][2] == "0100"
    assert rows[1][5] == "شبرا"
    assert rows[2][0] == 2 and rows[2][1] == "أبانوب" and rows[2][3] == "0122"
    assert len(rows) == 3


def test_empty_directory_still_has_headers():
    output, _ = export_children([], "grade6")
    rows = list(load_workbook(output).active.iter_rows(values_only=True))
    assert rows == [tuple(EXPORT_HEADERS)]

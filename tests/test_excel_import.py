import io
from datetime import datetime

import pytest

from fakes import FakeCollection, make_xlsx
from utils.errors import ParseError, StoreUnavailable
import utils.excel_import as excel_import
from utils.excel_import import (
    build_candidates, excel_date, import_records, match_field, read_rows, resolve_columns,
)
from utils.store import RecordStore


def test_header_aliases_resolve_case_and_space_insensitively():
    assert match_field("  الاسم ") == "name"
    assert match_field("NAME") == "name"
    assert match_field("رقم التلفون") == "phone"
    assert match_field("رقم التلفون1") == "phone1"
    assert match_field("رقم 3") == "phone2"
    assert match_field("تاريخ  الميلاد") == "dateOfBirth"
    assert match_field("Nickname") is None


def test_resolve_columns_first_match_wins():
    assert resolve_columns(["الاسم", "name", "ملاحظات"]) == {"name": "الاسم", "notes": "ملاحظات"}


@pytest.mark.parametrize("value, expected", [
    (25569, "01/01/1970"),
    (45356, "05/03/2024"),
    (45356.75, "05/03/2024"),
    ("5/3/2024", "5/3/2024"),
    (datetime(2015, 7, 1), "01/07/2015"),
    ("", ""),
    (None, ""),
    (99999999, "99999999"),
    (1001234567.0, "1001234567"),
])
def test_excel_date(value, expected):
    assert excel_date(value) == expected


def test_three_row_sheet_with_blank_name_creates_two():
    stream = make_xlsx([
        ["الاسم", "رقم التلفون"],
        ["مينا", "01001234567"],
        ["", "01111111111"],
        ["مريم", "01222222222"],
    ])
    rows = read_rows(stream, "roster.xlsx")
    candidates = build_candidates(rows, set(), ("name", "phone"))
    collection = FakeCollection("children")

    result = import_records(RecordStore(collection), candidates, "grade1", {"visited": {}})

    assert result.added == 2
    assert [r["name"] for r in result.created] == ["مينا", "مريم"]
    assert all(r["page"] == "grade1" and r["visited"] == {} for r in result.created)
    assert len(collection.docs) == 2


def test_existing_and_in_batch_duplicates_are_skipped():
    rows = [
        {"Name": " MINA "},
        {"Name": "Mariam"},
        {"Name": "mariam  "},
        {"Name": "George"},
    ]
    candidates = build_candidates(rows, {"mina"})
    assert [c["name"] for c in candidates] == ["Mariam", "George"]


def test_second_header_row_is_not_imported():
    rows = [{"الاسم": "اسم الطفل"}, {"الاسم": "Name"}, {"الاسم": "بيشوي"}]
    assert [c["name"] for c in build_candidates(rows, set())] == ["بيشوي"]


def test_missing_optional_columns_give_empty_strings():
    rows = [{"الاسم": "مينا", "تاريخ الميلاد": 45356}]
    fields = ("name", "phone", "dateOfBirth", "notes")
    assert build_candidates(rows, set(), fields) == [
        {"name": "مينا", "phone": "", "dateOfBirth": "05/03/2024", "notes": ""}
    ]


def test_numeric_phone_cells_lose_float_suffix():
    rows = [{"الاسم": "مينا", "رقم التلفون": 1001234567.0}]
    assert build_candidates(rows, set(), ("name", "phone"))[0]["phone"] == "1001234567"


def test_missing_name_column_is_a_parse_error():
    with pytest.raises(ParseError):
        build_candidates([{"رقم التلفون": "0100"}], set())


def test_empty_or_unsupported_files_are_parse_errors():
    with pytest.raises(ParseError):
        read_rows(make_xlsx([["الاسم"]]), "empty.xlsx")
    with pytest.raises(ParseError):
        read_rows(io.BytesIO(b"not a workbook"), "broken.xlsx")
    with pytest.raises(ParseError):
        read_rows(io.BytesIO(b"whatever"), "roster.pdf")


def test_csv_rows_are_read_with_trimmed_headers():
    data = "\ufeff الاسم ,رقم التلفون\nمينا,0100\n,\nمريم,0122\n".encode("utf-8")
    rows = read_rows(io.BytesIO(data), "roster.csv")
    assert rows == [
        {"الاسم": "مينا", "رقم التلفون": "0100"},
        {"الاسم": "مريم", "رقم التلفون": "0122"},
    ]


def test_store_failure_keeps_rows_already_written():
    collection = FakeCollection("attendance")
    collection.fail_after = 1
    candidates = [{"name": "A"}, {"name": "B"}, {"name": "C"}]

    with pytest.raises(StoreUnavailable) as excinfo:
        import_records(RecordStore(collection), candidates, "grade1", {"days": {}})

    assert excinfo.value.partial.added == 1
    assert len(collection.docs) == 1


def test_number_in_birth_date_column_does_not_abort_import():
    stream = make_xlsx([["الاسم", "تاريخ الميلاد"], ["Mina", 99999999], ["Mariam", 45356]])
    rows = read_rows(stream, "roster.xlsx")

    candidates = build_candidates(rows, set(), ("name", "dateOfBirth"))

    assert candidates == [
        {"name": "Mina", "dateOfBirth": "99999999"},
        {"name": "Mariam", "dateOfBirth": "05/03/2024"},
    ]


class FakeSheet:
    def __init__(self, rows):
        self.rows = rows
        self.nrows = len(rows)

    def row_values(self, index):
        return list(self.rows[index])


class FakeBook:
    def __init__(self, rows):
        self.sheet = FakeSheet(rows)

    def sheet_by_index(self, index):
        return self.sheet


def test_xls_rows_are_read_through_xlrd(monkeypatch):
    # xlrd hands back floats for numbers and date serials, "" for blanks
    book = FakeBook([
        ["الاسم", "رقم التلفون", "تاريخ الميلاد"],
        ["مينا", 1001234567.0, 45356.0],
        ["", "", ""],
        ["مريم", "", ""],
    ])
    opened = []

    def open_workbook(file_contents=None, **kwargs):
        opened.append(file_contents)
        return book

    monkeypatch.setattr(excel_import.xlrd, "open_workbook", open_workbook)

    rows = read_rows(io.BytesIO(b"xls bytes"), "Roster.XLS")
    candidates = build_candidates(rows, set(), ("name", "phone", "dateOfBirth"))

    assert opened == [b"xls bytes"]
    assert candidates == [
        {"name": "مينا", "phone": "1001234567", "dateOfBirth": "05/03/2024"},
        {"name": "مريم", "phone": "", "dateOfBirth": ""},
    ]


def test_corrupt_xls_is_a_parse_error():
    with pytest.raises(ParseError):
        read_rows(io.BytesIO(b"this is not a legacy workbook"), "roster.xls")

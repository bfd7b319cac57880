"""
utils/excel_import.py
-----------------
Bulk roster import from a spreadsheet with a header row.

Steps: read the first sheet into row dicts keyed by header text, map the
headers onto logical fields through HEADER_ALIASES, drop blank,
header-like and duplicate names (against the stage's existing names and
against rows accepted earlier in the same file), then create the
survivors one at a time.
"""

import copy
import csv
import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from utils.cancel import is_cancelled
from utils.errors import ParseError, StoreUnavailable
from utils.names import normalize, normalize_header

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = (".xlsx", ".xls", ".csv")

HEADER_ALIASES = {
    "name": ["اسم", "اسم الطفل", "الاسم", "name"],
    "phone": ["رقم", "رقم الهاتف", "التليفون", "رقم التلفون", "phone"],
    "phone1": ["رقم2", "رقم 2", "هاتف2", "رقم التلفون 1", "phone1"],
    "phone2": ["رقم3", "رقم 3", "هاتف3", "رقم التلفون 2", "phone2"],
    "notes": ["ملاحظات", "notes", "note"],
    "address": ["العنوان", "عنوان", "address"],
    "dateOfBirth": ["تاريخ الميلاد", "الميلاد", "dob"],
    "stage": ["المرحلة", "stage"],
    "birthCertificate": ["شهادة الميلاد", "شهادة", "birth"],
}

_ALIAS_INDEX = {
    normalize_header(alias): field_name
    for field_name, aliases in HEADER_ALIASES.items()
    for alias in aliases
}

# A second header row parsed as data carries one of these in the name column
HEADER_SENTINELS = frozenset(normalize_header(a) for a in HEADER_ALIASES["name"])

# Days between the spreadsheet epoch and 1970-01-01
EXCEL_EPOCH_OFFSET = 25569


@dataclass
class ImportResult:
    created: list = field(default_factory=list)

    @property
    def added(self):
        return len(self.created)


# ============================
# READING
# ============================
def read_rows(stream, filename):
    """Parse the first sheet of an uploaded file into header-keyed row dicts."""
    name = (filename or "").lower()
    data = stream.read() if hasattr(stream, "read") else stream

    if name.endswith(".xlsx"):
        rows = _read_xlsx(data)
    elif name.endswith(".xls"):
        rows = _read_xls(data)
    elif name.endswith(".csv"):
        rows = _read_csv(data)
    else:
        raise ParseError(
            message="❌ نوع الملف غير مدعوم، استخدم ملف xlsx أو xls أو csv",
            detail=f"unsupported file {filename!r}",
        )

    if not rows:
        raise ParseError(message="❌ الملف فارغ")
    return rows


def _read_xlsx(data):
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ParseError(detail=f"unreadable workbook: {e}")

    try:
        ws = wb.worksheets[0]
        values = list(ws.iter_rows(values_only=True))
    finally:
        wb.close()
    return _header_rows(values)


def _read_xls(data):
    # Date cells come back as serial numbers, which excel_date converts
    try:
        book = xlrd.open_workbook(file_contents=data)
        sheet = book.sheet_by_index(0)
        values = [sheet.row_values(i) for i in range(sheet.nrows)]
    except (xlrd.XLRDError, CompDocError, ValueError, IndexError) as e:
        raise ParseError(detail=f"unreadable xls workbook: {e}")
    return _header_rows(values)


def _header_rows(values):
    if not values:
        return []

    headers = [_header_text(h) for h in values[0]]
    rows = []
    for raw in values[1:]:
        if raw is None or all(v is None or str(v).strip() == "" for v in raw):
            continue
        row = {}
        for idx, header in enumerate(headers):
            if not header:
                continue
            row[header] = raw[idx] if idx < len(raw) and raw[idx] is not None else ""
        rows.append(row)
    return rows


def _read_csv(data):
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(detail=f"csv is not utf-8: {e}")

    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for raw in reader:
        row = {_header_text(k): (v if v is not None else "") for k, v in raw.items() if k}
        if all(str(v).strip() == "" for v in row.values()):
            continue
        rows.append(row)
    return rows


def _header_text(value):
    return "" if value is None else str(value).strip()


# ============================
# HEADER MATCHING
# ============================
def match_field(header):
    return _ALIAS_INDEX.get(normalize_header(header))


def resolve_columns(headers):
    """Map logical field -> header text; the first matching column wins."""
    columns = {}
    for header in headers:
        field_name = match_field(header)
        if field_name and field_name not in columns:
            columns[field_name] = header
    return columns


# ============================
# CELL CONVERSION
# ============================
def cell_text(value):
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def excel_date(value):
    """Spreadsheet date serial -> dd/mm/yyyy; anything else passes through as text."""
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (int, float)):
        try:
            day = datetime(1970, 1, 1) + timedelta(days=value - EXCEL_EPOCH_OFFSET)
        except (OverflowError, ValueError):
            # Not a date serial (a phone number typed in the wrong column)
            return cell_text(value)
        return day.strftime("%d/%m/%Y")
    if isinstance(value, (datetime, date)):
        return value.strftime("%d/%m/%Y")
    return str(value)


# ============================
# MERGING
# ============================
def build_candidates(rows, existing_names, fields=("name",)):
    """
    Turn parsed rows into new-record candidates, in file order.

    ``existing_names`` holds normalized names already in the stage; names
    accepted from this file are added as we go, so the first of two
    equal names wins.
    """
    if not rows:
        raise ParseError(message="❌ الملف فارغ")

    columns = resolve_columns(rows[0].keys())
    if "name" not in columns:
        raise ParseError(
            message="❌ الملف غير صالح، الأعمدة المفقودة: الاسم",
            detail=f"no name column in {list(rows[0].keys())}",
        )

    seen = set(existing_names)
    candidates = []
    for row in rows:
        name = cell_text(row.get(columns["name"]))
        if not name:
            continue
        if normalize_header(name) in HEADER_SENTINELS:
            continue

        key = normalize(name)
        if key in seen:
            continue
        seen.add(key)

        candidate = {"name": name}
        for field_name in fields:
            if field_name == "name":
                continue
            header = columns.get(field_name)
            raw = row.get(header) if header else None
            if field_name == "dateOfBirth":
                candidate[field_name] = excel_date(raw)
            else:
                candidate[field_name] = cell_text(raw)
        candidates.append(candidate)

    return candidates


def import_records(store, candidates, stage, template=None, cancel=None):
    """
    Create candidates one at a time. A store failure stops the loop;
    records created before it stay created and travel on the raised
    error as ``partial``.
    """
    result = ImportResult()
    for candidate in candidates:
        if is_cancelled(cancel):
            logger.info("Import into %s cancelled after %d rows", stage, result.added)
            break

        record = copy.deepcopy(template or {})
        record.update(candidate)
        record["page"] = stage

        try:
            record_id = store.create(record)
        except StoreUnavailable as e:
            logger.error("Import into %s aborted after %d rows", stage, result.added)
            e.message = "❌ حدث خطأ أثناء رفع الإكسل"
            e.partial = result
            raise

        record["id"] = record_id
        result.created.append(record)

    logger.info("Imported %d rows into %s", result.added, stage)
    return result

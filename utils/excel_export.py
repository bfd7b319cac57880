import io
from datetime import date

from openpyxl import Workbook

EXPORT_HEADERS = [
    "#",
    "الاسم",
    "رقم التلفون",
    "رقم التلفون 1",
    "رقم التلفون 2",
    "العنوان",
    "تاريخ الميلاد",
    "المرحلة",
    "ملاحظات",
]

EXPORT_FIELDS = ["name", "phone", "phone1", "phone2", "address", "dateOfBirth", "stage", "notes"]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def export_filename(stage, today=None):
    today = today or date.today()
    return f"children_{stage}_{today.isoformat()}.xlsx"


def export_children(records, stage, today=None):
    """Write the directory rows, in the order given, to an in-memory workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = stage
    ws.sheet_view.rightToLeft = True
    ws.append(EXPORT_HEADERS)

    for index, record in enumerate(records, start=1):
        ws.append([index] + [record.get(f) or "" for f in EXPORT_FIELDS])

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output, export_filename(stage, today)

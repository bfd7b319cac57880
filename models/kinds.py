"""
Roster page kinds.

Each kind names the collection it reads, the day-record fields an
operator can toggle, which field the status filter and monthly count
look at, and what a reset writes.
"""

from models.attendance import AttendanceRecord
from models.child import Child
from models.day_map import day_path
from models.tusbha import TusbhaRecord

DAILY = "day"
MONTHLY = "month"


class RosterKind:

    def __init__(self, name, collection, period, toggle_fields, status_field,
                 import_fields=("name",), session_cache=False):
        self.name = name
        self.collection = collection
        self.period = period
        self.toggle_fields = toggle_fields
        self.status_field = status_field
        self.import_fields = import_fields
        self.session_cache = session_cache

    @property
    def is_daily(self):
        return self.period == DAILY

    def new_record(self, name, page, **fields):
        if self.collection == Child.COLLECTION:
            return Child(name, page, **fields).to_dict()
        if self.collection == TusbhaRecord.COLLECTION:
            return TusbhaRecord(name, page).to_dict()
        return AttendanceRecord(name, page).to_dict()

    def template(self):
        record = self.new_record("", "")
        record.pop("name")
        record.pop("page")
        return record

    def reset_write(self, date):
        """(path, value) a reset sends for one record on ``date``."""
        if self.name == "attendance":
            return day_path(date), {"present": False, "massPresent": False}
        if self.name == "mass":
            return day_path(date, "massPresent"), False
        if self.name == "tusbha":
            return day_path(date), {"present": False}
        return f"visited.{date}", False


KINDS = {
    "attendance": RosterKind(
        "attendance", AttendanceRecord.COLLECTION, DAILY,
        toggle_fields=AttendanceRecord.DAY_FIELDS, status_field="present",
    ),
    "mass": RosterKind(
        "mass", AttendanceRecord.COLLECTION, DAILY,
        toggle_fields=("massPresent",), status_field="massPresent",
    ),
    "tusbha": RosterKind(
        "tusbha", TusbhaRecord.COLLECTION, DAILY,
        toggle_fields=TusbhaRecord.DAY_FIELDS, status_field="present",
    ),
    "children": RosterKind(
        "children", Child.COLLECTION, MONTHLY,
        toggle_fields=(), status_field=None,
        import_fields=Child.TEXT_FIELDS, session_cache=True,
    ),
}

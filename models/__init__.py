# models/__init__.py

from .attendance import AttendanceRecord
from .tusbha import TusbhaRecord
from .child import Child
from .kinds import KINDS, RosterKind

__all__ = [
    "AttendanceRecord",
    "TusbhaRecord",
    "Child",
    "KINDS",
    "RosterKind",
]

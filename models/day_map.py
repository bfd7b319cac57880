"""
Day-map helpers.

A roster record keeps its attendance as a sparse mapping
``days: {"YYYY-MM-DD": {field: bool}}``. A missing date key means "no
data for that day", which is not the same thing as a day record whose
field is False. Rendering and counting collapse the two; the status
filter keeps them apart.

All helpers are pure: they never mutate the record they are given.
"""

import copy

PRESENT = "present"
ABSENT = "absent"
NONE = "none"


def empty_day(fields):
    return {field: False for field in fields}


def get_day(record, date, fields):
    day = (record.get("days") or {}).get(date)
    if day is None:
        return empty_day(fields)
    merged = empty_day(fields)
    merged.update(day)
    return merged


def set_field(record, date, field, value):
    days = dict(record.get("days") or {})
    day = dict(days.get(date) or {})
    day[field] = value
    days[date] = day
    updated = dict(record)
    updated["days"] = days
    return updated


def set_day(record, date, day):
    days = dict(record.get("days") or {})
    days[date] = dict(day)
    updated = dict(record)
    updated["days"] = days
    return updated


def monthly_count(record, year_month, field):
    """
    Count the dates inside ``year_month`` (``YYYY-MM``) whose ``field``
    is exactly True. Full scan of the sparse map.
    """
    prefix = year_month[:7]
    return sum(
        1
        for date, day in (record.get("days") or {}).items()
        if date.startswith(prefix) and (day or {}).get(field) is True
    )


def day_state(record, date, field):
    day = (record.get("days") or {}).get(date)
    if day is None:
        return NONE
    if day.get(field) is True:
        return PRESENT
    return ABSENT


def matches_status(record, date, field, status):
    if not status or status == "all":
        return True
    return day_state(record, date, field) == status


def day_path(date, field=None):
    if field is None:
        return f"days.{date}"
    return f"days.{date}.{field}"


def read_path(record, path):
    """Resolve a dotted path on a record; missing segments give None."""
    node = record
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return copy.deepcopy(node)


def write_path(record, path, value):
    """Return a copy of ``record`` with the dotted ``path`` set to ``value``."""
    parts = path.split(".")
    updated = dict(record)
    node = updated
    for part in parts[:-1]:
        child = node.get(part)
        child = dict(child) if isinstance(child, dict) else {}
        node[part] = child
        node = child
    node[parts[-1]] = value
    return updated


def drop_path(record, path):
    """
    Return a copy of ``record`` without the dotted ``path``. A day record
    left empty by the removal is dropped too, restoring "no data".
    """
    parts = path.split(".")
    updated = dict(record)
    chain = [updated]
    node = updated
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            return updated
        child = dict(child)
        node[part] = child
        node = child
        chain.append(node)
    node.pop(parts[-1], None)

    # days.<date> emptied by the removal
    if len(parts) == 3 and parts[0] == "days" and not chain[-1]:
        chain[-2].pop(parts[1], None)
    return updated

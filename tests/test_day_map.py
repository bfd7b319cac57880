import copy

from models.attendance import AttendanceRecord
from models.child import Child
from models.day_map import (
    day_state, drop_path, get_day, monthly_count, read_path, set_field, write_path,
)
from models.tusbha import TusbhaRecord


def sample_record():
    return {
        "id": "r1",
        "name": "Mina",
        "page": "grade3",
        "days": {
            "2024-03-05": {"present": True},
            "2024-03-10": {"present": False},
        },
    }


def test_monthly_count_counts_only_true_days_in_month():
    assert monthly_count(sample_record(), "2024-03", "present") == 1


def test_monthly_count_accepts_a_full_date_as_month():
    assert monthly_count(sample_record(), "2024-03-21", "present") == 1


def test_monthly_count_unchanged_by_days_outside_month():
    record = set_field(sample_record(), "2024-04-01", "present", True)
    assert monthly_count(record, "2024-03", "present") == 1


def test_monthly_count_grows_by_one_for_new_true_day_in_month():
    record = set_field(sample_record(), "2024-03-17", "present", True)
    assert monthly_count(record, "2024-03", "present") == 2


def test_monthly_count_per_field():
    record = set_field(sample_record(), "2024-03-05", "massPresent", True)
    assert AttendanceRecord.monthly_mass(record, "2024-03") == 1
    assert AttendanceRecord.monthly_present(record, "2024-03") == 1


def test_get_day_returns_empty_record_for_missing_date():
    record = sample_record()
    assert AttendanceRecord.day(record, "2024-01-01") == {"present": False, "massPresent": False}
    assert TusbhaRecord.day(record, "2024-01-01") == {"present": False}
    assert "2024-01-01" not in record["days"]


def test_get_day_fills_missing_fields():
    assert get_day(sample_record(), "2024-03-05", ("present", "massPresent")) == {
        "present": True,
        "massPresent": False,
    }


def test_set_field_leaves_other_dates_and_input_untouched():
    record = sample_record()
    before = copy.deepcopy(record)
    updated = set_field(record, "2024-03-05", "massPresent", True)

    assert record == before
    assert updated["days"]["2024-03-10"] == record["days"]["2024-03-10"]
    assert updated["days"]["2024-03-05"] == {"present": True, "massPresent": True}


def test_day_state_is_tri_state():
    record = sample_record()
    assert day_state(record, "2024-03-05", "present") == "present"
    assert day_state(record, "2024-03-10", "present") == "absent"
    assert day_state(record, "2024-03-11", "present") == "none"
    # present key missing on an existing day still counts as absent, not none
    assert day_state(record, "2024-03-05", "massPresent") == "absent"


def test_dotted_path_helpers():
    record = sample_record()
    assert read_path(record, "days.2024-03-05.present") is True
    assert read_path(record, "days.2024-03-07.present") is None

    updated = write_path(record, "days.2024-03-07.present", True)
    assert updated["days"]["2024-03-07"] == {"present": True}
    assert "2024-03-07" not in record["days"]

    dropped = drop_path(updated, "days.2024-03-07.present")
    assert "2024-03-07" not in dropped["days"]


def test_visited_flags_are_monthly():
    child = Child("Mina", "grade1").to_dict()
    child = Child.set_visited(child, "2024-03", True)
    assert Child.was_visited(child, "2024-03")
    assert not Child.was_visited(child, "2024-04")

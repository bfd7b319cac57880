from models.day_map import get_day, monthly_count


class AttendanceRecord:
    """
    General and mass attendance share one collection; a day record
    carries both facts as two explicit fields.
    """

    COLLECTION = "attendance"
    DAY_FIELDS = ("present", "massPresent")

    def __init__(self, name, page, days=None):
        self.name = name
        self.page = page
        self.days = days or {}

    def to_dict(self):
        return {
            "name": self.name,
            "page": self.page,
            "days": self.days,
        }

    @staticmethod
    def day(record, date):
        return get_day(record, date, AttendanceRecord.DAY_FIELDS)

    @staticmethod
    def monthly_present(record, year_month):
        return monthly_count(record, year_month, "present")

    @staticmethod
    def monthly_mass(record, year_month):
        return monthly_count(record, year_month, "massPresent")


"""
days: sparse map keyed by ISO date.
Example:
{
    "2024-03-05": {"present": true, "massPresent": false},
    "2024-03-10": {"present": false}
}
"""

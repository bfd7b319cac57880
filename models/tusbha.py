from models.day_map import get_day, monthly_count


class TusbhaRecord:

    COLLECTION = "tusbha"
    DAY_FIELDS = ("present",)

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
        return get_day(record, date, TusbhaRecord.DAY_FIELDS)

    @staticmethod
    def monthly_present(record, year_month):
        return monthly_count(record, year_month, "present")

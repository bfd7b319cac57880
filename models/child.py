class Child:
    """Children directory entry. Contact fields are free text, never validated."""

    COLLECTION = "children"
    TEXT_FIELDS = (
        "name",
        "phone",
        "phone1",
        "phone2",
        "notes",
        "address",
        "dateOfBirth",
        "stage",
        "birthCertificate",
    )

    def __init__(self, name, page, phone="", phone1="", phone2="", notes="",
                 address="", dateOfBirth="", stage="", birthCertificate="", visited=None):
        self.name = name
        self.page = page
        self.phone = phone
        self.phone1 = phone1
        self.phone2 = phone2
        self.notes = notes
        self.address = address
        self.dateOfBirth = dateOfBirth
        self.stage = stage  # free-text label from the sheet, not the page tag
        self.birthCertificate = birthCertificate
        self.visited = visited or {}

    def to_dict(self):
        return {
            "name": self.name,
            "phone": self.phone,
            "phone1": self.phone1,
            "phone2": self.phone2,
            "notes": self.notes,
            "address": self.address,
            "dateOfBirth": self.dateOfBirth,
            "stage": self.stage,
            "birthCertificate": self.birthCertificate,
            "visited": self.visited,
            "page": self.page,
        }

    @staticmethod
    def was_visited(record, month):
        return (record.get("visited") or {}).get(month) is True

    @staticmethod
    def set_visited(record, month, value):
        visited = dict(record.get("visited") or {})
        visited[month] = value
        updated = dict(record)
        updated["visited"] = visited
        return updated


"""
visited: monthly visit flags keyed by YYYY-MM.
Example:
{
    "2024-03": true,
    "2024-04": false
}
"""

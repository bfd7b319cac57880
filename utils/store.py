"""
utils/store.py
-----------------
Stage-scoped access to one MongoDB collection of roster records.

Documents leave this module as plain dicts whose ``_id`` has been
replaced by a string ``id``; callers never see ObjectId values.
"""

import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from utils.errors import NotFound, StoreUnavailable
from utils.names import sort_key

logger = logging.getLogger(__name__)

STAGE_FIELD = "page"


def _object_id(record_id):
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        raise NotFound(detail=f"invalid id {record_id!r}")


def to_record(doc):
    record = {k: v for k, v in doc.items() if k != "_id"}
    record["id"] = str(doc["_id"])
    return record


class RecordStore:

    def __init__(self, collection):
        self.collection = collection

    @property
    def name(self):
        return getattr(self.collection, "name", "?")

    def fetch_by_stage(self, stage):
        try:
            docs = list(self.collection.find({STAGE_FIELD: stage}))
        except PyMongoError as e:
            logger.exception("Fetching %s/%s failed", self.name, stage)
            raise StoreUnavailable(message="❌ فشل تحميل البيانات", detail=str(e))

        records = [to_record(doc) for doc in docs]
        records.sort(key=lambda r: sort_key(r.get("name")))
        return records

    def create(self, record):
        doc = {k: v for k, v in record.items() if k not in ("id", "_id")}
        try:
            result = self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.exception("Insert into %s failed", self.name)
            raise StoreUnavailable(message="❌ حدث خطأ أثناء الإضافة", detail=str(e))
        return str(result.inserted_id)

    def patch_fields(self, record_id, fields):
        """$set several dotted paths on one document without touching siblings."""
        oid = _object_id(record_id)
        try:
            result = self.collection.update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as e:
            logger.exception("Update of %s/%s failed", self.name, record_id)
            raise StoreUnavailable(message="❌ فشل تحديث البيانات", detail=str(e))

        if result.matched_count == 0:
            raise NotFound(detail=f"{self.name}/{record_id}")

    def patch_field(self, record_id, path, value):
        self.patch_fields(record_id, {path: value})

    def move_stage(self, record_id, stage):
        self.patch_field(record_id, STAGE_FIELD, stage)

    def delete(self, record_id):
        # The row disappears locally whatever happens here
        try:
            self.collection.delete_one({"_id": _object_id(record_id)})
        except NotFound:
            logger.warning("Delete skipped, invalid id %r in %s", record_id, self.name)
        except PyMongoError:
            logger.exception("Delete of %s/%s failed", self.name, record_id)

"""
controllers/roster.py
-----------------
Per-page roster state and the optimistic update protocol.

A ``RosterView`` owns the local copy of one stage's records for one page
kind. Field edits replace the local record immediately and hand the
remote patch to a ``WriteCoalescer``; the store is not re-read to confirm.
When a coalesced write fails, the field is put back to its last synced
value and the record is flagged ``failed``.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import date as date_cls, datetime

from models.child import Child
from models.day_map import (
    day_path, drop_path, get_day, matches_status, monthly_count, read_path,
    set_day, set_field, write_path,
)
from models.kinds import KINDS
from models.stages import is_valid_stage
from utils.cancel import is_cancelled
from utils.coalescer import WriteCoalescer
from utils.errors import NotFound, StoreUnavailable, ValidationError
from utils.excel_import import build_candidates, import_records, read_rows
from utils.names import name_set, normalize, sort_key
from utils.store import RecordStore

logger = logging.getLogger(__name__)

SYNCED = "synced"
PENDING = "pending"
FAILED = "failed"

STATUS_FILTERS = ("all", "present", "absent", "none")


@dataclass
class Page:
    rows: list
    page: int
    total_pages: int
    total: int


def _check_date(value):
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError(message="⚠️ تاريخ غير صالح", detail=f"bad date {value!r}")
    return value


def _check_month(value):
    try:
        datetime.strptime(value, "%Y-%m")
    except (TypeError, ValueError):
        raise ValidationError(message="⚠️ شهر غير صالح", detail=f"bad month {value!r}")
    return value


class RosterView:

    def __init__(self, kind, stage, store, quiet_period=0.3, rows_per_page=10,
                 enable_move=False, today=None):
        self.kind = KINDS[kind] if isinstance(kind, str) else kind
        self.stage = stage
        self.store = store
        self.rows_per_page = rows_per_page
        self.enable_move = enable_move

        today = today or date_cls.today()
        self.selected_date = today.isoformat()
        self.selected_month = today.isoformat()[:7]
        self.search = ""
        self.status = "all"
        self.current_page = 1
        self.selection = set()

        self.records = []
        self.loaded = False

        self._lock = threading.RLock()
        self._synced = {}
        self._sync_state = {}

        self.coalescer = WriteCoalescer(
            self._write,
            quiet_period=quiet_period,
            on_success=self._on_synced,
            on_error=self._on_failed,
            should_flush=self._should_flush,
            name=f"{self.kind.name}/{stage}",
        )

    # ==========================================================
    # LOADING
    # ==========================================================
    def load(self):
        with self._lock:
            if self.loaded:
                return self.records
        return self.reload()

    def mount(self):
        """Page visit: cached kinds keep their copy, the others refetch."""
        if self.kind.session_cache:
            return self.load()
        return self.reload()

    def reload(self):
        # Pending edits go out first so the refetch does not undo them
        self.coalescer.flush()
        records = self.store.fetch_by_stage(self.stage)
        with self._lock:
            self.records = records
            self.loaded = True
            self._synced.clear()
            self._sync_state = {r["id"]: SYNCED for r in records}
            self.selection &= {r["id"] for r in records}
        return records

    # ==========================================================
    # LOOKUPS
    # ==========================================================
    def find(self, record_id):
        with self._lock:
            for record in self.records:
                if record["id"] == record_id:
                    return record
        raise NotFound(detail=f"{self.kind.collection}/{record_id} not in {self.stage}")

    def _replace(self, record):
        for idx, current in enumerate(self.records):
            if current["id"] == record["id"]:
                self.records[idx] = record
                return

    def sync_state(self, record_id):
        with self._lock:
            return self._sync_state.get(record_id, SYNCED)

    def monthly_count(self, record, field=None, year_month=None):
        field = field or self.kind.status_field
        year_month = year_month or self.selected_date[:7]
        return monthly_count(record, year_month, field)

    # ==========================================================
    # ADD
    # ==========================================================
    def add_child(self, name, **fields):
        name = (name or "").strip()
        if not name:
            raise ValidationError(message="⚠️ أدخل اسم الطفل")

        self.load()
        with self._lock:
            if normalize(name) in name_set(self.records):
                raise ValidationError(message="⚠️ الاسم ده موجود بالفعل")

        extra = {k: v for k, v in fields.items() if k in Child.TEXT_FIELDS and k != "name"}
        record = self.kind.new_record(name, self.stage, **extra)
        record_id = self.store.create(record)
        record["id"] = record_id

        with self._lock:
            self.records.append(record)
            self._sync_state[record_id] = SYNCED
        logger.info("Added %s to %s/%s", record_id, self.kind.name, self.stage)
        return record

    # ==========================================================
    # FIELD EDITS (optimistic)
    # ==========================================================
    def toggle(self, record_id, field, value, date=None):
        if not self.kind.is_daily or field not in self.kind.toggle_fields:
            raise ValidationError(detail=f"{field!r} is not editable on {self.kind.name}")
        date = _check_date(date or self.selected_date)

        with self._lock:
            record = set_field(self.find(record_id), date, field, bool(value))
            self._stage_edit(record, day_path(date, field), bool(value))
        return record

    def update_field(self, record_id, field, value):
        if field not in Child.TEXT_FIELDS or self.kind.is_daily:
            raise ValidationError(detail=f"{field!r} is not editable on {self.kind.name}")
        value = "" if value is None else str(value)

        with self._lock:
            current = self.find(record_id)
            if field == "name" and value.strip():
                taken = {
                    normalize(r.get("name")) for r in self.records if r["id"] != record_id
                }
                if normalize(value) in taken:
                    raise ValidationError(message="⚠️ الاسم موجود بالفعل")

            record = dict(current)
            record[field] = value
            self._stage_edit(record, field, value)
        return record

    def set_visited(self, record_id, month=None, value=True):
        if self.kind.is_daily:
            raise ValidationError(detail="visits are tracked on the children page only")
        month = _check_month(month or self.selected_month)

        with self._lock:
            record = Child.set_visited(self.find(record_id), month, bool(value))
            self._stage_edit(record, f"visited.{month}", bool(value))
        return record

    def _stage_edit(self, record, path, value):
        key = (record["id"], path)
        if key not in self._synced:
            before = self.find(record["id"])
            self._synced[key] = read_path(before, path)
        self._replace(record)
        self._sync_state[record["id"]] = PENDING
        self.coalescer.submit(key, value)

    # ---------------- coalescer callbacks ----------------

    def _write(self, key, value):
        record_id, path = key
        self.store.patch_field(record_id, path, value)

    def _should_flush(self, key, value):
        _, path = key
        if path == "name":
            return bool(str(value).strip())
        return True

    def _pending_for(self, record_id):
        return any(k[0] == record_id for k in self.coalescer.pending_keys())

    def _on_synced(self, key, value, version):
        record_id, _ = key
        with self._lock:
            self._synced[key] = value
            if not self._pending_for(record_id) and self._sync_state.get(record_id) != FAILED:
                self._sync_state[record_id] = SYNCED

    def _on_failed(self, key, value, exc):
        record_id, path = key
        with self._lock:
            try:
                record = self.find(record_id)
            except NotFound:
                return
            # A newer edit is queued for this field; it will write its own value
            if key in self.coalescer.pending_keys():
                return

            previous = self._synced.get(key)
            if previous is None:
                record = drop_path(record, path)
            else:
                record = write_path(record, path, previous)
            self._replace(record)
            self._sync_state[record_id] = FAILED
        logger.warning("Reverted %s on %s/%s after failed write", path, self.kind.name, record_id)

    # ==========================================================
    # DELETE
    # ==========================================================
    def delete(self, record_id):
        self.store.delete(record_id)
        with self._lock:
            self.records = [r for r in self.records if r["id"] != record_id]
            self.selection.discard(record_id)
            self._sync_state.pop(record_id, None)

    # ==========================================================
    # BULK OPERATIONS
    # ==========================================================
    def reset(self, period=None, cancel=None):
        """
        Reset the selected date (daily kinds) or month (directory) for
        every record. Remote writes go one at a time; the local copy is
        updated once at the end, for the records that were written.
        """
        if self.kind.is_daily:
            period = _check_date(period or self.selected_date)
        else:
            period = _check_month(period or self.selected_month)
        path, value = self.kind.reset_write(period)

        self.coalescer.flush()
        with self._lock:
            targets = [r["id"] for r in self.records]

        done = []
        try:
            for record_id in targets:
                if is_cancelled(cancel):
                    break
                self.store.patch_field(record_id, path, value)
                done.append(record_id)
        finally:
            self._apply_reset(done, period, path, value)

        logger.info("Reset %s on %s/%s for %d records", period, self.kind.name, self.stage, len(done))
        return len(done)

    def _apply_reset(self, record_ids, period, path, value):
        ids = set(record_ids)
        with self._lock:
            updated = []
            reset_records = {}
            for record in self.records:
                if record["id"] in ids:
                    if self.kind.is_daily and isinstance(value, dict):
                        record = set_day(record, period, value)
                    else:
                        record = write_path(record, path, value)
                    reset_records[record["id"]] = record
                updated.append(record)
            self.records = updated

            # Field snapshots under the reset path now hold the reset values
            for key in list(self._synced):
                record_id, synced_path = key
                if record_id in reset_records and (
                    synced_path == path or synced_path.startswith(path + ".")
                ):
                    self._synced[key] = read_path(reset_records[record_id], synced_path)

    def select(self, record_ids, selected=True):
        with self._lock:
            known = {r["id"] for r in self.records}
            for record_id in record_ids:
                if record_id not in known:
                    continue
                if selected:
                    self.selection.add(record_id)
                else:
                    self.selection.discard(record_id)
            return set(self.selection)

    def clear_selection(self):
        with self._lock:
            self.selection.clear()

    def move_selected(self, target_stage, cancel=None):
        if not self.enable_move:
            raise ValidationError(message="🔒 النقل مقفول")
        if not target_stage:
            raise ValidationError(message="⚠️ اختر الصف أولًا")
        if target_stage == self.stage or not is_valid_stage(target_stage, self.kind.name):
            raise ValidationError(message="⚠️ الصف غير صالح", detail=f"bad target {target_stage!r}")

        with self._lock:
            moving = [r for r in self.records if r["id"] in self.selection]
        if not moving:
            raise ValidationError(message="⚠️ اختر طفل واحد على الأقل")

        destination = name_set(self.store.fetch_by_stage(target_stage))
        clashes = [r["name"] for r in moving if normalize(r["name"]) in destination]
        if clashes:
            raise ValidationError(
                message="⚠️ الاسم موجود بالفعل في الصف الآخر: " + "، ".join(clashes)
            )

        self.coalescer.flush()
        moved = []
        try:
            for record in moving:
                if is_cancelled(cancel):
                    break
                self.store.move_stage(record["id"], target_stage)
                moved.append(record["id"])
        finally:
            gone = set(moved)
            with self._lock:
                self.records = [r for r in self.records if r["id"] not in gone]
                self.selection -= gone
                for record_id in gone:
                    self._sync_state.pop(record_id, None)

        logger.info("Moved %d records from %s to %s", len(moved), self.stage, target_stage)
        return len(moved)

    def import_file(self, stream, filename, cancel=None):
        rows = read_rows(stream, filename)
        self.load()
        with self._lock:
            existing = name_set(self.records)
        candidates = build_candidates(rows, existing, self.kind.import_fields)

        try:
            result = import_records(
                self.store, candidates, self.stage, self.kind.template(), cancel=cancel
            )
        except StoreUnavailable as e:
            if e.partial is not None:
                self._append_created(e.partial.created)
            raise

        self._append_created(result.created)
        return result.added

    def _append_created(self, created):
        with self._lock:
            for record in created:
                self.records.append(record)
                self._sync_state[record["id"]] = SYNCED

    # ==========================================================
    # VISIBLE ROWS
    # ==========================================================
    def set_filters(self, search=None, status=None, period=None):
        """Check every value first; a rejected request leaves the view as it was."""
        if status is not None and status not in STATUS_FILTERS:
            raise ValidationError(message="⚠️ فلتر غير صالح", detail=f"unknown status filter {status!r}")
        if period is not None:
            period = _check_date(period) if self.kind.is_daily else _check_month(period)

        with self._lock:
            if search is not None:
                self.search = search
                self.current_page = 1
            if status is not None:
                self.status = status
                self.current_page = 1
            if period is not None:
                if self.kind.is_daily:
                    self.selected_date = period
                else:
                    self.selected_month = period

    def filtered(self, search=None, status=None):
        search = (self.search if search is None else search).casefold()
        status = self.status if status is None else status
        if status not in STATUS_FILTERS:
            raise ValidationError(detail=f"unknown status filter {status!r}")

        with self._lock:
            rows = list(self.records)

        rows = [r for r in rows if search in (r.get("name") or "").casefold()]
        if status != "all":
            if self.kind.is_daily:
                rows = [
                    r for r in rows
                    if matches_status(r, self.selected_date, self.kind.status_field, status)
                ]
            else:
                rows = [r for r in rows if self._visit_state(r) == status]
        rows.sort(key=lambda r: sort_key(r.get("name")))
        return rows

    def _visit_state(self, record):
        visited = record.get("visited") or {}
        if self.selected_month not in visited:
            return "none"
        return "present" if visited[self.selected_month] is True else "absent"

    def visible(self, page=None):
        rows = self.filtered()
        total_pages = max(1, math.ceil(len(rows) / self.rows_per_page))
        page = page or self.current_page
        page = min(max(1, int(page)), total_pages)
        self.current_page = page

        start = (page - 1) * self.rows_per_page
        return Page(
            rows=rows[start:start + self.rows_per_page],
            page=page,
            total_pages=total_pages,
            total=len(rows),
        )

    def row_view(self, record):
        """Flatten one record for rendering."""
        view = {
            "id": record["id"],
            "name": record.get("name", ""),
            "sync": self.sync_state(record["id"]),
            "selected": record["id"] in self.selection,
        }
        if self.kind.is_daily:
            fields = self.kind.toggle_fields
            if self.kind.name == "mass":
                fields = ("present", "massPresent")
            view["day"] = get_day(record, self.selected_date, fields)
            view["monthly"] = self.monthly_count(record)
        else:
            for field in Child.TEXT_FIELDS:
                view[field] = record.get(field) or ""
            view["visited"] = Child.was_visited(record, self.selected_month)
        return view

    # ==========================================================
    # LIFECYCLE
    # ==========================================================
    def close(self):
        self.coalescer.flush()


class RosterRegistry:
    """One RosterView per (kind, stage) for the life of the process."""

    def __init__(self, database, config):
        self.database = database
        self.config = config
        self._views = {}
        self._lock = threading.Lock()

    def get(self, kind, stage):
        key = (kind, stage)
        with self._lock:
            view = self._views.get(key)
            if view is None:
                view = self._views[key] = self._build(kind, stage)
            return view

    def _build(self, kind, stage):
        roster_kind = KINDS[kind]
        if roster_kind.is_daily:
            quiet = self.config.get("ATTENDANCE_QUIET_PERIOD", 0.3)
        else:
            quiet = self.config.get("DIRECTORY_QUIET_PERIOD", 0.4)
        store = RecordStore(self.database[roster_kind.collection])
        return RosterView(
            roster_kind,
            stage,
            store,
            quiet_period=quiet,
            rows_per_page=self.config.get("ROWS_PER_PAGE", 10),
            enable_move=self.config.get("ENABLE_STAGE_MOVE", False),
        )

    def close_all(self):
        with self._lock:
            views = list(self._views.values())
        for view in views:
            view.close()
        logger.info("Flushed %d roster views", len(views))

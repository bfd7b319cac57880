"""
controllers/roster_routes.py
-----------------
Routes every roster page shares: listing, add, delete, reset, selection,
stage move and spreadsheet import. Page controllers build their own
Blueprint and register these on it.
"""

from flask import abort, current_app, jsonify, request

from models.stages import is_valid_stage, stage_label
from utils.errors import ValidationError


def get_view(kind, stage):
    if not is_valid_stage(stage, kind):
        abort(404)
    return current_app.extensions["rosters"].get(kind, stage)


def payload():
    return request.get_json(silent=True) or request.form.to_dict()


def as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "on", "yes")


def page_response(view, kind, stage):
    page = view.visible(request.args.get("page", type=int))
    body = {
        "success": True,
        "kind": kind,
        "stage": stage,
        "label": stage_label(stage),
        "search": view.search,
        "status": view.status,
        "page": page.page,
        "total_pages": page.total_pages,
        "total": page.total,
        "rows": [view.row_view(r) for r in page.rows],
    }
    if view.kind.is_daily:
        body["date"] = view.selected_date
    else:
        body["month"] = view.selected_month
    return jsonify(body)


def register_roster_routes(bp, kind):

    # ==========================================================
    # LIST (page visit, search, filter, paging)
    # ==========================================================
    @bp.route("/<stage>")
    def list_rows(stage):
        view = get_view(kind, stage)
        if request.args.get("refresh"):
            view.reload()
        else:
            view.mount()

        status = None
        if "status" in request.args:
            status = request.args.get("status") or "all"
        view.set_filters(
            search=request.args.get("q"),
            status=status,
            period=request.args.get("date" if view.kind.is_daily else "month") or None,
        )

        return page_response(view, kind, stage)

    # ==========================================================
    # ADD
    # ==========================================================
    @bp.route("/<stage>/add", methods=["POST"])
    def add_row(stage):
        view = get_view(kind, stage)
        data = payload()
        name = data.pop("name", "")
        record = view.add_child(name, **data)
        return jsonify({"success": True, "row": view.row_view(record)}), 201

    # ==========================================================
    # DELETE
    # ==========================================================
    @bp.route("/<stage>/delete/<record_id>", methods=["POST"])
    def delete_row(stage, record_id):
        view = get_view(kind, stage)
        view.delete(record_id)
        return jsonify({"success": True, "id": record_id})

    # ==========================================================
    # RESET DAY / MONTH
    # ==========================================================
    @bp.route("/<stage>/reset", methods=["POST"])
    def reset_rows(stage):
        view = get_view(kind, stage)
        view.load()
        data = payload()
        period = data.get("date") or data.get("month")
        count = view.reset(period)
        return jsonify({"success": True, "reset": count})

    # ==========================================================
    # SELECT + MOVE
    # ==========================================================
    @bp.route("/<stage>/select", methods=["POST"])
    def select_rows(stage):
        view = get_view(kind, stage)
        data = payload()
        if as_bool(data.get("clear", False)):
            view.clear_selection()
        ids = data.get("ids") or []
        if isinstance(ids, str):
            ids = [i for i in ids.split(",") if i]
        selection = view.select(ids, as_bool(data.get("selected", True)))
        return jsonify({"success": True, "selected": sorted(selection)})

    @bp.route("/<stage>/move", methods=["POST"])
    def move_rows(stage):
        view = get_view(kind, stage)
        target = payload().get("target", "")
        moved = view.move_selected(target)
        return jsonify({"success": True, "moved": moved, "target": target})

    # ==========================================================
    # IMPORT
    # ==========================================================
    @bp.route("/<stage>/import", methods=["POST"])
    def import_rows(stage):
        view = get_view(kind, stage)
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            raise ValidationError(message="⚠️ اختر ملف أولًا")

        added = view.import_file(upload.stream, upload.filename)
        current_app.logger.info("Import into %s/%s added %d rows", kind, stage, added)
        return jsonify({
            "success": True,
            "added": added,
            "message": f"✅ تم إضافة {added} صفوف جديدة بنجاح",
        })

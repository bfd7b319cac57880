from datetime import date

from flask import Blueprint, jsonify, send_file

from controllers.roster_routes import as_bool, get_view, payload, register_roster_routes
from utils.excel_export import XLSX_MIMETYPE, export_children

children_bp = Blueprint("children", __name__, url_prefix="/children")

register_roster_routes(children_bp, "children")


# ==========================================================
# EDIT A DIRECTORY FIELD
# ==========================================================
@children_bp.route("/<stage>/update", methods=["POST"])
def update(stage):
    view = get_view("children", stage)
    view.load()
    data = payload()
    record = view.update_field(data.get("id"), data.get("field"), data.get("value"))
    return jsonify({"success": True, "row": view.row_view(record)})


# ==========================================================
# MONTHLY VISIT FLAG
# ==========================================================
@children_bp.route("/<stage>/visited", methods=["POST"])
def visited(stage):
    view = get_view("children", stage)
    view.load()
    data = payload()
    record = view.set_visited(data.get("id"), data.get("month"), as_bool(data.get("value")))
    return jsonify({"success": True, "row": view.row_view(record)})


# ---------------- Export Excel ----------------
@children_bp.route("/<stage>/export")
def export_excel(stage):
    view = get_view("children", stage)
    view.load()
    output, filename = export_children(view.filtered(), stage, date.today())
    return send_file(output, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)

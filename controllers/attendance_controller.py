from flask import Blueprint, jsonify

from controllers.roster_routes import as_bool, get_view, payload, register_roster_routes

attendance_bp = Blueprint("attendance", __name__, url_prefix="/attendance")

register_roster_routes(attendance_bp, "attendance")


# ==========================================================
# TOGGLE PRESENT / MASS PRESENT
# ==========================================================
@attendance_bp.route("/<stage>/toggle", methods=["POST"])
def toggle(stage):
    view = get_view("attendance", stage)
    view.load()
    data = payload()
    record = view.toggle(
        data.get("id"),
        data.get("field", "present"),
        as_bool(data.get("value")),
        data.get("date"),
    )
    return jsonify({"success": True, "row": view.row_view(record)})

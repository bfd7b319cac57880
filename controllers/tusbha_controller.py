from flask import Blueprint, jsonify

from controllers.roster_routes import as_bool, get_view, payload, register_roster_routes

tusbha_bp = Blueprint("tusbha", __name__, url_prefix="/tusbha")

register_roster_routes(tusbha_bp, "tusbha")


@tusbha_bp.route("/<stage>/toggle", methods=["POST"])
def toggle(stage):
    view = get_view("tusbha", stage)
    view.load()
    data = payload()
    record = view.toggle(data.get("id"), "present", as_bool(data.get("value")), data.get("date"))
    return jsonify({"success": True, "row": view.row_view(record)})

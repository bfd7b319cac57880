from flask import Blueprint, jsonify

from controllers.roster_routes import as_bool, get_view, payload, register_roster_routes

# Same collection as the attendance page; this page only edits massPresent
mass_bp = Blueprint("mass", __name__, url_prefix="/mass")

register_roster_routes(mass_bp, "mass")


@mass_bp.route("/<stage>/toggle", methods=["POST"])
def toggle(stage):
    view = get_view("mass", stage)
    view.load()
    data = payload()
    record = view.toggle(data.get("id"), "massPresent", as_bool(data.get("value")), data.get("date"))
    return jsonify({"success": True, "row": view.row_view(record)})

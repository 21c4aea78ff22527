from flask import Blueprint, current_app, jsonify

from .models import Employee, WorkCard

bp = Blueprint("main", __name__)


@bp.get("/")
def home():
    # No bundled UI; the root just points clients at the API.
    return jsonify({"service": "worktrack", "api": "/api"})


# Small health check
@bp.get("/healthz")
def healthz():
    storage = current_app.extensions["worktrack.storage"]
    return jsonify({
        "ok": True,
        "employees": len(storage.all(Employee)),
        "workCards": len(storage.all(WorkCard)),
    })

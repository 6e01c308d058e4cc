from __future__ import annotations

from functools import wraps

from flask import flash, jsonify, redirect, request, session, url_for

from ..core.exceptions import ValidationError


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def api_login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Not logged in"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def json_object() -> dict:
    """Request JSON body as a dict; no body gives ``{}``, any other JSON value is rejected."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return data

from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Optional

from flask import Flask, abort, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.web import api_login_required, current_user_id, json_error, json_object, login_required
from ..container import Container
from ..core.enums import MarkKind
from ..core.exceptions import ValidationError
from ..courses.model import CourseCatalog
from .model import MonthKey
from .service import cumulative_to_dict, monthly_to_dict

logger = logging.getLogger(__name__)


def _month_from_args(args: Mapping) -> Optional[MonthKey]:
    year_s, month_s = args.get("year"), args.get("month")
    if not year_s and not month_s:
        return None
    try:
        return MonthKey(int(year_s), int(month_s))
    except (TypeError, ValueError):
        raise ValidationError("Invalid month")


def _kind(value) -> MarkKind:
    if value is None or value == "":
        return MarkKind.ABSENT
    if not isinstance(value, str):
        raise ValidationError(f"Invalid mark kind: {value!r}")
    try:
        return MarkKind(value.lower())
    except ValueError:
        raise ValidationError(f"Invalid mark kind: {value!r}")


def _day_from_form(form: Mapping) -> date:
    try:
        return date(int(form.get("year")), int(form.get("month")), int(form.get("day")))
    except (TypeError, ValueError):
        raise ValidationError("Invalid day")


def _day_from_json(data: Mapping) -> date:
    if data.get("date"):
        return parse_iso_date(str(data["date"]))
    return _day_from_form(data)


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service
    courses: CourseCatalog = svc.courses

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        today = today_local()
        result = svc.load(current_user_id())
        if result.warning:
            flash(result.warning, "warning")

        return render_template(
            "dashboard.html",
            name=session.get("name"),
            summaries=svc.summaries(result.snapshot, today=today),
            semester=svc.semester,
            initial_month=svc.initial_month(today=today),
            active_page="dashboard",
        )

    @app.route("/classes/<class_id>", endpoint="class_calendar")
    @login_required
    def class_calendar(class_id: str):
        course = courses.get(class_id)
        if not course:
            abort(404)

        try:
            key = _month_from_args(request.args)
        except ValidationError as e:
            flash(str(e), "warning")
            key = None

        today = today_local()
        result = svc.load(current_user_id())
        if result.warning:
            flash(result.warning, "warning")

        return render_template(
            "calendar.html",
            name=session.get("name"),
            course=course,
            calendar=svc.month_calendar(class_id, result.snapshot, key, today=today),
            summary=svc.summary(course, result.snapshot, today=today),
            semester=svc.semester,
            kinds=MarkKind,
            active_page="classes",
        )

    @app.route("/classes/<class_id>/toggle", methods=["POST"], endpoint="class_toggle")
    @login_required
    def class_toggle(class_id: str):
        back = {"class_id": class_id, "year": request.form.get("year"), "month": request.form.get("month")}
        try:
            svc.toggle(current_user_id(), class_id, _day_from_form(request.form), _kind(request.form.get("kind")))
        except ValidationError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("Toggle failed for class %s", class_id)
            flash("System error while saving attendance", "danger")
        return redirect(url_for("class_calendar", **back))

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance_get")
    @api_login_required
    def api_attendance_get():
        result = svc.load(current_user_id())
        payload = {"success": True, **result.snapshot.to_document()}
        if result.warning:
            payload["warning"] = result.warning
        return jsonify(payload)

    @app.route("/api/attendance", methods=["POST"], endpoint="api_attendance_save")
    @api_login_required
    def api_attendance_save():
        data = request.get_json(silent=True)
        if data is None:
            return json_error("Expected a JSON body", 400)
        try:
            svc.replace(current_user_id(), data)
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Saving attendance document failed")
            return json_error("Failed to save attendance data", 500)
        return jsonify({"success": True, "message": "Attendance data saved"})

    @app.route("/api/classes/<class_id>/toggle", methods=["POST"], endpoint="api_class_toggle")
    @api_login_required
    def api_class_toggle(class_id: str):
        try:
            data = json_object()
            result = svc.toggle(current_user_id(), class_id, _day_from_json(data), _kind(data.get("kind")))
        except ValidationError as e:
            return json_error(str(e), 400)
        except Exception:
            logger.exception("Toggle failed for class %s", class_id)
            return json_error("Failed to save attendance data", 500)
        return jsonify({"success": True, **result.to_dict()})

    @app.route("/api/classes/<class_id>/stats", methods=["GET"], endpoint="api_class_stats")
    @api_login_required
    def api_class_stats(class_id: str):
        today = today_local()
        try:
            key = _month_from_args(request.args) or svc.initial_month(today=today)
        except ValidationError as e:
            return json_error(str(e), 400)

        result = svc.load(current_user_id())
        payload = {
            "success": True,
            "classId": class_id,
            "month": str(key),
            "monthly": monthly_to_dict(svc.monthly(class_id, key, result.snapshot, today=today)),
            "cumulative": cumulative_to_dict(svc.cumulative(class_id, result.snapshot, today=today)),
        }
        if result.warning:
            payload["warning"] = result.warning
        return jsonify(payload)

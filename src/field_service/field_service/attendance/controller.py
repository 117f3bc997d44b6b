from __future__ import annotations

from flask import Flask, request

from ..common.pagination import page_args
from ..common.web import current_user, handle_errors, json_body, login_required, ok, query_date
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_PAGE_SIZE


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    @handle_errors("check in")
    def check_in():
        data = json_body()
        record = service.check_in(
            current_user().user_id,
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            address=data.get("address"),
            notes=data.get("notes"),
        )
        return ok(record.to_dict(), status=201, message="Successfully checked in")

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    @handle_errors("check out")
    def check_out():
        data = json_body()
        record = service.check_out(
            current_user().user_id,
            data.get("attendance_id"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            address=data.get("address"),
            notes=data.get("notes"),
            confirm_early=bool(data.get("confirm_early_checkout")),
        )
        return ok(record.to_dict(), message="Successfully checked out")

    @app.route("/api/attendance/re-check-in", methods=["POST"], endpoint="attendance_re_check_in")
    @login_required
    @handle_errors("re-check-in")
    def re_check_in():
        data = json_body()
        record = service.re_check_in(
            current_user().user_id,
            data.get("attendance_id"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            address=data.get("address"),
            notes=data.get("notes"),
        )
        return ok(record.to_dict(), message="Successfully re-checked in")

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @login_required
    @handle_errors("get attendance status")
    def status():
        return ok(service.current_status(current_user().user_id).to_dict())

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    @handle_errors("get attendance history")
    def history():
        page, limit = page_args(
            request.args.get("page"), request.args.get("limit"), default_limit=DEFAULT_HISTORY_PAGE_SIZE
        )
        result = service.history(
            current_user().user_id,
            start_date=query_date("start_date"),
            end_date=query_date("end_date"),
            page=page,
            limit=limit,
        )
        return ok([r.to_dict() for r in result.items], pagination=result.meta())

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    @handle_errors("get attendance stats")
    def stats():
        period = request.args.get("period", "month")
        return ok(service.stats(current_user().user_id, period=period).to_dict())

from __future__ import annotations

from flask import Flask, request

from ..activities.service import parse_activity_type
from ..common.pagination import page_args
from ..common.web import current_user, handle_errors, json_body, ok, query_date, query_int, roles_required
from ..container import Container
from ..core.enums import Role
from .report_service import ReportFilters, Viewer


def _viewer() -> Viewer:
    user = current_user()
    return Viewer(user_id=user.user_id, role=user.role, zone_id=user.zone_id)


def _filters() -> ReportFilters:
    activity_type = request.args.get("activity_type")
    return ReportFilters(
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
        zone_id=query_int("zone_id"),
        user_id=query_int("user_id"),
        status=request.args.get("status"),
        activity_type=parse_activity_type(activity_type) if activity_type not in (None, "", "all") else None,
        search=request.args.get("search") or None,
    )


def register(app: Flask, container: Container) -> None:
    reports = container.report_service
    attendance = container.attendance_service
    activities = container.activity_service
    staff = (Role.ADMIN, Role.ZONE_USER)

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="admin_attendance_list")
    @roles_required(*staff)
    @handle_errors("list attendance")
    def list_attendance():
        page, limit = page_args(
            request.args.get("page"), request.args.get("limit"), default_limit=container.default_page_size
        )
        report = reports.list_attendance(_viewer(), _filters(), page=page, limit=limit)
        return ok(report.to_dict())

    @app.route("/api/admin/attendance/stats", methods=["GET"], endpoint="admin_attendance_stats")
    @roles_required(*staff)
    @handle_errors("get attendance stats")
    def stats():
        return ok(reports.stats(_viewer(), _filters()))

    @app.route("/api/admin/attendance/live", methods=["GET"], endpoint="admin_attendance_live")
    @roles_required(*staff)
    @handle_errors("get live tracking")
    def live():
        entries = attendance.live_tracking(zone_id=_viewer().scoped_zone(query_int("zone_id")))
        return ok({"live_tracking": [e.to_dict() for e in entries], "total_active": len(entries)})

    @app.route("/api/admin/attendance/<record_id>", methods=["GET"], endpoint="admin_attendance_detail")
    @roles_required(*staff)
    @handle_errors("get attendance detail")
    def detail(record_id: str):
        return ok(reports.detail(_viewer(), record_id).to_dict())

    @app.route("/api/admin/attendance/<int:attendance_id>", methods=["PUT"], endpoint="admin_attendance_update")
    @roles_required(Role.ADMIN)
    @handle_errors("update attendance")
    def update(attendance_id: int):
        record = reports.update_record(current_user().user_id, attendance_id, json_body())
        return ok(record.to_dict(), message="Attendance record updated successfully")

    @app.route(
        "/api/admin/attendance/<int:attendance_id>/activities",
        methods=["POST"],
        endpoint="admin_attendance_add_activity",
    )
    @roles_required(Role.ADMIN)
    @handle_errors("add activity log")
    def add_activity(attendance_id: int):
        entry = activities.admin_add_activity(current_user().user_id, attendance_id, json_body())
        return ok(entry.to_dict(), status=201, message="Activity log added successfully")

    @app.route("/api/admin/service-persons", methods=["GET"], endpoint="admin_service_persons")
    @roles_required(*staff)
    @handle_errors("get service persons")
    def service_persons():
        users = reports.service_persons(_viewer(), zone_id=query_int("zone_id"))
        return ok([u.to_dict() for u in users])

    @app.route("/api/admin/service-zones", methods=["GET"], endpoint="admin_service_zones")
    @roles_required(*staff)
    @handle_errors("get service zones")
    def service_zones():
        return ok([z.to_dict() for z in reports.service_zones(_viewer())])

from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import day_bounds, end_of_day
from ..common.pagination import page_args
from ..common.web import current_user, handle_errors, json_body, login_required, ok, query_date, query_int
from ..container import Container
from .service import ActivityFilters, parse_activity_type


def _filters() -> ActivityFilters:
    start_date = query_date("start_date")
    end_date = query_date("end_date")
    activity_type = request.args.get("activity_type")
    return ActivityFilters(
        start_date=day_bounds(start_date)[0] if start_date else None,
        end_date=end_of_day(end_date) if end_date else None,
        activity_type=parse_activity_type(activity_type) if activity_type not in (None, "", "all") else None,
        ticket_id=query_int("ticket_id"),
    )


def register(app: Flask, container: Container) -> None:
    service = container.activity_service

    @app.route("/api/activities", methods=["POST"], endpoint="activities_create")
    @login_required
    @handle_errors("create activity")
    def create():
        entry = service.create_activity(current_user().user_id, json_body())
        return ok(entry.to_dict(), status=201, message="Activity logged successfully")

    @app.route("/api/activities", methods=["GET"], endpoint="activities_list")
    @login_required
    @handle_errors("get activities")
    def list_activities():
        page, limit = page_args(
            request.args.get("page"), request.args.get("limit"), default_limit=container.default_page_size
        )
        result = service.list_activities(current_user().user_id, _filters(), page=page, limit=limit)
        return ok([a.to_dict() for a in result.items], pagination=result.meta())

    @app.route("/api/activities/<int:activity_id>", methods=["PUT"], endpoint="activities_update")
    @login_required
    @handle_errors("update activity")
    def update(activity_id: int):
        entry = service.update_activity(current_user().user_id, activity_id, json_body())
        return ok(entry.to_dict(), message="Activity updated successfully")

    @app.route("/api/activities/stats", methods=["GET"], endpoint="activities_stats")
    @login_required
    @handle_errors("get activity stats")
    def stats():
        return ok(service.stats(current_user().user_id, period=request.args.get("period", "month")))

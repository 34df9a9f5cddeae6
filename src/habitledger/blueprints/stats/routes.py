"""Dashboard statistics and chart routes."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_services
from ...services.stats import CHART_DAYS, calculate_stats, completion_rate_chart, streak_chart
from . import bp

MAX_CHART_DAYS = 365


@bp.get("/stats")
def stats():
    """Overall totals, streak figures and the 7-day completion rate."""

    services = get_services()
    result = calculate_stats(services.session_factory, today=services.today())
    return jsonify(result.to_dict())


@bp.get("/charts/completion-rates")
def completion_rates():
    """Completions per day; ``?days=`` defaults to 30."""

    days = request.args.get("days", default=CHART_DAYS, type=int)
    if days is None or not 1 <= days <= MAX_CHART_DAYS:
        return jsonify({"error": f"days must be between 1 and {MAX_CHART_DAYS}"}), 400
    services = get_services()
    chart = completion_rate_chart(services.session_factory, today=services.today(), days=days)
    return jsonify(chart.to_dict())


@bp.get("/charts/streaks")
def streaks():
    """Current streak per habit, highest first."""

    return jsonify(streak_chart(get_services().session_factory).to_dict())

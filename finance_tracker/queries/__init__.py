"""Aggregation views: dashboard, reports and the join they share."""

from finance_tracker.queries.charts import bar_chart, line_chart, pie_chart
from finance_tracker.queries.dashboard import DashboardAggregator
from finance_tracker.queries.join import AggregationError, gather_named
from finance_tracker.queries.reports import ReportAggregator, variance_status

__all__ = [
    "bar_chart",
    "line_chart",
    "pie_chart",
    "DashboardAggregator",
    "AggregationError",
    "gather_named",
    "ReportAggregator",
    "variance_status",
]

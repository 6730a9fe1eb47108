"""
Chart Builders

Turn label/value pairs into ChartData. Empty input becomes a single
"No Data" point so the chart still renders.
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

from finance_tracker.models.reports import NO_DATA_LABEL, ChartData, ChartSeries


Number = Union[int, float, Decimal]

PIE_COLORS = [
    "#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0",
    "#9966FF", "#FF9F40", "#FF6384", "#C9CBCF",
]
INCOME_COLOR = "#4CAF50"
EXPENSE_COLOR = "#F44336"
SAVINGS_COLOR = "#1976d2"
PLACEHOLDER_COLOR = "#E0E0E0"


def pie_chart(title: str, values: dict[str, Number]) -> ChartData:
    """One slice per label, in the given order. Empty gives 'No Data' = 1."""
    if not values:
        return ChartData(
            title=title,
            labels=[NO_DATA_LABEL],
            datasets=[ChartSeries(data=[1.0], colors=[PLACEHOLDER_COLOR])],
        )

    labels = list(values)
    colors = [PIE_COLORS[i % len(PIE_COLORS)] for i in range(len(labels))]
    return ChartData(
        title=title,
        labels=labels,
        datasets=[ChartSeries(data=[float(v) for v in values.values()], colors=colors)],
    )


def bar_chart(
    title: str,
    label: str,
    series: dict[str, Number],
    colors: Optional[dict[str, str]] = None,
) -> ChartData:
    """
    A bar chart with one label and one dataset per series.

    For income vs expenses: label "This Month", series Income and Expenses.
    """
    colors = colors or {}
    datasets = [
        ChartSeries(label=name, data=[float(value)], colors=[colors.get(name, PIE_COLORS[i])])
        for i, (name, value) in enumerate(series.items())
    ]
    return ChartData(title=title, labels=[label], datasets=datasets)


def line_chart(title: str, series_label: str, points: Iterable[tuple[str, Number]]) -> ChartData:
    """A single-series line chart. Empty gives 'No Data' = 0."""
    points = list(points)
    if not points:
        return ChartData(
            title=title,
            labels=[NO_DATA_LABEL],
            datasets=[ChartSeries(label=series_label, data=[0.0], colors=[PLACEHOLDER_COLOR])],
        )

    return ChartData(
        title=title,
        labels=[label for label, _ in points],
        datasets=[
            ChartSeries(
                label=series_label,
                data=[float(value) for _, value in points],
                colors=[SAVINGS_COLOR],
            )
        ],
    )

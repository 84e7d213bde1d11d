"""Plotly visualisation helpers for the expense dashboard.

These functions accept the objects produced by :mod:`aggregation` and turn
them into Plotly figures or display-ready DataFrames. They do not compute
any figures of their own beyond what the chart needs.

All chart functions return a ``plotly.graph_objects.Figure`` instance that
Streamlit can render via ``st.plotly_chart``.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import pandas as pd
import plotly.graph_objects as go

try:
    from .aggregation import CategoryBucket
    from .formatting import format_category, format_currency, format_percent
    from .models import Category
except ImportError:
    from aggregation import CategoryBucket
    from formatting import format_category, format_currency, format_percent
    from models import Category

CATEGORY_COLORS: Dict[Category, str] = {
    Category.FOOD: '#4361ee',
    Category.TRANSPORT: '#3f37c9',
    Category.SERVICES: '#4cc9f0',
    Category.LEISURE: '#7209b7',
    Category.HEALTH: '#4bb543',
    Category.OTHER: '#f72585',
}
DEFAULT_COLOR = '#6c757d'
NO_DATA_COLOR = 'rgba(220, 220, 220, 0.3)'

BUDGET_OK_COLOR = '#4bb543'
BUDGET_WARN_COLOR = '#f9c74f'
BUDGET_OVER_COLOR = '#ef476f'


def category_color(category) -> str:
    return CATEGORY_COLORS.get(Category.from_value(category), DEFAULT_COLOR)


def budget_progress_color(used_percent: Optional[float]) -> str:
    """Colour of the budget progress bar: green below 60%, yellow below 90%, red above."""
    percent = used_percent or 0.0
    if percent < 60:
        return BUDGET_OK_COLOR
    if percent < 90:
        return BUDGET_WARN_COLOR
    return BUDGET_OVER_COLOR


def budget_progress_width(used_percent: Optional[float]) -> float:
    """Progress bar fill, capped at 100 even when the budget is overspent."""
    return max(0.0, min(100.0, used_percent or 0.0))


def _no_data_figure() -> go.Figure:
    fig = go.Figure(go.Pie(
        labels=['No data'],
        values=[100],
        hole=0.85,
        marker={'colors': [NO_DATA_COLOR]},
        textinfo='none',
        hoverinfo='skip',
        sort=False,
    ))
    fig.update_layout(
        showlegend=False,
        annotations=[{'text': 'No data', 'showarrow': False, 'font': {'size': 14}}],
    )
    return fig


def create_category_doughnut(
    breakdown: Sequence[CategoryBucket],
    title: str | None = None,
    locale: str | None = None,
    currency: str | None = None,
) -> go.Figure:
    """Doughnut chart of spending per category with the total in the centre.

    Parameters
    ----------
    breakdown : sequence of CategoryBucket
        Output of :func:`aggregation.compute_category_breakdown`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Doughnut chart, or a grey placeholder ring when there is no data.
    """
    if not breakdown:
        fig = _no_data_figure()
        if title:
            fig.update_layout(title=title)
        return fig

    total = sum(bucket.amount for bucket in breakdown)
    fig = go.Figure(go.Pie(
        labels=[format_category(bucket.category) for bucket in breakdown],
        values=[bucket.amount for bucket in breakdown],
        hole=0.85,
        marker={'colors': [category_color(bucket.category) for bucket in breakdown]},
        textinfo='none',
        sort=False,
        hovertemplate='%{label}: %{customdata} (%{percent})<extra></extra>',
        customdata=[format_currency(bucket.amount, locale=locale, currency=currency) for bucket in breakdown],
    ))
    fig.update_layout(
        title=title or "Spending by category",
        showlegend=True,
        annotations=[{
            'text': f"<b>{format_currency(total, locale=locale, currency=currency, include_sign=False)}</b><br>Total",
            'showarrow': False,
            'font': {'size': 16},
        }],
    )
    return fig


def breakdown_table(
    breakdown: Sequence[CategoryBucket],
    locale: str | None = None,
    currency: str | None = None,
) -> pd.DataFrame:
    """Display table for the category breakdown (category, amount, share)."""
    rows = [
        {
            'Category': format_category(bucket.category),
            'Amount': format_currency(bucket.amount, locale=locale, currency=currency),
            'Share': format_percent(bucket.percent_of_total),
            'Color': category_color(bucket.category),
        }
        for bucket in breakdown
    ]
    return pd.DataFrame(rows, columns=['Category', 'Amount', 'Share', 'Color'])

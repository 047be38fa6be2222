"""
Plotly figures for estimate totals.
"""

from __future__ import annotations

import plotly.graph_objects as go

from .totals import EstimateTotals


def create_division_cost_chart(totals: EstimateTotals, include_other_costs: bool = True) -> go.Figure:
    """
    Stacked bar per division: labor, material, contingency.

    The Other Costs pseudo division is drawn last when present.
    """
    divisions = list(totals.divisions)
    if include_other_costs and totals.other_costs is not None:
        divisions.append(totals.other_costs)

    labels = [d.label for d in divisions]
    fig = go.Figure()
    fig.add_trace(go.Bar(name="Labor", x=labels, y=[d.amounts.labor for d in divisions]))
    fig.add_trace(go.Bar(name="Material", x=labels, y=[d.amounts.material for d in divisions]))
    fig.add_trace(
        go.Bar(name="Contingency", x=labels, y=[d.amounts.contingency for d in divisions])
    )
    fig.update_layout(
        barmode="stack",
        title=dict(
            text=f"Estimate by Division<br><sub>Grand total ${totals.main.total:,.2f}"
                 f" | Other costs ${totals.other.total:,.2f}</sub>",
            x=0.5,
            xanchor="center",
        ),
        yaxis_title="USD",
        height=500,
    )
    return fig

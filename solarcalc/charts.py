"""
Plotly figures for the dashboard.
"""

from typing import List
import numpy as np
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from .api_calls import PVWattsResult
from .financial_calcs import ProjectionPoint, projection_frame
from .market_data import MONTHS

COLORS = ['#0088FE', '#00C49F', '#FFBB28', '#FF8042', '#8884D8', '#82CA9D']


def monthly_frame(production: PVWattsResult) -> pd.DataFrame:
    """
    Per-month production table.

    Columns: month, ac, dc, radiation, efficiency (AC/DC in %, 0 when DC is 0)
    """
    ac = np.asarray(production.ac_monthly, dtype=float)
    dc = np.asarray(production.dc_monthly, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        efficiency = np.where(dc > 0, ac / dc * 100, 0.0)

    return pd.DataFrame({
        'month': MONTHS[:len(ac)],
        'ac': np.floor(ac + 0.5),
        'dc': np.floor(dc + 0.5),
        'radiation': np.round(np.asarray(production.solrad_monthly, dtype=float), 2),
        'efficiency': np.floor(efficiency + 0.5),
    })


def production_summary(production: PVWattsResult) -> str:
    """One-line annual summary: average radiation and capacity factor."""
    return (
        f"Annual Solar Radiation: {production.solrad_annual:.2f} kWh/m²/day | "
        f"Capacity Factor: {production.capacity_factor:.1f}%"
    )


def _layout(fig: go.Figure, yaxis_title: str, height: int = 300) -> go.Figure:
    fig.update_layout(
        yaxis_title=yaxis_title,
        margin=dict(l=20, r=30, t=10, b=20),
        legend=dict(orientation='h', y=-0.2),
        height=height
    )
    return fig


def monthly_production_chart(frame: pd.DataFrame) -> go.Figure:
    fig = go.Figure(go.Bar(
        x=frame['month'], y=frame['ac'],
        name='Monthly Production', marker_color='#8884d8'
    ))
    return _layout(fig, 'Energy (kWh)')


def solar_radiation_chart(frame: pd.DataFrame) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=frame['month'], y=frame['radiation'], mode='lines+markers',
        name='Solar Radiation', line=dict(color='#FF8042', shape='spline')
    ))
    return _layout(fig, 'Solar Radiation (kWh/m²/day)')


def efficiency_chart(frame: pd.DataFrame) -> go.Figure:
    fig = go.Figure(go.Scatter(
        x=frame['month'], y=frame['efficiency'], mode='lines+markers',
        name='System Efficiency', line=dict(color='#82ca9d', shape='spline')
    ))
    fig.update_yaxes(range=[80, 100])
    return _layout(fig, 'Efficiency (%)')


def ac_dc_chart(frame: pd.DataFrame) -> go.Figure:
    fig = go.Figure([
        go.Bar(x=frame['month'], y=frame['dc'], name='DC Output', marker_color='#82ca9d'),
        go.Bar(x=frame['month'], y=frame['ac'], name='AC Output', marker_color='#8884d8'),
    ])
    fig.update_layout(barmode='group')
    return _layout(fig, 'Energy (kWh)')


def roof_segment_chart(roof_segments: list) -> go.Figure:
    """Pie of roof area by segment."""
    frame = pd.DataFrame({
        'segment': [f"Segment {i + 1}" for i in range(len(roof_segments))],
        'area': [s.get('stats', {}).get('areaMeters2', 0) for s in roof_segments],
        'pitch': [s.get('pitchDegrees', 0) for s in roof_segments],
        'azimuth': [s.get('azimuthDegrees', 0) for s in roof_segments],
    })
    fig = px.pie(
        frame, names='segment', values='area',
        hover_data=['pitch', 'azimuth'],
        color_discrete_sequence=COLORS
    )
    fig.update_layout(margin=dict(l=0, r=0, t=10, b=0), height=300)
    return fig


def panel_config_chart(panel_configs: list) -> go.Figure:
    """Panel count and yearly energy per configuration on two y-axes."""
    names = [f"Config {i + 1}" for i in range(len(panel_configs))]
    fig = go.Figure([
        go.Bar(
            x=names, y=[c.get('panelsCount', 0) for c in panel_configs],
            name='Panels', marker_color='#8884d8', offsetgroup=0
        ),
        go.Bar(
            x=names, y=[c.get('yearlyEnergyDcKwh', 0) for c in panel_configs],
            name='Energy (kWh/year)', marker_color='#82ca9d',
            yaxis='y2', offsetgroup=1
        ),
    ])
    fig.update_layout(
        yaxis=dict(title='Panels'),
        yaxis2=dict(title='Energy (kWh/year)', overlaying='y', side='right'),
        barmode='group',
        margin=dict(l=20, r=30, t=10, b=20),
        height=300
    )
    return fig


def cost_comparison_chart(points: List[ProjectionPoint]) -> go.Figure:
    """20-year cumulative cost with and without solar."""
    frame = projection_frame(points)
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=frame['year'], y=frame['without_solar'],
        mode='lines+markers', name='Without Solar',
        line=dict(color='#8884d8', width=3)
    ))
    fig.add_trace(go.Scatter(
        x=frame['year'], y=frame['with_solar'],
        mode='lines+markers', name='With Solar',
        line=dict(color='#82ca9d', width=3)
    ))

    fig.update_layout(
        xaxis_title="Years",
        yaxis_title="Cumulative Cost ($)",
        yaxis_tickprefix="$",
        yaxis_tickformat=",",
        hovermode='x unified',
        height=400
    )
    return fig

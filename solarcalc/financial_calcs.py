"""
Financial calculations for the solar savings dashboard.
Covers the 20-year cost comparison and the headline system metrics.
"""

from dataclasses import dataclass
from typing import List, Optional
import numpy as np
import pandas as pd

from .market_data import (
    ELECTRICITY_RATE,
    COST_PER_WATT,
    CO2_KG_PER_KWH,
    PROJECTION_YEARS,
    UTILITY_ESCALATION,
    DISCOUNT_FACTOR
)


@dataclass(frozen=True)
class ProjectionInput:
    """Inputs for the cost comparison projection."""
    monthly_bill: float
    total_savings_over_horizon: float
    installation_cost: float


@dataclass(frozen=True)
class ProjectionPoint:
    """Cumulative cost of both scenarios at the end of one year."""
    year_index: int
    cumulative_cost_without_solar: int
    cumulative_cost_with_solar: int


@dataclass(frozen=True)
class DerivedMetrics:
    """Headline metrics derived from annual production."""
    annual_production_kwh: float
    annual_savings: float
    system_cost: float
    payback_years: Optional[float]  # None when savings never recover the cost
    co2_reduction_kg: float

    @property
    def payback_recoverable(self) -> bool:
        return self.payback_years is not None


def round_half_up(values: np.ndarray) -> np.ndarray:
    """
    Round to the nearest integer with .5 going up (not to even).

    Inputs within one ulp below .5, or beyond 2**52, may land one off a
    decimal reading; currency totals never get near either case.
    """
    return np.floor(np.asarray(values, dtype=float) + 0.5).astype(int)


def project(
    monthly_bill: float,
    total_savings_over_horizon: float,
    installation_cost: float
) -> List[ProjectionPoint]:
    """
    Project cumulative utility costs with and without solar.

    The total savings figure is spread evenly across the horizon. Every year,
    including year 0, adds that year's escalated and discounted bill to both
    running totals; the with-solar total starts from the installation cost.

    Args:
        monthly_bill: Average monthly electricity bill ($)
        total_savings_over_horizon: Total solar savings over 20 years ($)
        installation_cost: Upfront installation cost ($)

    Returns:
        21 ProjectionPoint values for years 0 through 20
    """
    annual_bill = monthly_bill * 12
    annual_savings = total_savings_over_horizon / PROJECTION_YEARS

    years = np.arange(PROJECTION_YEARS + 1)
    escalation = np.power(UTILITY_ESCALATION, years)
    discount = np.power(DISCOUNT_FACTOR, years)

    without_solar = np.cumsum(annual_bill * escalation / discount)
    # Seed the running total with the installation cost before accumulating
    with_solar = np.cumsum(np.concatenate((
        [installation_cost],
        (annual_bill - annual_savings) * escalation / discount
    )))[1:]

    return [
        ProjectionPoint(
            year_index=int(year),
            cumulative_cost_without_solar=int(without),
            cumulative_cost_with_solar=int(with_)
        )
        for year, without, with_ in zip(
            years, round_half_up(without_solar), round_half_up(with_solar)
        )
    ]


def project_input(inputs: ProjectionInput) -> List[ProjectionPoint]:
    """Run the projection from a ProjectionInput record."""
    return project(
        inputs.monthly_bill,
        inputs.total_savings_over_horizon,
        inputs.installation_cost
    )


def projection_frame(points: List[ProjectionPoint]) -> pd.DataFrame:
    """Tabulate projection points for charts and tables."""
    frame = pd.DataFrame({
        'year': [p.year_index for p in points],
        'without_solar': [p.cumulative_cost_without_solar for p in points],
        'with_solar': [p.cumulative_cost_with_solar for p in points],
    })
    frame['difference'] = frame['without_solar'] - frame['with_solar']
    return frame


def breakeven_year(points: List[ProjectionPoint]) -> Optional[int]:
    """
    First year the with-solar cumulative cost is no higher than without.

    Returns:
        Year index, or None if solar never breaks even within the horizon
    """
    for point in points:
        if point.cumulative_cost_with_solar <= point.cumulative_cost_without_solar:
            return point.year_index
    return None


def derive_metrics(
    annual_production_kwh: float,
    system_capacity_kw: float
) -> DerivedMetrics:
    """
    Calculate savings, cost, payback and CO2 offset for a system.

    Args:
        annual_production_kwh: Annual AC production (kWh)
        system_capacity_kw: DC system capacity (kW)

    Returns:
        DerivedMetrics; payback_years is None when annual savings <= 0
    """
    annual_savings = annual_production_kwh * ELECTRICITY_RATE
    system_cost = system_capacity_kw * 1000 * COST_PER_WATT

    if annual_savings > 0:
        payback_years = system_cost / annual_savings
    else:
        payback_years = None

    return DerivedMetrics(
        annual_production_kwh=annual_production_kwh,
        annual_savings=annual_savings,
        system_cost=system_cost,
        payback_years=payback_years,
        co2_reduction_kg=annual_production_kwh * CO2_KG_PER_KWH
    )


def format_payback(metrics: DerivedMetrics) -> str:
    if not metrics.payback_recoverable:
        return "Not recoverable"
    return f"{metrics.payback_years:.1f} years"


def format_currency(amount: float) -> str:
    return f"${amount:,.0f}"


def format_kwh(amount: float) -> str:
    return f"{amount:,.0f} kWh"

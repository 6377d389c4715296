"""
Site report assembly.

Resolves an address to coordinates, fetches production and building data
concurrently, and runs the calculators on whatever data arrived.
"""

import logging
import math
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, TypeVar

from .api_calls import (
    geocode_address,
    get_pvwatts_production,
    get_building_insights,
    best_financial_analysis,
    financial_inputs,
    failed_pvwatts,
    failed_insights,
    GeocodingResult,
    PVWattsResult,
    SolarInsightsResult
)
from .config import ApiKeys
from .financial_calcs import (
    derive_metrics,
    project_input,
    DerivedMetrics,
    ProjectionInput,
    ProjectionPoint
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidInputError(ValueError):
    """A user or provider value failed boundary validation."""


def validate_address(address: str) -> str:
    if not address or not address.strip():
        raise InvalidInputError("Please enter an address")
    return address.strip()


def validate_amount(name: str, value: float, allow_zero: bool = True) -> float:
    """
    Check that a quantity is a finite, non-negative number.

    Args:
        name: Label used in the error message
        value: Value to check
        allow_zero: When False the value must be strictly positive

    Raises:
        InvalidInputError: for non-numeric, non-finite, negative or disallowed zero values
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    if number < 0:
        raise InvalidInputError(f"{name} must not be negative, got {value!r}")
    if number == 0 and not allow_zero:
        raise InvalidInputError(f"{name} must be greater than zero")
    return number


def validate_projection_input(inputs: ProjectionInput) -> ProjectionInput:
    return ProjectionInput(
        monthly_bill=validate_amount(
            "Monthly bill", inputs.monthly_bill, allow_zero=False
        ),
        total_savings_over_horizon=validate_amount(
            "Total savings", inputs.total_savings_over_horizon
        ),
        installation_cost=validate_amount(
            "Installation cost", inputs.installation_cost
        )
    )


@dataclass
class SiteReport:
    """Everything the dashboard renders for one address."""
    address: str
    geocoding: Optional[GeocodingResult] = None
    production: Optional[PVWattsResult] = None
    insights: Optional[SolarInsightsResult] = None
    metrics: Optional[DerivedMetrics] = None
    projection_input: Optional[ProjectionInput] = None
    projection: List[ProjectionPoint] = field(default_factory=list)
    projection_from_defaults: bool = True
    errors: List[str] = field(default_factory=list)

    @property
    def located(self) -> bool:
        return self.geocoding is not None and self.geocoding.success

    @property
    def providers_ok(self) -> bool:
        """True when geocoding and both provider calls succeeded."""
        return (
            self.located
            and self.production is not None and self.production.success
            and self.insights is not None and self.insights.success
        )


class IncompleteReportError(Exception):
    """A provider call failed; the partial report is attached."""

    def __init__(self, report: SiteReport):
        super().__init__("; ".join(report.errors) or "Incomplete site report")
        self.report = report


def _provider_result(future: Future, failed: Callable[[str], T], name: str) -> T:
    # Providers report their own failures; anything they let escape becomes one too
    try:
        return future.result()
    except Exception as e:
        logger.exception("%s call failed", name)
        return failed(f"Unexpected error: {str(e)}")


def _metrics_for(production: PVWattsResult) -> DerivedMetrics:
    return derive_metrics(
        validate_amount("Annual production", production.ac_annual),
        validate_amount("System capacity", production.system_capacity_kw)
    )


def load_site_report(
    address: str,
    keys: ApiKeys,
    executor: Optional[Executor] = None
) -> SiteReport:
    """
    Geocode an address and gather production, building and financial data.

    Provider failures are recorded in ``errors``; they never stop the other
    provider's data from being used.

    Args:
        address: Street address entered by the user
        keys: Provider API keys
        executor: Executor for the two provider calls (a 2-thread pool by default)

    Returns:
        SiteReport

    Raises:
        InvalidInputError: if the address is blank
    """
    address = validate_address(address)
    report = SiteReport(address=address)

    report.geocoding = geocode_address(address, keys.geocode)
    if not report.geocoding.success:
        report.errors.append(f"Could not find address: {report.geocoding.error}")
        return report

    lat, lon = report.geocoding.coordinates
    logger.info("Resolved %r to %.4f, %.4f", address, lat, lon)

    own_executor = executor is None
    if own_executor:
        executor = ThreadPoolExecutor(max_workers=2)
    try:
        production_future = executor.submit(get_pvwatts_production, lat, lon, keys.nrel)
        insights_future = executor.submit(get_building_insights, lat, lon, keys.google)
        report.production = _provider_result(production_future, failed_pvwatts, "PVWatts")
        report.insights = _provider_result(insights_future, failed_insights, "Solar API")
    finally:
        if own_executor:
            executor.shutdown(wait=True)

    if report.production.success:
        try:
            report.metrics = _metrics_for(report.production)
        except InvalidInputError as e:
            logger.warning("Rejected production data: %s", e)
            report.errors.append(f"Invalid production data: {e}")
    else:
        report.errors.append(f"Failed to fetch solar data: {report.production.error}")

    analysis = None
    if report.insights.success:
        analysis = best_financial_analysis(report.insights.financial_analyses)
    else:
        report.errors.append(f"Limited solar data: {report.insights.error}")

    inputs, from_analysis = financial_inputs(analysis)
    try:
        report.projection_input = validate_projection_input(inputs)
    except InvalidInputError as e:
        logger.warning("Rejected financial analysis: %s", e)
        report.errors.append(f"Invalid financial data: {e}")
        report.projection_input, from_analysis = financial_inputs(None)
    report.projection_from_defaults = not from_analysis
    report.projection = project_input(report.projection_input)

    return report


def load_complete_site_report(address: str, keys: ApiKeys) -> SiteReport:
    """
    Load a site report, raising if any provider call failed.

    Suitable for wrapping in a result cache: only reports where every
    provider succeeded are returned, so transient failures are retried on
    the next request.

    Raises:
        InvalidInputError: if the address is blank
        IncompleteReportError: if geocoding or a provider call failed
    """
    report = load_site_report(address, keys)
    if not report.providers_ok:
        raise IncompleteReportError(report)
    return report

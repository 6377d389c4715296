"""Core modules for the Solar Savings Dashboard."""

from .api_calls import (
    geocode_address,
    get_pvwatts_production,
    get_building_insights,
    best_panel_config,
    best_financial_analysis,
    roof_totals,
    financial_inputs,
    GeocodingResult,
    PVWattsResult,
    SolarInsightsResult
)

from .financial_calcs import (
    project,
    project_input,
    projection_frame,
    breakeven_year,
    derive_metrics,
    format_payback,
    ProjectionInput,
    ProjectionPoint,
    DerivedMetrics
)

from .market_data import (
    ELECTRICITY_RATE,
    COST_PER_WATT,
    CO2_KG_PER_KWH,
    MONTHS,
    Provider,
    list_providers,
    get_provider
)

from .dashboard import (
    load_site_report,
    load_complete_site_report,
    validate_address,
    validate_amount,
    InvalidInputError,
    IncompleteReportError,
    SiteReport
)

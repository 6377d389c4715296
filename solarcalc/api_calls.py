"""
External data provider integration.
Handles geocoding, NREL PVWatts production estimates and Google Solar API
building insights.
"""

import logging
import requests
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass, field

from .market_data import (
    DEFAULT_MONTHLY_BILL,
    DEFAULT_TOTAL_SAVINGS,
    DEFAULT_INSTALLATION_COST
)
from .financial_calcs import ProjectionInput

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://geocode.maps.co/search"
PVWATTS_URL = "https://developer.nrel.gov/api/pvwatts/v8.json"
BUILDING_INSIGHTS_URL = "https://solar.googleapis.com/v1/buildingInsights:findClosest"


@dataclass
class GeocodingResult:
    """Result from geocoding an address."""
    latitude: float
    longitude: float
    display_name: str
    success: bool
    error: Optional[str] = None

    @property
    def coordinates(self) -> Tuple[float, float]:
        return self.latitude, self.longitude


@dataclass
class PVWattsResult:
    """Result from the NREL PVWatts production estimate."""
    ac_monthly: List[float]
    dc_monthly: List[float]
    ac_annual: float
    solrad_monthly: List[float]
    solrad_annual: float
    capacity_factor: float
    system_capacity_kw: float
    success: bool
    error: Optional[str] = None


@dataclass
class SolarInsightsResult:
    """Result from Google Solar API building insights."""
    name: str
    postal_code: str
    administrative_area: str
    imagery_date: Optional[str]
    imagery_quality: Optional[str]
    max_panel_count: int
    max_array_area_m2: float
    max_sunshine_hours: float
    carbon_offset_factor_kg_per_mwh: float
    roof_segments: list
    panel_configs: list
    financial_analyses: list
    success: bool
    error: Optional[str] = None
    raw_data: Optional[Dict] = field(default=None, repr=False)


def failed_geocode(error: str) -> GeocodingResult:
    return GeocodingResult(
        latitude=0, longitude=0, display_name='', success=False, error=error
    )


def failed_pvwatts(error: str) -> PVWattsResult:
    return PVWattsResult(
        ac_monthly=[], dc_monthly=[], ac_annual=0, solrad_monthly=[],
        solrad_annual=0, capacity_factor=0, system_capacity_kw=0,
        success=False, error=error
    )


def failed_insights(error: str) -> SolarInsightsResult:
    return SolarInsightsResult(
        name='', postal_code='', administrative_area='', imagery_date=None,
        imagery_quality=None, max_panel_count=0, max_array_area_m2=0,
        max_sunshine_hours=0, carbon_offset_factor_kg_per_mwh=0,
        roof_segments=[], panel_configs=[], financial_analyses=[],
        success=False, error=error
    )


def geocode_address(address: str, api_key: str) -> GeocodingResult:
    """
    Convert street address to coordinates using the maps.co geocoder.

    Args:
        address: Street address to geocode
        api_key: geocode.maps.co API key

    Returns:
        GeocodingResult with coordinates of the first match
    """
    params = {
        "q": address,
        "api_key": api_key
    }
    logger.debug("Geocoding address %r", address)

    try:
        response = requests.get(GEOCODE_URL, params=params, timeout=10)
        response.raise_for_status()
        data = response.json()

        if not data:
            logger.warning("No geocoding match for %r", address)
            return failed_geocode("No coordinates found for this address")

        match = data[0]
        return GeocodingResult(
            latitude=float(match['lat']),
            longitude=float(match['lon']),
            display_name=match.get('display_name', address),
            success=True
        )

    except requests.exceptions.Timeout:
        logger.warning("Geocoding timed out for %r", address)
        return failed_geocode("Request timed out. Please try again.")
    except requests.exceptions.RequestException as e:
        logger.warning("Geocoding request failed: %s", e)
        return failed_geocode(f"Network error: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected geocoding response")
        return failed_geocode(f"Unexpected error: {str(e)}")


def get_pvwatts_production(
    latitude: float,
    longitude: float,
    api_key: str,
    system_capacity_kw: float = 4.0,
    tilt: float = 20,
    azimuth: float = 180,
    array_type: int = 1,
    module_type: int = 0,
    losses: float = 14
) -> PVWattsResult:
    """
    Get modeled production for a fixed system from NREL PVWatts.

    Args:
        latitude: Latitude
        longitude: Longitude
        api_key: NREL API key (DEMO_KEY works with rate limits)
        system_capacity_kw: DC system size in kW
        tilt: Panel tilt in degrees
        azimuth: Panel azimuth in degrees (180 = south)
        array_type: PVWatts array type (1 = fixed roof mount)
        module_type: PVWatts module type (0 = standard)
        losses: System losses (%)

    Returns:
        PVWattsResult with monthly and annual output series
    """
    params = {
        'api_key': api_key,
        'lat': f"{latitude:.4f}",
        'lon': f"{longitude:.4f}",
        'system_capacity': system_capacity_kw,
        'azimuth': azimuth,
        'tilt': tilt,
        'array_type': array_type,
        'module_type': module_type,
        'losses': losses
    }
    logger.debug("Requesting PVWatts for %s,%s", params['lat'], params['lon'])

    try:
        response = requests.get(PVWATTS_URL, params=params, timeout=10)
        response.raise_for_status()
        data = response.json()

        if data.get('errors'):
            logger.warning("PVWatts returned errors: %s", data['errors'])
            return failed_pvwatts(f"PVWatts error: {'; '.join(data['errors'])}")

        outputs = data['outputs']
        inputs = data.get('inputs', {})
        return PVWattsResult(
            ac_monthly=[float(v) for v in outputs['ac_monthly']],
            dc_monthly=[float(v) for v in outputs['dc_monthly']],
            ac_annual=float(outputs['ac_annual']),
            solrad_monthly=[float(v) for v in outputs['solrad_monthly']],
            solrad_annual=float(outputs['solrad_annual']),
            capacity_factor=float(outputs.get('capacity_factor', 0)),
            system_capacity_kw=float(inputs.get('system_capacity', system_capacity_kw)),
            success=True
        )

    except requests.exceptions.Timeout:
        logger.warning("PVWatts request timed out")
        return failed_pvwatts("Request timed out. Please try again.")
    except requests.exceptions.HTTPError as e:
        logger.warning("PVWatts HTTP error: %s", e)
        error_msg = f"API error: {e.response.status_code}"
        if e.response.status_code == 403:
            error_msg = "API key invalid or quota exceeded"
        return failed_pvwatts(error_msg)
    except requests.exceptions.RequestException as e:
        logger.warning("PVWatts request failed: %s", e)
        return failed_pvwatts(f"Network error: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected PVWatts response")
        return failed_pvwatts(f"Unexpected error: {str(e)}")


def get_building_insights(
    latitude: float,
    longitude: float,
    api_key: str
) -> SolarInsightsResult:
    """
    Get building solar insights from Google Solar API.

    Args:
        latitude: Latitude of the location
        longitude: Longitude of the location
        api_key: Google Solar API key

    Returns:
        SolarInsightsResult with solar potential and financial analyses
    """
    params = {
        "location.latitude": latitude,
        "location.longitude": longitude,
        "key": api_key
    }

    try:
        response = requests.get(BUILDING_INSIGHTS_URL, params=params, timeout=15)
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, dict) or not data.get('solarPotential'):
            return failed_insights("No solar potential data available for this location")

        solar = data['solarPotential']

        # Get imagery info if available
        imagery_date = data.get('imageryDate', {})
        if imagery_date:
            imagery_date_str = (
                f"{imagery_date.get('year', 0)}-"
                f"{imagery_date.get('month', 0):02d}-"
                f"{imagery_date.get('day', 0):02d}"
            )
        else:
            imagery_date_str = None

        return SolarInsightsResult(
            name=data.get('name', ''),
            postal_code=data.get('postalCode', ''),
            administrative_area=data.get('administrativeArea', ''),
            imagery_date=imagery_date_str,
            imagery_quality=data.get('imageryQuality'),
            max_panel_count=solar.get('maxArrayPanelsCount', 0),
            max_array_area_m2=solar.get('maxArrayAreaMeters2', 0),
            max_sunshine_hours=solar.get('maxSunshineHoursPerYear', 0),
            carbon_offset_factor_kg_per_mwh=solar.get('carbonOffsetFactorKgPerMwh', 0),
            roof_segments=solar.get('roofSegmentStats', []),
            panel_configs=solar.get('solarPanelConfigs', []),
            financial_analyses=solar.get('financialAnalyses', []),
            success=True,
            raw_data=data
        )

    except requests.exceptions.Timeout:
        logger.warning("Solar API request timed out")
        return failed_insights("Request timed out. Please try again.")
    except requests.exceptions.HTTPError as e:
        logger.warning("Solar API HTTP error: %s", e)
        error_msg = f"API error: {e.response.status_code}"
        if e.response.status_code == 404:
            error_msg = "No solar data available for this location"
        elif e.response.status_code == 403:
            error_msg = "API key invalid or quota exceeded"
        return failed_insights(error_msg)
    except requests.exceptions.RequestException as e:
        logger.warning("Solar API request failed: %s", e)
        return failed_insights(f"Network error: {str(e)}")
    except Exception as e:
        logger.exception("Unexpected Solar API response")
        return failed_insights(f"Unexpected error: {str(e)}")


def best_panel_config(panel_configs: list) -> Optional[Dict[str, Any]]:
    """Panel configuration with the highest yearly DC energy, or None."""
    if not panel_configs:
        return None
    return max(panel_configs, key=lambda x: x.get('yearlyEnergyDcKwh', 0))


def _savings_year20(analysis: Dict[str, Any]) -> float:
    savings = analysis.get('cashPurchaseSavings') or {}
    year20 = (savings.get('savings') or {}).get('savingsYear20') or {}
    return _money_units(year20) or 0


def best_financial_analysis(financial_analyses: list) -> Optional[Dict[str, Any]]:
    """
    Financial analysis with the largest 20-year cash purchase savings.

    Missing savings count as zero; ties keep the earliest analysis.
    """
    if not financial_analyses:
        return None
    best = financial_analyses[0]
    for analysis in financial_analyses[1:]:
        if _savings_year20(analysis) > _savings_year20(best):
            best = analysis
    return best


def roof_totals(roof_segments: list) -> Tuple[float, float]:
    """
    Sum roof area and median sunshine hours across segments.

    Returns:
        (total area in m², total of each segment's median sunshine quantile)
    """
    total_area = 0.0
    total_sunshine = 0.0
    for segment in roof_segments:
        stats = segment.get('stats', {})
        total_area += stats.get('areaMeters2', 0)
        quantiles = stats.get('sunshineQuantiles', [])
        if len(quantiles) > 5:
            total_sunshine += quantiles[5]
    return total_area, total_sunshine


def _money_units(money: Dict[str, Any]) -> Optional[float]:
    # Google Money values carry units as a string
    units = money.get('units')
    if units is None:
        return None
    try:
        return float(units)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric money units %r", units)
        return None


def financial_inputs(analysis: Optional[Dict[str, Any]]) -> Tuple[ProjectionInput, bool]:
    """
    Build projection inputs from a Solar API financial analysis.

    Any field the analysis does not carry falls back to the dashboard default.

    Returns:
        (ProjectionInput, True if every field came from the analysis)
    """
    if analysis is None:
        analysis = {}

    monthly_bill = _money_units(analysis.get('monthlyBill') or {})
    cash = analysis.get('cashPurchaseSavings') or {}
    total_savings = _money_units(
        ((cash.get('savings') or {}).get('savingsYear20')) or {}
    )
    installation_cost = _money_units(cash.get('upfrontCost') or {})

    from_analysis = None not in (monthly_bill, total_savings, installation_cost)
    inputs = ProjectionInput(
        monthly_bill=DEFAULT_MONTHLY_BILL if monthly_bill is None else monthly_bill,
        total_savings_over_horizon=(
            DEFAULT_TOTAL_SAVINGS if total_savings is None else total_savings
        ),
        installation_cost=(
            DEFAULT_INSTALLATION_COST if installation_cost is None else installation_cost
        )
    )
    return inputs, from_analysis

import math
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests
import streamlit as st

from solarcalc import dashboard
from solarcalc.api_calls import (
    BUILDING_INSIGHTS_URL,
    GEOCODE_URL,
    PVWATTS_URL,
    GeocodingResult,
)
from solarcalc.config import ApiKeys
from solarcalc.dashboard import (
    IncompleteReportError,
    InvalidInputError,
    load_complete_site_report,
    load_site_report,
    validate_address,
    validate_amount,
    validate_projection_input,
)
from solarcalc.financial_calcs import ProjectionInput, project

from conftest import BUILDING_PAYLOAD, PVWATTS_PAYLOAD, FakeResponse

KEYS = ApiKeys(geocode="geo", nrel="DEMO_KEY", google="goog")


class TestValidation:

    def test_blank_address_rejected(self):
        with pytest.raises(InvalidInputError, match="Please enter an address"):
            validate_address("   ")

    def test_address_is_stripped(self):
        assert validate_address("  12 Main St ") == "12 Main St"

    @pytest.mark.parametrize("value", [-1, math.inf, math.nan, "abc", None])
    def test_bad_amounts_rejected(self, value):
        with pytest.raises(InvalidInputError):
            validate_amount("Monthly bill", value)

    def test_numeric_strings_accepted(self):
        assert validate_amount("Monthly bill", "150") == 150.0
        assert validate_amount("Monthly bill", 0) == 0.0

    def test_zero_disallowed(self):
        with pytest.raises(InvalidInputError, match="greater than zero"):
            validate_amount("Monthly bill", 0, allow_zero=False)

    def test_zero_monthly_bill_rejected(self):
        with pytest.raises(InvalidInputError, match="Monthly bill"):
            validate_projection_input(ProjectionInput(0, 30000, 15000))

    def test_zero_savings_and_cost_accepted(self):
        inputs = validate_projection_input(ProjectionInput(150, 0, 0))
        assert inputs == ProjectionInput(150.0, 0.0, 0.0)


def _fake_geocode(address, key):
    return GeocodingResult(latitude=40.0, longitude=-75.0,
                           display_name=address, success=True)


def _production():
    return dashboard.PVWattsResult(
        ac_monthly=[], dc_monthly=[], ac_annual=0, solrad_monthly=[],
        solrad_annual=0, capacity_factor=0, system_capacity_kw=4,
        success=True
    )


def _insights():
    return dashboard.SolarInsightsResult(
        name='', postal_code='', administrative_area='', imagery_date=None,
        imagery_quality=None, max_panel_count=0, max_array_area_m2=0,
        max_sunshine_hours=0, carbon_offset_factor_kg_per_mwh=0,
        roof_segments=[], panel_configs=[], financial_analyses=[],
        success=True
    )


def _geocoded(fake_get):
    fake_get.responses[GEOCODE_URL] = FakeResponse(
        [{"lat": "37.4224", "lon": "-122.0842", "display_name": "Googleplex"}]
    )


class TestLoadSiteReport:

    def test_full_report(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse(BUILDING_PAYLOAD)

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.located
        assert report.errors == []
        assert report.metrics.annual_production_kwh == 5700
        assert report.metrics.system_cost == pytest.approx(12000)
        assert not report.projection_from_defaults
        assert report.projection == project(200, 42000, 16000)

    def test_geocoding_failure_skips_providers(self, fake_get):
        fake_get.responses[GEOCODE_URL] = FakeResponse([])

        report = load_site_report("nowhere", KEYS)

        assert not report.located
        assert report.production is None
        assert report.metrics is None
        assert report.projection == []
        assert len(fake_get.calls) == 1
        assert report.errors[0].startswith("Could not find address")

    def test_solar_api_failure_keeps_production(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse({}, status_code=403)

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.metrics is not None
        assert report.projection_from_defaults
        assert report.projection == project(150, 30000, 15000)
        assert any("Limited solar data" in e for e in report.errors)

    def test_pvwatts_failure_keeps_insights(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse({}, status_code=500)
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse(BUILDING_PAYLOAD)

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.metrics is None
        assert report.insights.success
        assert len(report.projection) == 21
        assert any("Failed to fetch solar data" in e for e in report.errors)

    def test_negative_savings_fall_back_to_defaults(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
        payload = {
            "solarPotential": {
                "financialAnalyses": [{
                    "monthlyBill": {"units": "120"},
                    "cashPurchaseSavings": {
                        "upfrontCost": {"units": "9000"},
                        "savings": {"savingsYear20": {"units": "-500"}},
                    },
                }],
            },
        }
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse(payload)

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.projection_from_defaults
        assert report.projection == project(150, 30000, 15000)
        assert any("Invalid financial data" in e for e in report.errors)

    def test_zero_monthly_bill_falls_back_to_defaults(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
        payload = {
            "solarPotential": {
                "financialAnalyses": [{
                    "monthlyBill": {"units": "0"},
                    "cashPurchaseSavings": {
                        "upfrontCost": {"units": "9000"},
                        "savings": {"savingsYear20": {"units": "20000"}},
                    },
                }],
            },
        }
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse(payload)

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.projection_from_defaults
        assert report.projection == project(150, 30000, 15000)
        assert any("Monthly bill must be greater than zero" in e for e in report.errors)

    def test_malformed_provider_bodies_do_not_crash(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(["unexpected"])
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse({"solarPotential": None})

        report = load_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.located
        assert not report.production.success
        assert not report.insights.success
        assert report.metrics is None
        assert report.projection == project(150, 30000, 15000)
        assert any("Failed to fetch solar data: Unexpected error" in e for e in report.errors)
        assert any("Limited solar data" in e for e in report.errors)

    def test_providers_receive_resolved_coordinates(self, monkeypatch):
        seen = {}

        def fake_pvwatts(lat, lon, key):
            seen["pvwatts"] = (lat, lon, key)
            return _production()

        def fake_insights(lat, lon, key):
            seen["insights"] = (lat, lon, key)
            return _insights()

        monkeypatch.setattr(dashboard, "geocode_address", _fake_geocode)
        monkeypatch.setattr(dashboard, "get_pvwatts_production", fake_pvwatts)
        monkeypatch.setattr(dashboard, "get_building_insights", fake_insights)

        report = load_site_report("Philadelphia", KEYS)

        assert seen["pvwatts"] == (40.0, -75.0, "DEMO_KEY")
        assert seen["insights"] == (40.0, -75.0, "goog")
        # zero production is not recoverable, but still reported
        assert report.metrics.payback_years is None

    def test_provider_calls_are_in_flight_together(self, monkeypatch):
        # Each call blocks until the other one arrives; run one after the
        # other, the barrier times out and both calls fail.
        barrier = threading.Barrier(2, timeout=5)

        def fake_pvwatts(lat, lon, key):
            barrier.wait()
            return _production()

        def fake_insights(lat, lon, key):
            barrier.wait()
            return _insights()

        monkeypatch.setattr(dashboard, "geocode_address", _fake_geocode)
        monkeypatch.setattr(dashboard, "get_pvwatts_production", fake_pvwatts)
        monkeypatch.setattr(dashboard, "get_building_insights", fake_insights)

        report = load_site_report("Philadelphia", KEYS)

        assert report.production.success
        assert report.insights.success
        assert report.errors == []

    def test_injected_executor_runs_both_calls_and_stays_open(self, monkeypatch):
        submitted = []

        class RecordingExecutor(ThreadPoolExecutor):
            def submit(self, fn, *args, **kwargs):
                submitted.append((fn.__name__, args))
                return super().submit(fn, *args, **kwargs)

        def fake_pvwatts(lat, lon, key):
            return _production()

        def fake_insights(lat, lon, key):
            return _insights()

        monkeypatch.setattr(dashboard, "geocode_address", _fake_geocode)
        monkeypatch.setattr(dashboard, "get_pvwatts_production", fake_pvwatts)
        monkeypatch.setattr(dashboard, "get_building_insights", fake_insights)

        with RecordingExecutor(max_workers=2) as executor:
            report = load_site_report("Philadelphia", KEYS, executor=executor)

            assert submitted == [
                ("fake_pvwatts", (40.0, -75.0, "DEMO_KEY")),
                ("fake_insights", (40.0, -75.0, "goog")),
            ]
            assert executor.submit(sum, [1, 2]).result() == 3

        assert report.production.success
        assert report.insights.success

    def test_provider_exception_is_recorded(self, monkeypatch):
        def exploding_pvwatts(lat, lon, key):
            raise RuntimeError("boom")

        def fake_insights(lat, lon, key):
            return _insights()

        monkeypatch.setattr(dashboard, "geocode_address", _fake_geocode)
        monkeypatch.setattr(dashboard, "get_pvwatts_production", exploding_pvwatts)
        monkeypatch.setattr(dashboard, "get_building_insights", fake_insights)

        report = load_site_report("Philadelphia", KEYS)

        assert not report.production.success
        assert report.production.error == "Unexpected error: boom"
        assert report.insights.success
        assert report.metrics is None
        assert "Failed to fetch solar data: Unexpected error: boom" in report.errors
        assert len(report.projection) == 21

    def test_blank_address_raises(self):
        with pytest.raises(InvalidInputError):
            load_site_report("", KEYS)


def _all_providers_ok(fake_get):
    _geocoded(fake_get)
    fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
    fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse(BUILDING_PAYLOAD)


class TestLoadCompleteSiteReport:

    def test_complete_report_is_returned(self, fake_get):
        _all_providers_ok(fake_get)

        report = load_complete_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert report.providers_ok
        assert report.errors == []

    def test_failed_geocoding_raises_with_report(self, fake_get):
        fake_get.responses[GEOCODE_URL] = requests.exceptions.Timeout()

        with pytest.raises(IncompleteReportError, match="timed out") as excinfo:
            load_complete_site_report("1600 Amphitheatre Pkwy", KEYS)

        assert not excinfo.value.report.located
        assert excinfo.value.report.address == "1600 Amphitheatre Pkwy"

    def test_failed_provider_raises_with_partial_report(self, fake_get):
        _geocoded(fake_get)
        fake_get.responses[PVWATTS_URL] = FakeResponse(PVWATTS_PAYLOAD)
        fake_get.responses[BUILDING_INSIGHTS_URL] = FakeResponse({}, status_code=403)

        with pytest.raises(IncompleteReportError) as excinfo:
            load_complete_site_report("1600 Amphitheatre Pkwy", KEYS)

        report = excinfo.value.report
        assert report.located
        assert report.metrics is not None
        assert len(report.projection) == 21

    def test_cached_failure_is_retried(self, fake_get):
        cached = st.cache_data(show_spinner=False)(load_complete_site_report)
        cached.clear()
        try:
            fake_get.responses[GEOCODE_URL] = requests.exceptions.Timeout()
            with pytest.raises(IncompleteReportError):
                cached("1600 Amphitheatre Pkwy", KEYS)
            assert len(fake_get.calls) == 1

            _all_providers_ok(fake_get)
            report = cached("1600 Amphitheatre Pkwy", KEYS)
            assert report.located
            assert len(fake_get.calls) == 4

            # complete reports are served from the cache
            cached("1600 Amphitheatre Pkwy", KEYS)
            assert len(fake_get.calls) == 4
        finally:
            cached.clear()

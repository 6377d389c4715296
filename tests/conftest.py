import pytest
import requests


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


@pytest.fixture
def fake_get(monkeypatch):
    """Route requests.get to canned responses; returns the list of calls made."""
    calls = []
    responses = {}

    def _get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        response = responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests, "get", _get)
    _get.responses = responses
    _get.calls = calls
    return _get


PVWATTS_PAYLOAD = {
    "inputs": {"system_capacity": "4", "tilt": "20", "azimuth": "180"},
    "errors": [],
    "outputs": {
        "ac_monthly": [300, 350, 480, 540, 600, 620, 640, 610, 520, 430, 320, 290],
        "dc_monthly": [320, 370, 505, 570, 630, 655, 675, 645, 550, 455, 340, 308],
        "ac_annual": 5700,
        "solrad_monthly": [3.111, 3.9, 4.8, 5.5, 6.1, 6.4, 6.5, 6.2, 5.4, 4.5, 3.4, 2.9],
        "solrad_annual": 4.9,
        "capacity_factor": 16.3,
    },
}

BUILDING_PAYLOAD = {
    "name": "buildings/ChIJ123",
    "postalCode": "94043",
    "administrativeArea": "CA",
    "imageryQuality": "HIGH",
    "imageryDate": {"year": 2022, "month": 8, "day": 14},
    "solarPotential": {
        "maxArrayPanelsCount": 40,
        "maxArrayAreaMeters2": 78.5,
        "maxSunshineHoursPerYear": 1800.2,
        "carbonOffsetFactorKgPerMwh": 428.9,
        "roofSegmentStats": [
            {"pitchDegrees": 20, "azimuthDegrees": 180,
             "stats": {"areaMeters2": 50.0, "sunshineQuantiles": [0, 1, 2, 3, 4, 1500, 6, 7, 8, 9, 10]}},
            {"pitchDegrees": 22, "azimuthDegrees": 90,
             "stats": {"areaMeters2": 30.5, "sunshineQuantiles": [0, 1, 2, 3, 4, 1200, 6, 7, 8, 9, 10]}},
        ],
        "solarPanelConfigs": [
            {"panelsCount": 10, "yearlyEnergyDcKwh": 4000},
            {"panelsCount": 20, "yearlyEnergyDcKwh": 7900},
            {"panelsCount": 15, "yearlyEnergyDcKwh": 6000},
        ],
        "financialAnalyses": [
            {"monthlyBill": {"currencyCode": "USD", "units": "100"},
             "cashPurchaseSavings": {
                 "upfrontCost": {"currencyCode": "USD", "units": "12000"},
                 "savings": {"savingsYear20": {"currencyCode": "USD", "units": "18000"}}}},
            {"monthlyBill": {"currencyCode": "USD", "units": "200"},
             "cashPurchaseSavings": {
                 "upfrontCost": {"currencyCode": "USD", "units": "16000"},
                 "savings": {"savingsYear20": {"currencyCode": "USD", "units": "42000"}}}},
            {"monthlyBill": {"currencyCode": "USD", "units": "50"}},
        ],
    },
}

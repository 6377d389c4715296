"""
Pricing constants and the installer marketplace catalogue.
"""

from dataclasses import dataclass
from typing import List, Tuple

# Flat US average retail rate ($/kWh); not adjusted per region
ELECTRICITY_RATE = 0.17

# Installed system cost ($/watt) before incentives
COST_PER_WATT = 3

# kg CO2 avoided per kWh of displaced grid electricity
CO2_KG_PER_KWH = 0.85

# Projection horizon and rates for the cost comparison chart
PROJECTION_YEARS = 20
UTILITY_ESCALATION = 1.022  # 2.2% annual utility cost increase
DISCOUNT_FACTOR = 1.04  # 4% annual discount rate

# Used when the Solar API returns no financial analysis for the building
DEFAULT_MONTHLY_BILL = 150.0
DEFAULT_TOTAL_SAVINGS = 30000.0
DEFAULT_INSTALLATION_COST = 15000.0

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class Provider:
    """An installer listed in the marketplace."""
    name: str
    price: float
    installation_price: float
    efficiency: float  # panel efficiency, %
    temp_coefficient: float  # %/°C
    warranty: str
    safety_measures: Tuple[str, ...]
    url: str

    @property
    def total_price(self) -> float:
        return self.price + self.installation_price


PROVIDERS = (
    Provider(
        name='SolarTech',
        price=5000,
        installation_price=1500,
        efficiency=20.3,
        temp_coefficient=-0.4,
        warranty='25 years',
        safety_measures=('Fire-resistant materials', 'Anti-theft features'),
        url='https://solartech.com'
    ),
    Provider(
        name='SunPower',
        price=6000,
        installation_price=2000,
        efficiency=22.5,
        temp_coefficient=-0.3,
        warranty='25 years',
        safety_measures=('Surge protection', 'Tamper-proof design'),
        url='https://sunpower.com'
    ),
    Provider(
        name='Green Energy',
        price=5500,
        installation_price=1800,
        efficiency=21.0,
        temp_coefficient=-0.35,
        warranty='20 years',
        safety_measures=('Weather resistance', 'Grounding systems'),
        url='https://greenenergy.com'
    ),
    Provider(
        name='EcoSun',
        price=5800,
        installation_price=1600,
        efficiency=19.5,
        temp_coefficient=-0.5,
        warranty='15 years',
        safety_measures=('UV protection', 'Child-safe designs'),
        url='https://ecosun.com'
    ),
)


def list_providers() -> List[Provider]:
    """Get all marketplace providers in display order."""
    return list(PROVIDERS)


def get_provider(name: str) -> Provider:
    """
    Look up a provider by name (case-insensitive).

    Raises:
        KeyError: if no provider has that name
    """
    for provider in PROVIDERS:
        if provider.name.lower() == name.strip().lower():
            return provider
    raise KeyError(f"Unknown provider: {name}")

"""
Application configuration: API keys, logging and Streamlit page setup.
"""

import logging
import os
from dataclasses import dataclass
from typing import List

import streamlit as st
from streamlit.errors import StreamlitAPIException

NREL_DEMO_KEY = "DEMO_KEY"

DEFAULT_ADDRESS_PLACEHOLDER = "1600 Amphitheatre Parkway, Mountain View, CA"


@dataclass(frozen=True)
class ApiKeys:
    """Credentials for the external data providers."""
    geocode: str
    nrel: str
    google: str

    def missing_keys(self) -> List[str]:
        """Names of required keys that are not configured."""
        missing = []
        if not self.geocode:
            missing.append("GEOCODE_API_KEY")
        if not self.google:
            missing.append("GOOGLE_API_KEY")
        return missing


def get_secret(name: str, default: str = "") -> str:
    """Get a setting from Streamlit secrets, falling back to the environment."""
    # Streamlit secrets first (for deployment)
    try:
        return st.secrets[name]
    except (KeyError, FileNotFoundError, StreamlitAPIException):
        pass

    return os.environ.get(name, default)


def load_api_keys() -> ApiKeys:
    """Load all provider keys. Missing keys come back as empty strings."""
    return ApiKeys(
        geocode=get_secret("GEOCODE_API_KEY"),
        nrel=get_secret("NREL_API_KEY", NREL_DEMO_KEY),
        google=get_secret("GOOGLE_API_KEY")
    )


def configure_logging() -> None:
    """Configure root logging from the LOG_LEVEL environment variable."""
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def setup_page() -> None:
    """Set the Streamlit page configuration. Must run before any other st call."""
    st.set_page_config(
        page_title="Solar Savings Dashboard",
        page_icon="☀️",
        layout="wide",
        initial_sidebar_state="expanded"
    )

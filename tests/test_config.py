import types

import pytest

from solarcalc import config


class TestConfig:

    @pytest.fixture(autouse=True)
    def no_secrets(self, monkeypatch):
        monkeypatch.setattr(config, "st", types.SimpleNamespace(secrets={}))
        for name in ("GEOCODE_API_KEY", "NREL_API_KEY", "GOOGLE_API_KEY"):
            monkeypatch.delenv(name, raising=False)

    def test_keys_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEOCODE_API_KEY", "geo")
        monkeypatch.setenv("GOOGLE_API_KEY", "goog")

        keys = config.load_api_keys()

        assert keys.geocode == "geo"
        assert keys.google == "goog"
        assert keys.nrel == config.NREL_DEMO_KEY
        assert keys.missing_keys() == []

    def test_secrets_take_precedence(self, monkeypatch):
        monkeypatch.setattr(config, "st", types.SimpleNamespace(secrets={"GOOGLE_API_KEY": "secret"}))
        monkeypatch.setenv("GOOGLE_API_KEY", "env")

        assert config.get_secret("GOOGLE_API_KEY") == "secret"

    def test_missing_keys_listed(self):
        keys = config.load_api_keys()
        assert keys.missing_keys() == ["GEOCODE_API_KEY", "GOOGLE_API_KEY"]

import pytest
import requests
import responses

from scrapeblocker.config import ConfigError, ConfigResponse, fetch_configuration

BASE = "http://config.example.com/api/v1/apps"


def test_fetch_configuration_success():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            f"{BASE}/latam",
            json={"processes": ["app.exe"], "urls": ["blocked.example.com"]},
        )
        config = fetch_configuration("latam", base_url=BASE)
    assert config == ConfigResponse(["app.exe"], ["blocked.example.com"])


def test_fetch_configuration_trailing_slash_in_base():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/acme", json={"processes": [], "urls": []})
        config = fetch_configuration("acme", base_url=BASE + "/")
    assert config == ConfigResponse()


def test_fetch_configuration_bad_status():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/latam", status=500)
        with pytest.raises(ConfigError, match="500"):
            fetch_configuration("latam", base_url=BASE)


def test_fetch_configuration_invalid_json():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/latam", body="not json")
        with pytest.raises(ConfigError):
            fetch_configuration("latam", base_url=BASE)


def test_fetch_configuration_connection_error():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET, f"{BASE}/latam", body=requests.ConnectionError("refused")
        )
        with pytest.raises(ConfigError, match="refused"):
            fetch_configuration("latam", base_url=BASE)


def test_from_dict_missing_and_null_fields_are_empty():
    assert ConfigResponse.from_dict({}) == ConfigResponse([], [])
    assert ConfigResponse.from_dict({"processes": None, "urls": None}) == ConfigResponse()


def test_from_dict_rejects_wrong_types():
    with pytest.raises(ConfigError):
        ConfigResponse.from_dict({"processes": "app.exe"})
    with pytest.raises(ConfigError):
        ConfigResponse.from_dict({"urls": [1, 2]})
    with pytest.raises(ConfigError):
        ConfigResponse.from_dict(["app.exe"])
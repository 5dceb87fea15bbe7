import pytest

from metricwire.config.settings import Settings, get_settings
from metricwire.transport.errors import ParseError
from metricwire.transport.factory import new_client
from metricwire.transport.http import HttpClient, HttpConfig
from metricwire.transport.udp import UdpClient

pytestmark = pytest.mark.smoke

def _settings(url: str, **kw) -> Settings:
    values = dict(url=url, payload_size=0, timeout_s=1.0, username="", password="",
                  database="telegraf", user_agent="metricwire-test")
    values.update(kw)
    return Settings(**values)

def test_defaults(monkeypatch):
    for name in ("METRICWIRE_URL", "METRICWIRE_PAYLOAD_SIZE", "METRICWIRE_DATABASE"):
        monkeypatch.delenv(name, raising=False)

    s = get_settings()
    assert s.url == "udp://127.0.0.1:8089"
    assert s.payload_size == 0
    assert s.database == ""

def test_env_overrides(monkeypatch):
    monkeypatch.setenv("METRICWIRE_URL", "http://influx:8086")
    monkeypatch.setenv("METRICWIRE_PAYLOAD_SIZE", "1400")
    monkeypatch.setenv("METRICWIRE_TIMEOUT_S", "2.5")
    monkeypatch.setenv("METRICWIRE_DATABASE", "telegraf")

    s = get_settings()
    assert (s.url, s.payload_size, s.timeout_s, s.database) == ("http://influx:8086", 1400, 2.5, "telegraf")

def test_factory_picks_udp(udp_url):
    client = new_client(_settings(udp_url, payload_size=1400))
    try:
        assert isinstance(client, UdpClient)
        assert client.payload_size == 1400
    finally:
        client.close()

def test_factory_picks_http():
    client = new_client(_settings("http://127.0.0.1:8086"))
    try:
        assert isinstance(client, HttpClient)
    finally:
        client.close()

def test_factory_reads_env(monkeypatch, udp_url):
    monkeypatch.setenv("METRICWIRE_URL", udp_url)
    monkeypatch.setenv("METRICWIRE_PAYLOAD_SIZE", "64")
    with new_client() as client:
        assert client.payload_size == 64

@pytest.mark.parametrize("url", ["tcp://127.0.0.1:8089", "127.0.0.1:8089", "http://[::1"])
def test_factory_rejects_unknown_scheme(url):
    with pytest.raises(ParseError):
        new_client(_settings(url))

def test_http_client_rejects_udp_url():
    with pytest.raises(ParseError):
        HttpClient(HttpConfig(url="udp://127.0.0.1:8089"))

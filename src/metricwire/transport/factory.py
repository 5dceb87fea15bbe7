from __future__ import annotations
from urllib.parse import urlsplit

from metricwire.config.settings import Settings, get_settings
from metricwire.transport.base import Client, WriteParams
from metricwire.transport.errors import ParseError
from metricwire.transport.http import HttpClient, HttpConfig
from metricwire.transport.udp import UdpConfig, new_udp


def new_client(settings: Settings | None = None) -> Client:
    """
    Build the transport named by the url scheme in settings
    (udp -> UdpClient, http/https -> HttpClient).
    """
    if settings is None:
        settings = get_settings()
    try:
        scheme = urlsplit(settings.url).scheme
    except ValueError as e:
        raise ParseError(settings.url, e) from e

    if scheme == "udp":
        return new_udp(UdpConfig(url=settings.url, payload_size=settings.payload_size))
    if scheme in ("http", "https"):
        return HttpClient(HttpConfig(
            url=settings.url,
            username=settings.username,
            password=settings.password,
            user_agent=settings.user_agent,
            timeout_s=settings.timeout_s,
            write_params=WriteParams(database=settings.database),
        ))
    raise ParseError(settings.url, f"unsupported scheme {scheme!r}")

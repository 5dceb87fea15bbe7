from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class Settings:
    url: str
    payload_size: int
    timeout_s: float
    username: str
    password: str
    database: str
    user_agent: str


def get_settings() -> Settings:
    """
    Centralized configuration for building an output client.
    Values come from environment variables with safe defaults.
    """
    return Settings(
        url=os.getenv("METRICWIRE_URL", "udp://127.0.0.1:8089"),
        payload_size=int(os.getenv("METRICWIRE_PAYLOAD_SIZE", "0")),
        timeout_s=float(os.getenv("METRICWIRE_TIMEOUT_S", "5.0")),
        username=os.getenv("METRICWIRE_USERNAME", ""),
        password=os.getenv("METRICWIRE_PASSWORD", ""),
        database=os.getenv("METRICWIRE_DATABASE", ""),
        user_agent=os.getenv("METRICWIRE_USER_AGENT", "metricwire"),
    )

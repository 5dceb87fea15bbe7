import socket
import time

import pytest
from fastapi.testclient import TestClient

from services.metric_sink.app.main import app as sink_app
from metricwire.transport.base import WriteParams
from metricwire.transport.http import HttpClient, HttpConfig
from metricwire.transport.udp import UdpClient, UdpConfig

@pytest.fixture
def udp_listener():
    """
    Plain loopback datagram socket standing in for a metric listener.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    try:
        yield sock
    finally:
        sock.close()

@pytest.fixture
def udp_url(udp_listener):
    host, port = udp_listener.getsockname()
    return f"udp://{host}:{port}"

@pytest.fixture
def recv_datagrams(udp_listener):
    def _recv(count: int, timeout_s: float = 1.0) -> list[bytes]:
        udp_listener.settimeout(timeout_s)
        out = []
        for _ in range(count):
            data, _ = udp_listener.recvfrom(65535)
            out.append(data)
        return out
    return _recv

@pytest.fixture(scope="session")
def sink():
    """
    Runs the metric sink in-process for the session. The UDP listener gets an
    ephemeral port, reported by /health.
    """
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("SINK_UDP_HOST", "127.0.0.1")
        mp.setenv("SINK_UDP_PORT", "0")
        with TestClient(sink_app) as client:
            yield client

@pytest.fixture
def sink_api(sink):
    # every test starts from an empty sink with no faults
    sink.post("/control/reset").raise_for_status()
    return sink

@pytest.fixture
def sink_udp(sink_api):
    port = sink_api.get("/health").json()["udp_port"]
    client = UdpClient(UdpConfig(f"udp://127.0.0.1:{port}", payload_size=64))
    try:
        yield client
    finally:
        client.close()

@pytest.fixture
def sink_http(sink_api):
    sink_api.post("/query", params={"q": "CREATE DATABASE telegraf"}).raise_for_status()
    config = HttpConfig(url="http://testserver", write_params=WriteParams(database="telegraf"))
    client = HttpClient(config, client=sink_api)
    try:
        yield client
    finally:
        client.close()

@pytest.fixture
def wait_received(sink_api):
    def _wait(transport: str, count: int, timeout_s: float = 2.0) -> list[dict]:
        deadline = time.time() + timeout_s
        items = []
        while time.time() < deadline:
            items = sink_api.get("/received", params={"transport": transport}).json()
            if len(items) >= count:
                return items
            time.sleep(0.02)
        return items
    return _wait

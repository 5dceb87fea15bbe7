from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator
from urllib.parse import urlsplit

import httpx

from metricwire.transport.base import WriteParams
from metricwire.transport.errors import ParseError, QueryError, SizeMismatchError

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 32 * 1024


@dataclass(frozen=True)
class HttpConfig:
    # "http://host:port" or "https://host:port"
    url: str
    username: str = ""
    password: str = ""
    user_agent: str = "metricwire"
    timeout_s: float = 5.0
    # used by write()/write_stream() and as fallback for empty fields in explicit params
    write_params: WriteParams = field(default_factory=WriteParams)


class _CountingChunks:
    def __init__(self, reader: BinaryIO, chunk_size: int = STREAM_CHUNK_SIZE):
        self._reader = reader
        self._chunk_size = chunk_size
        self.total = 0

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self._reader.read(self._chunk_size)
            if not chunk:
                return
            self.total += len(chunk)
            yield chunk


class HttpClient:
    """
    InfluxDB 1.x style HTTP transport.

    Pass `client` to reuse an existing httpx.Client (its base_url must point
    at the server); otherwise one is built from the config and owned here.
    """

    def __init__(self, config: HttpConfig, client: httpx.Client | None = None):
        try:
            scheme = urlsplit(config.url).scheme
        except ValueError as e:
            raise ParseError(config.url, e) from e
        if scheme not in ("http", "https"):
            raise ParseError(config.url, f"unsupported scheme {scheme!r}, expected 'http' or 'https'")

        self._config = config
        self._owns_client = client is None
        if client is None:
            auth = (config.username, config.password) if config.username else None
            client = httpx.Client(
                base_url=config.url,
                timeout=config.timeout_s,
                auth=auth,
                headers={"User-Agent": config.user_agent},
            )
        self._client = client

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def query(self, command: str) -> None:
        params = {"q": command}
        if self._config.write_params.database:
            params["db"] = self._config.write_params.database
        r = self._client.post("/query", params=params)

        # influx reports query failures as {"error": ...} or per statement in results
        error = None
        if r.headers.get("content-type", "").startswith("application/json"):
            body = r.json()
            error = body.get("error")
            if not error:
                error = next((res["error"] for res in body.get("results", []) if res.get("error")), None)
        if error:
            raise QueryError(command, error)
        r.raise_for_status()

    def write(self, data: bytes) -> int:
        return self.write_with_params(data, self._config.write_params)

    def write_with_params(self, data: bytes, params: WriteParams) -> int:
        r = self._client.post("/write", params=self._write_query(params), content=data)
        r.raise_for_status()
        return len(data)

    def write_stream(self, reader: BinaryIO, size: int) -> int:
        return self.write_stream_with_params(reader, size, self._config.write_params)

    def write_stream_with_params(self, reader: BinaryIO, size: int, params: WriteParams) -> int:
        chunks = _CountingChunks(reader)
        r = self._client.post("/write", params=self._write_query(params), content=chunks)
        r.raise_for_status()
        if chunks.total != size:
            raise SizeMismatchError(size, chunks.total)
        logger.debug("streamed %d bytes to %s/write", chunks.total, self._config.url)
        return chunks.total

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _write_query(self, params: WriteParams) -> dict[str, str]:
        defaults = self._config.write_params
        query = {
            "db": params.database or defaults.database,
            "rp": params.retention_policy or defaults.retention_policy,
            "precision": params.precision or defaults.precision,
            "consistency": params.consistency or defaults.consistency,
        }
        return {k: v for k, v in query.items() if v}

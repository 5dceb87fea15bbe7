from __future__ import annotations
from dataclasses import dataclass
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class WriteParams:
    database: str = ""
    retention_policy: str = ""
    precision: str = ""
    consistency: str = ""


class Client(Protocol):
    """
    capability set shared by every output transport.
    transports are picked once at construction (see transport.factory).
    """

    def query(self, command: str) -> None: ...

    def write(self, data: bytes) -> int: ...

    def write_with_params(self, data: bytes, params: WriteParams) -> int: ...

    def write_stream(self, reader: BinaryIO, size: int) -> int: ...

    def write_stream_with_params(self, reader: BinaryIO, size: int, params: WriteParams) -> int: ...

    def close(self) -> None: ...

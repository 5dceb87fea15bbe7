from __future__ import annotations
import threading
from dataclasses import dataclass, field

from .faults import FaultConfig

@dataclass(frozen=True)
class Received:
    transport: str              # "udp" or "http"
    payload: bytes
    params: dict[str, str] = field(default_factory=dict)

@dataclass
class SinkModel:
    reset_count: int = 0
    faults: FaultConfig = field(default_factory=FaultConfig)
    databases: set[str] = field(default_factory=set)
    _received: list[Received] = field(default_factory=list)
    # datagrams arrive on the event loop thread, http handlers run in the threadpool
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add(self, transport: str, payload: bytes, params: dict[str, str] | None = None) -> None:
        with self._lock:
            self._received.append(Received(transport, payload, params or {}))

    def received(self, transport: str | None = None) -> list[Received]:
        with self._lock:
            return [r for r in self._received if transport is None or r.transport == transport]

    def reset(self) -> None:
        with self._lock:
            self._received.clear()
            self.databases.clear()
            self.faults = FaultConfig()
            self.reset_count += 1

from __future__ import annotations
from dataclasses import dataclass
import random

@dataclass
class FaultConfig:
    drop_rate: float = 0.0      # 0.0..1.0, udp datagrams silently discarded
    fail_writes: int = 0        # next N http writes answer 500

    def should_drop(self) -> bool:
        return self.drop_rate > 0 and random.random() < self.drop_rate

    def take_write_failure(self) -> bool:
        if self.fail_writes > 0:
            self.fail_writes -= 1
            return True
        return False

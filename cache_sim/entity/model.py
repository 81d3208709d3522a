from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict

from cache_sim.utils.config_utils import BaseEnum

if TYPE_CHECKING:
    from cache_sim.config import CacheConfiguration

MAX_ADDRESS = 0xFFFF_FFFF


class CacheSimError(Exception):
    """Base class for every fatal simulator error."""


class ConfigurationError(CacheSimError):
    """Raised before replay when the cache configuration is unusable."""


class ResourceError(CacheSimError):
    """Raised when the trace source cannot be opened or read."""


class TraceFormatError(CacheSimError):
    def __init__(self, message: str, line_no: int | None = None, token: str | None = None):
        self.line_no = line_no
        self.token = token
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class UndefinedMetric(CacheSimError):
    """Raised when a hit rate is demanded but no access was recorded."""


class AccessType(str, BaseEnum):
    INSTRUCTION = "I"
    DATA = "D"


class AccessOutcome(BaseEnum):
    HIT = "hit"
    COLD_MISS = "cold_miss"
    REPLACE_MISS = "replace_miss"

    @property
    def is_hit(self) -> bool:
        return self is AccessOutcome.HIT


@dataclass
class CacheLine:
    valid: bool = False
    tag: int = 0


@dataclass(frozen=True)
class MemoryAccess:
    address: int
    kind: AccessType
    line_no: int = 0

    def __post_init__(self):
        if not 0 <= self.address <= MAX_ADDRESS:
            raise ValueError(f"address {self.address:#x} does not fit in 32 bits")


@dataclass
class Statistics:
    accesses: int = 0
    hits: int = 0
    evictions: int = 0

    @property
    def misses(self) -> int:
        return self.accesses - self.hits

    @property
    def hit_rate(self) -> float:
        """``hits / accesses``, or NaN when nothing was accessed."""
        return self.hits / self.accesses if self.accesses > 0 else math.nan

    def require_hit_rate(self) -> float:
        if self.accesses == 0:
            raise UndefinedMetric("hit rate is undefined for a run with zero accesses")
        return self.hits / self.accesses

    def record(self, outcome: AccessOutcome):
        self.accesses += 1
        if outcome.is_hit:
            self.hits += 1
        elif outcome is AccessOutcome.REPLACE_MISS:
            self.evictions += 1


@dataclass
class SimulationContext:
    """Everything one run mutates; built once and handed to the controller."""

    config: CacheConfiguration
    statistics: Statistics = field(default_factory=Statistics)
    kind_statistics: Dict[AccessType, Statistics] = field(
        default_factory=lambda: {kind: Statistics() for kind in AccessType}
    )

    def record(self, access: MemoryAccess, outcome: AccessOutcome):
        self.statistics.record(outcome)
        self.kind_statistics[access.kind].record(outcome)


__all__ = [
    "AccessOutcome",
    "AccessType",
    "CacheLine",
    "CacheSimError",
    "ConfigurationError",
    "MemoryAccess",
    "ResourceError",
    "SimulationContext",
    "Statistics",
    "TraceFormatError",
    "UndefinedMetric",
]

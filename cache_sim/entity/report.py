from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

import yaml

from cache_sim.entity.model import Statistics

if TYPE_CHECKING:
    from cache_sim.arch import CacheController

import logging
logger = logging.getLogger(__name__)

UNDEFINED = "undefined"


def format_hit_rate(stat: Statistics) -> str:
    rate = stat.hit_rate
    return UNDEFINED if math.isnan(rate) else f"{rate:.4f}"


@dataclass
class LevelStat:
    accesses: int
    hits: int
    misses: int
    evictions: int
    hit_rate: float | str

    @classmethod
    def from_statistics(cls, stat: Statistics) -> 'LevelStat':
        rate = stat.hit_rate
        return cls(
            accesses=stat.accesses,
            hits=stat.hits,
            misses=stat.misses,
            evictions=stat.evictions,
            hit_rate=UNDEFINED if math.isnan(rate) else round(rate, 4),
        )


@dataclass
class SimulationReport:
    cache: Dict[str, object]
    total: LevelStat
    per_kind: Dict[str, LevelStat] = field(default_factory=dict)
    occupancy: Dict[str, int] = field(default_factory=dict)
    trace: Optional[str] = None

    @classmethod
    def from_controller(cls, controller: CacheController, trace: Optional[str] = None):
        config = controller.config
        stat_dict = controller.stat_dict()
        total = stat_dict.pop("total")
        return cls(
            cache={
                "total_size": config.total_size,
                "block_size": config.block_size,
                "mapping": config.mapping.value,
                "organization": config.organization.value,
                "blocks_per_bank": config.blocks_per_bank,
            },
            total=LevelStat.from_statistics(total),
            per_kind={k: LevelStat.from_statistics(v) for k, v in stat_dict.items()},
            occupancy=controller.occupancy(),
            trace=trace,
        )

    def to_dict(self) -> Dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def dump(self, report_path: str | Path) -> Path:
        report_path = Path(report_path)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_str = yaml.dump(self.to_dict(), sort_keys=False, indent=2)
        report_path.write_text(report_str)
        logger.debug(report_str)
        logger.info("report generated at %s", report_path)
        return report_path


def format_statistics(stat: Statistics, kind_statistics: Optional[Dict[str, Statistics]] = None) -> str:
    lines = [
        "",
        "Cache Statistics",
        "-----------------",
        "",
        f"Accesses: {stat.accesses}",
        f"Hits:     {stat.hits}",
        f"Hit Rate: {format_hit_rate(stat)}",
    ]
    if kind_statistics:
        lines.append("")
        for name, kind_stat in kind_statistics.items():
            lines.append(
                f"{name.capitalize():<12} accesses={kind_stat.accesses} hits={kind_stat.hits} "
                f"evictions={kind_stat.evictions} hit_rate={format_hit_rate(kind_stat)}")
        lines.append(f"{'Evictions':<12} {stat.evictions}")
    return "\n".join(lines)


__all__ = ["LevelStat", "SimulationReport", "format_hit_rate", "format_statistics"]

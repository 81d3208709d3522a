from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from cache_sim.arch import CacheController
from cache_sim.config import CacheConfiguration
from cache_sim.entity.model import MemoryAccess, SimulationContext, Statistics
from cache_sim.entity.report import SimulationReport
from cache_sim.trace import TraceReader, TraceReplayLoop

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class SimulationResult:
    """Aggregated artifacts produced by a simulation run."""

    statistics: Statistics
    report: SimulationReport
    controller: CacheController
    report_path: Optional[Path] = None


def simulate(config: CacheConfiguration, accesses: Iterable[MemoryAccess]) -> CacheController:
    """Replay an in-memory access sequence and return the controller that saw it."""
    controller = CacheController(SimulationContext(config))
    TraceReplayLoop(accesses, controller).run()
    return controller


class SimulationPipeline:
    """
    Runs one configuration against one trace file: build the controller,
    replay the trace, then collect the statistics and the optional report.

    A fresh :class:`SimulationContext` is created per :meth:`run`, so a
    pipeline can be reused for several traces without sharing state.
    """

    def __init__(self, config: CacheConfiguration, output_root: str | Path | None = None):
        self.config = config
        self.output_root = Path(output_root) if output_root is not None else None

    def run(self, trace_path: str | Path, report_path: str | Path | None = None) -> SimulationResult:
        """
        Replay ``trace_path`` and collect the results.

        Parameters
        ----------
        trace_path:
            Text trace with one ``<I|D> <hex-address>`` record per line.
        report_path:
            Where to write the yaml report. Relative paths are resolved under
            ``output_root`` when one was given; ``None`` writes
            ``output_root/report.yaml`` or nothing at all.
        """
        if self.output_root is None:
            return self._run(trace_path, report_path)
        self.output_root.mkdir(parents=True, exist_ok=True)
        # the handler only lives for this run so later runs do not write into this log
        with file_logging(self.output_root / "cache-sim.log"):
            return self._run(trace_path, report_path)

    def _run(self, trace_path: str | Path, report_path: str | Path | None) -> SimulationResult:
        controller = CacheController(SimulationContext(self.config))
        with TraceReader(trace_path) as reader:
            consumed = TraceReplayLoop(reader, controller).run()

        stat = controller.statistics
        logger.info("replayed %d accesses from %s: %d hits", consumed, trace_path, stat.hits)

        report = SimulationReport.from_controller(controller, trace=str(trace_path))
        resolved = self._resolve_report_path(report_path)
        if resolved is not None:
            report.dump(resolved)
        return SimulationResult(
            statistics=stat,
            report=report,
            controller=controller,
            report_path=resolved,
        )

    def _resolve_report_path(self, report_path: str | Path | None) -> Optional[Path]:
        if report_path is None:
            return self.output_root / "report.yaml" if self.output_root is not None else None
        report_path = Path(report_path)
        if not report_path.is_absolute() and self.output_root is not None:
            report_path = self.output_root / report_path
        return report_path


@contextmanager
def file_logging(log_path: str | Path, level: int = logging.INFO) -> Iterator[logging.Handler]:
    """
    Copy records at ``level`` and above into ``log_path`` for the duration of
    the block.

    The root logger is lowered to ``level`` when needed so the records reach
    the file; console handlers keep their own level. The handler is removed
    and closed, and the root level restored, on exit.
    """
    log_path = Path(log_path).resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    previous_level = root.level
    root.addHandler(handler)
    if root.level > level:
        root.setLevel(level)
    try:
        yield handler
    finally:
        root.removeHandler(handler)
        handler.close()
        root.setLevel(previous_level)


__all__ = ["LOG_FORMAT", "SimulationPipeline", "SimulationResult", "file_logging", "simulate"]

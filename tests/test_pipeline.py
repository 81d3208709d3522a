import logging

import pytest
import yaml

from cache_sim.config import CacheConfiguration
from cache_sim.entity.model import ResourceError, TraceFormatError
from cache_sim.simulator import SimulationPipeline


@pytest.mark.ci
def test_pipeline_generates_report(write_trace, outdir):
    trace = write_trace(["D 0", "D 40", "D 0"])
    pipeline = SimulationPipeline(CacheConfiguration(128, "dm", "uc"), output_root=outdir)
    result = pipeline.run(trace)

    assert (result.statistics.accesses, result.statistics.hits) == (3, 1)
    assert result.report_path == outdir / "report.yaml"
    report = yaml.safe_load(result.report_path.read_text())
    assert report["total"]["hits"] == 1
    assert report["trace"] == str(trace)
    assert (outdir / "cache-sim.log").exists()


def test_pipeline_without_output_root_writes_nothing(write_trace, tmp_path):
    trace = write_trace(["I 0", "I 40", "I 80"])
    result = SimulationPipeline(CacheConfiguration(128, "fa", "uc")).run(trace)
    assert result.report_path is None
    assert (result.statistics.accesses, result.statistics.hits) == (3, 0)
    assert not (tmp_path / "report.yaml").exists()


def test_pipeline_runs_are_independent(write_trace):
    trace = write_trace(["D 0", "D 0"])
    pipeline = SimulationPipeline(CacheConfiguration(128, "dm", "uc"))
    first = pipeline.run(trace)
    second = pipeline.run(trace)
    assert first.statistics == second.statistics
    assert first.controller is not second.controller


def test_pipeline_empty_trace(write_trace, outdir):
    trace = write_trace([])
    result = SimulationPipeline(CacheConfiguration(256, "fa", "sc"), output_root=outdir).run(
        trace, report_path="empty.yaml")
    assert result.statistics.accesses == 0
    assert result.report_path == outdir / "empty.yaml"
    assert yaml.safe_load(result.report_path.read_text())["total"]["hit_rate"] == "undefined"


def test_pipeline_missing_trace(tmp_path):
    pipeline = SimulationPipeline(CacheConfiguration(128, "dm", "uc"))
    with pytest.raises(ResourceError):
        pipeline.run(tmp_path / "missing.txt")


def test_pipeline_malformed_trace(write_trace):
    trace = write_trace(["D 0", "X 40"])
    with pytest.raises(TraceFormatError, match="line 2"):
        SimulationPipeline(CacheConfiguration(128, "dm", "uc")).run(trace)


def test_pipeline_run_logs_stay_in_their_own_output_root(write_trace, tmp_path):
    trace = write_trace(["D 0", "D 40"])
    first = SimulationPipeline(CacheConfiguration(128, "dm", "uc"), output_root=tmp_path / "a")
    second = SimulationPipeline(CacheConfiguration(128, "fa", "uc"), output_root=tmp_path / "b")
    first.run(trace)
    second.run(trace)

    log_a = (tmp_path / "a" / "cache-sim.log").read_text()
    log_b = (tmp_path / "b" / "cache-sim.log").read_text()
    assert "128B/dm/uc" in log_a and "128B/fa/uc" not in log_a
    assert "128B/fa/uc" in log_b and "128B/dm/uc" not in log_b

    open_logs = {getattr(h, "baseFilename", None) for h in logging.getLogger().handlers}
    assert str((tmp_path / "a" / "cache-sim.log").resolve()) not in open_logs
    assert str((tmp_path / "b" / "cache-sim.log").resolve()) not in open_logs

import logging

import pytest
import yaml

from cache_sim.cli import EXIT_CONFIG_ERROR, EXIT_RUN_ERROR, main


@pytest.mark.ci
def test_cli_prints_statistics(write_trace, capsys):
    trace = write_trace(["D 0", "D 40", "D 0"])
    assert main(["128", "dm", "uc", "--trace", str(trace)]) == 0
    out = capsys.readouterr().out
    assert "Cache Statistics" in out
    assert "Accesses: 3\nHits:     1\nHit Rate: 0.3333" in out


def test_cli_default_trace_in_working_directory(write_trace, monkeypatch, capsys):
    trace = write_trace(["D 0", "D 40", "D 80"])
    monkeypatch.chdir(trace.parent)
    assert main(["128", "fa", "uc"]) == 0
    assert "Hits:     0" in capsys.readouterr().out


def test_cli_verbose_stats_and_report(write_trace, tmp_path, capsys):
    trace = write_trace(["I 0", "I 0", "D 0"])
    report = tmp_path / "report.yaml"
    assert main(["256", "dm", "sc", "--trace", str(trace), "--report", str(report),
                 "--verbose-stats"]) == 0
    out = capsys.readouterr().out
    assert "Instruction  accesses=2 hits=1" in out
    assert yaml.safe_load(report.read_text())["per_kind"]["data"]["accesses"] == 1


def test_cli_config_file_with_override(write_trace, tmp_path, capsys):
    trace = write_trace(["D 0", "D 80", "D 0"])
    cfg = tmp_path / "cache.yaml"
    cfg.write_text(f"cache:\n  total_size: 128\n  mapping: dm\n  organization: uc\ntrace: {trace}\n")

    assert main(["--config", str(cfg)]) == 0
    assert "Hits:     0" in capsys.readouterr().out

    # fully-associative keeps both blocks
    assert main(["128", "fa", "--config", str(cfg)]) == 0
    assert "Hits:     1" in capsys.readouterr().out


def test_cli_empty_trace_reports_undefined(write_trace, capsys):
    trace = write_trace([])
    assert main(["128", "dm", "uc", "--trace", str(trace)]) == 0
    assert "Hit Rate: undefined" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    ["128", "xx", "uc"],
    ["128", "dm", "zz"],
    ["100", "dm", "uc"],
    ["128"],
])
def test_cli_configuration_errors(argv, write_trace, caplog):
    trace = write_trace(["D 0"])
    with caplog.at_level(logging.ERROR):
        assert main(argv + ["--trace", str(trace)]) == EXIT_CONFIG_ERROR
    assert caplog.records


def test_cli_bad_mapping_names_token(write_trace, caplog):
    trace = write_trace(["D 0"])
    with caplog.at_level(logging.ERROR):
        main(["128", "sa", "uc", "--trace", str(trace)])
    assert "'sa'" in caplog.text


def test_cli_missing_trace(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert main(["128", "dm", "uc", "--trace", str(tmp_path / "none.txt")]) == EXIT_RUN_ERROR
    assert "Unable to open the trace file" in caplog.text


def test_cli_malformed_trace(write_trace, caplog, capsys):
    trace = write_trace(["D 0", "I 40", "M 80"])
    with caplog.at_level(logging.ERROR):
        assert main(["128", "dm", "uc", "--trace", str(trace)]) == EXIT_RUN_ERROR
    assert "line 3" in caplog.text
    assert "Cache Statistics" not in capsys.readouterr().out


def test_cli_log_file_keeps_console_at_log_level(write_trace, tmp_path, capsys):
    trace = write_trace(["D 0", "D 0"])
    log_file = tmp_path / "run.log"
    assert main(["128", "dm", "uc", "--trace", str(trace), "--log-file", str(log_file)]) == 0
    assert " INFO " not in capsys.readouterr().err
    assert " INFO cache_sim.arch: cache 128B/dm/uc" in log_file.read_text()

    open_logs = {getattr(h, "baseFilename", None) for h in logging.getLogger().handlers}
    assert str(log_file.resolve()) not in open_logs

    assert main(["128", "dm", "uc", "--trace", str(trace), "--log-level", "INFO"]) == 0
    assert " INFO cache_sim.arch: cache 128B/dm/uc" in capsys.readouterr().err

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable

import pytest


@pytest.fixture
def outdir(tmp_path: Path, request: pytest.FixtureRequest) -> Path:
    case_dir = tmp_path / request.node.name
    case_dir.mkdir(parents=True, exist_ok=True)
    return case_dir


@pytest.fixture
def write_trace(tmp_path: Path) -> Callable[..., Path]:
    def _write(lines: Iterable[str], name: str = "mem_trace.txt") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines))
        return path
    return _write

"""
Trace input for the simulator.

A trace holds one access per line, ``<I|D> <hex-address>``, for example::

    I 400000
    D 7fffeff0
    D 0x10010004

Blank lines are skipped. Anything else that does not parse aborts the run
with a :class:`TraceFormatError` naming the line.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional

from cache_sim.arch import CacheController
from cache_sim.entity.model import (AccessType, MAX_ADDRESS, MemoryAccess, ResourceError,
                                    TraceFormatError)
from cache_sim.utils.config_utils import BaseEnum

import logging
logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"(0[xX])?[0-9a-fA-F]+")
_KIND_TOKENS = {kind.value: kind for kind in AccessType}


def parse_access(raw: str, line_no: int = 0) -> Optional[MemoryAccess]:
    """Parse one trace line; blank lines give ``None``."""
    tokens = raw.split()
    if not tokens:
        return None
    if len(tokens) != 2:
        raise TraceFormatError(
            f"expected '<I|D> <hex-address>', got {raw.strip()!r}", line_no, raw.strip())

    kind_token, addr_token = tokens
    kind = _KIND_TOKENS.get(kind_token)
    if kind is None:
        raise TraceFormatError(f"unknown access type {kind_token!r}", line_no, kind_token)
    if not _HEX_RE.fullmatch(addr_token):
        raise TraceFormatError(f"address {addr_token!r} is not hexadecimal", line_no, addr_token)
    address = int(addr_token, 16)
    if address > MAX_ADDRESS:
        raise TraceFormatError(
            f"address {addr_token!r} does not fit in 32 bits", line_no, addr_token)
    return MemoryAccess(address, kind, line_no)


class TraceReader:
    """Streams :class:`MemoryAccess` records from a text trace.

    Accepts a path (opened lazily, closed by :meth:`close` or the ``with``
    block) or an already-open stream, which is left open. Files are read as
    bytes and decoded one line at a time, so a line that is not valid UTF-8
    is reported with its own line number.
    """

    def __init__(self, source: str | Path | IO):
        self._stream: Optional[IO] = None
        self._owns_stream = False
        if isinstance(source, (str, Path)):
            self.path = Path(source)
        else:
            self.path = None
            self._stream = source
        self.line_no = 0

    def open(self) -> 'TraceReader':
        if self._stream is None:
            try:
                self._stream = open(self.path, "rb")
            except OSError as e:
                raise ResourceError(f"Unable to open the trace file {self.path}: {e}") from e
            self._owns_stream = True
        return self

    def close(self):
        if self._owns_stream and self._stream is not None:
            self._stream.close()
            self._stream = None
            self._owns_stream = False

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def next_access(self) -> Optional[MemoryAccess]:
        """Next record, or ``None`` once the trace is exhausted."""
        self.open()
        while True:
            try:
                raw = self._stream.readline()
            except UnicodeDecodeError as e:
                # text streams decode ahead of the current line; this is the best guess
                raise TraceFormatError(f"undecodable trace data ({e.reason})",
                                       self.line_no + 1) from e
            except OSError as e:
                raise ResourceError(f"failed to read trace at line {self.line_no + 1}: {e}") from e
            if not raw:
                return None
            self.line_no += 1
            if isinstance(raw, bytes):
                raw = self._decode(raw)
            access = parse_access(raw, self.line_no)
            if access is not None:
                return access

    def _decode(self, raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            token = raw.decode("utf-8", "replace").strip()
            raise TraceFormatError(f"undecodable trace line ({e.reason})",
                                   self.line_no, token) from e

    def __iter__(self) -> Iterator[MemoryAccess]:
        while True:
            access = self.next_access()
            if access is None:
                return
            yield access


class _IterableSource:
    def __init__(self, accesses: Iterable[MemoryAccess]):
        self._it = iter(accesses)

    def next_access(self) -> Optional[MemoryAccess]:
        return next(self._it, None)


class ReplayState(BaseEnum):
    RUNNING = "running"
    EXHAUSTED = "exhausted"


class TraceReplayLoop:
    """Feeds the controller one access at a time until the source runs dry."""

    def __init__(self, source: TraceReader | Iterable[MemoryAccess], controller: CacheController):
        if not hasattr(source, "next_access"):
            source = _IterableSource(source)
        self.source = source
        self.controller = controller
        self.state = ReplayState.RUNNING
        self.consumed = 0

    def step(self) -> bool:
        """Replay a single access; ``False`` once the loop is exhausted."""
        if self.state is ReplayState.EXHAUSTED:
            return False
        access = self.source.next_access()
        if access is None:
            self.state = ReplayState.EXHAUSTED
            logger.debug("trace exhausted after %d accesses", self.consumed)
            return False
        self.controller.handle(access)
        self.consumed += 1
        return True

    def run(self) -> int:
        while self.step():
            pass
        return self.consumed


__all__ = ["ReplayState", "TraceReader", "TraceReplayLoop", "parse_access"]

"""
Trace-driven cache simulator.

Replays a sequence of instruction/data accesses against a single-level cache
with 64-byte blocks, either direct-mapped or fully-associative with FIFO
replacement, unified or split between instructions and data, and counts
accesses and hits.
"""

__all__ = [
    "arch",
    "config",
    "entity",
    "memory",
    "simulator",
    "trace",
]

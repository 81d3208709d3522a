from collections import Counter

from cache_sim.entity.model import AccessOutcome, SimulationContext
from cache_sim.memory import AbstractCacheBank
from cache_sim.memory.replacement_queue import ReplacementQueue

import logging
logger = logging.getLogger(__name__)


class DirectMappedBank(AbstractCacheBank):
    """Each block address has exactly one candidate slot, picked by its index bits."""

    def process(self, address: int) -> AccessOutcome:
        tag, index = self.decoder.decode_direct_mapped(address)
        return self.access(tag, index)

    def access(self, tag: int, index: int) -> AccessOutcome:
        line = self.lines[index]
        if not line.valid:
            line.valid = True
            line.tag = tag
            return AccessOutcome.COLD_MISS
        if line.tag == tag:
            return AccessOutcome.HIT
        logger.debug("%s: conflict at index %d, tag %#x replaces %#x",
                     self.name, index, tag, line.tag)
        line.tag = tag
        return AccessOutcome.REPLACE_MISS


class FullyAssociativeBank(AbstractCacheBank):
    """Any slot may hold any block; a full bank evicts in insertion order (FIFO)."""

    def __init__(self, name: str, block_count: int, context: SimulationContext):
        super().__init__(name, block_count, context)
        self.queue = ReplacementQueue(block_count)

    def process(self, address: int) -> AccessOutcome:
        return self.access(self.decoder.decode_fully_associative(address))

    def access(self, tag: int) -> AccessOutcome:
        first_invalid = None
        for i, line in enumerate(self.lines):
            if line.valid:
                if line.tag == tag:
                    return AccessOutcome.HIT
            elif first_invalid is None:
                first_invalid = i

        if first_invalid is not None:
            line = self.lines[first_invalid]
            line.valid = True
            line.tag = tag
            self.queue.enqueue(first_invalid)
            return AccessOutcome.COLD_MISS

        victim = self.queue.dequeue()
        logger.debug("%s: evict slot %d, tag %#x replaces %#x",
                     self.name, victim, tag, self.lines[victim].tag)
        self.lines[victim].tag = tag
        self.queue.enqueue(victim)
        return AccessOutcome.REPLACE_MISS

    def check_invariants(self):
        super().check_invariants()
        duplicated = [tag for tag, n in Counter(self.resident_tags()).items() if n > 1]
        assert not duplicated, f"bank {self.name} holds duplicate tags {duplicated}"
        assert len(self.queue) == self.occupancy(), \
            f"bank {self.name} queues {len(self.queue)} slots for {self.occupancy()} valid lines"
        assert sorted(self.queue.snapshot()) == [i for i, line in enumerate(self.lines) if line.valid]


__all__ = ["DirectMappedBank", "FullyAssociativeBank"]

from typing import List

from cache_sim.entity.model import AccessOutcome, CacheLine, SimulationContext
from cache_sim.memory.addr_converter import AddressDecoder


class AbstractCacheBank:
    def __init__(self, name: str, block_count: int, context: SimulationContext):
        self.name = name
        self.block_count = block_count
        self.context = context
        self.decoder = AddressDecoder(context.config.block_size, block_count)
        self.lines: List[CacheLine] = [CacheLine() for _ in range(block_count)]

    def process(self, address: int) -> AccessOutcome:
        raise NotImplementedError

    def occupancy(self) -> int:
        return sum(1 for line in self.lines if line.valid)

    def resident_tags(self) -> List[int]:
        return [line.tag for line in self.lines if line.valid]

    def check_invariants(self):
        assert len(self.lines) == self.block_count, \
            f"bank {self.name} has {len(self.lines)} lines, expected {self.block_count}"

    def __repr__(self):
        return f"{type(self).__name__}({self.name}, {self.occupancy()}/{self.block_count})"


__all__ = ["AbstractCacheBank"]

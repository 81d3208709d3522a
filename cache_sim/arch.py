from typing import Dict, List

from cache_sim.config import CacheConfiguration, MappingPolicy
from cache_sim.entity.model import AccessOutcome, AccessType, MemoryAccess, SimulationContext, Statistics
from cache_sim.memory import AbstractCacheBank
from cache_sim.memory.cache_bank import DirectMappedBank, FullyAssociativeBank

import logging
logger = logging.getLogger(__name__)


class CacheController:
    """Routes each access to its bank and keeps the run statistics.

    Unified organization maps both access kinds onto one shared bank, so
    instruction fetches and data accesses can evict each other. Split
    organization gives each kind its own half-sized bank.
    """

    bank_cls_map = {
        MappingPolicy.DM: DirectMappedBank,
        MappingPolicy.FA: FullyAssociativeBank,
    }

    def __init__(self, context: SimulationContext):
        self.context = context
        config = context.config
        bank_cls = self.bank_cls_map[config.mapping]

        self._banks: Dict[AccessType, AbstractCacheBank] = {}
        if config.split:
            for kind in AccessType:
                self._banks[kind] = bank_cls(
                    f"{kind.name.lower()}_cache", config.blocks_per_bank, context)
        else:
            shared = bank_cls("unified_cache", config.blocks_per_bank, context)
            for kind in AccessType:
                self._banks[kind] = shared

        logger.info("cache %s: %d bank(s) of %d blocks, %s",
                    config, len(self.banks), config.blocks_per_bank, bank_cls.__name__)

    @classmethod
    def from_config(cls, config: CacheConfiguration) -> 'CacheController':
        return cls(SimulationContext(config))

    @property
    def config(self) -> CacheConfiguration:
        return self.context.config

    @property
    def statistics(self) -> Statistics:
        return self.context.statistics

    @property
    def banks(self) -> List[AbstractCacheBank]:
        # de-duplicated, in routing order
        unique = []
        for bank in self._banks.values():
            if not any(bank is b for b in unique):
                unique.append(bank)
        return unique

    def bank_for(self, kind: AccessType) -> AbstractCacheBank:
        return self._banks[kind]

    def handle(self, access: MemoryAccess) -> AccessOutcome:
        outcome = self._banks[access.kind].process(access.address)
        self.context.record(access, outcome)
        logger.debug("%s %#010x -> %s", access.kind.value, access.address, outcome.name)
        return outcome

    def occupancy(self) -> Dict[str, int]:
        return {bank.name: bank.occupancy() for bank in self.banks}

    def check_invariants(self):
        for bank in self.banks:
            bank.check_invariants()
        stat = self.statistics
        assert 0 <= stat.hits <= stat.accesses, f"bad counters {stat}"
        assert sum(s.accesses for s in self.context.kind_statistics.values()) == stat.accesses

    def stat_dict(self) -> Dict[str, Statistics]:
        stat = {"total": self.statistics}
        for kind, kind_stat in self.context.kind_statistics.items():
            stat[kind.name.lower()] = kind_stat
        return stat


__all__ = ["CacheController"]

from dataclasses import dataclass, field

import yaml

from cache_sim.entity.model import ConfigurationError
from cache_sim.memory.addr_converter import BLOCK_SIZE, is_power_of_two
from cache_sim.utils.config_utils import BaseEnum, load_config

import logging
logger = logging.getLogger(__name__)

DEFAULT_TRACE = "mem_trace.txt"


class MappingPolicy(str, BaseEnum):
    DM = "dm"
    FA = "fa"


class Organization(str, BaseEnum):
    UC = "uc"
    SC = "sc"


def parse_mapping(token) -> MappingPolicy:
    try:
        return MappingPolicy(token)
    except ValueError:
        raise ConfigurationError(f"Unknown cache mapping: {token!r} (expected dm|fa)") from None


def parse_organization(token) -> Organization:
    try:
        return Organization(token)
    except ValueError:
        raise ConfigurationError(
            f"Unknown cache organization: {token!r} (expected uc|sc)") from None


@dataclass
class CacheConfiguration:
    # block_size is fixed; it is a field only so reports can show it
    total_size: int
    mapping: MappingPolicy
    organization: Organization
    block_size: int = field(default=BLOCK_SIZE)

    def __post_init__(self):
        self.mapping = parse_mapping(self.mapping)
        self.organization = parse_organization(self.organization)
        if self.block_size != BLOCK_SIZE:
            raise ConfigurationError(
                f"block size is fixed at {BLOCK_SIZE} bytes, got {self.block_size}")
        if isinstance(self.total_size, bool) or not isinstance(self.total_size, int):
            raise ConfigurationError(f"cache size must be an integer, got {self.total_size!r}")
        if self.total_size <= 0:
            raise ConfigurationError(f"cache size must be positive, got {self.total_size}")
        if self.total_size % self.block_size:
            raise ConfigurationError(
                f"cache size {self.total_size} is not a multiple of the {self.block_size}-byte block")
        if self.blocks_per_bank == 0:
            raise ConfigurationError(
                f"cache size {self.total_size} leaves no blocks per bank under "
                f"{self.organization.value} organization")
        if self.mapping == MappingPolicy.DM and not is_power_of_two(self.blocks_per_bank):
            raise ConfigurationError(
                f"direct-mapped cache needs a power-of-two block count per bank, "
                f"cache size {self.total_size} gives {self.blocks_per_bank}")

    @property
    def block_count(self) -> int:
        return self.total_size // self.block_size

    @property
    def blocks_per_bank(self) -> int:
        if self.organization == Organization.SC:
            return self.block_count // 2
        return self.block_count

    @property
    def split(self) -> bool:
        return self.organization == Organization.SC

    def __str__(self):
        return f"{self.total_size}B/{self.mapping.value}/{self.organization.value}"


@dataclass
class SimConfig:
    cache: CacheConfiguration
    trace: str = field(default=DEFAULT_TRACE)


def load_sim_config(config_path: str) -> SimConfig:
    try:
        config = load_config(config_path, SimConfig)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {config_path}: {e}") from e
    except (ValueError, TypeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"invalid config file {config_path}: {e}") from e
    logger.info("loaded config %s from %s", config.cache, config_path)
    return config


def build_config(total_size, mapping, organization) -> CacheConfiguration:
    """Build a configuration from raw command-line tokens."""
    missing = [name for name, value in (
        ("cache size", total_size), ("cache mapping", mapping),
        ("cache organization", organization)) if value is None]
    if missing:
        raise ConfigurationError(f"missing required configuration value: {', '.join(missing)}")
    if isinstance(total_size, str):
        try:
            total_size = int(total_size)
        except ValueError:
            raise ConfigurationError(f"cache size must be an integer, got {total_size!r}") from None
    return CacheConfiguration(total_size, mapping, organization)

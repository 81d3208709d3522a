from typing import Tuple

BLOCK_SIZE = 64


def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


class AddressDecoder:
    """Splits a 32-bit address into offset, index and tag fields.

    ``block_count`` is the number of lines in the bank the address is looked
    up in. Direct-mapped decoding masks with ``block_count - 1`` and therefore
    needs a power of two; fully-associative decoding accepts any count.
    """

    def __init__(self, block_size: int, block_count: int):
        if not is_power_of_two(block_size):
            raise ValueError(f"block size must be a power of two, got {block_size}")
        if block_count <= 0:
            raise ValueError(f"block count must be positive, got {block_count}")
        self.block_size = block_size
        self.block_count = block_count
        self.offset_bits = block_size.bit_length() - 1
        self.index_bits = block_count.bit_length() - 1 if is_power_of_two(block_count) else None
        self._index_mask = block_count - 1

    def block_address(self, address: int) -> int:
        return address >> self.offset_bits

    def offset(self, address: int) -> int:
        return address & (self.block_size - 1)

    def decode_direct_mapped(self, address: int) -> Tuple[int, int]:
        """Return ``(tag, index)``; the tag keeps its high bits in place."""
        if self.index_bits is None:
            raise ValueError(
                f"direct-mapped decoding needs a power-of-two block count, got {self.block_count}")
        block_addr = self.block_address(address)
        return block_addr & ~self._index_mask, block_addr & self._index_mask

    def decode_fully_associative(self, address: int) -> int:
        return self.block_address(address)


__all__ = ["AddressDecoder", "BLOCK_SIZE", "is_power_of_two"]

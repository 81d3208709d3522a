from typing import List


class ReplacementQueue:
    """Fixed-capacity FIFO ring of slot indices, oldest entry at ``head``.

    ``head`` and ``tail`` start at -1 (empty); the first enqueue moves
    ``head`` to 0.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"queue capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._slots: List[int] = [0] * capacity
        self.head = -1
        self.tail = -1
        self._size = 0

    def __len__(self):
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def is_full(self) -> bool:
        return self._size == self.capacity

    def enqueue(self, slot: int):
        if self.is_full():
            raise IndexError("enqueue on a full replacement queue")
        if self.head == -1:
            self.head = 0
        self.tail = (self.tail + 1) % self.capacity
        self._slots[self.tail] = slot
        self._size += 1

    def dequeue(self) -> int:
        if self.is_empty():
            raise IndexError("dequeue from an empty replacement queue")
        slot = self._slots[self.head]
        self.head = (self.head + 1) % self.capacity
        self._size -= 1
        return slot

    def snapshot(self) -> List[int]:
        """Queued slots from oldest to newest."""
        return [self._slots[(self.head + i) % self.capacity] for i in range(self._size)]

    def __repr__(self):
        return f"ReplacementQueue(capacity={self.capacity}, entries={self.snapshot()})"


__all__ = ["ReplacementQueue"]

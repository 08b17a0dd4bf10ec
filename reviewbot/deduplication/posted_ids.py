"""
Bounded memory of review requests that have already been posted.

Keeps the most recent ``capacity`` ids; the oldest id is forgotten
first once the buffer is full.
"""

from collections import OrderedDict
from typing import Hashable, Iterator

from ..utils.logger import get_logger


class PostedIdBuffer:
    """
    Fixed-capacity FIFO set of posted review request ids.

    Membership is exact for everything still inside the window. Adding an
    id that is already present does not move it.
    """

    def __init__(self, capacity: int = 1000):
        """
        Initialize the buffer.

        Args:
            capacity: Maximum number of ids remembered

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._ids: "OrderedDict[Hashable, None]" = OrderedDict()
        self.logger = get_logger(__name__)

    @property
    def capacity(self) -> int:
        return self._capacity

    def contains(self, item_id: Hashable) -> bool:
        """Return True if ``item_id`` is currently remembered."""
        return item_id in self._ids

    def add(self, item_id: Hashable) -> None:
        """
        Remember ``item_id``, evicting the oldest id if the buffer is full.
        """
        if item_id in self._ids:
            return

        if len(self._ids) >= self._capacity:
            evicted, _ = self._ids.popitem(last=False)
            self.logger.debug(
                f"Evicted posted id {evicted}",
                extra={"evicted_id": evicted, "capacity": self._capacity}
            )

        self._ids[item_id] = None

    def __contains__(self, item_id: object) -> bool:
        return self.contains(item_id)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Hashable]:
        """Iterate from oldest to newest."""
        return iter(self._ids)

"""
Abstract base class for delivery backends.

New publishers should inherit from Publisher and implement publish.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..core.types import EnrichedItem


class Publisher(ABC):
    """Delivers enriched items to a destination.

    The caller records an item as delivered only when publish returns
    True, so implementations must not report success they did not get.
    """

    @abstractmethod
    def publish(self, item: EnrichedItem, destination: str) -> bool:
        """Deliver one item.

        Args:
            item: The item to deliver
            destination: Channel or chat identifier for the item's category

        Returns:
            True if the destination confirmed delivery
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release resources held by the publisher."""

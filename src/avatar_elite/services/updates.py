"""Recently seen Telegram update ids."""

from collections import OrderedDict
from dataclasses import dataclass, field

DEFAULT_CAPACITY = 1000


@dataclass
class RecentUpdates:
    """Bounded per-process record of accepted update ids.

    Telegram redelivers an update when the webhook answers slowly; a
    redelivered id must not run a second generation.
    """

    capacity: int = DEFAULT_CAPACITY
    _seen: OrderedDict[int, None] = field(default_factory=OrderedDict)

    def accept(self, update_id: int) -> bool:
        """Record the id; returns False when it was already seen."""
        if update_id in self._seen:
            self._seen.move_to_end(update_id)
            return False
        self._seen[update_id] = None
        if len(self._seen) > self.capacity:
            self._seen.popitem(last=False)
        return True

    def __len__(self) -> int:
        return len(self._seen)

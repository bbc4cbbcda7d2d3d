"""
Capacity policy: attendance counts derived from the authoritative RSVP rows.

Counts are recomputed from the store for every response instead of being
kept as counters on the event.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from attendance.db.models.rsvp import RSVPStatusEnum, COUNTED_STATUSES


@dataclass(frozen=True)
class AttendanceSummary:
    confirmed_count: int
    waitlist_count: int
    capacity: Optional[int]

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and self.confirmed_count >= self.capacity

    @property
    def free_slots(self) -> Optional[int]:
        """Seats left before the event is full, None for unlimited events."""
        if self.capacity is None:
            return None
        return max(0, self.capacity - self.confirmed_count)

    def to_dict(self) -> dict:
        return {
            "confirmed_count": self.confirmed_count,
            "waitlist_count": self.waitlist_count,
            "capacity": self.capacity,
            "is_full": self.is_full,
        }


def summarize(capacity: Optional[int], statuses: Iterable[RSVPStatusEnum]) -> AttendanceSummary:
    confirmed = 0
    waitlisted = 0
    for status in statuses:
        if status in COUNTED_STATUSES:
            confirmed += 1
        elif status == RSVPStatusEnum.WAITLISTED:
            waitlisted += 1
    return AttendanceSummary(confirmed_count=confirmed, waitlist_count=waitlisted, capacity=capacity)

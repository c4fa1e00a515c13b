"""Per-room mutual exclusion for check-then-write sequences"""
import asyncio
from collections import defaultdict
from typing import Dict


class RoomLocks:
    """One ``asyncio.Lock`` per room id.

    The overlap check and the write that follows it must run under the lock
    of the room being written, so two bookings for the same room cannot both
    pass the check. Different rooms never wait on each other.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    def for_room(self, room_id: int) -> asyncio.Lock:
        return self._locks[room_id]

    def __len__(self) -> int:
        return len(self._locks)

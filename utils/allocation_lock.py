"""
Critical section for capacity-consuming writes.

Every admission (create, update, block approval, check-in) reads the
Availability Index and then writes. Both happen while holding:
  1. an in-process lock per (hotel_id, room_type), acquired in sorted order
  2. SELECT ... FOR UPDATE on the hotel's rooms of those types (PostgreSQL;
     SQLite ignores it and relies on 1.)
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Tuple

from sqlalchemy.orm import Session

from models.core import Room

_registry_guard = threading.Lock()
_locks: Dict[Tuple[int, str], threading.Lock] = {}


def _lock_for(key: Tuple[int, str]) -> threading.Lock:
    with _registry_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


@contextmanager
def allocation_lock(db: Session, hotel_id: int, room_types: Iterable[str]):
    keys = sorted({(hotel_id, rt) for rt in room_types if rt})
    acquired = []
    try:
        for key in keys:
            lock = _lock_for(key)
            lock.acquire()
            acquired.append(lock)

        if keys:
            # Row locks so other workers serialize on the same inventory
            db.query(Room.id).filter(
                Room.hotel_id == hotel_id,
                Room.type.in_([rt for _, rt in keys]),
            ).order_by(Room.id).with_for_update().all()

        yield
    finally:
        for lock in reversed(acquired):
            lock.release()

"""
Local State Store - the on-device copy of cart, orders and profile.

A preferences-style key-value file (JSON object) holding, per entity, the
serialized payload, its timestamp and, for cart/orders, its checksum:

    cart_items      cart_timestamp      cart_checksum
    orders_items    orders_timestamp    orders_checksum
    profile_data    profile_timestamp

All operations serialize on one re-entrant lock per store instance. Callers
that read, decide and write (the sync orchestrator) hold the lock for the
whole sequence through ``transaction()``. Nothing else may touch the file.

Example::

    store = LocalStateStore('/data/state_sync_prefs.json')
    store.save_entity_state(SyncEntity.CART, [{'product_id': 'P1', 'quantity': 2, 'price': 10.0}])
    state = store.get_entity_state(SyncEntity.CART)
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from .checksum import calculate_checksum
from .timestamps import EPOCH, TimestampLike, advance_timestamp, format_timestamp, parse_timestamp
from .types import ALL_ENTITIES, EntityState, SyncEntity

logger = logging.getLogger(__name__)

PREFS_FILENAME = 'state_sync_prefs.json'

STORE_KEYS = {
    SyncEntity.CART: ('cart_items', 'cart_timestamp', 'cart_checksum'),
    SyncEntity.ORDERS: ('orders_items', 'orders_timestamp', 'orders_checksum'),
    SyncEntity.PROFILE: ('profile_data', 'profile_timestamp', None),
}

Listener = Callable[[SyncEntity], None]


class LocalStateStore:
    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._prefs: Dict[str, Any] = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> Dict[str, Any]:
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding='utf-8') as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning('State file %s unreadable, starting empty: %s', self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning('State file %s is not a key-value object, starting empty', self.path)
            return {}
        return data

    def _flush(self, prefs: Dict[str, Any]) -> None:
        if not self.path:
            return
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix='.state-', dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(prefs, fh, separators=(',', ':'))
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _commit(self, updates: Dict[str, Any]) -> None:
        """Apply ``updates`` to a copy, persist it, then swap it in."""
        prefs = dict(self._prefs)
        for key, value in updates.items():
            if value is None:
                prefs.pop(key, None)
            else:
                prefs[key] = value
        self._flush(prefs)
        self._prefs = prefs

    # ------------------------------------------------------------------
    # Locking and notifications
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """Hold the store lock across a read-then-write sequence."""
        with self._lock:
            yield self

    def add_listener(self, callback: Listener) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self, entities) -> None:
        for listener in list(self._listeners):
            for entity in entities:
                try:
                    listener(entity)
                except Exception:
                    logger.exception('State listener failed for %s', entity)

    # ------------------------------------------------------------------
    # Entity operations
    # ------------------------------------------------------------------

    def save_entity_state(self, entity, payload, timestamp: TimestampLike = None) -> EntityState:
        """
        Persist ``payload`` for ``entity`` with its timestamp and checksum.

        Without an explicit timestamp the write is stamped after the stored
        one (``advance_timestamp``), so local writes never go backwards.
        All keys of the entity are written in one atomic file replace.
        """
        entity = SyncEntity(entity)
        items_key, timestamp_key, checksum_key = STORE_KEYS[entity]

        with self._lock:
            if timestamp is None:
                previous = self._prefs.get(timestamp_key)
                stamp = format_timestamp(advance_timestamp(previous if previous != EPOCH else None))
            else:
                stamp = format_timestamp(timestamp)

            if entity is SyncEntity.PROFILE:
                checksum = ''
            else:
                payload = list(payload or [])
                checksum = calculate_checksum(entity, payload)

            updates = {
                items_key: json.dumps(payload, default=str),
                timestamp_key: stamp,
            }
            if checksum_key:
                updates[checksum_key] = checksum
            self._commit(updates)

            logger.debug('%s state saved: timestamp=%s checksum=%s', entity, stamp, checksum)
            state = EntityState(entity=entity, payload=payload, timestamp=stamp, checksum=checksum)
            self._notify([entity])
            return state

    def get_entity_state(self, entity) -> EntityState:
        """
        Read the persisted state, or the epoch sentinel if never written.

        Corrupt entries never raise: they are logged and read as empty, so the
        next sync behaves like a first sync for that entity.
        """
        entity = SyncEntity(entity)
        items_key, timestamp_key, checksum_key = STORE_KEYS[entity]

        with self._lock:
            raw_items = self._prefs.get(items_key)
            raw_timestamp = self._prefs.get(timestamp_key)
            raw_checksum = self._prefs.get(checksum_key, '') if checksum_key else ''

        if raw_items is None:
            return EntityState.empty(entity)

        try:
            payload = json.loads(raw_items)
            timestamp = format_timestamp(parse_timestamp(raw_timestamp or EPOCH))
            if entity is SyncEntity.PROFILE:
                if payload is not None and not isinstance(payload, dict):
                    raise ValueError('profile data must be an object')
            elif not isinstance(payload, list):
                raise ValueError('items must be a list')
            if not isinstance(raw_checksum, str):
                raise ValueError('checksum must be a string')
        except (TypeError, ValueError) as exc:
            logger.warning('Corrupt local %s state, treating as never synced: %s', entity, exc)
            return EntityState.empty(entity)

        return EntityState(entity=entity, payload=payload, timestamp=timestamp, checksum=raw_checksum)

    def clear_entity_state(self, entity) -> EntityState:
        """Forget ``entity`` so it reads as never synced."""
        entity = SyncEntity(entity)
        with self._lock:
            self._commit(dict.fromkeys(key for key in STORE_KEYS[entity] if key))
            logger.debug('%s state cleared', entity)
            self._notify([entity])
        return EntityState.empty(entity)

    def clear_all(self) -> None:
        """Wipe every entity (logout)."""
        with self._lock:
            self._flush({})
            self._prefs = {}
            logger.info('All local sync state cleared')
            self._notify(ALL_ENTITIES)

    def snapshot(self) -> Dict[SyncEntity, EntityState]:
        with self._lock:
            return {entity: self.get_entity_state(entity) for entity in ALL_ENTITIES}

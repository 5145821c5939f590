"""Read-through TTL cache for menu and cart reads.

Stale reads are acceptable here: the cache only trims repeated queries. Two
guarantees hold anyway. A second caller asking for a key whose fetch is in
flight waits for that fetch instead of issuing its own, and a fetch that
started before an invalidation of its key never stores its result.
"""
import threading
import time

from flask import current_app

from restaurant_ordering.middleware.logging_config import get_logger

logger = get_logger(__name__)


class _Entry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value, expires_at):
        self.value = value
        self.expires_at = expires_at


class _Pending:
    __slots__ = ("event", "value", "error", "generation")

    def __init__(self, generation):
        self.event = threading.Event()
        self.value = None
        self.error = None
        self.generation = generation


class TTLCache:

    def __init__(self, ttl, clock=time.monotonic, name="cache"):
        self.ttl = ttl
        self.name = name
        self._clock = clock
        self._entries = {}
        self._pending = {}
        self._generations = {}
        self._lock = threading.Lock()

    def get(self, key):
        """Return the fresh value for ``key`` or None."""
        with self._lock:
            return self._fresh_value(key)

    def set(self, key, value):
        with self._lock:
            self._entries[key] = _Entry(value, self._clock() + self.ttl)

    def get_or_fetch(self, key, fetch):
        """Return the cached value, calling ``fetch()`` at most once per miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > self._clock():
                return entry.value
            pending = self._pending.get(key)
            leader = pending is None
            if leader:
                pending = _Pending(self._generations.get(key, 0))
                self._pending[key] = pending

        if not leader:
            pending.event.wait()
            if pending.error is not None:
                raise pending.error
            return pending.value

        try:
            value = fetch()
        except Exception as e:
            pending.error = e
            raise
        else:
            pending.value = value
            with self._lock:
                if self._generations.get(key, 0) == pending.generation:
                    self._entries[key] = _Entry(value, self._clock() + self.ttl)
            return value
        finally:
            with self._lock:
                self._pending.pop(key, None)
                self._generations.pop(key, None)
            pending.event.set()

    def invalidate(self, key):
        with self._lock:
            self._drop(key)

    def invalidate_prefix(self, prefix):
        with self._lock:
            keys = set(k for k in self._entries if k.startswith(prefix))
            keys.update(k for k in self._pending if k.startswith(prefix))
            for key in keys:
                self._drop(key)
        if keys:
            logger.debug(f"{self.name}: invalidated {len(keys)} keys under '{prefix}'")

    def clear(self):
        with self._lock:
            for key in list(self._entries) + list(self._pending):
                self._drop(key)

    def _drop(self, key):
        # generations only matter while a fetch for the key is in flight
        self._entries.pop(key, None)
        if key in self._pending:
            self._generations[key] = self._generations.get(key, 0) + 1

    def _fresh_value(self, key):
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.value


def init_cache(app):
    app.extensions["menu_cache"] = TTLCache(app.config["MENU_CACHE_TTL"], name="menu")
    app.extensions["cart_cache"] = TTLCache(app.config["CART_CACHE_TTL"], name="cart")


def menu_cache():
    return current_app.extensions["menu_cache"]


def cart_cache():
    return current_app.extensions["cart_cache"]


def invalidate_menu():
    menu_cache().clear()


def invalidate_cart(session_id):
    cart_cache().invalidate(f"cart:{session_id}")

# optica/utils/cache.py
# cache en memoria por proceso con vencimiento (TTL) por clave
import time
import threading


class TTLCache:
    def __init__(self, ttl=300):
        self.ttl = ttl
        self._data = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= time.monotonic():
                del self._data[key]
                return None
            return value

    def set(self, key, value, ttl=None):
        with self._lock:
            self._data[key] = (time.monotonic() + (ttl or self.ttl), value)

    def delete(self, *keys):
        with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def clear(self):
        with self._lock:
            self._data.clear()

    def __contains__(self, key):
        return self.get(key) is not None

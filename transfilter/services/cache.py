"""Cache of rendered translations keyed by language and content hash.

Backends are picked with ``TRANSLATIONS_CACHING_MODE``:

- ``request``: lives on ``flask.g`` for one request
- ``application``: process-local, entries expire after ``TRANSLATIONS_CACHE_TTL``
- ``redis``: shared between workers, entries expire after ``TRANSLATIONS_CACHE_TTL``
- ``none``: nothing is cached

No backend locks; concurrent writers simply overwrite each other.
"""
import logging
import time

from flask import current_app, g

from transfilter.services.redis_client import get_redis

logger = logging.getLogger(__name__)

CACHE_PREFIX = 'translations:'
CACHING_MODES = ('request', 'application', 'redis', 'none')


def cache_key(language, generated_hash, found_hash=None):
    return f"{language}{generated_hash or found_hash or ''}"


class NullBackend:
    def get(self, key):
        return None

    def set(self, key, value):
        pass

    def delete(self, key):
        pass

    def clear(self):
        pass


class RequestBackend:
    """Dict stored on ``flask.g``, gone when the request ends."""

    def _store(self):
        if '_translation_cache' not in g:
            g._translation_cache = {}
        return g._translation_cache

    def get(self, key):
        return self._store().get(key)

    def set(self, key, value):
        self._store()[key] = value

    def delete(self, key):
        self._store().pop(key, None)

    def clear(self):
        self._store().clear()


class ApplicationBackend:
    """Process-local dict with per-entry expiry."""

    def __init__(self, store: dict, ttl: int):
        self.store = store
        self.ttl = ttl

    def get(self, key):
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at and time.time() >= expires_at:
            self.store.pop(key, None)
            return None
        return value

    def set(self, key, value):
        expires_at = time.time() + self.ttl if self.ttl else None
        self.store[key] = (value, expires_at)

    def delete(self, key):
        self.store.pop(key, None)

    def clear(self):
        self.store.clear()


class RedisBackend:
    """Shared cache in Redis. Failures are logged and read as misses."""

    def __init__(self, client, ttl: int, prefix: str = CACHE_PREFIX):
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    def get(self, key):
        try:
            return self.client.get(f"{self.prefix}{key}")
        except Exception as e:
            logger.error(f"Redis translation cache get error: {e}")
            return None

    def set(self, key, value):
        try:
            if self.ttl:
                self.client.setex(f"{self.prefix}{key}", self.ttl, value)
            else:
                self.client.set(f"{self.prefix}{key}", value)
        except Exception as e:
            logger.error(f"Redis translation cache set error: {e}")

    def delete(self, key):
        try:
            self.client.delete(f"{self.prefix}{key}")
        except Exception as e:
            logger.error(f"Redis translation cache delete error: {e}")

    def clear(self):
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}*"))
            if keys:
                self.client.delete(*keys)
        except Exception as e:
            logger.error(f"Redis translation cache purge error: {e}")


class ResolutionCache:
    """Rendered substitute text per ``language + hash`` key."""

    def __init__(self, backend=None):
        self.backend = backend or NullBackend()

    def get(self, key):
        return self.backend.get(key)

    def set(self, key, value):
        self.backend.set(key, value)

    def invalidate(self, translation, *content_hashes):
        """Drop entries that may have been rendered from ``translation``.

        Stale renders are cached under the fragment's current generated hash,
        which the translation does not record; pass it in ``content_hashes``.
        """
        for content_hash in {translation.lastgeneratedhash, translation.md5key, *content_hashes}:
            if content_hash:
                self.backend.delete(cache_key(translation.targetlanguage, content_hash))

    def purge(self):
        self.backend.clear()


def make_backend(app):
    mode = app.config.get('TRANSLATIONS_CACHING_MODE') or 'request'
    ttl = app.config.get('TRANSLATIONS_CACHE_TTL', 300)

    if mode not in CACHING_MODES:
        logger.warning(f"Unknown translation caching mode '{mode}', using request cache")
        mode = 'request'

    if mode == 'none':
        return NullBackend()
    if mode == 'application':
        store = app.extensions.setdefault('transfilter_cache', {})
        return ApplicationBackend(store, ttl)
    if mode == 'redis':
        client = get_redis(app.config.get('REDIS_URL'))
        if client is None:
            logger.warning("Redis unavailable, falling back to request translation cache")
            return RequestBackend()
        return RedisBackend(client, ttl)
    return RequestBackend()


def get_resolution_cache(app=None) -> ResolutionCache:
    """Cache configured for the given (or current) Flask app."""
    return ResolutionCache(make_backend(app or current_app))

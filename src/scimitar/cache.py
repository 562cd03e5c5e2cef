"""Template cache: at most one compilation per (template key, model type).

The first caller for a missing key installs a ``concurrent.futures.Future``
under a short bookkeeping lock and compiles; every other caller for that
key blocks on the future. Callers for different keys never wait on each
other and no lock is held while compiling.

    ```
    get_or_compile(k)              get_or_compile(k)           (concurrently)
      entries miss                   entries miss
      inflight.setdefault → owner    inflight.setdefault → waiter
      compute()                      future.result()  ← blocks
      entries[k] = compiled
      future.set_result(compiled)  → same CompiledTemplate
    ```

Failures are never stored: the future carries the exception to every
waiter, the in-flight slot is released, and the next call compiles again.

Each template key has a generation that `invalidate` and `clear` bump. An
owner whose key changed generation while it compiled still hands its result
to the callers already waiting, but does not store it; the in-flight slot
was dropped by the invalidation, so later callers compile the new text.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from datetime import UTC, datetime

from scimitar._types import CacheEntry, CacheKey, CompiledTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheInfo:
    """Cache statistics.

    Attributes:
        hits: Lookups answered from a stored entry
        misses: Lookups that had to compile or wait for a compilation
        compilations: Successful compilations
        failures: Compilations that raised
        size: Stored entries
    """

    hits: int
    misses: int
    compilations: int
    failures: int
    size: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TemplateCache:
    """Thread-safe store of compiled templates keyed by ``CacheKey``.

    Thread-Safety:
        Entry reads are single dict operations. ``_lock`` guards stores,
        removals and generations, and is never held while compiling. A
        separate lock guards the statistics counters.
    """

    __slots__ = (
        "_compilations",
        "_entries",
        "_epoch",
        "_failures",
        "_generations",
        "_hits",
        "_inflight",
        "_lock",
        "_misses",
        "_stats_lock",
    )

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, Future[CompiledTemplate]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._compilations = 0
        self._failures = 0

    def get_or_compile(
        self,
        template_key: str,
        model_type_id: str,
        compute: Callable[[], CompiledTemplate],
    ) -> CompiledTemplate:
        """Return the cached template, compiling it with ``compute`` on a miss.

        Raises:
            Whatever ``compute`` raises; the same exception instance reaches
            every concurrent caller for the key
        """
        key = CacheKey(template_key, model_type_id)
        entry = self._entries.get(key)
        if entry is not None:
            self._count(hit=True)
            return entry.compiled
        self._count(hit=False)

        future: Future[CompiledTemplate] = Future()
        with self._lock:
            current = self._inflight.setdefault(key, future)
            stamp = self._stamp(template_key)
            # Another owner may have finished between our miss and setdefault
            entry = self._entries.get(key) if current is future else None
        if current is not future:
            logger.debug("Waiting for in-flight compilation of '%s' (%s)", template_key, model_type_id)
            return current.result()
        if entry is not None:
            self._release(key, future)
            future.set_result(entry.compiled)
            return entry.compiled

        start = time.perf_counter()
        logger.debug("Compiling '%s' (%s)", template_key, model_type_id)
        try:
            compiled = compute()
        except BaseException as exc:
            self._release(key, future)
            with self._stats_lock:
                self._failures += 1
            future.set_exception(exc)
            raise

        with self._lock:
            stale = self._stamp(template_key) != stamp
            if not stale:
                self._entries[key] = CacheEntry(key=key, compiled=compiled, created_at=datetime.now(UTC))
            if self._inflight.get(key) is future:
                del self._inflight[key]
        with self._stats_lock:
            self._compilations += 1
        future.set_result(compiled)
        if stale:
            logger.debug("Discarded '%s' (%s): invalidated while compiling", template_key, model_type_id)
        else:
            logger.debug(
                "Cached '%s' (%s) in %.2fms",
                template_key,
                model_type_id,
                (time.perf_counter() - start) * 1000,
            )
        return compiled

    def get(self, template_key: str, model_type_id: str) -> CompiledTemplate | None:
        entry = self._entries.get(CacheKey(template_key, model_type_id))
        return entry.compiled if entry is not None else None

    def get_entry(self, template_key: str, model_type_id: str) -> CacheEntry | None:
        return self._entries.get(CacheKey(template_key, model_type_id))

    def contains(self, template_key: str, model_type_id: str) -> bool:
        return CacheKey(template_key, model_type_id) in self._entries

    def invalidate(self, template_key: str, model_type_id: str | None = None) -> int:
        """Remove entries for ``template_key`` (all model types when None).

        A compilation of ``template_key`` that is still running is not
        interrupted. Its result reaches the callers already waiting on it but
        is not stored, and the next call compiles again.

        Returns:
            Number of entries removed
        """
        with self._lock:
            self._generations[template_key] = self._generations.get(template_key, 0) + 1
            if model_type_id is not None:
                keys = [CacheKey(template_key, model_type_id)]
            else:
                keys = [key for key in {*self._entries, *self._inflight} if key.template_key == template_key]
            count = sum(1 for key in keys if self._entries.pop(key, None) is not None)
            for key in keys:
                self._inflight.pop(key, None)
        if count:
            logger.debug("Invalidated %d cache entr%s for '%s'", count, "y" if count == 1 else "ies", template_key)
        return count

    def clear(self) -> None:
        """Remove every stored entry and reset statistics.

        Compilations still running when the cache is cleared are not stored.
        """
        with self._lock:
            self._epoch += 1
            self._entries.clear()
            self._inflight.clear()
        with self._stats_lock:
            self._hits = self._misses = self._compilations = self._failures = 0

    def info(self) -> CacheInfo:
        with self._stats_lock:
            return CacheInfo(
                hits=self._hits,
                misses=self._misses,
                compilations=self._compilations,
                failures=self._failures,
                size=len(self._entries),
            )

    def __len__(self) -> int:
        return len(self._entries)

    def _count(self, *, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def _stamp(self, template_key: str) -> tuple[int, int]:
        return self._epoch, self._generations.get(template_key, 0)

    def _release(self, key: CacheKey, future: Future[CompiledTemplate]) -> None:
        with self._lock:
            if self._inflight.get(key) is future:
                del self._inflight[key]

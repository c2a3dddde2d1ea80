from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal
from typing import Callable, Optional, Tuple

from django.conf import settings

from .services import PaymentLink, PaymentServiceClient, get_payment_client

logger = logging.getLogger(__name__)

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def _shared_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=int(getattr(settings, "UPI_PREFETCH_WORKERS", 4)),
                thread_name_prefix="upi-prefetch",
            )
        return _executor


PrefetchKey = Tuple[str, str, Optional[str], Optional[str]]


class UPILinkPrefetcher:
    """
    Warms a payment link while the user is still looking at the countdown.

    ``ensure()`` with the same (reference, amount, name, callback) returns the
    same in-flight future of a :class:`PaymentLink`; any change starts a new
    request. Nothing depends on this having run.
    """

    def __init__(self, client: PaymentServiceClient, executor: Optional[ThreadPoolExecutor] = None):
        self.client = client
        self.executor = executor or _shared_executor()
        self._lock = threading.Lock()
        self._key: Optional[PrefetchKey] = None
        self._future: Optional[Future] = None

    @staticmethod
    def make_key(reference_id, amount, name=None, callback_url=None) -> PrefetchKey:
        # Normalise 246 / 246.00 / "246" to one key
        return (str(reference_id), str(Decimal(str(amount)).normalize()), name or None, callback_url or None)

    def ensure(self, reference_id, amount, name=None, callback_url=None) -> "Future[PaymentLink]":
        key = self.make_key(reference_id, amount, name, callback_url)
        with self._lock:
            if self._future is not None and self._key == key:
                return self._future
            self._key = key
            self._future = self.executor.submit(self._fetch, reference_id, amount, name, callback_url)
            return self._future

    def _fetch(self, reference_id, amount, name, callback_url) -> PaymentLink:
        link = self.client.create_link(reference_id, amount, name=name, callback_url=callback_url)
        logger.debug("Prefetched payment link for %s", reference_id)
        return link

    @property
    def short_url(self) -> Optional[str]:
        """The warmed URL if the prefetch already finished successfully."""
        with self._lock:
            future = self._future
        if future is None or not future.done() or future.cancelled() or future.exception() is not None:
            return None
        return future.result().short_url or None

    def reset(self) -> None:
        with self._lock:
            self._key = None
            self._future = None

    def close(self) -> None:
        self.reset()
        self.client.close()


def _default_ttl() -> float:
    return float(getattr(settings, "CHECKOUT_COUNTDOWN_SECONDS", 5)) + float(
        getattr(settings, "PAYMENT_SERVICE_TIMEOUT", 20)
    )


class PrefetcherRegistry:
    """
    One prefetcher per (user, restaurant) checkout within this process.

    Entries live for ``ttl`` seconds after their last use and at most
    ``max_size`` are kept (least recently used go first). Evicted prefetchers
    close their HTTP session. A checkout served by another worker simply
    misses the warm link and requests one directly.
    """

    def __init__(
        self,
        client_factory=None,
        ttl: Optional[float] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client_factory = client_factory
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._items: "OrderedDict[str, Tuple[UPILinkPrefetcher, float]]" = OrderedDict()

    @property
    def ttl(self) -> float:
        return self._ttl if self._ttl is not None else _default_ttl()

    @property
    def max_size(self) -> int:
        if self._max_size is not None:
            return self._max_size
        return int(getattr(settings, "UPI_PREFETCH_MAX_ENTRIES", 256))

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _evict_locked(self, now: float) -> list:
        evicted = []
        for key, (prefetcher, last_used) in list(self._items.items()):
            if now - last_used >= self.ttl:
                evicted.append(self._items.pop(key)[0])
        while len(self._items) > self.max_size:
            evicted.append(self._items.popitem(last=False)[1][0])
        return evicted

    @staticmethod
    def _close(prefetchers) -> None:
        for prefetcher in prefetchers:
            prefetcher.close()
        if prefetchers:
            logger.debug("Evicted %d idle UPI prefetchers", len(prefetchers))

    def get(self, key) -> UPILinkPrefetcher:
        key = str(key)
        with self._lock:
            now = self._clock()
            entry = self._items.pop(key, None)
            if entry is not None and now - entry[1] < self.ttl:
                prefetcher = entry[0]
                expired = []
            else:
                expired = [entry[0]] if entry is not None else []
                factory = self._client_factory or get_payment_client
                prefetcher = UPILinkPrefetcher(factory())
            self._items[key] = (prefetcher, now)
            evicted = expired + self._evict_locked(now)
        self._close(evicted)
        return prefetcher

    def discard(self, key) -> None:
        with self._lock:
            entry = self._items.pop(str(key), None)
        if entry is not None:
            self._close([entry[0]])

    def purge(self) -> None:
        """Drop every entry idle for longer than the ttl."""
        with self._lock:
            evicted = self._evict_locked(self._clock())
        self._close(evicted)


def checkout_key(user_id, restaurant_id) -> str:
    return f"{user_id}:{restaurant_id}"


registry = PrefetcherRegistry()

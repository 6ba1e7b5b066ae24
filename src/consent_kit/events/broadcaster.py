"""
Consent-updated signal.

The consent platform announces that a user's choices changed without
saying what changed. Subscribers are plain callbacks that re-read
whatever they need.

Delivery is synchronous by default. After start(), publish() only queues a
trigger and a background thread calls the subscribers. Because the signal
has no payload, triggers published while one is already waiting collapse
into that one.
"""

import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..logging import events_logger

logger = events_logger()

ConsentListener = Callable[[], None]


@dataclass
class BroadcastStats:
    """Statistics for signal delivery."""

    published: int = 0
    coalesced: int = 0
    delivered: int = 0
    listener_errors: int = 0
    last_delivery_time: Optional[datetime] = None


class Subscription:
    """Handle returned by subscribe(); cancel() removes the listener."""

    def __init__(self, broadcaster: "ConsentUpdateBroadcaster", listener: ConsentListener):
        self._broadcaster = broadcaster
        self.listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._broadcaster.unsubscribe(self)
            self.active = False


class ConsentUpdateBroadcaster:
    """
    Observer for the consent-updated signal.

    Features:
    - Payload-free subscriptions with cancellable handles
    - A failing listener never stops delivery to the others
    - Optional background delivery thread with trigger coalescing
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._queue: queue.Queue[bool] = queue.Queue(maxsize=1)
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._stats = BroadcastStats()
        self._lock = threading.Lock()

    def subscribe(self, listener: ConsentListener) -> Subscription:
        """Register a listener for consent-updated signals."""
        subscription = Subscription(self, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.active = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def publish(self) -> None:
        """Announce that consent changed."""
        # Checked and queued under the lock stop() clears the flag with
        with self._lock:
            self._stats.published += 1
            running = self._running
            if running:
                try:
                    self._queue.put_nowait(True)
                except queue.Full:
                    self._stats.coalesced += 1

        if not running:
            self._deliver()

    def start(self) -> None:
        """Start the background delivery thread."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(
                target=self._delivery_loop,
                name="consent-updated",
                daemon=True,
            )
            self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the delivery thread after pending triggers are handled."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            thread, self._thread = self._thread, None

        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(
                    "Consent delivery thread did not stop in time",
                    timeout=timeout,
                )
                return

        self._drain()

    def get_stats(self) -> BroadcastStats:
        """Get current delivery statistics."""
        with self._lock:
            return BroadcastStats(
                published=self._stats.published,
                coalesced=self._stats.coalesced,
                delivered=self._stats.delivered,
                listener_errors=self._stats.listener_errors,
                last_delivery_time=self._stats.last_delivery_time,
            )

    def _delivery_loop(self) -> None:
        while self._running or not self._queue.empty():
            try:
                self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self._deliver()

    def _drain(self) -> None:
        # Deliver a trigger the loop left behind
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return
            self._deliver()

    def _deliver(self) -> None:
        with self._lock:
            listeners = [s.listener for s in self._subscriptions]

        errors = 0
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                errors += 1
                logger.error(
                    "Consent listener failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    exc_info=True,
                )

        with self._lock:
            self._stats.delivered += 1
            self._stats.listener_errors += errors
            self._stats.last_delivery_time = datetime.now()

"""Subscription manager - one live channel per subscription key."""

import functools
import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from cachelink.core.entities.subscription import (
    ChangeEvent,
    ChangeListener,
    SubscriptionHandle,
)
from cachelink.core.exceptions import AccessLayerClosedError, SubscriptionBackoffError
from cachelink.core.interfaces.clock import IClock, ITimer

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[ChangeListener], Any]


class SubscriptionManager:
    """Deduplicates and bounds push-change channels.

    Each key owns at most one live channel. A channel is reused while it
    is younger than the reuse window and replaced once the window has
    elapsed; the old channel is torn down best-effort first. Listeners
    registered on a key survive replacement. A periodic sweep tears down
    channels nobody has subscribed to for longer than the staleness
    threshold, so live connections stay bounded however callers behave.

    When a channel factory raises, the key enters a backoff period
    during which new attempts fail fast with SubscriptionBackoffError.

    The manager knows nothing about caching; callers decide what their
    listeners do.
    """

    def __init__(
        self,
        clock: IClock,
        reuse_window: timedelta = timedelta(seconds=120),
        sweep_interval: timedelta = timedelta(minutes=10),
        stale_threshold: timedelta = timedelta(minutes=60),
        error_backoff: timedelta = timedelta(seconds=10),
    ) -> None:
        """Initialize the manager.

        Args:
            clock: Time source and sweep timer.
            reuse_window: Maximum channel age at which it is reused.
            sweep_interval: Delay between idle sweeps.
            stale_threshold: Idle time after which a sweep removes a key.
            error_backoff: Time after a factory failure during which the
                key cannot be subscribed again. Zero disables backoff.
        """
        self._clock = clock
        self._reuse_window = reuse_window.total_seconds()
        self._sweep_interval = sweep_interval.total_seconds()
        self._stale_threshold = stale_threshold.total_seconds()
        self._error_backoff = error_backoff.total_seconds()

        self._handles: dict[str, SubscriptionHandle] = {}
        self._failed_at: dict[str, float] = {}
        self._sweep_timer: ITimer | None = None
        self._closed = False

    def subscribe(
        self,
        key: str,
        channel_factory: ChannelFactory,
        listener: ChangeListener | None = None,
    ) -> Any:
        """Return the live channel of ``key``, creating it if needed.

        Args:
            key: Subscription key.
            channel_factory: Called with the dispatch callable the new
                channel must deliver events to; returns the channel.
            listener: Optional listener to register on the key.

        Returns:
            The live channel for ``key``.

        Raises:
            SubscriptionBackoffError: If the key failed too recently.
            AccessLayerClosedError: If the manager has been closed.
        """
        if self._closed:
            raise AccessLayerClosedError("Subscription manager is closed")

        now = self._clock.now()
        existing = self._handles.get(key)

        if existing is not None and existing.age(now) < self._reuse_window:
            existing.last_touched = now
            if listener is not None:
                existing.add_listener(listener)
            logger.debug("Reusing existing subscription: %s", key)
            return existing.channel

        self._check_backoff(key, now)

        listeners: list[ChangeListener] = []
        if existing is not None:
            listeners = list(existing.listeners)
            del self._handles[key]
            self._teardown(existing)
            logger.debug("Replacing expired subscription: %s", key)

        handle = SubscriptionHandle(
            key=key,
            channel=None,
            created_at=now,
            last_touched=now,
            listeners=listeners,
        )
        if listener is not None:
            handle.add_listener(listener)

        try:
            handle.channel = channel_factory(functools.partial(self._dispatch, handle))
        except Exception as exc:
            if self._error_backoff > 0:
                self._failed_at[key] = now
            logger.warning("Failed to create subscription %s: %s", key, exc)
            raise

        self._failed_at.pop(key, None)
        self._handles[key] = handle
        self._ensure_sweep()
        logger.info("Created new subscription: %s", key)
        return handle.channel

    def remove_listener(self, key: str, listener: ChangeListener) -> bool:
        """Unregister ``listener`` from ``key``; the channel stays open.

        Returns:
            True if the listener was registered.
        """
        handle = self._handles.get(key)
        if handle is None:
            return False
        return handle.remove_listener(listener)

    def listener_count(self, key: str) -> int:
        """Number of listeners registered on ``key``."""
        handle = self._handles.get(key)
        return len(handle.listeners) if handle is not None else 0

    def get(self, key: str) -> SubscriptionHandle | None:
        """Return the handle of ``key``, if subscribed."""
        return self._handles.get(key)

    def unsubscribe(self, key: str) -> bool:
        """Tear down and forget the channel of ``key``.

        Returns:
            True if a channel existed.
        """
        handle = self._handles.pop(key, None)
        if handle is None:
            return False

        self._teardown(handle)
        logger.info("Removed subscription: %s", key)
        return True

    def unsubscribe_all(self) -> int:
        """Tear down every channel.

        Returns:
            Number of channels removed.
        """
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            self._teardown(handle)
        return len(handles)

    def sweep(self) -> int:
        """Tear down channels idle beyond the staleness threshold.

        Returns:
            Number of channels removed.
        """
        now = self._clock.now()
        stale = [
            key
            for key, handle in self._handles.items()
            if handle.idle_for(now) > self._stale_threshold
        ]

        for key in stale:
            handle = self._handles.pop(key)
            self._teardown(handle)
            logger.info("Cleaned up stale subscription: %s", key)

        return len(stale)

    def close(self) -> None:
        """Stop sweeping and tear down every channel."""
        self._closed = True
        if self._sweep_timer is not None:
            self._sweep_timer.cancel()
            self._sweep_timer = None

        count = self.unsubscribe_all()
        self._failed_at.clear()
        logger.debug("Closed subscription manager (%d channels)", count)

    def get_status(self) -> dict[str, int]:
        """Get subscription status.

        Returns:
            Dictionary with active subscriptions and keys in backoff.
        """
        now = self._clock.now()
        return {
            "active_subscriptions": len(self._handles),
            "backoff_keys": sum(
                1 for failed_at in self._failed_at.values()
                if now - failed_at < self._error_backoff
            ),
        }

    @property
    def keys(self) -> list[str]:
        """Keys with a live channel."""
        return list(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def _check_backoff(self, key: str, now: float) -> None:
        failed_at = self._failed_at.get(key)
        if failed_at is None:
            return

        elapsed = now - failed_at
        if elapsed < self._error_backoff:
            raise SubscriptionBackoffError(key, self._error_backoff - elapsed)
        del self._failed_at[key]

    def _dispatch(self, handle: SubscriptionHandle, event: ChangeEvent) -> None:
        # Events from a replaced or removed channel are dropped
        if self._handles.get(handle.key) is not handle:
            return

        for listener in list(handle.listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning(
                    "Listener on subscription %s failed: %s",
                    handle.key,
                    exc,
                    exc_info=True,
                )

    def _teardown(self, handle: SubscriptionHandle) -> None:
        try:
            handle.channel.unsubscribe()
        except Exception as exc:
            logger.warning("Error cleaning up subscription %s: %s", handle.key, exc)

    def _ensure_sweep(self) -> None:
        if self._sweep_timer is None and not self._closed:
            self._sweep_timer = self._clock.call_later(
                self._sweep_interval, self._on_sweep_timer
            )

    def _on_sweep_timer(self) -> None:
        self._sweep_timer = None
        self.sweep()
        if self._handles:
            self._ensure_sweep()

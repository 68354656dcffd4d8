"""Realtime change-notification primitive.

The dashboard does not implement a realtime transport. `RealtimeBroker` is
the contract the store subscribes through; `InMemoryRealtimeBroker` is an
in-process implementation used by the server (database writes made through
the update endpoint are published to it) and by tests.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable

from ..observability.logging import fields, get_logger

logger = get_logger(__name__)

ChangeCallback = Callable[[dict[str, Any]], None]
ALL_EVENTS = "*"


@dataclass(eq=False)
class RealtimeChannel:
    """Handle of one table subscription."""

    name: str
    table: str
    callback: ChangeCallback
    events: frozenset[str] = field(default_factory=lambda: frozenset({ALL_EVENTS}))
    active: bool = True

    def accepts(self, event_type: str) -> bool:
        return ALL_EVENTS in self.events or event_type in self.events


class RealtimeBroker(ABC):
    """Abstract publish/subscribe primitive keyed by table and event type."""

    @abstractmethod
    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        events: Iterable[str] = (ALL_EVENTS,),
    ) -> RealtimeChannel:
        """Opens a channel delivering change payloads for `table`.

        Args:
            table: Remote table name.
            callback: Called with `{eventType, new, old}` payloads.
            events: Event types to deliver; "*" delivers everything.

        Returns:
            The channel handle, to be passed to `unsubscribe`.
        """
        pass  # pragma: no cover

    @abstractmethod
    def unsubscribe(self, channel: RealtimeChannel) -> None:
        """Releases a channel. Releasing twice is a no-op."""
        pass  # pragma: no cover


class InMemoryRealtimeBroker(RealtimeBroker):
    """Thread-safe in-process broker."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._channels: dict[str, list[RealtimeChannel]] = {}

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        events: Iterable[str] = (ALL_EVENTS,),
    ) -> RealtimeChannel:
        channel = RealtimeChannel(
            name=f"{table}-changes",
            table=table,
            callback=callback,
            events=frozenset(e.upper() if e != ALL_EVENTS else e for e in events),
        )
        with self._lock:
            self._channels.setdefault(table, []).append(channel)
        logger.info("Realtime channel opened.", extra=fields(table=table))
        return channel

    def unsubscribe(self, channel: RealtimeChannel) -> None:
        with self._lock:
            channels = self._channels.get(channel.table, [])
            if channel in channels:
                channels.remove(channel)
                logger.info(
                    "Realtime channel closed.", extra=fields(table=channel.table)
                )
        channel.active = False

    def channels(self, table: str) -> list[RealtimeChannel]:
        """Returns the open channels of `table`."""
        with self._lock:
            return list(self._channels.get(table, []))

    def publish(self, table: str, payload: dict[str, Any]) -> int:
        """Delivers a change payload to every matching channel of `table`.

        Callbacks run on the publishing thread, outside the broker lock.

        Returns:
            The number of channels the payload was delivered to.
        """
        event_type = str(payload.get("eventType", "")).upper()
        targets = [c for c in self.channels(table) if c.accepts(event_type)]
        for channel in targets:
            channel.callback(payload)
        return len(targets)

"""Ownership of the realtime channel handles of one store."""

from typing import Optional

from ..clients.realtime import ChangeCallback, RealtimeBroker, RealtimeChannel
from ..models.enums import TrackedTable


class RealtimeSession:
    """Holds the documents and regulations channels of one store instance.

    Only `open` and `close` touch the handles, so two stores never share or
    duplicate each other's channels.
    """

    def __init__(self, broker: RealtimeBroker) -> None:
        self.broker = broker
        self.document_channel: Optional[RealtimeChannel] = None
        self.regulation_channel: Optional[RealtimeChannel] = None

    @property
    def active(self) -> bool:
        return self.document_channel is not None or self.regulation_channel is not None

    def open(
        self,
        on_documents: ChangeCallback,
        on_regulations: ChangeCallback,
    ) -> tuple[RealtimeChannel, RealtimeChannel]:
        self.document_channel = self.broker.subscribe(
            TrackedTable.DOCUMENTS.value, on_documents
        )
        self.regulation_channel = self.broker.subscribe(
            TrackedTable.REGULATIONS.value, on_regulations
        )
        return self.document_channel, self.regulation_channel

    def close(self, handles: Optional[tuple[RealtimeChannel, RealtimeChannel]] = None) -> bool:
        """Releases both channels.

        Args:
            handles: When given, only close if these are still the held
                channels; a stale teardown must not close a newer pair.

        Returns:
            True if channels were released.
        """
        if handles is not None and handles != (
            self.document_channel,
            self.regulation_channel,
        ):
            return False
        for channel in (self.document_channel, self.regulation_channel):
            if channel is not None:
                self.broker.unsubscribe(channel)
        self.document_channel = None
        self.regulation_channel = None
        return True

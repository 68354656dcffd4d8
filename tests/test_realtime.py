from unittest.mock import MagicMock

from rag_dashboard.clients.realtime import InMemoryRealtimeBroker
from rag_dashboard.store.session import RealtimeSession


class TestInMemoryRealtimeBroker:
    def test_publish_reaches_table_subscribers(self):
        broker = InMemoryRealtimeBroker()
        docs, regs = MagicMock(), MagicMock()
        broker.subscribe("documents", docs)
        broker.subscribe("regulations", regs)

        payload = {"eventType": "INSERT", "new": {"id": 1}}
        assert broker.publish("documents", payload) == 1
        docs.assert_called_once_with(payload)
        regs.assert_not_called()

    def test_event_filter(self):
        broker = InMemoryRealtimeBroker()
        callback = MagicMock()
        broker.subscribe("documents", callback, events=["delete"])
        assert broker.publish("documents", {"eventType": "INSERT"}) == 0
        assert broker.publish("documents", {"eventType": "DELETE"}) == 1

    def test_channel_name(self):
        channel = InMemoryRealtimeBroker().subscribe("regulations", MagicMock())
        assert channel.name == "regulations-changes"
        assert channel.active is True

    def test_unsubscribe_is_idempotent(self):
        broker = InMemoryRealtimeBroker()
        callback = MagicMock()
        channel = broker.subscribe("documents", callback)
        broker.unsubscribe(channel)
        broker.unsubscribe(channel)
        assert channel.active is False
        assert broker.channels("documents") == []
        assert broker.publish("documents", {"eventType": "INSERT"}) == 0
        callback.assert_not_called()


class TestRealtimeSession:
    def test_open_and_close(self):
        broker = InMemoryRealtimeBroker()
        session = RealtimeSession(broker)
        assert session.active is False

        handles = session.open(MagicMock(), MagicMock())
        assert session.active is True
        assert handles == (session.document_channel, session.regulation_channel)
        assert len(broker.channels("documents")) == 1

        assert session.close(handles) is True
        assert session.active is False
        assert broker.channels("documents") == []
        assert broker.channels("regulations") == []

    def test_stale_handles_do_not_close_newer_pair(self):
        broker = InMemoryRealtimeBroker()
        session = RealtimeSession(broker)
        old = session.open(MagicMock(), MagicMock())
        session.close(old)
        session.open(MagicMock(), MagicMock())

        assert session.close(old) is False
        assert session.active is True

    def test_sessions_are_independent(self):
        broker = InMemoryRealtimeBroker()
        a, b = RealtimeSession(broker), RealtimeSession(broker)
        handles = a.open(MagicMock(), MagicMock())
        b.open(MagicMock(), MagicMock())
        a.close(handles)
        assert b.active is True
        assert len(broker.channels("documents")) == 1

"""
Tests for the Event Bus
========================
"""

from fingerspell.core.events import EventBus, Events


class TestEventBus:
    """Test suite for publish/subscribe dispatch."""

    def test_emit_passes_kwargs(self):
        bus = EventBus()
        received = []
        bus.subscribe(Events.LETTER_STABLE, lambda **kw: received.append(kw))

        bus.emit(Events.LETTER_STABLE, letter="A", score=0.1)

        assert received == [{"letter": "A", "score": 0.1}]

    def test_priority_order(self):
        bus = EventBus()
        order = []
        bus.subscribe("e", lambda: order.append("low"), priority=0)
        bus.subscribe("e", lambda: order.append("high"), priority=10)

        bus.emit("e")

        assert order == ["high", "low"]

    def test_unsubscribe(self):
        bus = EventBus()
        calls = []

        def handler(**kwargs):
            calls.append(kwargs)

        bus.subscribe("e", handler)
        bus.unsubscribe("e", handler)
        bus.emit("e")

        assert calls == []
        assert bus.listener_count == 0

    def test_failing_listener_isolated(self):
        """Test one failing listener does not stop the others."""
        bus = EventBus()
        calls = []

        def broken():
            raise RuntimeError("boom")

        bus.subscribe("e", broken, priority=1)
        bus.subscribe("e", lambda: calls.append(1))

        bus.emit("e")

        assert calls == [1]

    def test_disabled(self):
        bus = EventBus()
        calls = []
        bus.subscribe("e", lambda: calls.append(1))
        bus.set_enabled(False)

        bus.emit("e")

        assert calls == []

    def test_clear(self):
        bus = EventBus()
        bus.subscribe("a", lambda: None)
        bus.subscribe("b", lambda: None)

        bus.clear("a")
        assert bus.listener_count == 1

        bus.clear()
        assert bus.listener_count == 0

    def test_history_bounded(self):
        bus = EventBus(max_history=3)
        for i in range(5):
            bus.emit("e%d" % i, value=i)

        history = bus.get_history(10)

        assert [h["event"] for h in history] == ["e2", "e3", "e4"]
        assert history[-1]["data_keys"] == ["value"]

    def test_instances_independent(self):
        first, second = EventBus(), EventBus()
        first.subscribe("e", lambda: None)

        assert second.listener_count == 0

    def test_emit_returns_delivered_count(self):
        bus = EventBus()
        bus.subscribe("e", lambda: None)
        bus.subscribe("e", lambda: 1 / 0)

        assert bus.emit("e") == 1
        assert bus.emit("nobody") == 0

    def test_unsubscribe_unknown(self):
        bus = EventBus()

        assert not bus.unsubscribe("e", print)

    def test_equal_priority_keeps_order(self):
        bus = EventBus()
        order = []
        for name in ("first", "second", "third"):
            bus.subscribe("e", lambda name=name: order.append(name))

        bus.emit("e")

        assert order == ["first", "second", "third"]

import pytest

from showast.analysis import EventEmitter


class TestEventEmitter:
    def test_delivers_in_registration_order(self) -> None:
        emitter: EventEmitter[int] = EventEmitter("test")
        calls: list[tuple[str, int]] = []
        emitter.subscribe(lambda value: calls.append(("first", value)))
        emitter.subscribe(lambda value: calls.append(("second", value)))

        emitter.fire(7)

        assert calls == [("first", 7), ("second", 7)]

    def test_no_replay_for_late_subscribers(self) -> None:
        emitter: EventEmitter[str] = EventEmitter("test")
        emitter.fire("early")
        received: list[str] = []

        emitter.subscribe(received.append)

        assert received == []

    def test_dispose_unsubscribes_once(self) -> None:
        emitter: EventEmitter[int] = EventEmitter("test")
        received: list[int] = []
        subscription = emitter.subscribe(received.append)

        subscription.dispose()
        subscription.dispose()
        emitter.fire(1)

        assert received == []
        assert not subscription.active
        assert emitter.listener_count() == 0

    def test_failing_listener_does_not_stop_delivery(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        emitter: EventEmitter[int] = EventEmitter("selection-changed")
        received: list[int] = []

        def broken(_value: int) -> None:
            raise RuntimeError("listener bug")

        emitter.subscribe(broken)
        emitter.subscribe(received.append)

        with caplog.at_level("WARNING"):
            emitter.fire(3)

        assert received == [3]
        assert "selection-changed listener failed" in caplog.text

    def test_listener_may_unsubscribe_while_firing(self) -> None:
        emitter: EventEmitter[int] = EventEmitter("test")
        received: list[int] = []
        subscription = None

        def once(value: int) -> None:
            received.append(value)
            assert subscription is not None
            subscription.dispose()

        subscription = emitter.subscribe(once)
        emitter.fire(1)
        emitter.fire(2)

        assert received == [1]

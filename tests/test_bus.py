from recordcache.cache.bus import InvalidationBus, InvalidationEvent


class TestInvalidationBus:

    def test_exact_and_wildcard_subscribers_both_fire(self):
        bus = InvalidationBus()
        exact, wildcard, other = [], [], []
        bus.subscribe("api:getPackList", exact.append)
        bus.subscribe("api", wildcard.append)
        bus.subscribe("api:getInventory", other.append)

        bus.emit('api:getPackList:"SHOW-1"', "api", "getPackList", '"SHOW-1"')

        expected = InvalidationEvent(
            key='api:getPackList:"SHOW-1"',
            namespace="api",
            operation_name="getPackList",
            args_string='"SHOW-1"',
        )
        assert exact == [expected]
        assert wildcard == [expected]
        assert other == []

    def test_unsubscribe_stops_delivery(self):
        bus = InvalidationBus()
        received = []
        unsubscribe = bus.subscribe("api", received.append)

        unsubscribe()
        bus.emit("api:op:", "api", "op", "")

        assert received == []
        assert bus.subscriber_count("api") == 0
        assert bus.unsubscribe("api", received.append) is False

    def test_failing_subscriber_does_not_block_others(self):
        bus = InvalidationBus()
        received = []

        def broken(event):
            raise RuntimeError("subscriber bug")

        bus.subscribe("api", broken)
        bus.subscribe("api", received.append)

        bus.emit("api:op:1", "api", "op", "1")

        assert len(received) == 1

    def test_no_replay_for_late_subscribers(self):
        bus = InvalidationBus()
        bus.emit("api:op:1", "api", "op", "1")
        received = []
        bus.subscribe("api", received.append)
        assert received == []

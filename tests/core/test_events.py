from app.core.events import EventBus, XP_UPDATED


def test_publish_reaches_every_subscriber():
    bus = EventBus()
    received = []

    bus.subscribe(XP_UPDATED, lambda **kw: received.append(("a", kw["xp_total"])))
    bus.subscribe(XP_UPDATED, lambda **kw: received.append(("b", kw["xp_total"])))

    assert bus.publish(XP_UPDATED, user_id=1, xp_total=120) == 2
    assert received == [("a", 120), ("b", 120)]


def test_subscribe_twice_delivers_once():
    bus = EventBus()
    calls = []

    def listener(**kw):
        calls.append(kw)

    bus.subscribe(XP_UPDATED, listener)
    bus.subscribe(XP_UPDATED, listener)
    bus.publish(XP_UPDATED, user_id=1)

    assert len(calls) == 1


def test_unsubscribe_and_clear():
    bus = EventBus()
    calls = []

    def listener(**kw):
        calls.append(kw)

    bus.subscribe(XP_UPDATED, listener)
    bus.unsubscribe(XP_UPDATED, listener)
    assert bus.publish(XP_UPDATED, user_id=1) == 0

    bus.subscribe(XP_UPDATED, listener)
    bus.clear()
    assert bus.publish(XP_UPDATED, user_id=1) == 0
    assert calls == []

    # Unknown listener is a no-op
    bus.unsubscribe("nothing", listener)


def test_failing_subscriber_does_not_stop_others():
    bus = EventBus()
    calls = []

    def broken(**kw):
        raise RuntimeError("boom")

    bus.subscribe(XP_UPDATED, broken)
    bus.subscribe(XP_UPDATED, lambda **kw: calls.append(kw))

    assert bus.publish(XP_UPDATED, user_id=7) == 1
    assert calls == [{"user_id": 7}]

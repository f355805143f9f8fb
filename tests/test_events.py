"""
Tests for the EventBus.
"""
from abcd_wizard.managers import EntityEvent, EventBus, EventListener, EventType
from abcd_wizard.managers.events import EntityKind


class Recorder(EventListener):

    def __init__(self, types):
        self.types = types
        self.events = []

    @property
    def subscribed_events(self):
        return self.types

    def handle(self, event):
        self.events.append(event)


class Broken(EventListener):

    @property
    def subscribed_events(self):
        return [EventType.ENTITY_CREATED]

    def handle(self, event):
        raise RuntimeError("listener exploded")


def _created():
    return EntityEvent(type=EventType.ENTITY_CREATED, kind=EntityKind.OBJECTIVE, entity_id="o1")


def test_publish_reaches_subscribers_only():
    bus = EventBus()
    created = Recorder([EventType.ENTITY_CREATED])
    deleted = Recorder([EventType.ENTITY_DELETED])
    bus.subscribe(created)
    bus.subscribe(deleted)

    bus.publish(_created())

    assert len(created.events) == 1
    assert deleted.events == []


def test_failing_listener_does_not_stop_others(capsys):
    bus = EventBus()
    recorder = Recorder([EventType.ENTITY_CREATED])
    bus.subscribe(Broken())
    bus.subscribe(recorder)

    bus.publish(_created())

    assert len(recorder.events) == 1
    assert "Broken failed: listener exploded" in capsys.readouterr().err


def test_unsubscribe_and_clear():
    bus = EventBus()
    recorder = Recorder([EventType.ENTITY_CREATED, EventType.GAP_UPDATED])
    bus.subscribe(recorder)
    bus.unsubscribe(recorder)
    bus.publish(_created())
    assert recorder.events == []

    bus.subscribe(recorder)
    bus.clear()
    bus.publish(_created())
    assert recorder.events == []


def test_buses_are_independent():
    first, second = EventBus(), EventBus()
    recorder = Recorder([EventType.ENTITY_CREATED])
    first.subscribe(recorder)

    second.publish(_created())

    assert recorder.events == []

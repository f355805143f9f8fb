"""
Event system for the objectives wizard.

The store publishes an event for every mutation; listeners such as the
autosave layer react to them without the store knowing about the network.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
import threading
from typing import Any, Dict, List, Optional

import click

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events in the wizard."""
    ENTITY_CREATED = "entity.created"
    ENTITY_UPDATED = "entity.updated"
    ENTITY_DELETED = "entity.deleted"
    ENTITY_RECONCILED = "entity.reconciled"
    ENTITY_ROLLED_BACK = "entity.rolled_back"
    GAP_UPDATED = "gap.updated"


class EntityKind(str, Enum):
    """Entity collections held by the store."""
    TRIAGE_ITEM = "triage_item"
    SUB_TASK = "sub_task"
    OBJECTIVE = "objective"
    GAP = "gap"


@dataclass
class Event:
    """Base event class."""
    type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EntityEvent(Event):
    """Event for entity-related actions.

    ``data`` carries the changed fields for updates, and ``previous_id``
    the temporary id for reconciliations.
    """
    kind: EntityKind = EntityKind.OBJECTIVE
    entity_id: str = ""
    parent_id: Optional[str] = None
    previous_id: Optional[str] = None


class EventListener(ABC):
    """Base class for event listeners."""

    @abstractmethod
    def handle(self, event: Event) -> None:
        """Handle an event.

        Args:
            event: The event to handle.
        """
        pass

    @property
    @abstractmethod
    def subscribed_events(self) -> List[EventType]:
        """Return list of event types this listener subscribes to."""
        pass


class EventBus:
    """
    Event bus for publishing and subscribing to events.

    One bus per wizard session, so that concurrent sessions (and tests) never
    share listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._lock = threading.Lock()

    def subscribe(self, listener: EventListener) -> None:
        """Subscribe a listener to events.

        Args:
            listener: The listener to subscribe.
        """
        with self._lock:
            for event_type in listener.subscribed_events:
                self._listeners.setdefault(event_type, []).append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Unsubscribe a listener from all events.

        Args:
            listener: The listener to unsubscribe.
        """
        with self._lock:
            for listeners in self._listeners.values():
                if listener in listeners:
                    listeners.remove(listener)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribed listeners.

        Args:
            event: The event to publish.
        """
        with self._lock:
            listeners = list(self._listeners.get(event.type, []))
        for listener in listeners:
            try:
                listener.handle(event)
            except Exception as e:
                # Report but don't stop other listeners
                logger.exception("Listener %s failed on %s", listener.__class__.__name__, event.type.value)
                click.echo(f"  ⚠ Listener {listener.__class__.__name__} failed: {e}", err=True)

    def clear(self) -> None:
        """Clear all listeners (useful for testing)."""
        with self._lock:
            self._listeners.clear()

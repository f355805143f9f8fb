"""
Autosave and optimistic reconciliation.

Keeps the server in step with a WizardStore without ever blocking the user:

- Edits are merged into a per-entity pending field map and written after a
  quiet period (one debounce timer per entity, the gap has a single timer).
- Sub-tasks and objectives are created optimistically under a temporary id.
  Edits made while the create is in flight are kept locally and written in
  one request, keyed by the server id, once the create succeeds. A failed
  create removes the entity again.
- Deletes cancel pending work. Deleting an entity whose create is still in
  flight never reaches the server as a DELETE on a temporary id.
- close() flushes everything still pending.

Every network failure is logged and swallowed.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from abcd_wizard.constants import (
    get_gap_debounce_seconds,
    get_objective_debounce_seconds,
    get_subtask_debounce_seconds,
)
from abcd_wizard.exceptions import ApiError
from abcd_wizard.managers.events import Event, EntityEvent, EntityKind, EventListener, EventType
from abcd_wizard.managers.scheduler import Cancellable, Scheduler, ThreadedScheduler
from abcd_wizard.mapping import objective_fields_to_db, subtask_fields_to_db
from abcd_wizard.models.entities import GapClassification
from abcd_wizard.utils import is_temp_id

logger = logging.getLogger(__name__)

PendingKey = Tuple[EntityKind, str]

GAP_KEY: PendingKey = (EntityKind.GAP, "")

SAVED_KINDS = (EntityKind.SUB_TASK, EntityKind.OBJECTIVE, EntityKind.GAP)


class AutosaveManager:
    """
    Debounced, optimistic persistence for one wizard session.

    Handles:
    - Debounced PATCH / PUT of merged field edits per entity
    - Optimistic creates with temp-id reconciliation or rollback
    - Fire-and-forget deletes
    - Flushing pending writes on close()

    All state below is guarded by one lock; network calls are always made
    with the lock released.
    """

    def __init__(
        self,
        store,
        client,
        scheduler: Optional[Scheduler] = None,
        subtask_debounce: Optional[float] = None,
        objective_debounce: Optional[float] = None,
        gap_debounce: Optional[float] = None,
    ) -> None:
        """
        Initialize AutosaveManager.

        Args:
            store: WizardStore the session edits.
            client: WizardApiClient used for writes.
            scheduler: Timer and worker seam. Defaults to ThreadedScheduler.
            subtask_debounce: Quiet period for sub-task edits, in seconds.
            objective_debounce: Quiet period for objective edits.
            gap_debounce: Quiet period for gap edits.
        """
        self.store = store
        self.client = client
        self.scheduler = scheduler or ThreadedScheduler()
        self.delays = {
            EntityKind.SUB_TASK: subtask_debounce if subtask_debounce is not None else get_subtask_debounce_seconds(),
            EntityKind.OBJECTIVE: objective_debounce if objective_debounce is not None else get_objective_debounce_seconds(),
            EntityKind.GAP: gap_debounce if gap_debounce is not None else get_gap_debounce_seconds(),
        }

        self._lock = threading.Lock()
        self._pending: Dict[PendingKey, Dict[str, Any]] = {}
        self._timers: Dict[PendingKey, Cancellable] = {}
        self._in_flight: Set[str] = set()
        self._abandoned: Set[str] = set()
        self._reconciled: Dict[str, str] = {}
        self._parents: Dict[str, str] = {}
        self._closing = False
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        """Entities with unsaved field edits."""
        with self._lock:
            return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        """Creates awaiting a server response."""
        with self._lock:
            return len(self._in_flight)

    def pending_fields(self, kind: EntityKind, entity_id: str = "") -> Dict[str, Any]:
        """Copy of the unsaved fields for one entity."""
        with self._lock:
            return dict(self._pending.get((kind, entity_id), {}))

    # ------------------------------------------------------------------
    # Store notifications
    # ------------------------------------------------------------------

    def on_created(self, kind: EntityKind, temp_id: str, parent_id: Optional[str] = None,
                   initial: Optional[Dict[str, Any]] = None) -> None:
        """Start the create request for an optimistically inserted entity.

        Args:
            kind: SUB_TASK or OBJECTIVE.
            temp_id: Temporary id the store assigned.
            parent_id: Parent triage item (sub-tasks only).
            initial: Field values set at creation that the create request
                does not carry; written once the id is confirmed.
        """
        if kind == EntityKind.SUB_TASK:
            sub = self.store.get_sub_task(temp_id)
            if sub is None:
                return
            parent_id = sub.parent_item_id
            payload = subtask_fields_to_db({"text": sub.text, "is_new": sub.is_new, "sort_order": sub.sort_order})
            request = lambda: self.client.create_sub_task(self.store.course_id, parent_id, payload)
        elif kind == EntityKind.OBJECTIVE:
            request = lambda: self.client.create_objective(self.store.course_id)
        else:
            return

        with self._lock:
            if self._closed:
                logger.warning("Autosave closed; %s %s will not be created on the server", kind.value, temp_id)
                return
            self._in_flight.add(temp_id)
            if parent_id:
                self._parents[temp_id] = parent_id
            if initial:
                self._pending[(kind, temp_id)] = dict(initial)

        logger.debug("Creating %s %s", kind.value, temp_id)
        self._dispatch(lambda: self._run_create(kind, temp_id, request))

    def on_updated(self, kind: EntityKind, entity_id: str, fields: Dict[str, Any],
                   parent_id: Optional[str] = None) -> None:
        """Merge edited fields and (re)start the entity's debounce timer.

        Edits to an entity whose create is in flight are only accumulated;
        they are written when the create is confirmed. An edit published
        under a temp id that has meanwhile been confirmed is saved under the
        server id.
        """
        with self._lock:
            if self._closed:
                logger.warning("Autosave closed; edit to %s %s not saved", kind.value, entity_id)
                return
            entity_id = self._reconciled.get(entity_id, entity_id)
            key: PendingKey = (kind, entity_id)
            self._pending.setdefault(key, {}).update(fields)
            if parent_id:
                self._parents[entity_id] = parent_id
            if entity_id in self._in_flight:
                return
            if kind != EntityKind.GAP and is_temp_id(entity_id):
                # Create already failed; nothing to save against.
                self._pending.pop(key, None)
                logger.warning("Edit to %s %s dropped: its create was rejected", kind.value, entity_id)
                return
            if self._closing:
                return
            self._restart_timer(key)

    def on_gap_changed(self, gap: GapClassification) -> None:
        """Schedule a gap save with the latest classification."""
        self.on_updated(*GAP_KEY, gap.model_dump())

    def on_deleted(self, kind: EntityKind, entity_id: str, parent_id: Optional[str] = None) -> None:
        """Drop pending work for an entity and delete it server-side.

        An entity still being created is deleted locally only; if its create
        later succeeds, the server copy is deleted then.
        """
        key: PendingKey = (kind, entity_id)
        with self._lock:
            timer = self._timers.pop(key, None)
            self._pending.pop(key, None)
            parent_id = parent_id or self._parents.get(entity_id)
            if entity_id in self._in_flight:
                self._abandoned.add(entity_id)
                send = False
            else:
                self._parents.pop(entity_id, None)
                send = not is_temp_id(entity_id) and not self._closed
        if timer is not None:
            timer.cancel()
        if send:
            self._dispatch(lambda: self._send_delete(kind, entity_id, parent_id))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def flush(self) -> int:
        """Write every pending edit now, skipping the debounce wait.

        Returns:
            Number of write requests attempted.
        """
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
            ready = {
                key: fields for key, fields in self._pending.items()
                if key[1] not in self._in_flight
            }
            for key in ready:
                del self._pending[key]
        for timer in timers:
            timer.cancel()
        for (kind, entity_id), fields in ready.items():
            self._send_update(kind, entity_id, fields)
        return len(ready)

    def close(self) -> None:
        """Stop autosave, wait for in-flight creates, then flush.

        Safe to call more than once. Writes that fail during the flush are
        logged and dropped.
        """
        with self._lock:
            if self._closing:
                return
            self._closing = True
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

        # Lets in-flight creates settle; their queued edits stay pending.
        self.scheduler.shutdown(wait=True)

        sent = self.flush()
        with self._lock:
            self._closed = True
            dropped = len(self._pending)
            self._pending.clear()
        if dropped:
            logger.warning("Dropped %d unsaved edit(s) for entities never confirmed by the server", dropped)
        logger.debug("Autosave closed after flushing %d write(s)", sent)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(self, job: Callable[[], None]) -> None:
        """Run a job off the caller's path, or inline once closing."""
        with self._lock:
            if not self._closing:
                self.scheduler.submit(job)
                return
        job()

    def _restart_timer(self, key: PendingKey) -> None:
        # Caller holds the lock.
        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        self._timers[key] = self.scheduler.call_later(self.delays[key[0]], lambda: self._on_timer(key))

    def _on_timer(self, key: PendingKey) -> None:
        with self._lock:
            self._timers.pop(key, None)
            if self._closing or key not in self._pending:
                return
            self.scheduler.submit(lambda: self._flush_key(key))

    def _flush_key(self, key: PendingKey) -> None:
        with self._lock:
            fields = self._pending.pop(key, None)
        if fields:
            self._send_update(key[0], key[1], fields)

    def _run_create(self, kind: EntityKind, temp_id: str, request: Callable[[], str]) -> None:
        try:
            server_id = request()
        except ApiError as e:
            logger.warning("Create %s %s failed, rolling back: %s", kind.value, temp_id, e)
            self._rollback(kind, temp_id)
            return
        self._reconcile(kind, temp_id, server_id)

    def _reconcile(self, kind: EntityKind, temp_id: str, server_id: str) -> None:
        # Swap first so later edits arrive under the server id.
        swapped = self.store.replace_id(kind, temp_id, server_id)

        with self._lock:
            self._in_flight.discard(temp_id)
            abandoned = temp_id in self._abandoned or not swapped
            self._abandoned.discard(temp_id)
            parent_id = self._parents.pop(temp_id, None)
            queued = self._pending.pop((kind, temp_id), None)
            if not abandoned:
                self._reconciled[temp_id] = server_id
            if not abandoned and parent_id:
                self._parents[server_id] = parent_id
            if not abandoned and queued and self._closing:
                # close() flushes it
                self._pending.setdefault((kind, server_id), {}).update(queued)
                queued = None

        if abandoned:
            logger.info("%s %s was deleted before its create finished; removing %s", kind.value, temp_id, server_id)
            self._send_delete(kind, server_id, parent_id)
            return

        logger.debug("Confirmed %s %s as %s", kind.value, temp_id, server_id)
        if queued:
            self._send_update(kind, server_id, queued)

    def _rollback(self, kind: EntityKind, temp_id: str) -> None:
        self.store.rollback(kind, temp_id)
        with self._lock:
            self._in_flight.discard(temp_id)
            self._abandoned.discard(temp_id)
            self._parents.pop(temp_id, None)
            self._pending.pop((kind, temp_id), None)
            timer = self._timers.pop((kind, temp_id), None)
        if timer is not None:
            timer.cancel()

    def _send_update(self, kind: EntityKind, entity_id: str, fields: Dict[str, Any]) -> None:
        try:
            if kind == EntityKind.GAP:
                self.client.update_gap(self.store.course_id, GapClassification(**fields))
            elif kind == EntityKind.SUB_TASK:
                parent_id = self._parent_of(entity_id)
                self.client.update_sub_task(self.store.course_id, parent_id, entity_id, subtask_fields_to_db(fields))
            elif kind == EntityKind.OBJECTIVE:
                self.client.update_objective(entity_id, objective_fields_to_db(fields))
        except ApiError as e:
            logger.warning("Saving %s %s failed: %s", kind.value, entity_id or "", e)

    def _send_delete(self, kind: EntityKind, entity_id: str, parent_id: Optional[str]) -> None:
        try:
            if kind == EntityKind.SUB_TASK:
                self.client.delete_sub_task(self.store.course_id, parent_id or "", entity_id)
            elif kind == EntityKind.OBJECTIVE:
                self.client.delete_objective(entity_id)
        except ApiError as e:
            logger.warning("Deleting %s %s failed: %s", kind.value, entity_id, e)

    def _parent_of(self, sub_task_id: str) -> str:
        with self._lock:
            parent_id = self._parents.get(sub_task_id)
        if parent_id:
            return parent_id
        sub = self.store.get_sub_task(sub_task_id)
        return sub.parent_item_id if sub else ""


class AutosaveListener(EventListener):
    """
    Feeds store events into an AutosaveManager.

    Triage item events are ignored: triage edits are local to the session.
    """

    def __init__(self, autosave: AutosaveManager) -> None:
        """
        Initialize AutosaveListener.

        Args:
            autosave: Manager that persists the changes.
        """
        self.autosave = autosave

    @property
    def subscribed_events(self) -> List[EventType]:
        """Return list of events this listener handles."""
        return [
            EventType.ENTITY_CREATED,
            EventType.ENTITY_UPDATED,
            EventType.ENTITY_DELETED,
            EventType.GAP_UPDATED,
        ]

    def handle(self, event: Event) -> None:
        """Route a store event to the matching autosave operation.

        Args:
            event: The store event.
        """
        if not isinstance(event, EntityEvent) or event.kind not in SAVED_KINDS:
            return

        if event.type == EventType.GAP_UPDATED:
            self.autosave.on_gap_changed(GapClassification(**event.data))
        elif event.type == EventType.ENTITY_CREATED:
            self.autosave.on_created(event.kind, event.entity_id, event.parent_id, initial=event.data)
        elif event.type == EventType.ENTITY_UPDATED:
            self.autosave.on_updated(event.kind, event.entity_id, event.data, event.parent_id)
        elif event.type == EventType.ENTITY_DELETED:
            self.autosave.on_deleted(event.kind, event.entity_id, event.parent_id)

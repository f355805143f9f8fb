"""
WizardStore - the single writer of wizard session state.

Holds the entity collections for one course and exposes typed operations for
every mutation. Each mutation publishes an EntityEvent on the session's
EventBus after the lock is released, so listeners may call back into the
store from any thread.
"""

import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from abcd_wizard.constants import DEFAULT_AUDIENCE, TEMP_SUBTASK_PREFIX, TEMP_TRIAGE_PREFIX
from abcd_wizard.exceptions import ValidationError
from abcd_wizard.managers.events import EntityEvent, EntityKind, EventBus, EventType
from abcd_wizard.models.base import SubTaskStatus, TriageColumn, TriageSource
from abcd_wizard.models.context import NASection, NASummary
from abcd_wizard.models.entities import (
    GapClassification,
    SubTask,
    TriageItem,
    WizardObjective,
)
from abcd_wizard.models.files import WizardSnapshot
from abcd_wizard.utils import new_temp_id


def _apply_fields(entity, fields: Dict[str, Any]):
    """Validated copy of an entity with some fields replaced.

    Raises:
        ValidationError: On unknown fields, an id change or invalid values.
    """
    model_cls = type(entity)
    unknown = sorted(k for k in fields if k not in model_cls.model_fields or k == "id")
    if unknown:
        raise ValidationError(f"Cannot update field(s) on {model_cls.__name__}: {', '.join(unknown)}")
    try:
        return model_cls.model_validate({**entity.model_dump(), **fields})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model_cls.__name__} field value: {e}")


class WizardStore:
    """
    In-memory state for one wizard session.

    Handles:
    - Gap classification updates
    - Local triage item edits (add, move between columns, rename, remove)
    - Sub-task and objective create / update / delete
    - Temp-id reconciliation and rollback for optimistic creates
    - The selected objective, which follows id swaps
    - Snapshots for local persistence

    Operations on unknown ids are no-ops returning None or False.
    """

    def __init__(self, course_id: str, event_bus: Optional[EventBus] = None) -> None:
        """
        Initialize WizardStore.

        Args:
            course_id: Course the session edits.
            event_bus: Bus mutations are published on. A private one is
                created when omitted.
        """
        self.course_id = course_id
        self.event_bus = event_bus or EventBus()
        self.course_name = ""
        self.na_summary: Optional[NASummary] = None
        self.na_sections: List[NASection] = []
        self.audiences: List[str] = []

        self._lock = threading.RLock()
        self._gap = GapClassification()
        self._triage_items: List[TriageItem] = []
        self._sub_tasks: List[SubTask] = []
        self._objectives: List[WizardObjective] = []
        self._selected_objective_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Loading and reading
    # ------------------------------------------------------------------

    @classmethod
    def from_snapshot(cls, snapshot: WizardSnapshot, event_bus: Optional[EventBus] = None) -> "WizardStore":
        """Build a store holding a snapshot's state. Publishes nothing."""
        store = cls(snapshot.course_id, event_bus=event_bus)
        store.load(snapshot)
        return store

    def load(self, snapshot: WizardSnapshot) -> None:
        """Replace all state with a snapshot's contents."""
        with self._lock:
            self.course_name = snapshot.course_name
            self.na_summary = snapshot.na_summary
            self.na_sections = list(snapshot.na_sections)
            self.audiences = list(snapshot.audiences)
            self._gap = snapshot.gap.model_copy()
            self._triage_items = list(snapshot.triage_items)
            self._sub_tasks = list(snapshot.sub_tasks)
            self._objectives = list(snapshot.objectives)
            self._selected_objective_id = self._objectives[0].id if self._objectives else None

    def snapshot(self) -> WizardSnapshot:
        """Current state as a WizardSnapshot."""
        with self._lock:
            return WizardSnapshot(
                course_id=self.course_id,
                course_name=self.course_name,
                objectives=list(self._objectives),
                triage_items=list(self._triage_items),
                sub_tasks=list(self._sub_tasks),
                gap=self._gap.model_copy(),
                na_summary=self.na_summary,
                na_sections=list(self.na_sections),
                audiences=list(self.audiences),
            )

    @property
    def gap(self) -> GapClassification:
        with self._lock:
            return self._gap

    @property
    def triage_items(self) -> List[TriageItem]:
        with self._lock:
            return list(self._triage_items)

    @property
    def sub_tasks(self) -> List[SubTask]:
        with self._lock:
            return list(self._sub_tasks)

    @property
    def objectives(self) -> List[WizardObjective]:
        with self._lock:
            return list(self._objectives)

    @property
    def selected_objective_id(self) -> Optional[str]:
        with self._lock:
            return self._selected_objective_id

    @property
    def default_audience(self) -> str:
        with self._lock:
            return self.audiences[0] if self.audiences else DEFAULT_AUDIENCE

    def get_triage_item(self, item_id: str) -> Optional[TriageItem]:
        with self._lock:
            return next((t for t in self._triage_items if t.id == item_id), None)

    def get_sub_task(self, sub_task_id: str) -> Optional[SubTask]:
        with self._lock:
            return next((s for s in self._sub_tasks if s.id == sub_task_id), None)

    def get_objective(self, objective_id: str) -> Optional[WizardObjective]:
        with self._lock:
            return next((o for o in self._objectives if o.id == objective_id), None)

    def sub_tasks_for(self, parent_item_id: str) -> List[SubTask]:
        """Sub-tasks of one triage item, in insertion order."""
        with self._lock:
            return [s for s in self._sub_tasks if s.parent_item_id == parent_item_id]

    def select_objective(self, objective_id: Optional[str]) -> Optional[str]:
        """Select an objective by id; unknown ids clear the selection."""
        with self._lock:
            if objective_id is not None and self.get_objective(objective_id) is None:
                objective_id = None
            self._selected_objective_id = objective_id
            return objective_id

    # ------------------------------------------------------------------
    # Gap
    # ------------------------------------------------------------------

    def set_gap(self, knowledge: Optional[bool] = None, skill: Optional[bool] = None) -> GapClassification:
        """Update one or both gap flags.

        Args:
            knowledge: New knowledge flag, or None to keep it.
            skill: New skill flag, or None to keep it.

        Returns:
            The updated gap classification.
        """
        with self._lock:
            updates = {}
            if knowledge is not None:
                updates["knowledge"] = bool(knowledge)
            if skill is not None:
                updates["skill"] = bool(skill)
            self._gap = self._gap.model_copy(update=updates)
            gap = self._gap

        self._publish(EventType.GAP_UPDATED, EntityKind.GAP, "", data=gap.model_dump())
        return gap

    # ------------------------------------------------------------------
    # Triage items (local only)
    # ------------------------------------------------------------------

    def add_triage_item(self, text: str, column: TriageColumn = TriageColumn.SHOULD) -> TriageItem:
        """Add a custom triage item under a temporary id."""
        with self._lock:
            item = TriageItem(
                id=new_temp_id(TEMP_TRIAGE_PREFIX),
                course_id=self.course_id,
                text=text,
                column=column,
                source=TriageSource.CUSTOM,
                sort_order=len(self._triage_items),
            )
            self._triage_items.append(item)

        self._publish(EventType.ENTITY_CREATED, EntityKind.TRIAGE_ITEM, item.id)
        return item

    def move_triage_item(self, item_id: str, column: TriageColumn) -> Optional[TriageItem]:
        """Move a triage item to another priority column."""
        return self._update(EntityKind.TRIAGE_ITEM, item_id, {"column": column})

    def update_triage_item(self, item_id: str, text: str) -> Optional[TriageItem]:
        """Rename a triage item."""
        return self._update(EntityKind.TRIAGE_ITEM, item_id, {"text": text})

    def remove_triage_item(self, item_id: str) -> bool:
        """Remove a triage item.

        Sub-tasks and objective links that reference it are left as they are;
        they resolve as dangling references from then on.
        """
        return self._remove(EntityKind.TRIAGE_ITEM, item_id)

    # ------------------------------------------------------------------
    # Sub-tasks
    # ------------------------------------------------------------------

    def add_sub_task(
        self,
        parent_item_id: str,
        text: str = "",
        is_new: SubTaskStatus = SubTaskStatus.NEW,
    ) -> SubTask:
        """Add a sub-task under a temporary id.

        Args:
            parent_item_id: Triage item the sub-task decomposes.
            text: Initial text.
            is_new: Whether the audience can already perform it.

        Returns:
            The new, unconfirmed SubTask.
        """
        with self._lock:
            siblings = [s for s in self._sub_tasks if s.parent_item_id == parent_item_id]
            sub = SubTask(
                id=new_temp_id(TEMP_SUBTASK_PREFIX),
                parent_item_id=parent_item_id,
                text=text,
                is_new=is_new,
                sort_order=len(siblings) + 1,
            )
            self._sub_tasks.append(sub)

        self._publish(EventType.ENTITY_CREATED, EntityKind.SUB_TASK, sub.id, parent_id=parent_item_id)
        return sub

    def update_sub_task(self, sub_task_id: str, **fields) -> Optional[SubTask]:
        """Change fields of a sub-task (text, is_new, sort_order)."""
        return self._update(EntityKind.SUB_TASK, sub_task_id, fields)

    def remove_sub_task(self, sub_task_id: str) -> bool:
        """Delete a sub-task."""
        return self._remove(EntityKind.SUB_TASK, sub_task_id)

    # ------------------------------------------------------------------
    # Objectives
    # ------------------------------------------------------------------

    def add_objective(self, **fields) -> WizardObjective:
        """Add an objective under a temporary id and select it.

        Args:
            **fields: Initial field values, e.g. linked_task_id.

        Returns:
            The new, unconfirmed WizardObjective.

        Raises:
            ValidationError: If the field values are invalid.
        """
        fields.pop("id", None)
        unknown = sorted(k for k in fields if k not in WizardObjective.model_fields)
        if unknown:
            raise ValidationError(f"Unknown WizardObjective field(s): {', '.join(unknown)}")
        with self._lock:
            try:
                objective = WizardObjective(**{"sort_order": len(self._objectives), **fields})
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid WizardObjective field value: {e}")
            self._objectives.append(objective)
            self._selected_objective_id = objective.id

        initial = {k: getattr(objective, k) for k in fields}
        self._publish(EventType.ENTITY_CREATED, EntityKind.OBJECTIVE, objective.id, data=initial)
        return objective

    def update_objective(self, objective_id: str, **fields) -> Optional[WizardObjective]:
        """Change fields of an objective."""
        return self._update(EntityKind.OBJECTIVE, objective_id, fields)

    def remove_objective(self, objective_id: str) -> bool:
        """Delete an objective, clearing the selection if it pointed at it."""
        return self._remove(EntityKind.OBJECTIVE, objective_id)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def replace_id(self, kind: EntityKind, temp_id: str, server_id: str) -> bool:
        """Swap a confirmed entity's temporary id for its server id.

        Position, field values and references held by other entities are
        unchanged; an objective selection follows the swap.

        Returns:
            False if the temp id is no longer present.
        """
        with self._lock:
            collection = self._collection(kind)
            index = self._index_of(collection, temp_id)
            if index is None:
                return False
            collection[index] = collection[index].model_copy(update={"id": server_id})
            if kind == EntityKind.OBJECTIVE and self._selected_objective_id == temp_id:
                self._selected_objective_id = server_id
            parent_id = getattr(collection[index], "parent_item_id", None)

        self._publish(
            EventType.ENTITY_RECONCILED, kind, server_id,
            parent_id=parent_id, previous_id=temp_id,
        )
        return True

    def rollback(self, kind: EntityKind, temp_id: str) -> bool:
        """Remove an entity whose create was rejected."""
        with self._lock:
            removed = self._pop(kind, temp_id)
        if removed is None:
            return False
        self._publish(
            EventType.ENTITY_ROLLED_BACK, kind, temp_id,
            parent_id=getattr(removed, "parent_item_id", None),
        )
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _collection(self, kind: EntityKind) -> list:
        if kind == EntityKind.TRIAGE_ITEM:
            return self._triage_items
        if kind == EntityKind.SUB_TASK:
            return self._sub_tasks
        if kind == EntityKind.OBJECTIVE:
            return self._objectives
        raise ValueError(f"No collection for {kind}")

    @staticmethod
    def _index_of(collection: list, entity_id: str) -> Optional[int]:
        for i, entity in enumerate(collection):
            if entity.id == entity_id:
                return i
        return None

    def _update(self, kind: EntityKind, entity_id: str, fields: Dict[str, Any]):
        with self._lock:
            collection = self._collection(kind)
            index = self._index_of(collection, entity_id)
            if index is None:
                return None
            updated = _apply_fields(collection[index], fields)
            collection[index] = updated
            changed = {k: getattr(updated, k) for k in fields}

        self._publish(
            EventType.ENTITY_UPDATED, kind, entity_id,
            parent_id=getattr(updated, "parent_item_id", None), data=changed,
        )
        return updated

    def _pop(self, kind: EntityKind, entity_id: str):
        collection = self._collection(kind)
        index = self._index_of(collection, entity_id)
        if index is None:
            return None
        if kind == EntityKind.OBJECTIVE and self._selected_objective_id == entity_id:
            self._selected_objective_id = None
        return collection.pop(index)

    def _remove(self, kind: EntityKind, entity_id: str) -> bool:
        with self._lock:
            removed = self._pop(kind, entity_id)
        if removed is None:
            return False
        self._publish(
            EventType.ENTITY_DELETED, kind, entity_id,
            parent_id=getattr(removed, "parent_item_id", None),
        )
        return True

    def _publish(
        self,
        event_type: EventType,
        kind: EntityKind,
        entity_id: str,
        parent_id: Optional[str] = None,
        previous_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.event_bus.publish(EntityEvent(
            type=event_type,
            kind=kind,
            entity_id=entity_id,
            parent_id=parent_id,
            previous_id=previous_id,
            data=data or {},
        ))

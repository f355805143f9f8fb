"""
Tests for WizardStore, the single writer of session state.
"""
import pytest

from abcd_wizard.constants import TEMP_OBJECTIVE_PREFIX, TEMP_SUBTASK_PREFIX, TEMP_TRIAGE_PREFIX
from abcd_wizard.exceptions import ValidationError
from abcd_wizard.managers import EventListener, EventType, WizardStore
from abcd_wizard.managers.events import EntityKind


class RecordingListener(EventListener):
    """Collects every store event."""

    def __init__(self):
        self.events = []

    @property
    def subscribed_events(self):
        return list(EventType)

    def handle(self, event):
        self.events.append(event)


@pytest.fixture
def store(sample_snapshot):
    return WizardStore.from_snapshot(sample_snapshot)


@pytest.fixture
def recorder(store):
    listener = RecordingListener()
    store.event_bus.subscribe(listener)
    return listener


class TestLoading:

    def test_from_snapshot(self, store, sample_snapshot):
        assert store.course_id == "c1"
        assert store.course_name == "Claims Onboarding"
        assert [o.id for o in store.objectives] == ["o1", "o2"]
        assert store.gap.knowledge is True
        assert store.selected_objective_id == "o1"
        assert store.default_audience == "Claims processors"

    def test_default_audience_without_audiences(self, mock_data):
        store = WizardStore.from_snapshot(mock_data.create_snapshot(audiences=[]))
        assert store.default_audience == "All learners"

        store.audiences = ["Billing clerks", "Supervisors"]
        assert store.default_audience == "Billing clerks"

    def test_collections_are_copies(self, store):
        store.objectives.clear()
        assert len(store.objectives) == 2

    def test_snapshot_reflects_edits(self, store):
        store.update_objective("o2", verb="Describe")
        snapshot = store.snapshot()
        assert snapshot.objectives[1].verb == "Describe"
        assert snapshot.course_id == "c1"

    def test_load_publishes_nothing(self, sample_snapshot):
        store = WizardStore("c1")
        listener = RecordingListener()
        store.event_bus.subscribe(listener)
        store.load(sample_snapshot)
        assert listener.events == []


class TestSubTasks:

    def test_add_assigns_temp_id_and_sort_order(self, store, recorder):
        sub = store.add_sub_task("t1", text="Verify eligibility")

        assert sub.id.startswith(TEMP_SUBTASK_PREFIX)
        assert sub.sort_order == 2
        assert sub.is_new == "New"
        event = recorder.events[-1]
        assert event.type == EventType.ENTITY_CREATED
        assert event.kind == EntityKind.SUB_TASK
        assert event.parent_id == "t1"

    def test_sort_order_counts_siblings_only(self, store):
        assert store.add_sub_task("t2").sort_order == 1

    def test_update_publishes_changed_fields(self, store, recorder):
        updated = store.update_sub_task("s1", text="Open the form", is_new="Already can do")

        assert updated.text == "Open the form"
        assert not updated.generates_objective
        event = recorder.events[-1]
        assert event.type == EventType.ENTITY_UPDATED
        assert event.data == {"text": "Open the form", "is_new": "Already can do"}
        assert event.parent_id == "t1"

    def test_update_rejects_invalid_status(self, store):
        with pytest.raises(ValidationError):
            store.update_sub_task("s1", is_new="Maybe")
        assert store.get_sub_task("s1").is_new == "New"

    def test_update_rejects_unknown_field(self, store):
        with pytest.raises(ValidationError, match="colour"):
            store.update_sub_task("s1", colour="red")

    def test_update_rejects_id_change(self, store):
        with pytest.raises(ValidationError):
            store.update_sub_task("s1", id="s9")

    def test_unknown_id_is_noop(self, store, recorder):
        assert store.update_sub_task("nope", text="x") is None
        assert store.remove_sub_task("nope") is False
        assert recorder.events == []

    def test_remove(self, store, recorder):
        assert store.remove_sub_task("s1") is True
        assert store.sub_tasks_for("t1") == []
        assert recorder.events[-1].type == EventType.ENTITY_DELETED
        assert recorder.events[-1].parent_id == "t1"


class TestObjectives:

    def test_add_selects_new_objective(self, store):
        objective = store.add_objective(linked_task_id="t3")

        assert objective.id.startswith(TEMP_OBJECTIVE_PREFIX)
        assert objective.linked_task_id == "t3"
        assert objective.priority == "Should Have"
        assert objective.sort_order == 2
        assert store.selected_objective_id == objective.id

    def test_add_publishes_initial_fields(self, store, recorder):
        store.add_objective(linked_task_id="t3", verb="Resolve")
        assert recorder.events[-1].data == {"linked_task_id": "t3", "verb": "Resolve"}

    def test_add_rejects_unknown_field(self, store):
        with pytest.raises(ValidationError):
            store.add_objective(colour="red")
        assert len(store.objectives) == 2

    def test_add_rejects_invalid_bloom_level(self, store):
        with pytest.raises(ValidationError):
            store.add_objective(bloom_level="Memorize")

    def test_update_keeps_other_fields(self, store):
        updated = store.update_objective("o1", criteria="within 5 minutes")
        assert updated.criteria == "within 5 minutes"
        assert updated.behavior == "enter a new claim"
        assert updated.linked_task_id == "t1"

    def test_remove_clears_selection(self, store):
        store.select_objective("o2")
        store.remove_objective("o2")
        assert store.selected_objective_id is None

    def test_select_unknown_clears_selection(self, store):
        assert store.select_objective("missing") is None
        assert store.selected_objective_id is None


class TestReconciliation:

    def test_replace_id_keeps_position_and_fields(self, store, recorder):
        objective = store.add_objective(verb="Resolve")
        store.add_objective()

        assert store.replace_id(EntityKind.OBJECTIVE, objective.id, "srv-9") is True

        ids = [o.id for o in store.objectives]
        assert ids[2] == "srv-9"
        assert objective.id not in ids
        assert store.get_objective("srv-9").verb == "Resolve"
        event = recorder.events[-1]
        assert event.type == EventType.ENTITY_RECONCILED
        assert event.previous_id == objective.id

    def test_selection_follows_swap(self, store):
        objective = store.add_objective()
        store.replace_id(EntityKind.OBJECTIVE, objective.id, "srv-9")
        assert store.selected_objective_id == "srv-9"

    def test_replace_missing_id(self, store):
        assert store.replace_id(EntityKind.SUB_TASK, "sub-gone", "srv-1") is False

    def test_rollback(self, store, recorder):
        sub = store.add_sub_task("t1")
        assert store.rollback(EntityKind.SUB_TASK, sub.id) is True
        assert store.get_sub_task(sub.id) is None
        assert recorder.events[-1].type == EventType.ENTITY_ROLLED_BACK


class TestGapAndTriage:

    def test_set_gap_partial(self, store, recorder):
        gap = store.set_gap(skill=True)
        assert gap.knowledge is True
        assert gap.skill is True
        assert recorder.events[-1].type == EventType.GAP_UPDATED
        assert recorder.events[-1].data == {"knowledge": True, "skill": True}

    def test_add_triage_item(self, store):
        item = store.add_triage_item("Handle appeals", "must")
        assert item.id.startswith(TEMP_TRIAGE_PREFIX)
        assert item.source == "Custom"
        assert item.is_active

    def test_move_triage_item(self, store):
        moved = store.move_triage_item("t4", "must")
        assert moved.column == "must"

    def test_move_rejects_unknown_column(self, store):
        with pytest.raises(ValidationError):
            store.move_triage_item("t4", "later")

    def test_remove_triage_item_leaves_dangling_links(self, store):
        store.remove_triage_item("t1")
        assert store.get_objective("o1").linked_task_id == "t1"
        assert store.sub_tasks_for("t1")

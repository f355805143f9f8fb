"""
Test fixtures for the ABCD objectives wizard test suite.

Provides:
- Temporary directory fixtures (isolated from the working .abcd/)
- Mock data builders for creating wizard entities
- FakeCourseApi, an in-memory course API served through httpx.MockTransport
- A ManualScheduler so debounce timers and in-flight requests run on demand
- Autosave sessions on the ManualScheduler and on real worker threads
"""

import heapq
import itertools
import json
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple

import httpx
import pytest

from abcd_wizard.api_client import WizardApiClient
from abcd_wizard.constants import reset_config_manager
from abcd_wizard.managers import AutosaveListener, AutosaveManager, ThreadedScheduler, WizardStore
from abcd_wizard.models.entities import GapClassification, SubTask, TriageItem, WizardObjective
from abcd_wizard.models.files import WizardSnapshot

COURSE_ID = "c1"
BASE_URL = "http://api.test"


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test isolation.

    Ensures tests don't modify the working directory's .abcd/ folder.
    """
    temp_path = Path(tempfile.mkdtemp(prefix="abcd_test_"))
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def wizard_dir(temp_dir: Path) -> Path:
    """Path to a .abcd/ directory inside the temp dir (not created yet)."""
    return temp_dir / ".abcd"


@pytest.fixture(autouse=True)
def _reset_config():
    """Never let one test's config singleton leak into the next."""
    reset_config_manager()
    yield
    reset_config_manager()


# =============================================================================
# Mock Data Builders
# =============================================================================


class MockDataBuilder:
    """Helper class for building wizard entities for testing."""

    @staticmethod
    def create_triage_item(
        id: str = "t1",
        text: str = "Test task",
        column: str = "must",
        source: str = "NA",
    ) -> TriageItem:
        """Create a TriageItem for testing."""
        return TriageItem(id=id, course_id=COURSE_ID, text=text, column=column, source=source)

    @staticmethod
    def create_sub_task(
        id: str = "s1",
        parent_item_id: str = "t1",
        text: str = "Test sub-task",
        is_new: str = "New",
        sort_order: int = 1,
    ) -> SubTask:
        """Create a SubTask for testing."""
        return SubTask(id=id, parent_item_id=parent_item_id, text=text, is_new=is_new, sort_order=sort_order)

    @staticmethod
    def create_objective(id: str = "o1", **fields) -> WizardObjective:
        """Create a WizardObjective for testing. Unset fields keep model defaults."""
        return WizardObjective(id=id, **fields)

    @staticmethod
    def create_snapshot(
        objectives: Optional[List[WizardObjective]] = None,
        triage_items: Optional[List[TriageItem]] = None,
        sub_tasks: Optional[List[SubTask]] = None,
        gap: Optional[GapClassification] = None,
        audiences: Optional[List[str]] = None,
        course_name: str = "Claims Onboarding",
    ) -> WizardSnapshot:
        """Create a WizardSnapshot for testing."""
        return WizardSnapshot(
            course_id=COURSE_ID,
            course_name=course_name,
            objectives=objectives or [],
            triage_items=triage_items or [],
            sub_tasks=sub_tasks or [],
            gap=gap or GapClassification(),
            audiences=audiences if audiences is not None else ["Claims processors"],
        )


@pytest.fixture
def mock_data() -> MockDataBuilder:
    """Provide mock data builder for test entity creation."""
    return MockDataBuilder()


@pytest.fixture
def sample_snapshot(mock_data: MockDataBuilder) -> WizardSnapshot:
    """A course part-way through the wizard.

    Structure:
        t1 (must)   ── s1 ── o1 linked
        t2 (should)
        t3 (must)
        t4 (nice)
        o2 unlinked
    """
    return mock_data.create_snapshot(
        triage_items=[
            mock_data.create_triage_item("t1", "Enter a new claim", "must"),
            mock_data.create_triage_item("t2", "Search for a member", "should"),
            mock_data.create_triage_item("t3", "Resolve a pended claim", "must"),
            mock_data.create_triage_item("t4", "Customize the dashboard", "nice"),
        ],
        sub_tasks=[mock_data.create_sub_task("s1", "t1", "Open the claim form")],
        objectives=[
            mock_data.create_objective(
                "o1",
                behavior="enter a new claim",
                verb="Enter",
                condition="Given a paper claim",
                criteria="with no errors",
                bloom_level="Apply",
                linked_task_id="t1",
            ),
            mock_data.create_objective("o2", behavior="explain the claim lifecycle"),
        ],
        gap=GapClassification(knowledge=True, skill=False),
    )


# =============================================================================
# Fake course API
# =============================================================================


class FakeCourseApi:
    """
    In-memory course API.

    Records every request. GET routes must be registered in ``routes``;
    creates answer with sequential "srv-N" ids unless ``fail_creates`` is
    set, and other writes succeed unless their path is in ``fail_paths``.

    Setting ``hold_creates`` to an Event makes every create block until the
    event is set; ``create_started`` is set as soon as a create arrives.
    Requests may come from worker threads.
    """

    def __init__(self) -> None:
        self.requests: List[Tuple[str, str, Any]] = []
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.fail_creates = False
        self.fail_paths: set = set()
        self.hold_creates: Optional[threading.Event] = None
        self.create_started = threading.Event()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path
        with self._lock:
            self.requests.append((request.method, path, body))

        if request.method == "POST":
            self.create_started.set()
            if self.hold_creates is not None:
                self.hold_creates.wait(timeout=5.0)

        if (request.method, path) in self.routes:
            status, payload = self.routes[(request.method, path)]
            return httpx.Response(status, json=payload)
        if path in self.fail_paths:
            return httpx.Response(500, json={"error": "boom"})
        if request.method == "GET":
            return httpx.Response(404, json={"error": "not found"})
        if request.method == "POST":
            if self.fail_creates:
                return httpx.Response(500, json={"error": "boom"})
            with self._lock:
                server_id = f"srv-{next(self._ids)}"
            return httpx.Response(201, json={"id": server_id})
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"ok": True})

    def client(self) -> WizardApiClient:
        """A WizardApiClient wired to this fake."""
        return WizardApiClient(base_url=BASE_URL, timeout=5.0, transport=httpx.MockTransport(self.handler))

    def writes(self) -> List[Tuple[str, str, Any]]:
        """Every non-GET request, in order."""
        with self._lock:
            return [r for r in self.requests if r[0] != "GET"]

    def serve_course(self, course_type: str = "NEW_SYSTEM") -> None:
        """Register GET routes for course c1 in the API's own field format."""
        prefix = f"/api/courses/{COURSE_ID}"
        self.routes[("GET", f"{prefix}/overview")] = (200, {
            "course": {"id": COURSE_ID, "name": "Claims Onboarding", "courseType": course_type},
        })
        self.routes[("GET", f"{prefix}/analysis-context")] = (200, {
            "courseAnalysis": {
                "problemSummary": "Claims are keyed with frequent errors.",
                "audiences": [{"role": "Claims processor", "headcount": 40}],
            },
            "submissions": [{
                "stakeholderName": "Dana",
                "sections": [{
                    "title": "What Users Need to Do",
                    "responses": [
                        {"questionId": "SYS_07", "question": "Top tasks?", "value": "Enter claims"},
                    ],
                }],
            }],
        })
        self.routes[("GET", f"{prefix}/objectives")] = (200, [{
            "id": "o1",
            "title": "enter a new claim",
            "verb": "Enter",
            "condition": "Given a paper claim",
            "criteria": "with no errors",
            "bloomLevel": "APPLY",
            "objectivePriority": "MUST",
            "requiresAssessment": True,
            "linkedTriageItemId": "t1",
            "sortOrder": 0,
        }])
        self.routes[("GET", f"{prefix}/triage-items")] = (200, [
            {
                "id": "t1", "courseId": COURSE_ID, "text": "Enter a new claim",
                "column": "must", "source": "NA", "sortOrder": 0,
                "subTasks": [{"id": "s1", "text": "Open the claim form", "isNew": "New", "sortOrder": 1}],
            },
            {"id": "t2", "courseId": COURSE_ID, "text": "Search for a member", "column": "should", "sortOrder": 1},
        ])
        self.routes[("GET", f"{prefix}/gap")] = (200, {"gapKnowledge": False, "gapSkill": True})


@pytest.fixture
def api() -> FakeCourseApi:
    """A fresh fake course API."""
    return FakeCourseApi()


# =============================================================================
# Manual scheduler
# =============================================================================


class ManualHandle:
    """Cancellable handle for a ManualScheduler entry."""

    def __init__(self, due: float) -> None:
        self.due = due
        self.cancelled = False
        self.fired = False

    def cancel(self) -> bool:
        if self.fired or self.cancelled:
            return False
        self.cancelled = True
        return True


class ManualScheduler:
    """
    Deterministic scheduler driven by a virtual clock.

    Timers fire only inside advance() and submitted jobs run only inside
    run_pending(), so a test can hold a request in flight while the clock
    moves on.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: List[Tuple[float, int, ManualHandle, Callable[[], None]]] = []
        self._jobs: List[Callable[[], None]] = []
        self._seq = itertools.count()
        self.closed = False

    def call_later(self, delay: float, fn: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay)
        heapq.heappush(self._timers, (handle.due, next(self._seq), handle, fn))
        return handle

    def submit(self, fn: Callable[[], None]) -> None:
        self._jobs.append(fn)

    @property
    def pending_jobs(self) -> int:
        """Submitted jobs not yet run."""
        return len(self._jobs)

    @property
    def pending_timers(self) -> int:
        """Timers neither fired nor cancelled."""
        return sum(1 for _, _, h, _ in self._timers if not h.cancelled)

    def run_pending(self, limit: Optional[int] = None) -> int:
        """Run submitted jobs in submission order.

        Args:
            limit: Run at most this many jobs. None drains the queue,
                including jobs submitted while draining.

        Returns:
            Number of jobs run.
        """
        ran = 0
        while self._jobs and (limit is None or ran < limit):
            job = self._jobs.pop(0)
            job()
            ran += 1
        return ran

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target:
            due, _, handle, fn = heapq.heappop(self._timers)
            if handle.cancelled:
                continue
            self.now = due
            handle.fired = True
            fn()
        self.now = target

    def shutdown(self, wait: bool = True) -> None:
        """Cancel all timers; with wait, run every outstanding job."""
        for _, _, handle, _ in self._timers:
            handle.cancel()
        self._timers = []
        if wait:
            self.run_pending()
        self.closed = True


@pytest.fixture
def scheduler() -> ManualScheduler:
    """A virtual-clock scheduler."""
    return ManualScheduler()


class AutosaveSession:
    """Store, autosave and client wired together the way WizardCore does."""

    def __init__(
        self,
        snapshot: WizardSnapshot,
        api: FakeCourseApi,
        scheduler,
        subtask_debounce: float = 1.0,
        objective_debounce: float = 1.5,
        gap_debounce: float = 1.5,
    ) -> None:
        self.api = api
        self.scheduler = scheduler
        self.client = api.client()
        self.store = WizardStore.from_snapshot(snapshot)
        self.autosave = AutosaveManager(
            self.store,
            self.client,
            scheduler=scheduler,
            subtask_debounce=subtask_debounce,
            objective_debounce=objective_debounce,
            gap_debounce=gap_debounce,
        )
        self.listener = AutosaveListener(self.autosave)
        self.store.event_bus.subscribe(self.listener)

    def listen_before_autosave(self, listener) -> None:
        """Subscribe a listener that sees each event before autosave does."""
        self.store.event_bus.unsubscribe(self.listener)
        self.store.event_bus.subscribe(listener)
        self.store.event_bus.subscribe(self.listener)

    def tick(self, seconds: float) -> None:
        """Advance the clock, then run whatever the timers submitted."""
        self.scheduler.advance(seconds)
        self.scheduler.run_pending()


@pytest.fixture
def session(sample_snapshot: WizardSnapshot, api: FakeCourseApi, scheduler: ManualScheduler):
    """Autosave session over the sample snapshot."""
    s = AutosaveSession(sample_snapshot, api, scheduler)
    yield s
    s.client.close()


@pytest.fixture
def threaded_session(sample_snapshot: WizardSnapshot, api: FakeCourseApi):
    """Autosave session on real timers and worker threads, with 50 ms debounces."""
    s = AutosaveSession(
        sample_snapshot,
        api,
        ThreadedScheduler(),
        subtask_debounce=0.05,
        objective_debounce=0.05,
        gap_debounce=0.05,
    )
    yield s
    if api.hold_creates is not None:
        api.hold_creates.set()
    s.autosave.close()
    s.client.close()

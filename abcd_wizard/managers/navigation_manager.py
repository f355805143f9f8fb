"""
NavigationManager for moving between wizard steps.

Steps form a fixed ordered list. Continue and Back are clamped index moves and
any step can be jumped to directly; step status never gates navigation.
"""

from typing import List, Optional

from abcd_wizard.constants import STEPS
from abcd_wizard.exceptions import NotFoundError
from abcd_wizard.models.base import StepKey


STEP_ORDER: List[StepKey] = [StepKey(key) for key, _, _ in STEPS]

# Shortcuts accepted by go_to(), e.g. "4" or "b"
STEP_SHORTCUTS = {
    **{num: StepKey(key) for key, num, _ in STEPS},
    "c": StepKey.CONTEXT,
    "p": StepKey.PRIORITY,
    "t": StepKey.TASKS,
    "b": StepKey.BUILDER,
    "v": StepKey.VALIDATION,
    "e": StepKey.EXPORT,
}


class NavigationManager:
    """
    Tracks the current wizard step.

    Handles:
    - Continue / Back over the ordered step list
    - Direct jumps by key, number or shortcut
    - The "skip to builder" shortcut
    - Which navigation buttons are offered on the current step
    """

    def __init__(self, step: Optional[StepKey] = None) -> None:
        """
        Initialize NavigationManager.

        Args:
            step: Starting step. Defaults to the first step (context).
        """
        self.step: StepKey = StepKey(step) if step else STEP_ORDER[0]

    @property
    def index(self) -> int:
        """Zero-based position of the current step."""
        return STEP_ORDER.index(self.step)

    def resolve(self, token: str) -> StepKey:
        """Resolve a step key, number or shortcut.

        Raises:
            NotFoundError: If the token names no step.
        """
        value = str(token).strip().lower()
        if value in STEP_SHORTCUTS:
            return STEP_SHORTCUTS[value]
        try:
            return StepKey(value)
        except ValueError:
            raise NotFoundError(f"Unknown wizard step '{token}'.")

    def go_to(self, step) -> StepKey:
        """Jump to any step."""
        self.step = step if isinstance(step, StepKey) else self.resolve(step)
        return self.step

    def next_step(self) -> StepKey:
        """Advance one step; stays put on the last step."""
        if self.index < len(STEP_ORDER) - 1:
            self.step = STEP_ORDER[self.index + 1]
        return self.step

    def prev_step(self) -> StepKey:
        """Go back one step; stays put on the first step."""
        if self.index > 0:
            self.step = STEP_ORDER[self.index - 1]
        return self.step

    def skip_to_builder(self) -> StepKey:
        """Jump straight to the objective builder."""
        self.step = StepKey.BUILDER
        return self.step

    @property
    def can_go_back(self) -> bool:
        return self.step != StepKey.CONTEXT

    @property
    def can_continue(self) -> bool:
        return self.step != StepKey.EXPORT

    @property
    def can_skip_to_builder(self) -> bool:
        return self.step not in (StepKey.BUILDER, StepKey.VALIDATION, StepKey.EXPORT)

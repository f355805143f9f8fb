"""
Needs-analysis context models.

Read-only inputs the wizard displays next to the objectives; the engine never
mutates them.
"""

from typing import List

from pydantic import Field

from abcd_wizard.constants import DEFAULT_SUMMARY_LABELS
from abcd_wizard.models.base import WizardModel


class NASummaryLabels(WizardModel):
    """Headings for the summary fields, which depend on the training type."""

    business_goal: str = DEFAULT_SUMMARY_LABELS[0]
    current_state: str = DEFAULT_SUMMARY_LABELS[1]
    desired_state: str = DEFAULT_SUMMARY_LABELS[2]


class NASummary(WizardModel):
    """Condensed needs analysis shown on the context step."""

    training_type: str = ""
    business_goal: str = ""
    audience: str = ""
    current_state: str = ""
    desired_state: str = ""
    pain_points: List[str] = Field(default_factory=list)
    labels: NASummaryLabels = Field(default_factory=NASummaryLabels)


class NAItem(WizardModel):
    """One question/answer pair."""

    q: str
    a: str


class NASection(WizardModel):
    """Needs-analysis answers grouped under one slide-over tab."""

    key: str
    title: str
    items: List[NAItem] = Field(default_factory=list)

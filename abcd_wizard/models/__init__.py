"""
Data models for the ABCD objectives wizard.

Import models explicitly from their modules or from this package:
    from abcd_wizard.models.base import StepKey, StepStatus, TriageColumn
    from abcd_wizard.models.entities import TriageItem, SubTask, WizardObjective
    from abcd_wizard.models.context import NASummary, NASection
    from abcd_wizard.models.files import WizardSnapshot, ExportFile, ConfigFile
"""

from .base import (
    BloomKnowledge,
    BloomLevel,
    ObjectivePriority,
    StepKey,
    StepStatus,
    SubTaskStatus,
    TriageColumn,
    TriageSource,
    WizardModel,
)
from .entities import GapClassification, SubTask, TriageItem, WizardObjective
from .context import NAItem, NASection, NASummary, NASummaryLabels
from .files import ConfigFile, ExportFile, ExportGroup, ExportRow, WizardSnapshot

__all__ = [
    # Vocabularies
    "BloomKnowledge",
    "BloomLevel",
    "ObjectivePriority",
    "StepKey",
    "StepStatus",
    "SubTaskStatus",
    "TriageColumn",
    "TriageSource",
    "WizardModel",
    # Entities
    "GapClassification",
    "SubTask",
    "TriageItem",
    "WizardObjective",
    # Needs-analysis context
    "NAItem",
    "NASection",
    "NASummary",
    "NASummaryLabels",
    # File models
    "ConfigFile",
    "ExportFile",
    "ExportGroup",
    "ExportRow",
    "WizardSnapshot",
]

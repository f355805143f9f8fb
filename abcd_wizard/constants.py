"""
Constants for the ABCD objectives wizard.

Note: The tunable constants serve as default fallback values.
Actual values are loaded from .abcd/config.json at runtime via ConfigManager.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional
import json

# =============================================================================
# Default Fallback Values
# These are used if config.json doesn't exist or doesn't specify a value.
# =============================================================================

DEFAULT_WIZARD_DIR = ".abcd"

# API defaults
DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_REQUEST_TIMEOUT = 10.0

# Autosave quiet periods, in seconds
DEFAULT_SUBTASK_DEBOUNCE_SECONDS = 1.0
DEFAULT_OBJECTIVE_DEBOUNCE_SECONDS = 1.5
DEFAULT_GAP_DEBOUNCE_SECONDS = 1.5

# Audience used when the needs analysis names none
DEFAULT_AUDIENCE = "All learners"

# Export defaults
DEFAULT_EXPORT_DIR = "exports"

# =============================================================================
# Fixed values (not configurable)
# =============================================================================

# Reserved prefixes for ids that have not been confirmed by the server
TEMP_SUBTASK_PREFIX = "sub-"
TEMP_OBJECTIVE_PREFIX = "obj-"
TEMP_TRIAGE_PREFIX = "tri-"

# Placeholders used when an ABCD component is missing
PLACEHOLDER_CONDITION = "*[Condition]*"
PLACEHOLDER_BEHAVIOR = "*[behavior]*"
PLACEHOLDER_CRITERIA = "*[criteria]*"
PLACEHOLDER_AUDIENCE = "*…*"

UNGROUPED_LABEL = "Ungrouped"
UNKNOWN_TASK_LABEL = "Unknown Task"
UNTITLED_LABEL = "Untitled"

# Ordered wizard steps: (key, number, label)
STEPS = [
    ("context", "1", "Context & Gap Check"),
    ("priority", "2", "Content Priority"),
    ("tasks", "3", "Task Breakdown"),
    ("builder", "4", "Objective Builder"),
    ("validation", "5", "Validation"),
    ("export", "6", "Export"),
]

STEP_ICONS = {
    "none": "\u25CB",      # ○
    "progress": "\u25D1",  # ◑
    "done": "\u25CF",      # ●
    "skip": "\u2014",      # —
}

# Bloom's taxonomy levels with their suggested action verbs
BLOOM_VERBS: Dict[str, List[str]] = {
    "Remember": ["List", "Define", "Identify", "Name", "Recall", "Recognize", "State", "Match"],
    "Understand": ["Describe", "Summarize", "Explain", "Paraphrase", "Classify", "Discuss", "Interpret"],
    "Apply": ["Demonstrate", "Execute", "Implement", "Solve", "Use", "Operate", "Complete"],
    "Analyze": ["Compare", "Contrast", "Examine", "Differentiate", "Categorize", "Distinguish", "Determine"],
    "Evaluate": ["Justify", "Critique", "Assess", "Judge", "Defend", "Prioritize", "Recommend"],
    "Create": ["Design", "Develop", "Construct", "Compose", "Formulate", "Generate", "Plan"],
}

# Anderson-Krathwohl matrix: "Process-Knowledge" -> verbs
AK_VERBS: Dict[str, List[str]] = {
    "Remember-Factual": ["list", "identify", "recall", "name"],
    "Remember-Conceptual": ["classify", "categorize"],
    "Remember-Procedural": ["recall steps", "identify sequence"],
    "Remember-Metacognitive": ["identify strategy"],
    "Understand-Factual": ["describe", "paraphrase", "summarize"],
    "Understand-Conceptual": ["explain", "interpret", "compare"],
    "Understand-Procedural": ["clarify steps", "explain process"],
    "Understand-Metacognitive": ["explain strategy"],
    "Apply-Factual": ["respond", "provide", "label"],
    "Apply-Conceptual": ["implement", "carry out", "use"],
    "Apply-Procedural": ["execute", "perform", "complete", "demonstrate"],
    "Apply-Metacognitive": ["apply strategy"],
    "Analyze-Factual": ["differentiate", "distinguish", "select"],
    "Analyze-Conceptual": ["organize", "attribute", "compare"],
    "Analyze-Procedural": ["integrate", "deconstruct", "troubleshoot"],
    "Analyze-Metacognitive": ["assess own approach"],
    "Evaluate-Factual": ["check", "verify", "detect"],
    "Evaluate-Conceptual": ["critique", "judge", "justify"],
    "Evaluate-Procedural": ["test", "monitor", "evaluate"],
    "Evaluate-Metacognitive": ["reflect", "self-assess"],
    "Create-Factual": ["generate", "compile", "assemble"],
    "Create-Conceptual": ["design", "construct", "plan"],
    "Create-Procedural": ["develop procedure", "devise", "produce"],
    "Create-Metacognitive": ["create strategy"],
}

# Levels that need a performance-based assessment
HIGH_BLOOM_LEVELS = ["Analyze", "Evaluate", "Create"]
# Levels the objective review treats as beyond recall
REVIEW_HIGH_BLOOM_LEVELS = ["Apply", "Analyze", "Evaluate", "Create"]

NON_OBSERVABLE_VERBS = ["understand", "know", "learn", "appreciate"]

BLOOM_INTERPRETATION = {
    "Remember": "Heavy Remember suggests content better served by a job aid.",
    "Understand": "Needs clear examples and non-examples, not just definitions.",
    "Apply": "Requires hands-on practice. Slides alone won't close this gap.",
    "Analyze": "Requires scenario-based practice with varied conditions.",
    "Evaluate": "Common in leadership or QA training, not typical for system rollouts.",
    "Create": "Common in design or strategy training.",
}

PRIORITY_DESCRIPTIONS = {
    "Must Have": "Directly impacts business goal. Majority of seat time and assessment.",
    "Should Have": "Important but survivable at go-live. Day 30 refresher candidate.",
    "Nice to Have": "Low impact if omitted. Cut first. Consider job aid.",
}

# Needs-analysis slide-over tabs: (key, title, source section names)
NEW_SYSTEM_TABS = [
    ("tasks", "What They Need to Do", ["What Users Need to Do"]),
    ("system", "The System / Change", ["About the System", "Business Justification"]),
    ("audience", "Who's Learning", ["Who Will Use This System"]),
    ("constraints", "Constraints & Environment", ["Training Constraints and Resources", "Rollout Plan"]),
    ("project", "Project & Stakeholders", ["Project Context", "SMEs and Stakeholders", "Concerns and Final Thoughts"]),
]

GENERIC_TABS = [
    ("tasks", "What They Need to Do", []),
    ("system", "The Change", []),
    ("audience", "Who's Learning", ["Who Will Use This System"]),
    ("constraints", "Constraints & Environment", ["Training Constraints and Resources", "Rollout Plan"]),
    ("project", "Project & Stakeholders", ["Project Context", "SMEs and Stakeholders", "Concerns and Final Thoughts"]),
]

SUMMARY_LABELS = {
    "NEW_SYSTEM": ("Business Problem", "Current System / Process", "Proficiency at Go-Live"),
    "PERFORMANCE_PROBLEM": ("Performance Problem", "Current Performance", "Desired Performance"),
    "COMPLIANCE": ("Compliance Requirement", "Current State", "Required State"),
    "ROLE_CHANGE": ("Business Driver", "Current Role Scope", "Expanded Role Scope"),
}
DEFAULT_SUMMARY_LABELS = ("Business Goal", "Current State", "Desired State")


# =============================================================================
# Config Loader
# Load values from .abcd/config.json at runtime.
# =============================================================================

_config_manager_instance: Optional['ConfigManager'] = None


class ConfigManager:
    """
    Manages loading configuration from a config.json file with fallback to defaults.

    This class is independent of StorageManager to avoid cyclic dependencies.
    StorageManager handles persistence; ConfigManager handles runtime access.

    Usage:
        # With default path (.abcd/config.json)
        config = ConfigManager()
        base_url = config.get('api_base_url', DEFAULT_API_BASE_URL)

        # With custom path
        config = ConfigManager(config_path=Path("/custom/path/config.json"))
        debounce = config.get_float('gap_debounce_seconds', DEFAULT_GAP_DEBOUNCE_SECONDS)
    """

    def __init__(self, config_path: Optional[Path] = None, wizard_dir: Optional[Path] = None) -> None:
        """
        Initialize ConfigManager.

        Args:
            config_path: Direct path to config.json file. Takes precedence over wizard_dir.
            wizard_dir: Path to .abcd/ directory. Config path will be wizard_dir/config.json.
        """
        self._config: Optional[dict] = None

        if config_path is not None:
            self._config_path = config_path
        elif wizard_dir is not None:
            self._config_path = wizard_dir / "config.json"
        else:
            self._config_path = Path(DEFAULT_WIZARD_DIR) / "config.json"

    def _load_config(self) -> dict:
        """Load config from config.json file."""
        if self._config is not None:
            return self._config

        if self._config_path.exists():
            try:
                with open(self._config_path, "r") as f:
                    self._config = json.load(f)
            except (json.JSONDecodeError, IOError):
                self._config = {}
        else:
            self._config = {}

        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value with fallback to default.

        Args:
            key: Configuration key name.
            default: Default value if key not found.

        Returns:
            Config value or default.
        """
        config = self._load_config()
        return config.get(key, default)

    def get_float(self, key: str, default: float) -> float:
        """Get a float config value with fallback."""
        value = self.get(key, default)
        try:
            return float(value) if value is not None else default
        except (TypeError, ValueError):
            return default

    def get_str(self, key: str, default: str) -> str:
        """Get a string config value with fallback."""
        value = self.get(key, default)
        return str(value) if value is not None else default

    def reload(self) -> dict:
        """Force reload of config from disk."""
        self._config = None
        return self._load_config()

    @property
    def config_path(self) -> Path:
        """Get the config file path."""
        return self._config_path


def get_config_manager(reset: bool = False, wizard_dir: Optional[Path] = None) -> ConfigManager:
    """
    Get the singleton ConfigManager instance.

    Args:
        reset: If True, reset the singleton and create a new instance.
        wizard_dir: .abcd/ directory for a new instance. Defaults to .abcd/.

    Returns:
        ConfigManager singleton instance.
    """
    global _config_manager_instance
    if _config_manager_instance is None or reset:
        _config_manager_instance = ConfigManager(wizard_dir=wizard_dir)
    return _config_manager_instance


def reset_config_manager() -> None:
    """Reset the singleton ConfigManager instance (useful for testing)."""
    global _config_manager_instance
    _config_manager_instance = None


# Convenience functions for common config access
# These use the singleton with default path (.abcd/config.json)
def get_api_base_url() -> str:
    """Get the course API base URL from config or default."""
    return get_config_manager().get_str('api_base_url', DEFAULT_API_BASE_URL)


def get_request_timeout() -> float:
    """Get the HTTP request timeout from config or default."""
    return get_config_manager().get_float('request_timeout', DEFAULT_REQUEST_TIMEOUT)


def get_subtask_debounce_seconds() -> float:
    """Get the sub-task autosave quiet period from config or default."""
    return get_config_manager().get_float('subtask_debounce_seconds', DEFAULT_SUBTASK_DEBOUNCE_SECONDS)


def get_objective_debounce_seconds() -> float:
    """Get the objective autosave quiet period from config or default."""
    return get_config_manager().get_float('objective_debounce_seconds', DEFAULT_OBJECTIVE_DEBOUNCE_SECONDS)


def get_gap_debounce_seconds() -> float:
    """Get the gap classification autosave quiet period from config or default."""
    return get_config_manager().get_float('gap_debounce_seconds', DEFAULT_GAP_DEBOUNCE_SECONDS)


def get_default_audience() -> str:
    """Get the fallback audience name from config or default."""
    return get_config_manager().get_str('default_audience', DEFAULT_AUDIENCE)


def get_export_dir() -> str:
    """Get the export directory (relative to .abcd/) from config or default."""
    return get_config_manager().get_str('export_dir', DEFAULT_EXPORT_DIR)

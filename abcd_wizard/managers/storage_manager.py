"""
Storage manager for the ABCD objectives wizard.

Handles loading and saving of all JSON files in the .abcd/ directory.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from abcd_wizard.constants import DEFAULT_EXPORT_DIR, DEFAULT_WIZARD_DIR
from abcd_wizard.exceptions import NotFoundError, StorageError
from abcd_wizard.models.files import ConfigFile, ExportFile, WizardSnapshot


class StorageManager:
    """
    Manages persistence of wizard data to JSON files in the .abcd/ directory.

    Handles:
    - config.json
    - courses/<courseId>.json session snapshots
    - Export documents (JSON or Markdown)

    All writes are atomic to prevent data corruption.
    """

    def __init__(self, wizard_dir: Optional[Path] = None, export_dir: Optional[str] = None) -> None:
        """
        Initialize the StorageManager with a .abcd/ directory path.

        Args:
            wizard_dir: Path to the .abcd/ directory. Defaults to .abcd/ in current directory.
            export_dir: Export directory, relative to wizard_dir unless absolute.
        """
        self.wizard_dir = wizard_dir if wizard_dir else Path(DEFAULT_WIZARD_DIR)
        self.courses_dir = self.wizard_dir / "courses"
        self.export_dir = self.wizard_dir / (export_dir or DEFAULT_EXPORT_DIR)
        self._ensure_wizard_dir()

    def _ensure_wizard_dir(self) -> None:
        """Create the .abcd/ directory and courses subdirectory if they don't exist."""
        self.wizard_dir.mkdir(parents=True, exist_ok=True)
        self.courses_dir.mkdir(exist_ok=True)

    def _atomic_write_text(self, file_path: Path, text: str) -> None:
        """Write text to a file atomically to prevent corruption.

        Args:
            file_path: Path to the file to write.
            text: File contents.

        Raises:
            StorageError: If writing to file fails.
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=file_path.parent, prefix=".tmp_abcd_", suffix=file_path.suffix
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_file:
                temp_file.write(text)
            os.replace(temp_path, file_path)
        except Exception as e:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise StorageError(f"Failed to write to {file_path}: {e}")

    def _atomic_write(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Write data to a JSON file atomically."""
        self._atomic_write_text(file_path, json.dumps(data, indent=2, ensure_ascii=False))

    def _load_json(self, file_path: Path, model_cls, label: str):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return model_cls.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Failed to load {label}: {e}")

    # =========================================================================
    # Config File
    # =========================================================================

    def load_config(self) -> ConfigFile:
        """Load config.json and return as ConfigFile model."""
        file_path = self.wizard_dir / "config.json"
        if not file_path.exists():
            return ConfigFile()
        return self._load_json(file_path, ConfigFile, "config.json")

    def save_config(self, data: ConfigFile) -> None:
        """Save ConfigFile model to config.json."""
        file_path = self.wizard_dir / "config.json"
        self._atomic_write(file_path, data.model_dump(mode="json"))

    # =========================================================================
    # Course Snapshots
    # =========================================================================

    def snapshot_path(self, course_id: str) -> Path:
        return self.courses_dir / f"{course_id}.json"

    def has_snapshot(self, course_id: str) -> bool:
        return self.snapshot_path(course_id).exists()

    def load_snapshot(self, course_id: str) -> WizardSnapshot:
        """Load courses/<courseId>.json.

        Raises:
            NotFoundError: If the course has not been pulled yet.
            StorageError: If the file is malformed.
        """
        file_path = self.snapshot_path(course_id)
        if not file_path.exists():
            raise NotFoundError(
                f"No local data for course '{course_id}'. Run 'abcd-wizard pull {course_id}' first."
            )
        return self._load_json(file_path, WizardSnapshot, f"courses/{course_id}.json")

    def save_snapshot(self, snapshot: WizardSnapshot) -> Path:
        """Save a WizardSnapshot to courses/<courseId>.json."""
        file_path = self.snapshot_path(snapshot.course_id)
        self._atomic_write(file_path, snapshot.model_dump(mode="json"))
        return file_path

    def list_snapshots(self) -> List[str]:
        """Course ids with a local snapshot, sorted."""
        return sorted(p.stem for p in self.courses_dir.glob("*.json"))

    # =========================================================================
    # Exports
    # =========================================================================

    def save_export(self, export: ExportFile, markdown: Optional[str] = None,
                    output: Optional[Path] = None) -> Path:
        """Write an export document.

        Args:
            export: Export document.
            markdown: Rendered Markdown; when given, it is written instead of JSON.
            output: Target path. Defaults to <export_dir>/<courseId>.json or .md.

        Returns:
            Path written.
        """
        suffix = ".md" if markdown is not None else ".json"
        file_path = output if output else self.export_dir / f"{export.course_id}{suffix}"
        if markdown is not None:
            self._atomic_write_text(file_path, markdown)
        else:
            self._atomic_write(file_path, export.model_dump(mode="json"))
        return file_path

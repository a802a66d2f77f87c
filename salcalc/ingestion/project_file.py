"""Project file loading and SAL write-back.

Reads the records the ledger is replayed from (documents, contract, SAL
list) out of a JSON or YAML file. Both the flat layout and the exported
``SavedProject`` layout, where the records sit under ``data``, are accepted.

The file belongs to the collaborator that produced it. Writing back only
replaces the SAL list, in wire form, leaving every other key as it was read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import structlog
import yaml

from salcalc.models import Checkpoint, Project

logger = structlog.get_logger(__name__)

JSON_SUFFIXES = {".json"}
YAML_SUFFIXES = {".yaml", ".yml"}

RECORD_KEYS = ("projectDocuments", "documents", "sals", "checkpoints")
CHECKPOINT_KEYS = ("sals", "checkpoints")


@dataclass
class ProjectFile:
    """A loaded project together with the raw mapping it was parsed from."""

    path: Path
    raw: dict[str, Any]
    project: Project

    def replace_checkpoints(self, checkpoints: Iterable[Checkpoint]) -> None:
        """Swap the SAL list in the raw mapping, keeping unknown SAL keys by id."""
        container = self._checkpoint_container()
        key = next((k for k in CHECKPOINT_KEYS if k in container), "sals")
        previous = {
            record.get("id"): record
            for record in container.get(key) or []
            if isinstance(record, dict)
        }
        checkpoints = list(checkpoints)
        container[key] = [
            {**previous.get(checkpoint.id, {}), **checkpoint_to_wire(checkpoint)}
            for checkpoint in checkpoints
        ]
        self.project.checkpoints = checkpoints

    def save(self) -> None:
        _write(self.path, self.raw)
        logger.info("project_saved", path=str(self.path), sal_count=len(self.project.checkpoints))

    def _checkpoint_container(self) -> dict[str, Any]:
        data = self.raw.get("data")
        if isinstance(data, dict):
            return data
        return self.raw


def checkpoint_to_wire(checkpoint: Checkpoint) -> dict[str, Any]:
    return {
        "id": checkpoint.id,
        "number": checkpoint.number,
        "date": checkpoint.date.isoformat(),
        "description": checkpoint.description,
        "isLocked": checkpoint.locked,
    }


def open_project_file(file_path: Path) -> ProjectFile:
    """Load a project from a JSON or YAML file, keeping the raw mapping.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the content isn't a mapping
        yaml.YAMLError: If a YAML file can't be parsed
        pydantic.ValidationError: If records are malformed (e.g. non-ISO dates)
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Project file not found: {file_path}")

    raw = _read(file_path)
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid project file: expected a mapping in {file_path}")

    project = Project.model_validate(_flatten_saved_project(raw))
    logger.info(
        "project_loaded",
        name=project.name,
        documents=len(project.documents),
        sal_count=len(project.checkpoints),
    )
    return ProjectFile(path=file_path, raw=raw, project=project)


def load_project(file_path: Path) -> Project:
    return open_project_file(file_path).project


def _read(file_path: Path) -> Any:
    suffix = file_path.suffix.lower()
    if suffix not in JSON_SUFFIXES | YAML_SUFFIXES:
        raise ValueError(f"Unsupported project file format: {file_path.suffix}")
    text = file_path.read_text(encoding="utf-8")
    if suffix in JSON_SUFFIXES:
        return json.loads(text)
    return yaml.safe_load(text)


def _write(file_path: Path, raw: dict[str, Any]) -> None:
    if file_path.suffix.lower() in JSON_SUFFIXES:
        file_path.write_text(json.dumps(raw, indent=2, ensure_ascii=False), encoding="utf-8")
    else:
        file_path.write_text(
            yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8"
        )


def _flatten_saved_project(raw: dict[str, Any]) -> dict[str, Any]:
    data = raw.get("data")
    if not isinstance(data, dict):
        return raw
    flat = {key: value for key, value in raw.items() if key != "data"}
    for key in RECORD_KEYS:
        if key in data:
            flat[key] = data[key]
    return flat

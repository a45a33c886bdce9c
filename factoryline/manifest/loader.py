"""Manifest file loading."""

import json
import logging
from pathlib import Path
from typing import Optional

from factoryline.errors import ManifestLoadError
from factoryline.lib.validate import SchemaValidationError, validate
from factoryline.manifest.models import Manifest, ProcessorStep

logger = logging.getLogger(__name__)


def _optional_path(value) -> Optional[str]:
    # Hand-written manifests use the string "null" for pure generators
    if value is None or value == "" or value == "null":
        return None
    return value


def parse_manifest(data: dict, path: Optional[Path] = None) -> Manifest:
    """Build a Manifest from parsed JSON.

    Raises:
        ManifestLoadError: schema violation or non-increasing sequence numbers
    """
    where = str(path) if path else "<manifest>"
    try:
        validate(data, "manifest")
    except SchemaValidationError as e:
        raise ManifestLoadError(where, str(e)) from None

    steps = []
    last_seq = None
    for entry in data["processors"]:
        step = ProcessorStep(
            sequence=entry["sequence"],
            processor=entry["processor"],
            input=_optional_path(entry.get("input")),
            output=_optional_path(entry.get("output")),
            target_file=_optional_path(entry.get("target_file")),
        )
        if last_seq is not None and step.sequence <= last_seq:
            raise ManifestLoadError(
                where,
                f"Sequence numbers must be strictly increasing "
                f"(step {step.sequence} follows step {last_seq})",
            )
        last_seq = step.sequence
        steps.append(step)

    version = data.get("version")
    return Manifest(
        steps=tuple(steps),
        story_id=data.get("storyId") or data.get("story_id"),
        version=str(version) if version is not None else None,
        path=path,
    )


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest JSON file."""
    if not path.exists():
        raise ManifestLoadError(str(path), "File not found")

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ManifestLoadError(str(path), f"Invalid JSON: {e}") from None
    except OSError as e:
        raise ManifestLoadError(str(path), f"Cannot read: {e}") from None

    manifest = parse_manifest(data, path)
    logger.info(f"Loaded manifest {path} ({len(manifest.steps)} steps)")
    return manifest

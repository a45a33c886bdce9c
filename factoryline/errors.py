"""
Error taxonomy for factoryline.

Every failure carries enough context (sequence number, processor name, path)
to be fixed without re-running the pipeline to rediscover it.
"""

from dataclasses import dataclass
from typing import Optional


class FactorylineError(Exception):
    """Base class for all factoryline errors."""
    pass


class ManifestLoadError(FactorylineError):
    """Manifest file is missing, unreadable, or fails its schema."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


@dataclass
class StructuralManifestError(FactorylineError):
    """Manifest cannot structurally succeed (duplicate outputs, missing input/target).

    Raised when a run is gated on pre-validation and the validator reported errors.
    """
    messages: list[str]
    manifest_path: Optional[str] = None

    def __str__(self):
        where = f" in {self.manifest_path}" if self.manifest_path else ""
        return f"{len(self.messages)} structural error(s){where}: " + "; ".join(self.messages)


@dataclass
class ToolResolutionError(FactorylineError):
    """Processor name is unknown or its executable does not exist."""
    tool: str
    path: Optional[str] = None

    def __str__(self):
        if self.path is None:
            return f"Unknown tool '{self.tool}'"
        return f"Tool '{self.tool}' not found at path: {self.path}"


@dataclass
class ProcessExecutionError(FactorylineError):
    """A processor could not be started, exited nonzero, or was killed by a signal."""
    processor: str
    message: str
    sequence: Optional[int] = None
    exit_code: Optional[int] = None
    signal_name: Optional[str] = None

    def __str__(self):
        step = f"step {self.sequence} " if self.sequence is not None else ""
        return f"[{step}{self.processor}] {self.message}"


@dataclass
class TraceabilityGapError(FactorylineError):
    """A mandatory requirement is still unmapped after the forced fallback.

    Never raised during a run; collected into the mapping result and
    surfaced in the traceability report.
    """
    requirement_id: str
    text: str = ""
    reason: str = ""

    def __str__(self):
        return f"{self.requirement_id}: {self.reason or 'not mapped to any acceptance criterion'}"


class StoryGenerationError(FactorylineError):
    """Stories could not be generated from a spec file."""
    pass

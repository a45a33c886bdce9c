"""
Data models for processor manifests.

A manifest is a total order of processor steps. Dependencies are never
declared; they are inferred when a step's input or target_file equals an
earlier step's output.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ProcessorStep:
    """One manifest entry with its file-path contract."""
    sequence: int
    processor: str
    input: Optional[str] = None        # None for pure generators
    output: Optional[str] = None       # Artifact produced
    target_file: Optional[str] = None  # Existing artifact mutated in place

    def describe(self) -> str:
        return f"step {self.sequence} ({self.processor})"


@dataclass(frozen=True)
class Manifest:
    """Ordered processor steps plus metadata. Immutable once loaded."""
    steps: tuple[ProcessorStep, ...]
    story_id: Optional[str] = None
    version: Optional[str] = None
    path: Optional[Path] = None

    def earlier_outputs(self, step: ProcessorStep) -> dict[str, int]:
        """Outputs of steps strictly before `step`, mapped to their sequence."""
        outputs = {}
        for other in self.steps:
            if other.sequence >= step.sequence:
                break
            if other.output:
                outputs.setdefault(other.output, other.sequence)
        return outputs

    def dependencies(self) -> list[tuple[int, int, str]]:
        """Inferred structural edges as (producer_seq, consumer_seq, path)."""
        edges = []
        for step in self.steps:
            produced = self.earlier_outputs(step)
            for path in (step.input, step.target_file):
                if path and path in produced:
                    edges.append((produced[path], step.sequence, path))
        return edges


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    """A single pre-validation finding."""
    severity: Severity
    message: str
    sequence: Optional[int] = None
    path: Optional[str] = None

    def __str__(self):
        return self.message


@dataclass
class ValidationReport:
    """All issues from one validation pass."""
    issues: list[ValidationIssue] = field(default_factory=list)

    def _of(self, severity: Severity) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]

    @property
    def errors(self) -> list[ValidationIssue]:
        return self._of(Severity.ERROR)

    @property
    def warnings(self) -> list[ValidationIssue]:
        return self._of(Severity.WARNING)

    @property
    def info(self) -> list[ValidationIssue]:
        return self._of(Severity.INFO)

    @property
    def ok(self) -> bool:
        """Success iff zero errors, regardless of warnings."""
        return not self.errors

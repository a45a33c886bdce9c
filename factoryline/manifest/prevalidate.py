"""
Pre-execution manifest validation.

Proves a manifest is achievable before any processor runs. Every check runs
independently so one pass reports everything:

  1. input existence          (error)
  2. output collisions        (error)
  3. existing outputs         (warning + info)
  4. modification targets     (error)
  5. inferred dependencies    (info)
  6. naming conventions       (warning + info)
  7. similar existing files   (info)

The validator is pure: it reads through a FilesystemView and never writes.
The verdict is success iff there are zero errors.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, Optional

from factoryline.manifest.fsview import FilesystemView, LocalFilesystem
from factoryline.manifest.models import (
    Manifest,
    Severity,
    ValidationIssue,
    ValidationReport,
)


@dataclass(frozen=True)
class NamingConvention:
    """Outputs under `directory` must match `check`; `pattern` is shown to humans."""
    directory: str
    kind: str
    pattern: str
    check: Callable[[str], bool]


NAMING_CONVENTIONS = [
    NamingConvention("/types/", "Type", "*.types.ts", lambda name: name.endswith(".types.ts")),
    NamingConvention("/hooks/", "Hook", "use*.ts", lambda name: name.startswith("use")),
]

SIMILAR_PREFIX_LEN = 5


def _error(message, step=None, path=None):
    return ValidationIssue(Severity.ERROR, message, step.sequence if step else None, path)


def _warning(message, step=None, path=None):
    return ValidationIssue(Severity.WARNING, message, step.sequence if step else None, path)


def _info(message, step=None, path=None):
    return ValidationIssue(Severity.INFO, message, step.sequence if step else None, path)


def check_inputs(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Every input must exist on disk unless an earlier step produces it."""
    issues = []
    for step in manifest.steps:
        if step.input is None:
            continue
        if step.input in manifest.earlier_outputs(step):
            continue  # Produced during execution; reported by check_dependencies
        if not fs.exists(step.input):
            issues.append(_error(
                f"Input file not found: {step.input} (step {step.sequence}, {step.processor})",
                step, step.input,
            ))
        elif not fs.is_dir(step.input) and fs.size(step.input) == 0:
            issues.append(_warning(
                f"Input file is empty: {step.input} (step {step.sequence})",
                step, step.input,
            ))
    return issues


def check_output_collisions(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """No two steps may declare the same output."""
    issues = []
    declared: dict[str, int] = {}
    for step in manifest.steps:
        if step.output is None:
            continue
        if step.output in declared:
            issues.append(_error(
                f'Duplicate output path "{step.output}" in steps '
                f"{declared[step.output]} and {step.sequence}",
                step, step.output,
            ))
        else:
            declared[step.output] = step.sequence
    return issues


def check_existing_outputs(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Outputs that already exist will be overwritten."""
    issues = []
    for step in manifest.steps:
        if step.output is None:
            continue
        if fs.exists(step.output):
            issues.append(_warning(
                f"File already exists: {step.output} (step {step.sequence} may overwrite)",
                step, step.output,
            ))
            if fs.is_dir(step.output):
                issues.append(_info("  Path is a directory", step, step.output))
                continue
            size = fs.size(step.output)
            if size == 0:
                issues.append(_info("  File is empty (safe to overwrite)", step, step.output))
            else:
                issues.append(_info(f"  File has {size} bytes of content", step, step.output))
        else:
            parent = os.path.dirname(step.output)
            if parent and not fs.exists(parent):
                issues.append(_warning(
                    f"Parent directory doesn't exist: {parent} (step {step.sequence})",
                    step, parent,
                ))
    return issues


def check_targets(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Every target_file must pre-exist or be produced by a strictly earlier step."""
    issues = []
    for step in manifest.steps:
        if step.target_file is None:
            continue
        if step.target_file in manifest.earlier_outputs(step):
            continue
        if not fs.exists(step.target_file):
            issues.append(_error(
                f"Target file doesn't exist: {step.target_file} "
                f"(step {step.sequence}, {step.processor} will fail)",
                step, step.target_file,
            ))
    return issues


def check_dependencies(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Surface inferred producer -> consumer edges for human review."""
    issues = []
    by_seq = {s.sequence: s for s in manifest.steps}
    for producer, consumer, path in manifest.dependencies():
        issues.append(_info(
            f"Step {consumer} depends on output from step {producer}: {path}",
            by_seq[consumer], path,
        ))
    return issues


def check_naming(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Outputs under type/hook directories follow fixed naming conventions."""
    issues = []
    for step in manifest.steps:
        if step.output is None:
            continue
        normalized = "/" + step.output.replace(os.sep, "/").lstrip("/")
        name = os.path.basename(step.output)
        for convention in NAMING_CONVENTIONS:
            if convention.directory in normalized:
                if not convention.check(name):
                    issues.append(_warning(
                        f"{convention.kind} file doesn't follow naming convention: {step.output}",
                        step, step.output,
                    ))
                    issues.append(_info(
                        f"  Expected pattern: {convention.pattern}", step, step.output,
                    ))
                break
    return issues


def _kebab(name: str) -> str:
    return re.sub(r"([A-Z])", r"-\1", name).lower()


def find_similar_files(output: str, fs: FilesystemView) -> list[str]:
    """Files next to `output` whose names look like it (normalized prefix match)."""
    directory = os.path.dirname(output)
    listing_dir = directory or "."
    if not fs.exists(listing_dir):
        return []

    base = os.path.splitext(os.path.basename(output))[0]
    prefix = base.lower()[:SIMILAR_PREFIX_LEN]
    kebab = _kebab(base)
    if not prefix:
        return []

    similar = []
    for name in fs.listdir(listing_dir):
        lower = name.lower()
        if prefix in lower or kebab in name:
            similar.append(os.path.join(directory, name) if directory else name)
    return similar


def check_similar_files(manifest: Manifest, fs: FilesystemView) -> list[ValidationIssue]:
    """Advisory only: flag likely duplicates of outputs that don't exist yet."""
    issues = []
    for step in manifest.steps:
        if step.output is None or fs.exists(step.output):
            continue
        similar = find_similar_files(step.output, fs)
        if similar:
            issues.append(_info(
                f"Similar files exist for {step.output}: " + ", ".join(similar),
                step, step.output,
            ))
    return issues


CHECKS = [
    check_inputs,
    check_output_collisions,
    check_existing_outputs,
    check_targets,
    check_dependencies,
    check_naming,
    check_similar_files,
]


def validate(manifest: Manifest, fs: Optional[FilesystemView] = None) -> list[ValidationIssue]:
    """Run every check and return all issues. Never short-circuits."""
    fs = fs if fs is not None else LocalFilesystem()
    issues = []
    for check in CHECKS:
        issues.extend(check(manifest, fs))
    return issues


def validate_manifest(manifest: Manifest, fs: Optional[FilesystemView] = None) -> ValidationReport:
    """validate() wrapped in a ValidationReport."""
    return ValidationReport(validate(manifest, fs))

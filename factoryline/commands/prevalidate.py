"""
pre-validate - Prove a manifest is achievable before running it.

Exit 0 when there are no errors (warnings allowed), 1 otherwise.
"""

from pathlib import Path

from factoryline.errors import ManifestLoadError
from factoryline.lib.config import PipelineConfig
from factoryline.manifest.fsview import LocalFilesystem
from factoryline.manifest.loader import load_manifest
from factoryline.manifest.models import ValidationReport
from factoryline.manifest.prevalidate import validate_manifest

SYMBOLS = {
    "error": "✗",
    "warning": "⚠",
    "info": "ℹ",
}


def print_report(report: ValidationReport) -> None:
    """Print issues grouped by severity, then the summary."""
    for title, issues in (
        ("Errors", report.errors),
        ("Warnings", report.warnings),
        ("Info", report.info),
    ):
        if not issues:
            continue
        print(f"=== {title} ===")
        for issue in issues:
            print(f"{SYMBOLS[issue.severity.value]} {issue.message}")
        print()

    print("=== Pre-Validation Report ===")
    print(f"Errors:   {len(report.errors)}")
    print(f"Warnings: {len(report.warnings)}")
    print(f"Info:     {len(report.info)}")
    print()

    if report.errors:
        print("✗ Manifest has critical issues that will cause failures")
        print()
        print("Recommendations:")
        print("  1. Fix missing input files")
        print("  2. Ensure target files exist for modification")
        print("  3. Resolve path conflicts")
    elif report.warnings:
        print("⚠ Manifest has warnings but can proceed")
        print()
        print("Considerations:")
        print("  1. Review files that will be overwritten")
        print("  2. Check naming conventions")
        print("  3. Verify parent directories exist")
    else:
        print("✓ Manifest validation passed with no issues")


def cmd_prevalidate(args, config: PipelineConfig) -> int:
    manifest_path = Path(args.manifest)

    print("Manifest Pre-Validation")
    print(f"Analyzing: {manifest_path}")
    print()

    try:
        manifest = load_manifest(manifest_path)
    except ManifestLoadError as e:
        print(f"✗ Failed to load manifest: {e}")
        return 1

    report = validate_manifest(manifest, LocalFilesystem(Path.cwd()))
    print_report(report)
    return 0 if report.ok else 1

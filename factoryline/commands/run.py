"""
run - Pre-validate a manifest, then execute its steps in order.
"""

import sys
from pathlib import Path

from factoryline.commands.prevalidate import print_report
from factoryline.errors import ManifestLoadError, StructuralManifestError
from factoryline.lib.config import PipelineConfig
from factoryline.manifest.fsview import LocalFilesystem
from factoryline.manifest.loader import load_manifest
from factoryline.manifest.prevalidate import validate_manifest
from factoryline.tools.pipeline import StepStatus, run_pipeline
from factoryline.tools.registry import ToolRegistry
from factoryline.tools.runner import ToolRunner

STATUS_SYMBOLS = {
    StepStatus.PASSED: "✓",
    StepStatus.FAILED: "✗",
    StepStatus.SKIPPED: "-",
}


def cmd_run(args, config: PipelineConfig, runner: ToolRunner = None) -> int:
    runner = runner or ToolRunner(ToolRegistry.from_config(config), config)

    try:
        manifest = load_manifest(Path(args.manifest))
    except ManifestLoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if not args.skip_validation:
        report = validate_manifest(manifest, LocalFilesystem(Path.cwd()))
        print_report(report)
        print()
        if not report.ok:
            error = StructuralManifestError(
                [i.message for i in report.errors], str(manifest.path),
            )
            print(f"ERROR: {error}", file=sys.stderr)
            print("Nothing was run.")
            return 1

    result = run_pipeline(manifest, runner, validate_first=False)

    print()
    print("=== Pipeline Results ===")
    for step in result.steps:
        line = f"{STATUS_SYMBOLS[step.status]} Step {step.sequence}: {step.processor}"
        if step.status == StepStatus.PASSED:
            line += f" ({step.duration:.1f}s)"
        elif step.status == StepStatus.FAILED:
            line += f" - {step.error}"
        else:
            line += " (skipped)"
        print(line)

    print()
    if result.ok:
        print(f"✓ All {len(result.steps)} steps completed in {result.duration:.1f}s")
        return 0

    failed = result.failed_step
    print(f"✗ Pipeline halted at step {failed.sequence} ({failed.processor})")
    return 1

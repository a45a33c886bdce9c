"""
Sequential manifest execution.

Steps run strictly in declared order as blocking child processes. Step N+1
never starts before step N exits, and the first failure halts the pipeline:
later steps may depend on the failed one, so they are marked skipped.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from factoryline.errors import (
    ProcessExecutionError,
    StructuralManifestError,
    ToolResolutionError,
)
from factoryline.manifest.fsview import FilesystemView
from factoryline.manifest.models import Manifest, ProcessorStep
from factoryline.manifest.prevalidate import validate_manifest
from factoryline.tools.runner import ToolRunner

logger = logging.getLogger(__name__)


class StepStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    sequence: int
    processor: str
    status: StepStatus
    exit_code: Optional[int] = None
    signal_name: Optional[str] = None
    duration: float = 0.0
    error: Optional[str] = None


@dataclass
class PipelineResult:
    steps: list[StepResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return all(s.status == StepStatus.PASSED for s in self.steps)

    @property
    def failed_step(self) -> Optional[StepResult]:
        for s in self.steps:
            if s.status == StepStatus.FAILED:
                return s
        return None


def step_args(step: ProcessorStep) -> list[str]:
    """Command-line flags describing a step's file contract."""
    args = []
    if step.input:
        args += ["--input", step.input]
    if step.output:
        args += ["--output", step.output]
    if step.target_file:
        args += ["--target-file", step.target_file]
    return args


def run_step(step: ProcessorStep, runner: ToolRunner) -> StepResult:
    """Run one step, converting runner failures into a StepResult."""
    start = time.time()
    try:
        result = runner.run(step.processor, step_args(step))
    except (ToolResolutionError, ProcessExecutionError) as e:
        return StepResult(
            sequence=step.sequence,
            processor=step.processor,
            status=StepStatus.FAILED,
            duration=time.time() - start,
            error=str(e),
        )

    if result.success:
        return StepResult(
            sequence=step.sequence,
            processor=step.processor,
            status=StepStatus.PASSED,
            exit_code=0,
            duration=result.duration,
        )

    if result.signal_name:
        message = f"killed with signal {result.signal_name}"
    else:
        message = f"exited with code {result.returncode}"
    return StepResult(
        sequence=step.sequence,
        processor=step.processor,
        status=StepStatus.FAILED,
        exit_code=result.exit_code,
        signal_name=result.signal_name,
        duration=result.duration,
        error=str(ProcessExecutionError(
            step.processor, message, step.sequence, result.exit_code, result.signal_name,
        )),
    )


def run_pipeline(
    manifest: Manifest,
    runner: ToolRunner,
    validate_first: bool = True,
    fs: Optional[FilesystemView] = None,
) -> PipelineResult:
    """Run every manifest step in order, halting at the first failure.

    Raises:
        StructuralManifestError: Pre-validation found errors; nothing was run
    """
    if validate_first:
        report = validate_manifest(manifest, fs)
        if not report.ok:
            raise StructuralManifestError(
                [i.message for i in report.errors],
                str(manifest.path) if manifest.path else None,
            )

    pipeline = PipelineResult()
    start = time.time()
    halted = False

    for step in manifest.steps:
        if halted:
            pipeline.steps.append(StepResult(step.sequence, step.processor, StepStatus.SKIPPED))
            continue

        logger.info(f"Running {step.describe()}")
        result = run_step(step, runner)
        pipeline.steps.append(result)

        if result.status == StepStatus.FAILED:
            logger.error(f"Step {step.sequence} ({step.processor}) failed: {result.error}")
            halted = True

    pipeline.duration = time.time() - start
    return pipeline

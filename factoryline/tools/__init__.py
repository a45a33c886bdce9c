"""
Tool resolution and execution.

Resolves logical processor names to executables and runs them one at a
time, either directly (run-tool) or as the steps of a manifest.
"""

from factoryline.tools.registry import ToolRegistry
from factoryline.tools.runner import ToolRunner, ToolRunResult
from factoryline.tools.pipeline import PipelineResult, StepResult, StepStatus, run_pipeline

__all__ = [
    "ToolRegistry",
    "ToolRunner",
    "ToolRunResult",
    "PipelineResult",
    "StepResult",
    "StepStatus",
    "run_pipeline",
]

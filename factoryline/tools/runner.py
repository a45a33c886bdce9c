"""
Tool runner: resolve a processor by name and run it as a child process.

Outcomes are distinguished:
- exit 0: success
- nonzero exit: failure, exit code mirrored
- killed by a signal: abnormal failure, reported with the signal name
"""

import json
import logging
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from factoryline.errors import ProcessExecutionError, ToolResolutionError
from factoryline.lib.config import PipelineConfig
from factoryline.tools.process import Spawner, forward_interrupts, signal_name, spawn_process
from factoryline.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ToolRunResult:
    """Result of running one tool."""
    tool: str
    path: Path
    returncode: int
    duration: float = 0.0
    interrupted: bool = False

    @property
    def signal_name(self) -> Optional[str]:
        return signal_name(self.returncode)

    @property
    def exit_code(self) -> int:
        """Exit code to mirror; signal termination maps to 1."""
        return 1 if self.returncode < 0 else self.returncode

    @property
    def success(self) -> bool:
        return self.returncode == 0


def build_command(path: Path, args: list[str], interpreters: Mapping[str, str]) -> list[str]:
    """Build argv for a tool, choosing an interpreter by file suffix."""
    interpreter = interpreters.get(path.suffix)
    if interpreter is None:
        return [str(path)] + list(args)
    if interpreter == "python":
        interpreter = sys.executable
    return [interpreter, str(path)] + list(args)


def pipeline_env(config: PipelineConfig, base_env: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Parent environment plus pipeline-specific variables."""
    env = dict(os.environ if base_env is None else base_env)
    env["PIPELINE_ROOT"] = config.pipeline_root
    env["BUILD_ROOT"] = config.build_root
    env["PIPELINE_LEGACY_MODE"] = "true" if config.is_legacy_mode() else "false"
    env["PIPELINE_CONFIG"] = json.dumps({
        "PIPELINE_ROOT": config.pipeline_root,
        "BUILD_ROOT": config.build_root,
        "paths": config.tools,
        "outputs": config.outputs,
    })
    return env


class ToolRunner:
    """Runs registered tools one at a time."""

    def __init__(
        self,
        registry: ToolRegistry,
        config: PipelineConfig,
        spawner: Spawner = spawn_process,
        base_env: Optional[Mapping[str, str]] = None,
    ):
        self.registry = registry
        self.config = config
        self.spawner = spawner
        self.base_env = base_env

    def resolve(self, name: str) -> Path:
        """Resolve and check a tool before anything is spawned.

        Raises:
            ToolResolutionError: Unknown name, or the file doesn't exist
        """
        path = self.registry.get_path(name)
        if not path.exists():
            raise ToolResolutionError(name, str(path))
        return path

    def run(self, name: str, args: list[str] | None = None) -> ToolRunResult:
        """Run a tool to completion, blocking until it exits.

        Raises:
            ToolResolutionError: Tool unknown or missing; nothing was spawned
            ProcessExecutionError: The child could not be started
        """
        args = list(args or [])
        path = self.resolve(name)
        cmd = build_command(path, args, self.config.interpreters)
        env = pipeline_env(self.config, self.base_env)

        logger.info(f"Running {name}: {' '.join(cmd)}")
        start = time.time()
        try:
            handle = self.spawner(cmd, env, Path.cwd())
        except OSError as e:
            raise ProcessExecutionError(name, f"Failed to start tool: {e}") from None

        interrupted = []

        def _note_interrupt():
            interrupted.append(True)
            print(f"\nInterrupted by user, forwarding to '{name}'", file=sys.stderr)

        with forward_interrupts(handle, _note_interrupt):
            returncode = handle.wait()

        result = ToolRunResult(
            tool=name,
            path=path,
            returncode=returncode,
            duration=time.time() - start,
            interrupted=bool(interrupted),
        )
        if result.signal_name:
            logger.warning(f"Tool '{name}' was killed with signal {result.signal_name}")
        elif not result.success:
            logger.info(f"Tool '{name}' exited with code {returncode}")
        return result

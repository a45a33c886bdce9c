"""Tests for factoryline.tools.pipeline module."""

import signal
from pathlib import Path
import pytest

from factoryline.errors import StructuralManifestError
from factoryline.lib.config import PipelineConfig
from factoryline.manifest.fsview import MemoryFilesystem
from factoryline.manifest.models import Manifest, ProcessorStep
from factoryline.tools.pipeline import StepStatus, run_pipeline, step_args
from factoryline.tools.registry import ToolRegistry
from factoryline.tools.runner import ToolRunner


class ScriptedSpawner:
    """Returns handles whose exit codes come from a per-tool script."""

    def __init__(self, codes):
        self.codes = codes
        self.order = []

    def __call__(self, cmd, env, cwd=None):
        tool = Path(cmd[1]).stem
        self.order.append(tool)
        return _Handle(self.codes[tool])


class _Handle:
    pid = 1

    def __init__(self, code):
        self.code = code

    def wait(self):
        return self.code

    def send_signal(self, sig):
        pass


@pytest.fixture
def tool_config(tmp_path):
    tools = {}
    for name in ("a", "b", "c"):
        (tmp_path / f"{name}.js").write_text("//")
        tools[name] = f"{name}.js"
    return PipelineConfig(base_dir=tmp_path, tools=tools, legacy_mode=False)


def make_runner(config, spawner):
    return ToolRunner(ToolRegistry.from_config(config), config, spawner=spawner, base_env={})


class TestStepArgs:
    """Test step_args()."""

    def test_only_present_paths(self):
        step = ProcessorStep(1, "a", input=None, output="x.ts", target_file="App.tsx")
        assert step_args(step) == ["--output", "x.ts", "--target-file", "App.tsx"]


class TestRunPipeline:
    """Test sequential execution and halting."""

    def test_all_steps_pass_in_order(self, tool_config):
        spawner = ScriptedSpawner({"a": 0, "b": 0, "c": 0})
        manifest = Manifest(steps=(
            ProcessorStep(1, "a"),
            ProcessorStep(2, "b"),
            ProcessorStep(3, "c"),
        ))
        result = run_pipeline(manifest, make_runner(tool_config, spawner), validate_first=False)
        assert result.ok
        assert spawner.order == ["a", "b", "c"]
        assert [s.status for s in result.steps] == [StepStatus.PASSED] * 3

    def test_first_failure_halts_and_skips_rest(self, tool_config):
        spawner = ScriptedSpawner({"a": 0, "b": 2, "c": 0})
        manifest = Manifest(steps=(
            ProcessorStep(1, "a"),
            ProcessorStep(2, "b"),
            ProcessorStep(3, "c"),
        ))
        result = run_pipeline(manifest, make_runner(tool_config, spawner), validate_first=False)
        assert not result.ok
        assert spawner.order == ["a", "b"]
        assert [s.status for s in result.steps] == [
            StepStatus.PASSED, StepStatus.FAILED, StepStatus.SKIPPED,
        ]
        assert result.failed_step.sequence == 2
        assert result.failed_step.exit_code == 2
        assert "[step 2 b] exited with code 2" == result.failed_step.error

    def test_signal_failure_reports_name(self, tool_config):
        spawner = ScriptedSpawner({"a": -signal.SIGKILL})
        manifest = Manifest(steps=(ProcessorStep(1, "a"),))
        result = run_pipeline(manifest, make_runner(tool_config, spawner), validate_first=False)
        step = result.failed_step
        assert step.signal_name == "SIGKILL"
        assert step.exit_code == 1
        assert "killed with signal SIGKILL" in step.error

    def test_unknown_processor_fails_step(self, tool_config):
        spawner = ScriptedSpawner({"a": 0})
        manifest = Manifest(steps=(ProcessorStep(1, "mystery"), ProcessorStep(2, "a")))
        result = run_pipeline(manifest, make_runner(tool_config, spawner), validate_first=False)
        assert result.steps[0].status == StepStatus.FAILED
        assert "Unknown tool 'mystery'" in result.steps[0].error
        assert result.steps[1].status == StepStatus.SKIPPED
        assert spawner.order == []

    def test_validation_gate_blocks_everything(self, tool_config):
        spawner = ScriptedSpawner({"a": 0, "b": 0})
        manifest = Manifest(steps=(
            ProcessorStep(1, "a", output="x.ts"),
            ProcessorStep(2, "b", output="x.ts"),
        ))
        with pytest.raises(StructuralManifestError) as exc_info:
            run_pipeline(manifest, make_runner(tool_config, spawner), fs=MemoryFilesystem())
        assert 'Duplicate output path "x.ts"' in str(exc_info.value)
        assert spawner.order == []

    def test_passes_file_contract_flags(self, tool_config):
        seen = []

        def spawner(cmd, env, cwd=None):
            seen.append(cmd)
            return _Handle(0)

        manifest = Manifest(steps=(ProcessorStep(1, "a", output="out.ts"),))
        run_pipeline(manifest, make_runner(tool_config, spawner), fs=MemoryFilesystem())
        assert seen[0][-2:] == ["--output", "out.ts"]

"""
run-tool - Run a registered tool by logical name.

The exit code mirrors the tool's exit code. A tool killed by a signal
exits 1. With no tool name, lists the registry and exits 1.
"""

import sys

from factoryline.errors import ProcessExecutionError, ToolResolutionError
from factoryline.lib.config import PipelineConfig
from factoryline.tools.registry import ToolRegistry
from factoryline.tools.runner import ToolRunner


def print_registry(registry: ToolRegistry, with_status: bool = True) -> None:
    print()
    print("Available tools:")
    for name, path, exists in registry.status():
        if with_status:
            mark = "✅" if exists else "❌"
            print(f"  {mark} {name:<20} → {path}")
        else:
            print(f"  {name:<20} → {path}")


def cmd_run_tool(args, config: PipelineConfig, runner: ToolRunner = None) -> int:
    registry = runner.registry if runner else ToolRegistry.from_config(config)
    runner = runner or ToolRunner(registry, config)

    if not args.tool:
        print("ERROR: Tool name required", file=sys.stderr)
        print()
        print("Usage: run-tool <tool-name> [args...]")
        print_registry(registry, with_status=False)
        return 1

    try:
        path = runner.resolve(args.tool)
    except ToolResolutionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print_registry(registry)
        return 1

    tool_args = list(args.tool_args or [])
    print(f"Running: {args.tool}")
    print(f"Path:    {path}")
    if tool_args:
        print(f"Args:    {' '.join(tool_args)}")
    print("-" * 50)
    sys.stdout.flush()

    try:
        result = runner.run(args.tool, tool_args)
    except ToolResolutionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print_registry(registry)
        return 1
    except ProcessExecutionError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print()
    if result.signal_name:
        print(f"Tool '{args.tool}' was killed with signal {result.signal_name}")
    elif result.success:
        print(f"Tool '{args.tool}' completed successfully")
    else:
        print(f"Tool '{args.tool}' exited with code {result.returncode}")
    return result.exit_code

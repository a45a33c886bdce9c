"""
Tool registry: logical processor name -> executable path.

Constructed explicitly from configuration and passed to whoever needs it,
so tests can hand in a registry pointing at fake tools.
"""

from pathlib import Path
from typing import Optional

from factoryline.errors import ToolResolutionError
from factoryline.lib.config import PipelineConfig


class ToolRegistry:
    """Maps tool names to paths relative to `root`."""

    def __init__(self, tools: dict[str, str], root: Optional[Path] = None):
        self._tools = dict(tools)
        self.root = root if root is not None else Path.cwd()

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "ToolRegistry":
        return cls(config.tools, config.base_dir)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def get_path(self, name: str) -> Path:
        """Resolve a tool name to its path.

        Raises:
            ToolResolutionError: If the name is not registered
        """
        if name not in self._tools:
            raise ToolResolutionError(name)
        path = Path(self._tools[name])
        return path if path.is_absolute() else self.root / path

    def validate_tool(self, name: str) -> bool:
        """True if the tool is registered and its file exists."""
        if name not in self._tools:
            return False
        return self.get_path(name).exists()

    def get_available_tools(self) -> dict[str, str]:
        """All registered tools (name -> configured path)."""
        return dict(self._tools)

    def status(self) -> list[tuple[str, str, bool]]:
        """(name, configured path, exists) for every tool, sorted by name."""
        return [
            (name, path, self.validate_tool(name))
            for name, path in sorted(self._tools.items())
        ]

"""
Pipeline configuration.

Loads pipeline.yaml to determine where tools live and where outputs go.
If no config file exists, returns defaults matching the standard factory layout.

Environment overrides (applied after the file):
- PIPELINE_ROOT: root of the pipeline tool tree (default ".pipeline")
- BUILD_ROOT: root of build outputs (default ".build")
- PIPELINE_LEGACY_MODE: "true" forces legacy output paths
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "pipeline.yaml"

# Logical tool name -> path relative to the working directory.
DEFAULT_TOOLS = {
    "requirements-parser": ".pipeline/2-factory/processors/requirements-parser/REQUIREMENTS-PARSER.js",
    "story-builder": ".pipeline/2-factory/processors/story-builder/STORY-BUILDER.js",
    "concept-generator": ".pipeline/2-factory/processors/concept-generator/CONCEPT-GENERATOR.js",
    "navigation-generator": ".pipeline/2-factory/generators/navigation-generator.js",
    "rules-cli": ".pipeline/05-data-tools/business-rules-engine/business-rules-configurator/rules-cli.js",
    "control-panel": ".pipeline/06-control-panel/server.js",
}

# File suffix -> interpreter. Paths with other suffixes are executed directly.
DEFAULT_INTERPRETERS = {
    ".js": "node",
    ".mjs": "node",
    ".py": "python",
}

# Requirements that must never be left unmapped, with the story category
# they belong to when text matching fails.
DEFAULT_CRITICAL_REQUIREMENTS = {
    "NAV-004": "workorders",  # work orders reachable in max 3 clicks
}

DEFAULT_OUTPUTS = {
    "concept": ".build/current/concept",
    "prototype": ".build/current/prototype",
    "production": ".build/current/production",
    "logs": ".build/logs",
}

LEGACY_OUTPUTS = {
    "concept": ".pipeline/01-concept-line/outputs",
    "prototype": ".pipeline/02-prototype-line/outputs",
}


@dataclass
class PipelineConfig:
    """Pipeline configuration from pipeline.yaml."""
    pipeline_root: str = ".pipeline"
    build_root: str = ".build"
    requirements_path: str = ".pipeline/2-factory/validation/requirements.json"
    tools: dict[str, str] = field(default_factory=lambda: DEFAULT_TOOLS.copy())
    interpreters: dict[str, str] = field(default_factory=lambda: DEFAULT_INTERPRETERS.copy())
    critical_requirements: dict[str, str] = field(
        default_factory=lambda: DEFAULT_CRITICAL_REQUIREMENTS.copy()
    )
    outputs: dict[str, str] = field(default_factory=lambda: DEFAULT_OUTPUTS.copy())
    legacy_mode: Optional[bool] = None  # None = infer from build_root existence
    base_dir: Path = field(default_factory=Path.cwd)

    def resolve(self, relpath: str) -> Path:
        """Resolve a config-relative path against base_dir."""
        path = Path(relpath)
        return path if path.is_absolute() else self.base_dir / path

    def is_legacy_mode(self) -> bool:
        """True when legacy output paths are in effect.

        Explicit setting wins; otherwise legacy mode is assumed until the
        build root exists.
        """
        if self.legacy_mode is not None:
            return self.legacy_mode
        return not self.resolve(self.build_root).exists()

    def get_output_path(self, stage: str) -> str:
        """Get output directory for a build stage, honouring legacy mode."""
        if self.is_legacy_mode():
            path = LEGACY_OUTPUTS.get(stage)
            fallback = f"{self.pipeline_root}/{stage}/output"
        else:
            path = self.outputs.get(stage)
            fallback = f"{self.build_root}/current/{stage}"
        if path is None:
            logger.warning(f"Unknown stage '{stage}', using fallback: {fallback}")
            return fallback
        return path


_MERGED_KEYS = ("tools", "interpreters", "critical_requirements", "outputs")
_SCALAR_KEYS = ("pipeline_root", "build_root", "requirements_path")


def load_pipeline_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> PipelineConfig:
    """Load pipeline.yaml and return PipelineConfig.

    If config_path is None, looks for pipeline.yaml in the working directory.
    A missing file yields defaults. Mapping sections (tools, interpreters,
    critical_requirements, outputs) are merged over the defaults, so a project
    only lists what it changes.
    """
    env = os.environ if env is None else env

    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    config = PipelineConfig(base_dir=config_path.parent.resolve())

    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text()) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
            _apply(config, data)
        except (yaml.YAMLError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse {config_path}: {e}")
            config = PipelineConfig(base_dir=config_path.parent.resolve())

    if env.get("PIPELINE_ROOT"):
        config.pipeline_root = env["PIPELINE_ROOT"]
    if env.get("BUILD_ROOT"):
        config.build_root = env["BUILD_ROOT"]
    if env.get("PIPELINE_LEGACY_MODE") == "true":
        config.legacy_mode = True

    return config


def _apply(config: PipelineConfig, data: dict) -> None:
    for key in _SCALAR_KEYS:
        if key in data:
            setattr(config, key, str(data[key]))
    for key in _MERGED_KEYS:
        if key in data:
            section = data[key] or {}
            if not isinstance(section, dict):
                raise ValueError(f"'{key}' must be a mapping")
            getattr(config, key).update({str(k): str(v) for k, v in section.items()})
    if "legacy_mode" in data:
        config.legacy_mode = bool(data["legacy_mode"])

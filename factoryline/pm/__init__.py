"""
Requirements and stories for factoryline.

Turns a sub-module spec into user stories and guarantees every mandatory
requirement is traceable to an acceptance criterion.
"""

from factoryline.pm.models import AcceptanceCriterion, Requirement, RequirementSet, Story
from factoryline.pm.requirements import load_requirements, parse_requirements
from factoryline.pm.stories import build_stories, parse_story_markdown, render_story_markdown
from factoryline.pm.traceability import MappingResult, map_requirements

__all__ = [
    "AcceptanceCriterion",
    "Requirement",
    "RequirementSet",
    "Story",
    "load_requirements",
    "parse_requirements",
    "build_stories",
    "parse_story_markdown",
    "render_story_markdown",
    "MappingResult",
    "map_requirements",
]

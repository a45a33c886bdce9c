"""
Sub-module spec parsing.

Extracts story drafts from a spec markdown file:

    # 1.1.1 Master View
    Sub-Module ID: 1.1.1

    ## User Stories

    ### Work Orders Column
    Category: workorders
    Priority: High
    As a user, I want to see work orders for the selected location...
    - Display work orders for selected location only
    - Work orders must be reachable in maximum 3 clicks from page load

    ## Validation Criteria
    - Initial page render completes in less than 1 second
"""

import re
from dataclasses import dataclass, field
from typing import Optional

SUBMODULE_RE = re.compile(r"Sub-Module ID:\s*(\S+)", re.IGNORECASE)
META_RE = re.compile(r"^\**(Category|Priority|Phase)\**\s*:\**\s*(.+?)\s*$", re.IGNORECASE)
BULLET_RE = re.compile(r"^\s*[-*]\s+(?:\[[ xX]\]\s+)?(.+?)\s*$")

TITLE_SEARCH_LINES = 10


@dataclass
class StoryDraft:
    """A story as written in a sub-module spec, before ids are assigned."""
    title: str
    description: str = ""
    category: Optional[str] = None
    priority: Optional[str] = None
    phase: Optional[str] = None
    items: list[str] = field(default_factory=list)


@dataclass
class SpecData:
    title: str = ""
    sub_module: str = ""
    stories: list[StoryDraft] = field(default_factory=list)
    validation_criteria: list[str] = field(default_factory=list)


def extract_section(lines: list[str], heading: str) -> Optional[list[str]]:
    """Lines under the first `## ...heading...` up to the next `## ` heading."""
    start = None
    for i, line in enumerate(lines):
        if line.startswith("## ") and heading.lower() in line.lower():
            start = i
            break
    if start is None:
        return None

    section = []
    for line in lines[start + 1:]:
        if line.startswith("## "):
            break
        section.append(line)
    return section


def parse_story_section(lines: list[str]) -> list[StoryDraft]:
    drafts = []
    current = None
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("###"):
            if current:
                drafts.append(current)
            current = StoryDraft(title=stripped.lstrip("#").strip())
            continue
        if current is None or not stripped:
            continue

        meta = META_RE.match(stripped)
        bullet = BULLET_RE.match(line)
        if meta:
            setattr(current, meta.group(1).lower(), meta.group(2).strip())
        elif bullet:
            current.items.append(bullet.group(1))
        elif not current.description:
            current.description = stripped
        else:
            current.description += " " + stripped

    if current:
        drafts.append(current)
    return drafts


def parse_spec(content: str) -> SpecData:
    """Parse a sub-module spec into title, sub-module id, stories and validation criteria."""
    lines = content.splitlines()
    spec = SpecData()

    for idx, line in enumerate(lines):
        m = SUBMODULE_RE.search(line)
        if m and not spec.sub_module:
            spec.sub_module = m.group(1).strip("*` ")
        if idx < TITLE_SEARCH_LINES and line.startswith("# ") and not spec.title:
            spec.title = line[2:].strip()

    story_lines = extract_section(lines, "User Stories")
    if story_lines:
        spec.stories = parse_story_section(story_lines)

    validation_lines = extract_section(lines, "Validation Criteria")
    if validation_lines:
        for line in validation_lines:
            m = BULLET_RE.match(line)
            if m:
                spec.validation_criteria.append(m.group(1))

    return spec

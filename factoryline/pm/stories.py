"""
Story generation and markdown serialization.

Stories are written one markdown file per story:
  <output-dir>/US-111-003-work-orders-column.md

Acceptance criteria are checklist items annotated with the requirement ids
mapped to them, and can be read back with parse_story_markdown():
  - [ ] AC-005: Work orders reachable in max 3 clicks [Requirements: NAV-004]
"""

import re
from pathlib import Path
from typing import Optional

from factoryline.errors import StoryGenerationError
from factoryline.pm.models import AcceptanceCriterion, RequirementSet, Story
from factoryline.pm.specparse import SpecData

STORY_PREFIX = "US"
VALIDATION_STORY_TITLE = "Validation Criteria"

HEADING_RE = re.compile(r"^#\s+(\S+?):\s*(.+?)\s*$")
FIELD_RE = re.compile(r"^\*\*(Priority|Category|Phase)\*\*:\s*(.+?)\s*$")
CRITERION_RE = re.compile(
    r"^- \[[ xX]\] (AC-\d+): (.*?)(?: \[Requirements: ([^\]]*)\])?\s*$"
)

_DROP_FROM_CATEGORY = {"column", "and", "the"}


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9-]+", "-", title.lower().strip())
    return re.sub(r"-{2,}", "-", slug).strip("-")


def default_category(title: str) -> str:
    """'Work Orders Column' -> 'workorders'."""
    words = [w for w in re.findall(r"[a-z0-9]+", title.lower()) if w not in _DROP_FROM_CATEGORY]
    return "".join(words) or "general"


def story_id_prefix(sub_module: str) -> str:
    digits = re.sub(r"\D", "", sub_module)
    return f"{STORY_PREFIX}-{digits}" if digits else STORY_PREFIX


def build_stories(spec: SpecData) -> list[Story]:
    """Create stories (with criteria, no requirement ids yet) from parsed spec data.

    Raises:
        StoryGenerationError: The spec yields no stories at all
    """
    prefix = story_id_prefix(spec.sub_module)
    stories = []

    for draft in spec.stories:
        if not draft.items:
            continue
        stories.append(Story(
            id=f"{prefix}-{len(stories) + 1:03d}",
            title=draft.title,
            description=draft.description,
            priority=draft.priority or "Medium",
            category=(draft.category or default_category(draft.title)).lower(),
            phase=draft.phase,
            criteria=[
                AcceptanceCriterion(id=f"AC-{i:03d}", text=text)
                for i, text in enumerate(draft.items, 1)
            ],
        ))

    if spec.validation_criteria:
        stories.append(Story(
            id=f"{prefix}-{len(stories) + 1:03d}",
            title=VALIDATION_STORY_TITLE,
            description="As a user, I want the module to meet its validation criteria",
            priority="High",
            category="validation",
            criteria=[
                AcceptanceCriterion(id=f"AC-{i:03d}", text=text)
                for i, text in enumerate(spec.validation_criteria, 1)
            ],
        ))

    if not stories:
        raise StoryGenerationError(
            "Spec has no user stories with acceptance criteria "
            "(expected '## User Stories' with '### <title>' and '- <criterion>' items)"
        )
    return stories


def story_filename(story: Story) -> str:
    return f"{story.id}-{slugify(story.title)}.md"


def render_story_markdown(story: Story, requirement_set: Optional[RequirementSet] = None) -> str:
    """Render a story as markdown with requirement-annotated acceptance criteria."""
    requirement_ids = story.requirement_ids

    lines = [
        f"# {story.id}: {story.title}",
        "",
        f"**Priority**: {story.priority}",
        f"**Category**: {story.category}",
    ]
    if story.phase:
        lines.append(f"**Phase**: {story.phase}")
    lines.extend([
        f"**Requirements Mapped**: {len(requirement_ids)}",
        "",
        "## User Story",
        "",
        story.description or "_No description provided._",
        "",
        "## Acceptance Criteria",
        "",
    ])

    for ac in story.criteria:
        annotation = ""
        if ac.requirement_ids:
            annotation = f" [Requirements: {', '.join(ac.requirement_ids)}]"
        lines.append(f"- [ ] {ac.id}: {ac.text}{annotation}")
    lines.append("")

    lines.extend(["## Mapped Requirements", ""])
    if requirement_ids:
        for req_id in requirement_ids:
            req = requirement_set.get(req_id) if requirement_set else None
            lines.append(f"- **{req_id}**: {req.text if req else 'Unknown requirement'}")
    else:
        lines.append("No requirements directly mapped to this story.")
    lines.append("")

    lines.extend([
        "## Definition of Done",
        "",
        "- [ ] All acceptance criteria met",
        "- [ ] All mapped requirements validated",
        "- [ ] Unit tests written and passing",
        "- [ ] Code review completed",
        "",
    ])
    return "\n".join(lines)


def write_story_markdown(output_dir: Path, story: Story, requirement_set: Optional[RequirementSet] = None) -> Path:
    path = output_dir / story_filename(story)
    path.write_text(render_story_markdown(story, requirement_set), encoding="utf-8")
    return path


def parse_story_markdown(content: str) -> Story:
    """Read a rendered story back, including the requirement ids per criterion.

    Raises:
        ValueError: No '# <id>: <title>' heading found
    """
    story = None
    section = None

    for line in content.splitlines():
        if story is None:
            m = HEADING_RE.match(line)
            if m:
                story = Story(id=m.group(1), title=m.group(2))
            continue

        if line.startswith("## "):
            section = line[3:].strip()
            continue

        if section is None:
            m = FIELD_RE.match(line)
            if m:
                setattr(story, m.group(1).lower(), m.group(2))
        elif section == "User Story" and line.strip():
            story.description = (story.description + " " + line.strip()).strip()
        elif section == "Acceptance Criteria":
            m = CRITERION_RE.match(line)
            if m:
                ids = [r.strip() for r in (m.group(3) or "").split(",") if r.strip()]
                story.criteria.append(AcceptanceCriterion(m.group(1), m.group(2), ids))

    if story is None:
        raise ValueError("No story heading found")
    return story

"""
Traceability outputs: the stories manifest (JSON) and the requirements
traceability report (markdown).
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from factoryline.lib.validate import write_validated_json
from factoryline.pm.models import RequirementSet, Story
from factoryline.pm.stories import story_filename, write_story_markdown
from factoryline.pm.traceability import MappingResult

logger = logging.getLogger(__name__)

GENERATOR = "STORY-BUILDER"
GENERATOR_VERSION = "2.0"
STORIES_MANIFEST = "stories-manifest.json"
TRACEABILITY_REPORT = "requirements-traceability.md"


def coverage(mapped: int, total: int) -> str:
    if total == 0:
        return "n/a"
    return f"{mapped / total * 100:.1f}%"


def build_stories_manifest(
    stories: list[Story],
    requirement_set: RequirementSet,
    result: MappingResult,
    sub_module: str = "",
    timestamp: Optional[str] = None,
) -> dict:
    mappings = {}
    for req_id, m in result.mappings.items():
        req = requirement_set.get(req_id)
        mappings[req_id] = {
            "storyId": m.story_id,
            "acceptanceCriteria": m.criterion_id,
            "requirement": req.text if req else "",
            "rule": m.rule,
            "forced": m.forced,
        }

    return {
        "generator": GENERATOR,
        "version": GENERATOR_VERSION,
        "timestamp": timestamp or datetime.now().isoformat(),
        "subModule": sub_module,
        "totalStories": len(stories),
        "totalRequirements": len(requirement_set.requirements),
        "mappedRequirements": len(result.mappings),
        "unmappedRequirements": result.unmapped,
        "stories": [
            {
                "id": s.id,
                "title": s.title,
                "file": story_filename(s),
                "requirementCount": len(s.requirement_ids),
                "requirementIds": s.requirement_ids,
            }
            for s in stories
        ],
        "requirementMappings": mappings,
    }


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def render_traceability_report(
    requirement_set: RequirementSet,
    result: MappingResult,
    timestamp: Optional[str] = None,
) -> str:
    total = len(requirement_set.requirements)
    mapped = sum(1 for r in requirement_set.requirements if r.id in result.mappings)

    lines = [
        "# Requirements Traceability Report",
        "",
        f"**Generated**: {timestamp or datetime.now().isoformat()}",
        f"**Total Requirements**: {total}",
        f"**Mapped Requirements**: {mapped} ({coverage(mapped, total)})",
        f"**Forced Mappings**: {len(result.forced)}",
        f"**Unmapped Requirements**: {len(result.unmapped)}",
        "",
    ]

    if result.gaps or result.unmapped_mandatory:
        lines.extend([
            "## ⚠️ TRACEABILITY GAPS",
            "",
            "Mandatory requirements below are not traceable to any acceptance criterion.",
            "Add acceptance criteria for them before continuing the pipeline.",
            "",
        ])
        for req_id in result.unmapped_mandatory:
            req = requirement_set.get(req_id)
            gap = next((g for g in result.gaps if g.requirement_id == req_id), None)
            reason = f" ({gap.reason})" if gap and gap.reason else ""
            lines.append(f"- **{req_id}**: {req.text if req else 'Unknown requirement'}{reason}")
        lines.append("")

    lines.extend([
        "## Requirement to Story Mapping",
        "",
        "| Requirement ID | Requirement Text | Story ID | Acceptance Criteria |",
        "|---------------|------------------|----------|-------------------|",
    ])
    for req in requirement_set.requirements:
        m = result.mappings.get(req.id)
        if m:
            criterion = f"{m.criterion_id} (forced)" if m.forced else m.criterion_id
            lines.append(f"| {req.id} | {_cell(req.text)} | {m.story_id} | {criterion} |")
        else:
            lines.append(f"| {req.id} | {_cell(req.text)} | ❌ NOT MAPPED | - |")
    lines.append("")

    lines.extend(["## Coverage by Category", ""])
    for category, reqs in requirement_set.by_category().items():
        cat_mapped = sum(1 for r in reqs if r.id in result.mappings)
        lines.append(f"- **{category}**: {cat_mapped}/{len(reqs)} ({coverage(cat_mapped, len(reqs))})")
    if not requirement_set.requirements:
        lines.append("No requirements loaded.")
    lines.append("")

    lines.extend(["## Critical Requirements Status", "", "### ✅ Mapped Critical Requirements", ""])
    mapped_critical = [r for r in requirement_set.mandatory_ids if r in result.mappings]
    for req_id in mapped_critical:
        req = requirement_set.get(req_id)
        lines.append(f"- **{req_id}**: {req.text if req else ''} → {result.mappings[req_id].story_id}")
    if not mapped_critical:
        lines.append("None")
    lines.extend(["", "### ❌ Unmapped Critical Requirements", ""])
    if result.unmapped_mandatory:
        for req_id in result.unmapped_mandatory:
            req = requirement_set.get(req_id)
            lines.append(f"- **{req_id}**: {req.text if req else 'Unknown requirement'}")
    else:
        lines.append("None - All critical requirements mapped!")
    lines.append("")

    if result.forced:
        lines.extend([
            "## Forced Mappings",
            "",
            "No acceptance criterion matched these requirements; they were placed",
            "on the best-fit criterion by category. Review the placement.",
            "",
        ])
        for m in result.forced:
            lines.append(f"- **{m.requirement_id}** → {m.story_id}/{m.criterion_id}")
        lines.append("")

    if result.unmapped_optional:
        lines.extend(["## Unmapped Optional Requirements", ""])
        for req_id in result.unmapped_optional:
            req = requirement_set.get(req_id)
            lines.append(f"- **{req_id}**: {req.text if req else ''}")
        lines.append("")

    return "\n".join(lines)


def write_outputs(
    output_dir: Path,
    stories: list[Story],
    requirement_set: RequirementSet,
    result: MappingResult,
    sub_module: str = "",
) -> list[Path]:
    """Write story markdown files, the stories manifest and the traceability report.

    Returns:
        Paths written, in order
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().isoformat()
    written = []

    for story in stories:
        written.append(write_story_markdown(output_dir, story, requirement_set))

    manifest = build_stories_manifest(stories, requirement_set, result, sub_module, timestamp)
    manifest_path = output_dir / STORIES_MANIFEST
    write_validated_json(manifest, "stories-manifest", manifest_path)
    written.append(manifest_path)

    report_path = output_dir / TRACEABILITY_REPORT
    report_path.write_text(render_traceability_report(requirement_set, result, timestamp), encoding="utf-8")
    written.append(report_path)

    logger.info(f"Wrote {len(written)} files to {output_dir}")
    return written

"""Tests for factoryline.pm.report module."""

import json

from factoryline.lib.validate import validate
from factoryline.pm.models import AcceptanceCriterion, Requirement, RequirementSet, Story
from factoryline.pm.report import (
    GENERATOR,
    STORIES_MANIFEST,
    TRACEABILITY_REPORT,
    build_stories_manifest,
    coverage,
    render_traceability_report,
    write_outputs,
)
from factoryline.pm.traceability import map_requirements


def make_inputs():
    stories = [
        Story("US-111-001", "Work Orders Column", category="workorders", criteria=[
            AcceptanceCriterion("AC-001", "Display work orders for the selected location"),
        ]),
        Story("US-111-002", "Validation Criteria", category="validation", criteria=[
            AcceptanceCriterion("AC-001", "Initial render in less than 1 second"),
        ]),
    ]
    reqs = RequirementSet(
        requirements=(
            Requirement("NAV-004", "max 3 clicks", priority="mandatory"),
            Requirement("PERF-001", "Render in 1 second", category="performance"),
            Requirement("UI-009", "Supports dark mode", category="theme"),
        ),
        mandatory_ids=("NAV-004",),
    )
    result = map_requirements(reqs, stories)
    return stories, reqs, result


class TestCoverage:
    """Test coverage()."""

    def test_percentage(self):
        assert coverage(1, 3) == "33.3%"

    def test_zero_requirements(self):
        assert coverage(0, 0) == "n/a"


class TestStoriesManifest:
    """Test build_stories_manifest()."""

    def test_matches_schema(self):
        stories, reqs, result = make_inputs()
        data = build_stories_manifest(stories, reqs, result, "1.1.1", "2026-01-01T00:00:00")
        validate(data, "stories-manifest")
        assert data["generator"] == GENERATOR
        assert data["mappedRequirements"] == 2
        assert data["unmappedRequirements"] == ["UI-009"]
        assert data["requirementMappings"]["NAV-004"]["forced"] is True
        assert data["requirementMappings"]["PERF-001"]["storyId"] == "US-111-002"
        assert data["stories"][0]["file"] == "US-111-001-work-orders-column.md"


class TestTraceabilityReport:
    """Test render_traceability_report()."""

    def test_sections(self):
        _, reqs, result = make_inputs()
        report = render_traceability_report(reqs, result, "2026-01-01T00:00:00")
        assert "**Mapped Requirements**: 2 (66.7%)" in report
        assert "| UI-009 | Supports dark mode | ❌ NOT MAPPED | - |" in report
        assert "| NAV-004 | max 3 clicks | US-111-001 | AC-001 (forced) |" in report
        assert "None - All critical requirements mapped!" in report
        assert "## Forced Mappings" in report
        assert "## Unmapped Optional Requirements" in report
        assert "TRACEABILITY GAPS" not in report

    def test_gap_section(self):
        reqs = RequirementSet(mandatory_ids=("GHOST-1",))
        result = map_requirements(reqs, [])
        report = render_traceability_report(reqs, result)
        assert "## ⚠️ TRACEABILITY GAPS" in report
        assert "**GHOST-1**" in report
        assert "No requirements loaded." in report

    def test_escapes_pipes(self):
        reqs = RequirementSet(requirements=(Requirement("A-1", "either a | b"),))
        result = map_requirements(reqs, [], critical={})
        assert "either a \\| b" in render_traceability_report(reqs, result)


class TestWriteOutputs:
    """Test write_outputs()."""

    def test_writes_all_files(self, tmp_path):
        stories, reqs, result = make_inputs()
        out = tmp_path / "stories"
        written = write_outputs(out, stories, reqs, result, "1.1.1")
        names = [p.name for p in written]
        assert names == [
            "US-111-001-work-orders-column.md",
            "US-111-002-validation-criteria.md",
            STORIES_MANIFEST,
            TRACEABILITY_REPORT,
        ]
        manifest = json.loads((out / STORIES_MANIFEST).read_text(encoding="utf-8"))
        assert manifest["subModule"] == "1.1.1"
        story_md = (out / "US-111-001-work-orders-column.md").read_text(encoding="utf-8")
        assert "[Requirements: NAV-004]" in story_md

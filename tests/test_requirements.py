"""Tests for factoryline.pm.requirements module."""

import json
import pytest

from factoryline.lib.validate import SchemaValidationError
from factoryline.pm.requirements import load_requirements, parse_requirements


class TestParseRequirements:
    """Test parse_requirements()."""

    def test_explicit_mandatory_list(self):
        reqs = parse_requirements({
            "requirements": [
                {"id": "NAV-004", "text": "max 3 clicks", "priority": "optional"},
                {"id": "LAY-001", "text": "three column layout", "category": "layout"},
            ],
            "mandatoryRequirements": ["NAV-004"],
        })
        assert reqs.mandatory_ids == ("NAV-004",)
        assert reqs.get("LAY-001").category == "layout"

    def test_mandatory_from_priority(self):
        reqs = parse_requirements({
            "requirements": [
                {"id": "A", "text": "a", "priority": "mandatory"},
                {"id": "B", "text": "b"},
            ],
        })
        assert reqs.mandatory_ids == ("A",)
        assert reqs.get("B").priority == "optional"
        assert reqs.get("B").category == "general"

    def test_warns_on_undefined_mandatory(self, caplog):
        reqs = parse_requirements({"requirements": [], "mandatoryRequirements": ["GHOST-1"]})
        assert reqs.mandatory_ids == ("GHOST-1",)
        assert "GHOST-1 has no definition" in caplog.text

    def test_by_category_keeps_order(self):
        reqs = parse_requirements({
            "requirements": [
                {"id": "A", "text": "a", "category": "layout"},
                {"id": "B", "text": "b", "category": "data"},
                {"id": "C", "text": "c", "category": "layout"},
            ],
        })
        groups = reqs.by_category()
        assert list(groups) == ["layout", "data"]
        assert [r.id for r in groups["layout"]] == ["A", "C"]


class TestLoadRequirements:
    """Test load_requirements()."""

    def test_missing_file_is_empty_set(self, tmp_path, caplog):
        reqs = load_requirements(tmp_path / "requirements.json")
        assert reqs.requirements == ()
        assert "without requirement tracking" in caplog.text

    def test_loads_file(self, tmp_path):
        path = tmp_path / "requirements.json"
        path.write_text(json.dumps({
            "requirements": [{"id": "NAV-004", "text": "max 3 clicks", "priority": "mandatory"}],
        }))
        reqs = load_requirements(path)
        assert reqs.get("NAV-004").is_mandatory

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / "requirements.json"
        path.write_text(json.dumps({"requirements": [{"text": "no id"}]}))
        with pytest.raises(SchemaValidationError):
            load_requirements(path)

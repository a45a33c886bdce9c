"""Tests for factoryline.manifest.prevalidate module."""

from factoryline.manifest.fsview import LocalFilesystem, MemoryFilesystem
from factoryline.manifest.models import Manifest, ProcessorStep, Severity
from factoryline.manifest.prevalidate import (
    check_similar_files,
    find_similar_files,
    validate,
    validate_manifest,
)


def make_manifest(*steps):
    return Manifest(steps=tuple(steps))


class TestInputsAndCollisions:
    """Errors that make a manifest structurally impossible."""

    def test_duplicate_output_is_single_error(self):
        manifest = make_manifest(
            ProcessorStep(1, "A", input=None, output="x.ts"),
            ProcessorStep(2, "B", input="x.ts", output="x.ts"),
        )
        report = validate_manifest(manifest, MemoryFilesystem())
        assert len(report.errors) == 1
        assert report.errors[0].message == 'Duplicate output path "x.ts" in steps 1 and 2'
        assert not report.ok

    def test_missing_input_is_single_error(self):
        manifest = make_manifest(ProcessorStep(1, "A", input="missing.json", output="out.ts"))
        report = validate_manifest(manifest, MemoryFilesystem())
        assert len(report.errors) == 1
        assert "missing.json" in report.errors[0].message
        assert report.errors[0].sequence == 1

    def test_input_produced_earlier_is_deferred(self):
        manifest = make_manifest(
            ProcessorStep(1, "A", output="gen/a.json"),
            ProcessorStep(2, "B", input="gen/a.json", output="gen/b.ts"),
        )
        report = validate_manifest(manifest, MemoryFilesystem({"gen/.keep": ""}))
        assert report.ok
        assert any(
            i.message == "Step 2 depends on output from step 1: gen/a.json"
            for i in report.info
        )

    def test_input_produced_later_is_still_missing(self):
        manifest = make_manifest(
            ProcessorStep(1, "A", input="a.json", output="b.ts"),
            ProcessorStep(2, "B", output="a.json"),
        )
        report = validate_manifest(manifest, MemoryFilesystem())
        assert len(report.errors) == 1

    def test_empty_input_is_warning(self):
        manifest = make_manifest(ProcessorStep(1, "A", input="in.json", output="out.ts"))
        report = validate_manifest(manifest, MemoryFilesystem({"in.json": ""}))
        assert report.ok
        assert any("Input file is empty" in w.message for w in report.warnings)


class TestTargets:
    """target_file must exist or be produced by an earlier step."""

    def test_missing_target_is_error(self):
        manifest = make_manifest(ProcessorStep(1, "patcher", target_file="src/App.tsx"))
        report = validate_manifest(manifest, MemoryFilesystem())
        assert len(report.errors) == 1
        assert "Target file doesn't exist: src/App.tsx" in report.errors[0].message

    def test_existing_target_ok(self):
        manifest = make_manifest(ProcessorStep(1, "patcher", target_file="src/App.tsx"))
        report = validate_manifest(manifest, MemoryFilesystem({"src/App.tsx": "x"}))
        assert report.ok

    def test_target_produced_earlier_ok(self):
        manifest = make_manifest(
            ProcessorStep(1, "gen", output="App.tsx"),
            ProcessorStep(2, "patcher", target_file="App.tsx"),
        )
        assert validate_manifest(manifest, MemoryFilesystem()).ok


class TestWarnings:
    """Warnings and info never change the verdict."""

    def test_existing_output_warns_with_size(self):
        manifest = make_manifest(ProcessorStep(1, "A", output="out.ts"))
        report = validate_manifest(manifest, MemoryFilesystem({"out.ts": "abc"}))
        assert report.ok
        assert any("File already exists: out.ts" in w.message for w in report.warnings)
        assert any("File has 3 bytes of content" in i.message for i in report.info)

    def test_existing_empty_output_is_safe(self):
        manifest = make_manifest(ProcessorStep(1, "A", output="out.ts"))
        report = validate_manifest(manifest, MemoryFilesystem({"out.ts": ""}))
        assert any("safe to overwrite" in i.message for i in report.info)

    def test_missing_parent_dir_warns(self):
        manifest = make_manifest(ProcessorStep(1, "A", output="new/dir/out.ts"))
        report = validate_manifest(manifest, MemoryFilesystem())
        assert report.ok
        assert any("Parent directory doesn't exist: new/dir" in w.message for w in report.warnings)

    def test_type_naming_convention(self):
        manifest = make_manifest(ProcessorStep(1, "A", output="src/types/account.ts"))
        report = validate_manifest(manifest, MemoryFilesystem({"src/types/other.types.ts": ""}))
        assert report.ok
        assert any("Type file doesn't follow naming convention" in w.message for w in report.warnings)
        assert any("*.types.ts" in i.message for i in report.info)

    def test_hook_naming_convention_satisfied(self):
        manifest = make_manifest(ProcessorStep(1, "A", output="src/hooks/useAccounts.ts"))
        report = validate_manifest(manifest, MemoryFilesystem({"src/hooks/.keep": ""}))
        assert report.warnings == []

    def test_existing_directory_output(self):
        fs = MemoryFilesystem({"out/a.ts": "x"})
        manifest = make_manifest(ProcessorStep(1, "A", output="out"))
        report = validate_manifest(manifest, fs)
        assert report.ok
        assert any("File already exists: out" in w.message for w in report.warnings)
        assert any("Path is a directory" in i.message for i in report.info)
        assert not any("bytes of content" in i.message for i in report.info)

    def test_memory_directory_size_is_zero(self):
        assert MemoryFilesystem({"out/a.ts": "x"}).size("out") == 0


class TestSimilarFiles:
    """Fuzzy duplicate detection is advisory only."""

    def test_finds_case_and_kebab_variants(self):
        fs = MemoryFilesystem({"src/components/AccountList.tsx": "x"})
        assert find_similar_files("src/components/account-list.tsx", fs) == [
            "src/components/AccountList.tsx"
        ]

    def test_similar_files_are_info_only(self):
        fs = MemoryFilesystem({"src/components/AccountList.tsx": "x"})
        manifest = make_manifest(ProcessorStep(1, "A", output="src/components/account-list.tsx"))
        issues = check_similar_files(manifest, fs)
        assert len(issues) == 1
        assert issues[0].severity == Severity.INFO
        assert validate_manifest(manifest, fs).ok

    def test_no_suggestions_for_existing_output(self):
        fs = MemoryFilesystem({"src/a.ts": "x"})
        manifest = make_manifest(ProcessorStep(1, "A", output="src/a.ts"))
        assert check_similar_files(manifest, fs) == []


class TestValidateAll:
    """validate() runs every check without short-circuiting."""

    def test_reports_every_error(self):
        manifest = make_manifest(
            ProcessorStep(1, "A", input="missing.json", output="x.ts"),
            ProcessorStep(2, "B", output="x.ts"),
            ProcessorStep(3, "C", target_file="nope.ts"),
        )
        errors = [i for i in validate(manifest, MemoryFilesystem()) if i.severity == Severity.ERROR]
        assert len(errors) == 3

    def test_warnings_only_verdict_is_stable(self):
        fs = MemoryFilesystem({"out.ts": "abc", "src/types/.keep": ""})
        manifest = make_manifest(
            ProcessorStep(1, "A", output="out.ts"),
            ProcessorStep(2, "B", output="src/types/account.ts"),
        )
        first = validate_manifest(manifest, fs)
        second = validate_manifest(manifest, fs)
        assert first.issues == second.issues
        assert first.ok and second.ok
        assert first.errors == []
        assert len(first.warnings) == 2
        assert first.info

    def test_local_filesystem(self, tmp_path):
        (tmp_path / "in.json").write_text("{}")
        manifest = make_manifest(ProcessorStep(1, "A", input="in.json", output="out.ts"))
        report = validate_manifest(manifest, LocalFilesystem(tmp_path))
        assert report.ok
        assert not (tmp_path / "out.ts").exists()

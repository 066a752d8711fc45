"""Tests for error types and the error collector."""

from sdcbuild.errors import BundlerError, ErrorCollector, RelocationError, SdcBuildError, StageError


def test_bundler_error_message():
    error = BundlerError("esbuild", 1, '✘ [ERROR] Could not resolve "./missing.js"\n')

    assert isinstance(error, SdcBuildError)
    assert str(error).startswith("esbuild exited with status 1\n")
    assert "Could not resolve" in str(error)
    assert str(BundlerError("sass", 65)) == "sass exited with status 65"


def test_stage_error_format():
    assert StageError("vendor", "components/a/a.component.yml", "bad yaml").format() == "[vendor] components/a/a.component.yml: bad yaml"
    assert StageError("cleanup", None, "denied").format() == "[cleanup] denied"


def test_collector_filters_by_stage():
    collector = ErrorCollector()
    collector.add_error("relocate", "dist/js/c-a.js", OSError("busy"))
    collector.add_error("vendor", None, "missing")

    assert collector.has_errors()
    assert [e.stage for e in collector.get_errors("relocate")] == ["relocate"]
    assert len(collector.get_errors()) == 2
    assert collector.format_errors().splitlines()[0] == "[relocate] dist/js/c-a.js: busy"

    collector.clear()
    assert not collector.has_errors()


def test_collector_drops_oldest_when_full():
    collector = ErrorCollector(max_errors=2)
    for i in range(3):
        collector.add_error("relocate", f"f{i}", "x")

    assert [e.file_path for e in collector.get_errors()] == ["f1", "f2"]


def test_relocation_error_carries_records():
    records = [StageError("relocate", "dist/css/c-a.css", "denied")]

    error = RelocationError(records)

    assert error.errors == records
    assert "1 artifact(s)" in str(error)

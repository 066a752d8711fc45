"""Tests for the esbuild-backed bundler."""

import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from sdcbuild.bundler.esbuild import EsbuildBundler
from sdcbuild.bundler.models import BuildOptions, BuildResult, Metafile, OutputMeta
from sdcbuild.config import ThemeConfig
from sdcbuild.errors import BundlerError, SdcBuildError


class RecordingHook:
    name = "record"

    def __init__(self, calls: list) -> None:
        self.calls = calls

    async def on_end(self, result: BuildResult) -> None:
        self.calls.append(("hook", result))


class RecordingLoader:
    name = "styles"

    def __init__(self, calls: list) -> None:
        self.calls = calls

    def handles(self, target) -> bool:
        return target.path.suffix == ".scss"

    async def compile(self, targets, options) -> Metafile:
        self.calls.append(("compile", [t.path.name for t in targets]))
        return Metafile(outputs={options.entry_output(t, "css"): OutputMeta(entry_point=t.relative_to(options.project_dir)) for t in targets})


def fake_esbuild(outputs: dict, returncode: int = 0, stderr: str = ""):
    """safe_run stand-in that writes the metafile esbuild would write."""

    def run(cmd, **kwargs):
        metafile = next(arg.split("=", 1)[1] for arg in cmd if arg.startswith("--metafile="))
        if returncode == 0:
            Path(metafile).write_text(json.dumps({"outputs": outputs}), encoding="utf-8")
        return subprocess.CompletedProcess(args=cmd, returncode=returncode, stdout="", stderr=stderr)

    return run


class TestBuildCommand:
    def test_release_command(self, config: ThemeConfig) -> None:
        options = BuildOptions.from_config(config)
        targets = [t for t in options.expand_entries() if t.path.suffix == ".js"]

        cmd = EsbuildBundler().build_command("esbuild", targets, options, Path("/tmp/meta.json"))

        assert cmd[1:4] == ["src/js/main.js", "components/card/src/c-card.js", "components/teaser/src/c-teaser.js"]
        for flag in (
            "--bundle",
            "--splitting",
            "--minify",
            "--format=esm",
            "--outdir=dist",
            "--entry-names=[ext]/[name]",
            "--chunk-names=[ext]/[name]-[hash]",
            "--target=esnext",
            "--metafile=/tmp/meta.json",
            "--external:*.svg",
            "--external:./fonts/*",
        ):
            assert flag in cmd
        assert "--sourcemap" not in cmd

    def test_watch_command(self, watch_config: ThemeConfig) -> None:
        options = BuildOptions.from_config(watch_config)

        cmd = EsbuildBundler().build_command("esbuild", [], options, Path("meta.json"))

        assert "--sourcemap" in cmd
        assert "--minify" not in cmd


class TestBuild:
    @pytest.mark.asyncio
    async def test_loaders_then_esbuild_then_hooks(self, config: ThemeConfig) -> None:
        calls: list = []
        options = BuildOptions.from_config(config, plugins=(RecordingLoader(calls), RecordingHook(calls)))
        esbuild_outputs = {
            "dist/js/main.js": {"bytes": 10, "entryPoint": "src/js/main.js", "imports": []},
            "dist/js/chunk-AAAA.js": {"bytes": 5, "imports": []},
        }

        with (
            patch("sdcbuild.bundler.esbuild.find_node_tool", return_value="esbuild"),
            patch("sdcbuild.bundler.esbuild.safe_run", side_effect=fake_esbuild(esbuild_outputs)) as mock_run,
        ):
            result = await EsbuildBundler().build(options)

        assert calls[0] == ("compile", ["style.scss", "c-card.scss"])
        assert calls[1][0] == "hook"
        assert calls[1][1] is result
        assert set(result.metafile.outputs) == {"dist/css/style.css", "dist/css/c-card.css", "dist/js/main.js", "dist/js/chunk-AAAA.js"}
        assert mock_run.call_args.kwargs["cwd"] == config.project_dir
        assert config.output_dir.is_dir()

    @pytest.mark.asyncio
    async def test_esbuild_failure_raises_and_skips_hooks(self, config: ThemeConfig) -> None:
        calls: list = []
        options = BuildOptions.from_config(config, plugins=(RecordingHook(calls),))

        with (
            patch("sdcbuild.bundler.esbuild.find_node_tool", return_value="esbuild"),
            patch("sdcbuild.bundler.esbuild.safe_run", side_effect=fake_esbuild({}, returncode=1, stderr="✘ [ERROR] Could not resolve")),
        ):
            with pytest.raises(BundlerError, match="Could not resolve"):
                await EsbuildBundler().build(options)

        assert calls == []

    @pytest.mark.asyncio
    async def test_no_script_entries_skips_esbuild(self, tmp_path: Path) -> None:
        config = ThemeConfig(project_dir=tmp_path)

        with patch("sdcbuild.bundler.esbuild.safe_run") as mock_run:
            result = await EsbuildBundler().build(BuildOptions.from_config(config))

        mock_run.assert_not_called()
        assert result.output_count == 0


class TestContext:
    @pytest.mark.asyncio
    async def test_rebuild_and_dispose(self, config: ThemeConfig) -> None:
        bundler = EsbuildBundler()
        context = bundler.context(BuildOptions.from_config(config))

        with patch.object(bundler, "build", return_value=BuildResult(metafile=Metafile())) as mock_build:
            await context.rebuild()
            await context.rebuild()

        assert mock_build.call_count == 2
        assert context.rebuild_count == 2

        context.dispose()
        with pytest.raises(SdcBuildError):
            await context.rebuild()

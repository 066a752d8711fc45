"""Tests for the Sass entry loader."""

import subprocess
from unittest.mock import patch

import pytest

from sdcbuild.build.targets import BuildTarget, TargetKind
from sdcbuild.bundler.models import BuildOptions
from sdcbuild.bundler.plugins import EntryLoader
from sdcbuild.bundler.sass import SassPlugin
from sdcbuild.config import ThemeConfig
from sdcbuild.errors import BundlerError


def style_targets(options: BuildOptions) -> list[BuildTarget]:
    return [t for t in options.expand_entries() if t.kind == TargetKind.STYLE]


class TestSassPlugin:
    def test_is_entry_loader(self) -> None:
        assert isinstance(SassPlugin(), EntryLoader)

    def test_handles_only_sass_styles(self, config: ThemeConfig) -> None:
        plugin = SassPlugin()
        root = config.project_dir

        assert plugin.handles(BuildTarget(root / "a/c-a.scss", TargetKind.STYLE, True))
        assert plugin.handles(BuildTarget(root / "a/c-a.sass", TargetKind.STYLE, True))
        assert not plugin.handles(BuildTarget(root / "a/c-a.css", TargetKind.STYLE, True))
        assert not plugin.handles(BuildTarget(root / "a/c-a.js", TargetKind.SCRIPT, True))

    def test_release_command(self, config: ThemeConfig) -> None:
        options = BuildOptions.from_config(config)

        cmd = SassPlugin().build_command("sass", style_targets(options), options)

        assert cmd == [
            "sass",
            "--load-path=node_modules",
            "--style=compressed",
            "--no-source-map",
            "src/scss/style.scss:dist/css/style.css",
            "components/card/src/c-card.scss:dist/css/c-card.css",
        ]

    def test_watch_command(self, watch_config: ThemeConfig) -> None:
        options = BuildOptions.from_config(watch_config)

        cmd = SassPlugin().build_command("sass", style_targets(options), options)

        assert "--style=expanded" in cmd
        assert "--source-map" in cmd

    @pytest.mark.asyncio
    async def test_compile_reports_outputs(self, config: ThemeConfig) -> None:
        options = BuildOptions.from_config(config)
        completed = subprocess.CompletedProcess(args=["sass"], returncode=0, stdout="", stderr="")

        with (
            patch("sdcbuild.bundler.sass.find_node_tool", return_value="sass"),
            patch("sdcbuild.bundler.sass.safe_run", return_value=completed),
        ):
            metafile = await SassPlugin().compile(style_targets(options), options)

        assert metafile.outputs["dist/css/c-card.css"].entry_point == "components/card/src/c-card.scss"
        assert metafile.outputs["dist/css/style.css"].entry_point == "src/scss/style.scss"

    @pytest.mark.asyncio
    async def test_compile_failure(self, config: ThemeConfig) -> None:
        options = BuildOptions.from_config(config)
        completed = subprocess.CompletedProcess(args=["sass"], returncode=65, stdout="", stderr="Error: Undefined variable.")

        with (
            patch("sdcbuild.bundler.sass.find_node_tool", return_value="sass"),
            patch("sdcbuild.bundler.sass.safe_run", return_value=completed),
        ):
            with pytest.raises(BundlerError, match="Undefined variable") as exc_info:
                await SassPlugin().compile(style_targets(options), options)

        assert exc_info.value.tool == "sass"
        assert exc_info.value.returncode == 65

    @pytest.mark.asyncio
    async def test_no_targets_runs_nothing(self, config: ThemeConfig) -> None:
        with patch("sdcbuild.bundler.sass.safe_run") as mock_run:
            metafile = await SassPlugin().compile([], BuildOptions.from_config(config))

        mock_run.assert_not_called()
        assert metafile.outputs == {}

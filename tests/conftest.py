"""Pytest configuration and fixtures for sdcbuild tests.

Provides a small theme on disk and a FakeBundler that emits the same output
layout as esbuild + sass (dist/css/<name>.css, dist/js/<name>.js and
dist/js/chunk-<hash>.js for code shared by two or more entries) so the
pipeline can be exercised end to end without Node tooling.
"""

import hashlib
import json
import os
import re
import sys
import warnings
from pathlib import Path

import pytest

from sdcbuild.build.targets import TargetKind
from sdcbuild.bundler.models import BuildOptions, BuildResult, Metafile, OutputMeta
from sdcbuild.bundler.plugins import BuildEndHook
from sdcbuild.config import ThemeConfig
from sdcbuild.errors import BundlerError

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)

IMPORT_LINE_RE = re.compile(r"""^import\s+(?P<what>.+?)\s+from\s+["'](?P<spec>[^"']+)["'];?\s*$""", re.MULTILINE)


@pytest.fixture(autouse=True)
def _restore_output_stream():
    """Point the output module back at stdout after each test."""
    yield
    from sdcbuild import output

    output._output_stream = sys.stdout
    output._console = None


class FakeBundler:
    """Bundler double mimicking esbuild's output graph.

    Script entries importing the same module end up importing one shared
    chunk; the chunk has no entry point in the metafile.
    """

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.builds = 0
        self.last_result: BuildResult | None = None

    def _write(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def _write_map(self, output: Path, source: Path) -> None:
        rel = os.path.relpath(source, output.parent).replace(os.sep, "/")
        self._write(output.with_name(output.name + ".map"), json.dumps({"version": 3, "sources": [rel], "mappings": ""}))

    async def build(self, options: BuildOptions) -> BuildResult:
        self.builds += 1
        if self.fail_with is not None:
            raise self.fail_with

        project = options.project_dir
        targets = options.expand_entries()
        metafile = Metafile()

        imports: dict[Path, list[tuple[str, Path]]] = {}
        for target in targets:
            if target.kind != TargetKind.SCRIPT:
                continue
            found = []
            for match in IMPORT_LINE_RE.finditer(target.path.read_text(encoding="utf-8")):
                found.append((match.group("what"), (target.path.parent / match.group("spec")).resolve()))
            imports[target.path] = found

        users: dict[Path, int] = {}
        for found in imports.values():
            for _, module in found:
                users[module] = users.get(module, 0) + 1

        chunks: dict[Path, str] = {}
        for module, count in users.items():
            if count < 2:
                continue
            digest = hashlib.sha1(module.as_posix().encode()).hexdigest()[:8].upper()
            chunk = f"{options.outdir}/js/chunk-{digest}.js"
            self._write(project / chunk, module.read_text(encoding="utf-8"))
            metafile.outputs[chunk] = OutputMeta(entry_point=None)
            chunks[module] = chunk

        for target in targets:
            entry = target.relative_to(project)
            if target.kind == TargetKind.STYLE:
                output = options.entry_output(target, "css")
                self._write(project / output, f"/* compiled from {entry} */\n.x{{color:red}}\n")
                metafile.outputs[output] = OutputMeta(entry_point=entry)
            else:
                output = options.entry_output(target, "js")
                lines = []
                chunk_imports = []
                for what, module in imports[target.path]:
                    if module in chunks:
                        chunk_name = Path(chunks[module]).name
                        lines.append(f'import {what} from "./{chunk_name}";')
                        chunk_imports.append(chunks[module])
                    else:
                        lines.append(f"// inlined {module.name}")
                lines.append(f"console.log({json.dumps(entry)});")
                self._write(project / output, "\n".join(lines) + "\n")
                metafile.outputs[output] = OutputMeta(entry_point=entry, imports=tuple(chunk_imports))
            if options.sourcemap:
                self._write_map(project / output, target.path)

        result = BuildResult(metafile=metafile, entries=targets)
        self.last_result = result
        for plugin in options.plugins:
            if isinstance(plugin, BuildEndHook):
                await plugin.on_end(result)
        return result

    def context(self, options: BuildOptions) -> "FakeContext":
        return FakeContext(self, options)


class FakeContext:
    def __init__(self, bundler: FakeBundler, options: BuildOptions) -> None:
        self.bundler = bundler
        self.options = options
        self.rebuilds = 0
        self.disposed = False

    async def rebuild(self) -> BuildResult:
        self.rebuilds += 1
        return await self.bundler.build(self.options)

    def dispose(self) -> None:
        self.disposed = True


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def theme_dir(tmp_path: Path) -> Path:
    """A theme with shared sources and two components sharing a module."""
    write(tmp_path / "src/scss/style.scss", "body { margin: 0; }\n")
    write(tmp_path / "src/js/main.js", 'console.log("main");\n')
    write(tmp_path / "src/js/utils/format.js", "export const format = (s) => s.trim();\n")

    write(tmp_path / "components/card/src/c-card.scss", ".c-card { display: block; }\n")
    write(tmp_path / "components/card/src/c-card.js", 'import { format } from "../../../src/js/utils/format.js";\n')
    write(tmp_path / "components/card/card.component.yml", "name: Card\n")

    write(tmp_path / "components/teaser/src/c-teaser.js", 'import { format } from "../../../src/js/utils/format.js";\n')
    write(tmp_path / "components/teaser/teaser.component.yml", "name: Teaser\n")
    return tmp_path


@pytest.fixture
def config(theme_dir: Path) -> ThemeConfig:
    return ThemeConfig(project_dir=theme_dir)


@pytest.fixture
def watch_config(theme_dir: Path) -> ThemeConfig:
    return ThemeConfig(project_dir=theme_dir, watch=True, debounce=0.01)


@pytest.fixture
def fake_bundler() -> FakeBundler:
    return FakeBundler()


@pytest.fixture
def failing_bundler() -> FakeBundler:
    return FakeBundler(fail_with=BundlerError("esbuild", 1, 'Could not resolve "./missing.js"'))

"""Output relocation - moves component artifacts next to their sources.

The bundler writes everything into the central output tree:

    dist/css/c-card.css          (entry: components/card/src/c-card.scss)
    dist/js/c-card.js            (entry: components/card/src/c-card.js)
    dist/js/chunk-5KQ2ZP7B.js    (shared chunk, no entry point)

After every build, OutputRelocationPlugin moves each component-owned artifact
into its component directory and leaves shared output in place:

    components/card/c-card.css
    components/card/c-card.js    imports "../../dist/js/chunk-5KQ2ZP7B.js"

Relative import specifiers inside moved scripts that resolve to a file emitted
by the same build are recomputed from the destination directory, so references
stay valid at any nesting depth. An import of another artifact that is itself
relocated in the same pass follows it to its destination.
"""

import asyncio
import json
import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .bundler.models import BuildResult, Metafile
from .config import ThemeConfig
from .errors import ErrorCollector, RelocationError
from .output import log_detail, log_error, log_file

logger = logging.getLogger(__name__)

# Static imports/re-exports, side-effect imports and dynamic imports with a
# relative specifier; matches minified output (no whitespace) too.
IMPORT_SPECIFIER_RE = re.compile(
    r"""(?P<prefix>\bfrom\s*|\bimport\s*\(\s*|\bimport\s*)(?P<quote>["'])(?P<spec>\.{1,2}/[^"'\n]*)(?P=quote)"""
)

STYLE_OUTPUT_EXTENSIONS = (".css",)
SCRIPT_OUTPUT_EXTENSIONS = (".js", ".mjs")


class ArtifactKind(Enum):
    """Kind of emitted file."""

    STYLE = "style"
    SCRIPT = "script"
    CHUNK = "chunk"


@dataclass(frozen=True)
class OutputArtifact:
    """One emitted file of the current build.

    Attributes:
        path: Absolute path in the central output tree
        entry_point: Absolute path of the originating entry point, if any
        kind: Style, script or shared chunk
        component: True if the entry point lives under the components root
    """

    path: Path
    entry_point: Optional[Path]
    kind: ArtifactKind
    component: bool


@dataclass
class RelocationReport:
    """Outcome of one relocation pass."""

    moved: list[tuple[Path, Path]] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)

    @property
    def moved_count(self) -> int:
        return len(self.moved)


def _normalize(path: Path | str) -> Path:
    return Path(os.path.normpath(path))


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def relative_specifier(target: Path, from_dir: Path) -> str:
    """Module specifier reaching target from from_dir.

    Always POSIX separators and always starting with "./" or "../", as
    browsers require for relative module specifiers.
    """
    rel = os.path.relpath(target, from_dir).replace(os.sep, "/")
    if not rel.startswith("."):
        rel = f"./{rel}"
    return rel


class OutputRelocationPlugin:
    """Post-build hook relocating component artifacts.

    Args:
        config: Theme configuration. config.watch decides whether companion
            source maps are relocated along with their artifacts.
    """

    name = "relocate-component-output"

    def __init__(self, config: ThemeConfig) -> None:
        self.config = config
        self.errors = ErrorCollector()
        self.last_report: Optional[RelocationReport] = None

    def classify(self, metafile: Metafile) -> list[OutputArtifact]:
        """Turn a build manifest into artifacts; source maps and other files are skipped."""
        project_dir = self.config.project_dir
        components_root = _normalize(self.config.components_root)
        artifacts: list[OutputArtifact] = []

        for output, meta in metafile.outputs.items():
            path = _normalize(project_dir / output)
            suffix = path.suffix.lower()
            entry = _normalize(project_dir / meta.entry_point) if meta.entry_point else None

            if suffix in STYLE_OUTPUT_EXTENSIONS:
                kind = ArtifactKind.STYLE
            elif suffix in SCRIPT_OUTPUT_EXTENSIONS:
                kind = ArtifactKind.SCRIPT if entry is not None else ArtifactKind.CHUNK
            else:
                continue

            component = entry is not None and _is_within(entry, components_root)
            artifacts.append(OutputArtifact(path=path, entry_point=entry, kind=kind, component=component))

        return artifacts

    def emitted_outputs(self, metafile: Metafile) -> set[Path]:
        """Absolute paths of every file the build emitted or linked as an import."""
        project_dir = self.config.project_dir
        emitted: set[Path] = set()
        for output, meta in metafile.outputs.items():
            emitted.add(_normalize(project_dir / output))
            emitted.update(_normalize(project_dir / i) for i in meta.imports)
        return emitted

    def destination_for(self, artifact: OutputArtifact) -> Path:
        """Where a component artifact lands.

        The last source segment is dropped from the entry point's directory,
        the entry's stem is kept and the compiled extension is applied:
        components/card/src/c-card.scss -> components/card/c-card.css
        """
        if artifact.entry_point is None:
            raise ValueError(f"Artifact has no entry point: {artifact.path}")

        entry = artifact.entry_point
        components_root = _normalize(self.config.components_root)
        parts = list(entry.parent.relative_to(components_root).parts)
        for i in range(len(parts) - 1, -1, -1):
            if parts[i] == self.config.src_dir:
                del parts[i]
                break

        extension = ".css" if artifact.kind == ArtifactKind.STYLE else ".js"
        return components_root.joinpath(*parts) / f"{entry.stem}{extension}"

    def rewrite_imports(self, source: str, old_dir: Path, new_dir: Path, moved: dict[Path, Path], outputs: set[Path]) -> str:
        """Repoint relative imports of build output from new_dir.

        Only specifiers resolving to a file emitted by this build (outputs) are
        rewritten; anything else, including look-alike text in string literals,
        is left untouched.
        """

        def replace(match: re.Match) -> str:
            target = _normalize(old_dir / match.group("spec"))
            if target not in outputs:
                return match.group(0)
            target = moved.get(target, target)
            spec = relative_specifier(target, new_dir)
            return f"{match.group('prefix')}{match.group('quote')}{spec}{match.group('quote')}"

        return IMPORT_SPECIFIER_RE.sub(replace, source)

    def rewrite_source_map(self, map_path: Path, old_dir: Path, new_dir: Path) -> None:
        """Rewrite a source map's relative "sources" for its new directory."""
        data = json.loads(map_path.read_text(encoding="utf-8"))
        if data.get("sourceRoot"):
            return

        sources = []
        for source in data.get("sources", []):
            if "://" in source or source.startswith("data:") or os.path.isabs(source):
                sources.append(source)
            else:
                absolute = _normalize(old_dir / source)
                sources.append(os.path.relpath(absolute, new_dir).replace(os.sep, "/"))
        data["sources"] = sources
        map_path.write_text(json.dumps(data), encoding="utf-8")

    def relocate(self, artifact: OutputArtifact, destination: Path, moved: dict[Path, Path], outputs: set[Path]) -> None:
        """Rewrite (scripts only) and move one artifact, plus its map in watch mode."""
        old_dir = artifact.path.parent
        new_dir = destination.parent

        if artifact.kind == ArtifactKind.SCRIPT:
            text = artifact.path.read_text(encoding="utf-8")
            rewritten = self.rewrite_imports(text, old_dir, new_dir, moved, outputs)
            if rewritten != text:
                artifact.path.write_text(rewritten, encoding="utf-8")

        new_dir.mkdir(parents=True, exist_ok=True)
        _move(artifact.path, destination)
        log_file("relocate", f"{self.config.relative(artifact.path)} -> {self.config.relative(destination)}")

        if self.config.watch:
            map_path = artifact.path.with_name(artifact.path.name + ".map")
            if map_path.exists():
                self.rewrite_source_map(map_path, old_dir, new_dir)
                _move(map_path, destination.with_name(destination.name + ".map"))
            else:
                logger.debug(f"No source map for {artifact.path}")

    async def on_end(self, result: BuildResult) -> None:
        """Relocate every component artifact of a finished build.

        Raises:
            RelocationError: If any artifact failed; all others are still moved
        """
        report = await self.relocate_all(result.metafile)
        if report.failed:
            raise RelocationError(self.errors.get_errors("relocate"))

    async def relocate_all(self, metafile: Metafile) -> RelocationReport:
        """Relocate all component artifacts of a manifest concurrently."""
        self.errors.clear()
        artifacts = [a for a in self.classify(metafile) if a.component]
        moved = {a.path: self.destination_for(a) for a in artifacts}
        outputs = self.emitted_outputs(metafile)

        results = await asyncio.gather(
            *(asyncio.to_thread(self.relocate, a, moved[a.path], moved, outputs) for a in artifacts),
            return_exceptions=True,
        )

        report = RelocationReport()
        for artifact, outcome in zip(artifacts, results):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                record = self.errors.add_error("relocate", self.config.relative(artifact.path), outcome)
                log_error(f"Error relocating {record.file_path}: {record.error_message}")
                report.failed.append(artifact.path)
            else:
                report.moved.append((artifact.path, moved[artifact.path]))

        if report.moved:
            log_detail(f"Relocated {report.moved_count} component artifact(s)", verbose_only=True)
        self.last_report = report
        return report


def _move(src: Path, dest: Path) -> None:
    """Move src to dest, replacing an existing file."""
    if dest.exists():
        dest.unlink()
    shutil.move(str(src), str(dest))

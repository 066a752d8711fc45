"""Data models shared by the bundler and its plugins.

- OutputMeta / Metafile: the build output manifest, in the same shape as the
  esbuild metafile "outputs" section (keys are output paths relative to the
  project, values carry the originating entry point)
- BuildOptions: everything a (re)build needs, fixed for the process lifetime
- BuildResult: what one (re)build produced; the sole input of post-build hooks
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ..build.targets import BuildTarget, discover_targets

if TYPE_CHECKING:
    from ..config import ThemeConfig


@dataclass(frozen=True)
class OutputMeta:
    """Metadata for one emitted file.

    Attributes:
        entry_point: Originating entry point relative to the project, or None
            for files that cannot be tied to one source (shared chunks, maps)
        imports: Output paths this file imports
        bytes: Size of the emitted file
    """

    entry_point: Optional[str] = None
    imports: tuple[str, ...] = ()
    bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "bytes": self.bytes,
            "imports": [{"path": p} for p in self.imports],
        }
        if self.entry_point is not None:
            data["entryPoint"] = self.entry_point
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OutputMeta":
        return cls(
            entry_point=data.get("entryPoint"),
            imports=tuple(i["path"] for i in data.get("imports", []) if "path" in i),
            bytes=data.get("bytes", 0),
        )


@dataclass
class Metafile:
    """Build output manifest: output path -> OutputMeta."""

    outputs: dict[str, OutputMeta] = field(default_factory=dict)

    def merge(self, other: "Metafile") -> None:
        """Add another manifest's outputs (later writers win on equal paths)."""
        self.outputs.update(other.outputs)

    def to_dict(self) -> dict[str, Any]:
        return {"outputs": {path: meta.to_dict() for path, meta in self.outputs.items()}}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metafile":
        outputs = data.get("outputs", {})
        return cls(outputs={path: OutputMeta.from_dict(meta) for path, meta in outputs.items()})


@dataclass(frozen=True)
class BuildOptions:
    """Bundler configuration.

    Entry points are declared as literal shared entries plus glob patterns;
    expand_entries() resolves them against the file system on each build.

    Attributes:
        project_dir: Working directory of the build; metafile paths are relative to it
        shared_entries: Literal shared entry points
        component_patterns: Glob patterns for component entry points
        outdir: Output directory relative to project_dir
        entry_names: Naming template for entries ([ext], [name])
        chunk_names: Naming template for shared chunks ([ext], [name], [hash])
        format: Module format of script output
        bundle: Whether imports are inlined
        splitting: Whether common code is extracted into shared chunks
        minify: Whether output is minified
        sourcemap: Whether source maps are written
        external: Asset patterns left unresolved
        target: Language target for script output
        log_level: Bundler log level
        plugins: Ordered plugins (entry loaders and post-build hooks)
    """

    project_dir: Path
    shared_entries: tuple[str, ...]
    component_patterns: tuple[str, ...]
    outdir: str
    entry_names: str
    chunk_names: str
    minify: bool
    sourcemap: bool
    external: tuple[str, ...] = ()
    format: str = "esm"
    bundle: bool = True
    splitting: bool = True
    target: str = "esnext"
    log_level: str = "info"
    plugins: tuple[Any, ...] = ()

    @classmethod
    def from_config(cls, config: "ThemeConfig", plugins: tuple[Any, ...] = ()) -> "BuildOptions":
        """Create options from the theme config and its active profile."""
        flags = config.profile_flags
        return cls(
            project_dir=config.project_dir,
            shared_entries=config.shared_entries,
            component_patterns=config.component_patterns,
            outdir=config.outdir,
            entry_names=config.entry_names,
            chunk_names=config.chunk_names,
            minify=flags.minify,
            sourcemap=flags.sourcemap,
            external=config.external,
            target=config.target,
            plugins=plugins,
        )

    @property
    def output_dir(self) -> Path:
        return self.project_dir / self.outdir

    def expand_entries(self) -> list[BuildTarget]:
        return discover_targets(self.project_dir, self.shared_entries, self.component_patterns)

    def entry_output(self, target: BuildTarget, ext: str) -> str:
        """Output path (relative to the project) for an entry, per entry_names."""
        name = self.entry_names.replace("[ext]", ext).replace("[name]", target.path.stem)
        return f"{self.outdir}/{name}.{ext}"


@dataclass
class BuildResult:
    """Result of one build or rebuild.

    Attributes:
        metafile: Output manifest of everything emitted
        entries: Targets that were built
        elapsed: Wall-clock build time in seconds
        warnings: Non-fatal diagnostics reported by the tools
    """

    metafile: Metafile
    entries: list[BuildTarget] = field(default_factory=list)
    elapsed: float = 0.0
    warnings: list[str] = field(default_factory=list)

    @property
    def output_count(self) -> int:
        return len(self.metafile.outputs)

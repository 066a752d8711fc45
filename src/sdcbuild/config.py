"""Theme build configuration.

ThemeConfig replaces every module-level setting of a theme build script
(watch flag, directory names, entry points) with one immutable value that is
handed to each pipeline stage's constructor.

Defaults describe the conventional single-directory-component theme layout:

    src/scss/*.scss, src/js/*.js          shared entry points
    components/<name>/src/c-<name>.scss   component entry points
    components/<name>/<name>.component.yml
    dist/css, dist/js                     central output tree

A project can override any field in an optional sdcbuild.yml at its root:

    outdir: build
    shared_entries:
      - src/scss/style.scss
      - src/js/main.js
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .build.build_profiles import BuildProfile, ProfileFlags, get_profile
from .errors import ConfigError

CONFIG_FILENAME = "sdcbuild.yml"

# Fields that may not be set from sdcbuild.yml (they come from the CLI)
_CLI_FIELDS = ("project_dir", "watch", "verbose")


@dataclass(frozen=True)
class ThemeConfig:
    """Immutable configuration for one sdcbuild process.

    Attributes:
        project_dir: Theme root; every relative path below resolves against it
        watch: Whether the process runs the watch loop
        verbose: Whether verbose-only output is shown
        outdir: Central output directory name
        src_dir: Path segment that marks source directories
        components_dir: Components root directory name
        component_prefix: Filename prefix marking component entry points and artifacts
        shared_entries: Theme-wide entry points, in build order
        component_patterns: Glob patterns selecting component entry points
        external: Asset patterns the bundler leaves unresolved
        entry_names: Naming template for entry outputs
        chunk_names: Naming template for shared chunks
        target: JavaScript language target
        vendor_subdir: Output subdirectory receiving vendor assets
        manifest_glob: Glob (under components root) selecting component manifests
        manifest_vendor_key: Manifest key declaring vendor assets
        lint_patterns: Style sources handed to the linter
        lint_ignore: Pattern excluded from linting
        lint_formatter: stylelint formatter name
        debounce: Seconds to wait for an event burst to settle before rebuilding
    """

    project_dir: Path
    watch: bool = False
    verbose: bool = False
    outdir: str = "dist"
    src_dir: str = "src"
    components_dir: str = "components"
    component_prefix: str = "c-"
    shared_entries: tuple[str, ...] = (
        "src/scss/style.scss",
        "src/scss/wysiwyg.scss",
        "src/js/main.js",
        "src/js/messages.js",
        "src/scss/mail.scss",
    )
    component_patterns: tuple[str, ...] = (
        "components/**/src/c-*.scss",
        "components/**/src/c-*.js",
        "components/**/src/c-*.ts",
    )
    external: tuple[str, ...] = (
        "*.svg",
        "*.jpg",
        "*.jpeg",
        "*.gif",
        "*.png",
        "*.json",
        "*.eot",
        "*.ttf",
        "*.woff",
        "*.woff2",
        "./fonts/*",
    )
    entry_names: str = "[ext]/[name]"
    chunk_names: str = "[ext]/[name]-[hash]"
    target: str = "esnext"
    vendor_subdir: str = "css/vendor"
    manifest_glob: str = "**/*.yml"
    manifest_vendor_key: str = "vendorCss"
    lint_patterns: tuple[str, ...] = (
        "src/scss/**/*.scss",
        "components/**/src/*.scss",
    )
    lint_ignore: str = "**/vendor/**"
    lint_formatter: str = "string"
    debounce: float = field(default=0.1)

    @property
    def profile(self) -> BuildProfile:
        return BuildProfile.WATCH if self.watch else BuildProfile.RELEASE

    @property
    def profile_flags(self) -> ProfileFlags:
        return get_profile(self.profile)

    @property
    def output_dir(self) -> Path:
        """Absolute central output directory."""
        return self.project_dir / self.outdir

    @property
    def components_root(self) -> Path:
        return self.project_dir / self.components_dir

    @property
    def vendor_dir(self) -> Path:
        """Absolute shared vendor asset directory."""
        return self.output_dir / self.vendor_subdir

    @property
    def watch_roots(self) -> tuple[Path, Path]:
        """Directories observed by the watch loop."""
        return (self.project_dir / self.src_dir, self.components_root)

    def relative(self, path: Path) -> str:
        """Render a path relative to the project for display, POSIX style."""
        try:
            return path.relative_to(self.project_dir).as_posix()
        except ValueError:
            return path.as_posix()

    @classmethod
    def from_dict(cls, project_dir: Path, data: dict[str, Any], watch: bool = False, verbose: bool = False) -> "ThemeConfig":
        """Create a config from sdcbuild.yml data layered over the defaults.

        Raises:
            ConfigError: If a key is unknown, reserved for the CLI, or has the wrong shape
        """
        known = {f.name: f for f in dataclasses.fields(cls)}
        overrides: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or key in _CLI_FIELDS:
                raise ConfigError(f"Unknown key in {CONFIG_FILENAME}: {key!r}")
            default = known[key].default
            if isinstance(default, tuple):
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ConfigError(f"{CONFIG_FILENAME}: {key!r} must be a list")
                value = tuple(str(v) for v in value)
            elif isinstance(default, float):
                if not isinstance(value, (int, float)) or isinstance(value, bool):
                    raise ConfigError(f"{CONFIG_FILENAME}: {key!r} must be a number")
                value = float(value)
            elif not isinstance(value, str):
                raise ConfigError(f"{CONFIG_FILENAME}: {key!r} must be a string")
            overrides[key] = value
        return cls(project_dir=project_dir, watch=watch, verbose=verbose, **overrides)


def load_config(project_dir: Path, watch: bool = False, verbose: bool = False) -> ThemeConfig:
    """Load the configuration for a theme project.

    Args:
        project_dir: Theme root directory
        watch: CLI watch flag
        verbose: CLI verbose flag

    Returns:
        ThemeConfig with sdcbuild.yml overrides applied, or defaults if absent

    Raises:
        ConfigError: If sdcbuild.yml cannot be parsed or is not a mapping
    """
    project_dir = project_dir.resolve()
    config_file = project_dir / CONFIG_FILENAME
    if not config_file.is_file():
        return ThemeConfig(project_dir=project_dir, watch=watch, verbose=verbose)

    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {config_file}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    return ThemeConfig.from_dict(project_dir, data, watch=watch, verbose=verbose)
